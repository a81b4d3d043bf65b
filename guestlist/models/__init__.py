# Import all models here so they're registered with SQLAlchemy
from guestlist.models.guest import Guest
from guestlist.models.attendance import Attendance
from guestlist.models.email_log import EmailLog

__all__ = ['Guest', 'Attendance', 'EmailLog']
