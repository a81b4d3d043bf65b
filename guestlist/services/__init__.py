# Business logic services
from guestlist.services.registry import guest_registry
from guestlist.services.ledger import attendance_ledger, LedgerResult
from guestlist.services.checkin import checkin_resolver, CheckInResult, RejectReason
from guestlist.services.email_service import email_service

__all__ = [
    'guest_registry',
    'attendance_ledger',
    'LedgerResult',
    'checkin_resolver',
    'CheckInResult',
    'RejectReason',
    'email_service',
]
