from datetime import datetime
from guestlist import db


class Attendance(db.Model):
    """Check-in of a guest at the door."""
    __tablename__ = 'attendance'

    id = db.Column(db.Integer, primary_key=True)
    guest_id = db.Column(db.Integer, db.ForeignKey('guests.id'), nullable=False)
    scanned_by = db.Column(db.String(50), default='admin')
    scanned_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    # Unique constraint: one attendance record per guest
    __table_args__ = (
        db.UniqueConstraint('guest_id', name='unique_guest_attendance'),
    )

    def __repr__(self):
        return f'<Attendance guest={self.guest_id}>'

    def to_dict(self):
        return {
            'id': self.id,
            'guest_id': self.guest_id,
            'guest_name': self.guest.name if self.guest else None,
            'scanned_by': self.scanned_by,
            'scanned_at': self.scanned_at.isoformat() if self.scanned_at else None,
        }
