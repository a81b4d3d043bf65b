"""
Attendance ledger: one check-in per guest.

The unique constraint on ``attendance.guest_id`` is what makes a check-in
happen exactly once. ``record_if_absent`` just tries the insert and reads a
unique violation as "already there"; it checks that the guest exists but
never looks for an earlier check-in before it writes.
"""

import enum

from flask import current_app
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from guestlist import db
from guestlist.errors import StoreError, ValidationError
from guestlist.models import Attendance, Guest
from guestlist.services.registry import guest_registry


class LedgerResult(enum.Enum):
    COMMITTED = 'committed'
    ALREADY_PRESENT = 'already_present'


class AttendanceLedger:
    """Append-only record of who came through the door."""

    def record_if_absent(self, guest_id: int, scanned_by: str = 'admin') -> LedgerResult:
        if guest_registry.get(guest_id) is None:
            raise ValidationError(f"Unknown guest {guest_id}")

        record = Attendance(guest_id=guest_id, scanned_by=scanned_by)
        db.session.add(record)
        try:
            db.session.commit()
        except IntegrityError as e:
            db.session.rollback()
            if Attendance.query.filter_by(guest_id=guest_id).first() is None:
                # Not the unique guest_id constraint (e.g. the guest row vanished)
                current_app.logger.error(f"Attendance insert rejected for guest {guest_id}: {e}")
                raise StoreError('Could not record attendance') from e
            current_app.logger.info(f"Guest {guest_id} already checked in")
            return LedgerResult.ALREADY_PRESENT
        except SQLAlchemyError as e:
            db.session.rollback()
            current_app.logger.error(f"Attendance insert failed for guest {guest_id}: {e}")
            raise StoreError('Could not record attendance') from e

        current_app.logger.info(f"Checked in guest {guest_id} (station: {scanned_by})")
        return LedgerResult.COMMITTED

    def list_all(self) -> list:
        """(Attendance, Guest) pairs, most recent scan first."""
        try:
            return db.session.query(Attendance, Guest).join(
                Guest, Attendance.guest_id == Guest.id
            ).order_by(Attendance.scanned_at.desc(), Attendance.id.desc()).all()
        except SQLAlchemyError as e:
            db.session.rollback()
            raise StoreError('Could not list attendance') from e


# Global instance
attendance_ledger = AttendanceLedger()
