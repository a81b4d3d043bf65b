"""
Guest registry: the persisted guest list.

Guests are keyed for "already exists" purposes by a case-insensitive match
on their trimmed name. Credentials are issued once, when the row is
created, and never touched afterwards.
"""

from datetime import datetime
from typing import Optional

from flask import current_app
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError

from guestlist import db
from guestlist.errors import StoreError, ValidationError
from guestlist.models import Attendance, Guest
from guestlist.services.credentials import issue_credential


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError('Expected text')
    value = value.strip()
    return value or None


class GuestRegistry:
    """CRUD over the guests table."""

    def _prefix(self) -> str:
        return current_app.config.get('CREDENTIAL_PREFIX', 'RSVP')

    def _commit(self, action: str):
        try:
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            current_app.logger.error(f"Guest registry {action} failed: {e}")
            raise StoreError(f"Could not {action} guest") from e

    def get(self, guest_id) -> Optional[Guest]:
        """Primary-key lookup; None for unknown ids."""
        try:
            return db.session.get(Guest, guest_id)
        except SQLAlchemyError as e:
            db.session.rollback()
            raise StoreError('Could not look up guest') from e

    def find_by_name(self, name: str) -> Optional[Guest]:
        """Case-insensitive exact match on the trimmed name."""
        if not isinstance(name, str) or not name.strip():
            return None
        name = name.strip()
        try:
            return Guest.query.filter(func.lower(Guest.name) == name.lower()).first()
        except SQLAlchemyError as e:
            db.session.rollback()
            raise StoreError('Could not look up guest') from e

    def find_by_credential(self, token: str) -> Optional[Guest]:
        """Return the guest holding ``token``, or None."""
        if not isinstance(token, str) or not token.strip():
            return None
        try:
            return Guest.query.filter_by(credential=token.strip()).first()
        except SQLAlchemyError as e:
            db.session.rollback()
            raise StoreError('Could not look up credential') from e

    def upsert_by_name(self, name: str, attending: Optional[bool], message: str = None,
                       email: str = None, phone: str = None) -> Guest:
        """
        Record an RSVP.

        Updates the guest with the same name in place (keeping id and
        credential) or creates a new one with a freshly issued credential.

        Raises:
            ValidationError: empty name or no attendance choice
            StoreError: the write failed
        """
        if not isinstance(name, str) or not name.strip():
            raise ValidationError('Please enter your name')
        name = name.strip()
        if attending is None:
            raise ValidationError('Please select if you can attend')
        message, email, phone = _clean(message), _clean(email), _clean(phone)

        guest = self.find_by_name(name)
        if guest:
            guest.is_attending = bool(attending)
            guest.has_responded = True
            guest.message = message
            guest.email = email or guest.email
            guest.phone = phone or guest.phone
            guest.updated_at = datetime.utcnow()
            self._commit('update')
            current_app.logger.info(f"RSVP updated for guest {guest.id}: attending={guest.is_attending}")
            return guest

        guest = Guest(
            name=name,
            email=email,
            phone=phone,
            is_attending=bool(attending),
            has_responded=True,
            message=message,
            credential=issue_credential(name, prefix=self._prefix()),
        )
        db.session.add(guest)
        self._commit('create')
        current_app.logger.info(f"RSVP created guest {guest.id}: attending={guest.is_attending}")
        return guest

    def create_pending(self, name: str, email: str = None, phone: str = None) -> Guest:
        """Pre-register a guest who has not answered yet (admin path)."""
        if not isinstance(name, str) or not name.strip():
            raise ValidationError('Please enter guest name')
        name = name.strip()
        if self.find_by_name(name):
            raise ValidationError(f'A guest named {name} already exists')
        email, phone = _clean(email), _clean(phone)

        guest = Guest(
            name=name,
            email=email,
            phone=phone,
            is_attending=None,
            has_responded=False,
            credential=issue_credential(name, prefix=self._prefix()),
        )
        db.session.add(guest)
        self._commit('create')
        current_app.logger.info(f"Pre-registered guest {guest.id}")
        return guest

    def list_guests(self) -> list:
        """All guests, newest first."""
        try:
            return Guest.query.order_by(Guest.created_at.desc(), Guest.id.desc()).all()
        except SQLAlchemyError as e:
            db.session.rollback()
            raise StoreError('Could not list guests') from e

    def stats(self) -> dict:
        """Headline numbers for the admin dashboard."""
        try:
            return {
                'total': Guest.query.count(),
                'responded': Guest.query.filter_by(has_responded=True).count(),
                'attending': Guest.query.filter_by(is_attending=True).count(),
                'checked_in': Attendance.query.count(),
            }
        except SQLAlchemyError as e:
            db.session.rollback()
            raise StoreError('Could not count guests') from e


# Global instance
guest_registry = GuestRegistry()
