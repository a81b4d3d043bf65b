"""
Check-in resolution: credential -> guest -> eligibility -> ledger.

The order matters. Eligibility is checked before the ledger insert so a
declined guest never takes a ledger slot, and the insert comes last so two
stations scanning the same code race on the unique constraint rather than
on a stale read. Every call re-reads the guest; nothing is cached between
scans. If a store error interrupts a resolution, retry the whole ``resolve``.
"""

import enum
from dataclasses import dataclass
from typing import Optional

from guestlist.services.ledger import LedgerResult, attendance_ledger
from guestlist.services.registry import guest_registry


class RejectReason(enum.Enum):
    NOT_FOUND = 'not_found'
    NOT_ATTENDING = 'not_attending'
    ALREADY_CHECKED_IN = 'already_checked_in'


@dataclass(frozen=True)
class CheckInResult:
    """Outcome of one scan."""

    guest_name: Optional[str] = None
    reason: Optional[RejectReason] = None

    @classmethod
    def welcomed(cls, guest_name: str) -> 'CheckInResult':
        return cls(guest_name=guest_name)

    @classmethod
    def rejected(cls, reason: RejectReason, guest_name: str = None) -> 'CheckInResult':
        return cls(guest_name=guest_name, reason=reason)

    @property
    def is_welcomed(self) -> bool:
        return self.reason is None

    @property
    def status(self) -> str:
        return 'welcomed' if self.is_welcomed else self.reason.value

    @property
    def message(self) -> str:
        """Operator-facing text; each outcome reads differently at the door."""
        if self.is_welcomed:
            return f"Welcome, {self.guest_name}!"
        if self.reason is RejectReason.NOT_FOUND:
            return "Guest not found in database"
        if self.reason is RejectReason.NOT_ATTENDING:
            return f"{self.guest_name} is not attending the event"
        return f"{self.guest_name} has already been checked in"

    def to_dict(self):
        return {
            'success': self.is_welcomed,
            'status': self.status,
            'guest_name': self.guest_name,
            'message': self.message,
        }


class CheckInResolver:

    def __init__(self, registry=None, ledger=None):
        self.registry = registry or guest_registry
        self.ledger = ledger or attendance_ledger

    def resolve(self, token: str, scanned_by: str = 'admin') -> CheckInResult:
        guest = self.registry.find_by_credential(token)
        if guest is None:
            return CheckInResult.rejected(RejectReason.NOT_FOUND)

        if guest.is_attending is not True:
            return CheckInResult.rejected(RejectReason.NOT_ATTENDING, guest.name)

        if self.ledger.record_if_absent(guest.id, scanned_by=scanned_by) is LedgerResult.ALREADY_PRESENT:
            return CheckInResult.rejected(RejectReason.ALREADY_CHECKED_IN, guest.name)

        return CheckInResult.welcomed(guest.name)


# Global instance
checkin_resolver = CheckInResolver()
