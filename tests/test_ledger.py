"""Unit tests for the attendance ledger."""
from unittest.mock import patch

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from guestlist import db
from guestlist.errors import StoreError, ValidationError
from guestlist.models import Attendance
from guestlist.services.ledger import LedgerResult, attendance_ledger
from guestlist.services.registry import guest_registry


def test_first_record_commits(app, attending_guest):
    assert attendance_ledger.record_if_absent(attending_guest.id, scanned_by='door-1') is LedgerResult.COMMITTED

    record = Attendance.query.filter_by(guest_id=attending_guest.id).one()
    assert record.scanned_by == 'door-1'
    assert record.scanned_at is not None


def test_second_record_is_already_present(app, attending_guest):
    attendance_ledger.record_if_absent(attending_guest.id)

    assert attendance_ledger.record_if_absent(attending_guest.id) is LedgerResult.ALREADY_PRESENT
    assert Attendance.query.filter_by(guest_id=attending_guest.id).count() == 1


def test_session_usable_after_duplicate(app, attending_guest):
    attendance_ledger.record_if_absent(attending_guest.id)
    attendance_ledger.record_if_absent(attending_guest.id)

    other = guest_registry.upsert_by_name('Sam Lee', attending=True)
    assert attendance_ledger.record_if_absent(other.id) is LedgerResult.COMMITTED
    assert Attendance.query.count() == 2


def test_store_failure_raises_store_error(app, attending_guest):
    error = OperationalError('INSERT', {}, Exception('disk I/O error'))
    with patch.object(db.session, 'commit', side_effect=error):
        with pytest.raises(StoreError):
            attendance_ledger.record_if_absent(attending_guest.id)

    assert Attendance.query.count() == 0


def test_list_all_joins_guests_latest_first(app, attending_guest):
    other = guest_registry.upsert_by_name('Sam Lee', attending=True)
    attendance_ledger.record_if_absent(attending_guest.id)
    attendance_ledger.record_if_absent(other.id)

    rows = attendance_ledger.list_all()

    assert [guest.name for _, guest in rows] == ['Sam Lee', 'Jane Doe']
    assert all(record.guest_id == guest.id for record, guest in rows)


def test_unknown_guest_is_rejected(app):
    with pytest.raises(ValidationError):
        attendance_ledger.record_if_absent(99999)

    assert Attendance.query.count() == 0


def test_sqlite_enforces_guest_foreign_key(app):
    db.session.add(Attendance(guest_id=99999))
    with pytest.raises(IntegrityError):
        db.session.commit()
    db.session.rollback()


def test_foreign_key_violation_is_not_already_present(app):
    # Guest passes the lookup but is gone by the time the row is inserted
    with patch.object(guest_registry, 'get', return_value=object()):
        with pytest.raises(StoreError):
            attendance_ledger.record_if_absent(99999)

    assert Attendance.query.count() == 0
