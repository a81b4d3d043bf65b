"""Unit tests for the guest registry."""
from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Query

from guestlist import db
from guestlist.errors import StoreError, ValidationError
from guestlist.models import Guest
from guestlist.services.ledger import attendance_ledger
from guestlist.services.registry import guest_registry


class TestUpsertByName:

    def test_new_rsvp_creates_guest_with_credential(self, app):
        guest = guest_registry.upsert_by_name('Jane Doe', attending=True, message='Yay',
                                              email='jane@example.com')

        assert guest.id is not None
        assert guest.has_responded is True
        assert guest.is_attending is True
        assert guest.message == 'Yay'
        assert guest.email == 'jane@example.com'
        assert guest.credential.startswith('TEST-')
        assert Guest.query.count() == 1

    def test_name_is_trimmed(self, app):
        guest = guest_registry.upsert_by_name('  Jane Doe  ', attending=True)
        assert guest.name == 'Jane Doe'

    def test_repeat_rsvp_updates_in_place(self, app):
        first = guest_registry.upsert_by_name('Jane Doe', attending=True, message='Coming!')
        guest_id, credential = first.id, first.credential

        second = guest_registry.upsert_by_name('jane doe', attending=False, message='Sorry')

        assert second.id == guest_id
        assert second.credential == credential
        assert second.is_attending is False
        assert second.message == 'Sorry'
        assert second.name == 'Jane Doe'
        assert Guest.query.count() == 1

    def test_repeat_rsvp_keeps_contact_details_when_blank(self, app):
        guest_registry.upsert_by_name('Jane Doe', attending=True, email='jane@example.com', phone='555-0100')
        guest = guest_registry.upsert_by_name('Jane Doe', attending=True, email='', phone=None)

        assert guest.email == 'jane@example.com'
        assert guest.phone == '555-0100'

    @pytest.mark.parametrize('name', ['', '   ', None])
    def test_empty_name_rejected(self, app, name):
        with pytest.raises(ValidationError):
            guest_registry.upsert_by_name(name, attending=True)
        assert Guest.query.count() == 0

    @pytest.mark.parametrize('name', [123, ['Jane Doe'], {'first': 'Jane'}])
    def test_non_text_name_rejected(self, app, name):
        with pytest.raises(ValidationError):
            guest_registry.upsert_by_name(name, attending=True)
        assert Guest.query.count() == 0

    def test_non_text_field_leaves_existing_guest_alone(self, app, attending_guest):
        with pytest.raises(ValidationError):
            guest_registry.upsert_by_name('Jane Doe', attending=False, message=['hi'])

        db.session.expire_all()
        assert Guest.query.one().is_attending is True

    def test_missing_attendance_choice_rejected(self, app):
        with pytest.raises(ValidationError):
            guest_registry.upsert_by_name('Jane Doe', attending=None)
        assert Guest.query.count() == 0


class TestCreatePending:

    def test_pending_guest_has_credential_but_no_response(self, app):
        guest = guest_registry.create_pending('Maria Santos', email='maria@example.com')

        assert guest.has_responded is False
        assert guest.is_attending is None
        assert guest.credential

    def test_duplicate_name_rejected(self, app):
        guest_registry.create_pending('Maria Santos')
        with pytest.raises(ValidationError):
            guest_registry.create_pending('MARIA SANTOS')
        assert Guest.query.count() == 1

    def test_empty_name_rejected(self, app):
        with pytest.raises(ValidationError):
            guest_registry.create_pending('  ')

    def test_rsvp_after_pre_registration_keeps_credential(self, app):
        pending = guest_registry.create_pending('Maria Santos')
        credential = pending.credential

        guest = guest_registry.upsert_by_name('Maria Santos', attending=True)

        assert guest.id == pending.id
        assert guest.credential == credential
        assert guest.has_responded is True
        assert guest.is_attending is True


class TestLookups:

    def test_find_by_credential(self, app, attending_guest):
        assert guest_registry.find_by_credential(attending_guest.credential).id == attending_guest.id

    @pytest.mark.parametrize('token', ['', '   ', None, 'TEST-deadbeef-0-nope', 12345, ['TEST'], {'credential': 'x'}])
    def test_unknown_credential_is_none(self, app, attending_guest, token):
        assert guest_registry.find_by_credential(token) is None

    def test_list_guests_newest_first(self, app):
        for name in ['Ann', 'Ben', 'Cat']:
            guest_registry.create_pending(name)

        assert [g.name for g in guest_registry.list_guests()] == ['Cat', 'Ben', 'Ann']

    def test_stats(self, app, attending_guest, declined_guest):
        guest_registry.create_pending('Maria Santos')
        attendance_ledger.record_if_absent(attending_guest.id)

        assert guest_registry.stats() == {
            'total': 3,
            'responded': 2,
            'attending': 1,
            'checked_in': 1,
        }


class TestStoreErrors:

    def test_list_guests_failure(self, app):
        with patch.object(Query, 'all', side_effect=OperationalError('SELECT', {}, Exception('gone'))):
            with pytest.raises(StoreError):
                guest_registry.list_guests()

    def test_stats_failure(self, app):
        with patch.object(Query, 'count', side_effect=OperationalError('SELECT', {}, Exception('gone'))):
            with pytest.raises(StoreError):
                guest_registry.stats()
