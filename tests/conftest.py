"""Shared fixtures: an app on a throwaway SQLite file, clients, helpers."""
import pytest

from guestlist import create_app, db
from guestlist.services.registry import guest_registry

ADMIN_PASSWORD = 'letmein'


@pytest.fixture
def app(tmp_path, monkeypatch):
    """App with a fresh database and its context pushed."""
    monkeypatch.delenv('RAILWAY_ENVIRONMENT', raising=False)
    app = create_app({
        'TESTING': True,
        'SECRET_KEY': 'test-secret',
        'SQLALCHEMY_DATABASE_URI': f"sqlite:///{tmp_path / 'guests.db'}",
        'ADMIN_PASSWORD': ADMIN_PASSWORD,
        'HOST_EMAIL': None,
        'EMAIL_DRY_RUN': False,
        'RSVP_DEADLINE': None,
        'CREDENTIAL_PREFIX': 'TEST',
    })
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def admin_client(client):
    """Test client already logged in as admin."""
    response = client.post('/admin/login', json={'password': ADMIN_PASSWORD})
    assert response.status_code == 200
    return client


@pytest.fixture
def attending_guest(app):
    return guest_registry.upsert_by_name('Jane Doe', attending=True, message='See you there')


@pytest.fixture
def declined_guest(app):
    return guest_registry.upsert_by_name('John Smith', attending=False)
