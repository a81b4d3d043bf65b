import os
import sqlite3
from datetime import datetime, timedelta
from flask import Flask
from sqlalchemy import event
from sqlalchemy.engine import Engine
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate, upgrade
from dotenv import load_dotenv

# Load environment variables (override=True ensures .env values take precedence)
load_dotenv(override=True)

# Initialize extensions
db = SQLAlchemy()
migrate = Migrate()


@event.listens_for(Engine, 'connect')
def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    # SQLite ignores REFERENCES unless asked per connection
    if isinstance(dbapi_connection, sqlite3.Connection):
        cursor = dbapi_connection.cursor()
        cursor.execute('PRAGMA foreign_keys=ON')
        cursor.close()


def parse_deadline(value):
    """Turn an ISO-8601 RSVP_DEADLINE into a datetime (None means no deadline)."""
    if not value or isinstance(value, datetime):
        return value or None
    try:
        return datetime.fromisoformat(value)
    except (TypeError, ValueError) as e:
        raise ValueError(f"RSVP_DEADLINE must be an ISO-8601 date or datetime, got {value!r}") from e


def create_app(config=None):
    """Application factory pattern.

    ``config`` is an optional mapping applied on top of the environment
    defaults (tests use it to point at a throwaway database).
    """
    app = Flask(__name__)

    # Configuration
    app.config['SECRET_KEY'] = os.environ.get('SECRET_KEY', 'dev-secret-key-change-me')
    app.config['SQLALCHEMY_DATABASE_URI'] = os.environ.get('DATABASE_URL', 'sqlite:///dev.db')
    app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False

    # Session configuration - admin sessions last one event weekend
    app.config['PERMANENT_SESSION_LIFETIME'] = timedelta(days=3)
    app.config['SESSION_COOKIE_SECURE'] = os.environ.get('RAILWAY_ENVIRONMENT') is not None  # HTTPS only in production
    app.config['SESSION_COOKIE_HTTPONLY'] = True
    app.config['SESSION_COOKIE_SAMESITE'] = 'Lax'

    # Shared admin secret for the guest list and the door scanner
    app.config['ADMIN_PASSWORD'] = os.environ.get('ADMIN_PASSWORD', 'guestlist-admin')

    # Public URL, used in notification emails
    app.config['APP_URL'] = os.environ.get('APP_URL', 'http://localhost:5000')

    # RSVP notifications go to the host; unset disables them
    app.config['HOST_EMAIL'] = os.environ.get('HOST_EMAIL')
    app.config['HOST_NAME'] = os.environ.get('HOST_NAME', 'Host')
    app.config['EMAIL_DRY_RUN'] = os.environ.get('EMAIL_DRY_RUN', '').lower() in ('1', 'true', 'yes')

    # Credentials and check-in
    app.config['CREDENTIAL_PREFIX'] = os.environ.get('CREDENTIAL_PREFIX', 'RSVP')
    app.config['RSVP_DEADLINE'] = os.environ.get('RSVP_DEADLINE')  # ISO-8601, e.g. 2026-04-01T23:59:59
    app.config['SCAN_RESULT_DELAY'] = float(os.environ.get('SCAN_RESULT_DELAY', '2.0'))

    if config:
        app.config.update(config)

    app.config['RSVP_DEADLINE'] = parse_deadline(app.config.get('RSVP_DEADLINE'))

    # Fix for postgres:// vs postgresql:// (some providers use older postgres:// format)
    if app.config['SQLALCHEMY_DATABASE_URI'].startswith('postgres://'):
        app.config['SQLALCHEMY_DATABASE_URI'] = app.config['SQLALCHEMY_DATABASE_URI'].replace(
            'postgres://', 'postgresql://', 1
        )

    # Initialize extensions with app
    db.init_app(app)
    migrate.init_app(app, db)

    # Register blueprints
    from guestlist.routes.main import main_bp
    from guestlist.routes.admin import admin_bp
    app.register_blueprint(main_bp)
    app.register_blueprint(admin_bp)

    # Venue-side commands (flask scan, flask seed-guests)
    from guestlist.cli import register_commands
    register_commands(app)

    # Import models so they're known to Flask-Migrate
    from guestlist import models

    # Auto-run migrations in production (Railway)
    if os.environ.get('RAILWAY_ENVIRONMENT'):
        with app.app_context():
            upgrade()

    return app
