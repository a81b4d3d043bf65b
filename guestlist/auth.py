"""
Admin access: one shared password, remembered in the Flask session.

Routes only use ``admin_required`` and ``admin_gate``; swapping in real
user accounts means replacing ``AdminGate`` and nothing in check-in.
"""

import hmac
from functools import wraps
from flask import current_app, jsonify, session

SESSION_KEY = 'admin_authenticated'


class AdminGate:
    """Compares a submitted password with ``ADMIN_PASSWORD``."""

    def check(self, password: str) -> bool:
        expected = current_app.config.get('ADMIN_PASSWORD') or ''
        if not expected or not password:
            return False
        return hmac.compare_digest(password.encode('utf-8'), expected.encode('utf-8'))

    def login(self, password: str) -> bool:
        if not self.check(password):
            current_app.logger.warning("Failed admin login attempt")
            return False
        session[SESSION_KEY] = True
        session.permanent = True
        return True

    def logout(self):
        session.pop(SESSION_KEY, None)

    def is_authenticated(self) -> bool:
        return bool(session.get(SESSION_KEY))


admin_gate = AdminGate()


def admin_required(f):
    """Decorator to require admin authentication."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not admin_gate.is_authenticated():
            return jsonify({'success': False, 'error': 'Admin login required'}), 401
        return f(*args, **kwargs)
    return decorated_function
