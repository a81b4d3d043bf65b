"""
Credential issuing for guest QR codes.

A credential looks like ``RSVP-1f3a9c2e-1767225600000-<random>``: a prefix,
a digest of the guest name, a millisecond timestamp and 128 random bits.
It doubles as the admission key at the door, so the random part must stay
wide enough that guessing is impractical.
"""

import hashlib
import secrets
import threading
import time

from guestlist.errors import ValidationError

DEFAULT_PREFIX = 'RSVP'
RANDOM_BYTES = 16

_clock_lock = threading.Lock()
_last_timestamp = 0


def _next_timestamp() -> int:
    """Milliseconds since epoch, strictly increasing within this process."""
    global _last_timestamp
    with _clock_lock:
        now = time.time_ns() // 1_000_000
        if now <= _last_timestamp:
            now = _last_timestamp + 1
        _last_timestamp = now
        return now


def name_digest(name: str) -> str:
    return hashlib.sha256(name.strip().encode('utf-8')).hexdigest()[:8]


def issue_credential(name: str, prefix: str = DEFAULT_PREFIX) -> str:
    """Issue a new unique credential for a guest name."""
    if not name or not name.strip():
        raise ValidationError('Name is required')

    random_part = secrets.token_urlsafe(RANDOM_BYTES)
    return f"{prefix}-{name_digest(name)}-{_next_timestamp()}-{random_part}"
