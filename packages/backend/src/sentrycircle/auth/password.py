"""Password hashing utilities.

Learn: Uses bcrypt for secure password hashing. bcrypt automatically
handles salting and is resistant to rainbow table attacks.

Accounts created by the first SentryCircle deployment stored an unsalted
SHA-256 hex digest. Those still verify, and login re-hashes them with
bcrypt (see needs_upgrade).
"""

import hashlib
import re
import secrets

import bcrypt

_LEGACY_HASH = re.compile(r"^[0-9a-f]{64}$")


def hash_password(password: str) -> str:
    """Hash a password with bcrypt.

    Passwords are truncated to 72 bytes (bcrypt's limit).
    """
    pw_bytes = password.encode("utf-8")[:72]
    salt = bcrypt.gensalt(rounds=12)
    return bcrypt.hashpw(pw_bytes, salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a password against a bcrypt or legacy SHA-256 hash."""
    if _is_legacy_hash(password_hash):
        return _verify_legacy(password, password_hash)
    try:
        pw_bytes = password.encode("utf-8")[:72]
        return bcrypt.checkpw(pw_bytes, password_hash.encode("utf-8"))
    except (ValueError, TypeError):
        return False


def needs_upgrade(password_hash: str) -> bool:
    """Check if a password hash should be upgraded to bcrypt."""
    return _is_legacy_hash(password_hash)


def _is_legacy_hash(password_hash: str) -> bool:
    return bool(_LEGACY_HASH.match(password_hash))


def _verify_legacy(password: str, password_hash: str) -> bool:
    expected = hashlib.sha256(password.encode("utf-8")).hexdigest()
    return secrets.compare_digest(password_hash, expected)
