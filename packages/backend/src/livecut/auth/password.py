"""Password hashing utilities.

Learn: Uses bcrypt for password hashing. bcrypt handles salting itself
and produces hashes starting with "$2b$". The work factor
(LIVECUT_BCRYPT_ROUNDS, default 12) takes ~100ms per hash on modern
hardware, which is the point. Tests turn it down.
"""

from typing import Optional

import bcrypt

from livecut.config import settings

MIN_PASSWORD_LENGTH = 8


def hash_password(password: str, rounds: Optional[int] = None) -> str:
    """Hash a password with bcrypt.

    Passwords are truncated to 72 bytes (bcrypt's limit).
    """
    pw_bytes = password.encode("utf-8")[:72]
    salt = bcrypt.gensalt(rounds=rounds or settings.bcrypt_rounds)
    return bcrypt.hashpw(pw_bytes, salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a password against its bcrypt hash. Malformed hashes never match."""
    try:
        pw_bytes = password.encode("utf-8")[:72]
        hash_bytes = password_hash.encode("utf-8")
        return bcrypt.checkpw(pw_bytes, hash_bytes)
    except (ValueError, TypeError):
        return False
