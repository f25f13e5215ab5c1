"""Session token creation and verification.

Learn: The session cookie holds a JWT signed with LIVECUT_SESSION_SECRET:

    {"sub": <user id>, "sid": <UserSession id>, "type": "session", "exp": ..., "iat": ...}

The signature proves we issued it; the "sid" still has to exist in
user_sessions for the cookie to count (see auth/dependencies.py).
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from livecut.config import settings


class TokenError(Exception):
    """Raised when token creation/verification fails."""


def session_expiry(days: Optional[int] = None) -> datetime:
    return datetime.now(timezone.utc) + timedelta(
        days=days or settings.session_max_age_days
    )


def create_session_token(user_id: str, session_id: str, expires_at: datetime) -> str:
    """Create the signed cookie value for a stored session."""
    payload = {
        "sub": user_id,
        "sid": session_id,
        "type": "session",
        "exp": expires_at,
        "iat": datetime.now(timezone.utc),
    }
    return jwt.encode(
        payload, settings.session_secret, algorithm=settings.session_algorithm
    )


def verify_session_token(token: str) -> dict:
    """Verify and decode a session token.

    Returns the payload dict on success.
    Raises TokenError on failure.
    """
    try:
        payload = jwt.decode(
            token, settings.session_secret, algorithms=[settings.session_algorithm]
        )
    except jwt.ExpiredSignatureError:
        raise TokenError("Session has expired")
    except jwt.InvalidTokenError as e:
        raise TokenError(f"Invalid session: {e}")

    if payload.get("type") != "session" or "sid" not in payload:
        raise TokenError("Not a session token")
    return payload
