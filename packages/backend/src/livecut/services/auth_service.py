"""Auth service — accounts, login sessions, email verification, password reset.

Learn: Two kinds of one-time tokens live on the user row:

- email_verification_token: issued at registration, no expiry
- password_reset_token + password_reset_expires_at: issued on request

Consuming either is ONE conditional UPDATE:

    UPDATE users SET ..., token = NULL
    WHERE token = :token [AND password_reset_expires_at > now()]

If two requests race with the same token, the database lets exactly one
of them match the WHERE clause; the other sees rowcount 0 and fails.
There is no read-then-write window.

Sessions: login inserts a UserSession row and returns a signed cookie
naming it. Logout deletes the row.
"""

import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

import structlog
from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from livecut.auth.password import hash_password, verify_password
from livecut.auth.tokens import create_session_token, session_expiry
from livecut.config import settings
from livecut.db.models import ROLE_ORGANIZER, User, UserSession

logger = structlog.get_logger()


# ─── Errors ─────────────────────────────────────────────


class AuthError(Exception):
    """Base class for authentication failures."""


class InvalidCredentialsError(AuthError):
    """Wrong email or password."""


class EmailAlreadyRegisteredError(AuthError):
    """Registration with an email that already has an account."""


class InvalidTokenError(AuthError):
    """Verification / reset token unknown, used, or expired."""


def _new_token() -> str:
    return secrets.token_hex(32)


def _normalize_email(email: str) -> str:
    return email.strip().lower()


# ─── Service ────────────────────────────────────────────


class AuthService:
    """Business logic for user accounts and sessions."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ─── Accounts ───────────────────────────────────────

    async def register(
        self,
        *,
        email: str,
        password: str,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        display_name: Optional[str] = None,
        role: str = ROLE_ORGANIZER,
    ) -> User:
        email = _normalize_email(email)
        existing = await self.db.execute(select(User.id).where(User.email == email))
        if existing.first() is not None:
            raise EmailAlreadyRegisteredError("Email already registered")

        user = User(
            email=email,
            password_hash=hash_password(password),
            first_name=first_name,
            last_name=last_name,
            display_name=display_name or first_name or email.split("@")[0],
            role=role,
            email_verification_token=_new_token(),
        )
        self.db.add(user)
        await self.db.commit()

        logger.info("auth.registered", user_id=user.id, role=role)
        return user

    async def get_user(self, user_id: str) -> Optional[User]:
        return await self.db.get(User, user_id)

    async def update_profile(
        self,
        user: User,
        *,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        display_name: Optional[str] = None,
    ) -> User:
        if first_name is not None:
            user.first_name = first_name
        if last_name is not None:
            user.last_name = last_name
        if display_name is not None:
            user.display_name = display_name
        await self.db.commit()
        return user

    async def change_password(
        self, user: User, current_password: str, new_password: str
    ) -> None:
        if not verify_password(current_password, user.password_hash):
            raise InvalidCredentialsError("Current password is incorrect")
        user.password_hash = hash_password(new_password)
        await self.db.commit()
        logger.info("auth.password_changed", user_id=user.id)

    # ─── Sessions ───────────────────────────────────────

    async def login(self, email: str, password: str) -> tuple[User, str, datetime]:
        """Check credentials and open a session.

        Returns (user, cookie value, expiry).
        """
        result = await self.db.execute(
            select(User)
            .where(User.email == _normalize_email(email))
            .execution_options(populate_existing=True)
        )
        user = result.scalars().first()
        if user is None or not verify_password(password, user.password_hash):
            raise InvalidCredentialsError("Invalid email or password")

        expires_at = session_expiry()
        session = UserSession(user_id=user.id, expires_at=expires_at)
        self.db.add(session)
        user.last_login_at = datetime.now(timezone.utc)
        await self.db.commit()

        logger.info("auth.logged_in", user_id=user.id, session_id=session.id)
        return user, create_session_token(user.id, session.id, expires_at), expires_at

    async def resolve_session(self, session_id: str) -> Optional[User]:
        """The user behind a live session, or None if it was revoked or expired."""
        result = await self.db.execute(
            select(User)
            .join(UserSession, UserSession.user_id == User.id)
            .where(
                UserSession.id == session_id,
                UserSession.expires_at > datetime.now(timezone.utc),
            )
        )
        return result.scalars().first()

    async def logout(self, session_id: str) -> None:
        await self.db.execute(delete(UserSession).where(UserSession.id == session_id))
        await self.db.commit()
        logger.info("auth.logged_out", session_id=session_id)

    # ─── Email verification ─────────────────────────────

    async def verify_email(self, token: str) -> None:
        result = await self.db.execute(
            update(User)
            .where(User.email_verification_token == token)
            .values(email_verified=True, email_verification_token=None)
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()
        if result.rowcount != 1:
            raise InvalidTokenError("Invalid or already used verification token")
        logger.info("auth.email_verified")

    # ─── Password reset ─────────────────────────────────

    async def initiate_password_reset(self, email: str) -> Optional[str]:
        """Issue a reset token. Returns None for unknown emails.

        Callers must answer the same way either way, so the endpoint
        never reveals which emails have accounts.
        """
        token = _new_token()
        expires_at = datetime.now(timezone.utc) + timedelta(
            hours=settings.password_reset_ttl_hours
        )
        result = await self.db.execute(
            update(User)
            .where(User.email == _normalize_email(email))
            .values(password_reset_token=token, password_reset_expires_at=expires_at)
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()
        if result.rowcount != 1:
            return None
        logger.info("auth.password_reset_requested")
        return token

    async def reset_password(self, token: str, new_password: str) -> None:
        result = await self.db.execute(
            update(User)
            .where(
                User.password_reset_token == token,
                User.password_reset_expires_at > datetime.now(timezone.utc),
            )
            .values(
                password_hash=hash_password(new_password),
                password_reset_token=None,
                password_reset_expires_at=None,
            )
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()
        if result.rowcount != 1:
            raise InvalidTokenError("Invalid or expired reset token")
        logger.info("auth.password_reset")
