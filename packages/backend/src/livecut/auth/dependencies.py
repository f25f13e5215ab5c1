"""FastAPI auth dependencies.

Learn: These are used as Depends() in route handlers to extract
and validate the current user from the session cookie.

- get_current_user_optional: None when there is no cookie (open routes
  that still want to know who is calling, e.g. joining as a camera)
- get_current_user: 401 when there is no valid session
- require_role(...): 403 unless the user has one of the given roles
"""

from typing import Optional

from fastapi import Cookie, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from livecut.auth.tokens import TokenError, verify_session_token
from livecut.config import settings
from livecut.db.engine import get_db
from livecut.db.models import User
from livecut.services.auth_service import AuthService


class CurrentUser:
    """The authenticated user making the request, plus the session behind it."""

    def __init__(self, user: User, session_id: str):
        self.user = user
        self.session_id = session_id

    @property
    def user_id(self) -> str:
        return self.user.id

    @property
    def role(self) -> str:
        return self.user.role


async def get_current_user_optional(
    session_token: Optional[str] = Cookie(None, alias=settings.session_cookie_name),
    db: AsyncSession = Depends(get_db),
) -> Optional[CurrentUser]:
    """Soft auth: None if there is no cookie, 401 if there is a bad one."""
    if not session_token:
        return None

    try:
        payload = verify_session_token(session_token)
    except TokenError as e:
        raise HTTPException(status_code=401, detail=str(e))

    user = await AuthService(db).resolve_session(payload["sid"])
    if user is None:
        raise HTTPException(status_code=401, detail="Session is no longer valid")
    return CurrentUser(user, payload["sid"])


async def get_current_user(
    current: Optional[CurrentUser] = Depends(get_current_user_optional),
) -> CurrentUser:
    """Hard auth: 401 unless a valid session cookie is present."""
    if current is None:
        raise HTTPException(status_code=401, detail="Authentication required")
    return current


def require_role(*roles: str):
    """Dependency factory: only users with one of `roles` get through."""

    async def _check(current: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if current.role not in roles:
            raise HTTPException(
                status_code=403,
                detail=f"Requires role: {', '.join(roles)}",
            )
        return current

    return _check
