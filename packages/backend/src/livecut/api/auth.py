"""Auth API — accounts, session cookie, email verification, password reset.

Learn: Routes for user authentication:
- POST /auth/register → create an account (returns the user)
- POST /auth/login → email/password → session cookie
- POST /auth/logout → revoke the session, clear the cookie
- GET /auth/me → current user
- PATCH /auth/profile → update names
- POST /auth/change-password → needs the current password
- POST /auth/verify-email → consume the verification token
- POST /auth/forgot-password → issue a reset token (same answer for any email)
- POST /auth/reset-password → consume the reset token
"""

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.ext.asyncio import AsyncSession

from livecut.auth.dependencies import CurrentUser, get_current_user
from livecut.config import settings
from livecut.db.engine import get_db
from livecut.schemas.auth import (
    ForgotPasswordRequest,
    LoginRequest,
    PasswordChange,
    ProfileUpdate,
    RegisterRequest,
    ResetPasswordRequest,
    UserRead,
    VerifyEmailRequest,
)
from livecut.services.auth_service import (
    AuthService,
    EmailAlreadyRegisteredError,
    InvalidCredentialsError,
    InvalidTokenError,
)

router = APIRouter(prefix="/auth")


def _svc(db: AsyncSession = Depends(get_db)) -> AuthService:
    return AuthService(db)


# ─── Register / login / logout ──────────────────────────


@router.post("/register", response_model=UserRead, status_code=201)
async def register(body: RegisterRequest, svc: AuthService = Depends(_svc)):
    """Create a new user account."""
    try:
        return await svc.register(
            email=body.email,
            password=body.password,
            first_name=body.first_name,
            last_name=body.last_name,
            display_name=body.display_name,
            role=body.role,
        )
    except EmailAlreadyRegisteredError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.post("/login", response_model=UserRead)
async def login(body: LoginRequest, response: Response, svc: AuthService = Depends(_svc)):
    """Login with email and password. The session arrives as an HttpOnly cookie."""
    try:
        user, token, _ = await svc.login(body.email, body.password)
    except InvalidCredentialsError as e:
        raise HTTPException(status_code=401, detail=str(e))

    response.set_cookie(
        key=settings.session_cookie_name,
        value=token,
        max_age=settings.session_max_age_days * 24 * 3600,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
    )
    return user


@router.post("/logout")
async def logout(
    response: Response,
    current: CurrentUser = Depends(get_current_user),
    svc: AuthService = Depends(_svc),
):
    await svc.logout(current.session_id)
    response.delete_cookie(settings.session_cookie_name)
    return {"logged_out": True}


# ─── Current user ───────────────────────────────────────


@router.get("/me", response_model=UserRead)
async def get_me(current: CurrentUser = Depends(get_current_user)):
    """Get the current authenticated user's info."""
    return current.user


@router.patch("/profile", response_model=UserRead)
async def update_profile(
    body: ProfileUpdate,
    current: CurrentUser = Depends(get_current_user),
    svc: AuthService = Depends(_svc),
):
    return await svc.update_profile(
        current.user,
        first_name=body.first_name,
        last_name=body.last_name,
        display_name=body.display_name,
    )


@router.post("/change-password")
async def change_password(
    body: PasswordChange,
    current: CurrentUser = Depends(get_current_user),
    svc: AuthService = Depends(_svc),
):
    try:
        await svc.change_password(current.user, body.current_password, body.new_password)
    except InvalidCredentialsError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"changed": True}


# ─── One-time tokens ────────────────────────────────────


@router.post("/verify-email")
async def verify_email(body: VerifyEmailRequest, svc: AuthService = Depends(_svc)):
    try:
        await svc.verify_email(body.token)
    except InvalidTokenError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"verified": True}


@router.post("/forgot-password", status_code=202)
async def forgot_password(body: ForgotPasswordRequest, svc: AuthService = Depends(_svc)):
    """Always 202 — the response never reveals whether the email has an account.

    Delivering the token by email is not done here.
    """
    await svc.initiate_password_reset(body.email)
    return {"detail": "If the account exists, a reset link has been sent"}


@router.post("/reset-password")
async def reset_password(body: ResetPasswordRequest, svc: AuthService = Depends(_svc)):
    try:
        await svc.reset_password(body.token, body.new_password)
    except InvalidTokenError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"reset": True}
