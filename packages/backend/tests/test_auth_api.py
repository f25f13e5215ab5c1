"""Auth tests — accounts, session cookie, one-time tokens.

Learn: Tests cover:
1. Registration + duplicate prevention + validation
2. Login → session cookie → /me
3. Logout revokes the session server-side
4. Profile update and password change
5. Email verification and password reset tokens are single-use
"""

import uuid
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import select, update

from livecut.config import settings
from livecut.db.models import User

PASSWORD = "correct-horse-battery"


def _email(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:8]}@example.com"


async def _register(client, email: str, password: str = PASSWORD, **extra):
    return await client.post(
        "/api/v1/auth/register",
        json={"email": email, "password": password, **extra},
    )


# ═══════════════════════════════════════════════════════════
# Registration
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_register_user(client):
    email = _email("reg")
    r = await _register(client, email, first_name="Ada", last_name="Lovelace")
    assert r.status_code == 201
    user = r.json()
    assert user["email"] == email
    assert user["first_name"] == "Ada"
    assert user["display_name"] == "Ada"
    assert user["role"] == "organizer"
    assert user["email_verified"] is False
    assert "password_hash" not in user


@pytest.mark.asyncio
async def test_register_normalizes_email(client):
    r = await _register(client, "Mixed.Case@Example.com")
    assert r.json()["email"] == "mixed.case@example.com"


@pytest.mark.asyncio
async def test_register_duplicate_email(client):
    email = _email("dup")
    assert (await _register(client, email)).status_code == 201
    assert (await _register(client, email)).status_code == 409


@pytest.mark.asyncio
async def test_register_short_password(client):
    r = await _register(client, _email("short"), password="abc")
    assert r.status_code == 422


@pytest.mark.asyncio
async def test_register_unknown_role(client):
    r = await _register(client, _email("role"), role="superuser")
    assert r.status_code == 422


# ═══════════════════════════════════════════════════════════
# Login / session
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_login_sets_httponly_cookie(client):
    email = _email("login")
    await _register(client, email)

    r = await client.post("/api/v1/auth/login", json={"email": email, "password": PASSWORD})
    assert r.status_code == 200
    assert r.json()["email"] == email
    set_cookie = r.headers["set-cookie"]
    assert set_cookie.startswith(f"{settings.session_cookie_name}=")
    assert "httponly" in set_cookie.lower()


@pytest.mark.asyncio
async def test_login_wrong_password(client):
    email = _email("wrong")
    await _register(client, email)
    r = await client.post("/api/v1/auth/login", json={"email": email, "password": "nope-nope-nope"})
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_login_nonexistent_user(client):
    r = await client.post(
        "/api/v1/auth/login", json={"email": "nobody@example.com", "password": PASSWORD}
    )
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_me_requires_session(client):
    r = await client.get("/api/v1/auth/me")
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_me_with_session(organizer_client):
    r = await organizer_client.get("/api/v1/auth/me")
    assert r.status_code == 200
    assert r.json()["id"] == organizer_client.user["id"]
    assert r.json()["last_login_at"] is not None


@pytest.mark.asyncio
async def test_me_with_forged_cookie(client):
    client.cookies.set(settings.session_cookie_name, "not-a-jwt")
    r = await client.get("/api/v1/auth/me")
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_logout_revokes_session(organizer_client):
    """The cookie is still correctly signed, but its session row is gone."""
    token = organizer_client.cookies.get(settings.session_cookie_name)

    r = await organizer_client.post("/api/v1/auth/logout")
    assert r.status_code == 200

    organizer_client.cookies.clear()
    organizer_client.cookies.set(settings.session_cookie_name, token)
    r = await organizer_client.get("/api/v1/auth/me")
    assert r.status_code == 401


# ═══════════════════════════════════════════════════════════
# Profile / password
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_update_profile(organizer_client):
    r = await organizer_client.patch(
        "/api/v1/auth/profile", json={"display_name": "Director Dee"}
    )
    assert r.status_code == 200
    assert r.json()["display_name"] == "Director Dee"
    # Untouched fields stay
    assert r.json()["first_name"] == "Organizer"


@pytest.mark.asyncio
async def test_change_password(organizer_client, client):
    r = await organizer_client.post(
        "/api/v1/auth/change-password",
        json={"current_password": PASSWORD, "new_password": "a-brand-new-password"},
    )
    assert r.status_code == 200

    email = organizer_client.user["email"]
    old = await client.post("/api/v1/auth/login", json={"email": email, "password": PASSWORD})
    assert old.status_code == 401
    new = await client.post(
        "/api/v1/auth/login", json={"email": email, "password": "a-brand-new-password"}
    )
    assert new.status_code == 200


@pytest.mark.asyncio
async def test_change_password_wrong_current(organizer_client):
    r = await organizer_client.post(
        "/api/v1/auth/change-password",
        json={"current_password": "not-my-password", "new_password": "whatever-123"},
    )
    assert r.status_code == 400


# ═══════════════════════════════════════════════════════════
# One-time tokens
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_verify_email_token_is_single_use(client, db_session):
    email = _email("verify")
    await _register(client, email)
    token = (
        await db_session.execute(select(User.email_verification_token).where(User.email == email))
    ).scalar_one()
    assert token

    r = await client.post("/api/v1/auth/verify-email", json={"token": token})
    assert r.status_code == 200

    again = await client.post("/api/v1/auth/verify-email", json={"token": token})
    assert again.status_code == 400

    user = (await db_session.execute(select(User).where(User.email == email))).scalar_one()
    await db_session.refresh(user)
    assert user.email_verified is True
    assert user.email_verification_token is None


@pytest.mark.asyncio
async def test_verify_email_unknown_token(client):
    r = await client.post("/api/v1/auth/verify-email", json={"token": "deadbeef"})
    assert r.status_code == 400


@pytest.mark.asyncio
async def test_forgot_password_does_not_reveal_accounts(client):
    r1 = await client.post("/api/v1/auth/forgot-password", json={"email": "ghost@example.com"})
    email = _email("known")
    await _register(client, email)
    r2 = await client.post("/api/v1/auth/forgot-password", json={"email": email})
    assert r1.status_code == r2.status_code == 202
    assert r1.json() == r2.json()


async def _reset_token(db_session, email: str) -> str:
    return (
        await db_session.execute(select(User.password_reset_token).where(User.email == email))
    ).scalar_one()


@pytest.mark.asyncio
async def test_reset_password_flow(client, db_session):
    email = _email("reset")
    await _register(client, email)
    await client.post("/api/v1/auth/forgot-password", json={"email": email})
    token = await _reset_token(db_session, email)
    assert token

    r = await client.post(
        "/api/v1/auth/reset-password", json={"token": token, "new_password": "reset-password-1"}
    )
    assert r.status_code == 200

    # Consumed: the same token cannot be used again
    again = await client.post(
        "/api/v1/auth/reset-password", json={"token": token, "new_password": "reset-password-2"}
    )
    assert again.status_code == 400

    login = await client.post(
        "/api/v1/auth/login", json={"email": email, "password": "reset-password-1"}
    )
    assert login.status_code == 200


@pytest.mark.asyncio
async def test_reset_password_expired_token(client, db_session):
    email = _email("expired")
    await _register(client, email)
    await client.post("/api/v1/auth/forgot-password", json={"email": email})
    token = await _reset_token(db_session, email)

    await db_session.execute(
        update(User)
        .where(User.email == email)
        .values(password_reset_expires_at=datetime.now(timezone.utc) - timedelta(minutes=1))
    )
    await db_session.commit()

    r = await client.post(
        "/api/v1/auth/reset-password", json={"token": token, "new_password": "reset-password-1"}
    )
    assert r.status_code == 400
