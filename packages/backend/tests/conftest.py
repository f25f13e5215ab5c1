"""Test fixtures — a fresh in-memory database and a fresh app per test.

Learn: Testing pattern for async SQLAlchemy + FastAPI without a server:

1. Each test gets its own SQLite in-memory engine (aiosqlite, StaticPool
   so every session sees the same single connection) with the schema
   created from the models. Nothing leaks between tests.
2. Each test gets its own create_app() instance, so the fan-out registry
   and switch coordinator on app.state start empty.
3. get_db is overridden to hand out the test session. Auth is NOT
   mocked: logged-in clients go through the real register → login →
   session cookie flow.

The env vars below must be set before anything imports livecut.config.
"""

import os

os.environ.setdefault("LIVECUT_DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("LIVECUT_MUX_DEMO_MODE", "true")
os.environ.setdefault("LIVECUT_BCRYPT_ROUNDS", "4")
os.environ.setdefault("LIVECUT_YOUTUBE_STREAM_KEY", "")
os.environ.setdefault("LIVECUT_TWITCH_STREAM_KEY", "")

import uuid
from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event as sa_event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from livecut.config import settings
from livecut.db.engine import get_db
from livecut.db.models import Base
from livecut.main import create_app

PASSWORD = "correct-horse-battery"


@pytest_asyncio.fixture()
async def db_session():
    """Per-test session on a brand-new in-memory database."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @sa_event.listens_for(engine.sync_engine, "connect")
    def _enable_foreign_keys(dbapi_connection, _record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        yield session

    await engine.dispose()


@pytest_asyncio.fixture()
async def app(db_session):
    """A fresh app whose get_db hands out the test session."""
    application = create_app()

    async def override_get_db():
        yield db_session

    application.dependency_overrides[get_db] = override_get_db
    yield application
    application.dependency_overrides.clear()


@pytest.fixture()
def registry(app):
    return app.state.registry


@pytest_asyncio.fixture()
async def client(app):
    """Anonymous HTTP client (a viewer or a camera operator without an account)."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


async def login_client(ac: AsyncClient, role: str = "organizer", email: str = None) -> dict:
    """Register + login on `ac`; the session cookie stays on the client.

    Returns the logged-in user's JSON.
    """
    email = email or f"{role}-{uuid.uuid4().hex[:8]}@example.com"
    r = await ac.post(
        "/api/v1/auth/register",
        json={"email": email, "password": PASSWORD, "first_name": role.title(), "role": role},
    )
    assert r.status_code == 201, r.text

    r = await ac.post("/api/v1/auth/login", json={"email": email, "password": PASSWORD})
    assert r.status_code == 200, r.text

    set_cookie = r.headers["set-cookie"]
    token = set_cookie.split(";", 1)[0].split("=", 1)[1]
    ac.cookies.clear()
    ac.cookies.set(settings.session_cookie_name, token)
    return r.json()


@pytest.fixture()
def login_as():
    """The login_client helper, for tests that need extra users."""
    return login_client


@pytest_asyncio.fixture()
async def organizer_client(app):
    """HTTP client logged in as an organizer."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        ac.user = await login_client(ac, "organizer")
        yield ac


@pytest_asyncio.fixture()
async def viewer_client(app):
    """HTTP client logged in as a plain viewer (no organizer powers)."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        ac.user = await login_client(ac, "viewer")
        yield ac


def event_payload(name: str = "Cup Final 2026", **overrides) -> dict:
    body = {
        "name": name,
        "sport_type": "soccer",
        "start_date_time": (datetime.now(timezone.utc) + timedelta(days=1)).isoformat(),
        "duration": 2,
    }
    body.update(overrides)
    return body


@pytest_asyncio.fixture()
async def live_event(organizer_client):
    """An event with two cameras joined: returns (event, cam_1, cam_2)."""
    r = await organizer_client.post("/api/v1/events", json=event_payload())
    assert r.status_code == 201, r.text
    ev = r.json()

    cams = []
    for label in ("Wide", "Goal"):
        r = await organizer_client.post(
            f"/api/v1/events/{ev['id']}/cameras", json={"label": label}
        )
        assert r.status_code == 201, r.text
        cams.append(r.json())
    return ev, cams[0], cams[1]
