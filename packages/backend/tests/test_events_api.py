"""Event API tests — creation, lookup, lifecycle, switching over HTTP.

Learn: Mux runs in demo mode in tests, so creating an event yields a
stubbed stream id / playback id and no network calls happen.
"""

from unittest.mock import AsyncMock

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import func, select

from conftest import event_payload
from livecut.db.models import SwitchLog
from livecut.integrations.mux import MuxService, StreamingProviderError, get_mux_service
from livecut.services.event_service import generate_event_code


# ═══════════════════════════════════════════════════════════
# Create / read
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_create_event(organizer_client):
    r = await organizer_client.post("/api/v1/events", json=event_payload("Cup Final 2026"))
    assert r.status_code == 201
    ev = r.json()
    assert ev["status"] == "idle"
    assert ev["active_camera_id"] is None
    assert ev["organizer_id"] == organizer_client.user["id"]
    assert ev["event_code"].startswith("CUPFINAL-")
    assert ev["playback_id"].startswith("pb_demo_")
    assert ev["playback_url"] == f"https://stream.mux.com/{ev['playback_id']}.m3u8"


@pytest.mark.asyncio
async def test_create_event_requires_login(client):
    r = await client.post("/api/v1/events", json=event_payload())
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_create_event_requires_organizer_role(viewer_client):
    r = await viewer_client.post("/api/v1/events", json=event_payload())
    assert r.status_code == 403


@pytest.mark.asyncio
async def test_create_event_validates_duration(organizer_client):
    r = await organizer_client.post("/api/v1/events", json=event_payload(duration=0))
    assert r.status_code == 422


@pytest.mark.asyncio
async def test_list_my_events(organizer_client, viewer_client):
    await organizer_client.post("/api/v1/events", json=event_payload("Semi 1"))
    await organizer_client.post("/api/v1/events", json=event_payload("Semi 2"))

    mine = (await organizer_client.get("/api/v1/events")).json()
    assert {e["name"] for e in mine} == {"Semi 1", "Semi 2"}

    theirs = (await viewer_client.get("/api/v1/events")).json()
    assert theirs == []


@pytest.mark.asyncio
async def test_get_event_by_id_and_code(client, live_event):
    ev, cam_1, cam_2 = live_event

    by_id = await client.get(f"/api/v1/events/{ev['id']}")
    assert by_id.status_code == 200
    assert [c["id"] for c in by_id.json()["cameras"]] == [cam_1["id"], cam_2["id"]]

    by_code = await client.get(f"/api/v1/events/code/{ev['event_code']}")
    assert by_code.status_code == 200
    assert by_code.json()["id"] == ev["id"]
    # Stream keys never leak through event reads
    assert "stream_key" not in by_code.json()["cameras"][0]


@pytest.mark.asyncio
async def test_get_unknown_event(client):
    assert (await client.get("/api/v1/events/nope")).status_code == 404
    assert (await client.get("/api/v1/events/code/NOPE-123")).status_code == 404


@pytest.mark.asyncio
async def test_delete_event_owner_only(organizer_client, app, login_as):
    ev = (await organizer_client.post("/api/v1/events", json=event_payload())).json()

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as other:
        await login_as(other, "organizer")
        r = await other.delete(f"/api/v1/events/{ev['id']}")
        assert r.status_code == 403

    r = await organizer_client.delete(f"/api/v1/events/{ev['id']}")
    assert r.status_code == 200
    assert (await organizer_client.get(f"/api/v1/events/{ev['id']}")).status_code == 404


def test_event_code_format():
    code = generate_event_code("Cup Final 2026")
    prefix, suffix = code.split("-", 1)
    assert prefix == "CUPFINAL"
    assert suffix.isalnum() and suffix.upper() == suffix
    assert generate_event_code("Cup Final 2026") != code


# ═══════════════════════════════════════════════════════════
# Lifecycle
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_start_then_stop(organizer_client, live_event):
    ev, _, _ = live_event

    r = await organizer_client.post(f"/api/v1/events/{ev['id']}/start")
    assert r.status_code == 200
    assert r.json()["status"] == "live"

    r = await organizer_client.post(f"/api/v1/events/{ev['id']}/stop")
    assert r.status_code == 200
    assert r.json()["status"] == "ended"


@pytest.mark.asyncio
async def test_ended_event_cannot_restart(organizer_client, live_event):
    ev, _, _ = live_event
    await organizer_client.post(f"/api/v1/events/{ev['id']}/stop")

    assert (await organizer_client.post(f"/api/v1/events/{ev['id']}/start")).status_code == 409
    assert (await organizer_client.post(f"/api/v1/events/{ev['id']}/stop")).status_code == 409


@pytest.mark.asyncio
async def test_start_twice_conflicts(organizer_client, live_event):
    ev, _, _ = live_event
    await organizer_client.post(f"/api/v1/events/{ev['id']}/start")
    r = await organizer_client.post(f"/api/v1/events/{ev['id']}/start")
    assert r.status_code == 409


@pytest.mark.asyncio
async def test_lifecycle_requires_director(client, live_event):
    ev, _, _ = live_event
    assert (await client.post(f"/api/v1/events/{ev['id']}/start")).status_code == 401


# ═══════════════════════════════════════════════════════════
# Switching over HTTP
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_switch_sets_active_camera(organizer_client, live_event, db_session):
    ev, cam_1, _ = live_event

    r = await organizer_client.patch(
        f"/api/v1/events/{ev['id']}/switch", json={"camera_id": cam_1["id"]}
    )
    assert r.status_code == 200
    assert r.json() == {"event_id": ev["id"], "active_camera_id": cam_1["id"]}

    got = (await organizer_client.get(f"/api/v1/events/{ev['id']}")).json()
    assert got["active_camera_id"] == cam_1["id"]

    count = (
        await db_session.execute(
            select(func.count()).select_from(SwitchLog).where(SwitchLog.event_id == ev["id"])
        )
    ).scalar_one()
    assert count == 1


@pytest.mark.asyncio
async def test_switch_to_other_events_camera_is_rejected(organizer_client, live_event):
    ev, cam_1, _ = live_event
    other = (await organizer_client.post("/api/v1/events", json=event_payload("Other"))).json()
    foreign = (
        await organizer_client.post(f"/api/v1/events/{other['id']}/cameras", json={"label": "X"})
    ).json()

    await organizer_client.patch(f"/api/v1/events/{ev['id']}/switch", json={"camera_id": cam_1["id"]})
    r = await organizer_client.patch(
        f"/api/v1/events/{ev['id']}/switch", json={"camera_id": foreign["id"]}
    )
    assert r.status_code == 400

    got = (await organizer_client.get(f"/api/v1/events/{ev['id']}")).json()
    assert got["active_camera_id"] == cam_1["id"]


@pytest.mark.asyncio
async def test_switch_unknown_event(organizer_client, live_event):
    _, cam_1, _ = live_event
    r = await organizer_client.patch("/api/v1/events/nope/switch", json={"camera_id": cam_1["id"]})
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_switch_requires_director(client, live_event):
    ev, cam_1, _ = live_event
    r = await client.patch(f"/api/v1/events/{ev['id']}/switch", json={"camera_id": cam_1["id"]})
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_other_organizer_cannot_run_event(app, login_as, live_event, organizer_client):
    ev, cam_1, _ = live_event
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as other:
        await login_as(other, "organizer")
        r = await other.patch(
            f"/api/v1/events/{ev['id']}/switch", json={"camera_id": cam_1["id"]}
        )
        assert r.status_code == 403
        assert (await other.post(f"/api/v1/events/{ev['id']}/start")).status_code == 403
        assert (await other.post(f"/api/v1/events/{ev['id']}/stop")).status_code == 403

    got = (await organizer_client.get(f"/api/v1/events/{ev['id']}")).json()
    assert got["status"] == "idle"
    assert got["active_camera_id"] is None


@pytest.mark.asyncio
async def test_director_can_run_any_event(app, login_as, live_event):
    ev, cam_1, _ = live_event
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as director:
        await login_as(director, "director")
        r = await director.patch(
            f"/api/v1/events/{ev['id']}/switch", json={"camera_id": cam_1["id"]}
        )
        assert r.status_code == 200
        r = await director.post(f"/api/v1/events/{ev['id']}/start")
        assert r.status_code == 200
        assert r.json()["status"] == "live"


@pytest.mark.asyncio
async def test_switch_log_newest_first(organizer_client, live_event):
    ev, cam_1, cam_2 = live_event
    for cam in (cam_1, cam_2, cam_1):
        await organizer_client.patch(
            f"/api/v1/events/{ev['id']}/switch", json={"camera_id": cam["id"]}
        )

    log = (await organizer_client.get(f"/api/v1/events/{ev['id']}/switch-log")).json()
    assert [e["camera_id"] for e in log] == [cam_1["id"], cam_2["id"], cam_1["id"]]
    assert log[0]["id"] > log[1]["id"] > log[2]["id"]

    limited = (
        await organizer_client.get(f"/api/v1/events/{ev['id']}/switch-log", params={"limit": 1})
    ).json()
    assert len(limited) == 1


@pytest.mark.asyncio
async def test_switch_log_unknown_event(client):
    assert (await client.get("/api/v1/events/nope/switch-log")).status_code == 404


# ═══════════════════════════════════════════════════════════
# Streaming provider failures
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_create_event_when_mux_is_down(app, organizer_client):
    mux = MuxService(demo_mode=True)
    mux.create_live_stream = AsyncMock(
        side_effect=StreamingProviderError("Failed to create live stream")
    )
    app.dependency_overrides[get_mux_service] = lambda: mux

    r = await organizer_client.post("/api/v1/events", json=event_payload())
    assert r.status_code == 502
    assert (await organizer_client.get("/api/v1/events")).json() == []
