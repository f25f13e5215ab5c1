"""WebSocket endpoint tests — join, ping, receive broadcasts, clean up.

Learn: These use Starlette's synchronous TestClient, which runs the app
on its own event loop in a background thread. `client.portal.call`
runs a coroutine on that same loop, which is how the tests trigger a
registry broadcast while a socket is connected.

The production lifespan (Redis, viewer count loop, engine disposal) is
swapped for a no-op; nothing here touches the database.
"""

import asyncio
import json
import time
from contextlib import asynccontextmanager

import pytest
from fastapi.testclient import TestClient

from livecut.main import create_app
from livecut.realtime.messages import CAMERA_UPDATE, PROGRAM_UPDATE
from livecut.realtime.registry import FanoutRegistry
from livecut.realtime.websocket import _dispatch


@asynccontextmanager
async def _no_lifespan(app):
    yield


@pytest.fixture()
def ws_app():
    application = create_app()
    application.router.lifespan_context = _no_lifespan
    return application


@pytest.fixture()
def ws_client(ws_app):
    with TestClient(ws_app) as c:
        yield c


def _join(ws, event_id: str, user_id: str = None) -> None:
    msg = {"type": "join_event", "eventId": event_id}
    if user_id:
        msg["userId"] = user_id
    ws.send_text(json.dumps(msg))
    # Frames are handled in order, so a pong means the join is done
    ws.send_text(json.dumps({"type": "ping"}))
    assert ws.receive_json() == {"type": "pong"}


def _wait_for(predicate, timeout: float = 2.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


def test_ping_pong(ws_client):
    with ws_client.websocket_connect("/ws") as ws:
        ws.send_text(json.dumps({"type": "ping"}))
        assert ws.receive_json() == {"type": "pong"}


def test_joined_client_receives_camera_update(ws_app, ws_client):
    registry = ws_app.state.registry
    with ws_client.websocket_connect("/ws") as ws:
        _join(ws, "E1", user_id="u-1")
        assert registry.subscriber_count("E1") == 1

        ws_client.portal.call(registry.broadcast_camera_update, "E1", "cam-1", True)
        msg = ws.receive_json()
        assert msg["type"] == CAMERA_UPDATE
        assert msg["cameraId"] == "cam-1"
        assert msg["isLive"] is True


def test_client_only_hears_its_own_event(ws_app, ws_client):
    registry = ws_app.state.registry
    with ws_client.websocket_connect("/ws") as a, ws_client.websocket_connect("/ws") as b:
        _join(a, "E1")
        _join(b, "E2")

        ws_client.portal.call(registry.broadcast_program_update, "E2", "cam-9", "https://x/p.m3u8")

        assert b.receive_json()["activeCameraId"] == "cam-9"
        # a got nothing: its next frame is the pong we ask for now
        a.send_text(json.dumps({"type": "ping"}))
        assert a.receive_json() == {"type": "pong"}


def test_rejoin_moves_to_new_event(ws_app, ws_client):
    registry = ws_app.state.registry
    with ws_client.websocket_connect("/ws") as ws:
        _join(ws, "E1")
        _join(ws, "E2")
        assert registry.subscriber_count("E1") == 0
        assert registry.subscriber_count("E2") == 1

        ws_client.portal.call(registry.broadcast_program_update, "E2", "cam-2", "")
        assert ws.receive_json()["type"] == PROGRAM_UPDATE


def test_leave_event(ws_app, ws_client):
    registry = ws_app.state.registry
    with ws_client.websocket_connect("/ws") as ws:
        _join(ws, "E1")
        ws.send_text(json.dumps({"type": "leave_event", "eventId": "E1"}))
        ws.send_text(json.dumps({"type": "ping"}))
        assert ws.receive_json() == {"type": "pong"}
        assert registry.subscriber_count("E1") == 0
        assert registry.connection_count == 1


def test_unknown_and_malformed_frames_are_ignored(ws_client):
    with ws_client.websocket_connect("/ws") as ws:
        ws.send_text(json.dumps({"type": "dance"}))
        ws.send_text("this is not json")
        ws.send_text(json.dumps({"type": "join_event"}))  # missing eventId
        ws.send_text(json.dumps({"type": "ping"}))
        assert ws.receive_json() == {"type": "pong"}


def test_disconnect_removes_client_and_channel(ws_app, ws_client):
    registry = ws_app.state.registry
    with ws_client.websocket_connect("/ws") as ws:
        _join(ws, "E1")
        assert registry.connection_count == 1

    assert _wait_for(lambda: registry.connection_count == 0)
    assert registry.subscriber_count("E1") == 0
    assert "E1" not in registry.live_channels()


# ─── Frame handling without a socket ──────────────────────


class ClosedConnection:
    async def send_text(self, data: str) -> None:
        raise RuntimeError("Cannot call send once a close message has been sent")

    async def close(self, code: int = 1000) -> None:
        pass


class StalledConnection(ClosedConnection):
    async def send_text(self, data: str) -> None:
        await asyncio.sleep(10)


@pytest.mark.asyncio
@pytest.mark.parametrize("connection_cls", [ClosedConnection, StalledConnection])
async def test_unsendable_pong_ends_the_loop(connection_cls):
    registry = FanoutRegistry(send_timeout=0.05)
    handle = await registry.connect(connection_cls())

    assert await _dispatch(registry, handle, json.dumps({"type": "ping"})) is False


@pytest.mark.asyncio
async def test_control_frames_keep_the_loop_going():
    registry = FanoutRegistry(send_timeout=0.05)
    handle = await registry.connect(ClosedConnection())

    assert await _dispatch(registry, handle, json.dumps({"type": "join_event", "eventId": "E1"}))
    assert await _dispatch(registry, handle, "not json")
    assert registry.subscriber_count("E1") == 1
