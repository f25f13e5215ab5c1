"""WebSocket endpoint — viewers and operators subscribe to event channels.

Learn: Each client opens one connection to /ws, then sends control
messages:

    {"type": "join_event", "eventId": "<id>", "userId": "<optional>"}
    {"type": "leave_event", "eventId": "<id>"}
    {"type": "ping"}                      → {"type": "pong"}

The connection handler only reads. Everything it receives for its
event (CAMERA_UPDATE, PROGRAM_UPDATE, ...) is pushed by the registry
when a command handler broadcasts.

Anything that is not one of the messages above is logged and ignored;
a bad frame never closes the connection. Close, transport error or a
pong that cannot be sent removes the client from its channel.
"""

import json

import structlog
from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from livecut.realtime.messages import PONG, JoinEvent, LeaveEvent, Ping, parse_inbound
from livecut.realtime.registry import ClientHandle, FanoutRegistry

logger = structlog.get_logger()
router = APIRouter()


@router.websocket("/ws")
async def event_websocket(websocket: WebSocket):
    """Serve one client connection until it disconnects."""
    registry: FanoutRegistry = websocket.app.state.registry

    await websocket.accept()
    handle = await registry.connect(websocket)

    try:
        while True:
            frame = await websocket.receive()
            if frame["type"] == "websocket.disconnect":
                break
            raw = frame.get("text")
            if raw is None and frame.get("bytes") is not None:
                raw = frame["bytes"].decode("utf-8", errors="replace")
            if raw is not None and not await _dispatch(registry, handle, raw):
                break
    except WebSocketDisconnect:
        pass
    finally:
        await registry.disconnect(handle)


async def _dispatch(registry: FanoutRegistry, handle: ClientHandle, raw: str) -> bool:
    """Handle one inbound frame. False means the connection is unusable."""
    try:
        message = parse_inbound(raw)
    except ValidationError as e:
        logger.info(
            "ws.message_ignored",
            client_id=handle.id,
            errors=e.error_count(),
            preview=raw[:80],
        )
        return True

    if isinstance(message, JoinEvent):
        await registry.join(handle, message.event_id, message.user_id)
    elif isinstance(message, LeaveEvent):
        await registry.leave(handle, message.event_id)
    elif isinstance(message, Ping):
        try:
            await handle.send(json.dumps(PONG))
        except Exception as e:
            logger.info("ws.pong_failed", client_id=handle.id, error=repr(e))
            return False
    return True
