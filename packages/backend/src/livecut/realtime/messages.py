"""WebSocket message types — a closed set in both directions.

Learn: Inbound client messages are a pydantic discriminated union keyed
on "type". Parsing either yields one of the known variants or fails;
there is no lookup by name at runtime. Callers treat a parse failure
as "unknown message, log and move on".

Outbound messages are built by small constructors so every payload of
a kind has the same shape:

    CAMERA_UPDATE        cameraId, isLive, timestamp
    PROGRAM_UPDATE       activeCameraId, playbackUrl, timestamp
    VIEWER_COUNT_UPDATE  count, timestamp
    CHAT_MESSAGE         id, eventId, displayName, body, timestamp
"""

from datetime import datetime, timezone
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

# ─── Outbound kinds ─────────────────────────────────────

CAMERA_UPDATE = "CAMERA_UPDATE"
PROGRAM_UPDATE = "PROGRAM_UPDATE"
VIEWER_COUNT_UPDATE = "VIEWER_COUNT_UPDATE"
CHAT_MESSAGE = "CHAT_MESSAGE"

# ─── Inbound kinds ──────────────────────────────────────


class _Inbound(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class JoinEvent(_Inbound):
    type: Literal["join_event"]
    event_id: str = Field(alias="eventId", min_length=1)
    user_id: Optional[str] = Field(default=None, alias="userId")


class LeaveEvent(_Inbound):
    type: Literal["leave_event"]
    event_id: Optional[str] = Field(default=None, alias="eventId")


class Ping(_Inbound):
    type: Literal["ping"]


InboundMessage = Annotated[
    Union[JoinEvent, LeaveEvent, Ping],
    Field(discriminator="type"),
]

_inbound_adapter: TypeAdapter[InboundMessage] = TypeAdapter(InboundMessage)


def parse_inbound(raw: str) -> InboundMessage:
    """Parse a raw text frame. Raises pydantic.ValidationError on anything unknown."""
    return _inbound_adapter.validate_json(raw)


# ─── Outbound constructors ──────────────────────────────


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def camera_update(camera_id: str, is_live: bool) -> dict[str, Any]:
    return {
        "type": CAMERA_UPDATE,
        "cameraId": camera_id,
        "isLive": is_live,
        "timestamp": _now(),
    }


def program_update(active_camera_id: str, playback_url: str) -> dict[str, Any]:
    return {
        "type": PROGRAM_UPDATE,
        "activeCameraId": active_camera_id,
        "playbackUrl": playback_url,
        "timestamp": _now(),
    }


def viewer_count_update(count: int) -> dict[str, Any]:
    return {
        "type": VIEWER_COUNT_UPDATE,
        "count": count,
        "timestamp": _now(),
    }


def chat_message(
    message_id: str, event_id: str, display_name: str, body: str
) -> dict[str, Any]:
    return {
        "type": CHAT_MESSAGE,
        "id": message_id,
        "eventId": event_id,
        "displayName": display_name,
        "body": body,
        "timestamp": _now(),
    }


PONG: dict[str, Any] = {"type": "pong"}
