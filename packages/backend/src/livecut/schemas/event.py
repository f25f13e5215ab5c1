"""Pydantic schemas for events and the switch log.

Learn: EventCreate is what an organizer POSTs; EventRead is what every
read endpoint returns. playback_url is not a column: routers fill it
in from the event's playback id via the Mux adapter.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from livecut.schemas.camera import CameraRead


class EventCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    sport_type: str = Field(..., min_length=1, max_length=50)
    start_date_time: datetime
    duration: int = Field(..., ge=1, le=72, description="Hours")
    is_public: bool = True
    max_cameras: int = Field(default=9, ge=1, le=16)


class EventRead(BaseModel):
    id: str
    name: str
    description: Optional[str]
    sport_type: str
    start_date_time: datetime
    duration: int
    event_code: str
    organizer_id: Optional[str]
    is_public: bool
    max_cameras: int
    status: str
    active_camera_id: Optional[str]
    playback_id: Optional[str]
    playback_url: Optional[str] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class EventDetail(EventRead):
    """An event with its cameras (join-by-code and director views)."""
    cameras: list[CameraRead] = Field(default_factory=list)


# ─── Switching ───────────────────────────────────────────


class SwitchRequest(BaseModel):
    camera_id: str = Field(..., min_length=1)


class SwitchResult(BaseModel):
    event_id: str
    active_camera_id: str


class SwitchLogRead(BaseModel):
    id: int
    event_id: str
    camera_id: str
    switched_at: datetime

    model_config = {"from_attributes": True}
