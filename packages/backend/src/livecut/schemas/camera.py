"""Pydantic schemas for cameras.

Learn: CameraCredentials is only returned to the operator who joined;
everyone else sees CameraRead, which has no stream key.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class CameraCreate(BaseModel):
    label: str = Field(..., min_length=1, max_length=100)
    quality: str = Field(default="720p", pattern=r"^(480p|720p|1080p)$")
    operator_name: Optional[str] = Field(None, max_length=100)


class CameraStatusUpdate(BaseModel):
    is_live: bool


class CameraRead(BaseModel):
    id: str
    event_id: str
    label: str
    quality: str
    operator_id: Optional[str]
    operator_name: Optional[str]
    is_live: bool
    thumbnail_url: Optional[str]
    joined_at: datetime

    model_config = {"from_attributes": True}


class CameraCredentials(CameraRead):
    """Returned once, on join: where and how to push video."""
    stream_key: str
    rtmp_url: str
