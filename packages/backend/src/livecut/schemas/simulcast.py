"""Pydantic schemas for simulcast targets.

Stream keys are write-only: they are configured server-side and never
echoed back.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class SimulcastResult(BaseModel):
    platform: str
    status: str  # added, failed
    error: Optional[str] = None


class SimulcastEnableResponse(BaseModel):
    event_id: str
    results: list[SimulcastResult]


class SimulcastTargetRead(BaseModel):
    id: str
    event_id: str
    platform: str
    target_url: str
    mux_target_id: Optional[str]
    status: str
    created_at: datetime

    model_config = {"from_attributes": True}
