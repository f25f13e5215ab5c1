"""Pydantic schemas for event chat."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class ChatMessageCreate(BaseModel):
    display_name: str = Field(..., min_length=1, max_length=100)
    body: str = Field(..., min_length=1, max_length=500)


class ChatMessageRead(BaseModel):
    id: str
    event_id: str
    user_id: Optional[str]
    display_name: str
    body: str
    is_moderated: bool
    created_at: datetime

    model_config = {"from_attributes": True}
