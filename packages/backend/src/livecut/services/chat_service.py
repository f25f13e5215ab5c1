"""Chat service — viewer messages shown next to the program feed.

Learn: A posted message is stored first, then pushed to the event's
channel as CHAT_MESSAGE. Like every other broadcast, delivery is
best-effort; clients that missed it can page through GET /chat.

Moderation never deletes. It flags the row and records who did it,
and listings hide flagged rows unless asked to include them.
"""

from datetime import datetime, timezone
from typing import Optional

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from livecut.db.models import ChatMessage, Event
from livecut.realtime.messages import chat_message
from livecut.realtime.registry import FanoutRegistry
from livecut.services.errors import ChatMessageNotFoundError, EventNotFoundError

logger = structlog.get_logger()


class ChatService:
    """Business logic for event chat."""

    def __init__(self, db: AsyncSession, registry: FanoutRegistry):
        self.db = db
        self.registry = registry

    async def post_message(
        self,
        event_id: str,
        display_name: str,
        body: str,
        user_id: Optional[str] = None,
    ) -> ChatMessage:
        event = await self.db.get(Event, event_id)
        if event is None:
            raise EventNotFoundError(f"Event {event_id} not found")

        message = ChatMessage(
            event_id=event_id,
            user_id=user_id,
            display_name=display_name,
            body=body,
            created_at=datetime.now(timezone.utc),
        )
        self.db.add(message)
        await self.db.commit()

        await self.registry.broadcast(
            event_id,
            chat_message(message.id, event_id, display_name, body),
        )
        logger.info("chat.posted", event_id=event_id, message_id=message.id)
        return message

    async def list_messages(
        self,
        event_id: str,
        limit: int = 50,
        include_moderated: bool = False,
    ) -> list[ChatMessage]:
        """Newest first."""
        query = select(ChatMessage).where(ChatMessage.event_id == event_id)
        if not include_moderated:
            query = query.where(ChatMessage.is_moderated.is_(False))
        query = query.order_by(ChatMessage.created_at.desc()).limit(limit)

        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def moderate(self, message_id: str, moderator_id: str) -> ChatMessage:
        message = await self.db.get(ChatMessage, message_id)
        if message is None:
            raise ChatMessageNotFoundError(f"Chat message {message_id} not found")

        message.is_moderated = True
        message.moderated_by = moderator_id
        await self.db.commit()

        logger.info(
            "chat.moderated",
            event_id=message.event_id,
            message_id=message_id,
            moderator_id=moderator_id,
        )
        return message
