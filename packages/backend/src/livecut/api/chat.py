"""Chat API routes.

Learn: Posting is open (viewers may be anonymous) and pushes
CHAT_MESSAGE to everyone on the event's WebSocket channel. Only a
logged-in organizer or director can moderate.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from livecut.api.deps import get_registry
from livecut.auth.dependencies import CurrentUser, get_current_user_optional, require_role
from livecut.db.engine import get_db
from livecut.db.models import ROLE_DIRECTOR, ROLE_ORGANIZER
from livecut.realtime.registry import FanoutRegistry
from livecut.schemas.chat import ChatMessageCreate, ChatMessageRead
from livecut.services.chat_service import ChatService
from livecut.services.errors import ChatMessageNotFoundError, EventNotFoundError

router = APIRouter()


def _svc(
    db: AsyncSession = Depends(get_db),
    registry: FanoutRegistry = Depends(get_registry),
) -> ChatService:
    return ChatService(db, registry)


@router.post("/events/{event_id}/chat", response_model=ChatMessageRead, status_code=201)
async def post_chat_message(
    event_id: str,
    body: ChatMessageCreate,
    current: Optional[CurrentUser] = Depends(get_current_user_optional),
    svc: ChatService = Depends(_svc),
):
    try:
        return await svc.post_message(
            event_id,
            display_name=body.display_name,
            body=body.body,
            user_id=current.user_id if current else None,
        )
    except EventNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.get("/events/{event_id}/chat", response_model=list[ChatMessageRead])
async def list_chat_messages(
    event_id: str,
    limit: int = Query(50, ge=1, le=200),
    include_moderated: bool = Query(False),
    svc: ChatService = Depends(_svc),
):
    """Newest first. Moderated messages are hidden unless include_moderated=true."""
    return await svc.list_messages(
        event_id, limit=limit, include_moderated=include_moderated
    )


@router.post("/chat/{message_id}/moderate", response_model=ChatMessageRead)
async def moderate_chat_message(
    message_id: str,
    current: CurrentUser = Depends(require_role(ROLE_ORGANIZER, ROLE_DIRECTOR)),
    svc: ChatService = Depends(_svc),
):
    try:
        return await svc.moderate(message_id, current.user_id)
    except ChatMessageNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
