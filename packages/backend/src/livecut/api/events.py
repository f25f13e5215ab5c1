"""Event API routes — create, look up, lifecycle, and the director's switch.

Learn: These routes are the HTTP interface to the event lifecycle and
the switch coordinator. Services do all validation; routes translate
HTTP to service calls and service exceptions to status codes:

    NotFound → 404, InvalidCamera → 400, InvalidTransition → 409,
    StoreFailure → 500, StreamingProviderError → 502

Viewers find an event by its join code (GET /events/code/{code}); that
route and GET /events/{id} are open. Everything that changes an event
needs a session. Starting, stopping and switching are for the event's
organizer or a director; deleting is for the organizer alone.
"""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from livecut.api.deps import get_coordinator
from livecut.auth.dependencies import CurrentUser, get_current_user, require_role
from livecut.db.engine import get_db
from livecut.db.models import ROLE_DIRECTOR, ROLE_ORGANIZER, Event
from livecut.integrations.mux import MuxService, StreamingProviderError, get_mux_service
from livecut.schemas.event import (
    EventCreate,
    EventDetail,
    EventRead,
    SwitchLogRead,
    SwitchRequest,
    SwitchResult,
)
from livecut.services.errors import (
    EventNotFoundError,
    InvalidCameraError,
    InvalidTransitionError,
    PermissionDeniedError,
    StoreFailureError,
)
from livecut.services.event_service import EventService, StreamNotConfiguredError
from livecut.services.switch_coordinator import SwitchCoordinator

router = APIRouter()

_can_direct = require_role(ROLE_ORGANIZER, ROLE_DIRECTOR)


def _svc(
    db: AsyncSession = Depends(get_db),
    provider: MuxService = Depends(get_mux_service),
) -> EventService:
    return EventService(db, provider)


def _present(event: Event, provider: MuxService, schema=EventRead):
    out = schema.model_validate(event)
    if event.playback_id:
        out.playback_url = provider.playback_url(event.playback_id)
    return out


# ═══════════════════════════════════════════════════════════
# Events
# ═══════════════════════════════════════════════════════════


@router.post("/events", response_model=EventRead, status_code=201)
async def create_event(
    body: EventCreate,
    current: CurrentUser = Depends(require_role(ROLE_ORGANIZER)),
    svc: EventService = Depends(_svc),
):
    """Create an event and its Mux live stream."""
    try:
        event = await svc.create_event(
            name=body.name,
            description=body.description,
            sport_type=body.sport_type,
            start_date_time=body.start_date_time,
            duration=body.duration,
            organizer_id=current.user_id,
            is_public=body.is_public,
            max_cameras=body.max_cameras,
        )
    except StreamingProviderError as e:
        raise HTTPException(status_code=502, detail=str(e))
    except StoreFailureError as e:
        raise HTTPException(status_code=500, detail=str(e))
    return _present(event, svc.provider)


@router.get("/events", response_model=list[EventRead])
async def list_my_events(
    current: CurrentUser = Depends(get_current_user),
    svc: EventService = Depends(_svc),
):
    """Events organized by the current user, latest start first."""
    events = await svc.list_events(current.user_id)
    return [_present(e, svc.provider) for e in events]


@router.get("/events/code/{event_code}", response_model=EventDetail)
async def get_event_by_code(event_code: str, svc: EventService = Depends(_svc)):
    """Look up an event by its join code (what viewers and operators type in)."""
    event = await svc.get_event_by_code(event_code)
    if not event:
        raise HTTPException(status_code=404, detail="Event not found")
    return _present(event, svc.provider, EventDetail)


@router.get("/events/{event_id}", response_model=EventDetail)
async def get_event(event_id: str, svc: EventService = Depends(_svc)):
    event = await svc.get_event(event_id, with_cameras=True)
    if not event:
        raise HTTPException(status_code=404, detail="Event not found")
    return _present(event, svc.provider, EventDetail)


@router.delete("/events/{event_id}")
async def delete_event(
    event_id: str,
    current: CurrentUser = Depends(get_current_user),
    svc: EventService = Depends(_svc),
):
    """Delete an event (organizer only). Cameras, logs and chat go with it."""
    try:
        await svc.delete_event(event_id, current.user_id)
    except EventNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except PermissionDeniedError as e:
        raise HTTPException(status_code=403, detail=str(e))
    return {"deleted": True}


# ─── Lifecycle ──────────────────────────────────────────


@router.post("/events/{event_id}/start", response_model=EventRead)
async def start_event(
    event_id: str,
    current: CurrentUser = Depends(_can_direct),
    svc: EventService = Depends(_svc),
):
    try:
        await svc.require_control(event_id, current.user)
        event = await svc.start_event(event_id)
    except EventNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except PermissionDeniedError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except (InvalidTransitionError, StreamNotConfiguredError) as e:
        raise HTTPException(status_code=409, detail=str(e))
    except StreamingProviderError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return _present(event, svc.provider)


@router.post("/events/{event_id}/stop", response_model=EventRead)
async def stop_event(
    event_id: str,
    current: CurrentUser = Depends(_can_direct),
    svc: EventService = Depends(_svc),
):
    try:
        await svc.require_control(event_id, current.user)
        event = await svc.stop_event(event_id)
    except EventNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except PermissionDeniedError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except (InvalidTransitionError, StreamNotConfiguredError) as e:
        raise HTTPException(status_code=409, detail=str(e))
    except StreamingProviderError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return _present(event, svc.provider)


# ═══════════════════════════════════════════════════════════
# Switching
# ═══════════════════════════════════════════════════════════


@router.patch("/events/{event_id}/switch", response_model=SwitchResult)
async def switch_camera(
    event_id: str,
    body: SwitchRequest,
    current: CurrentUser = Depends(_can_direct),
    coordinator: SwitchCoordinator = Depends(get_coordinator),
    svc: EventService = Depends(_svc),
    db: AsyncSession = Depends(get_db),
):
    """Put a camera on air. Every viewer of the event gets PROGRAM_UPDATE."""
    try:
        await svc.require_control(event_id, current.user)
        active = await coordinator.switch_camera(db, event_id, body.camera_id)
    except EventNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except PermissionDeniedError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except InvalidCameraError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except StoreFailureError as e:
        raise HTTPException(status_code=500, detail=str(e))
    return SwitchResult(event_id=event_id, active_camera_id=active)


@router.get("/events/{event_id}/switch-log", response_model=list[SwitchLogRead])
async def get_switch_log(
    event_id: str,
    limit: int = Query(100, ge=1, le=1000),
    coordinator: SwitchCoordinator = Depends(get_coordinator),
    db: AsyncSession = Depends(get_db),
):
    """Accepted switches for the event, newest first."""
    try:
        return await coordinator.switch_history(db, event_id, limit=limit)
    except EventNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
