"""Camera API routes — operators join an event and report liveness.

Learn: Joining is open: a phone operator may not have an account. The
join response is the only place the stream key is ever returned.

Liveness and removal go through the switch coordinator, which orders
them with switches of the same event and sends CAMERA_UPDATE. A camera
can be removed by its own operator, the event's organizer or a director.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from livecut.api.deps import get_coordinator
from livecut.auth.dependencies import CurrentUser, get_current_user, get_current_user_optional
from livecut.db.engine import get_db
from livecut.integrations.mux import MuxService, get_mux_service
from livecut.schemas.camera import (
    CameraCreate,
    CameraCredentials,
    CameraRead,
    CameraStatusUpdate,
)
from livecut.services.camera_service import CameraLimitReachedError, CameraService
from livecut.services.errors import (
    CameraNotFoundError,
    EventNotFoundError,
    PermissionDeniedError,
    StoreFailureError,
)
from livecut.services.event_service import EventService
from livecut.services.switch_coordinator import SwitchCoordinator

router = APIRouter()


def _svc(db: AsyncSession = Depends(get_db)) -> CameraService:
    return CameraService(db)


@router.post("/events/{event_id}/cameras", response_model=CameraCredentials, status_code=201)
async def join_as_camera(
    event_id: str,
    body: CameraCreate,
    current: Optional[CurrentUser] = Depends(get_current_user_optional),
    svc: CameraService = Depends(_svc),
):
    """Register a camera for the event and hand back its RTMP credentials."""
    operator_name = body.operator_name
    if operator_name is None and current is not None:
        operator_name = current.user.display_name
    try:
        return await svc.register_camera(
            event_id,
            label=body.label,
            quality=body.quality,
            operator_name=operator_name,
            operator_id=current.user_id if current else None,
        )
    except EventNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except CameraLimitReachedError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.get("/events/{event_id}/cameras", response_model=list[CameraRead])
async def list_cameras(event_id: str, svc: CameraService = Depends(_svc)):
    return await svc.list_cameras(event_id)


@router.get("/cameras/{camera_id}", response_model=CameraRead)
async def get_camera(camera_id: str, svc: CameraService = Depends(_svc)):
    camera = await svc.get_camera(camera_id)
    if not camera:
        raise HTTPException(status_code=404, detail="Camera not found")
    return camera


@router.patch("/cameras/{camera_id}/status", response_model=CameraRead)
async def set_camera_status(
    camera_id: str,
    body: CameraStatusUpdate,
    coordinator: SwitchCoordinator = Depends(get_coordinator),
    db: AsyncSession = Depends(get_db),
):
    """Mark a camera live/offline. Viewers get CAMERA_UPDATE."""
    try:
        return await coordinator.set_camera_liveness(db, camera_id, body.is_live)
    except CameraNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except StoreFailureError as e:
        raise HTTPException(status_code=500, detail=str(e))


def _events(
    db: AsyncSession = Depends(get_db),
    provider: MuxService = Depends(get_mux_service),
) -> EventService:
    return EventService(db, provider)


@router.delete("/cameras/{camera_id}")
async def remove_camera(
    camera_id: str,
    current: CurrentUser = Depends(get_current_user),
    coordinator: SwitchCoordinator = Depends(get_coordinator),
    svc: CameraService = Depends(_svc),
    events: EventService = Depends(_events),
    db: AsyncSession = Depends(get_db),
):
    """Remove a camera: its own operator, the event's organizer or a director."""
    camera = await svc.get_camera(camera_id)
    if not camera:
        raise HTTPException(status_code=404, detail="Camera not found")
    try:
        if camera.operator_id != current.user_id:
            await events.require_control(camera.event_id, current.user)
        await coordinator.remove_camera(db, camera_id)
    except (CameraNotFoundError, EventNotFoundError) as e:
        raise HTTPException(status_code=404, detail=str(e))
    except PermissionDeniedError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except StoreFailureError as e:
        raise HTTPException(status_code=500, detail=str(e))
    return {"deleted": True}
