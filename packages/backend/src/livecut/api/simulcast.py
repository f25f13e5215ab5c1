"""Simulcast API routes — restream an event to YouTube / Twitch."""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from livecut.auth.dependencies import require_role
from livecut.db.engine import get_db
from livecut.db.models import ROLE_ORGANIZER
from livecut.integrations.mux import MuxService, StreamingProviderError, get_mux_service
from livecut.schemas.simulcast import SimulcastEnableResponse, SimulcastTargetRead
from livecut.services.errors import EventNotFoundError, SimulcastTargetNotFoundError
from livecut.services.event_service import StreamNotConfiguredError
from livecut.services.simulcast_service import SimulcastService, SimulcastUnavailableError

router = APIRouter()

_organizer = require_role(ROLE_ORGANIZER)


def _svc(
    db: AsyncSession = Depends(get_db),
    provider: MuxService = Depends(get_mux_service),
) -> SimulcastService:
    return SimulcastService(db, provider)


@router.post(
    "/events/{event_id}/simulcast",
    response_model=SimulcastEnableResponse,
    dependencies=[Depends(_organizer)],
)
async def enable_simulcast(event_id: str, svc: SimulcastService = Depends(_svc)):
    """Attach every configured platform. Only works while the stream is idle."""
    try:
        results = await svc.enable(event_id)
    except EventNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except (StreamNotConfiguredError, SimulcastUnavailableError) as e:
        raise HTTPException(status_code=409, detail=str(e))
    except StreamingProviderError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return {"event_id": event_id, "results": results}


@router.get("/events/{event_id}/simulcast", response_model=list[SimulcastTargetRead])
async def list_simulcast_targets(event_id: str, svc: SimulcastService = Depends(_svc)):
    return await svc.list_targets(event_id)


@router.delete("/simulcast/{target_id}", dependencies=[Depends(_organizer)])
async def remove_simulcast_target(target_id: str, svc: SimulcastService = Depends(_svc)):
    try:
        await svc.remove(target_id)
    except SimulcastTargetNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except StreamingProviderError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return {"deleted": True}
