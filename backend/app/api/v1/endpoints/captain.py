"""
Captain Live Ride API Endpoints.

Captains switch live rides on or off and see the rides waiting on them.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.db.session import get_db
from backend.app.core.guards import require_captain
from backend.app.domain.live_rides.sweeper import run_opportunistic_sweep
from backend.app.models.captain import Captain
from backend.app.schemas.captain import (
    LiveRidesToggle,
    LiveRidesToggleResponse,
    OfferedLiveRidesResponse,
)
from backend.app.services.captain_directory import set_live_rides, list_offered_to_captain

router = APIRouter(prefix="/captain/me", tags=["Captain - Live Rides"])


@router.get("/live-rides", response_model=OfferedLiveRidesResponse)
async def list_my_offers(
    captain: Captain = Depends(require_captain),
    db: AsyncSession = Depends(get_db)
):
    """Live rides currently offered to the calling captain."""
    captain_id = captain.id
    await run_opportunistic_sweep(db)
    live_rides = await list_offered_to_captain(db, captain_id)
    return {"live_rides": live_rides}


@router.post("/live-rides", response_model=LiveRidesToggleResponse)
async def toggle_live_rides(
    body: LiveRidesToggle,
    captain: Captain = Depends(require_captain),
    db: AsyncSession = Depends(get_db)
):
    """Switch live rides on or off for all of the captain's boats."""
    updated = await set_live_rides(db, captain.id, body.enabled, actor_id=captain.user_id)
    await db.commit()
    return {"updated": updated}
