"""
Live Ride API Endpoints.

Guests request an on-demand ride; the captain holding the offer accepts
or rejects it.
"""

from fastapi import APIRouter, Depends, status, Path
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.db.session import get_db
from backend.app.core.dependencies import get_current_user
from backend.app.core.guards import require_captain
from backend.app.domain.live_rides.orchestrator import (
    create_live_ride_request,
    accept_offer,
    reject_offer,
    get_live_ride_request,
)
from backend.app.models.captain import Captain
from backend.app.schemas.live_ride import (
    LiveRideCreate,
    LiveRideEnvelope,
    TripEnvelope,
    OkResponse,
)
from backend.app.services.captain_directory import get_captain_for_user

router = APIRouter(prefix="/live-rides", tags=["Live Rides"])


@router.post("", response_model=LiveRideEnvelope, status_code=status.HTTP_201_CREATED)
async def create_live_ride(
    body: LiveRideCreate,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Request a live ride.

    The ride is offered to the first eligible captain straight away.
    Returns 409 when no captain can take it.
    """
    live_ride = await create_live_ride_request(
        db,
        requester_id=current_user["user_id"],
        route=body.route,
        passenger_count=body.passenger_count,
        hours=body.hours,
    )
    return {"live_ride": live_ride}


@router.get("/{live_ride_id}", response_model=LiveRideEnvelope)
async def get_live_ride(
    live_ride_id: int = Path(..., description="Live ride ID"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Read a live ride (requester, or a captain who was offered it)."""
    captain = await get_captain_for_user(db, current_user["user_id"])
    live_ride = await get_live_ride_request(
        db,
        live_ride_id,
        user_id=current_user["user_id"],
        captain_id=captain.id if captain else None,
    )
    return {"live_ride": live_ride}


@router.post("/{live_ride_id}/accept", response_model=TripEnvelope)
async def accept_live_ride(
    live_ride_id: int = Path(..., description="Live ride ID"),
    captain: Captain = Depends(require_captain),
    db: AsyncSession = Depends(get_db)
):
    """
    Accept the offer held by the calling captain.

    Creates an ACTIVE trip starting now.
    """
    captain_id, user_id = captain.id, captain.user_id
    trip = await accept_offer(db, live_ride_id, captain_id, actor_id=user_id)
    return {"trip": trip}


@router.post("/{live_ride_id}/reject", response_model=OkResponse)
async def reject_live_ride(
    live_ride_id: int = Path(..., description="Live ride ID"),
    captain: Captain = Depends(require_captain),
    db: AsyncSession = Depends(get_db)
):
    """Decline the offer; the ride moves on to the next captain."""
    captain_id, user_id = captain.id, captain.user_id
    await reject_offer(db, live_ride_id, captain_id, actor_id=user_id)
    return {"ok": True}
