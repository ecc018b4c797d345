"""
Live-ride request orchestrator.

Entry points used by the API: create a request, and let the captain
holding the offer accept or reject it. Each call sweeps expired offers
first, then runs its own transition in one transaction.
"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.config import settings
from backend.app.core.exceptions import (
    ConflictError,
    ForbiddenError,
    InvalidStateError,
    NoCaptainsAvailableError,
    ResourceNotFoundError,
    ValidationError,
)
from backend.app.domain.live_rides.eligibility import boat_busy_clause
from backend.app.domain.live_rides.offers import (
    create_offer,
    lock_offer,
    lock_request,
    mark_accepted,
    mark_terminal_and_cascade,
)
from backend.app.domain.live_rides.pricing import pricing_snapshot, quote_live_ride
from backend.app.domain.live_rides.selector import ride_window, select_next
from backend.app.domain.live_rides.sweeper import run_opportunistic_sweep
from backend.app.models.captain import Boat
from backend.app.models.live_ride import LiveRideRequest, LiveRideOffer
from backend.app.models.live_ride_enums import (
    Route,
    LiveRideStatus,
    LiveRideOfferStatus,
    OfferCloseReason,
)
from backend.app.models.trip import Trip
from backend.app.models.trip_enums import TripStatus
from backend.app.services.audit import log_event, AuditAction

logger = logging.getLogger(__name__)


def validate_live_ride_input(route, passenger_count, hours) -> Route:
    """Range checks shared by the API and direct callers."""
    try:
        route = Route(route)
    except ValueError:
        raise ValidationError("route is required", details={"allowed": [r.value for r in Route]})
    if not isinstance(passenger_count, int) or passenger_count < 1:
        raise ValidationError("passengerCount must be >= 1")
    if not isinstance(hours, int) or hours < settings.live_ride_min_hours:
        raise ValidationError(f"hours must be >= {settings.live_ride_min_hours}")
    if hours > settings.live_ride_max_hours:
        raise ValidationError(f"hours must be <= {settings.live_ride_max_hours}")
    return route


async def create_live_ride_request(
    db: AsyncSession,
    requester_id: int,
    route,
    passenger_count: int,
    hours: int,
    now: Optional[datetime] = None,
) -> LiveRideRequest:
    """
    Create a live ride and offer it to the first eligible captain.

    Raises:
        ValidationError: bad route, passenger count or hours
        NoCaptainsAvailableError: nobody can take the ride right now
    """
    route = validate_live_ride_input(route, passenger_count, hours)
    quote = quote_live_ride(route, hours)

    await run_opportunistic_sweep(db, now=now)
    now = now or datetime.utcnow()

    try:
        request = LiveRideRequest(
            created_by_id=requester_id,
            pickup_point=settings.live_ride_pickup_point,
            route=route,
            passenger_count=passenger_count,
            hours=hours,
            hourly_rate_cents=quote.hourly_rate_cents,
            subtotal_cents=quote.subtotal_cents,
            commission_rate=quote.commission_rate,
            commission_cents=quote.commission_cents,
            total_cents=quote.total_cents,
            currency=quote.currency,
            status=LiveRideStatus.REQUESTED,
        )

        candidate = await select_next(
            db, request, (), now, priority_captain_id=settings.priority_captain_id
        )
        if candidate is None:
            raise NoCaptainsAvailableError()

        db.add(request)
        await db.flush()
        await log_event(
            db,
            action=AuditAction.LIVE_RIDE_REQUESTED,
            actor_id=requester_id,
            live_ride_request_id=request.id,
            metadata={"route": route.value, "passenger_count": passenger_count, "hours": hours}
        )
        await create_offer(db, request, candidate, now)
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info("Live ride %s created by user %s", request.id, requester_id)
    return request


async def _load_current_offer(
    db: AsyncSession,
    request_id: int,
    captain_id: int,
):
    """
    Lock the request and the acting captain's latest offer on it.

    Raises:
        ResourceNotFoundError: unknown request
        InvalidStateError: request is not currently offered
        ForbiddenError: request is offered to someone else, or the captain's offer is closed
    """
    request = await lock_request(db, request_id)
    if request is None:
        raise ResourceNotFoundError("Live ride", request_id)
    if request.status != LiveRideStatus.OFFERED:
        raise InvalidStateError("Live ride is not currently offered")
    if request.offered_to_captain_id != captain_id:
        raise ForbiddenError("Not offered to you")

    result = await db.execute(
        select(LiveRideOffer.id)
        .where(
            LiveRideOffer.request_id == request_id,
            LiveRideOffer.captain_id == captain_id,
        )
        .order_by(LiveRideOffer.created_at.desc(), LiveRideOffer.id.desc())
        .limit(1)
    )
    offer_id = result.scalar_one_or_none()
    offer = await lock_offer(db, offer_id) if offer_id is not None else None
    if offer is None or offer.status != LiveRideOfferStatus.OFFERED:
        raise ForbiddenError("No active offer")
    return request, offer


async def _ensure_boat_free(db: AsyncSession, boat_id: int, window) -> None:
    """
    Re-check the boat inside the accept transaction.

    Locking the boat row serializes concurrent accepts on the same boat,
    so two requests cannot both book it for overlapping windows.
    """
    result = await db.execute(
        select(Boat.id, boat_busy_clause(*window))
        .where(Boat.id == boat_id)
        .with_for_update()
    )
    row = result.one_or_none()
    if row is None:
        raise ConflictError("Boat no longer exists", details={"boat_id": boat_id})
    if row[1]:
        raise ConflictError("Boat is no longer available for this window", details={"boat_id": boat_id})


async def accept_offer(
    db: AsyncSession,
    request_id: int,
    captain_id: int,
    actor_id: Optional[int] = None,
    now: Optional[datetime] = None,
) -> Trip:
    """
    Accept the open offer and start the trip now.

    The trip (ACTIVE, window [now, now + hours)) and the ACCEPTED offer and
    request commit together.
    """
    await run_opportunistic_sweep(db, now=now)
    now = now or datetime.utcnow()

    try:
        request, offer = await _load_current_offer(db, request_id, captain_id)

        window = ride_window(now, request.hours)
        await _ensure_boat_free(db, offer.boat_id, window)

        trip = Trip(
            boat_id=offer.boat_id,
            created_by_id=request.created_by_id,
            status=TripStatus.ACTIVE,
            start_at=window[0],
            end_at=window[1],
            passenger_count=request.passenger_count,
            notes=f"Pickup: {request.pickup_point}",
            pricing_snapshot=pricing_snapshot(request),
            subtotal_cents=request.subtotal_cents,
            commission_rate=request.commission_rate,
            commission_cents=request.commission_cents,
            total_cents=request.total_cents,
            currency=request.currency,
        )
        db.add(trip)
        await db.flush()

        await mark_accepted(db, request, offer, trip, now, actor_id=actor_id)
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    return trip


async def reject_offer(
    db: AsyncSession,
    request_id: int,
    captain_id: int,
    actor_id: Optional[int] = None,
    now: Optional[datetime] = None,
) -> LiveRideRequest:
    """Decline the open offer; the ride moves to the next captain or back to REQUESTED."""
    await run_opportunistic_sweep(db, now=now)
    now = now or datetime.utcnow()

    try:
        _, offer = await _load_current_offer(db, request_id, captain_id)
        outcome = await mark_terminal_and_cascade(
            db,
            offer.id,
            OfferCloseReason.REJECTED,
            now,
            priority_captain_id=settings.priority_captain_id,
            actor_id=actor_id,
        )
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    return outcome.request


async def get_live_ride_request(
    db: AsyncSession,
    request_id: int,
    user_id: int,
    captain_id: Optional[int] = None,
    now: Optional[datetime] = None,
) -> LiveRideRequest:
    """
    Read a live ride as its requester or as a captain who was offered it.

    Raises:
        ResourceNotFoundError: unknown request
        ForbiddenError: caller has no part in the ride
    """
    await run_opportunistic_sweep(db, now=now)

    result = await db.execute(
        select(LiveRideRequest)
        .where(LiveRideRequest.id == request_id)
        .execution_options(populate_existing=True)
    )
    request = result.scalar_one_or_none()
    if request is None:
        raise ResourceNotFoundError("Live ride", request_id)
    if request.created_by_id == user_id:
        return request

    if captain_id is not None:
        held = await db.execute(
            select(LiveRideOffer.id).where(
                LiveRideOffer.request_id == request_id,
                LiveRideOffer.captain_id == captain_id,
            ).limit(1)
        )
        if held.scalar_one_or_none() is not None:
            return request

    raise ForbiddenError("Not your live ride")
