"""
Offer lifecycle manager.

Drives a single live ride through its offers:

    OFFERED -> ACCEPTED                (terminal, trip exists)
    OFFERED -> REJECTED (declined)     (terminal for the offer, cascades)
    OFFERED -> REJECTED (timeout)      (terminal for the offer, cascades)

Functions here only flush. The caller owns the transaction, so an offer's
termination and its successor (or the fallback to REQUESTED) commit together.

Rows are locked request first, then offer. Every transition re-checks that
the offer is still the request's current offer and raises ConflictError
when a concurrent accept, reject or expiry got there first.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Set

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.exceptions import ConflictError, ResourceNotFoundError
from backend.app.domain.live_rides.eligibility import OfferCandidate
from backend.app.domain.live_rides.selector import select_next
from backend.app.models.live_ride import LiveRideRequest, LiveRideOffer
from backend.app.models.live_ride_enums import LiveRideStatus, LiveRideOfferStatus, OfferCloseReason
from backend.app.models.trip import Trip
from backend.app.services.audit import log_event, AuditAction
from backend.app.services.notification_service import NotificationService

logger = logging.getLogger(__name__)


@dataclass
class CascadeOutcome:
    request: LiveRideRequest
    closed_offer: LiveRideOffer
    next_offer: Optional[LiveRideOffer] = None


async def lock_request(db: AsyncSession, request_id: int) -> Optional[LiveRideRequest]:
    """Load a request FOR UPDATE, refreshing any copy already in the session."""
    result = await db.execute(
        select(LiveRideRequest)
        .where(LiveRideRequest.id == request_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def lock_offer(db: AsyncSession, offer_id: int) -> Optional[LiveRideOffer]:
    result = await db.execute(
        select(LiveRideOffer)
        .where(LiveRideOffer.id == offer_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def tried_captain_ids(db: AsyncSession, request_id: int) -> Set[int]:
    """Every captain who has ever held an offer on the request, in any status."""
    result = await db.execute(
        select(LiveRideOffer.captain_id)
        .where(LiveRideOffer.request_id == request_id)
        .distinct()
    )
    return set(result.scalars().all())


def ensure_current_offer(request: LiveRideRequest, offer: LiveRideOffer) -> None:
    """Raise ConflictError unless `offer` is the open offer on `request`."""
    if (
        offer.status != LiveRideOfferStatus.OFFERED
        or request.status != LiveRideStatus.OFFERED
        or request.offered_to_captain_id != offer.captain_id
    ):
        raise ConflictError(
            "Offer already resolved",
            details={"live_ride_id": request.id, "offer_id": offer.id}
        )


async def create_offer(
    db: AsyncSession,
    request: LiveRideRequest,
    candidate: OfferCandidate,
    now: datetime,
) -> LiveRideOffer:
    """
    Open an offer for `candidate` and point the request at them.

    Inserts the offer, moves the request to OFFERED and queues the
    captain's notification, all in the caller's transaction.
    """
    offer = LiveRideOffer(
        request_id=request.id,
        captain_id=candidate.captain_id,
        boat_id=candidate.boat_id,
        status=LiveRideOfferStatus.OFFERED,
        created_at=now,
    )
    db.add(offer)

    request.status = LiveRideStatus.OFFERED
    request.offered_to_captain_id = candidate.captain_id
    await db.flush()

    await NotificationService.notify_live_ride_offer(db, candidate.captain_user_id, request, offer)
    await log_event(
        db,
        action=AuditAction.LIVE_RIDE_OFFERED,
        live_ride_request_id=request.id,
        metadata={"offer_id": offer.id, "captain_id": candidate.captain_id, "boat_id": candidate.boat_id}
    )
    logger.info(
        "Live ride %s offered to captain %s (boat %s, offer %s)",
        request.id, candidate.captain_id, candidate.boat_id, offer.id
    )
    return offer


async def mark_accepted(
    db: AsyncSession,
    request: LiveRideRequest,
    offer: LiveRideOffer,
    trip: Trip,
    now: datetime,
    actor_id: Optional[int] = None,
) -> None:
    """
    Close `offer` as ACCEPTED and settle the request on `trip`.

    The trip must already be flushed; request and offer must be locked.
    """
    ensure_current_offer(request, offer)
    if trip.id is None:
        raise ValueError("Trip must be flushed before the offer is accepted")

    offer.status = LiveRideOfferStatus.ACCEPTED
    offer.responded_at = now

    request.status = LiveRideStatus.ACCEPTED
    request.offered_to_captain_id = None
    request.trip_id = trip.id
    await db.flush()

    await NotificationService.notify_live_ride_accepted(db, request, trip.id)
    await log_event(
        db,
        action=AuditAction.LIVE_RIDE_OFFER_ACCEPTED,
        actor_id=actor_id,
        live_ride_request_id=request.id,
        metadata={"offer_id": offer.id, "captain_id": offer.captain_id, "trip_id": trip.id}
    )
    logger.info("Live ride %s accepted by captain %s -> trip %s", request.id, offer.captain_id, trip.id)


async def mark_terminal_and_cascade(
    db: AsyncSession,
    offer_id: int,
    reason: OfferCloseReason,
    now: datetime,
    priority_captain_id: Optional[int] = None,
    actor_id: Optional[int] = None,
) -> CascadeOutcome:
    """
    Close an open offer as REJECTED and hand the ride to the next captain.

    Captains who ever held an offer on this request are excluded. With no
    candidate left the request falls back to REQUESTED and the guest is
    told nobody is available.

    Raises:
        ResourceNotFoundError: unknown offer
        ConflictError: the offer is no longer the request's open offer
    """
    offer = await db.get(LiveRideOffer, offer_id)
    if offer is None:
        raise ResourceNotFoundError("Live ride offer", offer_id)

    request = await lock_request(db, offer.request_id)
    offer = await lock_offer(db, offer_id)
    ensure_current_offer(request, offer)

    offer.status = LiveRideOfferStatus.REJECTED
    offer.close_reason = reason
    offer.responded_at = now
    await db.flush()

    await log_event(
        db,
        action=(
            AuditAction.LIVE_RIDE_OFFER_EXPIRED
            if reason == OfferCloseReason.TIMEOUT
            else AuditAction.LIVE_RIDE_OFFER_REJECTED
        ),
        actor_id=actor_id,
        live_ride_request_id=request.id,
        metadata={"offer_id": offer.id, "captain_id": offer.captain_id}
    )
    logger.info(
        "Live ride %s offer %s closed (%s) for captain %s",
        request.id, offer.id, reason.value, offer.captain_id
    )

    excluded = await tried_captain_ids(db, request.id)
    excluded.add(offer.captain_id)

    candidate = await select_next(
        db, request, excluded, now, priority_captain_id=priority_captain_id
    )

    outcome = CascadeOutcome(request=request, closed_offer=offer)
    if candidate is not None:
        outcome.next_offer = await create_offer(db, request, candidate, now)
        return outcome

    request.status = LiveRideStatus.REQUESTED
    request.offered_to_captain_id = None
    await db.flush()

    await NotificationService.notify_live_ride_unmatched(db, request)
    await log_event(
        db,
        action=AuditAction.LIVE_RIDE_UNMATCHED,
        live_ride_request_id=request.id,
        metadata={"tried_captain_ids": sorted(excluded)}
    )
    logger.info("Live ride %s has no captains left; back to REQUESTED", request.id)
    return outcome
