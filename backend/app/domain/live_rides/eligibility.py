"""
Live-ride eligibility filter.

Computes, in a stable order, the captains that can serve a live ride
right now. Each captain is a single slot: only their earliest-created
eligible boat is offered.

A boat is eligible when:
- live rides are switched on
- it seats at least the requested passengers
- it has pricing for the requested route
- no ACCEPTED/ACTIVE trip overlaps the requested window
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.models.captain import Captain, Boat, BoatRoutePricing
from backend.app.models.live_ride_enums import Route
from backend.app.models.trip import Trip
from backend.app.models.trip_enums import BOAT_BLOCKING_STATUSES


@dataclass(frozen=True)
class OfferCandidate:
    captain_id: int
    captain_user_id: int
    boat_id: int


def boat_busy_clause(window_start: datetime, window_end: datetime):
    """EXISTS clause: the correlated boat has a blocking trip overlapping the window."""
    return (
        select(Trip.id)
        .where(
            Trip.boat_id == Boat.id,
            Trip.status.in_(BOAT_BLOCKING_STATUSES),
            Trip.start_at < window_end,
            Trip.end_at > window_start,
        )
        .exists()
    )


async def find_candidates(
    db: AsyncSession,
    route: Route,
    passenger_count: int,
    time_window: Tuple[datetime, datetime],
    exclude_captain_ids: Iterable[int] = (),
    priority_captain_id: Optional[int] = None,
) -> List[OfferCandidate]:
    """
    Ordered list of captains able to take the ride.

    The priority captain, when eligible and not excluded, comes first.
    Everyone else follows by captain created_at, then captain id.
    An empty list means candidates are exhausted.
    """
    window_start, window_end = time_window
    excluded = set(exclude_captain_ids)

    route_priced = (
        select(BoatRoutePricing.id)
        .where(
            BoatRoutePricing.boat_id == Boat.id,
            BoatRoutePricing.route == route,
            BoatRoutePricing.hourly_rate_cents > 0,
        )
        .exists()
    )

    query = (
        select(Captain.id, Captain.user_id, Boat.id)
        .join(Boat, Boat.captain_id == Captain.id)
        .where(
            Boat.live_rides_on.is_(True),
            Boat.max_passengers >= passenger_count,
            route_priced,
            ~boat_busy_clause(window_start, window_end),
        )
        .order_by(
            Captain.created_at.asc(),
            Captain.id.asc(),
            Boat.created_at.asc(),
            Boat.id.asc(),
        )
    )
    if excluded:
        query = query.where(Captain.id.notin_(excluded))

    result = await db.execute(query)

    candidates: List[OfferCandidate] = []
    seen = set()
    for captain_id, captain_user_id, boat_id in result.all():
        # Rows arrive boat-ordered within each captain; keep the first
        if captain_id in seen:
            continue
        seen.add(captain_id)
        candidates.append(OfferCandidate(captain_id, captain_user_id, boat_id))

    if priority_captain_id is not None:
        for index, candidate in enumerate(candidates):
            if candidate.captain_id == priority_captain_id:
                candidates.insert(0, candidates.pop(index))
                break

    return candidates
