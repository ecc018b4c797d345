"""
Priority selector.

Picks the single captain to offer a live ride to next. Selection policy
lives here so it can change (rating, proximity) without touching the
eligibility rules.
"""

from datetime import datetime, timedelta
from typing import Iterable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.domain.live_rides.eligibility import OfferCandidate, find_candidates


def ride_window(now: datetime, hours: int):
    """A live ride occupies the boat from now for the requested hours."""
    return now, now + timedelta(hours=hours)


async def select_next(
    db: AsyncSession,
    request,
    exclude_captain_ids: Iterable[int],
    now: datetime,
    priority_captain_id: Optional[int] = None,
) -> Optional[OfferCandidate]:
    """
    Head of the eligible list for `request`, or None when exhausted.

    `request` only needs route, passenger_count and hours, so a request
    that has not been persisted yet can be passed.
    """
    candidates = await find_candidates(
        db,
        route=request.route,
        passenger_count=request.passenger_count,
        time_window=ride_window(now, request.hours),
        exclude_captain_ids=exclude_captain_ids,
        priority_captain_id=priority_captain_id,
    )
    return candidates[0] if candidates else None
