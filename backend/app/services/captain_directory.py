"""
Captain directory service.

Looks up captain profiles and manages the live-ride switch on their boats.
"""

import logging
from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update

from backend.app.models.captain import Captain, Boat
from backend.app.models.live_ride import LiveRideRequest
from backend.app.models.live_ride_enums import LiveRideStatus
from backend.app.services.audit import log_event, AuditAction

logger = logging.getLogger(__name__)


async def get_captain_for_user(db: AsyncSession, user_id: int) -> Optional[Captain]:
    result = await db.execute(select(Captain).where(Captain.user_id == user_id))
    return result.scalar_one_or_none()


async def set_live_rides(
    db: AsyncSession,
    captain_id: int,
    enabled: bool,
    actor_id: Optional[int] = None
) -> int:
    """
    Switch live rides on or off for every boat of a captain.

    Returns:
        Number of boats updated
    """
    result = await db.execute(
        update(Boat)
        .where(Boat.captain_id == captain_id)
        .values(live_rides_on=enabled)
    )
    updated = result.rowcount

    await log_event(
        db,
        action=AuditAction.LIVE_RIDES_TOGGLED,
        actor_id=actor_id,
        metadata={"captain_id": captain_id, "enabled": enabled, "boats": updated}
    )
    logger.info("Captain %s live rides %s on %s boat(s)", captain_id, "on" if enabled else "off", updated)
    return updated


async def list_offered_to_captain(db: AsyncSession, captain_id: int) -> List[LiveRideRequest]:
    """Requests currently waiting on this captain's answer, oldest first."""
    result = await db.execute(
        select(LiveRideRequest)
        .where(
            LiveRideRequest.status == LiveRideStatus.OFFERED,
            LiveRideRequest.offered_to_captain_id == captain_id,
        )
        .order_by(LiveRideRequest.created_at, LiveRideRequest.id)
        .execution_options(populate_existing=True)
    )
    return list(result.scalars().all())
