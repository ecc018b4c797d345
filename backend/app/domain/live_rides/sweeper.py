"""
Expiry sweeper for live-ride offers.

An offer left unanswered for the offer timeout is closed and the ride
cascades to the next captain. The sweep runs at the start of every
live-ride and notification call, and optionally on a timer
(`OfferSweeper`) so expiry does not depend on clients polling.

Sweeping is best effort: failures are logged and rolled back, never
raised into the caller's response.
"""

import asyncio
import logging
from datetime import datetime, timedelta
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.config import settings
from backend.app.core.exceptions import ConflictError
from backend.app.core.redis_client import acquire_lock
from backend.app.domain.live_rides.offers import mark_terminal_and_cascade
from backend.app.models.live_ride import LiveRideRequest, LiveRideOffer
from backend.app.models.live_ride_enums import LiveRideStatus, LiveRideOfferStatus, OfferCloseReason

logger = logging.getLogger(__name__)

SWEEP_LOCK_KEY = "live_rides:sweep_lock"


async def find_expired_offer_ids(db: AsyncSession, now: datetime, timeout_seconds: int) -> List[int]:
    """Open offers at least `timeout_seconds` old that are still their request's current offer."""
    cutoff = now - timedelta(seconds=timeout_seconds)
    result = await db.execute(
        select(LiveRideOffer.id)
        .join(LiveRideRequest, LiveRideRequest.id == LiveRideOffer.request_id)
        .where(
            LiveRideOffer.status == LiveRideOfferStatus.OFFERED,
            LiveRideOffer.created_at <= cutoff,
            LiveRideRequest.status == LiveRideStatus.OFFERED,
            LiveRideRequest.offered_to_captain_id == LiveRideOffer.captain_id,
        )
        .order_by(LiveRideOffer.created_at, LiveRideOffer.id)
    )
    return list(result.scalars().all())


async def sweep_expired(
    db: AsyncSession,
    now: Optional[datetime] = None,
    timeout_seconds: Optional[int] = None,
    priority_captain_id: Optional[int] = None,
) -> int:
    """
    Close every expired offer and cascade its ride.

    Each offer is handled in its own transaction. An offer that a
    concurrent accept/reject already resolved is skipped.

    Returns:
        Number of offers closed
    """
    now = now or datetime.utcnow()
    if timeout_seconds is None:
        timeout_seconds = settings.live_ride_offer_timeout_seconds

    offer_ids = await find_expired_offer_ids(db, now, timeout_seconds)
    # End the read transaction before the per-offer ones
    await db.commit()

    swept = 0
    for offer_id in offer_ids:
        try:
            await mark_terminal_and_cascade(
                db,
                offer_id,
                OfferCloseReason.TIMEOUT,
                now,
                priority_captain_id=priority_captain_id,
            )
            await db.commit()
            swept += 1
        except ConflictError:
            await db.rollback()
            logger.debug("Offer %s resolved concurrently; not expiring it", offer_id)
        except Exception:
            await db.rollback()
            logger.exception("Failed to expire live ride offer %s", offer_id)

    if swept:
        logger.info("Expired %s live ride offer(s)", swept)
    return swept


async def run_opportunistic_sweep(db: AsyncSession, now: Optional[datetime] = None) -> int:
    """Sweep before serving a call; never lets a sweep failure escape."""
    try:
        return await sweep_expired(
            db, now=now, priority_captain_id=settings.priority_captain_id
        )
    except Exception:
        await db.rollback()
        logger.exception("Live ride offer sweep failed")
        return 0


class OfferSweeper:
    """
    Periodic sweeper task.

    Runs `sweep_expired` every `interval_seconds` in a fresh session. A
    short Redis lock lets only one worker sweep per tick; when Redis is
    unreachable the sweep runs anyway and the row locks keep it safe.
    """

    def __init__(self, session_factory, redis=None, interval_seconds: float = None):
        self.session_factory = session_factory
        self.redis = redis
        self.interval_seconds = interval_seconds or settings.offer_sweeper_interval_seconds
        self._task: Optional[asyncio.Task] = None
        self._stopping: Optional[asyncio.Event] = None

    async def _acquire_tick(self) -> bool:
        if self.redis is None:
            return True
        try:
            return await acquire_lock(self.redis, SWEEP_LOCK_KEY, int(self.interval_seconds * 1000))
        except Exception:
            logger.warning("Sweeper lock unavailable; sweeping without it", exc_info=True)
            return True

    async def run_once(self, now: Optional[datetime] = None) -> int:
        """One tick. Returns the number of offers closed (0 if another worker holds the tick)."""
        if not await self._acquire_tick():
            return 0
        async with self.session_factory() as db:
            return await sweep_expired(
                db, now=now, priority_captain_id=settings.priority_captain_id
            )

    async def _run(self) -> None:
        logger.info("Starting live ride offer sweeper (interval=%ss)", self.interval_seconds)
        while not self._stopping.is_set():
            try:
                await self.run_once()
            except Exception:
                logger.exception("Offer sweeper tick failed")
            try:
                await asyncio.wait_for(self._stopping.wait(), timeout=self.interval_seconds)
            except asyncio.TimeoutError:
                pass

    def start(self) -> None:
        if self._task is None or self._task.done():
            self._stopping = asyncio.Event()
            self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        if self._task is None:
            return
        self._stopping.set()
        await self._task
        self._task = None
        logger.info("Live ride offer sweeper stopped")
