"""
Notification Service.

Handles creation and state management of notifications.
Creation only flushes; the caller's transaction decides when they land.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, func, desc
from sqlalchemy.orm import aliased
from datetime import datetime
from typing import Optional, Dict, Any, List, Tuple

from backend.app.core.exceptions import ResourceNotFoundError, ForbiddenError
from backend.app.models.notification import Notification, NotificationType
from backend.app.models.captain import Boat
from backend.app.models.live_ride import LiveRideRequest, LiveRideOffer
from backend.app.models.trip import Trip
from backend.app.models.user import User


class NotificationService:

    @staticmethod
    async def create_notification(
        db: AsyncSession,
        user_id: int,
        type: NotificationType,
        title: str,
        message: str,
        live_ride_request_id: Optional[int] = None,
        live_ride_offer_id: Optional[int] = None,
        trip_id: Optional[int] = None,
        metadata: Optional[Dict[str, Any]] = None
    ) -> Notification:
        """Create a single notification."""
        notif = Notification(
            user_id=user_id,
            type=type,
            title=title,
            message=message,
            live_ride_request_id=live_ride_request_id,
            live_ride_offer_id=live_ride_offer_id,
            trip_id=trip_id,
            metadata_payload=metadata
        )
        db.add(notif)
        await db.flush()
        return notif

    @staticmethod
    async def notify_live_ride_offer(
        db: AsyncSession,
        captain_user_id: int,
        request: LiveRideRequest,
        offer: LiveRideOffer
    ) -> Notification:
        """Tell a captain they hold the offer for a live ride."""
        return await NotificationService.create_notification(
            db,
            user_id=captain_user_id,
            type=NotificationType.LIVE_RIDE_OFFER,
            title="New live ride request",
            message=(
                f"{request.passenger_count} pax, {request.hours}h on route "
                f"{request.route.value} from {request.pickup_point}"
            ),
            live_ride_request_id=request.id,
            live_ride_offer_id=offer.id,
            metadata={"boat_id": offer.boat_id}
        )

    @staticmethod
    async def notify_live_ride_accepted(
        db: AsyncSession,
        request: LiveRideRequest,
        trip_id: int
    ) -> Notification:
        """Tell the guest their live ride has a captain."""
        return await NotificationService.create_notification(
            db,
            user_id=request.created_by_id,
            type=NotificationType.LIVE_RIDE_ACCEPTED,
            title="Your live ride was accepted",
            message=f"A captain is on the way to {request.pickup_point}.",
            live_ride_request_id=request.id,
            trip_id=trip_id
        )

    @staticmethod
    async def notify_live_ride_unmatched(db: AsyncSession, request: LiveRideRequest) -> Notification:
        """Tell the guest no captain took the ride."""
        return await NotificationService.create_notification(
            db,
            user_id=request.created_by_id,
            type=NotificationType.LIVE_RIDE_UNMATCHED,
            title="No captains available",
            message="No captain accepted your live ride. Please try again later.",
            live_ride_request_id=request.id
        )

    @staticmethod
    async def list_for_user(
        db: AsyncSession,
        user_id: int,
        unread_only: bool = False,
        limit: int = 20
    ) -> Tuple[int, List[Tuple]]:
        """
        Newest notifications for a user with the live ride and trip they refer to.

        Returns:
            (unread_count, [(notification, live_ride, requester, trip, boat, booker), ...])
            where everything after the notification may be None
        """
        unread_result = await db.execute(
            select(func.count(Notification.id)).where(
                Notification.user_id == user_id,
                Notification.is_read == False
            )
        )
        unread_count = unread_result.scalar()

        requester = aliased(User)
        booker = aliased(User)
        query = (
            select(Notification, LiveRideRequest, requester, Trip, Boat, booker)
            .outerjoin(LiveRideRequest, LiveRideRequest.id == Notification.live_ride_request_id)
            .outerjoin(requester, requester.id == LiveRideRequest.created_by_id)
            .outerjoin(Trip, Trip.id == Notification.trip_id)
            .outerjoin(Boat, Boat.id == Trip.boat_id)
            .outerjoin(booker, booker.id == Trip.created_by_id)
            .where(Notification.user_id == user_id)
        )
        if unread_only:
            query = query.where(Notification.is_read == False)
        query = query.order_by(desc(Notification.created_at), desc(Notification.id)).limit(limit)

        result = await db.execute(query)
        return unread_count, [tuple(row) for row in result.all()]

    @staticmethod
    async def mark_read(db: AsyncSession, notification_id: int, user_id: int) -> Notification:
        """
        Mark a notification as read.

        Raises:
            ResourceNotFoundError: unknown notification
            ForbiddenError: notification belongs to someone else
        """
        notif = await db.get(Notification, notification_id)
        if notif is None:
            raise ResourceNotFoundError("Notification", notification_id)
        if notif.user_id != user_id:
            raise ForbiddenError("Not your notification")

        if not notif.is_read:
            notif.is_read = True
            notif.read_at = datetime.utcnow()
            await db.flush()
        return notif

    @staticmethod
    async def mark_all_read(db: AsyncSession, user_id: int) -> int:
        """Mark all notifications for user as read."""
        stmt = update(Notification).where(
            Notification.user_id == user_id,
            Notification.is_read == False
        ).values(
            is_read=True,
            read_at=datetime.utcnow()
        )
        result = await db.execute(stmt)
        return result.rowcount
