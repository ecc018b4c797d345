"""
Notification API Endpoints.
"""

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.db.session import get_db
from backend.app.core.dependencies import get_current_user
from backend.app.domain.live_rides.sweeper import run_opportunistic_sweep
from backend.app.services.notification_service import NotificationService
from backend.app.schemas.live_ride import OkResponse
from backend.app.schemas.notification import (
    BoatSummary,
    LiveRideSummary,
    NotificationResponse,
    TripSummary,
    UserSummary,
    NotificationListResponse,
    MarkAllReadResponse,
)

router = APIRouter(prefix="/notifications", tags=["Notifications"])

MAX_LIMIT = 50


@router.get("", response_model=NotificationListResponse)
async def list_notifications(
    unread_only: bool = Query(False, alias="unreadOnly"),
    limit: int = Query(20),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    List current user's notifications, newest first.

    Expired offers are swept first so a captain never sees a stale offer
    and the guest sees the resulting notifications.
    """
    user_id = current_user["user_id"]
    await run_opportunistic_sweep(db)

    limit = max(1, min(limit, MAX_LIMIT))
    unread_count, rows = await NotificationService.list_for_user(
        db, user_id, unread_only=unread_only, limit=limit
    )

    notifications = []
    for notif, live_ride, requester, trip, boat, booker in rows:
        item = NotificationResponse.model_validate(notif)
        if live_ride is not None:
            item.live_ride = LiveRideSummary.model_validate(live_ride)
            item.live_ride.created_by = UserSummary.model_validate(requester)
        if trip is not None:
            item.trip = TripSummary.model_validate(trip)
            item.trip.boat = BoatSummary.model_validate(boat)
            item.trip.created_by = UserSummary.model_validate(booker)
        notifications.append(item)

    return {"unread_count": unread_count, "notifications": notifications}


@router.patch("/read-all", response_model=MarkAllReadResponse)
async def mark_all_notifications_read(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Mark all notifications as read, including any produced by expired offers."""
    user_id = current_user["user_id"]
    await run_opportunistic_sweep(db)

    count = await NotificationService.mark_all_read(db, user_id)
    await db.commit()
    return {"ok": True, "updated": count}


@router.patch("/{notification_id}/read", response_model=OkResponse)
async def mark_notification_read(
    notification_id: int = Path(...),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Mark a specific notification as read."""
    user_id = current_user["user_id"]
    await run_opportunistic_sweep(db)

    await NotificationService.mark_read(db, notification_id, user_id)
    await db.commit()
    return {"ok": True}
