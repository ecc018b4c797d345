"""
Notification schemas.
"""

from pydantic import BaseModel
from datetime import datetime
from typing import Optional, Dict, Any, List

from backend.app.models.notification import NotificationType
from backend.app.models.live_ride_enums import Route, LiveRideStatus
from backend.app.models.trip_enums import TripStatus
from backend.app.schemas.live_ride import CamelModel


class UserSummary(CamelModel):
    id: int
    email: str


class BoatSummary(CamelModel):
    id: int
    name: str


class TripSummary(CamelModel):
    """The trip an accepted live ride became."""
    id: int
    status: TripStatus
    start_at: datetime
    end_at: datetime
    passenger_count: int
    pricing_snapshot: Optional[Dict[str, Any]]
    boat: Optional[BoatSummary] = None
    created_by: Optional[UserSummary] = None


class LiveRideSummary(CamelModel):
    """The live ride a notification refers to."""
    id: int
    pickup_point: str
    route: Route
    passenger_count: int
    hours: int
    total_cents: int
    currency: str
    status: LiveRideStatus
    created_at: datetime
    created_by: Optional[UserSummary] = None


class NotificationResponse(CamelModel):
    id: int
    type: NotificationType
    title: str
    message: str
    metadata_payload: Optional[Dict[str, Any]]
    live_ride_offer_id: Optional[int]
    trip_id: Optional[int]
    is_read: bool
    created_at: datetime
    read_at: Optional[datetime]
    live_ride: Optional[LiveRideSummary] = None
    trip: Optional[TripSummary] = None


class NotificationListResponse(CamelModel):
    unread_count: int
    notifications: List[NotificationResponse]


class MarkAllReadResponse(BaseModel):
    ok: bool = True
    updated: int
