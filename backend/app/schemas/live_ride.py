"""
Live ride schemas.

Payloads use camelCase on the wire.
"""

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel
from typing import Any, Dict, Optional
from datetime import datetime

from backend.app.core.config import settings
from backend.app.models.live_ride_enums import Route, LiveRideStatus
from backend.app.models.trip_enums import TripStatus


class CamelModel(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


class LiveRideCreate(CamelModel):
    """Body of a new live ride request."""
    route: Route
    passenger_count: int = Field(..., ge=1)
    hours: int = Field(..., ge=settings.live_ride_min_hours, le=settings.live_ride_max_hours)


class LiveRideResponse(CamelModel):
    id: int
    created_by_id: int
    pickup_point: str
    route: Route
    passenger_count: int
    hours: int
    hourly_rate_cents: int
    subtotal_cents: int
    commission_rate: float
    commission_cents: int
    total_cents: int
    currency: str
    status: LiveRideStatus
    offered_to_captain_id: Optional[int]
    trip_id: Optional[int]
    created_at: datetime
    updated_at: datetime


class LiveRideEnvelope(CamelModel):
    live_ride: LiveRideResponse


class TripResponse(CamelModel):
    """Trip materialized from an accepted live ride."""
    id: int
    boat_id: int
    created_by_id: int
    status: TripStatus
    start_at: datetime
    end_at: datetime
    passenger_count: int
    notes: Optional[str]
    pricing_snapshot: Optional[Dict[str, Any]]
    subtotal_cents: int
    commission_rate: float
    commission_cents: int
    total_cents: int
    currency: str
    created_at: datetime


class TripEnvelope(CamelModel):
    trip: TripResponse


class OkResponse(BaseModel):
    ok: bool = True
