"""
Live ride request and offer models.

A request is offered to one captain at a time. Every offer row is kept
after it closes so the captains already tried can be excluded.
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, Float, DateTime, ForeignKey, Enum, Index, text
from sqlalchemy.sql import func
from backend.app.db.session import Base
from backend.app.models.live_ride_enums import (
    Route, LiveRideStatus, LiveRideOfferStatus, OfferCloseReason
)


class LiveRideRequest(Base):
    """
    On-demand ride request.

    offered_to_captain_id is set iff status is OFFERED; trip_id is set iff
    status is ACCEPTED.
    """
    __tablename__ = "live_ride_requests"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    created_by_id = Column(Integer, ForeignKey('users.id'), nullable=False, index=True)

    pickup_point = Column(String(200), nullable=False)
    route = Column(Enum(Route), nullable=False)
    passenger_count = Column(Integer, nullable=False)
    hours = Column(Integer, nullable=False)

    # Flat platform pricing, computed at creation
    hourly_rate_cents = Column(Integer, nullable=False)
    subtotal_cents = Column(Integer, nullable=False)
    commission_rate = Column(Float, nullable=False)
    commission_cents = Column(Integer, nullable=False)
    total_cents = Column(Integer, nullable=False)
    currency = Column(String(3), nullable=False, default="USD")

    status = Column(Enum(LiveRideStatus), default=LiveRideStatus.REQUESTED, nullable=False, index=True)
    offered_to_captain_id = Column(Integer, ForeignKey('captains.id'), nullable=True, index=True)

    # The trip outlives the request
    trip_id = Column(Integer, ForeignKey('trips.id', ondelete="SET NULL"), nullable=True, unique=True)

    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<LiveRideRequest(id={self.id}, route='{self.route.value}', status='{self.status.value}')>"


class LiveRideOffer(Base):
    """
    One captain's time-boxed turn at a request.

    Never updated after reaching ACCEPTED or REJECTED; an expiry closes the
    offer and the next captain gets a new row.
    """
    __tablename__ = "live_ride_offers"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    request_id = Column(Integer, ForeignKey('live_ride_requests.id', ondelete="CASCADE"), nullable=False, index=True)
    captain_id = Column(Integer, ForeignKey('captains.id'), nullable=False, index=True)
    boat_id = Column(Integer, ForeignKey('boats.id'), nullable=False)

    status = Column(Enum(LiveRideOfferStatus), default=LiveRideOfferStatus.OFFERED, nullable=False)
    close_reason = Column(Enum(OfferCloseReason), nullable=True)

    # Offer age is measured from created_at
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    responded_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        # At most one open offer per request
        Index('ix_live_ride_offers_open', 'request_id', unique=True,
              postgresql_where=text("status = 'OFFERED'"),
              sqlite_where=text("status = 'OFFERED'")),
        Index('ix_live_ride_offers_status_created', 'status', 'created_at'),
    )

    def __repr__(self):
        return f"<LiveRideOffer(id={self.id}, request_id={self.request_id}, captain_id={self.captain_id}, status='{self.status.value}')>"
