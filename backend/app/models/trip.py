"""
Trip database model.

A trip is the confirmed use of one boat over a time window. Live rides
materialize a trip when a captain accepts the offer.
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, Float, ForeignKey, DateTime, Enum, JSON, Index
from sqlalchemy.sql import func
from backend.app.db.session import Base
from backend.app.models.trip_enums import TripStatus


class Trip(Base):
    """
    Trip model.

    Pricing columns are a snapshot frozen when the trip is created; later
    rate changes never touch an existing trip.
    """
    __tablename__ = "trips"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    boat_id = Column(Integer, ForeignKey('boats.id'), nullable=False, index=True)

    # Participant who booked the trip
    created_by_id = Column(Integer, ForeignKey('users.id'), nullable=False, index=True)

    status = Column(Enum(TripStatus), default=TripStatus.REQUESTED, nullable=False, index=True)

    # Half-open window [start_at, end_at)
    start_at = Column(DateTime(timezone=True), nullable=False)
    end_at = Column(DateTime(timezone=True), nullable=False)

    passenger_count = Column(Integer, nullable=False)
    notes = Column(String(500), nullable=True)

    # Pricing snapshot
    pricing_snapshot = Column(JSON, nullable=True)
    subtotal_cents = Column(Integer, nullable=False)
    commission_rate = Column(Float, nullable=False)
    commission_cents = Column(Integer, nullable=False)
    total_cents = Column(Integer, nullable=False)
    currency = Column(String(3), nullable=False, default="USD")

    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, server_default=func.now(), nullable=False)

    __table_args__ = (
        Index('ix_trips_boat_window', 'boat_id', 'start_at', 'end_at'),
    )

    def __repr__(self):
        return f"<Trip(id={self.id}, boat_id={self.boat_id}, status='{self.status.value}')>"
