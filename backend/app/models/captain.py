"""
Captain directory models.

Captains own boats; each boat advertises its capacity, whether it takes
live rides, and which routes it has pricing for.
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, Enum, UniqueConstraint
from sqlalchemy.sql import func
from backend.app.db.session import Base
from backend.app.models.live_ride_enums import Route


class Captain(Base):
    """Captain profile attached to one user account."""
    __tablename__ = "captains"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey('users.id'), unique=True, nullable=False, index=True)

    display_name = Column(String(200), nullable=False)
    bio = Column(String(1000), nullable=True)
    phone = Column(String(50), nullable=True)

    # Part of the live-ride candidate ordering
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, server_default=func.now(), nullable=False, index=True)

    def __repr__(self):
        return f"<Captain(id={self.id}, user_id={self.user_id}, name='{self.display_name}')>"


class Boat(Base):
    """A captain's boat."""
    __tablename__ = "boats"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    captain_id = Column(Integer, ForeignKey('captains.id'), nullable=False, index=True)

    name = Column(String(200), nullable=False)
    max_passengers = Column(Integer, nullable=False)
    minimum_hours = Column(Integer, nullable=False, default=1)

    live_rides_on = Column(Boolean, default=False, nullable=False, index=True)

    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<Boat(id={self.id}, captain_id={self.captain_id}, live={self.live_rides_on})>"


class BoatRoutePricing(Base):
    """Hourly rate a boat charges on one route. A row means the route is served."""
    __tablename__ = "boat_route_pricings"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    boat_id = Column(Integer, ForeignKey('boats.id', ondelete="CASCADE"), nullable=False, index=True)
    route = Column(Enum(Route), nullable=False)
    hourly_rate_cents = Column(Integer, nullable=False)
    currency = Column(String(3), nullable=False, default="USD")

    __table_args__ = (
        UniqueConstraint('boat_id', 'route', name='uq_boat_route_pricing'),
    )

    def __repr__(self):
        return f"<BoatRoutePricing(boat_id={self.boat_id}, route='{self.route.value}', rate={self.hourly_rate_cents})>"
