"""
Notification database model.

Notifications are polled by clients; rows are written in the same
transaction as the state change they announce.
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey, JSON, Enum
from sqlalchemy.sql import func
from backend.app.db.session import Base
import enum


class NotificationType(str, enum.Enum):
    LIVE_RIDE_OFFER = "LIVE_RIDE_OFFER"  # To the captain holding the offer
    LIVE_RIDE_ACCEPTED = "LIVE_RIDE_ACCEPTED"  # To the guest, trip confirmed
    LIVE_RIDE_UNMATCHED = "LIVE_RIDE_UNMATCHED"  # To the guest, candidates exhausted


class Notification(Base):
    """
    In-App Notification.
    Stores messages for users.
    """
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Recipient
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    # Content
    type = Column(Enum(NotificationType), nullable=False)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    metadata_payload = Column(JSON, nullable=True)

    # Subject; owned by the live ride request
    live_ride_request_id = Column(Integer, ForeignKey("live_ride_requests.id", ondelete="CASCADE"), nullable=True, index=True)
    # One offer notification per offer
    live_ride_offer_id = Column(Integer, ForeignKey("live_ride_offers.id", ondelete="CASCADE"), nullable=True, unique=True)
    trip_id = Column(Integer, ForeignKey("trips.id", ondelete="SET NULL"), nullable=True)

    # State
    is_read = Column(Boolean, default=False, nullable=False, index=True)
    read_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<Notification(id={self.id}, user={self.user_id}, type='{self.type.value}')>"
