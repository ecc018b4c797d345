"""
Audit Log Database Model.

Append-only record of live-ride lifecycle transitions.
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, JSON
from sqlalchemy.sql import func
from backend.app.db.session import Base


class AuditLog(Base):
    """
    Audit log model.

    Events logged:
    - LIVE_RIDE_REQUESTED / LIVE_RIDE_OFFERED / LIVE_RIDE_UNMATCHED
    - LIVE_RIDE_OFFER_ACCEPTED / LIVE_RIDE_OFFER_REJECTED / LIVE_RIDE_OFFER_EXPIRED
    - LIVE_RIDES_TOGGLED
    """
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Who performed the action (None for the sweeper)
    actor_id = Column(Integer, index=True, nullable=True)

    action = Column(String(100), nullable=False, index=True)

    # Subject of the action
    live_ride_request_id = Column(Integer, index=True, nullable=True)

    meta_data = Column(JSON, nullable=True)

    timestamp = Column(DateTime(timezone=True), default=datetime.utcnow, server_default=func.now(), nullable=False, index=True)

    def __repr__(self):
        return f"<AuditLog(id={self.id}, action='{self.action}', actor={self.actor_id})>"
