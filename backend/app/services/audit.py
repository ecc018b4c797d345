"""
Audit logging service for live-ride lifecycle events.

Entries join the caller's transaction: an audit row is committed exactly
when the transition it describes is.
"""

from typing import Optional, Dict, Any, List
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from backend.app.models.audit_log import AuditLog


class AuditAction:
    """Standardized audit action constants."""
    LIVE_RIDE_REQUESTED = "LIVE_RIDE_REQUESTED"
    LIVE_RIDE_OFFERED = "LIVE_RIDE_OFFERED"
    LIVE_RIDE_UNMATCHED = "LIVE_RIDE_UNMATCHED"
    LIVE_RIDE_OFFER_ACCEPTED = "LIVE_RIDE_OFFER_ACCEPTED"
    LIVE_RIDE_OFFER_REJECTED = "LIVE_RIDE_OFFER_REJECTED"
    LIVE_RIDE_OFFER_EXPIRED = "LIVE_RIDE_OFFER_EXPIRED"
    LIVE_RIDES_TOGGLED = "LIVE_RIDES_TOGGLED"


async def log_event(
    db: AsyncSession,
    action: str,
    actor_id: Optional[int] = None,
    live_ride_request_id: Optional[int] = None,
    metadata: Optional[Dict[str, Any]] = None
) -> AuditLog:
    """
    Add an audit entry to the current transaction.

    Args:
        db: Database session
        action: Action being performed (use AuditAction constants)
        actor_id: ID of user performing the action, None for system actions
        live_ride_request_id: Live ride the action concerns
        metadata: Additional context as JSON

    Returns:
        The pending AuditLog instance (flushed, not committed)
    """
    audit_log = AuditLog(
        actor_id=actor_id,
        action=action,
        live_ride_request_id=live_ride_request_id,
        meta_data=metadata
    )
    db.add(audit_log)
    await db.flush()
    return audit_log


async def get_live_ride_history(db: AsyncSession, live_ride_request_id: int) -> List[AuditLog]:
    """Audit entries for one live ride, oldest first."""
    result = await db.execute(
        select(AuditLog)
        .where(AuditLog.live_ride_request_id == live_ride_request_id)
        .order_by(AuditLog.timestamp, AuditLog.id)
    )
    return list(result.scalars().all())