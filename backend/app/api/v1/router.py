"""
API v1 Router.

Aggregates all v1 API endpoints.
"""

from fastapi import APIRouter
from backend.app.api.v1.endpoints import live_rides, captain, notifications

router = APIRouter()

# Live ride requests and offer answers
router.include_router(live_rides.router)

# Captain live-ride switch and pending offers
router.include_router(captain.router)

# Notifications
router.include_router(notifications.router)
