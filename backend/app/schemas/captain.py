"""
Captain live-ride schemas.
"""

from pydantic import BaseModel
from typing import List

from backend.app.schemas.live_ride import CamelModel, LiveRideResponse


class LiveRidesToggle(BaseModel):
    enabled: bool


class LiveRidesToggleResponse(BaseModel):
    updated: int


class OfferedLiveRidesResponse(CamelModel):
    """Live rides currently waiting on the captain's answer."""
    live_rides: List[LiveRideResponse]
