"""
Trip-related enumerations.
"""

import enum


class TripStatus(str, enum.Enum):
    """Trip status enumeration."""
    REQUESTED = "REQUESTED"  # Scheduled trip awaiting the captain
    ACCEPTED = "ACCEPTED"  # Scheduled trip confirmed, not started
    ACTIVE = "ACTIVE"  # On the water (live rides start here)
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    REJECTED = "REJECTED"


# Statuses that hold the boat for the trip's window
BOAT_BLOCKING_STATUSES = (TripStatus.ACCEPTED, TripStatus.ACTIVE)
