"""
Live-ride enumerations.
"""

import enum


class Route(str, enum.Enum):
    """Fixed itineraries (rumbos) served from the pickup point."""
    R1 = "R1"
    R2 = "R2"
    R3 = "R3"


class LiveRideStatus(str, enum.Enum):
    """
    Live ride request status.

    REQUESTED: No captain currently holds an offer (created, or candidates exhausted)
    OFFERED: Exactly one captain holds an open offer
    ACCEPTED: A captain accepted and the trip exists
    """
    REQUESTED = "REQUESTED"
    OFFERED = "OFFERED"
    ACCEPTED = "ACCEPTED"


class LiveRideOfferStatus(str, enum.Enum):
    """One captain's turn at a request. ACCEPTED and REJECTED are terminal."""
    OFFERED = "OFFERED"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"


class OfferCloseReason(str, enum.Enum):
    """Why an offer reached REJECTED."""
    REJECTED = "REJECTED"  # Captain declined
    TIMEOUT = "TIMEOUT"  # Swept after the offer timeout
