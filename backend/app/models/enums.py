"""
User roles enumeration.

Defines the role types for the day-boat marketplace.
"""

import enum


class UserRole(str, enum.Enum):
    """
    User role enumeration.

    Roles:
        GUEST: Books boats and requests live rides (default role)
        CAPTAIN: Operates boats and answers live-ride offers
        BOTH: Captain who also books as a guest
        ADMIN: Platform operator
    """
    GUEST = "GUEST"
    CAPTAIN = "CAPTAIN"
    BOTH = "BOTH"
    ADMIN = "ADMIN"


CAPTAIN_ROLES = (UserRole.CAPTAIN, UserRole.BOTH)
