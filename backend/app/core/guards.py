"""
Security guards for role-based access control.

Provides dependencies for protecting endpoints.
"""

from typing import List
from fastapi import Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.models.captain import Captain
from backend.app.models.enums import UserRole, CAPTAIN_ROLES
from backend.app.core.dependencies import get_current_user
from backend.app.db.session import get_db
from backend.app.services.captain_directory import get_captain_for_user


def require_role(allowed_roles: List[UserRole]):
    """
    Dependency factory for role-based access control.

    Usage:
        @router.get("/captain/me/live-rides")
        async def my_offers(current_user: dict = Depends(require_role(list(CAPTAIN_ROLES)))):
            ...

    Args:
        allowed_roles: List of UserRole enums that are allowed to access the endpoint

    Returns:
        FastAPI dependency function that validates user role

    Raises:
        HTTPException 403 if user role is not in allowed_roles
    """
    async def role_checker(current_user: dict = Depends(get_current_user)) -> dict:
        user_role_str = current_user.get("role")

        if not user_role_str:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Role information missing from token"
            )

        try:
            user_role = UserRole(user_role_str)
        except ValueError:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Invalid role in token"
            )

        if user_role not in allowed_roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Access denied. Required role: {', '.join([r.value for r in allowed_roles])}"
            )

        return current_user

    return role_checker


async def require_captain(
    current_user: dict = Depends(require_role(list(CAPTAIN_ROLES))),
    db: AsyncSession = Depends(get_db)
) -> Captain:
    """
    Dependency resolving the acting user's captain profile.

    Raises:
        HTTPException 403 if the user is not a captain or has no profile yet
    """
    captain = await get_captain_for_user(db, current_user["user_id"])
    if captain is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Captain profile required"
        )
    return captain
