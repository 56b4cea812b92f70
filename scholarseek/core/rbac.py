# scholarseek/core/rbac.py

from fastapi import Depends, HTTPException, status
from scholarseek.api.deps import get_current_user
from scholarseek.models.user import User, UserRole

REVIEWER_ROLES = {UserRole.Admin.value, UserRole.Staff.value}


def role_name(role) -> str:
    """Lowercase role string for a UserRole member or a raw value."""
    raw = role.value if isinstance(role, UserRole) else str(role)
    return raw.strip().lower()


def is_reviewer(user: User | None) -> bool:
    """Admin and staff accounts may decide applications."""
    return user is not None and role_name(user.role) in REVIEWER_ROLES


def AllowRoles(*allowed_roles):
    """
    Route guard. Admins pass every guard; everyone else needs one of
    ``allowed_roles`` (UserRole members or plain strings, any case).
    """
    permitted = {role_name(r) for r in allowed_roles} | {UserRole.Admin.value}

    async def role_checker(current_user: User = Depends(get_current_user)):
        current = role_name(current_user.role)
        if current not in permitted:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Access denied for role '{current}'"
            )
        return current_user

    return role_checker
