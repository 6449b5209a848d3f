# sevadaan/core/rbac.py

from fastapi import Depends, HTTPException, status

from sevadaan.api.deps import get_current_user
from sevadaan.core.permissions import (
    Role,
    check_permission,
    meets_min_level,
    normalize_role,
)
from sevadaan.models.user import User


def _role_name(role) -> str:
    return role.value if isinstance(role, Role) else str(role)


def require_permission(module: str, action: str):
    """
    Per-action guard: the user's role table (or delegated list) must
    grant `action` on `module`.
    """

    async def permission_checker(current_user: User = Depends(get_current_user)) -> User:
        if not check_permission(current_user.role, module, action, current_user.permissions or []):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Permission '{module}:{action}' required",
            )
        return current_user

    return permission_checker


def require_min_level(threshold: int):
    """
    Coarse router-wide gate. Unknown roles count as level 0.
    """

    async def level_checker(current_user: User = Depends(get_current_user)) -> User:
        if not meets_min_level(current_user.role, threshold):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient role level",
            )
        return current_user

    return level_checker


def AllowRoles(*allowed_roles):
    """
    - Accepts Role values, canonical names or legacy aliases
    - SUPER_ADMIN bypasses everything
    """
    normalized_allowed = {normalize_role(r) for r in allowed_roles} - {None}

    async def role_checker(current_user: User = Depends(get_current_user)) -> User:
        user_role = normalize_role(current_user.role)

        if user_role == Role.SUPER_ADMIN:
            return current_user

        if user_role not in normalized_allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Access denied for role '{_role_name(current_user.role)}'",
            )

        return current_user

    return role_checker
