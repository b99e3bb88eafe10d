from typing import Dict

from fastapi import Depends, HTTPException, status

from hrms.auth.dependencies import get_current_user
from hrms.auth.models import ADMIN_ROLES
from hrms.auth.schemas import CurrentUser


def has_permission(current_user: CurrentUser, module: str, action: str) -> bool:
    if current_user.role in ADMIN_ROLES:
        return True
    permissions: Dict[str, Dict[str, bool]] = current_user.permissions or {}
    return bool(permissions.get(module, {}).get(action, False))


def check_permission(module: str, action: str):
    """
    Dependency factory to enforce a specific permission.

    Example:
        Depends(check_permission("leave", "approve"))
    """

    async def _checker(current_user: CurrentUser = Depends(get_current_user)) -> None:
        if not has_permission(current_user, module, action):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )

    return _checker
