from fastapi import Depends, HTTPException, Request, status

from app.core.security import get_current_user
from app.core.utils import logger
from app.models.user_model import User
from app.schemas.user_schemas import ADMIN_ROLES, UserRole


def require_role(*roles: UserRole):
    """
    Dependency factory to enforce roles.

    Args:
        *roles: Allowed roles (user needs at least one)

    Usage:
        current_user: User = Depends(require_role(UserRole.ADMIN, UserRole.SUPER_ADMIN))
    """
    allowed = {UserRole(role) for role in roles}

    async def checker(
        request: Request,
        current_user: User = Depends(get_current_user),
    ) -> User:
        if current_user.role not in allowed:
            logger.log_security_event(
                {
                    "event": "unauthorized_role_access_attempt",
                    "user_id": current_user.id,
                    "user_role": current_user.role.value,
                    "required_roles": sorted(role.value for role in allowed),
                    "path": request.url.path,
                    "ip_address": (
                        request.client.host if request.client else "unknown"
                    ),
                }
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=(
                    "Access denied. Requires at least one of these roles: "
                    + ", ".join(sorted(role.value for role in allowed))
                ),
            )

        logger.log_debug(
            {
                "event": "access_granted_role",
                "user_id": current_user.id,
                "role": current_user.role.value,
            }
        )
        return current_user

    return checker


def require_admin():
    """Allow admin and super_admin."""
    return require_role(*ADMIN_ROLES)


def require_authenticated():
    """Any active, authenticated user."""

    async def checker(current_user: User = Depends(get_current_user)) -> User:
        return current_user

    return checker
