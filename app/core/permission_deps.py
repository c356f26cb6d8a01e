"""
FastAPI dependencies for role- and permission-based route protection.

Thin adapters over the pure checks in app.core.permissions: each factory
returns a dependency that loads the current user and raises
AuthorizationError (403) when the check fails.

Usage:
    from app.core.permission_deps import require_permission

    @router.post("/users/{user_id}/suspend")
    async def suspend_user(
        user: CurrentUser,
        _: Annotated[None, Depends(require_permission("user:suspend"))],
    ):
        # This code only runs if the user's role grants user:suspend
        ...
"""

from collections.abc import Callable, Coroutine
from typing import Annotated, Any

from fastapi import Depends

from app.core import permissions
from app.core.auth import get_current_user
from app.core.permissions import Role
from app.models.user import Users


def require_role(*allowed_roles: str | Role) -> Callable[[Users], Coroutine[Any, Any, None]]:
    """
    Create a FastAPI dependency that requires one of the listed roles.

    Raises:
        AuthorizationError: 403 if the user's role is not listed
    """

    async def role_checker(user: Annotated[Users, Depends(get_current_user)]) -> None:
        permissions.require_role(user.role, *allowed_roles)

    return role_checker


def require_minimum_role(minimum_role: str | Role) -> Callable[[Users], Coroutine[Any, Any, None]]:
    """Create a FastAPI dependency that requires at least the given role."""

    async def role_checker(user: Annotated[Users, Depends(get_current_user)]) -> None:
        permissions.require_minimum_role(user.role, minimum_role)

    return role_checker


def require_permission(permission: str) -> Callable[[Users], Coroutine[Any, Any, None]]:
    """
    Create a FastAPI dependency that requires a named permission.

    Returns None if permission is present (use with _ to discard).

    Raises:
        AuthorizationError: 403 if the permission is unknown or not granted
    """

    async def permission_checker(user: Annotated[Users, Depends(get_current_user)]) -> None:
        permissions.require_permission(user.role, permission)

    return permission_checker


# Convenience type aliases for common requirements
RequireAdmin = Annotated[None, Depends(require_role(Role.ADMIN))]
RequireUserSuspend = Annotated[None, Depends(require_permission("user:suspend"))]
