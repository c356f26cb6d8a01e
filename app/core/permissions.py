"""
Role hierarchy and permission table for user authorization.

This module provides:
- Role constants (enum) and their total order USER < MODERATOR < ADMIN
- A static permission table mapping action names to the roles allowed to perform them
- Guard functions that raise AuthorizationError or return None

The guards are pure: they only read their arguments and the static tables.
FastAPI dependency wrappers live in app.core.permission_deps.
"""

from enum import Enum

from app.core.errors import AuthorizationError


class Role(str, Enum):
    """User roles, ordered by ROLE_HIERARCHY."""

    USER = "USER"
    MODERATOR = "MODERATOR"
    ADMIN = "ADMIN"


# Higher index = more privileges
ROLE_HIERARCHY: dict[str, int] = {
    Role.USER.value: 0,
    Role.MODERATOR.value: 1,
    Role.ADMIN.value: 2,
}

_ALL = frozenset({Role.USER.value, Role.MODERATOR.value, Role.ADMIN.value})
_STAFF = frozenset({Role.MODERATOR.value, Role.ADMIN.value})
_ADMIN = frozenset({Role.ADMIN.value})

PERMISSIONS: dict[str, frozenset[str]] = {
    # Topic permissions
    "topic:create": _ALL,
    "topic:edit:own": _ALL,
    "topic:edit:any": _STAFF,
    "topic:delete:own": _ALL,
    "topic:delete:any": _STAFF,
    "topic:pin": _STAFF,
    "topic:lock": _STAFF,
    "topic:move": _STAFF,
    # Post permissions
    "post:create": _ALL,
    "post:edit:own": _ALL,
    "post:edit:any": _STAFF,
    "post:delete:own": _ALL,
    "post:delete:any": _STAFF,
    "post:hide": _STAFF,
    # User management
    "user:view:profile": _ALL,
    "user:edit:own": _ALL,
    "user:edit:any": _ADMIN,
    "user:warn": _STAFF,
    "user:suspend": _STAFF,
    "user:ban": _ADMIN,
    "user:delete": _ADMIN,
    "user:change:role": _ADMIN,
    # Category management
    "category:create": _ADMIN,
    "category:edit": _ADMIN,
    "category:delete": _ADMIN,
    # Moderation
    "moderation:view:logs": _STAFF,
    "moderation:manage:reports": _STAFF,
    # Admin
    "admin:access": _ADMIN,
    "admin:settings": _ADMIN,
    "admin:analytics": _ADMIN,
}


def _role_value(role: str | Role) -> str:
    return role.value if isinstance(role, Role) else role


def role_level(role: str | Role) -> int:
    """Position of a role in the hierarchy; unknown roles rank below USER."""
    return ROLE_HIERARCHY.get(_role_value(role), -1)


def require_role(role: str | Role, *allowed_roles: str | Role) -> None:
    """
    Pass only if the caller's role is literally one of allowed_roles.

    Raises:
        AuthorizationError: If the role is not in the allowed set
    """
    allowed = [_role_value(r) for r in allowed_roles]
    if _role_value(role) not in allowed:
        raise AuthorizationError(f"Access denied. Required roles: {', '.join(allowed)}")


def require_minimum_role(role: str | Role, minimum_role: str | Role) -> None:
    """
    Pass if the caller's role ranks at or above minimum_role.

    Raises:
        AuthorizationError: If the caller ranks below the required role
    """
    required_level = ROLE_HIERARCHY.get(_role_value(minimum_role))
    if required_level is None or role_level(role) < required_level:
        raise AuthorizationError(f"Minimum role required: {_role_value(minimum_role)}")


def has_permission(role: str | Role, permission: str) -> bool:
    """Non-raising permission check; unknown permissions are never granted."""
    allowed_roles = PERMISSIONS.get(permission)
    return allowed_roles is not None and _role_value(role) in allowed_roles


def require_permission(role: str | Role, permission: str) -> None:
    """
    Pass if the role is granted the named permission.

    An unknown permission name is a configuration bug and is always denied.

    Raises:
        AuthorizationError: If the permission is unknown or not granted
    """
    allowed_roles = PERMISSIONS.get(permission)
    if allowed_roles is None:
        raise AuthorizationError("Invalid permission")
    if _role_value(role) not in allowed_roles:
        raise AuthorizationError(f"Permission denied: {permission}")


def is_higher_role(role_a: str | Role, role_b: str | Role) -> bool:
    """True if role_a ranks strictly above role_b."""
    return role_level(role_a) > role_level(role_b)
