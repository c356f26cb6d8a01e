"""
Authentication dependencies for FastAPI route protection.

This module provides dependency functions for:
- Extracting and verifying JWT access tokens from the access_token cookie
- Loading the current user from the database on every request
- Building the session manager and moderation service for a request
"""

from typing import Annotated

from fastapi import Cookie, Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import UserStatus
from app.core.database import get_db
from app.core.errors import AuthenticationError, AuthorizationError
from app.core.logging import bind_context
from app.core.security import decode_access_token
from app.models.user import Users
from app.services.moderation import ModerationService
from app.services.session import SessionManager
from app.services.token_ledger import RefreshTokenLedger
from app.services.user_store import UserStore


async def get_current_user_id(
    access_token: Annotated[str | None, Cookie()] = None,
    _credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(HTTPBearer(auto_error=False))] = None,
) -> int:
    """
    Extract and verify JWT access token from cookie.

    Note: The _credentials parameter is for OpenAPI documentation only.
    Actual authentication uses the access_token cookie.

    Raises:
        AuthenticationError: 401 if token is missing, invalid, or expired
    """
    if not access_token:
        raise AuthenticationError("Authentication required")

    payload = decode_access_token(access_token)
    if payload is None:
        raise AuthenticationError("Invalid or expired token")

    return payload["sub"]


async def get_current_user(
    user_id: Annotated[int, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Users:
    """
    Load current user from database using verified token.

    The stored role and status win over the token's claims, so a ban or role
    change takes effect before the access token expires.

    Raises:
        AuthenticationError: 401 if the user no longer exists
        AuthorizationError: 403 if the user is banned or suspended
    """
    user = await UserStore(db).find_by_id(user_id)
    if user is None:
        raise AuthenticationError("User not found")

    if user.status == UserStatus.BANNED:
        raise AuthorizationError("Your account has been banned")
    if user.status == UserStatus.SUSPENDED:
        raise AuthorizationError("Your account is currently suspended")

    bind_context(user_id=user.user_id)
    return user


def get_client_ip(request: Request) -> str:
    """
    Extract client IP address from request.

    Checks X-Forwarded-For header first (for proxies/load balancers),
    falls back to direct client IP.
    """
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        # X-Forwarded-For can contain multiple IPs, take the first (client)
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def get_user_agent(request: Request) -> str | None:
    return request.headers.get("User-Agent")


async def get_refresh_token_from_cookie(
    refresh_token: Annotated[str | None, Cookie()] = None,
) -> str | None:
    """Refresh token from its HttpOnly cookie; absence is handled by the manager."""
    return refresh_token


async def get_session_manager(db: Annotated[AsyncSession, Depends(get_db)]) -> SessionManager:
    return SessionManager(UserStore(db), RefreshTokenLedger(db))


async def get_moderation_service(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> ModerationService:
    return ModerationService(UserStore(db), RefreshTokenLedger(db))


# Type aliases for dependency injection
CurrentUser = Annotated[Users, Depends(get_current_user)]
Sessions = Annotated[SessionManager, Depends(get_session_manager)]
Moderation = Annotated[ModerationService, Depends(get_moderation_service)]
