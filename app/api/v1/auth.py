"""
Authentication API endpoints.

This module provides endpoints for:
- Registration and email verification
- User login (JWT access token + opaque refresh token, both in HttpOnly cookies)
- Token refresh (with rotation and reuse detection)
- Logout (one session or all sessions)
- Password change and reset
"""

from typing import Annotated

import redis.asyncio as redis
from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.responses import JSONResponse

from app.config import settings
from app.core.auth import (
    CurrentUser,
    Sessions,
    get_client_ip,
    get_refresh_token_from_cookie,
    get_user_agent,
)
from app.core.errors import AuthenticationError, app_error_response
from app.core.logging import get_logger
from app.core.redis import get_redis
from app.schemas.auth import (
    ForgotPasswordRequest,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    PasswordChangeRequest,
    RegisterRequest,
    RegistrationResult,
    ResetPasswordRequest,
    SessionListResponse,
    SessionResponse,
    TokenRefreshResponse,
    VerifyEmailRequest,
)
from app.schemas.user import UserResponse
from app.services.rate_limit import check_auth_rate_limit, check_password_reset_rate_limit

logger = get_logger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


def _set_auth_cookies(response: Response, access_token: str, refresh_token: str) -> None:
    """
    Set authentication cookies in response.

    Both tokens are HttpOnly; the refresh cookie is scoped to the auth routes.
    """
    response.set_cookie(
        key="access_token",
        value=access_token,
        httponly=True,  # Prevent JavaScript access (XSS protection)
        secure=settings.ENVIRONMENT == "production",  # HTTPS only in production
        samesite=settings.COOKIE_SAMESITE,  # type: ignore[arg-type]
        domain=settings.COOKIE_DOMAIN,
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,  # Match JWT expiration
    )

    response.set_cookie(
        key="refresh_token",
        value=refresh_token,
        httponly=True,
        secure=settings.ENVIRONMENT == "production",
        samesite=settings.COOKIE_SAMESITE,  # type: ignore[arg-type]
        domain=settings.COOKIE_DOMAIN,
        path=f"{settings.API_V1_STR}/auth",
        max_age=settings.REFRESH_TOKEN_EXPIRE_DAYS * 24 * 60 * 60,  # seconds
    )


def _clear_auth_cookies(response: Response) -> None:
    """Clear authentication cookies from response (match set_cookie params)."""
    response.delete_cookie(
        key="access_token",
        path="/",
        domain=settings.COOKIE_DOMAIN,
        httponly=True,
        secure=settings.ENVIRONMENT == "production",
        samesite=settings.COOKIE_SAMESITE,  # type: ignore[arg-type]
    )
    response.delete_cookie(
        key="refresh_token",
        path=f"{settings.API_V1_STR}/auth",
        domain=settings.COOKIE_DOMAIN,
        httponly=True,
        secure=settings.ENVIRONMENT == "production",
        samesite=settings.COOKIE_SAMESITE,  # type: ignore[arg-type]
    )


@router.post("/register", response_model=RegistrationResult, status_code=status.HTTP_201_CREATED)
async def register(
    body: RegisterRequest,
    request: Request,
    sessions: Sessions,
    redis_client: Annotated[redis.Redis, Depends(get_redis)],  # type: ignore[type-arg]
) -> RegistrationResult:
    """
    Create a new account in PENDING_VERIFICATION status.

    No session is opened; the user must verify their email address.
    """
    await check_auth_rate_limit(get_client_ip(request), redis_client)
    return await sessions.register(
        email=body.email,
        username=body.username,
        password=body.password,
        display_name=body.display_name,
    )


@router.post("/login", response_model=LoginResponse)
async def login(
    credentials: LoginRequest,
    request: Request,
    response: Response,
    sessions: Sessions,
    redis_client: Annotated[redis.Redis, Depends(get_redis)],  # type: ignore[type-arg]
) -> LoginResponse:
    """
    Authenticate user and set access/refresh token cookies.

    Security:
    - Locks account after MAX_FAILED_LOGINS failed attempts for LOCKOUT_MINUTES
    - Banned and suspended users are rejected only after a correct password
    """
    client_ip = get_client_ip(request)
    await check_auth_rate_limit(client_ip, redis_client)

    result = await sessions.login(
        credentials.email,
        credentials.password,
        user_agent=get_user_agent(request),
        ip_address=client_ip,
    )

    _set_auth_cookies(response, result.access_token, result.refresh_token)

    return LoginResponse(
        user=result.user,
        message="Login successful",
        expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    )


@router.post("/refresh", response_model=TokenRefreshResponse)
async def refresh_token(
    request: Request,
    response: Response,
    refresh_token: Annotated[str | None, Depends(get_refresh_token_from_cookie)],
    sessions: Sessions,
) -> TokenRefreshResponse | JSONResponse:
    """
    Rotate the refresh token and issue a new access token.

    If an already-used (revoked) refresh token is presented, this indicates
    potential token theft, and every session of the owner is revoked. Any
    failure clears the auth cookies.
    """
    try:
        pair = await sessions.refresh(
            refresh_token,
            user_agent=get_user_agent(request),
            ip_address=get_client_ip(request),
        )
    except AuthenticationError as exc:
        error_response = app_error_response(exc)
        _clear_auth_cookies(error_response)
        return error_response

    _set_auth_cookies(response, pair.access_token, pair.refresh_token)

    return TokenRefreshResponse(
        message="Token refreshed",
        expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    )


@router.post("/logout", response_model=MessageResponse)
async def logout(
    response: Response,
    refresh_token: Annotated[str | None, Depends(get_refresh_token_from_cookie)],
    sessions: Sessions,
) -> MessageResponse:
    """
    Logout by revoking the current refresh token.

    The access token is not revocable and expires on its own.
    """
    await sessions.logout(refresh_token)
    _clear_auth_cookies(response)
    return MessageResponse(message="Successfully logged out")


@router.post("/logout-all", response_model=MessageResponse)
async def logout_all_devices(
    current_user: CurrentUser,
    response: Response,
    sessions: Sessions,
) -> MessageResponse:
    """Logout from all devices by revoking every refresh token of the user."""
    await sessions.logout_all(current_user.user_id)  # type: ignore[arg-type]
    _clear_auth_cookies(response)
    return MessageResponse(message="Successfully logged out from all devices")


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(current_user: CurrentUser) -> UserResponse:
    return UserResponse.model_validate(current_user)


@router.get("/sessions", response_model=SessionListResponse)
async def list_sessions(current_user: CurrentUser, sessions: Sessions) -> SessionListResponse:
    """List the live refresh tokens of the current user, newest first."""
    active = await sessions.get_active_sessions(current_user.user_id)  # type: ignore[arg-type]
    return SessionListResponse(sessions=[SessionResponse.model_validate(s) for s in active])


@router.post("/verify-email", response_model=UserResponse)
async def verify_email(body: VerifyEmailRequest, sessions: Sessions) -> UserResponse:
    """Verify user email with token from verification link."""
    return await sessions.verify_email(body.token)


@router.post("/forgot-password", response_model=MessageResponse)
async def forgot_password(
    body: ForgotPasswordRequest,
    request: Request,
    sessions: Sessions,
    redis_client: Annotated[redis.Redis, Depends(get_redis)],  # type: ignore[type-arg]
) -> MessageResponse:
    """
    Request a password reset token.

    Always answers the same way so callers cannot tell which emails exist.
    """
    await check_password_reset_rate_limit(get_client_ip(request), redis_client)
    message = await sessions.request_password_reset(body.email)
    return MessageResponse(message=message)


@router.post("/reset-password", response_model=MessageResponse)
async def reset_password(
    body: ResetPasswordRequest,
    request: Request,
    sessions: Sessions,
    redis_client: Annotated[redis.Redis, Depends(get_redis)],  # type: ignore[type-arg]
) -> MessageResponse:
    await check_password_reset_rate_limit(get_client_ip(request), redis_client)
    message = await sessions.reset_password(body.token, body.password)
    return MessageResponse(message=message)


@router.post("/change-password", response_model=MessageResponse)
async def change_password(
    request_data: PasswordChangeRequest,
    current_user: CurrentUser,
    response: Response,
    sessions: Sessions,
) -> MessageResponse:
    """
    Change user password and revoke all sessions (force re-login).

    Security flow:
    1. Verify current password
    2. Hash and store new password
    3. Revoke all refresh tokens (logout from all devices)
    """
    message = await sessions.change_password(
        current_user.user_id,  # type: ignore[arg-type]
        request_data.current_password,
        request_data.new_password,
    )
    _clear_auth_cookies(response)
    return MessageResponse(message=message)
