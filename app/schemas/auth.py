"""
Authentication schemas for request/response validation.

Request bodies only bound their sizes here; format and password strength rules
are enforced by the session manager so every caller gets the same errors.
"""

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.base import UTCDatetime
from app.schemas.user import UserResponse


class RegisterRequest(BaseModel):
    """Request schema for user registration."""

    email: str = Field(..., max_length=320)
    username: str = Field(..., max_length=64)
    password: str = Field(..., max_length=1024)
    display_name: str | None = Field(default=None, max_length=50)


class LoginRequest(BaseModel):
    """Request schema for user login."""

    email: str = Field(..., max_length=320)
    password: str = Field(..., max_length=1024)


class PasswordChangeRequest(BaseModel):
    """Request schema for password change."""

    current_password: str = Field(..., max_length=1024)
    new_password: str = Field(..., max_length=1024)


class ForgotPasswordRequest(BaseModel):
    email: str = Field(..., max_length=320)


class ResetPasswordRequest(BaseModel):
    """Request schema for password reset with token."""

    token: str = Field(..., min_length=1, max_length=256)
    password: str = Field(..., max_length=1024)


class VerifyEmailRequest(BaseModel):
    token: str = Field(..., min_length=1, max_length=256)


class MessageResponse(BaseModel):
    """Generic message response."""

    message: str


class RegistrationResult(BaseModel):
    """Outcome of a registration: the created user, no session tokens."""

    user: UserResponse
    message: str


class TokenPair(BaseModel):
    """Access token plus the raw refresh token (only ever returned once)."""

    access_token: str
    refresh_token: str


class LoginResult(TokenPair):
    user: UserResponse


class LoginResponse(BaseModel):
    """
    Response schema for login.

    Tokens travel in HttpOnly cookies, not in the body.
    """

    user: UserResponse
    message: str
    expires_in: int = Field(..., description="Access token expiration time in seconds from now")


class SessionResponse(BaseModel):
    """One live refresh token, as shown in an "active sessions" list."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    user_agent: str | None
    ip_address: str | None
    created_at: UTCDatetime
    expires_at: UTCDatetime


class SessionListResponse(BaseModel):
    sessions: list[SessionResponse]


class TokenRefreshResponse(BaseModel):
    """Response schema for token refresh; the rotated tokens travel in cookies."""

    message: str
    expires_in: int = Field(..., description="Access token expiration time in seconds from now")
