"""
User schemas for API responses and moderation requests.
"""

from pydantic import BaseModel, Field

from app.core.permissions import Role
from app.models.user import UserBase
from app.schemas.base import UTCDatetime, UTCDatetimeOptional


class UserResponse(UserBase):
    """
    Safe user representation.

    Never includes the password hash, one-time tokens or lockout state.
    """

    # Allow Pydantic to read from SQLAlchemy model attributes (not just dicts)
    model_config = {"from_attributes": True}

    user_id: int
    email: str
    email_verified: bool
    date_joined: UTCDatetime
    last_login: UTCDatetimeOptional = None


class ChangeRoleRequest(BaseModel):
    """Request schema for changing a user's role."""

    role: Role


class ModerationRequest(BaseModel):
    """Request schema for suspend/ban actions."""

    reason: str | None = Field(default=None, max_length=500)


class StatusChangeResponse(BaseModel):
    user: UserResponse
    message: str


__all__ = [
    "ChangeRoleRequest",
    "ModerationRequest",
    "StatusChangeResponse",
    "UserResponse",
]
