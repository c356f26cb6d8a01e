"""
SQLModel-based User models with inheritance for security

UserBase (shared public fields)
    ├─> Users (database table, adds internal/sensitive fields)
    └─> UserResponse (API schema, defined in app/schemas)

Email and username are stored lowercased so uniqueness is case-insensitive.
"""

from datetime import UTC, datetime

from sqlalchemy import Index, text
from sqlmodel import Field, SQLModel

from app.config import UserStatus
from app.core.permissions import Role


class UserBase(SQLModel):
    """
    Base model with shared public fields for Users.

    These fields are safe to expose via the API.
    """

    username: str = Field(max_length=30)
    display_name: str = Field(max_length=50)
    role: str = Field(default=Role.USER.value, max_length=16)
    status: str = Field(default=UserStatus.PENDING_VERIFICATION.value, max_length=32)


class Users(UserBase, table=True):
    """
    Database table for users with internal and sensitive fields.

    Internal/sensitive fields (should NOT be exposed via public API):
    - password_hash: Authentication (highly sensitive)
    - verify_token, reset_token: Security-sensitive one-time tokens
    - failed_login_attempts, lockout_until: Brute-force protection state
    - last_login_ip: Privacy-sensitive
    """

    __tablename__ = "users"

    __table_args__ = (
        Index("idx_users_email", "email", unique=True),
        Index("idx_users_username", "username", unique=True),
        Index("idx_users_verify_token", "verify_token"),
        Index("idx_users_reset_token", "reset_token"),
    )

    # Primary key
    user_id: int | None = Field(default=None, primary_key=True)

    # Contact info (privacy-sensitive)
    email: str = Field(max_length=255)
    email_verified: bool = Field(default=False)

    # Authentication (highly sensitive - never expose)
    password_hash: str = Field(max_length=255)
    verify_token: str | None = Field(default=None, max_length=64)
    reset_token: str | None = Field(default=None, max_length=64)
    reset_token_expires_at: datetime | None = Field(default=None)

    # Account lockout (security)
    failed_login_attempts: int = Field(default=0)
    lockout_until: datetime | None = Field(default=None)

    # Timestamps
    date_joined: datetime = Field(
        default_factory=lambda: datetime.now(UTC).replace(tzinfo=None),
        sa_column_kwargs={"server_default": text("CURRENT_TIMESTAMP")},
    )
    updated_at: datetime | None = Field(default=None)
    last_login: datetime | None = Field(default=None)
    last_login_ip: str | None = Field(default=None, max_length=45)  # Supports IPv6
