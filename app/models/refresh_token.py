"""
SQLModel-based RefreshToken model for JWT authentication.

This module defines the RefreshTokens database table for managing refresh tokens
used in JWT-based authentication with token rotation.

Security features:
- Stores hashed tokens (not plaintext)
- Revocation is one-way: revoked_at is set once and never cleared
- replaced_by links a token revoked by rotation to its successor's hash
- User agent and IP tracking for security auditing
"""

from datetime import UTC, datetime

from sqlalchemy import ForeignKeyConstraint, Index, text
from sqlmodel import Field, SQLModel


class RefreshTokens(SQLModel, table=True):
    """
    Database table for refresh tokens.

    A row is LIVE while revoked_at is NULL and expires_at is in the future.
    Rows revoked by rotation carry replaced_by; rows revoked by logout,
    password change or reuse detection do not.
    """

    __tablename__ = "refresh_tokens"

    __table_args__ = (
        ForeignKeyConstraint(
            ["user_id"],
            ["users.user_id"],
            ondelete="CASCADE",
            onupdate="CASCADE",
            name="fk_refresh_tokens_user_id",
        ),
        Index("idx_refresh_tokens_user_id", "user_id"),
        Index("idx_refresh_tokens_token_hash", "token_hash", unique=True),
    )

    # Primary key
    id: int | None = Field(default=None, primary_key=True)

    # User reference
    user_id: int

    # Token (hashed for security - never store plaintext!)
    token_hash: str = Field(max_length=64)

    # Expiration
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC).replace(tzinfo=None),
        sa_column_kwargs={"server_default": text("CURRENT_TIMESTAMP")},
    )
    expires_at: datetime

    # Revocation
    revoked_at: datetime | None = Field(default=None)
    replaced_by: str | None = Field(default=None, max_length=64)

    # Security tracking
    ip_address: str | None = Field(default=None, max_length=45)  # Supports IPv6
    user_agent: str | None = Field(default=None, max_length=255)
