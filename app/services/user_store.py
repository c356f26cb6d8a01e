"""
Credential store: persistence for user identity records.

Wraps an injected AsyncSession. Lookups by email and username are
case-insensitive because both are stored lowercased. Every write commits so
security-relevant mutations survive even when the caller goes on to raise.
"""

from datetime import UTC, datetime
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import ConflictError
from app.models.user import Users


class UserStore:
    """Data access for the users table."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _first(self, *criteria: Any) -> Users | None:
        result = await self.db.execute(
            select(Users).where(*criteria).execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def find_by_id(self, user_id: int) -> Users | None:
        return await self._first(Users.user_id == user_id)

    async def find_by_email(self, email: str | None) -> Users | None:
        if not email:
            return None
        return await self._first(Users.email == email.strip().lower())

    async def find_by_username(self, username: str | None) -> Users | None:
        if not username:
            return None
        return await self._first(Users.username == username.strip().lower())

    async def email_exists(self, email: str) -> bool:
        result = await self.db.execute(
            select(Users.user_id).where(Users.email == email.strip().lower())
        )
        return result.first() is not None

    async def username_exists(self, username: str) -> bool:
        result = await self.db.execute(
            select(Users.user_id).where(Users.username == username.strip().lower())
        )
        return result.first() is not None

    async def create(
        self,
        *,
        email: str,
        username: str,
        password_hash: str,
        display_name: str,
        verify_token: str | None,
    ) -> Users:
        """
        Insert a new user in PENDING_VERIFICATION.

        Raises:
            ConflictError: If a concurrent registration took the email or username
        """
        user = Users(
            email=email.strip().lower(),
            username=username.strip().lower(),
            password_hash=password_hash,
            display_name=display_name,
            verify_token=verify_token,
        )
        self.db.add(user)
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            raise ConflictError("Email or username is already registered") from e
        await self.db.refresh(user)
        return user

    async def update(self, user_id: int, **fields: Any) -> Users | None:
        """Apply a partial update and return the fresh row (None if missing)."""
        user = await self.find_by_id(user_id)
        if user is None:
            return None
        for key, value in fields.items():
            setattr(user, key, value)
        user.updated_at = datetime.now(UTC).replace(tzinfo=None)
        await self.db.commit()
        await self.db.refresh(user)
        return user

    async def increment_failed_logins(self, user_id: int) -> int:
        """
        Atomically increment the failed login counter and return the new value.

        The UPDATE takes the row lock, so the read in the same transaction
        sees this increment together with every concurrent one committed before it.
        """
        await self.db.execute(
            update(Users)
            .where(Users.user_id == user_id)
            .values(failed_login_attempts=Users.failed_login_attempts + 1)
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(
            select(Users.failed_login_attempts).where(Users.user_id == user_id)
        )
        count = result.scalar_one()
        await self.db.commit()
        return int(count)

    async def lock(self, user_id: int, until: datetime) -> None:
        await self.db.execute(
            update(Users)
            .where(Users.user_id == user_id)
            .values(lockout_until=until)
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()

    async def record_login(self, user_id: int, ip_address: str | None) -> Users | None:
        """Reset lockout state, stamp the login time and address, return the fresh row."""
        await self.db.execute(
            update(Users)
            .where(Users.user_id == user_id)
            .values(
                failed_login_attempts=0,
                lockout_until=None,
                last_login=datetime.now(UTC).replace(tzinfo=None),
                last_login_ip=ip_address,
            )
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()
        return await self.find_by_id(user_id)

    async def find_by_verify_token(self, token: str) -> Users | None:
        return await self._first(Users.verify_token == token)

    async def find_by_reset_token(self, token: str) -> Users | None:
        """Match an unexpired password reset token."""
        now = datetime.now(UTC).replace(tzinfo=None)
        return await self._first(
            Users.reset_token == token,
            Users.reset_token_expires_at > now,  # type: ignore[operator]
        )
