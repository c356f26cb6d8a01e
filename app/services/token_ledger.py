"""
Refresh token ledger.

Persists refresh token records keyed by the SHA256 hash of the raw token.
Revocation is a single conditional UPDATE (``revoked_at IS NULL`` in the
WHERE clause), so of several concurrent callers presenting the same token at
most one observes a successful revoke.
"""

from datetime import UTC, datetime

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.refresh_token import RefreshTokens


def _now() -> datetime:
    # MariaDB DATETIME is timezone-naive, so all ledger timestamps are naive UTC
    return datetime.now(UTC).replace(tzinfo=None)


class RefreshTokenLedger:
    """Data access for the refresh_tokens table."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(
        self,
        *,
        token_hash: str,
        user_id: int,
        user_agent: str | None,
        ip_address: str | None,
        expires_at: datetime,
    ) -> RefreshTokens:
        record = RefreshTokens(
            token_hash=token_hash,
            user_id=user_id,
            user_agent=user_agent[:255] if user_agent else None,
            ip_address=ip_address,
            expires_at=expires_at,
        )
        self.db.add(record)
        await self.db.commit()
        await self.db.refresh(record)
        return record

    async def find_by_hash(self, token_hash: str) -> RefreshTokens | None:
        result = await self.db.execute(
            select(RefreshTokens)
            .where(RefreshTokens.token_hash == token_hash)  # type: ignore[arg-type]
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def revoke(self, token_hash: str, replaced_by: str | None = None) -> bool:
        """
        Revoke a token if it is still unrevoked.

        Args:
            token_hash: Hash of the token to revoke
            replaced_by: Hash of the successor when revoked by rotation

        Returns:
            True if this call performed the revocation, False if the token was
            unknown or already revoked
        """
        result = await self.db.execute(
            update(RefreshTokens)
            .where(
                RefreshTokens.token_hash == token_hash,  # type: ignore[arg-type]
                RefreshTokens.revoked_at.is_(None),  # type: ignore[union-attr]
            )
            .values(revoked_at=_now(), replaced_by=replaced_by)
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()
        return result.rowcount == 1

    async def revoke_all_for_user(self, user_id: int) -> int:
        """Revoke every unrevoked token of a user; returns the number revoked."""
        result = await self.db.execute(
            update(RefreshTokens)
            .where(
                RefreshTokens.user_id == user_id,  # type: ignore[arg-type]
                RefreshTokens.revoked_at.is_(None),  # type: ignore[union-attr]
            )
            .values(revoked_at=_now())
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()
        return result.rowcount

    async def delete_expired(self) -> int:
        """
        Maintenance sweep: drop tokens past their expiry.

        Revoked rows stay until they expire so a replayed rotated token is
        still recognised as reuse.
        """
        result = await self.db.execute(
            delete(RefreshTokens)
            .where(RefreshTokens.expires_at < _now())  # type: ignore[arg-type]
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()
        return result.rowcount

    async def get_active_sessions(self, user_id: int) -> list[RefreshTokens]:
        """Live tokens of a user, newest first."""
        result = await self.db.execute(
            select(RefreshTokens)
            .where(
                RefreshTokens.user_id == user_id,  # type: ignore[arg-type]
                RefreshTokens.revoked_at.is_(None),  # type: ignore[union-attr]
                RefreshTokens.expires_at > _now(),  # type: ignore[arg-type]
            )
            .order_by(RefreshTokens.created_at.desc(), RefreshTokens.id.desc())  # type: ignore[attr-defined, union-attr]
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())
