"""Refresh token maintenance jobs for arq worker."""

from typing import Any

from app.core.database import get_async_session
from app.core.logging import bind_context, get_logger
from app.services.token_ledger import RefreshTokenLedger

logger = get_logger(__name__)


async def prune_refresh_tokens_job(ctx: dict[str, Any]) -> int:
    """
    Delete refresh tokens past their expiry, revoked or not.

    Returns:
        Number of deleted rows
    """
    bind_context(task="prune_refresh_tokens")

    async with get_async_session() as db:
        deleted = await RefreshTokenLedger(db).delete_expired()

    logger.info("refresh_tokens_pruned", deleted_count=deleted)
    return deleted
