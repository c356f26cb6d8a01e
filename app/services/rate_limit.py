"""Rate limiting service using Redis."""

from datetime import timedelta

import redis.asyncio as redis

from app.config import settings
from app.core.errors import RateLimitError
from app.core.logging import get_logger

logger = get_logger(__name__)


async def _check_fixed_window(
    redis_client: redis.Redis,  # type: ignore[type-arg]
    key: str,
    limit: int,
    window_minutes: int,
    message: str,
    **log_context: object,
) -> None:
    """
    Count one attempt against a fixed window and raise once the limit is hit.

    Gracefully degrades if Redis is unavailable (allows the request).
    """
    try:
        # Get current count
        count_bytes = await redis_client.get(key)
        count = int(count_bytes) if count_bytes else 0

        if count >= limit:
            logger.warning(
                "rate_limit_exceeded", key=key, count=count, limit=limit, **log_context
            )
            raise RateLimitError(message, retry_after=window_minutes * 60)

        # Increment counter with expiration
        pipe = redis_client.pipeline()
        pipe.incr(key)
        if count == 0:
            # First attempt in this window - set expiration
            pipe.expire(key, timedelta(minutes=window_minutes))
        await pipe.execute()

        logger.debug("rate_limit_check", key=key, count=count + 1, limit=limit)
    except RateLimitError:
        raise
    except Exception:
        logger.warning("rate_limit_redis_error", key=key, exc_info=True, **log_context)


async def check_auth_rate_limit(ip_address: str, redis_client: redis.Redis) -> None:  # type: ignore[type-arg]
    """
    Enforce the login/registration rate limit per IP address.

    Limit: AUTH_RATE_LIMIT attempts per IP per AUTH_RATE_WINDOW_MINUTES.

    Raises:
        RateLimitError: 429 if rate limit exceeded
    """
    await _check_fixed_window(
        redis_client,
        f"auth_rate:{ip_address}",
        settings.AUTH_RATE_LIMIT,
        settings.AUTH_RATE_WINDOW_MINUTES,
        "Too many authentication attempts. Please try again later.",
        ip_address=ip_address,
    )


async def check_password_reset_rate_limit(ip_address: str, redis_client: redis.Redis) -> None:  # type: ignore[type-arg]
    """
    Enforce the password reset rate limit per IP address.

    Raises:
        RateLimitError: 429 if rate limit exceeded
    """
    await _check_fixed_window(
        redis_client,
        f"password_reset_rate:{ip_address}",
        settings.PASSWORD_RESET_RATE_LIMIT,
        settings.PASSWORD_RESET_RATE_WINDOW_MINUTES,
        "Too many password reset requests. Please try again later.",
        ip_address=ip_address,
    )
