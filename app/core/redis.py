from collections.abc import AsyncGenerator

import redis.asyncio as redis

from app.config import settings


async def get_redis() -> AsyncGenerator[redis.Redis, None]:  # type: ignore[type-arg]
    """
    Dependency yielding a Redis client for rate limit counters.

    Connection errors surface on first command, where the rate limiter
    catches them.
    """
    client = redis.from_url(settings.REDIS_URL, decode_responses=True)
    try:
        yield client
    finally:
        await client.aclose()
