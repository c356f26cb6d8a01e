"""
Async engine and sessions for the users and refresh_tokens tables.
"""

from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.config import settings

engine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DB_ECHO,
    pool_size=settings.DB_POOL_SIZE,
    max_overflow=settings.DB_MAX_OVERFLOW,
    pool_pre_ping=True,
    pool_recycle=3600,  # below MariaDB wait_timeout
)

# expire_on_commit=False: stores commit per write and hand rows back to callers
AsyncSessionLocal = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Request-scoped session; rolls back if the handler raised mid-write."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


def get_async_session() -> AsyncSession:
    """Standalone session for arq jobs, used as ``async with get_async_session() as db``."""
    return AsyncSessionLocal()
