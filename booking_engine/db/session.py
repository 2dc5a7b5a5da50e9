"""
Async engine and session factory construction.

Each engine operation opens its own session from the factory, so sessions
are never shared between concurrent callers.
"""

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from booking_engine.core.config import Settings
from booking_engine.db.base import Base


def build_engine(settings: Settings) -> AsyncEngine:
    """Create the async engine; pool tuning applies to server databases only."""
    kwargs = {"echo": settings.DB_ECHO, "pool_pre_ping": True}
    if not settings.DATABASE_URL.startswith("sqlite"):
        kwargs.update(
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_MAX_OVERFLOW,
            pool_timeout=settings.DB_POOL_TIMEOUT,
            pool_recycle=settings.DB_POOL_RECYCLE,
        )
    return create_async_engine(settings.DATABASE_URL, **kwargs)


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,  # Returned entities stay readable after commit
        autoflush=False,
    )


async def create_schema(engine: AsyncEngine) -> None:
    """
    Create all tables.
    Development and test helper only; schema migration is managed outside the engine.
    """
    # Import models so they register with Base
    from booking_engine import models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def drop_schema(engine: AsyncEngine) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
