"""
Async engine, session factory and the request-scoped session dependency.

Two ways to get a session:
  - get_db: one session per request, committed when the handler returns and
    rolled back if it raises. Used by plain reads and single-row writes.
  - get_session_factory: the factory itself, for code that must own its
    transactional scope (the booking engine opens and commits its own).

Tests override get_session_factory only; get_db builds on top of it.
"""

from typing import AsyncGenerator

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from railbook.core.config import get_settings
from railbook.core.logging import get_logger
from railbook.db.base import Base

logger = get_logger(__name__)
settings = get_settings()

engine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    pool_size=settings.DB_POOL_SIZE,
    max_overflow=settings.DB_MAX_OVERFLOW,
    pool_timeout=settings.DB_POOL_TIMEOUT,
    pool_recycle=settings.DB_POOL_RECYCLE,
    pool_pre_ping=True,
)

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    return AsyncSessionLocal


async def get_db(
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def create_db_and_tables() -> None:
    """Create tables directly from metadata. Alembic is the normal path."""
    import railbook.models  # noqa: F401 - register mappers on Base.metadata

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("database_tables_ensured")


async def close_engine() -> None:
    await engine.dispose()
