"""
Database Connection Module
Session handling for the ledger write path.

The engine is built on first use so that importing the analytics modules
never needs a database driver.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, AsyncIterator, Optional

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from ledgerlens.config import settings
from ledgerlens.database.base import Base

logger = logging.getLogger(__name__)

_engine: Optional[AsyncEngine] = None
_session_factory: Optional[async_sessionmaker[AsyncSession]] = None


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory with the settings every ledger session uses."""
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


def get_engine() -> AsyncEngine:
    """Engine for settings.database_url, created once."""
    global _engine, _session_factory
    if _engine is None:
        _engine = create_async_engine(settings.database_url, echo=False, pool_pre_ping=True)
        _session_factory = create_session_factory(_engine)
        logger.info("Created database engine for %s", _engine.url.render_as_string(hide_password=True))
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    get_engine()
    return _session_factory


@asynccontextmanager
async def session_scope(
    factory: Optional[async_sessionmaker[AsyncSession]] = None,
) -> AsyncIterator[AsyncSession]:
    """
    One unit of work: commit on success, roll back on any error.

    Usage:
        async with session_scope() as session:
            await TransactionService(session).create(org_id, payload)

    A rejected ledger write raises before anything is flushed, and the
    rollback discards whatever else the block added.
    """
    factory = factory or get_session_factory()
    async with factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency form of session_scope for a host FastAPI app.

    Usage:
        @app.post("/transactions")
        async def create(session: AsyncSession = Depends(get_async_session)):
            ...
    """
    async with session_scope() as session:
        yield session


async def init_db(engine: Optional[AsyncEngine] = None) -> None:
    """Create the ledger tables (tests and local development)."""
    engine = engine or get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    """Dispose of the engine; call on application shutdown."""
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
        _engine = None
        _session_factory = None
