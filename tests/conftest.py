"""Shared fixtures: in-memory SQLite for the ledger write path and a fake report fetcher."""

import uuid

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine

from ledgerlens.database import Base, create_session_factory, init_db
from ledgerlens.models import LedgerEntry, Transaction  # noqa: F401

from report_factory import FakeReportFetcher


# ──────────── in-memory database ────────────

TEST_DB_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture
async def db_engine():
    """Fresh schema per test; dropped and disposed afterwards."""
    engine = create_async_engine(TEST_DB_URL, echo=False)
    await init_db(engine)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return create_session_factory(db_engine)


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def organization_id() -> uuid.UUID:
    return uuid.uuid4()


# ──────────── report fetching ────────────

@pytest.fixture
def fake_fetcher() -> FakeReportFetcher:
    return FakeReportFetcher()
