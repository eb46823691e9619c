"""Service test fixtures — async DB, memo repository and FastAPI test client.

Invariants:
    - Every test gets a fresh in-memory SQLite database
    - get_db dependency overridden to use test DB session
    - db_manager patched so the readiness check sees the test engine
    - Policy store reset to the built-in LendingPolicy per test

Design Decisions:
    - SQLite in-memory: fast, no external dependency, sufficient for route tests
      (PostgreSQL-specific features not exercised here)
    - ASGITransport skips lifespan: policy store and db_manager are set up here instead
"""

import pytest
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)
from httpx import ASGITransport, AsyncClient

from smartloan.api import dependencies
from smartloan.core.policy import LendingPolicy, PolicyStore
from smartloan.db.base import Base
from smartloan.infrastructure.database import get_db, DatabaseSessionManager
from smartloan.infrastructure.memo_repository import SqlMemoRepository
import smartloan.infrastructure.database as db_module
import smartloan.models  # noqa: F401  (registers tables on Base.metadata)
from smartloan.main import app


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", echo=False,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def test_session_factory(test_engine):
    return async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False,
    )


@pytest.fixture
async def test_db(test_session_factory):
    async with test_session_factory() as session:
        yield session


@pytest.fixture
def memo_repository(test_db):
    return SqlMemoRepository(test_db)


@pytest.fixture
def policy_store(monkeypatch):
    store = PolicyStore(LendingPolicy())
    monkeypatch.setattr(dependencies, "policy_store", store)
    return store


@pytest.fixture
async def client(test_engine, test_session_factory, policy_store):
    """FastAPI test client with DB dependency overridden."""
    async def override_get_db():
        async with test_session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db

    original_manager = db_module.db_manager
    fake_manager = DatabaseSessionManager.__new__(DatabaseSessionManager)
    fake_manager.engine = test_engine
    fake_manager._session_factory = test_session_factory
    db_module.db_manager = fake_manager

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
    db_module.db_manager = original_manager
