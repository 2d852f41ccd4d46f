import os
from typing import AsyncGenerator

# Test defaults MUST be in place before libs read settings at import time
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("ENVIRONMENT", "local")
os.environ.setdefault("PAYMENT_SIMULATION_DELAY_SECONDS", "0")
os.environ["RATE_LIMIT_ENABLED"] = "false"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from libs.db.base import Base
from services.storefront_service import models as _storefront_models  # noqa: F401

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture
async def test_engine():
    """
    A fresh in-memory database per test.

    StaticPool keeps the single connection alive so every session sees the
    same database.
    """
    engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    @event.listens_for(engine.sync_engine, "connect")
    def _enable_foreign_keys(dbapi_connection, _record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Yield a session configured like the application's."""
    session_factory = async_sessionmaker(
        bind=test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
    async with session_factory() as session:
        yield session


@pytest.fixture
def fake_identity():
    from tests.factories import FakeIdentityProvider

    return FakeIdentityProvider()


@pytest.fixture
def fake_storage():
    from tests.factories import FakeStorage

    return FakeStorage()


@pytest_asyncio.fixture
async def client(db_session, fake_identity, fake_storage) -> AsyncGenerator[AsyncClient, None]:
    """
    Yield an AsyncClient for the storefront app with the DB and external
    services overridden.
    """
    from libs.auth.identity import get_identity_provider
    from libs.db.session import get_async_db
    from services.storefront_service.app.main import app
    from services.storefront_service.storage import get_storage_service

    app.dependency_overrides[get_async_db] = lambda: db_session
    app.dependency_overrides[get_identity_provider] = lambda: fake_identity
    app.dependency_overrides[get_storage_service] = lambda: fake_storage

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as ac:
        yield ac

    app.dependency_overrides.clear()
