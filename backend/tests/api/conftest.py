"""API test fixtures — async DB, Event Bus on app.state, FastAPI test client.

Invariants:
    - Every test gets a fresh in-memory SQLite database
    - get_db dependency overridden to use the test DB session factory
    - db_manager patched for code that reaches it directly (readiness check)
    - app.state.event_bus set per test (ASGITransport does not run lifespan)

Design Decisions:
    - StaticPool: every session shares the one in-memory connection, so rows
      committed through the API are visible to fresh assertion sessions
    - register/make_admin exposed as fixtures returning coroutines
"""

from uuid import UUID

import pytest
from sqlalchemy import update
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)
from sqlalchemy.pool import StaticPool
from httpx import ASGITransport, AsyncClient

from app.db.base import Base
from app.infrastructure.database import get_db, DatabaseSessionManager
from app.infrastructure.event_bus import EventBus
from app.models.user import User
import app.infrastructure.database as db_module
from app.main import app


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", echo=False, poolclass=StaticPool,
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
def event_bus():
    return EventBus(queue_size=50)


@pytest.fixture
async def client(test_engine, test_session_factory, event_bus):
    """FastAPI test client with DB dependency overridden."""
    async def override_get_db():
        async with test_session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.state.event_bus = event_bus

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
    del app.state.event_bus
    db_module.db_manager = original_manager


@pytest.fixture
def register(client):
    """Register an account; returns the parsed response body."""
    async def _register(email: str, name: str = "User", password: str = "secret1"):
        res = await client.post("/api/v1/auth/register", json={
            "name": name, "email": email, "password": password,
        })
        assert res.status_code == 201, res.text
        return res.json()
    return _register


@pytest.fixture
def make_admin(test_session_factory):
    async def _make_admin(user_id: str):
        async with test_session_factory() as session:
            await session.execute(
                update(User).where(User.id == UUID(user_id)).values(role="ADMIN"),
            )
            await session.commit()
    return _make_admin
