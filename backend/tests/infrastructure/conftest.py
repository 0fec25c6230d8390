"""Infrastructure fixtures — SqlDirectoryStore over in-memory SQLite."""

import pytest
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)
from sqlalchemy.pool import StaticPool

from app.db.base import Base
from app.infrastructure.directory_store import SqlDirectoryStore
import app.models  # noqa: F401  (register tables on Base.metadata)


@pytest.fixture
async def session_factory():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


@pytest.fixture
async def sql_store(session_factory):
    async with session_factory() as session:
        yield SqlDirectoryStore(session)
