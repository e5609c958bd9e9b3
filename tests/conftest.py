"""Test configuration and fixtures."""

from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator, Callable

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from dbdock.config import Settings
from dbdock.models.base import Base
from dbdock.models.containers import Container, ContainerStatus
from dbdock.models.database import DatabaseManager

BASE_TIME = datetime(2025, 1, 1, tzinfo=timezone.utc)


@pytest.fixture
async def test_db_engine():
    """Create test database engine."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
async def db_session(test_db_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create test database session."""
    async_session = async_sessionmaker(test_db_engine, class_=AsyncSession, expire_on_commit=False)

    async with async_session() as session:
        yield session
        await session.rollback()


@pytest.fixture
async def db_manager(tmp_path) -> AsyncGenerator[DatabaseManager, None]:
    """Metadata store backed by a temporary SQLite file."""
    manager = DatabaseManager(str(tmp_path / "state.db"))
    await manager.create_tables()
    yield manager
    await manager.close()


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Settings isolated from the environment."""
    return Settings(
        state_db=str(tmp_path / "state.db"),
        sync_interval_s=5.0,
        availability_interval_s=30.0,
        availability_retry_s=10.0,
        stop_timeout_s=3,
    )


@pytest.fixture
def make_container() -> Callable[..., Container]:
    """Factory for Container entities with sensible defaults."""
    counter = {"n": 0}

    def factory(**overrides) -> Container:
        counter["n"] += 1
        n = counter["n"]
        values = {
            "id": f"db-{n}",
            "name": f"database-{n}",
            "db_type": "PostgreSQL",
            "version": "17",
            "status": ContainerStatus.RUNNING,
            "port": 5432 + n,
            "created_at": BASE_TIME + timedelta(minutes=n),
            "username": "postgres",
            "password": "secret123",
        }
        values.update(overrides)
        return Container(**values)

    return factory
