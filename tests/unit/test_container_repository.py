"""Unit tests for ContainerRecordRepository."""

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest
from sqlalchemy.exc import IntegrityError

from dbdock.models.records import ContainerRecord
from dbdock.repositories.containers import ContainerRecordRepository

BASE_TIME = datetime(2025, 1, 1, tzinfo=timezone.utc)


def _record(**overrides) -> ContainerRecord:
    values = {
        "id": str(uuid4()),
        "name": f"db-{uuid4().hex[:8]}",
        "db_type": "PostgreSQL",
        "version": "17",
        "status": "running",
        "port": 5432,
        "created_at": BASE_TIME,
        "container_id": f"docker_{uuid4().hex}",
        "stored_username": "postgres",
        "stored_password": "pw1234",
        "stored_persist_data": True,
        "launch_args": {"image": "postgres:17"},
    }
    values.update(overrides)
    return ContainerRecord(**values)


@pytest.mark.asyncio
async def test_create_record(db_session):
    """Test creating a record fills column defaults."""
    repo = ContainerRecordRepository(db_session)

    created = await repo.create(_record(name="orders-db"))

    assert created.name == "orders-db"
    assert created.max_connections == 100
    assert created.stored_enable_auth is True
    assert created.launch_args == {"image": "postgres:17"}


@pytest.mark.asyncio
async def test_get_record_by_id(db_session):
    """Test getting a record by id."""
    repo = ContainerRecordRepository(db_session)
    record = await repo.create(_record())

    retrieved = await repo.get(record.id)

    assert retrieved is not None
    assert retrieved.id == record.id
    assert await repo.get("missing") is None


@pytest.mark.asyncio
async def test_get_record_by_name(db_session):
    """Test getting a record by database name."""
    repo = ContainerRecordRepository(db_session)
    record = await repo.create(_record(name="cache"))

    assert (await repo.get_by_name("cache")).id == record.id
    assert await repo.get_by_name("nope") is None


@pytest.mark.asyncio
async def test_names_are_unique(db_session):
    """Test that two records cannot share a name."""
    repo = ContainerRecordRepository(db_session)
    await repo.create(_record(name="orders-db"))

    with pytest.raises(IntegrityError):
        await repo.create(_record(name="orders-db", port=5433))


@pytest.mark.asyncio
async def test_list_ordered_by_creation(db_session):
    """Test that records are listed oldest first, ties broken by id."""
    repo = ContainerRecordRepository(db_session)
    await repo.create(_record(id="c", created_at=BASE_TIME + timedelta(minutes=5)))
    await repo.create(_record(id="b", created_at=BASE_TIME))
    await repo.create(_record(id="a", created_at=BASE_TIME))

    records = await repo.list_ordered()

    assert [r.id for r in records] == ["a", "b", "c"]


@pytest.mark.asyncio
async def test_update_runtime_state_reports_changes(db_session):
    """Test that only actual changes are reported."""
    repo = ContainerRecordRepository(db_session)
    record = await repo.create(_record(status="running", container_id="docker-1"))

    assert not await repo.update_runtime_state(record, "running", "docker-1")
    assert await repo.update_runtime_state(record, "stopped", None)

    reloaded = await repo.get(record.id)
    assert reloaded.status == "stopped"
    assert reloaded.container_id is None


@pytest.mark.asyncio
async def test_delete_by_id(db_session):
    """Test deleting a record by id."""
    repo = ContainerRecordRepository(db_session)
    record = await repo.create(_record())

    assert await repo.delete_by_id(record.id)
    assert await repo.get(record.id) is None
    assert not await repo.delete_by_id(record.id)


@pytest.mark.asyncio
async def test_update_flushes_changes(db_session):
    """Test updating an attached record."""
    repo = ContainerRecordRepository(db_session)
    record = await repo.create(_record(port=5432))

    record.port = 6543
    record.launch_args = {"image": "postgres:16"}
    updated = await repo.update(record)

    assert updated.port == 6543
    assert updated.launch_args == {"image": "postgres:16"}
