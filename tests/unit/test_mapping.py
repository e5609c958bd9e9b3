"""Unit tests for the external field mapping."""

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from dbdock.backend.mapping import (
    EXTERNAL_FIELDS,
    INTERNAL_FIELDS,
    container_from_external,
    container_from_record,
    container_to_external,
)
from dbdock.models.containers import Container, ContainerStatus
from dbdock.models.records import ContainerRecord


def test_every_internal_field_has_one_external_key():
    assert set(EXTERNAL_FIELDS) == set(Container.model_fields)
    assert len(set(EXTERNAL_FIELDS.values())) == len(EXTERNAL_FIELDS)
    assert set(INTERNAL_FIELDS.values()) == set(EXTERNAL_FIELDS)


def test_to_external_uses_snake_case_keys(make_container):
    container = make_container(database_name="orders", persist_data=True)

    data = container_to_external(container)

    assert data["db_type"] == "PostgreSQL"
    assert data["stored_username"] == "postgres"
    assert data["stored_database_name"] == "orders"
    assert data["stored_persist_data"] is True
    assert data["status"] == "running"
    assert "username" not in data


def test_from_external_ignores_unknown_keys():
    container = container_from_external(
        {
            "id": "db-1",
            "name": "cache",
            "db_type": "Redis",
            "version": "8",
            "status": "stopped",
            "port": 6379,
            "created_at": "2025-01-01T00:00:00+00:00",
            "stored_enable_auth": None,
            "image_digest": "sha256:abc",
        }
    )

    assert container.status == ContainerStatus.STOPPED
    assert container.enable_auth is True
    assert container.created_at == datetime(2025, 1, 1, tzinfo=timezone.utc)


def test_from_external_requires_core_fields():
    with pytest.raises(ValidationError):
        container_from_external({"id": "db-1"})


def test_external_shape_is_stable(make_container):
    container = make_container()

    assert container_from_external(container_to_external(container)) == container


def test_record_round_trip_attaches_utc():
    record = ContainerRecord(
        id="db-1",
        name="orders",
        db_type="PostgreSQL",
        version="17",
        status="running",
        port=5432,
        created_at=datetime(2025, 1, 1, 12, 0),
        max_connections=100,
        stored_username="postgres",
        stored_password="pw",
        stored_persist_data=True,
        stored_enable_auth=True,
        launch_args={},
    )

    container = container_from_record(record)

    assert container.created_at.utcoffset() == timedelta(0)
    assert container.username == "postgres"
    assert container.persist_data



def test_record_exposes_every_published_host_port():
    record = ContainerRecord(
        id="db-1",
        name="search",
        db_type="Elasticsearch",
        version="9.1.0",
        status="running",
        port=9200,
        created_at=datetime(2025, 1, 1, tzinfo=timezone.utc),
        max_connections=100,
        stored_persist_data=False,
        stored_enable_auth=True,
        launch_args={"ports": [{"host": 9200, "container": 9200}, {"host": 9300, "container": 9300}]},
    )

    container = container_from_record(record)

    assert container.host_ports == [9200, 9300]
    assert container.port == 9200
