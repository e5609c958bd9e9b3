"""Two-way mapping between the internal Container and its external shape.

The external shape uses snake_case keys and prefixes the values echoed from
creation with ``stored_``. Every internal field has exactly one external key;
unknown external keys are ignored.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Mapping

from dbdock.models.containers import Container
from dbdock.models.records import ContainerRecord

# Internal attribute -> external key
EXTERNAL_FIELDS: Dict[str, str] = {
    "id": "id",
    "name": "name",
    "db_type": "db_type",
    "version": "version",
    "status": "status",
    "port": "port",
    "host_ports": "host_ports",
    "created_at": "created_at",
    "max_connections": "max_connections",
    "container_id": "container_id",
    "username": "stored_username",
    "password": "stored_password",
    "database_name": "stored_database_name",
    "persist_data": "stored_persist_data",
    "enable_auth": "stored_enable_auth",
}

INTERNAL_FIELDS: Dict[str, str] = {external: internal for internal, external in EXTERNAL_FIELDS.items()}


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes even for timezone-aware columns
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def container_to_external(container: Container) -> Dict[str, Any]:
    """
    Render a container with external keys.

    Args:
        container: Internal container

    Returns:
        JSON-compatible dictionary
    """
    data = container.model_dump(mode="json")
    return {EXTERNAL_FIELDS[name]: value for name, value in data.items() if name in EXTERNAL_FIELDS}


def container_from_external(data: Mapping[str, Any]) -> Container:
    """
    Build a container from external keys, ignoring keys it does not know.

    Args:
        data: External representation

    Returns:
        Internal container

    Raises:
        pydantic.ValidationError: If a required field is missing or malformed
    """
    values = {INTERNAL_FIELDS[key]: value for key, value in data.items() if key in INTERNAL_FIELDS}
    if values.get("max_connections") is None:
        values.pop("max_connections", None)
    if values.get("enable_auth") is None:
        values.pop("enable_auth", None)
    if values.get("persist_data") is None:
        values.pop("persist_data", None)
    return Container.model_validate(values)


def record_to_external(record: ContainerRecord) -> Dict[str, Any]:
    """Read the externally named columns of a record."""
    data: Dict[str, Any] = {key: getattr(record, key) for key in INTERNAL_FIELDS}
    if isinstance(data["created_at"], datetime):
        data["created_at"] = _as_utc(data["created_at"])
    return data


def container_from_record(record: ContainerRecord) -> Container:
    return container_from_external(record_to_external(record))
