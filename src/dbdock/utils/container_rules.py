"""Pure rules over the local container list.

Conflict checks run against the list the sync engine holds, before anything
is sent to Docker. Edit flows pass ``exclude_id`` so a database never
conflicts with itself.
"""

import secrets
import string
from collections import Counter
from typing import Dict, Iterable, List, Literal, Optional, Sequence

from dbdock.models.containers import Container
from dbdock.providers.base import MAX_HOST_PORT
from dbdock.utils.exceptions import ConflictError

PASSWORD_SYMBOLS = "!@#$%^&*"
PASSWORD_CHARSET = string.ascii_letters + string.digits + PASSWORD_SYMBOLS

SortKey = Literal["name", "type", "status", "created_at"]
SortOrder = Literal["asc", "desc"]


def find_port_owner(
    port: int, containers: Iterable[Container], exclude_id: Optional[str] = None
) -> Optional[Container]:
    for container in containers:
        if container.id != exclude_id and (container.port == port or port in container.host_ports):
            return container
    return None


def is_port_available(
    port: int, containers: Iterable[Container], exclude_id: Optional[str] = None
) -> bool:
    """
    Check that no other tracked database publishes ``port``.

    Args:
        port: Host port
        containers: Current local list
        exclude_id: Database id to ignore (the one being edited)

    Returns:
        True if the port is free
    """
    return find_port_owner(port, containers, exclude_id) is None


def is_name_available(
    name: str, containers: Iterable[Container], exclude_id: Optional[str] = None
) -> bool:
    return not any(c.name == name and c.id != exclude_id for c in containers)


def check_conflicts(
    name: str,
    host_ports: Sequence[int],
    containers: Sequence[Container],
    exclude_id: Optional[str] = None,
) -> None:
    """
    Raise on the first name or port clash with another tracked database.

    Args:
        name: Requested container name
        host_ports: Every host port the launch descriptor publishes
        containers: Current local list
        exclude_id: Database id to ignore (the one being edited)

    Raises:
        ConflictError: If the name or any port is already taken
    """
    if not is_name_available(name, containers, exclude_id):
        raise ConflictError("name", name)
    for port in host_ports:
        owner = find_port_owner(port, containers, exclude_id)
        if owner is not None:
            raise ConflictError("port", port, owner.name)


def generate_unique_name(db_type: str, containers: Sequence[Container]) -> str:
    """
    Suggest ``<db_type>``, then ``<db_type>-1``, ``<db_type>-2`` ... until free.

    Args:
        db_type: Provider id
        containers: Current local list

    Returns:
        First available name
    """
    base = db_type.lower()
    name = base
    counter = 1
    while not is_name_available(name, containers):
        name = f"{base}-{counter}"
        counter += 1
    return name


def find_available_port(default_port: int, containers: Sequence[Container]) -> int:
    """
    First port from ``default_port`` upwards that no tracked database publishes.

    Raises:
        ConflictError: If every port up to 65535 is taken
    """
    for port in range(default_port, MAX_HOST_PORT + 1):
        if is_port_available(port, containers):
            return port
    raise ConflictError("port", default_port)


def generate_secure_password(length: int = 16) -> str:
    """
    Generate a random password from letters, digits and symbols.

    Passwords of four characters or more contain every character class, so
    they also satisfy engines with complexity rules.

    Args:
        length: Number of characters

    Returns:
        Random password
    """
    classes = (string.ascii_lowercase, string.ascii_uppercase, string.digits, PASSWORD_SYMBOLS)
    while True:
        password = "".join(secrets.choice(PASSWORD_CHARSET) for _ in range(length))
        if length < len(classes) or all(any(c in cls for c in password) for cls in classes):
            return password


def filter_containers(containers: Sequence[Container], query: str) -> List[Container]:
    """Case-insensitive match on name, engine or status; a blank query keeps all."""
    needle = query.strip().lower()
    if not needle:
        return list(containers)
    return [
        c
        for c in containers
        if needle in c.name.lower() or needle in c.db_type.lower() or needle in c.status.value
    ]


def sort_containers(
    containers: Sequence[Container], sort_by: SortKey, order: SortOrder = "asc"
) -> List[Container]:
    keys = {
        "name": lambda c: c.name.lower(),
        "type": lambda c: c.db_type.lower(),
        "status": lambda c: c.status.value,
        "created_at": lambda c: c.created_at,
    }
    return sorted(containers, key=keys[sort_by], reverse=order == "desc")


def count_by_status(containers: Iterable[Container]) -> Dict[str, int]:
    return dict(Counter(c.status.value for c in containers))
