"""Boundary between the sync engine and the container runtime.

Everything the core needs from Docker and the metadata store goes through
this protocol. Ids are dbdock ids, never Docker container ids.
"""

from typing import List, Protocol

from dbdock.models.availability import AvailabilityStatus
from dbdock.models.containers import Container, ContainerMetadata
from dbdock.models.launch import LaunchDescriptor


class ContainerBackend(Protocol):
    """Request/response operations offered by a container runtime."""

    async def get_all(self) -> List[Container]:
        """Return every tracked database as last persisted."""
        ...

    async def create(self, descriptor: LaunchDescriptor, metadata: ContainerMetadata) -> Container:
        """Materialize and start a new database.

        Raises:
            ConflictError: If Docker reports the name or a port as taken.
            OperationError: If the container could not be created.
        """
        ...

    async def update(
        self, container_id: str, descriptor: LaunchDescriptor, metadata: ContainerMetadata
    ) -> Container:
        """Apply a new configuration, recreating the container when needed."""
        ...

    async def start(self, container_id: str) -> None:
        ...

    async def stop(self, container_id: str) -> None:
        ...

    async def remove(self, container_id: str) -> None:
        ...

    async def sync(self) -> List[Container]:
        """Reconcile tracked state with what Docker reports and return it."""
        ...

    async def get_availability_status(self) -> AvailabilityStatus:
        """Probe the daemon; never raises for an unreachable daemon."""
        ...
