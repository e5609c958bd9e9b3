"""Container backend driving Docker and persisting metadata in SQLite."""

import asyncio
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Sequence, Tuple, TypeVar

from docker import DockerClient
from docker.errors import APIError, DockerException, ImageNotFound, NotFound
from docker.models.containers import Container as DockerContainer

from dbdock.config import Settings, get_settings
from dbdock.models.availability import AvailabilityStatus, RuntimeState
from dbdock.models.containers import (
    DEFAULT_MAX_CONNECTIONS,
    Container,
    ContainerMetadata,
    ContainerStatus,
)
from dbdock.models.database import DatabaseManager, get_db_manager
from dbdock.models.launch import LaunchDescriptor
from dbdock.models.records import ContainerRecord
from dbdock.providers.base import volume_name
from dbdock.repositories.containers import ContainerRecordRepository
from dbdock.utils import get_logger
from dbdock.utils.docker_client import DockerClientManager, get_docker_manager
from dbdock.utils.exceptions import (
    ConflictError,
    ContainerNotFoundError,
    OperationError,
    RuntimeUnavailableError,
)

from .mapping import container_from_record

logger = get_logger(__name__)

T = TypeVar("T")

DAEMON_UNAVAILABLE_MESSAGE = "Docker daemon is not running or Docker is not installed"

PORT_IN_USE_MARKERS = ("port is already allocated", "bind for", "address already in use")
NAME_IN_USE_MARKERS = ("is already in use", "already exists")

# Suffix of a container set aside while its replacement starts
REPLACED_SUFFIX = "-replaced"

OLD_DATA_MOUNT = "/old_data"
NEW_DATA_MOUNT = "/new_data"


def docker_state_to_status(state: str) -> ContainerStatus:
    """
    Map a Docker container state onto a lifecycle status.

    Args:
        state: Docker state (created, running, paused, restarting, removing, exited, dead)

    Returns:
        running for running containers, error for dead ones, stopped otherwise
    """
    if state == "running":
        return ContainerStatus.RUNNING
    if state == "dead":
        return ContainerStatus.ERROR
    return ContainerStatus.STOPPED


def classify_api_error(
    operation: str,
    error: APIError,
    metadata: ContainerMetadata,
    descriptor: LaunchDescriptor,
) -> Exception:
    """
    Turn a Docker API error into a conflict or an operation error.

    Args:
        operation: Operation that failed
        error: Error raised by the Docker SDK
        metadata: Metadata of the database being launched
        descriptor: Descriptor being launched

    Returns:
        ConflictError for name and port clashes, OperationError otherwise
    """
    message = str(error.explanation or error)
    lowered = message.lower()
    if any(marker in lowered for marker in PORT_IN_USE_MARKERS):
        port = next(
            (p for p in descriptor.host_ports if str(p) in message),
            metadata.port,
        )
        return ConflictError("port", port)
    if any(marker in lowered for marker in NAME_IN_USE_MARKERS):
        return ConflictError("name", metadata.name)
    return OperationError(operation, metadata.id, message, error)


class DockerBackend:
    """Implements the container backend protocol on top of the Docker SDK.

    Docker SDK calls block, so each one runs in a worker thread. Metadata
    lives in the ``containers`` table; Docker is only asked about what is
    actually running.
    """

    def __init__(
        self,
        db_manager: DatabaseManager | None = None,
        docker_manager: DockerClientManager | None = None,
        settings: Settings | None = None,
    ) -> None:
        """
        Initialize the backend.

        Args:
            db_manager: Metadata store; defaults to the global one
            docker_manager: Docker client owner; defaults to the global one
            settings: Settings; defaults to the cached settings
        """
        self.settings = settings or get_settings()
        self.db_manager = db_manager or get_db_manager()
        self.docker_manager = docker_manager or get_docker_manager()

    # ==================== Plumbing ====================

    async def _docker(self, func: Callable[..., T], *args: Any) -> T:
        """Run a blocking Docker call, reporting a lost daemon as unavailable."""
        try:
            return await asyncio.to_thread(func, *args)
        except OSError as e:
            # APIError is an OSError through requests.HTTPError
            if isinstance(e, DockerException):
                raise
            self.docker_manager.reset()
            raise RuntimeUnavailableError(DAEMON_UNAVAILABLE_MESSAGE, e) from e

    def _client(self) -> DockerClient:
        return self.docker_manager.get_client()

    def _labels(self, metadata: ContainerMetadata) -> Dict[str, str]:
        label = self.settings.managed_label
        return {
            label: "true",
            f"{label}.id": metadata.id,
            f"{label}.db_type": metadata.db_type,
        }

    async def _get_record(self, container_id: str) -> ContainerRecord:
        async with self.db_manager.get_session() as session:
            record = await ContainerRecordRepository(session).get(container_id)
        if record is None:
            raise ContainerNotFoundError(container_id)
        return record

    # ==================== Blocking Docker helpers ====================

    @staticmethod
    def _ensure_volume(client: DockerClient, name: str, labels: Dict[str, str]) -> bool:
        """Create the volume if missing; returns True when it was created here."""
        try:
            client.volumes.get(name)
            return False
        except NotFound:
            client.volumes.create(name=name, labels=labels)
            return True

    @staticmethod
    def _remove_volume(client: DockerClient, name: str) -> None:
        try:
            client.volumes.get(name).remove(force=True)
        except NotFound:
            pass

    @staticmethod
    def _remove_container(client: DockerClient, reference: str) -> None:
        try:
            client.containers.get(reference).remove(force=True)
        except NotFound:
            pass

    def _remove_owned_container(self, client: DockerClient, metadata: ContainerMetadata) -> None:
        """Remove the container named after ``metadata`` only if it was launched for this id."""
        try:
            docker_container = client.containers.get(metadata.name)
        except NotFound:
            return
        labels = docker_container.labels or {}
        if labels.get(f"{self.settings.managed_label}.id") != metadata.id:
            logger.warning(
                "Leaving container that dbdock did not launch",
                extra={"name": metadata.name, "container_id": metadata.id},
            )
            return
        docker_container.remove(force=True)

    def _launch(
        self,
        client: DockerClient,
        descriptor: LaunchDescriptor,
        metadata: ContainerMetadata,
        created_volumes: List[str],
    ) -> DockerContainer:
        labels = self._labels(metadata)
        for volume in descriptor.volumes:
            if self._ensure_volume(client, volume.name, labels):
                created_volumes.append(volume.name)

        return client.containers.run(
            descriptor.image,
            command=descriptor.command or None,
            name=metadata.name,
            detach=True,
            environment=descriptor.env_vars,
            ports={f"{p.container}/tcp": p.host for p in descriptor.ports},
            volumes={v.name: {"bind": v.path, "mode": "rw"} for v in descriptor.volumes},
            labels=labels,
        )

    def _discard(
        self,
        client: DockerClient,
        metadata: ContainerMetadata,
        created_volumes: Sequence[str],
        docker_id: str | None = None,
    ) -> None:
        """Best-effort removal of what a failed launch left behind.

        Pre-existing volumes and containers launched for another id are kept.
        """
        try:
            if docker_id is not None:
                self._remove_container(client, docker_id)
            else:
                self._remove_owned_container(client, metadata)
            for name in created_volumes:
                self._remove_volume(client, name)
        except DockerException as e:
            logger.warning(
                "Cleanup after failed launch was incomplete",
                extra={"name": metadata.name, "error": str(e)},
            )

    def _copy_volume(self, client: DockerClient, old: str, new: str) -> None:
        """Copy the contents of one named volume into another."""
        client.containers.run(
            self.settings.migration_image,
            command=["sh", "-c", f"cp -a {OLD_DATA_MOUNT}/. {NEW_DATA_MOUNT}/"],
            volumes={
                old: {"bind": OLD_DATA_MOUNT, "mode": "ro"},
                new: {"bind": NEW_DATA_MOUNT, "mode": "rw"},
            },
            remove=True,
        )
        logger.info("Volume data copied", extra={"from_volume": old, "to_volume": new})

    def _set_aside(
        self, client: DockerClient, record: ContainerRecord
    ) -> Tuple[DockerContainer, bool] | None:
        """Stop the current container and rename it out of the way of its replacement."""
        try:
            docker_container = client.containers.get(record.container_id or record.name)
        except NotFound:
            return None
        was_running = docker_container.status == "running"
        docker_container.stop(timeout=self.settings.stop_timeout_s)
        docker_container.rename(f"{record.name}{REPLACED_SUFFIX}")
        return docker_container, was_running

    def _restore(self, previous: Tuple[DockerContainer, bool] | None, record: ContainerRecord) -> None:
        if previous is None:
            return
        docker_container, was_running = previous
        try:
            docker_container.rename(record.name)
            if was_running:
                docker_container.start()
        except DockerException as e:
            logger.error(
                "Failed to restore container after aborted update",
                extra={"container_id": record.id, "name": record.name, "error": str(e)},
            )

    def _recreate(
        self,
        client: DockerClient,
        record: ContainerRecord,
        descriptor: LaunchDescriptor,
        metadata: ContainerMetadata,
    ) -> DockerContainer:
        """Replace the container, keeping the old container and volume until the new one runs.

        On failure the replacement is discarded and the old container is put back.
        """
        previous = self._set_aside(client, record)
        old_volume = volume_name(record.name)
        new_volume = volume_name(metadata.name)
        moves_data = record.stored_persist_data and metadata.persist_data and old_volume != new_volume

        created_volumes: List[str] = []
        try:
            if moves_data:
                if self._ensure_volume(client, new_volume, self._labels(metadata)):
                    created_volumes.append(new_volume)
                self._copy_volume(client, old_volume, new_volume)
            docker_container = self._launch(client, descriptor, metadata, created_volumes)
        except DockerException:
            self._discard(client, metadata, created_volumes)
            self._restore(previous, record)
            raise

        if previous is not None:
            previous[0].remove(force=True)
        if record.stored_persist_data and (moves_data or not metadata.persist_data):
            self._remove_volume(client, old_volume)
        return docker_container

    def _sync_snapshot(self, client: DockerClient) -> Dict[str, DockerContainer]:
        label = self.settings.managed_label
        containers = client.containers.list(all=True, filters={"label": f"{label}=true"})
        return {c.name: c for c in containers}

    def _remove_runtime(self, client: DockerClient, record: ContainerRecord) -> None:
        reference = record.container_id or record.name
        try:
            docker_container = client.containers.get(reference)
            docker_container.stop(timeout=self.settings.stop_timeout_s)
            docker_container.remove()
        except NotFound:
            logger.debug("Container already gone", extra={"name": record.name})
        if record.stored_persist_data:
            self._remove_volume(client, volume_name(record.name))

    # ==================== Protocol operations ====================

    async def get_all(self) -> List[Container]:
        async with self.db_manager.get_session() as session:
            records = await ContainerRecordRepository(session).list_ordered()
        return [container_from_record(record) for record in records]

    async def create(self, descriptor: LaunchDescriptor, metadata: ContainerMetadata) -> Container:
        """
        Create volumes, run the container and persist its metadata.

        On any failure the partially created container and volumes are removed.

        Args:
            descriptor: Compiled launch descriptor
            metadata: Metadata of the new database

        Returns:
            The created database

        Raises:
            ConflictError: If Docker reports the name or a port as taken
            OperationError: If Docker or the metadata store fails
            RuntimeUnavailableError: If the daemon cannot be reached
        """
        client = self._client()
        created_volumes: List[str] = []
        try:
            docker_container = await self._docker(self._launch, client, descriptor, metadata, created_volumes)
        except (APIError, ImageNotFound) as e:
            await self._docker(self._discard, client, metadata, created_volumes)
            logger.error(
                "Failed to create database container",
                extra={"container_id": metadata.id, "name": metadata.name, "error": str(e)},
            )
            if isinstance(e, ImageNotFound):
                raise OperationError("create", metadata.id, f"image not found: {descriptor.image}", e) from e
            raise classify_api_error("create", e, metadata, descriptor) from e

        record = ContainerRecord(
            id=metadata.id,
            name=metadata.name,
            db_type=metadata.db_type,
            version=metadata.version,
            status=ContainerStatus.RUNNING.value,
            port=metadata.port,
            created_at=datetime.now(timezone.utc),
            max_connections=metadata.max_connections or DEFAULT_MAX_CONNECTIONS,
            container_id=docker_container.id,
            stored_username=metadata.username,
            stored_password=metadata.password,
            stored_database_name=metadata.database_name,
            stored_persist_data=metadata.persist_data,
            stored_enable_auth=metadata.enable_auth,
            launch_args=descriptor.model_dump(mode="json"),
        )
        try:
            async with self.db_manager.get_session() as session:
                await ContainerRecordRepository(session).create(record)
        except Exception as e:
            await self._docker(self._discard, client, metadata, created_volumes, docker_container.id)
            raise OperationError("create", metadata.id, "failed to save metadata", e) from e

        logger.info(
            "Database container created",
            extra={"container_id": metadata.id, "name": metadata.name, "docker_id": docker_container.id},
        )
        return container_from_record(record)

    async def update(
        self, container_id: str, descriptor: LaunchDescriptor, metadata: ContainerMetadata
    ) -> Container:
        """
        Apply a new configuration to an existing database.

        The container is recreated when its name, launch descriptor or
        persistence flag changed; data follows a rename through a volume copy.

        Args:
            container_id: dbdock id of the database
            descriptor: New launch descriptor
            metadata: New metadata

        Returns:
            The updated database

        Raises:
            ContainerNotFoundError: If the id is not tracked
            ConflictError: If Docker reports the name or a port as taken
            OperationError: If Docker or the metadata store fails
        """
        record = await self._get_record(container_id)
        new_args = descriptor.model_dump(mode="json")
        needs_recreate = (
            record.name != metadata.name
            or record.launch_args != new_args
            or record.stored_persist_data != metadata.persist_data
        )

        docker_id = record.container_id
        status = record.status
        if needs_recreate:
            client = self._client()
            try:
                docker_container = await self._docker(self._recreate, client, record, descriptor, metadata)
            except (APIError, ImageNotFound) as e:
                logger.error(
                    "Failed to recreate database container",
                    extra={"container_id": container_id, "error": str(e)},
                )
                if isinstance(e, ImageNotFound):
                    raise OperationError("update", container_id, f"image not found: {descriptor.image}", e) from e
                raise classify_api_error("update", e, metadata, descriptor) from e
            docker_id = docker_container.id
            status = ContainerStatus.RUNNING.value

        async with self.db_manager.get_session() as session:
            repo = ContainerRecordRepository(session)
            stored = await repo.get(container_id)
            if stored is None:
                raise ContainerNotFoundError(container_id)
            stored.name = metadata.name
            stored.version = metadata.version
            stored.port = metadata.port
            stored.status = status
            stored.container_id = docker_id
            stored.max_connections = metadata.max_connections or stored.max_connections
            stored.stored_username = metadata.username
            stored.stored_password = metadata.password
            stored.stored_database_name = metadata.database_name
            stored.stored_persist_data = metadata.persist_data
            stored.stored_enable_auth = metadata.enable_auth
            stored.launch_args = new_args
            await repo.update(stored)

        logger.info(
            "Database updated",
            extra={"container_id": container_id, "recreated": needs_recreate},
        )
        return container_from_record(stored)

    async def _set_running_state(self, operation: str, container_id: str, running: bool) -> None:
        record = await self._get_record(container_id)
        client = self._client()

        def apply() -> None:
            docker_container = client.containers.get(record.container_id or record.name)
            if running:
                docker_container.start()
            else:
                docker_container.stop(timeout=self.settings.stop_timeout_s)

        try:
            await self._docker(apply)
        except NotFound as e:
            raise OperationError(operation, container_id, "container no longer exists in Docker", e) from e
        except APIError as e:
            raise OperationError(operation, container_id, str(e.explanation or e), e) from e

        status = ContainerStatus.RUNNING if running else ContainerStatus.STOPPED
        async with self.db_manager.get_session() as session:
            repo = ContainerRecordRepository(session)
            stored = await repo.get(container_id)
            if stored is not None:
                await repo.update_runtime_state(stored, status.value, stored.container_id)

    async def start(self, container_id: str) -> None:
        await self._set_running_state("start", container_id, running=True)
        logger.info("Database started", extra={"container_id": container_id})

    async def stop(self, container_id: str) -> None:
        await self._set_running_state("stop", container_id, running=False)
        logger.info("Database stopped", extra={"container_id": container_id})

    async def remove(self, container_id: str) -> None:
        """
        Stop and remove the container, its data volume and its metadata.

        A container already missing from Docker is not an error.

        Args:
            container_id: dbdock id of the database

        Raises:
            ContainerNotFoundError: If the id is not tracked
            OperationError: If Docker refuses the removal
        """
        record = await self._get_record(container_id)
        client = self._client()
        try:
            await self._docker(self._remove_runtime, client, record)
        except APIError as e:
            raise OperationError("remove", container_id, str(e.explanation or e), e) from e

        async with self.db_manager.get_session() as session:
            await ContainerRecordRepository(session).delete_by_id(container_id)
        logger.info("Database removed", extra={"container_id": container_id})

    async def sync(self) -> List[Container]:
        """
        Reconcile every record with the labelled containers Docker reports.

        Containers are matched by name. A record without a container is
        reported as stopped with no Docker id.

        Returns:
            Every tracked database after reconciliation
        """
        client = self._client()
        try:
            snapshot = await self._docker(self._sync_snapshot, client)
        except APIError as e:
            raise OperationError("sync", None, str(e.explanation or e), e) from e

        async with self.db_manager.get_session() as session:
            repo = ContainerRecordRepository(session)
            records = await repo.list_ordered()
            changed = 0
            for record in records:
                docker_container = snapshot.get(record.name)
                if docker_container is None:
                    status, docker_id = ContainerStatus.STOPPED, None
                else:
                    status, docker_id = docker_state_to_status(docker_container.status), docker_container.id
                if await repo.update_runtime_state(record, status.value, docker_id):
                    changed += 1

        if changed:
            logger.info("Container states reconciled", extra={"changed": changed})
        return [container_from_record(record) for record in records]

    async def get_availability_status(self) -> AvailabilityStatus:
        """
        Probe the Docker daemon.

        Returns:
            running with daemon details, or stopped with an error message
        """

        def probe(client: DockerClient) -> AvailabilityStatus:
            client.ping()
            version = client.version()
            info = client.info()
            return AvailabilityStatus(
                status=RuntimeState.RUNNING,
                version=version.get("Version"),
                host=self.docker_manager.docker_host or info.get("Name"),
                containers_running=info.get("ContainersRunning"),
                containers_stopped=info.get("ContainersStopped"),
                images=info.get("Images"),
            )

        try:
            return await self._docker(probe, self._client())
        except (RuntimeUnavailableError, DockerException) as e:
            self.docker_manager.reset()
            logger.debug("Docker availability probe failed", extra={"error": str(e)})
            return AvailabilityStatus(status=RuntimeState.STOPPED, error=DAEMON_UNAVAILABLE_MESSAGE)
