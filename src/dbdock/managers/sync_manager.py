"""Keeps the local container list in step with the runtime backend."""

import asyncio
import time
from typing import Awaitable, Callable, Tuple

from dbdock.backend.protocol import ContainerBackend
from dbdock.config import Settings, get_settings
from dbdock.models.availability import AvailabilityStatus
from dbdock.models.containers import Container
from dbdock.utils import get_logger
from dbdock.utils.audit_logger import AuditEventType, get_audit_logger
from dbdock.utils.exceptions import InvalidTransitionError
from dbdock.utils.metrics_collector import get_metrics_collector

from .container_store import ContainerStore

logger = get_logger(__name__)

Sleep = Callable[[float], Awaitable[None]]

OPERATION_AUDIT_EVENTS = {
    "start": AuditEventType.DATABASE_START,
    "stop": AuditEventType.DATABASE_STOP,
    "remove": AuditEventType.DATABASE_REMOVE,
}

# ContainerStatus property that allows each operation
OPERATION_GUARDS = {"start": "can_start", "stop": "can_stop", "remove": "can_remove"}


class SyncManager:
    """Owns the periodic resync and the lifecycle operations on tracked databases.

    Every list change goes through the :class:`ContainerStore`. A resync
    replaces the list with the backend snapshot as soon as that snapshot
    arrives, so the most recently completed fetch always wins.
    """

    def __init__(
        self,
        backend: ContainerBackend,
        store: ContainerStore | None = None,
        settings: Settings | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        """
        Initialize the sync manager.

        Args:
            backend: Runtime backend
            store: Local list owner; a new empty store by default
            settings: Settings providing the sync interval
            sleep: Awaitable sleep, replaceable in tests
        """
        self.backend = backend
        self.store = store if store is not None else ContainerStore()
        self.interval = (settings or get_settings()).sync_interval_s
        self._sleep = sleep
        self.metrics = get_metrics_collector()
        self.audit = get_audit_logger()
        self.loaded = False
        self._running = False
        self._paused = False
        self._task: asyncio.Task | None = None

    @property
    def containers(self) -> Tuple[Container, ...]:
        return self.store.containers

    @property
    def is_paused(self) -> bool:
        return self._paused

    # ==================== Loading and resync ====================

    async def load(self) -> Tuple[Container, ...]:
        """
        Replace the local list with the backend's list.

        Returns:
            The loaded list

        Raises:
            Exception: Whatever the backend raised; the previous list is kept
        """
        try:
            containers = await self.backend.get_all()
        except Exception as e:
            logger.error("Failed to load databases", extra={"error": str(e)})
            raise

        self.store.replace_all(containers)
        self.loaded = True
        self.metrics.set_tracked_containers(len(self.store))
        logger.info("Databases loaded", extra={"count": len(self.store)})
        return self.store.containers

    async def sync(self) -> bool:
        """
        Reconcile with the runtime and replace the local list.

        Failures are logged and reported through the return value only; the
        previous list is left untouched.

        Returns:
            True if the list was refreshed
        """
        started = time.monotonic()
        try:
            containers = await self.backend.sync()
        except Exception as e:
            logger.warning("Database sync failed", extra={"error": str(e)})
            self.metrics.record_sync("failure")
            return False

        self.store.replace_all(containers)
        self.metrics.record_sync("success", time.monotonic() - started)
        self.metrics.set_tracked_containers(len(self.store))
        logger.debug("Databases synced", extra={"count": len(self.store)})
        return True

    async def handle_availability(self, status: AvailabilityStatus) -> None:
        """Load the list the first time the runtime is reported available."""
        if self.loaded or not status.is_available:
            return
        try:
            await self.load()
        except Exception:
            # Retried on the next availability report
            logger.warning("Initial load deferred until the next availability report")

    # ==================== Optimistic mutations ====================

    def add_local(self, container: Container) -> None:
        self.store.upsert(container)

    def update_local(self, container: Container) -> None:
        self.store.upsert(container)

    def remove_local(self, container_id: str) -> None:
        self.store.remove(container_id)

    # ==================== Lifecycle operations ====================

    async def start_container(self, container_id: str) -> None:
        await self._run_operation("start", container_id)

    async def stop_container(self, container_id: str) -> None:
        await self._run_operation("stop", container_id)

    async def remove_container(self, container_id: str) -> None:
        await self._run_operation("remove", container_id)

    async def _run_operation(self, operation: str, container_id: str) -> None:
        """
        Run a lifecycle call on the backend, then resync on success.

        Args:
            operation: start, stop or remove
            container_id: dbdock id of the database

        Raises:
            InvalidTransitionError: If the local status forbids the operation
            DBDockError: If the backend call fails; the local list is unchanged
        """
        container = self.store.get(container_id)
        if container is not None and not getattr(container.status, OPERATION_GUARDS[operation]):
            raise InvalidTransitionError(operation, container_id, container.status.value)

        call = getattr(self.backend, operation)
        try:
            await call(container_id)
        except Exception as e:
            self.metrics.record_operation(operation, "failure")
            self.audit.log_event(
                AuditEventType.DATABASE_OPERATION_FAILED,
                container_id=container_id,
                details={"operation": operation, "error": str(e)},
            )
            logger.error(
                "Database operation failed",
                extra={"operation": operation, "container_id": container_id, "error": str(e)},
            )
            raise

        self.metrics.record_operation(operation, "success")
        self.audit.log_event(
            OPERATION_AUDIT_EVENTS[operation],
            container_id=container_id,
            db_type=container.db_type if container else None,
            name=container.name if container else None,
        )
        if operation == "remove":
            self.remove_local(container_id)
        await self.sync()

    # ==================== Periodic loop ====================

    async def start(self) -> None:
        """Start the periodic resync."""
        if self._running:
            logger.warning("Sync manager already running")
            return

        self._running = True
        self._task = asyncio.create_task(self._run_sync_loop())
        logger.info("Sync manager started", extra={"interval_s": self.interval})

    async def stop(self) -> None:
        """Stop the periodic resync."""
        if not self._running:
            return

        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                # Task cancellation is expected during shutdown
                pass
            self._task = None
        logger.info("Sync manager stopped")

    def set_visible(self, visible: bool) -> None:
        """Skip resyncs while the consuming client is hidden."""
        self._paused = not visible

    async def _run_sync_loop(self) -> None:
        while self._running:
            try:
                await self._sleep(self.interval)
                if not self._paused:
                    await self.sync()
            except asyncio.CancelledError:
                break
