"""Process-wide wiring of the registry, backend and managers."""

from dbdock.backend.docker_backend import DockerBackend
from dbdock.backend.protocol import ContainerBackend
from dbdock.config import Settings, get_settings
from dbdock.managers import AvailabilityMonitor, ContainerStore, DatabaseProvisioner, SyncManager
from dbdock.registry import ProviderRegistry, get_registry
from dbdock.utils import Notifier, get_logger

logger = get_logger(__name__)


class Services:
    """Everything the server tools talk to, built once per process."""

    def __init__(
        self,
        backend: ContainerBackend,
        registry: ProviderRegistry | None = None,
        settings: Settings | None = None,
        notifier: Notifier | None = None,
    ) -> None:
        settings = settings or get_settings()
        self.registry = registry or get_registry()
        self.backend = backend
        self.store = ContainerStore()
        self.sync_manager = SyncManager(backend, self.store, settings)
        self.monitor = AvailabilityMonitor(backend, settings, notifier)
        self.provisioner = DatabaseProvisioner(backend, self.sync_manager, self.registry, settings)
        # First "available" report triggers the initial load
        self.monitor.subscribe(self.sync_manager.handle_availability)
        self.visible = True

    async def start(self) -> None:
        await self.monitor.start()
        await self.sync_manager.start()
        logger.info("Background services started")

    async def stop(self) -> None:
        await self.sync_manager.stop()
        await self.monitor.stop()
        logger.info("Background services stopped")

    async def set_visible(self, visible: bool) -> None:
        """
        Pause or resume background polling for the consuming client.

        Hiding pauses both the availability probes and the periodic resync.
        Showing resumes them, starting with an immediate availability probe.

        Args:
            visible: Whether the client is in the foreground
        """
        self.visible = visible
        self.sync_manager.set_visible(visible)
        await self.monitor.set_visible(visible)
        logger.info("Client visibility changed", extra={"visible": visible})


# Global instance
_services: Services | None = None


def get_services() -> Services:
    """
    Get the process-wide services, building them with the Docker backend on first use.

    Returns:
        Services instance
    """
    global _services
    if _services is None:
        _services = Services(DockerBackend())
    return _services


def reset_services() -> None:
    """Forget the process-wide services (used on shutdown and in tests)."""
    global _services
    _services = None
