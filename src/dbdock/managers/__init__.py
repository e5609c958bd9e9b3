"""Manager modules for business logic."""

from .availability_monitor import AvailabilityMonitor
from .container_store import ContainerStore
from .provisioning_manager import DatabaseProvisioner, build_metadata
from .sync_manager import SyncManager

__all__ = [
    "AvailabilityMonitor",
    "ContainerStore",
    "DatabaseProvisioner",
    "SyncManager",
    "build_metadata",
]
