"""Container runtime boundary."""

from .mapping import container_from_external, container_to_external
from .protocol import ContainerBackend

__all__ = ["ContainerBackend", "container_from_external", "container_to_external"]
