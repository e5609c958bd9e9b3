"""Domain and persistence models for dbdock."""

from .availability import AvailabilityStatus, RuntimeState
from .base import Base
from .containers import (
    DEFAULT_MAX_CONNECTIONS,
    STATUS_TRANSITIONS,
    Container,
    ContainerMetadata,
    ContainerStatus,
)
from .launch import LaunchDescriptor, PortMapping, VolumeMount
from .records import ContainerRecord

__all__ = [
    "AvailabilityStatus",
    "Base",
    "Container",
    "ContainerMetadata",
    "ContainerRecord",
    "ContainerStatus",
    "DEFAULT_MAX_CONNECTIONS",
    "LaunchDescriptor",
    "PortMapping",
    "RuntimeState",
    "STATUS_TRANSITIONS",
    "VolumeMount",
]
