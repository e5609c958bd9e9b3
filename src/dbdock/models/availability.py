"""Docker availability report."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel


class RuntimeState(str, Enum):
    RUNNING = "running"
    STOPPED = "stopped"
    ERROR = "error"
    CONNECTING = "connecting"


class AvailabilityStatus(BaseModel):
    """Result of probing the Docker daemon."""

    status: RuntimeState
    error: Optional[str] = None
    version: Optional[str] = None
    host: Optional[str] = None
    containers_running: Optional[int] = None
    containers_stopped: Optional[int] = None
    images: Optional[int] = None

    @property
    def is_available(self) -> bool:
        return self.status is RuntimeState.RUNNING
