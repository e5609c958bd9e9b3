"""Container entity and lifecycle status."""

from datetime import datetime, timezone
from enum import Enum
from typing import Dict, FrozenSet, List, Optional

from pydantic import BaseModel, Field

DEFAULT_MAX_CONNECTIONS = 100


class ContainerStatus(str, Enum):
    """Lifecycle status of a managed database.

    ``creating`` and ``removing`` only exist while the matching runtime call
    is outstanding; a refresh always replaces them with what Docker reports.
    """

    CREATING = "creating"
    RUNNING = "running"
    STOPPED = "stopped"
    ERROR = "error"
    REMOVING = "removing"

    def can_transition_to(self, target: "ContainerStatus") -> bool:
        return target in STATUS_TRANSITIONS[self]

    @property
    def is_transient(self) -> bool:
        return self in (ContainerStatus.CREATING, ContainerStatus.REMOVING)

    # Operation guards follow STATUS_TRANSITIONS; nothing runs while a call is outstanding
    @property
    def can_start(self) -> bool:
        return not self.is_transient and self.can_transition_to(ContainerStatus.RUNNING)

    @property
    def can_stop(self) -> bool:
        return not self.is_transient and self.can_transition_to(ContainerStatus.STOPPED)

    @property
    def can_remove(self) -> bool:
        return not self.is_transient and self.can_transition_to(ContainerStatus.REMOVING)


STATUS_TRANSITIONS: Dict[ContainerStatus, FrozenSet[ContainerStatus]] = {
    ContainerStatus.CREATING: frozenset({ContainerStatus.RUNNING, ContainerStatus.ERROR}),
    ContainerStatus.RUNNING: frozenset({ContainerStatus.STOPPED, ContainerStatus.REMOVING}),
    # error -> running is the explicit retry through start
    ContainerStatus.STOPPED: frozenset({ContainerStatus.RUNNING, ContainerStatus.REMOVING}),
    ContainerStatus.ERROR: frozenset({ContainerStatus.RUNNING, ContainerStatus.REMOVING}),
    ContainerStatus.REMOVING: frozenset(),
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Container(BaseModel):
    """A database container tracked by dbdock."""

    id: str = Field(..., description="Stable dbdock id, distinct from the Docker container id")
    name: str
    db_type: str = Field(..., description="Provider id")
    version: str
    status: ContainerStatus = ContainerStatus.CREATING
    port: int
    host_ports: List[int] = Field(
        default_factory=list, description="Every published host port, the main port included"
    )
    created_at: datetime = Field(default_factory=_utcnow)
    max_connections: int = DEFAULT_MAX_CONNECTIONS
    container_id: Optional[str] = Field(None, description="Docker container id once materialized")
    username: Optional[str] = None
    password: Optional[str] = None
    database_name: Optional[str] = None
    persist_data: bool = False
    enable_auth: bool = True


class ContainerMetadata(BaseModel):
    """Metadata handed to the runtime boundary next to a launch descriptor."""

    id: str
    name: str
    db_type: str
    version: str
    port: int
    username: Optional[str] = None
    password: str = ""
    database_name: Optional[str] = None
    persist_data: bool = False
    enable_auth: bool = True
    max_connections: Optional[int] = None
