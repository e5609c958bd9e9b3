"""Single owner of the local container list."""

from typing import Callable, List, Optional, Sequence, Tuple

from dbdock.models.containers import Container
from dbdock.utils import get_logger

logger = get_logger(__name__)

StoreListener = Callable[[Tuple[Container, ...]], None]


def upsert(containers: Sequence[Container], container: Container) -> Tuple[Container, ...]:
    """Replace the entry with the same id, or append when there is none."""
    if any(c.id == container.id for c in containers):
        return tuple(container if c.id == container.id else c for c in containers)
    return (*containers, container)


def remove(containers: Sequence[Container], container_id: str) -> Tuple[Container, ...]:
    return tuple(c for c in containers if c.id != container_id)


class ContainerStore:
    """Holds the container list and routes every mutation through one place.

    The list is an immutable tuple that is replaced as a whole, so readers
    never see a partially applied change. Listeners are called synchronously
    after each change.
    """

    def __init__(self, containers: Sequence[Container] = ()) -> None:
        self._containers: Tuple[Container, ...] = tuple(containers)
        self._listeners: List[StoreListener] = []
        self.revision = 0

    @property
    def containers(self) -> Tuple[Container, ...]:
        return self._containers

    def get(self, container_id: str) -> Optional[Container]:
        return next((c for c in self._containers if c.id == container_id), None)

    def subscribe(self, listener: StoreListener) -> Callable[[], None]:
        """
        Register a change listener.

        Args:
            listener: Called with the new list after every change

        Returns:
            Function that unregisters the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def upsert(self, container: Container) -> None:
        self._commit(upsert(self._containers, container))

    def remove(self, container_id: str) -> None:
        self._commit(remove(self._containers, container_id))

    def replace_all(self, containers: Sequence[Container]) -> None:
        self._commit(tuple(containers))

    def _commit(self, containers: Tuple[Container, ...]) -> None:
        self._containers = containers
        self.revision += 1
        for listener in list(self._listeners):
            try:
                listener(containers)
            except Exception as e:
                logger.warning("Container store listener failed", extra={"error": str(e)})

    def __len__(self) -> int:
        return len(self._containers)
