"""Docker client utilities for dbdock."""

import docker
from docker import DockerClient
from docker.errors import DockerException

from dbdock.config import get_settings
from dbdock.utils import get_logger
from dbdock.utils.exceptions import RuntimeUnavailableError

logger = get_logger(__name__)


class DockerClientManager:
    """Owns the lazily created Docker client."""

    def __init__(self, docker_host: str | None = None) -> None:
        """
        Initialize Docker client manager.

        Args:
            docker_host: Daemon URL; falls back to settings, then to the environment
        """
        self._client: DockerClient | None = None
        self.docker_host = docker_host or get_settings().docker_host

    def get_client(self) -> DockerClient:
        """
        Get or create the Docker client.

        The daemon may come up after dbdock does, so a failed connection is
        not cached and the next call tries again.

        Returns:
            DockerClient instance

        Raises:
            RuntimeUnavailableError: If the Docker daemon cannot be reached
        """
        if self._client is None:
            try:
                if self.docker_host:
                    client = docker.DockerClient(base_url=self.docker_host)
                else:
                    client = docker.from_env()
                client.ping()
            except (DockerException, OSError) as e:
                # OSError covers requests connection failures
                logger.warning("Failed to connect to Docker daemon", extra={"error": str(e)})
                raise RuntimeUnavailableError(
                    "Docker daemon is not running or Docker is not installed", e
                ) from e

            self._client = client
            logger.info("Connected to Docker daemon", extra={"docker_host": self.docker_host})

        return self._client

    def reset(self) -> None:
        """Drop the cached client so the next call reconnects."""
        if self._client:
            try:
                self._client.close()
            except DockerException as e:
                logger.debug("Error closing Docker client", extra={"error": str(e)})
            self._client = None

    def close(self) -> None:
        """Close Docker client connection."""
        if self._client:
            self.reset()
            logger.info("Docker client connection closed")


# Global instance
_docker_manager: DockerClientManager | None = None


def get_docker_manager() -> DockerClientManager:
    """
    Get global Docker client manager.

    Returns:
        DockerClientManager instance
    """
    global _docker_manager
    if _docker_manager is None:
        _docker_manager = DockerClientManager()
    return _docker_manager


def close_docker_client() -> None:
    """Close global Docker client connection."""
    global _docker_manager
    if _docker_manager:
        _docker_manager.close()
        _docker_manager = None
