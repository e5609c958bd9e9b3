"""Lookup table from engine id to provider.

The registry is filled once at startup, before any concurrent use, and is
read-only afterwards. Tests build their own instances instead of sharing the
process-wide one.
"""

from typing import Dict, Iterable, List, Optional

from dbdock.providers import BUILTIN_PROVIDERS, DatabaseProvider
from dbdock.utils import get_logger
from dbdock.utils.exceptions import UnknownProviderError

logger = get_logger(__name__)


class ProviderRegistry:
    """Ordered mapping of provider id to provider instance."""

    def __init__(self, providers: Iterable[DatabaseProvider] = ()) -> None:
        self._providers: Dict[str, DatabaseProvider] = {}
        for provider in providers:
            self.register(provider)

    def register(self, provider: DatabaseProvider) -> None:
        """
        Insert a provider, replacing any provider with the same id.

        A replaced provider keeps its original position.

        Args:
            provider: Provider instance
        """
        if provider.id in self._providers:
            logger.warning(
                "Provider already registered, overwriting",
                extra={"provider_id": provider.id},
            )
        self._providers[provider.id] = provider
        logger.debug("Registered database provider", extra={"provider_id": provider.id})

    def get(self, provider_id: str) -> Optional[DatabaseProvider]:
        return self._providers.get(provider_id)

    def require(self, provider_id: str) -> DatabaseProvider:
        """
        Get a provider that must exist.

        Args:
            provider_id: Engine id

        Returns:
            The provider

        Raises:
            UnknownProviderError: If no provider has that id
        """
        provider = self._providers.get(provider_id)
        if provider is None:
            raise UnknownProviderError(provider_id)
        return provider

    def get_all(self) -> List[DatabaseProvider]:
        return list(self._providers.values())

    def ids(self) -> List[str]:
        return list(self._providers)

    def has(self, provider_id: str) -> bool:
        return provider_id in self._providers

    def count(self) -> int:
        return len(self._providers)


def create_default_registry() -> ProviderRegistry:
    """Build a registry holding every built-in provider."""
    registry = ProviderRegistry(provider_cls() for provider_cls in BUILTIN_PROVIDERS)
    logger.info(
        "Provider registry initialized",
        extra={"provider_count": registry.count(), "providers": registry.ids()},
    )
    return registry


# Global instance
_registry: ProviderRegistry | None = None


def get_registry() -> ProviderRegistry:
    """
    Get the process-wide registry, building it on first use.

    Returns:
        ProviderRegistry instance
    """
    global _registry
    if _registry is None:
        _registry = create_default_registry()
    return _registry
