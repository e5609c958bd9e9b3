"""Create and update orchestration for managed databases."""

import copy
import uuid

from dbdock.backend.protocol import ContainerBackend
from dbdock.config import Settings, get_settings
from dbdock.models.containers import Container, ContainerMetadata
from dbdock.models.launch import LaunchDescriptor
from dbdock.providers.base import DatabaseProvider, as_int, get_setting, is_enabled
from dbdock.registry import ProviderRegistry, get_registry
from dbdock.schema import Config, FieldsOptions, get_value, set_value
from dbdock.utils import get_logger
from dbdock.utils.audit_logger import AuditEventType, get_audit_logger
from dbdock.utils.container_rules import (
    check_conflicts,
    find_available_port,
    generate_secure_password,
    generate_unique_name,
)
from dbdock.utils.exceptions import ContainerNotFoundError, InvalidConfigError
from dbdock.utils.metrics_collector import get_metrics_collector

from .sync_manager import SyncManager

logger = get_logger(__name__)

VERSION_LOCKED_MESSAGE = "Version cannot be changed after creation"


def build_metadata(
    provider: DatabaseProvider, config: Config, container_id: str
) -> ContainerMetadata:
    """
    Derive the metadata stored next to a launch descriptor.

    Args:
        provider: Provider of the engine
        config: Validated configuration object
        container_id: dbdock id of the database

    Returns:
        ContainerMetadata for the backend
    """
    return ContainerMetadata(
        id=container_id,
        name=str(get_setting(config, "name")),
        db_type=provider.id,
        version=provider.resolve_version(config),
        port=provider.resolve_port(config),
        username=provider.effective_username(config),
        password=str(get_setting(config, "password") or ""),
        database_name=get_setting(config, "database_name"),
        persist_data=is_enabled(config, "persist_data"),
        enable_auth=provider.auth_enabled(config),
        max_connections=as_int(get_value(config, "max_connections")),
    )


class DatabaseProvisioner:
    """Validates, checks conflicts, compiles and submits database configurations."""

    def __init__(
        self,
        backend: ContainerBackend,
        sync_manager: SyncManager,
        registry: ProviderRegistry | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.backend = backend
        self.sync_manager = sync_manager
        self.registry = registry or get_registry()
        self.settings = settings or get_settings()
        self.metrics = get_metrics_collector()
        self.audit = get_audit_logger()

    def _compile(
        self,
        provider: DatabaseProvider,
        config: Config,
        exclude_id: str | None = None,
    ) -> LaunchDescriptor:
        result = provider.validate_config(config)
        if not result.valid:
            raise InvalidConfigError(result.errors)

        descriptor = provider.build_docker_args(config)
        check_conflicts(
            str(get_setting(config, "name")),
            descriptor.host_ports,
            self.sync_manager.containers,
            exclude_id=exclude_id,
        )
        return descriptor

    def suggest_config(self, db_type: str) -> Config:
        """
        Default configuration for a new database.

        Field defaults are completed with a free name, a free host port and,
        for engines that require credentials, a generated password.

        Args:
            db_type: Provider id

        Returns:
            New configuration dictionary

        Raises:
            UnknownProviderError: If no provider has that id
        """
        provider = self.registry.require(db_type)
        containers = self.sync_manager.containers
        config = provider.default_config(FieldsOptions(is_edit_mode=False))
        set_value(config, "name", generate_unique_name(provider.id, containers))
        set_value(config, "port", find_available_port(provider.default_port, containers))
        if provider.requires_auth():
            set_value(config, "password", generate_secure_password())
        return config

    def preview(self, db_type: str, config: Config) -> LaunchDescriptor:
        """
        Compile a configuration without validating or submitting it.

        Args:
            db_type: Provider id
            config: Configuration object

        Returns:
            The launch descriptor the configuration compiles to

        Raises:
            UnknownProviderError: If no provider has that id
        """
        return self.registry.require(db_type).build_docker_args(config)

    async def create_database(self, db_type: str, config: Config) -> Container:
        """
        Create a new database.

        Args:
            db_type: Provider id
            config: Configuration object

        Returns:
            The created database, already added to the local list

        Raises:
            UnknownProviderError: If no provider has that id
            InvalidConfigError: With every violated rule
            ConflictError: If the name or a port is taken by a tracked database
            DBDockError: If the backend call fails
        """
        provider = self.registry.require(db_type)
        descriptor = self._compile(provider, config)
        metadata = build_metadata(provider, config, str(uuid.uuid4()))

        try:
            container = await self.backend.create(descriptor, metadata)
        except Exception as e:
            self._record_failure("create", metadata.id, e)
            raise

        self.sync_manager.add_local(container)
        self.metrics.record_operation("create", "success")
        self.metrics.record_database_created(provider.id)
        self.audit.log_event(
            AuditEventType.DATABASE_CREATE,
            container_id=container.id,
            db_type=provider.id,
            name=container.name,
            details={"image": descriptor.image, "config": config},
        )
        logger.info(
            "Database created",
            extra={"container_id": container.id, "db_type": provider.id, "name": container.name},
        )
        return container

    async def update_database(self, container_id: str, config: Config) -> Container:
        """
        Apply a new configuration to a tracked database.

        The version is fixed at creation; a blank password keeps the stored one.

        Args:
            container_id: dbdock id of the database
            config: Configuration object

        Returns:
            The updated database, already replaced in the local list

        Raises:
            ContainerNotFoundError: If the id is not in the local list
            InvalidConfigError: With every violated rule, or on a version change
            ConflictError: If the name or a port is taken by another database
            DBDockError: If the backend call fails
        """
        existing = self.sync_manager.store.get(container_id)
        if existing is None:
            raise ContainerNotFoundError(container_id)
        provider = self.registry.require(existing.db_type)

        config = copy.deepcopy(config)
        requested_version = get_setting(config, "version")
        if requested_version is not None and str(requested_version) != existing.version:
            raise InvalidConfigError([VERSION_LOCKED_MESSAGE])
        set_value(config, "version", existing.version)
        if get_setting(config, "password") is None and existing.password:
            set_value(config, "password", existing.password)

        descriptor = self._compile(provider, config, exclude_id=container_id)
        metadata = build_metadata(provider, config, container_id)

        try:
            container = await self.backend.update(container_id, descriptor, metadata)
        except Exception as e:
            self._record_failure("update", container_id, e)
            raise

        self.sync_manager.update_local(container)
        self.metrics.record_operation("update", "success")
        self.audit.log_event(
            AuditEventType.DATABASE_UPDATE,
            container_id=container_id,
            db_type=provider.id,
            name=container.name,
            details={"image": descriptor.image, "config": config},
        )
        return container

    def connection_string(self, container_id: str, host: str | None = None) -> str:
        """
        Render the client connection string of a tracked database.

        Raises:
            ContainerNotFoundError: If the id is not in the local list
        """
        container = self.sync_manager.store.get(container_id)
        if container is None:
            raise ContainerNotFoundError(container_id)
        provider = self.registry.require(container.db_type)
        return provider.get_connection_string(container, host or self.settings.connection_host)

    def _record_failure(self, operation: str, container_id: str, error: Exception) -> None:
        self.metrics.record_operation(operation, "failure")
        self.audit.log_event(
            AuditEventType.DATABASE_OPERATION_FAILED,
            container_id=container_id,
            details={"operation": operation, "error": str(error)},
        )
        logger.error(
            "Database operation failed",
            extra={"operation": operation, "container_id": container_id, "error": str(error)},
        )
