"""DBDock MCP server implementation using FastMCP 2."""

import sys
from contextlib import asynccontextmanager

from fastmcp import FastMCP
from pydantic import BaseModel

from dbdock import __version__
from dbdock.config import get_settings
from dbdock.mcp_tools import (
    ConfigInput,
    ConnectionStringInput,
    ConnectionStringOutput,
    ContainerActionInput,
    ContainerActionOutput,
    CreateDatabaseInput,
    DatabaseListOutput,
    DatabaseOutput,
    DescribeProviderInput,
    DescribeProviderOutput,
    ListDatabasesInput,
    MetricsOutput,
    PreviewLaunchOutput,
    ProviderListOutput,
    ProviderSummary,
    RuntimeStatusOutput,
    SyncOutput,
    UpdateDatabaseInput,
    ValidateConfigOutput,
    VisibilityInput,
    VisibilityOutput,
    database_view,
)
from dbdock.models.containers import Container
from dbdock.models.database import close_db, init_db
from dbdock.providers.base import DatabaseProvider
from dbdock.schema import FieldsOptions
from dbdock.services import get_services, reset_services
from dbdock.utils import get_logger, setup_logging
from dbdock.utils.audit_logger import AuditEventType, get_audit_logger
from dbdock.utils.container_rules import count_by_status, filter_containers, sort_containers
from dbdock.utils.docker_client import close_docker_client
from dbdock.utils.exceptions import ContainerNotFoundError
from dbdock.utils.metrics_collector import get_metrics_collector


class HealthCheckResponse(BaseModel):
    """Health check response model."""

    status: str
    docker_connected: bool
    tracked_databases: int
    version: str = __version__


logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(server: FastMCP):
    """Lifespan context manager for startup and shutdown tasks."""
    settings = get_settings()

    setup_logging(log_level=settings.log_level, log_format=settings.log_format)
    logger.info("Starting DBDock server", extra={"version": __version__})

    try:
        await init_db()
        logger.info("Metadata store initialized successfully")
    except Exception as e:
        logger.error("Failed to initialize metadata store", extra={"error": str(e)})
        raise

    # The availability monitor loads the database list once Docker is reachable
    services = get_services()
    await services.start()
    get_audit_logger().log_event(
        AuditEventType.SYSTEM_STARTUP,
        details={"version": __version__, "providers": services.registry.ids()},
    )

    try:
        yield
    finally:
        logger.info("Shutting down DBDock server")
        try:
            await services.stop()
        except Exception as e:
            logger.warning("Failed to stop background services", extra={"error": str(e)})

        get_audit_logger().log_event(AuditEventType.SYSTEM_SHUTDOWN)
        reset_services()
        await close_db()
        close_docker_client()
        logger.info("DBDock server stopped")


mcp = FastMCP("DBDock", lifespan=lifespan)


def _provider_summary(provider: DatabaseProvider) -> ProviderSummary:
    return ProviderSummary(
        id=provider.id,
        name=provider.name,
        description=provider.description,
        default_port=provider.default_port,
        versions=list(provider.versions),
        requires_auth=provider.requires_auth(),
        default_username=provider.get_default_username(),
    )


def _get_tracked(container_id: str) -> Container:
    container = get_services().store.get(container_id)
    if container is None:
        raise ContainerNotFoundError(container_id)
    return container


@mcp.tool()
async def health() -> HealthCheckResponse:
    """
    Health check endpoint to verify server status and Docker connectivity.

    Returns:
        HealthCheckResponse with status and Docker connection info
    """
    services = get_services()
    docker_connected = services.monitor.is_available
    return HealthCheckResponse(
        status="healthy" if docker_connected else "degraded",
        docker_connected=docker_connected,
        tracked_databases=len(services.store),
    )


# ========== Provider catalogue ==========


@mcp.tool()
async def list_providers() -> ProviderListOutput:
    """
    List the supported database engines in the order they are offered.

    Returns:
        ProviderListOutput with one summary per engine
    """
    registry = get_services().registry
    return ProviderListOutput(providers=[_provider_summary(p) for p in registry.get_all()])


@mcp.tool()
async def describe_provider(input_data: DescribeProviderInput) -> DescribeProviderOutput:
    """
    Describe the configuration form of one engine.

    Args:
        input_data: Provider id and whether the edit form is wanted

    Returns:
        DescribeProviderOutput with fields per section and default values
    """
    services = get_services()
    provider = services.registry.require(input_data.db_type)
    options = FieldsOptions(is_edit_mode=input_data.is_edit_mode)
    if input_data.is_edit_mode:
        defaults = provider.default_config(options)
    else:
        defaults = services.provisioner.suggest_config(provider.id)
    return DescribeProviderOutput(
        provider=_provider_summary(provider),
        basic_fields=provider.get_basic_fields(options),
        authentication_fields=provider.get_authentication_fields(),
        advanced_groups=provider.get_advanced_fields(),
        defaults=defaults,
    )


@mcp.tool()
async def validate_config(input_data: ConfigInput) -> ValidateConfigOutput:
    """
    Check a configuration against every rule of its engine.

    Args:
        input_data: Provider id and configuration object

    Returns:
        ValidateConfigOutput listing every violated rule
    """
    provider = get_services().registry.require(input_data.db_type)
    result = provider.validate_config(input_data.config)
    return ValidateConfigOutput(valid=result.valid, errors=result.errors)


@mcp.tool()
async def preview_launch(input_data: ConfigInput) -> PreviewLaunchOutput:
    """
    Show the image, environment, ports, volumes and command a configuration compiles to.

    Nothing is sent to Docker.

    Args:
        input_data: Provider id and configuration object

    Returns:
        PreviewLaunchOutput with the descriptor and the validation outcome
    """
    services = get_services()
    descriptor = services.provisioner.preview(input_data.db_type, input_data.config)
    result = services.registry.require(input_data.db_type).validate_config(input_data.config)
    return PreviewLaunchOutput(descriptor=descriptor, valid=result.valid, errors=result.errors)


# ========== Database lifecycle ==========


@mcp.tool()
async def create_database(input_data: CreateDatabaseInput) -> DatabaseOutput:
    """
    Create and start a new database container.

    Args:
        input_data: Provider id and configuration object

    Returns:
        DatabaseOutput with the created database and its connection string
    """
    logger.info("Creating database", extra={"db_type": input_data.db_type})
    services = get_services()
    container = await services.provisioner.create_database(input_data.db_type, input_data.config)
    return DatabaseOutput(
        database=database_view(container),
        connection_string=services.provisioner.connection_string(container.id),
    )


@mcp.tool()
async def update_database(input_data: UpdateDatabaseInput) -> DatabaseOutput:
    """
    Apply a new configuration to an existing database.

    Args:
        input_data: Database id and full configuration object

    Returns:
        DatabaseOutput with the updated database and its connection string
    """
    logger.info("Updating database", extra={"container_id": input_data.container_id})
    services = get_services()
    container = await services.provisioner.update_database(input_data.container_id, input_data.config)
    return DatabaseOutput(
        database=database_view(container),
        connection_string=services.provisioner.connection_string(container.id),
    )


@mcp.tool()
async def list_databases(input_data: ListDatabasesInput) -> DatabaseListOutput:
    """
    List tracked databases from the local list.

    Args:
        input_data: Optional filter and sort order

    Returns:
        DatabaseListOutput with databases, counts per status and runtime availability
    """
    services = get_services()
    containers = services.store.containers
    selected = filter_containers(containers, input_data.query or "")
    selected = sort_containers(selected, input_data.sort_by, input_data.order)
    return DatabaseListOutput(
        databases=[database_view(c) for c in selected],
        counts=count_by_status(containers),
        runtime_available=services.monitor.is_available,
    )


@mcp.tool()
async def start_database(input_data: ContainerActionInput) -> ContainerActionOutput:
    """
    Start a stopped or failed database.

    Args:
        input_data: Database id

    Returns:
        ContainerActionOutput with the status reported by the follow-up sync
    """
    services = get_services()
    await services.sync_manager.start_container(input_data.container_id)
    container = _get_tracked(input_data.container_id)
    return ContainerActionOutput(container_id=container.id, status=container.status.value)


@mcp.tool()
async def stop_database(input_data: ContainerActionInput) -> ContainerActionOutput:
    """
    Stop a running database.

    Args:
        input_data: Database id

    Returns:
        ContainerActionOutput with the status reported by the follow-up sync
    """
    services = get_services()
    await services.sync_manager.stop_container(input_data.container_id)
    container = _get_tracked(input_data.container_id)
    return ContainerActionOutput(container_id=container.id, status=container.status.value)


@mcp.tool()
async def remove_database(input_data: ContainerActionInput) -> ContainerActionOutput:
    """
    Remove a database, its container and its data volume.

    Args:
        input_data: Database id

    Returns:
        ContainerActionOutput with status 'removed'
    """
    await get_services().sync_manager.remove_container(input_data.container_id)
    return ContainerActionOutput(container_id=input_data.container_id, status="removed")


@mcp.tool()
async def sync_databases() -> SyncOutput:
    """
    Reconcile the local list with Docker now.

    Returns:
        SyncOutput telling whether the runtime answered
    """
    services = get_services()
    synced = await services.sync_manager.sync()
    get_audit_logger().log_event(
        AuditEventType.SYSTEM_SYNC,
        details={"synced": synced, "count": len(services.store)},
    )
    return SyncOutput(synced=synced, count=len(services.store))


@mcp.tool()
async def connection_string(input_data: ConnectionStringInput) -> ConnectionStringOutput:
    """
    Render the client connection string of a database.

    Args:
        input_data: Database id and optional host override

    Returns:
        ConnectionStringOutput with the connection string
    """
    value = get_services().provisioner.connection_string(input_data.container_id, input_data.host)
    return ConnectionStringOutput(container_id=input_data.container_id, connection_string=value)


# ========== Runtime ==========


@mcp.tool()
async def runtime_status() -> RuntimeStatusOutput:
    """
    Probe Docker now and report its availability.

    Returns:
        RuntimeStatusOutput with daemon details
    """
    status = await get_services().monitor.refresh()
    return RuntimeStatusOutput(
        status=status.status.value,
        available=status.is_available,
        error=status.error,
        version=status.version,
        host=status.host,
        containers_running=status.containers_running,
        containers_stopped=status.containers_stopped,
        images=status.images,
    )


@mcp.tool()
async def set_client_visibility(input_data: VisibilityInput) -> VisibilityOutput:
    """
    Tell the server whether the client is in the foreground.

    While hidden, availability probes and periodic resyncs are suspended.
    Becoming visible again probes Docker immediately.

    Args:
        input_data: Visibility flag

    Returns:
        VisibilityOutput with the resulting polling state
    """
    services = get_services()
    await services.set_visible(input_data.visible)
    return VisibilityOutput(visible=services.visible, paused=services.monitor.is_paused)


@mcp.tool()
async def metrics() -> MetricsOutput:
    """
    Export Prometheus metrics.

    Returns:
        MetricsOutput with metrics in Prometheus text format
    """
    collector = get_metrics_collector()
    return MetricsOutput(metrics=collector.get_metrics().decode("utf-8"))


def main() -> None:
    """Main entry point for the DBDock server."""
    settings = get_settings()

    setup_logging(log_level=settings.log_level, log_format=settings.log_format)

    logger.info(
        "Starting server",
        extra={
            "transport": settings.transport_mode,
            "host": settings.host if settings.transport_mode != "stdio" else "N/A",
            "port": settings.port if settings.transport_mode != "stdio" else "N/A",
            "state_db": settings.state_db,
        },
    )

    try:
        run_kwargs = {"transport": settings.transport_mode}

        if settings.transport_mode in ("sse", "streamable-http"):
            run_kwargs["host"] = settings.host
            run_kwargs["port"] = settings.port
            run_kwargs["path"] = settings.path

        mcp.run(**run_kwargs)
    except KeyboardInterrupt:
        logger.info("Received keyboard interrupt, shutting down")
        sys.exit(0)
    except Exception as e:
        logger.error("Server error", extra={"error": str(e)})
        sys.exit(1)


if __name__ == "__main__":
    main()
