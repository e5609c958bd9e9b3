"""MCP tool input and output models."""

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from dbdock.backend.mapping import container_to_external
from dbdock.models.containers import Container
from dbdock.models.launch import LaunchDescriptor
from dbdock.schema import FieldGroup, FormField
from dbdock.utils.audit_logger import REDACTED


def database_view(container: Container) -> Dict[str, Any]:
    """External representation of a database with its password redacted."""
    data = container_to_external(container)
    if data.get("stored_password"):
        data["stored_password"] = REDACTED
    return data


# Provider catalogue


class ProviderSummary(BaseModel):
    """One registered database engine."""

    id: str = Field(..., description="Provider id used as db_type")
    name: str = Field(..., description="Display name")
    description: str
    default_port: int
    versions: List[str] = Field(..., description="Supported image tags, newest first")
    requires_auth: bool
    default_username: Optional[str] = None


class ProviderListOutput(BaseModel):
    """Output model for list_providers tool."""

    providers: List[ProviderSummary]


class DescribeProviderInput(BaseModel):
    """Input model for describe_provider tool."""

    db_type: str = Field(..., description="Provider id")
    is_edit_mode: bool = Field(default=False, description="Describe the edit form instead of the create form")


class DescribeProviderOutput(BaseModel):
    """Output model for describe_provider tool."""

    provider: ProviderSummary
    basic_fields: List[FormField]
    authentication_fields: List[FormField]
    advanced_groups: List[FieldGroup]
    defaults: Dict[str, Any] = Field(
        ..., description="Field defaults; the create form also suggests a free name, port and password"
    )


# Configuration checks


class ConfigInput(BaseModel):
    """Input model for validate_config and preview_launch tools."""

    db_type: str = Field(..., description="Provider id")
    config: Dict[str, Any] = Field(default_factory=dict, description="Configuration object")


class ValidateConfigOutput(BaseModel):
    """Output model for validate_config tool."""

    valid: bool
    errors: List[str] = Field(default_factory=list, description="Every violated rule, in order")


class PreviewLaunchOutput(BaseModel):
    """Output model for preview_launch tool."""

    descriptor: LaunchDescriptor
    valid: bool
    errors: List[str] = Field(default_factory=list)


# Database lifecycle


class CreateDatabaseInput(BaseModel):
    """Input model for create_database tool."""

    db_type: str = Field(..., description="Provider id")
    config: Dict[str, Any] = Field(..., description="Configuration object")


class UpdateDatabaseInput(BaseModel):
    """Input model for update_database tool."""

    container_id: str = Field(..., description="dbdock database id")
    config: Dict[str, Any] = Field(..., description="Full configuration object; blank password keeps the stored one")


class DatabaseOutput(BaseModel):
    """Output model for create_database and update_database tools."""

    database: Dict[str, Any] = Field(..., description="Database in external (snake_case) form")
    connection_string: str


class ListDatabasesInput(BaseModel):
    """Input model for list_databases tool."""

    query: Optional[str] = Field(None, description="Case-insensitive filter on name, engine or status")
    sort_by: Literal["name", "type", "status", "created_at"] = "created_at"
    order: Literal["asc", "desc"] = "asc"


class DatabaseListOutput(BaseModel):
    """Output model for list_databases tool."""

    databases: List[Dict[str, Any]]
    counts: Dict[str, int] = Field(..., description="Number of databases per status")
    runtime_available: bool


class ContainerActionInput(BaseModel):
    """Input model for start_database, stop_database and remove_database tools."""

    container_id: str = Field(..., description="dbdock database id")


class ContainerActionOutput(BaseModel):
    """Output model for lifecycle action tools."""

    container_id: str
    status: str = Field(..., description="Status after the follow-up sync, or 'removed'")


class SyncOutput(BaseModel):
    """Output model for sync_databases tool."""

    synced: bool = Field(..., description="False when the runtime could not be reached")
    count: int


class ConnectionStringInput(BaseModel):
    """Input model for connection_string tool."""

    container_id: str = Field(..., description="dbdock database id")
    host: Optional[str] = Field(None, description="Host to embed; defaults to the configured connection host")


class ConnectionStringOutput(BaseModel):
    """Output model for connection_string tool."""

    container_id: str
    connection_string: str


# Runtime


class RuntimeStatusOutput(BaseModel):
    """Output model for runtime_status tool."""

    status: str = Field(..., description="running, stopped, error or connecting")
    available: bool
    error: Optional[str] = None
    version: Optional[str] = None
    host: Optional[str] = None
    containers_running: Optional[int] = None
    containers_stopped: Optional[int] = None
    images: Optional[int] = None


class VisibilityInput(BaseModel):
    """Input model for set_client_visibility tool."""

    visible: bool = Field(..., description="Whether the client is in the foreground")


class VisibilityOutput(BaseModel):
    """Output model for set_client_visibility tool."""

    visible: bool
    paused: bool = Field(..., description="True while background polling is suspended")


class MetricsOutput(BaseModel):
    """Output model for metrics tool."""

    metrics: str = Field(..., description="Prometheus metrics in text format")
