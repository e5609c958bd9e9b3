"""Settings and configuration management for dbdock."""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="DBDOCK_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # State database configuration
    state_db: str = Field(
        default="./dbdock.db",
        description="Path to SQLite database holding container metadata",
    )

    # Docker configuration
    docker_host: str | None = Field(
        default=None,
        description="Docker daemon host URL (defaults to Docker's standard detection)",
    )

    managed_label: str = Field(
        default="com.dbdock.managed",
        description="Label set on every container created by dbdock",
    )

    migration_image: str = Field(
        default="alpine:latest",
        description="Image used to copy volume data when a database is renamed",
    )

    stop_timeout_s: int = Field(
        default=10,
        description="Seconds Docker waits for a database to stop before killing it",
    )

    connection_host: str = Field(
        default="localhost",
        description="Host name rendered into connection strings",
    )

    # Synchronization configuration
    sync_interval_s: float = Field(
        default=5.0,
        description="Interval in seconds between authoritative container list refreshes",
    )

    availability_interval_s: float = Field(
        default=30.0,
        description="Interval in seconds between Docker availability probes",
    )

    availability_retry_s: float = Field(
        default=10.0,
        description="Delay in seconds before re-probing Docker after a failed probe",
    )

    # Logging configuration
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )

    log_format: str = Field(
        default="json",
        description="Log format (json or text)",
    )

    # Server configuration
    host: str = Field(
        default="127.0.0.1",
        description="Server host to bind to",
    )

    port: int = Field(
        default=8000,
        description="Server port to bind to",
    )

    # Transport configuration
    transport_mode: Literal["stdio", "sse", "streamable-http"] = Field(
        default="stdio",
        description="Transport protocol for MCP server (stdio, sse, or streamable-http)",
    )

    path: str = Field(
        default="/mcp",
        description="Path for HTTP-based transports (sse or streamable-http)",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
