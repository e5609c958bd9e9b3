"""Persisted container metadata."""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, Boolean, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class ContainerRecord(Base):
    """Row describing one managed database container.

    Column names follow the external snake_case convention; ``stored_*``
    columns echo what was supplied when the database was created.
    """

    __tablename__ = "containers"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    db_type: Mapped[str] = mapped_column(String(50), nullable=False)
    version: Mapped[str] = mapped_column(String(100), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="stopped")
    port: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    max_connections: Mapped[int] = mapped_column(Integer, nullable=False, default=100)

    # Docker container id, absent until materialized
    container_id: Mapped[str | None] = mapped_column(String(100), nullable=True)

    stored_username: Mapped[str | None] = mapped_column(String(255), nullable=True)
    stored_password: Mapped[str | None] = mapped_column(String(255), nullable=True)
    stored_database_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    stored_persist_data: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    stored_enable_auth: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    # Serialized LaunchDescriptor used to (re)create the container
    launch_args: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)

    @property
    def host_ports(self) -> list[int]:
        """Every host port the launch descriptor publishes."""
        return [mapping["host"] for mapping in (self.launch_args or {}).get("ports", [])]

    def __repr__(self) -> str:
        return (
            f"<ContainerRecord(id={self.id}, name={self.name}, "
            f"db_type={self.db_type}, status={self.status})>"
        )
