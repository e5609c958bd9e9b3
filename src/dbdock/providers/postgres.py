"""PostgreSQL provider."""

from typing import Dict, List, Optional

from dbdock.models.containers import Container
from dbdock.schema import Config, FieldGroup, FormField, SelectField, TextField

from .base import (
    DatabaseProvider,
    database_name_field,
    get_setting,
    password_field,
    quote_credential,
    username_field,
)

DEFAULT_USER = "postgres"


class PostgresProvider(DatabaseProvider):
    id = "PostgreSQL"
    name = "PostgreSQL"
    description = "Advanced open-source relational database"
    image_repository = "postgres"
    default_port = 5432
    container_port = 5432
    data_path = "/var/lib/postgresql/data"
    default_database = "postgres"
    versions = (
        "18.0", "18", "18-bookworm", "18-alpine3.22", "18-alpine3.21", "18-alpine",
        "17.6", "17", "17-bookworm", "17-alpine3.22", "17-alpine3.21", "17-alpine",
        "16.10", "16", "16-bookworm", "16-alpine3.22", "16-alpine3.21", "16-alpine",
        "15.14", "15", "15-bookworm", "15-alpine3.22", "15-alpine3.21", "15-alpine",
        "14.19", "14", "14-bookworm", "14-alpine3.22", "14-alpine3.21", "14-alpine",
        "13.22", "13", "13-bookworm", "13-alpine3.22", "13-alpine3.21", "13-alpine",
    )  # fmt: skip

    def get_authentication_fields(self) -> List[FormField]:
        return [
            username_field(DEFAULT_USER, "Default superuser for PostgreSQL"),
            password_field(4, "Password for the superuser account"),
            database_name_field(self.default_database),
        ]

    def get_advanced_fields(self) -> List[FieldGroup]:
        return [
            FieldGroup(
                label="Authentication & Security",
                description="Configure how PostgreSQL handles authentication",
                fields=[
                    SelectField(
                        name="postgres_settings.host_auth_method",
                        label="Host Authentication Method",
                        options=["md5", "trust", "scram-sha-256", "password"],
                        default_value="md5",
                        help_text="Authentication method for TCP/IP connections",
                    ),
                ],
            ),
            FieldGroup(
                label="Database Initialization",
                description="Advanced settings for database initialization",
                fields=[
                    TextField(
                        name="postgres_settings.initdb_args",
                        label="INITDB Arguments",
                        placeholder="--encoding=UTF8 --locale=en_US.utf8",
                        help_text="Additional arguments passed to initdb during initialization",
                    ),
                    TextField(
                        name="postgres_settings.shared_preload_libraries",
                        label="Shared Preload Libraries",
                        placeholder="pg_stat_statements",
                        help_text="Comma-separated list of extensions to preload on startup",
                    ),
                ],
            ),
        ]

    def build_env(self, config: Config) -> Dict[str, str]:
        env = {"POSTGRES_PASSWORD": str(get_setting(config, "password") or "")}

        username = get_setting(config, "username")
        if username and username != DEFAULT_USER:
            env["POSTGRES_USER"] = str(username)

        optional = {
            "POSTGRES_DB": "database_name",
            "POSTGRES_HOST_AUTH_METHOD": "postgres_settings.host_auth_method",
            "POSTGRES_INITDB_ARGS": "postgres_settings.initdb_args",
            "POSTGRES_SHARED_PRELOAD_LIBRARIES": "postgres_settings.shared_preload_libraries",
        }
        for variable, path in optional.items():
            value = get_setting(config, path)
            if value is not None:
                env[variable] = str(value)
        return env

    def validate_engine(self, config: Config, errors: List[str]) -> None:
        self._require_password(config, errors, 4)
        self._require_version(config, errors)

    def get_connection_string(self, container: Container, host: str = "localhost") -> str:
        username = quote_credential(container.username or DEFAULT_USER)
        password = quote_credential(container.password or "")
        database = container.database_name or self.default_database
        return f"postgresql://{username}:{password}@{host}:{container.port}/{database}"

    def get_default_username(self) -> Optional[str]:
        return DEFAULT_USER
