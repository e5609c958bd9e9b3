"""Microsoft SQL Server provider."""

from typing import Dict, List, Optional

from dbdock.models.containers import Container
from dbdock.schema import (
    CheckboxField,
    Config,
    FieldGroup,
    FieldValidation,
    FormField,
    NumberField,
    SelectField,
    get_value,
)

from .base import (
    DatabaseProvider,
    as_int,
    get_setting,
    is_enabled,
    password_field,
    username_field,
)

SA_USER = "sa"

# Environment variable -> dotted config path
SETTINGS_ENV = {
    "MSSQL_PID": "sqlserver_settings.product_id",
    "MSSQL_COLLATION": "sqlserver_settings.collation",
}


def is_strong_password(password: str) -> bool:
    """True when the password mixes lowercase, uppercase, digits and symbols."""
    return (
        any(c.islower() for c in password)
        and any(c.isupper() for c in password)
        and any(c.isdigit() for c in password)
        and any(not c.isalnum() for c in password)
    )


class SQLServerProvider(DatabaseProvider):
    id = "SQLServer"
    name = "SQL Server"
    description = "Microsoft relational database"
    image_repository = "mcr.microsoft.com/mssql/server"
    default_port = 1433
    container_port = 1433
    data_path = "/var/opt/mssql"
    default_database = "master"
    versions = ("2025-latest", "2022-latest", "2019-latest", "2017-latest")

    def get_authentication_fields(self) -> List[FormField]:
        return [
            username_field(SA_USER, "Default system administrator for SQL Server", readonly=True),
            password_field(
                8,
                "Password for the SA account: uppercase, lowercase, numbers and symbols",
                message="Password must be at least 8 characters and meet complexity requirements",
            ),
            CheckboxField(
                name="accept_eula",
                label="Accept EULA",
                required=True,
                default_value=False,
                help_text="You must accept the End-User Licensing Agreement to use SQL Server",
            ),
        ]

    def get_advanced_fields(self) -> List[FieldGroup]:
        return [
            FieldGroup(
                label="Product & Licensing",
                description="Configure SQL Server edition and licensing",
                fields=[
                    SelectField(
                        name="sqlserver_settings.product_id",
                        label="Product ID / Edition",
                        options=["Developer", "Express", "Standard", "Enterprise", "EnterpriseCore"],
                        default_value="Developer",
                        help_text="Developer and Express are free for non-production use",
                    ),
                ],
            ),
            FieldGroup(
                label="Collation",
                description="Configure default collation settings",
                fields=[
                    SelectField(
                        name="sqlserver_settings.collation",
                        label="Server Collation",
                        options=[
                            "SQL_Latin1_General_CP1_CI_AS",
                            "Latin1_General_CI_AS",
                            "Latin1_General_CS_AS",
                            "SQL_Latin1_General_CP1_CS_AS",
                        ],
                        default_value="SQL_Latin1_General_CP1_CI_AS",
                        help_text="CI = case insensitive, CS = case sensitive",
                    ),
                ],
            ),
            FieldGroup(
                label="Memory Configuration",
                description="Configure memory limits for SQL Server",
                fields=[
                    NumberField(
                        name="sqlserver_settings.memory_limit_mb",
                        label="Memory Limit (MB)",
                        default_value=2048,
                        validation=FieldValidation(min=512, max=32768),
                        help_text="Maximum memory for SQL Server (512MB minimum recommended)",
                    ),
                ],
            ),
            FieldGroup(
                label="Agent Configuration",
                description="Configure SQL Server Agent",
                fields=[
                    CheckboxField(
                        name="sqlserver_settings.enable_agent",
                        label="Enable SQL Server Agent",
                        default_value=False,
                        help_text="Enable SQL Server Agent for job scheduling",
                    ),
                ],
            ),
        ]

    def build_env(self, config: Config) -> Dict[str, str]:
        env = {
            "ACCEPT_EULA": "Y" if is_enabled(config, "accept_eula") else "N",
            "MSSQL_SA_PASSWORD": str(get_setting(config, "password") or ""),
        }
        for variable, path in SETTINGS_ENV.items():
            value = get_setting(config, path)
            if value is not None:
                env[variable] = str(value)

        memory_limit = as_int(get_setting(config, "sqlserver_settings.memory_limit_mb"))
        if memory_limit:
            env["MSSQL_MEMORY_LIMIT_MB"] = str(memory_limit)

        if is_enabled(config, "sqlserver_settings.enable_agent"):
            env["MSSQL_AGENT_ENABLED"] = "true"
        return env

    def validate_engine(self, config: Config, errors: List[str]) -> None:
        password = str(get_value(config, "password") or "")
        self._require_password(config, errors, 8)
        if password and not is_strong_password(password):
            errors.append("Password must contain uppercase, lowercase, numbers, and special characters")
        self._require_version(config, errors)
        if not is_enabled(config, "accept_eula"):
            errors.append("You must accept the EULA to use SQL Server")

    def get_connection_string(self, container: Container, host: str = "localhost") -> str:
        username = container.username or SA_USER
        database = container.database_name or self.default_database
        return (
            f"Server={host},{container.port};Database={database};User Id={username};"
            f"Password={container.password or ''};TrustServerCertificate=True;"
        )

    def get_default_username(self) -> Optional[str]:
        return SA_USER
