"""MariaDB provider."""

from typing import Dict, List, Optional

from dbdock.models.containers import Container
from dbdock.schema import (
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
    database_name_field,
    get_setting,
    password_field,
    quote_credential,
    username_field,
)

ROOT_USER = "root"
DEFAULT_SQL_MODE = (
    "STRICT_TRANS_TABLES,NO_ZERO_IN_DATE,NO_ZERO_DATE,"
    "ERROR_FOR_DIVISION_BY_ZERO,NO_ENGINE_SUBSTITUTION"
)
BYTES_PER_MB = 1024 * 1024


class MariaDBProvider(DatabaseProvider):
    id = "MariaDB"
    name = "MariaDB"
    description = "Community-developed fork of MySQL"
    image_repository = "mariadb"
    default_port = 3306
    container_port = 3306
    data_path = "/var/lib/mysql"
    default_database = "mysql"
    versions = (
        "latest", "noble", "lts", "lts-noble",
        "12.1.1-rc", "12.1-rc", "12.1.1-noble-rc", "12.1-noble-rc",
        "12.0.2", "12.0", "12", "12.0.2-noble", "12.0-noble", "12-noble",
        "11.8.3", "11.8", "11", "11.8.3-noble", "11.8-noble", "11-noble",
        "11.4.8", "11.4", "11.4.8-noble", "11.4-noble",
        "10.11.14", "10.11", "10", "10.11.14-jammy", "10.11-jammy", "10-jammy",
        "10.6.23", "10.6", "10.6.23-jammy", "10.6-jammy",
    )  # fmt: skip

    def get_authentication_fields(self) -> List[FormField]:
        return [
            username_field(ROOT_USER, "Root user for MariaDB; any other name creates that user"),
            password_field(4, "Password for the root account"),
            database_name_field(self.default_database),
        ]

    def get_advanced_fields(self) -> List[FieldGroup]:
        return [
            FieldGroup(
                label="Character Set & Collation",
                description="Configure default character encoding and collation",
                fields=[
                    SelectField(
                        name="mariadb_settings.character_set",
                        label="Character Set",
                        options=["utf8mb4", "utf8", "latin1", "ascii"],
                        default_value="utf8mb4",
                        help_text="Default character set. utf8mb4 covers full Unicode.",
                    ),
                    SelectField(
                        name="mariadb_settings.collation",
                        label="Collation",
                        options=[
                            "utf8mb4_unicode_ci",
                            "utf8mb4_general_ci",
                            "utf8_unicode_ci",
                            "utf8_general_ci",
                            "latin1_swedish_ci",
                        ],
                        default_value="utf8mb4_unicode_ci",
                        help_text="Default collation for string comparisons",
                    ),
                ],
            ),
            FieldGroup(
                label="Connection & Performance",
                description="Configure connection limits and performance settings",
                fields=[
                    NumberField(
                        name="mariadb_settings.max_connections",
                        label="Max Connections",
                        default_value=151,
                        validation=FieldValidation(min=1, max=100000),
                        help_text="Maximum number of simultaneous client connections",
                    ),
                    NumberField(
                        name="mariadb_settings.max_allowed_packet",
                        label="Max Allowed Packet (MB)",
                        default_value=16,
                        validation=FieldValidation(min=1, max=1024),
                        help_text="Maximum size of one packet or query result, in megabytes",
                    ),
                ],
            ),
            FieldGroup(
                label="SQL Mode",
                description="Configure SQL mode for strict or permissive behavior",
                fields=[
                    SelectField(
                        name="mariadb_settings.sql_mode",
                        label="SQL Mode",
                        options=[DEFAULT_SQL_MODE, "TRADITIONAL", "ANSI", ""],
                        default_value=DEFAULT_SQL_MODE,
                        help_text="SQL mode affects syntax and data validation (blank = permissive)",
                    ),
                ],
            ),
            FieldGroup(
                label="Storage Engine",
                description="Configure default storage engine",
                fields=[
                    SelectField(
                        name="mariadb_settings.default_storage_engine",
                        label="Default Storage Engine",
                        options=["InnoDB", "MyISAM", "Aria", "Memory"],
                        default_value="InnoDB",
                        help_text="Default storage engine for new tables",
                    ),
                ],
            ),
        ]

    def build_env(self, config: Config) -> Dict[str, str]:
        password = str(get_setting(config, "password") or "")
        env = {"MARIADB_ROOT_PASSWORD": password}

        username = get_setting(config, "username")
        if username and username != ROOT_USER:
            env["MARIADB_USER"] = str(username)
            env["MARIADB_PASSWORD"] = password

        database = get_setting(config, "database_name")
        if database is not None:
            env["MARIADB_DATABASE"] = str(database)
        return env

    def build_command(self, config: Config) -> List[str]:
        command: List[str] = []

        character_set = get_setting(config, "mariadb_settings.character_set")
        if character_set is not None:
            command.append(f"--character-set-server={character_set}")

        collation = get_setting(config, "mariadb_settings.collation")
        if collation is not None:
            command.append(f"--collation-server={collation}")

        max_connections = as_int(get_setting(config, "mariadb_settings.max_connections"))
        if max_connections:
            command.append(f"--max-connections={max_connections}")

        packet_mb = as_int(get_setting(config, "mariadb_settings.max_allowed_packet"))
        if packet_mb:
            command.append(f"--max-allowed-packet={packet_mb * BYTES_PER_MB}")

        # Blank sql_mode is a real choice (permissive), so only None is skipped
        sql_mode = get_value(config, "mariadb_settings.sql_mode")
        if sql_mode is not None:
            command.append(f"--sql-mode={sql_mode}")

        engine = get_setting(config, "mariadb_settings.default_storage_engine")
        if engine is not None:
            command.append(f"--default-storage-engine={engine}")
        return command

    def validate_engine(self, config: Config, errors: List[str]) -> None:
        self._require_password(config, errors, 4)
        self._require_version(config, errors)

    def get_connection_string(self, container: Container, host: str = "localhost") -> str:
        username = quote_credential(container.username or ROOT_USER)
        password = quote_credential(container.password or "")
        database = container.database_name or self.default_database
        return f"mariadb://{username}:{password}@{host}:{container.port}/{database}"

    def get_default_username(self) -> Optional[str]:
        return ROOT_USER
