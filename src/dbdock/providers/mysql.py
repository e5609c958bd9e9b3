"""MySQL provider."""

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

ROOT_USER = "root"

# Environment variable -> dotted config path
SETTINGS_ENV = {
    "MYSQL_DATABASE": "database_name",
    "MYSQL_ROOT_HOST": "mysql_settings.root_host",
    "MYSQL_CHARACTER_SET_SERVER": "mysql_settings.character_set",
    "MYSQL_COLLATION_SERVER": "mysql_settings.collation",
    "MYSQL_SQL_MODE": "mysql_settings.sql_mode",
}


class MySQLProvider(DatabaseProvider):
    id = "MySQL"
    name = "MySQL"
    description = "Popular open-source relational database"
    image_repository = "mysql"
    default_port = 3306
    container_port = 3306
    data_path = "/var/lib/mysql"
    default_database = "mysql"
    versions = ("8.4", "8.0", "5.7")

    def get_authentication_fields(self) -> List[FormField]:
        return [
            username_field(ROOT_USER, 'MySQL always uses "root" as the superuser', readonly=True),
            password_field(4, "Password for the root account"),
            database_name_field(self.default_database),
        ]

    def get_advanced_fields(self) -> List[FieldGroup]:
        return [
            FieldGroup(
                label="Connection Settings",
                description="Configure how MySQL handles remote connections",
                fields=[
                    TextField(
                        name="mysql_settings.root_host",
                        label="Root Host",
                        default_value="%",
                        help_text='Host from which root can connect. "%" allows all hosts.',
                    ),
                ],
            ),
            FieldGroup(
                label="Character Set & Collation",
                description="Configure default character encoding and collation",
                fields=[
                    SelectField(
                        name="mysql_settings.character_set",
                        label="Character Set",
                        options=["utf8mb4", "utf8", "latin1"],
                        default_value="utf8mb4",
                        help_text="Default character set for databases",
                    ),
                    TextField(
                        name="mysql_settings.collation",
                        label="Collation",
                        default_value="utf8mb4_unicode_ci",
                        help_text="Default collation for string comparisons",
                    ),
                ],
            ),
            FieldGroup(
                label="SQL Mode",
                description="Configure SQL behavior and strictness",
                fields=[
                    SelectField(
                        name="mysql_settings.sql_mode",
                        label="SQL Mode",
                        options=[
                            "TRADITIONAL",
                            "STRICT_TRANS_TABLES",
                            "NO_ZERO_IN_DATE",
                            "NO_ZERO_DATE",
                            "ERROR_FOR_DIVISION_BY_ZERO",
                            "NO_ENGINE_SUBSTITUTION",
                        ],
                        default_value="TRADITIONAL",
                        help_text="SQL mode affects MySQL behavior",
                    ),
                ],
            ),
        ]

    def build_env(self, config: Config) -> Dict[str, str]:
        env = {"MYSQL_ROOT_PASSWORD": str(get_setting(config, "password") or "")}
        for variable, path in SETTINGS_ENV.items():
            value = get_setting(config, path)
            if value is not None:
                env[variable] = str(value)
        return env

    def validate_engine(self, config: Config, errors: List[str]) -> None:
        self._require_password(config, errors, 4)
        self._require_version(config, errors)

    def get_connection_string(self, container: Container, host: str = "localhost") -> str:
        password = quote_credential(container.password or "")
        username = quote_credential(container.username or ROOT_USER)
        database = container.database_name or self.default_database
        return f"mysql://{username}:{password}@{host}:{container.port}/{database}"

    def get_default_username(self) -> Optional[str]:
        return ROOT_USER
