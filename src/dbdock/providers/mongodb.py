"""MongoDB provider."""

from typing import Dict, List, Optional

from dbdock.models.containers import Container
from dbdock.schema import CheckboxField, Config, FieldGroup, FormField, NumberField, SelectField, TextField

from .base import (
    DatabaseProvider,
    as_int,
    database_name_field,
    get_setting,
    is_enabled,
    password_field,
    quote_credential,
    username_field,
)

DEFAULT_USER = "admin"
# Root users created by the image always live in the admin database
AUTH_SOURCE = "admin"


class MongoDBProvider(DatabaseProvider):
    id = "MongoDB"
    name = "MongoDB"
    description = "Document-oriented NoSQL database"
    image_repository = "mongo"
    default_port = 27017
    container_port = 27017
    data_path = "/data/db"
    default_database = "admin"
    versions = ("8.0", "7.0", "6.0", "5.0")

    def get_authentication_fields(self) -> List[FormField]:
        return [
            username_field(DEFAULT_USER, "Username for the MongoDB admin user"),
            password_field(4, "Password for the admin account"),
            database_name_field(self.default_database),
        ]

    def get_advanced_fields(self) -> List[FieldGroup]:
        return [
            FieldGroup(
                label="Replication",
                description="Configure replication",
                fields=[
                    TextField(
                        name="mongo_settings.replica_set",
                        label="Replica Set Name",
                        placeholder="rs0",
                        help_text="Optional: name of the replica set (enables replication)",
                    ),
                ],
            ),
            FieldGroup(
                label="Storage",
                description="Configure storage engine and oplog settings",
                fields=[
                    SelectField(
                        name="mongo_settings.storage_engine",
                        label="Storage Engine",
                        options=["wiredTiger", "inMemory"],
                        default_value="wiredTiger",
                        help_text="Storage engine to use. WiredTiger is the image default.",
                    ),
                    NumberField(
                        name="mongo_settings.oplog_size",
                        label="Oplog Size (MB)",
                        default_value=512,
                        help_text="Size of the operation log (only used with a replica set)",
                    ),
                    CheckboxField(
                        name="mongo_settings.directory_per_db",
                        label="Directory Per Database",
                        default_value=False,
                        help_text="Store each database in its own directory",
                    ),
                ],
            ),
        ]

    def build_env(self, config: Config) -> Dict[str, str]:
        env = {
            "MONGO_INITDB_ROOT_USERNAME": str(get_setting(config, "username") or DEFAULT_USER),
            "MONGO_INITDB_ROOT_PASSWORD": str(get_setting(config, "password") or ""),
        }
        database = get_setting(config, "database_name")
        if database is not None:
            env["MONGO_INITDB_DATABASE"] = str(database)
        return env

    def build_command(self, config: Config) -> List[str]:
        command: List[str] = []

        replica_set = get_setting(config, "mongo_settings.replica_set")
        if replica_set is not None:
            command += ["--replSet", str(replica_set)]

        # wiredTiger is the server default and needs no flag
        if get_setting(config, "mongo_settings.storage_engine") == "inMemory":
            command += ["--storageEngine", "inMemory"]

        if is_enabled(config, "mongo_settings.directory_per_db"):
            command.append("--directoryperdb")

        oplog_size = as_int(get_setting(config, "mongo_settings.oplog_size"))
        if replica_set is not None and oplog_size:
            command += ["--oplogSize", str(oplog_size)]
        return command

    def validate_engine(self, config: Config, errors: List[str]) -> None:
        self._require_password(config, errors, 4)
        self._require_version(config, errors)
        if get_setting(config, "username") is None:
            errors.append("Username is required")

    def get_connection_string(self, container: Container, host: str = "localhost") -> str:
        username = quote_credential(container.username or DEFAULT_USER)
        password = quote_credential(container.password or "")
        database = container.database_name or self.default_database
        return (
            f"mongodb://{username}:{password}@{host}:{container.port}/{database}"
            f"?authSource={AUTH_SOURCE}"
        )

    def get_default_username(self) -> Optional[str]:
        return DEFAULT_USER
