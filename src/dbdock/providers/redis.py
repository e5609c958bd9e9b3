"""Redis provider.

The official image has no environment variable for the password, so it is
passed as ``--requirepass`` on the server command line.
"""

from typing import List, Optional

from dbdock.models.containers import Container
from dbdock.schema import CheckboxField, Config, FieldGroup, FormField, NumberField, SelectField, TextField

from .base import DatabaseProvider, as_int, get_setting, is_enabled, password_field, quote_credential

SERVER_BINARY = "redis-server"


def save_pairs(value: str) -> List[tuple[str, str]]:
    """
    Split an RDB snapshot rule list into (seconds, changes) pairs.

    A trailing unpaired token is dropped.

    Args:
        value: Whitespace separated tokens, e.g. "900 1 300 10"

    Returns:
        Ordered pairs
    """
    tokens = value.split()
    return [(tokens[i], tokens[i + 1]) for i in range(0, len(tokens) - 1, 2)]


class RedisProvider(DatabaseProvider):
    id = "Redis"
    name = "Redis"
    description = "In-memory data structure store"
    image_repository = "redis"
    default_port = 6379
    container_port = 6379
    data_path = "/data"
    versions = (
        "8.2.2", "8.2", "8", "8-bookworm", "8.2-alpine", "8-alpine3.22", "8-alpine",
        "8.0.4", "8.0", "8.0-bookworm", "8.0-alpine", "8.0-alpine3.21",
        "7.4.6", "7.4", "7", "7-bookworm", "7.4-alpine", "7-alpine3.21", "7-alpine",
        "7.2.11", "7.2", "7.2-bookworm", "7.2-alpine", "7.2-alpine3.21",
        "6.2.20", "6.2", "6", "6-bookworm", "6.2-alpine", "6-alpine3.21", "6-alpine",
    )  # fmt: skip

    def get_authentication_fields(self) -> List[FormField]:
        return [
            password_field(
                4,
                "Optional: set a password for Redis. Leave empty for no authentication.",
                required=False,
            ),
        ]

    def get_advanced_fields(self) -> List[FieldGroup]:
        return [
            FieldGroup(
                label="Memory Management",
                description="Configure Redis memory usage and eviction policies",
                fields=[
                    TextField(
                        name="redis_settings.max_memory",
                        label="Max Memory",
                        default_value="256mb",
                        placeholder="256mb, 1gb, 2gb",
                        help_text="Maximum memory Redis can use. Leave empty for unlimited.",
                    ),
                    SelectField(
                        name="redis_settings.max_memory_policy",
                        label="Eviction Policy",
                        options=[
                            "allkeys-lru",
                            "volatile-lru",
                            "allkeys-lfu",
                            "volatile-lfu",
                            "allkeys-random",
                            "volatile-random",
                            "volatile-ttl",
                            "noeviction",
                        ],
                        default_value="allkeys-lru",
                        help_text="Policy for evicting keys when max memory is reached",
                    ),
                ],
            ),
            FieldGroup(
                label="Persistence",
                description="Configure data persistence options",
                fields=[
                    CheckboxField(
                        name="redis_settings.append_only",
                        label="Enable AOF (Append Only File)",
                        default_value=False,
                        help_text="Log every write operation for better durability",
                    ),
                    TextField(
                        name="redis_settings.save",
                        label="RDB Snapshots",
                        placeholder="900 1 300 10 60 10000",
                        help_text='Pairs of "seconds changes", e.g. "900 1 300 10"',
                    ),
                ],
            ),
            FieldGroup(
                label="Performance",
                description="Configure Redis performance settings",
                fields=[
                    NumberField(
                        name="redis_settings.max_clients",
                        label="Max Clients",
                        default_value=10000,
                        help_text="Maximum number of connected clients",
                    ),
                ],
            ),
        ]

    def build_command(self, config: Config) -> List[str]:
        flags: List[str] = []

        password = get_setting(config, "password")
        if password is not None:
            flags += ["--requirepass", str(password)]

        max_memory = get_setting(config, "redis_settings.max_memory")
        if max_memory is not None:
            flags += ["--maxmemory", str(max_memory)]

        policy = get_setting(config, "redis_settings.max_memory_policy")
        if policy is not None:
            flags += ["--maxmemory-policy", str(policy)]

        if is_enabled(config, "redis_settings.append_only"):
            flags += ["--appendonly", "yes"]

        save = get_setting(config, "redis_settings.save")
        if save is not None:
            for seconds, changes in save_pairs(str(save)):
                flags += ["--save", seconds, changes]

        max_clients = as_int(get_setting(config, "redis_settings.max_clients"))
        if max_clients:
            flags += ["--maxclients", str(max_clients)]

        # No flags: keep the image's default command
        return [SERVER_BINARY, *flags] if flags else []

    def validate_engine(self, config: Config, errors: List[str]) -> None:
        self._require_password(config, errors, 4, optional=True)
        self._require_version(config, errors)

    def get_connection_string(self, container: Container, host: str = "localhost") -> str:
        if container.password:
            return f"redis://:{quote_credential(container.password)}@{host}:{container.port}"
        return f"redis://{host}:{container.port}"

    def requires_auth(self) -> bool:
        return False

    def get_default_username(self) -> Optional[str]:
        return None
