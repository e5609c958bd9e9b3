"""InfluxDB provider.

The 1.x images are initialised through ``INFLUXDB_*`` variables and keep data
in ``/var/lib/influxdb``; 2.x and later use the ``DOCKER_INFLUXDB_INIT_*``
setup mode and ``/var/lib/influxdb2``.
"""

import re
from typing import Dict, List, Optional

from dbdock.models.containers import Container
from dbdock.schema import (
    CheckboxField,
    Config,
    FieldGroup,
    FieldValidation,
    FormField,
    NumberField,
    PasswordField,
    TextField,
)

from .base import (
    DatabaseProvider,
    as_int,
    get_setting,
    is_disabled,
    is_enabled,
    password_field,
    quote_credential,
    username_field,
)

DEFAULT_USER = "admin"
DEFAULT_ORG = "myorg"
DEFAULT_BUCKET = "mybucket"
DEFAULT_V1_DATABASE = "mydb"

V1_DATA_PATH = "/var/lib/influxdb"
V2_DATA_PATH = "/var/lib/influxdb2"

_LEADING_MAJOR = re.compile(r"^(\d+)")
_V3_KEYWORDS = ("core", "enterprise")


def is_influxdb_v2_or_higher(version: str | None) -> bool:
    """
    Decide whether an image tag belongs to the 2.x-or-later family.

    Numeric tags are judged by their major component ("1.12-alpine" is 1.x,
    "2.7.12" and "3.5-core" are not). Tags naming the 3.x editions ("core",
    "enterprise" and their suffixed forms) are 3.x. Any other alias, such
    as "latest" or "alpine", follows the image's current line.

    Args:
        version: Image tag, or None when unset

    Returns:
        True for 2.x and above
    """
    if not version:
        return True
    tag = version.strip().lower()
    if any(keyword in tag for keyword in _V3_KEYWORDS):
        return True
    match = _LEADING_MAJOR.match(tag)
    if match:
        return int(match.group(1)) >= 2
    return True


class InfluxDBProvider(DatabaseProvider):
    id = "InfluxDB"
    name = "InfluxDB"
    description = "Time series database"
    image_repository = "influxdb"
    default_port = 8086
    container_port = 8086
    data_path = V2_DATA_PATH
    versions = (
        "3-core", "3.5-core", "3.5.0-core", "core",
        "3-enterprise", "3.5-enterprise", "3.5.0-enterprise", "enterprise",
        "latest", "2", "2.7", "2.7.12", "alpine", "2-alpine", "2.7-alpine", "2.7.12-alpine",
        "1.12", "1.12.2", "1.12-alpine", "1.12.2-alpine",
        "1.12-data", "1.12.2-data", "1.12-data-alpine", "1.12.2-data-alpine",
        "1.12-meta", "1.12.2-meta", "1.12-meta-alpine", "1.12.2-meta-alpine",
        "1.11", "1.11.8", "1.11-alpine", "1.11.8-alpine",
        "1.11-data", "1.11.9-data", "1.11-data-alpine", "1.11.9-data-alpine",
        "1.11-meta", "1.11.9-meta", "1.11-meta-alpine", "1.11.9-meta-alpine",
    )  # fmt: skip

    def get_authentication_fields(self) -> List[FormField]:
        return [
            username_field(DEFAULT_USER, "Administrator username for InfluxDB"),
            password_field(8, "Password for the administrator account"),
            TextField(
                name="influxdb_settings.org",
                label="Organization",
                required=True,
                default_value=DEFAULT_ORG,
                placeholder="Organization name",
                help_text="Organization name (InfluxDB 2.x and above)",
            ),
            TextField(
                name="influxdb_settings.bucket",
                label="Initial Bucket",
                required=True,
                default_value=DEFAULT_BUCKET,
                placeholder="Bucket name",
                help_text="Initial bucket, or database name for InfluxDB 1.x",
            ),
            PasswordField(
                name="influxdb_settings.token",
                label="Admin Token",
                placeholder="Auto-generated if empty",
                help_text="Admin API token (optional, auto-generated if not provided)",
            ),
        ]

    def get_advanced_fields(self) -> List[FieldGroup]:
        return [
            FieldGroup(
                label="Retention Policy",
                description="Configure data retention settings",
                fields=[
                    NumberField(
                        name="influxdb_settings.retention_hours",
                        label="Retention Period (hours)",
                        default_value=0,
                        validation=FieldValidation(min=0),
                        help_text="Data retention in hours (0 = infinite, 2.x and above)",
                    ),
                ],
            ),
            FieldGroup(
                label="HTTP Configuration",
                description="Configure HTTP server settings",
                fields=[
                    CheckboxField(
                        name="influxdb_settings.http_log_enabled",
                        label="Enable HTTP Request Logging",
                        default_value=True,
                        help_text="Log HTTP requests to the server",
                    ),
                ],
            ),
            FieldGroup(
                label="Monitoring",
                description="Configure monitoring and metrics",
                fields=[
                    CheckboxField(
                        name="influxdb_settings.metrics_disabled",
                        label="Disable Metrics",
                        default_value=False,
                        help_text="Disable internal metrics collection",
                    ),
                ],
            ),
            FieldGroup(
                label="Performance",
                description="Configure performance settings",
                fields=[
                    NumberField(
                        name="influxdb_settings.storage_wal_max_concurrent_writes",
                        label="Max Concurrent WAL Writes",
                        default_value=0,
                        validation=FieldValidation(min=0),
                        help_text="Maximum number of concurrent WAL writes (0 = unlimited)",
                    ),
                ],
            ),
        ]

    def data_path_for(self, version: str) -> str:
        return V2_DATA_PATH if is_influxdb_v2_or_higher(version) else V1_DATA_PATH

    def build_env(self, config: Config) -> Dict[str, str]:
        username = str(get_setting(config, "username") or DEFAULT_USER)
        password = str(get_setting(config, "password") or "")

        if not is_influxdb_v2_or_higher(self.resolve_version(config)):
            env = {
                "INFLUXDB_DB": str(get_setting(config, "influxdb_settings.bucket") or DEFAULT_V1_DATABASE),
                "INFLUXDB_ADMIN_USER": username,
                "INFLUXDB_ADMIN_PASSWORD": password,
            }
            if is_disabled(config, "influxdb_settings.http_log_enabled"):
                env["INFLUXDB_HTTP_LOG_ENABLED"] = "false"
            return env

        env = {
            "DOCKER_INFLUXDB_INIT_MODE": "setup",
            "DOCKER_INFLUXDB_INIT_USERNAME": username,
            "DOCKER_INFLUXDB_INIT_PASSWORD": password,
            "DOCKER_INFLUXDB_INIT_ORG": str(get_setting(config, "influxdb_settings.org") or DEFAULT_ORG),
            "DOCKER_INFLUXDB_INIT_BUCKET": str(
                get_setting(config, "influxdb_settings.bucket") or DEFAULT_BUCKET
            ),
        }

        token = get_setting(config, "influxdb_settings.token")
        if token is not None:
            env["DOCKER_INFLUXDB_INIT_ADMIN_TOKEN"] = str(token)

        retention = as_int(get_setting(config, "influxdb_settings.retention_hours"))
        if retention and retention > 0:
            env["DOCKER_INFLUXDB_INIT_RETENTION"] = f"{retention}h"

        if is_disabled(config, "influxdb_settings.http_log_enabled"):
            env["INFLUXD_HTTP_LOG_ENABLED"] = "false"

        if is_enabled(config, "influxdb_settings.metrics_disabled"):
            env["INFLUXD_METRICS_DISABLED"] = "true"

        wal_writes = as_int(get_setting(config, "influxdb_settings.storage_wal_max_concurrent_writes"))
        if wal_writes:
            env["INFLUXD_STORAGE_WAL_MAX_CONCURRENT_WRITES"] = str(wal_writes)
        return env

    def validate_engine(self, config: Config, errors: List[str]) -> None:
        self._require_password(config, errors, 8)
        self._require_version(config, errors)
        version = get_setting(config, "version")
        if version is not None and is_influxdb_v2_or_higher(str(version)):
            if get_setting(config, "influxdb_settings.org") is None:
                errors.append("Organization is required for InfluxDB 2.x and above")
            if get_setting(config, "influxdb_settings.bucket") is None:
                errors.append("Initial bucket is required for InfluxDB 2.x and above")

    def get_connection_string(self, container: Container, host: str = "localhost") -> str:
        username = quote_credential(container.username or DEFAULT_USER)
        return f"http://{username}@{host}:{container.port}?org={DEFAULT_ORG}"

    def get_default_username(self) -> Optional[str]:
        return DEFAULT_USER
