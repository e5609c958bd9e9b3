"""Elasticsearch provider."""

from typing import Dict, List, Optional

from dbdock.models.containers import Container
from dbdock.models.launch import PortMapping
from dbdock.schema import (
    CheckboxField,
    Config,
    FieldGroup,
    FieldValidation,
    FormField,
    NumberField,
    SelectField,
    TextField,
)

from .base import (
    MAX_HOST_PORT,
    MIN_HOST_PORT,
    DatabaseProvider,
    as_int,
    get_setting,
    is_disabled,
    password_field,
    quote_credential,
)

SUPERUSER = "elastic"
TRANSPORT_CONTAINER_PORT = 9300
DEFAULT_HEAP = "1g"


class ElasticsearchProvider(DatabaseProvider):
    id = "Elasticsearch"
    name = "Elasticsearch"
    description = "Distributed search and analytics engine"
    image_repository = "docker.elastic.co/elasticsearch/elasticsearch"
    default_port = 9200
    container_port = 9200
    data_path = "/usr/share/elasticsearch/data"
    versions = (
        "9.1.5", "9.1", "9.0.8", "9.0", "9",
        "8.19.5", "8.19", "8.18.8", "8.18", "8.17.10", "8.17", "8",
        "latest",
    )  # fmt: skip

    def get_authentication_fields(self) -> List[FormField]:
        return [
            CheckboxField(
                name="elasticsearch_settings.security_enabled",
                label="Enable Security",
                default_value=True,
                help_text='Enable security features. The username is always "elastic".',
            ),
            password_field(6, 'Password for the "elastic" superuser account'),
        ]

    def get_advanced_fields(self) -> List[FieldGroup]:
        return [
            FieldGroup(
                label="Cluster Configuration",
                description="Configure cluster and node names",
                fields=[
                    TextField(
                        name="elasticsearch_settings.cluster_name",
                        label="Cluster Name",
                        default_value="docker-cluster",
                        help_text="Name of the Elasticsearch cluster",
                    ),
                    TextField(
                        name="elasticsearch_settings.node_name",
                        label="Node Name",
                        default_value="node-1",
                        help_text="Name of this Elasticsearch node",
                    ),
                    SelectField(
                        name="elasticsearch_settings.discovery_type",
                        label="Discovery Type",
                        options=["single-node", "multi-node"],
                        default_value="single-node",
                        help_text="Use single-node for development",
                    ),
                ],
            ),
            FieldGroup(
                label="Memory",
                description="Configure JVM heap",
                fields=[
                    SelectField(
                        name="elasticsearch_settings.heap_size",
                        label="Heap Size",
                        options=["512m", "1g", "2g", "4g", "8g"],
                        default_value=DEFAULT_HEAP,
                        help_text="JVM heap size (about half of available RAM, max 32GB)",
                    ),
                    CheckboxField(
                        name="elasticsearch_settings.bootstrap_memory_lock",
                        label="Lock Memory",
                        default_value=True,
                        help_text="Lock memory on startup to prevent swapping",
                    ),
                ],
            ),
            FieldGroup(
                label="Network",
                description="Configure node-to-node communication",
                fields=[
                    NumberField(
                        name="elasticsearch_settings.transport_port",
                        label="Transport Port",
                        default_value=TRANSPORT_CONTAINER_PORT,
                        validation=FieldValidation(min=MIN_HOST_PORT, max=MAX_HOST_PORT),
                        help_text="Host port for node-to-node communication",
                    ),
                ],
            ),
            FieldGroup(
                label="License",
                description="Configure the self-generated license",
                fields=[
                    SelectField(
                        name="elasticsearch_settings.license_type",
                        label="License Type",
                        options=["basic", "trial"],
                        default_value="basic",
                        help_text="basic is free, trial enables all features for 30 days",
                    ),
                ],
            ),
        ]

    def security_enabled(self, config: Config) -> bool:
        return not is_disabled(config, "elasticsearch_settings.security_enabled")

    def build_env(self, config: Config) -> Dict[str, str]:
        env = {
            "discovery.type": str(
                get_setting(config, "elasticsearch_settings.discovery_type") or "single-node"
            ),
            "cluster.name": str(
                get_setting(config, "elasticsearch_settings.cluster_name") or "docker-cluster"
            ),
            "node.name": str(get_setting(config, "elasticsearch_settings.node_name") or "node-1"),
        }

        heap = get_setting(config, "elasticsearch_settings.heap_size") or DEFAULT_HEAP
        env["ES_JAVA_OPTS"] = f"-Xms{heap} -Xmx{heap}"

        if self.security_enabled(config):
            env["ELASTIC_PASSWORD"] = str(get_setting(config, "password") or "")
            env["xpack.security.enabled"] = "true"
            env["xpack.security.enrollment.enabled"] = "true"
        else:
            env["xpack.security.enabled"] = "false"

        if not is_disabled(config, "elasticsearch_settings.bootstrap_memory_lock"):
            env["bootstrap.memory_lock"] = "true"

        license_type = get_setting(config, "elasticsearch_settings.license_type")
        if license_type is not None:
            env["xpack.license.self_generated.type"] = str(license_type)
        return env

    def build_ports(self, config: Config) -> List[PortMapping]:
        ports = super().build_ports(config)
        transport_port = as_int(get_setting(config, "elasticsearch_settings.transport_port"))
        if transport_port:
            ports.append(PortMapping(host=transport_port, container=TRANSPORT_CONTAINER_PORT))
        return ports

    def validate_engine(self, config: Config, errors: List[str]) -> None:
        self._require_password(config, errors, 6)
        self._require_version(config, errors)

        raw_transport = get_setting(config, "elasticsearch_settings.transport_port")
        if raw_transport is None:
            return
        transport_port = as_int(raw_transport)
        if transport_port is None or not MIN_HOST_PORT <= transport_port <= MAX_HOST_PORT:
            errors.append("Transport port must be between 1024 and 65535")
        elif transport_port == as_int(get_setting(config, "port")):
            errors.append("Transport port must differ from the HTTP port")

    def auth_enabled(self, config: Config) -> bool:
        return self.security_enabled(config)

    def get_connection_string(self, container: Container, host: str = "localhost") -> str:
        if not container.enable_auth:
            return f"http://{host}:{container.port}"
        password = quote_credential(container.password or "")
        return f"https://{SUPERUSER}:{password}@{host}:{container.port}"

    def get_default_username(self) -> Optional[str]:
        return SUPERUSER
