"""Provider contract shared by every database engine.

A provider is immutable after construction. It describes its configuration
form, validates a configuration object and compiles it into a
:class:`~dbdock.models.launch.LaunchDescriptor`. Compilation and validation are
pure: no I/O and no exceptions for missing optional settings.
"""

import re
from abc import ABC, abstractmethod
from typing import Any, ClassVar, Dict, List, Optional, Sequence
from urllib.parse import quote

from pydantic import BaseModel, Field

from dbdock.models.containers import Container
from dbdock.models.launch import LaunchDescriptor, PortMapping, VolumeMount
from dbdock.schema import (
    CheckboxField,
    Config,
    FieldGroup,
    FieldsOptions,
    FieldValidation,
    FormField,
    NumberField,
    PasswordField,
    SelectField,
    TextField,
    default_config,
    get_value,
    iter_fields,
)

MIN_HOST_PORT = 1024
MAX_HOST_PORT = 65535
MIN_NAME_LENGTH = 3

# Docker accepts [a-zA-Z0-9][a-zA-Z0-9_.-]* for container and volume names
NAME_PATTERN = re.compile(r"[a-zA-Z0-9][a-zA-Z0-9_.-]*")


class ValidationResult(BaseModel):
    """Outcome of provider validation; errors keep a stable order."""

    valid: bool
    errors: List[str] = Field(default_factory=list)

    @classmethod
    def from_errors(cls, errors: Sequence[str]) -> "ValidationResult":
        return cls(valid=not errors, errors=list(errors))


def get_setting(config: Config, path: str) -> Any:
    """
    Read an optional setting, treating blank strings as absent.

    Args:
        config: Configuration object
        path: Dotted field name

    Returns:
        The value, or None when missing or blank
    """
    value = get_value(config, path)
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


def as_int(value: Any) -> Optional[int]:
    """Coerce a form value to int, returning None when it is not a whole number."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    try:
        number = float(str(value).strip())
    except ValueError:
        return None
    return int(number) if number.is_integer() else None


def is_enabled(config: Config, path: str) -> bool:
    """True when a checkbox setting is explicitly on."""
    value = get_value(config, path)
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes", "on")
    return value is True


def is_disabled(config: Config, path: str) -> bool:
    """True when a setting that defaults to on is explicitly turned off."""
    value = get_value(config, path)
    if isinstance(value, str):
        return value.strip().lower() in ("false", "0", "no", "off")
    return value is False


def quote_credential(value: str) -> str:
    return quote(value, safe="")


class DatabaseProvider(ABC):
    """Base class for one database engine.

    Subclasses set the identification and Docker class attributes and supply
    the engine-specific pieces; the shared template takes care of the image
    reference, port mappings and volumes.
    """

    id: ClassVar[str]
    name: ClassVar[str]
    description: ClassVar[str]
    image_repository: ClassVar[str]
    default_port: ClassVar[int]
    container_port: ClassVar[int]
    data_path: ClassVar[str]
    versions: ClassVar[Sequence[str]]
    default_database: ClassVar[Optional[str]] = None

    # ==================== Form fields ====================

    def get_basic_fields(self, options: FieldsOptions | None = None) -> List[FormField]:
        """
        Fields every engine shares: name, port, version and persistence.

        Args:
            options: Form options; in edit mode the version becomes read-only

        Returns:
            Ordered basic fields
        """
        is_edit_mode = options.is_edit_mode if options else False
        return [
            TextField(
                name="name",
                label="Container Name",
                required=True,
                placeholder=f"my-{self.id.lower()}-db",
                validation=FieldValidation(
                    min=MIN_NAME_LENGTH,
                    message="Container name must be at least 3 characters",
                ),
                help_text="Unique name for this container",
            ),
            NumberField(
                name="port",
                label="Port",
                required=True,
                default_value=self.default_port,
                placeholder=str(self.default_port),
                validation=FieldValidation(
                    min=MIN_HOST_PORT,
                    max=MAX_HOST_PORT,
                    message="Port must be between 1024 and 65535",
                ),
                help_text=f"Host port to map to container port {self.container_port}",
            ),
            SelectField(
                name="version",
                label=f"{self.name} Version",
                required=True,
                options=list(self.versions),
                default_value=self.versions[0],
                readonly=is_edit_mode,
                help_text=(
                    "Version cannot be changed after creation"
                    if is_edit_mode
                    else f"Select the {self.name} version to install"
                ),
            ),
            CheckboxField(
                name="persist_data",
                label="Persist Data",
                default_value=True,
                help_text=f"Keep data in a named volume mounted at {self.data_path}",
            ),
        ]

    @abstractmethod
    def get_authentication_fields(self) -> List[FormField]:
        """Username, password and initial database fields, as applicable."""

    def get_advanced_fields(self) -> List[FieldGroup]:
        return []

    def all_fields(self, options: FieldsOptions | None = None) -> List[FormField]:
        return [
            *self.get_basic_fields(options),
            *self.get_authentication_fields(),
            *iter_fields(self.get_advanced_fields()),
        ]

    def default_config(self, options: FieldsOptions | None = None) -> Config:
        """Configuration object pre-filled with every field default."""
        return default_config(self.all_fields(options))

    # ==================== Argument compilation ====================

    def build_docker_args(self, config: Config) -> LaunchDescriptor:
        """
        Compile a configuration object into a launch descriptor.

        Args:
            config: Flat configuration object with nested advanced settings

        Returns:
            LaunchDescriptor for the configured engine
        """
        version = self.resolve_version(config)
        return LaunchDescriptor(
            image=f"{self.image_repository}:{version}",
            env_vars=self.build_env(config),
            ports=self.build_ports(config),
            volumes=self.build_volumes(config),
            command=self.build_command(config),
        )

    def resolve_version(self, config: Config) -> str:
        version = get_setting(config, "version")
        return str(version) if version is not None else self.versions[0]

    def resolve_port(self, config: Config) -> int:
        port = as_int(get_value(config, "port"))
        return port if port is not None else self.default_port

    def build_env(self, config: Config) -> Dict[str, str]:
        return {}

    def build_command(self, config: Config) -> List[str]:
        return []

    def build_ports(self, config: Config) -> List[PortMapping]:
        return [PortMapping(host=self.resolve_port(config), container=self.container_port)]

    def data_path_for(self, version: str) -> str:
        """Mount target for the data volume; engines may vary it by version."""
        return self.data_path

    def build_volumes(self, config: Config) -> List[VolumeMount]:
        if not is_enabled(config, "persist_data"):
            return []
        name = get_setting(config, "name") or ""
        return [
            VolumeMount(
                name=volume_name(str(name)),
                path=self.data_path_for(self.resolve_version(config)),
            )
        ]

    # ==================== Validation ====================

    def validate_config(self, config: Config) -> ValidationResult:
        """
        Check every business rule and report all violations at once.

        The shared name and port rules come first, then the engine rules.

        Args:
            config: Configuration object

        Returns:
            ValidationResult with errors in a stable order
        """
        errors: List[str] = []
        self._validate_common(config, errors)
        self.validate_engine(config, errors)
        return ValidationResult.from_errors(errors)

    def _validate_common(self, config: Config, errors: List[str]) -> None:
        name = get_setting(config, "name")
        if name is None:
            errors.append("Container name is required")
        elif len(str(name)) < MIN_NAME_LENGTH:
            errors.append("Container name must be at least 3 characters")
        elif not NAME_PATTERN.fullmatch(str(name)):
            errors.append(
                "Container name may only contain letters, numbers, underscores, "
                "periods and hyphens"
            )

        raw_port = get_value(config, "port")
        port = as_int(raw_port)
        if raw_port is None or raw_port == "":
            errors.append("Port is required")
        elif port is None or not MIN_HOST_PORT <= port <= MAX_HOST_PORT:
            errors.append("Port must be between 1024 and 65535")

    @abstractmethod
    def validate_engine(self, config: Config, errors: List[str]) -> None:
        """Append engine-specific errors in a fixed order."""

    def _require_version(self, config: Config, errors: List[str]) -> None:
        if get_setting(config, "version") is None:
            errors.append(f"{self.name} version is required")

    def _require_password(
        self, config: Config, errors: List[str], min_length: int, optional: bool = False
    ) -> None:
        password = get_value(config, "password") or ""
        if optional and not password:
            return
        if len(str(password)) < min_length:
            suffix = " if provided" if optional else ""
            errors.append(f"Password must be at least {min_length} characters{suffix}")

    # ==================== Utilities ====================

    @abstractmethod
    def get_connection_string(self, container: Container, host: str = "localhost") -> str:
        """Render a client connection string, falling back to engine defaults."""

    def requires_auth(self) -> bool:
        return True

    def get_default_username(self) -> Optional[str]:
        return None

    def auth_enabled(self, config: Config) -> bool:
        """Whether the launched database will ask clients for credentials."""
        return self.requires_auth() or get_setting(config, "password") is not None

    def effective_username(self, config: Config) -> Optional[str]:
        username = get_setting(config, "username")
        return str(username) if username is not None else self.get_default_username()

    def __repr__(self) -> str:
        return f"<{type(self).__name__}(id={self.id})>"


def volume_name(container_name: str) -> str:
    """Stable data volume name for a container."""
    return f"{container_name}-data"


def username_field(default: str, help_text: str, readonly: bool = False) -> TextField:
    return TextField(
        name="username",
        label="Username",
        required=True,
        readonly=readonly,
        default_value=default,
        placeholder=default,
        help_text=help_text,
    )


def database_name_field(default: str | None, placeholder: str = "my_database") -> TextField:
    help_text = "Optional: create an initial database"
    if default:
        help_text += f' (defaults to "{default}")'
    return TextField(
        name="database_name",
        label="Initial Database",
        placeholder=placeholder,
        help_text=help_text,
    )


def password_field(
    min_length: int, help_text: str, required: bool = True, message: str | None = None
) -> PasswordField:
    return PasswordField(
        name="password",
        label="Password",
        required=required,
        placeholder="Strong password" if required else "Optional password",
        validation=FieldValidation(
            min=min_length,
            message=message or f"Password must be at least {min_length} characters",
        ),
        help_text=help_text,
    )
