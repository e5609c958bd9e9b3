"""Dotted-path access into flat configuration objects.

Advanced settings are nested under a per-engine key, e.g.
``{"postgres_settings": {"host_auth_method": "md5"}}`` is addressed as
``postgres_settings.host_auth_method``.
"""

from typing import Any, Dict, Iterable

from .fields import FormField

Config = Dict[str, Any]


def get_value(config: Config, path: str, default: Any = None) -> Any:
    """
    Resolve a dotted path, returning ``default`` when any segment is missing.

    Args:
        config: Configuration object
        path: Dotted field name
        default: Value returned when the path does not resolve

    Returns:
        The value at ``path`` or ``default``
    """
    current: Any = config
    for part in path.split("."):
        if not isinstance(current, dict) or part not in current:
            return default
        current = current[part]
    return current


def set_value(config: Config, path: str, value: Any) -> None:
    """Write ``value`` at a dotted path, creating intermediate dictionaries."""
    parts = path.split(".")
    current = config
    for part in parts[:-1]:
        nested = current.get(part)
        if not isinstance(nested, dict):
            nested = {}
            current[part] = nested
        current = nested
    current[parts[-1]] = value


def default_config(fields: Iterable[FormField]) -> Config:
    """
    Build a configuration object seeded with every field default.

    Fields without a default are left out so providers treat them as absent.

    Args:
        fields: Fields from all sections of a provider

    Returns:
        New configuration dictionary
    """
    config: Config = {}
    for field in fields:
        if field.default_value is not None:
            set_value(config, field.name, field.default_value)
    return config
