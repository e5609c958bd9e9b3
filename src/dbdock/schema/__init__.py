"""Form field schemas and configuration helpers."""

from .config import Config, default_config, get_value, set_value
from .fields import (
    CheckboxField,
    FieldGroup,
    FieldsOptions,
    FieldValidation,
    FormField,
    NumberField,
    PasswordField,
    SelectField,
    TextField,
    check_field,
    field_names,
    find_overlapping_names,
    iter_fields,
)

__all__ = [
    "CheckboxField",
    "Config",
    "FieldGroup",
    "FieldValidation",
    "FieldsOptions",
    "FormField",
    "NumberField",
    "PasswordField",
    "SelectField",
    "TextField",
    "check_field",
    "default_config",
    "field_names",
    "find_overlapping_names",
    "get_value",
    "iter_fields",
    "set_value",
]
