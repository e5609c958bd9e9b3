"""Declarative form field descriptions.

Fields carry no rendering concern. A consuming form layer decides how to draw
them and evaluates the declarative rules with :func:`check_field`; providers
still run their own validation as the final gate.
"""

import re
from typing import Annotated, Any, Iterable, Iterator, List, Literal, Optional, Sequence, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator


class FieldValidation(BaseModel):
    """Bounds for text, password and number fields.

    For text and password, ``min``/``max`` bound the length; for number they
    bound the value.
    """

    model_config = ConfigDict(frozen=True)

    min: Optional[float] = None
    max: Optional[float] = None
    pattern: Optional[str] = None
    message: Optional[str] = None


class _BaseField(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Dotted path into the configuration object")
    label: str
    required: bool = False
    readonly: bool = False
    default_value: Any = None
    placeholder: Optional[str] = None
    help_text: Optional[str] = None


class TextField(_BaseField):
    type: Literal["text"] = "text"
    validation: Optional[FieldValidation] = None


class PasswordField(_BaseField):
    type: Literal["password"] = "password"
    validation: Optional[FieldValidation] = None


class NumberField(_BaseField):
    type: Literal["number"] = "number"
    validation: Optional[FieldValidation] = None


class SelectField(_BaseField):
    type: Literal["select"] = "select"
    options: List[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def _required_select_has_options(self) -> "SelectField":
        if self.required and not self.options:
            raise ValueError(f"Required select field '{self.name}' must have at least one option")
        return self


class CheckboxField(_BaseField):
    type: Literal["checkbox"] = "checkbox"


FormField = Annotated[
    Union[TextField, PasswordField, NumberField, SelectField, CheckboxField],
    Field(discriminator="type"),
]


class FieldGroup(BaseModel):
    """A labeled section of advanced fields."""

    model_config = ConfigDict(frozen=True)

    label: str
    description: Optional[str] = None
    fields: List[FormField] = Field(default_factory=list)


class FieldsOptions(BaseModel):
    """Options passed to basic-field producers."""

    model_config = ConfigDict(frozen=True)

    is_edit_mode: bool = False


def iter_fields(groups: Iterable[FieldGroup]) -> Iterator[FormField]:
    """Yield every field of every group, in order."""
    for group in groups:
        yield from group.fields


def field_names(fields: Iterable[FormField]) -> List[str]:
    return [field.name for field in fields]


def find_overlapping_names(groups: Sequence[FieldGroup]) -> List[str]:
    """
    List field names that appear in more than one group.

    Args:
        groups: Advanced field groups of a provider

    Returns:
        Duplicate names, in first-seen order; empty when groups are disjoint
    """
    seen: set[str] = set()
    duplicates: List[str] = []
    for field in iter_fields(groups):
        if field.name in seen and field.name not in duplicates:
            duplicates.append(field.name)
        seen.add(field.name)
    return duplicates


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == "")


def check_field(field: FormField, value: Any) -> Optional[str]:
    """
    Evaluate the declarative rules of one field against a value.

    Args:
        field: Field description
        value: Current value from the configuration object

    Returns:
        User-facing error message, or None when the value passes
    """
    if _is_blank(value):
        if field.required:
            return f"{field.label} is required"
        return None

    if isinstance(field, SelectField):
        if field.options and str(value) not in field.options:
            return f"{field.label} must be one of: {', '.join(field.options)}"
        return None

    if isinstance(field, CheckboxField):
        if field.required and value is not True:
            return f"{field.label} must be checked"
        return None

    rules = field.validation
    if rules is None:
        return None

    if isinstance(field, NumberField):
        try:
            number = float(value)
        except (TypeError, ValueError):
            return f"{field.label} must be a number"
        if (rules.min is not None and number < rules.min) or (
            rules.max is not None and number > rules.max
        ):
            return rules.message or f"{field.label} is out of range"
        return None

    text = str(value)
    if rules.min is not None and len(text) < rules.min:
        return rules.message or f"{field.label} must be at least {int(rules.min)} characters"
    if rules.max is not None and len(text) > rules.max:
        return rules.message or f"{field.label} must be at most {int(rules.max)} characters"
    if rules.pattern is not None and not re.fullmatch(rules.pattern, text):
        return rules.message or f"{field.label} has an invalid format"
    return None
