"""Shared field schema, coercion, validation, and change reporting.

Command-line values arrive as strings. A ``FieldDef`` says what shape a field
has so that ``coerce_value`` can turn the string into the right Python value
and ``validate_value`` can check it against the field's choices.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from rich.console import Console


class FieldType(Enum):
    """Supported field types for project metadata."""

    STRING = "string"
    OPTIONAL_STRING = "optional_string"
    STRING_LIST = "string_list"
    CSV = "csv"


@dataclass
class FieldDef:
    """Schema definition for a single field."""

    field_type: FieldType
    description: str
    choices: list[str] | None = None
    # Attribute name on the record when it differs from the field name
    attr: str | None = None
    # Whether unset is allowed (required strings can only be blanked)
    nullable: bool = False


@dataclass
class ChangeResult:
    """Result of a field change operation."""

    slug: str
    field: str
    old_value: Any
    new_value: Any
    action: str  # "set", "unset", "add", "remove", "replace", "modify"

    @property
    def changed(self) -> bool:
        return self.old_value != self.new_value


def split_list(value_str: str) -> list[str]:
    """Parse a JSON array or a comma-separated list."""
    stripped = value_str.strip()
    if stripped.startswith("["):
        try:
            parsed = json.loads(stripped)
            if isinstance(parsed, list):
                return [str(item) for item in parsed]
        except json.JSONDecodeError:
            pass
    return [item.strip() for item in value_str.split(",") if item.strip()]


def coerce_value(value_str: str, field_def: FieldDef) -> Any:
    """Coerce a string value to the field's expected type.

    Args:
        value_str: Raw string from CLI input.
        field_def: Schema definition for the target field.

    Returns:
        Coerced value.

    Raises:
        ValueError: If the value cannot be coerced.
    """
    ft = field_def.field_type

    if ft == FieldType.STRING:
        return value_str

    if ft == FieldType.OPTIONAL_STRING:
        return value_str if value_str.strip() else None

    if ft == FieldType.STRING_LIST:
        return split_list(value_str)

    if ft == FieldType.CSV:
        items = split_list(value_str)
        return ",".join(items) if items else None

    raise ValueError(f"Unknown field type: {ft}")


def validate_value(name: str, value: Any, field_def: FieldDef, choices: list[str] | None = None) -> list[str]:
    """Validate an already-coerced value.

    Args:
        name: Field name for messages.
        value: Coerced value.
        field_def: Schema definition.
        choices: Allowed values, overriding ``field_def.choices``.

    Returns:
        List of error messages (empty if valid).
    """
    allowed = choices if choices is not None else field_def.choices
    if allowed is None or value is None:
        return []

    if isinstance(value, str) and field_def.field_type == FieldType.CSV:
        candidates = [v for v in value.split(",") if v]
    elif isinstance(value, str):
        candidates = [value]
    else:
        candidates = list(value)

    return [
        f"{name}: {item!r} is not a valid choice. Options: {', '.join(allowed)}."
        for item in candidates
        if item not in allowed
    ]


def print_change(result: ChangeResult, console: Console) -> None:
    """Print a ChangeResult as a formatted diff."""
    console.print(f"[cyan]{result.slug}[/cyan]: {result.field}")
    if result.old_value is not None:
        console.print(f"  old: {result.old_value}")
    if result.new_value is not None:
        console.print(f"  new: {result.new_value}")
    elif result.action == "unset":
        console.print("  [dim](removed)[/dim]")
