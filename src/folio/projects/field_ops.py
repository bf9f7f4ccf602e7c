"""Field schema and edit operations for project records.

Field names are the sidecar keys (``subStatus``, ``tech_medium``, ...). Every
operation returns a new :class:`Project` and leaves its input untouched, so
the caller can hand the result to a session and let it decide whether the
record is dirty.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Any

from folio.core.config import Config, get_config
from folio.core.field_ops import (  # noqa: F401 -- re-exports
    ChangeResult,
    FieldDef,
    FieldType,
    coerce_value,
    print_change,
    validate_value,
)
from folio.projects.model import STATUS_CHOICES, Project, ResourceLink, Status, dedupe

# -- Field schema for all editable project fields --

FIELD_SCHEMA: dict[str, FieldDef] = {
    # General info
    "id": FieldDef(FieldType.STRING, "Slug-like identifier"),
    "domain": FieldDef(FieldType.STRING, "Owning domain name"),
    "title": FieldDef(FieldType.STRING, "Display title"),
    "subtitle": FieldDef(FieldType.STRING, "One-line subtitle"),
    "summary": FieldDef(FieldType.STRING, "Short summary (required when public)"),
    "visibility": FieldDef(FieldType.STRING, "Who may see the project"),
    # Classification
    "category": FieldDef(FieldType.OPTIONAL_STRING, "Domain-specific category", nullable=True),
    "tech_category": FieldDef(FieldType.OPTIONAL_STRING, "Technical category", nullable=True),
    "tech_medium": FieldDef(FieldType.STRING_LIST, "Mediums (platforms, formats)"),
    "creative_genres": FieldDef(FieldType.STRING_LIST, "Creative genres", nullable=True),
    "expo_topic": FieldDef(FieldType.CSV, "Expository topics (comma-joined)", nullable=True),
    # Status
    "status": FieldDef(FieldType.STRING, "Lifecycle status", choices=STATUS_CHOICES),
    "subStatus": FieldDef(FieldType.OPTIONAL_STRING, "Free-form sub-status", attr="sub_status", nullable=True),
    # Lists
    "tags": FieldDef(FieldType.STRING_LIST, "Tags"),
    # Media
    "thumbnail": FieldDef(FieldType.OPTIONAL_STRING, "Thumbnail file name", nullable=True),
}


def attr_name(field: str) -> str:
    field_def = FIELD_SCHEMA[field]
    return field_def.attr or field


def choices_for(field: str, project: Project | None = None, config: Config | None = None) -> list[str] | None:
    """Allowed values for *field*, or None when anything goes."""
    if config is None:
        config = get_config()
    if field == "visibility":
        return config.visibility_choices
    if field == "category" and project is not None:
        return config.categories_for(project.domain)
    if field == "creative_genres":
        return config.creative_genres
    if field == "expo_topic":
        return config.expository_topics
    return FIELD_SCHEMA[field].choices


def get_value(project: Project, field: str) -> Any:
    value = getattr(project, attr_name(field))
    if isinstance(value, Status):
        return value.value
    if isinstance(value, list):
        return list(value)
    return value


def validate_field(
    field: str,
    value: Any,
    project: Project | None = None,
    config: Config | None = None,
) -> list[str]:
    """Validate a coerced value for *field*.

    Returns:
        List of error messages (empty if valid).
    """
    field_def = FIELD_SCHEMA.get(field)
    if field_def is None:
        return [f"Unknown field: {field!r}"]
    return validate_value(field, value, field_def, choices_for(field, project, config))


def _normalize(field: str, value: Any) -> Any:
    if field == "status":
        return Status(value)
    if isinstance(value, list):
        return dedupe([v.strip() for v in value if v.strip()])
    return value


def set_field(
    project: Project,
    field: str,
    value: Any,
    config: Config | None = None,
    slug: str = "",
) -> tuple[Project, ChangeResult]:
    """Set a field to an already-coerced value.

    Raises:
        ValueError: If the field is unknown or the value is not allowed
    """
    errors = validate_field(field, value, project, config)
    if errors:
        raise ValueError("; ".join(errors))

    old_value = get_value(project, field)
    updated = replace(project, **{attr_name(field): _normalize(field, value)})
    new_value = get_value(updated, field)
    return updated, ChangeResult(slug=slug or project.id, field=field, old_value=old_value, new_value=new_value, action="set")


def unset_field(project: Project, field: str, slug: str = "") -> tuple[Project, ChangeResult]:
    """Reset a field to its empty value.

    Nullable fields become None, strings become empty, lists become empty.
    ``visibility`` goes back to ``private``.

    Raises:
        ValueError: If the field is unknown or cannot be unset
    """
    field_def = FIELD_SCHEMA.get(field)
    if field_def is None:
        raise ValueError(f"Unknown field: {field!r}")
    if field == "status":
        raise ValueError("status cannot be unset; set it to 'idea' instead.")

    if field == "visibility":
        empty: Any = "private"
    elif field_def.nullable:
        empty = None
    elif field_def.field_type == FieldType.STRING_LIST:
        empty = []
    else:
        empty = ""

    old_value = get_value(project, field)
    updated = replace(project, **{attr_name(field): empty})
    return updated, ChangeResult(slug=slug or project.id, field=field, old_value=old_value, new_value=None, action="unset")


def modify_list_field(
    project: Project,
    field: str,
    *,
    add: list[str] | None = None,
    remove: list[str] | None = None,
    replace_with: list[str] | None = None,
    config: Config | None = None,
    slug: str = "",
) -> tuple[Project, ChangeResult]:
    """Add, remove, or replace items in a list field.

    Args:
        project: Record to edit.
        field: Field name (must be a STRING_LIST field).
        add: Items to add (appended, deduped).
        remove: Items to remove.
        replace_with: Complete replacement list (ignores add/remove).
        config: Vocabulary config for choice validation.
        slug: Label for the change report.

    Returns:
        The new record and a ChangeResult with old and new list values.

    Raises:
        ValueError: If field is not a list type or an item is not allowed.
    """
    field_def = FIELD_SCHEMA.get(field)
    if field_def is None:
        raise ValueError(f"Unknown field: {field!r}")
    if field_def.field_type != FieldType.STRING_LIST:
        raise ValueError(f"Field {field!r} is {field_def.field_type.value}, not a list.")

    old_value = list(get_value(project, field) or [])

    if replace_with is not None:
        new_value = dedupe([item.strip() for item in replace_with if item.strip()])
    else:
        new_value = list(old_value)
        if add:
            seen = set(new_value)
            for item in add:
                item = item.strip()
                if item and item not in seen:
                    new_value.append(item)
                    seen.add(item)
        if remove:
            remove_set = {item.strip() for item in remove}
            new_value = [item for item in new_value if item not in remove_set]

    errors = validate_field(field, new_value, project, config)
    if errors:
        raise ValueError("; ".join(errors))

    updated = replace(project, **{attr_name(field): new_value})

    if replace_with is not None:
        action = "replace"
    elif add and not remove:
        action = "add"
    elif remove and not add:
        action = "remove"
    else:
        action = "modify"
    return updated, ChangeResult(slug=slug or project.id, field=field, old_value=old_value, new_value=new_value, action=action)


def add_resource(project: Project, resource_type: str, label: str, url: str, config: Config | None = None) -> tuple[Project, ResourceLink]:
    """Append a resource link.

    Raises:
        ValueError: If the resource type is not configured
    """
    if config is None:
        config = get_config()
    if resource_type not in config.resource_types:
        raise ValueError(
            f"resource type {resource_type!r} is not a valid choice. "
            f"Options: {', '.join(config.resource_types)}."
        )
    link = ResourceLink(type=resource_type, label=label, url=url)
    return replace(project, resources=[*project.resources, link]), link


def remove_resource(project: Project, resource_id: str) -> tuple[Project, ResourceLink | None]:
    """Remove the resource with *resource_id* (case-insensitive, prefix allowed)."""
    wanted = resource_id.strip().upper()
    if not wanted:
        return project, None
    for resource in project.resources:
        if resource.id.upper() == wanted or resource.id.upper().startswith(wanted):
            remaining = [r for r in project.resources if r is not resource]
            return replace(project, resources=remaining), resource
    return project, None
