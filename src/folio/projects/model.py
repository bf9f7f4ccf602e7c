"""
Typed project record and its sidecar wire format.

The record is what editing works on. ``to_dict``/``from_dict`` are the only
places that know about the on-disk shapes: ``tech_medium`` collapses to a
single string when it holds exactly one value, ``reviewed`` is ``false`` or
an ISO-8601 timestamp, and timestamps are UTC with a ``Z`` suffix.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from folio.core.errors import MalformedDocument


class Status(Enum):
    """Main lifecycle status of a project."""

    IDEA = "idea"
    IN_PROGRESS = "in_progress"
    DONE = "done"
    ARCHIVED = "archived"


STATUS_CHOICES = [s.value for s in Status]


# ---------------------------------------------------------------------------
# Timestamps
# ---------------------------------------------------------------------------


def utcnow() -> datetime:
    """Current time in UTC, truncated to whole seconds."""
    return datetime.now(timezone.utc).replace(microsecond=0)


def format_timestamp(value: datetime) -> str:
    """ISO-8601 in UTC with a ``Z`` suffix; sub-second precision only when present."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    timespec = "microseconds" if value.microsecond else "seconds"
    return value.isoformat(timespec=timespec).replace("+00:00", "Z")


def parse_timestamp(text: str) -> datetime:
    """Parse an ISO-8601 timestamp. Naive values are taken as UTC.

    Raises:
        ValueError: If the text is not a timestamp
    """
    if not isinstance(text, str) or not text:
        raise ValueError(f"Not a timestamp: {text!r}")
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


# ---------------------------------------------------------------------------
# Reviewed: Unreviewed | ReviewedAt(timestamp)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Reviewed:
    """Review state. ``at`` is None while unreviewed."""

    at: datetime | None = None

    @classmethod
    def unreviewed(cls) -> Reviewed:
        return cls(None)

    @classmethod
    def reviewed_at(cls, when: datetime) -> Reviewed:
        return cls(when)

    @property
    def is_reviewed(self) -> bool:
        return self.at is not None

    def encode(self) -> bool | str:
        if self.at is None:
            return False
        return format_timestamp(self.at)

    @classmethod
    def decode(cls, value: Any) -> Reviewed:
        """Accept a boolean or a timestamp string; anything else is unreviewed.

        A literal ``true`` carries no timestamp, so it also decodes as
        unreviewed. Saving then restamps it from the status.
        """
        if isinstance(value, str):
            try:
                return cls(parse_timestamp(value))
            except ValueError:
                return cls(None)
        return cls(None)


# ---------------------------------------------------------------------------
# tech_medium: ordered set with single-value collapsing on the wire
# ---------------------------------------------------------------------------


def dedupe(values: list[str]) -> list[str]:
    """Drop repeats, keeping first-seen order."""
    seen: set[str] = set()
    result = []
    for value in values:
        if value not in seen:
            seen.add(value)
            result.append(value)
    return result


def encode_tech_medium(values: list[str]) -> str | list[str]:
    values = dedupe(values)
    if len(values) == 1:
        return values[0]
    return values


def decode_tech_medium(value: Any) -> list[str]:
    """Accept a single string or an array of strings.

    Raises:
        ValueError: If the value has another shape
    """
    if value is None:
        return []
    if isinstance(value, str):
        return [value] if value else []
    if isinstance(value, list) and all(isinstance(v, str) for v in value):
        return dedupe(value)
    raise ValueError(f"tech_medium must be a string or list of strings, got {type(value).__name__}")


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


def new_resource_id() -> str:
    return str(uuid.uuid4()).upper()


@dataclass
class ResourceLink:
    """An external link attached to a project (repo, doc, video, ...)."""

    type: str
    label: str
    url: str
    id: str = field(default_factory=new_resource_id)

    def to_dict(self) -> dict[str, str]:
        return {"id": self.id, "type": self.type, "label": self.label, "url": self.url}

    @classmethod
    def from_dict(cls, data: Any) -> ResourceLink:
        if not isinstance(data, dict):
            raise ValueError("resource must be an object")
        values = {}
        for key in ("type", "label", "url"):
            value = data.get(key, "")
            if not isinstance(value, str):
                raise ValueError(f"resource {key} must be a string")
            values[key] = value
        resource_id = data.get("id")
        if not isinstance(resource_id, str) or not resource_id:
            resource_id = new_resource_id()
        return cls(id=resource_id, **values)


# Python attribute -> sidecar key
WIRE_NAMES: dict[str, str] = {
    "id": "id",
    "domain": "domain",
    "title": "title",
    "subtitle": "subtitle",
    "summary": "summary",
    "visibility": "visibility",
    "category": "category",
    "tech_category": "tech_category",
    "tech_medium": "tech_medium",
    "creative_genres": "creative_genres",
    "expo_topic": "expo_topic",
    "status": "status",
    "sub_status": "subStatus",
    "tags": "tags",
    "resources": "resources",
    "thumbnail": "thumbnail",
    "created_at": "createdAt",
    "updated_at": "updatedAt",
    "reviewed": "reviewed",
}

# Every top-level sidecar key owned by the Project schema. Anything else in
# a sidecar is foreign and is carried through saves untouched.
PROJECT_FIELDS: frozenset[str] = frozenset(WIRE_NAMES.values())

_OPTIONAL_STRINGS = ("category", "tech_category", "expo_topic", "sub_status", "thumbnail")
_PLAIN_STRINGS = ("domain", "subtitle", "summary")


@dataclass
class Project:
    """Metadata for one project folder."""

    id: str = ""
    domain: str = ""
    title: str = ""
    subtitle: str = ""
    summary: str = ""
    visibility: str = "private"
    category: str | None = None
    tech_category: str | None = None
    tech_medium: list[str] = field(default_factory=list)
    creative_genres: list[str] | None = None
    expo_topic: str | None = None
    status: Status = Status.IDEA
    sub_status: str | None = None
    tags: list[str] = field(default_factory=list)
    resources: list[ResourceLink] = field(default_factory=list)
    thumbnail: str | None = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)
    reviewed: Reviewed = field(default_factory=Reviewed.unreviewed)

    def __post_init__(self):
        self.tech_medium = dedupe(list(self.tech_medium))

    @classmethod
    def empty(cls) -> Project:
        """Zero-value record: private, idea, unreviewed, stamped now."""
        now = utcnow()
        return cls(created_at=now, updated_at=now)

    @classmethod
    def seed(cls, domain: str, folder: str, is_idea: bool) -> Project:
        """Starting record for a folder that has no sidecar yet."""
        project = cls.empty()
        project.id = folder.lower().replace(" ", "_")
        project.title = folder
        project.domain = domain
        project.status = Status.IDEA if is_idea else Status.IN_PROGRESS
        return project

    @property
    def is_public(self) -> bool:
        return self.visibility.lower() == "public"

    def to_dict(self) -> dict[str, Any]:
        """Encode to the sidecar shape. Unset optionals are omitted."""
        data: dict[str, Any] = {
            "id": self.id,
            "domain": self.domain,
            "title": self.title,
            "subtitle": self.subtitle,
            "summary": self.summary,
            "visibility": self.visibility,
            "tech_medium": encode_tech_medium(self.tech_medium),
            "status": self.status.value,
            "tags": list(self.tags),
            "resources": [r.to_dict() for r in self.resources],
            "createdAt": format_timestamp(self.created_at),
            "updatedAt": format_timestamp(self.updated_at),
            "reviewed": self.reviewed.encode(),
        }
        for attr in _OPTIONAL_STRINGS:
            value = getattr(self, attr)
            if value is not None:
                data[WIRE_NAMES[attr]] = value
        if self.creative_genres is not None:
            data["creative_genres"] = list(self.creative_genres)
        return data

    @classmethod
    def from_dict(cls, data: Any, path: Any = None) -> Project:
        """Decode a sidecar document. Foreign keys are ignored.

        Raises:
            MalformedDocument: If required fields are missing or mistyped
        """
        if not isinstance(data, dict):
            raise MalformedDocument(path, "document is not a JSON object")
        try:
            return cls._decode(data)
        except (KeyError, TypeError, ValueError) as e:
            raise MalformedDocument(path, str(e)) from e

    @classmethod
    def _decode(cls, data: dict[str, Any]) -> Project:
        def required_str(key: str) -> str:
            if key not in data:
                raise KeyError(f"missing required field {key!r}")
            value = data[key]
            if not isinstance(value, str):
                raise TypeError(f"{key} must be a string")
            return value

        def optional_str(key: str) -> str | None:
            value = data.get(key)
            if value is None:
                return None
            if not isinstance(value, str):
                raise TypeError(f"{key} must be a string")
            return value

        def string_list(key: str) -> list[str] | None:
            value = data.get(key)
            if value is None:
                return None
            if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
                raise TypeError(f"{key} must be a list of strings")
            return list(value)

        status_value = required_str("status")
        try:
            status = Status(status_value)
        except ValueError as e:
            raise ValueError(f"unknown status {status_value!r}") from e

        resources_raw = data.get("resources") or []
        if not isinstance(resources_raw, list):
            raise TypeError("resources must be a list")

        project = cls(
            id=required_str("id"),
            title=required_str("title"),
            visibility=optional_str("visibility") or "private",
            tech_medium=decode_tech_medium(data.get("tech_medium")),
            creative_genres=string_list("creative_genres"),
            status=status,
            tags=dedupe(string_list("tags") or []),
            resources=[ResourceLink.from_dict(r) for r in resources_raw],
            created_at=parse_timestamp(required_str("createdAt")),
            updated_at=parse_timestamp(required_str("updatedAt")),
            reviewed=Reviewed.decode(data.get("reviewed")),
        )
        for attr in _PLAIN_STRINGS:
            setattr(project, attr, optional_str(WIRE_NAMES[attr]) or "")
        for attr in _OPTIONAL_STRINGS:
            setattr(project, attr, optional_str(WIRE_NAMES[attr]))
        return project
