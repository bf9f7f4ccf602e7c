"""
Project document store.

Loads a project folder's ``_project.json`` into a :class:`Project` and writes
a Project back by merging it into whatever document is already on disk.
Top-level keys the Project schema does not own (``images``, ``planning``,
anything added by other tools) are copied through unchanged, so a typed
editor can share the file with tooling it knows nothing about.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import replace
from datetime import datetime
from pathlib import Path
from typing import Any

from folio.core.atomic import safe_write_json
from folio.core.config import Config, get_config
from folio.core.errors import AccessError, MalformedDocument, NotFound, ValidationError, WriteFailure
from folio.core.rules import IDEAS_FOLDER_NAME, SIDECAR_NAME
from folio.projects.model import PROJECT_FIELDS, Project, Reviewed, Status, utcnow

logger = logging.getLogger(__name__)

MAX_PUBLIC_SUMMARY_SENTENCES = 3

_SENTENCE_END = re.compile(r"[.!?]")


def sidecar_path(folder: Path) -> Path:
    """Return the sidecar path for a project folder."""
    return Path(folder) / SIDECAR_NAME


# ---------------------------------------------------------------------------
# Reading
# ---------------------------------------------------------------------------


def read_raw(folder: Path) -> dict[str, Any]:
    """Read the sidecar as a generic JSON object.

    Raises:
        NotFound: If there is no sidecar
        AccessError: If the sidecar cannot be read
        MalformedDocument: If it is not a JSON object
    """
    path = sidecar_path(folder)
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise NotFound(path) from e
    except PermissionError as e:
        raise AccessError(path, "permission denied") from e
    except UnicodeDecodeError as e:
        raise MalformedDocument(path, f"not UTF-8: {e}") from e
    except OSError as e:
        raise AccessError(path, str(e)) from e

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise MalformedDocument(path, f"invalid JSON: {e}") from e
    if not isinstance(data, dict):
        raise MalformedDocument(path, "document is not a JSON object")
    return data


def read_required(folder: Path) -> Project:
    """Load a project, treating a missing sidecar as an error.

    Raises:
        NotFound: If there is no sidecar
        MalformedDocument: If the document cannot be decoded
    """
    data = read_raw(folder)
    return Project.from_dict(data, path=sidecar_path(folder))


def load(folder: Path) -> Project | None:
    """Load the project in *folder*.

    Returns:
        The decoded Project, or None when the folder has no sidecar

    Raises:
        MalformedDocument: If the sidecar exists but cannot be decoded
        AccessError: If the sidecar cannot be read
    """
    try:
        return read_required(folder)
    except NotFound:
        return None


def infer_origin(folder: Path) -> tuple[str, bool]:
    """Work out (domain name, is idea) from a project folder's location.

    ``Domain/Name`` belongs to Domain; ``Domain/_IDEAS_/Name`` is an idea in
    Domain.
    """
    parent = Path(folder).parent
    if parent.name == IDEAS_FOLDER_NAME:
        return parent.parent.name, True
    return parent.name, False


def load_or_seed(folder: Path, domain: str | None = None, is_idea: bool | None = None) -> Project:
    """Load the project in *folder*, seeding a fresh record if there is none.

    A malformed sidecar is logged and treated as if it were absent.
    """
    folder = Path(folder)
    try:
        project = load(folder)
    except MalformedDocument as e:
        logger.warning("%s; starting from a fresh record", e)
        project = None
    if project is not None:
        return project

    inferred_domain, inferred_idea = infer_origin(folder)
    return Project.seed(
        domain=domain if domain is not None else inferred_domain,
        folder=folder.name,
        is_idea=inferred_idea if is_idea is None else is_idea,
    )


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def limit_sentences(text: str, limit: int = MAX_PUBLIC_SUMMARY_SENTENCES) -> str:
    """Keep at most *limit* sentences, split on ``.``, ``!`` and ``?``."""
    sentences: list[str] = []
    start = 0
    for match in _SENTENCE_END.finditer(text):
        sentence = text[start:match.end()].strip()
        start = match.end()
        if sentence:
            sentences.append(sentence)
        if len(sentences) >= limit:
            return " ".join(sentences)
    tail = text[start:].strip()
    if tail:
        sentences.append(tail)
    return " ".join(sentences[:limit])


def validate(project: Project, config: Config | None = None) -> list[str]:
    """Return the reasons *project* cannot be saved (empty if it can)."""
    if config is None:
        config = get_config()
    errors: list[str] = []

    if not isinstance(project.status, Status):
        errors.append(f"status: {project.status!r} is not one of {', '.join(s.value for s in Status)}.")

    if project.visibility not in config.visibility_choices:
        errors.append(
            f"visibility: {project.visibility!r} is not a valid choice. "
            f"Options: {', '.join(config.visibility_choices)}."
        )

    if project.is_public and not project.summary.strip():
        errors.append("Public projects require a brief summary (2-3 sentences) before saving.")

    return errors


def prepare_for_save(project: Project, config: Config | None = None) -> Project:
    """Validate and normalize a record before it is written.

    Public summaries are trimmed to three sentences.

    Raises:
        ValidationError: If the record cannot be saved
    """
    errors = validate(project, config)
    if errors:
        raise ValidationError(errors)
    if project.is_public:
        return replace(project, summary=limit_sentences(project.summary.strip()))
    return project


# ---------------------------------------------------------------------------
# Writing
# ---------------------------------------------------------------------------


def stamp(project: Project, now: datetime) -> Project:
    """Set ``updated_at`` and derive ``reviewed`` from the status."""
    reviewed = Reviewed.unreviewed() if project.status == Status.IDEA else Reviewed.reviewed_at(now)
    return replace(project, updated_at=now, reviewed=reviewed)


def foreign_keys(document: dict[str, Any]) -> dict[str, Any]:
    """Top-level entries of a sidecar that the Project schema does not own."""
    return {k: v for k, v in document.items() if k not in PROJECT_FIELDS}


def merge_document(project: Project, existing: dict[str, Any] | None) -> dict[str, Any]:
    """Encode *project* and splice in the foreign keys of *existing*."""
    merged = project.to_dict()
    if existing:
        for key, value in foreign_keys(existing).items():
            merged[key] = value
    return merged


def write_document(folder: Path, document: dict[str, Any]) -> Path:
    """Atomically replace the sidecar with *document*, creating the folder if needed.

    Raises:
        WriteFailure: If the folder or file cannot be written
    """
    folder = Path(folder)
    path = sidecar_path(folder)
    try:
        folder.mkdir(parents=True, exist_ok=True)
        return safe_write_json(path, document)
    except (OSError, ValueError) as e:
        raise WriteFailure(path, str(e)) from e


def save(project: Project, folder: Path, now: datetime | None = None) -> Project:
    """Write *project* into *folder*'s sidecar without losing foreign keys.

    Stamps ``updated_at``, enforces the review invariant, merges with the
    existing document and atomically replaces the file. If the existing
    document cannot be parsed its foreign keys are lost and the save goes
    ahead with the Project fields only. An existing document that cannot be
    read at all is left untouched.

    Returns:
        The record as written

    Raises:
        WriteFailure: If the write fails or the existing document cannot be read
    """
    folder = Path(folder)
    stamped = stamp(project, now or utcnow())

    try:
        existing = read_raw(folder)
    except NotFound:
        existing = None
    except MalformedDocument as e:
        logger.warning("Could not parse existing document, foreign keys will be dropped: %s", e)
        existing = None
    except AccessError as e:
        raise WriteFailure(sidecar_path(folder), f"existing document unreadable ({e.reason})") from e

    write_document(folder, merge_document(stamped, existing))
    logger.debug("Saved %s", sidecar_path(folder))
    return stamped


class ProjectStore:
    """Document store bound to a vocabulary config.

    ``save`` here validates first; the module-level :func:`save` does not.
    """

    def __init__(self, config: Config | None = None):
        self.config = config if config is not None else get_config()

    def load(self, folder: Path) -> Project | None:
        return load(folder)

    def load_or_seed(self, folder: Path, domain: str | None = None, is_idea: bool | None = None) -> Project:
        return load_or_seed(folder, domain=domain, is_idea=is_idea)

    def validate(self, project: Project) -> list[str]:
        return validate(project, self.config)

    def save(self, project: Project, folder: Path, now: datetime | None = None) -> Project:
        """Validate, normalize and save.

        Raises:
            ValidationError: If the record cannot be saved (nothing is written)
            WriteFailure: If the write fails
        """
        prepared = prepare_for_save(project, self.config)
        return save(prepared, folder, now=now)
