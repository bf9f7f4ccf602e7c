"""
Portfolio folder scanner.

Walks the root and domain folders to enumerate domains, projects and idea
projects, reads raw sidecar documents for review state, and harvests tags
across an entire subtree.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from functools import total_ordering
from pathlib import Path
from typing import Any

from folio.core.errors import AccessError
from folio.core.rules import (
    IDEAS_FOLDER_NAME,
    SIDECAR_NAME,
    is_domain_folder,
    is_hidden,
    is_reserved_folder,
    sort_key,
)

logger = logging.getLogger(__name__)


@total_ordering
@dataclass(frozen=True)
class ProjectRef:
    """Locator for a project folder: owning folder plus leaf name.

    The owner is the domain for ordinary projects, or the ideas folder for
    idea projects. Ordering is case-insensitive on the leaf name.
    """

    owner: Path
    name: str

    @property
    def path(self) -> Path:
        return self.owner / self.name

    @property
    def is_idea(self) -> bool:
        return self.owner.name == IDEAS_FOLDER_NAME

    def _order(self) -> tuple[tuple[str, str], str]:
        return (sort_key(self.name), str(self.owner))

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, ProjectRef):
            return NotImplemented
        return self._order() < other._order()


@dataclass
class FolderInfo:
    """What a listing shows about one project folder."""

    path: Path
    has_sidecar: bool = False
    status: str | None = None
    visibility: str | None = None
    needs_review: bool = False
    entry_count: int = 0
    tags: list[str] = field(default_factory=list)


def _subdirectories(folder: Path) -> list[os.DirEntry]:
    """Immediate non-hidden subdirectories of *folder*.

    Raises:
        AccessError: If the folder cannot be listed
    """
    try:
        with os.scandir(folder) as it:
            entries = list(it)
    except FileNotFoundError as e:
        raise AccessError(folder, "folder does not exist") from e
    except NotADirectoryError as e:
        raise AccessError(folder, "not a directory") from e
    except PermissionError as e:
        raise AccessError(folder, "permission denied") from e
    except OSError as e:
        raise AccessError(folder, str(e)) from e

    result = []
    for entry in entries:
        if is_hidden(entry.name):
            continue
        try:
            if entry.is_dir():
                result.append(entry)
        except OSError:
            logger.debug("Skipping unreadable entry %s", entry.path)
    return result


def list_domains(root: Path) -> list[Path]:
    """List domain folders directly under *root*, case-insensitively sorted.

    Raises:
        AccessError: If root cannot be read
    """
    root = Path(root)
    domains = [root / e.name for e in _subdirectories(root) if is_domain_folder(e.name)]
    return sorted(domains, key=lambda p: sort_key(p.name))


def list_reserved_folders(folder: Path) -> list[Path]:
    """List reserved (underscore-wrapped) folders directly under *folder*.

    Raises:
        AccessError: If folder cannot be read
    """
    folder = Path(folder)
    reserved = [folder / e.name for e in _subdirectories(folder) if is_reserved_folder(e.name)]
    return sorted(reserved, key=lambda p: sort_key(p.name))


def list_projects(folder: Path) -> list[str]:
    """List project folder names directly under a domain or reserved folder.

    Raises:
        AccessError: If folder cannot be read
    """
    names = [e.name for e in _subdirectories(Path(folder))]
    return sorted(names, key=sort_key)


def list_projects_including_ideas(domain: Path) -> list[ProjectRef]:
    """List a domain's projects with the ideas folder flattened in.

    Children of ``_IDEAS_`` appear as peers of the domain's own projects,
    owned by the ideas folder. Unreadable folders contribute nothing.
    """
    domain = Path(domain)
    refs: list[ProjectRef] = []
    try:
        children = _subdirectories(domain)
    except AccessError as e:
        logger.debug("Cannot list %s: %s", domain, e)
        return []

    for child in children:
        if child.name == IDEAS_FOLDER_NAME:
            ideas = domain / child.name
            try:
                idea_children = _subdirectories(ideas)
            except AccessError as e:
                logger.debug("Cannot list %s: %s", ideas, e)
                continue
            refs.extend(ProjectRef(owner=ideas, name=idea.name) for idea in idea_children)
        else:
            refs.append(ProjectRef(owner=domain, name=child.name))

    return sorted(refs)


def _read_json_object(path: Path) -> dict[str, Any] | None:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return None
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        logger.debug("Skipping unreadable document %s: %s", path, e)
        return None
    return data if isinstance(data, dict) else None


def read_document(folder: Path) -> dict[str, Any] | None:
    """Read a project folder's sidecar as a raw dict.

    Returns:
        The document, or None if absent or not a JSON object
    """
    return _read_json_object(Path(folder) / SIDECAR_NAME)


def document_needs_review(document: dict[str, Any] | None) -> bool:
    """Review predicate on a raw document.

    Absent document: not flagged. ``reviewed: false``: flagged. A boolean
    true or a timestamp string: not flagged. Otherwise flagged only while the
    status is still ``idea``.
    """
    if not document:
        return False
    reviewed = document.get("reviewed")
    if isinstance(reviewed, bool):
        return reviewed is False
    if isinstance(reviewed, str):
        return False
    return document.get("status") == "idea"


def needs_review(folder: Path) -> bool:
    """True when the project in *folder* still needs a review pass."""
    return document_needs_review(read_document(folder))


def next_unreviewed(domain: Path, after: ProjectRef | None = None) -> ProjectRef | None:
    """First project after *after* in the flattened listing that needs review."""
    refs = list_projects_including_ideas(domain)
    start = 0
    if after is not None and after in refs:
        start = refs.index(after) + 1
    for ref in refs[start:]:
        if needs_review(ref.path):
            return ref
    return None


def folder_summary(folder: Path) -> FolderInfo:
    """Collect listing details for a project folder without decoding a Project."""
    folder = Path(folder)
    info = FolderInfo(path=folder)
    document = read_document(folder)
    if document is not None:
        info.has_sidecar = True
        status = document.get("status")
        info.status = status if isinstance(status, str) else None
        visibility = document.get("visibility")
        info.visibility = visibility.lower() if isinstance(visibility, str) else None
        tags = document.get("tags")
        if isinstance(tags, list):
            info.tags = [t for t in tags if isinstance(t, str)]
    else:
        info.has_sidecar = (folder / SIDECAR_NAME).exists()
    info.needs_review = document_needs_review(document)

    try:
        with os.scandir(folder) as it:
            info.entry_count = sum(
                1 for e in it if e.name != SIDECAR_NAME and not is_hidden(e.name)
            )
    except OSError:
        info.entry_count = 0
    return info


def harvest_tags(scan_root: Path) -> set[str]:
    """Collect every tag from every sidecar under *scan_root*.

    Walks the whole subtree (hidden entries skipped, symlinked folders not
    followed). Missing or malformed sidecars contribute nothing.
    """
    tags: set[str] = set()

    def _on_error(error: OSError) -> None:
        logger.debug("Skipping unreadable folder during harvest: %s", error)

    for dirpath, dirnames, filenames in os.walk(scan_root, onerror=_on_error):
        dirnames[:] = [d for d in dirnames if not is_hidden(d)]
        if SIDECAR_NAME not in filenames:
            continue
        document = _read_json_object(Path(dirpath) / SIDECAR_NAME)
        if document is None:
            continue
        values = document.get("tags")
        if not isinstance(values, list):
            continue
        tags.update(t for t in values if isinstance(t, str))

    return tags
