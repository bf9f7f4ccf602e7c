"""
Editing session with dirty tracking.

A session remembers, per project folder, the record as last loaded or saved
(the baseline) and the latest edited record that has not been written yet.
A folder is dirty while its edited record differs from its baseline. The
dirty predicate is answered from memory so callers can decide whether to
offer save/discard before moving on without touching the disk.

Folders are keyed by their canonical absolute path, so two different Path
objects for the same folder share one entry.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Iterator
from contextlib import AbstractContextManager, nullcontext
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from folio.core.access import AccessProvider
from folio.core.errors import FolioError
from folio.projects.model import Project
from folio.projects.store import ProjectStore

logger = logging.getLogger(__name__)


def folder_key(folder: Path | str) -> str:
    """Canonical identity for a project folder."""
    return str(Path(folder).expanduser().resolve())


@dataclass
class BulkSaveResult:
    """Outcome of :meth:`Session.save_all_edited`."""

    saved: list[str] = field(default_factory=list)
    failed: dict[str, FolioError] = field(default_factory=dict)
    remaining_dirty: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed


class Session:
    """Tracks edited-but-unsaved project records for one interactive session."""

    def __init__(
        self,
        store: ProjectStore | None = None,
        access: AccessProvider | None = None,
        root: Path | None = None,
    ):
        self.store = store if store is not None else ProjectStore()
        self.access = access
        self.root = Path(root) if root is not None else None
        self._baselines: dict[str, Project] = {}
        self._edited: dict[str, Project] = {}
        self._dirty: set[str] = set()

    def _scope(self, folder: Path, write: bool = False) -> AbstractContextManager:
        # Reads need the root; writes need only the project folder
        if self.access is None:
            return nullcontext()
        if write:
            return self.access.scope(Path(folder), write=True)
        return self.access.scope(self.root or Path(folder))

    # -- queries -----------------------------------------------------------

    def is_dirty(self, folder: Path | str) -> bool:
        return folder_key(folder) in self._dirty

    def dirty_folders(self) -> list[str]:
        return sorted(self._dirty)

    def has_unsaved_changes(self) -> bool:
        return bool(self._dirty)

    def edited(self, folder: Path | str) -> Project | None:
        """The unsaved edit for *folder*, if any."""
        project = self._edited.get(folder_key(folder))
        return copy.deepcopy(project) if project is not None else None

    def baseline(self, folder: Path | str) -> Project | None:
        project = self._baselines.get(folder_key(folder))
        return copy.deepcopy(project) if project is not None else None

    def __iter__(self) -> Iterator[str]:
        return iter(self.dirty_folders())

    def __len__(self) -> int:
        return len(self._dirty)

    # -- lifecycle ---------------------------------------------------------

    def open(self, folder: Path | str, domain: str | None = None, is_idea: bool | None = None) -> Project:
        """Return the record to edit for *folder*.

        An unsaved edit wins; otherwise the sidecar is loaded, or a fresh
        record is seeded when there is none (or it is unreadable).
        """
        key = folder_key(folder)
        if key in self._edited:
            return copy.deepcopy(self._edited[key])

        if key not in self._baselines:
            with self._scope(Path(key)):
                project = self.store.load_or_seed(Path(key), domain=domain, is_idea=is_idea)
            self._baselines[key] = project
        return copy.deepcopy(self._baselines[key])

    def edit(self, folder: Path | str, project: Project) -> bool:
        """Record an edited version of *folder*'s project.

        Returns:
            True if the folder is dirty afterwards
        """
        key = folder_key(folder)
        if key not in self._baselines:
            self.open(key)

        if project == self._baselines[key]:
            self._edited.pop(key, None)
            self._dirty.discard(key)
            return False

        self._edited[key] = copy.deepcopy(project)
        self._dirty.add(key)
        return True

    def discard(self, folder: Path | str) -> bool:
        """Drop an unsaved edit. Returns True if there was one."""
        key = folder_key(folder)
        self._dirty.discard(key)
        return self._edited.pop(key, None) is not None

    def forget(self, folder: Path | str) -> None:
        """Drop everything the session knows about *folder*."""
        key = folder_key(folder)
        self.discard(key)
        self._baselines.pop(key, None)

    # -- saving ------------------------------------------------------------

    def save_project(self, folder: Path | str, now: datetime | None = None) -> Project:
        """Write *folder*'s current record and mark it clean.

        Saves the unsaved edit if there is one, otherwise the baseline.

        Raises:
            ValidationError: If the record cannot be saved; the edit is kept
            WriteFailure: If the write fails; the edit is kept
        """
        key = folder_key(folder)
        project = self._edited.get(key)
        if project is None:
            project = self.open(key)

        with self._scope(Path(key), write=True):
            saved = self.store.save(project, Path(key), now=now)

        self._edited.pop(key, None)
        self._dirty.discard(key)
        self._baselines[key] = saved
        return copy.deepcopy(saved)

    def save_all_edited(self, now: datetime | None = None) -> BulkSaveResult:
        """Best-effort save of every dirty folder.

        A failure on one folder is recorded and the rest are still attempted.
        """
        result = BulkSaveResult()
        for key in list(self._edited):
            try:
                self.save_project(key, now=now)
            except FolioError as e:
                logger.warning("Could not save %s: %s", key, e)
                result.failed[key] = e
            else:
                result.saved.append(key)
        result.remaining_dirty = self.dirty_folders()
        return result
