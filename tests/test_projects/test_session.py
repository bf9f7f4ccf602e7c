"""Tests for folio.projects.session dirty tracking and saving."""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone
from pathlib import Path

import pytest

from folio.core.access import LocalAccessProvider
from folio.core.config import Config
from folio.core.errors import AccessError, ValidationError, WriteFailure
from folio.projects.model import Status
from folio.projects.session import BulkSaveResult, Session, folder_key
from folio.projects.store import ProjectStore

NOW = datetime(2025, 6, 7, 8, 9, 10, tzinfo=timezone.utc)


class FlakyStore(ProjectStore):
    """Store whose writes fail for one folder."""

    def __init__(self, fail_on):
        super().__init__(Config())
        self.fail_on = folder_key(fail_on)

    def save(self, project, folder, now=None):
        if folder_key(folder) == self.fail_on:
            raise WriteFailure(folder, "disk full")
        return super().save(project, folder, now=now)


@pytest.fixture
def session():
    return Session(store=ProjectStore(Config()))


@pytest.fixture
def alpha(portfolio):
    return portfolio / "Software" / "alpha"


@pytest.fixture
def zeta(portfolio):
    return portfolio / "Software" / "Zeta"


def test_folder_key_is_canonical(alpha):
    assert folder_key(alpha) == folder_key(alpha / ".." / "alpha")
    assert folder_key(str(alpha)) == str(alpha.resolve())


class TestOpenAndEdit:

    def test_open_loads_document(self, session, alpha):
        project = session.open(alpha)
        assert project.id == "alpha"
        assert not session.is_dirty(alpha)
        assert session.baseline(alpha) == project

    def test_open_seeds_missing_document(self, session, portfolio):
        project = session.open(portfolio / "Software" / "_IDEAS_" / "delta")
        assert project.status is Status.IDEA
        assert project.domain == "Software"

    def test_open_returns_copies(self, session, alpha):
        project = session.open(alpha)
        project.tags.append("mutated")
        assert "mutated" not in session.open(alpha).tags
        assert not session.is_dirty(alpha)

    def test_edit_marks_dirty(self, session, alpha):
        project = session.open(alpha)
        assert session.edit(alpha, replace(project, title="New")) is True
        assert session.is_dirty(alpha)
        assert session.has_unsaved_changes()
        assert session.edited(alpha).title == "New"
        assert session.open(alpha).title == "New"

    def test_edit_back_to_baseline_is_clean(self, session, alpha):
        project = session.open(alpha)
        session.edit(alpha, replace(project, title="New"))
        assert session.edit(alpha, project) is False
        assert not session.is_dirty(alpha)
        assert session.edited(alpha) is None

    def test_equivalent_paths_share_state(self, session, alpha):
        project = session.open(alpha)
        session.edit(alpha / ".." / "alpha", replace(project, title="New"))
        assert session.is_dirty(alpha)
        assert len(session) == 1

    def test_edit_without_open(self, session, alpha):
        baseline = Session(store=ProjectStore(Config())).open(alpha)
        assert session.edit(alpha, replace(baseline, subtitle="x"))
        assert session.baseline(alpha) == baseline

    def test_discard(self, session, alpha):
        project = session.open(alpha)
        session.edit(alpha, replace(project, title="New"))
        assert session.discard(alpha) is True
        assert not session.is_dirty(alpha)
        assert session.open(alpha).title == "alpha"
        assert session.discard(alpha) is False

    def test_forget_drops_baseline(self, session, alpha):
        session.open(alpha)
        session.forget(alpha)
        assert session.baseline(alpha) is None


class TestSaveProject:

    def test_save_clears_dirty_and_updates_baseline(self, session, alpha, read_doc):
        project = session.open(alpha)
        session.edit(alpha, replace(project, title="Saved"))
        saved = session.save_project(alpha, now=NOW)
        assert not session.is_dirty(alpha)
        assert saved.title == "Saved"
        assert session.baseline(alpha) == saved
        assert read_doc(alpha)["title"] == "Saved"
        assert read_doc(alpha)["images"]["directory"] == "images"

    def test_save_without_edit_writes_baseline(self, session, portfolio, read_doc):
        folder = portfolio / "Software" / "Beta"
        session.save_project(folder, now=NOW)
        assert read_doc(folder)["id"] == "beta"

    def test_validation_error_keeps_edit(self, session, alpha, read_doc):
        before = read_doc(alpha)
        project = session.open(alpha)
        session.edit(alpha, replace(project, visibility="public", summary=""))
        with pytest.raises(ValidationError):
            session.save_project(alpha, now=NOW)
        assert session.is_dirty(alpha)
        assert session.edited(alpha).visibility == "public"
        assert read_doc(alpha) == before

    def test_write_failure_keeps_edit(self, alpha):
        session = Session(store=FlakyStore(alpha))
        project = session.open(alpha)
        session.edit(alpha, replace(project, title="Lost?"))
        with pytest.raises(WriteFailure):
            session.save_project(alpha, now=NOW)
        assert session.is_dirty(alpha)
        assert session.edited(alpha).title == "Lost?"


class TestSaveAllEdited:

    def test_partial_failure(self, alpha, zeta, read_doc):
        session = Session(store=FlakyStore(zeta))
        session.edit(alpha, replace(session.open(alpha), title="A2"))
        session.edit(zeta, replace(session.open(zeta), title="Z2"))
        assert set(session.dirty_folders()) == {folder_key(alpha), folder_key(zeta)}

        result = session.save_all_edited(now=NOW)

        assert isinstance(result, BulkSaveResult)
        assert not result.ok
        assert result.saved == [folder_key(alpha)]
        assert list(result.failed) == [folder_key(zeta)]
        assert isinstance(result.failed[folder_key(zeta)], WriteFailure)
        assert result.remaining_dirty == [folder_key(zeta)]
        assert session.dirty_folders() == [folder_key(zeta)]
        assert session.edited(zeta).title == "Z2"
        assert read_doc(alpha)["title"] == "A2"
        assert read_doc(zeta)["title"] == "Zeta"

    def test_all_succeed(self, session, alpha, zeta):
        session.edit(alpha, replace(session.open(alpha), title="A2"))
        session.edit(zeta, replace(session.open(zeta), title="Z2"))
        result = session.save_all_edited(now=NOW)
        assert result.ok
        assert sorted(result.saved) == sorted([folder_key(alpha), folder_key(zeta)])
        assert result.remaining_dirty == []
        assert not session.has_unsaved_changes()

    def test_nothing_to_save(self, session):
        result = session.save_all_edited()
        assert result.ok
        assert result.saved == []


class TestAccessScope:

    def test_saves_inside_root_scope(self, portfolio, alpha, read_doc):
        session = Session(store=ProjectStore(Config()), access=LocalAccessProvider(), root=portfolio)
        session.edit(alpha, replace(session.open(alpha), title="Scoped"))
        session.save_project(alpha, now=NOW)
        assert read_doc(alpha)["title"] == "Scoped"

    def test_missing_root_raises_access_error(self, tmp_path, alpha):
        session = Session(store=ProjectStore(Config()), access=LocalAccessProvider(), root=tmp_path / "gone")
        with pytest.raises(AccessError):
            session.open(alpha)

    def test_writes_scoped_to_project_folder(self, portfolio, alpha):
        class RecordingAccess(LocalAccessProvider):
            def __init__(self):
                self.scopes = []

            def scope(self, target, write=False):
                self.scopes.append((Path(target), write))
                return super().scope(target, write=write)

        access = RecordingAccess()
        session = Session(store=ProjectStore(Config()), access=access, root=portfolio)
        session.edit(alpha, replace(session.open(alpha), title="Scoped"))
        session.save_project(alpha, now=NOW)
        assert access.scopes == [(portfolio, False), (alpha.resolve(), True)]
