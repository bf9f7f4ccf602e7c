"""Tests for folio.core.rules folder naming rules."""

from pathlib import Path

import pytest

from folio.core.rules import (
    IDEAS_FOLDER_NAME,
    ideas_folder,
    is_domain_folder,
    is_hidden,
    is_ideas_folder,
    is_reserved_folder,
    sort_key,
)


class TestReservedFolders:

    @pytest.mark.parametrize("name", ["_IDEAS_", "_archive_", "__"])
    def test_reserved(self, name):
        assert is_reserved_folder(name)
        assert not is_domain_folder(name)

    @pytest.mark.parametrize("name", ["_", "Software", "_draft", "draft_", ""])
    def test_not_reserved(self, name):
        assert not is_reserved_folder(name)

    def test_single_underscore_is_a_domain(self):
        """A lone underscore is too short to be wrapped."""
        assert is_domain_folder("_")


def test_ideas_folder():
    assert is_ideas_folder(IDEAS_FOLDER_NAME)
    assert not is_ideas_folder("_ideas_")
    assert ideas_folder(Path("/p/Software")) == Path("/p/Software/_IDEAS_")


def test_hidden():
    assert is_hidden(".git")
    assert not is_hidden("git")


def test_sort_key_is_case_insensitive():
    assert sorted(["Zeta", "alpha", "Beta"], key=sort_key) == ["alpha", "Beta", "Zeta"]


def test_sort_key_breaks_ties_on_raw_name():
    assert sorted(["alpha", "Alpha"], key=sort_key) == ["Alpha", "alpha"]
