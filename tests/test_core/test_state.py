"""Tests for folio.core.state persisted key-value store."""

import json
from pathlib import Path

from folio.core.state import StateStore, get_state_path


class TestGetStatePath:

    def test_override(self, monkeypatch, tmp_path):
        monkeypatch.setenv("FOLIO_STATE_FILE", str(tmp_path / "s.json"))
        assert get_state_path() == tmp_path / "s.json"

    def test_xdg_state_home(self, monkeypatch, tmp_path):
        monkeypatch.delenv("FOLIO_STATE_FILE", raising=False)
        monkeypatch.setenv("XDG_STATE_HOME", str(tmp_path / "xs"))
        assert get_state_path() == tmp_path / "xs" / "folio" / "state.json"

    def test_default(self, monkeypatch):
        monkeypatch.delenv("FOLIO_STATE_FILE", raising=False)
        monkeypatch.delenv("XDG_STATE_HOME", raising=False)
        assert get_state_path() == Path.home() / ".local" / "state" / "folio" / "state.json"


class TestStateStore:

    def test_missing_file_reads_defaults(self, tmp_path):
        store = StateStore(tmp_path / "state.json")
        assert store.get("anything") is None
        assert store.get("anything", 5) == 5
        assert "anything" not in store

    def test_set_persists_across_instances(self, tmp_path):
        path = tmp_path / "nested" / "state.json"
        StateStore(path).set("root.token", "/some/where")
        assert StateStore(path).get("root.token") == "/some/where"
        assert json.loads(path.read_text()) == {"root.token": "/some/where"}

    def test_unknown_keys_survive_writes(self, tmp_path):
        path = tmp_path / "state.json"
        path.write_text(json.dumps({"future.key": {"a": 1}}))
        store = StateStore(path)
        store.set("tags", ["a"])
        assert json.loads(path.read_text()) == {"future.key": {"a": 1}, "tags": ["a"]}

    def test_delete(self, tmp_path):
        path = tmp_path / "state.json"
        store = StateStore(path)
        store.set("k", 1)
        assert store.delete("k") is True
        assert store.delete("k") is False
        assert StateStore(path).get("k") is None

    def test_corrupt_file_starts_empty(self, tmp_path):
        path = tmp_path / "state.json"
        path.write_text("{broken")
        store = StateStore(path)
        assert store.get("k") is None
        store.set("k", 2)
        assert StateStore(path).get("k") == 2

    def test_non_object_file_starts_empty(self, tmp_path):
        path = tmp_path / "state.json"
        path.write_text("[1, 2]")
        assert StateStore(path).get("k") is None
