"""
Persisted cross-session state.

A small application-scoped key-value document (last chosen root token, the
known tag set). No schema versioning: unknown keys are kept as-is and
missing keys read as the supplied default.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

from folio.core.atomic import safe_write_json

logger = logging.getLogger(__name__)

ROOT_TOKEN_KEY = "root.token"
TAGS_KEY = "tags"


def get_state_path() -> Path:
    """Return the path to the state file.

    Respects FOLIO_STATE_FILE, then XDG_STATE_HOME, otherwise defaults to
    ~/.local/state/folio/state.json.
    """
    override = os.environ.get("FOLIO_STATE_FILE")
    if override:
        return Path(override).expanduser()
    xdg_state_home = os.environ.get("XDG_STATE_HOME")
    if xdg_state_home:
        base = Path(xdg_state_home)
    else:
        base = Path.home() / ".local" / "state"
    return base / "folio" / "state.json"


class StateStore:
    """JSON-backed key-value store persisted on every write."""

    def __init__(self, path: Path | None = None):
        if path is None:
            path = get_state_path()
        self.path = Path(path)
        self._data: dict[str, Any] = {}
        self._loaded = False

    def load(self) -> None:
        """Load state from disk. A missing or unreadable file starts empty."""
        self._loaded = True
        if not self.path.exists():
            self._data = {}
            return
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Ignoring unreadable state file %s: %s", self.path, e)
            self._data = {}
            return
        self._data = data if isinstance(data, dict) else {}

    def _ensure_loaded(self) -> None:
        if not self._loaded:
            self.load()

    def get(self, key: str, default: Any = None) -> Any:
        self._ensure_loaded()
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        """Set a value and persist the whole document."""
        self._ensure_loaded()
        self._data[key] = value
        self.save()

    def delete(self, key: str) -> bool:
        self._ensure_loaded()
        if key not in self._data:
            return False
        del self._data[key]
        self.save()
        return True

    def save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        safe_write_json(self.path, self._data)

    def __contains__(self, key: str) -> bool:
        self._ensure_loaded()
        return key in self._data
