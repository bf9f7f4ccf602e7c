"""Shared test fixtures for folio package."""

import json
from pathlib import Path

import pytest

BASE_DOC = {
    "id": "sample",
    "domain": "Software",
    "title": "Sample",
    "subtitle": "",
    "summary": "",
    "visibility": "private",
    "tech_medium": [],
    "status": "in_progress",
    "tags": [],
    "resources": [],
    "createdAt": "2024-01-01T00:00:00Z",
    "updatedAt": "2024-01-02T00:00:00Z",
    "reviewed": "2024-01-02T00:00:00Z",
}


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Keep state and config files inside tmp_path and clear cached config."""
    monkeypatch.setenv("FOLIO_STATE_FILE", str(tmp_path / "state" / "state.json"))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    monkeypatch.delenv("FOLIO_ROOT", raising=False)
    monkeypatch.delenv("XDG_STATE_HOME", raising=False)

    from folio.core import config

    config.get_config.cache_clear()
    yield
    config.get_config.cache_clear()


@pytest.fixture
def write_doc():
    """Factory fixture writing a _project.json into a folder.

    Keyword overrides are merged into a valid base document; pass
    ``raw=...`` to write text verbatim.
    """
    def _write(folder: Path, raw: str | None = None, **overrides) -> Path:
        folder.mkdir(parents=True, exist_ok=True)
        path = folder / "_project.json"
        if raw is not None:
            path.write_text(raw, encoding="utf-8")
            return path
        doc = {**BASE_DOC, "id": folder.name.lower(), "title": folder.name, **overrides}
        path.write_text(json.dumps(doc, indent=2), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def read_doc():
    """Read a folder's _project.json as a dict."""
    def _read(folder: Path) -> dict:
        return json.loads((folder / "_project.json").read_text(encoding="utf-8"))

    return _read


@pytest.fixture
def portfolio(tmp_path, write_doc):
    """A small portfolio tree.

    \b
    root/
      Software/
        alpha/        reviewed, tags python+cli, images+planning keys
        Beta/         no document
        Zeta/         unreviewed, tags rust
        .cache/       hidden
        _IDEAS_/
          gamma/      idea, unreviewed, tags ml
          delta/      no document
      Writing/
        novel/        malformed document
      _archive_/
      .git/
    """
    root = tmp_path / "root"
    software = root / "Software"

    write_doc(
        software / "alpha",
        tags=["python", "cli"],
        images={"directory": "images", "thumbnail": "thumbnail.png"},
        planning={"milestones": ["v1"]},
    )
    (software / "Beta").mkdir(parents=True)
    write_doc(software / "Zeta", tags=["rust"], reviewed=False)
    (software / ".cache").mkdir()
    write_doc(software / "_IDEAS_" / "gamma", status="idea", tags=["ml"], reviewed=False)
    (software / "_IDEAS_" / "delta").mkdir(parents=True)

    write_doc(root / "Writing" / "novel", raw="{not json")
    (root / "_archive_").mkdir()
    (root / ".git").mkdir()

    return root


@pytest.fixture
def cli_env(portfolio, monkeypatch):
    """Point the CLI at the sample portfolio."""
    monkeypatch.setenv("FOLIO_ROOT", str(portfolio))
    return portfolio
