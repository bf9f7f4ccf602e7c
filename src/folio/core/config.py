"""
Configuration and root folder resolution.

The portfolio root is the folder whose immediate children are domains.

Resolution order for the root:
  1. Explicit override (the CLI ``--root`` option)
  2. FOLIO_ROOT environment variable
  3. Root token persisted in the state file (``folio config root PATH``)
  4. Global config file (~/.config/folio/config.yaml) ``root`` key

The same config file may carry a ``vocabularies`` mapping that overrides
the built-in choice lists used when editing projects.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, fields, replace
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml

from folio.core.access import AccessProvider, LocalAccessProvider
from folio.core.errors import AccessError
from folio.core.state import ROOT_TOKEN_KEY, StateStore

logger = logging.getLogger(__name__)


def _default_visibility() -> dict[str, str]:
    return {
        "private": "Private",
        "unlisted": "Unlisted",
        "public": "Public",
        "restricted": "Restricted",
    }


def _default_domain_categories() -> dict[str, list[str]]:
    return {
        "Technology": ["Software", "Hardware", "System"],
        "Creative": ["Story", "Game", "Article", "Other"],
        "Expository": ["Article", "Essay", "Research", "Report", "Tutorial", "WhitePaper"],
    }


@dataclass(frozen=True)
class Config:
    """Choice lists offered when editing project metadata."""

    resource_types: list[str] = field(default_factory=lambda: [
        "github", "gitlab", "overleaf", "gdoc", "gslide", "pdf", "markdown",
        "video", "audio", "image", "dataset", "website", "blog",
    ])
    visibility: dict[str, str] = field(default_factory=_default_visibility)
    domain_categories: dict[str, list[str]] = field(default_factory=_default_domain_categories)
    tech_mediums: list[str] = field(default_factory=lambda: [
        "Mobile", "Desktop", "Web", "CLI", "API", "Module", "Library", "AR", "VR",
    ])
    hardware_mediums: list[str] = field(default_factory=lambda: [
        "Microcontroller", "SingleBoardComputer", "FPGA", "PCB", "Sensor",
        "Actuator", "Robotics", "Wearable", "IoTDevice", "EmbeddedAppliance",
    ])
    script_mediums: list[str] = field(default_factory=lambda: [
        "TV", "Movie", "Stage", "Podcast", "Radio", "Animation", "WebSeries", "AudioDrama",
    ])
    game_mediums: list[str] = field(default_factory=lambda: [
        "Mobile", "Web", "Desktop", "Board", "AR", "VR", "Card", "Console",
    ])
    creative_genres: list[str] = field(default_factory=lambda: [
        "Comedy", "Horror", "Drama", "SciFi", "Fantasy", "Thriller", "Romance",
        "Mystery", "Nonfiction", "Action", "Adventure", "Educational",
        "Informative", "Other",
    ])
    expository_topics: list[str] = field(default_factory=lambda: [
        "Biology", "Mathematics", "Physics", "Chemistry", "ComputerScience",
        "Engineering", "Economics", "History", "Philosophy", "Psychology",
        "Sociology", "PoliticalScience", "Education", "Law", "Medicine",
        "EnvironmentalScience", "DataScience", "Art", "Literature",
    ])
    creative_story_mediums: list[str] = field(default_factory=lambda: [
        "Tiny", "Short", "Novel", "Stage", "TV", "Movie", "Podcast", "Radio",
        "Web Series", "Other",
    ])
    creative_article_mediums: list[str] = field(default_factory=lambda: [
        "Blog", "Overleaf", "Newsletter", "Magazine", "Documentation", "Other",
    ])

    @property
    def visibility_choices(self) -> list[str]:
        return list(self.visibility)

    def categories_for(self, domain: str) -> list[str] | None:
        """Categories offered for a domain, or None when the domain is unconstrained."""
        return self.domain_categories.get(domain)

    @classmethod
    def from_mapping(cls, data: dict[str, Any]) -> Config:
        """Build a Config from defaults overridden by a ``vocabularies`` mapping.

        Unknown keys and values of the wrong shape are ignored.
        """
        config = cls()
        overrides: dict[str, Any] = {}
        for f in fields(cls):
            value = data.get(f.name)
            if value is None:
                continue
            default = getattr(config, f.name)
            if isinstance(default, dict) and isinstance(value, dict):
                overrides[f.name] = dict(value)
            elif isinstance(default, list) and isinstance(value, list):
                overrides[f.name] = [str(v) for v in value]
            else:
                logger.warning("Ignoring vocabulary %r: expected %s", f.name, type(default).__name__)
        return replace(config, **overrides)


def get_global_config_path() -> Path:
    """Return the path to the global folio config file.

    Respects XDG_CONFIG_HOME if set, otherwise defaults to ~/.config/folio/config.yaml.

    Returns:
        Path to global config file (may not exist).
    """
    xdg_config_home = os.environ.get("XDG_CONFIG_HOME")
    if xdg_config_home:
        base = Path(xdg_config_home)
    else:
        base = Path.home() / ".config"
    return base / "folio" / "config.yaml"


def load_global_config() -> dict:
    """Load the global folio configuration.

    Returns:
        Configuration dict, or empty dict if file is missing or invalid.
    """
    config_path = get_global_config_path()
    if not config_path.is_file():
        return {}
    try:
        text = config_path.read_text(encoding="utf-8")
        data = yaml.safe_load(text)
        if isinstance(data, dict):
            return data
        return {}
    except (OSError, yaml.YAMLError) as e:
        logger.warning("Ignoring invalid config file %s: %s", config_path, e)
        return {}


@lru_cache(maxsize=1)
def get_config() -> Config:
    """Get the cached vocabulary configuration."""
    vocabularies = load_global_config().get("vocabularies") or {}
    if not isinstance(vocabularies, dict):
        return Config()
    return Config.from_mapping(vocabularies)


def find_root(
    override: Path | str | None = None,
    state: StateStore | None = None,
    access: AccessProvider | None = None,
) -> Path:
    """Find the portfolio root using 4-tier resolution.

    Args:
        override: Explicit root (highest priority)
        state: State store holding a persisted root token
        access: Provider used to resolve the persisted token

    Returns:
        Path to the portfolio root

    Raises:
        FileNotFoundError: If no root is configured or the configured one is missing
    """
    # Tier 1: explicit override
    if override:
        path = Path(override).expanduser().resolve()
        if path.is_dir():
            return path
        raise FileNotFoundError(f"Root folder does not exist: {path}")

    # Tier 2: FOLIO_ROOT environment variable
    env_root = os.environ.get("FOLIO_ROOT")
    if env_root:
        env_path = Path(env_root).expanduser().resolve()
        if env_path.is_dir():
            return env_path
        raise FileNotFoundError(f"FOLIO_ROOT={env_root} is not a directory.")

    # Tier 3: persisted token
    if state is None:
        state = StateStore()
    token = state.get(ROOT_TOKEN_KEY)
    if token:
        if access is None:
            access = LocalAccessProvider()
        try:
            return access.resolve_token(token)
        except AccessError as e:
            logger.warning("Persisted root is no longer accessible: %s", e)

    # Tier 4: global config file
    root_str = load_global_config().get("root")
    if root_str:
        global_path = Path(root_str).expanduser().resolve()
        if global_path.is_dir():
            return global_path
        raise FileNotFoundError(f"Global config root={root_str} is not a directory.")

    raise FileNotFoundError(
        "No portfolio root configured. Use 'folio config root PATH', "
        f"set FOLIO_ROOT, or set root in {get_global_config_path()}."
    )


def remember_root(
    path: Path | str,
    state: StateStore | None = None,
    access: AccessProvider | None = None,
) -> Path:
    """Grant access to *path* and persist its token as the default root.

    Raises:
        AccessError: If the folder cannot be accessed
    """
    if state is None:
        state = StateStore()
    if access is None:
        access = LocalAccessProvider()
    token = access.grant_access(Path(path))
    state.set(ROOT_TOKEN_KEY, token)
    return access.resolve_token(token)
