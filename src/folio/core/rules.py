"""Folder naming rules: domains, reserved folders, and the ideas bucket.

Pure functions on folder names. No I/O.
"""

from __future__ import annotations

from pathlib import Path

# Reserved folder whose children are seeded with status "idea"
IDEAS_FOLDER_NAME = "_IDEAS_"

# Sidecar metadata file inside every project folder
SIDECAR_NAME = "_project.json"


def is_reserved_folder(name: str) -> bool:
    """True for names wrapped in underscores, e.g. ``_IDEAS_`` or ``_archive_``."""
    return len(name) >= 2 and name.startswith("_") and name.endswith("_")


def is_domain_folder(name: str) -> bool:
    """A domain is any top-level folder that is not reserved."""
    return not is_reserved_folder(name)


def is_ideas_folder(name: str) -> bool:
    return name == IDEAS_FOLDER_NAME


def is_hidden(name: str) -> bool:
    """Dot-files and dot-folders are skipped by every listing."""
    return name.startswith(".")


def ideas_folder(domain: Path) -> Path:
    """Return the ideas folder path inside a domain (may not exist)."""
    return Path(domain) / IDEAS_FOLDER_NAME


def sort_key(name: str) -> tuple[str, str]:
    """Case-insensitive ordering used by every folder listing.

    The raw name breaks ties so that ``"Alpha"`` and ``"alpha"`` have a
    stable relative order.
    """
    return (name.casefold(), name)
