"""
Image slots and the ``images`` object of a project sidecar.

Every project can carry a fixed set of images (thumbnail, banner, icons,
posters). Files live under ``<project>/images/`` with fixed names, and the
untouched source of each lives under ``images/originals/``. The sidecar's
``images`` object maps slot keys to file names and always records the
directory. This module is the only writer of that object; every other save
carries it through untouched.
"""

from __future__ import annotations

import logging
import shutil
from dataclasses import replace
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any

from folio.core.config import Config
from folio.core.errors import AccessError, MalformedDocument, NotFound, WriteFailure
from folio.projects import store
from folio.projects.model import Project, utcnow

logger = logging.getLogger(__name__)

IMAGES_KEY = "images"
IMAGES_DIRECTORY = "images"
ORIGINALS_DIRECTORY = "originals"


class ImageSlot(Enum):
    """Named image slots. The value is the slot's file stem."""

    THUMBNAIL = "thumbnail"
    BANNER = "banner"
    ICON_SQUARE = "icon-square"
    ICON_CIRCLE = "icon-circle"
    POSTER_LANDSCAPE = "poster-landscape"
    POSTER_PORTRAIT = "poster-portrait"

    @property
    def json_key(self) -> str:
        """Key inside the sidecar's ``images`` object (camelCase)."""
        head, *rest = self.value.split("-")
        return head + "".join(part.capitalize() for part in rest)

    @property
    def canonical_file_name(self) -> str:
        return f"{self.value}.png"

    @property
    def original_file_name(self) -> str:
        return f"{self.value}-original.png"

    @property
    def label(self) -> str:
        words = self.value.split("-")
        if len(words) == 1:
            return words[0].capitalize()
        return f"{words[0].capitalize()} ({words[1].capitalize()})"

    @classmethod
    def parse(cls, text: str) -> ImageSlot:
        """Look up a slot by file stem or JSON key.

        Raises:
            ValueError: If no slot matches
        """
        for slot in cls:
            if text in (slot.value, slot.json_key):
                return slot
        names = ", ".join(s.value for s in cls)
        raise ValueError(f"Unknown image slot {text!r}. Options: {names}.")


def images_dir(folder: Path) -> Path:
    return Path(folder) / IMAGES_DIRECTORY


def originals_dir(folder: Path) -> Path:
    return images_dir(folder) / ORIGINALS_DIRECTORY


def existing_slots(folder: Path) -> list[ImageSlot]:
    """Slots whose canonical image file is present in the folder."""
    directory = images_dir(folder)
    return [slot for slot in ImageSlot if (directory / slot.canonical_file_name).is_file()]


def read_images(folder: Path) -> dict[str, Any]:
    """The sidecar's ``images`` object, or an empty dict."""
    try:
        document = store.read_raw(folder)
    except (NotFound, MalformedDocument, AccessError):
        return {}
    images = document.get(IMAGES_KEY)
    return dict(images) if isinstance(images, dict) else {}


def reconcile_images(
    project: Project,
    folder: Path,
    set_slots: dict[ImageSlot, str] | None = None,
    remove_slots: list[ImageSlot] | None = None,
    now: datetime | None = None,
    config: Config | None = None,
) -> Project:
    """Update the ``images`` object and save the record in a single write.

    ``directory`` is always set. Removals are applied before sets. The
    thumbnail slot is mirrored into ``project.thumbnail``.

    Returns:
        The record as saved

    Raises:
        ValidationError: If the project record cannot be saved
        WriteFailure: If the write fails or the existing document cannot be read
    """
    folder = Path(folder)
    now = now or utcnow()
    set_slots = set_slots or {}
    remove_slots = remove_slots or []

    try:
        document = store.read_raw(folder)
    except NotFound:
        document = {}
    except MalformedDocument as e:
        logger.warning("Rebuilding unparseable document while updating images: %s", e)
        document = {}
    except AccessError as e:
        raise WriteFailure(store.sidecar_path(folder), f"existing document unreadable ({e.reason})") from e

    images = document.get(IMAGES_KEY)
    images = dict(images) if isinstance(images, dict) else {}
    images["directory"] = IMAGES_DIRECTORY
    for slot in remove_slots:
        images.pop(slot.json_key, None)
    for slot, file_name in set_slots.items():
        images[slot.json_key] = file_name

    thumbnail = images.get(ImageSlot.THUMBNAIL.json_key)
    if isinstance(thumbnail, str):
        project = replace(project, thumbnail=thumbnail)
    elif ImageSlot.THUMBNAIL in remove_slots:
        project = replace(project, thumbnail=None)

    # Validate before touching the file so a rejected record writes nothing
    prepared = store.prepare_for_save(project, config)

    document[IMAGES_KEY] = images
    stamped = store.stamp(prepared, now)
    store.write_document(folder, store.merge_document(stamped, document))
    return stamped


def attach_image(
    project: Project,
    folder: Path,
    slot: ImageSlot,
    source: Path,
    now: datetime | None = None,
    config: Config | None = None,
) -> Project:
    """Copy *source* into the slot's canonical and original files and record it.

    Raises:
        FileNotFoundError: If source does not exist
        WriteFailure: If the files cannot be copied or the sidecar written
    """
    source = Path(source)
    if not source.is_file():
        raise FileNotFoundError(f"Image not found: {source}")
    store.prepare_for_save(project, config)

    canonical = images_dir(folder) / slot.canonical_file_name
    original = originals_dir(folder) / slot.original_file_name
    try:
        originals_dir(folder).mkdir(parents=True, exist_ok=True)
        shutil.copyfile(source, original)
        shutil.copyfile(source, canonical)
    except OSError as e:
        raise WriteFailure(canonical, str(e)) from e

    return reconcile_images(
        project, folder, set_slots={slot: slot.canonical_file_name}, now=now, config=config
    )


def detach_image(
    project: Project,
    folder: Path,
    slot: ImageSlot,
    now: datetime | None = None,
    config: Config | None = None,
) -> Project:
    """Delete the slot's files and drop its key from the ``images`` object."""
    store.prepare_for_save(project, config)
    for path in (images_dir(folder) / slot.canonical_file_name, originals_dir(folder) / slot.original_file_name):
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise WriteFailure(path, str(e)) from e

    return reconcile_images(project, folder, remove_slots=[slot], now=now, config=config)
