"""
Process-wide registry of known tags.

Tags come from three places: the set persisted by a previous session, tags
registered explicitly while editing, and tags harvested from every sidecar
under a folder. Harvesting walks an unbounded tree, so it runs on a worker
thread and hands back only its result; merging that result into the
registry happens on the caller's thread in :meth:`TagRegistry.collect`.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import wait as wait_futures
from pathlib import Path

from folio.core.scanner import harvest_tags
from folio.core.state import TAGS_KEY, StateStore

logger = logging.getLogger(__name__)


class TagRegistry:
    """Known tags, persisted on every change."""

    def __init__(self, state: StateStore | None = None, max_workers: int = 1):
        self.state = state if state is not None else StateStore()
        self._tags: set[str] = set(self._persisted())
        self._executor: ThreadPoolExecutor | None = None
        self._max_workers = max_workers
        self._pending: list[Future[set[str]]] = []

    def _persisted(self) -> set[str]:
        stored = self.state.get(TAGS_KEY, [])
        if not isinstance(stored, list):
            return set()
        return {t for t in stored if isinstance(t, str)}

    def _save(self) -> None:
        self.state.set(TAGS_KEY, sorted(self._tags))

    @property
    def tags(self) -> list[str]:
        return sorted(self._tags)

    @property
    def is_loading(self) -> bool:
        return any(not f.done() for f in self._pending)

    def __contains__(self, tag: str) -> bool:
        return tag in self._tags

    def __len__(self) -> int:
        return len(self._tags)

    def register(self, tag: str) -> bool:
        """Add a tag. Whitespace is trimmed and empty tags are ignored.

        Returns:
            True if the tag was new
        """
        tag = tag.strip()
        if not tag:
            return False
        is_new = tag not in self._tags
        self._tags.add(tag)
        self._save()
        return is_new

    def register_many(self, tags: Iterable[str]) -> list[str]:
        """Add several tags with a single write. Returns the ones that were new."""
        added = []
        for tag in tags:
            tag = tag.strip()
            if tag and tag not in self._tags:
                self._tags.add(tag)
                added.append(tag)
        if added:
            self._save()
        return added

    def refresh(self, scope: Path) -> Future[set[str]]:
        """Start harvesting tags under *scope* without blocking.

        Call :meth:`collect` (or :meth:`wait`) later to merge the result.
        """
        if self._executor is None:
            self._executor = ThreadPoolExecutor(
                max_workers=self._max_workers, thread_name_prefix="folio-tags"
            )
        future = self._executor.submit(harvest_tags, Path(scope))
        self._pending.append(future)
        logger.debug("Started tag harvest under %s", scope)
        return future

    def collect(self) -> list[str]:
        """Merge every finished harvest into the registry.

        The new set is harvested | persisted | in-memory. Harvests still
        running are left for a later call.

        Returns:
            Tags that were not known before
        """
        finished = [f for f in self._pending if f.done()]
        if not finished:
            return []
        self._pending = [f for f in self._pending if f not in finished]

        harvested: set[str] = set()
        for future in finished:
            try:
                harvested |= future.result()
            except Exception as e:
                logger.warning("Tag harvest failed: %s", e)

        merged = harvested | self._persisted() | self._tags
        new_tags = sorted(merged - self._tags)
        self._tags = merged
        self._save()
        return new_tags

    def wait(self, timeout: float | None = None) -> list[str]:
        """Block until pending harvests finish, then :meth:`collect`."""
        if self._pending:
            wait_futures(list(self._pending), timeout=timeout)
        return self.collect()

    def shutdown(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None
