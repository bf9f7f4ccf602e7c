"""
Capability provider for scoped filesystem access.

The rest of folio never assumes it may touch a folder just because it knows
the path. A provider hands out an opaque token for a chosen root, turns the
token back into a path in a later process, and wraps work in a scope that
guarantees access for the duration of the block.

``LocalAccessProvider`` is the plain POSIX implementation: the token is the
resolved absolute path and a scope is a permission check. Sandboxed
platforms can supply their own provider with the same three operations.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterator
from contextlib import AbstractContextManager, contextmanager
from pathlib import Path
from typing import Protocol, runtime_checkable

from folio.core.errors import AccessError

logger = logging.getLogger(__name__)


@runtime_checkable
class AccessProvider(Protocol):
    """Grants, restores, and scopes access to a root folder."""

    def grant_access(self, path: Path) -> str:
        """Return an opaque token that can restore access to *path* later."""
        ...

    def resolve_token(self, token: str) -> Path:
        """Turn a token from :meth:`grant_access` back into a usable path."""
        ...

    def scope(self, target: Path | str, write: bool = False) -> AbstractContextManager[Path]:
        """Context manager that runs the body with access to *target*."""
        ...


class LocalAccessProvider:
    """Access provider backed by ordinary file permissions."""

    def grant_access(self, path: Path) -> str:
        resolved = Path(path).expanduser().resolve()
        self._check(resolved, write=False)
        return str(resolved)

    def resolve_token(self, token: str) -> Path:
        if not token:
            raise AccessError(Path("."), "empty access token")
        path = Path(token)
        self._check(path, write=False)
        return path

    @contextmanager
    def scope(self, target: Path | str, write: bool = False) -> Iterator[Path]:
        """Check permissions on *target* and yield its path.

        A string target is treated as a token, a Path as a folder.

        Raises:
            AccessError: If the folder is missing or the permission is not held
        """
        path = self.resolve_token(target) if isinstance(target, str) else Path(target)
        self._check(path, write=write)
        logger.debug("Entered access scope for %s (write=%s)", path, write)
        try:
            yield path
        finally:
            logger.debug("Released access scope for %s", path)

    @staticmethod
    def _check(path: Path, write: bool) -> None:
        if not path.exists():
            raise AccessError(path, "folder does not exist")
        if not path.is_dir():
            raise AccessError(path, "not a directory")
        mode = os.R_OK | os.X_OK
        if write:
            mode |= os.W_OK
        if not os.access(path, mode):
            raise AccessError(path, "permission denied")
