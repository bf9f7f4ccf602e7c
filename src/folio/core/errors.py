"""
Error taxonomy for folio.

Filesystem failures are converted to these types at the scanner and
document store boundary so that callers never see raw ``OSError``.
"""

from __future__ import annotations

from pathlib import Path


class FolioError(Exception):
    """Base class for all folio errors."""


class AccessError(FolioError):
    """Read or write access to a folder was denied, revoked, or the folder is gone."""

    def __init__(self, path: Path | str, reason: str = "access denied"):
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"{reason}: {self.path}")


class NotFound(FolioError):
    """A project folder has no sidecar document."""

    def __init__(self, path: Path | str):
        self.path = Path(path)
        super().__init__(f"No project document at {self.path}")


class MalformedDocument(FolioError):
    """A sidecar document exists but cannot be decoded as JSON or as a Project."""

    def __init__(self, path: Path | str | None, reason: str):
        self.path = Path(path) if path is not None else None
        self.reason = reason
        where = f" in {self.path}" if self.path is not None else ""
        super().__init__(f"Malformed project document{where}: {reason}")


class WriteFailure(FolioError):
    """Writing a sidecar document (or its folder) failed."""

    def __init__(self, path: Path | str, reason: str):
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"Failed to write {self.path}: {reason}")


class ValidationError(FolioError):
    """A project record cannot be saved as-is. Nothing was written."""

    def __init__(self, messages: list[str]):
        self.messages = list(messages)
        super().__init__("; ".join(self.messages))
