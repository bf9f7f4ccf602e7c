"""Core utilities for folio."""

from folio.core.access import AccessProvider, LocalAccessProvider
from folio.core.atomic import safe_write_json
from folio.core.config import Config, find_root, get_config
from folio.core.errors import (
    AccessError,
    FolioError,
    MalformedDocument,
    NotFound,
    ValidationError,
    WriteFailure,
)

__all__ = [
    # Access
    "AccessProvider",
    "LocalAccessProvider",
    # Atomic writes
    "safe_write_json",
    # Config
    "Config",
    "find_root",
    "get_config",
    # Errors
    "FolioError",
    "AccessError",
    "NotFound",
    "MalformedDocument",
    "WriteFailure",
    "ValidationError",
]
