"""
Atomic JSON writing.

Writes go to a temporary file in the destination directory and are moved
into place with a single rename, so readers never observe a partial file.
"""

from __future__ import annotations

import contextlib
import json
import os
import tempfile
from pathlib import Path
from typing import Any


def dumps_json(data: Any, indent: int = 2, sort_keys: bool = True) -> str:
    """Serialize data the way every folio JSON file is written.

    Raises:
        ValueError: If data cannot be serialized to JSON
    """
    try:
        return json.dumps(data, indent=indent, sort_keys=sort_keys, ensure_ascii=False)
    except (TypeError, ValueError) as e:
        raise ValueError(f"Cannot serialize data to JSON: {e}") from e


def safe_write_json(
    file_path: Path,
    data: Any,
    indent: int = 2,
    sort_keys: bool = True,
) -> Path:
    """Safely write JSON data to a file with an atomic replace.

    This function:
    1. Validates the data can be serialized to JSON
    2. Writes to a temporary file in the same directory
    3. Flushes and fsyncs the temporary file
    4. Atomically replaces the original file

    Args:
        file_path: Path to JSON file to write
        data: Data to write
        indent: JSON indentation
        sort_keys: Emit object keys in sorted order

    Returns:
        The path written

    Raises:
        ValueError: If data cannot be serialized to JSON
        OSError: If file operations fail
    """
    file_path = Path(file_path)
    json_str = dumps_json(data, indent=indent, sort_keys=sort_keys)

    temp_fd, temp_path = tempfile.mkstemp(
        suffix=".json",
        prefix=f".{file_path.name}.",
        dir=file_path.parent,
        text=True,
    )

    try:
        with os.fdopen(temp_fd, "w", encoding="utf-8") as f:
            f.write(json_str)
            f.write("\n")
            f.flush()
            os.fsync(f.fileno())

        Path(temp_path).replace(file_path)

    except Exception as e:
        with contextlib.suppress(OSError):
            Path(temp_path).unlink()
        raise OSError(f"Failed to write {file_path}: {e}") from e

    return file_path
