"""
File storage helpers.

This module centralizes how the collection file is read and written.
The repository never touches `open()` directly, so swapping the storage
strategy (another format, another medium) only changes this file.

Writes are atomic: the new content goes to a temporary file in the same
directory, is flushed and fsync'ed, then renamed over the target with
`os.replace`. A reader therefore sees either the old file or the new
one, never a truncated mix.

Usage:
    from storage import read_json, atomic_write_json
    atomic_write_json("/tmp/data.json", [{"a": 1}])
    read_json("/tmp/data.json")
"""

import json
import os
import tempfile
from typing import Any


def dumps_pretty(data: Any) -> str:
    """Serialize `data` as 2-space indented JSON, keeping non-ASCII text."""

    return json.dumps(data, indent=2, ensure_ascii=False)


def ensure_dir(path: str) -> bool:
    """Create `path` (and parents) if missing. Returns True if created."""

    if os.path.isdir(path):
        return False
    os.makedirs(path, exist_ok=True)
    return True


def read_json(path: str) -> Any:
    """Return the parsed content of `path`.

    Raises `FileNotFoundError` when the file does not exist and
    `ValueError` (`json.JSONDecodeError`) when it is not valid JSON.
    """

    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def atomic_write_json(path: str, data: Any) -> None:
    """Replace `path` with the pretty JSON form of `data` in one step."""

    dir_name = os.path.dirname(path) or "."
    with tempfile.NamedTemporaryFile(
        "w", encoding="utf-8", dir=dir_name, prefix=".tmp-", suffix=".json", delete=False
    ) as tmp_file:
        tmp_name = tmp_file.name
        try:
            tmp_file.write(dumps_pretty(data))
            tmp_file.flush()
            os.fsync(tmp_file.fileno())
        except BaseException:
            tmp_file.close()
            os.unlink(tmp_name)
            raise

    try:
        os.replace(tmp_name, path)
    except BaseException:
        os.unlink(tmp_name)
        raise
