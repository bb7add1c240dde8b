"""
Repository: persistence of the received records.

This file contains only storage interaction code. The whole collection
lives in one JSON array on disk; every operation reads or rewrites that
array as a unit. Keep business rules (tagging, validation) out of this
module.

Important notes:
- A single lock serializes every operation, reads included, so no caller
  ever observes a collection in the middle of a load/modify/persist cycle.
- `append` commits before returning: once it returns, the next `load`
  sees the new record.
- Writes go through `storage.atomic_write_json`; a failed write leaves
  the previous file untouched.
"""

import logging
import os
import threading
from typing import Any, Dict, Iterable, List

from storage import atomic_write_json, dumps_pretty, ensure_dir, read_json

logger = logging.getLogger(__name__)

Record = Dict[str, Any]


class StoreError(Exception):
    """Base class for storage failures surfaced to callers."""


class StoreReadError(StoreError):
    """The persisted collection exists but cannot be parsed."""


class StoreWriteError(StoreError):
    """The collection could not be persisted."""


class RecordRepo:
    """Owner of the collection file.

    Responsibilities:
    - Own the collection file path and the lock guarding it
    - Read and rewrite the collection as a whole
    - Translate OS/JSON errors into `StoreError` subclasses
    """

    def __init__(self, path: str):
        self.path = path
        self._lock = threading.Lock()

    def ensure_storage(self) -> None:
        """Create the data directory. Raises `OSError` if that is impossible."""

        directory = os.path.dirname(self.path) or "."
        if ensure_dir(directory):
            logger.info("Created data directory %s", directory)

    def _read(self) -> List[Record]:
        try:
            data = read_json(self.path)
        except FileNotFoundError:
            return []
        except (OSError, ValueError) as e:
            raise StoreReadError(f"Cannot read {self.path}: {e}") from e
        if not isinstance(data, list):
            raise StoreReadError(
                f"Cannot read {self.path}: expected a JSON array, got {type(data).__name__}"
            )
        return data

    def _write(self, records: List[Record]) -> None:
        try:
            atomic_write_json(self.path, records)
        except (OSError, TypeError, ValueError) as e:
            logger.error("Failed to save %d records to %s: %s", len(records), self.path, e)
            raise StoreWriteError(f"Cannot write {self.path}: {e}") from e

    def _load_lenient(self) -> List[Record]:
        try:
            return self._read()
        except StoreReadError:
            logger.exception("Failed to load records, serving an empty collection")
            return []

    def load(self) -> List[Record]:
        """Return the full collection in arrival order.

        A missing file is an empty collection. An unreadable file is
        logged and also reported as empty, so read routes keep serving.
        """

        with self._lock:
            return self._load_lenient()

    def append(self, record: Record) -> int:
        """Append one record and return the new collection size."""

        return self.append_many([record])

    def append_many(self, records: Iterable[Record]) -> int:
        """Append `records` in order with a single rewrite.

        Raises `StoreReadError` rather than overwriting a collection file
        that exists but cannot be parsed, and `StoreWriteError` when the
        new collection cannot be persisted.
        """

        with self._lock:
            current = self._read()
            current.extend(records)
            self._write(current)
            return len(current)

    def latest(self, n: int) -> List[Record]:
        """Return up to `n` of the most recent records, newest first."""

        if n <= 0:
            return []
        with self._lock:
            records = self._load_lenient()
        return records[-n:][::-1]

    def count(self) -> int:
        return len(self.load())

    def clear(self) -> None:
        """Replace the collection with an empty one. Irreversible."""

        with self._lock:
            self._write([])

    def export(self) -> bytes:
        """Return the collection as the pretty JSON bytes kept on disk."""

        return dumps_pretty(self.load()).encode("utf-8")
