"""
JSON File Storage Implementation

DESIGN DECISION: A single JSON file holding a {key: value} object is the
on-device store because:
1. No database setup required
2. The user can back up or inspect one file
3. It mirrors the key-value API the services are written against

TRADEOFFS:
- Every write rewrites the file (fine for personal data volumes)
- No multi-process safety (the app has exactly one writer)

Writes go to a temporary file in the same directory which then replaces
the store file, so a crash mid-write never leaves a half-written store.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Optional

from finance_tracker.config import get_settings
from finance_tracker.services.storage.interface import (
    KeyValueStoreInterface,
    StorageCorruptedError,
    StorageError,
)


class JsonFileKeyValueStore(KeyValueStoreInterface):
    """
    Key-value store persisted to one JSON file.

    The file is read lazily on first access and kept in memory; each
    mutation updates memory and rewrites the file before returning.
    """

    def __init__(self, path: Optional[str] = None):
        self._path = Path(path or get_settings().storage.data_path)
        self._data: Optional[dict[str, str]] = None

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> dict[str, str]:
        if self._data is not None:
            return self._data

        if not self._path.exists():
            self._data = {}
            return self._data

        try:
            raw = self._path.read_text(encoding="utf-8")
        except OSError as e:
            raise StorageError(f"Failed to read store {self._path}: {e}") from e

        try:
            data = json.loads(raw) if raw.strip() else {}
        except ValueError as e:
            raise StorageCorruptedError(f"Store file {self._path} is not valid JSON: {e}") from e

        if not isinstance(data, dict) or not all(
            isinstance(k, str) and isinstance(v, str) for k, v in data.items()
        ):
            raise StorageCorruptedError(f"Store file {self._path} is not a string map")

        self._data = data
        return self._data

    def _flush(self) -> None:
        data = self._load()
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                prefix=f".{self._path.name}.",
                dir=str(self._path.parent),
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    json.dump(data, handle, indent=2, sort_keys=True)
                os.replace(tmp_path, self._path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
                raise
        except OSError as e:
            raise StorageError(f"Failed to write store {self._path}: {e}") from e

    async def get_item(self, key: str) -> Optional[str]:
        return self._load().get(key)

    async def set_item(self, key: str, value: str) -> None:
        data = self._load()
        previous = data.get(key)
        data[key] = value
        try:
            self._flush()
        except StorageError:
            # keep memory in step with disk
            if previous is None:
                data.pop(key, None)
            else:
                data[key] = previous
            raise

    async def remove_item(self, key: str) -> None:
        data = self._load()
        if key not in data:
            return
        previous = data.pop(key)
        try:
            self._flush()
        except StorageError:
            data[key] = previous
            raise

    async def multi_remove(self, keys) -> None:
        data = self._load()
        removed = {key: data.pop(key) for key in list(keys) if key in data}
        if not removed:
            return
        try:
            self._flush()
        except StorageError:
            data.update(removed)
            raise

    async def get_all_keys(self) -> list[str]:
        return list(self._load().keys())
