"""Persistent key-value slots.

The favorites store only needs get/set on a single string slot. Two
implementations are provided:
- InMemoryStorage: process-local dict, used by tests and ephemeral runs
- FileStorage: one file per key under STORAGE_DIR, used by the CLI

Both enforce an optional byte quota on the total stored size, the way a
browser's localStorage does. Exceeding it raises StorageQuotaExceeded.
"""

import os
import re
from pathlib import Path
from typing import Optional, Protocol

from chefs_eye.utils.config import config
from chefs_eye.utils.logger import logger


class StorageError(Exception):
    """Raised when a storage slot cannot be read or written."""


class StorageQuotaExceeded(StorageError):
    """Raised when a write would exceed the slot quota."""


class StorageSlot(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...


def _size_of(value: str) -> int:
    return len(value.encode("utf-8"))


class InMemoryStorage:
    """Dict-backed storage slot.

    Args:
        quota_bytes: Maximum total size of all stored values. None or 0 disables the check.
    """

    def __init__(self, quota_bytes: Optional[int] = None) -> None:
        self.quota_bytes = quota_bytes
        self._data: dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        if self.quota_bytes:
            used = sum(_size_of(v) for k, v in self._data.items() if k != key)
            if used + _size_of(value) > self.quota_bytes:
                raise StorageQuotaExceeded(
                    f"Writing {key!r} needs {_size_of(value)} bytes, only {self.quota_bytes - used} available"
                )
        self._data[key] = value


class FileStorage:
    """File-backed storage slot. Each key maps to `<directory>/<key>.json`.

    Writes go to a temporary file first and are moved into place, so a
    failed write never leaves a truncated slot behind.
    """

    def __init__(self, directory: Optional[str | Path] = None, quota_bytes: Optional[int] = None) -> None:
        self.directory = Path(directory or config.STORAGE_DIR)
        if quota_bytes is None:
            quota_bytes = config.STORAGE_QUOTA_KB * 1024
        self.quota_bytes = quota_bytes

    def _path_for(self, key: str) -> Path:
        safe_key = re.sub(r"[^A-Za-z0-9_.-]", "_", key)
        return self.directory / f"{safe_key}.json"

    def _used_bytes(self, exclude: Path) -> int:
        if not self.directory.is_dir():
            return 0
        return sum(p.stat().st_size for p in self.directory.glob("*.json") if p != exclude)

    def get(self, key: str) -> Optional[str]:
        path = self._path_for(key)
        if not path.is_file():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except OSError as e:
            raise StorageError(f"Failed to read {path}: {e}") from e

    def set(self, key: str, value: str) -> None:
        path = self._path_for(key)
        if self.quota_bytes:
            used = self._used_bytes(exclude=path)
            if used + _size_of(value) > self.quota_bytes:
                raise StorageQuotaExceeded(
                    f"Writing {key!r} needs {_size_of(value)} bytes, only {self.quota_bytes - used} available"
                )

        tmp_path = path.with_suffix(".json.tmp")
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(value, encoding="utf-8")
            os.replace(tmp_path, path)
        except OSError as e:
            tmp_path.unlink(missing_ok=True)
            raise StorageError(f"Failed to write {path}: {e}") from e
        logger.debug(f"Stored {_size_of(value)} bytes in {path}")
