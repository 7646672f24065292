"""File-backed key-value store used for persisted application state."""

from __future__ import annotations

import os
import re
import tempfile
from pathlib import Path
from typing import Iterator

from .errors import StorageError, StorageQuotaError

_KEY_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+$")


class KeyValueStore:
    """Persist string or bytes values as one file per key.

    Writes replace the previous value atomically. An optional quota bounds the
    total number of stored bytes; writes past the quota raise
    :class:`StorageQuotaError` and leave the previous value in place.
    """

    def __init__(self, directory: Path, *, quota_bytes: int | None = None) -> None:
        """Initialize the store.

        Args:
            directory: Directory holding one file per key. Created lazily.
            quota_bytes: Optional ceiling on the total size of stored values.
        """
        self._directory = directory.expanduser()
        self._quota_bytes = quota_bytes

    @property
    def directory(self) -> Path:
        """Return the directory backing the store."""
        return self._directory

    def get_bytes(self, key: str) -> bytes | None:
        """Return the raw value for ``key`` or None when absent.

        Raises:
            StorageError: If the entry exists but cannot be read.
        """
        path = self._path(key)
        try:
            return path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise StorageError(f"Unable to read {key}: {exc}") from exc

    def get_text(self, key: str) -> str | None:
        """Return the UTF-8 decoded value for ``key`` or None when absent."""
        raw = self.get_bytes(key)
        if raw is None:
            return None
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise StorageError(f"Entry {key} is not valid UTF-8") from exc

    def set(self, key: str, value: str | bytes) -> None:
        """Store ``value`` under ``key``.

        Raises:
            StorageQuotaError: If the write would exceed the quota.
            StorageError: If the value cannot be written.
        """
        payload = value.encode("utf-8") if isinstance(value, str) else value
        path = self._path(key)
        if self._quota_bytes is not None:
            projected = self.size_bytes() - self._entry_size(path) + len(payload)
            if projected > self._quota_bytes:
                raise StorageQuotaError(
                    f"Storing {key} needs {projected} bytes; quota is {self._quota_bytes}."
                )

        try:
            self._directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self._directory, prefix=".tmp-")
            try:
                with os.fdopen(fd, "wb") as handle:
                    handle.write(payload)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            raise StorageError(f"Unable to write {key}: {exc}") from exc

    def delete(self, key: str) -> bool:
        """Remove ``key``; return True when an entry was removed."""
        try:
            self._path(key).unlink()
        except FileNotFoundError:
            return False
        except OSError as exc:
            raise StorageError(f"Unable to delete {key}: {exc}") from exc
        return True

    def keys(self, prefix: str = "") -> Iterator[str]:
        """Yield stored keys starting with ``prefix``."""
        if not self._directory.is_dir():
            return
        for entry in sorted(self._directory.iterdir()):
            name = entry.name
            if name.startswith(".tmp-") or not entry.is_file():
                continue
            if name.startswith(prefix):
                yield name

    def size_bytes(self) -> int:
        """Return the total size of stored values."""
        return sum(self._entry_size(self._directory / key) for key in self.keys())

    def _entry_size(self, path: Path) -> int:
        try:
            return path.stat().st_size
        except OSError:
            return 0

    def _path(self, key: str) -> Path:
        if not _KEY_PATTERN.match(key) or key.startswith(".tmp-"):
            raise StorageError(f"Invalid storage key: {key!r}")
        return self._directory / key


__all__ = ["KeyValueStore"]
