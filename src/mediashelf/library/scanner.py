"""Recursive library discovery."""

from __future__ import annotations

import base64
import locale
import logging
import os
import stat as stat_module
import unicodedata
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator

from .classifier import classify
from .models import NOT_FOUND, FileRecord, KindCounts, ScanResult

LOGGER = logging.getLogger(__name__)


def encode_file_id(path: str | Path) -> str:
    """Return the identifier for an absolute path.

    The encoding is lossless, so distinct paths always map to distinct
    identifiers and the path can be recovered with :func:`decode_file_id`.
    """
    raw = os.fsencode(str(path))
    return base64.urlsafe_b64encode(raw).decode("ascii")


def decode_file_id(file_id: str) -> str:
    """Recover the absolute path encoded in ``file_id``."""
    return os.fsdecode(base64.urlsafe_b64decode(file_id.encode("ascii")))


def _fold(name: str) -> str:
    decomposed = unicodedata.normalize("NFKD", name.casefold())
    return "".join(char for char in decomposed if not unicodedata.combining(char))


def display_sort_key(record: FileRecord) -> tuple[str, str, str, str]:
    """Collation key ordering records by display name.

    Names compare without regard to case or accents first, so ``école`` sits
    beside ``eagle`` rather than after ``Zebra``; the active ``LC_COLLATE``
    and the exact name break ties.
    """
    return (
        _fold(record.name),
        locale.strxfrm(record.name.casefold()),
        record.name,
        record.relative_path,
    )


class LibraryScanner:
    """Walk a library root and collect supported media files."""

    def __init__(self, *, follow_symlinks: bool = True) -> None:
        self.follow_symlinks = follow_symlinks

    def scan(self, root: str | Path) -> ScanResult:
        """Scan ``root`` recursively and return sorted records with counts.

        Args:
            root: Library root directory.

        Returns:
            ScanResult: Records sorted by display name, or an empty result whose
            ``error`` is ``"not found"`` when the root does not exist.
        """
        requested = str(root)
        root_path = Path(root).expanduser()
        if not root_path.is_dir():
            LOGGER.info("Library root %s not found", root_path)
            return ScanResult(root=requested, error=NOT_FOUND)
        root_path = root_path.resolve()

        files = sorted(self._iter_records(root_path), key=display_sort_key)
        LOGGER.debug("Scanned %s: %d supported files", root_path, len(files))
        return ScanResult(
            root=str(root_path),
            files=files,
            total=len(files),
            counts=KindCounts.from_files(files),
        )

    def _iter_records(self, root: Path) -> Iterator[FileRecord]:
        visited: set[str] = set()

        def _on_error(exc: OSError) -> None:
            LOGGER.debug("Skipping unreadable entry %s: %s", exc.filename, exc)

        for dirpath, dirnames, filenames in os.walk(
            root, onerror=_on_error, followlinks=self.follow_symlinks
        ):
            real = os.path.realpath(dirpath)
            if real in visited:
                dirnames[:] = []
                continue
            visited.add(real)

            for filename in filenames:
                record = self._build_record(root, Path(dirpath) / filename)
                if record is not None:
                    yield record

    def _build_record(self, root: Path, path: Path) -> FileRecord | None:
        # Dotfiles such as ".pdf" have no suffix and are not media.
        extension = path.suffix.lower()
        kind = classify(extension) if extension else None
        if kind is None:
            return None
        try:
            info = path.stat()
        except OSError as exc:
            LOGGER.debug("Skipping %s: %s", path, exc)
            return None
        if not stat_module.S_ISREG(info.st_mode):
            return None

        return FileRecord(
            id=encode_file_id(path),
            name=path.name[: -len(extension)] if extension else path.name,
            extension=extension,
            kind=kind,
            path=str(path),
            relative_path=str(path.relative_to(root)),
            size=info.st_size,
            modified=datetime.fromtimestamp(info.st_mtime, tz=timezone.utc),
        )


__all__ = ["LibraryScanner", "encode_file_id", "decode_file_id", "display_sort_key"]
