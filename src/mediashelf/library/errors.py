"""Library access errors."""

from __future__ import annotations

from pathlib import Path


class LibraryError(Exception):
    """Base exception for library operations."""


class FileReadError(LibraryError):
    """Raised when a scanned file cannot be read back.

    Attributes:
        path: File that could not be read.
        label: Short human-readable reason suitable for inline display.
    """

    def __init__(self, path: Path, label: str) -> None:
        super().__init__(f"{path}: {label}")
        self.path = path
        self.label = label
