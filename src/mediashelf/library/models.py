"""Data models produced by library scans."""

from __future__ import annotations

from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .classifier import MediaKind

NOT_FOUND = "not found"


class FileRecord(BaseModel):
    """One locally scanned media file.

    Attributes:
        id: Stable identifier derived from the absolute path.
        name: Display name (filename without extension).
        extension: Lower-cased extension including the leading dot.
        kind: Media kind derived from the extension.
        path: Absolute path to the file.
        relative_path: Path relative to the scanned library root.
        size: File size in bytes.
        modified: Last modification timestamp (UTC).
    """

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    extension: str
    kind: MediaKind
    path: str
    relative_path: str
    size: int
    modified: datetime


class KindCounts(BaseModel):
    """Aggregate number of scanned files per media kind."""

    document: int = 0
    audio: int = 0
    video: int = 0
    image: int = 0

    @classmethod
    def from_files(cls, files: List[FileRecord]) -> "KindCounts":
        counts = {kind.value: 0 for kind in MediaKind}
        for record in files:
            counts[record.kind.value] += 1
        return cls(**counts)

    def total(self) -> int:
        return self.document + self.audio + self.video + self.image


class ScanResult(BaseModel):
    """Outcome of scanning a library root.

    Attributes:
        root: Root path that was requested.
        files: Records sorted by display name.
        total: Number of records in ``files``.
        counts: Per-kind aggregate counts.
        error: ``"not found"`` when the root does not exist, otherwise None.
    """

    root: str
    files: List[FileRecord] = Field(default_factory=list)
    total: int = 0
    counts: KindCounts = Field(default_factory=KindCounts)
    error: Optional[str] = None

    @property
    def found(self) -> bool:
        return self.error is None

    def to_payload(self) -> dict[str, Any]:
        """Render the scan response shape consumed by presentation layers."""
        if self.error is not None:
            return {"files": [], "error": self.error}
        return {
            "files": [record.model_dump(mode="json") for record in self.files],
            "total": self.total,
            "counts": self.counts.model_dump(),
        }


__all__ = ["FileRecord", "KindCounts", "ScanResult", "NOT_FOUND"]
