"""State data models for collections and imported archive items."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional, Union

from pydantic import BaseModel, Field

from mediashelf.library.classifier import MediaKind
from mediashelf.library.models import FileRecord

DEFAULT_COLLECTION_COLOR = "#6c63ff"
EXTERNAL_ID_PREFIX = "archive_"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ArchiveFile(BaseModel):
    """One downloadable file belonging to an archive item."""

    name: str
    format: Optional[str] = None
    size: Optional[int] = None
    url: str


class ExternalItem(BaseModel):
    """Archive record imported into a collection and persisted locally.

    Attributes:
        id: Namespaced identifier (``archive_<archive_id>``).
        archive_id: Identifier native to the archive.
        name: Display title.
        description: Free-form description.
        kind: Media kind mapped from the archive mediatype.
        mediatype: Raw archive mediatype.
        creator: Creator names joined with commas.
        date: Publication date or year as reported by the archive.
        thumbnail: Pre-rendered thumbnail URL.
        url: Human-facing detail page URL.
        stream_url: Resolved primary playable/readable file, when known.
        embed_url: Embeddable player URL, when the kind supports one.
        files: Downloadable files, populated by detail fetches.
        source: Name of the archive the record came from.
    """

    id: str
    archive_id: str
    name: str
    description: str = ""
    kind: MediaKind = MediaKind.DOCUMENT
    mediatype: str = "texts"
    creator: Optional[str] = None
    date: Optional[str] = None
    downloads: int = 0
    thumbnail: Optional[str] = None
    url: Optional[str] = None
    stream_url: Optional[str] = None
    embed_url: Optional[str] = None
    files: List[ArchiveFile] = Field(default_factory=list)
    source: str = "archive.org"

    @staticmethod
    def external_id(archive_id: str) -> str:
        return f"{EXTERNAL_ID_PREFIX}{archive_id}"


class Collection(BaseModel):
    """User-curated, ordered set of item references (a "story")."""

    id: str
    name: str
    description: str = ""
    color: str = DEFAULT_COLLECTION_COLOR
    items: List[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)


class ResolutionStatus(str, Enum):
    """Outcome of resolving a collection item identifier against live data."""

    LOCAL = "local"
    EXTERNAL = "external"
    MISSING = "missing"


@dataclass(frozen=True, slots=True)
class ItemResolution:
    """Resolution of one collection item identifier.

    Attributes:
        item_id: Identifier stored in the collection.
        status: Where the identifier resolved, or ``MISSING``.
        item: Resolved record; None exactly when ``status`` is ``MISSING``.
    """

    item_id: str
    status: ResolutionStatus
    item: Union[FileRecord, ExternalItem, None] = None

    @property
    def found(self) -> bool:
        return self.status is not ResolutionStatus.MISSING


__all__ = [
    "DEFAULT_COLLECTION_COLOR",
    "EXTERNAL_ID_PREFIX",
    "ArchiveFile",
    "ExternalItem",
    "Collection",
    "ResolutionStatus",
    "ItemResolution",
]
