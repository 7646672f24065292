"""Response models for archive searches."""

from __future__ import annotations

from typing import Any, List

from pydantic import BaseModel, Field

from mediashelf.state.models import ExternalItem


class SearchPage(BaseModel):
    """One page of archive search results."""

    items: List[ExternalItem] = Field(default_factory=list)
    total: int = 0
    page: int = 1
    total_pages: int = 0

    def to_payload(self) -> dict[str, Any]:
        return {
            "items": [item.model_dump(mode="json") for item in self.items],
            "total": self.total,
            "page": self.page,
            "totalPages": self.total_pages,
        }


class ArchiveCollectionInfo(BaseModel):
    """Well-known archive collection offered as a browsing shortcut."""

    id: str
    name: str
    mediatype: str
