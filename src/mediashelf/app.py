"""Application container wiring MediaShelf services together."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Optional

from mediashelf.archive import ArchiveClient
from mediashelf.config.models import MediaShelfConfig
from mediashelf.library import LibraryScanner, ScanResult
from mediashelf.state import (
    CollectionsState,
    ExternalItem,
    ItemResolution,
    KeyValueStore,
    LibraryState,
)
from mediashelf.thumbnails import ThumbnailCache, ThumbnailGenerator

LOGGER = logging.getLogger(__name__)


class MediaShelf:
    """Explicit application state shared by every surface.

    Each service is constructed once and handed to its consumers; nothing is kept
    in module-level globals.
    """

    def __init__(
        self,
        config: Optional[MediaShelfConfig] = None,
        *,
        store: Optional[KeyValueStore] = None,
        archive: Optional[ArchiveClient] = None,
    ) -> None:
        self.config = config or MediaShelfConfig()
        quota_mb = self.config.storage.quota_mb
        self.store = store or KeyValueStore(
            Path(self.config.storage.directory),
            quota_bytes=quota_mb * 1024 * 1024 if quota_mb is not None else None,
        )
        self.scanner = LibraryScanner(follow_symlinks=self.config.library.follow_symlinks)
        self.library = LibraryState(page_size=self.config.library.page_size)
        self.collections = CollectionsState(self.store)
        self.thumbnail_cache = ThumbnailCache(
            self.store if self.config.thumbnails.persist else None
        )
        self.thumbnails = ThumbnailGenerator(self.thumbnail_cache, self.config.thumbnails)
        self._archive = archive

    @classmethod
    def from_config(cls, config: MediaShelfConfig) -> "MediaShelf":
        return cls(config)

    @property
    def archive(self) -> ArchiveClient:
        if self._archive is None:
            self._archive = ArchiveClient(self.config.archive)
        return self._archive

    async def scan(self, root: str | Path) -> ScanResult:
        """Scan ``root`` off the event loop and install the result as the library.

        A missing root leaves the current library untouched.
        """
        result = await asyncio.to_thread(self.scanner.scan, root)
        if result.found:
            self.library.replace_files(result)
        else:
            LOGGER.warning("Library root %s not found", root)
        return result

    async def import_archive_item(
        self, identifier: str, *, collection_id: Optional[str] = None
    ) -> ExternalItem:
        """Fetch an archive item, persist it and select it for a collection.

        With an open edit session the item joins the working selection. With
        ``collection_id`` and no session, a session is opened, the item is added and
        the session committed.
        """
        item = await self.archive.get_item(identifier)
        self.collections.add_external_item(item)

        if self.collections.session is not None:
            if not self.collections.is_selected(item.id):
                self.collections.toggle(item.id)
        elif collection_id is not None:
            self.collections.begin_edit(collection_id)
            if not self.collections.is_selected(item.id):
                self.collections.toggle(item.id)
            self.collections.commit()
        return item

    def resolve_collection(self, collection_id: str) -> list[ItemResolution]:
        return self.collections.resolve(collection_id, self.library.files)

    async def aclose(self) -> None:
        if self._archive is not None:
            await self._archive.aclose()


__all__ = ["MediaShelf"]
