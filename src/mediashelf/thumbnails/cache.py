"""Two-tier thumbnail cache (process memory plus persistent store)."""

from __future__ import annotations

import hashlib
import logging
from typing import Optional

from mediashelf.state.errors import StorageError
from mediashelf.state.store import KeyValueStore

LOGGER = logging.getLogger(__name__)

THUMBNAIL_KEY_PREFIX = "thumb_"
_KEY_DIGEST_LENGTH = 32


def storage_key(item_id: str) -> str:
    """Return the persistent-store key holding the thumbnail for ``item_id``."""
    digest = hashlib.sha256(item_id.encode("utf-8")).hexdigest()
    return f"{THUMBNAIL_KEY_PREFIX}{digest[:_KEY_DIGEST_LENGTH]}"


class ThumbnailCache:
    """Cache encoded thumbnails keyed by item identifier.

    The memory tier grows for the lifetime of the process. Entries are never
    invalidated by file changes; only :meth:`clear` removes them.
    """

    def __init__(self, store: Optional[KeyValueStore] = None) -> None:
        """Initialize the cache.

        Args:
            store: Persistent tier. When None, only the memory tier is used.
        """
        self._memory: dict[str, bytes] = {}
        self._store = store

    def __contains__(self, item_id: str) -> bool:
        return self.lookup(item_id) is not None

    def __len__(self) -> int:
        return len(self._memory)

    def lookup(self, item_id: str) -> Optional[bytes]:
        """Return the cached image for ``item_id`` or None when absent."""
        cached = self._memory.get(item_id)
        if cached is not None:
            return cached
        if self._store is None:
            return None

        try:
            stored = self._store.get_bytes(storage_key(item_id))
        except StorageError as exc:
            LOGGER.debug("Persistent thumbnail lookup failed for %s: %s", item_id, exc)
            return None
        if stored is not None:
            self._memory[item_id] = stored
        return stored

    def store(self, item_id: str, image: bytes) -> None:
        """Write ``image`` to both tiers; persistent failures are ignored."""
        self._memory[item_id] = image
        if self._store is None:
            return
        try:
            self._store.set(storage_key(item_id), image)
        except StorageError as exc:
            LOGGER.warning("Thumbnail for %s kept in memory only: %s", item_id, exc)

    def clear(self) -> None:
        """Empty both tiers."""
        self._memory.clear()
        if self._store is None:
            return
        for key in list(self._store.keys(THUMBNAIL_KEY_PREFIX)):
            try:
                self._store.delete(key)
            except StorageError as exc:
                LOGGER.warning("Unable to remove persisted thumbnail %s: %s", key, exc)


__all__ = ["ThumbnailCache", "THUMBNAIL_KEY_PREFIX", "storage_key"]
