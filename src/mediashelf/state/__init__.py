"""Application state: persisted store, library view and collections."""

from .collections import COLLECTIONS_KEY, EXTERNAL_ITEMS_KEY, CollectionsState, EditSession
from .errors import (
    CollectionError,
    CollectionNotFoundError,
    EditSessionError,
    StateError,
    StorageError,
    StorageQuotaError,
)
from .library import DEFAULT_PAGE_SIZE, KIND_FILTERS, LibraryState
from .models import (
    ArchiveFile,
    Collection,
    ExternalItem,
    ItemResolution,
    ResolutionStatus,
)
from .store import KeyValueStore

__all__ = [
    "COLLECTIONS_KEY",
    "EXTERNAL_ITEMS_KEY",
    "CollectionsState",
    "EditSession",
    "CollectionError",
    "CollectionNotFoundError",
    "EditSessionError",
    "StateError",
    "StorageError",
    "StorageQuotaError",
    "DEFAULT_PAGE_SIZE",
    "KIND_FILTERS",
    "LibraryState",
    "ArchiveFile",
    "Collection",
    "ExternalItem",
    "ItemResolution",
    "ResolutionStatus",
    "KeyValueStore",
]
