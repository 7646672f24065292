"""User-curated collections ("stories") and the imported archive item table."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Callable, Iterable, Optional

from pydantic import ValidationError

from mediashelf.library.models import FileRecord

from .errors import CollectionNotFoundError, EditSessionError, StorageError
from .models import (
    DEFAULT_COLLECTION_COLOR,
    Collection,
    ExternalItem,
    ItemResolution,
    ResolutionStatus,
)
from .store import KeyValueStore

LOGGER = logging.getLogger(__name__)

COLLECTIONS_KEY = "stories"
EXTERNAL_ITEMS_KEY = "external-items"


class EditSession:
    """Working selection for the collection currently being edited."""

    def __init__(self, collection_id: str, items: Iterable[str]) -> None:
        self.collection_id = collection_id
        self.selection: list[str] = list(dict.fromkeys(items))

    def toggle(self, item_id: str) -> bool:
        """Flip membership of ``item_id``; return True when it is now selected."""
        if item_id in self.selection:
            self.selection.remove(item_id)
            return False
        self.selection.append(item_id)
        return True


class CollectionsState:
    """CRUD over collections plus the edit-session protocol.

    Every mutation is written through to the key-value store. Write failures are
    logged and the in-memory state stays authoritative for the session. Only one
    edit session may be open at a time; opening a second one raises
    :class:`EditSessionError`.
    """

    def __init__(
        self,
        store: KeyValueStore,
        *,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._store = store
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._collections: list[Collection] = self._load_collections()
        self._external: dict[str, ExternalItem] = self._load_external_items()
        self.session: Optional[EditSession] = None
        self.active_id: Optional[str] = None

    # Collections -------------------------------------------------------

    def list_collections(self) -> list[Collection]:
        return [collection.model_copy(deep=True) for collection in self._collections]

    def get(self, collection_id: str) -> Collection:
        return self._find(collection_id).model_copy(deep=True)

    def create(
        self,
        name: str,
        description: str = "",
        color: str = DEFAULT_COLLECTION_COLOR,
    ) -> Collection:
        """Create an empty collection and persist it."""
        now = self._clock()
        collection = Collection(
            id=self._new_id(now),
            name=name,
            description=description,
            color=color,
            created_at=now,
            updated_at=now,
        )
        self._collections.append(collection)
        self._save_collections()
        LOGGER.debug("Created collection %s (%s)", collection.id, name)
        return collection.model_copy(deep=True)

    def update(
        self,
        collection_id: str,
        *,
        name: str | None = None,
        description: str | None = None,
        color: str | None = None,
    ) -> Collection:
        collection = self._find(collection_id)
        changes = {
            key: value
            for key, value in (("name", name), ("description", description), ("color", color))
            if value is not None
        }
        for key, value in changes.items():
            setattr(collection, key, value)
        collection.updated_at = self._clock()
        self._save_collections()
        return collection.model_copy(deep=True)

    def delete(self, collection_id: str) -> None:
        """Remove a collection; referenced external items are kept."""
        collection = self._find(collection_id)
        self._collections.remove(collection)
        if self.active_id == collection_id:
            self.active_id = None
        if self.session is not None and self.session.collection_id == collection_id:
            self.session = None
        self._save_collections()

    def activate(self, collection_id: str) -> Collection:
        """Select a collection for viewing."""
        collection = self._find(collection_id)
        self.active_id = collection.id
        return collection.model_copy(deep=True)

    def deactivate(self) -> None:
        self.active_id = None

    # Edit sessions -----------------------------------------------------

    def begin_edit(self, collection_id: str) -> EditSession:
        """Open an edit session seeded with the collection's current items.

        Raises:
            EditSessionError: If another collection is already being edited.
            CollectionNotFoundError: If the collection does not exist.
        """
        if self.session is not None:
            raise EditSessionError(
                f"Collection {self.session.collection_id} is already being edited; "
                "commit or cancel it first."
            )
        collection = self._find(collection_id)
        self.session = EditSession(collection.id, collection.items)
        return self.session

    def toggle(self, item_id: str) -> bool:
        return self._require_session().toggle(item_id)

    def is_selected(self, item_id: str) -> bool:
        return self.session is not None and item_id in self.session.selection

    def commit(self) -> Collection:
        """Replace the edited collection's items with the working selection."""
        session = self._require_session()
        self.session = None
        collection = self._find(session.collection_id)
        collection.items = list(session.selection)
        collection.updated_at = self._clock()
        self._save_collections()
        return collection.model_copy(deep=True)

    def cancel(self) -> None:
        self.session = None

    # External items ----------------------------------------------------

    def add_external_item(self, item: ExternalItem) -> ExternalItem:
        """Persist ``item`` in the external item table, replacing older data."""
        self._external[item.id] = item
        self._save_external_items()
        return item

    def get_external_item(self, item_id: str) -> Optional[ExternalItem]:
        return self._external.get(item_id)

    @property
    def external_items(self) -> dict[str, ExternalItem]:
        return dict(self._external)

    # Resolution --------------------------------------------------------

    def resolve(self, collection_id: str, files: Iterable[FileRecord]) -> list[ItemResolution]:
        """Resolve each stored identifier against local files, then external items."""
        collection = self._find(collection_id)
        local = {record.id: record for record in files}
        resolutions = []
        for item_id in collection.items:
            if item_id in local:
                resolutions.append(ItemResolution(item_id, ResolutionStatus.LOCAL, local[item_id]))
            elif item_id in self._external:
                resolutions.append(
                    ItemResolution(item_id, ResolutionStatus.EXTERNAL, self._external[item_id])
                )
            else:
                resolutions.append(ItemResolution(item_id, ResolutionStatus.MISSING))
        return resolutions

    def resolved_items(
        self, collection_id: str, files: Iterable[FileRecord]
    ) -> list[FileRecord | ExternalItem]:
        """Return the records a collection currently points at, dropping missing ones."""
        return [
            resolution.item
            for resolution in self.resolve(collection_id, files)
            if resolution.item is not None
        ]

    # Internal helpers --------------------------------------------------

    def _find(self, collection_id: str) -> Collection:
        for collection in self._collections:
            if collection.id == collection_id:
                return collection
        raise CollectionNotFoundError(f"No collection with id {collection_id!r}")

    def _require_session(self) -> EditSession:
        if self.session is None:
            raise EditSessionError("No collection is being edited.")
        return self.session

    def _new_id(self, now: datetime) -> str:
        candidate = int(now.timestamp() * 1000)
        existing = {collection.id for collection in self._collections}
        while str(candidate) in existing:
            candidate += 1
        return str(candidate)

    def _load_collections(self) -> list[Collection]:
        raw = self._read_json(COLLECTIONS_KEY)
        if not isinstance(raw, list):
            return []
        collections = []
        for entry in raw:
            try:
                collections.append(Collection.model_validate(entry))
            except ValidationError as exc:
                LOGGER.warning("Ignoring malformed collection entry: %s", exc)
        return collections

    def _load_external_items(self) -> dict[str, ExternalItem]:
        raw = self._read_json(EXTERNAL_ITEMS_KEY)
        if not isinstance(raw, dict):
            return {}
        items = {}
        for key, entry in raw.items():
            try:
                items[key] = ExternalItem.model_validate(entry)
            except ValidationError as exc:
                LOGGER.warning("Ignoring malformed external item %s: %s", key, exc)
        return items

    def _read_json(self, key: str) -> object:
        try:
            text = self._store.get_text(key)
        except StorageError as exc:
            LOGGER.warning("Unable to load %s: %s", key, exc)
            return None
        if text is None:
            return None
        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            LOGGER.warning("Stored %s is not valid JSON: %s", key, exc)
            return None

    def _write_json(self, key: str, payload: object) -> None:
        try:
            self._store.set(key, json.dumps(payload))
        except StorageError as exc:
            LOGGER.warning("Unable to persist %s: %s", key, exc)

    def _save_collections(self) -> None:
        self._write_json(
            COLLECTIONS_KEY,
            [collection.model_dump(mode="json") for collection in self._collections],
        )

    def _save_external_items(self) -> None:
        self._write_json(
            EXTERNAL_ITEMS_KEY,
            {key: item.model_dump(mode="json") for key, item in self._external.items()},
        )


__all__ = ["CollectionsState", "EditSession", "COLLECTIONS_KEY", "EXTERNAL_ITEMS_KEY"]
