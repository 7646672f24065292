"""Collections ("stories") state tests."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from mediashelf.library import FileRecord, MediaKind, encode_file_id
from mediashelf.state import (
    COLLECTIONS_KEY,
    CollectionNotFoundError,
    CollectionsState,
    EditSessionError,
    ExternalItem,
    KeyValueStore,
    ResolutionStatus,
)


class FakeClock:
    def __init__(self) -> None:
        self.now = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


def _state(tmp_path: Path, clock: FakeClock | None = None) -> CollectionsState:
    return CollectionsState(KeyValueStore(tmp_path / "store"), clock=clock or FakeClock())


def _local(name: str) -> FileRecord:
    path = f"/library/{name}.jpg"
    return FileRecord(
        id=encode_file_id(path),
        name=name,
        extension=".jpg",
        kind=MediaKind.IMAGE,
        path=path,
        relative_path=f"{name}.jpg",
        size=3,
        modified=datetime(2024, 1, 1, tzinfo=timezone.utc),
    )


def _external(identifier: str) -> ExternalItem:
    return ExternalItem(
        id=ExternalItem.external_id(identifier),
        archive_id=identifier,
        name=identifier.title(),
        kind=MediaKind.AUDIO,
        mediatype="audio",
    )


def test_create_assigns_time_based_unique_ids(tmp_path: Path) -> None:
    clock = FakeClock()
    state = _state(tmp_path, clock)

    first = state.create("Summer", "Trip photos")
    second = state.create("Winter")

    assert first.id == str(int(clock.now.timestamp() * 1000))
    assert second.id == str(int(first.id) + 1)
    assert first.color == "#6c63ff"
    assert first.items == []
    assert [c.name for c in state.list_collections()] == ["Summer", "Winter"]


def test_commit_replaces_items_with_selection(tmp_path: Path) -> None:
    clock = FakeClock()
    state = _state(tmp_path, clock)
    story = state.create("Story")

    state.begin_edit(story.id)
    assert state.toggle("a") is True
    assert state.toggle("b") is True
    assert state.toggle("a") is False
    state.toggle("c")
    clock.advance(60)
    committed = state.commit()

    assert committed.items == ["b", "c"]
    assert committed.updated_at > committed.created_at
    assert state.session is None


def test_cancel_discards_selection(tmp_path: Path) -> None:
    state = _state(tmp_path)
    story = state.create("Story")
    state.begin_edit(story.id)
    state.toggle("a")
    state.commit()

    state.begin_edit(story.id)
    assert state.is_selected("a")
    state.toggle("a")
    state.toggle("z")
    state.cancel()

    assert state.get(story.id).items == ["a"]
    assert not state.is_selected("a")


def test_only_one_edit_session_at_a_time(tmp_path: Path) -> None:
    state = _state(tmp_path)
    first = state.create("One")
    second = state.create("Two")
    state.begin_edit(first.id)

    with pytest.raises(EditSessionError):
        state.begin_edit(second.id)

    assert state.session is not None
    assert state.session.collection_id == first.id


def test_toggle_requires_session(tmp_path: Path) -> None:
    with pytest.raises(EditSessionError):
        _state(tmp_path).toggle("a")


def test_deleting_edited_collection_ends_session(tmp_path: Path) -> None:
    state = _state(tmp_path)
    story = state.create("Story")
    state.activate(story.id)
    state.begin_edit(story.id)

    state.delete(story.id)

    assert state.session is None
    assert state.active_id is None
    with pytest.raises(CollectionNotFoundError):
        state.get(story.id)


def test_update_changes_only_given_fields(tmp_path: Path) -> None:
    state = _state(tmp_path)
    story = state.create("Story", "Old", "#000000")

    updated = state.update(story.id, name="Renamed")

    assert updated.name == "Renamed"
    assert updated.description == "Old"
    assert updated.color == "#000000"


def test_unknown_collection_raises(tmp_path: Path) -> None:
    state = _state(tmp_path)

    with pytest.raises(CollectionNotFoundError):
        state.delete("404")
    with pytest.raises(CollectionNotFoundError):
        state.begin_edit("404")


def test_state_is_persisted(tmp_path: Path) -> None:
    state = _state(tmp_path)
    story = state.create("Story")
    state.add_external_item(_external("old-radio"))
    state.begin_edit(story.id)
    state.toggle("archive_old-radio")
    state.commit()

    reloaded = _state(tmp_path)

    assert reloaded.get(story.id).items == ["archive_old-radio"]
    assert reloaded.get_external_item("archive_old-radio") == _external("old-radio")


def test_resolution_reports_local_external_and_missing(tmp_path: Path) -> None:
    state = _state(tmp_path)
    photo = _local("photo")
    state.add_external_item(_external("talk"))
    story = state.create("Mixed")
    state.begin_edit(story.id)
    for item_id in ("archive_talk", photo.id, "gone"):
        state.toggle(item_id)
    state.commit()

    resolutions = state.resolve(story.id, [photo])

    assert [r.status for r in resolutions] == [
        ResolutionStatus.EXTERNAL,
        ResolutionStatus.LOCAL,
        ResolutionStatus.MISSING,
    ]
    assert resolutions[1].item == photo
    assert not resolutions[2].found
    assert resolutions[2].item is None
    assert [item.name for item in state.resolved_items(story.id, [photo])] == ["Talk", "photo"]


def test_external_items_outlive_collections(tmp_path: Path) -> None:
    state = _state(tmp_path)
    state.add_external_item(_external("film"))
    story = state.create("Story")
    state.begin_edit(story.id)
    state.toggle("archive_film")
    state.commit()

    state.delete(story.id)

    assert "archive_film" in state.external_items


def test_malformed_storage_is_ignored(tmp_path: Path) -> None:
    store = KeyValueStore(tmp_path / "store")
    store.set(COLLECTIONS_KEY, "{not json")

    state = CollectionsState(store)

    assert state.list_collections() == []


def test_quota_failure_keeps_memory_state(tmp_path: Path) -> None:
    store = KeyValueStore(tmp_path / "store", quota_bytes=5)
    state = CollectionsState(store, clock=FakeClock())

    story = state.create("Story")

    assert state.get(story.id).name == "Story"
    assert store.get_text(COLLECTIONS_KEY) is None
