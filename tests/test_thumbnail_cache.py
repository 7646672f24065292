"""Thumbnail cache tests."""

from __future__ import annotations

from pathlib import Path

from mediashelf.state import KeyValueStore
from mediashelf.thumbnails import THUMBNAIL_KEY_PREFIX, ThumbnailCache, storage_key


def test_memory_only_cache() -> None:
    cache = ThumbnailCache()

    assert cache.lookup("item") is None
    cache.store("item", b"jpeg")

    assert cache.lookup("item") == b"jpeg"
    assert "item" in cache
    assert len(cache) == 1


def test_persisted_entries_survive_new_process(tmp_path: Path) -> None:
    store = KeyValueStore(tmp_path)
    ThumbnailCache(store).store("item", b"jpeg")

    fresh = ThumbnailCache(store)
    assert len(fresh) == 0

    assert fresh.lookup("item") == b"jpeg"
    assert len(fresh) == 1


def test_clear_empties_both_tiers_only(tmp_path: Path) -> None:
    store = KeyValueStore(tmp_path)
    store.set("stories", "[]")
    cache = ThumbnailCache(store)
    cache.store("one", b"1")
    cache.store("two", b"2")

    cache.clear()

    assert len(cache) == 0
    assert list(store.keys(THUMBNAIL_KEY_PREFIX)) == []
    assert cache.lookup("one") is None
    assert store.get_text("stories") == "[]"


def test_quota_failures_fall_back_to_memory(tmp_path: Path) -> None:
    store = KeyValueStore(tmp_path, quota_bytes=1)
    cache = ThumbnailCache(store)

    cache.store("item", b"larger than the quota")

    assert cache.lookup("item") == b"larger than the quota"
    assert list(store.keys()) == []


def test_storage_keys_are_distinct_for_shared_prefixes() -> None:
    shared = "L3Jvb3QvbWVkaWEvcGhvdG9zLzIwMjQvc3VtbWVyL2JlYWNo"
    first = storage_key(shared + "LmpwZw==")
    second = storage_key(shared + "LnBuZw==")

    assert first != second
    assert first.startswith(THUMBNAIL_KEY_PREFIX)
    assert storage_key(shared) == storage_key(shared)
