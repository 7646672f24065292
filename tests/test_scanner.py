"""Library scanner tests."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import pytest

from mediashelf.library import LibraryScanner, MediaKind, decode_file_id, encode_file_id

_IS_ROOT = hasattr(os, "geteuid") and os.geteuid() == 0


def _touch(path: Path, payload: bytes = b"x") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(payload)
    return path


def test_scan_classifies_and_counts(tmp_path: Path) -> None:
    _touch(tmp_path / "a.pdf")
    _touch(tmp_path / "b.mp3")
    _touch(tmp_path / "c.mp4")
    _touch(tmp_path / "d.jpg")
    _touch(tmp_path / "notes.txt")
    _touch(tmp_path / "nested" / "deeper" / "e.PNG")

    result = LibraryScanner().scan(tmp_path)

    assert result.found
    assert result.total == 5
    assert [record.name for record in result.files] == ["a", "b", "c", "d", "e"]
    assert result.counts.model_dump() == {"document": 1, "audio": 1, "video": 1, "image": 2}
    assert result.counts.total() == result.total

    nested = result.files[-1]
    assert nested.kind is MediaKind.IMAGE
    assert nested.extension == ".png"
    assert nested.relative_path == os.path.join("nested", "deeper", "e.PNG")
    assert nested.path == str(tmp_path.resolve() / "nested" / "deeper" / "e.PNG")


def test_scan_sorts_case_insensitively(tmp_path: Path) -> None:
    for name in ("gamma.jpg", "Beta.jpg", "alpha.jpg"):
        _touch(tmp_path / name)

    result = LibraryScanner().scan(tmp_path)

    assert [record.name for record in result.files] == ["alpha", "Beta", "gamma"]


def test_scan_records_size_and_mtime(tmp_path: Path) -> None:
    path = _touch(tmp_path / "clip.webm", b"0123456789")
    os.utime(path, (1_700_000_000, 1_700_000_000))

    (record,) = LibraryScanner().scan(tmp_path).files

    assert record.size == 10
    assert int(record.modified.timestamp()) == 1_700_000_000


def test_identifiers_are_stable_distinct_and_reversible(tmp_path: Path) -> None:
    _touch(tmp_path / "photo.jpg")
    _touch(tmp_path / "photo.jpeg")
    scanner = LibraryScanner()

    first = scanner.scan(tmp_path)
    second = scanner.scan(tmp_path)

    ids = [record.id for record in first.files]
    assert ids == [record.id for record in second.files]
    assert len(set(ids)) == 2
    for record in first.files:
        assert decode_file_id(record.id) == record.path
        assert encode_file_id(record.path) == record.id


def test_missing_root_reports_not_found(tmp_path: Path) -> None:
    result = LibraryScanner().scan(tmp_path / "missing")

    assert not result.found
    assert result.error == "not found"
    assert result.to_payload() == {"files": [], "error": "not found"}


def test_empty_root_payload(tmp_path: Path) -> None:
    payload = LibraryScanner().scan(tmp_path).to_payload()

    assert payload == {
        "files": [],
        "total": 0,
        "counts": {"document": 0, "audio": 0, "video": 0, "image": 0},
    }


def test_directories_named_like_media_are_ignored(tmp_path: Path) -> None:
    (tmp_path / "album.jpg").mkdir()
    _touch(tmp_path / "album.jpg" / "cover.png")

    result = LibraryScanner().scan(tmp_path)

    assert [record.name for record in result.files] == ["cover"]


@pytest.mark.skipif(_IS_ROOT, reason="root ignores directory permissions")
def test_unreadable_directory_is_skipped(tmp_path: Path) -> None:
    _touch(tmp_path / "visible.mp3")
    locked = tmp_path / "locked"
    _touch(locked / "hidden.mp3")
    locked.chmod(0)
    try:
        result = LibraryScanner().scan(tmp_path)
    finally:
        locked.chmod(0o755)

    assert [record.name for record in result.files] == ["visible"]


@pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlinks unavailable")
def test_symlink_cycles_terminate(tmp_path: Path) -> None:
    _touch(tmp_path / "sub" / "track.ogg")
    os.symlink(tmp_path, tmp_path / "sub" / "loop")

    result = LibraryScanner(follow_symlinks=True).scan(tmp_path)

    assert [record.name for record in result.files] == ["track"]


def test_nested_directory_that_cannot_be_listed_is_skipped(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    _touch(tmp_path / "visible.mp3")
    _touch(tmp_path / "outer" / "inner" / "hidden.mp3")
    _touch(tmp_path / "outer" / "kept.mp3")
    locked = str(tmp_path.resolve() / "outer" / "inner")
    real_scandir = os.scandir

    def guarded_scandir(path: Any = ".") -> Any:
        if os.fspath(path) == locked:
            raise PermissionError(13, "Permission denied", locked)
        return real_scandir(path)

    monkeypatch.setattr(os, "scandir", guarded_scandir)

    result = LibraryScanner().scan(tmp_path)

    assert [record.name for record in result.files] == ["kept", "visible"]


def test_scan_sorts_accented_names_beside_their_base_letter(tmp_path: Path) -> None:
    for name in ("Zebra.jpg", "école.jpg", "eagle.jpg", "Émile.jpg"):
        _touch(tmp_path / name)

    result = LibraryScanner().scan(tmp_path)

    assert [record.name for record in result.files] == ["eagle", "école", "Émile", "Zebra"]


def test_dotfiles_named_like_extensions_are_not_media(tmp_path: Path) -> None:
    _touch(tmp_path / ".pdf")
    _touch(tmp_path / ".mp3")
    _touch(tmp_path / "real.mp3")

    result = LibraryScanner().scan(tmp_path)

    assert [(record.name, record.extension) for record in result.files] == [("real", ".mp3")]


@pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlinks unavailable")
def test_symlinked_directories_are_followed_by_default(tmp_path: Path) -> None:
    library = tmp_path / "lib"
    library.mkdir()
    _touch(tmp_path / "elsewhere" / "song.mp3")
    os.symlink(tmp_path / "elsewhere", library / "music")

    result = LibraryScanner().scan(library)

    assert [record.relative_path for record in result.files] == [os.path.join("music", "song.mp3")]
