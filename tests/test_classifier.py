"""Classification tests."""

import pytest

from mediashelf.library import (
    SUPPORTED_EXTENSIONS,
    MediaKind,
    classify,
    kind_from_mediatype,
    mediatype_for_kind,
    mime_type_for,
)
from mediashelf.library.classifier import normalize_extension


@pytest.mark.parametrize(
    ("name", "kind"),
    [
        ("report.pdf", MediaKind.DOCUMENT),
        ("song.MP3", MediaKind.AUDIO),
        ("voice.m4a", MediaKind.AUDIO),
        ("clip.mkv", MediaKind.VIDEO),
        ("holiday.JPeG", MediaKind.IMAGE),
        ("logo.svg", MediaKind.IMAGE),
        (".webp", MediaKind.IMAGE),
        ("avi", MediaKind.VIDEO),
    ],
)
def test_classify_known_extensions(name: str, kind: MediaKind) -> None:
    assert classify(name) is kind


@pytest.mark.parametrize("name", ["notes.txt", "archive.tar.gz", "README", "photo.heic", ""])
def test_classify_unsupported_returns_none(name: str) -> None:
    assert classify(name) is None


def test_every_supported_extension_has_a_kind() -> None:
    assert len(SUPPORTED_EXTENSIONS) == 16
    assert all(classify(extension) is not None for extension in SUPPORTED_EXTENSIONS)


def test_normalize_extension_handles_paths() -> None:
    assert normalize_extension("/srv/media/Clip.Final.MP4") == ".mp4"
    assert normalize_extension("PNG") == ".png"
    assert normalize_extension("/srv/media/README") == ""


def test_mime_type_for_inline_serving() -> None:
    assert mime_type_for("a.pdf") == "application/pdf"
    assert mime_type_for("a.jpg") == "image/jpeg"
    assert mime_type_for("a.webm") == "video/webm"
    assert mime_type_for("a.xyz") == "application/octet-stream"


def test_archive_mediatype_mapping() -> None:
    assert kind_from_mediatype("texts") is MediaKind.DOCUMENT
    assert kind_from_mediatype("software") is MediaKind.DOCUMENT
    assert kind_from_mediatype("etree") is MediaKind.AUDIO
    assert kind_from_mediatype("movies") is MediaKind.VIDEO
    assert kind_from_mediatype("image") is MediaKind.IMAGE
    assert kind_from_mediatype("collection") is MediaKind.DOCUMENT
    assert kind_from_mediatype(None) is MediaKind.DOCUMENT
    assert mediatype_for_kind(MediaKind.VIDEO) == "movies"
