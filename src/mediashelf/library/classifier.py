"""Extension-based media classification."""

from __future__ import annotations

from enum import Enum
from pathlib import PurePath
from typing import Optional


class MediaKind(str, Enum):
    """Coarse media classification shared by local files and archive items."""

    DOCUMENT = "document"
    AUDIO = "audio"
    VIDEO = "video"
    IMAGE = "image"


_EXTENSION_KINDS: dict[str, MediaKind] = {
    ".pdf": MediaKind.DOCUMENT,
    ".mp3": MediaKind.AUDIO,
    ".wav": MediaKind.AUDIO,
    ".ogg": MediaKind.AUDIO,
    ".m4a": MediaKind.AUDIO,
    ".mp4": MediaKind.VIDEO,
    ".webm": MediaKind.VIDEO,
    ".mkv": MediaKind.VIDEO,
    ".avi": MediaKind.VIDEO,
    ".jpg": MediaKind.IMAGE,
    ".jpeg": MediaKind.IMAGE,
    ".png": MediaKind.IMAGE,
    ".gif": MediaKind.IMAGE,
    ".webp": MediaKind.IMAGE,
    ".bmp": MediaKind.IMAGE,
    ".svg": MediaKind.IMAGE,
}

_MIME_TYPES: dict[str, str] = {
    ".pdf": "application/pdf",
    ".mp3": "audio/mpeg",
    ".wav": "audio/wav",
    ".ogg": "audio/ogg",
    ".m4a": "audio/mp4",
    ".mp4": "video/mp4",
    ".webm": "video/webm",
    ".mkv": "video/x-matroska",
    ".avi": "video/x-msvideo",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".webp": "image/webp",
    ".bmp": "image/bmp",
    ".svg": "image/svg+xml",
}

# Archive mediatypes without a dedicated kind are presented as documents.
_ARCHIVE_MEDIATYPES: dict[str, MediaKind] = {
    "texts": MediaKind.DOCUMENT,
    "software": MediaKind.DOCUMENT,
    "data": MediaKind.DOCUMENT,
    "audio": MediaKind.AUDIO,
    "etree": MediaKind.AUDIO,
    "movies": MediaKind.VIDEO,
    "image": MediaKind.IMAGE,
}

_KIND_TO_MEDIATYPE: dict[MediaKind, str] = {
    MediaKind.DOCUMENT: "texts",
    MediaKind.AUDIO: "audio",
    MediaKind.VIDEO: "movies",
    MediaKind.IMAGE: "image",
}

SUPPORTED_EXTENSIONS = frozenset(_EXTENSION_KINDS)
DEFAULT_MIME_TYPE = "application/octet-stream"


def normalize_extension(value: str) -> str:
    """Return the lower-cased extension (with leading dot) of a name or bare extension."""
    has_separator = "/" in value or "\\" in value
    if value.startswith(".") and value.count(".") == 1 and not has_separator:
        return value.lower()
    suffix = PurePath(value).suffix
    if suffix:
        return suffix.lower()
    if "." not in value and not has_separator:
        return f".{value.lower()}"
    return ""


def classify(name_or_extension: str) -> Optional[MediaKind]:
    """Return the media kind for a filename or extension, or None when unsupported."""
    return _EXTENSION_KINDS.get(normalize_extension(name_or_extension))


def mime_type_for(name_or_extension: str) -> str:
    """Return the MIME type used when serving a file inline."""
    return _MIME_TYPES.get(normalize_extension(name_or_extension), DEFAULT_MIME_TYPE)


def kind_from_mediatype(mediatype: Optional[str]) -> MediaKind:
    """Map an archive mediatype onto a media kind."""
    return _ARCHIVE_MEDIATYPES.get((mediatype or "").lower(), MediaKind.DOCUMENT)


def mediatype_for_kind(kind: MediaKind) -> str:
    """Return the archive mediatype used to filter searches for ``kind``."""
    return _KIND_TO_MEDIATYPE[kind]


__all__ = [
    "MediaKind",
    "SUPPORTED_EXTENSIONS",
    "DEFAULT_MIME_TYPE",
    "normalize_extension",
    "classify",
    "mime_type_for",
    "kind_from_mediatype",
    "mediatype_for_kind",
]
