"""Local library discovery and classification."""

from .classifier import (
    SUPPORTED_EXTENSIONS,
    MediaKind,
    classify,
    kind_from_mediatype,
    mediatype_for_kind,
    mime_type_for,
)
from .content import encode_data_url, read_bytes, read_data_url
from .errors import FileReadError, LibraryError
from .models import NOT_FOUND, FileRecord, KindCounts, ScanResult
from .scanner import LibraryScanner, decode_file_id, encode_file_id

__all__ = [
    "SUPPORTED_EXTENSIONS",
    "MediaKind",
    "classify",
    "kind_from_mediatype",
    "mediatype_for_kind",
    "mime_type_for",
    "encode_data_url",
    "read_bytes",
    "read_data_url",
    "FileReadError",
    "LibraryError",
    "NOT_FOUND",
    "FileRecord",
    "KindCounts",
    "ScanResult",
    "LibraryScanner",
    "decode_file_id",
    "encode_file_id",
]
