"""Thumbnail generation and caching."""

from .cache import THUMBNAIL_KEY_PREFIX, ThumbnailCache, storage_key
from .generator import ThumbnailGenerator, ThumbnailTicket
from .raster import THUMBNAIL_MIME_TYPE, fit_within, to_data_url
from .video import CaptureState, VideoFrameCapture, seek_position

__all__ = [
    "THUMBNAIL_KEY_PREFIX",
    "ThumbnailCache",
    "storage_key",
    "ThumbnailGenerator",
    "ThumbnailTicket",
    "THUMBNAIL_MIME_TYPE",
    "fit_within",
    "to_data_url",
    "CaptureState",
    "VideoFrameCapture",
    "seek_position",
]
