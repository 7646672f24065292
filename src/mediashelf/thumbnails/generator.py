"""Thumbnail generation for library files and archive items."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Callable, Optional, Union

from mediashelf.config.models import ThumbnailSettings
from mediashelf.library.classifier import MediaKind
from mediashelf.library.models import FileRecord
from mediashelf.state.models import ExternalItem

from .cache import ThumbnailCache
from .raster import render_document_thumbnail, render_image_thumbnail, to_data_url
from .video import VideoFrameCapture

LOGGER = logging.getLogger(__name__)

Item = Union[FileRecord, ExternalItem]
ThumbnailCallback = Callable[[Optional[bytes]], None]

# Pillow cannot rasterize vector images.
_UNRENDERABLE_EXTENSIONS = frozenset({".svg"})


class ThumbnailTicket:
    """Binding between a pending thumbnail and the consumer waiting for it.

    Detaching guarantees the callback is never invoked afterwards. The underlying
    generation keeps running and still populates the cache.
    """

    def __init__(
        self,
        item_id: str,
        task: "asyncio.Task[Optional[bytes]]",
        callback: ThumbnailCallback,
    ) -> None:
        self.item_id = item_id
        self.task = task
        self._callback = callback
        self._attached = True
        task.add_done_callback(self._deliver)

    @property
    def attached(self) -> bool:
        return self._attached

    def detach(self) -> None:
        self._attached = False

    def _deliver(self, task: "asyncio.Task[Optional[bytes]]") -> None:
        if not self._attached or task.cancelled():
            return
        self._attached = False
        self._callback(task.result())


class ThumbnailGenerator:
    """Produce small JPEG previews, consulting and filling a :class:`ThumbnailCache`.

    Every failure degrades to ``None``; nothing raises to the caller. Concurrent
    requests for the same identifier share a single in-flight generation.
    """

    def __init__(
        self,
        cache: ThumbnailCache,
        settings: Optional[ThumbnailSettings] = None,
        *,
        video_capture: type[VideoFrameCapture] = VideoFrameCapture,
    ) -> None:
        """Initialize the generator.

        Args:
            cache: Cache consulted before and filled after generation.
            settings: Thumbnail dimensions, quality and video limits.
            video_capture: Capture implementation used for video files.
        """
        self.cache = cache
        self.settings = settings or ThumbnailSettings()
        self._video_capture = video_capture
        self._inflight: dict[str, "asyncio.Task[Optional[bytes]]"] = {}

    async def generate(self, item: Item) -> Optional[bytes]:
        """Return an encoded thumbnail for ``item`` or None when unavailable."""
        if isinstance(item, ExternalItem):
            return None

        cached = self.cache.lookup(item.id)
        if cached is not None:
            return cached
        if item.kind is MediaKind.AUDIO:
            return None

        task = self._inflight.get(item.id)
        if task is None:
            task = asyncio.ensure_future(self._generate_and_store(item))
            self._inflight[item.id] = task
            task.add_done_callback(lambda _: self._inflight.pop(item.id, None))
        return await asyncio.shield(task)

    def request(self, item: Item, callback: ThumbnailCallback) -> ThumbnailTicket:
        """Schedule generation for ``item`` and deliver the result to ``callback``.

        Must be called from within a running event loop.
        """
        task = asyncio.ensure_future(self.generate(item))
        return ThumbnailTicket(item.id, task, callback)

    async def thumbnail_source(self, item: Item) -> Optional[str]:
        """Return something an image element can display: a remote URL or a data URL."""
        if isinstance(item, ExternalItem):
            return item.thumbnail
        thumbnail = await self.generate(item)
        return to_data_url(thumbnail) if thumbnail is not None else None

    async def _generate_and_store(self, record: FileRecord) -> Optional[bytes]:
        try:
            thumbnail = await self._render(record)
        except Exception as exc:  # generation must never propagate
            LOGGER.warning("Thumbnail generation failed for %s: %s", record.path, exc)
            return None
        if thumbnail is not None:
            self.cache.store(record.id, thumbnail)
        return thumbnail

    async def _render(self, record: FileRecord) -> Optional[bytes]:
        settings = self.settings
        path = Path(record.path)

        if record.kind is MediaKind.IMAGE:
            if record.extension in _UNRENDERABLE_EXTENSIONS:
                LOGGER.debug("No raster thumbnail for vector image %s", path)
                return None
            return await asyncio.to_thread(
                render_image_thumbnail, path, settings.edge, settings.quality
            )

        if record.kind is MediaKind.DOCUMENT:
            return await asyncio.to_thread(
                render_document_thumbnail, path, settings.edge, settings.quality
            )

        if record.kind is MediaKind.VIDEO:
            if record.size > settings.video_max_bytes:
                LOGGER.info("Video too large for a thumbnail: %s", record.name)
                return None
            capture = self._video_capture(
                path,
                edge=settings.edge,
                quality=settings.quality,
                timeout=settings.video_timeout_seconds,
                ffmpeg_binary=settings.ffmpeg_binary,
                ffprobe_binary=settings.ffprobe_binary,
            )
            return await capture.run()

        return None


__all__ = ["ThumbnailGenerator", "ThumbnailTicket", "ThumbnailCallback"]
