"""Raster helpers shared by the thumbnail renderers."""

from __future__ import annotations

import io
from pathlib import Path
from typing import Optional

import pymupdf
from PIL import Image, ImageOps

from mediashelf.library.content import encode_data_url

THUMBNAIL_MIME_TYPE = "image/jpeg"


def fit_within(width: int, height: int, edge: int, *, upscale: bool = False) -> tuple[int, int]:
    """Return dimensions whose longer side equals ``edge``, preserving aspect ratio.

    When ``upscale`` is False, images already smaller than ``edge`` keep their size.
    """
    if width <= 0 or height <= 0:
        raise ValueError("Image dimensions must be positive")
    longer = max(width, height)
    if longer <= edge and not upscale:
        return width, height
    ratio = edge / longer
    return max(1, round(width * ratio)), max(1, round(height * ratio))


def flatten(image: Image.Image) -> Image.Image:
    """Composite ``image`` onto an opaque white background in RGB mode."""
    if image.mode in ("RGBA", "LA") or (image.mode == "P" and "transparency" in image.info):
        rgba = image.convert("RGBA")
        background = Image.new("RGB", rgba.size, (255, 255, 255))
        background.paste(rgba, mask=rgba.getchannel("A"))
        return background
    return image.convert("RGB")


def encode_jpeg(image: Image.Image, quality: int) -> bytes:
    buffer = io.BytesIO()
    flatten(image).save(buffer, format="JPEG", quality=quality)
    return buffer.getvalue()


def to_data_url(thumbnail: bytes) -> str:
    """Return an encoded thumbnail as a displayable data URL."""
    return encode_data_url(thumbnail, THUMBNAIL_MIME_TYPE)


def render_image_thumbnail(path: Path, edge: int, quality: int) -> bytes:
    """Decode an image file, downscale it and return JPEG bytes."""
    with Image.open(path) as source:
        image = ImageOps.exif_transpose(source)
        size = fit_within(image.width, image.height, edge)
        if size != image.size:
            image = image.resize(size, Image.Resampling.LANCZOS)
        return encode_jpeg(image, quality)


def render_document_thumbnail(path: Path, edge: int, quality: int) -> Optional[bytes]:
    """Rasterize the first page of a PDF onto a white canvas and return JPEG bytes."""
    with pymupdf.open(path) as document:
        if document.page_count == 0:
            return None
        page = document.load_page(0)
        scale = edge / max(page.rect.width, page.rect.height)
        pixmap = page.get_pixmap(matrix=pymupdf.Matrix(scale, scale), alpha=False)
        image = Image.frombytes("RGB", (pixmap.width, pixmap.height), pixmap.samples)
    return encode_jpeg(image, quality)


def render_frame_thumbnail(frame: bytes, edge: int, quality: int) -> bytes:
    """Scale a captured video frame so its longer edge equals ``edge``."""
    with Image.open(io.BytesIO(frame)) as source:
        source.load()
        size = fit_within(source.width, source.height, edge, upscale=True)
        image = source.resize(size, Image.Resampling.LANCZOS)
    return encode_jpeg(image, quality)


__all__ = [
    "THUMBNAIL_MIME_TYPE",
    "fit_within",
    "flatten",
    "encode_jpeg",
    "to_data_url",
    "render_image_thumbnail",
    "render_document_thumbnail",
    "render_frame_thumbnail",
]
