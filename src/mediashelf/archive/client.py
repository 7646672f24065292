"""Async client for the Internet Archive search and metadata APIs."""

from __future__ import annotations

import logging
import math
from typing import Any, Mapping, Optional, Sequence

import httpx

from mediashelf.config.models import ArchiveSettings
from mediashelf.library.classifier import MediaKind, kind_from_mediatype, mediatype_for_kind
from mediashelf.state.models import ArchiveFile, ExternalItem

from .errors import ArchiveError
from .models import ArchiveCollectionInfo, SearchPage

LOGGER = logging.getLogger(__name__)

SEARCH_FIELDS = (
    "identifier",
    "title",
    "description",
    "mediatype",
    "creator",
    "date",
    "year",
    "downloads",
)

# Preferred extensions for the primary playable/readable file, best first.
PRIMARY_FILE_EXTENSIONS: dict[MediaKind, tuple[str, ...]] = {
    MediaKind.DOCUMENT: (".pdf",),
    MediaKind.AUDIO: (".mp3", ".ogg", ".flac", ".wav"),
    MediaKind.VIDEO: (".mp4", ".ogv", ".webm"),
    MediaKind.IMAGE: (".jpg", ".jpeg", ".png", ".gif"),
}

POPULAR_COLLECTIONS: tuple[ArchiveCollectionInfo, ...] = (
    ArchiveCollectionInfo(id="opensource_audio", name="Open Source Audio", mediatype="audio"),
    ArchiveCollectionInfo(id="opensource_movies", name="Open Source Movies", mediatype="movies"),
    ArchiveCollectionInfo(id="texts", name="Texts", mediatype="texts"),
    ArchiveCollectionInfo(id="image", name="Images", mediatype="image"),
    ArchiveCollectionInfo(id="librivoxaudio", name="LibriVox", mediatype="audio"),
    ArchiveCollectionInfo(id="prelinger", name="Prelinger Archives", mediatype="movies"),
    ArchiveCollectionInfo(id="gutenberg", name="Project Gutenberg", mediatype="texts"),
)

RETRY_MESSAGE = "Search failed. Please try again."


def _join_creator(value: Any) -> Optional[str]:
    if isinstance(value, list):
        return ", ".join(str(entry) for entry in value)
    return str(value) if value is not None else None


def _first_text(value: Any) -> str:
    if isinstance(value, list):
        value = value[0] if value else ""
    return str(value) if value is not None else ""


def find_primary_file(
    files: Sequence[Mapping[str, Any]], kind: MediaKind
) -> Optional[Mapping[str, Any]]:
    """Pick the file to stream for ``kind``, preferring originals over derivatives."""
    extensions = PRIMARY_FILE_EXTENSIONS.get(kind, PRIMARY_FILE_EXTENSIONS[MediaKind.DOCUMENT])

    def _matches(entry: Mapping[str, Any], extension: str) -> bool:
        name = entry.get("name")
        return isinstance(name, str) and name.lower().endswith(extension)

    for extension in extensions:
        for entry in files:
            if _matches(entry, extension) and entry.get("source") != "derivative":
                return entry
    for extension in extensions:
        for entry in files:
            if _matches(entry, extension):
                return entry
    return None


class ArchiveClient:
    """Query the archive and map its records onto :class:`ExternalItem`.

    The client owns an ``httpx.AsyncClient`` unless one is supplied. Use it as an
    async context manager, or call :meth:`aclose` when done.
    """

    def __init__(
        self,
        settings: Optional[ArchiveSettings] = None,
        *,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.settings = settings or ArchiveSettings()
        self.base_url = self.settings.base_url.rstrip("/")
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.settings.timeout_seconds,
            follow_redirects=True,
        )

    async def __aenter__(self) -> "ArchiveClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http.aclose()

    async def search(
        self,
        query: str,
        *,
        page: int = 1,
        rows: Optional[int] = None,
        media_kind: Optional[MediaKind] = None,
        sort: Optional[str] = None,
    ) -> SearchPage:
        """Run a full-text search and return one page of mapped results.

        Raises:
            ArchiveError: On network, HTTP or payload errors.
        """
        rows = rows or self.settings.rows
        search_query = query
        if media_kind is not None:
            search_query = f"{query} AND mediatype:{mediatype_for_kind(media_kind)}"

        params: list[tuple[str, str]] = [
            ("q", search_query),
            ("output", "json"),
            ("rows", str(rows)),
            ("page", str(page)),
            ("sort[]", sort or self.settings.sort),
        ]
        params.extend(("fl[]", field) for field in SEARCH_FIELDS)

        data = await self._get_json("/advancedsearch.php", params=params)
        response = data.get("response") or {}
        docs = response.get("docs") or []
        total = int(response.get("numFound") or 0)
        try:
            items = [self.map_search_doc(doc) for doc in docs if doc.get("identifier")]
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            LOGGER.warning("Archive search results were malformed: %s", exc)
            raise ArchiveError(RETRY_MESSAGE) from exc
        return SearchPage(
            items=items,
            total=total,
            page=page,
            total_pages=math.ceil(total / rows),
        )

    async def search_by_subject(self, subject: str, **options: Any) -> SearchPage:
        return await self.search(f'subject:"{subject}"', **options)

    async def search_by_collection(self, collection: str, **options: Any) -> SearchPage:
        return await self.search(f"collection:{collection}", **options)

    @staticmethod
    def popular_collections() -> list[ArchiveCollectionInfo]:
        return list(POPULAR_COLLECTIONS)

    async def get_item(self, identifier: str) -> ExternalItem:
        """Fetch full metadata for ``identifier`` including its primary file.

        Raises:
            ArchiveError: On network, HTTP or payload errors, or unknown identifiers.
        """
        data = await self._get_json(f"/metadata/{identifier}")
        if not isinstance(data.get("metadata"), Mapping) or not data["metadata"]:
            raise ArchiveError(f"Archive item {identifier!r} not found.")
        try:
            return self.map_item_details(data, identifier=identifier)
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            LOGGER.warning("Archive metadata for %s was malformed: %s", identifier, exc)
            raise ArchiveError(RETRY_MESSAGE) from exc

    # Mapping -----------------------------------------------------------

    def map_search_doc(self, doc: Mapping[str, Any]) -> ExternalItem:
        identifier = str(doc["identifier"])
        mediatype = doc.get("mediatype") or "texts"
        return ExternalItem(
            id=ExternalItem.external_id(identifier),
            archive_id=identifier,
            name=_first_text(doc.get("title")) or identifier,
            description=_first_text(doc.get("description")),
            kind=kind_from_mediatype(mediatype),
            mediatype=mediatype,
            creator=_join_creator(doc.get("creator")),
            date=_first_text(doc.get("date") or doc.get("year")) or None,
            downloads=int(doc.get("downloads") or 0),
            thumbnail=f"{self.base_url}/services/img/{identifier}",
            url=f"{self.base_url}/details/{identifier}",
        )

    def map_item_details(
        self, data: Mapping[str, Any], *, identifier: Optional[str] = None
    ) -> ExternalItem:
        """Map a metadata payload; ``identifier`` stands in when the payload omits one."""
        metadata = data.get("metadata") or {}
        files = [
            entry
            for entry in data.get("files") or []
            if isinstance(entry, Mapping) and isinstance(entry.get("name"), str) and entry["name"]
        ]
        resolved = metadata.get("identifier") or identifier
        if not resolved:
            raise KeyError("identifier")
        identifier = str(resolved)
        mediatype = metadata.get("mediatype") or "texts"
        kind = kind_from_mediatype(mediatype)
        primary = find_primary_file(files, kind)

        return ExternalItem(
            id=ExternalItem.external_id(identifier),
            archive_id=identifier,
            name=_first_text(metadata.get("title")) or identifier,
            description=_first_text(metadata.get("description")),
            kind=kind,
            mediatype=mediatype,
            creator=_join_creator(metadata.get("creator")),
            date=_first_text(metadata.get("date") or metadata.get("year")) or None,
            thumbnail=f"{self.base_url}/services/img/{identifier}",
            url=f"{self.base_url}/details/{identifier}",
            stream_url=self._download_url(identifier, primary["name"]) if primary else None,
            embed_url=self._embed_url(identifier, kind),
            files=[
                ArchiveFile(
                    name=entry["name"],
                    format=entry.get("format"),
                    size=_parse_size(entry.get("size")),
                    url=self._download_url(identifier, entry["name"]),
                )
                for entry in files
            ],
        )

    # Internal helpers --------------------------------------------------

    def _download_url(self, identifier: str, name: str) -> str:
        return f"{self.base_url}/download/{identifier}/{name}"

    def _embed_url(self, identifier: str, kind: MediaKind) -> Optional[str]:
        if kind is MediaKind.DOCUMENT:
            return f"{self.base_url}/stream/{identifier}/{identifier}_djvu.txt"
        if kind in (MediaKind.AUDIO, MediaKind.VIDEO):
            return f"{self.base_url}/embed/{identifier}"
        return None

    async def _get_json(self, path: str, **kwargs: Any) -> dict[str, Any]:
        try:
            response = await self._http.get(path, **kwargs)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as exc:
            LOGGER.warning("Archive request %s failed: HTTP %s", path, exc.response.status_code)
            raise ArchiveError(RETRY_MESSAGE, status_code=exc.response.status_code) from exc
        except httpx.HTTPError as exc:
            LOGGER.warning("Archive request %s failed: %s", path, exc)
            raise ArchiveError(RETRY_MESSAGE) from exc
        except ValueError as exc:
            LOGGER.warning("Archive response for %s was not JSON: %s", path, exc)
            raise ArchiveError(RETRY_MESSAGE) from exc
        if not isinstance(data, dict):
            raise ArchiveError(RETRY_MESSAGE)
        return data


def _parse_size(value: Any) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


__all__ = [
    "ArchiveClient",
    "POPULAR_COLLECTIONS",
    "PRIMARY_FILE_EXTENSIONS",
    "RETRY_MESSAGE",
    "find_primary_file",
]
