"""Configuration models describing MediaShelf settings."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class MediaShelfBaseModel(BaseModel):
    """Shared configuration for MediaShelf Pydantic models."""

    model_config = ConfigDict(extra="forbid")


class LibrarySettings(MediaShelfBaseModel):
    """Options governing library scans and browsing.

    Attributes:
        page_size: Number of files shown per page of the filtered view.
        follow_symlinks: Whether symlinked directories are traversed.
        last_path: Library root remembered from the most recent scan.
    """

    page_size: int = Field(default=50, ge=1)
    follow_symlinks: bool = True
    last_path: Optional[str] = None


class ThumbnailSettings(MediaShelfBaseModel):
    """Thumbnail generation settings.

    Attributes:
        edge: Length in pixels of the longer thumbnail edge.
        quality: JPEG quality used when encoding thumbnails.
        video_max_bytes: Videos larger than this are never decoded.
        video_timeout_seconds: Wall-clock ceiling for a single video capture.
        ffmpeg_binary: Executable used to seek and grab video frames.
        ffprobe_binary: Executable used to read video durations.
        persist: Whether thumbnails are written to the persistent store.
    """

    edge: int = Field(default=128, ge=1)
    quality: int = Field(default=70, ge=1, le=95)
    video_max_bytes: int = 50 * 1024 * 1024
    video_timeout_seconds: float = Field(default=5.0, gt=0)
    ffmpeg_binary: str = "ffmpeg"
    ffprobe_binary: str = "ffprobe"
    persist: bool = True


class ArchiveSettings(MediaShelfBaseModel):
    """Remote archive client settings.

    Attributes:
        base_url: Root URL of the archive service.
        rows: Default number of results per search page.
        sort: Sort expression forwarded to the search endpoint.
        timeout_seconds: HTTP timeout applied to each request.
    """

    base_url: str = "https://archive.org"
    rows: int = Field(default=20, ge=1)
    sort: str = "downloads desc"
    timeout_seconds: float = Field(default=15.0, gt=0)


class StorageSettings(MediaShelfBaseModel):
    """Persistent key-value storage settings.

    Attributes:
        directory: Directory that holds persisted entries.
        quota_mb: Optional ceiling on the total stored size.
    """

    directory: str = "~/.mediashelf/store"
    quota_mb: Optional[int] = Field(default=None, ge=0)


class LoggingSettings(MediaShelfBaseModel):
    """Runtime logging configuration.

    Attributes:
        level: Logging verbosity level.
        max_size_mb: Maximum log size before rotation.
        backup_count: Number of historical log files to retain.
    """

    level: str = "WARNING"
    max_size_mb: int = 10
    backup_count: int = 3


class CLIOptions(MediaShelfBaseModel):
    """CLI behavior defaults and presentation preferences.

    Attributes:
        quiet_default: Whether commands suppress non-error output by default.
        summary_default: Whether commands only print summary lines by default.
    """

    quiet_default: bool = False
    summary_default: bool = False


class MediaShelfConfig(MediaShelfBaseModel):
    """Top-level configuration struct for MediaShelf."""

    library: LibrarySettings = Field(default_factory=LibrarySettings)
    thumbnails: ThumbnailSettings = Field(default_factory=ThumbnailSettings)
    archive: ArchiveSettings = Field(default_factory=ArchiveSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    cli: CLIOptions = Field(default_factory=CLIOptions)


__all__ = [
    "MediaShelfBaseModel",
    "LibrarySettings",
    "ThumbnailSettings",
    "ArchiveSettings",
    "StorageSettings",
    "LoggingSettings",
    "CLIOptions",
    "MediaShelfConfig",
]
