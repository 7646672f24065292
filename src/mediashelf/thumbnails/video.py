"""Seek-and-capture video thumbnails driven by ffprobe/ffmpeg.

A capture is a single asynchronous task that moves through an explicit set of
states. The whole task runs under a wall-clock timeout; when it expires the
child processes are killed and the capture ends in ``TIMED_OUT``.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from pathlib import Path
from typing import Optional

from .raster import render_frame_thumbnail

LOGGER = logging.getLogger(__name__)

SEEK_FRACTION = 0.1
MAX_SEEK_SECONDS = 5.0
FALLBACK_SEEK_SECONDS = 1.0


class CaptureState(str, Enum):
    """Lifecycle of a video frame capture."""

    LOADING_METADATA = "loading-metadata"
    SEEKING = "seeking"
    CAPTURING = "capturing"
    DONE = "done"
    FAILED = "failed"
    TIMED_OUT = "timed-out"


TERMINAL_STATES = frozenset({CaptureState.DONE, CaptureState.FAILED, CaptureState.TIMED_OUT})


class CaptureError(RuntimeError):
    """Raised inside a capture when a stage cannot complete."""


def seek_position(duration: Optional[float]) -> float:
    """Return the timestamp to capture: 10% into the video, at most 5s, else 1s."""
    if duration is None or duration <= 0:
        return FALLBACK_SEEK_SECONDS
    return min(duration * SEEK_FRACTION, MAX_SEEK_SECONDS)


class VideoFrameCapture:
    """Capture one frame from a video file and encode it as a thumbnail."""

    def __init__(
        self,
        path: Path,
        *,
        edge: int,
        quality: int,
        timeout: float,
        ffmpeg_binary: str = "ffmpeg",
        ffprobe_binary: str = "ffprobe",
    ) -> None:
        self.path = path
        self.edge = edge
        self.quality = quality
        self.timeout = timeout
        self.ffmpeg_binary = ffmpeg_binary
        self.ffprobe_binary = ffprobe_binary
        self.state = CaptureState.LOADING_METADATA
        self.history: list[CaptureState] = [self.state]
        self.duration: Optional[float] = None
        self.position: Optional[float] = None
        self.error: Optional[str] = None

    async def run(self) -> Optional[bytes]:
        """Run the capture; return JPEG bytes, or None when it failed or timed out."""
        if self.state in TERMINAL_STATES:
            raise RuntimeError("A capture can only run once")
        try:
            return await asyncio.wait_for(self._capture(), timeout=self.timeout)
        except asyncio.TimeoutError:
            self.error = f"no frame within {self.timeout:g}s"
            self._advance(CaptureState.TIMED_OUT)
        except Exception as exc:
            self.error = str(exc) or type(exc).__name__
            self._advance(CaptureState.FAILED)
        LOGGER.info("Video thumbnail for %s %s: %s", self.path, self.state.value, self.error)
        return None

    async def _capture(self) -> bytes:
        self.duration = await self._probe_duration()

        self.position = seek_position(self.duration)
        self._advance(CaptureState.SEEKING)
        frame = await self._grab_frame(self.position)

        self._advance(CaptureState.CAPTURING)
        try:
            thumbnail = await asyncio.to_thread(
                render_frame_thumbnail, frame, self.edge, self.quality
            )
        except OSError as exc:
            raise CaptureError(f"undecodable frame: {exc}") from exc

        self._advance(CaptureState.DONE)
        return thumbnail

    async def _probe_duration(self) -> Optional[float]:
        returncode, stdout, stderr = await self._run(
            self.ffprobe_binary,
            "-v",
            "error",
            "-show_entries",
            "format=duration",
            "-of",
            "default=noprint_wrappers=1:nokey=1",
            str(self.path),
        )
        if returncode != 0:
            raise CaptureError(f"ffprobe failed: {stderr.decode(errors='replace').strip()}")
        try:
            return float(stdout.decode().strip())
        except ValueError:
            return None

    async def _grab_frame(self, position: float) -> bytes:
        returncode, stdout, stderr = await self._run(
            self.ffmpeg_binary,
            "-hide_banner",
            "-nostdin",
            "-loglevel",
            "error",
            "-ss",
            f"{position:.3f}",
            "-i",
            str(self.path),
            "-frames:v",
            "1",
            "-f",
            "image2pipe",
            "-vcodec",
            "png",
            "-",
        )
        if returncode != 0 or not stdout:
            raise CaptureError(f"ffmpeg failed: {stderr.decode(errors='replace').strip()}")
        return stdout

    async def _run(self, *command: str) -> tuple[int, bytes, bytes]:
        """Run ``command`` and return its exit code and output; kill it if cancelled."""
        proc = await asyncio.create_subprocess_exec(
            *command,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        try:
            stdout, stderr = await proc.communicate()
        finally:
            if proc.returncode is None:
                proc.kill()
                await proc.wait()
        return proc.returncode, stdout, stderr

    def _advance(self, state: CaptureState) -> None:
        self.state = state
        self.history.append(state)


__all__ = [
    "CaptureState",
    "CaptureError",
    "VideoFrameCapture",
    "TERMINAL_STATES",
    "seek_position",
]
