"""Read access to library file contents."""

from __future__ import annotations

import base64
from pathlib import Path

from .classifier import mime_type_for
from .errors import FileReadError


def read_bytes(path: str | Path) -> bytes:
    """Return the raw bytes of ``path``.

    Raises:
        FileReadError: If the file vanished or cannot be read.
    """
    target = Path(path)
    try:
        return target.read_bytes()
    except FileNotFoundError as exc:
        raise FileReadError(target, "File no longer exists") from exc
    except PermissionError as exc:
        raise FileReadError(target, "Permission denied") from exc
    except OSError as exc:
        raise FileReadError(target, f"Unable to read file ({exc.strerror or exc})") from exc


def encode_data_url(payload: bytes, mime_type: str) -> str:
    """Return ``payload`` as a base64 data URL."""
    encoded = base64.b64encode(payload).decode("ascii")
    return f"data:{mime_type};base64,{encoded}"


def read_data_url(path: str | Path) -> str:
    """Return the file as a directly displayable data URL."""
    return encode_data_url(read_bytes(path), mime_type_for(str(path)))


__all__ = ["read_bytes", "read_data_url", "encode_data_url"]
