"""Remote archive errors."""

from __future__ import annotations

from typing import Optional


class ArchiveError(Exception):
    """Raised when the archive cannot be queried or returns unusable data.

    Attributes:
        status_code: HTTP status returned by the archive, when one was received.
    """

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code
