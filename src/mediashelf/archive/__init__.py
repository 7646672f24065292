"""Remote public-domain archive integration."""

from .client import POPULAR_COLLECTIONS, RETRY_MESSAGE, ArchiveClient, find_primary_file
from .errors import ArchiveError
from .models import ArchiveCollectionInfo, SearchPage

__all__ = [
    "ArchiveClient",
    "ArchiveCollectionInfo",
    "ArchiveError",
    "POPULAR_COLLECTIONS",
    "RETRY_MESSAGE",
    "SearchPage",
    "find_primary_file",
]
