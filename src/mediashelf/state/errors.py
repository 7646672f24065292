"""State management errors."""


class StateError(Exception):
    """Base exception for state operations."""


class StorageError(StateError):
    """Raised when the persistent key-value store cannot be read or written."""


class StorageQuotaError(StorageError):
    """Raised when a write would exceed the configured storage quota."""


class CollectionError(StateError):
    """Base exception for collection operations."""


class CollectionNotFoundError(CollectionError):
    """Raised when a collection identifier does not exist."""


class EditSessionError(CollectionError):
    """Raised when the edit-session protocol is violated."""
