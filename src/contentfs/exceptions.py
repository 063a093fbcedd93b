"""Custom exception hierarchy for the contentfs storage layer."""

from __future__ import annotations

from typing import Any


class ContentFSError(Exception):
    """Base exception for all contentfs errors."""


class PathNotFoundError(ContentFSError):
    """Raised when a file does not exist in the store being asked."""


class UnsupportedProvenanceError(ContentFSError):
    """Raised when a provenance URI belongs to another store (or escapes this one)."""


class UnsafePathError(ContentFSError):
    """Base for paths rejected as unsafe.

    Never a synonym for "not found": callers and logs must be able to tell
    a missing file from a refused one.
    """


class PathEscapesRootError(UnsafePathError):
    """Raised when a path resolves outside the store root or its allowed directories."""


class NullByteError(UnsafePathError):
    """Raised when a path contains a null byte."""


class SymlinkRejectedError(UnsafePathError):
    """Raised when a write would go through a symlink."""


class VersionConflictError(ContentFSError):
    """Raised when a write's expected metadata no longer matches the store.

    ``current_metadata`` carries what the store holds now (``None`` when the
    file was deleted) so the caller can re-read, merge, or retry with force.
    """

    def __init__(
        self,
        message: str = "File has been modified",
        current_metadata: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.current_metadata = current_metadata


class ReadOnlyStoreError(ContentFSError):
    """Raised on any mutating call against a read-only store."""


class StoreNotImplementedError(ContentFSError, NotImplementedError):
    """Raised by stub stores whose backend does not exist yet."""


class StorageError(ContentFSError):
    """Raised on storage backend failures (disk I/O, HTTP transport, bad responses)."""


class ConsistencyError(ContentFSError):
    """Raised when data integrity is compromised."""


class NamespaceMismatchError(ConsistencyError):
    """Raised when a remote response returns a path outside the expected namespace."""


class CapabilityNotSupportedError(ContentFSError):
    """Raised when a store doesn't support a requested operation."""


class InvalidPathError(ContentFSError, ValueError):
    """Raised when a string cannot be branded as the requested path type."""


class InvalidPatternError(ContentFSError, ValueError):
    """Raised when a glob or grep pattern cannot be compiled."""
