"""ContentStore protocol — the runtime-checkable store contract.

Every store (local disk, in-memory, remote, layered, and the stubs)
implements this protocol directly.  There is no base class: the layered
store only ever talks to its members through these methods.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, ClassVar, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .paths import ProvenanceURI, SafeRelativePath
    from .types import ContentFile, GrepMatch, Metadata, ReadResult, ScanResult, UriNode

DEFAULT_GREP_LIMIT = 1000


@runtime_checkable
class ContentStore(Protocol):
    """Core interface every store must implement.

    Paths passed in are relative to the store root.  Stores validate them
    again even when the caller already branded them.
    """

    scheme: ClassVar[str]
    """Provenance URI scheme this store owns, e.g. ``"file"``."""

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def close(self) -> None:
        """Release resources.  No-op if not needed."""
        ...

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    async def read(self, path: str) -> ReadResult:
        """Return content, metadata and provenance.

        Raises ``PathNotFoundError`` if the file is absent in this store.
        """
        ...

    async def list_files(self, selection: dict[str, Any] | None = None) -> UriNode:
        """Tree of content files; directories carry children, files are leaves."""
        ...

    async def load_xml_files_with_stats(
        self, previous: dict[ProvenanceURI, ContentFile] | None = None
    ) -> ScanResult:
        """Incremental scan relative to *previous* (the last ``ScanResult.current()``)."""
        ...

    async def validate_asset_path(self, path: str) -> bool:
        """True only for an existing file with a media extension."""
        ...

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    async def write(
        self,
        path: str,
        content: str,
        *,
        previous_metadata: Metadata | None = None,
        force: bool = False,
    ) -> None:
        """Create or replace a file.

        Raises ``VersionConflictError`` when *previous_metadata* no longer
        matches the store and *force* is not set.
        """
        ...

    async def update(self, path: str, content: str) -> None:
        """``write`` without conflict detection."""
        ...

    async def delete(self, path: str) -> None: ...

    async def rename(self, old_path: str, new_path: str) -> None: ...

    # ------------------------------------------------------------------
    # References
    # ------------------------------------------------------------------

    async def resolve_relative_path(
        self, base_provenance: str, relative_path: str
    ) -> SafeRelativePath:
        """Resolve *relative_path* against the directory of *base_provenance*.

        Raises ``UnsupportedProvenanceError`` for a scheme this store does
        not own, or when the result would escape the store root.
        """
        ...

    async def to_provenance_uri(self, safe_path: str) -> ProvenanceURI:
        """Provenance for a file this store holds; ``PathNotFoundError`` otherwise."""
        ...

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    async def glob(self, pattern: str, base_path: str | None = None) -> list[str]: ...

    async def grep(
        self,
        pattern: str,
        *,
        base_path: str | None = None,
        include: str | None = None,
        limit: int = DEFAULT_GREP_LIMIT,
    ) -> list[GrepMatch]: ...
