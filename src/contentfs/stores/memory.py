"""InMemoryStore — read-only, dictionary-backed virtual files.

Used for inline content, previews and tests, and as an overlay above a
disk store in a ``LayeredStore``.  Nothing here touches a filesystem.
"""

from __future__ import annotations

import posixpath
from typing import TYPE_CHECKING, Any, ClassVar

from ..exceptions import (
    InvalidPathError,
    NullByteError,
    PathEscapesRootError,
    PathNotFoundError,
    ReadOnlyStoreError,
    UnsafePathError,
    UnsupportedProvenanceError,
)
from ..file_types import get_content_type, is_content_file, is_media_file, is_searchable_file
from ..paths import MEMORY_SCHEME, ProvenanceURI, SafeRelativePath, memory_provenance
from ..protocol import DEFAULT_GREP_LIMIT
from ..types import ContentFile, GrepMatch, Metadata, ReadResult, ScanResult, UriNode
from ..utils import (
    collapse_segments,
    compile_glob,
    compile_grep,
    glob_match,
    grep_lines,
    join_path,
    strip_leading,
)

if TYPE_CHECKING:
    from collections.abc import Mapping


class InMemoryStore:
    """Read-only store over a ``{path: content}`` mapping.

    Keys may optionally live under *base_path*; lookups try the bare path
    first and then the base-prefixed one.
    """

    scheme: ClassVar[str] = MEMORY_SCHEME

    def __init__(self, files: Mapping[str, str], base_path: str = "") -> None:
        self.files: dict[str, str] = dict(files)
        self.base_path = strip_leading(base_path).rstrip("/")

    def __repr__(self) -> str:
        return f"InMemoryStore({len(self.files)} files)"

    def _lookup(self, path: str) -> str | None:
        """Return the key holding *path*, or ``None``.

        Raises ``PathEscapesRootError`` when *path* climbs above the root.
        """
        if "\x00" in path:
            raise NullByteError("Invalid path: null bytes not allowed")
        normalized = collapse_segments(strip_leading(path))
        if normalized in self.files:
            return normalized
        if self.base_path:
            with_base = join_path(self.base_path, normalized)
            if with_base in self.files:
                return with_base
        return None

    async def exists(self, path: str) -> bool:
        return self._lookup(path) is not None

    # -- Lifecycle ---------------------------------------------------------

    async def __aenter__(self) -> InMemoryStore:
        return self

    async def __aexit__(self, exc_type: object, exc_val: object, exc_tb: object) -> None:
        await self.close()

    async def close(self) -> None:
        pass

    # -- Read --------------------------------------------------------------

    async def read(self, path: str) -> ReadResult:
        key = self._lookup(path)
        if key is None:
            available = ", ".join(sorted(self.files)) or "(none)"
            raise PathNotFoundError(f"File not found: {path} (available: {available})")
        return ReadResult(content=self.files[key], metadata={}, provenance=memory_provenance(key))

    async def list_files(self, selection: dict[str, Any] | None = None) -> UriNode:
        """Nested tree of the content files held in memory."""
        root = UriNode(uri="", children=[])
        dirs: dict[str, UriNode] = {"": root}

        for key in sorted(self.files):
            if not is_content_file(key):
                continue
            parent = ""
            for segment in key.split("/")[:-1]:
                current = join_path(parent, segment)
                if current not in dirs:
                    node = UriNode(uri=current, children=[])
                    dirs[parent].children.append(node)  # type: ignore[union-attr]
                    dirs[current] = node
                parent = current
            dirs[parent].children.append(UriNode(uri=key))  # type: ignore[union-attr]
        return root

    async def load_xml_files_with_stats(
        self, previous: dict[ProvenanceURI, ContentFile] | None = None
    ) -> ScanResult:
        """Content never changes in place, so seen ids are always unchanged."""
        previous = previous or {}
        result = ScanResult()

        for key, content in self.files.items():
            if not is_content_file(key):
                continue
            uri = memory_provenance(key)
            if uri in previous:
                result.unchanged[uri] = previous[uri]
            else:
                result.added[uri] = ContentFile(
                    id=uri, type=get_content_type(key), metadata={}, content=content
                )

        for uri, record in previous.items():
            if uri not in result.unchanged:
                result.deleted[uri] = record
        return result

    async def validate_asset_path(self, path: str) -> bool:
        if not is_media_file(path):
            return False
        try:
            return await self.exists(path)
        except UnsafePathError:
            return False

    # -- Write (read-only) -------------------------------------------------

    async def write(
        self,
        path: str,
        content: str,
        *,
        previous_metadata: Metadata | None = None,
        force: bool = False,
    ) -> None:
        raise ReadOnlyStoreError("InMemoryStore is read-only")

    async def update(self, path: str, content: str) -> None:
        raise ReadOnlyStoreError("InMemoryStore is read-only")

    async def delete(self, path: str) -> None:
        raise ReadOnlyStoreError("InMemoryStore is read-only")

    async def rename(self, old_path: str, new_path: str) -> None:
        raise ReadOnlyStoreError("InMemoryStore is read-only")

    # -- References --------------------------------------------------------

    async def resolve_relative_path(
        self, base_provenance: str, relative_path: str
    ) -> SafeRelativePath:
        """``memory:///subdir/lesson.olx`` + ``notes.md`` -> ``subdir/notes.md``."""
        if not base_provenance.startswith(f"{MEMORY_SCHEME}://"):
            raise UnsupportedProvenanceError(f"Unsupported provenance format: {base_provenance}")
        if "\x00" in relative_path:
            raise NullByteError("Invalid path: null bytes not allowed")

        base_dir = posixpath.dirname(ProvenanceURI(base_provenance).path.lstrip("/"))
        try:
            resolved = collapse_segments(join_path(base_dir, relative_path))
        except PathEscapesRootError:
            raise UnsupportedProvenanceError(
                f"Reference {relative_path!r} escapes the memory root"
            ) from None
        try:
            return SafeRelativePath(resolved)
        except InvalidPathError:
            raise UnsupportedProvenanceError(
                f"Reference {relative_path!r} does not name a file"
            ) from None

    async def to_provenance_uri(self, safe_path: str) -> ProvenanceURI:
        """Claim only paths this store actually holds."""
        key = self._lookup(safe_path)
        if key is None:
            raise PathNotFoundError(f"File not found in memory store: {safe_path}")
        return memory_provenance(key)

    # -- Search ------------------------------------------------------------

    async def glob(self, pattern: str, base_path: str | None = None) -> list[str]:
        regex = compile_glob(pattern)
        search_base = strip_leading(base_path or "").rstrip("/")
        prefix = f"{search_base}/" if search_base else ""

        matches: list[str] = []
        for key in sorted(self.files):
            if not key.startswith(prefix):
                continue
            if glob_match(regex, key[len(prefix):]):
                matches.append(key)
        return matches

    async def grep(
        self,
        pattern: str,
        *,
        base_path: str | None = None,
        include: str | None = None,
        limit: int = DEFAULT_GREP_LIMIT,
    ) -> list[GrepMatch]:
        regex = compile_grep(pattern)
        if include or base_path:
            keys = await self.glob(include or "**/*", base_path)
        else:
            keys = sorted(self.files)

        matches: list[GrepMatch] = []
        if limit <= 0:
            return matches
        for key in keys:
            if not is_searchable_file(key):
                continue
            matches.extend(grep_lines(regex, key, self.files[key]))
            if len(matches) >= limit:
                return matches[:limit]
        return matches
