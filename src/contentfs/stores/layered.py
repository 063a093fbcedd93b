"""LayeredStore — priority-ordered union mount over member stores.

Index 0 is the highest priority and the only write target.  Reads and
reference lookups try members in order; listings, scans and searches ask
every member at once and fold the answers so higher members shadow lower
ones.  A member that raises is treated as "does not apply" and skipped.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any, ClassVar, TypeVar

from ..exceptions import (
    ContentFSError,
    PathNotFoundError,
    UnsafePathError,
    UnsupportedProvenanceError,
)
from ..merge import fold_by_priority, merge_scan_results, merge_uri_trees
from ..protocol import DEFAULT_GREP_LIMIT
from ..types import ScanResult, UriNode
from ..utils import compile_glob, compile_grep

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Sequence

    from ..paths import ProvenanceURI, SafeRelativePath
    from ..protocol import ContentStore
    from ..types import ContentFile, GrepMatch, Metadata, ReadResult

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _log_skip(store: ContentStore, operation: str, error: BaseException) -> None:
    if isinstance(error, ContentFSError):
        logger.debug("%s: skipping %r: %s", operation, store, error)
    else:
        logger.warning("%s: skipping %r after unexpected error: %r", operation, store, error)


class LayeredStore:
    """Compose stores into one with read-side shadowing.

    The member list is fixed at construction.  Holds no files and no
    mutable state of its own.
    """

    scheme: ClassVar[str] = "layered"

    def __init__(self, stores: Sequence[ContentStore]) -> None:
        if not stores:
            raise ValueError("LayeredStore requires at least one store")
        self.stores: tuple[ContentStore, ...] = tuple(stores)
        logger.info("Layered store over %d members: %s", len(self.stores), self.stores)

    def __repr__(self) -> str:
        return f"LayeredStore({list(self.stores)!r})"

    @property
    def primary(self) -> ContentStore:
        """The single write target."""
        return self.stores[0]

    # =========================================================================
    # Dispatch helpers
    # =========================================================================

    async def _first_success(
        self,
        operation: str,
        call: Callable[[ContentStore], Awaitable[T]],
        fallback: Callable[[], ContentFSError],
    ) -> T:
        """Try members in priority order and return the first result.

        If every member fails, re-raise the last error, except that an
        ``UnsafePathError`` from any member wins: a path rejected as unsafe
        must never surface as merely missing.
        """
        last_error: Exception | None = None
        unsafe: UnsafePathError | None = None
        for store in self.stores:
            try:
                return await call(store)
            except Exception as e:
                _log_skip(store, operation, e)
                last_error = e
                if unsafe is None and isinstance(e, UnsafePathError):
                    unsafe = e

        if unsafe is not None:
            raise unsafe
        if last_error is not None:
            raise last_error
        raise fallback()

    async def _gather(
        self, operation: str, call: Callable[[ContentStore], Awaitable[T]]
    ) -> list[T]:
        """Ask every member concurrently; keep successes in priority order."""
        outcomes = await asyncio.gather(
            *(call(store) for store in self.stores), return_exceptions=True
        )
        results: list[T] = []
        for store, outcome in zip(self.stores, outcomes, strict=True):
            if isinstance(outcome, BaseException):
                if not isinstance(outcome, Exception):
                    raise outcome
                _log_skip(store, operation, outcome)
                continue
            results.append(outcome)
        return results

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def __aenter__(self) -> LayeredStore:
        return self

    async def __aexit__(self, exc_type: object, exc_val: object, exc_tb: object) -> None:
        await self.close()

    async def close(self) -> None:
        """Close every member."""
        for store in self.stores:
            await store.close()

    # =========================================================================
    # Read
    # =========================================================================

    async def read(self, path: str) -> ReadResult:
        return await self._first_success(
            "read",
            lambda store: store.read(path),
            lambda: PathNotFoundError(f"File not found in any store: {path}"),
        )

    async def list_files(self, selection: dict[str, Any] | None = None) -> UriNode:
        trees = await self._gather("list_files", lambda store: store.list_files(selection))
        return fold_by_priority(trees, merge_uri_trees, UriNode(uri="", children=[]))

    async def load_xml_files_with_stats(
        self, previous: dict[ProvenanceURI, ContentFile] | None = None
    ) -> ScanResult:
        scans = await self._gather(
            "load_xml_files_with_stats",
            lambda store: store.load_xml_files_with_stats(previous),
        )
        return fold_by_priority(scans, merge_scan_results, ScanResult())

    async def validate_asset_path(self, path: str) -> bool:
        for store in self.stores:
            try:
                if await store.validate_asset_path(path):
                    return True
            except Exception as e:
                _log_skip(store, "validate_asset_path", e)
        return False

    # =========================================================================
    # Write (always the primary store)
    # =========================================================================

    async def write(
        self,
        path: str,
        content: str,
        *,
        previous_metadata: Metadata | None = None,
        force: bool = False,
    ) -> None:
        await self.primary.write(path, content, previous_metadata=previous_metadata, force=force)

    async def update(self, path: str, content: str) -> None:
        await self.primary.update(path, content)

    async def delete(self, path: str) -> None:
        await self.primary.delete(path)

    async def rename(self, old_path: str, new_path: str) -> None:
        await self.primary.rename(old_path, new_path)

    # =========================================================================
    # References
    # =========================================================================

    async def resolve_relative_path(
        self, base_provenance: str, relative_path: str
    ) -> SafeRelativePath:
        """Routed by scheme: only the member that owns *base_provenance* answers."""
        return await self._first_success(
            "resolve_relative_path",
            lambda store: store.resolve_relative_path(base_provenance, relative_path),
            lambda: UnsupportedProvenanceError(
                f"Cannot resolve {relative_path!r} in any store from {base_provenance}"
            ),
        )

    async def to_provenance_uri(self, safe_path: str) -> ProvenanceURI:
        """Attributed to the highest member that actually holds the file."""
        return await self._first_success(
            "to_provenance_uri",
            lambda store: store.to_provenance_uri(safe_path),
            lambda: PathNotFoundError(f"File not found in any store: {safe_path}"),
        )

    # =========================================================================
    # Search
    # =========================================================================

    async def glob(self, pattern: str, base_path: str | None = None) -> list[str]:
        """Union of every member's matches, first occurrence kept."""
        compile_glob(pattern)
        per_store = await self._gather("glob", lambda store: store.glob(pattern, base_path))
        seen: set[str] = set()
        results: list[str] = []
        for matches in per_store:
            for match in matches:
                if match not in seen:
                    seen.add(match)
                    results.append(match)
        return results

    async def grep(
        self,
        pattern: str,
        *,
        base_path: str | None = None,
        include: str | None = None,
        limit: int = DEFAULT_GREP_LIMIT,
    ) -> list[GrepMatch]:
        """Union de-duplicated by ``path:line``, sorted by path then line."""
        compile_grep(pattern)
        per_store = await self._gather(
            "grep",
            lambda store: store.grep(pattern, base_path=base_path, include=include, limit=limit),
        )
        by_key: dict[tuple[str, int], GrepMatch] = {}
        for matches in per_store:
            for match in matches:
                by_key.setdefault((match.path, match.line), match)

        ordered = sorted(by_key.values(), key=lambda m: (m.path, m.line))
        return ordered[: max(limit, 0)]
