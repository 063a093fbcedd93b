"""RemoteStore — the store contract over HTTP JSON endpoints.

Paths are namespaced on the wire: ``read("demos/foo.olx")`` on a store
with namespace ``content`` requests ``content/demos/foo.olx``.  Every path
that comes back must carry the same namespace prefix; anything else means
the wrong store was used or paths were corrupted, and fails loudly.
"""

from __future__ import annotations

import logging
import posixpath
from typing import TYPE_CHECKING, Any, ClassVar

import httpx

from ..exceptions import (
    CapabilityNotSupportedError,
    ContentFSError,
    InvalidPathError,
    NamespaceMismatchError,
    NullByteError,
    PathEscapesRootError,
    PathNotFoundError,
    StorageError,
    UnsupportedProvenanceError,
    VersionConflictError,
)
from ..file_types import is_media_file
from ..paths import REMOTE_SCHEME, ProvenanceURI, SafeRelativePath, remote_provenance
from ..protocol import DEFAULT_GREP_LIMIT
from ..types import GrepMatch, Metadata, ReadResult, UriNode
from ..utils import collapse_segments, join_path, strip_leading

if TYPE_CHECKING:
    from ..types import ContentFile, ScanResult

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


class RemoteStore:
    """Content store backed by a remote deployment's file API.

    One endpoint serves single-file operations (GET read, POST write,
    PUT rename, DELETE delete), one serves listing and glob, one serves
    grep.  Media existence is checked with ``HEAD`` against the asset
    endpoint.

    Pass ``client`` to share an ``httpx.AsyncClient`` (or to inject a mock
    transport); otherwise the store opens its own and closes it in
    ``close()``.
    """

    scheme: ClassVar[str] = REMOTE_SCHEME

    def __init__(
        self,
        namespace: str = "content",
        *,
        base_url: str = "",
        read_endpoint: str = "/api/file",
        list_endpoint: str = "/api/files",
        grep_endpoint: str = "/api/grep",
        asset_endpoint: str | None = None,
        client: httpx.AsyncClient | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        namespace = namespace.strip("/")
        if not namespace:
            raise ValueError("RemoteStore namespace must be non-empty")
        self.namespace = namespace
        self.read_endpoint = read_endpoint.rstrip("/")
        self.list_endpoint = list_endpoint.rstrip("/")
        self.grep_endpoint = grep_endpoint.rstrip("/")
        self.asset_endpoint = (asset_endpoint or f"/{namespace}").rstrip("/")

        self._owns_client = client is None
        self._client = client if client is not None else httpx.AsyncClient(
            base_url=base_url, timeout=timeout
        )

    def __repr__(self) -> str:
        return f"RemoteStore(namespace={self.namespace!r})"

    # =========================================================================
    # Namespace mapping
    # =========================================================================

    def _to_remote(self, path: str) -> str:
        """``demos/foo.olx`` -> ``content/demos/foo.olx``."""
        if "\x00" in path:
            raise NullByteError("Invalid path: null bytes not allowed")
        normalized = collapse_segments(strip_leading(path))
        return join_path(self.namespace, normalized)

    def _from_remote(self, remote_path: str) -> str:
        prefix = f"{self.namespace}/"
        if remote_path.startswith(prefix):
            return remote_path[len(prefix):]
        raise NamespaceMismatchError(
            f"RemoteStore namespace mismatch: expected path starting with {prefix!r} "
            f"but got {remote_path!r}"
        )

    # =========================================================================
    # Transport
    # =========================================================================

    async def _request(
        self,
        operation: str,
        method: str,
        url: str,
        *,
        params: dict[str, str] | None = None,
        json: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Send one request and return the decoded body of a successful reply.

        Maps failures onto the store error contract: conflicts to
        ``VersionConflictError``, 404 or ``notFound`` to
        ``PathNotFoundError``, everything else to ``StorageError``.
        """
        logger.debug("%s %s %s", method, url, params or "")
        try:
            response = await self._client.request(method, url, params=params, json=json)
        except httpx.HTTPError as e:
            raise StorageError(f"Failed to {operation}: {e}") from e

        try:
            body = response.json()
        except ValueError:
            body = None
        if not isinstance(body, dict):
            if response.status_code == 404:
                raise PathNotFoundError(f"Failed to {operation}: not found")
            raise StorageError(
                f"Failed to {operation}: unexpected response (HTTP {response.status_code})"
            )

        if body.get("ok"):
            return body

        error = body.get("error") or f"Failed to {operation}"
        if body.get("conflict"):
            raise VersionConflictError(error, body.get("metadata"))
        if response.status_code == 404 or body.get("notFound"):
            raise PathNotFoundError(error)
        raise StorageError(error)

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def __aenter__(self) -> RemoteStore:
        return self

    async def __aexit__(self, exc_type: object, exc_val: object, exc_tb: object) -> None:
        await self.close()

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    # =========================================================================
    # Read
    # =========================================================================

    async def read(self, path: str) -> ReadResult:
        remote_path = self._to_remote(path)
        body = await self._request(
            "read", "GET", self.read_endpoint, params={"path": remote_path}
        )
        content = body.get("content")
        if not isinstance(content, str):
            raise StorageError(f"Failed to read {path}: response has no content")
        return ReadResult(
            content=content,
            metadata=body.get("metadata") or {},
            provenance=remote_provenance(remote_path),
        )

    async def list_files(self, selection: dict[str, Any] | None = None) -> UriNode:
        params = {k: str(v) for k, v in (selection or {}).items() if v is not None}
        body = await self._request(
            "list files", "GET", self.list_endpoint, params=params or None
        )
        tree = body.get("tree")
        if not isinstance(tree, dict):
            raise StorageError("Failed to list files: response has no tree")
        return UriNode.from_dict(tree)

    async def load_xml_files_with_stats(
        self, previous: dict[ProvenanceURI, ContentFile] | None = None
    ) -> ScanResult:
        raise CapabilityNotSupportedError(
            "RemoteStore does not support incremental file scanning. "
            "Use list_files() + read(), or detect changes server-side."
        )

    async def validate_asset_path(self, path: str) -> bool:
        if not is_media_file(path):
            return False
        try:
            rel = collapse_segments(strip_leading(path))
        except PathEscapesRootError:
            return False
        if "\x00" in rel:
            return False
        try:
            response = await self._client.head(f"{self.asset_endpoint}/{rel}")
        except httpx.HTTPError as e:
            logger.debug("Asset check failed for %s: %s", path, e)
            return False
        return response.is_success

    # =========================================================================
    # Write
    # =========================================================================

    async def write(
        self,
        path: str,
        content: str,
        *,
        previous_metadata: Metadata | None = None,
        force: bool = False,
    ) -> None:
        await self._request(
            "write",
            "POST",
            self.read_endpoint,
            json={
                "path": self._to_remote(path),
                "content": content,
                "previousMetadata": previous_metadata,
                "force": force,
            },
        )

    async def update(self, path: str, content: str) -> None:
        await self.write(path, content)

    async def delete(self, path: str) -> None:
        await self._request(
            "delete", "DELETE", self.read_endpoint, params={"path": self._to_remote(path)}
        )

    async def rename(self, old_path: str, new_path: str) -> None:
        await self._request(
            "rename",
            "PUT",
            self.read_endpoint,
            json={"path": self._to_remote(old_path), "newPath": self._to_remote(new_path)},
        )

    # =========================================================================
    # References
    # =========================================================================

    async def resolve_relative_path(
        self, base_provenance: str, relative_path: str
    ) -> SafeRelativePath:
        """Pure string resolution inside this store's namespace."""
        if not base_provenance.startswith(f"{REMOTE_SCHEME}://"):
            raise UnsupportedProvenanceError(f"Unsupported provenance format: {base_provenance}")
        if "\x00" in relative_path:
            raise NullByteError("Invalid path: null bytes not allowed")

        remote_path = ProvenanceURI(base_provenance).path.lstrip("/")
        try:
            base_rel = self._from_remote(remote_path)
        except NamespaceMismatchError:
            raise UnsupportedProvenanceError(
                f"Provenance outside namespace {self.namespace!r}: {base_provenance}"
            ) from None

        try:
            resolved = collapse_segments(join_path(posixpath.dirname(base_rel), relative_path))
        except PathEscapesRootError:
            raise UnsupportedProvenanceError(
                f"Reference {relative_path!r} escapes namespace {self.namespace!r}"
            ) from None
        try:
            return SafeRelativePath(resolved)
        except InvalidPathError:
            raise UnsupportedProvenanceError(
                f"Reference {relative_path!r} does not name a file"
            ) from None

    async def to_provenance_uri(self, safe_path: str) -> ProvenanceURI:
        result = await self.read(safe_path)
        if result.provenance is None:
            raise StorageError(f"No provenance for {safe_path}")
        return result.provenance

    # =========================================================================
    # Search
    # =========================================================================

    async def glob(self, pattern: str, base_path: str | None = None) -> list[str]:
        params = {
            "pattern": pattern,
            "path": self._to_remote(base_path) if base_path else self.namespace,
        }
        body = await self._request("glob", "GET", self.list_endpoint, params=params)
        return [self._from_remote(p) for p in body.get("files") or []]

    async def grep(
        self,
        pattern: str,
        *,
        base_path: str | None = None,
        include: str | None = None,
        limit: int = DEFAULT_GREP_LIMIT,
    ) -> list[GrepMatch]:
        if limit <= 0:
            return []
        params = {
            "pattern": pattern,
            "path": self._to_remote(base_path) if base_path else self.namespace,
            "limit": str(limit),
        }
        if include:
            params["include"] = include

        body = await self._request("grep", "GET", self.grep_endpoint, params=params)
        try:
            return [
                GrepMatch(
                    path=self._from_remote(m["path"]),
                    line=int(m["line"]),
                    content=str(m.get("content", "")),
                )
                for m in body.get("matches") or []
            ]
        except ContentFSError:
            raise
        except (KeyError, TypeError, ValueError) as e:
            raise StorageError(f"Failed to grep: malformed match in response: {e}") from e
