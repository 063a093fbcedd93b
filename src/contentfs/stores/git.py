"""GitStore — placeholder for content served from a git repository."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any, ClassVar

from ..exceptions import StoreNotImplementedError
from ..paths import GIT_SCHEME
from ..protocol import DEFAULT_GREP_LIMIT

if TYPE_CHECKING:
    from ..paths import ProvenanceURI, SafeRelativePath
    from ..types import ContentFile, GrepMatch, Metadata, ReadResult, ScanResult, UriNode


class GitStore:
    """Reads content at *ref* of the repository at *repo_path*.

    Provenance will look like ``git:///<path>?ref=<sha>``.  Every operation
    raises ``StoreNotImplementedError`` until a backend exists.
    """

    scheme: ClassVar[str] = GIT_SCHEME

    def __init__(self, repo_path: Path | str, ref: str = "HEAD") -> None:
        self.repo_path = Path(repo_path)
        self.ref = ref

    def __repr__(self) -> str:
        return f"GitStore({str(self.repo_path)!r}, ref={self.ref!r})"

    def _unsupported(self, operation: str) -> StoreNotImplementedError:
        return StoreNotImplementedError(f"GitStore.{operation} is not implemented")

    async def __aenter__(self) -> GitStore:
        return self

    async def __aexit__(self, exc_type: object, exc_val: object, exc_tb: object) -> None:
        await self.close()

    async def close(self) -> None:
        pass

    async def read(self, path: str) -> ReadResult:
        raise self._unsupported("read")

    async def write(
        self,
        path: str,
        content: str,
        *,
        previous_metadata: Metadata | None = None,
        force: bool = False,
    ) -> None:
        raise self._unsupported("write")

    async def update(self, path: str, content: str) -> None:
        raise self._unsupported("update")

    async def delete(self, path: str) -> None:
        raise self._unsupported("delete")

    async def rename(self, old_path: str, new_path: str) -> None:
        raise self._unsupported("rename")

    async def list_files(self, selection: dict[str, Any] | None = None) -> UriNode:
        raise self._unsupported("list_files")

    async def load_xml_files_with_stats(
        self, previous: dict[ProvenanceURI, ContentFile] | None = None
    ) -> ScanResult:
        raise self._unsupported("load_xml_files_with_stats")

    async def resolve_relative_path(
        self, base_provenance: str, relative_path: str
    ) -> SafeRelativePath:
        raise self._unsupported("resolve_relative_path")

    async def to_provenance_uri(self, safe_path: str) -> ProvenanceURI:
        raise self._unsupported("to_provenance_uri")

    async def validate_asset_path(self, path: str) -> bool:
        raise self._unsupported("validate_asset_path")

    async def glob(self, pattern: str, base_path: str | None = None) -> list[str]:
        raise self._unsupported("glob")

    async def grep(
        self,
        pattern: str,
        *,
        base_path: str | None = None,
        include: str | None = None,
        limit: int = DEFAULT_GREP_LIMIT,
    ) -> list[GrepMatch]:
        raise self._unsupported("grep")
