"""DatabaseStore — placeholder for content stored in a SQL database."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, ClassVar

from ..exceptions import StoreNotImplementedError
from ..paths import DB_SCHEME
from ..protocol import DEFAULT_GREP_LIMIT

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from ..paths import ProvenanceURI, SafeRelativePath
    from ..types import ContentFile, GrepMatch, Metadata, ReadResult, ScanResult, UriNode


class DatabaseStore:
    """Database-backed store — stateless, sessions provided per-operation.

    Holds only configuration (dialect, schema).  Each operation takes an
    optional ``session``; none of them is implemented yet, so every call
    raises ``StoreNotImplementedError``.
    """

    scheme: ClassVar[str] = DB_SCHEME

    def __init__(self, dialect: str = "postgresql", schema: str | None = None) -> None:
        self.dialect = dialect
        self.schema = schema

    def __repr__(self) -> str:
        return f"DatabaseStore(dialect={self.dialect!r}, schema={self.schema!r})"

    def _unsupported(self, operation: str) -> StoreNotImplementedError:
        return StoreNotImplementedError(
            f"DatabaseStore.{operation} is not implemented ({self.dialect})"
        )

    async def __aenter__(self) -> DatabaseStore:
        return self

    async def __aexit__(self, exc_type: object, exc_val: object, exc_tb: object) -> None:
        await self.close()

    async def close(self) -> None:
        pass

    async def read(self, path: str, *, session: AsyncSession | None = None) -> ReadResult:
        raise self._unsupported("read")

    async def write(
        self,
        path: str,
        content: str,
        *,
        previous_metadata: Metadata | None = None,
        force: bool = False,
        session: AsyncSession | None = None,
    ) -> None:
        raise self._unsupported("write")

    async def update(
        self, path: str, content: str, *, session: AsyncSession | None = None
    ) -> None:
        raise self._unsupported("update")

    async def delete(self, path: str, *, session: AsyncSession | None = None) -> None:
        raise self._unsupported("delete")

    async def rename(
        self, old_path: str, new_path: str, *, session: AsyncSession | None = None
    ) -> None:
        raise self._unsupported("rename")

    async def list_files(
        self,
        selection: dict[str, Any] | None = None,
        *,
        session: AsyncSession | None = None,
    ) -> UriNode:
        raise self._unsupported("list_files")

    async def load_xml_files_with_stats(
        self,
        previous: dict[ProvenanceURI, ContentFile] | None = None,
        *,
        session: AsyncSession | None = None,
    ) -> ScanResult:
        raise self._unsupported("load_xml_files_with_stats")

    async def resolve_relative_path(
        self, base_provenance: str, relative_path: str
    ) -> SafeRelativePath:
        raise self._unsupported("resolve_relative_path")

    async def to_provenance_uri(
        self, safe_path: str, *, session: AsyncSession | None = None
    ) -> ProvenanceURI:
        raise self._unsupported("to_provenance_uri")

    async def validate_asset_path(
        self, path: str, *, session: AsyncSession | None = None
    ) -> bool:
        raise self._unsupported("validate_asset_path")

    async def glob(
        self,
        pattern: str,
        base_path: str | None = None,
        *,
        session: AsyncSession | None = None,
    ) -> list[str]:
        raise self._unsupported("glob")

    async def grep(
        self,
        pattern: str,
        *,
        base_path: str | None = None,
        include: str | None = None,
        limit: int = DEFAULT_GREP_LIMIT,
        session: AsyncSession | None = None,
    ) -> list[GrepMatch]:
        raise self._unsupported("grep")
