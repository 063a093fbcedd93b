"""Tests for the GitStore and DatabaseStore placeholders."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from contentfs.exceptions import ContentFSError, StoreNotImplementedError
from contentfs.protocol import ContentStore
from contentfs.stores import DatabaseStore, GitStore

if TYPE_CHECKING:
    from pathlib import Path

OPERATIONS = [
    pytest.param("read", ("a.olx",), id="read"),
    pytest.param("write", ("a.olx", "x"), id="write"),
    pytest.param("update", ("a.olx", "x"), id="update"),
    pytest.param("delete", ("a.olx",), id="delete"),
    pytest.param("rename", ("a.olx", "b.olx"), id="rename"),
    pytest.param("list_files", (), id="list_files"),
    pytest.param("load_xml_files_with_stats", (), id="scan"),
    pytest.param("resolve_relative_path", ("git:///a.olx", "b.olx"), id="resolve"),
    pytest.param("to_provenance_uri", ("a.olx",), id="to_provenance_uri"),
    pytest.param("validate_asset_path", ("a.png",), id="validate_asset_path"),
    pytest.param("glob", ("**/*",), id="glob"),
    pytest.param("grep", ("x",), id="grep"),
]


@pytest.fixture(params=["git", "database"])
def stub(request: pytest.FixtureRequest, tmp_path: Path) -> GitStore | DatabaseStore:
    if request.param == "git":
        return GitStore(tmp_path, ref="main")
    return DatabaseStore(dialect="sqlite")


class TestStubs:
    def test_implements_protocol(self, stub: GitStore | DatabaseStore):
        assert isinstance(stub, ContentStore)

    def test_schemes(self, tmp_path: Path):
        assert GitStore(tmp_path).scheme == "git"
        assert DatabaseStore().scheme == "db"

    @pytest.mark.parametrize(("operation", "args"), OPERATIONS)
    async def test_every_operation_unimplemented(
        self, stub: GitStore | DatabaseStore, operation: str, args: tuple[str, ...]
    ):
        with pytest.raises(StoreNotImplementedError, match=operation):
            await getattr(stub, operation)(*args)

    async def test_error_is_both_kinds(self, stub: GitStore | DatabaseStore):
        with pytest.raises(NotImplementedError):
            await stub.read("a.olx")
        with pytest.raises(ContentFSError):
            await stub.read("a.olx")

    async def test_close_is_noop(self, stub: GitStore | DatabaseStore):
        async with stub:
            pass


class TestGitStore:
    def test_config(self, tmp_path: Path):
        store = GitStore(str(tmp_path))
        assert store.repo_path == tmp_path
        assert store.ref == "HEAD"


class TestDatabaseStore:
    def test_defaults(self):
        store = DatabaseStore()
        assert store.dialect == "postgresql"
        assert store.schema is None

    async def test_error_names_dialect(self):
        with pytest.raises(StoreNotImplementedError, match=r"mssql"):
            await DatabaseStore(dialect="mssql").read("a.olx", session=None)
