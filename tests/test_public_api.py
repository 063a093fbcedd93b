"""Contract tests for the contentfs public surface."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

import pytest

import contentfs
from contentfs import (
    ContentFSError,
    ContentStore,
    InMemoryStore,
    LayeredStore,
    LocalDiskStore,
    PathEscapesRootError,
    PathNotFoundError,
    UnsafePathError,
)

if TYPE_CHECKING:
    from pathlib import Path


def test_version_is_semver():
    assert re.fullmatch(r"\d+\.\d+\.\d+", contentfs.__version__)


def test_all_names_importable():
    for name in contentfs.__all__:
        assert hasattr(contentfs, name), name


class TestErrorHierarchy:
    @pytest.mark.parametrize(
        "name",
        [n for n in contentfs.__all__ if n.endswith("Error")],
    )
    def test_every_error_is_a_contentfs_error(self, name: str):
        assert issubclass(getattr(contentfs, name), ContentFSError)

    def test_escape_is_never_not_found(self):
        assert not issubclass(PathEscapesRootError, PathNotFoundError)
        assert issubclass(PathEscapesRootError, UnsafePathError)


class EchoStore:
    """Third-party store that satisfies the contract structurally."""

    scheme = "echo"

    async def close(self) -> None: ...
    async def read(self, path): ...
    async def list_files(self, selection=None): ...
    async def load_xml_files_with_stats(self, previous=None): ...
    async def validate_asset_path(self, path): ...
    async def write(self, path, content, *, previous_metadata=None, force=False): ...
    async def update(self, path, content): ...
    async def delete(self, path): ...
    async def rename(self, old_path, new_path): ...
    async def resolve_relative_path(self, base_provenance, relative_path): ...
    async def to_provenance_uri(self, safe_path): ...
    async def glob(self, pattern, base_path=None): ...
    async def grep(self, pattern, *, base_path=None, include=None, limit=1000): ...


def test_structural_store_satisfies_protocol():
    assert isinstance(EchoStore(), ContentStore)


def test_incomplete_store_rejected():
    class ReadOnlyHalf:
        async def read(self, path): ...

    assert not isinstance(ReadOnlyHalf(), ContentStore)


async def test_disk_under_memory_overlay(content_dir: Path):
    """A preview overlay above real content: reads shadow, writes land on disk."""
    disk = LocalDiskStore(content_dir)
    await disk.write("lesson.olx", "<Lesson>saved</Lesson>")
    preview = InMemoryStore({"lesson.olx": "<Lesson>draft</Lesson>"})

    async with LayeredStore([disk, preview]) as store:
        assert (await store.read("lesson.olx")).content == "<Lesson>saved</Lesson>"
        await store.delete("lesson.olx")
        assert (await store.read("lesson.olx")).content == "<Lesson>draft</Lesson>"
