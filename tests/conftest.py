"""Shared fixtures for contentfs tests."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from contentfs.config import CONTENT_DIR_ENV
from contentfs.stores.local import LocalDiskStore

if TYPE_CHECKING:
    from pathlib import Path


@pytest.fixture(autouse=True)
def _no_content_dir_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep a developer's CONTENTFS_CONTENT_DIR out of every allow-list."""
    monkeypatch.delenv(CONTENT_DIR_ENV, raising=False)


@pytest.fixture
def content_dir(tmp_path: Path) -> Path:
    """Empty content root, canonicalized so provenance comparisons hold."""
    d = tmp_path.resolve() / "content"
    d.mkdir()
    return d


@pytest.fixture
def outside_dir(tmp_path: Path) -> Path:
    """A sibling of the content root holding a file no store may reach."""
    d = tmp_path.resolve() / "outside"
    d.mkdir()
    (d / "secret.olx").write_text("<Secret/>")
    return d


@pytest.fixture
def disk(content_dir: Path) -> LocalDiskStore:
    """LocalDiskStore rooted at the temporary content directory."""
    return LocalDiskStore(content_dir)
