"""Tests for config.py — AccessPolicy and the content-dir environment knob."""

from __future__ import annotations

import dataclasses
from typing import TYPE_CHECKING

import pytest

from contentfs.config import CONTENT_DIR_ENV, AccessPolicy, env_content_dir, is_path_allowed

if TYPE_CHECKING:
    from pathlib import Path


class TestIsPathAllowed:
    @pytest.mark.parametrize(
        ("relative", "expected"),
        [
            pytest.param("content", True, id="root-itself"),
            pytest.param("content/a/b.olx", True, id="beneath"),
            pytest.param("content-other/a.olx", False, id="prefix-lookalike"),
            pytest.param("outside/a.olx", False, id="sibling"),
        ],
    )
    def test_membership(self, tmp_path: Path, relative: str, expected: bool):
        allowed = (tmp_path / "content",)
        assert is_path_allowed(tmp_path / relative, allowed) is expected

    def test_empty_allow_list(self, tmp_path: Path):
        assert is_path_allowed(tmp_path, ()) is False


class TestAccessPolicy:
    def test_canonicalizes(self, tmp_path: Path):
        (tmp_path / "real").mkdir()
        policy = AccessPolicy(read_dirs=(tmp_path / "real" / ".." / "real",))
        assert policy.read_dirs == ((tmp_path / "real").resolve(),)

    def test_frozen(self, tmp_path: Path):
        policy = AccessPolicy(read_dirs=(tmp_path,))
        with pytest.raises(dataclasses.FrozenInstanceError):
            policy.read_dirs = ()  # type: ignore[misc]

    def test_for_base_dir(self, content_dir: Path, outside_dir: Path):
        policy = AccessPolicy.for_base_dir(content_dir, extra_read_dirs=[outside_dir])
        assert policy.read_dirs == (content_dir, outside_dir)
        assert policy.write_dirs == (content_dir,)
        assert policy.can_read(outside_dir / "secret.olx")
        assert not policy.can_write(outside_dir / "secret.olx")

    def test_for_base_dir_with_env(
        self, content_dir: Path, outside_dir: Path, monkeypatch: pytest.MonkeyPatch
    ):
        monkeypatch.setenv(CONTENT_DIR_ENV, str(outside_dir))
        policy = AccessPolicy.for_base_dir(content_dir)
        assert policy.can_write(outside_dir / "x.olx")

        ignored = AccessPolicy.for_base_dir(content_dir, include_env=False)
        assert not ignored.can_read(outside_dir / "x.olx")

    def test_with_env_unset_returns_same(self, content_dir: Path):
        policy = AccessPolicy(read_dirs=(content_dir,), write_dirs=(content_dir,))
        assert policy.with_env() is policy

    def test_with_env_extends_both(
        self, content_dir: Path, outside_dir: Path, monkeypatch: pytest.MonkeyPatch
    ):
        monkeypatch.setenv(CONTENT_DIR_ENV, str(outside_dir))
        policy = AccessPolicy(read_dirs=(content_dir,), write_dirs=(content_dir,)).with_env()
        assert policy.read_dirs == (content_dir, outside_dir)
        assert policy.write_dirs == (content_dir, outside_dir)


class TestEnvContentDir:
    def test_unset(self):
        assert env_content_dir() is None

    @pytest.mark.parametrize("value", [pytest.param("", id="empty"), pytest.param("   ", id="blank")])
    def test_blank(self, monkeypatch: pytest.MonkeyPatch, value: str):
        monkeypatch.setenv(CONTENT_DIR_ENV, value)
        assert env_content_dir() is None

    def test_set(self, monkeypatch: pytest.MonkeyPatch, outside_dir: Path):
        monkeypatch.setenv(CONTENT_DIR_ENV, f"  {outside_dir}  ")
        assert env_content_dir() == outside_dir
