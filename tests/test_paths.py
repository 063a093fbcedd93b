"""Tests for paths.py — LogicalPath, SafeRelativePath, ProvenanceURI, provenance parsing."""

from __future__ import annotations

import pytest

from contentfs.exceptions import InvalidPathError
from contentfs.paths import (
    LogicalPath,
    Provenance,
    ProvenanceURI,
    SafeRelativePath,
    file_provenance,
    format_provenance,
    format_provenance_list,
    memory_provenance,
    parse_provenance,
    parse_provenance_list,
    remote_provenance,
    to_logical_path,
    validate_path_segment,
)

# ---------------------------------------------------------------------------
# Segments
# ---------------------------------------------------------------------------


class TestValidatePathSegment:
    @pytest.mark.parametrize(
        "segment",
        [
            pytest.param("lesson.olx", id="plain"),
            pytest.param("fig_1-final(2).png", id="punctuation"),
            pytest.param("a+b@c=d,e%20", id="more-punctuation"),
            pytest.param("café", id="unicode-letter"),
            pytest.param("2024", id="digits"),
        ],
    )
    def test_valid(self, segment: str):
        assert validate_path_segment(segment) == (True, "")

    @pytest.mark.parametrize(
        ("segment", "expected_msg"),
        [
            pytest.param("", "Empty", id="empty"),
            pytest.param(".hidden", "Hidden", id="hidden"),
            pytest.param("a b", "not allowed", id="space"),
            pytest.param("a#b", "not allowed", id="hash"),
            pytest.param("a?b", "not allowed", id="question"),
            pytest.param("a:b", "not allowed", id="colon"),
            pytest.param("a*b", "not allowed", id="star"),
            pytest.param("a\\b", "not allowed", id="backslash"),
            pytest.param("a\x7fb", "Control", id="delete-char"),
        ],
    )
    def test_invalid(self, segment: str, expected_msg: str):
        ok, msg = validate_path_segment(segment)
        assert ok is False
        assert expected_msg.lower() in msg.lower()


# ---------------------------------------------------------------------------
# LogicalPath
# ---------------------------------------------------------------------------


class TestLogicalPath:
    @pytest.mark.parametrize(
        "raw",
        [
            pytest.param("lesson.olx", id="file"),
            pytest.param("diagrams/fig1.png", id="nested"),
            pytest.param("../diagrams/fig1.png", id="dotdot-survives"),
            pytest.param("./notes.md", id="dot-prefix"),
            pytest.param("a/b/../../c.olx", id="multi-dotdot"),
        ],
    )
    def test_valid(self, raw: str):
        path = LogicalPath(raw)
        assert path == raw
        assert isinstance(path, str)

    @pytest.mark.parametrize(
        ("raw", "expected_msg"),
        [
            pytest.param("", "non-empty", id="empty"),
            pytest.param("a\x00b.olx", "null", id="null-byte"),
            pytest.param("/etc/passwd", "absolute", id="absolute"),
            pytest.param("a\nb.olx", "control", id="newline"),
            pytest.param("a//b.olx", "Empty path segment", id="empty-segment"),
            pytest.param(".git/config", "Hidden", id="hidden-segment"),
            pytest.param("my file.olx", "not allowed", id="space"),
            pytest.param("page.olx#frag", "not allowed", id="fragment"),
            pytest.param("CON.olx", "Reserved", id="reserved-name"),
        ],
    )
    def test_invalid(self, raw: str, expected_msg: str):
        with pytest.raises(InvalidPathError) as exc_info:
            LogicalPath(raw)
        assert expected_msg.lower() in str(exc_info.value).lower()

    def test_non_string_rejected(self):
        with pytest.raises(InvalidPathError):
            LogicalPath(None)  # type: ignore[arg-type]

    def test_invalid_path_error_is_value_error(self):
        with pytest.raises(ValueError):
            LogicalPath("")

    def test_to_logical_path_names_context(self):
        with pytest.raises(InvalidPathError, match=r"src attribute"):
            to_logical_path("bad path.png", context="src attribute")

    def test_to_logical_path_valid(self):
        assert to_logical_path("img/a.png") == "img/a.png"


# ---------------------------------------------------------------------------
# SafeRelativePath
# ---------------------------------------------------------------------------


class TestSafeRelativePath:
    @pytest.mark.parametrize(
        "value",
        [
            pytest.param("lesson.olx", id="top-level"),
            pytest.param("a/b/c.olx", id="nested"),
        ],
    )
    def test_valid(self, value: str):
        assert SafeRelativePath(value) == value

    @pytest.mark.parametrize(
        "value",
        [
            pytest.param("", id="empty"),
            pytest.param(".", id="dot"),
            pytest.param("../x.olx", id="dotdot-leading"),
            pytest.param("a/../b.olx", id="dotdot-inner"),
            pytest.param("/abs.olx", id="absolute"),
            pytest.param("a\\b.olx", id="backslash"),
            pytest.param("a\x00.olx", id="null-byte"),
            pytest.param("a//b.olx", id="double-slash"),
            pytest.param("a/./b.olx", id="dot-segment"),
            pytest.param("a/", id="trailing-slash"),
        ],
    )
    def test_invalid(self, value: str):
        with pytest.raises(InvalidPathError):
            SafeRelativePath(value)

    def test_parent_and_name(self):
        path = SafeRelativePath("a/b/c.olx")
        assert path.parent == "a/b"
        assert path.name == "c.olx"

    def test_top_level_parent_is_empty(self):
        assert SafeRelativePath("c.olx").parent == ""


# ---------------------------------------------------------------------------
# ProvenanceURI
# ---------------------------------------------------------------------------


class TestProvenanceURI:
    def test_parts(self):
        uri = ProvenanceURI("file:///abs/content/a.olx")
        assert uri.scheme == "file"
        assert uri.path == "/abs/content/a.olx"
        assert uri.has_scheme("file")
        assert not uri.has_scheme("memory")

    def test_path_excludes_query(self):
        assert ProvenanceURI("memory:///a.md?line=3").path == "/a.md"

    @pytest.mark.parametrize(
        "value",
        [
            pytest.param("", id="empty"),
            pytest.param("lesson.olx", id="no-scheme"),
            pytest.param("FILE:///x", id="uppercase-scheme"),
        ],
    )
    def test_invalid(self, value: str):
        with pytest.raises(InvalidPathError):
            ProvenanceURI(value)

    def test_file_provenance(self):
        assert file_provenance("/srv/content/a.olx") == "file:///srv/content/a.olx"

    def test_memory_provenance(self):
        assert memory_provenance("subdir/a.md") == "memory:///subdir/a.md"
        assert memory_provenance("/subdir/a.md") == "memory:///subdir/a.md"

    def test_remote_provenance(self):
        assert remote_provenance("content/a.olx") == "remote:///content/a.olx"


# ---------------------------------------------------------------------------
# Structured provenance
# ---------------------------------------------------------------------------


class TestParseProvenance:
    def test_parse_with_params(self):
        parsed = parse_provenance("file:///abs/foo.olx?line=3")
        assert parsed == Provenance(scheme="file", path="/abs/foo.olx", params={"line": "3"})

    def test_parse_without_params(self):
        parsed = parse_provenance("memory:///a/b.md")
        assert parsed.scheme == "memory"
        assert parsed.path == "/a/b.md"
        assert parsed.params == {}

    def test_unknown_scheme(self):
        with pytest.raises(InvalidPathError, match=r"Unknown provenance type"):
            parse_provenance("ftp://host/x.olx")

    def test_duplicated_path_rejected(self):
        with pytest.raises(InvalidPathError, match=r"path duplicated"):
            parse_provenance("file:///a.olx?path=/b.olx")

    def test_not_a_uri(self):
        with pytest.raises(InvalidPathError):
            parse_provenance("just/a/path.olx")

    def test_format(self):
        entry = Provenance(scheme="file", path="/abs/foo.olx", params={"line": "3"})
        assert format_provenance(entry) == "file:///abs/foo.olx?line=3"

    def test_format_passes_strings_through(self):
        assert format_provenance("memory:///a.md") == "memory:///a.md"

    def test_format_unknown_scheme(self):
        with pytest.raises(InvalidPathError):
            format_provenance(Provenance(scheme="ftp", path="/x"))

    def test_format_inverts_parse(self):
        uri = "file:///abs/foo.olx?line=3"
        assert format_provenance(parse_provenance(uri)) == uri

    def test_lists(self):
        uris = ["file:///a.olx", "memory:///b.md"]
        parsed = parse_provenance_list(uris)
        assert [p.scheme for p in parsed] == ["file", "memory"]
        assert format_provenance_list(parsed) == uris
