"""Path utilities, glob translation, binary detection."""

from __future__ import annotations

import posixpath
import re
from pathlib import Path

from .exceptions import InvalidPatternError, PathEscapesRootError
from .types import GrepMatch

# Reserved filenames (Windows compatibility)
RESERVED_NAMES = {
    "CON", "PRN", "AUX", "NUL",
    "COM1", "COM2", "COM3", "COM4", "COM5", "COM6", "COM7", "COM8", "COM9",
    "LPT1", "LPT2", "LPT3", "LPT4", "LPT5", "LPT6", "LPT7", "LPT8", "LPT9",
}


# =============================================================================
# Path Utilities
# =============================================================================


def to_posix(path: str) -> str:
    """Treat backslashes as separators so ``..\\..\\x`` cannot slip past checks."""
    return path.replace("\\", "/")


def strip_leading(path: str) -> str:
    """Remove leading ``./`` and ``/`` prefixes.

    Examples:
        strip_leading("./foo.olx") -> "foo.olx"
        strip_leading("/foo.olx") -> "foo.olx"
    """
    path = to_posix(path)
    while path.startswith(("./", "/")):
        path = path[2:] if path.startswith("./") else path[1:]
    return path


def collapse_segments(path: str) -> str:
    """Resolve ``.`` and ``..`` purely on strings, without touching a filesystem.

    Returns the normalized relative path (``""`` for the root).  Raises
    ``PathEscapesRootError`` when ``..`` would climb above the root.

    Examples:
        collapse_segments("a/b/../c.olx") -> "a/c.olx"
        collapse_segments("./a//b.olx") -> "a/b.olx"
        collapse_segments("../x.olx") -> raises
    """
    resolved: list[str] = []
    for seg in to_posix(path).split("/"):
        if seg in ("", "."):
            continue
        if seg == "..":
            if not resolved:
                raise PathEscapesRootError(f"Invalid path: escapes base directory: {path}")
            resolved.pop()
            continue
        resolved.append(seg)
    return "/".join(resolved)


def split_path(path: str) -> tuple[str, str]:
    """Split a relative path into (parent_dir, filename).

    Examples:
        split_path("foo/bar.olx") -> ("foo", "bar.olx")
        split_path("foo.olx") -> ("", "foo.olx")
    """
    parent, name = posixpath.split(to_posix(path).rstrip("/"))
    return parent, name


def join_path(base: str, relative: str) -> str:
    """Join two relative paths, tolerating an empty base."""
    if not base:
        return relative
    if not relative:
        return base
    return f"{base.rstrip('/')}/{relative}"


def validate_path(path: str) -> tuple[bool, str]:
    """Validate a path for security and compatibility issues.

    Returns:
        (is_valid, error_message) - error_message is empty if valid
    """
    if "\x00" in path:
        return False, "Path contains null bytes"

    # Reject ASCII control characters (0x01-0x1f)
    for ch in path:
        code = ord(ch)
        if 0x01 <= code <= 0x1F:
            return False, f"Path contains control character: 0x{code:02x}"

    if len(path) > 4096:
        return False, "Path too long (max 4096 characters)"

    _, name = split_path(path)

    if name and len(name) > 255:
        return False, "Filename too long (max 255 characters)"

    if name:
        name_upper = name.upper()
        base_name = name_upper.split(".")[0] if "." in name_upper else name_upper
        if base_name in RESERVED_NAMES:
            return False, f"Reserved filename: {name}"

    return True, ""


# =============================================================================
# Glob
# =============================================================================


def compile_glob(pattern: str) -> re.Pattern[str]:
    """Translate a glob into an anchored regex over ``/``-separated paths.

    Supports ``**`` (any number of directories), ``*`` and ``?`` (within one
    segment), ``[...]`` / ``[!...]`` classes and ``{a,b}`` alternation.

    Examples:
        compile_glob("**/*.olx").fullmatch("a/b/c.olx") -> match
        compile_glob("*.{md,olx}").fullmatch("x.md") -> match
        compile_glob("*.olx").fullmatch("a/b.olx") -> None
    """
    pattern = to_posix(pattern)
    if pattern.startswith("./"):
        pattern = pattern[2:]

    out: list[str] = []
    depth = 0
    i, n = 0, len(pattern)
    while i < n:
        c = pattern[i]
        if c == "*":
            if pattern.startswith("**", i):
                i += 2
                if i < n and pattern[i] == "/":
                    i += 1
                    out.append("(?:[^/]+/)*")
                else:
                    out.append(".*")
                continue
            out.append("[^/]*")
        elif c == "?":
            out.append("[^/]")
        elif c == "[":
            end = pattern.find("]", i + 1)
            if end == -1:
                out.append(re.escape(c))
            else:
                body = pattern[i + 1 : end].replace("\\", "\\\\")
                if body.startswith("!"):
                    body = "^" + body[1:]
                out.append("[" + body + "]")
                i = end + 1
                continue
        elif c == "{":
            depth += 1
            out.append("(?:")
        elif c == "}" and depth:
            depth -= 1
            out.append(")")
        elif c == "," and depth:
            out.append("|")
        else:
            out.append(re.escape(c))
        i += 1

    if depth:
        raise InvalidPatternError(f"Unbalanced '{{' in glob pattern: {pattern}")
    try:
        return re.compile("".join(out))
    except re.error as e:
        raise InvalidPatternError(f"Invalid glob pattern {pattern!r}: {e}") from None


def glob_match(regex: re.Pattern[str], path: str) -> bool:
    """Match a compiled glob against a relative path; wildcards never match dot segments."""
    if regex.fullmatch(path) is None:
        return False
    return not any(seg.startswith(".") for seg in path.split("/"))


def compile_grep(pattern: str) -> re.Pattern[str]:
    try:
        return re.compile(pattern)
    except re.error as e:
        raise InvalidPatternError(f"Invalid grep pattern {pattern!r}: {e}") from None


def grep_lines(regex: re.Pattern[str], path: str, content: str) -> list[GrepMatch]:
    """Every line of *content* that *regex* matches, 1-indexed and trimmed."""
    return [
        GrepMatch(path=path, line=i + 1, content=line.strip())
        for i, line in enumerate(content.split("\n"))
        if regex.search(line) is not None
    ]


# =============================================================================
# Binary File Detection
# =============================================================================


def is_binary_file(file_path: str | Path) -> bool:
    """Check if a file is binary by looking for null bytes and non-printable chars."""
    path = Path(file_path)
    try:
        with path.open("rb") as f:
            chunk = f.read(4096)
    except OSError:
        return False

    if not chunk:
        return False

    if b"\x00" in chunk:
        return True

    non_printable = sum(1 for byte in chunk if byte < 9 or (13 < byte < 32))
    return (non_printable / len(chunk)) > 0.3
