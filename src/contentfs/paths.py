"""Path & provenance types — LogicalPath, SafeRelativePath, ProvenanceURI.

Three kinds of path string flow through the storage layer:

* ``LogicalPath`` — what an author wrote inside content (``src="../fig.png"``).
  Untrusted.  Branding only does structural checks; ``..`` survives because
  resolving it is the store's job.
* ``SafeRelativePath`` — normalized, relative, no ``..``.  A *name* in the
  virtual namespace, produced by ``resolve_relative_path``.  The same name
  can exist in several stores at once.
* ``ProvenanceURI`` — ``<scheme>://<path>``, a *location*: which store holds
  the file and where.  Stores build these; parsers never look at schemes.

Each is a ``str`` subclass whose constructor validates, so converting one
into another is always an explicit call.  Stores still validate raw
strings themselves: a ``str`` can always be passed where a brand is
expected.
"""

from __future__ import annotations

import posixpath
import re
import unicodedata
from dataclasses import dataclass, field
from pathlib import PurePath
from urllib.parse import parse_qsl, urlencode

from .exceptions import InvalidPathError
from .utils import to_posix, validate_path

FILE_SCHEME = "file"
MEMORY_SCHEME = "memory"
REMOTE_SCHEME = "remote"
GIT_SCHEME = "git"
DB_SCHEME = "db"

KNOWN_SCHEMES = frozenset({FILE_SCHEME, MEMORY_SCHEME, REMOTE_SCHEME, GIT_SCHEME, DB_SCHEME})

_URI_RE = re.compile(r"^([a-z][a-z0-9+.\-]*)://(.*)$", re.DOTALL)

# Punctuation allowed inside a segment besides letters and digits
_SEGMENT_PUNCTUATION = frozenset("-_.()%+@=,")


# =============================================================================
# Segment validation
# =============================================================================


def validate_path_segment(segment: str) -> tuple[bool, str]:
    """Validate one ``/``-separated segment of an authored path.

    Returns:
        (is_valid, error_message) - error_message is empty if valid
    """
    if not segment:
        return False, "Empty path segment"
    if segment.startswith("."):
        return False, f"Hidden path segment not allowed: {segment!r}"
    for ch in segment:
        if ch in _SEGMENT_PUNCTUATION:
            continue
        category = unicodedata.category(ch)
        if category[0] in ("L", "N") or category == "Mn":
            continue
        if category[0] == "C":
            return False, f"Control character not allowed: 0x{ord(ch):02x}"
        return False, f"Character {ch!r} not allowed in path segment {segment!r}"
    return True, ""


# =============================================================================
# LogicalPath
# =============================================================================


class LogicalPath(str):
    """An untrusted path as referenced inside authored content."""

    __slots__ = ()

    def __new__(cls, value: str) -> LogicalPath:
        if not isinstance(value, str) or not value:
            raise InvalidPathError("Logical path must be a non-empty string")
        if "\x00" in value:
            raise InvalidPathError("Logical path contains null bytes")
        if value.startswith("/") or PurePath(value).is_absolute():
            raise InvalidPathError(f"Logical path must not be absolute: {value!r}")

        valid, error = validate_path(value)
        if not valid:
            raise InvalidPathError(error)

        for seg in value.split("/"):
            if seg in (".", ".."):
                continue
            valid, error = validate_path_segment(seg)
            if not valid:
                raise InvalidPathError(f"{error} (in {value!r})")
        return super().__new__(cls, value)


def to_logical_path(raw: str, context: str | None = None) -> LogicalPath:
    """Brand *raw* at a trust boundary (request params, content attributes).

    ``context`` names the boundary in the error message.
    """
    try:
        return LogicalPath(raw)
    except InvalidPathError as e:
        where = f" ({context})" if context else ""
        raise InvalidPathError(f"{e}{where}") from None


# =============================================================================
# SafeRelativePath
# =============================================================================


class SafeRelativePath(str):
    """A normalized relative path that cannot escape the root it is relative to."""

    __slots__ = ()

    def __new__(cls, value: str) -> SafeRelativePath:
        if not isinstance(value, str) or not value:
            raise InvalidPathError("Safe relative path must be a non-empty string")
        if "\x00" in value:
            raise InvalidPathError("Safe relative path contains null bytes")
        if "\\" in value:
            raise InvalidPathError(f"Safe relative path must use '/' separators: {value!r}")
        if value.startswith("/"):
            raise InvalidPathError(f"Safe relative path must be relative: {value!r}")
        if value == "." or ".." in value.split("/"):
            raise InvalidPathError(f"Safe relative path must not contain '..': {value!r}")
        if posixpath.normpath(value) != value:
            raise InvalidPathError(f"Safe relative path is not normalized: {value!r}")
        return super().__new__(cls, value)

    @property
    def parent(self) -> str:
        """Directory part, ``""`` for a top-level file."""
        return posixpath.dirname(self)

    @property
    def name(self) -> str:
        return posixpath.basename(self)


# =============================================================================
# ProvenanceURI
# =============================================================================


class ProvenanceURI(str):
    """``<scheme>://<path>`` — which store, which path."""

    __slots__ = ()

    def __new__(cls, value: str) -> ProvenanceURI:
        if not isinstance(value, str) or _URI_RE.match(value) is None:
            raise InvalidPathError(f"Invalid provenance URI: {value!r}")
        return super().__new__(cls, value)

    @property
    def scheme(self) -> str:
        return self.split("://", 1)[0]

    @property
    def path(self) -> str:
        """Everything after ``://`` up to an optional query string."""
        return self.split("://", 1)[1].split("?", 1)[0]

    def has_scheme(self, scheme: str) -> bool:
        return self.scheme == scheme


def file_provenance(absolute_path: str | PurePath) -> ProvenanceURI:
    path = to_posix(str(absolute_path))
    if not path.startswith("/"):
        path = "/" + path
    return ProvenanceURI(f"{FILE_SCHEME}://{path}")


def memory_provenance(path: str) -> ProvenanceURI:
    return ProvenanceURI(f"{MEMORY_SCHEME}:///{path.lstrip('/')}")


def remote_provenance(lofs_path: str) -> ProvenanceURI:
    return ProvenanceURI(f"{REMOTE_SCHEME}:///{lofs_path.lstrip('/')}")


# =============================================================================
# Structured provenance
# =============================================================================


@dataclass(frozen=True)
class Provenance:
    """Parsed form of a provenance URI, for debug display and audit."""

    scheme: str
    path: str
    params: dict[str, str] = field(default_factory=dict)


def parse_provenance(uri: str) -> Provenance:
    """Parse ``file:///abs/foo.olx?line=3`` into its parts.

    Query parameters are extra annotations; a ``path`` parameter would
    shadow the real path and is rejected.
    """
    match = _URI_RE.match(uri)
    if match is None:
        raise InvalidPathError(f"Invalid provenance URI: {uri!r}")
    scheme, suffix = match.group(1), match.group(2)
    if scheme not in KNOWN_SCHEMES:
        raise InvalidPathError(f"Unknown provenance type: {scheme}")

    path_part, _, query = suffix.partition("?")
    if not path_part.startswith("/"):
        path_part = "/" + path_part

    params: dict[str, str] = {}
    for key, value in parse_qsl(query, keep_blank_values=True):
        if key == "path":
            raise InvalidPathError(f"Malformed provenance: path duplicated in query: {uri!r}")
        params[key] = value
    return Provenance(scheme=scheme, path=path_part, params=params)


def format_provenance(entry: Provenance | str) -> ProvenanceURI:
    if isinstance(entry, str):
        return ProvenanceURI(entry)
    if entry.scheme not in KNOWN_SCHEMES:
        raise InvalidPathError(f"Unknown provenance type: {entry.scheme}")
    query = urlencode(entry.params)
    return ProvenanceURI(f"{entry.scheme}://{entry.path}{'?' + query if query else ''}")


def parse_provenance_list(uris: list[str]) -> list[Provenance]:
    return [parse_provenance(u) for u in uris]


def format_provenance_list(entries: list[Provenance | str]) -> list[ProvenanceURI]:
    return [format_provenance(e) for e in entries]
