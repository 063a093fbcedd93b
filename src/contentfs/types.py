"""Result types: ReadResult, ContentFile, ScanResult, UriNode, GrepMatch."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .file_types import ContentType
    from .paths import ProvenanceURI

Metadata = dict[str, Any]
"""Store-specific, JSON-serializable metadata (mtime+size, etag, git hash...).

Opaque to callers: hand it back to the same store's ``write`` for conflict
detection, never interpret it.
"""


@dataclass
class ReadResult:
    """Content of a file plus what is needed to write it back and to resolve
    references found inside it."""

    content: str
    metadata: Metadata = field(default_factory=dict)
    provenance: ProvenanceURI | None = None


@dataclass
class ContentFile:
    """One content file found by an incremental scan."""

    id: ProvenanceURI
    type: ContentType
    metadata: Metadata
    content: str


@dataclass
class ScanResult:
    """Four mutually exclusive buckets keyed by provenance URI.

    Together they account for every id of the previous snapshot plus every
    id found by the current pass.
    """

    added: dict[ProvenanceURI, ContentFile] = field(default_factory=dict)
    changed: dict[ProvenanceURI, ContentFile] = field(default_factory=dict)
    unchanged: dict[ProvenanceURI, ContentFile] = field(default_factory=dict)
    deleted: dict[ProvenanceURI, ContentFile] = field(default_factory=dict)

    def current(self) -> dict[ProvenanceURI, ContentFile]:
        """Files present after this scan; pass it as ``previous`` next time."""
        return {**self.unchanged, **self.changed, **self.added}

    def ids(self) -> set[ProvenanceURI]:
        return {*self.added, *self.changed, *self.unchanged, *self.deleted}


@dataclass
class UriNode:
    """Listing tree node.  ``children is None`` marks a file leaf."""

    uri: str
    children: list[UriNode] | None = None

    @property
    def is_directory(self) -> bool:
        return self.children is not None

    def iter_files(self) -> list[str]:
        """Flatten to the uris of every file leaf, depth first."""
        if self.children is None:
            return [self.uri]
        out: list[str] = []
        for child in self.children:
            out.extend(child.iter_files())
        return out

    def to_dict(self) -> dict[str, Any]:
        if self.children is None:
            return {"uri": self.uri}
        return {"uri": self.uri, "children": [c.to_dict() for c in self.children]}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> UriNode:
        children = data.get("children")
        return cls(
            uri=data["uri"],
            children=None if children is None else [cls.from_dict(c) for c in children],
        )


@dataclass(frozen=True)
class GrepMatch:
    """A single grep hit."""

    path: str
    line: int  # 1-indexed
    content: str  # trimmed
