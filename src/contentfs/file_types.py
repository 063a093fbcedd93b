"""Extension allow-lists: content, searchable code/text, and media.

Single source of truth for which files take part in listing, scanning,
globbing, grepping and asset validation.  Every store consults these.
"""

from __future__ import annotations

import posixpath
from enum import Enum

# =============================================================================
# Base extension sets
# =============================================================================

OLX_EXTENSIONS = ("olx", "xml")
MARKDOWN_EXTENSIONS = ("md",)
PEG_EXTENSIONS = ("chatpeg", "sortpeg", "idlistpeg", "matchpeg", "textHighlightpeg", "peg")

CODE_EXTENSIONS = (
    "js", "jsx", "ts", "tsx", "css", "html", "py", "json", "yaml", "yml", "pegjs",
)
PLAIN_TEXT_EXTENSIONS = ("txt",)

IMAGE_EXTENSIONS = ("jpg", "jpeg", "png", "gif", "svg", "webp")
VIDEO_EXTENSIONS = ("mp4", "avi", "webm")
DOCUMENT_EXTENSIONS = ("pdf",)

# =============================================================================
# Categories
# =============================================================================

# What can be loaded as authored content
CONTENT_EXTENSIONS = (*OLX_EXTENSIONS, *MARKDOWN_EXTENSIONS, *PEG_EXTENSIONS)

# What grep looks inside: content plus a subset of code/text
SEARCHABLE_EXTENSIONS = (
    *CONTENT_EXTENSIONS, "ts", "tsx", "js", "jsx", "json", "py", "txt",
)

# Assets that may be embedded but never parsed as content
MEDIA_EXTENSIONS = (*IMAGE_EXTENSIONS, *VIDEO_EXTENSIONS, *DOCUMENT_EXTENSIONS)


class ContentType(str, Enum):
    """Kind of file, used to dispatch parsers and editors."""

    OLX = "olx"
    MARKDOWN = "markdown"
    PEG = "peg"
    CODE = "code"
    TEXT = "text"
    IMAGE = "image"
    VIDEO = "video"
    DOCUMENT = "document"
    UNKNOWN = "unknown"


_TYPE_TABLE: tuple[tuple[tuple[str, ...], ContentType], ...] = (
    (OLX_EXTENSIONS, ContentType.OLX),
    (MARKDOWN_EXTENSIONS, ContentType.MARKDOWN),
    (PEG_EXTENSIONS, ContentType.PEG),
    (CODE_EXTENSIONS, ContentType.CODE),
    (PLAIN_TEXT_EXTENSIONS, ContentType.TEXT),
    (IMAGE_EXTENSIONS, ContentType.IMAGE),
    (VIDEO_EXTENSIONS, ContentType.VIDEO),
    (DOCUMENT_EXTENSIONS, ContentType.DOCUMENT),
)


# =============================================================================
# Helpers
# =============================================================================


def get_extension(path: str | None) -> str:
    """Return the lowercase extension without the dot.

    Examples:
        get_extension("foo/bar.OLX") -> "olx"
        get_extension("file.chatpeg") -> "chatpeg"
        get_extension("noextension") -> ""
    """
    if not path:
        return ""
    _, ext = posixpath.splitext(path.replace("\\", "/"))
    return ext[1:].lower() if ext else ""


def _in(ext: str, extensions: tuple[str, ...]) -> bool:
    return ext != "" and any(e.lower() == ext for e in extensions)


def file_has_extension(path: str | None, extensions: tuple[str, ...]) -> bool:
    """Case-insensitive membership test (lists may hold mixed case, e.g. textHighlightpeg)."""
    return _in(get_extension(path), extensions)


def get_content_type(path: str | None) -> ContentType:
    ext = get_extension(path)
    for extensions, content_type in _TYPE_TABLE:
        if _in(ext, extensions):
            return content_type
    return ContentType.UNKNOWN


def is_content_file(path: str | None) -> bool:
    return file_has_extension(path, CONTENT_EXTENSIONS)


def is_searchable_file(path: str | None) -> bool:
    return file_has_extension(path, SEARCHABLE_EXTENSIONS)


def is_media_file(path: str | None) -> bool:
    return file_has_extension(path, MEDIA_EXTENSIONS)


def is_ignored_name(name: str) -> bool:
    """Dotfiles and editor lock/swap artifacts (``foo~``, ``#foo#``)."""
    return name.startswith(".") or "~" in name or "#" in name


def extensions_with_dots(extensions: tuple[str, ...]) -> list[str]:
    return [f".{e}" for e in extensions]
