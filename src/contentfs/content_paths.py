"""Server-side helpers for handlers that front a ``RemoteStore``.

Wire paths carry a namespace prefix (``content/demos/foo.olx``); these
helpers check them and map them back to paths under the content base.
They return a ``PathValidation`` instead of raising so handlers can turn
the message straight into a response.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path, PurePosixPath

from .exceptions import InvalidPathError, PathEscapesRootError
from .file_types import CONTENT_EXTENSIONS, extensions_with_dots, is_content_file
from .paths import FILE_SCHEME, ProvenanceURI
from .utils import collapse_segments, to_posix

ALLOWED_EXTENSIONS: tuple[str, ...] = tuple(extensions_with_dots(CONTENT_EXTENSIONS))


@dataclass
class PathValidation:
    valid: bool
    relative_path: str | None = None
    error: str | None = None


def validate_content_path(lofs_path: str, namespace: str = "content") -> PathValidation:
    """Validate a namespaced wire path and return the path inside the namespace.

    Examples:
        validate_content_path("content/demos/foo.olx") -> valid, "demos/foo.olx"
        validate_content_path("demos/foo.olx") -> invalid (missing prefix)
    """
    if not lofs_path:
        return PathValidation(valid=False, error="Missing path")
    if "\x00" in lofs_path:
        return PathValidation(valid=False, error="Invalid path: null bytes not allowed")

    prefix = f"{namespace.strip('/')}/"
    if not lofs_path.startswith(prefix):
        return PathValidation(
            valid=False,
            error=f"Path must start with '{prefix}' prefix (received: '{lofs_path}')",
        )

    rel = to_posix(lofs_path[len(prefix):])
    if not rel:
        return PathValidation(valid=False, error=f"Path cannot be empty after '{prefix}' prefix")
    if rel.startswith("/"):
        return PathValidation(valid=False, error="Path escapes content directory")

    try:
        normalized = collapse_segments(rel)
    except PathEscapesRootError:
        return PathValidation(valid=False, error="Path escapes content directory")

    if not is_content_file(normalized):
        return PathValidation(
            valid=False,
            error=f"Invalid file type. Allowed extensions: {', '.join(ALLOWED_EXTENSIONS)}",
        )
    return PathValidation(valid=True, relative_path=normalized)


def edit_path_from_provenance(
    provenance: list[str] | None, content_base: Path | str
) -> PathValidation:
    """Path under *content_base* of the first ``file://`` entry in *provenance*.

    Content loaded from any other store cannot be edited in place.
    """
    if not provenance:
        return PathValidation(valid=False, error="No provenance available")

    file_prov = next((p for p in provenance if p.startswith(f"{FILE_SCHEME}://")), None)
    if file_prov is None:
        return PathValidation(
            valid=False,
            error="No file provenance found (content may be from non-file source)",
        )

    try:
        abs_path = PurePosixPath(ProvenanceURI(file_prov).path)
        base = PurePosixPath(Path(content_base).expanduser().resolve().as_posix())
        relative = collapse_segments(abs_path.relative_to(base).as_posix())
    except (ValueError, InvalidPathError, PathEscapesRootError):
        return PathValidation(valid=False, error="File is outside content directory")

    if not relative:
        return PathValidation(valid=False, error="File is outside content directory")
    return PathValidation(valid=True, relative_path=relative)


def allowed_extensions() -> tuple[str, ...]:
    return ALLOWED_EXTENSIONS
