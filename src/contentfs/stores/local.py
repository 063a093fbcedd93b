"""LocalDiskStore — sandboxed direct disk access."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import os
import tempfile
from pathlib import Path, PurePosixPath, PureWindowsPath
from typing import TYPE_CHECKING, Any, ClassVar

from ..config import AccessPolicy, is_path_allowed
from ..exceptions import (
    ContentFSError,
    InvalidPathError,
    NullByteError,
    PathEscapesRootError,
    PathNotFoundError,
    StorageError,
    SymlinkRejectedError,
    UnsupportedProvenanceError,
    VersionConflictError,
)
from ..file_types import (
    get_content_type,
    is_content_file,
    is_ignored_name,
    is_media_file,
    is_searchable_file,
)
from ..paths import FILE_SCHEME, ProvenanceURI, SafeRelativePath, file_provenance
from ..protocol import DEFAULT_GREP_LIMIT
from ..types import ContentFile, GrepMatch, Metadata, ReadResult, ScanResult, UriNode
from ..utils import (
    collapse_segments,
    compile_glob,
    compile_grep,
    glob_match,
    grep_lines,
    is_binary_file,
    join_path,
    to_posix,
)

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

logger = logging.getLogger(__name__)


# =============================================================================
# Path Resolution & Security
# =============================================================================


def _join_logical(base_dir: Path, rel_path: str) -> Path:
    """Join *rel_path* onto *base_dir* without following anything on disk.

    Rejects null bytes and any path whose normalized form leaves *base_dir*.
    """
    if not isinstance(rel_path, str):
        raise InvalidPathError(f"Invalid path: expected str, got {type(rel_path).__name__}")
    if "\x00" in rel_path:
        raise NullByteError("Invalid path: null bytes not allowed")
    if not rel_path:
        raise InvalidPathError("Invalid path: empty")

    posix = to_posix(rel_path)
    if PurePosixPath(posix).is_absolute() or PureWindowsPath(rel_path).drive:
        raise PathEscapesRootError(f"Invalid path: escapes base directory: {rel_path}")

    normalized = collapse_segments(posix)
    return base_dir / normalized if normalized else base_dir


def resolve_safe_read_path(
    base_dir: Path, rel_path: str, allowed_dirs: tuple[Path, ...]
) -> Path:
    """Resolve a path for reading.

    Symlinks are allowed as long as their target stays inside one of
    *allowed_dirs*.  A path that does not exist yet is returned as-is; the
    actual I/O call reports it as missing.

    Returns the logical (not canonical) path.
    """
    full = _join_logical(base_dir, rel_path)
    try:
        canonical = full.resolve(strict=True)
    except FileNotFoundError:
        return full
    except OSError as e:
        raise StorageError(f"Cannot resolve path {rel_path}: {e}") from e

    if not is_path_allowed(canonical, allowed_dirs):
        raise PathEscapesRootError(
            f"Invalid path: resolves outside allowed directories: {rel_path}"
        )
    return full


def resolve_safe_write_path(
    base_dir: Path, rel_path: str, allowed_dirs: tuple[Path, ...]
) -> Path:
    """Resolve a path for writing.

    Any symlink along the way is rejected: the canonical path must equal the
    logical one.  For a file that does not exist yet, the nearest existing
    ancestor directory is checked instead (missing directories in between
    are created by the write).
    """
    full = _join_logical(base_dir, rel_path)

    if full.is_symlink():
        raise SymlinkRejectedError(
            f"Invalid path: symlinks not allowed for write operations: {rel_path}"
        )

    if full.exists():
        if full.resolve() != full:
            raise SymlinkRejectedError(
                f"Invalid path: symlinks not allowed for write operations: {rel_path}"
            )
        if not is_path_allowed(full, allowed_dirs):
            raise PathEscapesRootError(
                f"Invalid path: outside allowed write directories: {rel_path}"
            )
        return full

    ancestor = full.parent
    while not ancestor.exists() and not ancestor.is_symlink():
        if ancestor.parent == ancestor:
            break
        ancestor = ancestor.parent

    if ancestor.is_symlink() or ancestor.resolve() != ancestor:
        raise SymlinkRejectedError(
            f"Invalid path: symlinks not allowed for write operations: {rel_path}"
        )
    if not is_path_allowed(ancestor, allowed_dirs):
        raise PathEscapesRootError(
            f"Invalid path: parent directory outside allowed write directories: {rel_path}"
        )
    return full


def _stat_metadata(st: os.stat_result) -> Metadata:
    return {"mtime": st.st_mtime_ns, "size": st.st_size}


def _scan_metadata(st: os.stat_result) -> Metadata:
    return {"mtime": st.st_mtime_ns, "ctime": st.st_ctime_ns, "size": st.st_size}


def _file_changed(previous: Metadata, current: Metadata) -> bool:
    return any(previous.get(key) != current[key] for key in ("size", "mtime", "ctime"))


class LocalDiskStore:
    """Content store over a directory on the host filesystem.

    Reads and writes are checked against separate allow-lists (see
    ``AccessPolicy``).  By default both contain only *base_dir*, extended
    by ``CONTENTFS_CONTENT_DIR`` when that is set.
    """

    scheme: ClassVar[str] = FILE_SCHEME

    def __init__(
        self,
        base_dir: Path | str = "./content",
        *,
        read_dirs: Iterable[Path | str] | None = None,
        write_dirs: Iterable[Path | str] | None = None,
        policy: AccessPolicy | None = None,
    ) -> None:
        self.base_dir = Path(base_dir).expanduser().resolve()

        if not self.base_dir.exists():
            raise FileNotFoundError(f"Content directory does not exist: {self.base_dir}")
        if not self.base_dir.is_dir():
            raise NotADirectoryError(f"Content path is not a directory: {self.base_dir}")

        if policy is None:
            policy = AccessPolicy(
                read_dirs=(self.base_dir, *(read_dirs or ())),
                write_dirs=tuple(write_dirs) if write_dirs is not None else (self.base_dir,),
            ).with_env()
        self.policy = policy

        logger.info(
            "Local store at %s (%d read dirs, %d write dirs)",
            self.base_dir,
            len(policy.read_dirs),
            len(policy.write_dirs),
        )

    def __repr__(self) -> str:
        return f"LocalDiskStore({str(self.base_dir)!r})"

    def _read_path(self, path: str) -> Path:
        return resolve_safe_read_path(self.base_dir, path, self.policy.read_dirs)

    def _write_path(self, path: str) -> Path:
        return resolve_safe_write_path(self.base_dir, path, self.policy.write_dirs)

    def _to_relative(self, physical: Path) -> str:
        return physical.relative_to(self.base_dir).as_posix()

    # =========================================================================
    # Context Manager (no-op for local disk)
    # =========================================================================

    async def __aenter__(self) -> LocalDiskStore:
        return self

    async def __aexit__(self, exc_type: object, exc_val: object, exc_tb: object) -> None:
        await self.close()

    async def close(self) -> None:
        pass

    # =========================================================================
    # Read Operations
    # =========================================================================

    async def read(self, path: str) -> ReadResult:
        """Read a file as UTF-8 with its ``{mtime, size}`` metadata."""
        full = self._read_path(path)

        def _read() -> tuple[str, os.stat_result]:
            return full.read_text("utf-8"), full.stat()

        try:
            content, st = await asyncio.to_thread(_read)
        except (FileNotFoundError, IsADirectoryError, NotADirectoryError):
            raise PathNotFoundError(f"File not found: {path} (resolved to {full})") from None
        except UnicodeDecodeError as e:
            raise StorageError(f"Cannot read file (not UTF-8): {path}") from e
        except OSError as e:
            raise StorageError(f"Cannot read file {path}: {e}") from e

        return ReadResult(
            content=content,
            metadata=_stat_metadata(st),
            provenance=file_provenance(full),
        )

    async def list_files(self, selection: dict[str, Any] | None = None) -> UriNode:
        """Tree of content files under the base directory.

        ``selection`` is accepted for contract compatibility and ignored here.
        """

        def _walk(rel: str) -> UriNode:
            children: list[UriNode] = []
            directory = self.base_dir / rel if rel else self.base_dir
            for entry in sorted(os.scandir(directory), key=lambda e: e.name):
                if is_ignored_name(entry.name):
                    continue
                child_rel = join_path(rel, entry.name)
                if entry.is_dir(follow_symlinks=False):
                    children.append(_walk(child_rel))
                elif entry.is_file(follow_symlinks=False) and is_content_file(entry.name):
                    children.append(UriNode(uri=child_rel))
            return UriNode(uri=rel, children=children)

        try:
            return await asyncio.to_thread(_walk, "")
        except OSError as e:
            raise StorageError(f"Cannot list {self.base_dir}: {e}") from e

    def _iter_files(self, start: Path) -> Iterator[Path]:
        """Regular files below *start*, skipping ignored names; never follows symlinks."""
        for dirpath, dirnames, filenames in os.walk(start, followlinks=False):
            dirnames[:] = sorted(d for d in dirnames if not is_ignored_name(d))
            for name in sorted(filenames):
                if is_ignored_name(name):
                    continue
                candidate = Path(dirpath) / name
                if candidate.is_symlink() or not candidate.is_file():
                    continue
                yield candidate

    async def load_xml_files_with_stats(
        self, previous: dict[ProvenanceURI, ContentFile] | None = None
    ) -> ScanResult:
        """Walk the base directory and classify content files against *previous*.

        A file whose size, mtime and ctime all match its previous record is
        carried over without being re-read.
        """
        previous = previous or {}

        def _scan() -> ScanResult:
            result = ScanResult()
            found: set[ProvenanceURI] = set()

            for full in self._iter_files(self.base_dir):
                if not is_content_file(full.name):
                    continue
                file_id = file_provenance(full)
                try:
                    metadata = _scan_metadata(full.stat())
                except OSError as e:
                    logger.debug("Skipping %s during scan: %s", full, e)
                    continue

                prev = previous.get(file_id)
                if prev is not None and not _file_changed(prev.metadata, metadata):
                    result.unchanged[file_id] = prev
                    found.add(file_id)
                    continue

                try:
                    content = full.read_text("utf-8")
                except (OSError, UnicodeDecodeError) as e:
                    logger.debug("Skipping %s during scan: %s", full, e)
                    continue

                record = ContentFile(
                    id=file_id,
                    type=get_content_type(full.name),
                    metadata=metadata,
                    content=content,
                )
                if prev is not None:
                    result.changed[file_id] = record
                else:
                    result.added[file_id] = record
                found.add(file_id)

            for file_id, record in previous.items():
                if file_id not in found:
                    result.deleted[file_id] = record
            return result

        scan = await asyncio.to_thread(_scan)
        logger.debug(
            "Scanned %s: %d added, %d changed, %d unchanged, %d deleted",
            self.base_dir,
            len(scan.added),
            len(scan.changed),
            len(scan.unchanged),
            len(scan.deleted),
        )
        return scan

    async def validate_asset_path(self, path: str) -> bool:
        if not is_media_file(path):
            return False
        try:
            full = self._read_path(path)
        except ContentFSError:
            return False
        return await asyncio.to_thread(full.is_file)

    # =========================================================================
    # Write Operations
    # =========================================================================

    async def write(
        self,
        path: str,
        content: str,
        *,
        previous_metadata: Metadata | None = None,
        force: bool = False,
    ) -> None:
        """Write content to a file on disk. Atomic via tempfile + replace."""
        full = self._write_path(path)

        def _write() -> None:
            if previous_metadata is not None and not force:
                try:
                    st = full.stat()
                except FileNotFoundError:
                    raise VersionConflictError("File was deleted") from None
                expected = previous_metadata.get("mtime")
                if expected is not None and st.st_mtime_ns != expected:
                    raise VersionConflictError(
                        "File has been modified since last read", _stat_metadata(st)
                    )

            full.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=str(full.parent), prefix=".", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(content)
                Path(tmp_path).replace(full)
            except Exception:
                with contextlib.suppress(OSError):
                    Path(tmp_path).unlink()
                raise

        try:
            await asyncio.to_thread(_write)
        except OSError as e:
            raise StorageError(f"Failed to write {path}: {e}") from e

    async def update(self, path: str, content: str) -> None:
        await self.write(path, content)

    async def delete(self, path: str) -> None:
        full = self._write_path(path)
        try:
            await asyncio.to_thread(full.unlink)
        except FileNotFoundError:
            raise PathNotFoundError(f"File not found: {path}") from None
        except OSError as e:
            raise StorageError(f"Failed to delete {path}: {e}") from e

    async def rename(self, old_path: str, new_path: str) -> None:
        """Move a file, creating destination directories as needed."""
        src = self._write_path(old_path)
        dest = self._write_path(new_path)

        def _move() -> None:
            if not src.is_file():
                raise PathNotFoundError(f"Source not found: {old_path}")
            dest.parent.mkdir(parents=True, exist_ok=True)
            src.replace(dest)

        try:
            await asyncio.to_thread(_move)
        except OSError as e:
            raise StorageError(f"Failed to move {old_path} to {new_path}: {e}") from e

    # =========================================================================
    # References
    # =========================================================================

    async def resolve_relative_path(
        self, base_provenance: str, relative_path: str
    ) -> SafeRelativePath:
        """Resolve a reference found in the file at *base_provenance*.

        Pure path arithmetic: neither file has to exist.
        """
        if not base_provenance.startswith(f"{FILE_SCHEME}://"):
            raise UnsupportedProvenanceError(f"Unsupported provenance format: {base_provenance}")
        if "\x00" in relative_path:
            raise NullByteError("Invalid path: null bytes not allowed")

        try:
            base_file = Path(ProvenanceURI(base_provenance).path)
            base_rel = self._to_relative(base_file)
        except (ValueError, InvalidPathError):
            raise UnsupportedProvenanceError(
                f"Provenance file outside base directory: {base_provenance}"
            ) from None

        parent = PurePosixPath(base_rel).parent.as_posix()
        joined = join_path("" if parent == "." else parent, to_posix(relative_path))
        try:
            resolved = collapse_segments(joined)
        except PathEscapesRootError:
            raise UnsupportedProvenanceError(
                f"Reference {relative_path!r} escapes the root of {self.base_dir}"
            ) from None
        try:
            return SafeRelativePath(resolved)
        except InvalidPathError:
            raise UnsupportedProvenanceError(
                f"Reference {relative_path!r} does not name a file"
            ) from None

    async def to_provenance_uri(self, safe_path: str) -> ProvenanceURI:
        full = self._read_path(safe_path)
        if not await asyncio.to_thread(full.is_file):
            raise PathNotFoundError(f"File not found: {safe_path}")
        return file_provenance(full)

    # =========================================================================
    # Search
    # =========================================================================

    async def glob(self, pattern: str, base_path: str | None = None) -> list[str]:
        """Files matching *pattern* below *base_path*, relative to the base directory."""
        regex = compile_glob(pattern)
        search_dir = self._read_path(base_path or ".")
        base_rel = collapse_segments(to_posix(base_path or ""))

        def _glob() -> list[str]:
            if not search_dir.is_dir():
                return []
            matches: list[str] = []
            for full in self._iter_files(search_dir):
                rel = full.relative_to(search_dir).as_posix()
                if glob_match(regex, rel):
                    matches.append(join_path(base_rel, rel))
            return matches

        return await asyncio.to_thread(_glob)

    async def grep(
        self,
        pattern: str,
        *,
        base_path: str | None = None,
        include: str | None = None,
        limit: int = DEFAULT_GREP_LIMIT,
    ) -> list[GrepMatch]:
        """Regex search over searchable files, first *limit* hits in path order."""
        regex = compile_grep(pattern)
        files = await self.glob(include or "**/*", base_path)
        matches: list[GrepMatch] = []
        if limit <= 0:
            return matches

        for rel in files:
            if not is_searchable_file(rel):
                continue
            try:
                full = self._read_path(rel)
                if await asyncio.to_thread(is_binary_file, full):
                    continue
                content = await asyncio.to_thread(full.read_text, "utf-8")
            except (ContentFSError, OSError, UnicodeDecodeError) as e:
                logger.debug("grep: skipping %s: %s", rel, e)
                continue

            matches.extend(grep_lines(regex, rel, content))
            if len(matches) >= limit:
                return matches[:limit]
        return matches
