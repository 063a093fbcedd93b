"""contentfs: one storage contract over disk, memory, remote and layered content stores.

Sandboxed reads and writes, provenance-anchored reference resolution,
incremental scans, and union-mount shadowing.
"""

__version__ = "0.1.0"

from contentfs.config import CONTENT_DIR_ENV, AccessPolicy
from contentfs.content_paths import PathValidation, edit_path_from_provenance, validate_content_path
from contentfs.exceptions import (
    CapabilityNotSupportedError,
    ConsistencyError,
    ContentFSError,
    InvalidPathError,
    InvalidPatternError,
    NamespaceMismatchError,
    NullByteError,
    PathEscapesRootError,
    PathNotFoundError,
    ReadOnlyStoreError,
    StorageError,
    StoreNotImplementedError,
    SymlinkRejectedError,
    UnsafePathError,
    UnsupportedProvenanceError,
    VersionConflictError,
)
from contentfs.file_types import ContentType
from contentfs.merge import merge_scan_results, merge_uri_trees
from contentfs.paths import (
    LogicalPath,
    Provenance,
    ProvenanceURI,
    SafeRelativePath,
    format_provenance,
    parse_provenance,
    to_logical_path,
)
from contentfs.protocol import ContentStore
from contentfs.stores import (
    DatabaseStore,
    GitStore,
    InMemoryStore,
    LayeredStore,
    LocalDiskStore,
    RemoteStore,
)
from contentfs.types import ContentFile, GrepMatch, Metadata, ReadResult, ScanResult, UriNode

__all__ = [
    "CONTENT_DIR_ENV",
    "AccessPolicy",
    "CapabilityNotSupportedError",
    "ConsistencyError",
    "ContentFSError",
    "ContentFile",
    "ContentStore",
    "ContentType",
    "DatabaseStore",
    "GitStore",
    "GrepMatch",
    "InMemoryStore",
    "InvalidPathError",
    "InvalidPatternError",
    "LayeredStore",
    "LocalDiskStore",
    "LogicalPath",
    "Metadata",
    "NamespaceMismatchError",
    "NullByteError",
    "PathEscapesRootError",
    "PathNotFoundError",
    "PathValidation",
    "Provenance",
    "ProvenanceURI",
    "ReadOnlyStoreError",
    "ReadResult",
    "RemoteStore",
    "SafeRelativePath",
    "ScanResult",
    "StorageError",
    "StoreNotImplementedError",
    "SymlinkRejectedError",
    "UnsafePathError",
    "UnsupportedProvenanceError",
    "UriNode",
    "VersionConflictError",
    "__version__",
    "edit_path_from_provenance",
    "format_provenance",
    "merge_scan_results",
    "merge_uri_trees",
    "parse_provenance",
    "to_logical_path",
    "validate_content_path",
]
