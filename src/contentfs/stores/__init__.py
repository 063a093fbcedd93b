"""Store implementations — local disk, in-memory, remote, layered, and stubs."""

from contentfs.stores.database import DatabaseStore
from contentfs.stores.git import GitStore
from contentfs.stores.layered import LayeredStore
from contentfs.stores.local import LocalDiskStore, resolve_safe_read_path, resolve_safe_write_path
from contentfs.stores.memory import InMemoryStore
from contentfs.stores.remote import RemoteStore

__all__ = [
    "DatabaseStore",
    "GitStore",
    "InMemoryStore",
    "LayeredStore",
    "LocalDiskStore",
    "RemoteStore",
    "resolve_safe_read_path",
    "resolve_safe_write_path",
]
