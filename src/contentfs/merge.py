"""Union-mount folds for listings and scans.

Pure functions over immutable snapshots.  ``higher`` always wins over
``lower``; a layered store folds its members' results from the lowest
priority up.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, TypeVar

from .types import ScanResult, UriNode

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

T = TypeVar("T")

_BUCKETS = ("added", "changed", "unchanged", "deleted")
_PRESENT = ("added", "changed", "unchanged")


def merge_uri_trees(higher: UriNode, lower: UriNode) -> UriNode:
    """Merge two listing trees.

    Directories present in both merge recursively; anything else from
    ``higher`` replaces the same uri in ``lower`` wholesale.
    """
    if higher.children is None and lower.children is None:
        return higher

    by_uri: dict[str, UriNode] = {child.uri: child for child in lower.children or []}
    for child in higher.children or []:
        existing = by_uri.get(child.uri)
        if existing is not None and child.children is not None and existing.children is not None:
            by_uri[child.uri] = merge_uri_trees(child, existing)
        else:
            by_uri[child.uri] = child

    return UriNode(uri=higher.uri, children=sorted(by_uri.values(), key=lambda n: n.uri))


def merge_scan_results(higher: ScanResult, lower: ScanResult) -> ScanResult:
    """Merge two scan results keyed by provenance id.

    An id ``higher`` reports as present replaces whatever ``lower`` says
    about it.  A ``deleted`` report from ``higher`` only stands when
    ``lower`` does not still hold the file.
    """
    merged = ScanResult(
        added=dict(lower.added),
        changed=dict(lower.changed),
        unchanged=dict(lower.unchanged),
        deleted=dict(lower.deleted),
    )
    lower_present = {*lower.added, *lower.changed, *lower.unchanged}

    for bucket in _PRESENT:
        for file_id, record in getattr(higher, bucket).items():
            for other in _BUCKETS:
                getattr(merged, other).pop(file_id, None)
            getattr(merged, bucket)[file_id] = record

    for file_id, record in higher.deleted.items():
        if file_id not in lower_present:
            merged.deleted[file_id] = record

    return merged


def fold_by_priority(results: Sequence[T], merge: Callable[[T, T], T], empty: T) -> T:
    """Fold *results* (index 0 = highest priority) from right to left."""
    if not results:
        return empty
    merged = results[-1]
    for result in reversed(results[:-1]):
        merged = merge(result, merged)
    return merged
