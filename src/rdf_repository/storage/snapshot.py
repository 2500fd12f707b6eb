"""
Snapshot enumeration over a QuadIndex.

Enumeration copies the context level before descending, then each subject
level as it is visited, then each predicate level, then each object set. Each
copy is taken under the index lock immediately before that level is traversed.

This is shallow snapshot isolation, not an atomic snapshot of the whole index:
a mutation made after one level was copied but before a sibling subtree is
visited may be seen in one branch of the enumeration and missed in another.
Callers that need a fully consistent view must hold their own lock around the
whole enumeration.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterator

from rdf_repository.statement import Statement, context_from_key

if TYPE_CHECKING:
    from rdf_repository.storage.index import QuadIndex


class SnapshotEnumerator:
    """
    Restartable, finite iterable of the statements in an index.

    Every call to iter() takes a fresh snapshot.

    Usage:
        statements = SnapshotEnumerator(index)
        for statement in statements:
            ...
        for statement in statements:  # new snapshot
            ...
    """

    def __init__(self, index: "QuadIndex"):
        self._index = index

    def __iter__(self) -> Iterator[Statement]:
        snapshot = self._index.snapshot_level
        for c, subjects in snapshot(self._index._data):
            context = context_from_key(c)
            for s, predicates in snapshot(subjects):
                for p, objects in snapshot(predicates):
                    for o in snapshot(objects):
                        yield Statement(s, p, o, context)

    def __repr__(self) -> str:
        return f"<SnapshotEnumerator over {len(self._index)} statements>"
