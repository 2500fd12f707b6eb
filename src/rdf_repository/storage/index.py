"""
Four-level quad index.

Statements are stored as nested dictionaries keyed by context, then subject,
then predicate, mapping to a set of objects:

    {context: {subject: {predicate: {object, ...}}}}

Invariants:
- Every key chain ends in a non-empty object set. Deleting the last object of
  a chain prunes every level that becomes empty.
- A quad is stored at most once; inserting it again is a no-op.

All structural changes happen under a single re-entrant lock. Readers copy one
level at a time under the same lock (see storage/snapshot.py) and never hold
it while yielding to the caller.
"""

from __future__ import annotations

import threading
from typing import Any, Dict, Iterator, Set

from rdf_repository.statement import (
    ANY,
    ContextKey,
    Pattern,
    Statement,
    context_from_key,
)
from rdf_repository.storage.snapshot import SnapshotEnumerator


PredicateMap = Dict[Any, Set[Any]]
SubjectMap = Dict[Any, PredicateMap]
ContextMap = Dict[ContextKey, SubjectMap]


class QuadIndex:
    """
    Exact-match quad storage with pattern retrieval.

    Example:
        index = QuadIndex()
        index.insert(statement)
        index.contains(statement)   # True
        list(index.match(Pattern(subject=alice)))
    """

    def __init__(self):
        self._data: ContextMap = {}
        self._size = 0
        self._lock = threading.RLock()

    def __len__(self) -> int:
        return self._size

    def __iter__(self) -> Iterator[Statement]:
        return iter(SnapshotEnumerator(self))

    # ========== Mutation ==========

    def insert(self, statement: Statement) -> bool:
        """
        Add a statement.

        Returns:
            True if the statement was added, False if it was already present
        """
        s, p, o, c = statement.to_quad()
        with self._lock:
            objects = (
                self._data.setdefault(c, {})
                .setdefault(s, {})
                .setdefault(p, set())
            )
            if o in objects:
                return False
            objects.add(o)
            self._size += 1
            return True

    def delete(self, statement: Statement) -> bool:
        """
        Remove a statement, pruning levels left empty.

        Returns:
            True if the statement was removed, False if it was absent
        """
        s, p, o, c = statement.to_quad()
        with self._lock:
            subjects = self._data.get(c)
            if subjects is None:
                return False
            predicates = subjects.get(s)
            if predicates is None:
                return False
            objects = predicates.get(p)
            if objects is None or o not in objects:
                return False

            objects.discard(o)
            self._size -= 1
            if not objects:
                del predicates[p]
                if not predicates:
                    del subjects[s]
                    if not subjects:
                        del self._data[c]
            return True

    def clear(self) -> None:
        """Remove all statements."""
        with self._lock:
            self._data.clear()
            self._size = 0

    # ========== Inspection ==========

    def contains(self, statement: Statement) -> bool:
        """Exact existence check (four hash lookups)."""
        s, p, o, c = statement.to_quad()
        with self._lock:
            subjects = self._data.get(c)
            if subjects is None:
                return False
            predicates = subjects.get(s)
            if predicates is None:
                return False
            objects = predicates.get(p)
            return objects is not None and o in objects

    def count(self) -> int:
        """Number of stored quads, from the running counter."""
        return self._size

    def recount(self) -> int:
        """Number of stored quads, by summing the terminal object sets."""
        total = 0
        for _, subjects in self.snapshot_level(self._data):
            for _, predicates in self.snapshot_level(subjects):
                for _, objects in self.snapshot_level(predicates):
                    total += len(objects)
        return total

    def is_empty(self) -> bool:
        return not self._data

    def contexts(self) -> list[ContextKey]:
        """Context keys currently present, including DEFAULT_GRAPH if used."""
        with self._lock:
            return list(self._data)

    def stats(self) -> dict[str, int]:
        """Get structural statistics about the index."""
        with self._lock:
            subjects = 0
            chains = 0
            for predicates_by_subject in self._data.values():
                subjects += len(predicates_by_subject)
                for predicates in predicates_by_subject.values():
                    chains += len(predicates)
            return {
                "contexts": len(self._data),
                "subjects": subjects,
                "predicate_chains": chains,
                "quads": self._size,
            }

    # ========== Snapshot Support ==========

    def snapshot_level(self, level: Any) -> tuple:
        """
        Copy one level of the index under the lock.

        Dict levels are copied as (key, child) pairs, object sets as a tuple
        of objects. Children are not copied here.
        """
        with self._lock:
            if isinstance(level, dict):
                return tuple(level.items())
            return tuple(level)

    # ========== Query ==========

    def match(self, pattern: Pattern) -> Iterator[Statement]:
        """
        Yield every statement matching the pattern.

        Concrete leading components (context, subject, predicate) are resolved
        by direct lookup so whole subtrees are skipped. Wildcard levels are
        traversed from a per-level snapshot. An object-only or predicate-only
        pattern therefore scans every chain above it.
        """
        if pattern.is_wildcard:
            yield from SnapshotEnumerator(self)
            return

        for c, subjects in self._select(self._data, pattern.context):
            context = context_from_key(c)
            for s, predicates in self._select(subjects, pattern.subject):
                for p, objects in self._select(predicates, pattern.predicate):
                    if pattern.object is not None:
                        with self._lock:
                            found = pattern.object in objects
                        if found:
                            yield Statement(s, p, pattern.object, context)
                    else:
                        for o in self.snapshot_level(objects):
                            yield Statement(s, p, o, context)

    def _select(self, level: dict, key: Any) -> tuple:
        """Entries of a level restricted to key (None or ANY means all)."""
        if key is None or key is ANY:
            return self.snapshot_level(level)
        with self._lock:
            child = level.get(key)
        return ((key, child),) if child is not None else ()
