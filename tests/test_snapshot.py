"""
Tests for snapshot enumeration, including concurrent mutation.
"""

import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from rdf_repository.statement import Statement
from rdf_repository.storage.index import QuadIndex
from rdf_repository.storage.snapshot import SnapshotEnumerator
from rdf_repository.terms import IRI, Literal

EX = "http://example.org/"
P = IRI(EX + "p")


def make_statement(i: int, graph: int = 0) -> Statement:
    return Statement(IRI(f"{EX}s{i % 10}"), P, Literal(str(i)), IRI(f"{EX}g{graph}"))


@pytest.fixture
def index():
    idx = QuadIndex()
    for i in range(100):
        idx.insert(make_statement(i, i % 3))
    return idx


class TestSnapshotEnumerator:
    def test_restartable(self, index):
        statements = SnapshotEnumerator(index)
        first = list(statements)
        second = list(statements)
        assert len(first) == 100
        assert set(first) == set(second)

    def test_fresh_snapshot_per_iteration(self, index):
        statements = SnapshotEnumerator(index)
        assert len(list(statements)) == 100
        index.insert(make_statement(500))
        assert len(list(statements)) == 101

    def test_mutation_during_iteration(self, index):
        """Mutating the index mid-iteration does not break enumeration."""
        seen = 0
        for statement in SnapshotEnumerator(index):
            index.delete(statement)
            index.insert(make_statement(1000 + seen, 7))
            seen += 1
            if seen > 500:
                break
        assert seen > 0

    def test_context_level_copied_before_descending(self, index):
        iterator = iter(SnapshotEnumerator(index))
        first = next(iterator)
        index.insert(make_statement(1, 99))  # new context after the copy
        rest = list(iterator)
        contexts = {s.context for s in [first] + rest}
        assert IRI(f"{EX}g99") not in contexts

    def test_empty(self):
        assert list(SnapshotEnumerator(QuadIndex())) == []

    def test_repr(self, index):
        assert "100" in repr(SnapshotEnumerator(index))


class TestConcurrentAccess:
    def test_enumerate_while_writing(self, index):
        stop = threading.Event()
        errors = []

        def writer():
            i = 0
            while not stop.is_set():
                statement = make_statement(10000 + i, i % 5)
                index.insert(statement)
                index.delete(statement)
                i += 1

        def reader():
            try:
                for _ in range(50):
                    for statement in SnapshotEnumerator(index):
                        assert isinstance(statement, Statement)
            except Exception as e:  # surfaced through the errors list
                errors.append(e)

        thread = threading.Thread(target=writer)
        thread.start()
        try:
            with ThreadPoolExecutor(max_workers=4) as pool:
                for future in [pool.submit(reader) for _ in range(4)]:
                    future.result()
        finally:
            stop.set()
            thread.join()

        assert errors == []
        assert index.count() == 100
        assert index.recount() == 100

    def test_parallel_inserts_keep_count_exact(self):
        idx = QuadIndex()

        def insert_range(start):
            for i in range(start, start + 250):
                idx.insert(make_statement(i, i % 4))

        with ThreadPoolExecutor(max_workers=4) as pool:
            list(pool.map(insert_range, [0, 250, 500, 750]))

        assert idx.count() == 1000
        assert idx.recount() == 1000
