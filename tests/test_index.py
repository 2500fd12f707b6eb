"""
Tests for the four-level quad index.
"""

import random
import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from rdf_repository.statement import ANY, DEFAULT_GRAPH, Pattern, Statement
from rdf_repository.storage.index import QuadIndex
from rdf_repository.terms import IRI, BNode, Literal

EX = "http://example.org/"
A = IRI(EX + "A")
B = IRI(EX + "B")
C = IRI(EX + "C")
KNOWS = IRI(EX + "knows")
NAME = IRI(EX + "name")
G1 = IRI(EX + "graph1")


def assert_no_dangling_levels(index: QuadIndex) -> None:
    """Every key chain must end in a non-empty object set."""
    for subjects in index._data.values():
        assert subjects
        for predicates in subjects.values():
            assert predicates
            for objects in predicates.values():
                assert objects


@pytest.fixture
def index():
    """Index holding the knows example statements."""
    idx = QuadIndex()
    idx.insert(Statement(A, KNOWS, B))
    idx.insert(Statement(A, KNOWS, C))
    idx.insert(Statement(A, KNOWS, B, G1))
    return idx


class TestInsertDelete:
    def test_count(self, index):
        assert index.count() == 3
        assert len(index) == 3

    def test_insert_idempotent(self, index):
        assert index.insert(Statement(A, KNOWS, B)) is False
        assert index.count() == 3
        assert index.contains(Statement(A, KNOWS, B))

    def test_insert_returns_true_when_added(self):
        idx = QuadIndex()
        assert idx.insert(Statement(A, NAME, Literal("A"))) is True

    def test_delete(self, index):
        assert index.delete(Statement(A, KNOWS, B)) is True
        assert index.count() == 2
        assert not index.contains(Statement(A, KNOWS, B))
        assert index.contains(Statement(A, KNOWS, B, G1))

    def test_delete_absent_is_noop(self, index):
        assert index.delete(Statement(B, KNOWS, A)) is False
        assert index.delete(Statement(A, KNOWS, B, IRI(EX + "other"))) is False
        assert index.count() == 3

    def test_delete_twice(self, index):
        index.delete(Statement(A, KNOWS, C))
        index.delete(Statement(A, KNOWS, C))
        assert index.count() == 2

    def test_default_context_does_not_match_named(self, index):
        index.delete(Statement(A, KNOWS, B))
        index.delete(Statement(A, KNOWS, C))
        assert index.contexts() == [G1]

    def test_delete_prunes_empty_levels(self, index):
        index.delete(Statement(A, KNOWS, B, G1))
        assert G1 not in index._data
        index.delete(Statement(A, KNOWS, B))
        assert index._data[DEFAULT_GRAPH][A][KNOWS] == {C}
        index.delete(Statement(A, KNOWS, C))
        assert index._data == {}
        assert index.is_empty()

    def test_clear(self, index):
        index.clear()
        assert index.is_empty()
        assert index.count() == 0
        assert list(index) == []

    def test_cross_variant_objects_are_distinct(self):
        idx = QuadIndex()
        idx.insert(Statement(A, NAME, IRI("x")))
        idx.insert(Statement(A, NAME, Literal("x")))
        idx.insert(Statement(A, NAME, BNode("x")))
        assert idx.count() == 3


class TestInvariants:
    def test_random_operations_keep_invariants(self):
        rng = random.Random(7)
        subjects = [IRI(f"{EX}s{i}") for i in range(4)] + [BNode("b0")]
        predicates = [IRI(f"{EX}p{i}") for i in range(3)]
        objects = [Literal(str(i)) for i in range(3)] + [A]
        contexts = [None, G1, BNode("g")]

        idx = QuadIndex()
        expected = set()
        for _ in range(2000):
            statement = Statement(
                rng.choice(subjects),
                rng.choice(predicates),
                rng.choice(objects),
                rng.choice(contexts),
            )
            if rng.random() < 0.6:
                idx.insert(statement)
                expected.add(statement)
            else:
                idx.delete(statement)
                expected.discard(statement)

            assert_no_dangling_levels(idx)

        assert idx.count() == len(expected)
        assert idx.recount() == len(expected)
        assert set(idx) == expected
        assert all(idx.contains(s) for s in expected)

    def test_count_matches_enumeration(self, index):
        assert index.count() == len(set(index)) == index.recount()

    def test_stats(self, index):
        stats = index.stats()
        assert stats == {
            "contexts": 2,
            "subjects": 2,
            "predicate_chains": 2,
            "quads": 3,
        }


class TestConcurrentChainMutation:
    def test_shared_chain_inserts_and_deletes(self):
        """Threads racing on one (context, subject, predicate) chain."""
        idx = QuadIndex()
        objects = [Literal(str(i)) for i in range(8)]
        start = threading.Barrier(6)

        def churn(seed):
            rng = random.Random(seed)
            start.wait()
            for _ in range(2000):
                statement = Statement(A, KNOWS, rng.choice(objects), G1)
                if rng.random() < 0.5:
                    idx.insert(statement)
                else:
                    idx.delete(statement)

        with ThreadPoolExecutor(max_workers=6) as pool:
            list(pool.map(churn, range(6)))

        assert_no_dangling_levels(idx)
        assert idx.count() == idx.recount()
        assert idx.count() == len(set(idx))

        for o in objects:
            idx.delete(Statement(A, KNOWS, o, G1))
        assert idx.is_empty()
        assert idx._data == {}


class TestMatch:
    def test_example_scenario(self, index):
        result = set(index.match(Pattern(A, KNOWS, None, None)))
        assert result == {Statement(A, KNOWS, B), Statement(A, KNOWS, C)}

    def test_wildcard_returns_everything(self, index):
        assert set(index.match(Pattern())) == set(index)

    def test_concrete_pattern(self, index):
        statement = Statement(A, KNOWS, B, G1)
        assert list(index.match(Pattern.from_statement(statement))) == [statement]
        absent = Statement(B, KNOWS, A)
        assert list(index.match(Pattern.from_statement(absent))) == []

    def test_context_only(self, index):
        assert set(index.match(Pattern(context=G1))) == {Statement(A, KNOWS, B, G1)}

    def test_object_only_scans(self, index):
        result = set(index.match(Pattern(object=B)))
        assert result == {Statement(A, KNOWS, B), Statement(A, KNOWS, B, G1)}

    def test_predicate_only(self, index):
        index.insert(Statement(B, NAME, Literal("B")))
        assert set(index.match(Pattern(predicate=NAME))) == {Statement(B, NAME, Literal("B"))}

    def test_unknown_keys(self, index):
        assert list(index.match(Pattern(subject=C))) == []
        assert list(index.match(Pattern(context=IRI(EX + "nope")))) == []

    @pytest.mark.parametrize("mask", range(16))
    def test_agrees_with_per_statement_filter(self, index, mask):
        """Every combination of concrete and wildcard components."""
        index.insert(Statement(B, NAME, Literal("B"), G1))
        index.insert(Statement(C, KNOWS, A))
        probe = Statement(A, KNOWS, B, G1)
        pattern = Pattern(
            probe.subject if mask & 1 else None,
            probe.predicate if mask & 2 else None,
            probe.object if mask & 4 else None,
            probe.context if mask & 8 else ANY,
        )
        expected = {s for s in index if pattern.matches(s)}
        assert set(index.match(pattern)) == expected
