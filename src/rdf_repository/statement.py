"""
Statements and query patterns.

A statement is a (subject, predicate, object, context) quad built from terms.
An absent context places the statement in the unnamed default graph, which the
storage layer keys by the DEFAULT_GRAPH sentinel.
"""

from dataclasses import dataclass
from typing import Any, Optional, Sequence, Union

from rdf_repository.errors import InvalidPatternError, MalformedStatementError
from rdf_repository.terms import (
    IRI,
    RESOURCE_TYPES,
    TERM_TYPES,
    Resource,
    Term,
)


class _DefaultGraph:
    """Sentinel key for the unnamed default graph."""
    __slots__ = ()
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "DEFAULT_GRAPH"

    def __reduce__(self):
        return (_DefaultGraph, ())


class _Any:
    """Wildcard sentinel for pattern components."""
    __slots__ = ()
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "ANY"


DEFAULT_GRAPH = _DefaultGraph()
ANY = _Any()

ContextKey = Union[Resource, _DefaultGraph]

# Sort key used for the default graph; sorts before every real term
_DEFAULT_GRAPH_SORT_KEY = (-1, "", "", "")


def context_key(context: Optional[Resource]) -> ContextKey:
    """Map a statement context to its storage key."""
    return DEFAULT_GRAPH if context is None else context


def context_from_key(key: ContextKey) -> Optional[Resource]:
    """Map a storage key back to a statement context."""
    return None if key is DEFAULT_GRAPH else key


def _kind_names(types: tuple) -> str:
    return " or ".join(t.__name__ for t in types)


@dataclass(frozen=True, slots=True)
class Statement:
    """
    An RDF statement (quad).

    Attributes:
        subject: IRI or BNode
        predicate: IRI
        object: IRI, BNode or Literal
        context: IRI, BNode, or None for the default graph

    Raises:
        MalformedStatementError: If a component is missing or ill-typed
    """
    subject: Resource
    predicate: IRI
    object: Term
    context: Optional[Resource] = None

    def __post_init__(self):
        if self.context is DEFAULT_GRAPH:
            object.__setattr__(self, "context", None)
        for name, value, allowed in (
            ("subject", self.subject, RESOURCE_TYPES),
            ("predicate", self.predicate, (IRI,)),
            ("object", self.object, TERM_TYPES),
        ):
            if value is None:
                raise MalformedStatementError(f"Statement {name} is missing")
            if not isinstance(value, allowed):
                raise MalformedStatementError(
                    f"Statement {name} must be {_kind_names(allowed)}, "
                    f"got {type(value).__name__}"
                )
        if self.context is not None and not isinstance(self.context, RESOURCE_TYPES):
            raise MalformedStatementError(
                f"Statement context must be {_kind_names(RESOURCE_TYPES)} or None, "
                f"got {type(self.context).__name__}"
            )

    @classmethod
    def from_tuple(cls, values: Sequence[Any]) -> "Statement":
        """Create a statement from a (s, p, o) triple or (s, p, o, c) quad."""
        if isinstance(values, Statement):
            return values
        if not isinstance(values, (tuple, list)) or len(values) not in (3, 4):
            raise MalformedStatementError(
                f"Expected a Statement or a 3- or 4-tuple, got {values!r}"
            )
        return cls(*values)

    @property
    def has_context(self) -> bool:
        return self.context is not None

    def to_triple(self) -> tuple:
        return (self.subject, self.predicate, self.object)

    def to_quad(self) -> tuple:
        """Return (s, p, o, context key), with DEFAULT_GRAPH for no context."""
        return (self.subject, self.predicate, self.object, context_key(self.context))

    def sort_key(self) -> tuple:
        """Total order over subject, predicate, object, then context."""
        context = (
            self.context.sort_key() if self.context is not None
            else _DEFAULT_GRAPH_SORT_KEY
        )
        return (
            self.subject.sort_key(),
            self.predicate.sort_key(),
            self.object.sort_key(),
            context,
        )

    def to_nquads(self) -> str:
        parts = [term.to_ntriples() for term in self.to_triple()]
        if self.context is not None:
            parts.append(self.context.to_ntriples())
        return " ".join(parts) + " ."


@dataclass(frozen=True, slots=True)
class Pattern:
    """
    A statement template for retrieval.

    None in subject, predicate or object matches anything. The context
    component uses ANY as its wildcard, because None selects the default
    graph (DEFAULT_GRAPH is accepted too).

    Raises:
        InvalidPatternError: If a concrete component is ill-typed
    """
    subject: Optional[Resource] = None
    predicate: Optional[IRI] = None
    object: Optional[Term] = None
    context: Any = ANY

    def __post_init__(self):
        for name, value, allowed in (
            ("subject", self.subject, RESOURCE_TYPES),
            ("predicate", self.predicate, (IRI,)),
            ("object", self.object, TERM_TYPES),
        ):
            if value is ANY:
                object.__setattr__(self, name, None)
            elif value is not None and not isinstance(value, allowed):
                raise InvalidPatternError(
                    f"Pattern {name} must be {_kind_names(allowed)}, "
                    f"got {type(value).__name__}"
                )
        context = self.context
        if context is None:
            object.__setattr__(self, "context", DEFAULT_GRAPH)
        elif context is not ANY and context is not DEFAULT_GRAPH and not isinstance(
            context, RESOURCE_TYPES
        ):
            raise InvalidPatternError(
                f"Pattern context must be {_kind_names(RESOURCE_TYPES)}, None or ANY, "
                f"got {type(context).__name__}"
            )

    @classmethod
    def from_statement(cls, statement: Statement) -> "Pattern":
        """Fully concrete pattern matching exactly one statement."""
        return cls(
            statement.subject,
            statement.predicate,
            statement.object,
            context_key(statement.context),
        )

    @property
    def is_wildcard(self) -> bool:
        return (
            self.subject is None
            and self.predicate is None
            and self.object is None
            and self.context is ANY
        )

    @property
    def is_concrete(self) -> bool:
        return (
            self.subject is not None
            and self.predicate is not None
            and self.object is not None
            and self.context is not ANY
        )

    def matches(self, statement: Statement) -> bool:
        """Check a single statement against this pattern."""
        if self.subject is not None and statement.subject != self.subject:
            return False
        if self.predicate is not None and statement.predicate != self.predicate:
            return False
        if self.object is not None and statement.object != self.object:
            return False
        if self.context is not ANY and context_key(statement.context) != self.context:
            return False
        return True
