"""
RDF Term Model.

Terms are the atomic values that occupy statement positions:

- IRI: a globally meaningful reference string
- BNode: a locally scoped anonymous node
- Literal: a lexical value with an optional datatype or language tag

All terms are immutable value objects. Equality is by value within a variant;
an IRI never equals a BNode or a Literal, even with the same lexical string.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import IntEnum
from typing import Any, Optional, Union
import uuid


class TermKind(IntEnum):
    """
    RDF term kind enumeration.

    The integer value is the leading element of every sort key, so IRIs sort
    before blank nodes, which sort before literals.
    """
    IRI = 0
    BNODE = 1
    LITERAL = 2


_XSD = "http://www.w3.org/2001/XMLSchema#"


def _escape_iri(value: str) -> str:
    return value.replace("\\", "\\\\").replace(">", "\\u003E")


# Characters that must not appear raw inside a quoted literal. Besides the
# N-Triples ECHARs this covers every character str.splitlines() breaks on,
# so one statement always stays on one line.
_LITERAL_ESCAPES = str.maketrans({
    "\\": "\\\\",
    '"': '\\"',
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
    "\f": "\\f",
    "\b": "\\b",
    "\v": "\\u000B",
    "\x1c": "\\u001C",
    "\x1d": "\\u001D",
    "\x1e": "\\u001E",
    "\x85": "\\u0085",
    "\u2028": "\\u2028",
    "\u2029": "\\u2029",
})


def _escape_literal(value: str) -> str:
    return value.translate(_LITERAL_ESCAPES)


# =============================================================================
# Term Variants
# =============================================================================

@dataclass(frozen=True, slots=True)
class IRI:
    """
    An absolute reference identifier.

    Syntax of the reference is not checked here; that is the job of the
    parser or vocabulary layer that produced it.
    """
    value: str

    def __post_init__(self):
        if not isinstance(self.value, str):
            raise TypeError(f"IRI value must be a string, got {type(self.value).__name__}")

    @property
    def kind(self) -> TermKind:
        return TermKind.IRI

    def sort_key(self) -> tuple:
        return (TermKind.IRI, self.value, "", "")

    def to_ntriples(self) -> str:
        return f"<{_escape_iri(self.value)}>"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class BNode:
    """An anonymous node, unique within the scope of one repository."""
    id: str = field(default_factory=lambda: uuid.uuid4().hex)

    def __post_init__(self):
        if not isinstance(self.id, str):
            raise TypeError(f"BNode id must be a string, got {type(self.id).__name__}")
        if not self.id:
            raise ValueError("BNode id cannot be empty")

    @property
    def kind(self) -> TermKind:
        return TermKind.BNODE

    def sort_key(self) -> tuple:
        return (TermKind.BNODE, self.id, "", "")

    def to_ntriples(self) -> str:
        return f"_:{self.id}"

    def __str__(self) -> str:
        return f"_:{self.id}"


@dataclass(frozen=True, slots=True)
class Literal:
    """
    A literal value.

    Attributes:
        value: Lexical form
        datatype: Datatype IRI (for typed literals)
        language: Language tag (for language-tagged literals)
    """
    value: str
    datatype: Optional[IRI] = None
    language: Optional[str] = None

    def __post_init__(self):
        if not isinstance(self.value, str):
            raise TypeError(f"Literal value must be a string, got {type(self.value).__name__}")
        if self.datatype is not None and not isinstance(self.datatype, IRI):
            raise TypeError("Literal datatype must be an IRI")
        if self.language is not None:
            if not isinstance(self.language, str) or not self.language:
                raise ValueError("Literal language must be a non-empty string")
            if self.datatype is not None:
                raise ValueError("A literal cannot have both a datatype and a language tag")

    @property
    def kind(self) -> TermKind:
        return TermKind.LITERAL

    def sort_key(self) -> tuple:
        datatype = self.datatype.value if self.datatype is not None else ""
        return (TermKind.LITERAL, self.value, datatype, self.language or "")

    def to_ntriples(self) -> str:
        text = f'"{_escape_literal(self.value)}"'
        if self.language:
            return f"{text}@{self.language}"
        if self.datatype is not None:
            return f"{text}^^{self.datatype.to_ntriples()}"
        return text

    def __str__(self) -> str:
        return self.value

    @classmethod
    def from_python(cls, value: Any) -> "Literal":
        """
        Create a typed literal from a native Python value.

        bool is checked before int since bool is an int subclass.
        """
        if isinstance(value, Literal):
            return value
        if isinstance(value, bool):
            return cls("true" if value else "false", XSD.boolean)
        if isinstance(value, int):
            return cls(str(value), XSD.integer)
        if isinstance(value, float):
            return cls(repr(value), XSD.double)
        if isinstance(value, datetime):
            return cls(value.isoformat(), XSD.dateTime)
        if isinstance(value, date):
            return cls(value.isoformat(), XSD.date)
        if isinstance(value, str):
            return cls(value)
        raise TypeError(f"Cannot convert {type(value).__name__} to a literal")


class XSD:
    """XML Schema datatype IRIs used for native value conversion."""
    string = IRI(_XSD + "string")
    boolean = IRI(_XSD + "boolean")
    integer = IRI(_XSD + "integer")
    double = IRI(_XSD + "double")
    date = IRI(_XSD + "date")
    dateTime = IRI(_XSD + "dateTime")


Term = Union[IRI, BNode, Literal]
Resource = Union[IRI, BNode]

TERM_TYPES = (IRI, BNode, Literal)
RESOURCE_TYPES = (IRI, BNode)


def is_term(value: Any) -> bool:
    """Check whether a value is one of the term variants."""
    return isinstance(value, TERM_TYPES)
