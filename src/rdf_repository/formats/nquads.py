"""
N-Quads Parser and Serializer.

N-Quads extends N-Triples with a fourth element: the graph name.
Each line contains: subject predicate object [graph] .

Grammar:
  nquadsDoc ::= quad? (EOL quad)* EOL?
  quad      ::= subject predicate object graphLabel? '.'
  graphLabel ::= IRIREF | BLANK_NODE_LABEL

N-Triples documents are valid N-Quads documents without graph labels, so the
same parser reads both.

Reference: https://www.w3.org/TR/n-quads/
"""

from io import StringIO
from pathlib import Path
from typing import IO, Iterable, Iterator, List, Tuple, Union

from rdf_repository.errors import MalformedStatementError, NQuadsParseError
from rdf_repository.statement import Statement
from rdf_repository.terms import IRI, BNode, Literal, Resource, Term


_ESCAPES = {
    "t": "\t",
    "b": "\b",
    "n": "\n",
    "r": "\r",
    "f": "\f",
    '"': '"',
    "'": "'",
    "\\": "\\",
}

_BNODE_STOP = set(" \t<\"")


class NQuadsParser:
    """
    Line-oriented N-Quads reader producing Statements.

    Format:
        <subject> <predicate> <object> .
        <subject> <predicate> "literal"@en <graph> .
        _:b0 <predicate> "42"^^<http://www.w3.org/2001/XMLSchema#integer> .
    """

    def __init__(self):
        self.line_number = 0

    def parse(self, source: Union[str, Path, IO[str]]) -> Iterator[Statement]:
        """
        Parse N-Quads content.

        Args:
            source: File path, open text stream, or N-Quads content as string

        Yields:
            Statement objects
        """
        if isinstance(source, Path):
            with source.open("r", encoding="utf-8") as f:
                yield from self.parse_lines(f)
        elif isinstance(source, str):
            # StringIO splits on "\n" only, unlike str.splitlines()
            yield from self.parse_lines(StringIO(source))
        else:
            yield from self.parse_lines(source)

    def parse_lines(self, lines: Iterable[str]) -> Iterator[Statement]:
        """
        Parse lines of N-Quads.

        Raises:
            NQuadsParseError: With the offending line number
        """
        for i, line in enumerate(lines):
            self.line_number = i + 1

            line = line.strip()
            if not line or line.startswith("#"):
                continue

            try:
                yield self._parse_quad_line(line)
            except (ValueError, TypeError, MalformedStatementError) as e:
                if isinstance(e, NQuadsParseError):
                    raise
                raise NQuadsParseError(str(e), self.line_number, line) from e

    def _parse_quad_line(self, line: str) -> Statement:
        """Parse a single N-Quads line."""
        pos = 0

        subject, pos = self._parse_subject(line, pos)
        pos = self._skip_ws(line, pos)

        predicate, pos = self._parse_iri(line, pos)
        pos = self._skip_ws(line, pos)

        obj, pos = self._parse_object(line, pos)
        pos = self._skip_ws(line, pos)

        graph = None
        if pos < len(line) and line[pos] != ".":
            graph, pos = self._parse_subject(line, pos)
            pos = self._skip_ws(line, pos)

        if pos >= len(line) or line[pos] != ".":
            raise ValueError("Expected '.' at end of statement")
        pos = self._skip_ws(line, pos + 1)
        if pos < len(line) and line[pos] != "#":
            raise ValueError(f"Unexpected content after '.': {line[pos:]!r}")

        return Statement(subject, predicate, obj, graph)

    # ========== Term Readers ==========

    def _skip_ws(self, line: str, pos: int) -> int:
        while pos < len(line) and line[pos] in " \t":
            pos += 1
        return pos

    def _parse_subject(self, line: str, pos: int) -> Tuple[Resource, int]:
        if line.startswith("_:", pos):
            return self._parse_blank_node(line, pos)
        return self._parse_iri(line, pos)

    def _parse_object(self, line: str, pos: int) -> Tuple[Term, int]:
        if pos < len(line) and line[pos] == '"':
            return self._parse_literal(line, pos)
        return self._parse_subject(line, pos)

    def _parse_iri(self, line: str, pos: int) -> Tuple[IRI, int]:
        if pos >= len(line) or line[pos] != "<":
            raise ValueError(f"Expected IRI at position {pos}")
        end = line.find(">", pos + 1)
        if end == -1:
            raise ValueError("Unterminated IRI")
        return IRI(self._unescape(line[pos + 1:end])), end + 1

    def _parse_blank_node(self, line: str, pos: int) -> Tuple[BNode, int]:
        start = pos + 2
        end = start
        while end < len(line) and line[end] not in _BNODE_STOP:
            end += 1
        # A trailing '.' terminates the statement, not the label
        while end > start and line[end - 1] == ".":
            end -= 1
        if end == start:
            raise ValueError("Empty blank node label")
        return BNode(line[start:end]), end

    def _parse_literal(self, line: str, pos: int) -> Tuple[Literal, int]:
        end = pos + 1
        while end < len(line):
            if line[end] == "\\":
                end += 2
                continue
            if line[end] == '"':
                break
            end += 1
        if end >= len(line):
            raise ValueError("Unterminated literal")

        value = self._unescape(line[pos + 1:end])
        pos = end + 1

        if line.startswith("@", pos):
            start = pos + 1
            end = start
            while end < len(line) and (line[end].isalnum() or line[end] == "-"):
                end += 1
            return Literal(value, language=line[start:end]), end
        if line.startswith("^^", pos):
            datatype, pos = self._parse_iri(line, pos + 2)
            return Literal(value, datatype=datatype), pos
        return Literal(value), pos

    def _unescape(self, text: str) -> str:
        if "\\" not in text:
            return text
        out: List[str] = []
        i = 0
        while i < len(text):
            ch = text[i]
            if ch != "\\":
                out.append(ch)
                i += 1
                continue
            if i + 1 >= len(text):
                raise ValueError("Dangling escape")
            code = text[i + 1]
            if code in ("u", "U"):
                width = 4 if code == "u" else 8
                digits = text[i + 2:i + 2 + width]
                if len(digits) != width:
                    raise ValueError(f"Invalid \\{code} escape")
                out.append(chr(int(digits, 16)))
                i += 2 + width
            elif code in _ESCAPES:
                out.append(_ESCAPES[code])
                i += 2
            else:
                raise ValueError(f"Invalid escape \\{code}")
        return "".join(out)


class NQuadsSerializer:
    """Serializer for N-Quads format."""

    def serialize(self, statements: Iterable[Statement]) -> str:
        """
        Serialize statements to N-Quads, one per line.

        Statements in the default graph are written without a graph label.
        """
        lines = [statement.to_nquads() for statement in statements]
        return "\n".join(lines) + ("\n" if lines else "")

    def write(self, statements: Iterable[Statement], stream: IO[str]) -> int:
        """Write statements to a text stream, returning the number written."""
        written = 0
        for statement in statements:
            stream.write(statement.to_nquads())
            stream.write("\n")
            written += 1
        return written


def parse_nquads(source: Union[str, Path, IO[str]]) -> List[Statement]:
    """
    Parse N-Quads content.

    Args:
        source: N-Quads content as string, file path, or text stream

    Returns:
        List of statements
    """
    return list(NQuadsParser().parse(source))


def serialize_nquads(statements: Iterable[Statement]) -> str:
    """Serialize statements to an N-Quads string."""
    return NQuadsSerializer().serialize(statements)
