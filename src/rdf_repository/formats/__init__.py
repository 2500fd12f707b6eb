"""
RDF format readers and writers.

Supports:
- N-Quads (.nq) with named graphs
- N-Triples (.nt), read as N-Quads without graph labels
"""

from rdf_repository.formats.nquads import (
    NQuadsParser,
    NQuadsSerializer,
    parse_nquads,
    serialize_nquads,
)

# File extension and format name to parser class
PARSERS = {
    "nquads": NQuadsParser,
    "ntriples": NQuadsParser,
}

EXTENSIONS = {
    ".nq": "nquads",
    ".nquads": "nquads",
    ".nt": "ntriples",
    ".ntriples": "ntriples",
}

__all__ = [
    "NQuadsParser",
    "NQuadsSerializer",
    "parse_nquads",
    "serialize_nquads",
    "PARSERS",
    "EXTENSIONS",
]
