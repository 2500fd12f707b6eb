"""
rdf-repository: an in-memory RDF quad store.

Statements (subject, predicate, object, context) are kept in a four-level
context/subject/predicate/object index with pattern retrieval and
snapshot enumeration.
"""

__version__ = "0.1.0"

from rdf_repository.terms import IRI, BNode, Literal, TermKind, XSD
from rdf_repository.statement import Statement, Pattern, DEFAULT_GRAPH, ANY
from rdf_repository.errors import (
    RepositoryError,
    MalformedStatementError,
    InvalidPatternError,
    ConfigurationError,
    NQuadsParseError,
)
from rdf_repository.storage import (
    Feature,
    StorageBackend,
    MemoryBackend,
    QuadIndex,
    SnapshotEnumerator,
    register_backend,
    create_backend,
)
from rdf_repository.config import RepositoryConfig, ConfigValidator, create_default_config
from rdf_repository.repository import Repository, RepositoryOptions

__all__ = [
    # Terms
    "IRI",
    "BNode",
    "Literal",
    "TermKind",
    "XSD",
    # Statements
    "Statement",
    "Pattern",
    "DEFAULT_GRAPH",
    "ANY",
    # Errors
    "RepositoryError",
    "MalformedStatementError",
    "InvalidPatternError",
    "ConfigurationError",
    "NQuadsParseError",
    # Storage
    "Feature",
    "StorageBackend",
    "MemoryBackend",
    "QuadIndex",
    "SnapshotEnumerator",
    "register_backend",
    "create_backend",
    # Configuration
    "RepositoryConfig",
    "ConfigValidator",
    "create_default_config",
    # Repository
    "Repository",
    "RepositoryOptions",
]
