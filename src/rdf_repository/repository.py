"""
Repository: the public statement store.

A Repository composes one StorageBackend (MemoryBackend by default) and adds
statement coercion, validation and bulk loading on top of it.

Example:
    repo = Repository(uri="http://example.org/repo", title="Example")
    repo.insert((alice, knows, bob))
    repo.insert(Statement(alice, knows, bob, context=graph1))
    len(repo)                         # 2
    list(repo.match(subject=alice))   # both statements
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import IO, Any, Callable, Iterable, Iterator, List, Optional, Sequence, Union

import polars as pl
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from rdf_repository.config import ConfigValidator, RepositoryConfig
from rdf_repository.errors import ConfigurationError, MalformedStatementError
from rdf_repository.formats import EXTENSIONS, PARSERS, NQuadsSerializer
from rdf_repository.statement import ANY, Pattern, Statement
from rdf_repository.storage.backend import (
    Feature,
    MemoryBackend,
    StorageBackend,
    create_backend,
)
from rdf_repository.terms import IRI, Resource, Term

logger = logging.getLogger(__name__)

StatementLike = Union[Statement, Sequence[Any]]
Source = Union[str, Path, IO[str]]


class RepositoryOptions(BaseModel):
    """Construction options; unrecognized keys are kept as extras."""
    model_config = ConfigDict(extra="allow")

    uri: Optional[str] = Field(default=None, description="Identifying reference for the repository")
    title: Optional[str] = Field(default=None, description="Display title")

    @field_validator("uri", mode="before")
    @classmethod
    def _iri_to_str(cls, value: Any) -> Any:
        if isinstance(value, IRI):
            return value.value
        return value


class Repository:
    """
    An RDF repository of statements, optionally grouped by context.

    The core does not serialize concurrent calls. The default backend guards
    its index with a lock so individual operations are safe to call from
    several threads; sequences of operations are not atomic. Enumeration has
    shallow snapshot isolation (see rdf_repository.storage.snapshot).
    """

    def __init__(
        self,
        uri: Optional[Union[str, IRI]] = None,
        title: Optional[str] = None,
        *,
        backend: Optional[StorageBackend] = None,
        configure: Optional[Callable[["Repository"], Any]] = None,
        **options: Any,
    ):
        """
        Initialize a repository.

        Args:
            uri: Identifying reference, stored but not interpreted
            title: Display title, stored but not interpreted
            backend: Storage backend (defaults to a new MemoryBackend)
            configure: Called with the repository before the constructor
                returns, for initial loading
            **options: Passed through unchanged for backend or subclass use

        Raises:
            ConfigurationError: If uri/title are invalid or backend is not a
                StorageBackend
        """
        try:
            parsed = RepositoryOptions(uri=uri, title=title, **options)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid repository options: {e}") from e

        self._uri = parsed.uri
        self._title = parsed.title
        self._options = dict(parsed.model_extra or {})

        if backend is None:
            backend = MemoryBackend()
        elif not isinstance(backend, StorageBackend):
            raise ConfigurationError(
                f"backend must be a StorageBackend, got {type(backend).__name__}"
            )
        self._backend = backend

        if configure is not None:
            configure(self)

    @classmethod
    def from_config(
        cls,
        config: RepositoryConfig,
        configure: Optional[Callable[["Repository"], Any]] = None,
    ) -> "Repository":
        """Create a repository from a validated configuration."""
        ConfigValidator.validate_or_raise(config)
        backend = create_backend(config.backend, **config.backend_options)
        return cls(
            config.uri,
            config.title,
            backend=backend,
            configure=configure,
            **config.options,
        )

    @classmethod
    def from_sources(
        cls,
        sources: Union[Source, Iterable[Source]],
        configure: Optional[Callable[["Repository"], Any]] = None,
        format: Optional[str] = None,
        **options: Any,
    ) -> "Repository":
        """
        Load one or more RDF files into a new transient repository.

        Sources are loaded first, then `configure` (if given) is called.
        """
        def setup(repository: "Repository") -> None:
            repository.load(sources, format=format)
            if configure is not None:
                configure(repository)

        return cls(configure=setup, **options)

    # ========== Properties ==========

    @property
    def uri(self) -> Optional[str]:
        return self._uri

    @property
    def title(self) -> Optional[str]:
        return self._title

    @property
    def options(self) -> dict[str, Any]:
        """Options passed at construction that the core does not interpret."""
        return dict(self._options)

    @property
    def backend(self) -> StorageBackend:
        return self._backend

    @property
    def readable(self) -> bool:
        return True

    @property
    def writable(self) -> bool:
        return True

    def supports(self, feature: Union[Feature, str]) -> bool:
        """
        Check whether this repository supports an optional feature.

        Unknown feature names are reported as unsupported.
        """
        return self._backend.supports(feature)

    def is_durable(self) -> bool:
        """True if the contents survive a process restart."""
        return self._backend.durable

    def is_transient(self) -> bool:
        return not self.is_durable()

    # ========== Mutation ==========

    def insert(self, *statements: StatementLike) -> "Repository":
        """
        Insert statements. Each may be a Statement or a (s, p, o[, c]) tuple.

        Every argument is validated before any is stored, so a malformed
        statement leaves the repository unchanged.

        Raises:
            MalformedStatementError: If any statement is malformed
        """
        coerced = [Statement.from_tuple(s) for s in statements]
        self.insert_statements(coerced)
        return self

    def insert_statements(self, statements: Iterable[StatementLike]) -> int:
        """
        Insert statements from an iterable, one at a time.

        Returns:
            Number of statements that were not already present
        """
        added = 0
        for statement in statements:
            if self._backend.insert_statement(Statement.from_tuple(statement)):
                added += 1
        return added

    def delete(self, *statements: StatementLike) -> "Repository":
        """
        Delete statements. Absent or malformed statements are ignored,
        since neither can be stored.
        """
        for statement in statements:
            coerced = self._coerce_or_none(statement)
            if coerced is not None:
                self._backend.delete_statement(coerced)
        return self

    def delete_matching(
        self,
        subject: Optional[Resource] = None,
        predicate: Optional[IRI] = None,
        obj: Optional[Term] = None,
        context: Any = ANY,
    ) -> int:
        """
        Delete every statement matching a pattern.

        Returns:
            Number of statements removed
        """
        matched = list(self.match(subject=subject, predicate=predicate, obj=obj, context=context))
        removed = sum(1 for statement in matched if self._backend.delete_statement(statement))
        logger.debug(f"Deleted {removed} statements matching pattern")
        return removed

    def clear(self) -> "Repository":
        """Delete all statements."""
        self._backend.clear_statements()
        logger.debug(f"Cleared repository {self!r}")
        return self

    def load(
        self,
        sources: Union[Source, Iterable[Source]],
        format: Optional[str] = None,
    ) -> "Repository":
        """
        Parse RDF sources and insert their statements.

        Args:
            sources: A file path, an open text stream, or a list of these.
                Strings are treated as file paths.
            format: Format name ("nquads", "ntriples"). Defaults to the file
                extension for paths and N-Quads for streams.

        Raises:
            ConfigurationError: If the format cannot be determined
            NQuadsParseError: On malformed input. Statements read before the
                error remain inserted.
        """
        if isinstance(sources, (str, Path)) or hasattr(sources, "read"):
            sources = [sources]

        for source in sources:
            if isinstance(source, str):
                source = Path(source)
            parser = self._parser_for(source, format)
            added = self.insert_statements(parser.parse(source))
            logger.info(f"Loaded {added} statements from {self._source_name(source)}")
        return self

    # ========== Inspection ==========

    def count(self) -> int:
        """Number of statements in the repository."""
        return self._backend.count()

    def __len__(self) -> int:
        return self.count()

    def is_empty(self) -> bool:
        return self._backend.is_empty()

    def has_statement(self, statement: StatementLike) -> bool:
        coerced = self._coerce_or_none(statement)
        return coerced is not None and self._backend.has_statement(coerced)

    def __contains__(self, statement: StatementLike) -> bool:
        return self.has_statement(statement)

    def stats(self) -> dict[str, Any]:
        """Get statistics about the repository."""
        stats = dict(self._backend.stats())
        stats["durable"] = self.is_durable()
        return stats

    # ========== Enumeration & Query ==========

    def each(self, callback: Optional[Callable[[Statement], Any]] = None) -> Optional[Iterable[Statement]]:
        """
        Enumerate statements.

        With a callback, calls it once per statement and returns None.
        Without one, returns a lazy iterable that takes a fresh snapshot each
        time it is iterated.
        """
        statements = self._backend.statements()
        if callback is None:
            return statements
        for statement in statements:
            callback(statement)
        return None

    def __iter__(self) -> Iterator[Statement]:
        return iter(self._backend.statements())

    def statements(self, sorted: bool = False) -> List[Statement]:
        """All statements as a list, optionally in deterministic order."""
        result = list(self._backend.statements())
        if sorted:
            result.sort(key=Statement.sort_key)
        return result

    def match(
        self,
        pattern: Optional[Union[Pattern, Statement, Sequence[Any]]] = None,
        *,
        subject: Optional[Resource] = None,
        predicate: Optional[IRI] = None,
        obj: Optional[Term] = None,
        context: Any = ANY,
    ) -> Iterator[Statement]:
        """
        Find statements matching a pattern.

        Pass a Pattern, a Statement (exact match), a (s, p, o[, c]) tuple with
        None as wildcard, or the components as keywords. For context, ANY is
        the wildcard and None selects the default graph.

        Raises:
            InvalidPatternError: If a concrete component is ill-typed
        """
        if pattern is None:
            pattern = Pattern(subject, predicate, obj, context)
        elif isinstance(pattern, Statement):
            pattern = Pattern.from_statement(pattern)
        elif not isinstance(pattern, Pattern):
            pattern = Pattern(*pattern)
        return self._backend.match(pattern)

    def subjects(self) -> List[Resource]:
        """Distinct subjects."""
        return list(dict.fromkeys(s.subject for s in self))

    def predicates(self) -> List[IRI]:
        """Distinct predicates."""
        return list(dict.fromkeys(s.predicate for s in self))

    def objects(self) -> List[Term]:
        """Distinct objects."""
        return list(dict.fromkeys(s.object for s in self))

    def contexts(self) -> List[Resource]:
        """Distinct named contexts (the default graph is not included)."""
        return list(dict.fromkeys(s.context for s in self if s.context is not None))

    # ========== Export ==========

    def to_dataframe(self) -> pl.DataFrame:
        """
        Materialize the statements as a DataFrame in deterministic order.

        Terms are rendered in N-Triples syntax. The graph column is null for
        the default graph.
        """
        rows = self.statements(sorted=True)
        return pl.DataFrame(
            {
                "subject": [s.subject.to_ntriples() for s in rows],
                "predicate": [s.predicate.to_ntriples() for s in rows],
                "object": [s.object.to_ntriples() for s in rows],
                "graph": [s.context.to_ntriples() if s.context is not None else None for s in rows],
            },
            schema={
                "subject": pl.Utf8,
                "predicate": pl.Utf8,
                "object": pl.Utf8,
                "graph": pl.Utf8,
            },
        )

    def dump(self, stream: Optional[IO[str]] = None) -> int:
        """
        Write all statements as sorted N-Quads, to stderr by default.

        Returns:
            Number of statements written
        """
        return NQuadsSerializer().write(
            self.statements(sorted=True),
            stream if stream is not None else sys.stderr,
        )

    def __repr__(self) -> str:
        return f"<{type(self).__name__}:{id(self):#x}({self._uri or ''})>"

    # ========== Helpers ==========

    @staticmethod
    def _coerce_or_none(statement: StatementLike) -> Optional[Statement]:
        try:
            return Statement.from_tuple(statement)
        except MalformedStatementError:
            return None

    @staticmethod
    def _parser_for(source: Source, format: Optional[str]):
        if format is None:
            if isinstance(source, (str, Path)):
                suffix = Path(source).suffix.lower()
                format = EXTENSIONS.get(suffix)
                if format is None:
                    raise ConfigurationError(
                        f"Cannot determine RDF format for {source!s} (extension {suffix!r})"
                    )
            else:
                format = "nquads"
        parser_class = PARSERS.get(format)
        if parser_class is None:
            raise ConfigurationError(f"Unsupported RDF format: {format}. Supported: {sorted(PARSERS)}")
        return parser_class()

    @staticmethod
    def _source_name(source: Source) -> str:
        if isinstance(source, (str, Path)):
            return str(source)
        return getattr(source, "name", type(source).__name__)
