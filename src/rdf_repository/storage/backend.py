"""
Storage backends.

A Repository holds exactly one StorageBackend and delegates all storage work
to it. MemoryBackend is the default transient implementation; durable or
remote backends implement the same interface and are registered by name so
configuration files can select them.
"""

from __future__ import annotations

import inspect
import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Callable, Dict, Iterable, Iterator, Union

from rdf_repository.errors import ConfigurationError
from rdf_repository.statement import Pattern, Statement
from rdf_repository.storage.index import QuadIndex
from rdf_repository.storage.snapshot import SnapshotEnumerator

logger = logging.getLogger(__name__)


class Feature(str, Enum):
    """Optional repository capabilities."""
    CONTEXT = "context"       # statement contexts / named graphs
    INFERENCE = "inference"   # forward-chaining inference


class StorageBackend(ABC):
    """
    Interface every storage backend implements.

    FEATURES maps each known Feature to whether the backend supports it.
    Anything not listed is unsupported.
    """

    FEATURES: Dict[Feature, bool] = {
        Feature.CONTEXT: True,
        Feature.INFERENCE: False,
    }

    def supports(self, feature: Union[Feature, str]) -> bool:
        try:
            feature = Feature(feature)
        except ValueError:
            return False
        return self.FEATURES.get(feature, False)

    @property
    @abstractmethod
    def durable(self) -> bool:
        """True if contents survive a process restart."""

    @abstractmethod
    def insert_statement(self, statement: Statement) -> bool: ...

    @abstractmethod
    def delete_statement(self, statement: Statement) -> bool: ...

    @abstractmethod
    def has_statement(self, statement: Statement) -> bool: ...

    @abstractmethod
    def clear_statements(self) -> None: ...

    @abstractmethod
    def count(self) -> int: ...

    @abstractmethod
    def is_empty(self) -> bool: ...

    @abstractmethod
    def statements(self) -> Iterable[Statement]:
        """Restartable iterable over all statements."""

    @abstractmethod
    def match(self, pattern: Pattern) -> Iterator[Statement]: ...

    def stats(self) -> dict[str, Any]:
        return {"statements": self.count()}


class MemoryBackend(StorageBackend):
    """Transient in-memory backend built on QuadIndex."""

    def __init__(self):
        self._index = QuadIndex()

    @property
    def index(self) -> QuadIndex:
        return self._index

    @property
    def durable(self) -> bool:
        return False

    def insert_statement(self, statement: Statement) -> bool:
        return self._index.insert(statement)

    def delete_statement(self, statement: Statement) -> bool:
        return self._index.delete(statement)

    def has_statement(self, statement: Statement) -> bool:
        return self._index.contains(statement)

    def clear_statements(self) -> None:
        self._index.clear()

    def count(self) -> int:
        return self._index.count()

    def is_empty(self) -> bool:
        return self._index.is_empty()

    def statements(self) -> SnapshotEnumerator:
        return SnapshotEnumerator(self._index)

    def match(self, pattern: Pattern) -> Iterator[Statement]:
        return self._index.match(pattern)

    def stats(self) -> dict[str, Any]:
        stats = self._index.stats()
        stats["statements"] = stats["quads"]
        return stats


# =============================================================================
# Backend Registry
# =============================================================================

BackendFactory = Callable[..., StorageBackend]

_BACKENDS: Dict[str, BackendFactory] = {
    "memory": MemoryBackend,
}


def register_backend(name: str, factory: BackendFactory) -> None:
    """Register a backend factory under a configuration name."""
    if not name:
        raise ValueError("Backend name cannot be empty")
    _BACKENDS[name] = factory


def available_backends() -> list[str]:
    return sorted(_BACKENDS)


def create_backend(name: str = "memory", **options: Any) -> StorageBackend:
    """
    Create a backend by registered name.

    Raises:
        ConfigurationError: If the name is unknown or the factory rejects
            the options
    """
    factory = _BACKENDS.get(name)
    if factory is None:
        raise ConfigurationError(
            f"Unknown storage backend '{name}'. Available: {available_backends()}"
        )
    try:
        inspect.signature(factory).bind(**options)
    except TypeError as e:
        raise ConfigurationError(f"Invalid options for backend '{name}': {e}") from e
    backend = factory(**options)
    logger.debug(f"Created {type(backend).__name__} backend '{name}'")
    return backend
