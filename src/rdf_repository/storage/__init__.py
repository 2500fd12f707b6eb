"""
Storage layer: the quad index, snapshot enumeration and backends.
"""

from rdf_repository.storage.index import QuadIndex
from rdf_repository.storage.snapshot import SnapshotEnumerator
from rdf_repository.storage.backend import (
    Feature,
    StorageBackend,
    MemoryBackend,
    register_backend,
    available_backends,
    create_backend,
)

__all__ = [
    "QuadIndex",
    "SnapshotEnumerator",
    "Feature",
    "StorageBackend",
    "MemoryBackend",
    "register_backend",
    "available_backends",
    "create_backend",
]
