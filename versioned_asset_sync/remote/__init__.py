"""
Remote storage for versioned assets.

Provides the backend abstraction, the versioned store built on it, and
the legacy fixed-path mirror.
"""

from .backend import ObjectStorageBackend
from .factory import create_backend
from .legacy import LegacyMirror
from .memory import InMemoryBackend
from .store import RemoteVersionedStore, classify
from .types import (
    FailureKind,
    ObjectInfo,
    RemoteResult,
    RemovalReport,
    StoredObject,
    VersionClock,
    VersionedObject,
    VersionId,
)

__all__ = [
    "ObjectStorageBackend",
    "InMemoryBackend",
    "create_backend",
    "RemoteVersionedStore",
    "LegacyMirror",
    "classify",
    "FailureKind",
    "ObjectInfo",
    "RemoteResult",
    "RemovalReport",
    "StoredObject",
    "VersionClock",
    "VersionedObject",
    "VersionId",
]
