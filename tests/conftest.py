"""
Shared test configuration and fixtures.

Provides a fault-injecting in-memory backend so tests can simulate
outages, permission errors and version races without a real storage
account, plus cache, store and identity fixtures wired to it.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import AsyncIterator
from pathlib import Path

import pytest

from versioned_asset_sync.exceptions import RemoteStorageError
from versioned_asset_sync.identity import StaticIdentityProvider
from versioned_asset_sync.local import LocalCache
from versioned_asset_sync.remote import (
    InMemoryBackend,
    LegacyMirror,
    ObjectInfo,
    RemoteVersionedStore,
    StoredObject,
    VersionClock,
)
from versioned_asset_sync.sync import KeyLocks, UploadPipeline, VersionReconciler

OWNER = "u1"


class FaultInjectingBackend(InMemoryBackend):
    """
    In-memory backend with per-operation failure injection.

    Set ``failures["get_object"] = RemoteConnectionError(...)`` to make
    every subsequent call of that operation raise. ``calls`` counts how
    often each operation ran, so tests can assert that no content was
    transferred.
    """

    def __init__(self, container_name: str = "assets"):
        super().__init__(container_name)
        self.failures: dict[str, RemoteStorageError] = {}
        self.calls: Counter[str] = Counter()

    def _check(self, operation: str) -> None:
        self.calls[operation] += 1
        error = self.failures.get(operation)
        if error is not None:
            raise error

    async def put_object(
        self, key: str, content: bytes, content_type: str, overwrite: bool = False
    ) -> ObjectInfo:
        self._check("put_object")
        return await super().put_object(key, content, content_type, overwrite)

    async def get_object(self, key: str) -> StoredObject:
        self._check("get_object")
        return await super().get_object(key)

    async def head_object(self, key: str) -> ObjectInfo:
        self._check("head_object")
        return (await super().get_object(key)).info

    async def list_objects(self, prefix: str, limit: int | None = None) -> list[ObjectInfo]:
        self._check("list_objects")
        return await super().list_objects(prefix, limit)

    async def delete_object(self, key: str) -> bool:
        self._check("delete_object")
        return await super().delete_object(key)

    async def generate_signed_url(self, key: str, expires_in: int) -> str:
        self._check("generate_signed_url")
        return await super().generate_signed_url(key, expires_in)


class StepClock:
    """Deterministic millisecond clock: start, start + step, ..."""

    def __init__(self, start: int = 1_700_000_000, step: int = 1):
        self.now = start
        self.step = step

    def __call__(self) -> int:
        value = self.now
        self.now += self.step
        return value


@pytest.fixture
def backend() -> FaultInjectingBackend:
    """Fresh fault-injecting backend per test."""
    return FaultInjectingBackend()


@pytest.fixture
def identity() -> StaticIdentityProvider:
    """Signed-in identity for the test owner."""
    return StaticIdentityProvider.for_owner(OWNER)


@pytest.fixture
def signed_out() -> StaticIdentityProvider:
    """Identity provider with no session."""
    return StaticIdentityProvider()


@pytest.fixture
def cache(tmp_path: Path) -> LocalCache:
    """Local cache in a temporary directory."""
    return LocalCache(tmp_path / "cache")


@pytest.fixture
def clock() -> StepClock:
    return StepClock()


@pytest.fixture
def store(backend: FaultInjectingBackend, clock: StepClock) -> RemoteVersionedStore:
    return RemoteVersionedStore(backend, VersionClock(clock))


@pytest.fixture
async def mirror(backend: FaultInjectingBackend) -> AsyncIterator[LegacyMirror]:
    """Legacy mirror whose background writes are drained after each test."""
    legacy = LegacyMirror(backend)
    yield legacy
    await legacy.drain()


@pytest.fixture
def locks() -> KeyLocks:
    return KeyLocks()


@pytest.fixture
def reconciler(cache, store, mirror, identity, locks) -> VersionReconciler:
    return VersionReconciler(cache, store, mirror, identity, locks)


@pytest.fixture
def uploads(cache, store, mirror, identity, locks) -> UploadPipeline:
    return UploadPipeline(cache, store, mirror, identity, locks)
