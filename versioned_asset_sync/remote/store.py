"""
Remote versioned store.

One folder per (owner, key). Every write creates a new object named by a
VersionId; nothing is ever overwritten in place. Backend errors are
classified into RemoteResult failures here and never raised to callers.
"""

from __future__ import annotations

import logging

from ..exceptions import (
    RemoteConflictError,
    RemoteNotFoundError,
    RemotePermissionError,
    RemoteStorageError,
)
from ..keys import version_folder
from .backend import ObjectStorageBackend
from .types import (
    FailureKind,
    ObjectInfo,
    RemovalReport,
    RemoteResult,
    StoredObject,
    VersionClock,
    VersionedObject,
    VersionId,
)

logger = logging.getLogger(__name__)


def classify(error: RemoteStorageError) -> FailureKind:
    """Map a backend error onto a failure kind."""
    if isinstance(error, RemoteNotFoundError):
        return FailureKind.NOT_FOUND
    if isinstance(error, RemotePermissionError):
        return FailureKind.PERMISSION_DENIED
    return FailureKind.UNAVAILABLE


def _version_sort_key(info: ObjectInfo) -> tuple:
    version = VersionId.parse(info.name)
    if version is None:
        # Foreign names rank below every version this library wrote
        return (0, 0, info.name)
    return (1, version.created_at_ms, version.name)


class RemoteVersionedStore:
    """Versioned asset folders on top of an ObjectStorageBackend."""

    def __init__(self, backend: ObjectStorageBackend, clock: VersionClock | None = None):
        self.backend = backend
        self.clock = clock or VersionClock()

    @staticmethod
    def _to_versioned(info: ObjectInfo) -> VersionedObject:
        return VersionedObject(
            path=info.key,
            version=VersionId.parse(info.name),
            content_type=info.content_type,
            size_bytes=info.size_bytes,
        )

    async def write(
        self,
        owner: str,
        key: str,
        data: bytes,
        content_type: str,
        filename: str,
    ) -> RemoteResult[VersionedObject]:
        """Create a new version of (owner, key).

        A name collision with another writer's object is resolved by adding
        a random disambiguator and trying once more.
        """
        folder = version_folder(owner, key)
        version = self.clock.next_version(filename)
        try:
            try:
                info = await self.backend.put_object(
                    f"{folder}/{version.name}", data, content_type, overwrite=False
                )
            except RemoteConflictError:
                version = version.disambiguated()
                info = await self.backend.put_object(
                    f"{folder}/{version.name}", data, content_type, overwrite=False
                )
        except RemoteStorageError as e:
            return RemoteResult.failed(classify(e), str(e))

        return RemoteResult.success(
            VersionedObject(
                path=info.key,
                version=version,
                content_type=content_type,
                size_bytes=len(data),
            )
        )

    async def list_versions(self, owner: str, key: str) -> RemoteResult[list[VersionedObject]]:
        """List every version of (owner, key), oldest first."""
        try:
            infos = await self.backend.list_objects(f"{version_folder(owner, key)}/")
        except RemoteStorageError as e:
            return RemoteResult.failed(classify(e), str(e))
        infos.sort(key=_version_sort_key)
        return RemoteResult.success([self._to_versioned(info) for info in infos])

    async def list_latest(self, owner: str, key: str) -> RemoteResult[VersionedObject]:
        """Return the newest version of (owner, key).

        An empty folder is reported as a NOT_FOUND failure.
        """
        listed = await self.list_versions(owner, key)
        if not listed.ok:
            return RemoteResult.failed(listed.failure, listed.message)
        if not listed.value:
            return RemoteResult.failed(FailureKind.NOT_FOUND, "no versions")
        return RemoteResult.success(listed.value[-1])

    async def read(self, path: str) -> RemoteResult[StoredObject]:
        """Read an object by exact path, whether or not it is the latest."""
        try:
            return RemoteResult.success(await self.backend.get_object(path))
        except RemoteStorageError as e:
            return RemoteResult.failed(classify(e), str(e))

    async def stat(self, path: str) -> RemoteResult[ObjectInfo]:
        try:
            return RemoteResult.success(await self.backend.head_object(path))
        except RemoteStorageError as e:
            return RemoteResult.failed(classify(e), str(e))

    async def signed_url(self, path: str, ttl_seconds: int) -> RemoteResult[str]:
        try:
            return RemoteResult.success(await self.backend.generate_signed_url(path, ttl_seconds))
        except RemoteStorageError as e:
            return RemoteResult.failed(classify(e), str(e))

    async def remove(self, paths: list[str]) -> RemovalReport:
        """Delete a batch of objects. A failing path never stops the others."""
        report = RemovalReport()
        for path in paths:
            try:
                if await self.backend.delete_object(path):
                    report.removed.append(path)
                else:
                    report.missing.append(path)
            except RemoteStorageError as e:
                logger.warning(f"Failed to remove remote object {path}: {e}")
                report.failed[path] = str(e)
        return report

    async def remove_prefix(self, prefix: str, extra_paths: list[str] | None = None) -> RemovalReport:
        """Delete everything under a prefix plus any extra exact paths."""
        paths = list(extra_paths or [])
        try:
            paths.extend(info.key for info in await self.backend.list_objects(prefix))
        except RemoteStorageError as e:
            logger.warning(f"Failed to list {prefix} for removal: {e}")
            report = await self.remove(paths)
            report.failed[prefix] = str(e)
            return report
        return await self.remove(paths)
