"""
Legacy mirror.

Older readers only know the fixed, unversioned path ``{owner}/{key}``.
The mirror keeps that path populated with the most recent content after
a versioned write or read has already succeeded. Mirror writes run as
background tasks whose outcome never reaches the primary operation.
"""

from __future__ import annotations

import asyncio
import logging

from ..exceptions import RemoteStorageError
from ..keys import legacy_path
from .backend import ObjectStorageBackend
from .store import classify
from .types import FailureKind, ObjectInfo, RemoteResult, StoredObject

logger = logging.getLogger(__name__)

_DISABLED = "legacy mirror disabled"


class LegacyMirror:
    """Best-effort fixed-path copy of each asset for pre-versioning readers."""

    def __init__(self, backend: ObjectStorageBackend, enabled: bool = True):
        """Initialize the mirror.

        Args:
            backend: Object storage backend shared with the versioned store
            enabled: When False every call is a no-op and reads report NOT_FOUND
        """
        self.backend = backend
        self.enabled = enabled
        self._pending: set[asyncio.Task[bool]] = set()

    @staticmethod
    def path_for(owner: str, key: str) -> str:
        return legacy_path(owner, key)

    @staticmethod
    def marker_for(info: ObjectInfo) -> str:
        """Version marker for legacy content, derived from its etag and mtime."""
        parts = [info.key]
        if info.etag:
            parts.append(info.etag)
        if info.last_modified:
            parts.append(info.last_modified.isoformat())
        return "|".join(parts)

    @property
    def pending(self) -> int:
        return len(self._pending)

    def upsert(
        self, owner: str, key: str, data: bytes, content_type: str
    ) -> asyncio.Task[bool] | None:
        """Schedule an overwrite of the legacy path. Returns the background task.

        Callers are not expected to await the task; drain() exists for
        shutdown and tests.
        """
        if not self.enabled:
            return None
        task = asyncio.create_task(self._write(owner, key, data, content_type))
        self._pending.add(task)
        task.add_done_callback(self._finished)
        return task

    async def _write(self, owner: str, key: str, data: bytes, content_type: str) -> bool:
        path = self.path_for(owner, key)
        try:
            await self.backend.put_object(path, data, content_type, overwrite=True)
        except RemoteStorageError as e:
            logger.warning(
                f"Legacy mirror upsert failed for {path}: {e}",
                extra={"owner": owner, "asset_key": key},
            )
            return False
        logger.debug(f"Legacy mirror updated: {path}")
        return True

    def _finished(self, task: asyncio.Task[bool]) -> None:
        self._pending.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error("Legacy mirror task crashed", exc_info=task.exception())

    async def drain(self) -> None:
        """Wait for every scheduled mirror write to finish."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def stat(self, owner: str, key: str) -> RemoteResult[ObjectInfo]:
        if not self.enabled:
            return RemoteResult.failed(FailureKind.NOT_FOUND, _DISABLED)
        try:
            return RemoteResult.success(await self.backend.head_object(self.path_for(owner, key)))
        except RemoteStorageError as e:
            return RemoteResult.failed(classify(e), str(e))

    async def read(self, owner: str, key: str) -> RemoteResult[StoredObject]:
        if not self.enabled:
            return RemoteResult.failed(FailureKind.NOT_FOUND, _DISABLED)
        try:
            return RemoteResult.success(await self.backend.get_object(self.path_for(owner, key)))
        except RemoteStorageError as e:
            return RemoteResult.failed(classify(e), str(e))

    async def signed_url(self, owner: str, key: str, ttl_seconds: int) -> RemoteResult[str]:
        """Signed URL for the legacy path, only if the legacy object exists."""
        found = await self.stat(owner, key)
        if not found.ok:
            return RemoteResult.failed(found.failure, found.message)
        try:
            url = await self.backend.generate_signed_url(self.path_for(owner, key), ttl_seconds)
        except RemoteStorageError as e:
            return RemoteResult.failed(classify(e), str(e))
        return RemoteResult.success(url)
