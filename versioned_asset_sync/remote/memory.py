"""
In-memory object storage backend.

Keeps objects in a dict shared by every store created from the same
backend instance. Useful for offline development and for simulating
several devices against one bucket inside a single process.
"""

from __future__ import annotations

import asyncio
import hashlib
from datetime import UTC, datetime
from urllib.parse import quote

from ..exceptions import RemoteConflictError, RemoteNotFoundError
from .backend import ObjectStorageBackend
from .types import ObjectInfo, StoredObject


class InMemoryBackend(ObjectStorageBackend):
    """Dict-backed object storage with no-overwrite and listing semantics."""

    def __init__(self, container_name: str = "assets"):
        self.container_name = container_name
        self._objects: dict[str, StoredObject] = {}
        self._lock = asyncio.Lock()

    @property
    def keys(self) -> list[str]:
        return sorted(self._objects)

    async def put_object(
        self,
        key: str,
        content: bytes,
        content_type: str,
        overwrite: bool = False,
    ) -> ObjectInfo:
        async with self._lock:
            if not overwrite and key in self._objects:
                raise RemoteConflictError(f"Object already exists: {key}", key=key)
            info = ObjectInfo(
                key=key,
                size_bytes=len(content),
                content_type=content_type,
                etag=hashlib.md5(content).hexdigest(),
                last_modified=datetime.now(UTC),
            )
            self._objects[key] = StoredObject(content=bytes(content), info=info)
            return info

    async def get_object(self, key: str) -> StoredObject:
        stored = self._objects.get(key)
        if stored is None:
            raise RemoteNotFoundError(f"Object not found: {key}", key=key)
        return stored

    async def head_object(self, key: str) -> ObjectInfo:
        return (await self.get_object(key)).info

    async def list_objects(self, prefix: str, limit: int | None = None) -> list[ObjectInfo]:
        infos = [obj.info for key, obj in sorted(self._objects.items()) if key.startswith(prefix)]
        return infos[:limit] if limit is not None else infos

    async def delete_object(self, key: str) -> bool:
        async with self._lock:
            return self._objects.pop(key, None) is not None

    async def generate_signed_url(self, key: str, expires_in: int) -> str:
        expiry = int(datetime.now(UTC).timestamp()) + expires_in
        return f"memory://{self.container_name}/{quote(key)}?se={expiry}"
