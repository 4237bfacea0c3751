"""
Local asset cache.

Durable key/value store on the client device holding the last known value
of each asset plus the remote version marker it was confirmed against.

Directory structure:
    {cache_dir}/
      {quoted key}.json | .blob         - global entries from before owner scoping
      owners/
        {quoted owner}/
          {quoted scoped key}.json      - JSON document entries and version markers
          {quoted scoped key}.blob      - Binary entries: one header line, then the bytes

Global entries at the root are only read to migrate them into an owner's
directory. Owner-scoped names never resolve to the root.

Every write replaces a single file atomically, so a concurrent reader sees
either the previous or the new value of a key, never a mix.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Any
from urllib.parse import quote, unquote

from ..exceptions import LocalStorageError
from ..keys import MARKER_SUFFIX, marker_key, owner_prefix, scoped_key, validate_owner
from .file_ops import (
    ensure_directory,
    list_files,
    read_bytes,
    read_json,
    remove_directory,
    remove_file,
    write_bytes_atomic,
    write_json_atomic,
)

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"
JSON_SUFFIX = ".json"
BLOB_SUFFIX = ".blob"
OWNERS_DIR = "owners"


@dataclass(frozen=True)
class CachedBlob:
    """A cached binary value and its content type."""

    data: bytes
    content_type: str = DEFAULT_CONTENT_TYPE

    @property
    def size_bytes(self) -> int:
        return len(self.data)


class LocalCache:
    """Owner-scoped local cache for blobs, JSON documents and version markers.

    Absence is always reported as None. Failures of the underlying
    filesystem raise LocalStorageError.
    """

    def __init__(self, cache_dir: Path):
        """Initialize the cache.

        Args:
            cache_dir: Directory holding cache entry files
        """
        self.cache_dir = Path(cache_dir)

    # =========================================================================
    # Paths
    # =========================================================================

    def owner_dir(self, owner: str) -> Path:
        """Directory holding every entry of one owner."""
        return self.cache_dir / OWNERS_DIR / quote(validate_owner(owner), safe="")

    @staticmethod
    def _path(directory: Path, name: str, suffix: str) -> Path:
        return directory / f"{quote(name, safe='')}{suffix}"

    # =========================================================================
    # Raw entry access (by directory and fully qualified name)
    # =========================================================================

    async def _read_json_entry(self, directory: Path, name: str) -> Any | None:
        path = self._path(directory, name, JSON_SUFFIX)
        envelope = await read_json(path)
        if envelope is None:
            return None
        if not isinstance(envelope, dict) or "value" not in envelope:
            raise LocalStorageError("read_entry", str(path))
        return envelope["value"]

    async def _write_json_entry(self, directory: Path, name: str, value: Any) -> None:
        envelope = {"value": value, "updated_at": datetime.now(UTC).isoformat()}
        await write_json_atomic(self._path(directory, name, JSON_SUFFIX), envelope)
        await remove_file(self._path(directory, name, BLOB_SUFFIX))

    async def _read_blob_entry(self, directory: Path, name: str) -> CachedBlob | None:
        path = self._path(directory, name, BLOB_SUFFIX)
        raw = await read_bytes(path)
        if raw is None:
            return None
        header, sep, data = raw.partition(b"\n")
        if not sep:
            raise LocalStorageError("read_entry", str(path))
        try:
            meta = json.loads(header.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise LocalStorageError("parse_blob_header", str(path), e) from e
        return CachedBlob(data=data, content_type=meta.get("content_type") or DEFAULT_CONTENT_TYPE)

    async def _write_blob_entry(self, directory: Path, name: str, blob: CachedBlob) -> None:
        header = json.dumps(
            {
                "content_type": blob.content_type,
                "size_bytes": blob.size_bytes,
                "updated_at": datetime.now(UTC).isoformat(),
            }
        ).encode("utf-8")
        await write_bytes_atomic(
            self._path(directory, name, BLOB_SUFFIX), header + b"\n" + blob.data
        )
        await remove_file(self._path(directory, name, JSON_SUFFIX))

    async def _delete_entry(self, directory: Path, name: str) -> bool:
        removed_json = await remove_file(self._path(directory, name, JSON_SUFFIX))
        removed_blob = await remove_file(self._path(directory, name, BLOB_SUFFIX))
        return removed_json or removed_blob

    # =========================================================================
    # Legacy (global) key migration
    # =========================================================================

    async def _migrate_legacy_json(self, owner: str, key: str) -> Any | None:
        value = await self._read_json_entry(self.cache_dir, key)
        if value is None:
            return None
        await self._write_json_entry(self.owner_dir(owner), scoped_key(owner, key), value)
        await self._delete_entry(self.cache_dir, key)
        logger.info(
            "Migrated global cache entry to owner scope",
            extra={"owner": owner, "asset_key": key},
        )
        return value

    async def _migrate_legacy_blob(self, owner: str, key: str) -> CachedBlob | None:
        blob = await self._read_blob_entry(self.cache_dir, key)
        if blob is None:
            return None
        await self._write_blob_entry(self.owner_dir(owner), scoped_key(owner, key), blob)
        await self._delete_entry(self.cache_dir, key)
        logger.info(
            "Migrated global cache entry to owner scope",
            extra={"owner": owner, "asset_key": key},
        )
        return blob

    # =========================================================================
    # Values
    # =========================================================================

    async def get_json(self, owner: str, key: str) -> Any | None:
        """Get a cached JSON document, migrating a global legacy entry if needed."""
        value = await self._read_json_entry(self.owner_dir(owner), scoped_key(owner, key))
        if value is not None:
            return value
        return await self._migrate_legacy_json(owner, key)

    async def set_json(self, owner: str, key: str, document: Any) -> None:
        """Cache a JSON document for (owner, key)."""
        await self._write_json_entry(self.owner_dir(owner), scoped_key(owner, key), document)

    async def get_blob(self, owner: str, key: str) -> CachedBlob | None:
        """Get a cached blob, migrating a global legacy entry if needed."""
        blob = await self._read_blob_entry(self.owner_dir(owner), scoped_key(owner, key))
        if blob is not None:
            return blob
        return await self._migrate_legacy_blob(owner, key)

    async def set_blob(self, owner: str, key: str, blob: CachedBlob) -> None:
        """Cache a blob for (owner, key)."""
        await self._write_blob_entry(self.owner_dir(owner), scoped_key(owner, key), blob)

    async def delete(self, owner: str, key: str) -> bool:
        """Delete the cached value for (owner, key). Missing entries are a no-op."""
        return await self._delete_entry(self.owner_dir(owner), scoped_key(owner, key))

    # =========================================================================
    # Version markers
    # =========================================================================

    async def get_marker(self, owner: str, key: str) -> str | None:
        value = await self._read_json_entry(self.owner_dir(owner), marker_key(owner, key))
        return value if isinstance(value, str) else None

    async def set_marker(self, owner: str, key: str, marker: str) -> None:
        await self._write_json_entry(self.owner_dir(owner), marker_key(owner, key), marker)

    async def delete_marker(self, owner: str, key: str) -> bool:
        return await self._delete_entry(self.owner_dir(owner), marker_key(owner, key))

    # =========================================================================
    # Bulk removal
    # =========================================================================

    async def list_keys(self, owner: str) -> list[str]:
        """List logical keys with a cached value for an owner."""
        prefix = owner_prefix(owner)
        keys = set()
        for filename in await list_files(self.owner_dir(owner)):
            stem, _, _ = filename.rpartition(".")
            name = unquote(stem)
            if name.startswith(prefix) and not name.endswith(MARKER_SUFFIX):
                keys.add(name[len(prefix):])
        return sorted(keys)

    async def clear_owner(self, owner: str) -> int:
        """Remove every value and marker belonging to an owner.

        Returns:
            Number of files removed
        """
        directory = self.owner_dir(owner)
        removed = len(await list_files(directory))
        await remove_directory(directory)
        return removed

    async def clear_all(self) -> None:
        """Remove every cache entry for every owner."""
        await remove_directory(self.cache_dir)
        await ensure_directory(self.cache_dir)
