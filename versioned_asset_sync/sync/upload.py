"""
Upload pipeline.

Saves locally first, then creates a new remote version:

1. Local cache write. Failure raises; local durability is the floor.
2. Remote versioned write, only with a session. Success advances the
   version marker; failure leaves it untouched and the upload is
   reported as local-only. Nothing retries or re-pushes it later.
3. Legacy mirror upsert in the background, after a successful write.
"""

from __future__ import annotations

import logging
import mimetypes
from typing import Any

from ..exceptions import LocalStorageError
from ..identity import IdentityProvider
from ..local.cache import DEFAULT_CONTENT_TYPE, CachedBlob, LocalCache
from ..local.file_ops import encode_json
from ..logging_utils import for_asset
from ..remote.legacy import LegacyMirror
from ..remote.store import RemoteVersionedStore
from ..remote.types import FailureKind, RemoteResult
from .locks import KeyLocks
from .outcomes import UploadOutcome, downgrade_upload

logger = logging.getLogger(__name__)

JSON_CONTENT_TYPE = "application/json"


def safe_filename(filename: str | None, default: str) -> str:
    """Reduce a caller-supplied file name to a single path segment."""
    name = (filename or "").strip().replace("\\", "/").rsplit("/", 1)[-1]
    return name or default


def infer_content_type(content_type: str | None, filename: str | None) -> str:
    if content_type:
        return content_type
    if filename:
        guessed, _ = mimetypes.guess_type(filename)
        if guessed:
            return guessed
    return DEFAULT_CONTENT_TYPE


class UploadPipeline:
    """Local-first writer that creates a new remote version per upload."""

    def __init__(
        self,
        cache: LocalCache,
        store: RemoteVersionedStore,
        mirror: LegacyMirror,
        identity: IdentityProvider,
        locks: KeyLocks | None = None,
    ):
        self.cache = cache
        self.store = store
        self.mirror = mirror
        self.identity = identity
        self.locks = locks or KeyLocks()

    async def upload_blob(
        self,
        owner: str,
        key: str,
        data: bytes,
        content_type: str | None = None,
        filename: str | None = None,
    ) -> UploadOutcome:
        """Save a blob locally and push it as a new remote version.

        Raises:
            LocalStorageError: If the local cache write fails
        """
        content_type = infer_content_type(content_type, filename)
        blob = CachedBlob(data=bytes(data), content_type=content_type)
        return await self._upload(
            owner,
            key,
            payload=blob.data,
            content_type=content_type,
            filename=safe_filename(filename, f"{key}.bin"),
            local_value=blob,
        )

    async def upload_json(self, owner: str, key: str, document: Any) -> UploadOutcome:
        """Save a JSON document locally and push it as a new remote version.

        A None document is stored as an empty object.

        Raises:
            LocalStorageError: If the document cannot be serialized or the
                local cache write fails
        """
        if document is None:
            document = {}
        try:
            payload = encode_json(document)
        except (TypeError, ValueError) as e:
            for_asset(logger, owner, key).error(f"Document is not JSON serializable: {e}")
            raise LocalStorageError("serialize_json", f"{owner}/{key}", e) from e
        return await self._upload(
            owner,
            key,
            payload=payload,
            content_type=JSON_CONTENT_TYPE,
            filename=f"{key}.json",
            local_value=document,
        )

    async def _upload(
        self,
        owner: str,
        key: str,
        payload: bytes,
        content_type: str,
        filename: str,
        local_value: Any,
    ) -> UploadOutcome:
        log = for_asset(logger, owner, key)

        async with self.locks.lock(owner, key):
            try:
                if isinstance(local_value, CachedBlob):
                    await self.cache.set_blob(owner, key, local_value)
                else:
                    await self.cache.set_json(owner, key, local_value)
            except LocalStorageError as e:
                log.error(f"Local save failed: {e}")
                raise

            if not await self.identity.has_session(owner):
                return downgrade_upload(RemoteResult.failed(FailureKind.NO_SESSION), log)

            written = await self.store.write(owner, key, payload, content_type, filename)
            if not written.ok:
                return downgrade_upload(written, log)

            await self.cache.set_marker(owner, key, written.value.path)

        log.info(f"Uploaded new version {written.value.path}")
        self.mirror.upsert(owner, key, payload, content_type)
        return UploadOutcome(marker=written.value.path)
