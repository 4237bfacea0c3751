"""
AssetStore: the caller-facing API.

Wires the local cache, the remote versioned store, the legacy mirror
and the sync components together behind per-owner operations. The
local cache is always the source of truth for reads; remote steps are
attempted only when the identity provider reports a session for the
owner, and their failures are logged rather than raised.

Example:
    async with await AssetStore.create(AssetSyncConfig.from_env(), identity) as store:
        layout = await store.load_local(owner, menu_layout_key("en"), AssetKind.JSON)
        outcome = await store.load_and_reconcile(owner, menu_layout_key("en"), AssetKind.JSON)
        if outcome.updated:
            layout = outcome.data
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from .config import AssetSyncConfig
from .identity import IdentityProvider
from .keys import validate_key, validate_owner, version_folder
from .local.cache import CachedBlob, LocalCache
from .local.file_ops import ensure_directory
from .logging_utils import for_asset
from .remote.backend import ObjectStorageBackend
from .remote.factory import create_backend
from .remote.legacy import LegacyMirror
from .remote.store import RemoteVersionedStore
from .remote.types import RemovalReport, VersionClock
from .sync.locks import KeyLocks
from .sync.outcomes import AssetKind, CancellationToken, SyncOutcome, UploadOutcome
from .sync.reconciler import RemoteDiffCallback, VersionReconciler
from .sync.signed_access import SignedAccessProvider
from .sync.upload import UploadPipeline

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LatestVersion:
    """Newest remote content known for a key.

    Attributes:
        version: Version marker, as stored locally after a successful pull
        path: Object path holding the content
        legacy: True when the content only exists at the legacy fixed path
    """

    version: str
    path: str
    legacy: bool = False


class AssetStore:
    """Local-first store for an owner's versioned assets."""

    def __init__(
        self,
        cache: LocalCache,
        backend: ObjectStorageBackend,
        identity: IdentityProvider,
        legacy_mirror_enabled: bool = True,
        default_signed_url_ttl: int | None = None,
        max_signed_url_ttl: int | None = None,
        clock: VersionClock | None = None,
    ):
        """Initialize the store from its parts.

        Args:
            cache: On-device cache
            backend: Object storage backend for versioned folders and legacy paths
            identity: Session provider; no session means local-cache-only
            legacy_mirror_enabled: Maintain and read the legacy fixed path
            default_signed_url_ttl: Signed URL lifetime when none is requested
            max_signed_url_ttl: Upper bound for requested lifetimes
            clock: Version timestamp source
        """
        self.cache = cache
        self.backend = backend
        self.identity = identity
        self.store = RemoteVersionedStore(backend, clock)
        self.mirror = LegacyMirror(backend, enabled=legacy_mirror_enabled)
        self.locks = KeyLocks()
        self.reconciler = VersionReconciler(cache, self.store, self.mirror, identity, self.locks)
        self.uploads = UploadPipeline(cache, self.store, self.mirror, identity, self.locks)

        signed_kwargs = {}
        if default_signed_url_ttl is not None:
            signed_kwargs["default_ttl"] = default_signed_url_ttl
        if max_signed_url_ttl is not None:
            signed_kwargs["max_ttl"] = max_signed_url_ttl
        self.signed_access = SignedAccessProvider(self.store, self.mirror, identity, **signed_kwargs)

    @classmethod
    async def create(
        cls,
        config: AssetSyncConfig,
        identity: IdentityProvider,
        backend: ObjectStorageBackend | None = None,
        clock: VersionClock | None = None,
    ) -> AssetStore:
        """Create a store from configuration.

        Args:
            config: Asset sync configuration
            identity: Session provider
            backend: Backend to use instead of the one described by config

        Raises:
            LocalStorageError: If the cache directory cannot be created
            AuthenticationError: If Azure settings are incomplete
        """
        await ensure_directory(config.cache_dir)
        if backend is None:
            backend = create_backend(
                config.container_name,
                storage_type=config.storage_type,
                azure_config=config.storage,
            )
        return cls(
            cache=LocalCache(config.cache_dir),
            backend=backend,
            identity=identity,
            legacy_mirror_enabled=config.legacy_mirror_enabled,
            default_signed_url_ttl=config.default_signed_url_ttl,
            max_signed_url_ttl=config.max_signed_url_ttl,
            clock=clock,
        )

    # =========================================================================
    # Reads
    # =========================================================================

    async def load_local(self, owner: str, key: str, kind: AssetKind) -> CachedBlob | Any | None:
        """Return the cached value for (owner, key) without touching the network."""
        validate_owner(owner)
        validate_key(key)
        if kind is AssetKind.BLOB:
            return await self.cache.get_blob(owner, key)
        return await self.cache.get_json(owner, key)

    async def load_and_reconcile(
        self,
        owner: str,
        key: str,
        kind: AssetKind,
        on_remote_diff: RemoteDiffCallback | None = None,
        cancel: CancellationToken | None = None,
    ) -> SyncOutcome:
        """Pull a newer remote version of (owner, key) into the cache, if any.

        Returns:
            SyncOutcome whose data is the new value when updated is True
        """
        validate_owner(owner)
        validate_key(key)
        return await self.reconciler.reconcile(owner, key, kind, on_remote_diff, cancel)

    async def get_latest_version(self, owner: str, key: str) -> LatestVersion | None:
        """Return the newest remote version marker without fetching content."""
        validate_owner(owner)
        validate_key(key)
        if not await self.identity.has_session(owner):
            return None

        latest = await self.store.list_latest(owner, key)
        if latest.ok:
            return LatestVersion(version=latest.value.path, path=latest.value.path)

        legacy = await self.mirror.stat(owner, key)
        if legacy.ok:
            return LatestVersion(
                version=self.mirror.marker_for(legacy.value),
                path=legacy.value.key,
                legacy=True,
            )
        return None

    async def get_streamable_url(
        self, owner: str, key: str, ttl_seconds: int | None = None
    ) -> str | None:
        """Return a short-lived URL for streaming the newest content, or None."""
        validate_owner(owner)
        validate_key(key)
        return await self.signed_access.get_streamable_url(owner, key, ttl_seconds)

    # =========================================================================
    # Writes
    # =========================================================================

    async def save_blob(
        self,
        owner: str,
        key: str,
        data: bytes,
        content_type: str | None = None,
        filename: str | None = None,
    ) -> UploadOutcome:
        """Save a blob locally, then push it as a new remote version."""
        validate_owner(owner)
        validate_key(key)
        return await self.uploads.upload_blob(owner, key, data, content_type, filename)

    async def save_json(self, owner: str, key: str, document: Any) -> UploadOutcome:
        """Save a JSON document locally, then push it as a new remote version."""
        validate_owner(owner)
        validate_key(key)
        return await self.uploads.upload_json(owner, key, document)

    # =========================================================================
    # Removal
    # =========================================================================

    async def remove_key(self, owner: str, key: str) -> RemovalReport | None:
        """Delete a key locally, then best-effort remotely.

        Remote removal covers every version and the legacy object.

        Returns:
            RemovalReport for the remote side, or None without a session
        """
        validate_owner(owner)
        validate_key(key)
        log = for_asset(logger, owner, key)

        async with self.locks.lock(owner, key):
            await self.cache.delete(owner, key)
            await self.cache.delete_marker(owner, key)

            if not await self.identity.has_session(owner):
                log.debug("No session; removed locally only")
                return None

            report = await self.store.remove_prefix(
                f"{version_folder(owner, key)}/",
                extra_paths=[self.mirror.path_for(owner, key)],
            )
        if not report.success:
            log.warning(f"Remote removal incomplete: {sorted(report.failed)}")
        return report

    async def reset_all_for_owner(self, owner: str) -> RemovalReport | None:
        """Delete every cached value and marker of an owner, then best-effort remotely.

        Returns:
            RemovalReport for the remote side, or None without a session
        """
        validate_owner(owner)
        removed = await self.cache.clear_owner(owner)
        logger.info(f"Cleared {removed} local cache files", extra={"owner": owner})

        if not await self.identity.has_session(owner):
            return None

        report = await self.store.remove_prefix(f"{owner}/")
        if not report.success:
            logger.warning(
                f"Remote reset incomplete: {sorted(report.failed)}", extra={"owner": owner}
            )
        return report

    async def clear_all_local(self) -> None:
        """Wipe the local cache for every owner. Remote data is untouched."""
        await self.cache.clear_all()

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def aclose(self) -> None:
        """Wait for pending legacy mirror writes and release the backend."""
        await self.mirror.drain()
        await self.backend.close()

    async def __aenter__(self) -> AssetStore:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()
