"""
Version reconciler.

Pulls remote changes into the local cache for one asset at a time:

    IDLE -> CHECKING_REMOTE -> COMPARING_VERSION -> NOTIFYING_CALLER
         -> FETCHING -> COMMITTING

The common case (local marker equals the remote latest path) costs a
single listing call and no content transfer. Content is only fetched
when the markers differ, and is committed before the marker advances.
"""

from __future__ import annotations

import inspect
import json
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from ..identity import IdentityProvider
from ..local.cache import CachedBlob, LocalCache
from ..logging_utils import for_asset
from ..remote.legacy import LegacyMirror
from ..remote.store import RemoteVersionedStore
from ..remote.types import FailureKind, RemoteResult, StoredObject
from .locks import KeyLocks
from .outcomes import AssetKind, CancellationToken, SyncOutcome, SyncState, downgrade

logger = logging.getLogger(__name__)

RemoteDiffCallback = Callable[[], Awaitable[None] | None]


def decode(kind: AssetKind, stored: StoredObject) -> RemoteResult[Any]:
    """Decode fetched bytes into the value cached for kind.

    A JSON null is cached as an empty object, as uploads store it.
    """
    if kind is AssetKind.BLOB:
        return RemoteResult.success(CachedBlob(data=stored.content, content_type=stored.content_type))
    try:
        document = json.loads(stored.content.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        return RemoteResult.failed(FailureKind.MALFORMED, str(e))
    return RemoteResult.success({} if document is None else document)


class VersionReconciler:
    """Remote-to-local reconciliation for individual assets.

    Passes for the same (owner, key) are serialized; passes for
    different keys run concurrently.
    """

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
        self._states: dict[tuple[str, str], SyncState] = {}

    def state_of(self, owner: str, key: str) -> SyncState:
        """Current state of the pass for (owner, key), IDLE if none is running."""
        return self._states.get((owner, key), SyncState.IDLE)

    def _enter(self, owner: str, key: str, state: SyncState) -> None:
        self._states[(owner, key)] = state

    async def reconcile(
        self,
        owner: str,
        key: str,
        kind: AssetKind,
        on_remote_diff: RemoteDiffCallback | None = None,
        cancel: CancellationToken | None = None,
    ) -> SyncOutcome:
        """Run one reconciliation pass.

        Args:
            owner: Asset owner
            key: Logical asset key
            kind: Whether the asset is a blob or a JSON document
            on_remote_diff: Called once, before fetching, when remote content differs
            cancel: Token the requester can set to abandon the pass

        Returns:
            SyncOutcome with updated=True and the new value only if content was committed

        Raises:
            LocalStorageError: If the local cache cannot be read or written
        """
        async with self.locks.lock(owner, key):
            try:
                return await self._run(owner, key, kind, on_remote_diff, cancel or CancellationToken())
            finally:
                self._states.pop((owner, key), None)

    async def _run(
        self,
        owner: str,
        key: str,
        kind: AssetKind,
        on_remote_diff: RemoteDiffCallback | None,
        cancel: CancellationToken,
    ) -> SyncOutcome:
        log = for_asset(logger, owner, key)

        if not await self.identity.has_session(owner):
            return downgrade(RemoteResult.failed(FailureKind.NO_SESSION), log, SyncState.IDLE)
        if cancel.cancelled:
            return self._abandoned(log, SyncState.IDLE)

        self._enter(owner, key, SyncState.CHECKING_REMOTE)
        latest = await self.store.list_latest(owner, key)
        if cancel.cancelled:
            return self._abandoned(log, SyncState.CHECKING_REMOTE)

        legacy = False
        if latest.ok:
            remote_marker = latest.value.path
        else:
            if not self.mirror.enabled:
                return downgrade(latest, log, SyncState.CHECKING_REMOTE)
            legacy_info = await self.mirror.stat(owner, key)
            if cancel.cancelled:
                return self._abandoned(log, SyncState.CHECKING_REMOTE)
            if not legacy_info.ok:
                return downgrade(latest, log, SyncState.CHECKING_REMOTE)
            remote_marker = self.mirror.marker_for(legacy_info.value)
            legacy = True

        self._enter(owner, key, SyncState.COMPARING_VERSION)
        local_marker = await self.cache.get_marker(owner, key)
        if cancel.cancelled:
            return self._abandoned(log, SyncState.COMPARING_VERSION)
        if local_marker == remote_marker:
            return SyncOutcome(updated=False, version=remote_marker, stage=SyncState.COMPARING_VERSION)

        self._enter(owner, key, SyncState.NOTIFYING_CALLER)
        if on_remote_diff is not None:
            result = on_remote_diff()
            if inspect.isawaitable(result):
                await result
        if cancel.cancelled:
            return self._abandoned(log, SyncState.NOTIFYING_CALLER)

        self._enter(owner, key, SyncState.FETCHING)
        if legacy:
            fetched = await self.mirror.read(owner, key)
        else:
            fetched = await self.store.read(remote_marker)
        if cancel.cancelled:
            return self._abandoned(log, SyncState.FETCHING)
        if not fetched.ok:
            # The listed object vanished before it could be read
            return downgrade(fetched, log, SyncState.FETCHING, version=remote_marker)

        decoded = decode(kind, fetched.value)
        if not decoded.ok:
            return downgrade(decoded, log, SyncState.FETCHING, version=remote_marker)

        if legacy:
            remote_marker = self.mirror.marker_for(fetched.value.info)

        self._enter(owner, key, SyncState.COMMITTING)
        if kind is AssetKind.BLOB:
            await self.cache.set_blob(owner, key, decoded.value)
        else:
            await self.cache.set_json(owner, key, decoded.value)
        await self.cache.set_marker(owner, key, remote_marker)
        log.info(f"Pulled remote version {remote_marker}")

        if not legacy:
            self.mirror.upsert(owner, key, fetched.value.content, fetched.value.content_type)

        return SyncOutcome(
            updated=True,
            data=decoded.value,
            version=remote_marker,
            stage=SyncState.COMMITTING,
        )

    @staticmethod
    def _abandoned(log: logging.LoggerAdapter, stage: SyncState) -> SyncOutcome:
        log.debug(f"Reconciliation abandoned during {stage.value}")
        return SyncOutcome(updated=False, stage=stage, cancelled=True)
