"""
Signed access to remote assets.

Issues short-lived read URLs so large media can be streamed straight
from object storage without passing through the local cache. URLs are
built on every call and never cached here.
"""

from __future__ import annotations

import logging

from ..identity import IdentityProvider
from ..logging_utils import for_asset
from ..remote.legacy import LegacyMirror
from ..remote.store import RemoteVersionedStore

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 30 * 60
MAX_TTL_SECONDS = 7 * 24 * 60 * 60


class SignedAccessProvider:
    """Resolves a streamable URL: latest version, then the legacy path."""

    def __init__(
        self,
        store: RemoteVersionedStore,
        mirror: LegacyMirror,
        identity: IdentityProvider,
        default_ttl: int = DEFAULT_TTL_SECONDS,
        max_ttl: int = MAX_TTL_SECONDS,
    ):
        self.store = store
        self.mirror = mirror
        self.identity = identity
        self.default_ttl = default_ttl
        self.max_ttl = max_ttl

    def _clamp_ttl(self, ttl_seconds: int | None) -> int:
        ttl = self.default_ttl if ttl_seconds is None else int(ttl_seconds)
        return max(1, min(ttl, self.max_ttl))

    async def get_streamable_url(
        self, owner: str, key: str, ttl_seconds: int | None = None
    ) -> str | None:
        """Return a signed URL for the newest content of (owner, key), or None."""
        log = for_asset(logger, owner, key)
        if not await self.identity.has_session(owner):
            log.debug("No session; signed URL unavailable")
            return None

        ttl = self._clamp_ttl(ttl_seconds)

        latest = await self.store.list_latest(owner, key)
        if latest.ok:
            signed = await self.store.signed_url(latest.value.path, ttl)
            if signed.ok:
                return signed.value
            log.warning(f"Could not sign {latest.value.path}: {signed.failure.value}")

        if self.mirror.enabled:
            signed = await self.mirror.signed_url(owner, key, ttl)
            if signed.ok:
                return signed.value
            log.debug(f"No legacy object to sign: {signed.failure.value}")

        return None
