"""Per-asset locks shared by the reconciler and the upload pipeline."""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager


class KeyLocks:
    """One asyncio.Lock per (owner, key).

    Holding the lock keeps a reconciliation pass from committing older
    remote content over an upload of the same key that is still in
    progress, and keeps two passes for one key from fetching twice.

    A lock only exists while some task holds or waits for it.
    """

    def __init__(self) -> None:
        self._locks: dict[tuple[str, str], asyncio.Lock] = {}
        self._users: dict[tuple[str, str], int] = {}

    @asynccontextmanager
    async def lock(self, owner: str, key: str) -> AsyncIterator[None]:
        owner_key = (owner, key)
        lock = self._locks.setdefault(owner_key, asyncio.Lock())
        self._users[owner_key] = self._users.get(owner_key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[owner_key] -= 1
            if self._users[owner_key] == 0:
                del self._users[owner_key]
                del self._locks[owner_key]

    def locked(self, owner: str, key: str) -> bool:
        lock = self._locks.get((owner, key))
        return lock is not None and lock.locked()

    def __len__(self) -> int:
        return len(self._locks)
