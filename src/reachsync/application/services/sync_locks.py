"""Per-key single-flight locks for artist syncs."""

import asyncio
from collections.abc import AsyncIterator, Iterable
from contextlib import asynccontextmanager


# Hey future me - two syncs for the same artist (or the same account) would race on the
# delete-then-insert step. Each key gets one asyncio.Lock; a sync holds every key it
# touches. Keys are taken in sorted order so two syncs that share keys can't deadlock.
# Locks are in-process only. Run one API worker per database, or replace this with an
# advisory-lock backed registry when scaling out.
class KeyedLockRegistry:
    """Hands out one asyncio.Lock per key and acquires groups of them safely."""

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._holders: dict[str, int] = {}

    def _lock_for(self, key: str) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    def is_locked(self, key: str) -> bool:
        lock = self._locks.get(key)
        return lock is not None and lock.locked()

    def __len__(self) -> int:
        return len(self._locks)

    @asynccontextmanager
    async def hold(self, keys: Iterable[str]) -> AsyncIterator[None]:
        """Acquire all keys (deduplicated, sorted) and release them on exit."""
        ordered = sorted(set(keys))
        for key in ordered:
            self._holders[key] = self._holders.get(key, 0) + 1

        acquired: list[asyncio.Lock] = []
        try:
            for key in ordered:
                lock = self._lock_for(key)
                await lock.acquire()
                acquired.append(lock)
            yield
        finally:
            for lock in reversed(acquired):
                lock.release()
            for key in ordered:
                self._holders[key] -= 1
                # Drop idle locks so the registry doesn't grow with every artist ever synced
                if self._holders[key] == 0:
                    del self._holders[key]
                    self._locks.pop(key, None)


def sync_lock_keys(account_id: str, external_id: str) -> tuple[str, str]:
    return (f"account:{account_id}", f"artist:{external_id}")
