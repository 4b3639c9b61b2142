"""Per-entity FIFO serialization of mutating operations."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager


def game_log_key(user_id: str, game_id: int) -> str:
    return f"game_log:{user_id}:{game_id}"


def favorites_key(user_id: str) -> str:
    return f"favorites:{user_id}"


def list_key(list_id: int) -> str:
    return f"list:{list_id}"


class KeyedMutationQueue:
    """Serialize mutations that share an entity key.

    Each key owns an :class:`asyncio.Lock`, whose waiters are woken in arrival
    order, so mutations on one entity settle strictly one after another while
    mutations on unrelated entities proceed concurrently.  Locks are created on
    first use and dropped once nobody holds or waits on them.

    Holding several keys at once acquires them in sorted order; every caller
    shares that order so two multi-key holds can never deadlock.
    """

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._users: dict[str, int] = {}

    def _checkout(self, key: str) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        self._users[key] = self._users.get(key, 0) + 1
        return lock

    def _checkin(self, key: str) -> None:
        remaining = self._users[key] - 1
        if remaining:
            self._users[key] = remaining
        else:
            del self._users[key]
            del self._locks[key]

    @asynccontextmanager
    async def hold(self, *keys: str) -> AsyncIterator[None]:
        acquired: list[str] = []
        try:
            for key in sorted(set(keys)):
                lock = self._checkout(key)
                try:
                    await lock.acquire()
                except BaseException:
                    self._checkin(key)
                    raise
                acquired.append(key)
            yield
        finally:
            for key in reversed(acquired):
                self._locks[key].release()
                self._checkin(key)

    def is_busy(self, key: str) -> bool:
        """Return ``True`` while a mutation holds or waits on ``key``."""

        return key in self._users

    def pending(self, key: str) -> int:
        """Number of mutations holding or queued behind ``key``."""

        return self._users.get(key, 0)


__all__ = [
    "KeyedMutationQueue",
    "favorites_key",
    "game_log_key",
    "list_key",
]
