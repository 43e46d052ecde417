"""Per-key asyncio locks for check-then-write critical sections."""

import asyncio
from collections.abc import AsyncIterator, Hashable
from contextlib import asynccontextmanager


class KeyedLock:
    """A family of ``asyncio.Lock`` objects addressed by key.

    Locks are created on first use and dropped once nobody holds or waits on
    them. Several keys can be taken at once; they are always acquired in
    sorted order so two callers asking for overlapping key sets cannot
    deadlock.
    """

    def __init__(self) -> None:
        self._locks: dict[Hashable, asyncio.Lock] = {}
        self._users: dict[Hashable, int] = {}

    def __len__(self) -> int:
        return len(self._locks)

    @asynccontextmanager
    async def acquire(self, *keys: Hashable) -> AsyncIterator[None]:
        """Hold the locks for ``keys`` for the duration of the block."""
        ordered = sorted(set(keys), key=repr)
        for key in ordered:
            self._users[key] = self._users.get(key, 0) + 1
            self._locks.setdefault(key, asyncio.Lock())

        acquired: list[Hashable] = []
        try:
            for key in ordered:
                await self._locks[key].acquire()
                acquired.append(key)
            yield
        finally:
            for key in reversed(acquired):
                self._locks[key].release()
            for key in ordered:
                self._users[key] -= 1
                if self._users[key] == 0:
                    del self._users[key]
                    del self._locks[key]
