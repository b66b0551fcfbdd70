"""In-process keyed locks serializing directory units.

Every atomic directory unit takes one lock per user it touches. Keys are
always acquired in sorted order so two units never wait on each other in a
cycle. Locks are dropped once no unit holds or waits for them.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Iterable

from engagetrack.core.logging import get_logger

logger = get_logger(__name__)

# Held by every unit that may remove a SUPER_ADMIN
SUPER_ADMIN_GUARD_KEY = "__super_admin__"


class KeyedLockRegistry:
    """A set of ``asyncio.Lock`` objects addressed by string keys."""

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._users: dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, keys: Iterable[str]) -> AsyncIterator[None]:
        """Acquire the locks for ``keys`` for the duration of the block."""
        ordered = sorted(set(keys))
        for key in ordered:
            self._users[key] = self._users.get(key, 0) + 1
            self._locks.setdefault(key, asyncio.Lock())

        acquired: list[str] = []
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

    def is_held(self, key: str) -> bool:
        lock = self._locks.get(key)
        return lock is not None and lock.locked()

    def __len__(self) -> int:
        return len(self._locks)


# Global registry instance
_lock_registry: KeyedLockRegistry | None = None


def get_lock_registry() -> KeyedLockRegistry:
    """Get the global lock registry shared by all directory instances."""
    global _lock_registry
    if _lock_registry is None:
        _lock_registry = KeyedLockRegistry()
    return _lock_registry
