"""Per-line mutual exclusion for section mutations.

Adding or removing a section is a read-modify-write over the whole section set
of a line, so two concurrent mutations of the same line must never interleave.
Mutations of different lines use different locks and never wait on each other.

This registry serializes writers inside one process; the line service also
loads the line row with SELECT ... FOR UPDATE to serialize across processes.
"""

import asyncio
import threading
import weakref
from collections.abc import AsyncGenerator, Hashable
from contextlib import asynccontextmanager

import structlog

logger = structlog.get_logger(__name__)


class KeyedLockRegistry:
    """Hands out one asyncio.Lock per key.

    Locks are held in a WeakValueDictionary, so an entry disappears as soon as
    no coroutine holds or waits on it.
    """

    def __init__(self) -> None:
        self._locks: weakref.WeakValueDictionary[Hashable, asyncio.Lock] = weakref.WeakValueDictionary()
        self._registry_lock = threading.Lock()

    def get(self, key: Hashable) -> asyncio.Lock:
        """Return the lock for key, creating it if needed."""
        with self._registry_lock:
            lock = self._locks.get(key)
            if lock is None:
                lock = asyncio.Lock()
                self._locks[key] = lock
            return lock

    @asynccontextmanager
    async def hold(self, key: Hashable) -> AsyncGenerator[None]:
        """
        Hold the lock for key for the duration of the block.

        Args:
            key: Lock key (a line id)

        Yields:
            None once the lock is acquired
        """
        lock = self.get(key)
        if lock.locked():
            logger.debug("line_lock_contended", key=str(key))
        async with lock:
            yield

    def __len__(self) -> int:
        return len(self._locks)


line_locks = KeyedLockRegistry()
