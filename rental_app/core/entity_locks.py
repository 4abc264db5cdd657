import asyncio
from contextlib import asynccontextmanager
from typing import Dict


class EntityLocks:
    """Per-entity mutual exclusion for operations on one store.

    Keys are taken in sorted order so two operations needing the same pair of
    entities cannot deadlock each other.
    """

    def __init__(self, namespace: str = "entities"):
        self.namespace = namespace
        self._locks: Dict[str, asyncio.Lock] = {}
        self._holders: Dict[str, int] = {}

    def _key(self, key: str) -> str:
        return f"{self.namespace}:{key}"

    @asynccontextmanager
    async def hold(self, *keys: str):
        ordered = sorted({self._key(k) for k in keys})
        registered, acquired = [], []
        try:
            for key in ordered:
                lock = self._locks.setdefault(key, asyncio.Lock())
                self._holders[key] = self._holders.get(key, 0) + 1
                registered.append(key)
                await lock.acquire()
                acquired.append(key)
            yield
        finally:
            for key in reversed(acquired):
                self._locks[key].release()
            for key in reversed(registered):
                self._release_slot(key)

    def _release_slot(self, key: str) -> None:
        self._holders[key] -= 1
        if self._holders[key] == 0:
            del self._holders[key]
            del self._locks[key]
