"""Backing store contract for the alias registry, plus the in-memory store.

Every store exposes one indivisible insert-if-absent primitive. The registry
never checks for existence and then writes; it asks the store to do both at
once and reacts to the boolean result.

Store Contract
==============
::
    insert_if_absent(mapping) ─▶ True   alias was absent, now live
                               └▶ False  alias is live or retired
    delete(alias)           ─▶ True   live → retired
                               └▶ False  nothing live under that alias
    get(alias)              ─▶ UrlMapping | None   (live only)
    list_all()              ─▶ [UrlMapping]         (snapshot, insertion order)

Implementations:
    MemoryAliasStore:  this module, a lock-guarded dict.
    SqlAliasStore:  alias_registry.sql_store, unique constraint + tombstones.
    RedisAliasStore:  alias_registry.redis, Lua scripts + MULTI snapshot.
"""

import threading
from abc import ABC, abstractmethod
from typing import Optional

from alias_registry.schemas import UrlMapping

__all__ = ["AliasStore", "MemoryAliasStore"]


class AliasStore(ABC):
    """Persistence abstraction used by AliasRegistry."""

    @abstractmethod
    async def insert_if_absent(self, mapping: UrlMapping) -> bool:
        """Atomically insert ``mapping`` unless its alias is live or retired."""

    @abstractmethod
    async def get(self, alias: str) -> Optional[UrlMapping]:
        """Return the live mapping for ``alias``."""

    @abstractmethod
    async def delete(self, alias: str) -> bool:
        """Atomically retire a live alias."""

    @abstractmethod
    async def list_all(self) -> list[UrlMapping]:
        """Return a consistent snapshot of live mappings, oldest first."""

    async def ping(self) -> bool:
        return True

    async def close(self) -> None:
        return None


class MemoryAliasStore(AliasStore):
    """Process-local store.

    A ``threading.Lock`` guards every read and write. No coroutine suspends
    while holding it, so the store is safe from an event loop and from a
    thread pool alike.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._live: dict[str, UrlMapping] = {}
        self._retired: set[str] = set()

    async def insert_if_absent(self, mapping: UrlMapping) -> bool:
        with self._lock:
            if mapping.alias in self._live or mapping.alias in self._retired:
                return False
            self._live[mapping.alias] = mapping
            return True

    async def get(self, alias: str) -> Optional[UrlMapping]:
        with self._lock:
            return self._live.get(alias)

    async def delete(self, alias: str) -> bool:
        with self._lock:
            if self._live.pop(alias, None) is None:
                return False
            self._retired.add(alias)
            return True

    async def list_all(self) -> list[UrlMapping]:
        with self._lock:
            return list(self._live.values())
