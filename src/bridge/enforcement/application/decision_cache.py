"""Time- and size-bounded memoization of authorization decisions.

Decisions, including denials, are cached per (principal, entity, action) so
that repeated checks and repeated unauthorized probing do not hit the policy
backend. Entries expire a fixed time after they were written and the least
recently used entry is evicted when the cache is full.
"""

from __future__ import annotations

import threading
import time
from collections import OrderedDict
from collections.abc import Awaitable, Callable

from enforcement.application.observability import (
    DecisionCacheProbe,
    DefaultDecisionCacheProbe,
)
from enforcement.domain.value_objects import CacheKey, Entity

DecisionLoader = Callable[[CacheKey], Awaitable[bool]]


class _CacheEntry:
    __slots__ = ("allowed", "expires_at")

    def __init__(self, allowed: bool, expires_at: float):
        self.allowed = allowed
        self.expires_at = expires_at


class DecisionCache:
    """Loading cache of authorization decisions.

    The underlying map is guarded by a thread lock that is never held while
    awaiting the loader. Concurrent misses for the same key may each call the
    loader; the backend call is side-effect free, so the last result wins.
    A loader failure is propagated and leaves the cache untouched.

    Setting ``max_entries`` to 0 disables caching: every ``get`` calls the
    loader.
    """

    def __init__(
        self,
        loader: DecisionLoader,
        max_entries: int,
        ttl_seconds: float,
        timer: Callable[[], float] = time.monotonic,
        probe: DecisionCacheProbe | None = None,
    ):
        """Initialize the decision cache.

        Args:
            loader: Coroutine function computing a decision on a miss
            max_entries: Size bound; 0 disables caching
            ttl_seconds: Expire-after-write duration
            timer: Monotonic clock, replaceable in tests
            probe: Optional domain probe for observability

        Raises:
            ValueError: If max_entries is negative or ttl_seconds not positive
        """
        if max_entries < 0:
            raise ValueError(f"max_entries must be >= 0, got {max_entries}")
        if ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be > 0, got {ttl_seconds}")

        self._loader = loader
        self._max_entries = max_entries
        self._ttl_seconds = ttl_seconds
        self._timer = timer
        self._probe = probe or DefaultDecisionCacheProbe()
        self._lock = threading.Lock()
        self._entries: OrderedDict[CacheKey, _CacheEntry] = OrderedDict()

    @property
    def enabled(self) -> bool:
        return self._max_entries > 0

    @property
    def max_entries(self) -> int:
        return self._max_entries

    @property
    def ttl_seconds(self) -> float:
        return self._ttl_seconds

    async def get(self, key: CacheKey) -> bool:
        """Return the decision for a key, loading and storing it on a miss."""
        if self.enabled:
            cached = self._lookup(key)
            if cached is not None:
                self._probe.cache_hit(key, cached)
                return cached
            self._probe.cache_miss(key)

        try:
            allowed = await self._loader(key)
        except Exception as e:
            self._probe.cache_load_failed(key, e)
            raise

        if self.enabled:
            self._store(key, allowed)
        return allowed

    def invalidate(self, key: CacheKey) -> bool:
        """Remove a single entry. Returns True if an entry was removed."""
        with self._lock:
            return self._entries.pop(key, None) is not None

    def invalidate_entity(self, entity: Entity) -> int:
        """Remove every entry whose key refers to the given entity.

        This is a linear scan, bounded by ``max_entries``.

        Returns:
            Number of entries removed
        """
        with self._lock:
            stale = [key for key in self._entries if key.entity == entity]
            for key in stale:
                del self._entries[key]

        self._probe.entries_invalidated(str(entity), len(stale))
        return len(stale)

    def invalidate_subtree(self, entity: Entity) -> int:
        """Remove every entry for the given entity or any of its descendants.

        Privileges are inherited down the hierarchy, so a change on an entity
        can flip cached decisions on everything below it.

        Returns:
            Number of entries removed
        """
        with self._lock:
            stale = [
                key
                for key in self._entries
                if key.entity == entity or key.entity.is_descendant_of(entity)
            ]
            for key in stale:
                del self._entries[key]

        self._probe.entries_invalidated(str(entity), len(stale))
        return len(stale)

    def clear(self) -> int:
        """Remove every entry. Returns the number of entries removed."""
        with self._lock:
            count = len(self._entries)
            self._entries.clear()

        self._probe.cache_cleared(count)
        return count

    def as_dict(self) -> dict[CacheKey, bool]:
        """Return a snapshot of the unexpired entries."""
        with self._lock:
            self._prune_expired_unlocked()
            return {key: entry.allowed for key, entry in self._entries.items()}

    def __len__(self) -> int:
        with self._lock:
            self._prune_expired_unlocked()
            return len(self._entries)

    def _lookup(self, key: CacheKey) -> bool | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._timer() >= entry.expires_at:
                del self._entries[key]
                return None
            self._entries.move_to_end(key)
            return entry.allowed

    def _store(self, key: CacheKey, allowed: bool) -> None:
        evicted: list[CacheKey] = []
        with self._lock:
            self._entries[key] = _CacheEntry(allowed, self._timer() + self._ttl_seconds)
            self._entries.move_to_end(key)
            if len(self._entries) > self._max_entries:
                self._prune_expired_unlocked()
            while len(self._entries) > self._max_entries:
                evicted_key, _ = self._entries.popitem(last=False)
                evicted.append(evicted_key)

        for evicted_key in evicted:
            self._probe.entry_evicted(evicted_key)

    def _prune_expired_unlocked(self) -> None:
        now = self._timer()
        expired = [key for key, entry in self._entries.items() if now >= entry.expires_at]
        for key in expired:
            del self._entries[key]
