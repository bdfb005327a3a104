"""Domain probe for the authorization decision cache.

Following Domain-Oriented Observability patterns, this probe captures cache
hits, misses, evictions and invalidations without exposing logging details
to the cache itself.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from enforcement.domain.value_objects import CacheKey
    from shared_kernel.observability_context import ObservationContext


class DecisionCacheProbe(Protocol):
    """Domain probe for decision cache operations."""

    def cache_hit(self, key: CacheKey, allowed: bool) -> None:
        """Record that a decision was served from the cache."""
        ...

    def cache_miss(self, key: CacheKey) -> None:
        """Record that a decision had to be loaded from the backend."""
        ...

    def cache_load_failed(self, key: CacheKey, error: Exception) -> None:
        """Record that loading a decision failed and nothing was cached."""
        ...

    def entry_evicted(self, key: CacheKey) -> None:
        """Record that the least recently used entry was evicted."""
        ...

    def entries_invalidated(self, entity: str, count: int) -> None:
        """Record that entries for an entity were invalidated."""
        ...

    def cache_cleared(self, count: int) -> None:
        """Record that every entry was dropped."""
        ...

    def with_context(self, context: ObservationContext) -> DecisionCacheProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultDecisionCacheProbe:
    """Default implementation of DecisionCacheProbe using structlog."""

    def __init__(
        self,
        logger: structlog.stdlib.BoundLogger | None = None,
        context: ObservationContext | None = None,
    ):
        self._logger = logger or structlog.get_logger()
        self._context = context

    def _get_context_kwargs(self) -> dict[str, Any]:
        """Get context metadata as kwargs for logging."""
        if self._context is None:
            return {}
        return self._context.as_dict()

    @staticmethod
    def _key_kwargs(key: CacheKey) -> dict[str, Any]:
        return {
            "principal": str(key.principal),
            "entity": str(key.entity),
            "action": key.action.value,
        }

    def with_context(self, context: ObservationContext) -> DefaultDecisionCacheProbe:
        """Create a new probe with observation context bound."""
        return DefaultDecisionCacheProbe(logger=self._logger, context=context)

    def cache_hit(self, key: CacheKey, allowed: bool) -> None:
        self._logger.debug(
            "decision_cache_hit",
            allowed=allowed,
            **self._key_kwargs(key),
            **self._get_context_kwargs(),
        )

    def cache_miss(self, key: CacheKey) -> None:
        self._logger.debug(
            "decision_cache_miss",
            **self._key_kwargs(key),
            **self._get_context_kwargs(),
        )

    def cache_load_failed(self, key: CacheKey, error: Exception) -> None:
        self._logger.error(
            "decision_cache_load_failed",
            error=str(error),
            error_type=type(error).__name__,
            **self._key_kwargs(key),
            **self._get_context_kwargs(),
        )

    def entry_evicted(self, key: CacheKey) -> None:
        self._logger.debug(
            "decision_cache_entry_evicted",
            **self._key_kwargs(key),
            **self._get_context_kwargs(),
        )

    def entries_invalidated(self, entity: str, count: int) -> None:
        self._logger.info(
            "decision_cache_entries_invalidated",
            entity=entity,
            count=count,
            **self._get_context_kwargs(),
        )

    def cache_cleared(self, count: int) -> None:
        self._logger.info(
            "decision_cache_cleared",
            count=count,
            **self._get_context_kwargs(),
        )
