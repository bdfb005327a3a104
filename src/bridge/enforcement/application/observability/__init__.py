"""Observability for enforcement application services."""

from enforcement.application.observability.decision_cache_probe import (
    DecisionCacheProbe,
    DefaultDecisionCacheProbe,
)
from enforcement.application.observability.engine_probe import (
    DefaultEngineProbe,
    EngineProbe,
)

__all__ = [
    "DecisionCacheProbe",
    "DefaultDecisionCacheProbe",
    "DefaultEngineProbe",
    "EngineProbe",
]
