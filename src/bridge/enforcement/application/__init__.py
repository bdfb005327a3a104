"""Application layer for the enforcement bounded context."""

from enforcement.application.decision_cache import DecisionCache
from enforcement.application.engine import AuthorizationEngine

__all__ = [
    "AuthorizationEngine",
    "DecisionCache",
]
