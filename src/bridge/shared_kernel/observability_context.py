"""Observation context for domain-oriented observability.

Observation contexts collect and manage contextual metadata for instrumentation,
following the Domain Oriented Observability pattern.

See: https://martinfowler.com/articles/domain-oriented-observability.html
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any


@dataclass(frozen=True)
class ObservationContext:
    """Immutable context containing metadata for observability.

    Captures request-scoped metadata that should be included with all
    instrumentation events, so that an enforcement decision can be correlated
    with the caller request that triggered it.

    Attributes:
        request_id: Unique identifier for the current request/operation.
        requesting_user: Name of the user invoking the operation (if known).
        instance_name: Root path segment of the instance being authorized.
        extra: Additional contextual metadata.

    Example:
        context = ObservationContext(
            request_id="req-123",
            requesting_user="alice",
            instance_name="cdap",
        )
        probe = DefaultEngineProbe().with_context(context)
    """

    request_id: str | None = None
    requesting_user: str | None = None
    instance_name: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def as_dict(self) -> dict[str, Any]:
        """Convert context to a dictionary for logging.

        Only includes non-None values to keep logs clean.
        """
        result: dict[str, Any] = {}
        if self.request_id is not None:
            result["request_id"] = self.request_id
        if self.requesting_user is not None:
            result["requesting_user"] = self.requesting_user
        if self.instance_name is not None:
            result["instance_name"] = self.instance_name
        result.update(self.extra)
        return result

    def with_instance(self, instance_name: str) -> ObservationContext:
        """Create a new context with the instance name set."""
        return replace(self, instance_name=instance_name)

    def with_extra(self, **kwargs: Any) -> ObservationContext:
        """Create a new context with additional metadata."""
        return replace(self, extra={**self.extra, **kwargs})
