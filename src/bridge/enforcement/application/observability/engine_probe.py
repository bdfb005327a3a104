"""Domain probe for authorization engine operations.

Following Domain-Oriented Observability patterns, this probe captures
domain-significant events of enforcement, grant/revoke and the shadow-role
lifecycle.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from shared_kernel.authorization.types import Action
    from shared_kernel.observability_context import ObservationContext


def _action_names(actions: Iterable[Action]) -> list[str]:
    return sorted(action.value for action in actions)


class EngineProbe(Protocol):
    """Domain probe for authorization engine operations."""

    def enforce_allowed(self, principal: str, entity: str, actions: Iterable[Action]) -> None:
        """Record that every requested action was allowed."""
        ...

    def enforce_denied(
        self, principal: str, entity: str, denied_actions: Iterable[Action]
    ) -> None:
        """Record that one or more requested actions were denied."""
        ...

    def enforce_bypassed(self, principal: str, entity: str, reason: str) -> None:
        """Record that enforcement was skipped for a privileged user."""
        ...

    def enforce_failed(self, principal: str, entity: str, error: Exception) -> None:
        """Record that enforcement could not reach a decision."""
        ...

    def grant_applied(
        self, principal: str, entity: str, actions: Iterable[Action], role: str
    ) -> None:
        """Record that actions were granted through a role."""
        ...

    def grant_failed(
        self, principal: str, entity: str, actions: Iterable[Action], error: Exception
    ) -> None:
        """Record that a grant failed and was not applied."""
        ...

    def revoke_applied(
        self, principal: str, entity: str, actions: Iterable[Action], role: str
    ) -> None:
        """Record that actions were revoked from a role."""
        ...

    def revoke_failed(
        self, principal: str, entity: str, actions: Iterable[Action], error: Exception
    ) -> None:
        """Record that a revoke failed and was not applied."""
        ...

    def shadow_role_created(self, role: str) -> None:
        """Record that a shadow role was created."""
        ...

    def shadow_role_reused(self, role: str) -> None:
        """Record that a shadow role already existed."""
        ...

    def shadow_role_dropped(self, role: str, reason: str) -> None:
        """Record that a shadow role was dropped."""
        ...

    def shadow_role_retained(self, role: str, remaining_privileges: int) -> None:
        """Record that a shadow role was kept because privileges remain."""
        ...

    def entity_revoked(self, entity: str, dropped_roles: int) -> None:
        """Record that every privilege on an entity was revoked."""
        ...

    def entity_revoke_failed(self, entity: str, error: Exception) -> None:
        """Record that revoking every privilege on an entity failed."""
        ...

    def role_operation_completed(
        self, operation: str, role: str, principal: str | None = None
    ) -> None:
        """Record that an explicit role operation completed."""
        ...

    def role_operation_failed(self, operation: str, role: str, error: Exception) -> None:
        """Record that an explicit role operation failed."""
        ...

    def with_context(self, context: ObservationContext) -> EngineProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultEngineProbe:
    """Default implementation of EngineProbe using structlog."""

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

    def with_context(self, context: ObservationContext) -> DefaultEngineProbe:
        """Create a new probe with observation context bound."""
        return DefaultEngineProbe(logger=self._logger, context=context)

    def enforce_allowed(self, principal: str, entity: str, actions: Iterable[Action]) -> None:
        self._logger.debug(
            "authorization_enforce_allowed",
            principal=principal,
            entity=entity,
            actions=_action_names(actions),
            **self._get_context_kwargs(),
        )

    def enforce_denied(
        self, principal: str, entity: str, denied_actions: Iterable[Action]
    ) -> None:
        self._logger.info(
            "authorization_enforce_denied",
            principal=principal,
            entity=entity,
            denied_actions=_action_names(denied_actions),
            **self._get_context_kwargs(),
        )

    def enforce_bypassed(self, principal: str, entity: str, reason: str) -> None:
        self._logger.debug(
            "authorization_enforce_bypassed",
            principal=principal,
            entity=entity,
            reason=reason,
            **self._get_context_kwargs(),
        )

    def enforce_failed(self, principal: str, entity: str, error: Exception) -> None:
        self._logger.error(
            "authorization_enforce_failed",
            principal=principal,
            entity=entity,
            error=str(error),
            error_type=type(error).__name__,
            **self._get_context_kwargs(),
        )

    def grant_applied(
        self, principal: str, entity: str, actions: Iterable[Action], role: str
    ) -> None:
        self._logger.info(
            "authorization_grant_applied",
            principal=principal,
            entity=entity,
            actions=_action_names(actions),
            role=role,
            **self._get_context_kwargs(),
        )

    def grant_failed(
        self, principal: str, entity: str, actions: Iterable[Action], error: Exception
    ) -> None:
        self._logger.error(
            "authorization_grant_failed",
            principal=principal,
            entity=entity,
            actions=_action_names(actions),
            error=str(error),
            error_type=type(error).__name__,
            **self._get_context_kwargs(),
        )

    def revoke_applied(
        self, principal: str, entity: str, actions: Iterable[Action], role: str
    ) -> None:
        self._logger.info(
            "authorization_revoke_applied",
            principal=principal,
            entity=entity,
            actions=_action_names(actions),
            role=role,
            **self._get_context_kwargs(),
        )

    def revoke_failed(
        self, principal: str, entity: str, actions: Iterable[Action], error: Exception
    ) -> None:
        self._logger.error(
            "authorization_revoke_failed",
            principal=principal,
            entity=entity,
            actions=_action_names(actions),
            error=str(error),
            error_type=type(error).__name__,
            **self._get_context_kwargs(),
        )

    def shadow_role_created(self, role: str) -> None:
        self._logger.debug("shadow_role_created", role=role, **self._get_context_kwargs())

    def shadow_role_reused(self, role: str) -> None:
        self._logger.debug("shadow_role_reused", role=role, **self._get_context_kwargs())

    def shadow_role_dropped(self, role: str, reason: str) -> None:
        self._logger.info(
            "shadow_role_dropped",
            role=role,
            reason=reason,
            **self._get_context_kwargs(),
        )

    def shadow_role_retained(self, role: str, remaining_privileges: int) -> None:
        self._logger.debug(
            "shadow_role_retained",
            role=role,
            remaining_privileges=remaining_privileges,
            **self._get_context_kwargs(),
        )

    def entity_revoked(self, entity: str, dropped_roles: int) -> None:
        self._logger.info(
            "authorization_entity_revoked",
            entity=entity,
            dropped_roles=dropped_roles,
            **self._get_context_kwargs(),
        )

    def entity_revoke_failed(self, entity: str, error: Exception) -> None:
        self._logger.error(
            "authorization_entity_revoke_failed",
            entity=entity,
            error=str(error),
            error_type=type(error).__name__,
            **self._get_context_kwargs(),
        )

    def role_operation_completed(
        self, operation: str, role: str, principal: str | None = None
    ) -> None:
        kwargs: dict[str, Any] = {"operation": operation, "role": role}
        if principal is not None:
            kwargs["principal"] = principal
        self._logger.info(
            "role_operation_completed",
            **kwargs,
            **self._get_context_kwargs(),
        )

    def role_operation_failed(self, operation: str, role: str, error: Exception) -> None:
        self._logger.error(
            "role_operation_failed",
            operation=operation,
            role=role,
            error=str(error),
            error_type=type(error).__name__,
            **self._get_context_kwargs(),
        )
