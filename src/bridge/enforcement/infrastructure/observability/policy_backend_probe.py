"""Domain probe for policy backend operations.

Following Domain-Oriented Observability patterns, this probe captures
domain-significant events related to authorization checks, role lifecycle and
privilege writes inside a policy backend implementation.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from shared_kernel.authorization.types import Action
    from shared_kernel.observability_context import ObservationContext


class PolicyBackendProbe(Protocol):
    """Domain probe for policy backend operations."""

    def role_created(self, role: str) -> None:
        """Record that a role was created."""
        ...

    def role_dropped(self, role: str) -> None:
        """Record that a role was dropped."""
        ...

    def principal_attached(self, role: str, principal: str) -> None:
        """Record that a principal became a member of a role."""
        ...

    def principal_detached(self, role: str, principal: str) -> None:
        """Record that a principal was removed from a role."""
        ...

    def privileges_granted(self, resource: str, role: str, actions: Iterable[Action]) -> None:
        """Record that actions on a resource were granted to a role."""
        ...

    def privileges_revoked(self, resource: str, role: str, actions: Iterable[Action]) -> None:
        """Record that actions on a resource were revoked from a role."""
        ...

    def resource_cleared(self, resource: str, roles_affected: int) -> None:
        """Record that every privilege on a resource was revoked."""
        ...

    def authorization_checked(
        self,
        principal: str,
        resource: str,
        action: Action,
        granted: bool,
    ) -> None:
        """Record that an authorization decision was made."""
        ...

    def operation_rejected(self, operation: str) -> None:
        """Record that the backend rejected an unsupported operation."""
        ...

    def with_context(self, context: ObservationContext) -> PolicyBackendProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultPolicyBackendProbe:
    """Default implementation of PolicyBackendProbe using structlog."""

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

    def with_context(self, context: ObservationContext) -> DefaultPolicyBackendProbe:
        """Create a new probe with observation context bound."""
        return DefaultPolicyBackendProbe(logger=self._logger, context=context)

    def role_created(self, role: str) -> None:
        """Record that a role was created."""
        self._logger.info(
            "policy_backend_role_created",
            role=role,
            **self._get_context_kwargs(),
        )

    def role_dropped(self, role: str) -> None:
        """Record that a role was dropped."""
        self._logger.info(
            "policy_backend_role_dropped",
            role=role,
            **self._get_context_kwargs(),
        )

    def principal_attached(self, role: str, principal: str) -> None:
        """Record that a principal became a member of a role."""
        self._logger.info(
            "policy_backend_principal_attached",
            role=role,
            principal=principal,
            **self._get_context_kwargs(),
        )

    def principal_detached(self, role: str, principal: str) -> None:
        """Record that a principal was removed from a role."""
        self._logger.info(
            "policy_backend_principal_detached",
            role=role,
            principal=principal,
            **self._get_context_kwargs(),
        )

    def privileges_granted(self, resource: str, role: str, actions: Iterable[Action]) -> None:
        """Record that actions on a resource were granted to a role."""
        self._logger.info(
            "policy_backend_privileges_granted",
            resource=resource,
            role=role,
            actions=sorted(action.value for action in actions),
            **self._get_context_kwargs(),
        )

    def privileges_revoked(self, resource: str, role: str, actions: Iterable[Action]) -> None:
        """Record that actions on a resource were revoked from a role."""
        self._logger.info(
            "policy_backend_privileges_revoked",
            resource=resource,
            role=role,
            actions=sorted(action.value for action in actions),
            **self._get_context_kwargs(),
        )

    def resource_cleared(self, resource: str, roles_affected: int) -> None:
        """Record that every privilege on a resource was revoked."""
        self._logger.info(
            "policy_backend_resource_cleared",
            resource=resource,
            roles_affected=roles_affected,
            **self._get_context_kwargs(),
        )

    def authorization_checked(
        self,
        principal: str,
        resource: str,
        action: Action,
        granted: bool,
    ) -> None:
        """Record that an authorization decision was made."""
        self._logger.debug(
            "policy_backend_authorization_checked",
            principal=principal,
            resource=resource,
            action=action.value,
            granted=granted,
            **self._get_context_kwargs(),
        )

    def operation_rejected(self, operation: str) -> None:
        """Record that the backend rejected an unsupported operation."""
        self._logger.warning(
            "policy_backend_operation_rejected",
            operation=operation,
            **self._get_context_kwargs(),
        )
