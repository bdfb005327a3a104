"""Exceptions for the enforcement bounded context.

These exceptions represent the errors callers of the authorization engine
and implementers of the policy backend port agree on. Expected outcomes
(an unauthorized request, a role race) and programmer errors (an unsupported
entity type, a wrong principal kind) are kept apart so callers can decide
what to surface and what to treat as a bug.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from enforcement.domain.value_objects import Entity
    from shared_kernel.authorization.types import Action, Principal


class AuthorizationBridgeError(Exception):
    """Base exception for authorization bridge errors."""

    pass


class UnauthorizedError(AuthorizationBridgeError):
    """Raised when a principal is denied one or more requested actions.

    This is an expected outcome, not a bug. The exception carries the
    precise set of denied actions so callers can report them individually.
    """

    def __init__(
        self,
        principal: Principal,
        entity: Entity,
        denied_actions: Iterable[Action],
    ):
        self.principal = principal
        self.entity = entity
        self.denied_actions = frozenset(denied_actions)
        denied = ", ".join(sorted(action.value.upper() for action in self.denied_actions))
        super().__init__(
            f"Principal '{principal}' is not authorized to perform "
            f"{denied} on entity '{entity}'"
        )


class UnsupportedEntityTypeError(AuthorizationBridgeError):
    """Raised when an entity type has no entry in the resource level table.

    This is a programmer or configuration error and is never retried.
    """

    def __init__(self, entity_type: object):
        self.entity_type = entity_type
        super().__init__(f"Unsupported entity type: {entity_type!r}")


class RoleNotFoundError(AuthorizationBridgeError):
    """Raised by a policy backend when the named role does not exist."""

    def __init__(self, role: str):
        self.role = role
        super().__init__(f"Role '{role}' not found")


class RoleAlreadyExistsError(AuthorizationBridgeError):
    """Raised by a policy backend when creating a role that already exists."""

    def __init__(self, role: str):
        self.role = role
        super().__init__(f"Role '{role}' already exists")


class ReservedRoleNameError(AuthorizationBridgeError):
    """Raised when a caller tries to manage a role using the shadow-role marker.

    Shadow roles are owned by the engine; user-created roles may not share
    their naming scheme.
    """

    def __init__(self, role: str):
        self.role = role
        super().__init__(f"Role name '{role}' uses the reserved shadow-role prefix")


class BackendUnavailableError(AuthorizationBridgeError):
    """Raised by a policy backend when it cannot be reached.

    Surfaced to the caller as-is; retry policy belongs to the backend client.
    """

    pass


class InvalidPrincipalKindError(AuthorizationBridgeError):
    """Raised when an operation is invoked with a principal kind it cannot serve."""

    def __init__(self, principal: Principal, operation: str):
        self.principal = principal
        self.operation = operation
        super().__init__(
            f"Operation '{operation}' does not support principal '{principal}' "
            f"of kind '{principal.kind}'"
        )


class UnsupportedOperationError(AuthorizationBridgeError):
    """Raised by a policy backend that cannot perform the requested operation."""

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(f"Operation '{operation}' is not supported by this policy backend")
