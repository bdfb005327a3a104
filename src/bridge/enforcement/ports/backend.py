"""Policy backend and identity provider protocols.

Defines the interfaces the engine consumes, allowing for swappable
implementations (a Sentry-style role store, an authorize-only binding,
in-memory fakes for tests).
"""

from __future__ import annotations

from collections.abc import Set
from typing import Protocol

from enforcement.domain.value_objects import Privilege, ResourcePath
from shared_kernel.authorization.types import Action, Principal


class PolicyBackendClient(Protocol):
    """Protocol for role-based policy backends.

    Implementations own all persisted authorization state. Grants are only
    ever made to roles; users and groups obtain privileges through role
    membership. Hierarchical inheritance is a property of the backend: a
    grant on a path must match every request whose path it prefixes.
    """

    async def authorize(
        self,
        principal: Principal,
        resource: ResourcePath,
        action: Action,
    ) -> bool:
        """Decide whether a principal may perform an action on a resource.

        Args:
            principal: The requesting principal
            resource: Full ancestor-inclusive path of the resource
            action: The requested action

        Returns:
            True if allowed, False if denied. Denial is never an exception.

        Raises:
            BackendUnavailableError: If the backend cannot be reached
        """
        ...

    async def create_role(self, role: str) -> None:
        """Create a role.

        Raises:
            RoleAlreadyExistsError: If the role already exists
        """
        ...

    async def drop_role(self, role: str) -> None:
        """Drop a role together with its memberships and privileges.

        Raises:
            RoleNotFoundError: If the role does not exist
        """
        ...

    async def attach_principal_to_role(self, role: str, principal: Principal) -> None:
        """Make a principal a member of a role.

        Raises:
            RoleNotFoundError: If the role does not exist
        """
        ...

    async def detach_principal_from_role(self, role: str, principal: Principal) -> None:
        """Remove a principal from a role.

        Raises:
            RoleNotFoundError: If the role does not exist
        """
        ...

    async def grant(
        self,
        resource: ResourcePath,
        role: str,
        actions: Set[Action],
    ) -> None:
        """Grant actions on a resource to a role.

        Raises:
            RoleNotFoundError: If the role does not exist
        """
        ...

    async def revoke(
        self,
        resource: ResourcePath,
        role: str,
        actions: Set[Action],
    ) -> None:
        """Revoke actions on a resource from a role.

        Raises:
            RoleNotFoundError: If the role does not exist
        """
        ...

    async def revoke_all_on_resource(self, resource: ResourcePath) -> None:
        """Revoke every privilege held by any role on exactly this resource."""
        ...

    async def list_privileges(self, principal: Principal) -> set[Privilege]:
        """List privileges held by a principal or role."""
        ...

    async def list_roles(self, principal: Principal) -> set[str]:
        """List roles a user or group is a member of."""
        ...

    async def list_all_roles(self) -> set[str]:
        """List every role known to the backend."""
        ...


class IdentityResolver(Protocol):
    """Protocol for resolving a user's group memberships."""

    async def groups_of(self, user: str) -> set[str]:
        """Return the names of the groups a user belongs to."""
        ...
