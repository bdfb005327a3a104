"""In-memory role-based policy backend.

Reference implementation of the PolicyBackendClient protocol. Roles hold
members (users or groups) and privileges on resource paths; a privilege on a
path applies to every path it prefixes. Used for tests and local development;
all state is lost with the process.
"""

from __future__ import annotations

from collections.abc import Set

from enforcement.domain.resource_path import ResourcePathResolver
from enforcement.domain.value_objects import Privilege, ResourcePath
from enforcement.infrastructure.identity import UserNamedGroupResolver
from enforcement.infrastructure.observability import (
    DefaultPolicyBackendProbe,
    PolicyBackendProbe,
)
from enforcement.ports.backend import IdentityResolver
from enforcement.ports.exceptions import RoleAlreadyExistsError, RoleNotFoundError
from shared_kernel.authorization.types import Action, Principal, PrincipalKind


class InMemoryPolicyBackend:
    """In-memory implementation of PolicyBackendClient protocol.

    Grants are idempotent: granting an action twice leaves the same privilege
    set as granting it once. A grant of ``Action.ALL`` satisfies any
    requested action.
    """

    def __init__(
        self,
        identity_resolver: IdentityResolver | None = None,
        path_resolver: ResourcePathResolver | None = None,
        probe: PolicyBackendProbe | None = None,
    ):
        """Initialize the backend.

        Args:
            identity_resolver: Group lookup used to match users against
                group members of roles
            path_resolver: Resolver used to rebuild entities when listing
                privileges
            probe: Optional domain probe for observability
        """
        self._identity_resolver = identity_resolver or UserNamedGroupResolver()
        self._path_resolver = path_resolver or ResourcePathResolver()
        self._probe = probe or DefaultPolicyBackendProbe()
        self._members: dict[str, set[Principal]] = {}
        self._grants: dict[str, dict[ResourcePath, set[Action]]] = {}

    async def authorize(
        self,
        principal: Principal,
        resource: ResourcePath,
        action: Action,
    ) -> bool:
        granted = False
        for role in await self._roles_for(principal):
            for path, actions in self._grants[role].items():
                if path.is_prefix_of(resource) and (action in actions or Action.ALL in actions):
                    granted = True
                    break
            if granted:
                break

        self._probe.authorization_checked(str(principal), str(resource), action, granted)
        return granted

    async def create_role(self, role: str) -> None:
        if role in self._members:
            raise RoleAlreadyExistsError(role)
        self._members[role] = set()
        self._grants[role] = {}
        self._probe.role_created(role)

    async def drop_role(self, role: str) -> None:
        self._require_role(role)
        del self._members[role]
        del self._grants[role]
        self._probe.role_dropped(role)

    async def attach_principal_to_role(self, role: str, principal: Principal) -> None:
        self._require_role(role)
        self._members[role].add(principal)
        self._probe.principal_attached(role, str(principal))

    async def detach_principal_from_role(self, role: str, principal: Principal) -> None:
        self._require_role(role)
        self._members[role].discard(principal)
        self._probe.principal_detached(role, str(principal))

    async def grant(
        self,
        resource: ResourcePath,
        role: str,
        actions: Set[Action],
    ) -> None:
        self._require_role(role)
        self._grants[role].setdefault(resource, set()).update(actions)
        self._probe.privileges_granted(str(resource), role, actions)

    async def revoke(
        self,
        resource: ResourcePath,
        role: str,
        actions: Set[Action],
    ) -> None:
        self._require_role(role)
        held = self._grants[role].get(resource)
        if held is not None:
            held.difference_update(actions)
            if not held:
                del self._grants[role][resource]
        self._probe.privileges_revoked(str(resource), role, actions)

    async def revoke_all_on_resource(self, resource: ResourcePath) -> None:
        affected = 0
        for grants in self._grants.values():
            if grants.pop(resource, None) is not None:
                affected += 1
        self._probe.resource_cleared(str(resource), affected)

    async def list_privileges(self, principal: Principal) -> set[Privilege]:
        privileges: set[Privilege] = set()
        for role in await self._roles_for(principal):
            for path, actions in self._grants[role].items():
                entity = self._path_resolver.entity_of(path)
                privileges.update(
                    Privilege(principal=principal, entity=entity, action=action)
                    for action in actions
                )
        return privileges

    async def list_roles(self, principal: Principal) -> set[str]:
        return await self._roles_for(principal)

    async def list_all_roles(self) -> set[str]:
        return set(self._members)

    async def _roles_for(self, principal: Principal) -> set[str]:
        if principal.kind is PrincipalKind.ROLE:
            return {principal.name} if principal.name in self._members else set()

        candidates = {principal}
        if principal.kind is PrincipalKind.USER:
            groups = await self._identity_resolver.groups_of(principal.name)
            candidates.update(Principal.group(group) for group in groups)

        return {role for role, members in self._members.items() if members & candidates}

    def _require_role(self, role: str) -> None:
        if role not in self._members:
            raise RoleNotFoundError(role)
