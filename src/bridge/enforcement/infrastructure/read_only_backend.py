"""Authorize-only policy backend adapter.

Some policy engines only answer authorization questions; their policies are
administered elsewhere. This adapter exposes such an engine through the
PolicyBackendClient protocol and rejects every management call with an
explicit error instead of silently ignoring it.
"""

from __future__ import annotations

from collections.abc import Set
from typing import NoReturn, Protocol

from enforcement.domain.value_objects import Privilege, ResourcePath
from enforcement.infrastructure.observability import (
    DefaultPolicyBackendProbe,
    PolicyBackendProbe,
)
from enforcement.ports.exceptions import UnsupportedOperationError
from shared_kernel.authorization.types import Action, Principal


class Authorizer(Protocol):
    """Anything that can answer an authorization question."""

    async def authorize(
        self,
        principal: Principal,
        resource: ResourcePath,
        action: Action,
    ) -> bool: ...


class ReadOnlyPolicyBackend:
    """PolicyBackendClient that only supports ``authorize``.

    Every role, grant and listing operation raises UnsupportedOperationError.
    """

    def __init__(self, authorizer: Authorizer, probe: PolicyBackendProbe | None = None):
        self._authorizer = authorizer
        self._probe = probe or DefaultPolicyBackendProbe()

    async def authorize(
        self,
        principal: Principal,
        resource: ResourcePath,
        action: Action,
    ) -> bool:
        granted = await self._authorizer.authorize(principal, resource, action)
        self._probe.authorization_checked(str(principal), str(resource), action, granted)
        return granted

    async def create_role(self, role: str) -> None:
        self._reject("create_role")

    async def drop_role(self, role: str) -> None:
        self._reject("drop_role")

    async def attach_principal_to_role(self, role: str, principal: Principal) -> None:
        self._reject("attach_principal_to_role")

    async def detach_principal_from_role(self, role: str, principal: Principal) -> None:
        self._reject("detach_principal_from_role")

    async def grant(self, resource: ResourcePath, role: str, actions: Set[Action]) -> None:
        self._reject("grant")

    async def revoke(self, resource: ResourcePath, role: str, actions: Set[Action]) -> None:
        self._reject("revoke")

    async def revoke_all_on_resource(self, resource: ResourcePath) -> None:
        self._reject("revoke_all_on_resource")

    async def list_privileges(self, principal: Principal) -> set[Privilege]:
        self._reject("list_privileges")

    async def list_roles(self, principal: Principal) -> set[str]:
        self._reject("list_roles")

    async def list_all_roles(self) -> set[str]:
        self._reject("list_all_roles")

    def _reject(self, operation: str) -> NoReturn:
        self._probe.operation_rejected(operation)
        raise UnsupportedOperationError(operation)
