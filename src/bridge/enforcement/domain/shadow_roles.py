"""Naming scheme for shadow roles.

Role-only policy backends cannot grant privileges to users or groups directly.
The engine therefore creates one private role per (entity, principal) pair and
grants to that role instead. Its name is built as::

    <prefix><sep><resource path><sep><principal kind tag><sep><principal name>

Resource paths never contain the separator, and the kind tag is a single
character, so the name determines the pair it was built from.
"""

from __future__ import annotations

from enforcement.domain.resource_path import ResourcePathResolver
from enforcement.domain.value_objects import Entity, ResourcePath
from enforcement.ports.exceptions import (
    InvalidPrincipalKindError,
    UnsupportedEntityTypeError,
)
from shared_kernel.authorization.types import Principal, PrincipalKind

SHADOW_ROLE_PREFIX = "."
SHADOW_ROLE_SEPARATOR = ":"

_SHADOWED_KINDS = frozenset({PrincipalKind.USER, PrincipalKind.GROUP})


class ShadowRoleNamer:
    """Maps (entity, principal) pairs to shadow role names and back."""

    def __init__(self, resolver: ResourcePathResolver):
        self._resolver = resolver
        self._marker = SHADOW_ROLE_PREFIX + SHADOW_ROLE_SEPARATOR

    def name_for(self, entity: Entity, principal: Principal) -> str:
        """Build the shadow role name for an entity and a user or group.

        Raises:
            InvalidPrincipalKindError: If the principal is a role
        """
        if principal.kind not in _SHADOWED_KINDS:
            raise InvalidPrincipalKindError(principal, "shadow_role")

        path = self._resolver.resolve(entity)
        return SHADOW_ROLE_SEPARATOR.join(
            [SHADOW_ROLE_PREFIX, str(path), principal.kind.tag, principal.name]
        )

    def is_shadow_role(self, role_name: str) -> bool:
        """Check whether a role name carries the reserved shadow-role marker."""
        return role_name.startswith(self._marker)

    def owner_of(self, role_name: str) -> Entity | None:
        """Return the entity a shadow role was created for.

        Returns None for any role this namer did not produce, including
        user-created roles and malformed names.
        """
        parsed = self._parse(role_name)
        if parsed is None:
            return None
        path, _ = parsed
        try:
            return self._resolver.entity_of(path)
        except (UnsupportedEntityTypeError, ValueError):
            return None

    def is_owned_by(self, role_name: str, entity: Entity) -> bool:
        """Check whether a role is a shadow role of the given entity."""
        parsed = self._parse(role_name)
        if parsed is None:
            return False
        return parsed[0] == self._resolver.resolve(entity)

    def _parse(self, role_name: str) -> tuple[ResourcePath, Principal] | None:
        if not self.is_shadow_role(role_name):
            return None

        body = role_name[len(self._marker) :]
        path_string, separator, remainder = body.partition(SHADOW_ROLE_SEPARATOR)
        if not separator:
            return None
        tag, separator, principal_name = remainder.partition(SHADOW_ROLE_SEPARATOR)
        if not separator or not principal_name:
            return None

        try:
            kind = PrincipalKind.from_tag(tag)
            path = ResourcePath.from_string(path_string)
        except ValueError:
            return None
        if kind not in _SHADOWED_KINDS:
            return None

        return path, Principal(name=principal_name, kind=kind)
