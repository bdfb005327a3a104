"""Authorization engine for the enforcement bounded context.

Orchestrates enforcement, grant/revoke and role management on top of a
role-based policy backend. Users and groups receive grants through private
shadow roles, one per (entity, principal) pair, which the engine creates on
first grant and drops once no privileges remain attached to them.
"""

from __future__ import annotations

import asyncio
import time
import weakref
from collections.abc import Awaitable, Callable, Iterable

from enforcement.application.decision_cache import DecisionCache
from enforcement.application.observability import (
    DecisionCacheProbe,
    DefaultEngineProbe,
    EngineProbe,
)
from enforcement.domain.resource_path import ResourcePathResolver
from enforcement.domain.shadow_roles import ShadowRoleNamer
from enforcement.domain.value_objects import CacheKey, Entity, Privilege, ResourcePath
from enforcement.ports.backend import IdentityResolver, PolicyBackendClient
from enforcement.ports.exceptions import (
    InvalidPrincipalKindError,
    ReservedRoleNameError,
    RoleAlreadyExistsError,
    RoleNotFoundError,
    UnauthorizedError,
)
from shared_kernel.authorization.types import Action, Principal, PrincipalKind


class AuthorizationEngine:
    """Entity-level authorization on top of a role-based policy backend.

    The engine owns its decision cache; there is no process-wide state.
    Grant and revoke on the same (entity, principal) pair are serialized so
    that shadow-role create/attach/grant and revoke/collect each run as one
    logical unit. The backend remains the source of truth: a failed write is
    surfaced and nothing is rolled back locally.
    """

    def __init__(
        self,
        backend: PolicyBackendClient,
        identity_resolver: IdentityResolver | None = None,
        path_resolver: ResourcePathResolver | None = None,
        cache_max_entries: int = 10000,
        cache_ttl_seconds: float = 300.0,
        superusers: Iterable[str] = (),
        admin_group_name: str | None = None,
        timer: Callable[[], float] = time.monotonic,
        probe: EngineProbe | None = None,
        cache_probe: DecisionCacheProbe | None = None,
    ):
        """Initialize the engine with its collaborators.

        Args:
            backend: Role-based policy backend
            identity_resolver: Group lookup for users; when absent, a user's
                group is assumed to carry the user's own name
            path_resolver: Resolver turning entities into resource paths
            cache_max_entries: Decision cache size bound; 0 disables caching
            cache_ttl_seconds: Decision cache expire-after-write duration
            superusers: Users that pass enforcement without a backend check
            admin_group_name: Group whose members pass enforcement
            timer: Monotonic clock for the decision cache
            probe: Optional domain probe for observability
            cache_probe: Optional domain probe for the decision cache
        """
        self._backend = backend
        self._identity_resolver = identity_resolver
        self._path_resolver = path_resolver or ResourcePathResolver()
        self._namer = ShadowRoleNamer(self._path_resolver)
        self._superusers = frozenset(superusers)
        self._admin_group_name = admin_group_name
        self._probe = probe or DefaultEngineProbe()
        self._cache = DecisionCache(
            loader=self._load_decision,
            max_entries=cache_max_entries,
            ttl_seconds=cache_ttl_seconds,
            timer=timer,
            probe=cache_probe,
        )
        self._pair_locks: weakref.WeakValueDictionary[
            tuple[Entity, Principal], asyncio.Lock
        ] = weakref.WeakValueDictionary()

    @property
    def cache(self) -> DecisionCache:
        return self._cache

    @property
    def namer(self) -> ShadowRoleNamer:
        return self._namer

    @property
    def path_resolver(self) -> ResourcePathResolver:
        return self._path_resolver

    async def enforce(
        self,
        entity: Entity,
        principal: Principal,
        actions: Iterable[Action],
    ) -> None:
        """Check that a user may perform every requested action on an entity.

        Args:
            entity: The entity being accessed
            principal: The requesting user
            actions: The requested actions

        Raises:
            InvalidPrincipalKindError: If the principal is not a user
            UnauthorizedError: Carrying every denied action, if any is denied
            BackendUnavailableError: If a decision could not be loaded
        """
        if principal.kind is not PrincipalKind.USER:
            raise InvalidPrincipalKindError(principal, "enforce")

        requested = frozenset(actions)
        self._path_resolver.resolve(entity)

        try:
            bypass_reason = await self._bypass_reason(principal)
            if bypass_reason is not None:
                self._probe.enforce_bypassed(str(principal), str(entity), bypass_reason)
                return

            denied: set[Action] = set()
            for action in sorted(requested):
                key = CacheKey(principal=principal, entity=entity, action=action)
                if not await self._cache.get(key):
                    denied.add(action)
        except Exception as e:
            self._probe.enforce_failed(str(principal), str(entity), e)
            raise

        if denied:
            self._probe.enforce_denied(str(principal), str(entity), denied)
            raise UnauthorizedError(principal, entity, denied)

        self._probe.enforce_allowed(str(principal), str(entity), requested)

    async def grant(
        self,
        entity: Entity,
        principal: Principal,
        actions: Iterable[Action],
    ) -> None:
        """Grant actions on an entity to a user, group or role.

        Roles are granted directly. Users and groups are granted through the
        shadow role of the (entity, principal) pair, created if absent.
        An empty action set is a no-op.

        Raises:
            RoleNotFoundError: If the principal is a role that does not exist
            BackendUnavailableError: If the backend cannot be reached
        """
        requested = frozenset(actions)
        if not requested:
            return
        path = self._path_resolver.resolve(entity)
        self._invalidate(entity)

        try:
            if principal.kind is PrincipalKind.ROLE:
                role = principal.name
                await self._backend.grant(path, role, requested)
            else:
                async with self._pair_lock(entity, principal):
                    role = await self._grant_through_shadow_role(
                        entity, path, principal, requested
                    )
        except Exception as e:
            self._probe.grant_failed(str(principal), str(entity), requested, e)
            raise

        # A concurrent enforce may have cached the pre-grant decision.
        self._invalidate(entity)
        self._probe.grant_applied(str(principal), str(entity), requested, role)

    async def revoke(
        self,
        entity: Entity,
        principal: Principal,
        actions: Iterable[Action],
    ) -> None:
        """Revoke actions on an entity from a user, group or role.

        For users and groups the shadow role of the pair is dropped once it
        holds no privileges anywhere.

        Raises:
            RoleNotFoundError: If the principal is a role that does not exist
            BackendUnavailableError: If the backend cannot be reached
        """
        requested = frozenset(actions)
        path = self._path_resolver.resolve(entity)
        self._invalidate(entity)

        try:
            if principal.kind is PrincipalKind.ROLE:
                role = principal.name
                await self._backend.revoke(path, role, requested)
            else:
                async with self._pair_lock(entity, principal):
                    role = await self._revoke_from_shadow_role(
                        entity, path, principal, requested
                    )
        except Exception as e:
            self._probe.revoke_failed(str(principal), str(entity), requested, e)
            raise

        self._invalidate(entity)
        self._probe.revoke_applied(str(principal), str(entity), requested, role)

    async def revoke_all(self, entity: Entity) -> None:
        """Revoke every privilege on an entity that is being deleted.

        Every shadow role owned by the entity is dropped unconditionally,
        since the entity no longer exists to hold privileges.
        """
        path = self._path_resolver.resolve(entity)
        self._invalidate(entity)

        dropped = 0
        try:
            await self._backend.revoke_all_on_resource(path)
            for role in sorted(await self._backend.list_all_roles()):
                if not self._namer.is_owned_by(role, entity):
                    continue
                if await self._drop_shadow_role(role, reason="entity_revoked"):
                    dropped += 1
        except Exception as e:
            self._probe.entity_revoke_failed(str(entity), e)
            raise

        self._invalidate(entity)
        self._probe.entity_revoked(str(entity), dropped)

    async def create_role(self, role: str) -> None:
        """Create a user-managed role.

        Raises:
            ReservedRoleNameError: If the name uses the shadow-role marker
            RoleAlreadyExistsError: If the role already exists
        """
        self._check_role_name(role)
        await self._run_role_operation("create_role", role, self._backend.create_role(role))

    async def drop_role(self, role: str) -> None:
        """Drop a user-managed role.

        Raises:
            ReservedRoleNameError: If the name uses the shadow-role marker
            RoleNotFoundError: If the role does not exist
        """
        self._check_role_name(role)
        await self._run_role_operation("drop_role", role, self._backend.drop_role(role))
        self._cache.clear()

    async def add_principal_to_role(self, role: str, principal: Principal) -> None:
        """Make a user or group a member of a user-managed role.

        Raises:
            ReservedRoleNameError: If the name uses the shadow-role marker
            InvalidPrincipalKindError: If the principal is a role
            RoleNotFoundError: If the role does not exist
        """
        self._check_role_name(role)
        if principal.kind is PrincipalKind.ROLE:
            raise InvalidPrincipalKindError(principal, "add_principal_to_role")
        await self._run_role_operation(
            "add_principal_to_role",
            role,
            self._backend.attach_principal_to_role(role, principal),
            principal,
        )
        self._cache.clear()

    async def remove_principal_from_role(self, role: str, principal: Principal) -> None:
        """Remove a user or group from a user-managed role.

        Raises:
            ReservedRoleNameError: If the name uses the shadow-role marker
            InvalidPrincipalKindError: If the principal is a role
            RoleNotFoundError: If the role does not exist
        """
        self._check_role_name(role)
        if principal.kind is PrincipalKind.ROLE:
            raise InvalidPrincipalKindError(principal, "remove_principal_from_role")
        await self._run_role_operation(
            "remove_principal_from_role",
            role,
            self._backend.detach_principal_from_role(role, principal),
            principal,
        )
        self._cache.clear()

    async def list_roles(self, principal: Principal) -> set[str]:
        """List the roles a user or group is a member of.

        Raises:
            InvalidPrincipalKindError: If the principal is a role
        """
        if principal.kind is PrincipalKind.ROLE:
            raise InvalidPrincipalKindError(principal, "list_roles")
        return await self._backend.list_roles(principal)

    async def list_all_roles(self) -> set[str]:
        """List every role, shadow roles included."""
        return await self._backend.list_all_roles()

    async def list_privileges(self, principal: Principal) -> set[Privilege]:
        """List the privileges held by a principal."""
        return await self._backend.list_privileges(principal)

    async def _load_decision(self, key: CacheKey) -> bool:
        path = self._path_resolver.resolve(key.entity)
        return await self._backend.authorize(key.principal, path, key.action)

    async def _bypass_reason(self, principal: Principal) -> str | None:
        if principal.name in self._superusers:
            return "superuser"
        if self._admin_group_name is not None:
            if self._admin_group_name in await self._groups_of(principal.name):
                return "admin_group"
        return None

    async def _groups_of(self, user: str) -> set[str]:
        if self._identity_resolver is None:
            return {user}
        return await self._identity_resolver.groups_of(user) or {user}

    async def _grant_through_shadow_role(
        self,
        entity: Entity,
        path: ResourcePath,
        principal: Principal,
        actions: frozenset[Action],
    ) -> str:
        role = self._namer.name_for(entity, principal)
        await self._ensure_shadow_role(role)

        if principal.kind is PrincipalKind.USER:
            groups = await self._groups_of(principal.name)
        else:
            groups = {principal.name}

        for group in sorted(groups):
            await self._attach_group(role, Principal.group(group))

        await self._backend.grant(path, role, actions)
        return role

    async def _revoke_from_shadow_role(
        self,
        entity: Entity,
        path: ResourcePath,
        principal: Principal,
        actions: frozenset[Action],
    ) -> str:
        role = self._namer.name_for(entity, principal)
        try:
            await self._backend.revoke(path, role, actions)
        except RoleNotFoundError:
            # Nothing was ever granted to this pair.
            return role

        remaining = await self._backend.list_privileges(Principal.role(role))
        if remaining:
            self._probe.shadow_role_retained(role, len(remaining))
        else:
            await self._drop_shadow_role(role, reason="no_remaining_privileges")
        return role

    async def _ensure_shadow_role(self, role: str) -> None:
        try:
            await self._backend.create_role(role)
            self._probe.shadow_role_created(role)
        except RoleAlreadyExistsError:
            self._probe.shadow_role_reused(role)

    async def _attach_group(self, role: str, group: Principal) -> None:
        try:
            await self._backend.attach_principal_to_role(role, group)
        except RoleNotFoundError:
            # Dropped between creation and attach; a second miss is fatal.
            await self._ensure_shadow_role(role)
            await self._backend.attach_principal_to_role(role, group)

    async def _drop_shadow_role(self, role: str, reason: str) -> bool:
        try:
            await self._backend.drop_role(role)
        except RoleNotFoundError:
            return False
        self._probe.shadow_role_dropped(role, reason)
        return True

    async def _run_role_operation(
        self,
        operation: str,
        role: str,
        call: Awaitable[None],
        principal: Principal | None = None,
    ) -> None:
        try:
            await call
        except Exception as e:
            self._probe.role_operation_failed(operation, role, e)
            raise
        self._probe.role_operation_completed(
            operation, role, str(principal) if principal is not None else None
        )

    def _check_role_name(self, role: str) -> None:
        if self._namer.is_shadow_role(role):
            raise ReservedRoleNameError(role)

    def _invalidate(self, entity: Entity) -> None:
        # Decisions are cached per user and inherited by descendants.
        self._cache.invalidate_subtree(entity)

    def _pair_lock(self, entity: Entity, principal: Principal) -> asyncio.Lock:
        key = (entity, principal)
        lock = self._pair_locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._pair_locks[key] = lock
        return lock
