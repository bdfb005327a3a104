"""Scenario tests for AuthorizationEngine over the in-memory backend.

These exercise grant, revoke and enforcement end to end, including
hierarchical inheritance and shadow-role garbage collection.
"""

import asyncio

import pytest

from enforcement.application.engine import AuthorizationEngine
from enforcement.domain.value_objects import (
    ProgramType,
    application_id,
    dataset_id,
    namespace_id,
    program_id,
    stream_id,
)
from enforcement.infrastructure.identity import StaticGroupResolver
from enforcement.infrastructure.in_memory_backend import InMemoryPolicyBackend
from enforcement.ports.exceptions import UnauthorizedError
from shared_kernel.authorization.types import Action, Principal

ALICE = Principal.user("alice")
BOB = Principal.user("bob")


class CountingBackend(InMemoryPolicyBackend):
    """In-memory backend that counts authorization calls."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.authorize_calls = 0

    async def authorize(self, principal, resource, action):
        self.authorize_calls += 1
        return await super().authorize(principal, resource, action)


@pytest.fixture
def backend(path_resolver):
    """Create an empty in-memory backend."""
    return CountingBackend(path_resolver=path_resolver)


@pytest.fixture
def engine(backend, path_resolver, fake_timer):
    """Create an engine over the in-memory backend."""
    return AuthorizationEngine(backend=backend, path_resolver=path_resolver, timer=fake_timer)


async def _shadow_roles(engine):
    return {role for role in await engine.list_all_roles() if engine.namer.is_shadow_role(role)}


class TestHierarchicalEnforcement:
    """Privileges on an entity apply to everything nested under it."""

    @pytest.mark.asyncio
    async def test_namespace_grant_covers_children(self, engine):
        await engine.grant(namespace_id("ns1"), ALICE, {Action.READ})

        await engine.enforce(stream_id("ns1", "s1"), ALICE, {Action.READ})
        await engine.enforce(dataset_id("ns1", "ds1"), ALICE, {Action.READ})
        await engine.enforce(
            program_id("ns1", "app1", ProgramType.FLOW, "f1"), ALICE, {Action.READ}
        )

    @pytest.mark.asyncio
    async def test_namespace_grant_does_not_leak(self, engine):
        await engine.grant(namespace_id("ns1"), ALICE, {Action.READ})

        with pytest.raises(UnauthorizedError):
            await engine.enforce(stream_id("ns2", "s1"), ALICE, {Action.READ})
        with pytest.raises(UnauthorizedError) as exc_info:
            await engine.enforce(stream_id("ns1", "s1"), ALICE, {Action.READ, Action.WRITE})
        assert exc_info.value.denied_actions == {Action.WRITE}

    @pytest.mark.asyncio
    async def test_child_grant_does_not_cover_parent(self, engine):
        await engine.grant(
            program_id("ns1", "app1", ProgramType.FLOW, "f1"), ALICE, {Action.EXECUTE}
        )

        with pytest.raises(UnauthorizedError):
            await engine.enforce(application_id("ns1", "app1"), ALICE, {Action.EXECUTE})

    @pytest.mark.asyncio
    async def test_all_action_satisfies_any_action(self, engine):
        await engine.grant(namespace_id("ns1"), ALICE, {Action.ALL})

        await engine.enforce(
            stream_id("ns1", "s1"), ALICE, {Action.READ, Action.WRITE, Action.ADMIN}
        )

    @pytest.mark.asyncio
    async def test_other_users_are_not_affected(self, engine):
        await engine.grant(namespace_id("ns1"), ALICE, {Action.READ})

        with pytest.raises(UnauthorizedError):
            await engine.enforce(namespace_id("ns1"), BOB, {Action.READ})


class TestShadowRoleLifecycle:
    """Shadow roles are created on first grant and collected when empty."""

    @pytest.mark.asyncio
    async def test_grant_is_idempotent(self, engine):
        for _ in range(2):
            await engine.grant(namespace_id("ns1"), ALICE, {Action.READ})

        assert len(await _shadow_roles(engine)) == 1
        privileges = await engine.list_privileges(ALICE)
        assert {(p.entity, p.action) for p in privileges} == {(namespace_id("ns1"), Action.READ)}

    @pytest.mark.asyncio
    async def test_concurrent_grants_share_one_role(self, engine):
        await asyncio.gather(
            engine.grant(namespace_id("ns1"), ALICE, {Action.READ}),
            engine.grant(namespace_id("ns1"), ALICE, {Action.WRITE}),
        )

        assert len(await _shadow_roles(engine)) == 1
        await engine.enforce(namespace_id("ns1"), ALICE, {Action.READ, Action.WRITE})

    @pytest.mark.asyncio
    async def test_partial_revoke_keeps_role(self, engine):
        await engine.grant(namespace_id("ns1"), ALICE, {Action.READ, Action.WRITE})

        await engine.revoke(namespace_id("ns1"), ALICE, {Action.READ})

        assert len(await _shadow_roles(engine)) == 1
        await engine.enforce(namespace_id("ns1"), ALICE, {Action.WRITE})
        with pytest.raises(UnauthorizedError):
            await engine.enforce(namespace_id("ns1"), ALICE, {Action.READ})

    @pytest.mark.asyncio
    async def test_full_revoke_drops_role(self, engine):
        await engine.grant(namespace_id("ns1"), ALICE, {Action.READ, Action.WRITE})

        await engine.revoke(namespace_id("ns1"), ALICE, {Action.READ, Action.WRITE})

        assert await _shadow_roles(engine) == set()
        with pytest.raises(UnauthorizedError):
            await engine.enforce(namespace_id("ns1"), ALICE, {Action.READ})

    @pytest.mark.asyncio
    async def test_revoke_only_collects_the_pair_role(self, engine):
        await engine.grant(namespace_id("ns1"), ALICE, {Action.READ})
        await engine.grant(dataset_id("ns2", "ds1"), ALICE, {Action.READ})

        await engine.revoke(namespace_id("ns1"), ALICE, {Action.READ})

        remaining = await _shadow_roles(engine)
        assert remaining == {engine.namer.name_for(dataset_id("ns2", "ds1"), ALICE)}
        await engine.enforce(dataset_id("ns2", "ds1"), ALICE, {Action.READ})

    @pytest.mark.asyncio
    async def test_revoke_without_grant_is_a_no_op(self, engine):
        await engine.revoke(namespace_id("ns1"), ALICE, {Action.READ})
        assert await _shadow_roles(engine) == set()

    @pytest.mark.asyncio
    async def test_empty_grant_creates_no_role(self, engine):
        await engine.grant(namespace_id("ns1"), ALICE, set())

        assert await _shadow_roles(engine) == set()


class TestRevokeAll:
    """Deleting an entity removes every privilege granted on it."""

    @pytest.mark.asyncio
    async def test_revoke_all_drops_entity_roles(self, engine, backend):
        app1 = application_id("ns1", "app1")
        await engine.grant(app1, ALICE, {Action.READ, Action.EXECUTE})
        await engine.grant(app1, Principal.group("g1"), {Action.READ})
        await engine.grant(namespace_id("ns1"), BOB, {Action.READ})

        await engine.revoke_all(app1)

        assert await _shadow_roles(engine) == {
            engine.namer.name_for(namespace_id("ns1"), BOB)
        }
        with pytest.raises(UnauthorizedError):
            await engine.enforce(app1, ALICE, {Action.READ})
        await engine.enforce(app1, BOB, {Action.READ})

    @pytest.mark.asyncio
    async def test_revoke_all_clears_explicit_role_grants(self, engine):
        app1 = application_id("ns1", "app1")
        await engine.create_role("operators")
        await engine.grant(app1, Principal.role("operators"), {Action.EXECUTE})

        await engine.revoke_all(app1)

        assert "operators" in await engine.list_all_roles()
        assert await engine.list_privileges(Principal.role("operators")) == set()


class TestDecisionFreshness:
    """Grants and revokes are visible to the granting process immediately."""

    @pytest.mark.asyncio
    async def test_no_stale_denial_after_grant(self, engine):
        with pytest.raises(UnauthorizedError):
            await engine.enforce(namespace_id("ns1"), ALICE, {Action.READ})

        await engine.grant(namespace_id("ns1"), ALICE, {Action.READ})

        await engine.enforce(namespace_id("ns1"), ALICE, {Action.READ})

    @pytest.mark.asyncio
    async def test_no_stale_allow_after_revoke(self, engine):
        await engine.grant(namespace_id("ns1"), ALICE, {Action.READ})
        await engine.enforce(namespace_id("ns1"), ALICE, {Action.READ})

        await engine.revoke(namespace_id("ns1"), ALICE, {Action.READ})

        with pytest.raises(UnauthorizedError):
            await engine.enforce(namespace_id("ns1"), ALICE, {Action.READ})

    @pytest.mark.asyncio
    async def test_ancestor_grant_replaces_cached_child_denial(self, engine):
        with pytest.raises(UnauthorizedError):
            await engine.enforce(stream_id("ns1", "s1"), ALICE, {Action.ADMIN})

        await engine.grant(namespace_id("ns1"), ALICE, {Action.ADMIN})

        await engine.enforce(stream_id("ns1", "s1"), ALICE, {Action.ADMIN})

    @pytest.mark.asyncio
    async def test_ancestor_revoke_replaces_cached_child_allow(self, engine):
        await engine.grant(namespace_id("ns1"), ALICE, {Action.READ})
        await engine.enforce(stream_id("ns1", "s1"), ALICE, {Action.READ})

        await engine.revoke(namespace_id("ns1"), ALICE, {Action.READ})

        with pytest.raises(UnauthorizedError):
            await engine.enforce(stream_id("ns1", "s1"), ALICE, {Action.READ})

    @pytest.mark.asyncio
    async def test_cached_decisions_skip_backend(self, engine, backend):
        await engine.grant(namespace_id("ns1"), ALICE, {Action.READ})

        for _ in range(5):
            await engine.enforce(namespace_id("ns1"), ALICE, {Action.READ})

        assert backend.authorize_calls == 1

    @pytest.mark.asyncio
    async def test_disabled_cache_consults_backend_every_time(
        self, backend, path_resolver
    ):
        engine = AuthorizationEngine(
            backend=backend, path_resolver=path_resolver, cache_max_entries=0
        )
        await engine.grant(namespace_id("ns1"), ALICE, {Action.READ})

        for _ in range(5):
            await engine.enforce(namespace_id("ns1"), ALICE, {Action.READ})

        assert backend.authorize_calls == 5

    @pytest.mark.asyncio
    async def test_cached_decision_expires_after_ttl(self, engine, backend, fake_timer):
        await engine.grant(namespace_id("ns1"), ALICE, {Action.READ})
        await engine.enforce(namespace_id("ns1"), ALICE, {Action.READ})

        fake_timer.advance(300)
        await engine.enforce(namespace_id("ns1"), ALICE, {Action.READ})

        assert backend.authorize_calls == 2


class TestGroupsAndRoles:
    """Group and explicit role grants reach their members."""

    @pytest.mark.asyncio
    async def test_group_grant_reaches_members(self, path_resolver):
        resolver = StaticGroupResolver({"bob": ["analysts"]})
        backend = InMemoryPolicyBackend(identity_resolver=resolver, path_resolver=path_resolver)
        engine = AuthorizationEngine(
            backend=backend, identity_resolver=resolver, path_resolver=path_resolver
        )

        await engine.grant(namespace_id("ns1"), Principal.group("analysts"), {Action.READ})

        await engine.enforce(stream_id("ns1", "s1"), BOB, {Action.READ})
        with pytest.raises(UnauthorizedError):
            await engine.enforce(stream_id("ns1", "s1"), ALICE, {Action.READ})

    @pytest.mark.asyncio
    async def test_explicit_role_membership(self, engine):
        await engine.create_role("writers")
        await engine.grant(namespace_id("ns1"), Principal.role("writers"), {Action.WRITE})

        await engine.add_principal_to_role("writers", Principal.group("alice"))
        await engine.enforce(namespace_id("ns1"), ALICE, {Action.WRITE})
        assert await engine.list_roles(Principal.group("alice")) == {"writers"}

        await engine.remove_principal_from_role("writers", Principal.group("alice"))
        with pytest.raises(UnauthorizedError):
            await engine.enforce(namespace_id("ns1"), ALICE, {Action.WRITE})

    @pytest.mark.asyncio
    async def test_dropping_role_revokes_its_privileges(self, engine):
        await engine.create_role("writers")
        await engine.grant(namespace_id("ns1"), Principal.role("writers"), {Action.WRITE})
        await engine.add_principal_to_role("writers", ALICE)
        await engine.enforce(namespace_id("ns1"), ALICE, {Action.WRITE})

        await engine.drop_role("writers")

        with pytest.raises(UnauthorizedError):
            await engine.enforce(namespace_id("ns1"), ALICE, {Action.WRITE})


class TestEndToEndScenarios:
    """Administrative flows as a caller would drive them."""

    @pytest.mark.asyncio
    async def test_namespace_admin_inherits_to_streams(self, engine):
        await engine.grant(namespace_id("ns1"), ALICE, {Action.ADMIN})

        await engine.enforce(stream_id("ns1", "s1"), ALICE, {Action.ADMIN})
        with pytest.raises(UnauthorizedError) as exc_info:
            await engine.enforce(stream_id("ns2", "s1"), ALICE, {Action.ADMIN})
        assert exc_info.value.denied_actions == {Action.ADMIN}

    @pytest.mark.asyncio
    async def test_deleted_application_leaves_no_group_access(self, path_resolver):
        resolver = StaticGroupResolver({"carol": ["g1"]})
        backend = InMemoryPolicyBackend(identity_resolver=resolver, path_resolver=path_resolver)
        engine = AuthorizationEngine(
            backend=backend, identity_resolver=resolver, path_resolver=path_resolver
        )
        app1 = application_id("ns1", "app1")
        carol = Principal.user("carol")
        await engine.grant(app1, Principal.group("g1"), {Action.WRITE})
        await engine.enforce(app1, carol, {Action.WRITE})

        await engine.revoke_all(app1)

        owners = {engine.namer.owner_of(role) for role in await engine.list_all_roles()}
        assert app1 not in owners
        with pytest.raises(UnauthorizedError):
            await engine.enforce(app1, carol, {Action.WRITE})
