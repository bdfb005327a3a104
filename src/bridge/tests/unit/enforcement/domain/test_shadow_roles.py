"""Unit tests for ShadowRoleNamer."""

import pytest

from enforcement.domain.resource_path import ResourcePathResolver
from enforcement.domain.shadow_roles import SHADOW_ROLE_PREFIX, ShadowRoleNamer
from enforcement.domain.value_objects import (
    ProgramType,
    application_id,
    dataset_id,
    namespace_id,
    program_id,
    stream_id,
)
from enforcement.ports.exceptions import InvalidPrincipalKindError
from shared_kernel.authorization.types import Principal


@pytest.fixture
def namer(path_resolver):
    """Create a namer on the default instance resolver."""
    return ShadowRoleNamer(path_resolver)


class TestNameFor:
    """Tests for building shadow role names."""

    def test_name_layout(self, namer):
        role = namer.name_for(namespace_id("ns1"), Principal.user("alice"))
        assert role == ".:instance=cdap/namespace=ns1:u:alice"

    def test_group_uses_group_tag(self, namer):
        role = namer.name_for(stream_id("ns1", "s1"), Principal.group("g1"))
        assert role.endswith(":g:g1")

    def test_names_start_with_reserved_prefix(self, namer):
        role = namer.name_for(dataset_id("ns1", "ds1"), Principal.user("bob"))
        assert role.startswith(SHADOW_ROLE_PREFIX)
        assert namer.is_shadow_role(role)

    def test_rejects_role_principal(self, namer):
        with pytest.raises(InvalidPrincipalKindError):
            namer.name_for(namespace_id("ns1"), Principal.role("admins"))

    def test_distinct_pairs_get_distinct_names(self, namer):
        """Different (entity, principal) pairs must never share a role."""
        entities = [
            namespace_id("ns1"),
            namespace_id("ns2"),
            stream_id("ns1", "s1"),
            dataset_id("ns1", "s1"),
            application_id("ns1", "app1"),
            program_id("ns1", "app1", ProgramType.FLOW, "f1"),
            program_id("ns1", "app1", ProgramType.SPARK, "f1"),
        ]
        principals = [
            Principal.user("alice"),
            Principal.group("alice"),
            Principal.user("bob"),
        ]

        names = {
            namer.name_for(entity, principal)
            for entity in entities
            for principal in principals
        }

        assert len(names) == len(entities) * len(principals)

    def test_same_pair_gets_same_name(self, namer):
        first = namer.name_for(namespace_id("ns1"), Principal.user("alice"))
        second = namer.name_for(namespace_id("ns1"), Principal.user("alice"))
        assert first == second


class TestOwnerOf:
    """Tests for recovering the owning entity of a shadow role."""

    def test_owner_of_inverts_name_for(self, namer):
        entity = program_id("ns1", "app1", ProgramType.WORKER, "w1")
        role = namer.name_for(entity, Principal.group("g1"))
        assert namer.owner_of(role) == entity

    @pytest.mark.parametrize(
        "role",
        [
            "admins",
            ".admins",
            ".:",
            ".:instance=cdap",
            ".:instance=cdap/namespace=ns1:x:alice",
            ".:instance=cdap/namespace=ns1:r:admins",
            ".:instance=cdap/namespace=ns1:u:",
            ".:namespace:u:alice",
            ".:instance=cdap/topic=t1:u:alice",
        ],
    )
    def test_non_shadow_or_malformed_names_have_no_owner(self, namer, role):
        assert namer.owner_of(role) is None

    def test_user_created_role_is_not_shadow(self, namer):
        assert not namer.is_shadow_role("admins")

    def test_role_of_other_instance_has_no_owner(self):
        scoped = ShadowRoleNamer(ResourcePathResolver(instance_name="prod"))
        role = ".:instance=staging/namespace=ns1:u:alice"
        assert scoped.owner_of(role) is None
        assert not scoped.is_owned_by(role, namespace_id("ns1", instance="prod"))

    def test_name_for_rejects_entity_of_other_instance(self):
        scoped = ShadowRoleNamer(ResourcePathResolver(instance_name="prod"))
        with pytest.raises(ValueError):
            scoped.name_for(namespace_id("ns1", instance="staging"), Principal.user("alice"))


class TestIsOwnedBy:
    """Tests for ownership checks used by revoke-all."""

    def test_owned_by_its_entity(self, namer):
        entity = application_id("ns1", "app1")
        role = namer.name_for(entity, Principal.user("alice"))
        assert namer.is_owned_by(role, entity)

    def test_not_owned_by_ancestor(self, namer):
        role = namer.name_for(application_id("ns1", "app1"), Principal.user("alice"))
        assert not namer.is_owned_by(role, namespace_id("ns1"))

    def test_not_owned_by_descendant(self, namer):
        role = namer.name_for(namespace_id("ns1"), Principal.user("alice"))
        assert not namer.is_owned_by(role, stream_id("ns1", "s1"))

    def test_user_role_not_owned(self, namer):
        assert not namer.is_owned_by("admins", namespace_id("ns1"))
