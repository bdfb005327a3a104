"""Unit tests for identity resolvers."""

import pytest

from enforcement.infrastructure.identity import StaticGroupResolver, UserNamedGroupResolver


class TestUserNamedGroupResolver:
    """Tests for UserNamedGroupResolver."""

    @pytest.mark.asyncio
    async def test_group_is_user_name(self):
        assert await UserNamedGroupResolver().groups_of("alice") == {"alice"}


class TestStaticGroupResolver:
    """Tests for StaticGroupResolver."""

    @pytest.mark.asyncio
    async def test_returns_configured_groups(self):
        resolver = StaticGroupResolver({"alice": ["eng", "ops"]})
        assert await resolver.groups_of("alice") == {"eng", "ops"}

    @pytest.mark.asyncio
    async def test_unknown_user_falls_back_to_user_group(self):
        resolver = StaticGroupResolver({"alice": ["eng"]})
        assert await resolver.groups_of("bob") == {"bob"}

    @pytest.mark.asyncio
    async def test_fallback_can_be_disabled(self):
        resolver = StaticGroupResolver({}, fallback_to_user_group=False)
        assert await resolver.groups_of("bob") == set()

    @pytest.mark.asyncio
    async def test_returned_set_is_a_copy(self):
        resolver = StaticGroupResolver({"alice": ["eng"]})
        groups = await resolver.groups_of("alice")
        groups.add("intruders")
        assert await resolver.groups_of("alice") == {"eng"}
