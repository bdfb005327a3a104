"""Identity resolvers mapping users to their groups.

Role-based backends attach roles to groups, so a user-level grant needs to
know which group stands for the user. Deployments plug their identity
provider in through the ``IdentityResolver`` port; these resolvers cover the
common simple cases.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping


class UserNamedGroupResolver:
    """Assumes every user has a private group carrying the user's own name.

    This mirrors the convention of Hadoop-style deployments where a user's
    primary group equals the user name. It is an approximation: users whose
    primary group differs must be served by another resolver.
    """

    async def groups_of(self, user: str) -> set[str]:
        return {user}


class StaticGroupResolver:
    """Resolves group memberships from a fixed mapping.

    Users absent from the mapping fall back to their user-named group unless
    ``fallback_to_user_group`` is disabled.
    """

    def __init__(
        self,
        memberships: Mapping[str, Iterable[str]],
        fallback_to_user_group: bool = True,
    ):
        self._memberships = {user: frozenset(groups) for user, groups in memberships.items()}
        self._fallback_to_user_group = fallback_to_user_group

    async def groups_of(self, user: str) -> set[str]:
        groups = set(self._memberships.get(user, ()))
        if not groups and self._fallback_to_user_group:
            groups.add(user)
        return groups
