"""Authorization type definitions.

Defines the actions and principals that are exchanged with a role-based
policy backend. These enums ensure type safety and prevent hardcoded strings
across the codebase.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class Action(StrEnum):
    """Actions a principal may be authorized to perform on an entity.

    The value is the lower-cased action name, which is the form policy
    backends are queried with.
    """

    READ = "read"
    WRITE = "write"
    EXECUTE = "execute"
    ADMIN = "admin"
    ALL = "all"


class PrincipalKind(StrEnum):
    """Kinds of identity a privilege can be attached to."""

    USER = "user"
    GROUP = "group"
    ROLE = "role"

    @property
    def tag(self) -> str:
        """Single character code for this kind (e.g. "u" for USER)."""
        return self.value[0]

    @classmethod
    def from_tag(cls, tag: str) -> PrincipalKind:
        """Look up a kind by its single character code.

        Raises:
            ValueError: If no kind uses the given code
        """
        for kind in cls:
            if kind.tag == tag:
                return kind
        raise ValueError(f"Unknown principal kind tag: {tag!r}")


@dataclass(frozen=True)
class Principal:
    """An identity subject to authorization.

    Equality is structural: two principals are the same when both name and
    kind match.
    """

    name: str
    kind: PrincipalKind

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Principal name must not be empty")

    def __str__(self) -> str:
        """Return string representation (e.g. "user:alice")."""
        return format_principal(self)

    @classmethod
    def user(cls, name: str) -> Principal:
        return cls(name=name, kind=PrincipalKind.USER)

    @classmethod
    def group(cls, name: str) -> Principal:
        return cls(name=name, kind=PrincipalKind.GROUP)

    @classmethod
    def role(cls, name: str) -> Principal:
        return cls(name=name, kind=PrincipalKind.ROLE)


def format_principal(principal: Principal) -> str:
    """Format a principal identifier for logging and error messages.

    Args:
        principal: The principal to format

    Returns:
        Formatted principal string (e.g., "user:alice")

    Example:
        >>> format_principal(Principal.group("analysts"))
        "group:analysts"
    """
    return f"{principal.kind}:{principal.name}"
