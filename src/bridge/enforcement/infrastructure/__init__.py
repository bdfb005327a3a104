"""Infrastructure adapters for the enforcement bounded context."""

from enforcement.infrastructure.identity import StaticGroupResolver, UserNamedGroupResolver
from enforcement.infrastructure.in_memory_backend import InMemoryPolicyBackend
from enforcement.infrastructure.read_only_backend import ReadOnlyPolicyBackend

__all__ = [
    "InMemoryPolicyBackend",
    "ReadOnlyPolicyBackend",
    "StaticGroupResolver",
    "UserNamedGroupResolver",
]
