"""Domain layer for the enforcement bounded context.

Contains the entity model, resource path resolution and shadow-role naming.
Everything here is pure: no backend calls, no I/O.
"""

from enforcement.domain.resource_path import ResourcePathResolver
from enforcement.domain.shadow_roles import ShadowRoleNamer
from enforcement.domain.value_objects import (
    CacheKey,
    Entity,
    EntityType,
    PathLevel,
    Privilege,
    ProgramType,
    ResourcePath,
)

__all__ = [
    "CacheKey",
    "Entity",
    "EntityType",
    "PathLevel",
    "Privilege",
    "ProgramType",
    "ResourcePath",
    "ResourcePathResolver",
    "ShadowRoleNamer",
]
