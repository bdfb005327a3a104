"""Resolution of entities into resource paths.

A resource path lists every ancestor level of an entity, root first. Policy
backends match grants by path prefix, so a privilege on a namespace covers
every entity nested under it; this only works if the full ancestor-inclusive
path is always submitted.
"""

from __future__ import annotations

from enforcement.domain.value_objects import (
    COMPOSITE_SEPARATOR,
    COMPOSITE_TYPES,
    PARENT_TYPES,
    Entity,
    EntityType,
    PathLevel,
    ResourcePath,
)
from enforcement.ports.exceptions import UnsupportedEntityTypeError


class ResourcePathResolver:
    """Converts typed hierarchical entities into ordered resource paths.

    Resolution is a pure function of the entity. When an instance name is
    configured the resolver only serves that instance: entities rooted at any
    other instance are rejected, so distinct entities never share a path.
    """

    def __init__(self, instance_name: str | None = None):
        self._instance_name = instance_name

    @property
    def instance_name(self) -> str | None:
        return self._instance_name

    def resolve(self, entity: Entity) -> ResourcePath:
        """Resolve an entity into its root-to-leaf resource path.

        Args:
            entity: The entity to resolve

        Returns:
            A path whose length equals the depth of the entity

        Raises:
            UnsupportedEntityTypeError: If the entity, or one of its
                ancestors, has a type missing from the level table
            ValueError: If the entity belongs to an instance other than the
                configured one
        """
        entity_type = self._check_type(entity.entity_type)

        if entity.parent is None:
            self._check_instance(entity.name)
            return ResourcePath(levels=(PathLevel(name=entity_type.value, value=entity.name),))

        return self.resolve(entity.parent).child(entity_type.value, self._level_value(entity))

    def entity_of(self, path: ResourcePath) -> Entity:
        """Rebuild the entity a resource path was resolved from.

        Args:
            path: A path produced by ``resolve``

        Returns:
            The entity whose resolution yields ``path``

        Raises:
            UnsupportedEntityTypeError: If a level name is not an entity type
            ValueError: If the levels do not follow the parent type table, a
                composite value cannot be split, or the root names an instance
                other than the configured one
        """
        entity: Entity | None = None
        for level in path:
            entity_type = self._check_type(level.name)
            name, qualifier = self._split_level_value(entity_type, level.value)
            if entity is None:
                self._check_instance(name)
            entity = Entity(entity_type, name, parent=entity, qualifier=qualifier)

        if entity is None:
            raise ValueError("Cannot rebuild an entity from an empty resource path")
        return entity

    def _check_instance(self, name: str) -> None:
        if self._instance_name is not None and name != self._instance_name:
            raise ValueError(
                f"Entity belongs to instance '{name}', "
                f"this resolver serves '{self._instance_name}'"
            )

    @staticmethod
    def _check_type(entity_type: object) -> EntityType:
        try:
            resolved = EntityType(entity_type)
        except ValueError as e:
            raise UnsupportedEntityTypeError(entity_type) from e
        if resolved not in PARENT_TYPES:
            raise UnsupportedEntityTypeError(entity_type)
        return resolved

    @staticmethod
    def _level_value(entity: Entity) -> str:
        if entity.entity_type is EntityType.PROGRAM:
            return f"{entity.qualifier}{COMPOSITE_SEPARATOR}{entity.name}"
        if entity.entity_type in COMPOSITE_TYPES:
            return f"{entity.name}{COMPOSITE_SEPARATOR}{entity.qualifier}"
        return entity.name

    @staticmethod
    def _split_level_value(entity_type: EntityType, value: str) -> tuple[str, str | None]:
        if entity_type not in COMPOSITE_TYPES:
            return value, None

        first, separator, second = value.partition(COMPOSITE_SEPARATOR)
        if not separator:
            raise ValueError(f"Composite {entity_type} value '{value}' has no separator")
        if entity_type is EntityType.PROGRAM:
            return second, first
        return first, second
