"""Value objects for the enforcement domain.

Entities form a strict tree: every non-root entity type has exactly one parent
type, fixed by ``PARENT_TYPES``. Entities are values constructed on demand from
caller-supplied identifiers; they are never persisted by this context.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import StrEnum

from shared_kernel.authorization.types import Action, Principal

DEFAULT_INSTANCE_NAME = "cdap"
DEFAULT_APPLICATION_VERSION = "-SNAPSHOT"

# Separator characters that identifiers may never contain. They delimit
# composite values, path levels, level name/value pairs and shadow-role parts.
COMPOSITE_SEPARATOR = "#"
LEVEL_SEPARATOR = "/"
LEVEL_ASSIGNMENT = "="

_IDENTIFIER_PATTERN = re.compile(r"^[A-Za-z0-9_.\-]+$")


class EntityType(StrEnum):
    """Entity types of the resource namespace.

    Each value is the level name submitted to the policy backend.
    """

    INSTANCE = "instance"
    NAMESPACE = "namespace"
    ARTIFACT = "artifact"
    APPLICATION = "application"
    DATASET = "dataset"
    DATASET_MODULE = "dataset_module"
    DATASET_TYPE = "dataset_type"
    STREAM = "stream"
    PROGRAM = "program"
    SECURE_KEY = "securekey"


class ProgramType(StrEnum):
    """Kinds of program that can run inside an application."""

    FLOW = "flow"
    MAPREDUCE = "mapreduce"
    SPARK = "spark"
    WORKFLOW = "workflow"
    SERVICE = "service"
    WORKER = "worker"


PARENT_TYPES: dict[EntityType, EntityType | None] = {
    EntityType.INSTANCE: None,
    EntityType.NAMESPACE: EntityType.INSTANCE,
    EntityType.ARTIFACT: EntityType.NAMESPACE,
    EntityType.APPLICATION: EntityType.NAMESPACE,
    EntityType.DATASET: EntityType.NAMESPACE,
    EntityType.DATASET_MODULE: EntityType.NAMESPACE,
    EntityType.DATASET_TYPE: EntityType.NAMESPACE,
    EntityType.STREAM: EntityType.NAMESPACE,
    EntityType.SECURE_KEY: EntityType.NAMESPACE,
    EntityType.PROGRAM: EntityType.APPLICATION,
}

# Types whose level value joins two components: artifact and application
# carry a version, program carries its program type.
COMPOSITE_TYPES: frozenset[EntityType] = frozenset(
    {EntityType.ARTIFACT, EntityType.APPLICATION, EntityType.PROGRAM}
)


def validate_identifier(value: str, what: str) -> str:
    """Check that an identifier contains no reserved separator characters.

    Args:
        value: The identifier to check
        what: Human readable name of the identifier, used in the error

    Returns:
        The identifier unchanged

    Raises:
        ValueError: If the identifier is empty or contains characters outside
            letters, digits, ``_``, ``-`` and ``.``
    """
    if not _IDENTIFIER_PATTERN.match(value):
        raise ValueError(
            f"Invalid {what} '{value}': only letters, digits, '_', '-' and '.' are allowed"
        )
    return value


@dataclass(frozen=True)
class Entity:
    """A typed node of the hierarchical resource namespace.

    ``qualifier`` is the second component of composite types: the version of
    an artifact or application, the program type of a program. It is None for
    every other type.
    """

    entity_type: EntityType
    name: str
    parent: Entity | None = None
    qualifier: str | None = None

    def __post_init__(self) -> None:
        validate_identifier(self.name, f"{self.entity_type} name")

        if self.entity_type in COMPOSITE_TYPES:
            if self.qualifier is None:
                raise ValueError(f"A {self.entity_type} entity requires a qualifier")
            validate_identifier(self.qualifier, f"{self.entity_type} qualifier")
            if self.entity_type is EntityType.PROGRAM:
                ProgramType(self.qualifier)
        elif self.qualifier is not None:
            raise ValueError(f"A {self.entity_type} entity does not take a qualifier")

        expected_parent = PARENT_TYPES.get(self.entity_type)
        actual_parent = self.parent.entity_type if self.parent is not None else None
        if expected_parent != actual_parent:
            raise ValueError(
                f"A {self.entity_type} entity must have parent of type "
                f"{expected_parent}, got {actual_parent}"
            )

    def __str__(self) -> str:
        """Return string representation (e.g. "program:ns1/app1#1.0/flow#f1").

        Levels below the instance are joined with the level separator and
        composite values with the composite separator; neither can occur in
        an identifier.
        """
        parts: list[str] = []
        for entity in self.ancestry():
            if entity.entity_type is EntityType.INSTANCE and entity is not self:
                continue
            if entity.entity_type is EntityType.PROGRAM:
                parts.append(f"{entity.qualifier}{COMPOSITE_SEPARATOR}{entity.name}")
            elif entity.qualifier is not None:
                parts.append(f"{entity.name}{COMPOSITE_SEPARATOR}{entity.qualifier}")
            else:
                parts.append(entity.name)
        return f"{self.entity_type}:{LEVEL_SEPARATOR.join(parts)}"

    @property
    def depth(self) -> int:
        """Number of levels from the instance root down to this entity."""
        return 1 if self.parent is None else self.parent.depth + 1

    def ancestry(self) -> list[Entity]:
        """Return the chain of entities from the root down to this entity."""
        chain: list[Entity] = []
        node: Entity | None = self
        while node is not None:
            chain.append(node)
            node = node.parent
        chain.reverse()
        return chain

    def is_descendant_of(self, other: Entity) -> bool:
        """Check whether ``other`` is a strict ancestor of this entity."""
        node = self.parent
        while node is not None:
            if node == other:
                return True
            node = node.parent
        return False


@dataclass(frozen=True)
class PathLevel:
    """One (level name, level value) pair of a resource path."""

    name: str
    value: str

    def __str__(self) -> str:
        return f"{self.name}{LEVEL_ASSIGNMENT}{self.value}"


@dataclass(frozen=True)
class ResourcePath:
    """Ordered root-to-leaf encoding of an entity for policy matching.

    A policy granted on a path applies to every path it prefixes.
    """

    levels: tuple[PathLevel, ...]

    def __len__(self) -> int:
        return len(self.levels)

    def __iter__(self):
        return iter(self.levels)

    def __str__(self) -> str:
        """Return string form (e.g. "instance=cdap/namespace=ns1")."""
        return LEVEL_SEPARATOR.join(str(level) for level in self.levels)

    @classmethod
    def from_string(cls, value: str) -> ResourcePath:
        """Parse the string form produced by ``str(path)``.

        Raises:
            ValueError: If any level is not a ``name=value`` pair
        """
        levels: list[PathLevel] = []
        for part in value.split(LEVEL_SEPARATOR):
            name, assignment, level_value = part.partition(LEVEL_ASSIGNMENT)
            if not assignment or not name or not level_value:
                raise ValueError(f"Invalid resource path level '{part}' in '{value}'")
            levels.append(PathLevel(name=name, value=level_value))
        return cls(levels=tuple(levels))

    def is_prefix_of(self, other: ResourcePath) -> bool:
        """Check whether this path equals or is an ancestor of ``other``."""
        return len(self) <= len(other) and other.levels[: len(self)] == self.levels

    def child(self, name: str, value: str) -> ResourcePath:
        """Return a new path with one more level appended."""
        return ResourcePath(levels=(*self.levels, PathLevel(name=name, value=value)))


@dataclass(frozen=True)
class Privilege:
    """An action on an entity granted to a principal, as listed by a backend."""

    principal: Principal
    entity: Entity
    action: Action


@dataclass(frozen=True)
class CacheKey:
    """Key of a memoized authorization decision."""

    principal: Principal
    entity: Entity
    action: Action


def instance_id(instance: str = DEFAULT_INSTANCE_NAME) -> Entity:
    return Entity(EntityType.INSTANCE, instance)


def namespace_id(namespace: str, instance: str = DEFAULT_INSTANCE_NAME) -> Entity:
    return Entity(EntityType.NAMESPACE, namespace, parent=instance_id(instance))


def artifact_id(
    namespace: str,
    artifact: str,
    version: str,
    instance: str = DEFAULT_INSTANCE_NAME,
) -> Entity:
    return Entity(
        EntityType.ARTIFACT,
        artifact,
        parent=namespace_id(namespace, instance),
        qualifier=version,
    )


def application_id(
    namespace: str,
    application: str,
    version: str = DEFAULT_APPLICATION_VERSION,
    instance: str = DEFAULT_INSTANCE_NAME,
) -> Entity:
    return Entity(
        EntityType.APPLICATION,
        application,
        parent=namespace_id(namespace, instance),
        qualifier=version,
    )


def program_id(
    namespace: str,
    application: str,
    program_type: ProgramType,
    program: str,
    version: str = DEFAULT_APPLICATION_VERSION,
    instance: str = DEFAULT_INSTANCE_NAME,
) -> Entity:
    return Entity(
        EntityType.PROGRAM,
        program,
        parent=application_id(namespace, application, version, instance),
        qualifier=ProgramType(program_type).value,
    )


def dataset_id(namespace: str, dataset: str, instance: str = DEFAULT_INSTANCE_NAME) -> Entity:
    return Entity(EntityType.DATASET, dataset, parent=namespace_id(namespace, instance))


def dataset_module_id(
    namespace: str, module: str, instance: str = DEFAULT_INSTANCE_NAME
) -> Entity:
    return Entity(EntityType.DATASET_MODULE, module, parent=namespace_id(namespace, instance))


def dataset_type_id(
    namespace: str, dataset_type: str, instance: str = DEFAULT_INSTANCE_NAME
) -> Entity:
    return Entity(EntityType.DATASET_TYPE, dataset_type, parent=namespace_id(namespace, instance))


def stream_id(namespace: str, stream: str, instance: str = DEFAULT_INSTANCE_NAME) -> Entity:
    return Entity(EntityType.STREAM, stream, parent=namespace_id(namespace, instance))


def secure_key_id(namespace: str, name: str, instance: str = DEFAULT_INSTANCE_NAME) -> Entity:
    return Entity(EntityType.SECURE_KEY, name, parent=namespace_id(namespace, instance))
