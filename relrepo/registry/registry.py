"""Schema registry holding the entity graph.

Registration is two-phase: ``register`` accepts definitions in any order and
checks only what a single definition can prove about itself; ``validate``
then checks every cross-entity reference and seals the registry. Entity
graphs with inverse associations (users has_many blogs, blogs belongs_to
users) cannot be registered in dependency order, hence the second phase.
"""
from __future__ import annotations

import logging
from typing import Dict, FrozenSet, Iterable, Iterator, List, Tuple

from relrepo.errors import (
    DanglingRelationship,
    DuplicateEntity,
    SchemaError,
    UnknownEntity,
)
from .definitions import EntityDefinition, RelationshipDefinition, RelationshipKind

logger = logging.getLogger(__name__)


class SchemaRegistry:
    """Registry of entity definitions and their relationships."""

    def __init__(self):
        self._entities: Dict[str, EntityDefinition] = {}
        self._dependents: Dict[str, Tuple[Tuple[EntityDefinition, RelationshipDefinition], ...]] = {}
        self._sealed = False

    @classmethod
    def from_definitions(cls, definitions: Iterable[EntityDefinition]) -> "SchemaRegistry":
        """Register every definition, then validate and seal the registry."""
        registry = cls()
        for definition in definitions:
            registry.register(definition)
        registry.validate()
        return registry

    @property
    def sealed(self) -> bool:
        return self._sealed

    def register(self, definition: EntityDefinition) -> None:
        """Add an entity definition.

        Raises:
            DuplicateEntity: If an entity with the same name is registered
            DanglingRelationship: If a belongs_to foreign key is not a field of the entity
        """
        if self._sealed:
            raise SchemaError("Registry is sealed; register all entities before validate()")
        if definition.name in self._entities:
            raise DuplicateEntity(definition.name)
        for rel in definition.relationships:
            if rel.kind is RelationshipKind.BELONGS_TO and not definition.has_field(rel.foreign_key):
                raise DanglingRelationship(
                    definition.name, rel.name,
                    f"foreign key '{rel.foreign_key}' is not a field of '{definition.name}'",
                )
        self._entities[definition.name] = definition
        logger.debug("registered entity: %s", definition.name)

    def validate(self) -> None:
        """Check every relationship against the registered graph and seal the registry.

        Raises:
            DanglingRelationship: On a missing target entity, a has_one/has_many
                foreign key absent from its target, or a has_one/has_many with
                no matching belongs_to on the target
        """
        for definition in self._entities.values():
            for rel in definition.relationships:
                self._check_relationship(definition, rel)

        dependents: Dict[str, List[Tuple[EntityDefinition, RelationshipDefinition]]] = {
            name: [] for name in self._entities
        }
        for definition in self._entities.values():
            for rel in definition.relationships:
                if rel.kind is RelationshipKind.BELONGS_TO:
                    dependents[rel.target].append((definition, rel))
        self._dependents = {name: tuple(pairs) for name, pairs in dependents.items()}
        self._sealed = True
        logger.info("schema registry sealed: %d entities", len(self._entities))

    def _check_relationship(self, definition: EntityDefinition, rel: RelationshipDefinition) -> None:
        target = self._entities.get(rel.target)
        if target is None:
            raise DanglingRelationship(
                definition.name, rel.name, f"target entity '{rel.target}' is not registered"
            )
        if rel.kind is RelationshipKind.BELONGS_TO:
            return
        if not target.has_field(rel.foreign_key):
            raise DanglingRelationship(
                definition.name, rel.name,
                f"foreign key '{rel.foreign_key}' is not a field of '{target.name}'",
            )
        inverse = [
            r for r in target.relationships
            if r.kind is RelationshipKind.BELONGS_TO
            and r.target == definition.name
            and r.foreign_key == rel.foreign_key
        ]
        if not inverse:
            raise DanglingRelationship(
                definition.name, rel.name,
                f"'{target.name}' has no belongs_to '{definition.name}' on '{rel.foreign_key}'",
            )

    def resolve(self, name: str) -> EntityDefinition:
        try:
            return self._entities[name]
        except KeyError:
            raise UnknownEntity(name, self._entities) from None

    def relationships_of(self, name: str) -> FrozenSet[RelationshipDefinition]:
        return frozenset(self.resolve(name).relationships)

    def relationship(self, entity_name: str, relationship_name: str) -> RelationshipDefinition:
        return self.resolve(entity_name).relationship(relationship_name)

    def dependents_of(self, name: str) -> Tuple[Tuple[EntityDefinition, RelationshipDefinition], ...]:
        """Return (entity, belongs_to) pairs whose foreign key references ``name``."""
        self.resolve(name)
        if not self._sealed:
            raise SchemaError("Registry must be validated before dependents can be resolved")
        return self._dependents[name]

    def __contains__(self, name: object) -> bool:
        return name in self._entities

    def __len__(self) -> int:
        return len(self._entities)

    def __iter__(self) -> Iterator[EntityDefinition]:
        return iter(self._entities.values())

    def __str__(self) -> str:
        return f"SchemaRegistry(entities={len(self)}, sealed={self._sealed})"
