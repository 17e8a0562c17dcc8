"""Immutable entity, field and relationship definitions."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Tuple

from relrepo.errors import UnknownField, UnknownRelationship


class FieldType(str, Enum):
    INTEGER = "integer"
    STRING = "string"
    TEXT = "text"
    BOOLEAN = "boolean"
    FLOAT = "float"
    DATETIME = "datetime"


class RelationshipKind(str, Enum):
    HAS_ONE = "has_one"
    HAS_MANY = "has_many"
    BELONGS_TO = "belongs_to"


class OnDelete(str, Enum):
    CASCADE = "cascade"
    RESTRICT = "restrict"
    SET_NULL = "set_null"

    @property
    def sql(self) -> str:
        return self.value.replace("_", " ").upper()


@dataclass(frozen=True)
class FieldDefinition:
    name: str
    type: FieldType = FieldType.STRING
    nullable: bool = False


@dataclass(frozen=True)
class RelationshipDefinition:
    """A named foreign-key-backed link from one entity to another.

    For ``belongs_to`` the foreign key is a field of the owning entity; for
    ``has_one`` and ``has_many`` it is a field of ``target``.
    """

    name: str
    kind: RelationshipKind
    target: str
    foreign_key: str
    on_delete: OnDelete = OnDelete.CASCADE

    @property
    def is_collection(self) -> bool:
        return self.kind is RelationshipKind.HAS_MANY

    @property
    def is_owning(self) -> bool:
        return self.kind is RelationshipKind.BELONGS_TO


def has_one(name: str, target: str, foreign_key: str) -> RelationshipDefinition:
    return RelationshipDefinition(name, RelationshipKind.HAS_ONE, target, foreign_key)


def has_many(name: str, foreign_key: str, target: Optional[str] = None) -> RelationshipDefinition:
    return RelationshipDefinition(name, RelationshipKind.HAS_MANY, target or name, foreign_key)


def belongs_to(
    name: str,
    target: str,
    foreign_key: Optional[str] = None,
    on_delete: OnDelete = OnDelete.CASCADE,
) -> RelationshipDefinition:
    return RelationshipDefinition(
        name, RelationshipKind.BELONGS_TO, target, foreign_key or f"{name}_id", on_delete
    )


@dataclass(frozen=True)
class EntityDefinition:
    """A named row type: ordered non-key fields, an integer primary key and relationships.

    The primary key is assigned by the store and is not listed in ``fields``.
    """

    name: str
    fields: Tuple[FieldDefinition, ...]
    primary_key: str = "id"
    relationships: Tuple[RelationshipDefinition, ...] = ()
    _fields_by_name: Dict[str, FieldDefinition] = field(init=False, repr=False, compare=False)
    _relationships_by_name: Dict[str, RelationshipDefinition] = field(
        init=False, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        # Accept lists from callers while keeping the stored value hashable
        object.__setattr__(self, "fields", tuple(self.fields))
        object.__setattr__(self, "relationships", tuple(self.relationships))
        by_name = {f.name: f for f in self.fields}
        if len(by_name) != len(self.fields):
            raise ValueError(f"Entity '{self.name}' declares a field twice")
        if self.primary_key in by_name:
            raise ValueError(
                f"Entity '{self.name}' lists its primary key '{self.primary_key}' as a field"
            )
        rels = {r.name: r for r in self.relationships}
        if len(rels) != len(self.relationships):
            raise ValueError(f"Entity '{self.name}' declares a relationship twice")
        clash = set(rels) & (set(by_name) | {self.primary_key})
        if clash:
            raise ValueError(
                f"Entity '{self.name}' uses {sorted(clash)} both as field and relationship"
            )
        object.__setattr__(self, "_fields_by_name", by_name)
        object.__setattr__(self, "_relationships_by_name", rels)

    @property
    def field_names(self) -> Tuple[str, ...]:
        return tuple(f.name for f in self.fields)

    @property
    def column_names(self) -> Tuple[str, ...]:
        return (self.primary_key,) + self.field_names

    @property
    def relationship_names(self) -> Tuple[str, ...]:
        return tuple(r.name for r in self.relationships)

    def has_field(self, name: str) -> bool:
        return name in self._fields_by_name

    def get_field(self, name: str) -> FieldDefinition:
        try:
            return self._fields_by_name[name]
        except KeyError:
            raise UnknownField(self.name, [name]) from None

    def has_relationship(self, name: str) -> bool:
        return name in self._relationships_by_name

    def relationship(self, name: str) -> RelationshipDefinition:
        try:
            return self._relationships_by_name[name]
        except KeyError:
            raise UnknownRelationship(self.name, name, self._relationships_by_name) from None

    def required_fields(self) -> Tuple[str, ...]:
        return tuple(f.name for f in self.fields if not f.nullable)
