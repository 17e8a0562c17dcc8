"""
Entity graph declarations and the schema registry.
"""

from .definitions import (
    EntityDefinition,
    FieldDefinition,
    FieldType,
    OnDelete,
    RelationshipDefinition,
    RelationshipKind,
    belongs_to,
    has_many,
    has_one,
)
from .registry import SchemaRegistry

__all__ = [
    "EntityDefinition",
    "FieldDefinition",
    "FieldType",
    "OnDelete",
    "RelationshipDefinition",
    "RelationshipKind",
    "SchemaRegistry",
    "belongs_to",
    "has_many",
    "has_one",
]
