"""
relrepo: typed repositories over a foreign-keyed entity graph.

Typical wiring::

    registry = blog.build_registry()
    database = open_database(registry)
    with database.gateway() as gateway:
        users = UserRepository(gateway)
        user = users.create({"user_name": "jane", "email": "jane@doe.org"})
"""
from typing import Optional

from relrepo.aggregates import AggregateLoader, normalize_path
from relrepo.db import Database, StorageGateway
from relrepo.errors import (
    AccessToUnloadedRelationship,
    ConstraintViolation,
    DanglingRelationship,
    DuplicateEntity,
    MultipleRowsForKey,
    NotFound,
    RelrepoError,
    SchemaError,
    StorageError,
    UnknownEntity,
    UnknownField,
    UnknownRelationship,
)
from relrepo.records import AggregateRecord, Record
from relrepo.registry import SchemaRegistry
from relrepo.repositories import Repository

__version__ = "0.1.0"


def open_database(registry: SchemaRegistry, url: Optional[str] = None) -> Database:
    """Build a ``Database`` for ``registry`` and create its tables."""
    database = Database(registry, url)
    database.create_schema()
    return database


__all__ = [
    "AccessToUnloadedRelationship",
    "AggregateLoader",
    "AggregateRecord",
    "ConstraintViolation",
    "DanglingRelationship",
    "Database",
    "DuplicateEntity",
    "MultipleRowsForKey",
    "NotFound",
    "Record",
    "RelrepoError",
    "Repository",
    "SchemaError",
    "SchemaRegistry",
    "StorageError",
    "StorageGateway",
    "UnknownEntity",
    "UnknownField",
    "UnknownRelationship",
    "normalize_path",
    "open_database",
]
