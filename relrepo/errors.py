"""
Exception hierarchy for the repository layer.

Schema errors are raised while the registry is being built and should abort
start-up. Storage errors are per-call failures surfaced straight to the caller.
"""
from __future__ import annotations

from typing import Any, Iterable, Optional


class RelrepoError(Exception):
    """Base class for every error raised by relrepo."""


class SchemaError(RelrepoError):
    """Structural problem in the declared entity graph."""


class UnknownEntity(SchemaError):
    def __init__(self, name: str, available: Optional[Iterable[str]] = None):
        self.name = name
        self.available = sorted(available or [])
        msg = f"Unknown entity '{name}'"
        if self.available:
            msg += f" (registered: {', '.join(self.available)})"
        super().__init__(msg)


class DuplicateEntity(SchemaError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Entity '{name}' is already registered")


class DanglingRelationship(SchemaError):
    def __init__(self, entity: str, relationship: str, reason: str):
        self.entity = entity
        self.relationship = relationship
        self.reason = reason
        super().__init__(f"Relationship '{entity}.{relationship}' is dangling: {reason}")


class UnknownRelationship(RelrepoError):
    def __init__(self, entity: str, relationship: str, available: Optional[Iterable[str]] = None):
        self.entity = entity
        self.relationship = relationship
        self.available = sorted(available or [])
        msg = f"Entity '{entity}' has no relationship '{relationship}'"
        if self.available:
            msg += f" (available: {', '.join(self.available)})"
        super().__init__(msg)


class UnknownField(RelrepoError):
    def __init__(self, entity: str, fields: Iterable[str]):
        self.entity = entity
        self.fields = sorted(fields)
        super().__init__(f"Entity '{entity}' has no field(s): {', '.join(self.fields)}")


class StorageError(RelrepoError):
    """Per-call failure reported by the storage gateway."""


class NotFound(StorageError):
    def __init__(self, entity: str, key: Any):
        self.entity = entity
        self.key = key
        super().__init__(f"No '{entity}' row with key {key!r}")


class MultipleRowsForKey(StorageError):
    def __init__(self, entity: str, key: Any, count: int):
        self.entity = entity
        self.key = key
        self.count = count
        super().__init__(f"Expected one '{entity}' row for key {key!r}, found {count}")


class ConstraintViolation(StorageError):
    def __init__(self, entity: str, detail: str):
        self.entity = entity
        self.detail = detail
        super().__init__(f"Constraint violated on '{entity}': {detail}")


class AccessToUnloadedRelationship(RelrepoError):
    def __init__(self, entity: str, relationship: str):
        self.entity = entity
        self.relationship = relationship
        super().__init__(
            f"Relationship '{relationship}' of '{entity}' was not loaded; "
            f"request it in the aggregate path before accessing it"
        )
