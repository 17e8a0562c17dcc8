"""
Result objects returned by the gateway and repositories.

``Record`` is a read-only mapping over one row. ``AggregateRecord`` adds the
relationships a caller explicitly asked for; reading any other relationship
raises ``AccessToUnloadedRelationship`` instead of yielding an empty value.
"""
from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Dict, Iterator, List, Union

from relrepo.errors import AccessToUnloadedRelationship
from relrepo.registry import EntityDefinition

RelationValue = Union["AggregateRecord", List["AggregateRecord"], None]


class Record(Mapping):
    __slots__ = ("_definition", "_values")

    def __init__(self, definition: EntityDefinition, values: Mapping[str, Any]):
        object.__setattr__(self, "_definition", definition)
        object.__setattr__(self, "_values", {name: values.get(name) for name in definition.column_names})

    @property
    def entity(self) -> str:
        return self._definition.name

    @property
    def definition(self) -> EntityDefinition:
        return self._definition

    @property
    def key(self) -> Any:
        return self._values.get(self._definition.primary_key)

    def __getitem__(self, name: str) -> Any:
        return self._values[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __contains__(self, name: object) -> bool:
        return name in self._values

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        try:
            return self._values[name]
        except KeyError:
            raise AttributeError(f"'{self.entity}' record has no field '{name}'") from None

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError(f"'{self.entity}' records are read-only; use the repository to update")

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Record):
            return self.entity == other.entity and self._values == other._values
        if isinstance(other, Mapping):
            return self._values == dict(other)
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    def to_dict(self) -> Dict[str, Any]:
        return dict(self._values)

    def __repr__(self) -> str:
        body = " ".join(f"{k}={v!r}" for k, v in self._values.items())
        return f"<{type(self).__name__} {self.entity} {body}>"


class AggregateRecord(Record):
    __slots__ = ("_relations",)

    def __init__(self, definition: EntityDefinition, values: Mapping[str, Any]):
        super().__init__(definition, values)
        object.__setattr__(self, "_relations", {})

    @classmethod
    def from_record(cls, record: Record) -> "AggregateRecord":
        return cls(record.definition, record)

    @property
    def loaded_relationships(self) -> List[str]:
        return list(self._relations)

    def is_loaded(self, name: str) -> bool:
        return name in self._relations

    def relation(self, name: str) -> RelationValue:
        """Return a loaded relationship; unloaded or undeclared names raise."""
        if name in self._relations:
            return self._relations[name]
        # Raises UnknownRelationship for names the entity never declared
        self._definition.relationship(name)
        raise AccessToUnloadedRelationship(self.entity, name)

    def set_relation(self, name: str, value: RelationValue) -> None:
        self._definition.relationship(name)
        self._relations[name] = value

    def __getitem__(self, name: str) -> Any:
        if name in self._values:
            return self._values[name]
        if self._definition.has_relationship(name):
            return self.relation(name)
        raise KeyError(name)

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        if self._definition.has_relationship(name):
            return self.relation(name)
        return super().__getattr__(name)

    def __eq__(self, other: object) -> bool:
        result = super().__eq__(other)
        if result is True and isinstance(other, AggregateRecord):
            return self._relations == other._relations
        return result

    __hash__ = None  # type: ignore[assignment]

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        for name, value in self._relations.items():
            if isinstance(value, list):
                data[name] = [child.to_dict() for child in value]
            elif value is None:
                data[name] = None
            else:
                data[name] = value.to_dict()
        return data

    def __repr__(self) -> str:
        base = super().__repr__()[:-1]
        nested = " ".join(f"{k}={v!r}" for k, v in self._relations.items())
        return f"{base} {nested}>" if nested else f"{base}>"
