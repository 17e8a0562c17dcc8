"""
Generic repository over one entity.

Subclasses set ``entity`` and may declare pydantic ``create_schema``,
``update_schema`` and ``read_schema``; payloads are validated against them
before reaching the gateway. Rows created nested under a parent are validated
against ``nested_schemas[child_entity]`` when one is declared.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Type, Union

from pydantic import BaseModel, ValidationError

from relrepo.aggregates import AggregateLoader, PathSpec
from relrepo.db.gateway import StorageGateway
from relrepo.errors import ConstraintViolation, MultipleRowsForKey, NotFound
from relrepo.records import AggregateRecord, Record
from relrepo.registry import EntityDefinition, RelationshipDefinition

logger = logging.getLogger(__name__)

Values = Union[Mapping[str, Any], BaseModel]


def as_dict(values: Values) -> Dict[str, Any]:
    if isinstance(values, BaseModel):
        return values.model_dump(exclude_unset=True)
    return dict(values)


def _describe(exc: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(part) for part in err['loc']) or '<root>'}: {err['msg']}" for err in exc.errors()
    )


class Repository:
    entity: str = ""
    create_schema: Optional[Type[BaseModel]] = None
    update_schema: Optional[Type[BaseModel]] = None
    read_schema: Optional[Type[BaseModel]] = None
    nested_schemas: Mapping[str, Type[BaseModel]] = {}

    def __init__(self, gateway: StorageGateway, entity: Optional[str] = None):
        self.entity = entity or self.entity
        if not self.entity:
            raise ValueError(f"{type(self).__name__} needs an entity name")
        self._gateway = gateway
        self.definition: EntityDefinition = gateway.registry.resolve(self.entity)

    @property
    def gateway(self) -> StorageGateway:
        return self._gateway

    def _payload(
        self,
        values: Values,
        schema: Optional[Type[BaseModel]],
        entity: Optional[str] = None,
    ) -> Dict[str, Any]:
        data = as_dict(values)
        if schema is None or isinstance(values, schema):
            return data
        try:
            return schema.model_validate(data).model_dump(exclude_unset=True)
        except ValidationError as exc:
            raise ConstraintViolation(entity or self.entity, _describe(exc)) from exc

    def create(self, values: Values) -> Record:
        return self._gateway.insert(self.entity, self._payload(values, self.create_schema))

    def update(self, key: Any, values: Values) -> Record:
        return self._gateway.update_by_key(self.entity, key, self._payload(values, self.update_schema))

    def delete(self, key: Any) -> Record:
        return self._gateway.delete_by_key(self.entity, key)

    def get_by_key(self, key: Any) -> Record:
        rows = self._gateway.select_where(self.entity, {self.definition.primary_key: key})
        if not rows:
            raise NotFound(self.entity, key)
        if len(rows) > 1:
            raise MultipleRowsForKey(self.entity, key, len(rows))
        return rows[0]

    def list_by(self, conditions: Optional[Mapping[str, Any]] = None) -> List[Record]:
        return self._gateway.select_where(self.entity, conditions)

    def aggregate(self, key: Any, path: PathSpec) -> AggregateRecord:
        return self._gateway.select_joined(self.entity, key, path)

    def aggregate_all(self, path: PathSpec, conditions: Optional[Mapping[str, Any]] = None) -> List[AggregateRecord]:
        return AggregateLoader(self._gateway).load_many(self.entity, conditions, path)

    def create_with_nested(
        self,
        values: Values,
        nested: Optional[Mapping[str, Any]] = None,
    ) -> AggregateRecord:
        """Create a row and its has_one/has_many children in one transaction.

        ``nested`` maps relationship names to a mapping (has_one) or a list of
        mappings (has_many). When omitted, relationship-named keys are taken
        out of ``values``. Nothing is persisted if any row fails.
        """
        data = as_dict(values)
        if nested is None:
            nested = {name: data.pop(name) for name in list(data) if self.definition.has_relationship(name)}
        payload = self._payload(data, self.create_schema)
        with self._gateway.transaction():
            record = self._create_tree(self.definition, payload, nested)
        logger.debug("create_with_nested %s key=%s nested=%s", self.entity, record.key, sorted(nested))
        return record

    def _create_tree(
        self,
        definition: EntityDefinition,
        values: Dict[str, Any],
        nested: Mapping[str, Any],
    ) -> AggregateRecord:
        parent = AggregateRecord.from_record(self._gateway.insert(definition.name, values))
        for name, spec in nested.items():
            rel = definition.relationship(name)
            target = self._gateway.registry.resolve(rel.target)
            if rel.is_owning:
                raise ConstraintViolation(
                    definition.name, f"'{name}' is a belongs_to relationship and cannot be created nested"
                )
            if rel.is_collection:
                if isinstance(spec, (Mapping, BaseModel, str)) or not isinstance(spec, (list, tuple)):
                    raise ConstraintViolation(definition.name, f"'{name}' expects a list of rows")
                parent.set_relation(name, [self._create_child(target, rel, parent, item) for item in spec])
            elif spec is None:
                parent.set_relation(name, None)
            elif isinstance(spec, (Mapping, BaseModel)):
                parent.set_relation(name, self._create_child(target, rel, parent, spec))
            else:
                raise ConstraintViolation(definition.name, f"'{name}' expects a single row")
        return parent

    def _create_child(
        self,
        target: EntityDefinition,
        rel: RelationshipDefinition,
        parent: AggregateRecord,
        values: Values,
    ) -> AggregateRecord:
        data = as_dict(values)
        given = data.get(rel.foreign_key)
        if given is not None and given != parent.key:
            raise ConstraintViolation(
                target.name, f"{rel.foreign_key}={given!r} conflicts with parent key {parent.key!r}"
            )
        data[rel.foreign_key] = parent.key
        children = {name: data.pop(name) for name in list(data) if target.has_relationship(name)}
        data = self._payload(data, self.nested_schemas.get(target.name), target.name)
        return self._create_tree(target, data, children)

    def to_model(self, record: Record) -> BaseModel:
        if self.read_schema is None:
            raise TypeError(f"{type(self).__name__} has no read_schema")
        return self.read_schema.model_validate(record.to_dict())
