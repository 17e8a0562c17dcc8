"""
Storage gateway: the single seam between repositories and the relational store.

Every write runs inside ``transaction()``; calls made while an outer
transaction is open join it, so multi-step operations commit or roll back as
one unit. Rows come back as ``Record`` objects ordered by primary key, which
is insertion order for store-assigned integer keys.
"""
from __future__ import annotations

import logging
from collections import defaultdict
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Set, Tuple

from sqlalchemy import Column, MetaData, Table, delete, func, insert, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from relrepo.aggregates import AggregateLoader, PathSpec
from relrepo.config import DEFAULT_IN_CHUNK_SIZE
from relrepo.errors import ConstraintViolation, MultipleRowsForKey, NotFound, UnknownField
from relrepo.records import AggregateRecord, Record
from relrepo.registry import EntityDefinition, FieldType, OnDelete, SchemaRegistry

logger = logging.getLogger(__name__)

_PYTHON_TYPES = {
    FieldType.INTEGER: int,
    FieldType.STRING: str,
    FieldType.TEXT: str,
    FieldType.BOOLEAN: bool,
    FieldType.FLOAT: (int, float),
    FieldType.DATETIME: datetime,
}


class StorageGateway:
    def __init__(
        self,
        registry: SchemaRegistry,
        metadata: MetaData,
        session: Session,
        *,
        in_chunk_size: int = DEFAULT_IN_CHUNK_SIZE,
    ):
        self.registry = registry
        self._metadata = metadata
        self._session = session
        self._in_chunk_size = in_chunk_size
        self._depth = 0

    @property
    def session(self) -> Session:
        return self._session

    @property
    def in_transaction(self) -> bool:
        return self._depth > 0

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """Commit on success, roll back on any exception; nested calls join the outer one."""
        if self._depth:
            self._depth += 1
            try:
                yield
            finally:
                self._depth -= 1
            return
        self._depth = 1
        try:
            yield
            self._session.commit()
        except BaseException as exc:
            logger.warning("transaction rolled back: %r", exc)
            self._session.rollback()
            raise
        finally:
            self._depth = 0

    def _resolve(self, entity: str) -> Tuple[EntityDefinition, Table]:
        definition = self.registry.resolve(entity)
        return definition, self._metadata.tables[definition.name]

    def _column(self, definition: EntityDefinition, table: Table, name: str) -> Column:
        if name != definition.primary_key and not definition.has_field(name):
            raise UnknownField(definition.name, [name])
        return table.c[name]

    def _execute(self, definition: EntityDefinition, statement):
        try:
            return self._session.execute(statement)
        except IntegrityError as exc:
            raise ConstraintViolation(definition.name, str(exc.orig)) from exc

    def _check_values(self, definition: EntityDefinition, values: Mapping[str, Any], *, creating: bool) -> Dict[str, Any]:
        data = dict(values)
        if definition.primary_key in data:
            detail = "is assigned by the store" if creating else "cannot be changed"
            raise ConstraintViolation(definition.name, f"primary key '{definition.primary_key}' {detail}")
        unknown = set(data) - set(definition.field_names)
        if unknown:
            raise UnknownField(definition.name, unknown)
        mistyped = [
            name for name, value in data.items()
            if value is not None and not isinstance(value, _PYTHON_TYPES[definition.get_field(name).type])
        ]
        if mistyped:
            raise ConstraintViolation(definition.name, f"wrong value type for field(s): {', '.join(sorted(mistyped))}")
        if creating:
            missing = [name for name in definition.required_fields() if data.get(name) is None]
            if missing:
                raise ConstraintViolation(definition.name, f"missing required field(s): {', '.join(missing)}")
        else:
            nulled = [name for name, value in data.items() if value is None and not definition.get_field(name).nullable]
            if nulled:
                raise ConstraintViolation(definition.name, f"field(s) cannot be null: {', '.join(nulled)}")
        return data

    def _check_references(self, definition: EntityDefinition, data: Mapping[str, Any]) -> None:
        for rel in definition.relationships:
            if not rel.is_owning or data.get(rel.foreign_key) is None:
                continue
            target, target_table = self._resolve(rel.target)
            value = data[rel.foreign_key]
            stmt = select(func.count()).select_from(target_table).where(target_table.c[target.primary_key] == value)
            if not self._session.execute(stmt).scalar():
                raise ConstraintViolation(
                    definition.name,
                    f"{rel.foreign_key}={value!r} references a missing '{target.name}' row",
                )

    def _get_one(self, definition: EntityDefinition, table: Table, key: Any) -> Record:
        rows = self._session.execute(
            select(table).where(table.c[definition.primary_key] == key)
        ).mappings().all()
        if not rows:
            raise NotFound(definition.name, key)
        if len(rows) > 1:
            raise MultipleRowsForKey(definition.name, key, len(rows))
        return Record(definition, rows[0])

    def insert(self, entity: str, values: Mapping[str, Any]) -> Record:
        definition, table = self._resolve(entity)
        data = self._check_values(definition, values, creating=True)
        with self.transaction():
            self._check_references(definition, data)
            result = self._execute(definition, insert(table).values(**data))
            key = result.inserted_primary_key[0]
        logger.debug("insert %s key=%s", entity, key)
        return Record(definition, {**data, definition.primary_key: key})

    def update_by_key(self, entity: str, key: Any, values: Mapping[str, Any]) -> Record:
        definition, table = self._resolve(entity)
        data = self._check_values(definition, values, creating=False)
        with self.transaction():
            current = self._get_one(definition, table, key)
            if data:
                self._check_references(definition, data)
                self._execute(
                    definition,
                    update(table).where(table.c[definition.primary_key] == key).values(**data),
                )
        logger.debug("update %s key=%s fields=%s", entity, key, sorted(data))
        return Record(definition, {**current, **data})

    def delete_by_key(self, entity: str, key: Any) -> Record:
        """Delete one row, applying each dependent's on-delete policy first.

        Returns the row as it was before deletion.
        """
        definition, table = self._resolve(entity)
        counts: Dict[str, int] = defaultdict(int)
        with self.transaction():
            current = self._get_one(definition, table, key)
            self._delete_keys(definition, [key], counts, defaultdict(set))
        logger.info("delete %s key=%s affected=%s", entity, key, dict(counts))
        return current

    def _delete_keys(
        self,
        definition: EntityDefinition,
        keys: List[Any],
        counts: Dict[str, int],
        pending: Dict[str, Set[Any]],
    ) -> None:
        pending[definition.name].update(keys)
        for child, rel in self.registry.dependents_of(definition.name):
            child_table = self._metadata.tables[child.name]
            child_pk = child_table.c[child.primary_key]
            child_keys = [
                row[0]
                for chunk in self._chunks(keys)
                for row in self._session.execute(
                    select(child_pk).where(child_table.c[rel.foreign_key].in_(chunk))
                )
                if row[0] not in pending[child.name]
            ]
            if not child_keys:
                continue
            if rel.on_delete is OnDelete.RESTRICT:
                raise ConstraintViolation(
                    definition.name,
                    f"{len(child_keys)} '{child.name}' row(s) still reference it via {rel.foreign_key}",
                )
            if rel.on_delete is OnDelete.SET_NULL:
                if not child.get_field(rel.foreign_key).nullable:
                    raise ConstraintViolation(
                        child.name, f"cannot set non-nullable '{rel.foreign_key}' to null"
                    )
                for chunk in self._chunks(child_keys):
                    self._execute(child, update(child_table).where(child_pk.in_(chunk)).values({rel.foreign_key: None}))
                counts[f"{child.name}.{rel.foreign_key}=null"] += len(child_keys)
                continue
            self._delete_keys(child, child_keys, counts, pending)
        table = self._metadata.tables[definition.name]
        for chunk in self._chunks(keys):
            self._execute(definition, delete(table).where(table.c[definition.primary_key].in_(chunk)))
        counts[definition.name] += len(keys)

    def select_where(self, entity: str, conditions: Optional[Mapping[str, Any]] = None) -> List[Record]:
        """Exact-match select; ``None`` matches NULL and a list/tuple/set matches any member."""
        definition, table = self._resolve(entity)
        stmt = select(table)
        for name, value in (conditions or {}).items():
            column = self._column(definition, table, name)
            if value is None:
                stmt = stmt.where(column.is_(None))
            elif isinstance(value, (list, tuple, set, frozenset)):
                stmt = stmt.where(column.in_(list(value)))
            else:
                stmt = stmt.where(column == value)
        stmt = stmt.order_by(table.c[definition.primary_key])
        return [Record(definition, row) for row in self._session.execute(stmt).mappings()]

    def select_in(self, entity: str, field: str, values: Iterable[Any]) -> List[Record]:
        """Batched membership select used by the aggregate loader."""
        definition, table = self._resolve(entity)
        column = self._column(definition, table, field)
        distinct = list(dict.fromkeys(v for v in values if v is not None))
        if not distinct:
            return []
        pk = table.c[definition.primary_key]
        records = []
        for chunk in self._chunks(distinct):
            stmt = select(table).where(column.in_(chunk)).order_by(pk)
            records.extend(Record(definition, row) for row in self._session.execute(stmt).mappings())
        if len(distinct) > self._in_chunk_size:
            records.sort(key=lambda record: record.key)
        return records

    def select_joined(self, entity: str, key: Any, path: PathSpec) -> AggregateRecord:
        return AggregateLoader(self).load(entity, key, path)

    def get_by_key(self, entity: str, key: Any) -> Record:
        definition, table = self._resolve(entity)
        return self._get_one(definition, table, key)

    def _chunks(self, values: List[Any]) -> Iterator[List[Any]]:
        for start in range(0, len(values), self._in_chunk_size):
            yield values[start:start + self._in_chunk_size]
