"""
Aggregate loading: nested fetch along a declared relationship path.

A path is a tree of relationship names, e.g. ``{"blogs": {"posts": {}}}``.
The loader walks it breadth-first and issues one batched query per
relationship per level, whatever the number of parent rows.
"""
from __future__ import annotations

import logging
from collections import defaultdict, deque
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional, Union

from relrepo.errors import MultipleRowsForKey
from relrepo.records import AggregateRecord
from relrepo.registry import EntityDefinition, RelationshipDefinition

if TYPE_CHECKING:  # pragma: no cover
    from relrepo.db.gateway import StorageGateway

logger = logging.getLogger(__name__)

PathSpec = Union[str, Mapping[str, Any], list, tuple, None]
PathTree = Dict[str, "PathTree"]


def normalize_path(spec: PathSpec) -> PathTree:
    """Turn a path spec into a nested dict tree.

    Accepts a relationship name, a mapping of name -> sub-spec, or a list
    mixing both, so ``["profile", {"blogs": ["posts"]}]`` is equivalent to
    ``{"profile": {}, "blogs": {"posts": {}}}``.
    """
    if spec is None:
        return {}
    if isinstance(spec, str):
        return {spec: {}}
    if isinstance(spec, Mapping):
        tree: PathTree = {}
        for name, sub in spec.items():
            _merge(tree, {str(name): normalize_path(sub)})
        return tree
    if isinstance(spec, (list, tuple, set, frozenset)):
        tree = {}
        for item in spec:
            _merge(tree, normalize_path(item))
        return tree
    raise TypeError(f"Unsupported aggregate path element: {spec!r}")


def _merge(into: PathTree, other: PathTree) -> None:
    for name, sub in other.items():
        _merge(into.setdefault(name, {}), sub)


class AggregateLoader:
    def __init__(self, gateway: "StorageGateway"):
        self._gateway = gateway
        self._registry = gateway.registry

    def load(self, entity: str, key: Any, path: PathSpec) -> AggregateRecord:
        definition = self._registry.resolve(entity)
        tree = normalize_path(path)
        self._check_path(definition, tree)
        root = AggregateRecord.from_record(self._gateway.get_by_key(entity, key))
        self._populate(definition, [root], tree)
        return root

    def load_many(
        self,
        entity: str,
        conditions: Optional[Mapping[str, Any]] = None,
        path: PathSpec = None,
    ) -> List[AggregateRecord]:
        definition = self._registry.resolve(entity)
        tree = normalize_path(path)
        self._check_path(definition, tree)
        roots = [AggregateRecord.from_record(r) for r in self._gateway.select_where(entity, conditions)]
        if roots:
            self._populate(definition, roots, tree)
        return roots

    def _check_path(self, definition: EntityDefinition, tree: PathTree) -> None:
        # Fail on a bad segment before any query runs
        for name, subtree in tree.items():
            rel = definition.relationship(name)
            self._check_path(self._registry.resolve(rel.target), subtree)

    def _populate(self, definition: EntityDefinition, roots: List[AggregateRecord], tree: PathTree) -> None:
        queue = deque([(definition, roots, tree)])
        while queue:
            current, parents, level = queue.popleft()
            for name, subtree in level.items():
                rel = current.relationship(name)
                target = self._registry.resolve(rel.target)
                children = self._attach(rel, target, parents)
                logger.debug(
                    "aggregate %s.%s: parents=%d children=%d", current.name, name, len(parents), len(children)
                )
                if subtree and children:
                    queue.append((target, children, subtree))

    def _attach(
        self,
        rel: RelationshipDefinition,
        target: EntityDefinition,
        parents: List[AggregateRecord],
    ) -> List[AggregateRecord]:
        if rel.is_owning:
            rows = self._gateway.select_in(target.name, target.primary_key, [p[rel.foreign_key] for p in parents])
            by_key = {row.key: AggregateRecord.from_record(row) for row in rows}
            for parent in parents:
                parent.set_relation(rel.name, by_key.get(parent[rel.foreign_key]))
            return list(by_key.values())

        rows = self._gateway.select_in(target.name, rel.foreign_key, [p.key for p in parents])
        grouped: Dict[Any, List[AggregateRecord]] = defaultdict(list)
        children = []
        for row in rows:
            child = AggregateRecord.from_record(row)
            grouped[row[rel.foreign_key]].append(child)
            children.append(child)
        for parent in parents:
            group = grouped.get(parent.key, [])
            if rel.is_collection:
                parent.set_relation(rel.name, group)
            elif len(group) > 1:
                raise MultipleRowsForKey(target.name, parent.key, len(group))
            else:
                parent.set_relation(rel.name, group[0] if group else None)
        return children
