"""
Schema-diff classifier: change-set tree → added/deleted/modified buckets.

Routing rules
-------------
- containers: every item in a bucket belongs to that bucket.
- entities, collection path: the entity carries a top-level change record
  whose flag matches the bucket (created/deleted/modified).
- entities, column path: the entity carries no change record at all; its
  columns are later inspected by their own markers.
- views: added/deleted need the created/deleted flag; modified are those
  neither created nor deleted.

The classifier only filters. Markers are never touched here.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

from src.ddl_bridge.schema.models import (
    ContainerNode,
    EntityNode,
    SchemaNode,
    SchemaTree,
    ViewNode,
)
from src.enums import ChangeMarker, SchemaCategory

NodeT = TypeVar("NodeT", ContainerNode, EntityNode, ViewNode)


@dataclass(frozen=True)
class ChangeBuckets(Generic[NodeT]):
    """Added, deleted and modified nodes of one kind."""

    added: tuple[NodeT, ...] = ()
    deleted: tuple[NodeT, ...] = ()
    modified: tuple[NodeT, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not (self.added or self.deleted or self.modified)


@dataclass(frozen=True)
class ClassifiedChanges:
    """Classifier output for a whole tree."""

    containers: ChangeBuckets[ContainerNode]
    collections: ChangeBuckets[EntityNode]
    columns: ChangeBuckets[EntityNode]
    views: ChangeBuckets[ViewNode]


class Classifier:
    """Partition a `SchemaTree` into change buckets per category."""

    def classify(self, tree: SchemaTree) -> ClassifiedChanges:
        """Classify containers, entities (both paths) and views."""
        return ClassifiedChanges(
            containers=self.classify_containers(tree),
            collections=self.classify_collections(tree),
            columns=self.classify_column_changes(tree),
            views=self.classify_views(tree),
        )

    def classify_containers(self, tree: SchemaTree) -> ChangeBuckets[ContainerNode]:
        return _buckets(tree, SchemaCategory.CONTAINERS, ContainerNode, lambda node, marker: True)

    def classify_collections(self, tree: SchemaTree) -> ChangeBuckets[EntityNode]:
        return _buckets(
            tree,
            SchemaCategory.ENTITIES,
            EntityNode,
            lambda node, marker: node.change is not None and node.change.has_flag(marker),
        )

    def classify_column_changes(self, tree: SchemaTree) -> ChangeBuckets[EntityNode]:
        return _buckets(
            tree, SchemaCategory.ENTITIES, EntityNode, lambda node, marker: node.change is None
        )

    def classify_views(self, tree: SchemaTree) -> ChangeBuckets[ViewNode]:
        return _buckets(tree, SchemaCategory.VIEWS, ViewNode, _view_matches)


# ---------- helpers ----------


def unwrap(tree: SchemaTree, category: SchemaCategory, marker: ChangeMarker) -> tuple[SchemaNode, ...]:
    """Descriptors held by the wrappers of one category bucket."""
    return tuple(item.node for item in tree.items(category, marker))


def _buckets(
    tree: SchemaTree,
    category: SchemaCategory,
    node_type: type[NodeT],
    predicate: Callable[[NodeT, ChangeMarker], bool],
) -> ChangeBuckets[NodeT]:
    def select(marker: ChangeMarker) -> tuple[NodeT, ...]:
        return tuple(
            node
            for node in unwrap(tree, category, marker)
            if isinstance(node, node_type) and predicate(node, marker)
        )

    return ChangeBuckets(
        added=select(ChangeMarker.ADDED),
        deleted=select(ChangeMarker.DELETED),
        modified=select(ChangeMarker.MODIFIED),
    )


def _view_matches(view: ViewNode, marker: ChangeMarker) -> bool:
    change = view.change
    if marker is ChangeMarker.MODIFIED:
        return change is None or not (change.created or change.deleted)
    return change is not None and change.has_flag(marker)
