"""
Schema-tree models: containers, entities, views and columns with change markers.

Conventions
-----------
- Every node is immutable. The diff producer decides markers; nothing in the
  bridge mutates them after parsing.
- `change` is the parsed `compMod` record. `None` means the node carries no
  top-level change record at all, which is what routes an entity through the
  column path instead of the collection path.
- Renames are kept as pairs and are only acted on when complete.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TypeAlias

import pyspark.sql.types as T

from src.ddl_bridge.identifiers import FullEntityName
from src.enums import ChangeMarker, SchemaCategory

# ---------- change payloads ----------


@dataclass(frozen=True)
class RenamePair:
    """Old → new name pair; only complete pairs produce statements."""

    old_name: str = ""
    new_name: str = ""

    @property
    def is_complete(self) -> bool:
        return bool(self.old_name) and bool(self.new_name) and self.old_name != self.new_name


@dataclass(frozen=True)
class ValueChange:
    """Old and new value of a single attribute."""

    old: object = None
    new: object = None

    @property
    def is_changed(self) -> bool:
        return self.old != self.new


@dataclass(frozen=True)
class PropertyChanges:
    """Properties to set (key → value) and keys to unset."""

    add: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    drop: tuple[str, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.add and not self.drop


@dataclass(frozen=True)
class SerDeChange:
    """New serde library, with optional serde properties."""

    library: str = ""
    properties: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))


@dataclass(frozen=True)
class ChangeRecord:
    """
    Parsed `compMod` record of a node.

    The three flags are independent booleans as sent by the host; `marker`
    picks the first set flag in created → deleted → modified order.
    """

    created: bool = False
    deleted: bool = False
    modified: bool = False
    database_name: str = ""
    rename: RenamePair = RenamePair()
    properties: PropertyChanges = PropertyChanges()
    serde: SerDeChange | None = None
    comment: ValueChange | None = None
    select_statement: ValueChange | None = None
    attributes: Mapping[str, ValueChange] = field(default_factory=lambda: MappingProxyType({}))

    @property
    def marker(self) -> ChangeMarker:
        if self.created:
            return ChangeMarker.ADDED
        if self.deleted:
            return ChangeMarker.DELETED
        if self.modified:
            return ChangeMarker.MODIFIED
        return ChangeMarker.NONE

    def has_flag(self, marker: ChangeMarker) -> bool:
        """True when the `compMod` flag for `marker` is set."""
        if marker is ChangeMarker.NONE:
            return False
        return bool(getattr(self, marker.compmod_flag))


# ---------- nodes ----------


@dataclass(frozen=True)
class ColumnNode:
    """A table column with its own change marker."""

    name: str
    data_type: T.DataType
    comment: str = ""
    is_nullable: bool = True
    marker: ChangeMarker = ChangeMarker.NONE
    rename: RenamePair = RenamePair()
    comment_change: ValueChange | None = None


@dataclass(frozen=True)
class StorageOptions:
    """Physical layout of a table."""

    format: str = "delta"
    serde_library: str = ""
    serde_properties: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    location: str = ""


@dataclass(frozen=True)
class BucketingOptions:
    """CLUSTERED BY / SORTED BY / INTO n BUCKETS."""

    clustering_keys: tuple[str, ...] = ()
    sorted_by: tuple[tuple[str, str], ...] = ()  # (column, ASC|DESC)
    num_buckets: int | None = None


@dataclass(frozen=True)
class ContainerNode:
    """A database (schema) container."""

    name: str
    comment: str = ""
    location: str = ""
    properties: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    change: ChangeRecord | None = None

    @property
    def marker(self) -> ChangeMarker:
        return self.change.marker if self.change else ChangeMarker.NONE


@dataclass(frozen=True)
class EntityNode:
    """A table, with columns and storage attributes."""

    name: str
    database_name: str = ""
    columns: tuple[ColumnNode, ...] = ()
    storage: StorageOptions = StorageOptions()
    partition_keys: tuple[str, ...] = ()
    bucketing: BucketingOptions = BucketingOptions()
    comment: str = ""
    table_properties: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    is_external: bool = False
    is_temporary: bool = False
    select_statement: str = ""
    change: ChangeRecord | None = None

    @property
    def full_name(self) -> FullEntityName:
        return FullEntityName(self.database_name, self.name)

    @property
    def marker(self) -> ChangeMarker:
        return self.change.marker if self.change else ChangeMarker.NONE

    def columns_marked(self, marker: ChangeMarker) -> tuple[ColumnNode, ...]:
        """Columns carrying exactly `marker`, in declared order."""
        return tuple(column for column in self.columns if column.marker is marker)


@dataclass(frozen=True)
class ViewNode:
    """A view; descriptor fields already merged with the view's `role`."""

    name: str
    database_name: str = ""
    select_statement: str = ""
    comment: str = ""
    table_properties: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    or_replace: bool = False
    if_not_exists: bool = False
    is_temporary: bool = False
    change: ChangeRecord | None = None

    @property
    def full_name(self) -> FullEntityName:
        return FullEntityName(self.database_name, self.name)

    @property
    def marker(self) -> ChangeMarker:
        return self.change.marker if self.change else ChangeMarker.NONE


SchemaNode: TypeAlias = ContainerNode | EntityNode | ViewNode


# ---------- tree ----------


@dataclass(frozen=True)
class WrappedItem:
    """One bucket item: a single-key wrapper around a descriptor node."""

    key: str
    node: SchemaNode


@dataclass(frozen=True)
class SchemaTree:
    """
    Change-set tree: category → bucket marker → wrapped items.

    Missing categories or buckets simply have no entry.
    """

    categories: Mapping[SchemaCategory, Mapping[ChangeMarker, tuple[WrappedItem, ...]]] = field(
        default_factory=lambda: MappingProxyType({})
    )

    def items(self, category: SchemaCategory, marker: ChangeMarker) -> tuple[WrappedItem, ...]:
        return tuple(self.categories.get(category, {}).get(marker, ()))
