"""
Renderers: one function per category × action, each returning SQL fragments.

Modified-table statements are emitted in a fixed order:

  0) drop + create when a non-alterable attribute changed (nothing else)
  1) rename table
  2) set table properties
  3) unset table properties
  4) set serde
  5) table comment

Renderers may return None/empty fragments; the assembler drops them.
Renames are only rendered for complete old → new pairs.
"""

from __future__ import annotations

from dataclasses import replace

from src.ddl_bridge.identifiers import FullEntityName
from src.ddl_bridge.schema.models import ContainerNode, EntityNode, ViewNode
from src.ddl_bridge.sql import (
    sql_add_columns,
    sql_alter_view_query,
    sql_create_database,
    sql_create_table,
    sql_create_view,
    sql_drop_columns,
    sql_drop_database,
    sql_drop_table,
    sql_drop_view,
    sql_rename_column,
    sql_rename_table,
    sql_rename_view,
    sql_set_column_comment,
    sql_set_database_properties,
    sql_set_serde,
    sql_set_table_comment,
    sql_set_table_properties,
    sql_set_view_properties,
    sql_unset_table_properties,
    sql_unset_view_properties,
)
from src.enums import ChangeMarker

Fragments = list[str | None]

# Attribute changes that ALTER TABLE cannot express; the table is recreated.
RECREATE_ATTRIBUTES: tuple[str, ...] = (
    "storedAsTable",
    "location",
    "compositePartitionKey",
    "compositeClusteringKey",
    "sortedByKey",
    "numBuckets",
    "serDeLibrary",
    "externalTable",
)


# ---------- containers ----------


def render_add_container(container: ContainerNode) -> Fragments:
    return [
        sql_create_database(
            container.name, container.comment, container.location, container.properties
        )
    ]


def render_delete_container(container: ContainerNode) -> Fragments:
    return [sql_drop_database(container.name)]


def render_modify_container(container: ContainerNode) -> Fragments:
    """Databases cannot be renamed in place: a rename drops the old one and creates the new."""
    change = container.change
    if change is None:
        return []
    fragments: Fragments = []
    name = container.name
    if change.rename.is_complete:
        name = change.rename.new_name
        fragments.append(sql_drop_database(change.rename.old_name))
        fragments.extend(render_add_container(replace(container, name=name)))
    fragments.append(sql_set_database_properties(name, change.properties.add))
    return fragments


# ---------- collections (table-level changes) ----------


def render_add_collection(entity: EntityNode) -> Fragments:
    return [sql_create_table(entity)]


def render_delete_collection(entity: EntityNode) -> Fragments:
    return [sql_drop_table(entity.full_name)]


def render_modify_collection(entity: EntityNode) -> Fragments:
    change = entity.change
    if change is None:
        return []

    if requires_recreate(entity):
        return [sql_drop_table(entity.full_name), sql_create_table(entity)]

    fragments: Fragments = []
    target = entity.full_name
    if change.rename.is_complete:
        old_name = FullEntityName(entity.database_name, change.rename.old_name)
        target = FullEntityName(entity.database_name, change.rename.new_name)
        fragments.append(sql_rename_table(old_name, target))

    fragments.append(sql_set_table_properties(target, change.properties.add))
    fragments.append(sql_unset_table_properties(target, change.properties.drop))
    if change.serde is not None:
        fragments.append(sql_set_serde(target, change.serde.library, change.serde.properties))
    if change.comment is not None and change.comment.is_changed:
        fragments.append(sql_set_table_comment(target, str(change.comment.new or "")))
    return fragments


def requires_recreate(entity: EntityNode) -> bool:
    """True when a changed attribute cannot be altered in place."""
    if entity.change is None:
        return False
    return any(
        key in entity.change.attributes and entity.change.attributes[key].is_changed
        for key in RECREATE_ATTRIBUTES
    )


# ---------- columns (entities without a top-level change record) ----------


def render_add_columns(entity: EntityNode) -> Fragments:
    return [sql_add_columns(entity.full_name, entity.columns_marked(ChangeMarker.ADDED))]


def render_delete_columns(entity: EntityNode) -> Fragments:
    deleted = entity.columns_marked(ChangeMarker.DELETED)
    return [sql_drop_columns(entity.full_name, (column.name for column in deleted))]


def render_modify_columns(entity: EntityNode) -> Fragments:
    fragments: Fragments = []
    for column in entity.columns_marked(ChangeMarker.MODIFIED):
        name = column.name
        if column.rename.is_complete:
            fragments.append(
                sql_rename_column(entity.full_name, column.rename.old_name, column.rename.new_name)
            )
            name = column.rename.new_name
        if column.comment_change is not None and column.comment_change.is_changed:
            fragments.append(
                sql_set_column_comment(entity.full_name, name, str(column.comment_change.new or ""))
            )
    return fragments


# ---------- views ----------


def render_add_view(view: ViewNode) -> Fragments:
    return [sql_create_view(view)]


def render_delete_view(view: ViewNode) -> Fragments:
    return [sql_drop_view(view.full_name)]


def render_modify_view(view: ViewNode) -> Fragments:
    change = view.change
    if change is None:
        return []
    fragments: Fragments = []
    target = view.full_name
    if change.rename.is_complete:
        old_name = FullEntityName(view.database_name, change.rename.old_name)
        target = FullEntityName(view.database_name, change.rename.new_name)
        fragments.append(sql_rename_view(old_name, target))

    fragments.append(sql_set_view_properties(target, change.properties.add))
    fragments.append(sql_unset_view_properties(target, change.properties.drop))
    if change.select_statement is not None and change.select_statement.is_changed:
        fragments.append(sql_alter_view_query(target, str(change.select_statement.new or "")))
    return fragments
