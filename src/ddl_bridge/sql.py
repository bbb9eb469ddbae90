"""
SQL string builders for Databricks / Delta Lake DDL.

All functions return a single `;`-terminated statement (or None for no-ops).
Entity names are passed as `FullEntityName` and backtick-escaped here;
database names are plain strings.

Design guarantees
- Deterministic, side-effect free string generation.
- Proper identifier quoting and SQL literal escaping.
- No business rules: the renderers decide which statements a change needs
  and the assembler decides whether destructive ones stay active.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence

from src.ddl_bridge.identifiers import FullEntityName, quote_full_entity_name, quote_identifier
from src.ddl_bridge.schema.models import ColumnNode, EntityNode, ViewNode
from src.ddl_bridge.schema.types import render_type
from src.ddl_bridge.utils import (
    format_column_list,
    format_property_keys,
    format_tblproperties,
    sql_string,
)

# Formats only expressible through Hive's STORED AS clause.
_HIVE_ONLY_FORMATS = frozenset({"textfile", "sequencefile", "rcfile"})


# ---------- databases ----------


def sql_create_database(
    database_name: str,
    comment: str = "",
    location: str = "",
    properties: Mapping[str, str] | None = None,
) -> str | None:
    """CREATE DATABASE IF NOT EXISTS ... [COMMENT] [LOCATION] [WITH DBPROPERTIES]."""
    if not database_name:
        return None
    parts = [f"CREATE DATABASE IF NOT EXISTS {quote_identifier(database_name)}"]
    if comment:
        parts.append(f"COMMENT {sql_string(comment)}")
    if location:
        parts.append(f"LOCATION {sql_string(location)}")
    if properties:
        parts.append(f"WITH DBPROPERTIES ({format_tblproperties(properties)})")
    return "\n".join(parts) + ";"


def sql_drop_database(database_name: str) -> str | None:
    """DROP DATABASE IF EXISTS ... Returns None without a name."""
    if not database_name:
        return None
    return f"DROP DATABASE IF EXISTS {quote_identifier(database_name)};"


def sql_set_database_properties(database_name: str, properties: Mapping[str, str]) -> str | None:
    """ALTER DATABASE ... SET DBPROPERTIES (...). Returns None if no props."""
    if not database_name or not properties:
        return None
    return (
        f"ALTER DATABASE {quote_identifier(database_name)} "
        f"SET DBPROPERTIES ({format_tblproperties(properties)});"
    )


# ---------- tables ----------


def sql_column_definition(column: ColumnNode) -> str:
    """`name` type [NOT NULL] [COMMENT '...']."""
    definition = f"{quote_identifier(column.name)} {render_type(column.data_type)}"
    if not column.is_nullable:
        definition += " NOT NULL"
    if column.comment:
        definition += f" COMMENT {sql_string(column.comment)}"
    return definition


def sql_create_table(entity: EntityNode) -> str:
    """CREATE TABLE IF NOT EXISTS with columns, layout, location, comment and properties."""
    modifiers = ""
    if entity.is_temporary:
        modifiers += " TEMPORARY"
    if entity.is_external:
        modifiers += " EXTERNAL"
    head = f"CREATE{modifiers} TABLE IF NOT EXISTS {quote_full_entity_name(entity.full_name)}"

    lines = [head]
    if entity.columns:
        columns = ",\n".join(sql_column_definition(column) for column in entity.columns)
        lines[0] += f" (\n{columns}\n)"

    lines.extend(_storage_clauses(entity))
    if entity.partition_keys:
        lines.append(f"PARTITIONED BY ({format_column_list(entity.partition_keys)})")
    bucketing = _bucketing_clause(entity)
    if bucketing:
        lines.append(bucketing)
    if entity.storage.location:
        lines.append(f"LOCATION {sql_string(entity.storage.location)}")
    if entity.comment:
        lines.append(f"COMMENT {sql_string(entity.comment)}")
    if entity.table_properties:
        lines.append(f"TBLPROPERTIES ({format_tblproperties(entity.table_properties)})")
    if entity.select_statement:
        lines.append(f"AS {entity.select_statement.strip().rstrip(';')}")
    return "\n".join(lines) + ";"


def sql_drop_table(full_name: FullEntityName) -> str:
    """DROP TABLE IF EXISTS ..."""
    return f"DROP TABLE IF EXISTS {quote_full_entity_name(full_name)};"


def sql_rename_table(old_name: FullEntityName, new_name: FullEntityName) -> str | None:
    """ALTER TABLE ... RENAME TO ... Returns None unless both names are present."""
    if not old_name.name or not new_name.name:
        return None
    return (
        f"ALTER TABLE {quote_full_entity_name(old_name)} "
        f"RENAME TO {quote_full_entity_name(new_name)};"
    )


def sql_add_columns(full_name: FullEntityName, columns: Sequence[ColumnNode]) -> str | None:
    """ALTER TABLE ... ADD COLUMNS (...). Returns None if no columns."""
    if not columns:
        return None
    definitions = ", ".join(sql_column_definition(column) for column in columns)
    return f"ALTER TABLE {quote_full_entity_name(full_name)} ADD COLUMNS ({definitions});"


def sql_drop_columns(full_name: FullEntityName, column_names: Iterable[str]) -> str | None:
    """ALTER TABLE ... DROP COLUMNS (...). Returns None if no names."""
    names = list(column_names)
    if not names:
        return None
    return (
        f"ALTER TABLE {quote_full_entity_name(full_name)} "
        f"DROP COLUMNS ({format_column_list(names)});"
    )


def sql_rename_column(full_name: FullEntityName, old_name: str, new_name: str) -> str | None:
    """ALTER TABLE ... RENAME COLUMN ... TO ... Returns None unless both names are present."""
    if not old_name or not new_name:
        return None
    return (
        f"ALTER TABLE {quote_full_entity_name(full_name)} "
        f"RENAME COLUMN {quote_identifier(old_name)} TO {quote_identifier(new_name)};"
    )


def sql_set_column_comment(full_name: FullEntityName, column_name: str, comment: str) -> str:
    """ALTER TABLE ... ALTER COLUMN `col` COMMENT '...'."""
    return (
        f"ALTER TABLE {quote_full_entity_name(full_name)} "
        f"ALTER COLUMN {quote_identifier(column_name)} COMMENT {sql_string(comment)};"
    )


def sql_set_table_comment(full_name: FullEntityName, comment: str) -> str:
    """COMMENT ON TABLE ..."""
    return f"COMMENT ON TABLE {quote_full_entity_name(full_name)} IS {sql_string(comment)};"


def sql_set_table_properties(full_name: FullEntityName, props: Mapping[str, str]) -> str | None:
    """ALTER TABLE ... SET TBLPROPERTIES (...). Returns None if no props."""
    return _set_properties("TABLE", full_name, props)


def sql_unset_table_properties(full_name: FullEntityName, keys: Iterable[str]) -> str | None:
    """ALTER TABLE ... UNSET TBLPROPERTIES IF EXISTS (...). Returns None if no keys."""
    return _unset_properties("TABLE", full_name, keys)


def sql_set_serde(
    full_name: FullEntityName, serde_library: str, properties: Mapping[str, str] | None = None
) -> str | None:
    """ALTER TABLE ... SET SERDE '...' [WITH SERDEPROPERTIES (...)]."""
    if not full_name.name or not serde_library:
        return None
    statement = f"ALTER TABLE {quote_full_entity_name(full_name)} SET SERDE {sql_string(serde_library)}"
    if properties:
        statement += f" WITH SERDEPROPERTIES ({format_tblproperties(properties)})"
    return statement + ";"


# ---------- views ----------


def sql_create_view(view: ViewNode) -> str | None:
    """CREATE [OR REPLACE] [TEMPORARY] VIEW [IF NOT EXISTS] ... AS select."""
    if not view.select_statement:
        return None
    head = "CREATE"
    if view.or_replace:
        head += " OR REPLACE"
    if view.is_temporary:
        head += " TEMPORARY"
    head += " VIEW"
    # Spark rejects OR REPLACE together with IF NOT EXISTS.
    if view.if_not_exists and not view.or_replace:
        head += " IF NOT EXISTS"
    lines = [f"{head} {quote_full_entity_name(view.full_name)}"]
    if view.comment:
        lines.append(f"COMMENT {sql_string(view.comment)}")
    if view.table_properties:
        lines.append(f"TBLPROPERTIES ({format_tblproperties(view.table_properties)})")
    lines.append(f"AS {view.select_statement.strip().rstrip(';')}")
    return "\n".join(lines) + ";"


def sql_drop_view(full_name: FullEntityName) -> str:
    """DROP VIEW IF EXISTS ..."""
    return f"DROP VIEW IF EXISTS {quote_full_entity_name(full_name)};"


def sql_rename_view(old_name: FullEntityName, new_name: FullEntityName) -> str | None:
    """ALTER VIEW ... RENAME TO ... Returns None unless both names are present."""
    if not old_name.name or not new_name.name:
        return None
    return (
        f"ALTER VIEW {quote_full_entity_name(old_name)} "
        f"RENAME TO {quote_full_entity_name(new_name)};"
    )


def sql_set_view_properties(full_name: FullEntityName, props: Mapping[str, str]) -> str | None:
    """ALTER VIEW ... SET TBLPROPERTIES (...). Returns None if no props."""
    return _set_properties("VIEW", full_name, props)


def sql_unset_view_properties(full_name: FullEntityName, keys: Iterable[str]) -> str | None:
    """ALTER VIEW ... UNSET TBLPROPERTIES IF EXISTS (...). Returns None if no keys."""
    return _unset_properties("VIEW", full_name, keys)


def sql_alter_view_query(full_name: FullEntityName, query: str) -> str | None:
    """ALTER VIEW ... AS select. Returns None without a query."""
    if not query:
        return None
    return f"ALTER VIEW {quote_full_entity_name(full_name)} AS {query.strip().rstrip(';')};"


# ---------- helpers ----------


def _set_properties(kind: str, full_name: FullEntityName, props: Mapping[str, str]) -> str | None:
    if not full_name.name or not props:
        return None
    return (
        f"ALTER {kind} {quote_full_entity_name(full_name)} "
        f"SET TBLPROPERTIES ({format_tblproperties(props)});"
    )


def _unset_properties(kind: str, full_name: FullEntityName, keys: Iterable[str]) -> str | None:
    key_list = list(keys)
    if not full_name.name or not key_list:
        return None
    return (
        f"ALTER {kind} {quote_full_entity_name(full_name)} "
        f"UNSET TBLPROPERTIES IF EXISTS ({format_property_keys(key_list)});"
    )


def _storage_clauses(entity: EntityNode) -> list[str]:
    storage = entity.storage
    if storage.serde_library:
        clause = f"ROW FORMAT SERDE {sql_string(storage.serde_library)}"
        if storage.serde_properties:
            clause += f"\nWITH SERDEPROPERTIES ({format_tblproperties(storage.serde_properties)})"
        return [clause, f"STORED AS {storage.format.upper()}"]
    if storage.format in _HIVE_ONLY_FORMATS:
        return [f"STORED AS {storage.format.upper()}"]
    return [f"USING {storage.format.upper()}"]


def _bucketing_clause(entity: EntityNode) -> str:
    bucketing = entity.bucketing
    if not bucketing.clustering_keys or not bucketing.num_buckets:
        return ""
    clause = f"CLUSTERED BY ({format_column_list(bucketing.clustering_keys)})"
    if bucketing.sorted_by:
        sort_keys = ", ".join(f"{quote_identifier(name)} {order}" for name, order in bucketing.sorted_by)
        clause += f" SORTED BY ({sort_keys})"
    return f"{clause} INTO {bucketing.num_buckets} BUCKETS"
