from types import MappingProxyType

import pyspark.sql.types as T

import src.ddl_bridge.sql as sql
from src.ddl_bridge.identifiers import FullEntityName
from src.ddl_bridge.schema.models import (
    BucketingOptions,
    ColumnNode,
    EntityNode,
    StorageOptions,
    ViewNode,
)

ORDERS = FullEntityName("sales", "orders")


# ---- databases ----

def test_create_database_with_all_clauses():
    out = sql.sql_create_database("sales", "it's sales", "/mnt/sales", {"owner": "ops"})
    assert out == (
        "CREATE DATABASE IF NOT EXISTS `sales`\n"
        "COMMENT 'it''s sales'\n"
        "LOCATION '/mnt/sales'\n"
        "WITH DBPROPERTIES ('owner' = 'ops');"
    )


def test_database_builders_without_name_are_noops():
    assert sql.sql_create_database("") is None
    assert sql.sql_drop_database("") is None
    assert sql.sql_set_database_properties("sales", {}) is None


def test_drop_database():
    assert sql.sql_drop_database("sales") == "DROP DATABASE IF EXISTS `sales`;"


# ---- tables ----

def test_column_definition():
    column = ColumnNode("id", T.LongType(), comment="key", is_nullable=False)
    assert sql.sql_column_definition(column) == "`id` bigint NOT NULL COMMENT 'key'"


def test_create_table_delta_with_layout():
    entity = EntityNode(
        name="orders",
        database_name="sales",
        columns=(ColumnNode("id", T.LongType()), ColumnNode("day", T.DateType())),
        partition_keys=("day",),
        bucketing=BucketingOptions(("id",), (("id", "DESC"),), 4),
        storage=StorageOptions(location="/mnt/orders"),
        comment="orders",
        table_properties=MappingProxyType({"delta.appendOnly": "true"}),
    )
    assert sql.sql_create_table(entity) == (
        "CREATE TABLE IF NOT EXISTS `sales`.`orders` (\n"
        "`id` bigint,\n"
        "`day` date\n"
        ")\n"
        "USING DELTA\n"
        "PARTITIONED BY (`day`)\n"
        "CLUSTERED BY (`id`) SORTED BY (`id` DESC) INTO 4 BUCKETS\n"
        "LOCATION '/mnt/orders'\n"
        "COMMENT 'orders'\n"
        "TBLPROPERTIES ('delta.appendOnly' = 'true');"
    )


def test_create_table_with_serde_uses_stored_as():
    entity = EntityNode(
        name="raw",
        is_external=True,
        storage=StorageOptions(
            format="textfile",
            serde_library="org.apache.hadoop.hive.serde2.OpenCSVSerde",
            serde_properties=MappingProxyType({"separatorChar": ","}),
        ),
    )
    out = sql.sql_create_table(entity)
    assert out.startswith("CREATE EXTERNAL TABLE IF NOT EXISTS `raw`")
    assert "ROW FORMAT SERDE 'org.apache.hadoop.hive.serde2.OpenCSVSerde'" in out
    assert "WITH SERDEPROPERTIES ('separatorChar' = ',')" in out
    assert "STORED AS TEXTFILE" in out
    assert "USING" not in out


def test_create_table_as_select_strips_terminator():
    entity = EntityNode(name="t", database_name="db", select_statement="SELECT 1;")
    assert sql.sql_create_table(entity).endswith("USING DELTA\nAS SELECT 1;")


def test_bucketing_needs_keys_and_count():
    entity = EntityNode(name="t", bucketing=BucketingOptions(("id",), (), None))
    assert "CLUSTERED BY" not in sql.sql_create_table(entity)


def test_rename_table_needs_both_names():
    assert sql.sql_rename_table(ORDERS, FullEntityName("sales", "")) is None
    assert (
        sql.sql_rename_table(ORDERS, FullEntityName("sales", "orders_v2"))
        == "ALTER TABLE `sales`.`orders` RENAME TO `sales`.`orders_v2`;"
    )


def test_add_and_drop_columns():
    assert sql.sql_add_columns(ORDERS, ()) is None
    assert (
        sql.sql_add_columns(ORDERS, (ColumnNode("note", T.StringType(), comment="free text"),))
        == "ALTER TABLE `sales`.`orders` ADD COLUMNS (`note` string COMMENT 'free text');"
    )
    assert sql.sql_drop_columns(ORDERS, (n for n in [])) is None
    assert sql.sql_drop_columns(ORDERS, ["a", "b"]) == "ALTER TABLE `sales`.`orders` DROP COLUMNS (`a`, `b`);"


def test_column_rename_and_comment():
    assert sql.sql_rename_column(ORDERS, "a", "") is None
    assert sql.sql_rename_column(ORDERS, "a", "b") == "ALTER TABLE `sales`.`orders` RENAME COLUMN `a` TO `b`;"
    assert (
        sql.sql_set_column_comment(ORDERS, "b", "it's b")
        == "ALTER TABLE `sales`.`orders` ALTER COLUMN `b` COMMENT 'it''s b';"
    )


def test_table_comment_properties_and_serde():
    assert sql.sql_set_table_comment(ORDERS, "x") == "COMMENT ON TABLE `sales`.`orders` IS 'x';"
    assert sql.sql_set_table_properties(ORDERS, {}) is None
    assert (
        sql.sql_set_table_properties(ORDERS, {"b": "2", "a": "1"})
        == "ALTER TABLE `sales`.`orders` SET TBLPROPERTIES ('a' = '1', 'b' = '2');"
    )
    assert sql.sql_unset_table_properties(ORDERS, []) is None
    assert (
        sql.sql_unset_table_properties(ORDERS, ["k"])
        == "ALTER TABLE `sales`.`orders` UNSET TBLPROPERTIES IF EXISTS ('k');"
    )
    assert sql.sql_set_serde(ORDERS, "") is None
    assert (
        sql.sql_set_serde(ORDERS, "my.Serde", {"k": "v"})
        == "ALTER TABLE `sales`.`orders` SET SERDE 'my.Serde' WITH SERDEPROPERTIES ('k' = 'v');"
    )


# ---- views ----

def test_create_view_or_replace_wins_over_if_not_exists():
    view = ViewNode(
        name="v",
        database_name="sales",
        select_statement="SELECT * FROM orders;",
        or_replace=True,
        if_not_exists=True,
        comment="recent",
    )
    assert sql.sql_create_view(view) == (
        "CREATE OR REPLACE VIEW `sales`.`v`\nCOMMENT 'recent'\nAS SELECT * FROM orders;"
    )


def test_create_view_if_not_exists_and_temporary():
    view = ViewNode(name="v", select_statement="SELECT 1", if_not_exists=True, is_temporary=True)
    assert sql.sql_create_view(view) == "CREATE TEMPORARY VIEW IF NOT EXISTS `v`\nAS SELECT 1;"


def test_view_without_query_is_noop():
    assert sql.sql_create_view(ViewNode(name="v")) is None
    assert sql.sql_alter_view_query(FullEntityName("db", "v"), "") is None


def test_view_alterations():
    view = FullEntityName("db", "v")
    assert sql.sql_drop_view(view) == "DROP VIEW IF EXISTS `db`.`v`;"
    assert sql.sql_rename_view(view, FullEntityName("db", "w")) == "ALTER VIEW `db`.`v` RENAME TO `db`.`w`;"
    assert sql.sql_set_view_properties(view, {"k": "v"}) == "ALTER VIEW `db`.`v` SET TBLPROPERTIES ('k' = 'v');"
    assert (
        sql.sql_unset_view_properties(view, ["k"])
        == "ALTER VIEW `db`.`v` UNSET TBLPROPERTIES IF EXISTS ('k');"
    )
    assert sql.sql_alter_view_query(view, "SELECT 2;") == "ALTER VIEW `db`.`v` AS SELECT 2;"
