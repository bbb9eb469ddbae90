import pytest

from src.ddl_bridge.plan.assembler import AlterScriptAssembler, build_alter_script
from src.ddl_bridge.plan.policy import ScriptOptions
from src.ddl_bridge.schema.models import SchemaTree
from src.ddl_bridge.schema.payload import PayloadError

ALLOW_DROPS = {"additionalOptions": [{"id": "applyDropStatements", "value": True}]}

# ---------- helpers ----------


def identity(fragment):
    return fragment


def schema(**categories):
    """schema(entities={"added": [descriptor, ...]}) -> host change-set payload."""
    return {
        "properties": {
            category: {
                "properties": {
                    marker: {"items": [{"properties": {f"item{index}": item}} for index, item in enumerate(items)]}
                    for marker, items in buckets.items()
                }
            }
            for category, buckets in categories.items()
        }
    }


def alter(payload, options=None):
    return build_alter_script(payload, options=options, formatter=identity)


# ---------- tests ----------


def test_no_changes_give_empty_script():
    assert alter({}) == ""
    assert AlterScriptAssembler(formatter=identity).build(SchemaTree()) == ""


def test_collection_changes_precede_column_changes():
    column_path = {
        "code": "b",
        "dbName": "db",
        "properties": {"note": {"type": "string", "compMod": {"created": True}}},
    }
    created = {
        "code": "a",
        "dbName": "db",
        "compMod": {"created": True},
        "properties": {"id": {"type": "numeric", "mode": "int"}},
    }

    script = alter(schema(entities={"added": [column_path, created]}))

    assert script == (
        "CREATE TABLE IF NOT EXISTS `db`.`a` (\n`id` int\n)\nUSING DELTA;\n\n"
        "ALTER TABLE `db`.`b` ADD COLUMNS (`note` string);\n"
    )


def test_same_table_rename_precedes_its_added_columns():
    new_column = {
        "code": "t",
        "dbName": "db",
        "properties": {"note": {"type": "string", "compMod": {"created": True}}},
    }
    renamed = {
        "code": "t",
        "dbName": "db",
        "compMod": {"modified": True, "collectionName": {"old": "t_old", "new": "t"}},
    }

    script = alter(schema(entities={"added": [new_column], "modified": [renamed]}))

    assert script == (
        "ALTER TABLE `db`.`t_old` RENAME TO `db`.`t`;\n\n"
        "ALTER TABLE `db`.`t` ADD COLUMNS (`note` string);\n"
    )


def test_containers_come_first_and_views_last():
    payload = schema(
        views={"added": [{"code": "v", "dbName": "db", "selectStatement": "SELECT 1", "compMod": {"created": True}}]},
        entities={"added": [{"code": "t", "dbName": "db", "compMod": {"created": True}}]},
        containers={"added": [{"code": "db"}]},
    )

    script = alter(payload)

    database = script.index("CREATE DATABASE")
    table = script.index("CREATE TABLE")
    view = script.index("CREATE VIEW")
    assert database < table < view


def test_drops_are_commented_unless_allowed():
    payload = schema(entities={"deleted": [{"code": "old", "dbName": "db", "compMod": {"deleted": True}}]})

    assert alter(payload) == "-- DROP TABLE IF EXISTS `db`.`old`;\n"
    assert alter(payload, ALLOW_DROPS) == "DROP TABLE IF EXISTS `db`.`old`;\n"
    assert alter(payload, ScriptOptions(apply_drop_statements=True)) == alter(payload, ALLOW_DROPS)


def test_generation_is_deterministic():
    payload = schema(
        entities={"deleted": [{"code": "old", "dbName": "db", "compMod": {"deleted": True}}]},
        containers={"added": [{"code": "db", "dbProperties": {"b": "2", "a": "1"}}]},
    )
    assert alter(payload) == alter(payload)


def test_partial_rename_is_ignored():
    payload = schema(
        entities={
            "modified": [
                {"code": "a", "dbName": "db", "compMod": {"modified": True, "collectionName": {"old": "a", "new": ""}}}
            ]
        }
    )
    assert alter(payload) == ""


def test_container_rename_drops_and_recreates():
    payload = schema(
        containers={
            "modified": [
                {
                    "code": "new_db",
                    "compMod": {
                        "modified": True,
                        "name": {"old": "old_db", "new": "new_db"},
                        "dbProperties": {"add": {"k": "v"}},
                    },
                }
            ]
        }
    )

    assert alter(payload) == (
        "-- DROP DATABASE IF EXISTS `old_db`;\n\n"
        "CREATE DATABASE IF NOT EXISTS `new_db`;\n\n"
        "ALTER DATABASE `new_db` SET DBPROPERTIES ('k' = 'v');\n"
    )


def test_table_rename_then_properties_then_comment():
    payload = schema(
        entities={
            "modified": [
                {
                    "code": "orders_v2",
                    "dbName": "db",
                    "compMod": {
                        "modified": True,
                        "collectionName": {"old": "orders", "new": "orders_v2"},
                        "tableProperties": {"add": {"owner": "ops"}, "drop": ["legacy"]},
                        "description": {"old": "", "new": "all orders"},
                    },
                }
            ]
        }
    )

    assert alter(payload) == (
        "ALTER TABLE `db`.`orders` RENAME TO `db`.`orders_v2`;\n\n"
        "ALTER TABLE `db`.`orders_v2` SET TBLPROPERTIES ('owner' = 'ops');\n\n"
        "ALTER TABLE `db`.`orders_v2` UNSET TBLPROPERTIES IF EXISTS ('legacy');\n\n"
        "COMMENT ON TABLE `db`.`orders_v2` IS 'all orders';\n"
    )


def test_non_alterable_change_recreates_table():
    payload = schema(
        entities={
            "modified": [
                {
                    "code": "t",
                    "dbName": "db",
                    "location": "/mnt/new",
                    "compMod": {"modified": True, "location": {"old": "/mnt/old", "new": "/mnt/new"}},
                }
            ]
        }
    )

    script = alter(payload)

    assert script.startswith("-- DROP TABLE IF EXISTS `db`.`t`;\n\nCREATE TABLE IF NOT EXISTS `db`.`t`")
    assert "LOCATION '/mnt/new'" in script


def test_column_rename_and_comment():
    payload = schema(
        entities={
            "modified": [
                {
                    "code": "t",
                    "dbName": "db",
                    "properties": {
                        "b": {
                            "type": "string",
                            "compMod": {
                                "modified": True,
                                "oldField": {"name": "a"},
                                "newField": {"name": "b"},
                                "description": {"old": "", "new": "renamed"},
                            },
                        }
                    },
                }
            ]
        }
    )

    assert alter(payload) == (
        "ALTER TABLE `db`.`t` RENAME COLUMN `a` TO `b`;\n\n"
        "ALTER TABLE `db`.`t` ALTER COLUMN `b` COMMENT 'renamed';\n"
    )


def test_dropped_columns_are_commented():
    payload = schema(
        entities={
            "deleted": [
                {"code": "t", "dbName": "db", "properties": {"x": {"type": "string", "compMod": {"deleted": True}}}}
            ]
        }
    )
    assert alter(payload) == "-- ALTER TABLE `db`.`t` DROP COLUMNS (`x`);\n"


def test_view_rename_and_query_change():
    payload = schema(
        views={
            "modified": [
                {
                    "code": "v2",
                    "dbName": "db",
                    "compMod": {
                        "name": {"old": "v1", "new": "v2"},
                        "selectStatement": {"old": "SELECT 1", "new": "SELECT 2"},
                    },
                }
            ]
        }
    )

    assert alter(payload) == (
        "ALTER VIEW `db`.`v1` RENAME TO `db`.`v2`;\n\n"
        "ALTER VIEW `db`.`v2` AS SELECT 2;\n"
    )


def test_invalid_payload_is_rejected():
    with pytest.raises(PayloadError):
        alter({"properties": {"entities": "nope"}})
