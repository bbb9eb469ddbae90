import pyspark.sql.types as T
import pytest

from src.ddl_bridge.schema.types import UnsupportedColumnTypeError, render_type, to_spark_type


@pytest.mark.parametrize(
    "descriptor, expected",
    [
        ({"type": "string"}, "string"),
        ({}, "string"),
        ({"type": "varchar", "length": 20}, "varchar(20)"),
        ({"type": "char", "length": 3}, "char(3)"),
        ({"type": "numeric", "mode": "bigint"}, "bigint"),
        ({"type": "numeric"}, "int"),
        ({"type": "numeric", "mode": "decimal", "precision": 12, "scale": 2}, "decimal(12,2)"),
        ({"type": "decimal"}, "decimal(10,0)"),
        ({"type": "bool"}, "boolean"),
        ({"type": "timestamp", "mode": "timestamp_ntz"}, "timestamp_ntz"),
        ({"type": "date"}, "date"),
    ],
)
def test_simple_types(descriptor, expected):
    assert render_type(to_spark_type(descriptor)) == expected


def test_array_of_items():
    data_type = to_spark_type({"type": "array", "items": [{"type": "numeric", "mode": "int"}]})
    assert data_type == T.ArrayType(T.IntegerType(), containsNull=True)
    assert render_type(data_type) == "array<int>"


def test_map_uses_key_subtype_and_items():
    data_type = to_spark_type({"type": "map", "keySubtype": "string", "items": {"type": "date"}})
    assert render_type(data_type) == "map<string,date>"


def test_struct_marks_required_fields_not_nullable():
    data_type = to_spark_type(
        {
            "type": "struct",
            "properties": {"id": {"type": "numeric", "mode": "long"}, "tag": {"type": "string"}},
            "required": ["id"],
        }
    )
    assert isinstance(data_type, T.StructType)
    assert [field.nullable for field in data_type.fields] == [False, True]
    assert render_type(data_type) == "struct<id:bigint,tag:string>"


def test_unsupported_type_raises():
    with pytest.raises(UnsupportedColumnTypeError):
        to_spark_type({"type": "geometry"})


def test_unsupported_numeric_mode_raises():
    with pytest.raises(UnsupportedColumnTypeError):
        to_spark_type({"type": "numeric", "mode": "int128"})


def test_non_integer_length_raises():
    with pytest.raises(UnsupportedColumnTypeError, match="Invalid length"):
        to_spark_type({"type": "string", "mode": "char", "length": "3a"})
