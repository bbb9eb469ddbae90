"""
Column type mapping: host column descriptors → Spark `DataType`.

The host describes a column with a logical `type` and an optional `mode`
(sub-type), e.g. `{"type": "numeric", "mode": "bigint"}`. Complex types nest:
`struct` via `properties`, `array` via `items`, `map` via `keySubtype` + `items`.
Rendering uses `DataType.simpleString()` so DDL matches Spark's own spelling.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any

import pyspark.sql.types as T

_DEFAULT_DECIMAL_PRECISION = 10
_DEFAULT_DECIMAL_SCALE = 0

_NUMERIC_MODES: Mapping[str, Callable[[], T.DataType]] = {
    "tinyint": T.ByteType,
    "byte": T.ByteType,
    "smallint": T.ShortType,
    "short": T.ShortType,
    "int": T.IntegerType,
    "integer": T.IntegerType,
    "bigint": T.LongType,
    "long": T.LongType,
    "float": T.FloatType,
    "real": T.FloatType,
    "double": T.DoubleType,
}

_SIMPLE_TYPES: Mapping[str, Callable[[], T.DataType]] = {
    "bool": T.BooleanType,
    "boolean": T.BooleanType,
    "binary": T.BinaryType,
    "date": T.DateType,
    "timestamp": T.TimestampType,
    "timestamp_ntz": T.TimestampNTZType,
}


class UnsupportedColumnTypeError(ValueError):
    """Raised when a column descriptor names a type the bridge cannot render."""


def to_spark_type(descriptor: Mapping[str, Any]) -> T.DataType:
    """Map a host column descriptor to a Spark `DataType`."""
    logical = str(descriptor.get("type") or "string").lower()
    mode = str(descriptor.get("mode") or "").lower()

    if logical in ("string", "char", "varchar", "text"):
        return _string_type(logical, mode, descriptor)
    if logical == "numeric":
        return _numeric_type(mode or "int", descriptor)
    if logical in _NUMERIC_MODES or logical == "decimal":
        return _numeric_type(logical, descriptor)
    if logical == "timestamp" and mode == "timestamp_ntz":
        return T.TimestampNTZType()
    if logical in _SIMPLE_TYPES:
        return _SIMPLE_TYPES[logical]()
    if logical == "array":
        return T.ArrayType(to_spark_type(_first_item(descriptor)), containsNull=True)
    if logical == "map":
        key_type = to_spark_type({"type": descriptor.get("keySubtype") or "string"})
        return T.MapType(key_type, to_spark_type(_first_item(descriptor)), valueContainsNull=True)
    if logical in ("struct", "document", "object"):
        return _struct_type(descriptor)
    raise UnsupportedColumnTypeError(f"Unsupported column type: {logical!r}")


def render_type(data_type: T.DataType) -> str:
    """DDL spelling of a Spark type (e.g. 'bigint', 'array<string>', 'decimal(10,2)')."""
    return data_type.simpleString()


# ---------- helpers ----------


def _string_type(logical: str, mode: str, descriptor: Mapping[str, Any]) -> T.DataType:
    kind = mode or logical
    length = descriptor.get("length")
    if kind == "varchar" and length:
        return T.VarcharType(_integer(length, "length"))
    if kind == "char" and length:
        return T.CharType(_integer(length, "length"))
    return T.StringType()


def _numeric_type(mode: str, descriptor: Mapping[str, Any]) -> T.DataType:
    if mode == "decimal":
        precision = _integer(
            descriptor.get("precision") or _DEFAULT_DECIMAL_PRECISION, "precision"
        )
        scale = _integer(descriptor.get("scale") or _DEFAULT_DECIMAL_SCALE, "scale")
        return T.DecimalType(precision, scale)
    factory = _NUMERIC_MODES.get(mode)
    if factory is None:
        raise UnsupportedColumnTypeError(f"Unsupported numeric mode: {mode!r}")
    return factory()


def _integer(value: Any, field: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise UnsupportedColumnTypeError(f"Invalid {field}: {value!r}") from exc


def _first_item(descriptor: Mapping[str, Any]) -> Mapping[str, Any]:
    items = descriptor.get("items")
    if isinstance(items, list):
        items = items[0] if items else None
    return items if isinstance(items, Mapping) else {"type": "string"}


def _struct_type(descriptor: Mapping[str, Any]) -> T.StructType:
    properties = descriptor.get("properties") or {}
    required = set(descriptor.get("required") or ())
    return T.StructType(
        [
            T.StructField(
                name,
                to_spark_type(child),
                nullable=name not in required,
            )
            for name, child in properties.items()
        ]
    )
