"""
Boundary adapter: host JSON payload → validated schema-tree models.

Why this exists
---------------
The host sends loosely shaped JSON: a change-set tree whose buckets hold
single-key wrappers around descriptors, each carrying an optional `compMod`
change record. Everything past this module works on frozen dataclasses, so
shape problems surface here as `PayloadError` with the offending path instead
of as attribute errors deep inside rendering.

Accepted shapes
---------------
- tree: `{"properties": {<category>: {"properties": {<bucket>: {"items": [...]}}}}}`
  where category ∈ containers/entities/views and bucket ∈ added/deleted/modified;
  `items` may be a list or a single wrapper.
- wrapper: `{"properties": {<key>: <descriptor>}}` (the first entry is used).
- properties: mapping, or list of `{key, value}` / `{propertyKey, propertyValue}`.
- rename pairs: `{old, new}` or `{oldName, newName}`.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from types import MappingProxyType
from typing import Any

from src.ddl_bridge.schema.models import (
    BucketingOptions,
    ChangeRecord,
    ColumnNode,
    ContainerNode,
    EntityNode,
    PropertyChanges,
    RenamePair,
    SchemaNode,
    SchemaTree,
    SerDeChange,
    StorageOptions,
    ValueChange,
    ViewNode,
    WrappedItem,
)
from src.ddl_bridge.schema.types import UnsupportedColumnTypeError, to_spark_type
from src.enums import ChangeMarker, SchemaCategory

_BUCKETS = (ChangeMarker.ADDED, ChangeMarker.DELETED, ChangeMarker.MODIFIED)

# compMod keys with dedicated fields on ChangeRecord
_KNOWN_CHANGE_KEYS = frozenset(
    {
        "created",
        "deleted",
        "modified",
        "keyspaceName",
        "collectionName",
        "name",
        "code",
        "tableProperties",
        "dbProperties",
        "serDe",
        "description",
        "selectStatement",
    }
)

_STORAGE_FORMATS: Mapping[str, str] = MappingProxyType(
    {
        "jsonfile": "json",
        "csvfile": "csv",
        "textfile": "textfile",
        "rcfile": "rcfile",
        "sequencefile": "sequencefile",
    }
)


class PayloadError(ValueError):
    """Raised when a host payload does not match the expected shape."""

    def __init__(self, path: str, message: str) -> None:
        super().__init__(f"{path}: {message}")
        self.path = path


# ---------- public API ----------


def parse_schema_tree(
    payload: Mapping[str, Any], definitions: Sequence[Mapping[str, Any]] = ()
) -> SchemaTree:
    """Validate and convert a change-set tree payload."""
    root = _mapping(payload, "$")
    categories_node = _mapping(root.get("properties") or {}, "$.properties")

    categories: dict[SchemaCategory, dict[ChangeMarker, tuple[WrappedItem, ...]]] = {}
    for category in SchemaCategory:
        raw_category = categories_node.get(category.value)
        if raw_category is None:
            continue
        path = f"$.properties.{category.value}"
        buckets_node = _mapping(_mapping(raw_category, path).get("properties") or {}, path)

        buckets: dict[ChangeMarker, tuple[WrappedItem, ...]] = {}
        for marker in _BUCKETS:
            raw_bucket = buckets_node.get(marker.value)
            if not raw_bucket:
                continue
            bucket_path = f"{path}.{marker.value}"
            raw_items = _mapping(raw_bucket, bucket_path).get("items")
            buckets[marker] = tuple(
                _unwrap(category, item, definitions, f"{bucket_path}.items[{index}]")
                for index, item in enumerate(_as_list(raw_items))
                if item
            )
        categories[category] = buckets

    return SchemaTree(categories=MappingProxyType(categories))


def parse_container(descriptor: Mapping[str, Any], path: str = "$") -> ContainerNode:
    """Convert a container (database) descriptor."""
    data = _merge_role(_mapping(descriptor, path))
    change = parse_change_record(data.get("compMod"), f"{path}.compMod")
    name = _text(data.get("code") or data.get("name") or data.get("databaseName"))
    if not name and change is not None:
        name = change.rename.new_name or change.database_name
    return ContainerNode(
        name=name,
        comment=_text(data.get("description")),
        location=_text(data.get("location")),
        properties=parse_properties(data.get("dbProperties"), f"{path}.dbProperties"),
        change=change,
    )


def parse_entity(
    descriptor: Mapping[str, Any],
    definitions: Sequence[Mapping[str, Any]] = (),
    path: str = "$",
    database_name: str = "",
) -> EntityNode:
    """Convert an entity (table) descriptor, including its columns."""
    data = _merge_role(_mapping(descriptor, path))
    change = parse_change_record(data.get("compMod"), f"{path}.compMod")
    name = _text(data.get("code") or data.get("collectionName") or data.get("name"))
    if not name:
        raise PayloadError(path, "entity has no name (code/collectionName/name)")

    required = set(_as_list(data.get("required")))
    raw_columns = _mapping(data.get("properties") or {}, f"{path}.properties")
    columns = tuple(
        parse_column(
            column_name,
            raw_column,
            definitions,
            f"{path}.properties.{column_name}",
            required=column_name in required,
        )
        for column_name, raw_column in raw_columns.items()
    )

    return EntityNode(
        name=name,
        database_name=_database_name(data, change, database_name),
        columns=columns,
        storage=StorageOptions(
            format=_storage_format(data.get("storedAsTable")),
            serde_library=_text(data.get("serDeLibrary")),
            serde_properties=parse_properties(data.get("serDeProperties"), f"{path}.serDeProperties"),
            location=_text(data.get("location")),
        ),
        partition_keys=_key_names(data.get("compositePartitionKey"), f"{path}.compositePartitionKey"),
        bucketing=BucketingOptions(
            clustering_keys=_key_names(
                data.get("compositeClusteringKey"), f"{path}.compositeClusteringKey"
            ),
            sorted_by=_sort_keys(data.get("sortedByKey"), f"{path}.sortedByKey"),
            num_buckets=_optional_int(data.get("numBuckets"), f"{path}.numBuckets"),
        ),
        comment=_text(data.get("description")),
        table_properties=parse_properties(data.get("tableProperties"), f"{path}.tableProperties"),
        is_external=bool(data.get("externalTable")),
        is_temporary=bool(data.get("temporaryTable")),
        select_statement=_text(data.get("selectStatement")),
        change=change,
    )


def parse_view(descriptor: Mapping[str, Any], path: str = "$") -> ViewNode:
    """Convert a view descriptor; the `role` sub-object overrides top-level fields."""
    data = _merge_role(_mapping(descriptor, path))
    change = parse_change_record(data.get("compMod"), f"{path}.compMod")
    name = _text(data.get("code") or data.get("name"))
    if not name and change is not None:
        name = change.rename.new_name
    if not name:
        raise PayloadError(path, "view has no name (code/name)")
    return ViewNode(
        name=name,
        database_name=_database_name(data, change, ""),
        select_statement=_text(data.get("selectStatement")),
        comment=_text(data.get("description")),
        table_properties=parse_properties(data.get("tableProperties"), f"{path}.tableProperties"),
        or_replace=bool(data.get("viewOrReplace")),
        if_not_exists=bool(data.get("viewIfNotExist")),
        is_temporary=bool(data.get("viewTemporary")),
        change=change,
    )


def parse_column(
    name: str,
    descriptor: Mapping[str, Any],
    definitions: Sequence[Mapping[str, Any]] = (),
    path: str = "$",
    required: bool = False,
) -> ColumnNode:
    """Convert a column descriptor, resolving `$ref` against `definitions`."""
    data = _resolve_nested(_mapping(descriptor, path), definitions, path)
    change = parse_change_record(data.get("compMod"), f"{path}.compMod")
    try:
        data_type = to_spark_type(data)
    except UnsupportedColumnTypeError as exc:
        raise PayloadError(path, str(exc)) from exc

    is_required = required or bool(data.get("required") is True) or data.get("nullable") is False
    return ColumnNode(
        name=name,
        data_type=data_type,
        comment=_text(data.get("description")),
        is_nullable=not is_required,
        marker=change.marker if change else ChangeMarker.NONE,
        rename=change.rename if change else RenamePair(),
        comment_change=change.comment if change else None,
    )


def parse_change_record(raw: Any, path: str = "$.compMod") -> ChangeRecord | None:
    """Convert a `compMod` mapping; absent/None means no change record."""
    if raw is None:
        return None
    data = _mapping(raw, path)
    attributes = {
        key: _value_change(value)
        for key, value in data.items()
        if key not in _KNOWN_CHANGE_KEYS and _is_value_change(value)
    }
    raw_serde = data.get("serDe")
    serde = None
    if raw_serde:
        serde_node = _mapping(raw_serde, f"{path}.serDe")
        serde = SerDeChange(
            library=_text(serde_node.get("library")),
            properties=parse_properties(serde_node.get("properties"), f"{path}.serDe.properties"),
        )
    return ChangeRecord(
        created=bool(data.get("created")),
        deleted=bool(data.get("deleted")),
        modified=bool(data.get("modified")),
        database_name=_text(data.get("keyspaceName")),
        rename=_rename_pair(
            data.get("collectionName") or data.get("name") or data.get("code"),
            data.get("oldField"),
            data.get("newField"),
        ),
        properties=_property_changes(
            data.get("tableProperties") or data.get("dbProperties"), f"{path}.tableProperties"
        ),
        serde=serde,
        comment=_value_change(data["description"]) if _is_value_change(data.get("description")) else None,
        select_statement=(
            _value_change(data["selectStatement"])
            if _is_value_change(data.get("selectStatement"))
            else None
        ),
        attributes=MappingProxyType(attributes),
    )


def parse_properties(raw: Any, path: str = "$") -> Mapping[str, str]:
    """Normalise a property payload to a read-only str → str mapping."""
    if not raw:
        return MappingProxyType({})
    if isinstance(raw, Mapping):
        return MappingProxyType({str(k): _text(v) for k, v in raw.items()})
    if isinstance(raw, list):
        result: dict[str, str] = {}
        for index, entry in enumerate(raw):
            item = _mapping(entry, f"{path}[{index}]")
            key = item.get("key", item.get("propertyKey"))
            if key in (None, ""):
                raise PayloadError(f"{path}[{index}]", "property entry has no key")
            result[str(key)] = _text(item.get("value", item.get("propertyValue")))
        return MappingProxyType(result)
    raise PayloadError(path, f"expected properties mapping or list, got {type(raw).__name__}")


# ---------- helpers ----------


def _unwrap(
    category: SchemaCategory,
    item: Any,
    definitions: Sequence[Mapping[str, Any]],
    path: str,
) -> WrappedItem:
    wrapper = _mapping(_mapping(item, path).get("properties") or {}, f"{path}.properties")
    if not wrapper:
        raise PayloadError(f"{path}.properties", "wrapper holds no descriptor")
    key, descriptor = next(iter(wrapper.items()))
    node_path = f"{path}.properties.{key}"
    node: SchemaNode
    if category is SchemaCategory.CONTAINERS:
        node = parse_container(descriptor, node_path)
    elif category is SchemaCategory.ENTITIES:
        node = parse_entity(descriptor, definitions, node_path)
    else:
        node = parse_view(descriptor, node_path)
    return WrappedItem(key=str(key), node=node)


def _mapping(value: Any, path: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise PayloadError(path, f"expected an object, got {type(value).__name__}")
    return value


def _as_list(value: Any) -> list[Any]:
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def _merge_role(data: Mapping[str, Any]) -> Mapping[str, Any]:
    role = data.get("role")
    if isinstance(role, Mapping):
        return {**data, **role}
    return data


def _database_name(data: Mapping[str, Any], change: ChangeRecord | None, default: str) -> str:
    if change is not None and change.database_name:
        return change.database_name
    return _text(data.get("dbName") or data.get("keyspaceName")) or default


def _storage_format(raw: Any) -> str:
    text = _text(raw).strip().lower()
    if not text:
        return "delta"
    return _STORAGE_FORMATS.get(text, text)


def _key_names(raw: Any, path: str) -> tuple[str, ...]:
    names: list[str] = []
    for index, entry in enumerate(_as_list(raw)):
        if isinstance(entry, Mapping):
            name = _text(entry.get("name"))
        elif isinstance(entry, str):
            name = entry
        else:
            raise PayloadError(f"{path}[{index}]", "expected a key name or {name}")
        if name:
            names.append(name)
    return tuple(names)


def _sort_keys(raw: Any, path: str) -> tuple[tuple[str, str], ...]:
    keys: list[tuple[str, str]] = []
    for index, entry in enumerate(_as_list(raw)):
        if isinstance(entry, str):
            keys.append((entry, "ASC"))
            continue
        item = _mapping(entry, f"{path}[{index}]")
        name = _text(item.get("name"))
        if not name:
            continue
        order = "DESC" if _text(item.get("type")).lower().startswith("desc") else "ASC"
        keys.append((name, order))
    return tuple(keys)


def _optional_int(raw: Any, path: str) -> int | None:
    if raw in (None, ""):
        return None
    try:
        return int(raw)
    except (TypeError, ValueError) as exc:
        raise PayloadError(path, f"expected an integer, got {raw!r}") from exc


def _is_value_change(value: Any) -> bool:
    return isinstance(value, Mapping) and ("old" in value or "new" in value)


def _value_change(value: Mapping[str, Any]) -> ValueChange:
    return ValueChange(old=value.get("old"), new=value.get("new"))


def _rename_pair(raw: Any, old_field: Any = None, new_field: Any = None) -> RenamePair:
    if isinstance(old_field, Mapping) or isinstance(new_field, Mapping):
        return RenamePair(
            old_name=_text((old_field or {}).get("name")),
            new_name=_text((new_field or {}).get("name")),
        )
    if not isinstance(raw, Mapping):
        return RenamePair()
    return RenamePair(
        old_name=_text(raw.get("old", raw.get("oldName"))),
        new_name=_text(raw.get("new", raw.get("newName"))),
    )


def _property_changes(raw: Any, path: str) -> PropertyChanges:
    if not raw:
        return PropertyChanges()
    data = _mapping(raw, path)
    drop = data.get("drop") or ()
    if isinstance(drop, Mapping):
        drop = list(drop.keys())
    return PropertyChanges(
        add=parse_properties(data.get("add"), f"{path}.add"),
        drop=tuple(_drop_keys(drop, f"{path}.drop")),
    )


def _drop_keys(raw: Iterable[Any], path: str) -> list[str]:
    keys: list[str] = []
    for index, entry in enumerate(raw):
        if isinstance(entry, Mapping):
            key = _text(entry.get("key", entry.get("propertyKey")))
        else:
            key = _text(entry)
        if not key:
            raise PayloadError(f"{path}[{index}]", "property key to drop is empty")
        keys.append(key)
    return keys


def _resolve_nested(
    data: Mapping[str, Any],
    definitions: Sequence[Mapping[str, Any]],
    path: str,
    ancestors: frozenset[str] = frozenset(),
) -> Mapping[str, Any]:
    """Resolve `$ref` here and inside struct `properties` and array/map `items`."""
    resolved = dict(_resolve_reference(data, definitions, path, ancestors))
    if data.get("$ref"):
        ancestors = ancestors | {data["$ref"]}
    properties = resolved.get("properties")
    if isinstance(properties, Mapping):
        resolved["properties"] = {
            name: _resolve_nested(child, definitions, f"{path}.properties.{name}", ancestors)
            if isinstance(child, Mapping)
            else child
            for name, child in properties.items()
        }
    items = resolved.get("items")
    if isinstance(items, Mapping):
        resolved["items"] = _resolve_nested(items, definitions, f"{path}.items", ancestors)
    elif isinstance(items, list):
        resolved["items"] = [
            _resolve_nested(item, definitions, f"{path}.items[{index}]", ancestors)
            if isinstance(item, Mapping)
            else item
            for index, item in enumerate(items)
        ]
    return resolved


def _resolve_reference(
    data: Mapping[str, Any],
    definitions: Sequence[Mapping[str, Any]],
    path: str,
    seen: frozenset[str] = frozenset(),
) -> Mapping[str, Any]:
    reference = data.get("$ref")
    if not reference:
        return data
    if reference in seen:
        raise PayloadError(path, f"cyclic reference {reference!r}")
    definition_name = str(reference).rstrip("/").split("/")[-1]
    for definition_set in definitions:
        candidates = definition_set.get("properties", definition_set) if definition_set else {}
        target = candidates.get(definition_name) if isinstance(candidates, Mapping) else None
        if isinstance(target, Mapping):
            merged = {**target, **{k: v for k, v in data.items() if k != "$ref"}}
            return _resolve_reference(merged, definitions, path, seen | {reference})
    raise PayloadError(path, f"unresolved reference {reference!r}")
