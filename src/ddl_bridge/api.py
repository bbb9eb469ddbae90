"""
Host entry points.

Every entry point takes the host's payload and a `callback(error, result)`.
Failures are logged and reported as `{"message", "stack"}`; script
generation errors are reported after `ERROR_REPORT_DELAY_SECONDS`.
"""

from __future__ import annotations

import json
import time
import traceback
from collections.abc import Callable, Iterable, Mapping
from typing import Any

import requests

from src.constants import ERROR_REPORT_DELAY_SECONDS
from src.ddl_bridge.cluster import ClusterInspector
from src.ddl_bridge.create_script import build_create_script
from src.ddl_bridge.execute.apply import apply_script
from src.ddl_bridge.execute.client import ClusterClient
from src.ddl_bridge.execute.connection import ConnectionInfo
from src.ddl_bridge.execute.protocol import CommandExecutor
from src.ddl_bridge.plan.assembler import build_alter_script
from src.ddl_bridge.plan.policy import contains_drop_statements
from src.ddl_bridge.schema.models import ContainerNode
from src.ddl_bridge.schema.payload import parse_container, parse_entity, parse_view
from src.logger import LOGGER

Callback = Callable[..., None]

_DEFINITION_KEYS = ("modelDefinitions", "internalDefinitions", "externalDefinitions")


def generate_script(data: Mapping[str, Any], callback: Callback) -> None:
    """Script for a single entity: alter script when `isUpdateScript`, else full DDL."""
    try:
        json_schema = _load_json(data.get("jsonSchema"))
        definitions = [_load_json(data.get(key)) for key in _DEFINITION_KEYS]
        if data.get("isUpdateScript"):
            script = build_alter_script(json_schema, definitions, data.get("options"))
        else:
            container = _parse_container_data(data.get("containerData"))
            entity = parse_entity(
                {**json_schema, **_first(data.get("entityData"))}, definitions
            )
            script = build_create_script(container, [entity])
    except Exception as exc:
        _report_error(exc, callback, "Forward-Engineering Error")
        return
    callback(None, script)


def generate_container_script(data: Mapping[str, Any], callback: Callback) -> None:
    """Script for a whole container; entities that fail to parse are skipped."""
    try:
        entity_ids = list(data.get("entities") or [])
        schemas = parse_entities(entity_ids, data.get("jsonSchema") or {})
        internal = parse_entities(entity_ids, data.get("internalDefinitions") or {})
        shared = [_load_json(data.get(key)) for key in ("modelDefinitions", "externalDefinitions")]

        if data.get("isUpdateScript"):
            schema = next(iter(schemas.values()), {})
            definitions = [shared[0], *internal.values(), shared[1]]
            script = build_alter_script(schema, definitions, data.get("options"))
        else:
            script = _container_create_script(data, entity_ids, schemas, internal, shared)
    except Exception as exc:
        _report_error(exc, callback, "Forward-Engineering Error")
        return
    callback(None, script)


def apply_to_instance(
    connection_info: Mapping[str, Any],
    callback: Callback,
    session: requests.Session | None = None,
) -> None:
    """Run `connection_info["script"]` on the cluster, statement by statement."""
    try:
        connection = ConnectionInfo.from_payload(connection_info)
        LOGGER.info("Applying script to cluster %s at %s", connection.cluster_id, connection.host)
        apply_script(connection, str(connection_info.get("script") or ""), session=session)
    except Exception as exc:
        _report_error(exc, callback, "Apply to instance", delay=0.0)
        return
    callback(None, None)


def test_connection(
    connection_info: Mapping[str, Any],
    callback: Callback,
    session: requests.Session | None = None,
) -> None:
    """Report an error unless the cluster is RUNNING."""
    try:
        connection = ConnectionInfo.from_payload(connection_info)
        client = ClusterClient(connection, session=session)
        status = ClusterInspector(CommandExecutor(client), client).cluster_state()
    except Exception as exc:
        _report_error(exc, callback, "Test connection", delay=0.0)
        return
    LOGGER.info("Cluster %s state: %s", connection.cluster_id, status.raw_state)
    if not status.is_running:
        callback(
            {
                "message": f"Cluster is unavailable. Cluster status: {status.raw_state}",
                "type": "simpleError",
            },
            None,
        )
        return
    callback(None, None)


def is_drop_in_statements(data: Mapping[str, Any], callback: Callback) -> None:
    """Generate the script for `data["level"]` and report whether it drops anything."""

    def on_script(error: Any, script: str | None = "") -> None:
        callback(error, contains_drop_statements(script or ""))

    level = data.get("level")
    if level == "container":
        generate_container_script(data, on_script)
    elif level == "entity":
        generate_script(data, on_script)
    else:
        callback({"message": f"Unknown script level: {level!r}", "stack": ""}, False)


def parse_entities(entity_ids: Iterable[str], serialized: Mapping[str, Any]) -> dict[str, Any]:
    """Decode each entity's serialized JSON; entities that fail to decode are dropped."""
    parsed: dict[str, Any] = {}
    for entity_id in entity_ids:
        try:
            parsed[entity_id] = json.loads(serialized[entity_id])
        except (KeyError, TypeError, ValueError) as exc:
            LOGGER.warning("Skipping entity %s: %s", entity_id, exc)
    return parsed


# ---------- helpers ----------


def _container_create_script(
    data: Mapping[str, Any],
    entity_ids: list[str],
    schemas: Mapping[str, Any],
    internal: Mapping[str, Any],
    shared: list[Any],
) -> str:
    container = _parse_container_data(data.get("containerData"))
    entity_data = data.get("entityData") or {}
    entities = [
        parse_entity(
            {**schemas[entity_id], **_first(entity_data.get(entity_id))},
            [internal.get(entity_id, {}), *shared],
            path=f"$.entities.{entity_id}",
        )
        for entity_id in entity_ids
        if entity_id in schemas
    ]
    view_data = data.get("viewData") or {}
    json_schema = data.get("jsonSchema") or {}
    views = [
        parse_view(
            {**_load_json(json_schema.get(view_id)), **_first(view_data.get(view_id))},
            path=f"$.views.{view_id}",
        )
        for view_id in data.get("views") or []
    ]
    return build_create_script(container, entities, views)


def _parse_container_data(container_data: Any) -> ContainerNode | None:
    descriptor = _first(container_data)
    return parse_container(descriptor) if descriptor else None


def _load_json(raw: Any) -> Any:
    if raw is None or raw == "":
        return {}
    if isinstance(raw, (str, bytes)):
        return json.loads(raw)
    return raw


def _first(value: Any) -> Mapping[str, Any]:
    if isinstance(value, list):
        value = value[0] if value else {}
    return value if isinstance(value, Mapping) else {}


def _report_error(
    exc: BaseException,
    callback: Callback,
    title: str,
    delay: float = ERROR_REPORT_DELAY_SECONDS,
) -> None:
    stack = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    LOGGER.error("%s: %s", title, exc, exc_info=exc)
    if delay:
        time.sleep(delay)
    callback({"message": str(exc), "stack": stack}, None)
