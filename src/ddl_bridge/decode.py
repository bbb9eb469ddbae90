"""
Decoders for Scala REPL echo text returned by the cluster.

A Scala command's result is the interpreter's echo of the last binding,
e.g. `stmt: String = "CREATE TABLE ..."`. Each decoder locates its anchor
and extracts the value.
"""

from __future__ import annotations

import json
import re
from typing import Any

from src.ddl_bridge.execute.errors import DecodeError, MalformedReplyError
from src.logger import LOGGER

CREATE_STATEMENT_ANCHOR = 'stmt: String = "'
ROWS_ANCHOR = "rows: Array[String] = Array("
CLUSTER_DATA_ANCHOR = "clusterData: String ="

_CREATE_STATEMENT = re.compile(r'stmt: String = "(.+)"')
_ROWS = re.compile(r"rows: Array\[String\] = Array\((.+)\)")
_LINE_BREAKS = re.compile(r"[\n\r]")

# Applied in order to the cluster-data echo to recover plain JSON.
_CLUSTER_DATA_REPLACEMENTS: tuple[tuple[str, str], ...] = (
    ("\n", " "),
    ("\\n", ""),
    ('"{', "{"),
    ('"[', "["),
    ('}"', "}"),
    ('\\"', '"'),
    (']"', "]"),
)


def extract_create_statement(reply: str) -> str:
    """The quoted statement after `stmt: String =`, line breaks flattened to spaces."""
    flattened = _LINE_BREAKS.sub(" ", reply or "")
    match = _CREATE_STATEMENT.search(flattened)
    if match is None:
        raise DecodeError(CREATE_STATEMENT_ANCHOR, reply)
    return match.group(1)


def decode_rows(reply: str) -> list[Any]:
    """JSON rows echoed as `rows: Array[String] = Array(...)`."""
    match = _ROWS.search(reply or "")
    if match is None:
        raise DecodeError(ROWS_ANCHOR, reply)
    text = f"[{match.group(1)}]"
    try:
        return json.loads(text)
    except ValueError as exc:
        raise MalformedReplyError(str(exc), raw=reply, normalized=text) from exc


def normalize_cluster_data(reply: str) -> str:
    """Text after `clusterData: String =` with the echo's escaping undone."""
    if CLUSTER_DATA_ANCHOR not in (reply or ""):
        raise DecodeError(CLUSTER_DATA_ANCHOR, reply)
    text = reply.split(CLUSTER_DATA_ANCHOR, 1)[1]
    for old, new in _CLUSTER_DATA_REPLACEMENTS:
        text = text.replace(old, new)
    return text


def decode_cluster_data(reply: str) -> Any:
    """Parse the cluster-data echo as JSON."""
    normalized = normalize_cluster_data(reply)
    try:
        return json.loads(normalized)
    except ValueError as exc:
        LOGGER.error("Cluster data is not valid JSON. Raw: %s Normalized: %s", reply, normalized)
        raise MalformedReplyError(str(exc), raw=reply, normalized=normalized) from exc
