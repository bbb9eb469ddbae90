"""
Fresh-build scripts: full CREATE DATABASE / TABLE / VIEW DDL for a model.

Entities and views without their own database inherit the container's name.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import replace

from src.ddl_bridge.formatting import Formatter, format_script, pretty_print
from src.ddl_bridge.schema.models import ContainerNode, EntityNode, ViewNode
from src.ddl_bridge.sql import sql_create_database, sql_create_table, sql_create_view


def build_create_script(
    container: ContainerNode | None,
    entities: Iterable[EntityNode] = (),
    views: Iterable[ViewNode] = (),
    formatter: Formatter = pretty_print,
) -> str:
    """Database statement first, then one statement per table, then views."""
    database_name = container.name if container else ""
    fragments: list[str | None] = []
    if container is not None:
        fragments.append(
            sql_create_database(
                container.name, container.comment, container.location, container.properties
            )
        )
    for entity in entities:
        if database_name and not entity.database_name:
            entity = replace(entity, database_name=database_name)
        fragments.append(sql_create_table(entity))
    for view in views:
        if database_name and not view.database_name:
            view = replace(view, database_name=database_name)
        fragments.append(sql_create_view(view))
    return format_script(fragments, formatter)
