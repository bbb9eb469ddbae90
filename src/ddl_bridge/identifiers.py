"""
Identifier utilities for the DDL bridge.

This module defines:
- Canonical entity-name dataclass: FullEntityName.
- Helpers to quote qualified names.

Conventions:
- Verbs: quote_*.
- Databases are optional: an entity without a database renders as a single
  backticked part.
"""

from __future__ import annotations

from dataclasses import dataclass

# -----------------------------
# Core name data structure
# -----------------------------


@dataclass(frozen=True)
class FullEntityName:
    """Two-part entity name: database.entity (database may be empty)."""

    database: str
    name: str


# -----------------------------
# String helpers
# -----------------------------


def quote_identifier(identifier: str) -> str:
    """Quote a single SQL identifier using backticks, doubling any embedded backticks."""
    text = str(identifier)
    return f"`{text.replace('`', '``')}`"


def quote_qualified_name(*parts: str | None) -> str:
    """
    Return a dot-delimited, backticked qualified name from the non-empty parts.

    Examples:
        quote_qualified_name("sales", "orders") -> "`sales`.`orders`"
        quote_qualified_name("", "orders")      -> "`orders`"

    Rules:
    - None and empty parts are skipped (a missing database is allowed).
    - Strips surrounding backticks on inputs to avoid double-quoting.
    - At least one non-empty part is required.
    """
    cleaned_parts: list[str] = []
    for raw_part in parts:
        if raw_part is None:
            continue
        part = str(raw_part).strip()
        if part.startswith("`") and part.endswith("`") and len(part) >= 2:
            part = part[1:-1]
        if part == "":
            continue
        cleaned_parts.append(quote_identifier(part))
    if not cleaned_parts:
        raise ValueError("Qualified name requires at least one non-empty part.")
    return ".".join(cleaned_parts)


def quote_full_entity_name(full_name: FullEntityName) -> str:
    """Backticked: `` `database`.`entity` `` (or `` `entity` `` without a database)."""
    return quote_qualified_name(full_name.database, full_name.name)
