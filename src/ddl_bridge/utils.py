from __future__ import annotations

from collections.abc import Iterable, Mapping

from src.ddl_bridge.identifiers import quote_identifier


def escape_sql_literal(value: str | None) -> str:
    """
    Escape a Python string for use as a single-quoted SQL literal.
    Doubles single quotes per SQL rules. Empty/None → empty string.
    """
    return (value or "").replace("'", "''")


def sql_string(value: str | None) -> str:
    """Single-quoted SQL literal."""
    return f"'{escape_sql_literal(value)}'"


def format_tblproperties(props: Mapping[str, str]) -> str:
    """
    Format TBLPROPERTIES assignments: `'key' = 'value', 'k2' = 'v2'`.
    Keys and values are SQL string literals (NOT identifiers).
    Keys are sorted for deterministic output.
    """
    return ", ".join(
        f"{sql_string(k)} = {sql_string(v)}"
        for k, v in sorted(props.items(), key=lambda item: item[0])
    )


def format_property_keys(keys: Iterable[str]) -> str:
    """Format keys for UNSET TBLPROPERTIES: `'k1', 'k2'` (sorted)."""
    return ", ".join(sql_string(k) for k in sorted(keys))


def format_column_list(names: Iterable[str]) -> str:
    """Backticked, comma-separated column names in the given order."""
    return ", ".join(quote_identifier(n) for n in names)


def comment_out(statement: str) -> str:
    """Prefix every line of `statement` with a SQL line comment marker."""
    return "\n".join(f"-- {line}" for line in statement.split("\n"))


def is_commented_out(statement: str) -> bool:
    """True when every non-blank line is a SQL line comment."""
    lines = [line.strip() for line in statement.splitlines() if line.strip()]
    return bool(lines) and all(line.startswith("--") for line in lines)
