"""
Script formatting: pretty-print fragments and isolate every statement.

Fragments are pretty-printed one by one with sqlglot (databricks dialect,
4-space indentation). Commented-out fragments and SQL sqlglot cannot handle
pass through untouched. The joined text is then re-split on `;` and rejoined
with blank lines, because the pretty-printer does not separate statements on
its own.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable

import sqlglot
from sqlglot.errors import SqlglotError

from src.constants import SQL_DIALECT, SQL_INDENT
from src.ddl_bridge.utils import is_commented_out
from src.logger import LOGGER

Formatter = Callable[[str], str]


def pretty_print(fragment: str) -> str:
    """Pretty-print one `;`-terminated fragment; falls back to the raw text."""
    if not fragment.strip() or is_commented_out(fragment):
        return fragment
    try:
        statements = sqlglot.transpile(
            fragment,
            read=SQL_DIALECT,
            write=SQL_DIALECT,
            pretty=True,
            pad=SQL_INDENT,
            indent=SQL_INDENT,
        )
    except SqlglotError as exc:
        LOGGER.warning("Pretty-printing failed, keeping statement as written: %s", exc)
        return fragment
    statements = [statement for statement in statements if statement.strip()]
    if not statements:
        return fragment
    return ";\n".join(statements) + ";"


def split_statements(script: str) -> list[str]:
    """Split on `;` and drop blank pieces (no literal awareness)."""
    return [piece.strip() for piece in script.split(";") if piece.strip()]


def format_script(fragments: Iterable[str | None], formatter: Formatter = pretty_print) -> str:
    """Join, pretty-print and re-isolate statements; empty input gives an empty script."""
    text = "\n\n".join(formatter(fragment) for fragment in fragments if fragment)
    statements = split_statements(text)
    if not statements:
        return ""
    return ";\n\n".join(statements) + ";\n"
