"""
Drop-safety policy.

Unless the caller opts in through the `applyDropStatements` option, every
statement containing one of `DROP_STATEMENT_KEYWORDS` is commented out rather
than removed, so the intended operation stays visible in the script.

Detection is a plain substring match, not a parse: a keyword inside a string
literal also counts. Callers relying on this behaviour depend on the exact
keyword list in `src.constants`.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from src.constants import APPLY_DROP_STATEMENTS_OPTION, DROP_STATEMENT_KEYWORDS
from src.ddl_bridge.utils import comment_out, is_commented_out


def is_drop_statement(statement: str, keywords: Iterable[str] = DROP_STATEMENT_KEYWORDS) -> bool:
    """True when any destructive keyword occurs anywhere in `statement`."""
    return any(keyword in statement for keyword in keywords)


def contains_drop_statements(script: str, keywords: Iterable[str] = DROP_STATEMENT_KEYWORDS) -> bool:
    """Script-level variant used by the host to warn before applying."""
    return is_drop_statement(script, keywords)


@dataclass(frozen=True)
class ScriptOptions:
    """Caller-controlled switches for script generation."""

    apply_drop_statements: bool = False

    @classmethod
    def from_payload(cls, options: Mapping[str, Any] | None) -> ScriptOptions:
        """Read `options.additionalOptions[{id, value}]` as sent by the host."""
        additional = (options or {}).get("additionalOptions") or []
        for option in additional:
            if isinstance(option, Mapping) and option.get("id") == APPLY_DROP_STATEMENTS_OPTION:
                return cls(apply_drop_statements=bool(option.get("value")))
        return cls()


@dataclass(frozen=True)
class DropSafetyPolicy:
    """Comment out destructive statements unless dropping is allowed."""

    apply_drop_statements: bool = False
    keywords: tuple[str, ...] = DROP_STATEMENT_KEYWORDS

    def apply(self, statements: Iterable[str]) -> list[str]:
        if self.apply_drop_statements:
            return list(statements)
        return [self._deactivate(statement) for statement in statements]

    def _deactivate(self, statement: str) -> str:
        if is_commented_out(statement) or not is_drop_statement(statement, self.keywords):
            return statement
        return comment_out(statement)
