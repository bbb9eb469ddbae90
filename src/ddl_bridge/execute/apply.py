"""
Apply-to-instance: run a generated script statement by statement.

- Comment lines are removed, so drops commented out by the safety policy
  are never sent.
- Whitespace is collapsed and the script split on `;`.
- Each statement runs through `sqlContext.sql(...)` in a Scala context.
- Execution is sequential; the first failure aborts the rest.
- A statement past its timeout raises `StatementTimeoutError` naming it.
"""

from __future__ import annotations

import re

import requests

from src import settings
from src.ddl_bridge.execute.client import ClusterClient
from src.ddl_bridge.execute.connection import ConnectionInfo
from src.ddl_bridge.execute.errors import StatementTimeoutError
from src.ddl_bridge.execute.ports import ApplyReport, CommandRunner
from src.ddl_bridge.execute.protocol import CommandExecutor
from src.enums import Language
from src.logger import LOGGER

_WHITESPACE = re.compile(r"\s+")


def split_script(script: str) -> list[str]:
    """Executable statements of `script`, without comment lines or terminators."""
    lines = [line for line in script.splitlines() if not line.strip().startswith("--")]
    collapsed = _WHITESPACE.sub(" ", "\n".join(lines))
    return [statement.strip() for statement in collapsed.split(";") if statement.strip()]


def to_scala_command(statement: str) -> str:
    """Wrap a SQL statement as a Scala `sqlContext.sql` call."""
    escaped = statement.replace("\\", "\\\\").replace('"', '\\"')
    return f'var stmt = sqlContext.sql("{escaped}")'


class ScriptApplier:
    """Runs script statements through a `CommandRunner`, one at a time."""

    def __init__(
        self,
        runner: CommandRunner,
        timeout_seconds: float = settings.APPLY_STATEMENT_TIMEOUT_SECONDS,
    ) -> None:
        self._runner = runner
        self._timeout_seconds = timeout_seconds

    def apply(self, script: str) -> ApplyReport:
        statements = split_script(script)
        applied: list[str] = []
        for index, statement in enumerate(statements, start=1):
            LOGGER.info("Applying statement %d/%d: %s", index, len(statements), statement)
            try:
                self._runner.execute_command(
                    to_scala_command(statement), Language.SCALA, timeout=self._timeout_seconds
                )
            except StatementTimeoutError as exc:
                LOGGER.error("Statement %d timed out after %ss", index, self._timeout_seconds)
                raise StatementTimeoutError(statement, self._timeout_seconds) from exc
            applied.append(statement)
        LOGGER.info("Applied %d statement(s)", len(applied))
        return ApplyReport(statements=tuple(applied))


def apply_script(
    connection: ConnectionInfo,
    script: str,
    session: requests.Session | None = None,
) -> ApplyReport:
    """Apply `script` on the connection's cluster inside a fresh execution context."""
    timeout = connection.apply_timeout_seconds or settings.APPLY_STATEMENT_TIMEOUT_SECONDS
    client = ClusterClient(connection, session=session)
    with CommandExecutor(client) as executor:
        return ScriptApplier(executor, timeout_seconds=timeout).apply(script)
