"""
Execution ports and result types.

- CommandRunner: protocol for anything that can run one command on a cluster
  (the HTTP-backed `CommandExecutor`, fakes in tests).
- ApplyReport: statements applied by one apply-to-instance run.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol

from src.enums import Language


class CommandRunner(Protocol):
    """Runs a single command in a remote execution context."""

    def execute_command(
        self, command: str, language: Language = Language.SCALA, timeout: float | None = None
    ) -> Any: ...


@dataclass(frozen=True)
class ApplyReport:
    """Statements applied, in submission order."""

    statements: tuple[str, ...]

    @property
    def count(self) -> int:
        return len(self.statements)
