"""Shared constant values used across the DDL bridge."""

from typing import Final

# Destructive statements are detected by plain substring match against this list.
DROP_STATEMENT_KEYWORDS: Final[tuple[str, ...]] = (
    "DROP DATABASE",
    "DROP SCHEMA",
    "DROP TABLE",
    "DROP VIEW",
    "DROP COLUMN",
)
APPLY_DROP_STATEMENTS_OPTION: Final[str] = "applyDropStatements"

CONTEXTS_CREATE_PATH: Final[str] = "/api/1.2/contexts/create"
CONTEXTS_DESTROY_PATH: Final[str] = "/api/1.2/contexts/destroy"
COMMANDS_EXECUTE_PATH: Final[str] = "/api/1.2/commands/execute"
COMMANDS_STATUS_PATH: Final[str] = "/api/1.2/commands/status"
CLUSTERS_GET_PATH: Final[str] = "/api/2.0/clusters/get"

DEFAULT_SCHEME: Final[str] = "https://"
SQL_INDENT: Final[int] = 4
SQL_DIALECT: Final[str] = "databricks"
ERROR_REPORT_DELAY_SECONDS: Final[float] = 0.15
