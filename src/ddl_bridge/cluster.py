"""
Cluster inspection: state, stored DDL, sample documents and cluster data.

Commands run in the executor's Scala context; replies are decoded by
`src.ddl_bridge.decode`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from src.constants import CLUSTERS_GET_PATH
from src.ddl_bridge.decode import decode_cluster_data, decode_rows, extract_create_statement
from src.ddl_bridge.execute.apply import to_scala_command
from src.ddl_bridge.execute.client import ClusterClient
from src.ddl_bridge.execute.errors import DecodeError, RemoteExecutionError
from src.ddl_bridge.execute.ports import CommandRunner
from src.ddl_bridge.identifiers import FullEntityName, quote_full_entity_name, quote_identifier
from src.enums import ClusterState, Language
from src.logger import LOGGER


@dataclass(frozen=True)
class ClusterStatus:
    state: ClusterState
    raw_state: str

    @property
    def is_running(self) -> bool:
        return self.state == ClusterState.RUNNING


@dataclass(frozen=True)
class DocumentSample:
    """Sampling rule: a fixed row count, or a percentage when `percentage` is set."""

    absolute_number: int = 1000
    percentage: float | None = None


class ClusterInspector:
    """Read-only queries against one cluster."""

    def __init__(self, runner: CommandRunner, client: ClusterClient) -> None:
        self._runner = runner
        self._client = client

    def fetch_cluster_properties(self) -> dict[str, Any]:
        """Cluster description from the clusters API."""
        return self._client.get(
            CLUSTERS_GET_PATH, {"cluster_id": self._client.connection.cluster_id}
        )

    def cluster_state(self) -> ClusterStatus:
        raw_state = str(self.fetch_cluster_properties().get("state") or ClusterState.UNKNOWN)
        try:
            state = ClusterState(raw_state)
        except ValueError:
            state = ClusterState.UNKNOWN
        return ClusterStatus(state=state, raw_state=raw_state)

    def fetch_create_statement(self, database_name: str, table_name: str) -> str:
        """`SHOW CREATE TABLE` output for one table."""
        full_name = quote_full_entity_name(FullEntityName(database_name, table_name))
        command = (
            to_scala_command(f"SHOW CREATE TABLE {full_name}")
            + '.select("createtab_stmt").first.getString(0)'
        )
        return extract_create_statement(self._runner.execute_command(command, Language.SCALA))

    def fetch_documents(
        self,
        database_name: str,
        table_name: str,
        columns: tuple[str, ...] = (),
        sample: DocumentSample | None = None,
    ) -> list[Any]:
        """Sample rows as JSON documents; any failure yields an empty list."""
        sample = sample or DocumentSample()
        selection = ", ".join(quote_identifier(column) for column in columns) or "*"
        full_name = quote_full_entity_name(FullEntityName(database_name, table_name))
        query = f"SELECT {selection} FROM {full_name}"
        if sample.percentage is not None:
            query += f" TABLESAMPLE ({sample.percentage} PERCENT)"
        else:
            query += f" LIMIT {int(sample.absolute_number)}"
        command = "var rows = " + to_scala_command(query).removeprefix("var stmt = ")
        command += ".toJSON.collect()"
        try:
            return decode_rows(self._runner.execute_command(command, Language.SCALA))
        except (RemoteExecutionError, DecodeError) as exc:
            LOGGER.warning("Could not sample documents from %s: %s", full_name, exc)
            return []

    def fetch_cluster_data(self, command: str) -> Any:
        """Run a Scala command that binds `clusterData` and decode its JSON."""
        return decode_cluster_data(self._runner.execute_command(command, Language.SCALA))
