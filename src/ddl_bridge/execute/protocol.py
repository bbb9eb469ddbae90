"""
Remote command protocol over the cluster's 1.2 context/command API.

Lifecycle
---------
1) create an execution context (lazily, once per executor)
2) submit a command into the context
3) poll the command status until it finishes or errors
4) destroy the context

Polling rules
-------------
- Finished with results: an `error` result type raises `RemoteExecutionError`
  (data, falling back to cause); anything else returns the result data.
- Error status raises `RemoteExecutionError`.
- Any other status (Queued, Running, ...) polls again after `poll_interval`.
- With a timeout, a passed deadline raises `StatementTimeoutError`. Sleeps and
  HTTP timeouts are capped by the time left.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import requests

from src import settings
from src.constants import (
    COMMANDS_EXECUTE_PATH,
    COMMANDS_STATUS_PATH,
    CONTEXTS_CREATE_PATH,
    CONTEXTS_DESTROY_PATH,
)
from src.ddl_bridge.execute.client import ClusterClient
from src.ddl_bridge.execute.connection import ConnectionInfo
from src.ddl_bridge.execute.errors import RemoteExecutionError, StatementTimeoutError
from src.enums import CommandStatus, Language, ResultType
from src.logger import LOGGER


@dataclass(frozen=True)
class ExecutionContext:
    """Handle to a remote interpreter context on one cluster."""

    context_id: str
    connection: ConnectionInfo


@dataclass(frozen=True)
class Deadline:
    """Absolute expiry derived from an optional timeout."""

    timeout_seconds: float | None
    expires_at: float | None
    clock: Callable[[], float]

    @classmethod
    def after(cls, timeout_seconds: float | None, clock: Callable[[], float]) -> Deadline:
        expires_at = None if timeout_seconds is None else clock() + timeout_seconds
        return cls(timeout_seconds, expires_at, clock)

    def remaining(self) -> float | None:
        if self.expires_at is None:
            return None
        return max(self.expires_at - self.clock(), 0.0)

    @property
    def expired(self) -> bool:
        return self.expires_at is not None and self.clock() >= self.expires_at

    def cap(self, seconds: float) -> float:
        """`seconds`, shortened to what is left before expiry."""
        remaining = self.remaining()
        return seconds if remaining is None else min(seconds, remaining)


class CommandExecutor:
    """
    Runs commands in one execution context it owns.

    Use as a context manager so the remote context is destroyed on exit.
    `clock` and `sleep` are injectable for deterministic tests.
    """

    def __init__(
        self,
        client: ClusterClient,
        *,
        poll_interval: float = settings.COMMAND_POLL_INTERVAL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._client = client
        self._poll_interval = poll_interval
        self._clock = clock
        self._sleep = sleep
        self._context: ExecutionContext | None = None

    @property
    def context(self) -> ExecutionContext | None:
        return self._context

    def __enter__(self) -> CommandExecutor:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is None:
            self.destroy_context()
            return
        # The body already failed; its error is the one callers must see.
        try:
            self.destroy_context()
        except (RemoteExecutionError, requests.RequestException) as destroy_error:
            LOGGER.warning("Could not destroy execution context: %s", destroy_error)

    def acquire_context(self, deadline: Deadline | None = None) -> ExecutionContext:
        """Create the execution context on first use; reuse it afterwards."""
        if self._context is not None:
            return self._context
        connection = self._client.connection
        body = self._client.post(
            CONTEXTS_CREATE_PATH,
            {"language": Language.SCALA.value, "clusterId": connection.cluster_id},
            timeout=self._request_timeout(deadline),
        )
        self._context = ExecutionContext(context_id=str(body["id"]), connection=connection)
        LOGGER.info(
            "Created execution context %s on cluster %s",
            self._context.context_id,
            connection.cluster_id,
        )
        return self._context

    def execute_command(
        self,
        command: str,
        language: Language = Language.SCALA,
        timeout: float | None = None,
    ) -> Any:
        """Submit `command` and block until its result is available."""
        deadline = Deadline.after(timeout, self._clock)
        try:
            context = self.acquire_context(deadline)
            command_id = self._submit(context, command, language, deadline)
            return self._wait_for_result(context, command_id, command, deadline)
        except requests.Timeout as exc:
            if timeout is None:
                raise
            raise StatementTimeoutError(command, timeout) from exc

    def destroy_context(self) -> None:
        """Destroy the held context; a no-op when none is held."""
        context = self._context
        if context is None:
            return
        # Forget the handle first so a failed destroy is never retried.
        self._context = None
        self._client.post(
            CONTEXTS_DESTROY_PATH,
            {"contextId": context.context_id, "clusterId": context.connection.cluster_id},
        )
        LOGGER.info("Destroyed execution context %s", context.context_id)

    # ---------- helpers ----------

    def _submit(
        self, context: ExecutionContext, command: str, language: Language, deadline: Deadline
    ) -> str:
        self._check_deadline(deadline, command)
        body = self._client.post(
            COMMANDS_EXECUTE_PATH,
            {
                "language": language.value,
                "clusterId": context.connection.cluster_id,
                "contextId": context.context_id,
                "command": command,
            },
            timeout=self._request_timeout(deadline),
        )
        self._check_deadline(deadline, command)
        command_id = str(body["id"])
        LOGGER.debug("Submitted command %s in context %s", command_id, context.context_id)
        return command_id

    def _wait_for_result(
        self, context: ExecutionContext, command_id: str, command: str, deadline: Deadline
    ) -> Any:
        params = {
            "clusterId": context.connection.cluster_id,
            "contextId": context.context_id,
            "commandId": command_id,
        }
        while True:
            self._check_deadline(deadline, command)
            body = self._client.get(
                COMMANDS_STATUS_PATH, params, timeout=self._request_timeout(deadline)
            )
            self._check_deadline(deadline, command)
            status = body.get("status")
            results = body.get("results")
            if status == CommandStatus.FINISHED and results is not None:
                return _read_results(results)
            if status == CommandStatus.ERROR:
                raise RemoteExecutionError("Error during receiving command result")
            LOGGER.debug("Command %s is %s; polling again", command_id, status)
            self._sleep(deadline.cap(self._poll_interval))

    def _request_timeout(self, deadline: Deadline | None) -> float:
        if deadline is None:
            return self._client.request_timeout
        # requests rejects a zero timeout.
        return max(deadline.cap(self._client.request_timeout), 0.001)

    @staticmethod
    def _check_deadline(deadline: Deadline, command: str) -> None:
        if deadline.expired:
            raise StatementTimeoutError(command, deadline.timeout_seconds or 0.0)


def _read_results(results: dict[str, Any]) -> Any:
    if results.get("resultType") == ResultType.ERROR:
        raise RemoteExecutionError(
            str(results.get("data") or results.get("cause") or "Command failed"),
            description=str(results.get("cause") or ""),
        )
    return results.get("data")
