"""
Errors raised while talking to a cluster.

- RemoteExecutionError: the interpreter reported a failure (message/code/description).
- HttpError: a non-2xx HTTP response; a RemoteExecutionError carrying the status.
- MalformedReplyError: reply JSON still invalid after normalisation.
- DecodeError: reply text did not match the expected anchor pattern.
- StatementTimeoutError: a statement exceeded its deadline.
"""

from __future__ import annotations


class RemoteExecutionError(Exception):
    """Failure reported by the remote interpreter or its HTTP API."""

    def __init__(self, message: str, code: int | str = "", description: str = "") -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.description = description

    def to_dict(self) -> dict[str, object]:
        return {"message": self.message, "code": self.code, "description": self.description}


class HttpError(RemoteExecutionError):
    """Non-2xx response; `code` is the HTTP status, `body` the response text."""

    def __init__(self, message: str, status_code: int, description: str = "", body: str = "") -> None:
        super().__init__(message, code=status_code, description=description)
        self.status_code = status_code
        self.body = body


class MalformedReplyError(RemoteExecutionError):
    """Reply text could not be parsed as JSON, even after normalisation."""

    def __init__(self, message: str, raw: str, normalized: str) -> None:
        super().__init__(message, description=f"body: {raw}")
        self.raw = raw
        self.normalized = normalized


class DecodeError(ValueError):
    """Reply text did not contain the expected anchor."""

    def __init__(self, anchor: str, raw: str) -> None:
        super().__init__(f"Reply does not contain anchor {anchor!r}")
        self.anchor = anchor
        self.raw = raw


class StatementTimeoutError(TimeoutError):
    """A statement did not finish before its deadline."""

    def __init__(self, statement: str, timeout_seconds: float) -> None:
        super().__init__(f"Timeout exceeded for script\n{statement}")
        self.statement = statement
        self.timeout_seconds = timeout_seconds
