"""
HTTP client for the cluster REST API.

- Every call carries the bearer token of its `ConnectionInfo`.
- Non-2xx responses raise `HttpError` (reason, status, request description, body).
- Bodies that are not JSON raise `MalformedReplyError`.
- No retries: callers decide what a failure means.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

import requests

from src import settings
from src.ddl_bridge.execute.connection import ConnectionInfo
from src.ddl_bridge.execute.errors import HttpError, MalformedReplyError


class ClusterClient:
    """Thin JSON-over-HTTP wrapper bound to one cluster connection."""

    def __init__(
        self,
        connection: ConnectionInfo,
        session: requests.Session | None = None,
        request_timeout: float = settings.HTTP_REQUEST_TIMEOUT_SECONDS,
    ) -> None:
        self.connection = connection
        self._session = session or requests.Session()
        self.request_timeout = request_timeout

    def post(self, path: str, body: Mapping[str, Any], timeout: float | None = None) -> Any:
        """POST a JSON body and return the decoded JSON reply."""
        response = self._session.post(
            self._url(path),
            json=dict(body),
            headers=self._headers(with_content_type=True),
            timeout=timeout or self.request_timeout,
        )
        return self._read(response, description=json.dumps(dict(body)))

    def get(self, path: str, params: Mapping[str, Any], timeout: float | None = None) -> Any:
        """GET with query parameters and return the decoded JSON reply."""
        response = self._session.get(
            self._url(path),
            params=dict(params),
            headers=self._headers(),
            timeout=timeout or self.request_timeout,
        )
        return self._read(response, description=json.dumps(dict(params)))

    # ---------- helpers ----------

    def _url(self, path: str) -> str:
        return f"{self.connection.host}{path}"

    def _headers(self, with_content_type: bool = False) -> dict[str, str]:
        headers = {"Authorization": f"Bearer {self.connection.access_token}"}
        if with_content_type:
            headers["Content-Type"] = "application/json"
        return headers

    @staticmethod
    def _read(response: requests.Response, description: str) -> Any:
        if not response.ok:
            raise HttpError(
                response.reason or f"HTTP {response.status_code}",
                status_code=response.status_code,
                description=description,
                body=response.text,
            )
        try:
            return response.json()
        except ValueError as exc:
            raise MalformedReplyError(str(exc), raw=response.text, normalized=response.text) from exc
