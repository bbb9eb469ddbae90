"""Connection descriptor for a Databricks cluster."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from src.constants import DEFAULT_SCHEME


def clean_host(url: str) -> str:
    """Trim whitespace and trailing slashes; default to https when no scheme is given."""
    host = (url or "").strip().rstrip("/")
    if not host:
        raise ValueError("Cluster host must not be empty.")
    if "://" not in host:
        host = DEFAULT_SCHEME + host
    return host


@dataclass(frozen=True)
class ConnectionInfo:
    """Host, cluster and credential every call is bound to."""

    host: str
    cluster_id: str
    access_token: str = ""
    apply_timeout_seconds: float | None = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> ConnectionInfo:
        """
        Build from host connection settings.

        `applyToInstanceQueryRequestTimeout` arrives in milliseconds.
        """
        if not payload.get("clusterId"):
            raise ValueError("Connection settings must include a clusterId.")
        raw_timeout = payload.get("applyToInstanceQueryRequestTimeout")
        return cls(
            host=clean_host(str(payload.get("host") or "")),
            cluster_id=str(payload["clusterId"]),
            access_token=str(payload.get("accessToken") or ""),
            apply_timeout_seconds=float(raw_timeout) / 1000 if raw_timeout else None,
        )
