import logging
from collections import defaultdict, deque

import pytest

from src import settings
from src.ddl_bridge.execute.client import ClusterClient
from src.ddl_bridge.execute.connection import ConnectionInfo
from src.ddl_bridge.execute.protocol import CommandExecutor

_HOST = "https://example.cloud.databricks.com"


def quiet_logger() -> None:
    """Keep bridge log output out of the test report."""
    logging.getLogger(settings.LOGGER_NAME).setLevel(logging.CRITICAL)


class FakeResponse:
    """Enough of `requests.Response` for the cluster client."""

    def __init__(self, payload=None, status_code=200, reason="OK", text=None):
        self._payload = payload
        self.status_code = status_code
        self.reason = reason
        self.text = text if text is not None else repr(payload)

    @property
    def ok(self):
        return 200 <= self.status_code < 300

    def json(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


class FakeSession:
    """
    Records every call and answers from per-(method, path) queues.

    A queued exception is raised instead of returned.
    """

    def __init__(self):
        self.calls = []
        self._queues = defaultdict(deque)

    def queue(self, method, path, *responses):
        self._queues[(method, path)].extend(responses)
        return self

    def post(self, url, json=None, headers=None, timeout=None):
        return self._respond("POST", url, json, headers, timeout)

    def get(self, url, params=None, headers=None, timeout=None):
        return self._respond("GET", url, params, headers, timeout)

    def calls_to(self, path):
        return [call for call in self.calls if call["path"] == path]

    def _respond(self, method, url, body, headers, timeout):
        path = url[len(_HOST):] if url.startswith(_HOST) else url
        self.calls.append(
            {"method": method, "path": path, "body": body, "headers": headers, "timeout": timeout}
        )
        queue = self._queues[(method, path)]
        if not queue:
            raise AssertionError(f"unexpected {method} {path}")
        response = queue.popleft()
        if isinstance(response, Exception):
            raise response
        return response


class FakeClock:
    """Monotonic clock that only moves when `sleep` is called (or `advance`)."""

    def __init__(self, start=0.0):
        self.now = start
        self.sleeps = []

    def __call__(self):
        return self.now

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture(autouse=True, scope="session")
def _quiet_logs():
    quiet_logger()


@pytest.fixture
def response():
    """Factory for fake HTTP responses."""
    return FakeResponse


@pytest.fixture
def fake_session():
    return FakeSession()


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def connection():
    return ConnectionInfo(host=_HOST, cluster_id="0101-abc", access_token="dapi-token")


@pytest.fixture
def client(connection, fake_session):
    return ClusterClient(connection, session=fake_session, request_timeout=30)


@pytest.fixture
def executor(client, fake_clock):
    return CommandExecutor(client, poll_interval=1.0, clock=fake_clock, sleep=fake_clock.sleep)
