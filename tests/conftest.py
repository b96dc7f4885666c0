"""Shared fixtures for the listener test suite."""

from __future__ import annotations

import base64
import json

import pytest

from routemaster.logmsg import LogSink

SECRET = "test-subscription-uuid"


class MemorySink(LogSink):
    """Sink that keeps emitted lines in memory."""

    def __init__(self) -> None:
        self.lines: list[str] = []

    def emit(self, line: str) -> None:
        self.lines.append(line)

    @property
    def records(self) -> list[dict]:
        return [json.loads(line) for line in self.lines]


def basic_auth(username: str, password: str = "") -> str:
    """Build an Authorization header value for Basic auth."""
    token = base64.b64encode(f"{username}:{password}".encode()).decode()
    return f"Basic {token}"


@pytest.fixture
def sink() -> MemorySink:
    return MemorySink()


@pytest.fixture
def auth_header() -> str:
    """Authorization header carrying the correct secret."""
    return basic_auth(SECRET)


@pytest.fixture
def order_body() -> bytes:
    """A one-event batch as the bus would send it."""
    return json.dumps(
        [{"topic": "orders", "type": "create", "url": "https://orders/1", "t": 500}]
    ).encode()


# Bodies that break json.loads itself rather than event validation
OVERSIZED_INT_BODY = b'[{"topic": "a", "type": "noop", "url": "https://a/1", "t": ' + b"1" * 5000 + b"}]"
DEEPLY_NESTED_BODY = b"[" * 100_000 + b"]" * 100_000
