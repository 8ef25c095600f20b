"""
Pytest configuration and shared fixtures for the test suite.
"""

import asyncio
import json
from typing import Any, Callable, List, Optional
from urllib.parse import parse_qs, urlsplit

import httpx
import pytest

from graphkit.client import GraphClient
from graphkit.config import GraphConfig
from graphkit.core.executor import RequestExecutor
from graphkit.core.request import RetryPolicy
from graphkit.core.token_cache import CredentialSource, LoginStatus, TokenCache


# ============================================================================
# Configuration Fixtures
# ============================================================================

@pytest.fixture
def test_config() -> GraphConfig:
    """Create a test configuration."""
    return GraphConfig(
        api_host="graph.test",
        version="v23.0",
        timeout_ms=1_000,
        retry_attempts=3,
        retry_delay_ms=10,
        log_level="DEBUG",
    )


@pytest.fixture
def fast_policy() -> RetryPolicy:
    """Retry policy with short delays."""
    return RetryPolicy(max_attempts=3, base_delay_ms=10, timeout_ms=1_000)


# ============================================================================
# Fake Time
# ============================================================================

class RecordingSleep:
    """Stand-in for asyncio.sleep that records requested delays."""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


class FakeClock:
    """Millisecond clock under test control."""

    def __init__(self, now_ms: int = 1_700_000_000_000):
        self.now_ms = now_ms

    def __call__(self) -> int:
        return self.now_ms

    def advance(self, ms: int) -> None:
        self.now_ms += ms


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


# ============================================================================
# Fake Provider
# ============================================================================

def graph_error(code: int, message: str = "error", error_type: str = "OAuthException") -> dict:
    """Provider error envelope."""
    return {"error": {"message": message, "type": error_type, "code": code, "fbtrace_id": "trace"}}


class FakeGraph:
    """
    Scripted provider behind an httpx.MockTransport.

    Each queued response is consumed by one request. Recorded requests can be
    inspected afterwards.
    """

    def __init__(self):
        self.responses: List[Any] = []
        self.requests: List[httpx.Request] = []
        self.handler: Optional[Callable[[httpx.Request], httpx.Response]] = None

    def queue(self, status: int = 200, body: Any = None, raise_exc: Optional[Exception] = None) -> None:
        self.responses.append((status, body, raise_exc))

    def queue_many(self, count: int, status: int = 200, body: Any = None) -> None:
        for _ in range(count):
            self.queue(status, body)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.handler is not None:
            return self.handler(request)

        status, body, raise_exc = self.responses.pop(0)
        if raise_exc is not None:
            raise raise_exc
        return httpx.Response(status, json=body if body is not None else {})

    @property
    def call_count(self) -> int:
        return len(self.requests)

    def query(self, index: int = -1) -> dict:
        """Query parameters of a recorded request, single values unwrapped."""
        parsed = parse_qs(urlsplit(str(self.requests[index].url)).query)
        return {k: v[0] if len(v) == 1 else v for k, v in parsed.items()}

    def json_body(self, index: int = -1) -> dict:
        return json.loads(self.requests[index].content)


@pytest.fixture
def fake_graph() -> FakeGraph:
    return FakeGraph()


@pytest.fixture
async def http_client(fake_graph):
    async with httpx.AsyncClient(transport=httpx.MockTransport(fake_graph)) as client:
        yield client


@pytest.fixture
def executor(http_client, test_config, recording_sleep) -> RequestExecutor:
    return RequestExecutor(http_client, test_config, sleep=recording_sleep)


# ============================================================================
# Credentials
# ============================================================================

class CountingCredentialSource(CredentialSource):
    """Credential source that counts how often it is asked."""

    def __init__(self, status: LoginStatus, delay: float = 0.0):
        self.status = status
        self.delay = delay
        self.calls = 0

    async def get_login_status(self) -> LoginStatus:
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        return self.status


@pytest.fixture
def connected_source() -> CountingCredentialSource:
    return CountingCredentialSource(
        LoginStatus(status="connected", access_token="user-token", expires_in=3600),
        delay=0.01,
    )


@pytest.fixture
def token_cache(clock) -> TokenCache:
    cache = TokenCache(clock=clock)
    cache.set("cached-token")
    return cache


@pytest.fixture
async def graph_client(test_config, token_cache, http_client, recording_sleep):
    """Connected client over the fake provider with a seeded token."""
    client = GraphClient(
        config=test_config,
        token_cache=token_cache,
        http_client=http_client,
        sleep=recording_sleep,
    )
    async with client:
        yield client
