"""
Pytest configuration and shared fixtures for the collector client tests.
"""

import json
from typing import Any, Dict, List, Tuple

import httpx
import pytest
import pytest_asyncio

from sumologic_collector.api_client import CollectorClient
from sumologic_collector.config import CollectorClientConfig
from sumologic_collector.resilience import DeadlineRetry


API_PREFIX = "/api/v1"
COLLECTOR_NAME = "test-node"
COLLECTOR_ID = "100"

COLLECTORS_FIXTURE = {
    "collectors": [
        {"id": "99", "name": "other-node", "collectorType": "Installable"},
        {"id": COLLECTOR_ID, "name": COLLECTOR_NAME, "collectorType": "Installable"},
    ]
}

SOURCES_FIXTURE = {
    "sources": [
        {"name": "A", "id": "1"},
        {"name": "B", "id": "2"},
    ]
}


class FakeSumoApi:
    """Routes httpx requests to canned responses and records every request.

    Each route holds a queue of responses or exceptions; the last entry is
    reused once the queue is down to one item.
    """

    def __init__(self):
        self.requests: List[httpx.Request] = []
        self.routes: Dict[Tuple[str, str], List[Any]] = {}

    def add(self, method: str, path: str, *responses: Any) -> None:
        self.routes[(method, API_PREFIX + path)] = list(responses)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = (request.method, request.url.path)
        if key not in self.routes:
            return httpx.Response(404, json={"message": f"no route for {key}"})

        queue = self.routes[key]
        item = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(item, Exception):
            raise item
        return item

    def calls(self, method: str, path: str) -> List[httpx.Request]:
        return [
            r for r in self.requests
            if r.method == method and r.url.path == API_PREFIX + path
        ]


class FakeClock:
    """Monotonic clock that only moves when the retry wrapper sleeps."""

    def __init__(self):
        self.now = 0.0
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, delay: float) -> None:
        self.sleeps.append(delay)
        self.now += delay


def request_json(request: httpx.Request) -> Any:
    return json.loads(request.content)


@pytest.fixture
def config():
    """Client configuration with dummy credentials."""
    return CollectorClientConfig(access_id="suABCDEFGH123", access_key="secret-key")


@pytest.fixture
def fake_api():
    """Fake Sumo Logic API with the collector and source fixtures routed."""
    api = FakeSumoApi()
    api.add("GET", "/collectors", httpx.Response(200, json=COLLECTORS_FIXTURE))
    api.add("GET", f"/collectors/{COLLECTOR_ID}/sources", httpx.Response(200, json=SOURCES_FIXTURE))
    return api


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest_asyncio.fixture
async def client(config, fake_api, fake_clock):
    """Collector client wired to the fake API and fake clock."""
    collector_client = CollectorClient(
        COLLECTOR_NAME,
        config,
        transport=httpx.MockTransport(fake_api)
    )
    collector_client.retry = DeadlineRetry(
        timeout=config.request_timeout,
        backoff_step=config.backoff_step,
        clock=fake_clock,
        sleep=fake_clock.sleep
    )
    yield collector_client
    await collector_client.close()
