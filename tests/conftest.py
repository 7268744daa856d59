import asyncio
from dataclasses import dataclass, field

import aiohttp
import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer


@dataclass
class RecordedRequest:
    method: str
    path: str
    headers: dict


@dataclass
class MockRelay:
    """Stand-in for the Neocontrol cloud relay."""

    status: int = 200
    body: str = "OK"
    delay: float = 0.0
    requests: list = field(default_factory=list)
    base_url: str = ""

    @property
    def request_count(self) -> int:
        return len(self.requests)

    @property
    def last_request(self) -> RecordedRequest | None:
        return self.requests[-1] if self.requests else None

    async def handle(self, request: web.Request) -> web.Response:
        self.requests.append(
            RecordedRequest(request.method, request.path, {k.lower(): v for k, v in request.headers.items()})
        )
        if self.delay:
            await asyncio.sleep(self.delay)
        return web.Response(status=self.status, text=self.body)

    def app(self) -> web.Application:
        app = web.Application()
        app.router.add_get("/mqtt/command/{hub_id}/{scene_id}", self.handle)
        return app


@pytest_asyncio.fixture
async def relay():
    relay = MockRelay()
    server = TestServer(relay.app())
    await server.start_server()
    relay.base_url = str(server.make_url("/")).rstrip("/")
    yield relay
    await server.close()


@pytest_asyncio.fixture
async def session():
    async with aiohttp.ClientSession() as session:
        yield session


@pytest.fixture
def sleeps():
    """Records backoff delays instead of waiting them out."""
    return []


@pytest.fixture
def fake_sleep(sleeps):
    async def _sleep(delay: float) -> None:
        sleeps.append(delay)

    return _sleep
