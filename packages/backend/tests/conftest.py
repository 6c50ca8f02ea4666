"""Test fixtures — a fresh app (and registry) per test.

Learn: create_app() builds an app that owns its own ConnectionRegistry,
so there is no global state to reset between tests:

1. `registry` — the registry the app under test uses, for direct assertions
2. `client` — httpx AsyncClient over ASGITransport for plain HTTP routes
3. `ws_client` — Starlette TestClient, needed for WebSocket sessions
   (ASGITransport doesn't speak WebSocket). Used as a context manager so
   HTTP calls and WebSocket sessions share one event loop.
4. `fake_socket` — an in-memory stand-in for a WebSocket's send side
"""

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from httpx import ASGITransport, AsyncClient

from hookrelay.main import create_app
from hookrelay.realtime import ConnectionRegistry, Subscriber


class FakeSocket:
    """Records frames; optionally fails every send."""

    def __init__(self, fail: bool = False):
        self.sent: list[str] = []
        self.fail = fail
        self.attempts = 0

    async def send_text(self, data: str) -> None:
        self.attempts += 1
        if self.fail:
            raise ConnectionResetError("peer went away")
        self.sent.append(data)


@pytest.fixture()
def fake_socket():
    """Factory: fake_socket(fail=False) -> FakeSocket."""
    return FakeSocket


@pytest.fixture()
def open_subscriber():
    """Factory for an OPEN subscriber backed by a FakeSocket."""

    def _make(identifier: str = "abc", fail: bool = False) -> Subscriber:
        sub = Subscriber(identifier, FakeSocket(fail=fail))
        sub.mark_open()
        return sub

    return _make


@pytest.fixture()
def registry():
    return ConnectionRegistry()


@pytest.fixture()
def app(registry):
    return create_app(registry=registry)


@pytest_asyncio.fixture()
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture()
def ws_client(app):
    with TestClient(app) as tc:
        yield tc
