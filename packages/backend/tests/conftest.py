"""Test fixtures — in-memory websockets, fresh servers, HTTP clients.

Learn: Three levels of testing:

1. Unit — Connection/Registry/Broadcaster against FakeWebSocket
   (tests/fakes.py), which records sent frames and can be told to stall
   or fail.
2. HTTP — httpx.AsyncClient over ASGITransport for the /api/v1 routes.
3. End-to-end — starlette's TestClient, which speaks real websocket
   messages to the ASGI app. Always used as a context manager so every
   request and socket shares one event loop.

Every test gets its own OverlayServer; nothing is shared between tests.
"""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from starlette.testclient import TestClient

from fakes import FakeWebSocket
from overlay_relay.config import Settings
from overlay_relay.main import create_app
from overlay_relay.protocol.categories import Category
from overlay_relay.realtime.connection import Connection
from overlay_relay.server import OverlayServer


@pytest.fixture()
def settings():
    """Short timeouts so failure paths finish quickly."""
    return Settings(
        send_timeout_seconds=0.2,
        close_timeout_seconds=0.2,
        shutdown_timeout_seconds=1.0,
    )


@pytest.fixture()
def server(settings):
    return OverlayServer(settings)


@pytest.fixture()
def app(server):
    return create_app(server=server)


@pytest.fixture()
def make_connection():
    """Factory: an OPEN Connection over a FakeWebSocket, optionally registered."""

    async def _make(category=Category.CHAT, registry=None, **fake_kwargs):
        connection = Connection(FakeWebSocket(**fake_kwargs), category, close_timeout=0.2)
        await connection.open()
        if registry is not None:
            registry.add(connection)
        return connection

    return _make


@pytest_asyncio.fixture()
async def client(app):
    """HTTP client bound to the app (no lifespan, no sockets)."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture()
def ws_client(app):
    """TestClient for websocket tests; runs the app lifespan."""
    with TestClient(app) as tc:
        yield tc
