import asyncio

import pytest

from main import create_app
from pingrelay.relay import Relay, relay_key
from pingrelay.state import ConnectionRegistry, RoomDirectory


class FakeSocket:
    """Stands in for a WebSocketResponse in unit tests."""

    def __init__(self, closed: bool = False, broken: bool = False):
        self.closed = closed
        self.broken = broken
        self.sent = []
        self.pings = 0
        self.close_code = None

    async def send_str(self, text: str):
        if self.broken:
            raise ConnectionResetError("Cannot write to closing transport")
        self.sent.append(text)

    async def ping(self, message: bytes = b""):
        if self.broken:
            raise ConnectionResetError("Cannot write to closing transport")
        self.pings += 1

    async def close(self, code: int = 1000):
        self.closed = True
        self.close_code = code


class FakeTransport:
    def __init__(self):
        self.aborted = False

    def abort(self):
        self.aborted = True


@pytest.fixture
def directory() -> RoomDirectory:
    return RoomDirectory()


@pytest.fixture
def registry(directory: RoomDirectory) -> ConnectionRegistry:
    return ConnectionRegistry(directory)


@pytest.fixture
def connect(registry: ConnectionRegistry):
    """Register a connection backed by a FakeSocket."""

    def _connect(with_transport: bool = True, **socket_kwargs):
        transport = FakeTransport() if with_transport else None
        return registry.register(FakeSocket(**socket_kwargs), remote="127.0.0.1", transport=transport)

    return _connect


@pytest.fixture
def fake_relay() -> Relay:
    return Relay(heartbeat_interval=30)


@pytest.fixture
def relay_connect(fake_relay: Relay):
    """Accept a FakeSocket connection through a standalone Relay."""

    def _connect():
        return fake_relay.connect(FakeSocket(), remote="127.0.0.1", transport=FakeTransport())

    return _connect


@pytest.fixture
async def client(aiohttp_client):
    # Long interval: tests drive heartbeat sweeps by hand
    app = create_app(heartbeat_interval=3600)
    return await aiohttp_client(app)


@pytest.fixture
def relay(client):
    return client.server.app[relay_key]


@pytest.fixture
def wait_until():
    async def _wait_until(predicate, timeout: float = 2.0):
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while not predicate():
            if loop.time() > deadline:
                raise AssertionError("condition not met in time")
            await asyncio.sleep(0.01)

    return _wait_until
