"""
Per-server relay context: room state, dispatcher and heartbeat together
"""
import logging

from aiohttp import web

from .config import HEARTBEAT_INTERVAL, LOGGER_NAME
from .dispatch import Dispatcher
from .heartbeat import HeartbeatMonitor
from .state import Connection, ConnectionRegistry, RoomDirectory

logger = logging.getLogger(LOGGER_NAME)


class Relay:
    def __init__(self, heartbeat_interval: float = HEARTBEAT_INTERVAL):
        self.directory = RoomDirectory()
        self.registry = ConnectionRegistry(self.directory)
        self.dispatcher = Dispatcher(self.directory)
        self.heartbeat = HeartbeatMonitor(self.registry, heartbeat_interval)

    def connect(self, ws, remote: str = "unknown", transport=None) -> Connection:
        conn = self.registry.register(ws, remote=remote, transport=transport)
        logger.info("✅ connected id=%s ip=%s (total: %d)", conn.id, remote, len(self.registry))
        return conn

    def disconnect(self, conn: Connection):
        """Release registration and room membership after close or transport error"""
        if self.registry.deregister(conn.id) is not None:
            logger.info("🧹 cleaned up id=%s (remaining: %d)", conn.id, len(self.registry))
        # A frame handled after heartbeat termination may have re-joined a room
        self.directory.leave(conn)


relay_key = web.AppKey("relay", Relay)
