"""
In-memory connection and room state
Owned by a single Relay for the lifetime of the server; never persisted.
"""
import asyncio
import logging
from typing import Dict, FrozenSet, Iterator, List, Optional, Set

from aiohttp import WSCloseCode

from .config import LOGGER_NAME
from .utils import generate_connection_id

logger = logging.getLogger(LOGGER_NAME)


class Connection:
    """One accepted WebSocket and the relay's bookkeeping for it.

    ``room_id`` is a back-reference cached for switch detection; the
    RoomDirectory owns the actual membership.
    """

    def __init__(self, conn_id: str, ws, remote: str = "unknown", transport=None):
        self.id = conn_id
        self.ws = ws
        self.remote = remote
        self.transport = transport
        self.room_id: Optional[str] = None
        self.is_alive = True
        self._close_task: Optional[asyncio.Task] = None

    def __repr__(self):
        return f"<Connection {self.id} room={self.room_id} alive={self.is_alive}>"

    @property
    def is_open(self) -> bool:
        return not self.ws.closed

    async def send(self, text: str):
        await self.ws.send_str(text)

    async def probe(self):
        await self.ws.ping()

    def terminate(self):
        """Drop the underlying transport without a close handshake.

        Without a transport handle, fall back to a closing handshake in the
        background so the socket is not left open after deregistration.
        """
        if self.transport is not None:
            self.transport.abort()
            return
        self._close_task = asyncio.get_running_loop().create_task(
            self.ws.close(code=WSCloseCode.GOING_AWAY)
        )


class RoomDirectory:
    """room_id -> set of Connections; a room exists only while non-empty"""

    def __init__(self):
        self._rooms: Dict[str, Set[Connection]] = {}

    def __contains__(self, room_id) -> bool:
        return room_id in self._rooms

    def __len__(self) -> int:
        return len(self._rooms)

    def room_ids(self) -> List[str]:
        return list(self._rooms)

    def room_size(self, room_id: str) -> int:
        return len(self._rooms.get(room_id, ()))

    def members_of(self, room_id: str) -> FrozenSet[Connection]:
        return frozenset(self._rooms.get(room_id, ()))

    def join(self, conn: Connection, room_id: str) -> bool:
        """Put conn in room_id, leaving its previous room first.

        Returns False when conn was already a member of room_id.
        """
        if conn.room_id == room_id:
            return False

        if conn.room_id is not None:
            logger.info("🔁 switch room id=%s %s -> %s", conn.id, conn.room_id, room_id)
            self.leave(conn)

        self._rooms.setdefault(room_id, set()).add(conn)
        conn.room_id = room_id
        logger.info("➡️ join room=%s id=%s size=%d", room_id, conn.id, self.room_size(room_id))
        return True

    def leave(self, conn: Connection) -> Optional[str]:
        """Remove conn from its room, dropping the room once empty"""
        room_id = conn.room_id
        if room_id is None:
            return None

        members = self._rooms.get(room_id)
        if members is not None:
            members.discard(conn)
            if not members:
                del self._rooms[room_id]
        conn.room_id = None

        logger.info("⬅️ leave room=%s id=%s size=%d", room_id, conn.id, self.room_size(room_id))
        return room_id


class ConnectionRegistry:
    """All accepted connections, keyed by id"""

    def __init__(self, directory: RoomDirectory):
        self.directory = directory
        self._connections: Dict[str, Connection] = {}

    def __len__(self) -> int:
        return len(self._connections)

    def __iter__(self) -> Iterator[Connection]:
        # Snapshot: callers may deregister while iterating
        return iter(list(self._connections.values()))

    def __contains__(self, conn_id) -> bool:
        return conn_id in self._connections

    def register(self, ws, remote: str = "unknown", transport=None) -> Connection:
        conn = Connection(generate_connection_id(), ws, remote=remote, transport=transport)
        self._connections[conn.id] = conn
        return conn

    def get(self, conn_id: str) -> Optional[Connection]:
        return self._connections.get(conn_id)

    def mark_alive(self, conn_id: str):
        conn = self._connections.get(conn_id)
        if conn is not None:
            conn.is_alive = True

    def is_alive(self, conn_id: str) -> bool:
        conn = self._connections.get(conn_id)
        return conn is not None and conn.is_alive

    def deregister(self, conn_id: str) -> Optional[Connection]:
        """Forget a connection and release its room membership. Idempotent."""
        conn = self._connections.pop(conn_id, None)
        if conn is not None:
            self.directory.leave(conn)
        return conn
