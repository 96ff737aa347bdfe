"""
Periodic liveness sweep over all connections

Each sweep drops every connection that has not answered the previous ping,
then clears the flag on the rest and pings them again. A pong from the peer
sets the flag back (see ConnectionRegistry.mark_alive).
"""
import asyncio
import logging
from typing import List, Optional

from .config import LOGGER_NAME
from .state import Connection, ConnectionRegistry

logger = logging.getLogger(LOGGER_NAME)


class HeartbeatMonitor:
    def __init__(self, registry: ConnectionRegistry, interval: float):
        self.registry = registry
        self.interval = interval
        self._task: Optional[asyncio.Task] = None

    def _terminate(self, conn: Connection):
        conn.terminate()
        self.registry.deregister(conn.id)

    async def sweep(self) -> List[Connection]:
        terminated = []
        for conn in self.registry:
            if conn.id not in self.registry:
                # closed while an earlier ping was being written
                continue
            if not conn.is_alive:
                logger.info("💀 heartbeat timeout id=%s room=%s", conn.id, conn.room_id)
                self._terminate(conn)
                terminated.append(conn)
                continue

            conn.is_alive = False
            try:
                await conn.probe()
            except ConnectionResetError as e:
                logger.info("💀 heartbeat ping failed id=%s: %s", conn.id, e)
                self._terminate(conn)
                terminated.append(conn)

        if terminated:
            logger.info("🧹 heartbeat dropped %d connection(s), %d remaining",
                        len(terminated), len(self.registry))
        return terminated

    async def run(self):
        while True:
            await asyncio.sleep(self.interval)
            try:
                await self.sweep()
            except Exception:
                logger.exception("Heartbeat sweep failed")

    def start(self):
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self.run())
            logger.info("💓 heartbeat started interval=%ss", self.interval)

    async def stop(self):
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("💓 heartbeat stopped")
