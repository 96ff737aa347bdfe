#!/usr/bin/env python3
"""
Ping Relay - Entry Point
Room-scoped WebSocket broadcast + heartbeat + health check
"""
import logging

from aiohttp import web

from pingrelay.api import health, ws_relay
from pingrelay.config import (
    HEARTBEAT_INTERVAL, HOST, LOG_FORMAT, LOG_LEVEL, LOGGER_NAME, PORT, WS_PATH
)
from pingrelay.relay import Relay, relay_key

logger = logging.getLogger(LOGGER_NAME)


async def start_background_tasks(app: web.Application):
    app[relay_key].heartbeat.start()


async def cleanup_background_tasks(app: web.Application):
    await app[relay_key].heartbeat.stop()


def create_app(ws_path: str = WS_PATH, heartbeat_interval: float = HEARTBEAT_INTERVAL) -> web.Application:
    """Create and configure the aiohttp application"""
    app = web.Application()
    app[relay_key] = Relay(heartbeat_interval=heartbeat_interval)

    # Health checks
    app.router.add_get("/", health)
    app.router.add_get("/health", health)

    # WebSocket relay
    app.router.add_get(ws_path, ws_relay)

    app.on_startup.append(start_background_tasks)
    app.on_cleanup.append(cleanup_background_tasks)

    logger.info("📡 Ping relay ready • ws=%s • heartbeat=%ss", ws_path, heartbeat_interval)
    return app


def main():
    logging.basicConfig(level=LOG_LEVEL, format=LOG_FORMAT)
    app = create_app()

    logger.info("🚀 Starting server on %s:%s", HOST, PORT)
    web.run_app(app, host=HOST, port=PORT)


if __name__ == "__main__":
    main()
