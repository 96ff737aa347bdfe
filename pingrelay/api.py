"""
HTTP and WebSocket handlers for the ping relay
"""
import logging

from aiohttp import web, WSMsgType

from .config import LOGGER_NAME
from .messages import MalformedFrame, SchemaViolation, parse_frame
from .relay import Relay, relay_key
from .state import Connection
from .utils import client_address

logger = logging.getLogger(LOGGER_NAME)

# ============================================================
# HEALTH
# ============================================================

async def health(request: web.Request) -> web.Response:
    """Liveness check for the hosting platform"""
    return web.Response(text="ok", content_type="text/plain", charset="utf-8")

# ============================================================
# WEBSOCKET RELAY
# ============================================================

async def handle_frame(relay: Relay, conn: Connection, raw) -> int:
    """Validate one inbound frame and dispatch it. Invalid frames are dropped."""
    if conn.id not in relay.registry:
        # terminated by the heartbeat; frames still queued in the reader
        logger.debug("Dropping frame from terminated connection %s", conn.id)
        return 0

    try:
        message = parse_frame(raw)
    except MalformedFrame as e:
        preview = raw[:200] if isinstance(raw, str) else repr(raw[:200])
        logger.info("❌ bad json id=%s err=%s raw=%s", conn.id, e, preview)
        return 0
    except SchemaViolation as e:
        logger.info("⚠️ ignore id=%s: %s", conn.id, e)
        return 0

    return await relay.dispatcher.dispatch(conn, message)


async def ws_relay(request: web.Request) -> web.WebSocketResponse:
    """WebSocket endpoint: JOIN / PING frames in, PING broadcasts out"""
    relay = request.app[relay_key]
    transport = request.transport

    # Pongs must reach us for the heartbeat, so ping/pong is handled by hand
    ws = web.WebSocketResponse(autoping=False)
    await ws.prepare(request)

    conn = relay.connect(ws, remote=client_address(request), transport=transport)

    try:
        async for msg in ws:
            if msg.type in (WSMsgType.TEXT, WSMsgType.BINARY):
                await handle_frame(relay, conn, msg.data)
            elif msg.type == WSMsgType.PONG:
                relay.registry.mark_alive(conn.id)
            elif msg.type == WSMsgType.PING:
                await ws.pong(msg.data)
            elif msg.type == WSMsgType.ERROR:
                logger.info("💥 ws error id=%s err=%s", conn.id, ws.exception())
    except ConnectionResetError as e:
        logger.debug("Connection reset id=%s: %s", conn.id, e)
    except Exception:
        logger.exception("Unexpected error on connection %s", conn.id)
    finally:
        logger.info("🛑 closed id=%s code=%s", conn.id, ws.close_code)
        relay.disconnect(conn)

    return ws
