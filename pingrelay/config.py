"""
Environment-driven settings for the relay
"""
import os

PORT = int(os.environ.get("PORT", 10000))
HOST = os.environ.get("SERVER_HOST", "0.0.0.0")

WS_PATH = os.environ.get("RELAY_WS_PATH", "/ws")

# Seconds between liveness sweeps; a peer that misses one sweep is dropped on the next
HEARTBEAT_INTERVAL = float(os.environ.get("HEARTBEAT_INTERVAL", 30))

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOGGER_NAME = "ping_relay"
