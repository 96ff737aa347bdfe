"""
Utility functions for connection identity
"""
import uuid


def generate_connection_id(length: int = 8) -> str:
    """Short hex id for log lines; collisions are not checked"""
    return uuid.uuid4().hex[:length]


def client_address(request) -> str:
    """Best-effort client address: first X-Forwarded-For hop, then the peer"""
    forwarded = request.headers.get("X-Forwarded-For", "")
    first_hop = forwarded.split(",")[0].strip()
    if first_hop:
        return first_hop
    return request.remote or "unknown"
