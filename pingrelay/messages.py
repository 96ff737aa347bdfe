"""
Inbound frame parsing and classification

Expected shapes:
    {"type": "JOIN", "roomId": "lobby"}
    {"type": "PING", "roomId": "lobby", "payload": {...}}
Anything else with a valid roomId is an UnknownMessage and is ignored.
"""
import json
import math
from dataclasses import dataclass
from typing import Any, Optional, Union


class FrameError(ValueError):
    """An inbound frame that must be dropped"""


class MalformedFrame(FrameError):
    """Frame is not a JSON object"""


class SchemaViolation(FrameError):
    """Frame is JSON but misses a required field"""


@dataclass(frozen=True)
class JoinMessage:
    room_id: str


@dataclass(frozen=True)
class PingMessage:
    room_id: str
    payload: Any

    def to_frame(self) -> str:
        return json.dumps(
            {"type": "PING", "roomId": self.room_id, "payload": self.payload},
            allow_nan=False,
        )


@dataclass(frozen=True)
class UnknownMessage:
    room_id: str
    type: Optional[Any] = None


Message = Union[JoinMessage, PingMessage, UnknownMessage]


def _reject_constant(token: str):
    # NaN and Infinity are not JSON
    raise ValueError(f"non-standard constant {token}")


def _finite_float(text: str) -> float:
    value = float(text)
    if math.isinf(value):
        raise ValueError(f"number out of range {text}")
    return value


def parse_frame(raw: Union[str, bytes]) -> Message:
    """Validate a raw frame. Raises FrameError subclasses on rejection."""
    if isinstance(raw, (bytes, bytearray)):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise MalformedFrame(f"frame is not utf-8: {e}") from e

    try:
        data = json.loads(raw, parse_constant=_reject_constant, parse_float=_finite_float)
    except json.JSONDecodeError as e:
        raise MalformedFrame(f"bad json: {e.msg}") from e
    except ValueError as e:
        raise MalformedFrame(f"bad json: {e}") from e

    if not isinstance(data, dict):
        raise MalformedFrame(f"expected an object, got {type(data).__name__}")

    room_id = data.get("roomId")
    if not isinstance(room_id, str) or not room_id:
        raise SchemaViolation("missing roomId")

    msg_type = data.get("type")
    if msg_type == "JOIN":
        return JoinMessage(room_id)

    if msg_type == "PING":
        payload = data.get("payload")
        # Arrays count as structured; null, strings and numbers do not
        if not isinstance(payload, (dict, list)):
            raise SchemaViolation("missing payload")
        return PingMessage(room_id, payload)

    return UnknownMessage(room_id, msg_type)
