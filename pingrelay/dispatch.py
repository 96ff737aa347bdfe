"""
Applies validated messages to room state and fans PINGs out to the room
"""
import logging

from .config import LOGGER_NAME
from .messages import JoinMessage, Message, PingMessage
from .state import Connection, RoomDirectory

logger = logging.getLogger(LOGGER_NAME)


class Dispatcher:
    def __init__(self, directory: RoomDirectory):
        self.directory = directory

    async def dispatch(self, sender: Connection, message: Message) -> int:
        """Handle one message from sender. Returns the number of deliveries."""
        if isinstance(message, JoinMessage):
            self.directory.join(sender, message.room_id)
            return 0

        if isinstance(message, PingMessage):
            return await self.broadcast(sender, message)

        logger.debug("⚠️ ignore type id=%s type=%s", sender.id, message.type)
        return 0

    async def broadcast(self, sender: Connection, message: PingMessage) -> int:
        # Join and snapshot happen before the first await, so the recipient
        # set is the membership at the moment this message was processed.
        self.directory.join(sender, message.room_id)
        recipients = self.directory.members_of(message.room_id)
        out = message.to_frame()

        if isinstance(message.payload, dict):
            keys = ",".join(str(k) for k in message.payload)
        else:
            keys = f"[{len(message.payload)}]"
        logger.info(
            "📨 recv PING id=%s room=%s size=%d payloadKeys=%s",
            sender.id, message.room_id, len(recipients), keys
        )

        sent = 0
        for conn in recipients:
            if not conn.is_open:
                continue
            try:
                await conn.send(out)
                sent += 1
            except ConnectionResetError as e:
                # Closed mid-broadcast; its own handler does the cleanup
                logger.debug("Failed to send to %s: %s", conn.id, e)

        logger.info("📤 broadcast room=%s sent=%d/%d", message.room_id, sent, len(recipients))
        return sent
