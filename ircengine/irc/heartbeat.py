"""Client-originated keepalive PINGs (packaged)."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ..constants import SERVER_PING_INTERVAL
from ..logs.logger import logger
from .models import Command

if TYPE_CHECKING:  # pragma: no cover
    from .connection import IRCConnection


class IRCHeartbeat:
    def __init__(self, connection: IRCConnection):
        self.connection = connection

    def tick(self, now: float) -> bool:
        """Send a PING if the interval has elapsed. Returns True if one was sent."""
        conn = self.connection
        if now - conn.last_server_ping <= SERVER_PING_INTERVAL:
            return False
        conn.last_server_ping = now
        payload = str(int(now * 1000))
        logger.log_event(
            "irc", "keepalive_ping", level=logging.DEBUG, payload=payload
        )
        conn.send(Command.of("PING", payload, trailing=True))
        return True
