"""Delayed auto-join scheduling (packaged)."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ..constants import AUTO_JOIN_DELAY, AUTO_JOIN_TIME_BETWEEN_ATTEMPTS
from ..logs.logger import logger
from .models import Command, is_channel

if TYPE_CHECKING:  # pragma: no cover
    from .connection import IRCConnection


class IRCJoinManager:
    """Joins the configured channels once the server has settled.

    Auto-join is armed on every connection attempt and fires on the first
    tick that is both ``AUTO_JOIN_DELAY`` past the connect time and
    ``AUTO_JOIN_TIME_BETWEEN_ATTEMPTS`` past the previous auto-join.
    """

    def __init__(self, connection: IRCConnection):
        self.connection = connection
        self.pending = False
        self.last_auto_join: float | None = None

    def reset(self) -> None:
        self.pending = True

    def is_due(self, now: float) -> bool:
        conn = self.connection
        if not self.pending or conn.connect_time is None:
            return False
        if now - conn.connect_time < AUTO_JOIN_DELAY:
            return False
        return (
            self.last_auto_join is None
            or now - self.last_auto_join >= AUTO_JOIN_TIME_BETWEEN_ATTEMPTS
        )

    def tick(self, now: float) -> bool:
        if not self.is_due(now):
            return False
        conn = self.connection
        self.pending = False
        self.last_auto_join = now
        channels = conn.config.autojoin_channels if conn.config else []
        targets = [c for c in channels if is_channel(c)]
        for skipped in (c for c in channels if not is_channel(c)):
            logger.log_event(
                "irc", "autojoin_skip", level=logging.DEBUG, channel=skipped
            )
        if targets:
            logger.log_event("irc", "autojoin", channels=" ".join(targets))
        transport = conn.transport
        for channel in targets:
            conn.send(Command.of("JOIN", channel))
            if conn.transport is not transport:
                # a failed write replaced the connection
                break
        return True
