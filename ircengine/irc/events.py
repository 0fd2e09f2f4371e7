"""Engine events and the synchronous observer list that delivers them."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from ..logs.logger import logger
from .models import Command


class EventType(Enum):
    CONNECT = "connect"
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"
    CONNECTION_FAILED = "connection_failed"
    CONNECTION_ATTEMPTS_EXCEEDED = "connection_attempts_exceeded"
    SSL_CONNECTED = "ssl_connected"
    SSL_CERTIFICATE_ERROR = "ssl_certificate_error"
    COMMAND_RECEIVED = "command_received"
    COMMAND_SENT = "command_sent"
    NOTIFICATION = "notification"


@dataclass(frozen=True)
class Notification:
    """One line of text for the display collaborator.

    ``sender`` is ``*`` for lines not attributed to anyone (join/part/topic
    notices, actions and the like).
    """

    handle: str
    sender: str
    text: str
    command: Command | None = None

    def render(self) -> str:
        if self.sender == "*":
            return f"* {self.text}"
        return f"{self.sender}: {self.text}"


@dataclass(frozen=True)
class Event:
    type: EventType
    command: Command | None = None
    error: BaseException | None = None
    notification: Notification | None = None


EventCallback = Callable[[Event], None]


class EventBus:
    """Delivers events synchronously, in subscription order.

    A failing subscriber is logged and skipped; the remaining subscribers
    still see the event and the emitter never sees the exception.
    """

    def __init__(self) -> None:
        self._subscribers: dict[EventType, list[EventCallback]] = {}

    def subscribe(self, event_type: EventType, callback: EventCallback) -> None:
        self._subscribers.setdefault(event_type, []).append(callback)

    def unsubscribe(self, event_type: EventType, callback: EventCallback) -> None:
        callbacks = self._subscribers.get(event_type, [])
        if callback in callbacks:
            callbacks.remove(callback)

    def emit(self, event: Event) -> None:
        # copy: a subscriber may (un)subscribe while we iterate
        for callback in list(self._subscribers.get(event.type, ())):
            try:
                callback(event)
            except Exception as e:  # noqa: BLE001
                logger.log_event(
                    "dispatch",
                    "subscriber_error",
                    level=logging.ERROR,
                    exc_info=True,
                    event=event.type.value,
                    error=str(e),
                    error_type=type(e).__name__,
                )
