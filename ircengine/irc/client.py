"""IRC client facade: wires connection, dispatcher and registry together."""

from __future__ import annotations

import time
from collections.abc import Callable

from ..config.model import IRCConfig
from ..constants import DEBUG_CHANNEL_HANDLE, NOTICE_CHANNEL_HANDLE, SYSTEM_SENDER
from ..errors.internal import ConfigError
from .connection import IRCConnection, TransportLike
from .dispatcher import IRCDispatcher
from .events import Event, EventBus, EventType, Notification
from .models import Command, ConnectionState, is_channel, parse_user_input
from .parser import encode
from .registry import ChannelRegistry
from .transport import Transport

# Human readable lines posted to the notice pseudo-channel per lifecycle event.
LIFECYCLE_NOTICES: dict[EventType, str] = {
    EventType.CONNECTED: "Server connection established.",
    EventType.SSL_CONNECTED: "SSL Server connection established.",
    EventType.DISCONNECTED: "Disconnected from server.",
    EventType.CONNECTION_FAILED: "Connection failed to server.",
    EventType.CONNECTION_ATTEMPTS_EXCEEDED: (
        "Connection attempts exceeded. Change config before retrying."
    ),
    EventType.SSL_CERTIFICATE_ERROR: (
        "SSL Certificate error - use this server at your own risk."
    ),
}


class IRCClient:
    """Everything a front end needs: feed it ticks and typed lines, subscribe
    to ``EventType.NOTIFICATION`` for text to display.
    """

    def __init__(
        self,
        config: IRCConfig,
        *,
        events: EventBus | None = None,
        transport_factory: Callable[[], TransportLike] = Transport,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.config = config
        self.nick = config.nick
        self.events = events or EventBus()
        self.registry = ChannelRegistry()
        self.connection = IRCConnection(
            self.events, transport_factory=transport_factory, clock=clock
        )
        self.dispatcher = IRCDispatcher(self)

        self.events.subscribe(EventType.CONNECT, self._on_connect)
        for event_type in LIFECYCLE_NOTICES:
            self.events.subscribe(event_type, self._on_lifecycle)
        self.events.subscribe(EventType.COMMAND_RECEIVED, self._on_command_received)
        self.events.subscribe(EventType.COMMAND_SENT, self._on_command_sent)

    @property
    def state(self) -> ConnectionState:
        return self.connection.state

    # ------------------------------------------------------------------
    # Inputs
    # ------------------------------------------------------------------
    def connect(self) -> None:
        """Start a fresh connection with the current configuration.

        Raises:
            ConfigError: Host, port or nick is missing.
        """
        if not self.config.is_complete:
            raise ConfigError(
                "Configuration incomplete: host, port and nick are required"
            )
        self.connection.connect(self.config)

    def disconnect(self) -> None:
        self.connection.disconnect()

    def tick(self) -> None:
        self.connection.update()

    def update_config(self, config: IRCConfig) -> None:
        """Swap in a new configuration and reconnect with it."""
        self.config = config
        self.nick = config.nick
        self.connect()

    def submit_input(self, text: str) -> None:
        """Handle one line typed by the user (``/VERB args`` or plain text)."""
        ucmd = parse_user_input(text, self.registry.current_handle)
        if ucmd is not None:
            self.dispatcher.handle_user_command(ucmd)

    def select_channel(self, handle: str) -> None:
        self.registry.select(handle)

    def close_channel(self, handle: str) -> None:
        """Forget a conversation, leaving it on the server if it is a channel."""
        if is_channel(handle) and handle in self.registry:
            self.send(Command.of("PART", handle))
        self.registry.close_channel(handle)

    # ------------------------------------------------------------------
    # Used by the dispatcher
    # ------------------------------------------------------------------
    def send(self, cmd: Command) -> None:
        self.connection.send(cmd)

    def send_raw(self, line: str) -> None:
        self.connection.send_raw(line)

    def notify(
        self, handle: str, sender: str, text: str, command: Command | None = None
    ) -> None:
        """Post a line to ``handle``, creating the conversation if needed."""
        self.registry.get_channel(handle)
        notification = Notification(handle, sender, text, command)
        self.events.emit(Event(EventType.NOTIFICATION, notification=notification))

    # ------------------------------------------------------------------
    # Event handlers
    # ------------------------------------------------------------------
    def _on_connect(self, event: Event) -> None:
        # registration always uses the configured nick
        self.nick = self.config.nick
        host, port = self.config.endpoint
        self.notify(
            NOTICE_CHANNEL_HANDLE,
            SYSTEM_SENDER,
            f"Connecting to server {host}:{port}...",
        )

    def _on_lifecycle(self, event: Event) -> None:
        self.notify(NOTICE_CHANNEL_HANDLE, SYSTEM_SENDER, LIFECYCLE_NOTICES[event.type])

    def _on_command_received(self, event: Event) -> None:
        if event.command is not None:
            self.dispatcher.handle_server_command(event.command)

    def _on_command_sent(self, event: Event) -> None:
        if self.config.debug and event.command is not None:
            self.notify(
                DEBUG_CHANNEL_HANDLE, "CLIENT", encode(event.command), event.command
            )
