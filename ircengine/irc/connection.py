"""Connection life-cycle, reconnection and the tick-driven read loop (packaged)."""

from __future__ import annotations

import logging
import secrets
import time
from collections.abc import Callable
from typing import TYPE_CHECKING, Protocol

from ..constants import (
    MAX_CONNECT_RETRIES,
    QUIT_MESSAGE,
    READ_CHUNK_SIZE,
    RECONNECT_BACKOFF_BASE_DELAY,
    RECONNECT_BACKOFF_JITTER_FACTOR,
    RECONNECT_BACKOFF_MAX_DELAY,
    RECONNECT_BACKOFF_MULTIPLIER,
    USER_MODE,
)
from ..errors.handling import log_error
from ..errors.internal import (
    AttemptsExceeded,
    CertificateWarning,
    ConfigError,
    ConnectionFailure,
    ParseError,
)
from ..logging_config import error_aggregator
from ..logs.logger import logger
from .events import Event, EventBus, EventType
from .heartbeat import IRCHeartbeat
from .join import IRCJoinManager
from .models import Command, ConnectionState
from .parser import CRLF, LineBuffer, decode, encode
from .transport import Transport

if TYPE_CHECKING:  # pragma: no cover
    from ..config.model import IRCConfig


class TransportLike(Protocol):
    @property
    def is_open(self) -> bool: ...

    def open(self, host: str, port: int) -> None: ...

    def start_tls(self, server_hostname: str) -> BaseException | None: ...

    def readable(self) -> bool: ...

    def recv(self, size: int = ...) -> bytes: ...

    def sendall(self, data: bytes) -> None: ...

    def close(self) -> None: ...


class IRCConnection:
    """Single server connection driven by an external periodic ``update()``.

    The engine never blocks waiting for inbound data. Failures are reported
    through events and recovered by reconnecting: immediately when an
    established connection breaks, or after a backoff delay (on a later
    tick) when establishing fails. Every attempt counts toward
    ``MAX_CONNECT_RETRIES``; only an explicit ``connect(config)`` resets it.
    """

    def __init__(
        self,
        events: EventBus,
        *,
        transport_factory: Callable[[], TransportLike] = Transport,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.events = events
        self.transport_factory = transport_factory
        self.clock = clock

        self.config: IRCConfig | None = None
        self.state = ConnectionState.DISCONNECTED
        self.transport: TransportLike | None = None
        self.buffer = LineBuffer()
        self.connection_attempts = 0
        self.connect_time: float | None = None
        self.last_server_ping = 0.0
        self.retry_at: float | None = None

        self._auto_reconnect = True
        self._reconnecting = False

        self.heartbeat = IRCHeartbeat(self)
        self.join_manager = IRCJoinManager(self)

    @property
    def connected(self) -> bool:
        return self.state is ConnectionState.CONNECTED

    @property
    def error_summary(self) -> dict:
        """Categorized error counts since the last ``connect(config)``."""
        return error_aggregator.get_error_summary()

    # ------------------------------------------------------------------
    # Life-cycle
    # ------------------------------------------------------------------
    def connect(self, config: IRCConfig | None = None) -> None:
        """Attempt a connection.

        With a config this is a fresh start: the snapshot is stored, the
        attempt counter is reset, automatic reconnection is re-enabled and a
        new error-count session is opened.
        Without one, the stored snapshot is reused and the attempt counts
        toward the ceiling.

        Raises:
            ConfigError: No configuration has ever been supplied.
        """
        if config is not None:
            self.config = config
            self.connection_attempts = 0
            self._auto_reconnect = True
            host, port = config.endpoint
            error_aggregator.start_session(f"{host}:{port}")
        elif self.config is None:
            raise ConfigError("No configuration to connect with")
        self.retry_at = None
        self._connect()

    def disconnect(self) -> None:
        """Close the connection and stay down until the next ``connect(config)``."""
        self._auto_reconnect = False
        self.retry_at = None
        self._do_disconnect()

    def _connect(self) -> None:
        config = self.config
        if config is None:
            raise ConfigError("No configuration to connect with")
        self._do_disconnect()
        host, port = config.endpoint

        self.events.emit(Event(EventType.CONNECT))
        self.join_manager.reset()

        self.connection_attempts += 1
        if self.connection_attempts > MAX_CONNECT_RETRIES:
            logger.log_event(
                "irc",
                "connect_attempts_exceeded",
                level=logging.WARNING,
                host=host,
                port=port,
                attempts=self.connection_attempts,
            )
            error = AttemptsExceeded(self.connection_attempts, MAX_CONNECT_RETRIES)
            self.events.emit(
                Event(EventType.CONNECTION_ATTEMPTS_EXCEEDED, error=error)
            )
            return

        logger.log_event(
            "irc",
            "connect_start",
            host=host,
            port=port,
            attempt=self.connection_attempts,
        )
        try:
            self.state = ConnectionState.CONNECTING
            self.transport = self.transport_factory()
            self.transport.open(host, port)
            if config.use_tls:
                self._start_tls(self.transport, host)
            self.state = ConnectionState.AUTHENTICATING
            self._authenticate(config)
        except (OSError, ValueError) as e:
            # ValueError: UnicodeError from an unencodable host name
            self._handle_failure(e)
            return

        now = self.clock()
        self.connect_time = now
        self.last_server_ping = now
        self.state = ConnectionState.CONNECTED
        logger.log_event("irc", "connected", host=host, port=port, nick=config.nick)
        self.events.emit(Event(EventType.CONNECTED))

    def _start_tls(self, transport: TransportLike, host: str) -> None:
        cert_error = transport.start_tls(host)
        if cert_error is not None:
            logger.log_event(
                "irc",
                "ssl_certificate_error",
                level=logging.WARNING,
                host=host,
                error=str(cert_error),
            )
            warning = CertificateWarning(str(cert_error), data={"host": host})
            warning.__cause__ = cert_error
            self.events.emit(Event(EventType.SSL_CERTIFICATE_ERROR, error=warning))
        logger.log_event("irc", "ssl_connected", host=host)
        self.events.emit(Event(EventType.SSL_CONNECTED))

    def _authenticate(self, config: IRCConfig) -> None:
        if config.server_password:
            self._write(Command.of("PASS", config.server_password))
        self._write(Command.of("NICK", config.nick))
        self._write(
            Command.of(
                "USER", config.username, USER_MODE, "*", config.nick, trailing=True
            )
        )

    def _do_disconnect(self) -> None:
        was_connected = self.state is ConnectionState.CONNECTED
        transport, self.transport = self.transport, None
        if transport is not None:
            if transport.is_open:
                quit_cmd = Command.of("QUIT", QUIT_MESSAGE, trailing=True)
                self.events.emit(Event(EventType.COMMAND_SENT, command=quit_cmd))
                try:
                    transport.sendall(encode(quit_cmd).encode("utf-8") + CRLF)
                except OSError as e:
                    logger.log_event(
                        "irc", "quit_failed", level=logging.DEBUG, error=str(e)
                    )
            transport.close()
        self.state = ConnectionState.DISCONNECTED
        self.buffer.clear()
        if was_connected:
            logger.log_event("irc", "disconnected")
            self.events.emit(Event(EventType.DISCONNECTED))

    # ------------------------------------------------------------------
    # Failure handling / reconnect
    # ------------------------------------------------------------------
    def _handle_failure(self, error: BaseException) -> None:
        host, port = self.config.endpoint if self.config else (None, None)
        failure = ConnectionFailure(
            str(error) or type(error).__name__,
            data={"host": host, "port": port, "state": self.state.name},
        )
        failure.__cause__ = error
        log_error("Connection failure", failure, level=logging.WARNING)
        self.events.emit(Event(EventType.CONNECTION_FAILED, error=failure))
        self._reconnect()

    def _reconnect(self) -> None:
        if not self._auto_reconnect:
            self._do_disconnect()
            return
        if self._reconnecting or self.state is not ConnectionState.CONNECTED:
            self._do_disconnect()
            self._schedule_retry()
            return
        logger.log_event("irc", "reconnect_start", level=logging.WARNING)
        self._reconnecting = True
        try:
            self._do_disconnect()
            self._connect()
        finally:
            self._reconnecting = False

    def _schedule_retry(self) -> None:
        delay = self._calculate_backoff_delay(self.connection_attempts)
        self.retry_at = self.clock() + delay
        logger.log_event("irc", "reconnect_scheduled", level=logging.INFO, delay=delay)

    @staticmethod
    def _calculate_backoff_delay(attempts: int) -> float:
        if attempts <= 0:
            return 0.0
        delay = RECONNECT_BACKOFF_BASE_DELAY * (
            RECONNECT_BACKOFF_MULTIPLIER ** (attempts - 1)
        )
        delay = min(delay, RECONNECT_BACKOFF_MAX_DELAY)
        jitter = (
            delay
            * RECONNECT_BACKOFF_JITTER_FACTOR
            * (secrets.SystemRandom().random() * 2 - 1)
        )
        delay += jitter
        return max(0.0, delay)

    # ------------------------------------------------------------------
    # Tick
    # ------------------------------------------------------------------
    def update(self) -> None:
        """Run one engine tick: retry, drain socket, keepalive, auto-join."""
        now = self.clock()
        if self.state is ConnectionState.DISCONNECTED:
            if self.retry_at is not None and now >= self.retry_at:
                self.retry_at = None
                self._connect()
            return
        if self.state is not ConnectionState.CONNECTED:
            return

        transport = self.transport
        if transport is None:
            return
        lines, read_error = self._drain(transport)
        for line in lines:
            self._process_line(line)
            if self.transport is not transport:
                # a handler replaced (or dropped) the connection
                return
        if read_error is not None:
            self._handle_failure(read_error)
            return

        self.heartbeat.tick(now)
        if self.transport is transport:
            self.join_manager.tick(now)

    def _drain(self, transport: TransportLike) -> tuple[list[str], OSError | None]:
        lines: list[str] = []
        try:
            while transport.readable():
                data = transport.recv(READ_CHUNK_SIZE)
                if not data:
                    raise ConnectionResetError("Connection closed by server")
                lines.extend(self.buffer.feed(data))
        except OSError as e:
            return lines, e
        return lines, None

    def _process_line(self, line: str) -> None:
        try:
            cmd = decode(line)
        except ParseError as e:
            log_error("Dropping malformed line", e, level=logging.WARNING)
            return
        logger.log_event("irc", "recv", level=logging.DEBUG, line=line)
        self.events.emit(Event(EventType.COMMAND_RECEIVED, command=cmd))

    # ------------------------------------------------------------------
    # Outbound
    # ------------------------------------------------------------------
    def send(self, cmd: Command) -> None:
        """Serialize and write a command; failures trigger reconnection."""
        if self.transport is None or not self.transport.is_open:
            logger.log_event(
                "irc",
                "send_without_stream",
                level=logging.WARNING,
                command=cmd.command,
            )
            return
        try:
            self._write(cmd)
        except OSError as e:
            self._handle_failure(e)

    def send_raw(self, line: str) -> None:
        """Write a preformatted protocol line (without CRLF)."""
        try:
            cmd: Command | None = decode(line)
        except ParseError:
            cmd = None
        if self.transport is None or not self.transport.is_open:
            logger.log_event(
                "irc",
                "send_without_stream",
                level=logging.WARNING,
                command=cmd.command if cmd else line.split(" ", 1)[0],
            )
            return
        self.events.emit(Event(EventType.COMMAND_SENT, command=cmd))
        try:
            self._send_line(line)
        except OSError as e:
            self._handle_failure(e)

    def _write(self, cmd: Command) -> None:
        self.events.emit(Event(EventType.COMMAND_SENT, command=cmd))
        self._send_line(encode(cmd))

    def _send_line(self, line: str) -> None:
        if self.transport is None:
            raise ConnectionError("transport is not open")
        shown = "PASS ****" if line.upper().startswith("PASS ") else line
        logger.log_event("irc", "sent", level=logging.DEBUG, line=shown)
        self.transport.sendall(line.encode("utf-8") + CRLF)
