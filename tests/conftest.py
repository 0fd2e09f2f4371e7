import os

import pytest

# Keep retries and scheduling predictable in tests
os.environ.setdefault("RECONNECT_BACKOFF_JITTER_FACTOR", "0")

from ircengine.config import IRCConfig  # noqa: E402
from ircengine.irc import EventBus, EventType, IRCClient  # noqa: E402
from ircengine.irc.connection import IRCConnection  # noqa: E402


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeTransport:
    """In-memory stand-in for the socket transport.

    ``incoming`` holds chunks handed out one per ``recv``; ``sent`` collects
    every line written, without CRLF.
    """

    def __init__(self) -> None:
        self.opened: tuple[str, int] | None = None
        self.is_open = False
        self.tls_host: str | None = None
        self.cert_error: BaseException | None = None
        self.fail_open: OSError | None = None
        self.fail_send: OSError | None = None
        self.fail_recv: OSError | None = None
        self.incoming: list[bytes] = []
        self.sent: list[str] = []
        self.closed = False

    def open(self, host: str, port: int) -> None:
        if self.fail_open is not None:
            raise self.fail_open
        self.opened = (host, port)
        self.is_open = True

    def start_tls(self, server_hostname: str) -> BaseException | None:
        self.tls_host = server_hostname
        return self.cert_error

    def readable(self) -> bool:
        return bool(self.incoming) or self.fail_recv is not None

    def recv(self, size: int = 10240) -> bytes:
        if self.fail_recv is not None:
            raise self.fail_recv
        return self.incoming.pop(0)

    def sendall(self, data: bytes) -> None:
        if self.fail_send is not None:
            raise self.fail_send
        self.sent.extend(
            line for line in data.decode("utf-8").split("\r\n") if line
        )

    def close(self) -> None:
        self.is_open = False
        self.closed = True

    def feed(self, text: str) -> None:
        self.incoming.append(text.encode("utf-8"))


class TransportFactory:
    """Hands out a fresh FakeTransport per connection attempt."""

    def __init__(self) -> None:
        self.created: list[FakeTransport] = []
        self.configure = None

    def __call__(self) -> FakeTransport:
        transport = FakeTransport()
        if self.configure is not None:
            self.configure(transport)
        self.created.append(transport)
        return transport

    @property
    def last(self) -> FakeTransport:
        return self.created[-1]


class EventRecorder:
    def __init__(self, bus: EventBus) -> None:
        self.events = []
        for event_type in EventType:
            bus.subscribe(event_type, self.events.append)

    def types(self) -> list[EventType]:
        return [e.type for e in self.events]

    def of(self, event_type: EventType) -> list:
        return [e for e in self.events if e.type is event_type]

    def notifications(self, handle: str | None = None) -> list[str]:
        return [
            e.notification.render()
            for e in self.of(EventType.NOTIFICATION)
            if handle is None or e.notification.handle == handle
        ]

    def clear(self) -> None:
        self.events.clear()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def transports():
    return TransportFactory()


@pytest.fixture
def config():
    return IRCConfig(host="irc.example.org", port=6667, nick="tester", channels="#a #b")


@pytest.fixture
def bus():
    return EventBus()


@pytest.fixture
def recorder(bus):
    return EventRecorder(bus)


@pytest.fixture
def connection(bus, transports, clock):
    return IRCConnection(bus, transport_factory=transports, clock=clock)


@pytest.fixture
def client(config, bus, transports, clock):
    return IRCClient(config, events=bus, transport_factory=transports, clock=clock)


@pytest.fixture
def connected_client(client, transports, recorder):
    client.connect()
    transports.last.sent.clear()
    recorder.clear()
    return client
