"""IRC protocol engine: codec, connection, dispatch and channel registry."""

from .client import IRCClient  # noqa: F401
from .connection import IRCConnection  # noqa: F401
from .dispatcher import IRCDispatcher  # noqa: F401
from .events import Event, EventBus, EventType, Notification  # noqa: F401
from .models import (  # noqa: F401
    Command,
    ConnectionState,
    CTCPCommand,
    UserCommand,
    parse_user_input,
)
from .parser import LineBuffer, decode, encode  # noqa: F401
from .registry import Channel, ChannelRegistry, User  # noqa: F401

__all__ = [
    "Channel",
    "ChannelRegistry",
    "Command",
    "ConnectionState",
    "CTCPCommand",
    "Event",
    "EventBus",
    "EventType",
    "IRCClient",
    "IRCConnection",
    "IRCDispatcher",
    "LineBuffer",
    "Notification",
    "User",
    "UserCommand",
    "decode",
    "encode",
    "parse_user_input",
]
