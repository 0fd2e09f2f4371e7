"""Shared IRC data models (packaged)."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto


class ConnectionState(Enum):
    DISCONNECTED = auto()
    CONNECTING = auto()
    AUTHENTICATING = auto()
    CONNECTED = auto()


@dataclass(frozen=True)
class Command:
    """A single protocol message, either sent or received.

    ``trailing`` is a rendering hint only: it asks the encoder to put the last
    parameter in ``:trailing`` form even when that isn't required. It is not
    part of the value, so a decoded command compares equal to the one that
    was encoded.
    """

    prefix: str | None
    command: str
    parameters: tuple[str, ...] = ()
    trailing: bool = field(default=False, compare=False, repr=False)

    @classmethod
    def of(
        cls,
        command: str,
        *parameters: str,
        prefix: str | None = None,
        trailing: bool = False,
    ) -> Command:
        return cls(prefix, command, tuple(parameters), trailing)

    @property
    def short_prefix(self) -> str | None:
        """Nick portion of the prefix (everything before ``!``)."""
        if self.prefix is None:
            return None
        return self.prefix.split("!", 1)[0]

    @property
    def last_parameter(self) -> str | None:
        return self.parameters[-1] if self.parameters else None


@dataclass(frozen=True)
class CTCPCommand(Command):
    """PRIVMSG/NOTICE whose trailing parameter is a ``\\x01``-framed CTCP payload.

    ``parameters`` hold everything except the payload (usually just the target).
    """

    ctcp_command: str = ""
    ctcp_parameters: str | None = None

    @classmethod
    def create(
        cls,
        target: str,
        ctcp_command: str,
        ctcp_parameters: str | None = None,
        *,
        command: str = "PRIVMSG",
        prefix: str | None = None,
    ) -> CTCPCommand:
        return cls(
            prefix,
            command,
            (target,),
            True,
            ctcp_command=ctcp_command,
            ctcp_parameters=ctcp_parameters,
        )

    @property
    def payload(self) -> str:
        if self.ctcp_parameters is None:
            return self.ctcp_command
        return f"{self.ctcp_command} {self.ctcp_parameters}"


@dataclass(frozen=True)
class UserCommand:
    """Input typed locally: ``/VERB args`` or plain text for the current handle."""

    command: str
    parameters: str = ""

    @classmethod
    def from_input(cls, text: str) -> UserCommand:
        """Parse ``VERB args`` (the leading slash already removed)."""
        verb, _, rest = text.strip().partition(" ")
        return cls(verb.upper(), rest.strip())


def parse_user_input(text: str, current_handle: str | None) -> UserCommand | None:
    """Turn a line typed by the user into a UserCommand.

    Returns None for blank input, or for plain text when there is no
    conversation to send it to.
    """
    text = text.strip()
    if not text:
        return None
    if text.startswith("/"):
        if len(text) == 1:
            return None
        return UserCommand.from_input(text[1:])
    if current_handle is None:
        return None
    return UserCommand("MSG", f"{current_handle} {text}")


def is_channel(handle: str | None) -> bool:
    return bool(handle) and handle.startswith("#")
