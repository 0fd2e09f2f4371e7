"""IRC message codec: line decoding/encoding and stream framing (packaged)."""

from __future__ import annotations

import re

from ..errors.internal import ParseError
from .models import Command, CTCPCommand

CRLF = b"\r\n"
CTCP_DELIMITER = "\x01"
# RFC 1459: at most 14 middle parameters; anything after that is the trailing one
MAX_MIDDLE_PARAMETERS = 14

_COMMAND_PATTERN = re.compile(r"[A-Za-z]+|[0-9]{3}")
_CTCP_CARRIERS = ("PRIVMSG", "NOTICE")


def decode(line: str) -> Command:
    """Parse one protocol line (without CRLF) into a Command.

    PRIVMSG/NOTICE lines whose last parameter is framed by ``\\x01`` become a
    CTCPCommand.

    Raises:
        ParseError: The line is blank, or has no recognizable command.
    """
    if line is None or not line.strip():
        raise ParseError("empty line", line or "")

    rest = line
    prefix: str | None = None
    if rest.startswith(":"):
        prefix, sep, rest = rest[1:].partition(" ")
        if not prefix or not sep:
            raise ParseError("prefix without command", line)

    command, _, rest = rest.lstrip(" ").partition(" ")
    if not _COMMAND_PATTERN.fullmatch(command):
        raise ParseError(f"unrecognized command {command!r}", line)

    parameters: list[str] = []
    trailing = False
    while rest:
        if rest.startswith(":"):
            parameters.append(rest[1:])
            trailing = True
            break
        if len(parameters) == MAX_MIDDLE_PARAMETERS:
            parameters.append(rest)
            trailing = True
            break
        param, _, rest = rest.partition(" ")
        if param:
            parameters.append(param)

    ctcp = _split_ctcp(command, parameters)
    if ctcp is not None:
        ctcp_command, ctcp_parameters = ctcp
        return CTCPCommand(
            prefix,
            command,
            tuple(parameters[:-1]),
            True,
            ctcp_command=ctcp_command,
            ctcp_parameters=ctcp_parameters,
        )
    return Command(prefix, command, tuple(parameters), trailing)


def _split_ctcp(command: str, parameters: list[str]) -> tuple[str, str | None] | None:
    if command.upper() not in _CTCP_CARRIERS or not parameters:
        return None
    last = parameters[-1]
    if len(last) < 3 or not (
        last.startswith(CTCP_DELIMITER) and last.endswith(CTCP_DELIMITER)
    ):
        return None
    verb, sep, rest = last[1:-1].partition(" ")
    if not verb:
        return None
    return verb, (rest if sep else None)


def encode(cmd: Command) -> str:
    """Render a Command as a protocol line (without CRLF)."""
    parts: list[str] = []
    if cmd.prefix:
        parts.append(f":{cmd.prefix}")
    parts.append(cmd.command)

    params = list(cmd.parameters)
    force_trailing = cmd.trailing
    if isinstance(cmd, CTCPCommand):
        params.append(f"{CTCP_DELIMITER}{cmd.payload}{CTCP_DELIMITER}")
        force_trailing = True

    if params:
        *middle, last = params
        parts.extend(middle)
        if force_trailing or not last or " " in last or last.startswith(":"):
            last = f":{last}"
        parts.append(last)
    return " ".join(parts)


class LineBuffer:
    """Accumulates raw socket bytes and hands out complete lines.

    Bytes after the last CRLF are retained untouched, so a read that splits a
    line (even inside a multi-byte UTF-8 sequence) is completed by the next one.
    """

    def __init__(self, encoding: str = "utf-8") -> None:
        self.encoding = encoding
        self._buffer = bytearray()

    def __len__(self) -> int:
        return len(self._buffer)

    def feed(self, data: bytes) -> list[str]:
        self._buffer.extend(data)
        lines: list[str] = []
        while True:
            pos = self._buffer.find(CRLF)
            if pos < 0:
                break
            raw = bytes(self._buffer[:pos])
            del self._buffer[: pos + len(CRLF)]
            lines.append(raw.decode(self.encoding, errors="replace"))
        return lines

    def clear(self) -> None:
        self._buffer.clear()
