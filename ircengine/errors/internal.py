"""Centralized internal error hierarchy.

These exceptions provide semantic categories for recovery logic and the
events surfaced to the display collaborator. Raw socket / ssl / pydantic
errors never leave the engine unwrapped; they are wrapped into one of these.

Classes:
  InternalError        – Base for all internal errors.
  ParseError           – One malformed protocol line (dropped, processing continues).
  ConnectionFailure    – Socket/TLS/read/write failure (recovered via reconnect).
  AttemptsExceeded     – Retry ceiling hit; connection stays down until explicit connect.
  CertificateWarning   – Server certificate failed validation; connection proceeds.
  ConfigError          – Configuration snapshot failed validation.
"""

from __future__ import annotations

from collections.abc import Mapping


class InternalError(Exception):
    """Base class for all internal engine errors with metadata support.

    Attributes:
        data: Dictionary containing arbitrary structured context data.

    Args:
        message: Descriptive error message.
        data: Optional mapping of additional context data.
    """

    data: dict[str, object]

    def __init__(
        self, message: str, *, data: Mapping[str, object] | None = None
    ) -> None:
        super().__init__(message)
        # Copy into a plain dict to avoid unexpected mutations from caller.
        self.data = dict(data) if data else {}


class ParseError(InternalError):
    """Raised when a protocol line cannot be decoded into a command.

    Only the offending line is lost; the read loop keeps going.
    """

    def __init__(self, message: str, line: str = "") -> None:
        super().__init__(message, data={"line": line})
        self.line = line


class ConnectionFailure(InternalError):
    """Raised for socket, TLS, read or write failures on the server link."""


class AttemptsExceeded(InternalError):
    """Signals that the connection-attempt ceiling was reached.

    Args:
        attempts: Number of attempts made since the last explicit connect.
        limit: The configured ceiling.
    """

    def __init__(self, attempts: int, limit: int) -> None:
        super().__init__(
            f"Too many failed connection attempts ({attempts} > {limit})",
            data={"attempts": attempts, "limit": limit},
        )
        self.attempts = attempts
        self.limit = limit


class CertificateWarning(InternalError):
    """Server certificate failed validation but was accepted anyway."""


class ConfigError(InternalError):
    """Configuration values failed validation."""


__all__ = [
    "InternalError",
    "ParseError",
    "ConnectionFailure",
    "AttemptsExceeded",
    "CertificateWarning",
    "ConfigError",
]
