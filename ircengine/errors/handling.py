from __future__ import annotations

import logging
import ssl

from ..logging_config import log_structured_error
from .internal import (
    AttemptsExceeded,
    CertificateWarning,
    ConfigError,
    ConnectionFailure,
    InternalError,
    ParseError,
)


def classify_error(error: BaseException) -> str:
    """Map an exception to the error category used for aggregation."""
    if isinstance(error, ParseError):
        return "parsing"
    if isinstance(error, CertificateWarning | ssl.SSLError):
        return "tls"
    if isinstance(error, ConnectionFailure | OSError):
        return "network"
    if isinstance(error, AttemptsExceeded):
        return "attempts"
    if isinstance(error, ConfigError):
        return "config"
    if isinstance(error, InternalError):
        return "internal"
    return "unknown"


def log_error(
    message: str,
    error: BaseException,
    context: dict | None = None,
    level: int = logging.ERROR,
) -> None:
    """Logs an error message with the associated exception details.

    The error is categorized (parsing, tls, network, attempts, config,
    internal) and forwarded to structured logging so repeated failures show
    up in the aggregated error summary.

    Args:
        message: A descriptive message about the error context.
        error: The exception instance to be logged.
        context: Optional additional context data for debugging.
        level: Logging level (default: ERROR).

    Raises:
        No exceptions are raised by this function.
    """
    merged: dict = {}
    if isinstance(error, InternalError) and error.data:
        merged.update(error.data)
    if context:
        merged.update(context)

    log_structured_error(
        error_type=classify_error(error),
        message=f"{message}: {error}",
        exception=error,
        context=merged or None,
        level=level,
    )
