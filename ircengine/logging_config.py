r"""
Logging configuration module for the IRC engine.

Provides a configurable logging setup using the colorlog library, plus
structured error logging whose categories are counted per connection
session.
"""

import atexit
import logging
import os
import sys
import threading
from collections import Counter
from typing import Any

import colorlog

from .constants import ERROR_ALERT_THRESHOLD
from .logs.logger import logger

errors_logger = logging.getLogger("ircengine.errors")


class ErrorAggregator:
    """Counts categorized errors for the current connection session.

    A session is opened by every explicit ``IRCConnection.connect(config)``;
    opening one reports and clears the counts of the previous session, so a
    reconnect storm or a server sending garbage shows up once per session
    instead of being buried in individual failures.
    """

    def __init__(self, threshold: int = ERROR_ALERT_THRESHOLD) -> None:
        self.threshold = threshold
        self.lock = threading.Lock()
        self.session: str | None = None
        self.counts: Counter[str] = Counter()
        self.last_messages: dict[str, str] = {}

    def start_session(self, session: str) -> dict[str, dict[str, Any]]:
        """Close the running session and open ``session``.

        Returns:
            The summary of the session that was closed.
        """
        previous = self.get_error_summary()
        if self.session is not None:
            self.log_summary_report()
        with self.lock:
            self.session = session
            self.counts.clear()
            self.last_messages.clear()
        return previous

    def record_error(self, error_type: str, message: str) -> bool:
        """Count one occurrence.

        Returns:
            True exactly when this occurrence brings the category to the
            alert threshold.
        """
        with self.lock:
            self.counts[error_type] += 1
            self.last_messages[error_type] = message
            return self.counts[error_type] == self.threshold

    def get_error_summary(self) -> dict[str, dict[str, Any]]:
        with self.lock:
            return {
                error_type: {
                    "count": count,
                    "last_message": self.last_messages[error_type],
                }
                for error_type, count in self.counts.items()
            }

    def reset(self) -> None:
        with self.lock:
            self.session = None
            self.counts.clear()
            self.last_messages.clear()

    def log_summary_report(self) -> None:
        """Log the error counts of the running session."""
        summary = self.get_error_summary()
        session = self.session or "no session"
        if not summary:
            logger.log_event("errors", "session_clean", session=session)
            return
        counts = ", ".join(f"{t}={s['count']}" for t, s in sorted(summary.items()))
        logger.log_event(
            "errors",
            "session_summary",
            level=logging.WARNING,
            session=session,
            counts=counts,
        )


# Global error aggregator instance
error_aggregator = ErrorAggregator()


def log_structured_error(
    error_type: str,
    message: str,
    exception: BaseException | None = None,
    context: dict[str, Any] | None = None,
    level: int = logging.ERROR,
) -> None:
    """Log an error with structured context and count it for the session.

    Args:
        error_type: Category of the error (e.g., 'network', 'parsing', 'tls')
        message: Descriptive error message
        exception: The exception that occurred (optional)
        context: Additional context data for debugging
        level: Logging level (default: ERROR)
    """
    parts = [f"[{error_type.upper()}] {message}"]
    if exception is not None:
        parts.append(f"Exception: {type(exception).__name__}: {exception}")
    if context:
        parts.append("Context: " + " | ".join(f"{k}={v}" for k, v in context.items()))
    errors_logger.log(level, " | ".join(parts))

    if error_aggregator.record_error(error_type, message):
        logger.log_event(
            "errors",
            "high_rate",
            level=logging.WARNING,
            error_type=error_type,
            count=error_aggregator.threshold,
            session=error_aggregator.session or "no session",
        )


def is_debug_enabled() -> bool:
    return os.environ.get("DEBUG", "false").lower() in ("true", "1", "yes")


LOG_FORMAT = (
    "%(asctime)s %(log_color)s%(levelname)-8s%(reset)s "
    "%(message_log_color)s%(message)s"
)


class LoggerConfigurator:
    """Installs the colorlog console handler for the engine.

    The level starts at INFO, or DEBUG when the ``DEBUG`` environment
    variable (or ``config["debug"]``) is set. Once the IRC configuration is
    loaded, ``apply_config`` lowers it to DEBUG when protocol echo is on, so
    the ``irc_sent``/``irc_recv`` wire lines are logged as well.
    """

    def __init__(self, config=None):
        self.config = config or {}
        self.handler: logging.Handler | None = None

    def configure(self):
        """Configure root logging; returns the installed handler."""
        debug = self.config.get("debug") or is_debug_enabled()
        formatter = colorlog.ColoredFormatter(
            LOG_FORMAT,
            datefmt="%Y-%m-%d %H:%M:%S",
            log_colors={
                "DEBUG": "cyan",
                "INFO": "green",
                "WARNING": "yellow",
                "ERROR": "red",
                "CRITICAL": "magenta",
            },
            secondary_log_colors={"message": {"ERROR": "red", "CRITICAL": "magenta"}},
            reset=True,
        )
        self.handler = logging.StreamHandler(sys.stderr)
        self.handler.setFormatter(formatter)
        logging.basicConfig(handlers=[self.handler], force=True)
        logging.getLogger().setLevel(logging.DEBUG if debug else logging.INFO)

        atexit.register(self._log_final_error_summary)
        return self.handler

    def apply_config(self, irc_config) -> None:
        """Follow the ``debug`` switch of a loaded IRCConfig."""
        if irc_config.debug:
            logging.getLogger().setLevel(logging.DEBUG)

    def _log_final_error_summary(self):
        """Report the last session's error counts on interpreter exit."""
        if error_aggregator.session is None:
            return
        try:
            error_aggregator.log_summary_report()
        except Exception as e:  # noqa: BLE001
            errors_logger.error(f"Failed to log final error summary: {e}")
