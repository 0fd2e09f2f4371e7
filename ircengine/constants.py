"""
Configuration constants for the IRC engine

This module contains all tunable constants used throughout the engine.
Each constant can be overridden by setting an environment variable with the same name.
"""

import os

from . import __version__


def _get_env_int(name: str, default: int) -> int:
    """Retrieve an integer value from an environment variable.

    Attempts to parse the environment variable as an integer. If the variable
    is not set or cannot be parsed, prints a warning and returns the default value.

    Args:
        name: The name of the environment variable to read.
        default: The default integer value to return if parsing fails.

    Returns:
        The parsed integer value from the environment, or the default if unavailable.
    """
    value = os.getenv(name)
    if value is not None:
        try:
            return int(value)
        except ValueError:
            print(
                f"Warning: Invalid integer value for {name}='{value}', using default {default}"
            )
    return default


def _get_env_float(name: str, default: float) -> float:
    """Retrieve a float value from an environment variable.

    Args:
        name: The name of the environment variable to read.
        default: The default float value to return if parsing fails.

    Returns:
        The parsed float value from the environment, or the default if unavailable.
    """
    value = os.getenv(name)
    if value is not None:
        try:
            return float(value)
        except ValueError:
            print(
                f"Warning: Invalid float value for {name}='{value}', using default {default}"
            )
    return default


# Keepalive
SERVER_PING_INTERVAL = _get_env_float(
    "SERVER_PING_INTERVAL", 30.0
)  # Seconds between client-originated PINGs

# Auto-join scheduling
AUTO_JOIN_DELAY = _get_env_float(
    "AUTO_JOIN_DELAY", 5.0
)  # Seconds after connect before auto-joins go out (welcome burst)
AUTO_JOIN_TIME_BETWEEN_ATTEMPTS = _get_env_float(
    "AUTO_JOIN_TIME_BETWEEN_ATTEMPTS", 30.0
)  # Minimum seconds between two auto-join bursts

# Connection attempts / reconnect backoff
MAX_CONNECT_RETRIES = _get_env_int(
    "MAX_CONNECT_RETRIES", 5
)  # Attempts allowed before giving up until the next explicit connect
RECONNECT_BACKOFF_BASE_DELAY = _get_env_float(
    "RECONNECT_BACKOFF_BASE_DELAY", 2.0
)  # First scheduled retry delay in seconds
RECONNECT_BACKOFF_MULTIPLIER = _get_env_float(
    "RECONNECT_BACKOFF_MULTIPLIER", 2.0
)  # Exponential growth factor between scheduled retries
RECONNECT_BACKOFF_MAX_DELAY = _get_env_float(
    "RECONNECT_BACKOFF_MAX_DELAY", 60.0
)  # Upper bound for a scheduled retry delay
RECONNECT_BACKOFF_JITTER_FACTOR = _get_env_float(
    "RECONNECT_BACKOFF_JITTER_FACTOR", 0.1
)  # +/- fraction of the delay applied as random jitter

# Socket
SOCKET_TIMEOUT = _get_env_float(
    "SOCKET_TIMEOUT", 10.0
)  # Connect/handshake/write timeout in seconds
READ_CHUNK_SIZE = _get_env_int(
    "READ_CHUNK_SIZE", 10240
)  # Bytes requested per recv() while draining

# Error reporting
ERROR_ALERT_THRESHOLD = _get_env_int(
    "ERROR_ALERT_THRESHOLD", 10
)  # Errors of one category per session before a high-rate warning

# Host loop
TICK_INTERVAL = _get_env_float(
    "TICK_INTERVAL", 0.05
)  # Seconds between engine ticks in the console host

# Relay mode endpoint (hosted chat relay on its standard secure port)
RELAY_HOST = os.getenv("RELAY_HOST", "irc.chat.twitch.tv")
RELAY_PORT = _get_env_int("RELAY_PORT", 443)
RELAY_MEMBERSHIP_CAPABILITY = "twitch.tv/membership"

# Pseudo-channel handles
NOTICE_CHANNEL_HANDLE = "(Notice)"
DEBUG_CHANNEL_HANDLE = "(Debug)"

# Identity strings
CLIENT_VERSION = f"ircengine {__version__}"
QUIT_MESSAGE = os.getenv("QUIT_MESSAGE", "Build. Fly. Dream.")
USER_MODE = "8"  # USER <name> <mode> * :<realname>
SYSTEM_SENDER = "*"  # sender of lines not attributed to a user
