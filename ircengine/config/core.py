"""Configuration loading from the process environment."""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from ..errors.internal import ConfigError
from ..logs.logger import logger
from .model import IRCConfig

# environment variable -> IRCConfig field
ENV_FIELDS: dict[str, str] = {
    "IRC_HOST": "host",
    "IRC_PORT": "port",
    "IRC_SECURE": "secure",
    "IRC_TWITCH": "twitch",
    "IRC_USER": "user",
    "IRC_PASSWORD": "server_password",
    "IRC_NICK": "nick",
    "IRC_CHANNELS": "channels",
    "DEBUG": "debug",
}

_TRUE_VALUES = ("true", "1", "yes", "on")
_BOOL_FIELDS = {"secure", "twitch", "debug"}


def _coerce(field: str, raw: str) -> Any:
    if field in _BOOL_FIELDS:
        return raw.strip().lower() in _TRUE_VALUES
    return raw


def get_configuration(environ: Mapping[str, str] | None = None) -> IRCConfig:
    """Build and validate the configuration snapshot.

    Args:
        environ: Mapping to read from; defaults to ``os.environ``.

    Returns:
        A frozen IRCConfig instance. Unset variables keep model defaults.

    Raises:
        ConfigError: If a value fails validation.
    """
    env = os.environ if environ is None else environ
    values: dict[str, Any] = {}
    for var, field in ENV_FIELDS.items():
        raw = env.get(var)
        if raw is not None:
            values[field] = _coerce(field, raw)
    try:
        return IRCConfig(**values)
    except ValidationError as e:
        fields = sorted({str(err["loc"][0]) for err in e.errors() if err["loc"]})
        raise ConfigError(
            f"Invalid configuration: {', '.join(fields) or 'unknown field'}",
            data={"fields": fields},
        ) from e


def print_config_summary(config: IRCConfig) -> None:
    """Log a summary of the configuration (never the server password)."""
    host, port = config.endpoint
    logger.log_event(
        "app",
        "config_summary",
        level=logging.INFO,
        endpoint=f"{host}:{port}",
        tls=config.use_tls,
        nick=config.nick or "<unset>",
        channels=config.channels or "-",
    )
