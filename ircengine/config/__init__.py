"""Configuration package exports."""

from .core import get_configuration, print_config_summary  # noqa: F401
from .model import IRCConfig

__all__ = [
    "IRCConfig",
    "get_configuration",
    "print_config_summary",
]
