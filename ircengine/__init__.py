"""ircengine - a tick-driven IRC client engine."""

__version__ = "1.0.0"
