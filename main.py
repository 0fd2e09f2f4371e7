#!/usr/bin/env python3
"""
Console host for the IRC engine: ticks the client, reads stdin, prints chat.
"""

import logging
import select
import sys
import time

from ircengine import __version__
from ircengine.config import get_configuration, print_config_summary
from ircengine.constants import TICK_INTERVAL
from ircengine.errors import ConfigError, log_error
from ircengine.irc import Event, EventType, IRCClient
from ircengine.logging_config import LoggerConfigurator
from ircengine.logs import logger


def print_notification(event: Event) -> None:
    note = event.notification
    if note is not None:
        print(f"[{note.handle}] {note.render()}", flush=True)


def handle_host_command(client: IRCClient, line: str) -> bool:
    """Window management commands the engine itself does not know about.

    Returns True when the line was consumed.
    """
    verb, _, rest = line.strip().partition(" ")
    verb = verb.upper()
    if verb == "/WINDOW" and rest.strip():
        client.select_channel(rest.strip())
        print(f"-- now talking in {client.registry.current_handle}", flush=True)
        return True
    if verb == "/CLOSE":
        handle = rest.strip() or client.registry.current_handle
        if handle:
            client.close_channel(handle)
        return True
    if verb == "/WINDOWS":
        print("-- " + " ".join(client.registry.handles), flush=True)
        return True
    return False


def read_stdin_line() -> str | None:
    ready, _, _ = select.select([sys.stdin], [], [], 0)
    if not ready:
        return None
    line = sys.stdin.readline()
    if line == "":
        raise EOFError
    return line.rstrip("\r\n")


def run(client: IRCClient) -> None:
    client.events.subscribe(EventType.NOTIFICATION, print_notification)
    client.connect()
    while True:
        client.tick()
        line = read_stdin_line()
        if line and not handle_host_command(client, line):
            client.submit_input(line)
        time.sleep(TICK_INTERVAL)


def main() -> int:
    """Main function"""
    configurator = LoggerConfigurator()
    configurator.configure()
    logger.log_event("app", "start", version=__version__)
    try:
        config = get_configuration()
    except ConfigError as e:
        log_error("Configuration error", e)
        return 1
    configurator.apply_config(config)
    print_config_summary(config)
    if not config.is_complete:
        logger.log_event("app", "config_incomplete", level=logging.WARNING)
        return 1

    client = IRCClient(config)
    try:
        run(client)
    except (KeyboardInterrupt, EOFError):
        logger.log_event("app", "interrupted", level=logging.WARNING)
    finally:
        client.disconnect()
        logger.log_event("app", "shutdown")
    return 0


if __name__ == "__main__":
    sys.exit(main())
