"""Server and user command dispatch tables (packaged)."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING

from ..constants import (
    CLIENT_VERSION,
    DEBUG_CHANNEL_HANDLE,
    NOTICE_CHANNEL_HANDLE,
    RELAY_MEMBERSHIP_CAPABILITY,
    SYSTEM_SENDER,
)
from ..logs.logger import logger
from .models import Command, CTCPCommand, UserCommand, is_channel
from .parser import encode
from .registry import USER_MODES

if TYPE_CHECKING:  # pragma: no cover
    from .client import IRCClient
    from .registry import ChannelRegistry

ServerHandler = Callable[[Command], None]
UserHandler = Callable[[UserCommand], None]


def _reason_suffix(reason: str | None) -> str:
    return f" ({reason})" if reason else ""


class IRCDispatcher:
    """Maps inbound verbs to registry updates and user verbs to outbound commands."""

    def __init__(self, client: IRCClient):
        self.client = client
        self.server_handlers: dict[str, ServerHandler] = {
            "JOIN": self._handle_join,
            "KICK": self._handle_kick,
            "MODE": self._handle_mode,
            "NICK": self._handle_nick,
            "NOTICE": self._handle_notice,
            "PART": self._handle_part,
            "PING": self._handle_ping,
            "PONG": self._handle_pong,
            "PRIVMSG": self._handle_privmsg,
            "QUIT": self._handle_quit,
            "TOPIC": self._handle_topic,
            "332": self._handle_topic_reply,
            "353": self._handle_names_reply,
            "366": self._handle_end_of_names,
            "376": self._handle_end_of_motd,
        }
        self.user_handlers: dict[str, UserHandler] = {
            "DEOP": self._user_deop,
            "DEVOICE": self._user_devoice,
            "J": self._user_join,
            "KICK": self._user_kick,
            "ME": self._user_me,
            "MSG": self._user_msg,
            "OP": self._user_op,
            "TOPIC": self._user_topic,
            "VOICE": self._user_voice,
        }

    @property
    def registry(self) -> ChannelRegistry:
        return self.client.registry

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------
    def handle_server_command(self, cmd: Command) -> None:
        verb = cmd.command.upper()
        handler = self.server_handlers.get(verb)
        if self.client.config.debug:
            marker = "" if handler else "(unknown) "
            self.client.notify(
                DEBUG_CHANNEL_HANDLE, "SERVER", marker + encode(cmd), cmd
            )
        if handler is None:
            logger.log_event(
                "dispatch", "unknown_command", level=logging.DEBUG, command=verb
            )
            return
        try:
            handler(cmd)
        except Exception as e:  # noqa: BLE001
            logger.log_event(
                "dispatch",
                "handler_error",
                level=logging.WARNING,
                exc_info=True,
                command=verb,
                error=str(e),
                error_type=type(e).__name__,
            )

    def handle_user_command(self, ucmd: UserCommand) -> None:
        handler = self.user_handlers.get(ucmd.command)
        if handler is not None:
            handler(ucmd)
            return
        logger.log_event(
            "dispatch", "passthrough", level=logging.DEBUG, command=ucmd.command
        )
        line = f"{ucmd.command} {ucmd.parameters}" if ucmd.parameters else ucmd.command
        self.client.send_raw(line)

    # ------------------------------------------------------------------
    # Server commands
    # ------------------------------------------------------------------
    def _handle_join(self, cmd: Command) -> None:
        nick = cmd.short_prefix
        if nick is None:
            return
        channel = cmd.parameters[0]
        self.client.notify(
            channel, SYSTEM_SENDER, f"{nick} has joined {channel}", cmd
        )
        self.registry.add_single_name(channel, nick)

    def _handle_kick(self, cmd: Command) -> None:
        channel, nick = cmd.parameters[0], cmd.parameters[1]
        reason = cmd.parameters[2] if len(cmd.parameters) > 2 else None
        text = f"{cmd.short_prefix} kicked {nick} from {channel}"
        self.client.notify(channel, SYSTEM_SENDER, text + _reason_suffix(reason), cmd)
        self.registry.remove_name(channel, nick)

    def _handle_mode(self, cmd: Command) -> None:
        params = cmd.parameters
        if len(params) != 3 or params[1] not in USER_MODES:
            return
        if not is_channel(params[0]):
            return
        channel, mode, nick = params
        self.registry.change_user_mode(channel, nick, mode)
        text = f"{cmd.short_prefix} sets mode {mode} on {nick}"
        self.client.notify(channel, SYSTEM_SENDER, text, cmd)

    def _handle_nick(self, cmd: Command) -> None:
        old_nick, new_nick = cmd.short_prefix, cmd.parameters[0]
        if old_nick is None:
            return
        for handle in self.registry.channels_containing(old_nick):
            self.registry.rename(handle, old_nick, new_nick)
            self.client.notify(
                handle, SYSTEM_SENDER, f"{old_nick} is now known as {new_nick}", cmd
            )
        if old_nick == self.client.nick:
            self.client.nick = new_nick

    def _handle_notice(self, cmd: Command) -> None:
        if isinstance(cmd, CTCPCommand):
            self._handle_ctcp(cmd)
            return
        sender = cmd.short_prefix or "SERVER"
        text = cmd.last_parameter or ""
        self.client.notify(NOTICE_CHANNEL_HANDLE, sender, text, cmd)

    def _handle_part(self, cmd: Command) -> None:
        nick = cmd.short_prefix
        if nick is None or nick == self.client.nick:
            return
        channel = cmd.parameters[0]
        reason = cmd.parameters[1] if len(cmd.parameters) > 1 else None
        text = f"{nick} has left {channel}" + _reason_suffix(reason)
        self.client.notify(channel, SYSTEM_SENDER, text, cmd)
        self.registry.remove_name(channel, nick)

    def _handle_ping(self, cmd: Command) -> None:
        self.client.send(Command.of("PONG", *cmd.parameters, trailing=True))

    def _handle_pong(self, cmd: Command) -> None:
        pass

    def _handle_privmsg(self, cmd: Command) -> None:
        if cmd.short_prefix is None:
            return
        if isinstance(cmd, CTCPCommand):
            self._handle_ctcp(cmd)
            return
        self.client.notify(
            self._target_handle(cmd), cmd.short_prefix, cmd.last_parameter or "", cmd
        )

    def _handle_quit(self, cmd: Command) -> None:
        nick = cmd.short_prefix
        if nick is None:
            return
        reason = cmd.parameters[0] if cmd.parameters else None
        text = f"{nick} has quit" + _reason_suffix(reason)
        for handle in self.registry.channels_containing(nick):
            self.registry.remove_name(handle, nick)
            self.client.notify(handle, SYSTEM_SENDER, text, cmd)

    def _handle_topic(self, cmd: Command) -> None:
        channel = cmd.parameters[0]
        topic = cmd.parameters[1] if len(cmd.parameters) > 1 else ""
        self.registry.set_topic(channel, topic or None)
        text = f"{cmd.short_prefix} sets channel topic to: {topic}"
        self.client.notify(channel, SYSTEM_SENDER, text, cmd)

    def _handle_topic_reply(self, cmd: Command) -> None:
        # 332 <me> <channel> :<topic>
        channel, topic = cmd.parameters[-2], cmd.parameters[-1]
        self.registry.set_topic(channel, topic)
        self.client.notify(channel, SYSTEM_SENDER, f"Channel topic is: {topic}", cmd)

    def _handle_names_reply(self, cmd: Command) -> None:
        # 353 <me> <type> <channel> :<names>
        self.registry.add_names(cmd.parameters[-2], cmd.parameters[-1].split())

    def _handle_end_of_names(self, cmd: Command) -> None:
        # 366 <me> <channel> :End of /NAMES list
        self.registry.end_of_names(cmd.parameters[-2])

    def _handle_end_of_motd(self, cmd: Command) -> None:
        if self.client.config.twitch:
            self.client.send(
                Command.of("CAP", "REQ", RELAY_MEMBERSHIP_CAPABILITY, trailing=True)
            )

    def _handle_ctcp(self, cmd: CTCPCommand) -> None:
        handle = self._target_handle(cmd)
        nick = cmd.short_prefix
        verb = cmd.ctcp_command.upper()
        if nick is None:
            return
        if verb == "ACTION":
            text = f"{nick} {cmd.ctcp_parameters or ''}"
            self.client.notify(handle, SYSTEM_SENDER, text, cmd)
            return
        if verb == "VERSION" and not is_channel(handle):
            if cmd.ctcp_parameters is not None:
                text = f"{nick} uses client: {cmd.ctcp_parameters}"
                self.client.notify(handle, SYSTEM_SENDER, text, cmd)
                return
            if cmd.command.upper() == "PRIVMSG":
                logger.log_event(
                    "dispatch", "version_query", level=logging.DEBUG, sender=nick
                )
                self.client.notify(handle, SYSTEM_SENDER, "VERSION", cmd)
                reply = CTCPCommand.create(
                    nick, "VERSION", CLIENT_VERSION, command="NOTICE"
                )
                self.client.send(reply)
                return
        logger.log_event(
            "dispatch", "ctcp_ignored", level=logging.DEBUG, ctcp=verb, sender=nick
        )

    @staticmethod
    def _target_handle(cmd: Command) -> str:
        target = cmd.parameters[0] if cmd.parameters else None
        if is_channel(target):
            return target
        return cmd.short_prefix or NOTICE_CHANNEL_HANDLE

    # ------------------------------------------------------------------
    # User commands
    # ------------------------------------------------------------------
    def _current_channel(self) -> str | None:
        handle = self.registry.current_handle
        return handle if is_channel(handle) else None

    def _user_me(self, ucmd: UserCommand) -> None:
        handle = self.registry.current_handle
        if handle is None or not ucmd.parameters:
            return
        self.client.send(CTCPCommand.create(handle, "ACTION", ucmd.parameters))
        text = f"{self.client.nick} {ucmd.parameters}"
        self.client.notify(handle, SYSTEM_SENDER, text)

    def _user_msg(self, ucmd: UserCommand) -> None:
        target, _, text = ucmd.parameters.partition(" ")
        if not target or not text:
            return
        self.client.send(Command.of("PRIVMSG", target, text, trailing=True))
        self.client.notify(target, self.client.nick, text)

    def _user_join(self, ucmd: UserCommand) -> None:
        if ucmd.parameters:
            self.client.send_raw(f"JOIN {ucmd.parameters}")

    def _user_topic(self, ucmd: UserCommand) -> None:
        channel = self._current_channel()
        if channel is None or not ucmd.parameters:
            return
        self.client.send(Command.of("TOPIC", channel, ucmd.parameters, trailing=True))

    def _user_kick(self, ucmd: UserCommand) -> None:
        channel = self._current_channel()
        nick, _, reason = ucmd.parameters.partition(" ")
        if channel is None or not nick:
            return
        reason = reason.strip()
        if reason:
            self.client.send(Command.of("KICK", channel, nick, reason, trailing=True))
        else:
            self.client.send(Command.of("KICK", channel, nick))

    def _user_mode(self, ucmd: UserCommand, mode: str) -> None:
        channel = self._current_channel()
        if channel is None or not ucmd.parameters:
            return
        for nick in ucmd.parameters.split():
            self.client.send(Command.of("MODE", channel, mode, nick))

    def _user_op(self, ucmd: UserCommand) -> None:
        self._user_mode(ucmd, "+o")

    def _user_deop(self, ucmd: UserCommand) -> None:
        self._user_mode(ucmd, "-o")

    def _user_voice(self, ucmd: UserCommand) -> None:
        self._user_mode(ucmd, "+v")

    def _user_devoice(self, ucmd: UserCommand) -> None:
        self._user_mode(ucmd, "-v")
