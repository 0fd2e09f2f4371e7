"""Channel / user registry: membership, modes and topics per handle."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from .models import is_channel

USER_MODES = ("+o", "-o", "+v", "-v")


@dataclass
class User:
    name: str
    op: bool = False
    voice: bool = False

    def __str__(self) -> str:
        return ("@" if self.op else "") + ("+" if self.voice else "") + self.name

    @classmethod
    def from_name_with_modes(cls, raw: str) -> User:
        """Parse a NAMES entry such as ``@alice`` or ``+bob``."""
        op = raw.startswith("@")
        if op:
            raw = raw[1:]
        voice = raw.startswith("+")
        if voice:
            raw = raw[1:]
        return cls(raw, op, voice)

    @property
    def rank_key(self) -> tuple[bool, bool, str]:
        # ops, then voiced, then everyone else; names case-insensitively
        return (not self.op, not self.voice, self.name.casefold())


@dataclass
class Channel:
    handle: str
    topic: str | None = None
    users: list[User] = field(default_factory=list)
    got_all_names: bool = True

    @property
    def is_channel(self) -> bool:
        return is_channel(self.handle)

    @property
    def names(self) -> list[str]:
        return [u.name for u in self.users]

    def add_names(self, names: Iterable[str]) -> None:
        """Feed one 353 line; the first line of a burst replaces membership."""
        if self.got_all_names:
            self.users.clear()
            self.got_all_names = False
        self.users.extend(User.from_name_with_modes(n) for n in names if n)
        self._sort()

    def end_of_names(self) -> None:
        self.got_all_names = True

    def add_single_name(self, name: str) -> None:
        self.users.append(User.from_name_with_modes(name))
        self._sort()

    def remove_name(self, name: str) -> None:
        self.users = [u for u in self.users if u.name != name]

    def rename(self, old_name: str, new_name: str) -> None:
        for user in self.users:
            if user.name == old_name:
                user.name = new_name
        self._sort()

    def contains_name(self, name: str) -> bool:
        return any(u.name == name for u in self.users)

    def get_user(self, name: str) -> User | None:
        return next((u for u in self.users if u.name == name), None)

    def change_user_mode(self, name: str, mode: str) -> None:
        """Apply ``+o/-o/+v/-v`` to the named user only."""
        if mode not in USER_MODES:
            raise ValueError(f"unsupported user mode {mode!r}")
        for user in self.users:
            if user.name != name:
                continue
            if mode in ("+o", "-o"):
                user.op = mode == "+o"
            else:
                user.voice = mode == "+v"
        self._sort()

    def _sort(self) -> None:
        self.users.sort(key=lambda u: u.rank_key)


class ChannelRegistry:
    """All conversations known to the client, keyed by handle.

    Channels are created lazily on first reference. The first channel to be
    created becomes the current one, which is where plain text and
    channel-scoped user commands are aimed.
    """

    def __init__(self) -> None:
        self.channels: dict[str, Channel] = {}
        self.current_handle: str | None = None

    def __contains__(self, handle: str) -> bool:
        return handle in self.channels

    def __len__(self) -> int:
        return len(self.channels)

    @property
    def handles(self) -> list[str]:
        return sorted(self.channels, key=str.casefold)

    def get_channel(self, handle: str) -> Channel:
        channel = self.channels.get(handle)
        if channel is None:
            channel = self.channels[handle] = Channel(handle)
            if self.current_handle is None:
                self.current_handle = handle
        return channel

    def select(self, handle: str) -> Channel:
        channel = self.get_channel(handle)
        self.current_handle = handle
        return channel

    def close_channel(self, handle: str) -> Channel | None:
        channel = self.channels.pop(handle, None)
        if self.current_handle == handle:
            self.current_handle = next(iter(self.channels), None)
        return channel

    def set_topic(self, handle: str, topic: str | None) -> None:
        self.get_channel(handle).topic = topic

    def add_names(self, handle: str, names: Iterable[str]) -> None:
        self.get_channel(handle).add_names(names)

    def end_of_names(self, handle: str) -> None:
        self.get_channel(handle).end_of_names()

    def add_single_name(self, handle: str, name: str) -> None:
        self.get_channel(handle).add_single_name(name)

    def remove_name(self, handle: str, name: str) -> None:
        self.get_channel(handle).remove_name(name)

    def rename(self, handle: str, old_name: str, new_name: str) -> None:
        self.get_channel(handle).rename(old_name, new_name)

    def change_user_mode(self, handle: str, name: str, mode: str) -> None:
        self.get_channel(handle).change_user_mode(name, mode)

    def channels_containing(self, name: str) -> list[str]:
        return [h for h, c in self.channels.items() if c.contains_name(name)]
