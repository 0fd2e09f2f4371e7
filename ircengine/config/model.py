from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..constants import RELAY_HOST, RELAY_PORT


class IRCConfig(BaseModel):
    """Immutable connection configuration snapshot.

    Attributes:
        host: IRC server host name.
        port: IRC server port.
        secure: Whether to wrap the connection in TLS.
        twitch: Relay mode; connects to the fixed relay endpoint over TLS and
            requests the membership capability after the MOTD.
        user: Username sent with USER (falls back to ``nick``).
        server_password: Optional PASS value.
        nick: Nickname.
        channels: Space-separated handles joined automatically after connect.
        debug: Echo all protocol traffic to the debug pseudo-channel.
    """

    model_config = ConfigDict(frozen=True)

    host: str = "irc.esper.net"
    port: int = Field(default=5555, ge=1, le=65535)
    secure: bool = False
    twitch: bool = False
    user: str | None = None
    server_password: str | None = None
    nick: str = ""
    channels: str = ""
    debug: bool = False

    @field_validator("host", "nick", mode="before")
    @classmethod
    def strip_text(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip()
        return v

    @field_validator("host")
    @classmethod
    def validate_host(cls, v: str) -> str:
        """Reject host names that cannot be resolved (empty or over-long labels)."""
        if v:
            try:
                v.encode("idna")
            except UnicodeError as e:
                raise ValueError(f"invalid host name {v!r}") from e
        return v

    @field_validator("user", "server_password", mode="before")
    @classmethod
    def blank_to_none(cls, v: Any) -> Any:
        """Treat empty strings the same as an absent value."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("channels", mode="before")
    @classmethod
    def validate_channels(cls, v: Any) -> str:
        """Normalize the auto-join list to single-space separated handles.

        A list of handles is accepted as well and joined.
        """
        if v is None:
            return ""
        if isinstance(v, list | tuple):
            v = " ".join(str(c) for c in v)
        if not isinstance(v, str):
            raise ValueError("channels must be a string or a list of handles")
        return " ".join(v.split())

    @property
    def autojoin_channels(self) -> list[str]:
        return self.channels.split()

    @property
    def username(self) -> str:
        return self.user or self.nick

    @property
    def endpoint(self) -> tuple[str, int]:
        if self.twitch:
            return RELAY_HOST, RELAY_PORT
        return self.host, self.port

    @property
    def use_tls(self) -> bool:
        return self.secure or self.twitch

    @property
    def is_complete(self) -> bool:
        """True when there is enough configuration to attempt a connection."""
        return bool(self.host) and self.port > 0 and bool(self.nick)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> IRCConfig:
        """Create an IRCConfig from a mapping, ignoring unknown keys."""
        known = {k: v for k, v in data.items() if k in cls.model_fields}
        return cls(**known)
