"""
Tests for the channel / user registry
"""

import pytest

from ircengine.irc.registry import Channel, ChannelRegistry, User


def _render(channel: Channel) -> list[str]:
    return [str(u) for u in channel.users]


class TestUser:
    def test_from_name_with_modes(self):
        assert User.from_name_with_modes("@alice") == User("alice", op=True)
        assert User.from_name_with_modes("+bob") == User("bob", voice=True)
        assert User.from_name_with_modes("carol") == User("carol")

    def test_str_renders_sigils(self):
        assert str(User("x", op=True, voice=True)) == "@+x"


class TestNames:
    """NAMES accumulation (353 bursts terminated by 366)"""

    def test_burst_is_sorted_by_rank_then_name(self):
        channel = Channel("#chan")
        channel.add_names(["carol", "+bob", "@alice"])
        channel.end_of_names()
        assert _render(channel) == ["@alice", "+bob", "carol"]
        assert channel.users[0].op and channel.users[1].voice

    def test_sort_is_case_insensitive(self):
        channel = Channel("#chan")
        channel.add_names(["bob", "Alice", "@zed", "@Yan"])
        assert channel.names == ["Yan", "zed", "Alice", "bob"]

    def test_multiple_lines_accumulate_until_end(self):
        channel = Channel("#chan")
        channel.add_names(["a"])
        channel.add_names(["b"])
        channel.end_of_names()
        assert channel.names == ["a", "b"]

    def test_new_burst_replaces_membership(self):
        channel = Channel("#chan")
        channel.add_names(["old"])
        channel.end_of_names()
        channel.add_names(["new"])
        channel.end_of_names()
        assert channel.names == ["new"]

    def test_got_all_names_starts_true(self):
        assert Channel("#chan").got_all_names is True


class TestMembership:
    def test_add_remove_rename(self):
        channel = Channel("#chan")
        channel.add_single_name("bob")
        channel.add_single_name("alice")
        assert channel.names == ["alice", "bob"]
        channel.rename("bob", "aaron")
        assert channel.names == ["aaron", "alice"]
        channel.remove_name("alice")
        assert channel.names == ["aaron"]
        assert not channel.contains_name("alice")

    def test_remove_requires_exact_name(self):
        channel = Channel("#chan")
        channel.add_single_name("Bob")
        channel.remove_name("bob")
        assert channel.names == ["Bob"]


class TestUserModes:
    def _channel(self) -> Channel:
        channel = Channel("#chan")
        channel.add_names(["@op1", "+voiced", "target", "other"])
        channel.end_of_names()
        return channel

    def test_op_moves_user_to_top(self):
        channel = self._channel()
        channel.change_user_mode("target", "+o")
        assert channel.names[:2] == ["op1", "target"]

    @pytest.mark.parametrize("mode", ["+o", "-o", "+v", "-v"])
    def test_mode_touches_only_the_named_user(self, mode):
        channel = self._channel()
        before = {u.name: (u.op, u.voice) for u in channel.users if u.name != "target"}
        channel.change_user_mode("target", mode)
        after = {u.name: (u.op, u.voice) for u in channel.users if u.name != "target"}
        assert after == before

    def test_devoice(self):
        channel = self._channel()
        channel.change_user_mode("voiced", "-v")
        assert channel.get_user("voiced").voice is False
        assert channel.names == ["op1", "other", "target", "voiced"]

    def test_unknown_mode_rejected(self):
        with pytest.raises(ValueError):
            self._channel().change_user_mode("target", "+b")


class TestChannelRegistry:
    def test_lazy_creation_and_current(self):
        registry = ChannelRegistry()
        assert registry.current_handle is None
        registry.get_channel("#b")
        registry.get_channel("#a")
        assert registry.current_handle == "#b"
        assert "#a" in registry and len(registry) == 2

    def test_handles_sorted_case_insensitively(self):
        registry = ChannelRegistry()
        for handle in ("#b", "(Notice)", "#A", "carol"):
            registry.get_channel(handle)
        assert registry.handles == ["#A", "#b", "(Notice)", "carol"]

    def test_closing_current_falls_back_to_first_remaining(self):
        registry = ChannelRegistry()
        registry.get_channel("#a")
        registry.get_channel("#b")
        registry.select("#b")
        registry.close_channel("#b")
        assert registry.current_handle == "#a"
        registry.close_channel("#a")
        assert registry.current_handle is None

    def test_channels_containing(self):
        registry = ChannelRegistry()
        registry.add_single_name("#a", "bob")
        registry.add_single_name("#b", "bob")
        registry.add_single_name("#c", "carol")
        assert sorted(registry.channels_containing("bob")) == ["#a", "#b"]

    def test_set_topic(self):
        registry = ChannelRegistry()
        registry.set_topic("#a", "hello")
        assert registry.get_channel("#a").topic == "hello"
        registry.set_topic("#a", None)
        assert registry.get_channel("#a").topic is None
