"""
Tests for the socket transport (polling, TLS fallback, close)
"""

import socket
import ssl
import time
from unittest.mock import MagicMock, patch

import pytest

from ircengine.irc.transport import Transport


@pytest.fixture
def listener():
    server = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    server.bind(("127.0.0.1", 0))
    server.listen(1)
    yield server
    server.close()


@pytest.fixture
def linked(listener):
    """An open Transport and the server side of its stream."""
    transport = Transport(timeout=2.0)
    transport.open("127.0.0.1", listener.getsockname()[1])
    peer, _ = listener.accept()
    yield transport, peer
    peer.close()
    transport.close()


def wait_readable(transport, timeout=2.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if transport.readable():
            return True
        time.sleep(0.01)
    return False


class TestPolling:
    def test_nothing_buffered_is_not_readable(self, linked):
        transport, _ = linked
        assert transport.readable() is False

    def test_data_becomes_readable_and_is_received(self, linked):
        transport, peer = linked
        peer.sendall(b"PING :1\r\n")
        assert wait_readable(transport)
        assert transport.recv() == b"PING :1\r\n"
        assert transport.readable() is False

    def test_writes_reach_the_peer(self, linked):
        transport, peer = linked
        transport.sendall(b"NICK n\r\n")
        peer.settimeout(2.0)
        assert peer.recv(64) == b"NICK n\r\n"

    def test_peer_close_is_readable_with_empty_recv(self, linked):
        transport, peer = linked
        peer.close()
        assert wait_readable(transport)
        assert transport.recv() == b""

    def test_pending_tls_bytes_are_readable_without_select(self):
        transport = Transport()
        tls_sock = MagicMock(spec=ssl.SSLSocket)
        tls_sock.pending.return_value = 12
        transport._sock = tls_sock
        with patch("ircengine.irc.transport.select.select") as mock_select:
            assert transport.readable() is True
        mock_select.assert_not_called()


class TestClose:
    def test_close_twice_is_safe(self, linked):
        transport, _ = linked
        transport.close()
        transport.close()
        assert transport.is_open is False

    def test_use_after_close_raises_connection_error(self, linked):
        transport, _ = linked
        transport.close()
        with pytest.raises(ConnectionError):
            transport.readable()
        with pytest.raises(ConnectionError):
            transport.sendall(b"x")

    def test_open_refused_raises_oserror(self, listener):
        port = listener.getsockname()[1]
        listener.close()
        with pytest.raises(OSError):
            Transport(timeout=2.0).open("127.0.0.1", port)


class TestStartTLS:
    def test_verified_handshake_returns_none(self):
        raw = MagicMock(spec=socket.socket)
        context = MagicMock()
        with patch(
            "ircengine.irc.transport.socket.create_connection", return_value=raw
        ), patch(
            "ircengine.irc.transport.ssl.create_default_context",
            return_value=context,
        ):
            transport = Transport()
            transport.open("irc.example.org", 6697)
            assert transport.start_tls("irc.example.org") is None
        context.wrap_socket.assert_called_once_with(
            raw, server_hostname="irc.example.org"
        )
        assert transport._sock is context.wrap_socket.return_value

    def test_certificate_error_reopens_with_permissive_context(self):
        first, second = MagicMock(spec=socket.socket), MagicMock(spec=socket.socket)
        cert_error = ssl.SSLCertVerificationError("self signed")
        verifying = MagicMock()
        verifying.wrap_socket.side_effect = cert_error
        permissive = MagicMock()
        with patch(
            "ircengine.irc.transport.socket.create_connection",
            side_effect=[first, second],
        ) as create, patch(
            "ircengine.irc.transport.ssl.create_default_context",
            return_value=verifying,
        ), patch(
            "ircengine.irc.transport.ssl.SSLContext", return_value=permissive
        ) as context_cls:
            transport = Transport(timeout=3.0)
            transport.open("irc.example.org", 6697)
            returned = transport.start_tls("irc.example.org")

        assert returned is cert_error
        assert create.call_count == 2
        create.assert_called_with(("irc.example.org", 6697), timeout=3.0)
        first.close.assert_called_once()
        context_cls.assert_called_once_with(ssl.PROTOCOL_TLS_CLIENT)
        assert permissive.check_hostname is False
        assert permissive.verify_mode == ssl.CERT_NONE
        permissive.wrap_socket.assert_called_once_with(
            second, server_hostname="irc.example.org"
        )
        assert transport._sock is permissive.wrap_socket.return_value

    def test_other_tls_failures_propagate(self):
        verifying = MagicMock()
        verifying.wrap_socket.side_effect = ssl.SSLError("handshake failure")
        with patch(
            "ircengine.irc.transport.socket.create_connection",
            return_value=MagicMock(spec=socket.socket),
        ) as create, patch(
            "ircengine.irc.transport.ssl.create_default_context",
            return_value=verifying,
        ):
            transport = Transport()
            transport.open("irc.example.org", 6697)
            with pytest.raises(ssl.SSLError):
                transport.start_tls("irc.example.org")
        assert create.call_count == 1

    def test_unencodable_host_raises_unicode_error(self):
        with pytest.raises(UnicodeError):
            Transport().open("bad..host", 6667)
