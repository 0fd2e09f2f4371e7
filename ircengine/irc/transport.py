"""Blocking socket transport with optional TLS, polled without waiting."""

from __future__ import annotations

import select
import socket
import ssl

from ..constants import READ_CHUNK_SIZE, SOCKET_TIMEOUT


class Transport:
    """Owns one TCP stream to the server.

    Connect, handshake and writes block for at most ``timeout`` seconds.
    Reads are only attempted after ``readable()`` reported data, so the
    caller's tick never waits on the network.
    """

    def __init__(self, timeout: float = SOCKET_TIMEOUT) -> None:
        self.timeout = timeout
        self._sock: socket.socket | None = None
        self._host: str | None = None
        self._port: int | None = None

    @property
    def is_open(self) -> bool:
        return self._sock is not None

    def open(self, host: str, port: int) -> None:
        self._host, self._port = host, port
        self._sock = socket.create_connection((host, port), timeout=self.timeout)

    def start_tls(self, server_hostname: str) -> ssl.SSLError | None:
        """Wrap the stream in TLS.

        A verifying handshake is tried first. If the server certificate does
        not validate, the stream is reopened and wrapped again without
        verification.

        Returns:
            The certificate verification error when the fallback was used,
            otherwise None.

        Raises:
            OSError: Socket failure, or a TLS failure other than certificate
                validation (``ssl.SSLError`` is an OSError).
        """
        try:
            self._wrap(ssl.create_default_context(), server_hostname)
            return None
        except ssl.SSLCertVerificationError as e:
            cert_error = e
        self.close()
        if self._host is None or self._port is None:
            raise ConnectionError("transport was never opened")
        self.open(self._host, self._port)
        permissive = ssl.SSLContext(ssl.PROTOCOL_TLS_CLIENT)
        permissive.check_hostname = False
        permissive.verify_mode = ssl.CERT_NONE
        self._wrap(permissive, server_hostname)
        return cert_error

    def _wrap(self, context: ssl.SSLContext, server_hostname: str) -> None:
        sock = self._require()
        self._sock = context.wrap_socket(sock, server_hostname=server_hostname)

    def readable(self) -> bool:
        sock = self._require()
        if isinstance(sock, ssl.SSLSocket) and sock.pending():
            return True
        ready, _, _ = select.select([sock], [], [], 0)
        return bool(ready)

    def recv(self, size: int = READ_CHUNK_SIZE) -> bytes:
        return self._require().recv(size)

    def sendall(self, data: bytes) -> None:
        self._require().sendall(data)

    def close(self) -> None:
        sock, self._sock = self._sock, None
        if sock is None:
            return
        try:
            sock.close()
        except OSError:
            pass

    def _require(self) -> socket.socket:
        if self._sock is None:
            raise ConnectionError("transport is not open")
        return self._sock
