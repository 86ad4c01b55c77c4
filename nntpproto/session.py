"""
NNTP transport session.
Copyright (C) 2013-2023  Byron Platt

This program is free software: you can redistribute it and/or modify
it under the terms of the GNU General Public License as published by
the Free Software Foundation, either version 3 of the License, or
(at your option) any later version.

This program is distributed in the hope that it will be useful,
but WITHOUT ANY WARRANTY; without even the implied warranty of
MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
GNU General Public License for more details.

You should have received a copy of the GNU General Public License
along with this program.  If not, see <http://www.gnu.org/licenses/>.
"""

from __future__ import annotations

import logging
import socket
import ssl
import time
from collections.abc import Iterator
from contextlib import contextmanager
from typing import NoReturn

from .errors import NNTPConnectionError, NNTPStateError
from .fifo import LineFifo
from .types import Encryption

__all__ = ["Session"]

log = logging.getLogger(__name__)


class Session:
    """One physical connection to a usenet server.

    Owns the socket and the receive buffer. All reads go through the buffer
    so that data received past the end of one line is available to the next
    read. Any socket failure closes the session.
    """

    recv_size = 4096
    retry_delay = 0.025

    def __init__(self) -> None:
        self.socket: socket.socket | None = None
        self.buffer = LineFifo()
        self.encryption = Encryption.NONE
        self.host = ""
        self.port = 0
        self.idle_timeout: float | None = None
        self.busy = False

    @property
    def connected(self) -> bool:
        return self.socket is not None

    def open(
        self,
        host: str,
        port: int,
        encryption: Encryption = Encryption.NONE,
        timeout: float | None = 15,
        idle_timeout: float | None = 240,
        ssl_context: ssl.SSLContext | None = None,
    ) -> None:
        """Opens the socket.

        Args:
            host: Hostname for usenet server.
            port: Port for usenet server.
            encryption: Whether to secure the connection immediately.
            timeout: Timeout for establishing the connection.
            idle_timeout: Timeout applied to every later read and write.
            ssl_context: Context used for implicit TLS.

        Raises:
            NNTPStateError: If the session is already open.
            NNTPConnectionError: If the connection or TLS handshake fails.
        """
        if self.connected:
            raise NNTPStateError("Already connected, disconnect first")

        try:
            sock = socket.create_connection((host, port), timeout=timeout)
        except OSError as e:
            log.warning("Connection to %s:%d failed: %s", host, port, e)
            raise NNTPConnectionError(f"Connection to {host}:{port} failed: {e}") from e

        if encryption.secure:
            context = ssl_context or ssl.create_default_context()
            try:
                sock = context.wrap_socket(sock, server_hostname=host)
            except OSError as e:
                sock.close()
                raise NNTPConnectionError(f"TLS handshake with {host}:{port} failed: {e}") from e

        sock.settimeout(idle_timeout)

        self.socket = sock
        self.buffer.clear()
        self.encryption = Encryption.TLS if encryption.secure else Encryption.NONE
        self.host = host
        self.port = port
        self.idle_timeout = idle_timeout
        self.busy = False

        log.info("Connection to %s:%d (%s) has been established", host, port, encryption.value)

    def close(self) -> None:
        """Closes the socket. Closing a closed session does nothing."""
        sock, self.socket = self.socket, None
        self.buffer.clear()
        self.busy = False
        self.encryption = Encryption.NONE
        if sock is not None:
            sock.close()
            log.info("Connection to %s:%d closed", self.host, self.port)

    def _require(self) -> socket.socket:
        if self.socket is None:
            raise NNTPStateError("Not connected")
        return self.socket

    def _fail(self, detail: str, cause: BaseException | None = None) -> NoReturn:
        if isinstance(cause, socket.timeout):
            detail = "Connection timed out"
        log.warning("%s, closing connection to %s:%d", detail, self.host, self.port)
        self.close()
        raise NNTPConnectionError(detail) from cause

    def start_tls(self, context: ssl.SSLContext | None = None) -> None:
        """Performs a TLS handshake in place on the open socket.

        Raises:
            NNTPStateError: If the session is closed or already encrypted.
            NNTPConnectionError: If the handshake fails. The session is closed.
        """
        sock = self._require()
        if self.encryption is not Encryption.NONE:
            raise NNTPStateError("Connection is already encrypted")

        context = context or ssl.create_default_context()
        try:
            self.socket = context.wrap_socket(sock, server_hostname=self.host)
        except OSError as e:
            self._fail("Could not initiate TLS negotiation", e)

        self.encryption = Encryption.TLS
        log.info("TLS encryption started")

    def write(self, data: bytes) -> None:
        """Writes all of data to the socket.

        Raises:
            NNTPConnectionError: If the write fails or times out.
        """
        sock = self._require()
        try:
            sock.sendall(data)
        except OSError as e:
            self._fail("Failed to write to socket", e)

    def recv(self) -> bool:
        """Reads available data from the socket into the buffer.

        Returns:
            False when the socket has no data available yet (non-blocking
            mode), True when data was added to the buffer.

        Raises:
            NNTPConnectionError: When the read fails, times out or the server
                closed the connection.
        """
        sock = self._require()
        try:
            data = sock.recv(self.recv_size)
        except (BlockingIOError, InterruptedError, ssl.SSLWantReadError):
            return False
        except OSError as e:
            self._fail("Failed to read from socket", e)
        if not data:
            self._fail("End of stream, connection lost")
        self.buffer.write(data)
        return True

    def fill(self) -> None:
        """Reads from the socket until at least some data is buffered."""
        while not self.recv():
            time.sleep(self.retry_delay)

    def readline(self) -> bytes:
        """Reads one CRLF terminated line, including the CRLF."""
        while True:
            line = self.buffer.readline()
            if line:
                return line
            self.fill()

    def peek(self, length: int) -> bytes:
        """Returns the next length bytes without consuming them.

        Reads from the socket until length bytes are buffered or a complete
        line is buffered, whichever comes first.
        """
        while len(self.buffer) < length and self.buffer.eol not in self.buffer.peek():
            self.fill()
        return self.buffer.peek(length)

    @contextmanager
    def nonblocking(self) -> Iterator[None]:
        """Puts the socket in non-blocking mode for the enclosed block.

        The previous timeout is restored however the block is left, unless
        the session was closed inside it.
        """
        sock = self._require()
        timeout = sock.gettimeout()
        sock.setblocking(False)
        try:
            yield
        finally:
            if self.socket is sock:
                sock.settimeout(timeout)
