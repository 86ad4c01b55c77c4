from __future__ import annotations

from typing import Union

import pytest

from nntpproto import NNTPClient
from nntpproto.session import Session

Chunk = Union[bytes, BaseException]


class FakeSocket:
    """A scripted stand-in for a connected socket.

    recv() hands out the scripted chunks in order. An exception instance in
    the script is raised instead. Once the script runs out a blocking socket
    reports end of stream and a non-blocking one raises BlockingIOError.
    """

    def __init__(self, *chunks: Chunk) -> None:
        self.chunks: list[Chunk] = list(chunks)
        self.sent = bytearray()
        self.timeout: float | None = None
        self.closed = False
        self.address: tuple[str, int] | None = None
        self.connect_timeout: float | None = None

    def feed(self, *chunks: Chunk) -> None:
        self.chunks.extend(chunks)

    def recv(self, size: int) -> bytes:
        if self.closed:
            raise OSError(9, "Bad file descriptor")
        if not self.chunks:
            if self.timeout == 0.0:
                raise BlockingIOError
            return b""
        chunk = self.chunks.pop(0)
        if isinstance(chunk, BaseException):
            raise chunk
        if len(chunk) > size:
            self.chunks.insert(0, chunk[size:])
            chunk = chunk[:size]
        return chunk

    def sendall(self, data: bytes) -> None:
        if self.closed:
            raise OSError(9, "Bad file descriptor")
        self.sent += data

    def settimeout(self, timeout: float | None) -> None:
        self.timeout = timeout

    def gettimeout(self) -> float | None:
        return self.timeout

    def setblocking(self, flag: bool) -> None:
        self.timeout = None if flag else 0.0

    def close(self) -> None:
        self.closed = True


class FakeContext:
    """A stand-in for ssl.SSLContext that wraps sockets in place."""

    def __init__(self, error: BaseException | None = None) -> None:
        self.error = error
        self.wrapped: list[tuple[FakeSocket, str | None]] = []

    def wrap_socket(self, sock: FakeSocket, server_hostname: str | None = None) -> FakeSocket:
        if self.error is not None:
            raise self.error
        self.wrapped.append((sock, server_hostname))
        return sock


@pytest.fixture
def fake_socket(monkeypatch: pytest.MonkeyPatch) -> FakeSocket:
    sock = FakeSocket()

    def create_connection(address: tuple[str, int], timeout: float | None = None) -> FakeSocket:
        sock.address = address
        sock.connect_timeout = timeout
        return sock

    monkeypatch.setattr("nntpproto.session.socket.create_connection", create_connection)
    return sock


@pytest.fixture
def session() -> Session:
    session = Session()
    session.socket = FakeSocket()  # type: ignore[assignment]
    session.retry_delay = 0
    return session


@pytest.fixture
def client(fake_socket: FakeSocket) -> NNTPClient:
    fake_socket.feed(b"200 news.example.com InterNetNews NNRP server ready\r\n")
    nntp_client = NNTPClient()
    nntp_client.backoff_delay = 0
    nntp_client.connect("news.example.com")
    return nntp_client
