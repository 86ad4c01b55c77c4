"""
NNTP command execution engine.
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
import ssl
from collections.abc import Iterable, Iterator, Mapping, Sequence
from typing import Any, NamedTuple, Union

from . import catalog, reader, utils
from .catalog import CommandSpec, Failure, Payload
from .errors import (
    NNTPCommandRejected,
    NNTPConnectionError,
    NNTPEncodingError,
    NNTPProtocolError,
    NNTPStateError,
    NNTPSyncError,
    NNTPUnexpectedResponse,
    rejection,
)
from .session import Session
from .types import Encryption, StatusResponse

__all__ = ["BaseNNTPClient", "Response", "encode_article"]

log = logging.getLogger(__name__)


MAX_COMMAND_LENGTH = 510

Article = Union[str, bytes, tuple[Union[str, Mapping[str, str]], Union[str, bytes]]]


class Response(NamedTuple):
    """The successful outcome of a command.

    Attributes:
        status: The status response.
        payload: Parsed status fields or the raw status text, depending on
            the command, otherwise None.
        lines: The lines of a multi-line response. A list, or an iterator
            when the command was executed with stream=True.
    """

    status: StatusResponse
    payload: Any = None
    lines: Union[Sequence[str], Iterator[str]] = ()


def encode_article(article: Article, encoding: str = "utf-8") -> bytes:
    """Encode an article for the second phase of POST or IHAVE.

    Args:
        article: A pre-formatted article as a string or bytes, or a 2-tuple of
            headers and body. Headers may be a pre-formatted header block or
            a mapping of header names to values.
        encoding: Encoding for string input.

    Returns:
        The article with CRLF line endings, leading periods doubled and the
        terminating line appended.

    Raises:
        NNTPEncodingError: If the article contains a NUL or a carriage return
            that is not part of a line ending.
    """
    if isinstance(article, tuple):
        headers, body = article
        head = utils.unparse_headers(headers).encode(encoding)
        if isinstance(body, str):
            body = body.encode(encoding, "surrogateescape")
        raw = head + b"\r\n\r\n" + body
    elif isinstance(article, str):
        raw = article.encode(encoding, "surrogateescape")
    else:
        raw = article

    raw = raw.replace(b"\r\n", b"\n")
    if raw.endswith(b"\n"):
        raw = raw[:-1]

    lines = raw.split(b"\n")
    for line in lines:
        if b"\r" in line or b"\0" in line:
            raise NNTPEncodingError("Illegal characters found")

    return b"".join(reader.dot_stuff(line) + b"\r\n" for line in lines) + b".\r\n"


class BaseNNTPClient:
    """NNTP BaseNNTPClient.

    Implements the session lifecycle and a generic command interface driven
    by the command catalog. Every command goes through execute(), which
    sends the command, reads the status line and then either reads the
    payload the catalog declares for that response code or raises the error
    the catalog maps it to.

    Only one command can be active at a time. A command issued while the
    body of a streamed response is still unread raises NNTPSyncError.
    """

    encoding = "utf-8"
    errors = "surrogateescape"

    max_empty_reads = reader.MAX_EMPTY_READS
    backoff_every = reader.BACKOFF_EVERY
    backoff_delay = reader.BACKOFF_DELAY

    def __init__(self, username: str = "", password: str = "") -> None:
        """Constructor for BaseNNTPClient.

        Args:
            username: Username for usenet account, used when the server asks
                for authentication.
            password: Password for usenet account
        """
        self.session = Session()
        self.status: StatusResponse | None = None
        self.posting_allowed = False

        self.username = username
        self.password = password

    @property
    def connected(self) -> bool:
        return self.session.connected

    @property
    def encryption(self) -> Encryption:
        return self.session.encryption

    def connect(
        self,
        host: str = "localhost",
        encryption: Union[Encryption, str] = Encryption.NONE,
        port: int | None = None,
        timeout: float | None = 15,
        idle_timeout: float | None = 240,
        ssl_context: ssl.SSLContext | None = None,
    ) -> bool:
        """Connects to a usenet server and reads the greeting.

        Args:
            host: Hostname for usenet server.
            encryption: "none", "tls" or "ssl". Both "tls" and "ssl" secure
                the connection immediately.
            port: Port for usenet server. Defaults to 119, or 563 when the
                connection is secured.
            timeout: Connection timeout.
            idle_timeout: Timeout for every read and write after connecting.
            ssl_context: Context for securing the connection.

        Returns:
            True when posting is allowed, otherwise False.

        Raises:
            NNTPStateError: If already connected.
            NNTPConnectionError: If the connection can't be established.
            NNTPProtocolError: If the server does not greet with 200 or 201.
        """
        encryption = Encryption(encryption)
        if port is None:
            port = 563 if encryption.secure else 119

        self.session.open(host, port, encryption, timeout, idle_timeout, ssl_context)

        try:
            code, text = self._status()
        except NNTPProtocolError:
            self.session.close()
            raise

        if code not in (200, 201):
            self.session.close()
            if code in (400, 502):
                raise NNTPProtocolError("Server refused connection", code, text)
            raise NNTPUnexpectedResponse("Unexpected greeting", code, text)

        self.posting_allowed = code == 200
        if not self.posting_allowed:
            log.info("Posting not allowed")

        return self.posting_allowed

    def disconnect(self) -> bool:
        """Sends QUIT and closes the connection once the server acknowledges.

        Does nothing when already disconnected. A connection the server has
        already dropped is closed without an error.
        """
        if not self.connected:
            return True

        try:
            self.execute("QUIT")
        except NNTPConnectionError as e:
            log.info("Connection already gone on QUIT: %s", e)
        self.session.close()
        return True

    def close(self) -> None:
        """Closes the connection at the client without sending QUIT."""
        self.session.close()

    def upgrade_to_tls(self, context: ssl.SSLContext | None = None) -> bool:
        """STARTTLS command.

        Secures the open connection in place.

        See <https://tools.ietf.org/html/rfc4642>

        Raises:
            NNTPStateError: If the connection is already secured.
            NNTPCommandRejected: If the server won't start TLS.
            NNTPConnectionError: If the handshake fails. The connection is
                closed.
        """
        if self.encryption is not Encryption.NONE:
            raise NNTPStateError("Connection is already encrypted")

        self.execute("STARTTLS")
        self.session.start_tls(context)
        return True

    def authenticate(self, username: str, password: str | None = None) -> bool:
        """AUTHINFO USER/PASS commands.

        See <https://tools.ietf.org/html/rfc4643>

        Raises:
            NNTPCommandRejected: If authentication is rejected or the server
                wants a password that wasn't given.
        """
        self.execute("AUTHINFO USER", username)
        if self.status and self.status.code == 381 and password is not None:
            self.execute("AUTHINFO PASS", password)

        if self.status and self.status.code == 381:
            raise rejection(381, self.status.text, "Authentication uncompleted")

        log.info("Authenticated (as user '%s')", username)
        return True

    def _ready(self) -> None:
        if not self.connected:
            raise NNTPStateError("Not connected")
        if self.session.busy:
            raise NNTPSyncError("Command issued while a response is still being read")

    def _command_line(self, spec: CommandSpec, args: Iterable[Union[str, int, None]]) -> bytes:
        assert spec.verb is not None
        line = utils.join_args([spec.verb, *args])

        # no pipelining, a line break would desynchronise the session
        if "\r" in line or "\n" in line:
            raise NNTPProtocolError("Illegal character(s) in NNTP command")

        data = line.encode(self.encoding, self.errors)
        if len(data) > MAX_COMMAND_LENGTH:
            raise NNTPProtocolError(
                "Command too long - max %d chars" % MAX_COMMAND_LENGTH
            )

        return data

    def _status(self) -> StatusResponse:
        """Reads a command response status.

        Raises:
            NNTPConnectionError: If reading from the socket fails.
            NNTPProtocolError: If the status line can't be parsed.
        """
        raw = self.session.readline()
        line = raw.decode(self.encoding, self.errors).rstrip("\r\n")
        log.debug("S: %s", line)

        head = line[:3]
        if not (head.isascii() and head.isdigit()) or (
            len(line) > 3 and not line[3].isspace()
        ):
            raise NNTPProtocolError("Invalid status line", text=line)

        code = int(head)
        if code < 100 or code >= 600:
            raise NNTPProtocolError("Invalid status code", code, line[3:].strip())

        self.status = StatusResponse(code, line[3:].strip())
        return self.status

    def _decode(self, lines: Iterable[bytes]) -> Iterator[str]:
        for line in lines:
            yield line.decode(self.encoding, self.errors)

    def _dispatch(self, spec: CommandSpec, stream: bool = False) -> Response:
        assert self.status is not None
        code, text = self.status

        outcome = spec.outcome(code)
        if outcome is None:
            raise NNTPUnexpectedResponse("Unexpected response to %s" % spec.name, code, text)
        if isinstance(outcome, Failure):
            raise rejection(code, text, outcome.message)

        if outcome.payload is Payload.STATUS_FIELDS:
            assert outcome.parser is not None
            try:
                fields = outcome.parser(text)
            except ValueError as e:
                raise NNTPProtocolError(str(e), code, text) from e
            return Response(self.status, fields)

        if outcome.payload is Payload.STATUS_TEXT:
            return Response(self.status, text)

        compressed = outcome.payload is Payload.COMPRESSED
        if outcome.payload is Payload.TEXT and "COMPRESS=GZIP" in text.upper():
            compressed = True

        if compressed:
            lines = reader.read_compressed_block(
                self.session,
                self.max_empty_reads,
                self.backoff_every,
                self.backoff_delay,
            )
            return Response(self.status, None, list(self._decode(lines)))

        if outcome.payload is Payload.TEXT:
            # busy from now on, even if the stream is never iterated
            self.session.busy = True
            body = self._decode(reader.iter_text_block(self.session))
            return Response(self.status, None, body if stream else list(body))

        return Response(self.status)

    def _execute(
        self,
        spec: CommandSpec,
        args: Iterable[Union[str, int, None]],
        stream: bool,
    ) -> Response:
        if spec.verb is None:
            raise ValueError(f"{spec.name} is the second phase of a transfer")

        self._ready()
        data = self._command_line(spec, args)

        if spec.name == "AUTHINFO PASS":
            log.debug("C: AUTHINFO PASS ********")
        else:
            log.debug("C: %s", data.decode(self.encoding, self.errors))

        self.session.write(data + b"\r\n")
        self._status()
        return self._dispatch(spec, stream)

    def execute(
        self,
        name: str,
        *args: Union[str, int, None],
        stream: bool = False,
    ) -> Response:
        """Call a command on the server.

        If the server asks for authentication and the client has a username
        then authentication will be done and the command issued again.

        Args:
            name: The name of the command in the catalog, for example
                "GROUP" or "LIST NEWSGROUPS".
            args: The arguments of the command. Arguments that are None are
                left out.
            stream: Return the lines of a textual response as an iterator
                instead of a list. No other command may be issued until the
                iterator is exhausted.

        Returns:
            The response.

        Raises:
            KeyError: If the command is not in the catalog.
            NNTPStateError: If not connected.
            NNTPSyncError: If a previous response hasn't been read.
            NNTPProtocolError: If the command line is invalid or the status
                line can't be parsed.
            NNTPUnexpectedResponse: If the response code isn't valid for the
                command.
            NNTPCommandRejected: If the server rejected the command.
            NNTPConnectionError: If the connection fails.
            NNTPEncodingError: If a compressed response can't be decoded.
        """
        spec = catalog.lookup(name)
        try:
            return self._execute(spec, args, stream)
        except NNTPCommandRejected as e:
            if e.code != 480 or not self.username or spec.name.startswith("AUTHINFO"):
                raise

        log.info("Authentication required for %s", spec.name)
        self.authenticate(self.username, self.password)
        return self._execute(spec, args, stream)

    def attempt(
        self,
        name: str,
        *args: Union[str, int, None],
        stream: bool = False,
    ) -> Union[Response, NNTPCommandRejected]:
        """Like execute() but returns a rejection instead of raising it.

        Other errors are still raised.
        """
        try:
            return self.execute(name, *args, stream=stream)
        except NNTPCommandRejected as e:
            return e

    def transfer(self, name: str, data: bytes) -> Response:
        """Sends an article for the second phase of POST or IHAVE.

        Args:
            name: The catalog name of the second phase, "POST ARTICLE" or
                "IHAVE ARTICLE".
            data: The article as returned by encode_article().
        """
        spec = catalog.lookup(name)
        if spec.verb is not None:
            raise ValueError(f"{spec.name} is not the second phase of a transfer")

        self._ready()
        log.debug("D: %d bytes", len(data))
        self.session.write(data)
        self._status()
        return self._dispatch(spec)
