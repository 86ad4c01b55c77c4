"""
Multi-line response readers.
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
import time
import zlib
from collections.abc import Iterator

from . import yenc
from .errors import NNTPEncodingError
from .session import Session

__all__ = [
    "Inflater",
    "dot_stuff",
    "dot_unstuff",
    "iter_text_block",
    "read_compressed_block",
    "read_text_block",
    "split_lines",
]

log = logging.getLogger(__name__)


MAX_EMPTY_READS = 500
BACKOFF_EVERY = 50
BACKOFF_DELAY = 0.05

_TERMINATOR = b".\r\n"


def dot_stuff(line: bytes) -> bytes:
    """Doubles a leading period so the line can't be taken as a terminator."""
    if line.startswith(b"."):
        return b"." + line
    return line


def dot_unstuff(line: bytes) -> bytes:
    """Removes the period added by dot_stuff()."""
    if line.startswith(b".."):
        return line[1:]
    return line


def iter_text_block(session: Session) -> Iterator[bytes]:
    """Generator for the lines of a textual multi-line response.

    When the terminating line (a line containing a single period) is received
    the generator exits. The terminating line is not yielded and stuffed
    periods are removed. Lines are yielded without their CRLF.

    The session is marked busy until the terminating line has been read.

    Yields:
        A line of the response.

    Raises:
        NNTPConnectionError: If the connection is lost before the terminating
            line is received.
    """
    session.busy = True

    while True:
        line = session.readline()[:-2]
        if line == b".":
            break
        yield dot_unstuff(line)

    session.busy = False


def read_text_block(session: Session) -> list[bytes]:
    """Reads all the lines of a textual multi-line response.

    See iter_text_block().
    """
    return list(iter_text_block(session))


def split_lines(data: bytes) -> list[bytes]:
    """Splits decompressed data into lines.

    A terminating line carried inside the compressed data is dropped along
    with any empty lines.
    """
    lines = data.split(b"\r\n")
    if len(lines) >= 2 and lines[-2] == b"." and not lines[-1]:
        del lines[-2:]
    return [line for line in lines if line]


def _wbits(head: bytes) -> int:
    if head[:2] == b"\x1f\x8b":
        return 16 + zlib.MAX_WBITS
    if head[0] & 0x0F == 8 and (head[0] << 8 | head[1]) % 31 == 0:
        return zlib.MAX_WBITS
    return -zlib.MAX_WBITS


class Inflater:
    """Incremental inflate for gzip, zlib or raw deflate streams.

    The framing is detected from the first two bytes of the stream.
    """

    def __init__(self) -> None:
        self._obj: zlib._Decompress | None = None
        self._head = b""
        self.output = bytearray()

    @property
    def eof(self) -> bool:
        return self._obj is not None and self._obj.eof

    @property
    def unused_data(self) -> bytes:
        if self._obj is None:
            return b""
        return self._obj.unused_data

    def feed(self, data: bytes) -> None:
        """Decompresses the next part of the stream.

        Raises:
            NNTPEncodingError: If the data is not a valid compressed stream.
        """
        if self._obj is None:
            self._head += data
            if len(self._head) < 2:
                return
            data, self._head = self._head, b""
            self._obj = zlib.decompressobj(_wbits(data))
        try:
            self.output += self._obj.decompress(data)
        except zlib.error as e:
            raise NNTPEncodingError(f"Decompression failed: {e}") from e


class _Poll:
    """Non-blocking reads with a budget of empty reads."""

    def __init__(
        self,
        session: Session,
        max_empty_reads: int,
        backoff_every: int,
        backoff_delay: float,
    ) -> None:
        self.session = session
        self.max_empty_reads = max_empty_reads
        self.backoff_every = max(backoff_every, 1)
        self.backoff_delay = backoff_delay
        self.empty = 0

    @property
    def exhausted(self) -> bool:
        return self.empty > self.max_empty_reads

    def read(self) -> bytes:
        if self.session.buffer or self.session.recv():
            return self.session.buffer.read()
        self.empty += 1
        if self.empty % self.backoff_every == 0:
            time.sleep(self.backoff_delay)
        return b""


def _read_yenc_stream(session: Session) -> bytes:
    blob = b"\r\n".join(read_text_block(session))
    inflater = Inflater()
    inflater.feed(yenc.decode(blob))
    if not inflater.eof:
        raise NNTPEncodingError("Decompression failed: truncated stream")
    return bytes(inflater.output)


def _read_deflate_stream(
    session: Session,
    max_empty_reads: int,
    backoff_every: int,
    backoff_delay: float,
) -> bytes:
    # there is no end marker, keep going until the deflate stream ends
    session.busy = True
    inflater = Inflater()
    poll = _Poll(session, max_empty_reads, backoff_every, backoff_delay)

    try:
        with session.nonblocking():
            while not inflater.eof:
                data = poll.read()
                if data:
                    inflater.feed(data)
                elif poll.exhausted:
                    raise NNTPEncodingError(
                        "Decompression failed: no end of stream after %d empty reads"
                        % poll.empty
                    )

            output = bytes(inflater.output)
            trailer = inflater.unused_data

            # terminator outside the compressed data
            if output != _TERMINATOR and not output.endswith(b"\r\n" + _TERMINATOR):
                while len(trailer) < 3 and _TERMINATOR.startswith(trailer):
                    if poll.exhausted:
                        break
                    trailer += poll.read()
                if trailer.startswith(_TERMINATOR):
                    trailer = trailer[3:]
    except NNTPEncodingError:
        # the rest of the stream is still unread
        log.warning("Compressed response unreadable, closing connection")
        session.close()
        raise

    if trailer:
        log.debug("%d bytes follow the compressed data", len(trailer))
        session.buffer.write(trailer)

    session.busy = False
    return output


def read_compressed_block(
    session: Session,
    max_empty_reads: int = MAX_EMPTY_READS,
    backoff_every: int = BACKOFF_EVERY,
    backoff_delay: float = BACKOFF_DELAY,
) -> list[bytes]:
    """Reads all the lines of a compressed multi-line response.

    Compressed responses are an extension to the NNTP protocol supported by
    some usenet servers to reduce the bandwidth of heavily used range style
    commands that can return large amounts of textual data. Two framings are
    in use and are told apart by the first bytes of the response:

    * A yEnc encoded deflate stream between `=ybegin` and `=yend` lines,
      followed by the usual terminating line.
    * A bare deflate (zlib or gzip) stream with no end marker. The socket is
      polled without blocking until the stream is complete. The terminating
      line may be inside the compressed data, after it, or missing.

    Args:
        session: The session to read from.
        max_empty_reads: Give up on a bare stream after this many reads that
            returned nothing.
        backoff_every: Sleep after this many empty reads.
        backoff_delay: How long to sleep, in seconds.

    Returns:
        The decompressed lines, without CRLF and without empty lines.

    Raises:
        NNTPConnectionError: If the connection is lost.
        NNTPEncodingError: If decoding or decompressing fails or the stream
            does not end within the read budget. A bare stream that fails
            leaves unread data on the socket, so the session is closed.
    """
    if session.peek(7).startswith(b"=ybegin"):
        log.debug("Compressed response is yEnc encoded")
        data = _read_yenc_stream(session)
    else:
        log.debug("Compressed response is a bare deflate stream")
        data = _read_deflate_stream(session, max_empty_reads, backoff_every, backoff_delay)
    return split_lines(data)
