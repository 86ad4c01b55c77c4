"""
Receive buffer for NNTP sessions.
Copyright (C) 2013-2020  Byron Platt

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

__all__ = ["LineFifo"]


_DISCARD_SIZE = 0xFFFF


class LineFifo:
    """A bytes FIFO that hands out complete CRLF terminated lines.

    Incoming chunks are queued with write() and only joined onto the buffer
    when a read needs them. Consumed data is dropped from the front of the
    buffer once enough of it has accumulated.
    """

    eol = b"\r\n"

    def __init__(self, data: bytes = b"") -> None:
        self.buf = data
        self.pending: list[bytes] = []
        self.pos = 0

    def __len__(self) -> int:
        return len(self.buf) - self.pos + sum(map(len, self.pending))

    def __bool__(self) -> bool:
        return len(self) > 0

    def _join(self) -> None:
        if self.pending:
            self.buf = self.buf[self.pos :] + b"".join(self.pending)
            self.pending = []
            self.pos = 0

    def _advance(self, newpos: int) -> None:
        self.pos = newpos
        if self.pos > _DISCARD_SIZE:
            self.buf = self.buf[self.pos :]
            self.pos = 0

    def clear(self) -> None:
        self.buf = b""
        self.pending = []
        self.pos = 0

    def write(self, data: bytes) -> None:
        if data:
            self.pending.append(data)

    def read(self, length: int = 0) -> bytes:
        """Remove and return up to length bytes (everything when 0)."""
        self._join()
        if 0 < length < len(self):
            newpos = self.pos + length
            data = self.buf[self.pos : newpos]
            self._advance(newpos)
            return data
        data = self.buf[self.pos :]
        self.clear()
        return data

    def readline(self) -> bytes:
        """Remove and return one line including its CRLF.

        Returns an empty bytes object when no complete line is buffered.
        """
        self._join()
        i = self.buf.find(self.eol, self.pos)
        if i < 0:
            return b""
        newpos = i + len(self.eol)
        data = self.buf[self.pos : newpos]
        self._advance(newpos)
        return data

    def peek(self, length: int = 0) -> bytes:
        self._join()
        if 0 < length < len(self):
            return self.buf[self.pos : self.pos + length]
        return self.buf[self.pos :]
