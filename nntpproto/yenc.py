"""
Basic yEnc codec.
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

import binascii
import re
import struct
import zlib
from typing import NamedTuple

from .errors import NNTPEncodingError

__all__ = ["YEnc", "YEncFrame", "decode", "decode_frame", "encode", "trailer_crc32"]


_crc32_re = re.compile(b"\\s+crc(?:32)?=([0-9a-fA-F]{8})")
_size_re = re.compile(b"\\ssize=(\\d+)")
_name_re = re.compile(b"\\sname=([^\\r\\n]+)")

_ESCAPE = 0x3D
_CRITICAL = frozenset({0x00, 0x0A, 0x0D, _ESCAPE})


class YEncFrame(NamedTuple):
    name: str
    size: int
    crc32: int | None
    data: bytes


def trailer_crc32(trailer: bytes) -> int | None:
    """Extract the CRC32 value from a yEnc trailer."""
    match = _crc32_re.search(trailer)
    if not match:
        return None
    buf = binascii.unhexlify(match.group(1))
    return struct.unpack(">I", buf)[0]  # type: ignore[no-any-return]


class YEnc:
    """A basic incremental yEnc decoder.

    Keeps track of the CRC32 value as data is decoded. An escape character
    at the end of one buffer is carried over to the next.
    """

    def __init__(self) -> None:
        self.crc32 = 0
        self._escape = 0

    def decode(self, buf: bytes) -> bytes:
        data = bytearray()
        for b in buf:
            if self._escape:
                b = (b - 106) & 0xFF
                self._escape = 0
            elif b == _ESCAPE:
                self._escape = 1
                continue
            elif b in {0x0D, 0x0A}:
                continue
            else:
                b = (b - 42) & 0xFF
            data.append(b)
        decoded = bytes(data)
        self.crc32 = zlib.crc32(decoded, self.crc32)
        return decoded


def _split_frame(blob: bytes) -> tuple[bytes, list[bytes], bytes]:
    """Split a yEnc blob into begin line, data lines and end line."""
    lines = blob.replace(b"\r\n", b"\n").split(b"\n")
    begin = end = None
    data: list[bytes] = []
    for line in lines:
        if begin is None:
            if line.startswith(b"=ybegin"):
                begin = line
            continue
        if line.startswith(b"=yend"):
            end = line
            break
        data.append(line)
    if begin is None:
        raise NNTPEncodingError("Missing yEnc header")
    if end is None:
        raise NNTPEncodingError("Missing yEnc trailer")
    return begin, data, end


def decode_frame(blob: bytes) -> YEncFrame:
    """Decode a single part yEnc blob.

    Args:
        blob: Data containing a `=ybegin` line, the encoded lines and a
            `=yend` line. Anything before the header or after the trailer is
            ignored.

    Returns:
        The name and size declared by the header, the CRC32 declared by the
        trailer (None when absent) and the decoded data.

    Raises:
        NNTPEncodingError: If a marker or the declared size is missing, the
            decoded data is not the declared size or the CRC check fails.
    """
    begin, lines, end = _split_frame(blob)

    match = _size_re.search(begin)
    if not match:
        raise NNTPEncodingError("Bad yEnc header")
    size = int(match.group(1))

    match = _name_re.search(begin)
    name = match.group(1).decode("utf-8", "surrogateescape").strip() if match else ""

    decoder = YEnc()
    data = decoder.decode(b"".join(lines))

    if len(data) != size:
        raise NNTPEncodingError("declared size does not match decoded size")

    crc32 = trailer_crc32(end)
    if crc32 is not None and crc32 != decoder.crc32:
        raise NNTPEncodingError("Bad yEnc CRC")

    return YEncFrame(name, size, crc32, data)


def decode(blob: bytes) -> bytes:
    """Decode a single part yEnc blob to the original bytes.

    See decode_frame().
    """
    return decode_frame(blob).data


def encode(data: bytes, name: str = "", line_length: int = 128) -> bytes:
    """Encode data as a single part yEnc blob.

    Critical characters (NUL, LF, CR and the escape character) are always
    escaped, as is a period at the start of a line.

    Args:
        data: The data to encode.
        name: The name to declare in the header.
        line_length: The target length of the encoded lines.

    Returns:
        The `=ybegin` line, the encoded lines and the `=yend` line, each
        terminated by CRLF.
    """
    out = [b"=ybegin line=%d size=%d name=%s\r\n" % (line_length, len(data), name.encode())]
    line = bytearray()
    for b in data:
        c = (b + 42) & 0xFF
        if c in _CRITICAL or (c == 0x2E and not line):
            line.append(_ESCAPE)
            c = (c + 64) & 0xFF
        line.append(c)
        if len(line) >= line_length:
            out.append(bytes(line) + b"\r\n")
            line = bytearray()
    if line:
        out.append(bytes(line) + b"\r\n")
    crc = zlib.crc32(data) & 0xFFFFFFFF
    out.append(b"=yend size=%d crc32=%08x\r\n" % (len(data), crc))
    return b"".join(out)
