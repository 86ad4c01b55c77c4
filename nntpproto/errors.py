"""
NNTP protocol errors.
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

__all__ = [
    "NNTPCommandRejected",
    "NNTPConnectionError",
    "NNTPEncodingError",
    "NNTPError",
    "NNTPPermanentError",
    "NNTPProtocolError",
    "NNTPStateError",
    "NNTPSyncError",
    "NNTPTemporaryError",
    "NNTPUnexpectedResponse",
    "rejection",
]


class NNTPError(Exception):
    """Base class for all NNTP errors.

    Every error keeps the response status code and the raw status text of the
    response that caused it, when there was one.
    """

    def __init__(self, detail: str = "", code: int | None = None, text: str = "") -> None:
        """NNTP error.

        Args:
            detail: A description of the error.
            code: The response status code, if a response caused the error.
            text: The raw response status text.
        """
        self.detail = detail
        self.code = code
        self.text = text
        super().__init__(detail, code, text)

    def __str__(self) -> str:
        if self.code is None:
            return self.detail
        if not self.detail:
            return "%d %s" % (self.code, self.text)
        return "%s (%d %s)" % (self.detail, self.code, self.text)


class NNTPConnectionError(NNTPError):
    """NNTP connection errors.

    Raised when the socket cannot be opened, read or written, when a read
    times out, when a TLS handshake fails or when the server closes the
    connection in the middle of a response. The session is unusable after
    one of these.
    """


class NNTPProtocolError(NNTPError):
    """NNTP protocol error.

    Protocol errors are raised when a status line is invalid or a command
    cannot be sent without breaking the framing of the session.
    """


class NNTPUnexpectedResponse(NNTPProtocolError):
    """A response code that is not valid for the command that was issued."""


class NNTPCommandRejected(NNTPError):
    """NNTP command rejected.

    Raised for a known negative response code, for example "no such group"
    or "posting not allowed". The session remains usable.
    """

    def __init__(self, code: int, text: str, detail: str = "") -> None:
        super().__init__(detail, code, text)

    @property
    def message(self) -> str:
        return self.text


class NNTPTemporaryError(NNTPCommandRejected):
    """NNTP temporary errors.

    Temporary errors have response codes from 400 to 499.
    """


class NNTPPermanentError(NNTPCommandRejected):
    """NNTP permanent errors.

    Permanent errors have response codes from 500 to 599.
    """


class NNTPEncodingError(NNTPError):
    """NNTP encoding error.

    Raised when the content of a response cannot be decoded or decompressed,
    or when an article cannot be encoded for transfer.
    """


class NNTPStateError(NNTPError):
    """Raised when an operation is not valid in the current session state."""


class NNTPSyncError(NNTPStateError):
    """NNTP sync errors.

    Raised when a command is issued while the body of a previous response is
    still being read.
    """


def rejection(code: int, text: str, detail: str = "") -> NNTPCommandRejected:
    """Build the rejection error matching the class of a response code."""
    if 400 <= code <= 499:
        return NNTPTemporaryError(code, text, detail)
    if 500 <= code <= 599:
        return NNTPPermanentError(code, text, detail)
    return NNTPCommandRejected(code, text, detail)
