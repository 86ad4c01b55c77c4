from enum import Enum
from typing import NamedTuple, Union

Range = Union[int, tuple[int], tuple[int, int]]


class StatusResponse(NamedTuple):
    code: int
    text: str


class GroupSummary(NamedTuple):
    group: str
    first: int
    last: int
    count: int


class ArticlePointer(NamedTuple):
    number: int
    message_id: str


class Newsgroup(NamedTuple):
    name: str
    high: int
    low: int
    status: str


class Encryption(str, Enum):
    NONE = "none"
    """Plain TCP. Port 119 by default. Can be upgraded later with STARTTLS."""

    TLS = "tls"
    """Establish a secure connection immediately.
    You need to use a different port (usually 563) in this mode.
    """

    SSL = "ssl"
    """Legacy name for an immediately secured connection. Same as TLS."""

    @property
    def secure(self) -> bool:
        return self is not Encryption.NONE
