"""
Argument formatting and response parsing helpers.
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

from collections.abc import Iterable, Mapping
from datetime import datetime, timezone
from typing import Union

from .types import ArticlePointer, GroupSummary, Newsgroup, Range


def unparse_range(obj: Range) -> str:
    """Unparse a range argument.

    Args:
        obj: An article range. There are a number of valid formats; an integer
            specifying a single article or a tuple specifying an article range.
            If the range doesn't specify a last article then all articles from
            the first specified article up to the current last article for the
            group are included.

    Returns:
        The range as a string that can be used by an NNTP command.

    Note: Sample valid formats.
        4678
        (4245,)
        (4245, 5234)
    """
    if isinstance(obj, int):
        return str(obj)

    if isinstance(obj, tuple):
        if len(obj) == 1:
            return f"{obj[0]}-"
        if len(obj) == 2:
            return f"{obj[0]}-{obj[1]}"
        raise ValueError("Invalid range format")

    raise ValueError("Must be an integer or tuple")


def unparse_msgid_range(obj: Union[str, Range]) -> str:
    """Unparse a message-id or range argument.

    Args:
        obj: A message id as a string or a range as specified by
            unparse_range().

    Raises:
        ValueError: If obj is not a valid message id or range format. See
            unparse_range() for valid range formats.

    Returns:
        A message id or range as a string that can be used by an NNTP command.
    """
    if isinstance(obj, str):
        return obj

    return unparse_range(obj)


def unparse_timestamp(timestamp: datetime) -> str:
    """Unparse a timestamp for the NEWGROUPS and NEWNEWS commands.

    A naive timestamp is taken to be in GMT already; an aware timestamp is
    converted to GMT.
    """
    if timestamp.tzinfo:
        ts = timestamp.astimezone(timezone.utc)
    else:
        ts = timestamp.replace(tzinfo=timezone.utc)
    return ts.strftime("%Y%m%d %H%M%S") + " GMT"


def unparse_headers(hdrs: Union[str, Mapping[str, str]]) -> str:
    """Unparse headers to a header block without the separating blank line.

    Args:
        hdrs: A pre-formatted header block or a mapping of header names to
            values.
    """
    if isinstance(hdrs, str):
        return hdrs.rstrip("\r\n")
    return "\r\n".join(f"{name}: {value}" for name, value in hdrs.items())


def parse_group_summary(text: str) -> GroupSummary:
    """Parse the status text of a 211 response.

    Args:
        text: The status text, for example "5 100 104 misc.test".

    Raises:
        ValueError: If the text does not hold a count, low and high water
            marks and a group name.
    """
    parts = text.split(None, 4)
    try:
        count = int(parts[0])
        first = int(parts[1])
        last = int(parts[2])
        group = parts[3]
    except (IndexError, ValueError):
        raise ValueError(f'Invalid group summary "{text}"')
    return GroupSummary(group, first, last, count)


def parse_article_pointer(text: str) -> ArticlePointer:
    """Parse the status text of a 223 response to (number, message-id)."""
    parts = text.split(None, 2)
    try:
        number = int(parts[0])
        msgid = parts[1]
    except (IndexError, ValueError):
        raise ValueError(f'Invalid article pointer "{text}"')
    return ArticlePointer(number, msgid)


def parse_newsgroup(line: str) -> Newsgroup:
    """Parse a newsgroup info line to python types.

    Args:
        line: A line from a LIST ACTIVE or NEWGROUPS response in the format
            "name high low status".

    Returns:
        A tuple of group name, high-water as integer, low-water as integer
        and posting status.

    Raises:
        ValueError: If the newsgroup info cannot be parsed.

    Note:
        Posting status is a character is one of (but not limited to):
            "y" posting allowed
            "n" posting not allowed
            "m" posting is moderated
    """
    parts = line.split()
    try:
        name = parts[0]
        high = int(parts[1])
        low = int(parts[2])
        status = parts[3]
    except (IndexError, ValueError):
        raise ValueError("Invalid newsgroup info")
    return Newsgroup(name, high, low, status)


def parse_description(line: str) -> tuple[str, str]:
    """Parse a "name description" line of LIST NEWSGROUPS or XGTITLE."""
    parts = line.strip().split(None, 1)
    if not parts:
        raise ValueError("Empty description line")
    return parts[0], parts[1] if len(parts) > 1 else ""


def parse_numbered(line: str) -> tuple[int, str]:
    """Parse a "number value" line of XHDR, XPAT and XROVER."""
    parts = line.split(None, 1)
    try:
        number = int(parts[0])
    except (IndexError, ValueError):
        raise ValueError(f'Invalid numbered line "{line}"')
    return number, parts[1].strip() if len(parts) > 1 else ""


def parse_overview_fmt(line: str) -> tuple[str, bool]:
    """Parse a LIST OVERVIEW.FMT line to (name, full).

    Both the RFC2980 ("Subject:", "Xref:full") and RFC3977 (":bytes")
    styles are accepted.
    """
    try:
        name, suffix = line.strip().split(":")
    except ValueError:
        raise ValueError("Invalid LIST OVERVIEW.FMT")
    if suffix and not name:
        name, suffix = suffix, name
    if suffix and suffix.lower() != "full":
        raise ValueError("Invalid LIST OVERVIEW.FMT")
    return name, bool(suffix)


def join_args(args: Iterable[Union[str, int, None]]) -> str:
    """Join command arguments, leaving out the ones that are None."""
    return " ".join(str(arg) for arg in args if arg is not None)
