"""
An NNTP library - a bit more useful than the nntplib one (hopefully).
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
from collections.abc import Iterable, Iterator
from datetime import datetime
from types import TracebackType
from typing import TYPE_CHECKING, Any, Callable, Literal, TypeVar, Union

from . import utils
from .engine import Article, BaseNNTPClient, Response, encode_article
from .errors import NNTPError, NNTPProtocolError
from .types import ArticlePointer, Encryption, GroupSummary, Newsgroup, Range

if TYPE_CHECKING:
    from typing_extensions import Self

__all__ = ["NNTPClient"]

log = logging.getLogger(__name__)

T = TypeVar("T")

Lines = Union[list[str], Iterator[str]]


class NNTPClient(BaseNNTPClient):
    """NNTP NNTPClient.

    One method per command in the catalog. Each method issues its command
    through execute() and converts the response to plain Python values;
    there is no caching and no reformatting beyond splitting lines into
    fields.

    Note: All commands can raise the following exceptions:
            NNTPConnectionError
            NNTPProtocolError
            NNTPUnexpectedResponse
            NNTPCommandRejected
            NNTPStateError

    Note: All commands that use compressed responses can also raise an
        NNTPEncodingError.
    """

    def __init__(
        self,
        host: str | None = None,
        port: int | None = None,
        username: str = "",
        password: str = "",
        timeout: float | None = 15,
        encryption: Union[Encryption, str] = Encryption.NONE,
        reader: bool = True,
    ) -> None:
        """Constructor for NNTP NNTPClient.

        Connects to usenet server when a host is given.

        Args:
            host: Hostname for usenet server. When None, call connect() later.
            port: Port for usenet server.
            username: Username for usenet account
            password: Password for usenet account
            timeout: Connection timeout
            encryption: "none", "tls" or "ssl"
            reader: Use reader mode
        """
        super().__init__(username, password)
        self.selected: GroupSummary | None = None

        if host is not None:
            self.connect(host, encryption, port, timeout)
            if reader:
                self.mode_reader()

    def __enter__(self) -> Self:
        """Support for the 'with' context manager statement."""
        return self

    def __exit__(
        self,
        exc_type: Union[type[BaseException], None],
        exc_val: Union[BaseException, None],
        exc_tb: Union[TracebackType, None],
    ) -> Literal[False]:
        """Support for the 'with' context manager statement."""
        try:
            self.quit()
        except NNTPError:
            self.close()
            raise
        return False

    def _parse(self, parser: Callable[[str], T], lines: Iterable[str]) -> list[T]:
        try:
            return [parser(line) for line in lines]
        except ValueError as e:
            code, text = self.status or (None, "")
            raise NNTPProtocolError(str(e), code, text) from e

    def _lines(self, response: Response) -> list[str]:
        return list(response.lines)

    # session administration commands
    def capabilities(self, keyword: str | None = None) -> list[str]:
        """CAPABILITIES command.

        Determines the capabilities of the server.

        See <http://tools.ietf.org/html/rfc3977#section-5.2>

        Returns:
            The capability lines. The VERSION capability comes first.
        """
        response = self.execute("CAPABILITIES", keyword)
        return [line.strip() for line in response.lines]

    def mode_reader(self) -> bool:
        """MODE READER command.

        Instructs a mode-switching server to switch modes.

        See <http://tools.ietf.org/html/rfc3977#section-5.3>

        Returns:
            Boolean value indicating whether posting is allowed or not.
        """
        response = self.execute("MODE READER")
        self.posting_allowed = response.status.code == 200
        if not self.posting_allowed:
            log.info("Posting not allowed")
        return self.posting_allowed

    def quit(self) -> None:
        """QUIT command.

        Tells the server to close the connection. After the server acknowledges
        the request to quit the connection is closed both at the server and
        client. Only useful for graceful shutdown. If you are in the middle of
        a streamed response use close() instead.

        See <http://tools.ietf.org/html/rfc3977#section-5.4>
        """
        self.disconnect()
        self.selected = None

    # information commands
    def date(self) -> str:
        """DATE command.

        See <http://tools.ietf.org/html/rfc3977#section-7.1>

        Returns:
            The UTC time according to the server, as sent ("YYYYMMDDhhmmss").
        """
        return self.execute("DATE").payload  # type: ignore[no-any-return]

    def help(self) -> list[str]:
        """HELP command.

        See <http://tools.ietf.org/html/rfc3977#section-7.2>
        """
        return self._lines(self.execute("HELP"))

    def newgroups(
        self,
        timestamp: datetime,
        distributions: str | None = None,
    ) -> list[Newsgroup]:
        """NEWGROUPS command.

        Retrieves a list of newsgroups created on the server since the
        specified timestamp.

        See <http://tools.ietf.org/html/rfc3977#section-7.3>

        Note: If the datetime object supplied as the timestamp is naive (tzinfo
            is None) then it is assumed to be given as GMT.
        """
        dist = f"<{distributions}>" if distributions else None
        response = self.execute("NEWGROUPS", utils.unparse_timestamp(timestamp), dist)
        return self._parse(utils.parse_newsgroup, response.lines)

    def newnews(
        self,
        pattern: Union[str, Iterable[str]],
        timestamp: datetime,
        distributions: Union[str, Iterable[str], None] = None,
    ) -> list[str]:
        """NEWNEWS command.

        Retrieves a list of message-ids for articles created since the
        specified timestamp for newsgroups with names that match the given
        pattern.

        See <http://tools.ietf.org/html/rfc3977#section-7.4>
        """
        if not isinstance(pattern, str):
            pattern = ",".join(pattern)
        dist = None
        if distributions is not None:
            if not isinstance(distributions, str):
                distributions = ",".join(distributions)
            dist = f"<{distributions}>"

        response = self.execute(
            "NEWNEWS", pattern, utils.unparse_timestamp(timestamp), dist
        )
        return [line.strip() for line in response.lines]

    # list commands
    def list_active(self, pattern: str | None = None) -> list[Newsgroup]:
        """LIST ACTIVE command.

        See <http://tools.ietf.org/html/rfc3977#section-7.6.3>

        Returns:
            The name, high water mark, low water mark and posting status of
            each newsgroup matching the pattern.
        """
        if pattern is None:
            response = self.execute("LIST")
        else:
            response = self.execute("LIST ACTIVE", pattern)
        return self._parse(utils.parse_newsgroup, response.lines)

    def list_active_times(self) -> list[tuple[str, int, str]]:
        """LIST ACTIVE.TIMES command.

        See <http://tools.ietf.org/html/rfc3977#section-7.6.4>

        Returns:
            The name, creation time (seconds since the epoch) and creator of
            each newsgroup.
        """

        def parse(line: str) -> tuple[str, int, str]:
            parts = line.split()
            try:
                return parts[0], int(parts[1]), parts[2]
            except (IndexError, ValueError):
                raise ValueError("Invalid LIST ACTIVE.TIMES")

        return self._parse(parse, self.execute("LIST ACTIVE.TIMES").lines)

    def list_newsgroups(self, pattern: str | None = None) -> list[tuple[str, str]]:
        """LIST NEWSGROUPS command.

        See <http://tools.ietf.org/html/rfc3977#section-7.6.6>
        """
        response = self.execute("LIST NEWSGROUPS", pattern)
        return self._parse(utils.parse_description, response.lines)

    def list_overview_fmt(self) -> list[tuple[str, bool]]:
        """LIST OVERVIEW.FMT command.

        See <https://tools.ietf.org/html/rfc3977#section-8.4>

        Returns:
            The name of each field and whether the field name is included in
            the field data, in order.
        """
        response = self.execute("LIST OVERVIEW.FMT")
        return self._parse(utils.parse_overview_fmt, response.lines)

    def list_headers(self, variant: Literal["MSGID", "RANGE", None] = None) -> list[str]:
        """LIST HEADERS command.

        See <https://tools.ietf.org/html/rfc3977#section-8.6>
        """
        response = self.execute("LIST HEADERS", variant)
        return [line.strip() for line in response.lines]

    def list_extensions(self) -> list[str]:
        """LIST EXTENSIONS command.

        See <https://tools.ietf.org/html/draft-ietf-nntpext-base-20#section-5.3>
        """
        return [line.strip() for line in self.execute("LIST EXTENSIONS").lines]

    def list(self, keyword: str | None = None, arg: str | None = None) -> Any:
        """LIST command.

        A wrapper for all of the other list commands.

        Note: Keywords supported by this function include ACTIVE, ACTIVE.TIMES,
            HEADERS, NEWSGROUPS, OVERVIEW.FMT and EXTENSIONS.

        Raises:
            NotImplementedError: For unsupported keywords.
        """
        if keyword:
            keyword = keyword.upper()

        if keyword is None or keyword == "ACTIVE":
            return self.list_active(arg)
        if keyword == "ACTIVE.TIMES":
            return self.list_active_times()
        if keyword == "HEADERS" and arg in ("MSGID", "RANGE", None):
            return self.list_headers(arg)  # type: ignore[arg-type]
        if keyword == "NEWSGROUPS":
            return self.list_newsgroups(arg)
        if keyword == "OVERVIEW.FMT":
            return self.list_overview_fmt()
        if keyword == "EXTENSIONS":
            return self.list_extensions()

        raise NotImplementedError

    def xgtitle(self, pattern: str = "*") -> list[tuple[str, str]]:
        """XGTITLE command.

        Deprecated by RFC2980 in favour of LIST NEWSGROUPS.

        See <https://tools.ietf.org/html/rfc2980#section-2.6>
        """
        response = self.execute("XGTITLE", pattern)
        return self._parse(utils.parse_description, response.lines)

    # group and article selection
    def group(self, name: str) -> GroupSummary:
        """GROUP command.

        Selects a newsgroup as the currently selected newsgroup and returns
        summary information about it.

        See <https://tools.ietf.org/html/rfc3977#section-6.1.1>

        Raises:
            NNTPCommandRejected: If no such newsgroup exists.
        """
        summary: GroupSummary = self.execute("GROUP", name).payload
        self.selected = summary
        log.info("Group selected: %s", summary.group)
        return summary

    def listgroup(
        self,
        name: str | None = None,
        range: Union[Range, None] = None,  # noqa: A002
    ) -> tuple[GroupSummary | None, list[int]]:
        """LISTGROUP command.

        Selects a newsgroup (the current one when name is None) and lists the
        article numbers in it.

        See <https://tools.ietf.org/html/rfc3977#section-6.1.2>

        Returns:
            The group summary, or None when the server doesn't send one, and
            the article numbers.
        """
        args = None if range is None else utils.unparse_range(range)
        if name is None and args is not None:
            raise ValueError("A range needs a group name")

        response = self.execute("LISTGROUP", name, args)
        numbers = self._parse(int, response.lines)

        try:
            summary: GroupSummary | None = utils.parse_group_summary(response.status.text)
        except ValueError:
            summary = None
        if summary is not None:
            self.selected = summary

        return summary, numbers

    def last(self) -> ArticlePointer:
        """LAST command.

        Sets the current article number to the previous article in the current
        newsgroup.

        See <https://tools.ietf.org/html/rfc3977#section-6.1.3>
        """
        return self.execute("LAST").payload  # type: ignore[no-any-return]

    def next(self) -> ArticlePointer:
        """NEXT command.

        Sets the current article number to the next article in the current
        newsgroup.

        See <https://tools.ietf.org/html/rfc3977#section-6.1.4>
        """
        return self.execute("NEXT").payload  # type: ignore[no-any-return]

    def stat(self, msgid_article: Union[str, int, None] = None) -> ArticlePointer:
        """STAT command.

        See <https://tools.ietf.org/html/rfc3977#section-6.2.4>
        """
        return self.execute("STAT", msgid_article).payload  # type: ignore[no-any-return]

    # retrieval
    def article(
        self,
        msgid_article: Union[str, int, None] = None,
        stream: bool = False,
    ) -> Lines:
        """ARTICLE command.

        Selects an article according to the arguments and presents the entire
        article (that is, the headers, an empty line, and the body, in that
        order) to the client.

        See <https://tools.ietf.org/html/rfc3977#section-6.2.1>

        Args:
            msgid_article: A message-id as a string, or an article number as an
                integer. A msgid_article of None (the default) uses the current
                article.
            stream: Return an iterator over the lines instead of a list.

        Raises:
            NNTPCommandRejected: If no such article exists.
        """
        return self.execute("ARTICLE", msgid_article, stream=stream).lines

    def head(self, msgid_article: Union[str, int, None] = None) -> list[str]:
        """HEAD command.

        Identical to the ARTICLE command except that only the headers are
        presented.

        See <https://tools.ietf.org/html/rfc3977#section-6.2.2>
        """
        return self._lines(self.execute("HEAD", msgid_article))

    def body(
        self,
        msgid_article: Union[str, int, None] = None,
        stream: bool = False,
    ) -> Lines:
        """BODY command.

        Identical to the ARTICLE command except that only the body is
        presented.

        See <https://tools.ietf.org/html/rfc3977#section-6.2.3>
        """
        return self.execute("BODY", msgid_article, stream=stream).lines

    # posting
    def post(self, article: Article) -> Union[str, bool]:
        """POST command.

        Args:
            article: A pre-formatted article, or a 2-tuple of headers (a
                header block or a dictionary) and body.

        Raises:
            NNTPEncodingError: If illegal characters are found in the article.
                Nothing is sent to the server in that case.

        Returns:
            A value that evaluates to true if posting the message succeeded.
            (See note for further details)

        Note:
            Though not part of any RFC it is common for usenet
            servers to return the message-id for a successfully posted message.
            If a message-id is identified in the response from the server then
            that message-id will be returned by the function, otherwise True
            will be returned.
        """
        data = encode_article(article, self.encoding)

        self.execute("POST")
        response = self.transfer("POST ARTICLE", data)

        # return message-id possible
        parts = response.status.text.split(None, 1)
        if parts and parts[0].startswith("<") and parts[0].endswith(">"):
            return parts[0]

        return True

    def ihave(self, msgid: str, article: Article) -> bool:
        """IHAVE command.

        Offers an article to the server, and transfers it if the server wants
        it.

        See <https://tools.ietf.org/html/rfc3977#section-6.3.2>

        Raises:
            NNTPCommandRejected: If the article is not wanted or the transfer
                fails.
        """
        data = encode_article(article, self.encoding)

        self.execute("IHAVE", msgid)
        self.transfer("IHAVE ARTICLE", data)
        return True

    # overview and headers
    def _overview(self, verb: str, range: Union[Range, None]) -> list[list[str]]:  # noqa: A002
        args = None if range is None else utils.unparse_range(range)
        response = self.execute(verb, args)
        return [line.rstrip("\r\n").split("\t") for line in response.lines]

    def over(self, range: Union[Range, None] = None) -> list[list[str]]:  # noqa: A002
        """OVER command.

        See <https://tools.ietf.org/html/rfc3977#section-8.3>

        Returns:
            The tab separated fields of each overview line. The first field
            is the article number.
        """
        return self._overview("OVER", range)

    def xover(self, range: Union[Range, None] = None) -> list[list[str]]:  # noqa: A002
        """XOVER command.

        The XOVER command returns information from the overview database for
        the article(s) specified.

        <http://tools.ietf.org/html/rfc2980#section-2.8>

        Args:
            range: An article number as an integer, or a tuple of specifying a
                range of article numbers in the form (first, [last]). If last
                is omitted then all articles after first are included. A range
                of None (the default) uses the current article.
        """
        return self._overview("XOVER", range)

    def xzver(self, range: Union[Range, None] = None) -> list[list[str]]:  # noqa: A002
        """XZVER command.

        The compressed version of XOVER. See xover().
        """
        return self._overview("XZVER", range)

    def xrover(self, range: Union[Range, None] = None) -> list[tuple[int, str]]:  # noqa: A002
        """XROVER command.

        Returns the References header of each article in the range.
        """
        args = None if range is None else utils.unparse_range(range)
        return self._parse(utils.parse_numbered, self.execute("XROVER", args).lines)

    def _hdr(
        self,
        verb: str,
        header: str,
        msgid_range: Union[str, Range, None],
    ) -> list[tuple[int, str]]:
        args = None
        if msgid_range is not None:
            args = utils.unparse_msgid_range(msgid_range)
        return self._parse(utils.parse_numbered, self.execute(verb, header, args).lines)

    def xhdr(
        self,
        header: str,
        msgid_range: Union[str, Range, None] = None,
    ) -> list[tuple[int, str]]:
        """XHDR command.

        See <https://tools.ietf.org/html/rfc2980#section-2.6>

        Returns:
            The article number and value of the header for each article.
        """
        return self._hdr("XHDR", header, msgid_range)

    def xzhdr(
        self,
        header: str,
        msgid_range: Union[str, Range, None] = None,
    ) -> list[tuple[int, str]]:
        """XZHDR command.

        The compressed version of XHDR. See xhdr().
        """
        return self._hdr("XZHDR", header, msgid_range)

    def xpat(
        self,
        header: str,
        msgid_range: Union[str, Range],
        *pattern: str,
    ) -> list[str]:
        """XPAT command.

        Used to retrieve specific headers from specific articles, based on
        pattern matching on the contents of the header.

        See <https://tools.ietf.org/html/rfc2980#section-2.9>
        """
        response = self.execute(
            "XPAT", header, utils.unparse_msgid_range(msgid_range), *pattern
        )
        return [line.strip() for line in response.lines]

    def xfeature_compress_gzip(self, terminator: bool = False) -> bool:
        """XFEATURE COMPRESS GZIP command.

        Once enabled the server compresses the responses of overview and
        header commands.
        """
        self.execute("XFEATURE COMPRESS GZIP", "TERMINATOR" if terminator else None)
        return True
