"""
NNTP command catalog.
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

Every command the client can issue is described by a CommandSpec: the
command verb, and for each response code either the payload that follows a
success or the message of the error a failure maps to. Codes that are not
listed for a command are unexpected.
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from typing import Any, Callable, NamedTuple, Optional, Union

from . import utils

__all__ = [
    "CATALOG",
    "COMMON_FAILURES",
    "CommandSpec",
    "Failure",
    "Payload",
    "Success",
    "lookup",
]


class Payload(Enum):
    NONE = "none"
    STATUS_FIELDS = "status-fields"
    TEXT = "text"
    COMPRESSED = "compressed"
    STATUS_TEXT = "status-text"


class Success(NamedTuple):
    payload: Payload = Payload.NONE
    parser: Optional[Callable[[str], Any]] = None


class Failure(NamedTuple):
    message: str


Outcome = Union[Success, Failure]


class CommandSpec(NamedTuple):
    name: str
    verb: Optional[str]
    responses: Mapping[int, Outcome]
    requires_group: bool = False
    requires_article: bool = False

    def outcome(self, code: int) -> Outcome | None:
        """The outcome of a response code, falling back to COMMON_FAILURES."""
        outcome = self.responses.get(code)
        if outcome is None:
            outcome = COMMON_FAILURES.get(code)
        return outcome


# Codes any command may get (RFC3977 section 3.2.1).
COMMON_FAILURES: Mapping[int, Failure] = {
    480: Failure("Authentication required"),
    483: Failure("Encryption required"),
    500: Failure("Unknown command"),
    501: Failure("Syntax error in command"),
    502: Failure("Command not permitted / Access restriction / Permission denied"),
    503: Failure("Program fault or feature not supported"),
}

NO_GROUP = Failure("No newsgroup has been selected")
NO_ARTICLE = Failure("No current article has been selected")
NO_SUCH_NUMBER = Failure("No such article number in this group")
NO_SUCH_ID = Failure("No such article found")
NO_PERMISSION = Failure("No permission")

GROUP_SELECTED = Success(Payload.STATUS_FIELDS, utils.parse_group_summary)
ARTICLE_SELECTED = Success(Payload.STATUS_FIELDS, utils.parse_article_pointer)
TEXT = Success(Payload.TEXT)
COMPRESSED = Success(Payload.COMPRESSED)
DONE = Success()


def _article(name: str, code: int) -> CommandSpec:
    return CommandSpec(
        name,
        name,
        {
            code: TEXT,
            412: NO_GROUP,
            420: NO_ARTICLE,
            423: NO_SUCH_NUMBER,
            430: NO_SUCH_ID,
        },
        requires_group=True,
        requires_article=True,
    )


def _pointer(name: str, missing: int, message: str) -> CommandSpec:
    return CommandSpec(
        name,
        name,
        {
            223: ARTICLE_SELECTED,
            412: NO_GROUP,
            420: NO_ARTICLE,
            missing: Failure(message),
        },
        requires_group=True,
        requires_article=True,
    )


def _overview(name: str, body: Success) -> CommandSpec:
    return CommandSpec(
        name,
        name,
        {
            224: body,
            412: Failure("No news group current selected"),
            420: Failure("No article(s) selected"),
            423: Failure("No articles in that range"),
            502: NO_PERMISSION,
        },
        requires_group=True,
    )


def _header(name: str, body: Success) -> CommandSpec:
    return CommandSpec(
        name,
        name,
        {
            221: body,
            412: Failure("No news group current selected"),
            420: Failure("No current article selected"),
            430: Failure("No such article"),
            502: NO_PERMISSION,
        },
        requires_group=True,
    )


def _list(name: str, success: int = 215, fault: bool = False) -> CommandSpec:
    responses: dict[int, Outcome] = {success: TEXT}
    if fault:
        responses[503] = Failure("Internal server error, function not performed")
    return CommandSpec(name, name, responses)


_SPECS = [
    # session administration
    CommandSpec(
        "MODE READER",
        "MODE READER",
        {
            200: Success(Payload.STATUS_TEXT),
            201: Success(Payload.STATUS_TEXT),
            502: Failure("Connection being closed, since service so permanently unavailable"),
        },
    ),
    CommandSpec("CAPABILITIES", "CAPABILITIES", {101: TEXT}),
    CommandSpec("QUIT", "QUIT", {205: DONE}),
    CommandSpec(
        "STARTTLS",
        "STARTTLS",
        {
            382: DONE,
            502: Failure("TLS not permitted"),
            580: Failure("Can not initiate TLS negotiation"),
        },
    ),
    CommandSpec(
        "AUTHINFO USER",
        "AUTHINFO USER",
        {
            281: DONE,
            381: DONE,
            482: Failure("Authentication rejected"),
            502: Failure("Authentication rejected"),
        },
    ),
    CommandSpec(
        "AUTHINFO PASS",
        "AUTHINFO PASS",
        {
            281: DONE,
            381: Failure("Authentication uncompleted"),
            482: Failure("Authentication rejected"),
            502: Failure("Authentication rejected"),
        },
    ),
    # group and article selection
    CommandSpec(
        "GROUP",
        "GROUP",
        {211: GROUP_SELECTED, 411: Failure("No such news group")},
    ),
    CommandSpec(
        "LISTGROUP",
        "LISTGROUP",
        {
            211: TEXT,
            411: Failure("No such news group"),
            412: Failure("Not currently in newsgroup"),
            502: NO_PERMISSION,
        },
    ),
    _pointer("LAST", 422, "No previous article in this group"),
    _pointer("NEXT", 421, "No next article in this group"),
    CommandSpec(
        "STAT",
        "STAT",
        {
            223: ARTICLE_SELECTED,
            412: NO_GROUP,
            420: NO_ARTICLE,
            423: NO_SUCH_NUMBER,
            430: NO_SUCH_ID,
        },
        requires_group=True,
        requires_article=True,
    ),
    # retrieval
    _article("ARTICLE", 220),
    _article("HEAD", 221),
    _article("BODY", 222),
    # posting, the second phase of a transfer has no verb
    CommandSpec("POST", "POST", {340: DONE, 440: Failure("Posting not allowed")}),
    CommandSpec(
        "POST ARTICLE",
        None,
        {240: Success(Payload.STATUS_TEXT), 441: Failure("Posting failed")},
    ),
    CommandSpec(
        "IHAVE",
        "IHAVE",
        {
            335: DONE,
            435: Failure("Article not wanted"),
            436: Failure("Transfer not possible; try again later"),
        },
    ),
    CommandSpec(
        "IHAVE ARTICLE",
        None,
        {
            235: Success(Payload.STATUS_TEXT),
            436: Failure("Transfer not possible; try again later"),
            437: Failure("Transfer rejected; do not retry"),
        },
    ),
    # information
    CommandSpec("DATE", "DATE", {111: Success(Payload.STATUS_TEXT)}),
    CommandSpec("HELP", "HELP", {100: TEXT}),
    CommandSpec("NEWGROUPS", "NEWGROUPS", {231: TEXT}),
    CommandSpec("NEWNEWS", "NEWNEWS", {230: TEXT}),
    # lists
    _list("LIST"),
    _list("LIST ACTIVE"),
    _list("LIST ACTIVE.TIMES"),
    _list("LIST NEWSGROUPS", fault=True),
    _list("LIST OVERVIEW.FMT", fault=True),
    _list("LIST HEADERS"),
    _list("LIST EXTENSIONS", success=202),
    CommandSpec(
        "XGTITLE",
        "XGTITLE",
        {282: TEXT, 481: Failure("Groups and descriptions unavailable")},
    ),
    # overview and headers
    _overview("OVER", TEXT),
    _overview("XOVER", TEXT),
    _overview("XZVER", COMPRESSED),
    _overview("XROVER", TEXT),
    _header("XHDR", TEXT),
    _header("XZHDR", COMPRESSED),
    CommandSpec(
        "XPAT",
        "XPAT",
        {
            221: TEXT,
            430: Failure("No such article"),
            502: NO_PERMISSION,
        },
    ),
    CommandSpec("XFEATURE COMPRESS GZIP", "XFEATURE COMPRESS GZIP", {290: DONE}),
]

CATALOG: Mapping[str, CommandSpec] = {spec.name: spec for spec in _SPECS}


def lookup(name: str) -> CommandSpec:
    """Returns the CommandSpec for a command name.

    Raises:
        KeyError: If the command is not in the catalog.
    """
    return CATALOG[name.upper()]
