from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

import pytest

from nntpproto.utils import (
    join_args,
    parse_article_pointer,
    parse_description,
    parse_group_summary,
    parse_newsgroup,
    parse_numbered,
    parse_overview_fmt,
    unparse_headers,
    unparse_msgid_range,
    unparse_range,
    unparse_timestamp,
)

if TYPE_CHECKING:
    from nntpproto.types import Newsgroup, Range


@pytest.mark.parametrize(
    ("range", "expected"),
    [
        (42, "42"),
        ((1, 10), "1-10"),
        ((100,), "100-"),
        pytest.param(None, None, marks=pytest.mark.xfail(raises=ValueError)),
        pytest.param((), None, marks=pytest.mark.xfail(raises=ValueError)),
        pytest.param((1, 10, 20), None, marks=pytest.mark.xfail(raises=ValueError)),
    ],
)
def test_unparse_range(range: Range, expected: str) -> None:  # noqa: A002
    assert unparse_range(range) == expected


@pytest.mark.parametrize(
    ("msgid_range", "expected"),
    [
        ("<msgid1@example.com>", "<msgid1@example.com>"),
        ((1, 10), "1-10"),
        ((100,), "100-"),
        pytest.param(None, None, marks=pytest.mark.xfail(raises=ValueError)),
        pytest.param((), None, marks=pytest.mark.xfail(raises=ValueError)),
        pytest.param((1, 10, 20), None, marks=pytest.mark.xfail(raises=ValueError)),
    ],
)
def test_unparse_msgid_range(msgid_range: str | Range, expected: str) -> None:
    assert unparse_msgid_range(msgid_range) == expected


@pytest.mark.parametrize(
    ("timestamp", "expected"),
    [
        (datetime(2022, 1, 1, 14, 40, 1), "20220101 144001 GMT"),
        (datetime(2022, 1, 1, 14, 40, 1, tzinfo=timezone.utc), "20220101 144001 GMT"),
        (
            datetime(2022, 1, 2, 0, 40, 1, tzinfo=timezone(timedelta(hours=10))),
            "20220101 144001 GMT",
        ),
    ],
)
def test_unparse_timestamp(timestamp: datetime, expected: str) -> None:
    assert unparse_timestamp(timestamp) == expected


def test_unparse_headers() -> None:
    assert unparse_headers({"From": "a@example.com", "Subject": "test"}) == (
        "From: a@example.com\r\nSubject: test"
    )
    assert unparse_headers("From: a@example.com\r\n\r\n") == "From: a@example.com"


@pytest.mark.parametrize(
    ("line", "expected"),
    [
        ("local.test 1 0 y", ("local.test", 1, 0, "y")),
        ("local.test 1 0 n", ("local.test", 1, 0, "n")),
        ("alt.test 20 10 y", ("alt.test", 20, 10, "y")),
        ("alt.test\t20\t10 ?", ("alt.test", 20, 10, "?")),
        ("comp.risks 442001 441099 =comp.risks.moderated", ("comp.risks", 442001, 441099, "=comp.risks.moderated")),
        pytest.param("alt.test", None, marks=pytest.mark.xfail(raises=ValueError)),
        pytest.param("alt.test 10", None, marks=pytest.mark.xfail(raises=ValueError)),
        pytest.param(
            "alt.test 20 10", None, marks=pytest.mark.xfail(raises=ValueError)
        ),
        pytest.param(
            "alt.test twenty 10 y", None, marks=pytest.mark.xfail(raises=ValueError)
        ),
    ],
)
def test_parse_newsgroup(line: str, expected: Newsgroup) -> None:
    assert parse_newsgroup(line) == expected


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("5 100 104 misc.test", ("misc.test", 100, 104, 5)),
        ("0 0 0 misc.empty Group selected", ("misc.empty", 0, 0, 0)),
        pytest.param("5 100 104", None, marks=pytest.mark.xfail(raises=ValueError)),
        pytest.param("misc.test", None, marks=pytest.mark.xfail(raises=ValueError)),
    ],
)
def test_parse_group_summary(text: str, expected: tuple[str, int, int, int]) -> None:
    assert parse_group_summary(text) == expected


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("3000234 <45223423@example.com>", (3000234, "<45223423@example.com>")),
        ("0 <45223423@example.com> status", (0, "<45223423@example.com>")),
        pytest.param("3000234", None, marks=pytest.mark.xfail(raises=ValueError)),
        pytest.param("<a@b> 3000234", None, marks=pytest.mark.xfail(raises=ValueError)),
    ],
)
def test_parse_article_pointer(text: str, expected: tuple[int, str]) -> None:
    assert parse_article_pointer(text) == expected


@pytest.mark.parametrize(
    ("line", "expected"),
    [
        ("misc.test General Usenet testing", ("misc.test", "General Usenet testing")),
        ("misc.test\tGeneral Usenet testing\r\n", ("misc.test", "General Usenet testing")),
        ("misc.test", ("misc.test", "")),
        pytest.param("", None, marks=pytest.mark.xfail(raises=ValueError)),
    ],
)
def test_parse_description(line: str, expected: tuple[str, str]) -> None:
    assert parse_description(line) == expected


@pytest.mark.parametrize(
    ("line", "expected"),
    [
        ("3000 I am just a test article", (3000, "I am just a test article")),
        ("3001 (none)", (3001, "(none)")),
        ("3002", (3002, "")),
        pytest.param("Subject", None, marks=pytest.mark.xfail(raises=ValueError)),
        pytest.param("", None, marks=pytest.mark.xfail(raises=ValueError)),
    ],
)
def test_parse_numbered(line: str, expected: tuple[int, str]) -> None:
    assert parse_numbered(line) == expected


@pytest.mark.parametrize(
    ("line", "expected"),
    [
        ("Subject:", ("Subject", False)),
        ("Xref:full", ("Xref", True)),
        ("Xref:FULL", ("Xref", True)),
        (":bytes", ("bytes", False)),
        pytest.param("Subject", None, marks=pytest.mark.xfail(raises=ValueError)),
        pytest.param("Xref:partial", None, marks=pytest.mark.xfail(raises=ValueError)),
    ],
)
def test_parse_overview_fmt(line: str, expected: tuple[str, bool]) -> None:
    assert parse_overview_fmt(line) == expected


def test_join_args() -> None:
    assert join_args(["GROUP", "misc.test"]) == "GROUP misc.test"
    assert join_args(["ARTICLE", None]) == "ARTICLE"
    assert join_args(["XOVER", "1-10", None, 5]) == "XOVER 1-10 5"
