from datetime import datetime, timedelta, timezone

import pytest

from tuzuru.html_utils import escape_html, join_root_url
from tuzuru.utils import find_markdown_files, format_git_date, is_year_name, parse_date, walk_directories


@pytest.mark.parametrize(
    "value, expected",
    [
        ("2023-10-15T13:18:50-07:00", datetime(2023, 10, 15, 13, 18, 50, tzinfo=timezone(timedelta(hours=-7)))),
        ("2023-10-15T13:18:50Z", datetime(2023, 10, 15, 13, 18, 50, tzinfo=timezone.utc)),
        ("2025-06-05 08:31:19 +0700", datetime(2025, 6, 5, 8, 31, 19, tzinfo=timezone(timedelta(hours=7)))),
        ("2025-06-05", datetime(2025, 6, 5, tzinfo=timezone.utc)),
        ("2025-06-05 08:30", datetime(2025, 6, 5, 8, 30, tzinfo=timezone.utc)),
        ("15 Oct 2023", datetime(2023, 10, 15, tzinfo=timezone.utc)),
    ],
)
def test_parse_date_formats(value, expected):
    assert parse_date(value) == expected


@pytest.mark.parametrize("value", ["", "   ", "tomorrow", "2024-13-40"])
def test_parse_date_rejects_garbage(value):
    assert parse_date(value) is None


def test_format_git_date_keeps_offset():
    value = datetime(2020, 2, 2, 8, 30, tzinfo=timezone(timedelta(hours=9)))
    assert format_git_date(value) == "2020-02-02 08:30:00 +0900"
    assert format_git_date(datetime(2020, 2, 2)) == "2020-02-02 00:00:00 +0000"


def test_escape_html():
    assert escape_html("<a href=\"x\">Tom & Jerry's</a>") == (
        "&lt;a href=&quot;x&quot;&gt;Tom &amp; Jerry&#39;s&lt;/a&gt;"
    )
    assert escape_html("&amp;") == "&amp;amp;"


def test_join_root_url():
    assert join_root_url("https://example.com/blog/", "/posts/") == "https://example.com/blog/posts/"
    assert join_root_url("https://example.com", "") == "https://example.com/"
    assert join_root_url("", "posts/") == "posts/"


def test_is_year_name():
    assert is_year_name("2024")
    assert not is_year_name("24")
    assert not is_year_name("2024a")
    assert not is_year_name("travel")


def test_find_markdown_files_skips_excluded_and_other_types(tmp_path):
    for relative in ("a.md", "b.markdown", "c.txt", "skip/d.md", "nested/e.MD"):
        path = tmp_path / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("# x\n", encoding="utf-8")
    found = [p.relative_to(tmp_path).as_posix() for p in find_markdown_files(tmp_path, [tmp_path / "skip"])]
    assert found == ["a.md", "b.markdown", "nested/e.MD"]
    assert list(find_markdown_files(tmp_path / "missing")) == []


def test_walk_directories_includes_nested(tmp_path):
    for relative in ("b/deep", "a", "b/c.md"):
        (tmp_path / relative).mkdir(parents=True)
    found = [p.relative_to(tmp_path).as_posix() for p in walk_directories(tmp_path)]
    assert found == [".", "a", "b", "b/c.md", "b/deep"]
    assert list(walk_directories(tmp_path / "missing")) == []
