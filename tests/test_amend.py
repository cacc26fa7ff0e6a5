import subprocess
from datetime import datetime, timedelta, timezone

import pytest

from conftest import requires_git

from tuzuru.amend import FileAmender, split_author
from tuzuru.errors import GitCommandError, InvalidDateError, SourceFileNotFoundError, TuzuruError
from tuzuru.git import AMEND_MARKER, GitLogReader


@pytest.mark.parametrize(
    "value, expected",
    [
        ("Jane Doe", ("Jane Doe", "janedoe@tuzuru.amend")),
        ("Jane Doe <jane@example.com>", ("Jane Doe", "jane@example.com")),
        ("  Kai  ", ("Kai", "kai@tuzuru.amend")),
    ],
)
def test_split_author(value, expected):
    assert split_author(value) == expected


def test_prepare_rejects_missing_file(tmp_path, fake_history):
    amender = FileAmender(tmp_path, history=fake_history())
    with pytest.raises(SourceFileNotFoundError):
        amender.prepare(tmp_path / "missing.md", author="Kai")


def test_prepare_requires_a_value(tmp_path, fake_history):
    (tmp_path / "post.md").write_text("# Post\n", encoding="utf-8")
    amender = FileAmender(tmp_path, history=fake_history())
    with pytest.raises(TuzuruError) as excinfo:
        amender.prepare(tmp_path / "post.md")
    assert "Specify" in excinfo.value.message


def test_prepare_rejects_unparsable_date(tmp_path, fake_history):
    (tmp_path / "post.md").write_text("# Post\n", encoding="utf-8")
    amender = FileAmender(tmp_path, history=fake_history())
    with pytest.raises(InvalidDateError):
        amender.prepare(tmp_path / "post.md", published_at="next tuesday")


def test_prepare_carries_current_values_forward(tmp_path, fake_history, record):
    (tmp_path / "post.md").write_text("# Post\n", encoding="utf-8")
    history = fake_history({"post.md": record(author="Alice", date="2024-01-15 10:00:00 +0000")})
    amender = FileAmender(tmp_path, history=history)

    request = amender.prepare(tmp_path / "post.md", published_at="2023-06-01")
    assert request.author == "Alice"
    assert request.email == "alice@example.com"
    assert request.date == datetime(2023, 6, 1, tzinfo=timezone.utc)

    request = amender.prepare(tmp_path / "post.md", author="Bob <bob@example.com>")
    assert request.author == "Bob"
    assert request.date == datetime(2024, 1, 15, 10, 0, tzinfo=timezone.utc)


def test_relative_path_resolves_against_working_directory(tmp_path, fake_history):
    (tmp_path / "contents").mkdir()
    (tmp_path / "contents" / "post.md").write_text("# Post\n", encoding="utf-8")
    request = FileAmender(tmp_path, history=fake_history()).prepare(
        tmp_path.joinpath("contents", "post.md").relative_to(tmp_path), author="Kai"
    )
    assert request.path == tmp_path / "contents" / "post.md"
    assert request.date is None


def test_git_failure_is_reported(tmp_path, fake_history):
    post = tmp_path / "post.md"
    post.write_text("# Post\n", encoding="utf-8")

    def failing_runner(args, cwd):
        raise subprocess.CalledProcessError(128, ["git", *args], stderr="fatal: not a git repository")

    amender = FileAmender(tmp_path, history=fake_history(), runner=failing_runner)
    with pytest.raises(GitCommandError) as excinfo:
        amender.amend(post, author="Kai")
    assert "not a git repository" in excinfo.value.message
    assert post.read_text(encoding="utf-8") == "# Post\n"


def test_failed_commit_restores_post_and_unstages(tmp_path, fake_history):
    post = tmp_path / "post.md"
    post.write_text("# Post\n", encoding="utf-8")
    calls = []

    def runner(args, cwd):
        calls.append(args[0])
        if args[0] == "commit":
            raise subprocess.CalledProcessError(1, ["git", *args], stderr="nothing to commit")
        return ""

    amender = FileAmender(tmp_path, history=fake_history(), runner=runner)
    with pytest.raises(GitCommandError):
        amender.amend(post, author="Kai")
    assert post.read_text(encoding="utf-8") == "# Post\n"
    assert calls == ["add", "commit", "reset"]


@pytest.mark.parametrize(
    "kwargs, fields",
    [
        ({"author": "Kai"}, "author"),
        ({"published_at": "2024-01-01"}, "publishedAt"),
        ({"author": "Kai", "published_at": "2024-01-01"}, "publishedAt and author"),
    ],
)
def test_commit_message_names_updated_fields(tmp_path, fake_history, kwargs, fields):
    post = tmp_path / "post.md"
    post.write_text("# Post\n", encoding="utf-8")
    commands = []

    def runner(args, cwd):
        commands.append(args)
        return ""

    FileAmender(tmp_path, history=fake_history(), runner=runner).amend(post, **kwargs)
    commit_args = next(args for args in commands if args[0] == "commit")
    assert commit_args[2] == f"{AMEND_MARKER} Updated {fields} for post.md"


@requires_git
def test_amend_author_keeps_date(git_repo, commit):
    post = commit("contents/post.md", "# Post\n", author="Alice", date="2024-01-15 10:00:00 +0000")
    record = FileAmender(git_repo).amend(post, author="Zed <zed@example.com>")

    assert record.author == "Zed"
    assert record.email == "zed@example.com"
    assert record.date == datetime(2024, 1, 15, 10, 0, tzinfo=timezone.utc)
    assert record.message == f"{AMEND_MARKER} Updated author for contents/post.md"
    assert post.read_text(encoding="utf-8") == "# Post\n\n"


@requires_git
def test_amend_date_keeps_author_and_offset(git_repo, commit):
    post = commit("contents/post.md", "# Post\n", author="Alice", date="2024-01-15 10:00:00 +0000")
    FileAmender(git_repo).amend(post, published_at="2020-02-02 08:30:00 +0900")
    commit("contents/post.md", "# Post\n\nLater edit.\n", author="Bob", date="2024-05-01 10:00:00 +0000")

    record = GitLogReader(git_repo).base_commit(post)
    assert record.author == "Alice"
    assert record.date.utcoffset() == timedelta(hours=9)
    assert record.date.replace(tzinfo=None) == datetime(2020, 2, 2, 8, 30)


@requires_git
def test_second_amend_wins(git_repo, commit):
    post = commit("contents/post.md", "# Post\n", author="Alice")
    amender = FileAmender(git_repo)
    amender.amend(post, author="First")
    record = amender.amend(post, author="Second")
    assert record.author == "Second"
