import subprocess
from datetime import datetime, timedelta, timezone

from conftest import requires_git, run_git

from tuzuru.git import AMEND_MARKER, GitLogReader, parse_log, select_base_commit


def _log_output(*records):
    return "".join("\x1f".join(fields) + "\x1e\n" for fields in records)


def test_parse_log_reads_records_and_offsets():
    output = _log_output(
        ("b" * 40, "Fix typo", "Bob", "bob@example.com", "2024-03-01 12:30:00 +0900"),
        ("a" * 40, "Add post", "Alice", "alice@example.com", "2024-01-15 10:00:00 +0000"),
    )
    records = parse_log(output)
    assert [r.author for r in records] == ["Bob", "Alice"]
    assert records[0].date.utcoffset() == timedelta(hours=9)
    assert records[1].date == datetime(2024, 1, 15, 10, 0, tzinfo=timezone.utc)


def test_parse_log_drops_bad_records_only():
    output = _log_output(
        ("c" * 40, "Broken", "Carol", "carol@example.com", "not a date"),
        ("a" * 40, "Add post", "Alice", "alice@example.com", "2024-01-15 10:00:00 +0000"),
    )
    output += "truncated\x1frecord\x1e"
    records = parse_log(output)
    assert len(records) == 1
    assert records[0].author == "Alice"


def test_parse_log_keeps_empty_subject():
    output = _log_output(("a" * 40, "", "Alice", "alice@example.com", "2024-01-15 10:00:00 +0000"))
    assert parse_log(output)[0].message == ""


def test_select_base_commit_prefers_latest_marker(record):
    history = [
        record(author="Later", message="Edit"),
        record(author="Newest marker", message=f"{AMEND_MARKER} Updated"),
        record(author="Older marker", message=f"{AMEND_MARKER} Updated"),
        record(author="Creator", message="Add post"),
    ]
    assert select_base_commit(history).author == "Newest marker"


def test_select_base_commit_falls_back_to_oldest(record):
    history = [record(author="Editor"), record(author="Creator")]
    assert select_base_commit(history).author == "Creator"
    assert select_base_commit([]) is None


def test_reader_swallows_git_failures(tmp_path):
    def failing_runner(args, cwd):
        raise subprocess.CalledProcessError(128, ["git", *args], stderr="not a git repository")

    reader = GitLogReader(tmp_path, runner=failing_runner)
    assert reader.history(tmp_path / "post.md") == []
    assert reader.base_commit(tmp_path / "post.md") is None


def test_reader_passes_follow_and_path(tmp_path):
    seen = {}

    def runner(args, cwd):
        seen["args"] = args
        seen["cwd"] = cwd
        return ""

    GitLogReader(tmp_path, runner=runner).base_commit(tmp_path / "post.md")
    assert seen["args"][:2] == ["log", "--follow"]
    assert seen["args"][-2:] == ["--", str(tmp_path / "post.md")]
    assert seen["cwd"] == tmp_path


@requires_git
def test_oldest_commit_defines_provenance(git_repo, commit):
    commit("contents/post.md", "# Post\n", author="Alice", date="2024-01-15 10:00:00 +0000")
    commit(
        "contents/post.md",
        "# Post\n\nMore.\n",
        author="Bob",
        date="2024-02-01 09:00:00 +0000",
        message="Edit post",
    )
    record = GitLogReader(git_repo).base_commit(git_repo / "contents" / "post.md")
    assert record.author == "Alice"
    assert record.date == datetime(2024, 1, 15, 10, 0, tzinfo=timezone.utc)


@requires_git
def test_marker_beats_later_ordinary_commit(git_repo, commit):
    commit("contents/post.md", "# Post\n", author="Alice", date="2024-01-15 10:00:00 +0000")
    commit(
        "contents/post.md",
        "# Post\n\n",
        author="Marker Author",
        date="2023-06-01 08:00:00 +0200",
        message=f"{AMEND_MARKER} Updated publishedAt and author for contents/post.md",
    )
    commit(
        "contents/post.md",
        "# Post\n\nEdited.\n",
        author="Bob",
        date="2024-03-01 09:00:00 +0000",
        message="Edit post",
    )
    record = GitLogReader(git_repo).base_commit(git_repo / "contents" / "post.md")
    assert record.author == "Marker Author"
    assert record.date.utcoffset() == timedelta(hours=2)
    assert record.date.replace(tzinfo=None) == datetime(2023, 6, 1, 8, 0)


@requires_git
def test_history_follows_renames(git_repo, commit):
    commit("contents/old.md", "# Post\n\nSome body text that git can track.\n", author="Alice")
    (git_repo / "contents" / "new.md").parent.mkdir(parents=True, exist_ok=True)
    run_git(git_repo, "mv", "contents/old.md", "contents/new.md")
    run_git(git_repo, "commit", "-q", "-m", "Rename")
    record = GitLogReader(git_repo).base_commit(git_repo / "contents" / "new.md")
    assert record.author == "Alice"


@requires_git
def test_uncommitted_file_has_no_provenance(git_repo):
    path = git_repo / "draft.md"
    path.write_text("# Draft\n", encoding="utf-8")
    assert GitLogReader(git_repo).base_commit(path) is None


@requires_git
def test_outside_repository_has_no_provenance(tmp_path, monkeypatch):
    monkeypatch.setenv("GIT_CEILING_DIRECTORIES", str(tmp_path))
    outside = tmp_path / "plain"
    outside.mkdir()
    path = outside / "post.md"
    path.write_text("# Post\n", encoding="utf-8")
    assert GitLogReader(outside).base_commit(path) is None
