import logging
import os
import shutil
import subprocess
from datetime import datetime
from pathlib import Path

import pytest

from tuzuru.config import config_from_mapping
from tuzuru.models import GitLog

requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git is not installed")


def run_git(root: Path, *args: str, env=None) -> str:
    completed = subprocess.run(
        ["git", *args],
        cwd=root,
        check=True,
        capture_output=True,
        text=True,
        env=env,
    )
    return completed.stdout


@pytest.fixture
def git_repo(tmp_path, monkeypatch):
    monkeypatch.setenv("GIT_CONFIG_GLOBAL", str(tmp_path / ".gitconfig-test"))
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    repo = tmp_path / "blog"
    repo.mkdir()
    run_git(repo, "init", "-q")
    run_git(repo, "config", "user.name", "Committer")
    run_git(repo, "config", "user.email", "committer@example.com")
    run_git(repo, "config", "commit.gpgsign", "false")
    return repo


@pytest.fixture
def commit(git_repo):
    def _commit(
        relative: str,
        content: str,
        author: str = "Alice",
        email: str = "alice@example.com",
        date: str = "2024-01-15 10:00:00 +0000",
        message: str = "Add post",
    ) -> Path:
        path = git_repo / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        run_git(git_repo, "add", relative)
        env = {
            **os.environ,
            "GIT_AUTHOR_NAME": author,
            "GIT_AUTHOR_EMAIL": email,
            "GIT_AUTHOR_DATE": date,
            "GIT_COMMITTER_DATE": date,
        }
        run_git(git_repo, "commit", "-q", "-m", message, env=env)
        return path

    return _commit


class FakeHistory:
    """History reader returning fixed records keyed by file name."""

    def __init__(self, records=None):
        self.records = records or {}
        self.calls = []

    def base_commit(self, path):
        self.calls.append(path)
        return self.records.get(path.name)


def make_record(author="Alice", date="2024-01-15 10:00:00 +0000", message="Add post"):
    return GitLog(
        commit_hash="0" * 40,
        message=message,
        author=author,
        email=f"{author.lower()}@example.com",
        date=datetime.strptime(date, "%Y-%m-%d %H:%M:%S %z"),
    )


@pytest.fixture
def fake_history():
    return FakeHistory


@pytest.fixture
def record():
    return make_record


@pytest.fixture
def tuzuru_caplog(caplog, monkeypatch):
    monkeypatch.setattr(logging.getLogger("tuzuru"), "propagate", True)
    caplog.set_level(logging.DEBUG, logger="tuzuru")
    return caplog


@pytest.fixture
def project(tmp_path):
    """A project root with contents, unlisted and assets folders."""
    root = tmp_path / "site"
    (root / "contents" / "unlisted").mkdir(parents=True)
    (root / "assets").mkdir()
    (root / "assets" / "main.css").write_text("body {}", encoding="utf-8")
    return root


@pytest.fixture
def make_config():
    def _make(root: Path, **sections):
        return config_from_mapping(root, sections)

    return _make
