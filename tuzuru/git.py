"""Git history access for Tuzuru.

Authorship and publication dates come from git. For every post the reader
walks ``git log --follow`` (newest first) and picks one authoritative
record:

- the most recent commit whose subject starts with ``[tuzuru amend]``, if any;
- otherwise the oldest commit, i.e. the one that introduced the file.

A marker is authoritative in full: its author and its date both win, even
when later ordinary commits exist. Reading history never raises; any git
failure simply means "no provenance" and the caller falls back to defaults.
"""

from __future__ import annotations

import shutil
import subprocess
from collections.abc import Callable, Sequence
from datetime import datetime
from pathlib import Path

from .logging import get_logger
from .models import GitLog
from .utils import GIT_DATE_FORMAT

AMEND_MARKER = "[tuzuru amend]"

_FIELD_SEP = "\x1f"
_RECORD_SEP = "\x1e"
LOG_FORMAT = "%H%x1f%s%x1f%an%x1f%ae%x1f%ai%x1e"

GitRunner = Callable[[Sequence[str], Path], str]

logger = get_logger("git")


def run_git(args: Sequence[str], cwd: Path) -> str:
    """Run a git command and return its standard output.

    Args:
        args: Arguments after ``git``.
        cwd: Working directory for the command.

    Returns:
        Captured standard output.

    Raises:
        FileNotFoundError: If no git executable is on PATH.
        subprocess.CalledProcessError: If git exits with a non-zero status.
    """
    git_bin = shutil.which("git")
    if not git_bin:
        raise FileNotFoundError("git executable not found on PATH")
    completed = subprocess.run(
        [git_bin, *args],
        cwd=cwd,
        check=True,
        capture_output=True,
        text=True,
        encoding="utf-8",
    )
    return completed.stdout


def parse_log(output: str) -> list[GitLog]:
    """Parse ``git log`` output produced with LOG_FORMAT.

    Records with a missing field or an unparsable date are dropped one by
    one; the rest of the history is kept.

    Args:
        output: Raw standard output of ``git log``.

    Returns:
        Parsed records in the order git printed them (newest first).
    """
    records: list[GitLog] = []
    for chunk in output.split(_RECORD_SEP):
        chunk = chunk.strip("\n")
        if not chunk:
            continue
        fields = chunk.split(_FIELD_SEP)
        if len(fields) != 5:
            logger.debug("Skipping malformed git log record: %r", chunk)
            continue
        commit_hash, message, author, email, raw_date = fields
        try:
            date = datetime.strptime(raw_date.strip(), GIT_DATE_FORMAT)
        except ValueError:
            logger.debug("Skipping git log record %s with bad date %r", commit_hash, raw_date)
            continue
        records.append(
            GitLog(
                commit_hash=commit_hash.strip(),
                message=message,
                author=author,
                email=email,
                date=date,
            )
        )
    return records


def select_base_commit(history: Sequence[GitLog]) -> GitLog | None:
    """Pick the authoritative record from a newest-first history."""
    for record in history:
        if record.message.startswith(AMEND_MARKER):
            return record
    if history:
        return history[-1]
    return None


class GitLogReader:
    """Read and interpret the revision history of source files.

    Attributes:
        working_directory: Directory git is run from, inside the repository.
    """

    def __init__(self, working_directory: Path, runner: GitRunner | None = None):
        self.working_directory = working_directory
        self._runner = runner or run_git

    def history(self, path: Path) -> list[GitLog]:
        """Return the parsed history of a file, newest first.

        Renames are followed. Any failure to run git yields an empty list.
        """
        args = ["log", "--follow", f"--pretty=format:{LOG_FORMAT}", "--", str(path)]
        try:
            output = self._runner(args, self.working_directory)
        except (OSError, subprocess.SubprocessError) as exc:
            logger.debug("git log failed for %s: %s", path, exc)
            return []
        return parse_log(output)

    def base_commit(self, path: Path) -> GitLog | None:
        """Return the record that defines a file's author and publication date.

        Args:
            path: File to resolve.

        Returns:
            The latest ``[tuzuru amend]`` record if one exists, else the oldest
            record, else None when the file has no readable history.
        """
        return select_base_commit(self.history(path))
