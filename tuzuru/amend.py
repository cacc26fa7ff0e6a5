"""Amend workflow for Tuzuru.

Changes the author or publication date of a post without touching its
content or rewriting history: a one-line change is committed with the
``[tuzuru amend]`` marker and an explicit author and author date. The
history reader then treats that commit as authoritative.

Because the newest marker wins in full, any field the user does not set is
carried forward from the record that is authoritative right now. Amending
only the date therefore keeps the current author, and vice versa.
"""

from __future__ import annotations

import re
import subprocess
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from .errors import GitCommandError, InvalidDateError, SourceFileNotFoundError, TuzuruError
from .git import AMEND_MARKER, GitLogReader, GitRunner, run_git
from .logging import get_logger
from .models import GitLog
from .protocols import HistoryReader
from .utils import format_git_date, parse_date

AMEND_EMAIL_DOMAIN = "tuzuru.amend"
AMEND_DATE_FIELD = "publishedAt"
AMEND_AUTHOR_FIELD = "author"

_AUTHOR_WITH_EMAIL_RE = re.compile(r"^\s*(?P<name>[^<>]+?)\s*<(?P<email>[^<>\s]+)>\s*$")

logger = get_logger("amend")


@dataclass(frozen=True)
class AmendRequest:
    """Resolved values for a marker commit.

    Attributes:
        path: File being amended.
        author: Author name, or None to use git's configured identity.
        email: Author email, or None alongside author.
        date: Author date, or None to let git use the current time.
        updated: Fields the user asked to change, in commit message order.
    """

    path: Path
    author: str | None
    email: str | None
    date: datetime | None
    updated: tuple[str, ...] = ()


def split_author(value: str) -> tuple[str, str]:
    """Split ``Name <email>`` or a bare name into name and email.

    Bare names get a synthetic address: lower-cased, spaces removed, at
    ``tuzuru.amend``.

    Examples:
        >>> split_author("Jane Doe")
        ('Jane Doe', 'janedoe@tuzuru.amend')
        >>> split_author("Jane Doe <jane@example.com>")
        ('Jane Doe', 'jane@example.com')
    """
    match = _AUTHOR_WITH_EMAIL_RE.match(value)
    if match:
        return match.group("name"), match.group("email")
    name = value.strip()
    return name, f"{name.lower().replace(' ', '')}@{AMEND_EMAIL_DOMAIN}"


class FileAmender:
    """Create marker commits that override a post's provenance.

    Attributes:
        working_directory: Directory git runs from, inside the repository.
        history: Provenance lookup used to carry forward unset fields.
    """

    def __init__(
        self,
        working_directory: Path,
        history: HistoryReader | None = None,
        runner: GitRunner | None = None,
    ):
        self.working_directory = working_directory
        self._runner = runner or run_git
        self.history = history or GitLogReader(working_directory, self._runner)

    def prepare(
        self, file_path: Path, published_at: str | None = None, author: str | None = None
    ) -> AmendRequest:
        """Validate input and work out the full author and date to commit.

        Raises:
            SourceFileNotFoundError: If the file does not exist.
            InvalidDateError: If ``published_at`` cannot be parsed.
            TuzuruError: If neither value is given.
        """
        path = file_path if file_path.is_absolute() else self.working_directory / file_path
        if not path.is_file():
            raise SourceFileNotFoundError(path)
        if not published_at and not author:
            raise TuzuruError(path, "Specify a publication date, an author, or both")

        date = None
        if published_at:
            date = parse_date(published_at)
            if date is None:
                raise InvalidDateError(path, f"Could not parse date '{published_at}'")

        current = self.history.base_commit(path)
        if author:
            name, email = split_author(author)
        elif current is not None:
            name, email = current.author, current.email
        else:
            name, email = None, None
        if date is None and current is not None:
            date = current.date
        updated = tuple(
            field for field, value in ((AMEND_DATE_FIELD, published_at), (AMEND_AUTHOR_FIELD, author)) if value
        )
        return AmendRequest(path=path, author=name, email=email, date=date, updated=updated)

    def amend(
        self, file_path: Path, published_at: str | None = None, author: str | None = None
    ) -> GitLog | None:
        """Commit a marker that sets the post's author and publication date.

        Args:
            file_path: Post to amend, absolute or relative to the working directory.
            published_at: New publication date in any format ``parse_date`` accepts.
            author: New author, as ``Name`` or ``Name <email>``.

        Returns:
            The authoritative record after the commit.

        Raises:
            GitCommandError: If staging or committing fails.
        """
        request = self.prepare(file_path, published_at, author)
        path = request.path
        original = path.read_bytes()
        with open(path, "a", encoding="utf-8") as f:
            f.write("\n")

        fields = " and ".join(request.updated)
        message = f"{AMEND_MARKER} Updated {fields} for {self._display(path)}"
        commit_args = ["commit", "-m", message]
        if request.author:
            commit_args.append(f"--author={request.author} <{request.email}>")
        if request.date is not None:
            commit_args.append(f"--date={format_git_date(request.date)}")
        commit_args.extend(["--", str(path)])

        try:
            self._git(["add", "--", str(path)], path)
            self._git(commit_args, path)
        except GitCommandError:
            self._restore(path, original)
            raise
        logger.info("Amended %s", self._display(path))
        return self.history.base_commit(path)

    def _restore(self, path: Path, original: bytes) -> None:
        """Undo the appended newline and unstage the post after a failed commit."""
        path.write_bytes(original)
        try:
            self._git(["reset", "-q", "--", str(path)], path)
        except GitCommandError as exc:
            logger.warning("Could not unstage %s: %s", self._display(path), exc)

    def _git(self, args: list[str], path: Path) -> str:
        try:
            return self._runner(args, self.working_directory)
        except subprocess.CalledProcessError as exc:
            detail = (exc.stderr or exc.stdout or "").strip() or str(exc)
            raise GitCommandError(path, f"git {args[0]} failed: {detail}", exc) from exc
        except OSError as exc:
            raise GitCommandError(path, f"git {args[0]} failed: {exc}", exc) from exc

    def _display(self, path: Path) -> str:
        try:
            return path.relative_to(self.working_directory).as_posix()
        except ValueError:
            return str(path)
