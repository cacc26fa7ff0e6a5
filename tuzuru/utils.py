"""Utility helpers for Tuzuru.

Small, dependency-free functions shared by the loader, the amend workflow
and the integrity subsystem.
"""

from __future__ import annotations

import os
import re
from collections.abc import Iterable, Iterator
from datetime import datetime, timezone
from pathlib import Path

MARKDOWN_SUFFIXES = (".md", ".markdown")
GIT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S %z"

_YEAR_RE = re.compile(r"^\d{4}$")

# Tried in order; values without an offset are read as UTC.
_DATE_FORMATS = (
    "%Y-%m-%dT%H:%M:%S%z",
    "%Y-%m-%dT%H:%M:%S.%f%z",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%d %H:%M:%S %z",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M",
    "%Y-%m-%d",
    "%d %b %Y",
    "%d/%m/%Y",
    "%m/%d/%Y",
)


def is_markdown(path: Path) -> bool:
    return path.suffix.lower() in MARKDOWN_SUFFIXES


def is_year_name(name: str) -> bool:
    """Return True for names made of exactly four digits, like ``2024``."""
    return bool(_YEAR_RE.match(name))


def is_within(path: Path, root: Path) -> bool:
    try:
        path.relative_to(root)
    except ValueError:
        return False
    return True


def find_markdown_files(root: Path, exclude: Iterable[Path] = ()) -> Iterator[Path]:
    """Yield markdown files under root in a stable order.

    Args:
        root: Directory to scan recursively. A missing directory yields nothing.
        exclude: Directories whose subtrees are skipped.

    Yields:
        Paths of ``.md`` and ``.markdown`` files.
    """
    if not root.is_dir():
        return
    excluded = [path for path in exclude if path != root]
    for path in sorted(root.rglob("*")):
        if not path.is_file() or not is_markdown(path):
            continue
        if any(is_within(path, skip) for skip in excluded):
            continue
        yield path


def walk_directories(root: Path) -> Iterator[Path]:
    """Yield root and every directory below it.

    Adding, renaming or removing a file only changes the mtime of the
    directory that directly holds it.
    """
    if not root.is_dir():
        return
    yield root
    for dirpath, dirnames, _ in os.walk(root):
        dirnames.sort()
        for name in dirnames:
            yield Path(dirpath) / name


def parse_date(value: str) -> datetime | None:
    """Parse a user-supplied date in one of several common formats.

    Accepts ISO 8601 (``2023-10-15T13:18:50-07:00``, ``...Z``), git style
    (``2025-06-05 08:31:19 +0700``), date only (``2025-06-05``) and a few
    legacy forms such as ``15 Oct 2023``.

    Args:
        value: The date string.

    Returns:
        A timezone-aware datetime, or None when no format matches.

    Examples:
        >>> parse_date("2025-06-05").isoformat()
        '2025-06-05T00:00:00+00:00'
    """
    text = value.strip()
    if not text:
        return None
    for fmt in _DATE_FORMATS:
        try:
            parsed = datetime.strptime(text, fmt)
        except ValueError:
            continue
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed
    return None


def format_git_date(value: datetime) -> str:
    """Format a datetime the way ``git log --pretty=%ai`` prints it."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.strftime(GIT_DATE_FORMAT)
