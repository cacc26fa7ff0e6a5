"""Value types shared across the Tuzuru pipeline.

Documents move through three shapes: a ``RawPost`` produced by the loader,
a ``Post`` produced by the markdown processor, and the ``RawSource`` /
``Source`` snapshots that bundle a post list with the facets derived from
it. All of them are immutable; a new snapshot is built whenever the post
list changes so facets are never patched in place.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from .config import BlogMetadata


@dataclass(frozen=True)
class GitLog:
    """One entry of a file's revision history.

    Attributes:
        commit_hash: Full commit hash.
        message: Commit subject line.
        author: Author display name.
        email: Author email address.
        date: Author date, with the offset recorded in the commit.
    """

    commit_hash: str
    message: str
    author: str
    email: str
    date: datetime


@dataclass(frozen=True)
class RawPost:
    """A markdown source file paired with its resolved provenance.

    Attributes:
        path: Absolute path to the markdown file.
        author: Resolved author name.
        published_at: Resolved publication date.
        content: Raw markdown text.
        is_unlisted: True for files under the unlisted directory.
    """

    path: Path
    author: str
    published_at: datetime
    content: str
    is_unlisted: bool = False


@dataclass(frozen=True)
class Post:
    """A processed post ready for rendering.

    Attributes:
        path: Absolute path to the markdown file.
        title: Plain text of the first level-1 heading.
        author: Resolved author name.
        published_at: Resolved publication date.
        excerpt: Plain-text summary of the body.
        content: Raw markdown text.
        html_content: Rendered body HTML, without the title heading.
        is_unlisted: True for files under the unlisted directory.
    """

    path: Path
    title: str
    author: str
    published_at: datetime
    excerpt: str
    content: str
    html_content: str
    is_unlisted: bool = False


@dataclass(frozen=True)
class RawSource:
    """Loaded but unprocessed posts plus their facets."""

    metadata: BlogMetadata
    posts: tuple[RawPost, ...]
    years: tuple[str, ...]
    categories: tuple[str, ...]


@dataclass(frozen=True)
class Source:
    """Processed posts plus their facets; the input to page generation."""

    metadata: BlogMetadata
    posts: tuple[Post, ...]
    years: tuple[str, ...]
    categories: tuple[str, ...]

    @property
    def listed_posts(self) -> tuple[Post, ...]:
        return tuple(post for post in self.posts if not post.is_unlisted)
