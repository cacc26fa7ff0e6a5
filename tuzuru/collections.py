from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from typing import Union

from .models import Post, RawPost
from .paths import CategoryResolver

PostLike = Union[RawPost, Post]


def year_of(post: PostLike) -> str:
    return f"{post.published_at.year:04d}"


class PostCollection(Sequence[PostLike]):
    """Lightweight helper for filtering, ordering and faceting posts."""

    def __init__(self, posts: Iterable[PostLike]):
        self._posts = list(posts)

    def __iter__(self) -> Iterator[PostLike]:
        return iter(self._posts)

    def __len__(self) -> int:
        return len(self._posts)

    def __getitem__(self, item):
        return self._posts[item]

    def listed(self) -> PostCollection:
        return PostCollection(p for p in self._posts if not p.is_unlisted)

    def sorted(self) -> PostCollection:
        """Sort posts newest first, breaking ties by path.

        Two stable passes: path ascending, then publication date descending.

        Returns:
            A new PostCollection with sorted posts.
        """
        by_path = sorted(self._posts, key=lambda p: p.path.as_posix())
        return PostCollection(sorted(by_path, key=lambda p: p.published_at, reverse=True))

    def in_year(self, year: str) -> PostCollection:
        return PostCollection(p for p in self._posts if year_of(p) == year)

    def in_category(self, category: str, resolver: CategoryResolver) -> PostCollection:
        return PostCollection(p for p in self._posts if resolver.category(p.path) == category)

    def years(self) -> tuple[str, ...]:
        """Distinct publication years of listed posts, newest first."""
        return tuple(sorted({year_of(p) for p in self.listed()}, reverse=True))

    def categories(self, resolver: CategoryResolver) -> tuple[str, ...]:
        """Distinct categories of listed posts, alphabetically."""
        found = {resolver.category(p.path) for p in self.listed()}
        return tuple(sorted(c for c in found if c))

    def __repr__(self) -> str:  # pragma: no cover - for debugging
        return f"PostCollection({len(self._posts)} posts)"
