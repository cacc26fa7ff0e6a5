"""Content processing for Tuzuru.

Turns a ``RawPost`` into a ``Post``: title, rendered body and excerpt. The
passes run in a fixed order on one token tree:

1. Title extraction and excision (fails with MissingTitleError).
2. X status URLs become embeds.
3. Remaining bare URLs become links.
4. Code block contents are escaped.
5. HTML rendering, then list item tightening.
6. Excerpt extraction.

Key classes:
- MarkdownProcessor: Runs the pipeline for one post or many.
"""

from __future__ import annotations

import os
from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor

from .collections import PostCollection
from .errors import MissingTitleError
from .extractors import DEFAULT_EXCERPT_LENGTH, ExcerptExtractor, TitleExtractor
from .logging import get_logger
from .models import Post, RawPost, RawSource, Source
from .paths import CategoryResolver
from .renderers import parse_markdown, render_tokens, tighten_list_items
from .rewriters import CodeBlockHTMLEscaper, TokenRewriter, URLLinker, XPostLinkConverter

logger = get_logger("content")


def default_worker_count() -> int:
    """Leave one core free for the main thread."""
    return max(1, (os.cpu_count() or 2) - 1)


class MarkdownProcessor:
    """Transform markdown posts into rendered posts.

    The processor holds no per-document state, so one instance can serve
    many worker threads.

    Attributes:
        excerpt_length: Maximum excerpt length in characters.
    """

    def __init__(self, excerpt_length: int = DEFAULT_EXCERPT_LENGTH):
        self.excerpt_length = excerpt_length

    def _rewriters(self) -> list[TokenRewriter]:
        return [XPostLinkConverter(), URLLinker(), CodeBlockHTMLEscaper()]

    def process(self, raw_post: RawPost) -> Post:
        """Process a single post.

        Args:
            raw_post: Loaded markdown post.

        Returns:
            The processed post.

        Raises:
            MissingTitleError: If the document has no level-1 heading.
        """
        tokens = parse_markdown(raw_post.content)
        title, body = TitleExtractor().extract(tokens)
        if title is None:
            raise MissingTitleError(raw_post.path)
        for rewriter in self._rewriters():
            body = rewriter.rewrite(body)
        html_content = tighten_list_items(render_tokens(body))
        excerpt = ExcerptExtractor(self.excerpt_length).extract(body)
        return Post(
            path=raw_post.path,
            title=title,
            author=raw_post.author,
            published_at=raw_post.published_at,
            excerpt=excerpt,
            content=raw_post.content,
            html_content=html_content,
            is_unlisted=raw_post.is_unlisted,
        )

    def process_all(
        self, raw_posts: Iterable[RawPost], max_workers: int | None = None
    ) -> list[Post]:
        """Process many posts on a thread pool.

        The first failure propagates once the pool has drained. Results keep
        the input order.
        """
        posts = list(raw_posts)
        if not posts:
            return []
        workers = min(max_workers or default_worker_count(), len(posts))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            return list(executor.map(self.process, posts))

    def process_source(
        self,
        raw_source: RawSource,
        resolver: CategoryResolver,
        max_workers: int | None = None,
    ) -> Source:
        """Process every post of a loaded source and recompute its facets."""
        posts = PostCollection(self.process_all(raw_source.posts, max_workers)).sorted()
        logger.debug("Processed %d posts", len(posts))
        return Source(
            metadata=raw_source.metadata,
            posts=tuple(posts),
            years=posts.years(),
            categories=posts.categories(resolver),
        )
