"""Source loading for Tuzuru.

Discovers markdown posts, resolves each post's provenance from git and reads
its text. Per-file work runs on a thread pool; the results are collected
and sorted in one place afterwards.

Key classes:
- SourceLoader: Builds a RawSource from the configured directories.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from pathlib import Path

from .collections import PostCollection
from .config import BlogConfiguration
from .content import default_worker_count
from .errors import ConfigurationConflictError, SourceFileNotFoundError
from .git import GitLogReader
from .logging import get_logger
from .models import RawPost, RawSource
from .paths import CategoryResolver
from .protocols import HistoryReader
from .utils import find_markdown_files, is_year_name

UNKNOWN_AUTHOR = "Unknown"

logger = get_logger("loader")


class SourceLoader:
    """Load every post of a project together with its provenance.

    Attributes:
        config: Project configuration.
        history: Provenance lookup; git by default.
        max_workers: Thread pool size; defaults to one less than the CPU count.
    """

    def __init__(
        self,
        config: BlogConfiguration,
        history: HistoryReader | None = None,
        max_workers: int | None = None,
    ):
        self.config = config
        self.history = history or GitLogReader(config.root)
        self.max_workers = max_workers or default_worker_count()
        self.resolver = CategoryResolver(config.contents_dir, config.imported_segment)
        self._now: datetime | None = None

    def load(self) -> RawSource:
        """Discover, resolve and read all posts.

        Returns:
            RawSource with posts ordered newest first (ties by path) and the
            year and category facets of the listed posts.

        Raises:
            ConfigurationConflictError: If a top-level contents directory is
                named like a year.
            SourceFileNotFoundError: If a discovered file cannot be read.
        """
        self.check_year_directories()
        self._now = datetime.now().astimezone()
        jobs = self.discover()
        if jobs:
            workers = min(self.max_workers, len(jobs))
            with ThreadPoolExecutor(max_workers=workers) as executor:
                loaded = list(executor.map(self._load_post, jobs))
        else:
            loaded = []
        posts = PostCollection(loaded).sorted()
        logger.info("Loaded %d posts", len(posts))
        return RawSource(
            metadata=self.config.metadata,
            posts=tuple(posts),
            years=posts.years(),
            categories=posts.categories(self.resolver),
        )

    def discover(self) -> list[tuple[Path, bool]]:
        """Return ``(path, is_unlisted)`` for every markdown file to load."""
        contents = self.config.contents_dir
        unlisted = self.config.unlisted_dir
        if not contents.is_dir():
            logger.warning("Contents directory %s does not exist", contents)
        jobs = [(path, False) for path in find_markdown_files(contents, exclude=[unlisted])]
        jobs.extend((path, True) for path in find_markdown_files(unlisted))
        return jobs

    def check_year_directories(self) -> None:
        contents = self.config.contents_dir
        if not contents.is_dir():
            return
        for child in sorted(contents.iterdir()):
            if child.is_dir() and is_year_name(child.name):
                raise ConfigurationConflictError(child)

    def _load_post(self, job: tuple[Path, bool]) -> RawPost:
        path, is_unlisted = job
        record = self.history.base_commit(path)
        if record is None:
            logger.warning(
                "No git history for %s; using author '%s' and the current time",
                self._display(path),
                UNKNOWN_AUTHOR,
            )
            author, published_at = UNKNOWN_AUTHOR, self._now or datetime.now().astimezone()
        else:
            author, published_at = record.author, record.date
        try:
            content = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise SourceFileNotFoundError(path, exc) from exc
        return RawPost(
            path=path,
            author=author,
            published_at=published_at,
            content=content,
            is_unlisted=is_unlisted,
        )

    def _display(self, path: Path) -> str:
        try:
            return path.relative_to(self.config.root).as_posix()
        except ValueError:
            return str(path)
