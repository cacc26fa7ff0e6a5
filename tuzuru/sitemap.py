"""Sitemap generation for Tuzuru.

Creates a sitemap following the sitemaps.org protocol. It lists the home
page, every post (listed and unlisted), and the yearly and category
archive pages. Absolute URLs need ``base_url`` in the blog metadata; without
it no sitemap is written.

Classes:
    SitemapEntry: One ``<url>`` element.
    SitemapGenerator: Builds and writes sitemap.xml.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

from .html_utils import escape_html, join_root_url
from .models import Source
from .paths import PathGenerator

SITEMAP_FILENAME = "sitemap.xml"


@dataclass(frozen=True)
class SitemapEntry:
    """A single sitemap URL.

    Attributes:
        path: URL path relative to the site root, e.g. ``posts/hello/``.
        changefreq: Expected change frequency.
        priority: Relative priority between 0.0 and 1.0.
        lastmod: Last modification date as ``YYYY-MM-DD``, if known.
    """

    path: str
    changefreq: str
    priority: float
    lastmod: str | None = None


class SitemapGenerator:
    """Generates sitemap.xml for search engine indexing."""

    def __init__(self, paths: PathGenerator):
        self.paths = paths

    @property
    def filename(self) -> str:
        """Return sitemap filename."""
        return SITEMAP_FILENAME

    def entries(self, source: Source) -> list[SitemapEntry]:
        """Collect the URLs of every generated page.

        Args:
            source: Processed blog source.

        Returns:
            Home, posts, years and categories, in that order.
        """
        home = "" if self.paths.uses_subdirectories else "index.html"
        entries = [SitemapEntry(home, "weekly", 1.0)]
        for post in source.posts:
            entries.append(
                SitemapEntry(
                    self.paths.url(post.path, post.is_unlisted),
                    "monthly",
                    0.5 if post.is_unlisted else 0.8,
                    post.published_at.strftime("%Y-%m-%d"),
                )
            )
        for name in (*source.years, *source.categories):
            entries.append(SitemapEntry(self.paths.list_url(name, ""), "weekly", 0.6))
        return entries

    def generate(self, source: Source) -> str | None:
        """Generate sitemap.xml content.

        Args:
            source: Processed blog source; its metadata supplies ``base_url``.

        Returns:
            Sitemap XML content, or None if no base URL configured.
        """
        base_url = source.metadata.base_url.strip().rstrip("/")
        if not base_url:
            return None
        return render_sitemap(base_url, self.entries(source))

    def write(self, output_dir: Path, source: Source) -> Path | None:
        """Generate and write the sitemap to the output directory.

        Returns:
            The written file, or None if the sitemap was skipped.
        """
        content = self.generate(source)
        if content is None:
            return None
        output_path = output_dir / self.filename
        output_path.write_text(content, encoding="utf-8")
        return output_path


def render_sitemap(base_url: str, entries: Iterable[SitemapEntry]) -> str:
    lines = [
        '<?xml version="1.0" encoding="UTF-8"?>',
        '<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">',
    ]
    for entry in entries:
        loc = escape_html(join_root_url(base_url, entry.path))
        parts = [f"<loc>{loc}</loc>"]
        if entry.lastmod:
            parts.append(f"<lastmod>{entry.lastmod}</lastmod>")
        parts.append(f"<changefreq>{entry.changefreq}</changefreq>")
        parts.append(f"<priority>{entry.priority:.1f}</priority>")
        lines.append(f"  <url>{''.join(parts)}</url>")
    lines.append("</urlset>")
    return "\n".join(lines) + "\n"
