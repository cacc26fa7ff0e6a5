"""Page generation for Tuzuru.

Writes the whole blog into the output directory: one page per post, the
home page, yearly and category archives, the sitemap, and a copy of the
assets directory. The list of written pages is returned so the integrity
manager can record it.

Key classes:
- BlogGenerator: Renders and writes every page for a Source.
"""

from __future__ import annotations

import shutil
import time
from datetime import datetime
from pathlib import Path
from typing import Any

from jinja2 import TemplateError
from markupsafe import Markup

from .collections import PostCollection
from .config import BlogConfiguration
from .errors import TuzuruError
from .logging import get_logger
from .models import Post, Source
from .paths import INDEX_FILENAME, CategoryResolver, PathGenerator
from .sitemap import SitemapGenerator
from .templates import LIST_TEMPLATE, POST_TEMPLATE, TemplateEngine

logger = get_logger("generator")


class BlogGenerator:
    """Render a processed Source into static HTML.

    Attributes:
        config: Project configuration.
        paths: Output path and URL generator.
        resolver: Category resolver for archive pages.
        engine: Template engine.
        build_version: Cache-busting token appended to asset URLs.
    """

    def __init__(self, config: BlogConfiguration, engine: TemplateEngine | None = None):
        self.config = config
        self.paths = PathGenerator(config.contents_dir, config.unlisted_dir, config.output.style)
        self.resolver = CategoryResolver(config.contents_dir, config.imported_segment)
        self.engine = engine or TemplateEngine(config.templates_dir, config.metadata)
        self.sitemap = SitemapGenerator(self.paths)
        self.build_version = str(int(time.time()))

    def generate(self, source: Source) -> list[str]:
        """Write every page of the blog.

        Args:
            source: Processed posts and facets.

        Returns:
            Sorted project-relative POSIX paths of the pages and sitemap written.
        """
        output_dir = self.config.output_dir
        output_dir.mkdir(parents=True, exist_ok=True)
        self.copy_assets()

        written: list[Path] = []
        for post in source.posts:
            written.append(self._write_post(post, source))

        listed = PostCollection(source.listed_posts)
        written.append(self._write_list(INDEX_FILENAME, None, listed, source))
        for year in source.years:
            written.append(
                self._write_list(self.paths.list_output_path(year), year, listed.in_year(year), source)
            )
        for category in source.categories:
            posts = listed.in_category(category, self.resolver)
            written.append(
                self._write_list(self.paths.list_output_path(category), category, posts, source)
            )

        sitemap_path = self.sitemap.write(output_dir, source)
        if sitemap_path is not None:
            written.append(sitemap_path)
        else:
            logger.debug("No base_url configured; sitemap skipped")

        logger.info("Generated %d files into %s", len(written), output_dir)
        return sorted(self._project_relative(path) for path in written)

    def copy_assets(self) -> None:
        """Mirror the assets directory to ``<output>/assets``.

        Without a source assets directory the output copy is left alone.
        """
        source_dir = self.config.assets_dir
        if not source_dir.is_dir():
            return
        target_dir = self.config.output_dir / "assets"
        if target_dir.exists():
            shutil.rmtree(target_dir)
        shutil.copytree(source_dir, target_dir)

    def _write_post(self, post: Post, source: Source) -> Path:
        output_path = self.paths.output_path(post.path, post.is_unlisted)
        content_context = {
            "title": post.title,
            "author": post.author,
            "published_at": self._format_date(post.published_at),
            "published_at_iso": post.published_at.isoformat(),
            "excerpt": post.excerpt,
            "body": Markup(post.html_content),
        }
        page_title = f"{post.title} | {self.config.metadata.blog_name}"
        return self._write_page(post.path, output_path, POST_TEMPLATE, content_context, page_title, source)

    def _write_list(
        self, output_path: str, list_title: str | None, posts: PostCollection, source: Source
    ) -> Path:
        blog_name = self.config.metadata.blog_name
        content_context = {
            "list_title": list_title,
            "posts": [
                {
                    "title": post.title,
                    "author": post.author,
                    "excerpt": post.excerpt,
                    "published_at": self._format_date(post.published_at),
                    "published_at_iso": post.published_at.isoformat(),
                    "url": self.paths.post_url_from(post.path, post.is_unlisted, output_path),
                }
                for post in posts
            ],
        }
        page_title = f"{list_title} | {blog_name}" if list_title else blog_name
        return self._write_page(
            self.config.output_dir / output_path,
            output_path,
            LIST_TEMPLATE,
            content_context,
            page_title,
            source,
        )

    def _write_page(
        self,
        origin: Path,
        output_path: str,
        template: str,
        content_context: dict[str, Any],
        page_title: str,
        source: Source,
    ) -> Path:
        metadata = self.config.metadata
        layout_context = {
            "page_title": page_title,
            "blog_name": metadata.blog_name,
            "copyright": metadata.copyright,
            "description": metadata.description,
            "home_url": self.paths.home_url(output_path),
            "assets_url": self.paths.assets_url(output_path),
            "current_year": datetime.now().year,
            "years": [
                {"name": year, "url": self.paths.list_url(year, output_path)} for year in source.years
            ],
            "categories": [
                {"name": category, "url": self.paths.list_url(category, output_path)}
                for category in source.categories
            ],
            "build_version": self.build_version,
        }
        try:
            rendered = self.engine.render_page(template, content_context, layout_context)
        except TemplateError as exc:
            raise TuzuruError(origin, f"Template error in '{template}': {exc}", exc) from exc
        target = self.config.output_dir / output_path
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(rendered, encoding="utf-8")
        return target

    def _format_date(self, value: datetime) -> str:
        return value.strftime(self.config.metadata.date_format)

    def _project_relative(self, path: Path) -> str:
        try:
            return path.relative_to(self.config.root).as_posix()
        except ValueError:
            return path.as_posix()
