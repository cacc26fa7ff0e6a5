"""Site building functionality for Tuzuru.

This module ties the pipeline together: load posts with their git
provenance, process the markdown, write every page, and keep the output
directory consistent with the sources through the integrity manifest.

Key classes and functions:
- Tuzuru: Facade over the loader, processor, generator and integrity manager.
- build_site: Load configuration and run a full generation.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from .config import BlogConfiguration, load_config
from .content import MarkdownProcessor
from .generator import BlogGenerator
from .integrity import CleanupReport, IntegrityManager
from .loader import SourceLoader
from .logging import get_logger
from .models import RawSource, Source
from .paths import CategoryResolver, PathGenerator
from .protocols import HistoryReader

logger = get_logger("build")


@dataclass
class BuildResult:
    """Result of a site build operation.

    Attributes:
        source: Processed posts and facets.
        output_dir: Directory where the site was built.
        files: Project-relative paths of the generated pages.
        cleanup: Orphan cleanup outcome, or None when no cleanup ran.
    """

    source: Source
    output_dir: Path
    files: list[str]
    cleanup: CleanupReport | None = None


class Tuzuru:
    """Facade over one blog project.

    Attributes:
        config: Project configuration.
        loader: Source loader.
        processor: Markdown processor.
        integrity: Output integrity manager.
    """

    def __init__(
        self,
        config: BlogConfiguration,
        history: HistoryReader | None = None,
        max_workers: int | None = None,
    ):
        self.config = config
        self.max_workers = max_workers
        self.loader = SourceLoader(config, history=history, max_workers=max_workers)
        self.processor = MarkdownProcessor()
        self.integrity = IntegrityManager(config)
        self.resolver = CategoryResolver(config.contents_dir, config.imported_segment)
        self.paths = PathGenerator(config.contents_dir, config.unlisted_dir, config.output.style)

    def load_sources(self) -> RawSource:
        return self.loader.load()

    def process_contents(self, raw_source: RawSource) -> Source:
        return self.processor.process_source(raw_source, self.resolver, self.max_workers)

    def generate(self, source: Source) -> BuildResult:
        """Write the blog and reconcile the output with the previous run.

        The previous manifest is read before anything is written. Orphans are
        only removed when a source directory changed, and the new manifest is
        saved once the whole file set exists.
        """
        previous = self.integrity.load_existing_manifest()
        cleanup_needed = self.integrity.is_cleanup_needed(previous)
        files = BlogGenerator(self.config).generate(source)
        report = None
        if previous is not None and cleanup_needed:
            report = self.integrity.perform_cleanup(previous, files)
        self.integrity.save_new_manifest(files)
        return BuildResult(
            source=source,
            output_dir=self.config.output_dir,
            files=files,
            cleanup=report,
        )

    def build(self) -> BuildResult:
        """Run load, process and generate in sequence."""
        return self.generate(self.process_contents(self.load_sources()))

    def create_path_mapping(self, source: Source) -> dict[str, Path]:
        """Map request paths of generated pages to the sources they come from.

        Post pages map to their markdown file. The home page and archive
        pages map to the contents directory.
        """
        mapping: dict[str, Path] = {
            "/": self.config.contents_dir,
            "/index.html": self.config.contents_dir,
        }
        for name in (*source.years, *source.categories):
            mapping[f"/{self.paths.list_url(name, '')}"] = self.config.contents_dir
            mapping[f"/{self.paths.list_output_path(name)}"] = self.config.contents_dir
        for post in source.posts:
            mapping[f"/{self.paths.url(post.path, post.is_unlisted)}"] = post.path
            mapping[f"/{self.paths.output_path(post.path, post.is_unlisted)}"] = post.path
        return mapping


def build_site(project_root: Path, config_path: Path | None = None) -> BuildResult:
    """Build the blog for a project.

    Args:
        project_root: Root directory of the project.
        config_path: Optional explicit configuration file.

    Returns:
        BuildResult describing the generated output.
    """
    config = load_config(project_root, config_path)
    return Tuzuru(config).build()
