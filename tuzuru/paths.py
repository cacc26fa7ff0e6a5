"""Output path and URL generation for Tuzuru.

Every URL written into a page is relative to that page, so the generated
blog can be served from any prefix or opened straight from disk.

Key classes:
- PathGenerator: Maps posts and list pages to output files and URLs.
- CategoryResolver: Derives a post's category from its directory.
"""

from __future__ import annotations

from pathlib import Path, PurePosixPath

INDEX_FILENAME = "index.html"


class CategoryResolver:
    """Resolve the category of a post from its location under contents.

    The category is the first directory below the contents root. Files that
    sit directly in the contents root have none, and neither do files under
    the imported directory.
    """

    def __init__(self, contents_dir: Path, imported_segment: str):
        self.contents_dir = contents_dir
        self.imported_segment = imported_segment

    def category(self, path: Path) -> str | None:
        try:
            relative = path.relative_to(self.contents_dir)
        except ValueError:
            return None
        if len(relative.parts) < 2:
            return None
        top = relative.parts[0]
        if top == self.imported_segment:
            return None
        return top


class PathGenerator:
    """Generate output paths and page-relative URLs.

    Attributes:
        contents_dir: Root of listed posts.
        unlisted_dir: Root of unlisted posts; they are routed relative to it.
        style: ``subdirectory`` or ``direct``.
    """

    def __init__(self, contents_dir: Path, unlisted_dir: Path, style: str = "subdirectory"):
        self.contents_dir = contents_dir
        self.unlisted_dir = unlisted_dir
        self.style = style

    @property
    def uses_subdirectories(self) -> bool:
        return self.style == "subdirectory"

    def _stem_path(self, source_path: Path, is_unlisted: bool) -> PurePosixPath:
        base = self.unlisted_dir if is_unlisted else self.contents_dir
        relative = source_path.relative_to(base).with_suffix("")
        return PurePosixPath(relative.as_posix())

    def output_path(self, source_path: Path, is_unlisted: bool = False) -> str:
        """Return the output file of a post, relative to the output directory.

        Args:
            source_path: Markdown file of the post.
            is_unlisted: Whether the post lives under the unlisted directory.

        Returns:
            ``dir/slug/index.html`` in subdirectory style, ``dir/slug.html`` otherwise.
        """
        stem = self._stem_path(source_path, is_unlisted)
        if self.uses_subdirectories:
            return f"{stem}/{INDEX_FILENAME}"
        return f"{stem}.html"

    def url(self, source_path: Path, is_unlisted: bool = False) -> str:
        """Return the URL of a post relative to the output root."""
        stem = self._stem_path(source_path, is_unlisted)
        if self.uses_subdirectories:
            return f"{stem}/"
        return f"{stem}.html"

    def list_output_path(self, name: str) -> str:
        """Return the output file of a yearly or category list page."""
        return f"{name}/{INDEX_FILENAME}"

    def root_prefix(self, page_output_path: str) -> str:
        """Return the ``../`` chain leading from a page back to the output root."""
        depth = len(PurePosixPath(page_output_path).parts) - 1
        return "../" * depth

    def home_url(self, page_output_path: str) -> str:
        prefix = self.root_prefix(page_output_path)
        if self.uses_subdirectories:
            return prefix or "./"
        return f"{prefix}{INDEX_FILENAME}"

    def assets_url(self, page_output_path: str) -> str:
        return f"{self.root_prefix(page_output_path)}assets/"

    def list_url(self, name: str, page_output_path: str) -> str:
        """Return the URL of a list page as seen from another page."""
        prefix = self.root_prefix(page_output_path)
        if self.uses_subdirectories:
            return f"{prefix}{name}/"
        return f"{prefix}{name}/{INDEX_FILENAME}"

    def post_url_from(self, source_path: Path, is_unlisted: bool, page_output_path: str) -> str:
        """Return the URL of a post as seen from another page."""
        return f"{self.root_prefix(page_output_path)}{self.url(source_path, is_unlisted)}"
