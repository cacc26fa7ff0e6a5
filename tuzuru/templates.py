"""Template rendering engine for Tuzuru.

Pages are rendered in two steps: a content template (``post`` or ``list``)
produces the page body, and the ``layout`` template wraps it. Templates are
looked up in the project's templates directory first and then in the
templates bundled with the package, so a project only needs to override the
files it wants to change.

Key class:
- TemplateEngine: Handles template lookup and rendering.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, Template, TemplateNotFound, select_autoescape
from markupsafe import Markup

from .config import BlogMetadata, resources_dir

LAYOUT_TEMPLATE = "layout"
POST_TEMPLATE = "post"
LIST_TEMPLATE = "list"


class TemplateEngine:
    """Template rendering engine using Jinja2.

    Attributes:
        templates_dir: Project templates directory.
        metadata: Blog metadata, available to every template as ``blog``.
        env: Jinja2 environment.
    """

    def __init__(
        self,
        templates_dir: Path,
        metadata: BlogMetadata,
        bundled_dir: Path | None = None,
    ):
        """Initialize the template engine.

        Args:
            templates_dir: Project templates directory; may be missing.
            metadata: Blog metadata.
            bundled_dir: Fallback templates; defaults to the packaged ones.
        """
        self.templates_dir = templates_dir
        self.metadata = metadata
        search_path = [templates_dir] if templates_dir.is_dir() else []
        search_path.append(bundled_dir or resources_dir() / "templates")
        self.env = Environment(
            loader=FileSystemLoader([str(path) for path in search_path]),
            autoescape=select_autoescape(["html", "xml", "jinja"]),
            enable_async=False,
        )
        self.env.globals["blog"] = metadata

    def _resolve_template(self, name: str) -> Template:
        """Resolve a template by its short name.

        Args:
            name: Template name such as ``layout``.

        Returns:
            Jinja2 Template object.

        Raises:
            TemplateNotFound: If no candidate file exists.
        """
        candidates = [f"{name}.html.jinja", f"{name}.jinja", f"{name}.html", name]
        for candidate in candidates:
            try:
                return self.env.get_template(candidate)
            except TemplateNotFound:
                continue
        raise TemplateNotFound(name)

    def render_page(
        self,
        content_template: str,
        content_context: dict[str, Any],
        layout_context: dict[str, Any],
    ) -> str:
        """Render a content template and wrap it in the layout.

        Args:
            content_template: ``post`` or ``list``.
            content_context: Variables for the content template.
            layout_context: Variables for the layout template.

        Returns:
            Rendered HTML document.
        """
        body = self._resolve_template(content_template).render(**content_context)
        layout = self._resolve_template(LAYOUT_TEMPLATE)
        return layout.render(content=Markup(body), **layout_context)
