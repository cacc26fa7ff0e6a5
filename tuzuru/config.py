"""Configuration loading for Tuzuru.

Settings live in ``tuzuru.yaml`` at the project root. Missing keys fall back
to ``DEFAULT_CONFIG``; the merged mapping is then turned into typed
dataclasses that resolve every configured directory against the project
root, so the rest of the package never joins paths by hand.

Key functions:
- load_config: Read and validate tuzuru.yaml.
- default_config_yaml: Render the defaults for ``tuzuru init``.
- resources_dir: Location of the bundled templates and assets.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from .errors import ConfigurationError

CONFIG_FILENAME = "tuzuru.yaml"
MANIFEST_PATH = Path(".build") / "manifest.json"
ROUTING_STYLES = ("subdirectory", "direct")

DEFAULT_CONFIG: dict[str, Any] = {
    "metadata": {
        "blog_name": "My Blog",
        "copyright": "My Blog",
        "description": "A blog generated by Tuzuru",
        "base_url": "",
        "date_format": "%B %d, %Y",
    },
    "output": {
        "directory": "blog",
        "style": "subdirectory",
    },
    "source_layout": {
        "templates": "templates",
        "assets": "assets",
        "contents": "contents",
        "imported": "contents/imported",
        "unlisted": "contents/unlisted",
    },
}

_RESOURCES_DIR = Path(__file__).parent / "resources"


def resources_dir() -> Path:
    """Return the directory holding the bundled templates and assets."""
    return _RESOURCES_DIR


@dataclass(frozen=True)
class BlogMetadata:
    """Site-wide values exposed to templates.

    Attributes:
        blog_name: Name shown in page titles and the header.
        copyright: Copyright holder shown in the footer.
        description: Meta description for the site.
        base_url: Public URL of the site; enables sitemap.xml when set.
        date_format: strftime pattern used to display publication dates.
    """

    blog_name: str
    copyright: str
    description: str
    base_url: str
    date_format: str


@dataclass(frozen=True)
class OutputOptions:
    """Where and how pages are written.

    Attributes:
        directory: Output directory, relative to the project root.
        style: ``subdirectory`` writes ``slug/index.html``; ``direct`` writes ``slug.html``.
    """

    directory: str
    style: str


@dataclass(frozen=True)
class SourceLayout:
    """Project-relative locations of the blog sources."""

    templates: str
    assets: str
    contents: str
    imported: str
    unlisted: str


@dataclass(frozen=True)
class BlogConfiguration:
    """Fully resolved configuration for one project.

    Attributes:
        root: Project root; every relative setting is resolved against it.
        metadata: Site-wide metadata.
        output: Output options.
        source_layout: Source directory layout.
    """

    root: Path
    metadata: BlogMetadata
    output: OutputOptions
    source_layout: SourceLayout

    @property
    def contents_dir(self) -> Path:
        return self.root / self.source_layout.contents

    @property
    def unlisted_dir(self) -> Path:
        return self.root / self.source_layout.unlisted

    @property
    def imported_dir(self) -> Path:
        return self.root / self.source_layout.imported

    @property
    def assets_dir(self) -> Path:
        return self.root / self.source_layout.assets

    @property
    def templates_dir(self) -> Path:
        return self.root / self.source_layout.templates

    @property
    def output_dir(self) -> Path:
        return self.root / self.output.directory

    @property
    def manifest_path(self) -> Path:
        return self.root / MANIFEST_PATH

    @property
    def imported_segment(self) -> str:
        """Last path component of the imported directory, excluded from categories."""
        return self.imported_dir.name

    def tracked_source_dirs(self) -> list[Path]:
        """Return the existing source roots whose changes trigger regeneration."""
        candidates = [self.contents_dir, self.unlisted_dir, self.assets_dir]
        return [path for path in candidates if path.is_dir()]


def _merge(defaults: dict[str, Any], loaded: dict[str, Any]) -> dict[str, Any]:
    merged = copy.deepcopy(defaults)
    for key, value in loaded.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def config_from_mapping(
    root: Path, data: dict[str, Any], source: Path | None = None
) -> BlogConfiguration:
    """Build a BlogConfiguration from a (possibly partial) mapping.

    Args:
        root: Project root directory.
        data: Mapping shaped like DEFAULT_CONFIG; missing keys use defaults.
        source: File the mapping was read from, used in error messages.

    Returns:
        The resolved configuration.

    Raises:
        ConfigurationError: If a section has the wrong shape or the routing style is unknown.
    """
    merged = _merge(DEFAULT_CONFIG, data)
    config_path = source or root / CONFIG_FILENAME
    try:
        metadata = BlogMetadata(**{k: str(v) for k, v in merged["metadata"].items()})
        output = OutputOptions(**{k: str(v) for k, v in merged["output"].items()})
        layout = SourceLayout(**{k: str(v) for k, v in merged["source_layout"].items()})
    except (AttributeError, TypeError) as exc:
        raise ConfigurationError(config_path, f"Invalid configuration: {exc}", exc) from exc
    if output.style not in ROUTING_STYLES:
        raise ConfigurationError(
            config_path,
            f"Unknown output style '{output.style}' (expected one of {', '.join(ROUTING_STYLES)})",
        )
    return BlogConfiguration(root=root, metadata=metadata, output=output, source_layout=layout)


def load_config(project_root: Path, config_path: Path | None = None) -> BlogConfiguration:
    """Load configuration from tuzuru.yaml.

    Args:
        project_root: Root directory of the project.
        config_path: Explicit configuration file. When given it must exist.

    Returns:
        The resolved configuration, with defaults applied.

    Raises:
        ConfigurationError: If an explicit file is missing or any file is malformed.
    """
    explicit = config_path is not None
    path = config_path if explicit else project_root / CONFIG_FILENAME
    if not path.exists():
        if explicit:
            raise ConfigurationError(path, "Configuration file not found")
        return config_from_mapping(project_root, {})
    try:
        with open(path, encoding="utf-8") as f:
            loaded = yaml.safe_load(f) or {}
    except yaml.YAMLError as exc:
        raise ConfigurationError(path, f"Invalid YAML: {exc}", exc) from exc
    if not isinstance(loaded, dict):
        raise ConfigurationError(path, "Configuration must be a mapping")
    return config_from_mapping(project_root, loaded, path)


def default_config_yaml() -> str:
    """Return DEFAULT_CONFIG rendered as YAML for a freshly initialized blog."""
    return yaml.safe_dump(DEFAULT_CONFIG, sort_keys=False, allow_unicode=True)
