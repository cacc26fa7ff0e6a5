"""Project scaffolding for ``tuzuru init``."""

from __future__ import annotations

import os
import shutil
import subprocess
from pathlib import Path

from .config import CONFIG_FILENAME, MANIFEST_PATH, config_from_mapping, default_config_yaml, resources_dir
from .errors import ConfigurationError
from .logging import get_logger

logger = get_logger("init")


class BlogInitializer:
    """Create the configuration, templates, assets and content folders of a new blog.

    Attributes:
        root: Project root to initialize.
    """

    def __init__(self, root: Path, bundled_dir: Path | None = None):
        self.root = root
        self.bundled_dir = bundled_dir or resources_dir()

    def initialize(self) -> list[Path]:
        """Scaffold the project.

        Returns:
            Files and directories that were created.

        Raises:
            ConfigurationError: If the project already has a configuration file.
        """
        config_path = self.root / CONFIG_FILENAME
        if config_path.exists():
            raise ConfigurationError(config_path, "Configuration already exists; refusing to overwrite")
        self.root.mkdir(parents=True, exist_ok=True)
        config_path.write_text(default_config_yaml(), encoding="utf-8")
        created = [config_path]

        config = config_from_mapping(self.root, {})
        created.extend(self._copy_tree(self.bundled_dir / "templates", config.templates_dir))
        created.extend(self._copy_tree(self.bundled_dir / "assets", config.assets_dir))
        for directory in (config.contents_dir, config.unlisted_dir):
            directory.mkdir(parents=True, exist_ok=True)
            created.append(directory)

        self._update_gitignore([f"{MANIFEST_PATH.parts[0]}/", f"{config.output.directory}/"])
        self._try_git_init()
        return created

    def _copy_tree(self, source: Path, target: Path) -> list[Path]:
        """Copy bundled files without overwriting files the user already has."""
        copied = []
        for src_path in sorted(source.rglob("*")):
            if src_path.is_dir():
                continue
            dest_path = target / src_path.relative_to(source)
            if dest_path.exists():
                continue
            dest_path.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(src_path, dest_path)
            copied.append(dest_path)
        return copied

    def _update_gitignore(self, entries: list[str]) -> None:
        gitignore = self.root / ".gitignore"
        existing = gitignore.read_text(encoding="utf-8") if gitignore.exists() else ""
        present = {line.strip() for line in existing.splitlines()}
        missing = [entry for entry in entries if entry not in present]
        if not missing:
            return
        prefix = "" if not existing or existing.endswith("\n") else "\n"
        gitignore.write_text(existing + prefix + "\n".join(missing) + "\n", encoding="utf-8")

    def _try_git_init(self) -> None:
        """Initialize a git repository unless the root is already inside one."""
        if os.environ.get("TUZURU_SKIP_GIT_INIT") == "1" or (self.root / ".git").exists():
            return
        git_bin = shutil.which("git")
        if not git_bin:
            return
        try:
            inside = subprocess.run(
                [git_bin, "rev-parse", "--is-inside-work-tree"],
                cwd=self.root,
                capture_output=True,
            )
            if inside.returncode == 0:
                return
            subprocess.run([git_bin, "init"], cwd=self.root, check=True, capture_output=True)
        except (OSError, subprocess.SubprocessError) as exc:
            # Non-fatal: user can run git init manually
            logger.warning("git init failed: %s", exc)
