"""Change detection for the preview server.

Rather than subscribing to file system events, the preview server asks on
every request whether anything relevant changed since the previous request.
The check walks the source directories and compares modification times.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path

from .config import BlogConfiguration
from .logging import get_logger

logger = get_logger("changes")


class ChangeDetector:
    """Decide whether the blog must be regenerated before serving a request.

    Attributes:
        config: Project configuration.
    """

    def __init__(self, config: BlogConfiguration):
        self.config = config

    def should_regenerate(
        self,
        request_path: str,
        since: float,
        path_mapping: Mapping[str, Path],
    ) -> bool:
        """Return True if sources changed after ``since``.

        Args:
            request_path: Requested URL path, e.g. ``/posts/hello/``.
            since: Epoch seconds of the previous check.
            path_mapping: URL path to the source file or directory it comes from.

        Returns:
            True when a tracked directory, any file below one, or the source
            mapped to ``request_path`` was modified after ``since``.
        """
        for directory in self.config.tracked_source_dirs():
            if self._tree_modified_since(directory, since):
                logger.debug("Change detected under %s", directory)
                return True
        source = path_mapping.get(request_path)
        if source is not None and _modified_since(source, since):
            logger.debug("Change detected in %s for %s", source, request_path)
            return True
        return False

    def _tree_modified_since(self, root: Path, since: float) -> bool:
        if _modified_since(root, since):
            return True
        for dirpath, dirnames, filenames in os.walk(root):
            for name in (*dirnames, *filenames):
                if _modified_since(Path(dirpath) / name, since):
                    return True
        return False


def _modified_since(path: Path, since: float) -> bool:
    try:
        return path.stat().st_mtime > since
    except OSError:
        return False
