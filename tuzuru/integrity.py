"""Output integrity tracking for Tuzuru.

After every successful generation a manifest records which files were
written and the modification times of the source directories. On the next
run the manifest tells which previously generated files no longer have a
source (renamed or deleted posts) so they can be removed.

Deletion is deliberately narrow. A file is only removed if it was listed in
the previous manifest, lies inside the output directory, and looks like
generated output: ``sitemap.xml``, any ``.html`` file, or anything inside a
top-level year directory. Everything else is reported and left alone.

Key classes:
- GenerateManifest: The persisted record of one generation.
- IntegrityManager: Staleness check, orphan cleanup and manifest storage.
"""

from __future__ import annotations

import json
import os
import tempfile
import time
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path

from .config import BlogConfiguration
from .logging import get_logger
from .sitemap import SITEMAP_FILENAME
from .utils import is_year_name, walk_directories

logger = get_logger("integrity")


@dataclass(frozen=True)
class GenerateManifest:
    """Files produced by one generation and the source state they came from.

    Attributes:
        generated_at: Epoch seconds when the manifest was written.
        source_dirs: Project-relative source directory to its mtime.
        files: Project-relative POSIX paths of the generated files.
    """

    generated_at: float
    source_dirs: dict[str, float] = field(default_factory=dict)
    files: list[str] = field(default_factory=list)

    def to_json(self) -> str:
        payload = {
            "generatedAt": self.generated_at,
            "sourceDirs": self.source_dirs,
            "files": self.files,
        }
        return json.dumps(payload, indent=2, sort_keys=True) + "\n"

    @classmethod
    def from_json(cls, text: str) -> GenerateManifest:
        payload = json.loads(text)
        return cls(
            generated_at=float(payload.get("generatedAt", 0.0)),
            source_dirs={str(k): float(v) for k, v in payload.get("sourceDirs", {}).items()},
            files=[str(f) for f in payload.get("files", [])],
        )


@dataclass
class CleanupReport:
    """Outcome of an orphan cleanup.

    Attributes:
        deleted: Files removed.
        skipped: Orphans that failed the safety check and were kept.
        errors: Files that could not be removed.
    """

    deleted: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


class IntegrityManager:
    """Keep the output directory in step with the sources.

    Attributes:
        config: Project configuration.
    """

    def __init__(self, config: BlogConfiguration):
        self.config = config

    @property
    def manifest_path(self) -> Path:
        return self.config.manifest_path

    def source_directories_to_track(self) -> list[Path]:
        """Return every existing source directory whose mtime is recorded.

        That is each tracked source root plus all directories below it.
        """
        tracked: dict[Path, None] = {}
        for root in self.config.tracked_source_dirs():
            tracked.update(dict.fromkeys(walk_directories(root)))
        return list(tracked)

    def load_existing_manifest(self) -> GenerateManifest | None:
        """Read the manifest of the previous generation.

        Returns:
            The manifest, or None if there is none or it cannot be read.
        """
        if not self.manifest_path.exists():
            return None
        try:
            return GenerateManifest.from_json(self.manifest_path.read_text(encoding="utf-8"))
        except (OSError, ValueError, TypeError, AttributeError) as exc:
            logger.warning("Ignoring unreadable manifest %s: %s", self.manifest_path, exc)
            return None

    def is_cleanup_needed(self, manifest: GenerateManifest | None = None) -> bool:
        """Report whether any tracked source directory changed since the last run.

        Args:
            manifest: Previously loaded manifest; read from disk when omitted.

        Returns:
            False without a manifest. Otherwise True when any directory under
            a tracked root is newer than recorded, has no record, or cannot be
            inspected.
        """
        manifest = manifest or self.load_existing_manifest()
        if manifest is None:
            return False
        for directory in self.source_directories_to_track():
            recorded = manifest.source_dirs.get(self._key(directory), 0.0)
            try:
                current = directory.stat().st_mtime
            except OSError:
                return True
            if current > recorded:
                return True
        return False

    def perform_cleanup(self, manifest: GenerateManifest, new_files: Iterable[str]) -> CleanupReport:
        """Delete files from the previous generation that were not produced this time.

        Args:
            manifest: Previous manifest.
            new_files: Project-relative paths produced by the current run.

        Returns:
            What was deleted, skipped and failed.
        """
        report = CleanupReport()
        orphans = sorted(set(manifest.files) - set(new_files))
        for relative in orphans:
            path = self.config.root / relative
            if not self.is_safe_to_delete(path):
                logger.warning("Skipping cleanup of %s: not recognised as generated output", relative)
                report.skipped.append(relative)
                continue
            if not path.exists():
                continue
            try:
                path.unlink()
            except OSError as exc:
                logger.error("Could not delete %s: %s", relative, exc)
                report.errors.append(relative)
                continue
            report.deleted.append(relative)
            self._remove_empty_parent(path)
        if orphans:
            logger.info(
                "Cleanup finished: %d deleted, %d skipped, %d errors",
                len(report.deleted),
                len(report.skipped),
                len(report.errors),
            )
        return report

    def is_safe_to_delete(self, path: Path) -> bool:
        """Return True if a path inside the output directory looks generated."""
        output_root = self.config.output_dir.resolve()
        try:
            relative = path.resolve().relative_to(output_root)
        except ValueError:
            return False
        if not relative.parts:
            return False
        if relative.name == SITEMAP_FILENAME or relative.suffix == ".html":
            return True
        return len(relative.parts) > 1 and is_year_name(relative.parts[0])

    def save_new_manifest(self, files: Iterable[str]) -> GenerateManifest:
        """Record this generation's files and source directory mtimes.

        The file is replaced atomically so an interrupted run never leaves a
        half-written manifest behind.

        Args:
            files: Project-relative paths produced by the run.

        Returns:
            The manifest that was written.
        """
        source_dirs: dict[str, float] = {}
        for directory in self.source_directories_to_track():
            try:
                source_dirs[self._key(directory)] = directory.stat().st_mtime
            except OSError as exc:
                logger.warning("Could not stat %s: %s", directory, exc)
        manifest = GenerateManifest(
            generated_at=time.time(),
            source_dirs=source_dirs,
            files=sorted(set(files)),
        )
        target = self.manifest_path
        target.parent.mkdir(parents=True, exist_ok=True)
        fd, temp_name = tempfile.mkstemp(prefix=".manifest-", suffix=".json", dir=target.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(manifest.to_json())
            os.replace(temp_name, target)
        except BaseException:
            Path(temp_name).unlink(missing_ok=True)
            raise
        logger.debug("Saved manifest with %d files to %s", len(manifest.files), target)
        return manifest

    def _remove_empty_parent(self, path: Path) -> None:
        parent = path.parent
        if parent.resolve() == self.config.output_dir.resolve():
            return
        try:
            if not any(parent.iterdir()):
                parent.rmdir()
        except OSError as exc:
            logger.debug("Left directory %s in place: %s", parent, exc)

    def _key(self, directory: Path) -> str:
        try:
            return directory.relative_to(self.config.root).as_posix()
        except ValueError:
            return directory.as_posix()
