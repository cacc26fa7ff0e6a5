"""Exception types raised by Tuzuru.

Every error carries the path of the file or directory it concerns so the CLI
can point the user at the offending input, the same way build failures are
reported.
"""

from __future__ import annotations

from pathlib import Path


class TuzuruError(Exception):
    """Base error with file context.

    Attributes:
        path: Path to the file or directory that caused the error.
        message: Human-readable error message.
        original_error: The original exception that was caught, if any.
    """

    def __init__(
        self,
        path: Path,
        message: str,
        original_error: Exception | None = None,
    ):
        self.path = path
        self.message = message
        self.original_error = original_error
        super().__init__(f"{path}: {message}")


class MissingTitleError(TuzuruError):
    """A markdown document has no level-1 heading to use as its title."""

    def __init__(self, path: Path):
        super().__init__(path, "No level-1 heading found; every post needs a '# Title'")


class SourceFileNotFoundError(TuzuruError):
    """A discovered source file could not be read."""

    def __init__(self, path: Path, original_error: Exception | None = None):
        super().__init__(path, "Source file could not be read", original_error)


class ConfigurationConflictError(TuzuruError):
    """A contents directory collides with a generated yearly archive."""

    def __init__(self, path: Path):
        super().__init__(
            path,
            f"Directory name '{path.name}' conflicts with yearly archive pages; rename it",
        )


class ConfigurationError(TuzuruError):
    """The configuration file is missing, malformed or already present."""


class InvalidDateError(TuzuruError):
    """A date supplied on the command line could not be parsed."""


class GitCommandError(TuzuruError):
    """A git invocation that must succeed returned a failure."""


__all__ = [
    "ConfigurationConflictError",
    "ConfigurationError",
    "GitCommandError",
    "InvalidDateError",
    "MissingTitleError",
    "SourceFileNotFoundError",
    "TuzuruError",
]
