"""Protocol definitions for Tuzuru.

The loader and the amend workflow only need a way to ask for the canonical
provenance record of a file. Depending on this protocol instead of the git
implementation lets tests hand in a fixed history.
"""

from __future__ import annotations

from abc import abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .models import GitLog


@runtime_checkable
class HistoryReader(Protocol):
    """Protocol for resolving the authoritative history record of a file."""

    @abstractmethod
    def base_commit(self, path: Path) -> GitLog | None:
        """Return the record that defines the file's author and publication date.

        Args:
            path: File to resolve.

        Returns:
            The authoritative record, or None when no history is available.
        """
        ...
