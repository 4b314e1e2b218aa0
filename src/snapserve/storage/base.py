"""Storage backend interface.

Paths are POSIX-style and relative to the backend root
(e.g. ``static/home.html``). Both implementations share the same
semantics: writes require the parent directory to exist, reads of a
missing file raise StorageError.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterator
from pathlib import PurePosixPath

READ_CHUNK_SIZE = 64 * 1024


def normalize_path(path: str) -> str:
    """Normalize a backend path, rejecting anything that escapes the root."""
    pure = PurePosixPath(path.lstrip("/"))
    if any(part == ".." for part in pure.parts):
        raise ValueError(f"Path escapes storage root: {path}")
    normalized = str(pure)
    return "" if normalized == "." else normalized


def parent_of(path: str) -> str:
    parent = str(PurePosixPath(path).parent)
    return "" if parent == "." else parent


class StorageBackend(ABC):
    """Path-addressed byte store used for bundles, assets and snapshots."""

    name: str = "storage"

    @abstractmethod
    def exists(self, path: str) -> bool:
        """True when a file exists at path."""

    @abstractmethod
    def open_read(self, path: str) -> Iterator[bytes]:
        """Open path for streaming.

        The file is opened eagerly so a missing file raises here,
        not on first iteration.
        """

    @abstractmethod
    def read_bytes(self, path: str) -> bytes: ...

    @abstractmethod
    def write_bytes(self, path: str, data: bytes) -> None:
        """Write data at path, replacing any existing file."""

    @abstractmethod
    def makedirs(self, path: str) -> None:
        """Create a directory and any missing ancestors. Existing dirs are fine."""

    @abstractmethod
    def remove(self, path: str) -> None: ...

    @abstractmethod
    def list_files(self, prefix: str = "") -> list[str]:
        """All file paths under prefix, sorted."""

    def read_text(self, path: str, encoding: str = "utf-8") -> str:
        return self.read_bytes(path).decode(encoding)

    def write_text(self, path: str, text: str, encoding: str = "utf-8") -> None:
        self.write_bytes(path, text.encode(encoding))
