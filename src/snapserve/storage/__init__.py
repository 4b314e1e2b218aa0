"""Storage backends - in-memory for development, host filesystem for production."""

from __future__ import annotations

from pathlib import Path

from snapserve.storage.base import StorageBackend
from snapserve.storage.local import LocalStorage
from snapserve.storage.memory import MemoryStorage


def create_storage(mode: str, output_dir: Path) -> StorageBackend:
    """Select the backend for a run mode."""
    if mode == "development":
        return MemoryStorage()
    return LocalStorage(output_dir)


__all__ = [
    "LocalStorage",
    "MemoryStorage",
    "StorageBackend",
    "create_storage",
]
