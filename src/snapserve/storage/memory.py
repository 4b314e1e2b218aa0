"""Ephemeral in-memory storage used while developing."""

from __future__ import annotations

import threading
from collections.abc import Iterator

from snapserve.core.errors import StorageError
from snapserve.storage.base import READ_CHUNK_SIZE, StorageBackend, normalize_path, parent_of


def _iter_chunks(data: bytes, chunk_size: int) -> Iterator[bytes]:
    view = memoryview(data)
    for offset in range(0, len(view), chunk_size):
        yield bytes(view[offset : offset + chunk_size])


class MemoryStorage(StorageBackend):
    """Dict-backed filesystem.

    Writes may come from worker threads (snapshot persistence), so all
    mutations go through a lock. Readers get the bytes object that was
    current when they opened the file; later writes never alter it.
    """

    name = "memory"

    def __init__(self, chunk_size: int = READ_CHUNK_SIZE) -> None:
        self._files: dict[str, bytes] = {}
        self._dirs: set[str] = {""}
        self._lock = threading.Lock()
        self._chunk_size = chunk_size

    def exists(self, path: str) -> bool:
        return normalize_path(path) in self._files

    def open_read(self, path: str) -> Iterator[bytes]:
        return _iter_chunks(self.read_bytes(path), self._chunk_size)

    def read_bytes(self, path: str) -> bytes:
        key = normalize_path(path)
        try:
            return self._files[key]
        except KeyError:
            raise StorageError.not_found(key) from None

    def write_bytes(self, path: str, data: bytes) -> None:
        key = normalize_path(path)
        with self._lock:
            if parent_of(key) not in self._dirs:
                raise StorageError.not_a_directory(key)
            self._files[key] = bytes(data)

    def makedirs(self, path: str) -> None:
        key = normalize_path(path)
        with self._lock:
            while key not in self._dirs:
                self._dirs.add(key)
                key = parent_of(key)

    def remove(self, path: str) -> None:
        key = normalize_path(path)
        with self._lock:
            if self._files.pop(key, None) is None:
                raise StorageError.not_found(key)

    def list_files(self, prefix: str = "") -> list[str]:
        base = normalize_path(prefix)
        if not base:
            return sorted(self._files)
        return sorted(k for k in self._files if k.startswith(base + "/"))
