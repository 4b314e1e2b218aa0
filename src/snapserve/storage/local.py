"""Durable host filesystem storage used in production."""

from __future__ import annotations

import contextlib
import os
import tempfile
from collections.abc import Iterator
from pathlib import Path
from typing import BinaryIO

from snapserve.core.errors import StorageError
from snapserve.storage.base import READ_CHUNK_SIZE, StorageBackend, normalize_path


def _iter_file(handle: BinaryIO, chunk_size: int) -> Iterator[bytes]:
    with handle:
        while chunk := handle.read(chunk_size):
            yield chunk


class LocalStorage(StorageBackend):
    """Files under a root directory on the host filesystem."""

    name = "local"

    def __init__(self, root: Path, chunk_size: int = READ_CHUNK_SIZE) -> None:
        self.root = root.resolve()
        self._chunk_size = chunk_size

    def _resolve(self, path: str) -> Path:
        return self.root / normalize_path(path)

    def exists(self, path: str) -> bool:
        return self._resolve(path).is_file()

    def open_read(self, path: str) -> Iterator[bytes]:
        try:
            handle = self._resolve(path).open("rb")
        except (FileNotFoundError, IsADirectoryError):
            raise StorageError.not_found(normalize_path(path)) from None
        return _iter_file(handle, self._chunk_size)

    def read_bytes(self, path: str) -> bytes:
        try:
            return self._resolve(path).read_bytes()
        except (FileNotFoundError, IsADirectoryError):
            raise StorageError.not_found(normalize_path(path)) from None

    def write_bytes(self, path: str, data: bytes) -> None:
        """Write via a temp file + rename so readers never see a partial file."""
        target = self._resolve(path)
        if not target.parent.is_dir():
            raise StorageError.not_a_directory(normalize_path(path))
        fd, tmp_name = tempfile.mkstemp(dir=target.parent, prefix=f".{target.name}.")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
            os.replace(tmp_name, target)
        except BaseException:
            with contextlib.suppress(FileNotFoundError):
                os.unlink(tmp_name)
            raise

    def makedirs(self, path: str) -> None:
        self._resolve(path).mkdir(parents=True, exist_ok=True)

    def remove(self, path: str) -> None:
        try:
            self._resolve(path).unlink()
        except FileNotFoundError:
            raise StorageError.not_found(normalize_path(path)) from None

    def list_files(self, prefix: str = "") -> list[str]:
        base = self._resolve(prefix)
        if not base.is_dir():
            return []
        return sorted(
            p.relative_to(self.root).as_posix()
            for p in base.rglob("*")
            if p.is_file() and not p.name.startswith(".")
        )
