"""Static file stage reached when the pipeline does not render a request."""

from __future__ import annotations

import mimetypes
from pathlib import Path

from starlette.responses import PlainTextResponse, Response, StreamingResponse
from starlette.staticfiles import StaticFiles
from starlette.types import ASGIApp, Receive, Scope, Send

from snapserve.core.errors import StorageError
from snapserve.storage.base import StorageBackend


class StorageFiles:
    """Serve GET/HEAD requests from a storage backend (development assets)."""

    def __init__(self, storage: StorageBackend) -> None:
        self.storage = storage

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        response = self._lookup(scope)
        await response(scope, receive, send)

    def _lookup(self, scope: Scope) -> Response:
        if scope.get("method") not in ("GET", "HEAD"):
            return PlainTextResponse("Method Not Allowed", status_code=405)
        path = scope["path"]
        try:
            body = self.storage.open_read(path)
        except (StorageError, ValueError):
            return PlainTextResponse("Not Found", status_code=404)
        media_type = mimetypes.guess_type(path)[0] or "application/octet-stream"
        return StreamingResponse(body, media_type=media_type)


def create_fallback(dev: bool, storage: StorageBackend, output_dir: Path) -> ASGIApp:
    """Development serves from the in-memory backend, production from disk."""
    if dev:
        return StorageFiles(storage)
    return StaticFiles(directory=output_dir, check_dir=False)
