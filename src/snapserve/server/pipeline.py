"""Streaming render pipeline.

Per request:

1. await the readiness gate and capture the active bundle
2. let the interceptor claim the request (assets, non-GET)
3. classify the URL; serve an existing snapshot (development) or hand
   it to the static file server (production)
4. otherwise render to a stream, forwarding every chunk to the response
   and, for static-eligible URLs, to a snapshot accumulator
5. after the response has ended, persist the accumulated snapshot in a
   background task

The accumulator is only marked complete once the render stream is
exhausted. Render errors and client disconnects end the generator early,
so the background commit finds an incomplete accumulator and writes
nothing.
"""

from __future__ import annotations

import asyncio
import importlib.metadata
import time
from collections.abc import AsyncIterator, Callable, Iterator

import structlog
from starlette.requests import Request
from starlette.background import BackgroundTask
from starlette.datastructures import MutableHeaders
from starlette.responses import StreamingResponse
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from snapserve.core.errors import StorageError
from snapserve.render.renderer import RenderRequest
from snapserve.server.gate import ActiveBundle, ReadinessGate
from snapserve.server.static import StaticResolver
from snapserve.storage.base import StorageBackend, parent_of

logger = structlog.get_logger()

Interceptor = Callable[[Request], bool]


def _get_version(package: str) -> str:
    try:
        return importlib.metadata.version(package)
    except importlib.metadata.PackageNotFoundError:
        return "dev"


def server_identification() -> str:
    return f"starlette/{_get_version('starlette')}; snapserve/{_get_version('snapserve')}"


def is_asset_request(request: Request) -> bool:
    """Default interceptor: non-GET/HEAD requests and paths that look like files."""
    if request.method not in ("GET", "HEAD"):
        return True
    last_segment = request.url.path.rsplit("/", 1)[-1]
    return "." in last_segment


def persist_snapshot(storage: StorageBackend, path: str, data: bytes) -> bool:
    """Write a snapshot. Failures are logged and swallowed: the page is already sent."""
    try:
        storage.makedirs(parent_of(path))
        storage.write_bytes(path, data)
    except (StorageError, OSError) as e:
        logger.error("snapshot_write_failed", path=path, error=str(e))
        return False
    logger.info("snapshot_written", path=path, size_bytes=len(data))
    return True


class SnapshotAccumulator:
    """Sink collecting every streamed chunk for one snapshot."""

    def __init__(self, storage: StorageBackend, path: str) -> None:
        self.storage = storage
        self.path = path
        self._chunks: list[bytes] = []
        self.complete = False

    def write(self, chunk: bytes) -> None:
        self._chunks.append(chunk)

    def getvalue(self) -> bytes:
        return b"".join(self._chunks)

    async def commit(self) -> bool:
        """Persist the snapshot if the stream ran to completion."""
        data = self.getvalue()
        if not self.complete or not data:
            return False
        return await asyncio.to_thread(persist_snapshot, self.storage, self.path, data)


async def tee(
    stream: AsyncIterator[bytes],
    accumulator: SnapshotAccumulator | None,
) -> AsyncIterator[bytes]:
    """Forward chunks in order to the consumer and to the accumulator.

    The accumulator is marked complete only when the source stream is
    exhausted; committing it is left to the caller.
    """
    async for chunk in stream:
        if accumulator is not None:
            accumulator.write(chunk)
        yield chunk
    if accumulator is not None:
        accumulator.complete = True


class RenderPipeline:
    """ASGI app rendering every request that reaches it."""

    def __init__(
        self,
        gate: ReadinessGate,
        fallback: ASGIApp,
        *,
        dev: bool,
        title: str,
        resolver: StaticResolver | None = None,
        intercept: Interceptor = is_asset_request,
    ) -> None:
        self.gate = gate
        self.fallback = fallback
        self.dev = dev
        self.title = title
        self.resolver = resolver or StaticResolver()
        self.intercept = intercept
        self.headers = {"Content-Type": "text/html", "Server": server_identification()}

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        active = await self.gate.wait()

        request = Request(scope, receive)
        if self.intercept(request):
            await self.fallback(scope, receive, send)
            return

        url = request.url.path
        if request.url.query:
            url = f"{url}?{request.url.query}"

        match = self.resolver.classify(url)
        accumulator: SnapshotAccumulator | None = None
        if match.eligible:
            assert match.snapshot_path is not None
            if active.storage.exists(match.snapshot_path):
                if not self.dev:
                    await self._delegate(match.snapshot_path, scope, receive, send)
                    return
                body = self._open_snapshot(active.storage, match.snapshot_path)
                if body is not None:
                    logger.debug("snapshot_served", path=match.snapshot_path)
                    await StreamingResponse(body, headers=self.headers)(scope, receive, send)
                    return
            accumulator = SnapshotAccumulator(active.storage, match.snapshot_path)

        response = StreamingResponse(
            self._render(active, url, accumulator),
            headers=self.headers,
            background=BackgroundTask(accumulator.commit) if accumulator is not None else None,
        )
        await response(scope, receive, send)

    async def _delegate(self, snapshot_path: str, scope: Scope, receive: Receive, send: Send) -> None:
        """Hand the request to the static file server, rewritten to the snapshot file."""
        path = f"/{snapshot_path}"
        server = self.headers["Server"]

        async def send_with_server(message: Message) -> None:
            if message["type"] == "http.response.start":
                MutableHeaders(scope=message)["Server"] = server
            await send(message)

        await self.fallback(
            {**scope, "path": path, "raw_path": path.encode()}, receive, send_with_server
        )

    def _open_snapshot(self, storage: StorageBackend, path: str) -> Iterator[bytes] | None:
        """Open a stored snapshot; None means it vanished and the page must be re-rendered."""
        try:
            return storage.open_read(path)
        except StorageError as e:
            logger.warning("snapshot_read_failed", path=path, error=str(e))
            return None

    async def _render(
        self,
        active: ActiveBundle,
        url: str,
        accumulator: SnapshotAccumulator | None,
    ) -> AsyncIterator[bytes]:
        start = time.perf_counter()
        stream = active.renderer.render_to_stream(RenderRequest(url=url, title=self.title))
        try:
            async for chunk in tee(stream, accumulator):
                yield chunk
        except Exception as e:
            logger.error("render_stream_error", url=url, error=str(e), version=active.version)
            raise
        logger.debug(
            "request_complete",
            url=url,
            version=active.version,
            snapshot=accumulator.path if accumulator is not None else None,
            duration_ms=round((time.perf_counter() - start) * 1000, 1),
        )
