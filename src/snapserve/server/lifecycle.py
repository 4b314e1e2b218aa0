"""Server lifecycle management."""

from __future__ import annotations

import asyncio
import signal
from dataclasses import dataclass

import structlog
import uvicorn

from snapserve.bundle.loader import load_bundle
from snapserve.config.models import SnapserveConfig
from snapserve.render.renderer import create_renderer
from snapserve.server.builder import BundleBuilder
from snapserve.server.gate import ReadinessGate
from snapserve.storage import MemoryStorage, StorageBackend, create_storage

logger = structlog.get_logger()


@dataclass
class ServerController:
    """
    Owns the pieces shared by every request.

    Components:
    - ReadinessGate: the active bundle, renderer and storage
    - StorageBackend: memory (development) or output directory (production)
    - BundleBuilder: development only, rebuilds on bundler output changes
    """

    config: SnapserveConfig
    gate: ReadinessGate
    storage: StorageBackend
    builder: BundleBuilder | None = None

    @classmethod
    def create(cls, config: SnapserveConfig) -> ServerController:
        """Wire components for the configured mode.

        Production loads the bundle right here, so a missing or broken
        bundle fails startup with BundleError.
        """
        storage = create_storage(config.mode, config.paths.output_dir)
        if not config.is_dev:
            bundle = load_bundle(storage)
            gate = ReadinessGate.ready(bundle, create_renderer(bundle), storage)
            return cls(config=config, gate=gate, storage=storage)

        assert isinstance(storage, MemoryStorage)
        gate = ReadinessGate()
        builder = BundleBuilder(
            source_dir=config.paths.source_dir,
            storage=storage,
            gate=gate,
            debounce_ms=config.watcher.debounce_ms,
        )
        return cls(config=config, gate=gate, storage=storage, builder=builder)

    async def start(self) -> None:
        logger.info("server_starting", mode=self.config.mode)
        if self.builder is not None:
            await self.builder.start()
        base_url = f"http://{self.config.server.host}:{self.config.server.port}"
        logger.info("server_started", url=base_url, ready=self.gate.is_ready)

    async def stop(self) -> None:
        logger.info("server_stopping")
        try:
            async with asyncio.timeout(self.config.timeouts.server_stop_sec):
                if self.builder is not None:
                    await self.builder.stop()
        except TimeoutError:
            logger.warning(
                "server_stop_timeout",
                message=f"Shutdown timed out after {self.config.timeouts.server_stop_sec}s",
            )
        logger.info("server_stopped")


async def run_server(config: SnapserveConfig) -> None:
    """Run the server until a shutdown signal."""
    from snapserve.server.app import create_app

    controller = ServerController.create(config)
    app = create_app(controller)

    uvicorn_config = uvicorn.Config(
        app,
        host=config.server.host,
        port=config.server.port,
        log_level="warning",  # Use structlog instead
        server_header=False,  # The pipeline sends its own Server header
        lifespan="on",
    )
    server = uvicorn.Server(uvicorn_config)

    # Setup signal handlers with force exit on second signal
    loop = asyncio.get_running_loop()
    shutdown_count = 0
    force_exit_task: asyncio.Task[None] | None = None

    async def force_exit_after_timeout() -> None:
        """Force exit if graceful shutdown takes too long."""
        await asyncio.sleep(config.timeouts.force_exit_sec)
        logger.info("forcing_exit_after_timeout")
        server.force_exit = True

    def signal_handler() -> None:
        nonlocal shutdown_count, force_exit_task
        shutdown_count += 1
        logger.info("shutdown_signal_received", count=shutdown_count)
        server.should_exit = True
        if shutdown_count == 1:
            force_exit_task = loop.create_task(force_exit_after_timeout())
        else:
            server.force_exit = True
            if force_exit_task:
                force_exit_task.cancel()

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, signal_handler)

    await server.serve()
