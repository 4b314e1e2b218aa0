"""Starlette application factory."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.middleware.gzip import GZipMiddleware
from starlette.routing import BaseRoute, Route

from snapserve.server.fallback import create_fallback
from snapserve.server.middleware import RequestIdMiddleware
from snapserve.server.pipeline import Interceptor, RenderPipeline, is_asset_request
from snapserve.server.routes import create_routes

if TYPE_CHECKING:
    from snapserve.server.lifecycle import ServerController


def create_app(
    controller: ServerController,
    *,
    intercept: Interceptor = is_asset_request,
) -> Starlette:
    """Create the application: diagnostics routes, then the render pipeline for everything else."""
    config = controller.config
    fallback = create_fallback(config.is_dev, controller.storage, config.paths.output_dir)
    pipeline = RenderPipeline(
        controller.gate,
        fallback,
        dev=config.is_dev,
        title=config.render.title,
        intercept=intercept,
    )

    routes: list[BaseRoute] = list(create_routes(controller))
    routes.append(Route("/{path:path}", pipeline))

    @asynccontextmanager
    async def lifespan(_app: Starlette) -> AsyncIterator[None]:
        await controller.start()
        try:
            yield
        finally:
            await controller.stop()

    return Starlette(
        routes=routes,
        lifespan=lifespan,
        middleware=[
            Middleware(RequestIdMiddleware),
            Middleware(GZipMiddleware, minimum_size=1024),
        ],
    )
