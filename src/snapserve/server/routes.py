"""Diagnostic HTTP routes.

Mounted under ``/-/`` so they never shadow application pages.
"""

from __future__ import annotations

import os
import sys
import time
from typing import TYPE_CHECKING, Any

from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from snapserve.config.constants import STATIC_DIR
from snapserve.server.pipeline import server_identification

if TYPE_CHECKING:
    from snapserve.server.lifecycle import ServerController


def _get_runtime_info() -> dict[str, Any]:
    return {
        "python_version": sys.version.split()[0],
        "pid": os.getpid(),
    }


def create_routes(controller: ServerController) -> list[Route]:
    """Create diagnostic routes bound to the server controller."""
    start_time = time.time()
    server = server_identification()

    async def health(request: Request) -> JSONResponse:
        """Liveness probe. Healthy even while the first build is pending."""
        _ = request  # unused
        return JSONResponse(
            {
                "status": "healthy",
                "ready": controller.gate.is_ready,
                "server": server,
                "uptime_seconds": round(time.time() - start_time, 1),
            }
        )

    async def status(request: Request) -> JSONResponse:
        """Detailed status: readiness, active bundle, caches."""
        _ = request  # unused
        response: dict[str, Any] = {
            "mode": controller.config.mode,
            "server": server,
            "uptime_seconds": round(time.time() - start_time, 1),
            "runtime": _get_runtime_info(),
            "ready": controller.gate.is_ready,
        }

        active = controller.gate.current
        if active is not None:
            cache = active.renderer.cache
            response["bundle"] = {
                "version": active.version,
                "published_at": active.published_at,
                "routes": [route.path for route in active.bundle.server_bundle.routes],
            }
            response["render_cache"] = {
                "size": len(cache),
                "max_entries": cache.max_entries,
                "hits": cache.hits,
                "misses": cache.misses,
            }
            response["snapshots"] = active.storage.list_files(STATIC_DIR)

        if controller.builder is not None:
            response["builder"] = {
                "builds": controller.builder.build_count,
                "last_error": controller.builder.last_error,
            }

        return JSONResponse(response)

    return [
        Route("/-/health", health, methods=["GET"]),
        Route("/-/status", status, methods=["GET"]),
    ]
