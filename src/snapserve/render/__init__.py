"""Server-side rendering of bundles."""

from snapserve.render.cache import RenderCache
from snapserve.render.renderer import Renderer, RenderRequest, create_renderer

__all__ = [
    "RenderCache",
    "RenderRequest",
    "Renderer",
    "create_renderer",
]
