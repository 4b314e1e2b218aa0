"""Bundle renderer producing HTML as an async byte stream.

One Renderer is built per Bundle and shared by every request rendered
against that bundle. Building it compiles the page template and the
route table; rendering walks the component tree and flushes text to the
stream whenever the high-water mark is reached, so the head of the page
is on the wire before the body has been rendered.
"""

from __future__ import annotations

import asyncio
import re
from collections.abc import AsyncIterator, Iterator
from dataclasses import dataclass
from html import escape
from typing import Any
from urllib.parse import urlsplit

import structlog
from starlette.routing import compile_path

from snapserve.bundle.models import (
    Bundle,
    ComponentDef,
    ComponentRef,
    ContextNode,
    ElementNode,
    Node,
    OutletNode,
    RouteDef,
    TextNode,
)
from snapserve.config.constants import STREAM_HIGH_WATER_MARK
from snapserve.core.errors import BundleError, RenderError, SnapserveError
from snapserve.render.cache import RenderCache
from snapserve.render.template import DEFAULT_TEMPLATE, PageTemplate

logger = structlog.get_logger()

VOID_ELEMENTS = frozenset(
    {"area", "base", "br", "col", "embed", "hr", "img", "input", "link", "meta", "source", "wbr"}
)


@dataclass(frozen=True, slots=True)
class RenderRequest:
    """Per-request render input."""

    url: str
    title: str


def _open_tag(tag: str, attrs: dict[str, str]) -> str:
    rendered = "".join(f' {name}="{escape(value)}"' for name, value in attrs.items())
    return f"<{tag}{rendered}>"


class Renderer:
    """Renders pages of one bundle."""

    def __init__(
        self,
        bundle: Bundle,
        cache: RenderCache | None = None,
        high_water_mark: int = STREAM_HIGH_WATER_MARK,
    ) -> None:
        self.bundle = bundle
        self.cache = cache if cache is not None else RenderCache()
        self.high_water_mark = high_water_mark

        server_bundle = bundle.server_bundle
        try:
            self._template = PageTemplate.compile(
                server_bundle.template or DEFAULT_TEMPLATE, bundle.client_manifest
            )
        except ValueError as e:
            raise BundleError.schema_error("template", str(e)) from e
        self._routes: list[tuple[re.Pattern[str], RouteDef]] = [
            (compile_path(route.path)[0], route) for route in server_bundle.routes
        ]

    def match_route(self, path: str) -> tuple[RouteDef | None, dict[str, str]]:
        for pattern, route in self._routes:
            match = pattern.match(path)
            if match:
                return route, match.groupdict()
        return None, {}

    def render_to_stream(self, request: RenderRequest) -> AsyncIterator[bytes]:
        """Start rendering request.

        Never raises: failures are raised from the returned iterator as
        RenderError once streaming has reached the failing component.
        """
        return self._stream(request)

    async def _stream(self, request: RenderRequest) -> AsyncIterator[bytes]:
        parts = urlsplit(request.url)
        path = parts.path or "/"
        route, params = self.match_route(path)
        context: dict[str, Any] = {
            **params,
            "url": request.url,
            "path": path,
            "query": parts.query,
            "title": request.title,
        }

        server_bundle = self.bundle.server_bundle
        outlet = route.component if route is not None else server_bundle.not_found

        try:
            yield self._template.fill_head(request.title, request.url).encode()

            pending: list[str] = []
            size = 0
            for piece in self._render_component(server_bundle.entry, context, outlet, (), root=True):
                pending.append(piece)
                size += len(piece)
                if size >= self.high_water_mark:
                    yield "".join(pending).encode()
                    pending.clear()
                    size = 0
                    # Let other requests run between flushes
                    await asyncio.sleep(0)

            pending.append(self._template.fill_tail(request.title, request.url))
            yield "".join(pending).encode()
        except SnapserveError:
            raise
        except Exception as e:
            raise RenderError.failed(request.url, f"{type(e).__name__}: {e}") from e

    def _render_component(
        self,
        name: str,
        context: dict[str, Any],
        outlet: str | None,
        stack: tuple[str, ...],
        *,
        root: bool = False,
    ) -> Iterator[str]:
        if name in stack:
            raise RenderError.failed(
                context["url"], f"component cycle: {' -> '.join((*stack, name))}"
            )
        component = self.bundle.server_bundle.components[name]
        stack = (*stack, name)

        if component.cache_key is None:
            yield from self._render_def(component, context, outlet, stack, root)
            return

        # The outlet is part of the output, so it is part of the key
        key = f"{name}:{outlet or ''}::{component.cache_key.format_map(context)}"
        cached = self.cache.get(key)
        if cached is not None:
            yield cached
            return
        markup = "".join(self._render_def(component, context, outlet, stack, root))
        self.cache.set(key, markup)
        yield markup

    def _render_def(
        self,
        component: ComponentDef,
        context: dict[str, Any],
        outlet: str | None,
        stack: tuple[str, ...],
        root: bool,
    ) -> Iterator[str]:
        attrs = dict(component.attrs)
        if root:
            attrs["data-server-rendered"] = "true"
        yield _open_tag(component.tag, attrs)
        yield from self._render_nodes(component.children, context, outlet, stack)
        if component.tag not in VOID_ELEMENTS:
            yield f"</{component.tag}>"

    def _render_nodes(
        self,
        nodes: list[Node],
        context: dict[str, Any],
        outlet: str | None,
        stack: tuple[str, ...],
    ) -> Iterator[str]:
        for node in nodes:
            if isinstance(node, str):
                yield escape(node, quote=False)
            elif isinstance(node, TextNode):
                yield escape(node.text, quote=False)
            elif isinstance(node, ContextNode):
                yield escape(str(context[node.context]), quote=False)
            elif isinstance(node, ComponentRef):
                yield from self._render_component(node.component, context, outlet, stack)
            elif isinstance(node, OutletNode):
                if outlet is not None:
                    yield from self._render_component(outlet, context, None, stack)
            elif isinstance(node, ElementNode):
                yield _open_tag(node.tag, node.attrs)
                yield from self._render_nodes(node.children, context, outlet, stack)
                if node.tag not in VOID_ELEMENTS:
                    yield f"</{node.tag}>"


def create_renderer(bundle: Bundle, cache: RenderCache | None = None) -> Renderer:
    """Build the renderer for a bundle (expensive; do once per bundle)."""
    renderer = Renderer(bundle, cache=cache)
    logger.debug(
        "renderer_created",
        routes=len(bundle.server_bundle.routes),
        cache_max=renderer.cache.max_entries,
        cache_max_age_sec=renderer.cache.max_age_sec,
    )
    return renderer
