"""Server bundle and client manifest models.

A server bundle describes the application as a tree of components plus
a route table. Nodes inside a component are one of:

- ``"literal text"`` or ``{"text": "..."}``: escaped text
- ``{"context": "title"}``: escaped value from the render context
- ``{"component": "name"}``: another component from the bundle
- ``{"outlet": true}``: the component matched by the route table
- ``{"tag": "ul", "attrs": {...}, "children": [...]}``: inline element

The client manifest lists the compiled browser assets (webpack's
vue-ssr-client-manifest layout).
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from typing import Literal, Union

from pydantic import BaseModel, ConfigDict, Field


class _Node(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class TextNode(_Node):
    text: str


class ContextNode(_Node):
    context: str


class ComponentRef(_Node):
    component: str


class OutletNode(_Node):
    outlet: Literal[True]


class ElementNode(_Node):
    tag: str
    attrs: dict[str, str] = Field(default_factory=dict)
    children: list[Node] = Field(default_factory=list)


Node = Union[str, TextNode, ContextNode, ComponentRef, OutletNode, ElementNode]


class ComponentDef(_Node):
    """A named, reusable element tree.

    ``cache_key`` is a format string over the render context
    (e.g. ``"header"`` or ``"song:{id}"``). When present the rendered
    markup is memoized in the renderer's fragment cache.
    """

    tag: str = "div"
    attrs: dict[str, str] = Field(default_factory=dict)
    children: list[Node] = Field(default_factory=list)
    cache_key: str | None = None


class RouteDef(_Node):
    path: str
    component: str
    name: str | None = None


class ServerBundle(_Node):
    entry: str
    template: str | None = None
    components: dict[str, ComponentDef]
    routes: list[RouteDef] = Field(default_factory=list)
    not_found: str | None = None

    def references(self) -> Iterator[tuple[str, str]]:
        """Yield (component_name, referenced_by) for every component reference."""
        yield self.entry, "entry"
        if self.not_found is not None:
            yield self.not_found, "not_found"
        for route in self.routes:
            yield route.component, f"route {route.path}"
        for name, component in self.components.items():
            for ref in _walk_refs(component.children):
                yield ref, f"component {name}"


def _walk_refs(nodes: list[Node]) -> Iterator[str]:
    for node in nodes:
        if isinstance(node, ComponentRef):
            yield node.component
        elif isinstance(node, ElementNode):
            yield from _walk_refs(node.children)


class ClientManifest(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    public_path: str = Field(default="/", alias="publicPath")
    all: list[str] = Field(default_factory=list)
    initial: list[str] = Field(default_factory=list)
    async_: list[str] = Field(default_factory=list, alias="async")


@dataclass(frozen=True)
class Bundle:
    """One compiled version of the application."""

    server_bundle: ServerBundle
    client_manifest: ClientManifest


ElementNode.model_rebuild()
ComponentDef.model_rebuild()
ServerBundle.model_rebuild()
