"""Page template handling.

The template is split once at the outlet marker so the head can be sent
before the application body has rendered.
"""

from __future__ import annotations

from dataclasses import dataclass
from html import escape
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from snapserve.bundle.models import ClientManifest

OUTLET = "<!--ssr-outlet-->"
RESOURCE_HINTS = "<!--ssr-resource-hints-->"
STYLES = "<!--ssr-styles-->"
SCRIPTS = "<!--ssr-scripts-->"

DEFAULT_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<meta name="viewport" content="width=device-width, initial-scale=1">
<title>{{ title }}</title>
<!--ssr-resource-hints-->
<!--ssr-styles-->
</head>
<body>
<!--ssr-outlet-->
<!--ssr-scripts-->
</body>
</html>
"""


def _asset_url(manifest: ClientManifest, asset: str) -> str:
    return manifest.public_path.rstrip("/") + "/" + asset.lstrip("/")


def _as_type(asset: str) -> str | None:
    if asset.endswith(".js"):
        return "script"
    if asset.endswith(".css"):
        return "style"
    return None


def render_resource_hints(manifest: ClientManifest) -> str:
    """Preload initial assets, prefetch async chunks."""
    tags: list[str] = []
    for asset in manifest.initial:
        kind = _as_type(asset)
        if kind is not None:
            href = escape(_asset_url(manifest, asset))
            tags.append(f'<link rel="preload" href="{href}" as="{kind}">')
    for asset in manifest.async_:
        if _as_type(asset) is not None:
            tags.append(f'<link rel="prefetch" href="{escape(_asset_url(manifest, asset))}">')
    return "".join(tags)


def render_styles(manifest: ClientManifest) -> str:
    return "".join(
        f'<link rel="stylesheet" href="{escape(_asset_url(manifest, asset))}">'
        for asset in manifest.initial
        if asset.endswith(".css")
    )


def render_scripts(manifest: ClientManifest) -> str:
    return "".join(
        f'<script src="{escape(_asset_url(manifest, asset))}" defer></script>'
        for asset in manifest.initial
        if asset.endswith(".js")
    )


@dataclass(frozen=True)
class PageTemplate:
    """Template text split around the outlet, with asset tags pre-rendered."""

    head: str
    tail: str

    @classmethod
    def compile(cls, source: str, manifest: ClientManifest) -> PageTemplate:
        """Substitute manifest-derived tags; request placeholders stay for fill()."""
        text = (
            source.replace(RESOURCE_HINTS, render_resource_hints(manifest))
            .replace(STYLES, render_styles(manifest))
            .replace(SCRIPTS, render_scripts(manifest))
        )
        head, sep, tail = text.partition(OUTLET)
        if not sep:
            raise ValueError(f"Template is missing the {OUTLET} marker")
        return cls(head=head, tail=tail)

    def fill_head(self, title: str, url: str) -> str:
        return _interpolate(self.head, title, url)

    def fill_tail(self, title: str, url: str) -> str:
        return _interpolate(self.tail, title, url)


def _interpolate(text: str, title: str, url: str) -> str:
    return text.replace("{{ title }}", escape(title)).replace("{{ url }}", escape(url))
