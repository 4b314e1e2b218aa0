"""Tests for page template handling."""

from __future__ import annotations

import pytest

from snapserve.bundle.models import ClientManifest
from snapserve.render.template import (
    DEFAULT_TEMPLATE,
    PageTemplate,
    render_resource_hints,
    render_scripts,
    render_styles,
)


@pytest.fixture
def manifest() -> ClientManifest:
    return ClientManifest.model_validate(
        {
            "publicPath": "/assets/",
            "initial": ["app.js", "app.css"],
            "async": ["song.js", "font.woff2"],
        }
    )


class TestAssetTags:
    def test_resource_hints(self, manifest: ClientManifest) -> None:
        hints = render_resource_hints(manifest)

        assert '<link rel="preload" href="/assets/app.js" as="script">' in hints
        assert '<link rel="preload" href="/assets/app.css" as="style">' in hints
        assert '<link rel="prefetch" href="/assets/song.js">' in hints
        assert "font.woff2" not in hints

    def test_styles_only_initial_css(self, manifest: ClientManifest) -> None:
        assert render_styles(manifest) == '<link rel="stylesheet" href="/assets/app.css">'

    def test_scripts_only_initial_js(self, manifest: ClientManifest) -> None:
        assert render_scripts(manifest) == '<script src="/assets/app.js" defer></script>'


class TestPageTemplate:
    def test_default_template_splits_at_outlet(self, manifest: ClientManifest) -> None:
        template = PageTemplate.compile(DEFAULT_TEMPLATE, manifest)

        assert template.head.rstrip().endswith("<body>")
        assert template.tail.lstrip().startswith('<script src="/assets/app.js"')
        assert "<!--ssr-" not in template.head + template.tail

    def test_fill_escapes_title(self, manifest: ClientManifest) -> None:
        template = PageTemplate.compile(DEFAULT_TEMPLATE, manifest)

        head = template.fill_head("Tom & Jerry <3", "/")

        assert "<title>Tom &amp; Jerry &lt;3</title>" in head

    def test_url_placeholder(self, manifest: ClientManifest) -> None:
        template = PageTemplate.compile(
            '<link rel="canonical" href="{{ url }}"><!--ssr-outlet-->', manifest
        )

        assert template.fill_head("t", '/a?b="c"') == '<link rel="canonical" href="/a?b=&quot;c&quot;">'

    def test_missing_outlet_rejected(self, manifest: ClientManifest) -> None:
        with pytest.raises(ValueError):
            PageTemplate.compile("<html></html>", manifest)
