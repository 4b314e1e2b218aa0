"""Static-eligibility resolution for snapshot caching."""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import PurePosixPath

from starlette.routing import compile_path

from snapserve.config.constants import DEFAULT_SLUG, STATIC_DIR, STATIC_ROUTES


@dataclass(frozen=True, slots=True)
class StaticMatch:
    eligible: bool
    snapshot_path: str | None = None


NOT_ELIGIBLE = StaticMatch(eligible=False)


def strip_query(url: str) -> str:
    return url.split("?", 1)[0]


def snapshot_slug(path: str) -> str:
    """Slug for a URL path: leading slash stripped, empty path -> 'home'."""
    return path.lstrip("/") or DEFAULT_SLUG


def snapshot_path_for(path: str) -> str:
    return f"{STATIC_DIR}/{snapshot_slug(path)}.html"


class StaticResolver:
    """Classify URLs against a fixed allow-list of never-varying routes.

    Patterns use Starlette path syntax (``/``, ``/all``, ``/tag/{name}``).
    """

    def __init__(self, patterns: Iterable[str] = STATIC_ROUTES) -> None:
        self.patterns = tuple(patterns)
        self._compiled: list[re.Pattern[str]] = [compile_path(p)[0] for p in self.patterns]

    def classify(self, url: str) -> StaticMatch:
        path = strip_query(url)
        if not any(pattern.match(path) for pattern in self._compiled):
            return NOT_ELIGIBLE
        # A pattern parameter could capture '..'; such paths never get a snapshot
        if ".." in PurePosixPath(path).parts:
            return NOT_ELIGIBLE
        return StaticMatch(eligible=True, snapshot_path=snapshot_path_for(path))
