"""Readiness gate holding the active bundle.

Requests await the gate before doing anything else. The gate resolves
the first time a bundle is published and never un-resolves: later
publishes (development rebuilds) replace the active bundle with a
single reference swap, so a request sees either the old or the new
bundle/renderer/storage triple, never a mix. Requests already rendering
keep the triple they started with.

publish() must be called from the event loop thread.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field

import structlog

from snapserve.bundle.models import Bundle
from snapserve.core.errors import InternalError
from snapserve.render.renderer import Renderer
from snapserve.storage.base import StorageBackend

logger = structlog.get_logger()


@dataclass(frozen=True, slots=True)
class ActiveBundle:
    """Everything a request needs, captured once at request start."""

    bundle: Bundle
    renderer: Renderer
    storage: StorageBackend
    version: int
    published_at: float = field(default_factory=time.time)


class ReadinessGate:
    """One-shot barrier plus a single-slot "latest bundle" cell."""

    def __init__(self) -> None:
        self._current: ActiveBundle | None = None
        self._ready = asyncio.Event()
        self._version = 0

    @classmethod
    def ready(
        cls, bundle: Bundle, renderer: Renderer, storage: StorageBackend
    ) -> ReadinessGate:
        """A gate that is satisfied from the start (production)."""
        gate = cls()
        gate.publish(bundle, renderer, storage)
        return gate

    @property
    def is_ready(self) -> bool:
        return self._ready.is_set()

    @property
    def current(self) -> ActiveBundle | None:
        return self._current

    @property
    def version(self) -> int:
        return self._version

    def publish(self, bundle: Bundle, renderer: Renderer, storage: StorageBackend) -> ActiveBundle:
        """Make a new bundle active and release any waiting requests."""
        self._version += 1
        active = ActiveBundle(
            bundle=bundle, renderer=renderer, storage=storage, version=self._version
        )
        self._current = active
        first = not self._ready.is_set()
        self._ready.set()
        logger.info("bundle_published", version=active.version, first=first, storage=storage.name)
        return active

    async def wait(self) -> ActiveBundle:
        """Suspend until a bundle exists, then return the latest one.

        There is no timeout: if the first build never succeeds, callers
        wait forever.
        """
        if self._current is None:
            await self._ready.wait()
        if self._current is None:
            raise InternalError.unexpected("gate released without an active bundle")
        return self._current
