"""Development bundle builder.

The external bundler (webpack in watch mode, esbuild, ...) writes its
output to ``source_dir``. The builder mirrors that directory into the
in-memory backend, loads the bundle, builds a renderer and publishes it
to the readiness gate, then rebuilds every time the directory changes.

Design:
- Compilation runs in a worker thread; publishing happens on the loop
- The memory backend is reused across rebuilds, so snapshots written
  under an older bundle survive until the process restarts
- A failed build leaves the gate untouched: the previous bundle stays
  active, or requests keep waiting if there never was one
"""

from __future__ import annotations

import asyncio
import contextlib
from dataclasses import dataclass, field
from pathlib import Path

import structlog
from watchfiles import Change, awatch

from snapserve.bundle.loader import load_bundle
from snapserve.bundle.models import Bundle
from snapserve.config.constants import STATIC_DIR
from snapserve.core.errors import BundleError, StorageError
from snapserve.render.renderer import Renderer, create_renderer
from snapserve.server.gate import ActiveBundle, ReadinessGate
from snapserve.storage.base import parent_of
from snapserve.storage.memory import MemoryStorage

logger = structlog.get_logger()


def _summarize_changes(changes: set[tuple[Change, str]]) -> str:
    counts: dict[str, int] = {}
    for change, _path in changes:
        counts[change.name] = counts.get(change.name, 0) + 1
    return ", ".join(f"{count} {name}" for name, count in sorted(counts.items()))


@dataclass
class BundleBuilder:
    """Mirror the bundler's output into memory and publish each build."""

    source_dir: Path
    storage: MemoryStorage
    gate: ReadinessGate
    debounce_ms: int = 300

    build_count: int = field(default=0, init=False)
    last_error: str | None = field(default=None, init=False)
    _watch_task: asyncio.Task[None] | None = field(default=None, init=False)
    _stop_event: asyncio.Event = field(default_factory=asyncio.Event, init=False)
    _build_lock: asyncio.Lock = field(default_factory=asyncio.Lock, init=False)

    async def start(self) -> None:
        """Run the initial build and start watching for changes."""
        if self._watch_task is not None:
            return
        self.source_dir.mkdir(parents=True, exist_ok=True)
        self._stop_event.clear()
        await self.build()
        self._watch_task = asyncio.create_task(self._watch_loop())
        logger.info("bundle_builder_started", source_dir=str(self.source_dir))

    async def stop(self) -> None:
        self._stop_event.set()
        if self._watch_task is not None:
            self._watch_task.cancel()
            with contextlib.suppress(asyncio.CancelledError, asyncio.TimeoutError):
                await asyncio.wait_for(self._watch_task, timeout=2.0)
            self._watch_task = None
        logger.info("bundle_builder_stopped")

    async def build(self) -> ActiveBundle | None:
        """Compile the current source dir and publish it. None if the build failed."""
        async with self._build_lock:
            try:
                bundle, renderer = await asyncio.to_thread(self._compile)
            except (BundleError, StorageError, OSError) as e:
                self.last_error = str(e)
                logger.error("build_failed", error=str(e), ready=self.gate.is_ready)
                return None
            self.build_count += 1
            self.last_error = None
            return self.gate.publish(bundle, renderer, self.storage)

    def _compile(self) -> tuple[Bundle, Renderer]:
        """Copy bundler output into memory and load it. Runs in a worker thread.

        Files the bundler has since deleted (old hashed chunks) are dropped;
        snapshots under static/ are left alone.
        """
        mirrored: set[str] = set()
        for path in sorted(self.source_dir.rglob("*")):
            if not path.is_file():
                continue
            rel = path.relative_to(self.source_dir).as_posix()
            self.storage.makedirs(parent_of(rel))
            self.storage.write_bytes(rel, path.read_bytes())
            mirrored.add(rel)
        for stale in self.storage.list_files():
            if stale not in mirrored and not stale.startswith(f"{STATIC_DIR}/"):
                self.storage.remove(stale)
        bundle = load_bundle(self.storage)
        return bundle, create_renderer(bundle)

    async def _watch_loop(self) -> None:
        try:
            async for changes in awatch(
                self.source_dir,
                debounce=self.debounce_ms,
                stop_event=self._stop_event,
                ignore_permission_denied=True,
            ):
                logger.info(
                    "changes_detected", count=len(changes), summary=_summarize_changes(changes)
                )
                await self.build()
        except asyncio.CancelledError:
            pass
