"""Bounded fragment cache for component renders."""

from __future__ import annotations

import threading
import time
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass

from snapserve.config.constants import RENDER_CACHE_MAX, RENDER_CACHE_MAX_AGE_SEC


@dataclass(frozen=True, slots=True)
class _Entry:
    markup: str
    stored_at: float


class RenderCache:
    """LRU cache with per-entry max age. Thread-safe.

    Expiry is checked lazily on access; capacity is enforced on every
    insert by evicting the least recently used entries.
    """

    def __init__(
        self,
        max_entries: int = RENDER_CACHE_MAX,
        max_age_sec: float = RENDER_CACHE_MAX_AGE_SEC,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_entries < 1:
            raise ValueError(f"max_entries must be positive, got {max_entries}")
        self._entries: OrderedDict[str, _Entry] = OrderedDict()
        self._lock = threading.Lock()
        self._max = max_entries
        self._max_age = max_age_sec
        self._clock = clock
        self.hits = 0
        self.misses = 0

    @property
    def max_entries(self) -> int:
        return self._max

    @property
    def max_age_sec(self) -> float:
        return self._max_age

    def get(self, key: str) -> str | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self.misses += 1
                return None
            if self._clock() - entry.stored_at > self._max_age:
                del self._entries[key]
                self.misses += 1
                return None
            self._entries.move_to_end(key)
            self.hits += 1
            return entry.markup

    def set(self, key: str, markup: str) -> None:
        with self._lock:
            self._entries[key] = _Entry(markup=markup, stored_at=self._clock())
            self._entries.move_to_end(key)
            while len(self._entries) > self._max:
                self._entries.popitem(last=False)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries
