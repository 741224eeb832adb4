"""
In-memory keyed state store with per-key locking.

Both the exposure tracker and the in-session manager keep one mutable
record per key. This store owns the key -> record map and provides:

- Striped per-key locks: a fixed pool of locks selected by key hash, so
  mutations to one key are serialized without one lock object per key
- A short-held map lock for inserts, deletes and snapshots
- Last-touched bookkeeping for the optional idle-eviction sweep

Lock ordering is always stripe lock first, then map lock.
"""

from __future__ import annotations

import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Callable, Generic, Hashable, Iterator, TypeVar

from loguru import logger

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


@dataclass
class _Entry(Generic[V]):
    value: V
    touched_at: float


class KeyedStateStore(Generic[K, V]):
    """Thread-safe map of key -> mutable record."""

    def __init__(
        self,
        name: str = "state",
        stripes: int = 64,
        clock: Callable[[], float] | None = None,
    ):
        if stripes < 1:
            raise ValueError("stripes must be >= 1")
        self.name = name
        self._clock = clock or time.monotonic
        self._stripes = [threading.Lock() for _ in range(stripes)]
        self._map_lock = threading.Lock()
        self._entries: dict[K, _Entry[V]] = {}

    # ========================================
    # Locking
    # ========================================

    def lock_for(self, key: K) -> threading.Lock:
        """Return the lock that serializes mutations of ``key``."""
        return self._stripes[hash(key) % len(self._stripes)]

    @contextmanager
    def locked(self, key: K) -> Iterator[None]:
        """Hold the key's lock for a read-modify-write sequence."""
        with self.lock_for(key):
            yield

    # ========================================
    # Record access (callers hold the key lock)
    # ========================================

    def get(self, key: K) -> V | None:
        entry = self._entries.get(key)
        return entry.value if entry is not None else None

    def put(self, key: K, value: V) -> None:
        with self._map_lock:
            self._entries[key] = _Entry(value, self._clock())

    def get_or_create(self, key: K, factory: Callable[[], V]) -> tuple[V, bool]:
        """Return ``(record, created)``, creating the record if absent."""
        with self._map_lock:
            entry = self._entries.get(key)
            if entry is not None:
                return entry.value, False
            value = factory()
            self._entries[key] = _Entry(value, self._clock())
            return value, True

    def touch(self, key: K) -> None:
        entry = self._entries.get(key)
        if entry is not None:
            entry.touched_at = self._clock()

    def pop(self, key: K) -> V | None:
        with self._map_lock:
            entry = self._entries.pop(key, None)
        return entry.value if entry is not None else None

    # ========================================
    # Whole-store operations
    # ========================================

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def keys(self) -> list[K]:
        with self._map_lock:
            return list(self._entries)

    def clear(self) -> int:
        with self._map_lock:
            count = len(self._entries)
            self._entries.clear()
        return count

    def evict_idle(self, max_idle_seconds: float) -> list[K]:
        """
        Remove records not touched within ``max_idle_seconds``.

        Each candidate is re-checked under its own key lock so a record that
        was touched after the snapshot survives.
        """
        now = self._clock()
        with self._map_lock:
            candidates = [
                key
                for key, entry in self._entries.items()
                if now - entry.touched_at >= max_idle_seconds
            ]

        evicted: list[K] = []
        for key in candidates:
            with self.lock_for(key):
                with self._map_lock:
                    entry = self._entries.get(key)
                    if entry is None or self._clock() - entry.touched_at < max_idle_seconds:
                        continue
                    del self._entries[key]
                evicted.append(key)

        if evicted:
            logger.info(f"Evicted {len(evicted)} idle {self.name} record(s)")
        return evicted
