"""Meridian – Bounded rolling history buffers.

Rolling histories back the factor z-score/percentile context, the
per-position market-value trail kept by the position store and the
risk-report trend buffer. Each buffer is a ring with a fixed capacity;
appending beyond capacity evicts the oldest sample.
"""

from __future__ import annotations

from collections import deque
from threading import Lock
from typing import Deque, Generic, Hashable, Iterator, List, TypeVar

import numpy as np


T = TypeVar("T")
K = TypeVar("K", bound=Hashable)


class RollingHistory(Generic[T]):
    """Thread-safe fixed-capacity ring buffer."""

    def __init__(self, capacity: int) -> None:
        if capacity <= 0:
            msg = "capacity must be positive"
            raise ValueError(msg)
        self._capacity = capacity
        self._items: Deque[T] = deque(maxlen=capacity)
        self._lock = Lock()

    @property
    def capacity(self) -> int:
        return self._capacity

    def append(self, item: T) -> None:
        with self._lock:
            self._items.append(item)

    def snapshot(self) -> List[T]:
        """Return a copy of the buffered items, oldest first."""

        with self._lock:
            return list(self._items)

    def latest(self) -> T | None:
        with self._lock:
            return self._items[-1] if self._items else None

    def clear(self) -> None:
        with self._lock:
            self._items.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def __iter__(self) -> Iterator[T]:
        return iter(self.snapshot())


class KeyedHistory(Generic[K]):
    """A family of numeric :class:`RollingHistory` buffers keyed by name."""

    def __init__(self, capacity: int) -> None:
        if capacity <= 0:
            msg = "capacity must be positive"
            raise ValueError(msg)
        self._capacity = capacity
        self._buffers: dict[K, RollingHistory[float]] = {}
        self._lock = Lock()

    def _buffer(self, key: K) -> RollingHistory[float]:
        with self._lock:
            buf = self._buffers.get(key)
            if buf is None:
                buf = RollingHistory(self._capacity)
                self._buffers[key] = buf
            return buf

    def push(self, key: K, value: float) -> np.ndarray:
        """Append ``value`` under ``key`` and return the updated history."""

        buf = self._buffer(key)
        buf.append(float(value))
        return np.asarray(buf.snapshot(), dtype=float)

    def values(self, key: K) -> np.ndarray:
        with self._lock:
            buf = self._buffers.get(key)
        if buf is None:
            return np.zeros(0, dtype=float)
        return np.asarray(buf.snapshot(), dtype=float)

    def discard(self, key: K) -> None:
        with self._lock:
            self._buffers.pop(key, None)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._buffers
