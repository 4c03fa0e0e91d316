"""Meridian – Position store.

The :class:`PositionStore` is the only stateful input of the risk
engines. It keeps the latest :class:`Position` per id and a bounded trail
of market values per position.

Writes are whole-object replacements performed under a lock, and
:meth:`PositionStore.snapshot` hands out an immutable tuple. A report
cycle takes one snapshot up front and runs every analysis against it, so
an ``upsert`` arriving mid-cycle cannot leak into that report.
"""

from __future__ import annotations

from threading import Lock
from typing import Callable, Dict, Iterable, List, Optional, Tuple

import numpy as np

from meridian.core.history import KeyedHistory
from meridian.core.logging import get_logger

from .types import Position


logger = get_logger(__name__)

PositionListener = Callable[[str, Optional[Position]], None]


class PositionStore:
    """In-memory store of the current position set.

    Args:
        history_retention: Maximum number of market-value samples kept
            per position.
    """

    def __init__(self, history_retention: int = 252) -> None:
        self._positions: Dict[str, Position] = {}
        self._history: KeyedHistory[str] = KeyedHistory(history_retention)
        self._listeners: List[PositionListener] = []
        self._lock = Lock()

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def upsert(self, position: Position) -> None:
        """Insert or replace the position with ``position.id``."""

        with self._lock:
            self._positions[position.id] = position
            self._history.push(position.id, position.market_value)
            listeners = list(self._listeners)

        logger.debug(
            "PositionStore.upsert: id=%s symbol=%s value=%.2f",
            position.id,
            position.symbol,
            position.market_value,
        )
        self._notify(listeners, position.id, position)

    def upsert_many(self, positions: Iterable[Position]) -> None:
        for position in positions:
            self.upsert(position)

    def remove(self, position_id: str) -> bool:
        """Delete a position and its history. Returns False if unknown."""

        with self._lock:
            removed = self._positions.pop(position_id, None)
            self._history.discard(position_id)
            listeners = list(self._listeners)

        if removed is None:
            return False
        logger.debug("PositionStore.remove: id=%s", position_id)
        self._notify(listeners, position_id, None)
        return True

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def snapshot(self) -> Tuple[Position, ...]:
        """Return an immutable snapshot of all positions."""

        with self._lock:
            return tuple(self._positions.values())

    def all(self) -> List[Position]:
        return list(self.snapshot())

    def get(self, position_id: str) -> Position | None:
        with self._lock:
            return self._positions.get(position_id)

    def by_broker(self, broker: str) -> List[Position]:
        return [p for p in self.snapshot() if p.broker == broker]

    def history(self, position_id: str) -> np.ndarray:
        """Return the market-value trail for ``position_id``, oldest first."""

        return self._history.values(position_id)

    def __len__(self) -> int:
        with self._lock:
            return len(self._positions)

    # ------------------------------------------------------------------
    # Observers
    # ------------------------------------------------------------------

    def subscribe(self, listener: PositionListener) -> None:
        """Register ``listener(position_id, position_or_None)``.

        ``None`` signals a removal.
        """

        with self._lock:
            self._listeners.append(listener)

    def unsubscribe(self, listener: PositionListener) -> None:
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    @staticmethod
    def _notify(
        listeners: List[PositionListener],
        position_id: str,
        position: Position | None,
    ) -> None:
        for listener in listeners:
            try:
                listener(position_id, position)
            except Exception:
                logger.exception("PositionStore listener failed for id=%s", position_id)
