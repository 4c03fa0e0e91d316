"""Meridian – Positions package.

This package holds the position value type, the validated input record
used to parse caller-supplied updates, and the in-memory
:class:`PositionStore` that all risk engines read snapshots from.
"""

from __future__ import annotations

from meridian.positions.types import AssetClass, Position, PositionRecord
from meridian.positions.store import PositionListener, PositionStore

__all__ = [
    "AssetClass",
    "Position",
    "PositionRecord",
    "PositionStore",
    "PositionListener",
]
