"""Meridian – Portfolio summary types.

This module defines the in-memory projection of a position snapshot onto
its grouping dimensions. A summary is always recomputed from positions
and never persisted on its own.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Mapping

import pandas as pd

from meridian.core.serialization import to_jsonable
from meridian.core.types import Number
from meridian.positions.types import AssetClass


class GroupingDimension(str, Enum):
    """Grouping dimensions exposed by :class:`PortfolioSummary`."""

    ASSET_CLASS = "asset_class"
    SECTOR = "sector"
    BROKER = "broker"
    CURRENCY = "currency"
    COUNTRY = "country"


@dataclass(frozen=True)
class PortfolioSummary:
    """Aggregated view of a position snapshot.

    Attributes:
        total_value: Sum of position market values.
        total_cost: Sum of position cost bases.
        total_pnl: ``total_value - total_cost``.
        total_pnl_pct: ``total_pnl / total_cost`` as a fraction, 0.0 when
            ``total_cost`` is 0.
        position_count: Number of positions in the snapshot.
        broker_count: Number of distinct brokers.
        by_asset_class: Market value per asset class.
        by_sector: Market value per sector; positions without a sector
            are left out.
        by_broker: Market value per broker.
        by_currency: Market value per currency.
        by_country: Market value per country; positions without a
            country are left out.
        timestamp: UTC time at which the summary was computed.
    """

    total_value: Number = 0.0
    total_cost: Number = 0.0
    total_pnl: Number = 0.0
    total_pnl_pct: Number = 0.0
    position_count: int = 0
    broker_count: int = 0
    by_asset_class: Dict[AssetClass, Number] = field(default_factory=dict)
    by_sector: Dict[str, Number] = field(default_factory=dict)
    by_broker: Dict[str, Number] = field(default_factory=dict)
    by_currency: Dict[str, Number] = field(default_factory=dict)
    by_country: Dict[str, Number] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def is_empty(self) -> bool:
        return self.total_value == 0.0

    def breakdown(self, dimension: GroupingDimension | str) -> Mapping[Any, Number]:
        """Return the value mapping for ``dimension``."""

        dim = GroupingDimension(dimension)
        return {
            GroupingDimension.ASSET_CLASS: self.by_asset_class,
            GroupingDimension.SECTOR: self.by_sector,
            GroupingDimension.BROKER: self.by_broker,
            GroupingDimension.CURRENCY: self.by_currency,
            GroupingDimension.COUNTRY: self.by_country,
        }[dim]

    def weights(self, dimension: GroupingDimension | str) -> Dict[Any, Number]:
        """Return bucket weights (fractions of total value) for ``dimension``."""

        if self.total_value == 0.0:
            return {}
        return {k: v / self.total_value for k, v in self.breakdown(dimension).items()}

    def to_frame(self) -> pd.DataFrame:
        """Return the breakdowns as a long-format DataFrame.

        Columns: ``dimension``, ``bucket``, ``value``, ``weight``.
        """

        rows = []
        for dim in GroupingDimension:
            weights = self.weights(dim)
            for bucket, value in self.breakdown(dim).items():
                label = bucket.value if isinstance(bucket, Enum) else bucket
                rows.append(
                    {
                        "dimension": dim.value,
                        "bucket": label,
                        "value": value,
                        "weight": weights.get(bucket, 0.0),
                    }
                )
        return pd.DataFrame(rows, columns=["dimension", "bucket", "value", "weight"])

    def to_dict(self) -> Dict[str, Any]:
        return to_jsonable(self)
