"""Meridian – Portfolio aggregator.

Rolls a position snapshot into a :class:`PortfolioSummary` in a single
pass. The aggregator is stateless; every call is a fresh projection.
"""

from __future__ import annotations

from collections import defaultdict
from datetime import datetime, timezone
from typing import DefaultDict, Iterable, Optional

from meridian.core.logging import get_logger
from meridian.core.numeric import finite, safe_div
from meridian.positions.types import AssetClass, Position

from .types import PortfolioSummary


logger = get_logger(__name__)


class PortfolioAggregator:
    """Build :class:`PortfolioSummary` objects from position snapshots."""

    def summarize(
        self,
        positions: Iterable[Position],
        as_of: Optional[datetime] = None,
    ) -> PortfolioSummary:
        total_value = 0.0
        total_cost = 0.0
        count = 0

        by_asset_class: DefaultDict[AssetClass, float] = defaultdict(float)
        by_sector: DefaultDict[str, float] = defaultdict(float)
        by_broker: DefaultDict[str, float] = defaultdict(float)
        by_currency: DefaultDict[str, float] = defaultdict(float)
        by_country: DefaultDict[str, float] = defaultdict(float)

        for pos in positions:
            value = pos.market_value
            total_value += value
            total_cost += pos.cost_basis
            count += 1

            by_asset_class[pos.asset_class] += value
            by_broker[pos.broker] += value
            by_currency[pos.currency] += value
            if pos.sector:
                by_sector[pos.sector] += value
            if pos.country:
                by_country[pos.country] += value

        total_pnl = total_value - total_cost
        total_pnl_pct = safe_div(total_pnl, total_cost) if total_cost > 0.0 else 0.0

        summary = PortfolioSummary(
            total_value=finite(total_value, label="total_value"),
            total_cost=finite(total_cost, label="total_cost"),
            total_pnl=finite(total_pnl, label="total_pnl"),
            total_pnl_pct=total_pnl_pct,
            position_count=count,
            broker_count=len(by_broker),
            by_asset_class=dict(by_asset_class),
            by_sector=dict(by_sector),
            by_broker=dict(by_broker),
            by_currency=dict(by_currency),
            by_country=dict(by_country),
            timestamp=as_of or datetime.now(timezone.utc),
        )

        logger.debug(
            "PortfolioAggregator.summarize: positions=%d total_value=%.2f brokers=%d",
            count,
            summary.total_value,
            summary.broker_count,
        )
        return summary


def summarize(positions: Iterable[Position], as_of: Optional[datetime] = None) -> PortfolioSummary:
    """Convenience wrapper around :meth:`PortfolioAggregator.summarize`."""

    return PortfolioAggregator().summarize(positions, as_of=as_of)
