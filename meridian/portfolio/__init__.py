"""Meridian – Portfolio aggregation package.

Projects position snapshots onto summary breakdowns by asset class,
sector, broker, currency and country.
"""

from __future__ import annotations

from meridian.portfolio.types import GroupingDimension, PortfolioSummary
from meridian.portfolio.aggregator import PortfolioAggregator, summarize

__all__ = [
    "GroupingDimension",
    "PortfolioSummary",
    "PortfolioAggregator",
    "summarize",
]
