"""Meridian – Black swan vulnerability.

Scores a snapshot against a fixed catalogue of rare catastrophic events
and returns a protection menu sized to the portfolio. Probabilities are
annualised fractions and impacts are fractional portfolio returns.

The vulnerability score is ``50 + 30*equity + 50*crypto - 20*fixed
income`` on asset-class weights, clamped to the 0-100 scale. Tail shape
statistics (skewness and Pearson kurtosis) are measured across position
returns with :mod:`scipy.stats` when there are at least three positions
with dispersion; otherwise typical equity-market values are reported.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Optional, Sequence, Tuple

import numpy as np
from scipy import stats

from meridian.core.ids import generate_run_id
from meridian.core.logging import get_logger
from meridian.core.numeric import clamp, finite
from meridian.portfolio.aggregator import summarize
from meridian.portfolio.types import GroupingDimension, PortfolioSummary
from meridian.positions.types import AssetClass, Position

from .types import (
    BlackSwanAnalysis,
    BlackSwanRisk,
    EventCategory,
    HistoricalBlackSwan,
    ProtectionStrategy,
    TailMetrics,
)


logger = get_logger(__name__)

BASE_VULNERABILITY = 50.0
EQUITY_VULNERABILITY = 30.0
CRYPTO_VULNERABILITY = 50.0
FIXED_INCOME_RELIEF = 20.0

# Reported when the cross-section is too small to measure.
DEFAULT_SKEWNESS = -0.8
DEFAULT_KURTOSIS = 4.2
MIN_SHAPE_SAMPLES = 3

MOST_VULNERABLE_COUNT = 3
LEAST_VULNERABLE_COUNT = 2

EVENT_CATALOGUE: Tuple[BlackSwanRisk, ...] = (
    BlackSwanRisk("Major Geopolitical Conflict", EventCategory.GEOPOLITICAL, 0.10, -0.30, 0.005, 0.6),
    BlackSwanRisk("Sovereign Debt Crisis", EventCategory.FINANCIAL, 0.15, -0.40, 0.008, 0.5),
    BlackSwanRisk("Pandemic 2.0", EventCategory.PANDEMIC, 0.05, -0.35, 0.003, 0.4),
    BlackSwanRisk("AI/Technology Disruption", EventCategory.TECHNOLOGICAL, 0.20, -0.20, 0.002, 0.3),
    BlackSwanRisk("Major Natural Disaster", EventCategory.NATURAL, 0.10, -0.15, 0.003, 0.5),
)

HISTORICAL_EVENTS: Tuple[HistoricalBlackSwan, ...] = (
    HistoricalBlackSwan(
        "2008 Financial Crisis", date(2008, 9, 15), -0.57, 1461, "Credit conditions are the canary"
    ),
    HistoricalBlackSwan(
        "COVID-19 Crash",
        date(2020, 3, 16),
        -0.34,
        149,
        "Fast crashes can have fast recoveries with policy support",
    ),
    HistoricalBlackSwan(
        "Flash Crash 2010", date(2010, 5, 6), -0.09, 1, "Liquidity can evaporate instantly"
    ),
)


def vulnerability_score(summary: PortfolioSummary) -> float:
    weights = summary.weights(GroupingDimension.ASSET_CLASS)
    score = (
        BASE_VULNERABILITY
        + EQUITY_VULNERABILITY * weights.get(AssetClass.EQUITY, 0.0)
        + CRYPTO_VULNERABILITY * weights.get(AssetClass.CRYPTO, 0.0)
        - FIXED_INCOME_RELIEF * weights.get(AssetClass.FIXED_INCOME, 0.0)
    )
    return clamp(score, 0.0, 100.0)


def tail_metrics(positions: Sequence[Position], summary: PortfolioSummary) -> TailMetrics:
    """Tail exposure proxies and return-shape statistics."""

    weights = summary.weights(GroupingDimension.ASSET_CLASS)
    equity = weights.get(AssetClass.EQUITY, 0.0)
    crypto = weights.get(AssetClass.CRYPTO, 0.0)
    fixed_income = weights.get(AssetClass.FIXED_INCOME, 0.0)

    if summary.total_value > 0.0:
        left = clamp(0.25 * (equity + 2.0 * crypto - 0.5 * fixed_income), 0.0, 1.0)
        right = clamp(0.15 * (equity + 2.0 * crypto), 0.0, 1.0)
    else:
        left = right = 0.0

    skewness, kurtosis = DEFAULT_SKEWNESS, DEFAULT_KURTOSIS
    returns = np.array([p.unrealized_pnl_pct for p in positions], dtype=float)
    if returns.size >= MIN_SHAPE_SAMPLES and float(returns.var()) > 0.0:
        skewness = finite(float(stats.skew(returns)), DEFAULT_SKEWNESS, label="skewness")
        kurtosis = finite(float(stats.kurtosis(returns, fisher=False)), DEFAULT_KURTOSIS, label="kurtosis")

    return TailMetrics(
        left_tail_exposure=left,
        right_tail_exposure=right,
        kurtosis=kurtosis,
        skewness=skewness,
    )


def protection_strategies(total_value: float) -> Tuple[ProtectionStrategy, ...]:
    return (
        ProtectionStrategy("Put Options (SPY)", total_value * 0.01, total_value * 0.15, 0.85, "Buy 3-month 10% OTM puts"),
        ProtectionStrategy("Gold Allocation", 0.0, total_value * 0.08, 0.6, "Add 5-10% allocation to GLD"),
        ProtectionStrategy("Treasury Allocation", total_value * 0.003, total_value * 0.10, 0.7, "Add 10% allocation to TLT"),
        ProtectionStrategy("Cash Buffer", total_value * 0.005, total_value * 0.05, 1.0, "Maintain 10% cash position"),
    )


class BlackSwanAnalyzer:
    """Rare-event vulnerability analysis.

    Args:
        events: Event catalogue. Defaults to :data:`EVENT_CATALOGUE`.
    """

    def __init__(self, events: Optional[Sequence[BlackSwanRisk]] = None) -> None:
        self._events = tuple(EVENT_CATALOGUE if events is None else events)

    @property
    def events(self) -> Tuple[BlackSwanRisk, ...]:
        return self._events

    def analyze(
        self,
        positions: Sequence[Position],
        summary: Optional[PortfolioSummary] = None,
    ) -> BlackSwanAnalysis:
        if summary is None:
            summary = summarize(positions)

        ranked = sorted(self._events, key=lambda r: r.expected_loss, reverse=True)
        score = vulnerability_score(summary)

        analysis = BlackSwanAnalysis(
            id=generate_run_id("blackswan"),
            timestamp=datetime.now(timezone.utc),
            risks=self._events,
            vulnerability_score=score,
            most_vulnerable_to=tuple(r.event for r in ranked[:MOST_VULNERABLE_COUNT]),
            least_vulnerable_to=tuple(r.event for r in ranked[::-1][:LEAST_VULNERABLE_COUNT]),
            tail_metrics=tail_metrics(positions, summary),
            protection_strategies=protection_strategies(summary.total_value),
            historical_events=HISTORICAL_EVENTS,
        )
        logger.debug("BlackSwanAnalyzer: vulnerability=%.1f most=%s", score, analysis.most_vulnerable_to)
        return analysis
