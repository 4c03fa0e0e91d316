"""Meridian – Cross-sectional tail risk.

Estimates left-tail risk from the distribution of unrealized returns
across the positions of a snapshot. The figures are a coarse proxy in
the absence of return history and feed the risk score through
``left_tail_risk``.
"""

from __future__ import annotations

import math
from typing import List, Optional, Sequence

import numpy as np

from meridian.core.logging import get_logger
from meridian.core.numeric import finite
from meridian.core.types import RiskLevel
from meridian.positions.types import Position

from .types import TailRiskAnalysis


logger = get_logger(__name__)

# Drawdown assumptions applied on top of the worst observed position return.
EXPECTED_DRAWDOWN_FLOOR = -0.15
STRESSED_DRAWDOWN_FLOOR = -0.30
STRESSED_DRAWDOWN_SCALE = 1.5
FAT_TAIL_THRESHOLD = 3.0


def left_tail_level(var95: float) -> RiskLevel:
    if var95 < -0.20:
        return RiskLevel.EXTREME
    if var95 < -0.15:
        return RiskLevel.HIGH
    if var95 < -0.10:
        return RiskLevel.ELEVATED
    if var95 < -0.05:
        return RiskLevel.MODERATE
    return RiskLevel.LOW


def _quantile(sorted_returns: np.ndarray, fraction: float) -> float:
    return float(sorted_returns[int(math.floor(sorted_returns.size * fraction))])


def _shortfall(sorted_returns: np.ndarray, fraction: float, fallback: float) -> float:
    tail = sorted_returns[: int(math.floor(sorted_returns.size * fraction))]
    return float(tail.mean()) if tail.size else fallback


def excess_kurtosis(returns: np.ndarray) -> float:
    """Population excess kurtosis; 0 for fewer than two samples or zero variance."""

    if returns.size < 2:
        return 0.0
    variance = float(returns.var())
    if variance == 0.0:
        return 0.0
    standardised = (returns - returns.mean()) / math.sqrt(variance)
    return finite(float((standardised ** 4).mean()) - 3.0, label="tail_index")


class TailRiskAnalyzer:
    """VaR/CVaR and drawdown proxies from position return dispersion."""

    def analyze(self, positions: Sequence[Position], total_value: Optional[float] = None) -> TailRiskAnalysis:
        if total_value is None:
            total_value = sum(p.market_value for p in positions)
        if not positions or total_value == 0.0:
            return TailRiskAnalysis()

        returns = np.array([p.unrealized_pnl_pct for p in positions], dtype=float)
        ordered = np.sort(returns)

        var95 = _quantile(ordered, 0.05)
        var99 = _quantile(ordered, 0.01)
        cvar95 = _shortfall(ordered, 0.05, var95)
        cvar99 = _shortfall(ordered, 0.01, var99)

        worst = float(ordered[0])
        dd_expected = min(EXPECTED_DRAWDOWN_FLOOR, worst)
        dd_99 = min(STRESSED_DRAWDOWN_FLOOR, worst * STRESSED_DRAWDOWN_SCALE)
        tail_index = excess_kurtosis(returns)
        level = left_tail_level(var95)

        recommendations: List[str] = []
        if level in (RiskLevel.EXTREME, RiskLevel.HIGH):
            recommendations.extend(
                [
                    "Consider purchasing protective puts",
                    "Reduce position sizes",
                    "Increase diversification",
                ]
            )
        if tail_index > FAT_TAIL_THRESHOLD:
            recommendations.append("Portfolio has fat tails - consider tail hedging")

        logger.debug("TailRiskAnalyzer: var95=%.4f level=%s tail_index=%.2f", var95, level.value, tail_index)
        return TailRiskAnalysis(
            var95=var95,
            var99=var99,
            cvar95=cvar95,
            cvar99=cvar99,
            max_drawdown_expected=dd_expected,
            max_drawdown_99=dd_99,
            tail_index=tail_index,
            left_tail_risk=level,
            recommendations=tuple(recommendations),
        )
