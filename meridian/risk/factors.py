"""Meridian – Factor exposure model.

Exposure to each of ten systematic factors is the value-weighted sum of
heuristic per-position loadings. Every computed exposure is appended to
a bounded per-factor history that provides z-score and percentile
context.

Loadings
--------

===========  ===============================================================
market       position beta, 1.0 when unknown
momentum     +0.5 with an unrealized gain, otherwise -0.5
value        Technology -0.3, Financials +0.4, otherwise 0
quality      +0.2 for equities, otherwise 0
size         0 (no market-cap data)
volatility   +0.8 crypto, -0.5 fixed income, otherwise 0
carry        dividend yield, 0 when unknown
liquidity    +0.3 when market value exceeds 10,000, otherwise -0.3
growth       Technology +0.5, Utilities -0.3, otherwise 0
dividend     dividend yield / 5, 0 when unknown
===========  ===============================================================
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Sequence

import numpy as np

from meridian.core.history import KeyedHistory
from meridian.core.logging import get_logger
from meridian.core.numeric import finite
from meridian.positions.types import AssetClass, Position

from .types import Factor, FactorExposure


logger = get_logger(__name__)

BENCHMARKS: Dict[Factor, float] = {
    Factor.MARKET: 1.0,
    Factor.MOMENTUM: 0.0,
    Factor.VALUE: 0.0,
    Factor.QUALITY: 0.2,
    Factor.SIZE: 0.0,
    Factor.VOLATILITY: 0.0,
    Factor.CARRY: 0.02,
    Factor.LIQUIDITY: 0.3,
    Factor.GROWTH: 0.0,
    Factor.DIVIDEND: 0.02,
}

LIQUIDITY_VALUE_THRESHOLD = 10_000.0


def factor_loading(position: Position, factor: Factor) -> float:
    """Return the heuristic loading of ``position`` on ``factor``."""

    if factor is Factor.MARKET:
        return position.beta if position.beta is not None else 1.0
    if factor is Factor.MOMENTUM:
        return 0.5 if position.unrealized_pnl_pct > 0 else -0.5
    if factor is Factor.VALUE:
        if position.sector == "Technology":
            return -0.3
        if position.sector == "Financials":
            return 0.4
        return 0.0
    if factor is Factor.QUALITY:
        return 0.2 if position.asset_class is AssetClass.EQUITY else 0.0
    if factor is Factor.SIZE:
        return 0.0
    if factor is Factor.VOLATILITY:
        if position.asset_class is AssetClass.CRYPTO:
            return 0.8
        if position.asset_class is AssetClass.FIXED_INCOME:
            return -0.5
        return 0.0
    if factor is Factor.CARRY:
        return position.dividend_yield or 0.0
    if factor is Factor.LIQUIDITY:
        return 0.3 if position.market_value > LIQUIDITY_VALUE_THRESHOLD else -0.3
    if factor is Factor.GROWTH:
        if position.sector == "Technology":
            return 0.5
        if position.sector == "Utilities":
            return -0.3
        return 0.0
    if factor is Factor.DIVIDEND:
        return (position.dividend_yield or 0.0) / 5.0
    return 0.0


def zscore(value: float, history: np.ndarray) -> float:
    """Population z-score of ``value`` against ``history``.

    Returns 0 with fewer than two samples or zero dispersion.
    """

    if history.size < 2:
        return 0.0
    std = float(history.std())
    if std == 0.0:
        return 0.0
    return finite((value - float(history.mean())) / std)


def percentile_rank(value: float, history: np.ndarray) -> float:
    """Rank of ``value`` within ``history`` on a 0-100 scale.

    The rank is the index of the first sorted sample ``>= value`` divided
    by the history length; 100 when every sample is smaller and 50 for
    an empty history.
    """

    if history.size == 0:
        return 50.0
    ordered = np.sort(history)
    idx = int(np.searchsorted(ordered, value, side="left"))
    if idx >= ordered.size:
        return 100.0
    return 100.0 * idx / ordered.size


class FactorModel:
    """Factor exposure calculator with bounded exposure history.

    Args:
        history_retention: Maximum number of samples kept per factor.
    """

    def __init__(self, history_retention: int = 252) -> None:
        self._history: KeyedHistory[Factor] = KeyedHistory(history_retention)

    def calculate_exposures(
        self,
        positions: Sequence[Position],
        total_value: Optional[float] = None,
    ) -> List[FactorExposure]:
        """Return one :class:`FactorExposure` per :class:`Factor`.

        With zero total value every exposure is 0 and the histories are
        left untouched.
        """

        if total_value is None:
            total_value = sum(p.market_value for p in positions)

        if total_value == 0.0:
            return [_neutral_exposure(factor) for factor in Factor]

        exposures: List[FactorExposure] = []
        for factor in Factor:
            raw = sum((p.market_value / total_value) * factor_loading(p, factor) for p in positions)
            exposure = finite(raw, label=f"exposure.{factor.value}")
            history = self._history.push(factor, exposure)
            benchmark = BENCHMARKS[factor]
            exposures.append(
                FactorExposure(
                    factor=factor,
                    exposure=exposure,
                    zscore=zscore(exposure, history),
                    benchmark=benchmark,
                    deviation=exposure - benchmark,
                    percentile=percentile_rank(exposure, history),
                    contribution=abs(exposure) / 10.0,
                )
            )

        logger.debug(
            "FactorModel exposures: %s",
            {e.factor.value: round(e.exposure, 4) for e in exposures},
        )
        return exposures

    def history(self, factor: Factor) -> np.ndarray:
        return self._history.values(factor)

    def exposure_map(self, exposures: Iterable[FactorExposure]) -> Dict[Factor, float]:
        return {e.factor: e.exposure for e in exposures}


def _neutral_exposure(factor: Factor) -> FactorExposure:
    benchmark = BENCHMARKS[factor]
    return FactorExposure(
        factor=factor,
        exposure=0.0,
        zscore=0.0,
        benchmark=benchmark,
        deviation=-benchmark,
        percentile=50.0,
        contribution=0.0,
    )
