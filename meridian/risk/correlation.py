"""Meridian – Correlation engine.

Builds a pairwise correlation estimate from position attributes and a
diversification score from the mean off-diagonal correlation. The
estimate is a deterministic similarity heuristic; no price history is
required.
"""

from __future__ import annotations

from typing import List, Optional, Sequence

import numpy as np

from meridian.core.logging import get_logger
from meridian.core.numeric import clamp
from meridian.positions.types import AssetClass, Position

from .types import CorrelationMatrix, CorrelationPair


logger = get_logger(__name__)

DEFAULT_HIGH_CORRELATION_THRESHOLD = 0.70


def estimate_correlation(a: Position, b: Position) -> float:
    """Heuristic correlation between two positions in [-1, 1]."""

    corr = 0.0
    if a.asset_class is b.asset_class:
        corr += 0.5
    if a.sector and a.sector == b.sector:
        corr += 0.3
    if a.country and a.country == b.country:
        corr += 0.1

    if a.asset_class is AssetClass.CRYPTO and b.asset_class is AssetClass.CRYPTO:
        corr = 0.85

    classes = {a.asset_class, b.asset_class}
    if classes == {AssetClass.EQUITY, AssetClass.FIXED_INCOME}:
        corr = -0.2

    return clamp(corr, -1.0, 1.0)


class CorrelationEngine:
    """Correlation matrix and diversification score for a snapshot.

    Args:
        high_correlation_threshold: Pairs strictly above this value are
            reported in ``high_correlations``.
    """

    def __init__(self, high_correlation_threshold: float = DEFAULT_HIGH_CORRELATION_THRESHOLD) -> None:
        self._threshold = high_correlation_threshold

    def analyze(self, positions: Sequence[Position], total_value: Optional[float] = None) -> CorrelationMatrix:
        """Build the pairwise matrix for ``positions``.

        A book with no market value (every price at zero) has no weights to
        diversify, so it gets the neutral empty matrix. ``total_value``
        defaults to the sum of the position market values.
        """

        n = len(positions)
        if total_value is None:
            total_value = sum(p.market_value for p in positions)
        if n == 0 or total_value == 0.0:
            return CorrelationMatrix()

        matrix = np.eye(n, dtype=float)
        pairs: List[CorrelationPair] = []
        for i in range(n):
            for j in range(i + 1, n):
                corr = estimate_correlation(positions[i], positions[j])
                matrix[i, j] = corr
                matrix[j, i] = corr
                if corr > self._threshold:
                    pairs.append(CorrelationPair(positions[i].symbol, positions[j].symbol, corr))

        pairs.sort(key=lambda p: p.correlation, reverse=True)

        clusters = {(p.asset_class, p.sector or "none") for p in positions}

        upper = matrix[np.triu_indices(n, k=1)]
        mean_corr = float(upper.mean()) if upper.size else 0.0
        score = clamp(100.0 * (1.0 - mean_corr), 0.0, 100.0)

        logger.debug(
            "CorrelationEngine: n=%d mean_corr=%.3f diversification=%.1f high_pairs=%d",
            n,
            mean_corr,
            score,
            len(pairs),
        )
        return CorrelationMatrix(
            symbols=tuple(p.symbol for p in positions),
            matrix=matrix,
            high_correlations=tuple(pairs),
            cluster_count=len(clusters),
            diversification_score=score,
        )
