"""Meridian – Concentration risk detector.

Flags positions and grouping buckets whose weight is strictly above the
configured limit. The risk level is bucketed by the ratio of weight to
limit.
"""

from __future__ import annotations

from typing import Callable, Dict, List, Optional, Sequence

from meridian.core.config import ConcentrationLimits, get_config
from meridian.core.logging import get_logger
from meridian.core.types import RiskLevel
from meridian.portfolio.types import GroupingDimension, PortfolioSummary
from meridian.positions.types import Position

from .types import ConcentrationRisk, ConcentrationType


logger = get_logger(__name__)


def concentration_level(weight: float, limit: float) -> RiskLevel:
    """Bucket ``weight / limit`` into a risk level."""

    if limit <= 0.0:
        return RiskLevel.EXTREME if weight > 0.0 else RiskLevel.LOW
    ratio = weight / limit
    if ratio >= 2.0:
        return RiskLevel.EXTREME
    if ratio >= 1.5:
        return RiskLevel.HIGH
    if ratio >= 1.25:
        return RiskLevel.ELEVATED
    if ratio >= 1.0:
        return RiskLevel.MODERATE
    return RiskLevel.LOW


_BUCKET_HINTS: Dict[ConcentrationType, Callable[[str], str]] = {
    ConcentrationType.SECTOR: lambda name: f"Diversify away from {name} sector",
    ConcentrationType.ASSET_CLASS: lambda name: f"Reduce {name} exposure",
    ConcentrationType.BROKER: lambda name: "Spread assets across multiple brokers for safety",
    ConcentrationType.CURRENCY: lambda name: "Consider currency diversification",
    ConcentrationType.COUNTRY: lambda name: f"Reduce exposure to {name}",
}

_DIMENSIONS = (
    (ConcentrationType.SECTOR, GroupingDimension.SECTOR),
    (ConcentrationType.ASSET_CLASS, GroupingDimension.ASSET_CLASS),
    (ConcentrationType.BROKER, GroupingDimension.BROKER),
    (ConcentrationType.CURRENCY, GroupingDimension.CURRENCY),
    (ConcentrationType.COUNTRY, GroupingDimension.COUNTRY),
)


class ConcentrationDetector:
    """Detect over-weight positions and buckets.

    Args:
        limits: Maximum recommended weights. Defaults to the configured
            limits.
    """

    def __init__(self, limits: Optional[ConcentrationLimits] = None) -> None:
        self._limits = limits or get_config().concentration_limits

    @property
    def limits(self) -> ConcentrationLimits:
        return self._limits

    def _limit_for(self, kind: ConcentrationType) -> float:
        return {
            ConcentrationType.POSITION: self._limits.max_position_weight,
            ConcentrationType.SECTOR: self._limits.max_sector_weight,
            ConcentrationType.ASSET_CLASS: self._limits.max_asset_class_weight,
            ConcentrationType.BROKER: self._limits.max_broker_weight,
            ConcentrationType.CURRENCY: self._limits.max_currency_weight,
            ConcentrationType.COUNTRY: self._limits.max_country_weight,
        }[kind]

    def detect(self, positions: Sequence[Position], summary: PortfolioSummary) -> List[ConcentrationRisk]:
        """Return concentration risks, most severe first."""

        total = summary.total_value
        if total == 0.0:
            return []

        risks: List[ConcentrationRisk] = []

        limit = self._limit_for(ConcentrationType.POSITION)
        for pos in positions:
            weight = pos.market_value / total
            if weight > limit:
                excess = (weight - limit) * total
                risks.append(
                    ConcentrationRisk(
                        type=ConcentrationType.POSITION,
                        name=pos.symbol,
                        current_weight=weight,
                        max_recommended=limit,
                        risk_level=concentration_level(weight, limit),
                        recommendation=f"Consider reducing {pos.symbol} position by {excess:,.0f}",
                    )
                )

        for kind, dimension in _DIMENSIONS:
            limit = self._limit_for(kind)
            for bucket, weight in summary.weights(dimension).items():
                if weight <= limit:
                    continue
                name = getattr(bucket, "value", bucket)
                risks.append(
                    ConcentrationRisk(
                        type=kind,
                        name=name,
                        current_weight=weight,
                        max_recommended=limit,
                        risk_level=concentration_level(weight, limit),
                        recommendation=_BUCKET_HINTS[kind](name),
                    )
                )

        risks.sort(key=lambda r: r.risk_level.severity, reverse=True)
        logger.debug("ConcentrationDetector: %d risks flagged", len(risks))
        return risks
