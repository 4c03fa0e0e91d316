"""Meridian – Hedge and rotation recommendations.

Rule-based suggestions derived from the portfolio summary and factor
exposures. Rotation suggestions depend on a caller-set macro backdrop
(:class:`RotationRegime`).
"""

from __future__ import annotations

import math
from typing import Dict, List, Mapping, Sequence, Tuple

from meridian.core.logging import get_logger
from meridian.portfolio.types import PortfolioSummary
from meridian.positions.types import AssetClass

from .types import (
    Factor,
    HedgeProtection,
    HedgeRecommendation,
    HedgeType,
    RotationRecommendation,
    RotationRegime,
)


logger = get_logger(__name__)

# Approximate unit prices used to size hedge quantities.
INVERSE_ETF_PRICE = 40.0
VOLATILITY_ETN_PRICE = 20.0

EQUITY_HEAVY_WEIGHT = 0.60
MARKET_EXPOSURE_LIMIT = 0.80
VOLATILITY_EXPOSURE_LIMIT = 0.50
CRYPTO_WEIGHT_LIMIT = 0.10

ROTATIONS: Dict[RotationRegime, Tuple[Tuple[str, ...], Tuple[str, ...]]] = {
    RotationRegime.RISK_ON: (("Utilities", "Consumer Staples"), ("Technology", "Consumer Discretionary")),
    RotationRegime.RISK_OFF: (("Technology", "Consumer Discretionary"), ("Utilities", "Healthcare")),
    RotationRegime.INFLATION: (("Technology", "Growth"), ("Energy", "Commodities")),
    RotationRegime.RECESSION: (("Cyclicals", "Financials"), ("Consumer Staples", "Healthcare")),
}

ROTATION_SECTOR_WEIGHT = 0.10
ROTATION_EXPECTED_BENEFIT = 0.05
ROTATION_CONFIDENCE = 0.6
ROTATION_COST_RATE = 0.005


class HedgeAdvisor:
    """Suggest hedges for equity-heavy, volatile or crypto-heavy books."""

    def recommend(
        self,
        summary: PortfolioSummary,
        exposures: Mapping[Factor, float],
    ) -> List[HedgeRecommendation]:
        total = summary.total_value
        if total <= 0.0:
            return []

        recommendations: List[HedgeRecommendation] = []

        equity_value = summary.by_asset_class.get(AssetClass.EQUITY, 0.0)
        market = exposures.get(Factor.MARKET, 0.0)
        if equity_value > total * EQUITY_HEAVY_WEIGHT and market > MARKET_EXPOSURE_LIMIT:
            amount = equity_value * 0.10
            recommendations.append(
                HedgeRecommendation(
                    type=HedgeType.INVERSE_ETF,
                    symbol="SH",
                    name="ProShares Short S&P500",
                    action="buy",
                    quantity=int(math.floor(amount / INVERSE_ETF_PRICE)),
                    estimated_cost=amount,
                    protection=HedgeProtection(downside=0.10, upside=-0.10, breakeven=0.0),
                    hedge_ratio=0.10,
                    effectiveness=0.75,
                    reason="Reduce market beta exposure",
                )
            )

        if exposures.get(Factor.VOLATILITY, 0.0) > VOLATILITY_EXPOSURE_LIMIT:
            amount = total * 0.02
            recommendations.append(
                HedgeRecommendation(
                    type=HedgeType.OPTION,
                    symbol="VXX",
                    name="iPath Series B S&P 500 VIX",
                    action="buy",
                    quantity=int(math.floor(amount / VOLATILITY_ETN_PRICE)),
                    estimated_cost=amount,
                    protection=HedgeProtection(downside=0.20, upside=-0.05, breakeven=-0.10),
                    hedge_ratio=0.02,
                    effectiveness=0.60,
                    reason="Protect against volatility spike",
                )
            )

        crypto_value = summary.by_asset_class.get(AssetClass.CRYPTO, 0.0)
        if crypto_value > total * CRYPTO_WEIGHT_LIMIT:
            recommendations.append(
                HedgeRecommendation(
                    type=HedgeType.DIVERSIFICATION,
                    symbol="CASH",
                    name="Increase cash reserves",
                    action="buy",
                    quantity=1,
                    estimated_cost=crypto_value * 0.20,
                    protection=HedgeProtection(downside=0.15, upside=0.0, breakeven=0.0),
                    hedge_ratio=0.20,
                    effectiveness=0.80,
                    reason="Reduce crypto volatility exposure",
                )
            )

        return recommendations


class RotationAdvisor:
    """Suggest sector rotations for the current macro backdrop."""

    def recommend(
        self,
        summary: PortfolioSummary,
        regime: RotationRegime,
    ) -> List[RotationRecommendation]:
        rotation = ROTATIONS.get(regime)
        if rotation is None or summary.total_value <= 0.0:
            return []

        from_sectors, to_sectors = rotation
        recommendations: List[RotationRecommendation] = []
        for from_sector in from_sectors:
            from_value = summary.by_sector.get(from_sector, 0.0)
            if from_value <= summary.total_value * ROTATION_SECTOR_WEIGHT:
                continue
            for to_sector in to_sectors:
                recommendations.append(
                    RotationRecommendation(
                        from_sector=from_sector,
                        to_sector=to_sector,
                        reason=f"{regime.value} regime favors {to_sector} over {from_sector}",
                        regime_context=regime,
                        expected_benefit=ROTATION_EXPECTED_BENEFIT,
                        confidence=ROTATION_CONFIDENCE,
                        estimated_cost=from_value * ROTATION_COST_RATE,
                    )
                )
        return recommendations


def rotation_sectors(regime: RotationRegime) -> Sequence[str]:
    """Sectors the backdrop rotates out of (empty for ``NORMAL``)."""

    return ROTATIONS.get(regime, ((), ()))[0]
