"""Meridian – Risk engine types.

This module defines the value objects produced by the risk engines:
factor exposures, concentration flags, the correlation matrix, stress
results, tail-risk analysis, hedge and rotation recommendations, the
black-swan analysis and the composite :class:`RiskReport`.

Key responsibilities:
- Provide immutable, JSON-serializable result records for each engine.
- Define the enums used to label factors, concentration dimensions,
  hedge kinds and rotation regimes.

External dependencies:
- numpy: Correlation matrix storage.
- pandas: Tabular views for inspection (``to_frame``).

Thread safety: Dataclasses are immutable value objects; this module
itself is stateless.

Author: Meridian Team
Created: 2026-10-18
Last Modified: 2026-10-18
Status: Development
Version: v0.1.0
"""

from __future__ import annotations

# ============================================================================
# Imports
# ============================================================================

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, Optional, Tuple

import numpy as np
import pandas as pd

from meridian.core.serialization import NdArray, to_jsonable
from meridian.core.types import Number, RiskLevel
from meridian.portfolio.types import PortfolioSummary
from meridian.regime.types import RegimeTransitionPrediction
from meridian.simulation.types import ScenarioResult


# ============================================================================
# Factors
# ============================================================================


class Factor(str, Enum):
    """Systematic risk factors tracked by the factor model."""

    MARKET = "market"
    MOMENTUM = "momentum"
    VALUE = "value"
    QUALITY = "quality"
    SIZE = "size"
    VOLATILITY = "volatility"
    CARRY = "carry"
    LIQUIDITY = "liquidity"
    GROWTH = "growth"
    DIVIDEND = "dividend"


@dataclass(frozen=True)
class FactorExposure:
    """Portfolio exposure to one factor with its historical context.

    Attributes:
        factor: Factor label.
        exposure: Value-weighted sum of per-position loadings.
        zscore: Standardised distance of ``exposure`` from the mean of
            its own history (0 with fewer than two samples or zero
            variance).
        benchmark: Neutral reference exposure for the factor.
        deviation: ``exposure - benchmark``.
        percentile: Rank of ``exposure`` within its history on a 0-100
            scale (50 when the history is empty).
        contribution: Simplified risk-attribution weight,
            ``abs(exposure) / 10``.
    """

    factor: Factor
    exposure: Number
    zscore: Number
    benchmark: Number
    deviation: Number
    percentile: Number
    contribution: Number


# ============================================================================
# Concentration
# ============================================================================


class ConcentrationType(str, Enum):
    POSITION = "position"
    SECTOR = "sector"
    ASSET_CLASS = "asset_class"
    BROKER = "broker"
    CURRENCY = "currency"
    COUNTRY = "country"


@dataclass(frozen=True)
class ConcentrationRisk:
    """An over-weight bucket.

    ``current_weight`` and ``max_recommended`` are fractions of total
    portfolio value.
    """

    type: ConcentrationType
    name: str
    current_weight: Number
    max_recommended: Number
    risk_level: RiskLevel
    recommendation: str


# ============================================================================
# Correlation
# ============================================================================


@dataclass(frozen=True)
class CorrelationPair:
    first: str
    second: str
    correlation: Number


@dataclass(frozen=True)
class CorrelationMatrix:
    """Pairwise correlation estimate over the current position set.

    Attributes:
        symbols: Row/column labels, in position order.
        matrix: ``(N, N)`` symmetric matrix with a unit diagonal.
        high_correlations: Pairs above the configured threshold, most
            correlated first.
        cluster_count: Number of distinct (asset class, sector) buckets.
        diversification_score: ``100 * (1 - mean off-diagonal
            correlation)`` clamped to [0, 100].
    """

    symbols: Tuple[str, ...] = ()
    matrix: NdArray = field(default_factory=lambda: np.zeros((0, 0), dtype=float))
    high_correlations: Tuple[CorrelationPair, ...] = ()
    cluster_count: int = 0
    diversification_score: Number = 100.0

    def to_frame(self) -> pd.DataFrame:
        """Return the matrix as a labelled DataFrame."""

        labels = list(self.symbols)
        return pd.DataFrame(self.matrix, index=labels, columns=labels)


# ============================================================================
# Stress tests
# ============================================================================


@dataclass(frozen=True)
class StressScenarioParams:
    """Deterministic historical shock applied by asset class.

    Impacts are fractional returns (e.g. -0.34 for a 34% fall).
    """

    scenario_id: str
    description: str
    equity_impact: Number
    bond_impact: Number
    crypto_impact: Number
    gold_impact: Number
    cash_impact: Number
    recovery_days: int


@dataclass(frozen=True)
class PositionImpact:
    symbol: str
    impact: Number
    value_after: Number


@dataclass(frozen=True)
class StressTestResult:
    """Outcome of applying one stress scenario to a snapshot.

    Attributes:
        scenario_id: Identifier of the applied scenario.
        description: Human readable scenario description.
        portfolio_impact: Fractional change in portfolio value.
        portfolio_value_after: Portfolio value after the shock.
        worst_positions: Up to ten most impacted positions, worst first.
        recovery_days: Estimated days to recover.
        hedge_effectiveness: Fraction of portfolio value held in
            positions recognised as hedges.
        recommendations: Remediation hints.
    """

    scenario_id: str
    description: str
    portfolio_impact: Number
    portfolio_value_after: Number
    worst_positions: Tuple[PositionImpact, ...]
    recovery_days: int
    hedge_effectiveness: Number
    recommendations: Tuple[str, ...]


# ============================================================================
# Tail risk
# ============================================================================


@dataclass(frozen=True)
class TailRiskAnalysis:
    """Cross-sectional tail risk of the current snapshot.

    VaR/CVaR and drawdown fields are fractional returns (negative values
    are losses). ``tail_index`` is the excess kurtosis of the position
    return cross-section.
    """

    var95: Number = 0.0
    var99: Number = 0.0
    cvar95: Number = 0.0
    cvar99: Number = 0.0
    max_drawdown_expected: Number = 0.0
    max_drawdown_99: Number = 0.0
    tail_index: Number = 0.0
    left_tail_risk: RiskLevel = RiskLevel.LOW
    recommendations: Tuple[str, ...] = ()


# ============================================================================
# Hedging and rotation
# ============================================================================


class HedgeType(str, Enum):
    OPTION = "option"
    INVERSE_ETF = "inverse_etf"
    SHORT = "short"
    FUTURES = "futures"
    DIVERSIFICATION = "diversification"


@dataclass(frozen=True)
class HedgeProtection:
    """Payoff profile of a hedge as fractional returns."""

    downside: Number
    upside: Number
    breakeven: Number


@dataclass(frozen=True)
class HedgeRecommendation:
    type: HedgeType
    symbol: str
    name: str
    action: str
    quantity: int
    estimated_cost: Number
    protection: HedgeProtection
    hedge_ratio: Number
    effectiveness: Number
    reason: str


class RotationRegime(str, Enum):
    """Macro backdrop used to pick sector rotations."""

    RISK_ON = "risk_on"
    RISK_OFF = "risk_off"
    INFLATION = "inflation"
    RECESSION = "recession"
    NORMAL = "normal"


@dataclass(frozen=True)
class RotationRecommendation:
    from_sector: str
    to_sector: str
    reason: str
    regime_context: RotationRegime
    expected_benefit: Number
    confidence: Number
    estimated_cost: Number
    kind: str = "sector"


# ============================================================================
# Black swan
# ============================================================================


class EventCategory(str, Enum):
    GEOPOLITICAL = "geopolitical"
    FINANCIAL = "financial"
    PANDEMIC = "pandemic"
    TECHNOLOGICAL = "technological"
    NATURAL = "natural"


@dataclass(frozen=True)
class BlackSwanRisk:
    """A named catastrophic event.

    ``probability`` is an annualised fraction, ``potential_impact`` a
    fractional portfolio return, ``hedge_cost`` a fraction of portfolio
    value and ``hedge_effectiveness`` a fraction of the impact offset.
    """

    event: str
    category: EventCategory
    probability: Number
    potential_impact: Number
    hedge_cost: Number
    hedge_effectiveness: Number

    @property
    def expected_loss(self) -> Number:
        return self.probability * abs(self.potential_impact)


@dataclass(frozen=True)
class TailMetrics:
    left_tail_exposure: Number
    right_tail_exposure: Number
    kurtosis: Number
    skewness: Number


@dataclass(frozen=True)
class ProtectionStrategy:
    """A protection option with currency cost/protection amounts."""

    strategy: str
    cost: Number
    protection: Number
    effectiveness: Number
    implementation: str


@dataclass(frozen=True)
class HistoricalBlackSwan:
    event: str
    occurred_on: date
    impact: Number
    recovery_days: int
    lessons: str


@dataclass(frozen=True)
class BlackSwanAnalysis:
    id: str
    timestamp: datetime
    risks: Tuple[BlackSwanRisk, ...]
    vulnerability_score: Number
    most_vulnerable_to: Tuple[str, ...]
    least_vulnerable_to: Tuple[str, ...]
    tail_metrics: TailMetrics
    protection_strategies: Tuple[ProtectionStrategy, ...]
    historical_events: Tuple[HistoricalBlackSwan, ...]

    def to_dict(self) -> Dict[str, Any]:
        return to_jsonable(self)


# ============================================================================
# Composite report
# ============================================================================


@dataclass(frozen=True)
class RiskReport:
    """Timestamped composite of every risk analysis for one snapshot.

    Attributes:
        id: Unique report identifier.
        timestamp: UTC creation time.
        summary: Portfolio summary of the snapshot.
        factor_exposures: One entry per :class:`Factor`.
        concentration_risks: Over-weight buckets, most severe first.
        correlation: Correlation matrix and diversification score.
        stress_tests: All stress scenarios, worst first.
        tail_risk: Cross-sectional tail risk.
        hedge_recommendations: Suggested hedges.
        rotation_recommendations: Regime-driven sector rotations.
        simulation: Short-horizon Monte Carlo projection of the snapshot;
            zero paths when the book has no positive market value.
        regime: Regime transition prediction, if a predictor is wired.
        black_swan: Black-swan vulnerability analysis.
        risk_score: Overall score on a 0-100 scale.
        overall_risk_level: Bucketed ``risk_score``.
        alerts: Human readable alert strings.
    """

    id: str
    timestamp: datetime
    summary: PortfolioSummary
    factor_exposures: Tuple[FactorExposure, ...]
    concentration_risks: Tuple[ConcentrationRisk, ...]
    correlation: CorrelationMatrix
    stress_tests: Tuple[StressTestResult, ...]
    tail_risk: TailRiskAnalysis
    hedge_recommendations: Tuple[HedgeRecommendation, ...]
    rotation_recommendations: Tuple[RotationRecommendation, ...]
    simulation: ScenarioResult
    regime: Optional[RegimeTransitionPrediction]
    black_swan: BlackSwanAnalysis
    risk_score: Number
    overall_risk_level: RiskLevel
    alerts: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return to_jsonable(self)
