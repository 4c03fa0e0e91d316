"""Meridian – Simulation types.

This module defines scenario definitions consumed by the Monte Carlo
simulator and the :class:`ScenarioResult` it produces.

Key responsibilities:
- Describe scenarios (initial macro conditions, per-asset shocks,
  horizon and probability) in the same shape for built-in and custom
  definitions.
- Hold simulated paths and the statistics aggregated from them.

External dependencies:
- numpy: Storage of path values and sorted final values.

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

import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Any, Dict, Optional, Tuple

import numpy as np
from pydantic import Field

from meridian.core.serialization import NdArray, to_jsonable
from meridian.core.types import Number
from meridian.regime.types import MarketCondition


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ============================================================================
# Scenario definitions
# ============================================================================


class ScenarioType(str, Enum):
    STRESS_TEST = "stress_test"
    MACRO_SHOCK = "macro_shock"
    REGIME_TRANSITION = "regime_transition"
    MONTE_CARLO = "monte_carlo"
    CUSTOM = "custom"


@dataclass(frozen=True)
class MacroConditions:
    """Initial macro backdrop of a scenario.

    ``interest_rate`` and ``inflation`` are fractions; ``vix``,
    index levels, ``dollar_strength`` and ``credit_spreads`` (percentage
    points) are market quotes.
    """

    market_condition: MarketCondition
    vix: Number
    spx_level: Number
    interest_rate: Number
    inflation: Number
    dollar_strength: Number
    credit_spreads: Number
    btc_level: Optional[Number] = None


@dataclass(frozen=True)
class ScenarioShock:
    """Shock applied to holdings whose name contains ``asset``.

    ``change`` is a fractional return; the asset ``"ALL"`` matches every
    holding.
    """

    asset: str
    change: Number
    volatility_multiplier: Number
    duration: str
    correlation_change: Optional[Number] = None

    def matches(self, holding: str) -> bool:
        return self.asset.upper() == "ALL" or self.asset.upper() in holding.upper()


@dataclass(frozen=True)
class HistoricalParallel:
    period: str
    similarity: Number
    outcome: str


@dataclass(frozen=True)
class ScenarioDefinition:
    """A named scenario.

    Attributes:
        id: Unique scenario identifier.
        name: Display name.
        description: Short description.
        type: Scenario family.
        initial_conditions: Macro backdrop at scenario start.
        shocks: Per-asset shocks.
        horizon_days: Scenario horizon in days.
        steps: Number of simulation steps over the horizon.
        base_probability: Likelihood of the scenario as a fraction.
        historical_parallel: Optional historical reference.
        created_at: Creation time.
        is_builtin: Whether the scenario ships with the catalogue.
    """

    id: str
    name: str
    description: str
    type: ScenarioType
    initial_conditions: MacroConditions
    shocks: Tuple[ScenarioShock, ...]
    horizon_days: int
    steps: int
    base_probability: Number
    historical_parallel: Optional[HistoricalParallel] = None
    created_at: datetime = field(default_factory=_utcnow)
    is_builtin: bool = False

    def __post_init__(self) -> None:
        if self.steps <= 0 or self.horizon_days <= 0:
            raise ValueError("scenario steps and horizon_days must be positive")
        if not 0.0 <= self.base_probability <= 1.0:
            raise ValueError("base_probability must be within [0, 1]")


# ============================================================================
# Simulation inputs
# ============================================================================


@dataclass(frozen=True)
class CompositionItem:
    """A holding in the simulated portfolio.

    ``asset`` is a symbol or asset-class label used to look up return
    and volatility parameters; ``weight`` is a fraction of portfolio
    value.
    """

    asset: str
    weight: Number
    value: Number = 0.0


# ============================================================================
# Simulation outputs
# ============================================================================


@dataclass(frozen=True)
class SimulationPath:
    """One stochastic trajectory of portfolio value.

    Attributes:
        path_id: Index of the path within its run.
        values: Portfolio value at each step, starting with the initial
            value (length ``steps + 1``).
        final_value: Value at the last step.
        max_drawdown: Largest peak-to-trough decline as a fraction.
        max_gain: Largest gain over the start value as a fraction.
        sharpe: Annualised Sharpe ratio of the daily returns.
        sortino: Annualised Sortino ratio of the daily returns.
        volatility: Annualised volatility of the daily returns.
    """

    path_id: int
    values: NdArray
    final_value: Number
    max_drawdown: Number
    max_gain: Number
    sharpe: Number
    sortino: Number
    volatility: Number


@dataclass(frozen=True)
class DistributionPoint:
    percentile: int
    value: Number
    period_return: Number


@dataclass(frozen=True)
class TailOutcomes:
    """Fractional returns at the extremes of the final-value distribution."""

    worst_case_1pct: Number = 0.0
    worst_case_5pct: Number = 0.0
    best_case_95pct: Number = 0.0
    best_case_99pct: Number = 0.0


@dataclass(frozen=True)
class RecoveryTimes:
    """Average steps to regain the start value after a 10/20/30% fall.

    Each average covers only paths that both breached the threshold and
    later recovered; 0 when no path did.
    """

    if_down_10: int = 0
    if_down_20: int = 0
    if_down_30: int = 0


@dataclass(frozen=True)
class PathStatistics:
    paths_positive: int = 0
    paths_negative: int = 0
    avg_positive_path: Number = 0.0
    avg_negative_path: Number = 0.0
    path_volatility: Number = 0.0


@dataclass(frozen=True)
class ScenarioResult:
    """Aggregate of many simulated paths.

    All returns, risk measures and probabilities are fractions;
    ``simulation_confidence`` is a 0-100 score. ``paths`` holds every
    simulated path and ``final_values`` the sorted terminal values; both
    are omitted from serialized output.
    """

    id: str
    scenario_id: str
    scenario_name: str
    timestamp: datetime
    portfolio_value: Number
    composition: Tuple[CompositionItem, ...]
    path_count: int
    horizon_days: int
    confidence_level: Number
    distribution: Tuple[DistributionPoint, ...]
    expected_return: Number
    median_return: Number
    standard_deviation: Number
    var_at_confidence: Number
    cvar_at_confidence: Number
    max_drawdown_expected: Number
    max_drawdown_95: Number
    probability_of_loss: Number
    probability_of_gain: Number
    tail_risk: TailOutcomes
    time_to_recovery: RecoveryTimes
    path_statistics: PathStatistics
    sample_paths: Tuple[SimulationPath, ...]
    simulation_confidence: Number
    scenario_probability: Optional[Number] = None
    paths: Annotated[Tuple[SimulationPath, ...], Field(exclude=True)] = field(default=(), repr=False)
    final_values: Annotated[NdArray, Field(exclude=True)] = field(
        default_factory=lambda: np.zeros(0, dtype=float),
        repr=False,
    )

    def value_at_risk(self, confidence: float) -> float:
        """Return VaR at ``confidence`` from the simulated distribution.

        VaR is the fractional loss from the start value to the terminal
        value at the ``1 - confidence`` quantile. Deeper confidence never
        yields a smaller value.
        """

        _check_confidence(confidence)
        n = self.final_values.size
        if n == 0 or self.portfolio_value <= 0.0:
            return 0.0
        idx = min(int(math.floor((1.0 - confidence) * n)), n - 1)
        return float((self.portfolio_value - self.final_values[idx]) / self.portfolio_value)

    def conditional_value_at_risk(self, confidence: float) -> float:
        """Return CVaR (expected shortfall) at ``confidence``.

        Falls back to :meth:`value_at_risk` when the tail below the VaR
        index is empty.
        """

        _check_confidence(confidence)
        n = self.final_values.size
        if n == 0 or self.portfolio_value <= 0.0:
            return 0.0
        idx = min(int(math.floor((1.0 - confidence) * n)), n - 1)
        tail = self.final_values[:idx]
        if tail.size == 0:
            return self.value_at_risk(confidence)
        return float((self.portfolio_value - tail.mean()) / self.portfolio_value)

    def to_dict(self) -> Dict[str, Any]:
        return to_jsonable(self)


def _check_confidence(confidence: float) -> None:
    if not 0.0 < confidence < 1.0:
        raise ValueError("confidence must be strictly between 0 and 1")
