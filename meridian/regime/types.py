"""Meridian – Regime types.

This module defines the qualitative market regimes, the observed market
signals used to classify the current regime, and the prediction record
returned by :class:`~meridian.regime.predictor.RegimeTransitionPredictor`.

Key responsibilities:
- Define the canonical set of ten market conditions.
- Provide an immutable snapshot of the market signals the predictor
  conditions on.
- Describe the transition prediction and its sub-records.

External dependencies:
- None beyond the standard library.

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

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from meridian.core.serialization import to_jsonable
from meridian.core.types import Number

# ============================================================================
# Regime labels
# ============================================================================


class MarketCondition(str, Enum):
    """Qualitative market regimes.

    - ``BULL_*`` / ``BEAR_*`` / ``SIDEWAYS_*`` combine trend with a quiet
      or volatile backdrop.
    - ``CRASH`` and ``CAPITULATION`` are acute stress states.
    - ``RECOVERY`` follows stress; ``BUBBLE`` is a euphoric low-vol
      uptrend.
    """

    BULL_QUIET = "bull_quiet"
    BULL_VOLATILE = "bull_volatile"
    BEAR_QUIET = "bear_quiet"
    BEAR_VOLATILE = "bear_volatile"
    SIDEWAYS_QUIET = "sideways_quiet"
    SIDEWAYS_VOLATILE = "sideways_volatile"
    CRASH = "crash"
    RECOVERY = "recovery"
    BUBBLE = "bubble"
    CAPITULATION = "capitulation"


class TrendDirection(str, Enum):
    UP = "up"
    DOWN = "down"
    SIDEWAYS = "sideways"


# Index levels separating up/down trends when no explicit trend is given.
SPX_UPTREND_LEVEL = 4800.0
SPX_DOWNTREND_LEVEL = 4200.0


# ============================================================================
# Inputs
# ============================================================================


@dataclass(frozen=True)
class MarketSignals:
    """Observed market signals.

    Attributes:
        vix: Implied volatility index level.
        spx: Equity index level; used to infer the trend when ``trend``
            is not given.
        credit_spreads: High-yield spread in percentage points.
        vix_term_structure: Ratio of second-month to front-month VIX
            futures (values above 1.0 indicate contango).
        breadth: Percentage of index members above their moving average.
        put_call_ratio: Equity put/call volume ratio.
        trend: Explicit trend direction; overrides the ``spx`` rule.
    """

    vix: Number = 18.0
    spx: Number = 5000.0
    credit_spreads: Number = 1.2
    vix_term_structure: Number = 1.05
    breadth: Number = 55.0
    put_call_ratio: Number = 0.95
    trend: Optional[TrendDirection] = None

    def trend_direction(self) -> TrendDirection:
        if self.trend is not None:
            return self.trend
        if self.spx > SPX_UPTREND_LEVEL:
            return TrendDirection.UP
        if self.spx < SPX_DOWNTREND_LEVEL:
            return TrendDirection.DOWN
        return TrendDirection.SIDEWAYS


# ============================================================================
# Prediction records
# ============================================================================


@dataclass(frozen=True)
class RegimeTransition:
    """One outgoing transition from the current regime.

    ``probability`` is a fraction; all transitions of a prediction sum
    to 1.
    """

    to_regime: MarketCondition
    probability: Number
    expected_timing: str
    trigger_conditions: Tuple[str, ...]


@dataclass(frozen=True)
class MostLikelyPath:
    next_regime: MarketCondition
    probability: Number
    expected_return: Number
    optimal_positioning: str


@dataclass(frozen=True)
class LeadingIndicator:
    """A leading-indicator reading.

    ``signaling`` is ``None`` when the reading does not point to a
    specific regime.
    """

    indicator: str
    current_value: Number
    threshold: Number
    signaling: Optional[MarketCondition]
    confidence: Number


@dataclass(frozen=True)
class RegimeDurationStats:
    """Duration statistics for a regime, in days."""

    regime: MarketCondition
    avg_duration: int
    min_duration: int
    max_duration: int
    current_duration: int


@dataclass(frozen=True)
class RegimeTransitionPrediction:
    """Prediction of the next market regime.

    Attributes:
        id: Unique prediction identifier.
        timestamp: UTC time of the prediction.
        current_regime: Classified (or overridden) current regime.
        regime_confidence: Classification confidence as a fraction.
        time_in_regime: Days spent in the current regime.
        transition_probabilities: Outgoing transitions, most likely first.
        most_likely_path: Details of the most likely next regime.
        leading_indicators: Indicator readings behind the prediction.
        duration_stats: Duration statistics for ``current_regime``.
    """

    id: str
    timestamp: datetime
    current_regime: MarketCondition
    regime_confidence: Number
    time_in_regime: int
    transition_probabilities: Tuple[RegimeTransition, ...]
    most_likely_path: MostLikelyPath
    leading_indicators: Tuple[LeadingIndicator, ...]
    duration_stats: RegimeDurationStats

    def to_dict(self) -> Dict[str, Any]:
        return to_jsonable(self)
