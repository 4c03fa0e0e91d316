"""Meridian – Regime package.

This package classifies the current market regime from observed signals
and predicts transitions between qualitative regimes using a fixed
Markov transition table.
"""

from meridian.regime.types import (
    LeadingIndicator,
    MarketCondition,
    MarketSignals,
    MostLikelyPath,
    RegimeDurationStats,
    RegimeTransition,
    RegimeTransitionPrediction,
    TrendDirection,
)
from meridian.regime.predictor import (
    RegimeTransitionPredictor,
    build_transition_matrix,
    classify_regime,
)

__all__ = [
    "LeadingIndicator",
    "MarketCondition",
    "MarketSignals",
    "MostLikelyPath",
    "RegimeDurationStats",
    "RegimeTransition",
    "RegimeTransitionPrediction",
    "RegimeTransitionPredictor",
    "TrendDirection",
    "build_transition_matrix",
    "classify_regime",
]
