"""Meridian – Regime transition predictor.

Classifies the current market regime from implied volatility and trend,
then describes where it is likely to go next using a fixed Markov
transition table.

Design notes
------------

- Regimes form a time-homogeneous Markov chain over
  :class:`~meridian.regime.types.MarketCondition`. Each row of
  ``TRANSITIONS`` sums to 1.
- Multi-step forecasts use ``P^H`` where ``P`` is the one-step
  transition matrix.
- Classification confidence grows with the distance of the VIX reading
  from the nearest classification threshold.
- Time in regime is measured with an injected clock so tests can
  control it.

These are descriptive risk indicators, not trading signals.
"""

from __future__ import annotations

from datetime import datetime, timezone
from threading import Lock
from typing import Callable, Dict, List, Mapping, Optional, Tuple

import numpy as np

from meridian.core.ids import generate_run_id
from meridian.core.logging import get_logger
from meridian.core.numeric import clamp

from .types import (
    LeadingIndicator,
    MarketCondition,
    MarketSignals,
    MostLikelyPath,
    RegimeDurationStats,
    RegimeTransition,
    RegimeTransitionPrediction,
    TrendDirection,
)


logger = get_logger(__name__)

Clock = Callable[[], datetime]

MC = MarketCondition

# VIX levels separating the classification bands.
VIX_PANIC = 40.0
VIX_VOLATILE = 30.0
VIX_QUIET = 15.0
VIX_EUPHORIC = 12.0
_VIX_THRESHOLDS = (VIX_EUPHORIC, VIX_QUIET, VIX_VOLATILE, VIX_PANIC)

TRANSITIONS: Dict[MarketCondition, Tuple[Tuple[MarketCondition, float], ...]] = {
    MC.BULL_QUIET: (
        (MC.BULL_QUIET, 0.60),
        (MC.BULL_VOLATILE, 0.20),
        (MC.SIDEWAYS_QUIET, 0.15),
        (MC.BEAR_QUIET, 0.05),
    ),
    MC.BULL_VOLATILE: (
        (MC.BULL_QUIET, 0.30),
        (MC.BULL_VOLATILE, 0.30),
        (MC.BEAR_VOLATILE, 0.25),
        (MC.CRASH, 0.15),
    ),
    MC.BEAR_QUIET: (
        (MC.BEAR_QUIET, 0.40),
        (MC.RECOVERY, 0.30),
        (MC.SIDEWAYS_QUIET, 0.20),
        (MC.BEAR_VOLATILE, 0.10),
    ),
    MC.BEAR_VOLATILE: (
        (MC.CAPITULATION, 0.25),
        (MC.BEAR_VOLATILE, 0.30),
        (MC.RECOVERY, 0.25),
        (MC.BEAR_QUIET, 0.20),
    ),
    MC.SIDEWAYS_QUIET: (
        (MC.BULL_QUIET, 0.30),
        (MC.BEAR_QUIET, 0.20),
        (MC.SIDEWAYS_VOLATILE, 0.25),
        (MC.SIDEWAYS_QUIET, 0.25),
    ),
    MC.SIDEWAYS_VOLATILE: (
        (MC.BULL_VOLATILE, 0.30),
        (MC.BEAR_VOLATILE, 0.30),
        (MC.SIDEWAYS_QUIET, 0.20),
        (MC.SIDEWAYS_VOLATILE, 0.20),
    ),
    MC.CRASH: (
        (MC.CAPITULATION, 0.40),
        (MC.RECOVERY, 0.30),
        (MC.BEAR_VOLATILE, 0.30),
    ),
    MC.RECOVERY: (
        (MC.BULL_QUIET, 0.40),
        (MC.SIDEWAYS_QUIET, 0.30),
        (MC.RECOVERY, 0.20),
        (MC.BEAR_QUIET, 0.10),
    ),
    MC.BUBBLE: (
        (MC.CRASH, 0.30),
        (MC.BULL_VOLATILE, 0.40),
        (MC.BUBBLE, 0.30),
    ),
    MC.CAPITULATION: (
        (MC.RECOVERY, 0.50),
        (MC.BEAR_QUIET, 0.30),
        (MC.CAPITULATION, 0.20),
    ),
}

EXPECTED_RETURNS: Dict[MarketCondition, float] = {
    MC.BULL_QUIET: 0.12,
    MC.BULL_VOLATILE: 0.08,
    MC.BEAR_QUIET: -0.08,
    MC.BEAR_VOLATILE: -0.15,
    MC.SIDEWAYS_QUIET: 0.03,
    MC.SIDEWAYS_VOLATILE: 0.0,
    MC.CRASH: -0.30,
    MC.RECOVERY: 0.20,
    MC.BUBBLE: 0.25,
    MC.CAPITULATION: -0.20,
}

OPTIMAL_POSITIONING: Dict[MarketCondition, str] = {
    MC.BULL_QUIET: "Full equity allocation, low hedges",
    MC.BULL_VOLATILE: "Reduce to 70% equity, add protective puts",
    MC.BEAR_QUIET: "50% equity, increase fixed income",
    MC.BEAR_VOLATILE: "30% equity, hold cash, buy puts",
    MC.SIDEWAYS_QUIET: "Neutral positioning, sell premium",
    MC.SIDEWAYS_VOLATILE: "Iron condors, reduced exposure",
    MC.CRASH: "Maximum defensive, buy the dip carefully",
    MC.RECOVERY: "Increase equity, buy cyclicals",
    MC.BUBBLE: "Take profits, raise cash",
    MC.CAPITULATION: "Prepare to buy aggressively",
}

# (average, minimum, maximum) duration in days.
DURATIONS: Dict[MarketCondition, Tuple[int, int, int]] = {
    MC.BULL_QUIET: (180, 60, 900),
    MC.BULL_VOLATILE: (60, 20, 240),
    MC.BEAR_QUIET: (120, 30, 400),
    MC.BEAR_VOLATILE: (45, 15, 180),
    MC.SIDEWAYS_QUIET: (90, 30, 360),
    MC.SIDEWAYS_VOLATILE: (45, 15, 180),
    MC.CRASH: (20, 5, 60),
    MC.RECOVERY: (60, 20, 240),
    MC.BUBBLE: (90, 30, 500),
    MC.CAPITULATION: (15, 3, 45),
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def classify_regime(signals: MarketSignals) -> MarketCondition:
    """Map a VIX level and trend direction onto a market condition."""

    vix = signals.vix
    trend = signals.trend_direction()

    if vix >= VIX_PANIC:
        return {
            TrendDirection.DOWN: MC.CRASH,
            TrendDirection.UP: MC.RECOVERY,
            TrendDirection.SIDEWAYS: MC.CAPITULATION,
        }[trend]
    if vix > VIX_VOLATILE:
        return {
            TrendDirection.DOWN: MC.BEAR_VOLATILE,
            TrendDirection.UP: MC.BULL_VOLATILE,
            TrendDirection.SIDEWAYS: MC.SIDEWAYS_VOLATILE,
        }[trend]
    if vix < VIX_EUPHORIC and trend is TrendDirection.UP:
        return MC.BUBBLE
    if vix < VIX_QUIET:
        return MC.BULL_QUIET if trend is TrendDirection.UP else MC.SIDEWAYS_QUIET
    return {
        TrendDirection.DOWN: MC.BEAR_QUIET,
        TrendDirection.UP: MC.BULL_QUIET,
        TrendDirection.SIDEWAYS: MC.SIDEWAYS_VOLATILE,
    }[trend]


def classification_confidence(signals: MarketSignals) -> float:
    """Confidence in [0.75, 0.95] growing with distance from the VIX bands."""

    distance = min(abs(signals.vix - t) for t in _VIX_THRESHOLDS)
    return 0.75 + 0.20 * min(distance, 5.0) / 5.0


def trigger_conditions(to_regime: MarketCondition) -> Tuple[str, ...]:
    if to_regime is MC.CRASH:
        return ("VIX spike above 40", "Credit spreads widen >200bps", "Major negative catalyst")
    if to_regime is MC.RECOVERY:
        return ("VIX decline below 25", "Credit spreads normalize", "Policy support")
    if to_regime.value.startswith("bull"):
        return ("Earnings growth positive", "Economic data improving", "Fed pivot")
    return ("Market stabilization", "Volatility normalization")


def leading_indicators(signals: MarketSignals) -> Tuple[LeadingIndicator, ...]:
    return (
        LeadingIndicator(
            indicator="VIX Term Structure",
            current_value=signals.vix_term_structure,
            threshold=1.0,
            signaling=MC.BULL_QUIET if signals.vix_term_structure >= 1.0 else MC.BEAR_VOLATILE,
            confidence=0.70,
        ),
        LeadingIndicator(
            indicator="High Yield Spreads",
            current_value=signals.credit_spreads,
            threshold=4.0,
            signaling=MC.BEAR_VOLATILE if signals.credit_spreads > 4.0 else MC.BULL_QUIET,
            confidence=0.65,
        ),
        LeadingIndicator(
            indicator="Market Breadth",
            current_value=signals.breadth,
            threshold=50.0,
            signaling=MC.BULL_QUIET if signals.breadth >= 50.0 else MC.BEAR_QUIET,
            confidence=0.60,
        ),
        LeadingIndicator(
            indicator="Put/Call Ratio",
            current_value=signals.put_call_ratio,
            threshold=1.2,
            signaling=MC.BEAR_VOLATILE if signals.put_call_ratio > 1.2 else None,
            confidence=0.55,
        ),
    )


def build_transition_matrix(
    transitions: Mapping[MarketCondition, Tuple[Tuple[MarketCondition, float], ...]] = TRANSITIONS,
) -> np.ndarray:
    """Convert the transition table into a row-stochastic matrix.

    Rows and columns follow ``list(MarketCondition)``. A regime missing
    from the table receives an identity row (no change).
    """

    labels = list(MarketCondition)
    index = {label: i for i, label in enumerate(labels)}
    P = np.zeros((len(labels), len(labels)), dtype=float)
    for from_regime, row in transitions.items():
        for to_regime, prob in row:
            P[index[from_regime], index[to_regime]] = prob

    for i in range(len(labels)):
        total = P[i].sum()
        if total <= 0.0:
            P[i, i] = 1.0
        else:
            P[i] /= total
    return P


class RegimeTransitionPredictor:
    """Predict the next market regime from observed signals.

    Args:
        signals: Initial market signals. Defaults to a neutral snapshot.
        clock: Callable returning the current UTC time.
    """

    def __init__(self, signals: Optional[MarketSignals] = None, clock: Optional[Clock] = None) -> None:
        self._signals = signals or MarketSignals()
        self._clock = clock or _utcnow
        self._override: Optional[MarketCondition] = None
        self._regime: Optional[MarketCondition] = None
        self._regime_since: Optional[datetime] = None
        self._matrix = build_transition_matrix()
        self._lock = Lock()

    # ------------------------------------------------------------------
    # Inputs
    # ------------------------------------------------------------------

    def update_signals(self, signals: MarketSignals) -> None:
        with self._lock:
            self._signals = signals

    @property
    def signals(self) -> MarketSignals:
        with self._lock:
            return self._signals

    def override_regime(self, regime: Optional[MarketCondition]) -> None:
        """Force the current regime; ``None`` restores classification."""

        with self._lock:
            self._override = regime
        logger.info("Regime override set to %s", regime.value if regime else None)

    @property
    def current_regime(self) -> MarketCondition:
        regime, _ = self._observe(self.signals)
        return regime

    # ------------------------------------------------------------------
    # Predictions
    # ------------------------------------------------------------------

    def predict(self, signals: Optional[MarketSignals] = None) -> RegimeTransitionPrediction:
        """Return the transition prediction for the current regime."""

        if signals is not None:
            self.update_signals(signals)
        signals = self.signals
        regime, days_in_regime = self._observe(signals)

        with self._lock:
            overridden = self._override is not None
        confidence = 1.0 if overridden else classification_confidence(signals)

        transitions = sorted(
            (
                RegimeTransition(
                    to_regime=to_regime,
                    probability=prob,
                    expected_timing="1-3 months" if prob > 0.3 else "3-6 months",
                    trigger_conditions=trigger_conditions(to_regime),
                )
                for to_regime, prob in TRANSITIONS[regime]
            ),
            key=lambda t: t.probability,
            reverse=True,
        )
        top = transitions[0]
        avg, lo, hi = DURATIONS[regime]

        prediction = RegimeTransitionPrediction(
            id=generate_run_id("regime"),
            timestamp=self._clock(),
            current_regime=regime,
            regime_confidence=clamp(confidence, 0.0, 1.0),
            time_in_regime=days_in_regime,
            transition_probabilities=tuple(transitions),
            most_likely_path=MostLikelyPath(
                next_regime=top.to_regime,
                probability=top.probability,
                expected_return=EXPECTED_RETURNS[top.to_regime],
                optimal_positioning=OPTIMAL_POSITIONING[top.to_regime],
            ),
            leading_indicators=leading_indicators(signals),
            duration_stats=RegimeDurationStats(
                regime=regime,
                avg_duration=avg,
                min_duration=lo,
                max_duration=hi,
                current_duration=days_in_regime,
            ),
        )
        logger.info(
            "Regime prediction: current=%s next=%s p=%.2f confidence=%.2f",
            regime.value,
            top.to_regime.value,
            top.probability,
            prediction.regime_confidence,
        )
        return prediction

    def forecast_distribution(
        self,
        horizon_steps: int = 1,
        regime: Optional[MarketCondition] = None,
    ) -> Dict[MarketCondition, float]:
        """Distribution over regimes after ``horizon_steps`` transitions."""

        if horizon_steps <= 0:
            raise ValueError("horizon_steps must be a positive integer")
        start = regime or self.current_regime
        labels = list(MarketCondition)
        P_h = np.linalg.matrix_power(self._matrix, horizon_steps)
        row = P_h[labels.index(start), :]
        return {label: float(row[i]) for i, label in enumerate(labels)}

    def transition_probabilities(self, regime: MarketCondition) -> List[Tuple[MarketCondition, float]]:
        return sorted(TRANSITIONS[regime], key=lambda t: t[1], reverse=True)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _observe(self, signals: MarketSignals) -> Tuple[MarketCondition, int]:
        now = self._clock()
        with self._lock:
            regime = self._override or classify_regime(signals)
            if regime is not self._regime:
                if self._regime is not None:
                    logger.info("Regime change %s -> %s", self._regime.value, regime.value)
                self._regime = regime
                self._regime_since = now
            since = self._regime_since or now
        return regime, max(0, (now - since).days)
