"""
Meridian: Tests for regime classification and transition prediction.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import numpy as np
import pytest

from meridian.regime.predictor import (
    DURATIONS,
    TRANSITIONS,
    RegimeTransitionPredictor,
    build_transition_matrix,
    classification_confidence,
    classify_regime,
    leading_indicators,
)
from meridian.regime.types import MarketCondition, MarketSignals, TrendDirection


class _Clock:
    def __init__(self) -> None:
        self.now = datetime(2026, 1, 5, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now


class TestClassification:
    @pytest.mark.parametrize(
        "vix, trend, expected",
        [
            (45.0, TrendDirection.DOWN, MarketCondition.CRASH),
            (45.0, TrendDirection.UP, MarketCondition.RECOVERY),
            (35.0, TrendDirection.UP, MarketCondition.BULL_VOLATILE),
            (35.0, TrendDirection.DOWN, MarketCondition.BEAR_VOLATILE),
            (11.0, TrendDirection.UP, MarketCondition.BUBBLE),
            (14.0, TrendDirection.SIDEWAYS, MarketCondition.SIDEWAYS_QUIET),
            (20.0, TrendDirection.DOWN, MarketCondition.BEAR_QUIET),
            (20.0, TrendDirection.SIDEWAYS, MarketCondition.SIDEWAYS_VOLATILE),
        ],
    )
    def test_vix_and_trend(self, vix: float, trend: TrendDirection, expected: MarketCondition) -> None:
        assert classify_regime(MarketSignals(vix=vix, trend=trend)) is expected

    def test_default_signals_are_bull_quiet(self) -> None:
        assert classify_regime(MarketSignals()) is MarketCondition.BULL_QUIET

    def test_trend_inferred_from_index_level(self) -> None:
        assert MarketSignals(spx=4000.0).trend_direction() is TrendDirection.DOWN
        assert MarketSignals(spx=4500.0).trend_direction() is TrendDirection.SIDEWAYS

    def test_confidence_bounds(self) -> None:
        assert classification_confidence(MarketSignals(vix=30.0)) == pytest.approx(0.75)
        assert classification_confidence(MarketSignals(vix=80.0)) == pytest.approx(0.95)


class TestTransitionMatrix:
    def test_rows_are_stochastic(self) -> None:
        P = build_transition_matrix()

        assert P.shape == (len(MarketCondition), len(MarketCondition))
        np.testing.assert_allclose(P.sum(axis=1), 1.0)

    def test_missing_regime_gets_identity_row(self) -> None:
        P = build_transition_matrix({MarketCondition.CRASH: ((MarketCondition.RECOVERY, 1.0),)})
        labels = list(MarketCondition)
        bubble = labels.index(MarketCondition.BUBBLE)

        assert P[bubble, bubble] == 1.0

    def test_table_covers_every_regime(self) -> None:
        assert set(TRANSITIONS) == set(MarketCondition)
        assert set(DURATIONS) == set(MarketCondition)


class TestPredictor:
    def test_prediction_is_sorted_and_normalised(self) -> None:
        prediction = RegimeTransitionPredictor().predict()

        probabilities = [t.probability for t in prediction.transition_probabilities]
        assert probabilities == sorted(probabilities, reverse=True)
        assert sum(probabilities) == pytest.approx(1.0)
        assert prediction.current_regime is MarketCondition.BULL_QUIET
        assert prediction.most_likely_path.next_regime is MarketCondition.BULL_QUIET
        assert prediction.most_likely_path.expected_return == pytest.approx(0.12)
        assert prediction.transition_probabilities[0].expected_timing == "1-3 months"
        assert prediction.transition_probabilities[-1].expected_timing == "3-6 months"
        assert prediction.duration_stats.avg_duration == 180

    def test_override_forces_regime_with_full_confidence(self) -> None:
        predictor = RegimeTransitionPredictor()
        predictor.override_regime(MarketCondition.CRASH)

        prediction = predictor.predict()

        assert prediction.current_regime is MarketCondition.CRASH
        assert prediction.regime_confidence == 1.0
        assert prediction.most_likely_path.next_regime is MarketCondition.CAPITULATION
        assert prediction.transition_probabilities[0].trigger_conditions == (
            "Market stabilization",
            "Volatility normalization",
        )

        predictor.override_regime(None)
        assert predictor.current_regime is MarketCondition.BULL_QUIET

    def test_time_in_regime_follows_clock(self) -> None:
        clock = _Clock()
        predictor = RegimeTransitionPredictor(clock=clock)

        assert predictor.predict().time_in_regime == 0

        clock.now += timedelta(days=12)
        assert predictor.predict().time_in_regime == 12

        clock.now += timedelta(days=3)
        prediction = predictor.predict(MarketSignals(vix=50.0, trend=TrendDirection.DOWN))
        assert prediction.current_regime is MarketCondition.CRASH
        assert prediction.time_in_regime == 0
        assert prediction.duration_stats.current_duration == 0

    def test_forecast_distribution(self) -> None:
        predictor = RegimeTransitionPredictor()

        one_step = predictor.forecast_distribution(1, MarketCondition.BUBBLE)
        assert one_step[MarketCondition.CRASH] == pytest.approx(0.30)
        assert one_step[MarketCondition.BULL_VOLATILE] == pytest.approx(0.40)
        assert one_step[MarketCondition.BULL_QUIET] == 0.0

        many = predictor.forecast_distribution(12)
        assert sum(many.values()) == pytest.approx(1.0)
        assert all(p >= 0.0 for p in many.values())

        with pytest.raises(ValueError):
            predictor.forecast_distribution(0)

    def test_transition_probabilities_sorted(self) -> None:
        rows = RegimeTransitionPredictor().transition_probabilities(MarketCondition.CAPITULATION)

        assert rows[0] == (MarketCondition.RECOVERY, 0.50)

    def test_leading_indicators(self) -> None:
        calm = {i.indicator: i for i in leading_indicators(MarketSignals())}
        stressed = {
            i.indicator: i
            for i in leading_indicators(
                MarketSignals(vix_term_structure=0.9, credit_spreads=5.0, breadth=40.0, put_call_ratio=1.4)
            )
        }

        assert calm["Put/Call Ratio"].signaling is None
        assert calm["VIX Term Structure"].signaling is MarketCondition.BULL_QUIET
        assert stressed["VIX Term Structure"].signaling is MarketCondition.BEAR_VOLATILE
        assert stressed["High Yield Spreads"].signaling is MarketCondition.BEAR_VOLATILE
        assert stressed["Market Breadth"].signaling is MarketCondition.BEAR_QUIET
        assert stressed["Put/Call Ratio"].signaling is MarketCondition.BEAR_VOLATILE

    def test_to_dict(self) -> None:
        payload = RegimeTransitionPredictor().predict().to_dict()

        assert payload["current_regime"] == "bull_quiet"
        assert payload["id"].startswith("regime_")
        assert isinstance(payload["timestamp"], str)
