"""
Meridian: Tests for the risk report aggregator and risk scoring.
"""

from __future__ import annotations

import asyncio
import json
from typing import List

import pytest

from meridian.core.config import MeridianConfig
from meridian.core.types import RiskLevel
from meridian.monitoring.metrics import get_metric
from meridian.positions.store import PositionStore
from meridian.positions.types import AssetClass
from meridian.regime.predictor import RegimeTransitionPredictor
from meridian.regime.types import MarketCondition
from meridian.risk.report import RiskReportAggregator, overall_risk_level, score_risks
from meridian.risk.types import (
    ConcentrationRisk,
    ConcentrationType,
    CorrelationMatrix,
    RiskReport,
    RotationRegime,
    StressTestResult,
    TailRiskAnalysis,
)


def _stress(impact: float) -> StressTestResult:
    return StressTestResult(
        scenario_id="s",
        description="s",
        portfolio_impact=impact,
        portfolio_value_after=0.0,
        worst_positions=(),
        recovery_days=1,
        hedge_effectiveness=0.0,
        recommendations=(),
    )


def _concentration(level: RiskLevel) -> ConcentrationRisk:
    return ConcentrationRisk(
        type=ConcentrationType.POSITION,
        name="X",
        current_weight=0.5,
        max_recommended=0.1,
        risk_level=level,
        recommendation="",
    )


class TestScoring:
    def test_base_score_without_findings(self) -> None:
        score, alerts = score_risks([], [], TailRiskAnalysis(), CorrelationMatrix())
        assert score == 50.0
        assert alerts == []

    def test_penalties_accumulate(self) -> None:
        score, alerts = score_risks(
            [_concentration(RiskLevel.HIGH), _concentration(RiskLevel.MODERATE)],
            [_stress(-0.35), _stress(-0.10)],
            TailRiskAnalysis(left_tail_risk=RiskLevel.HIGH),
            CorrelationMatrix(diversification_score=30.0),
        )

        assert score == pytest.approx(50 + 10 + 5 + 10 + 15)
        assert alerts == [
            "1 critical concentration risks detected",
            "Portfolio vulnerable to 1 severe stress scenarios",
            "High left tail risk detected",
            "Low diversification - consider spreading risk",
        ]

    def test_score_is_clamped(self) -> None:
        score, _ = score_risks(
            [_concentration(RiskLevel.EXTREME)] * 10,
            [],
            TailRiskAnalysis(left_tail_risk=RiskLevel.EXTREME),
            CorrelationMatrix(),
        )
        assert score == 100.0

    @pytest.mark.parametrize(
        "score, level",
        [
            (80.0, RiskLevel.EXTREME),
            (65.0, RiskLevel.HIGH),
            (50.0, RiskLevel.ELEVATED),
            (30.0, RiskLevel.MODERATE),
            (29.9, RiskLevel.LOW),
        ],
    )
    def test_overall_level_buckets(self, score: float, level: RiskLevel) -> None:
        assert overall_risk_level(score) is level


class TestRiskReportAggregator:
    def test_empty_portfolio_reduces_to_base_score(
        self, store: PositionStore, meridian_config: MeridianConfig
    ) -> None:
        report = RiskReportAggregator(store, config=meridian_config).generate_report()

        assert report.risk_score == 50.0
        assert report.alerts == ()
        assert report.overall_risk_level is RiskLevel.ELEVATED
        assert report.concentration_risks == ()
        assert report.correlation.diversification_score == 100.0
        assert all(t.portfolio_impact == 0.0 for t in report.stress_tests)
        assert report.simulation.path_count == 0
        assert report.simulation.probability_of_loss == 0.0
        assert report.simulation.probability_of_gain == 0.0
        assert report.regime is None

    def test_zero_valued_book_reduces_to_base_score(
        self, store: PositionStore, make_position, meridian_config: MeridianConfig
    ) -> None:
        store.upsert(make_position("BTC", AssetClass.CRYPTO, value=0.0, cost=1_000.0, sector=None))
        store.upsert(make_position("ETH", AssetClass.CRYPTO, value=0.0, cost=1_000.0, sector=None))

        report = RiskReportAggregator(store, config=meridian_config).generate_report()

        assert report.summary.total_value == 0.0
        assert report.risk_score == 50.0
        assert report.alerts == ()
        assert report.overall_risk_level is RiskLevel.ELEVATED
        assert report.correlation.diversification_score == 100.0
        assert report.tail_risk.left_tail_risk is RiskLevel.LOW
        assert report.simulation.path_count == 0

    def test_concentrated_levered_portfolio(
        self, store: PositionStore, make_position, meridian_config: MeridianConfig
    ) -> None:
        store.upsert(make_position("AAPL", value=100_000.0, beta=1.2))

        report = RiskReportAggregator(store, config=meridian_config).generate_report()

        assert report.risk_score == 100.0
        assert report.overall_risk_level is RiskLevel.EXTREME
        assert report.alerts == (
            "5 critical concentration risks detected",
            "Portfolio vulnerable to 4 severe stress scenarios",
        )
        covid = next(t for t in report.stress_tests if t.scenario_id == "covid_crash_2020")
        assert covid.portfolio_impact == pytest.approx(-0.408)

        sim = report.simulation
        assert sim is not None
        assert sim.path_count == meridian_config.report_simulation_paths
        assert sim.horizon_days == meridian_config.report_simulation_horizon_days
        assert sim.composition[0].asset == "equity"

    def test_known_symbols_are_simulated_by_symbol(
        self, store: PositionStore, make_position, meridian_config: MeridianConfig
    ) -> None:
        store.upsert(make_position("SPY", value=50_000.0))
        store.upsert(make_position("XYZ", AssetClass.CRYPTO, value=50_000.0, sector=None))

        report = RiskReportAggregator(store, config=meridian_config).generate_report()

        assets = {item.asset for item in report.simulation.composition}
        assert assets == {"SPY", "crypto"}

    def test_history_trend_and_metrics(
        self, store: PositionStore, make_position, meridian_config: MeridianConfig
    ) -> None:
        config = meridian_config.model_copy(update={"risk_report_history_size": 2})
        aggregator = RiskReportAggregator(store, config=config)

        first = aggregator.generate_report()
        store.upsert(make_position("AAPL", value=100_000.0, beta=1.2))
        second = aggregator.generate_report()
        third = aggregator.generate_report()

        assert [r.id for r in aggregator.history()] == [second.id, third.id]
        assert aggregator.latest() is third
        assert aggregator.risk_score_trend(5) == [second.risk_score, third.risk_score]
        assert first.risk_score == 50.0
        assert get_metric("risk.report.score").value == third.risk_score
        assert get_metric("risk.report.alerts").value == float(len(third.alerts))

        with pytest.raises(ValueError):
            aggregator.risk_score_trend(0)

    def test_observers(self, store: PositionStore, meridian_config: MeridianConfig) -> None:
        received: List[RiskReport] = []

        def failing(report: RiskReport) -> None:
            raise RuntimeError("listener failure")

        aggregator = RiskReportAggregator(store, config=meridian_config)
        aggregator.subscribe(failing)
        aggregator.subscribe(received.append)

        report = aggregator.generate_report()
        aggregator.unsubscribe(received.append)
        aggregator.generate_report()

        assert received == [report]

    def test_rotation_regime_setter(
        self, store: PositionStore, make_position, meridian_config: MeridianConfig
    ) -> None:
        store.upsert(make_position("AAPL", value=60_000.0, sector="Technology"))
        store.upsert(make_position("JNJ", value=40_000.0, sector="Healthcare"))
        aggregator = RiskReportAggregator(store, config=meridian_config)

        assert aggregator.generate_report().rotation_recommendations == ()

        aggregator.set_current_regime("risk_off")
        report = aggregator.generate_report()

        assert aggregator.current_regime is RotationRegime.RISK_OFF
        assert {r.from_sector for r in report.rotation_recommendations} == {"Technology"}

    def test_regime_prediction_is_included_when_wired(
        self, store: PositionStore, make_position, meridian_config: MeridianConfig
    ) -> None:
        predictor = RegimeTransitionPredictor()
        predictor.override_regime(MarketCondition.BEAR_QUIET)
        store.upsert(make_position(value=1_000.0))

        report = RiskReportAggregator(store, config=meridian_config, predictor=predictor).generate_report()

        assert report.regime is not None
        assert report.regime.current_regime is MarketCondition.BEAR_QUIET

    def test_async_generation_and_serialization(
        self, store: PositionStore, make_position, meridian_config: MeridianConfig
    ) -> None:
        store.upsert(make_position("SPY", value=10_000.0))
        store.upsert(make_position("TLT", AssetClass.FIXED_INCOME, value=5_000.0, sector=None))
        aggregator = RiskReportAggregator(store, config=meridian_config)

        report = asyncio.run(aggregator.generate_report_async())
        payload = report.to_dict()
        text = json.dumps(payload)

        assert payload["summary"]["by_asset_class"]["equity"] == pytest.approx(10_000.0)
        assert len(payload["factor_exposures"]) == 10
        assert "paths" not in payload["simulation"]
        assert len(payload["simulation"]["sample_paths"]) == 5
        assert "NaN" not in text
