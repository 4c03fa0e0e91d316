"""
Meridian: Tests for the historical stress test engine.
"""

from __future__ import annotations

import pytest

from meridian.positions.types import AssetClass
from meridian.risk.stress import (
    HISTORICAL_SCENARIOS,
    StressTestEngine,
    asset_class_impact,
    hedge_effectiveness,
)
from meridian.risk.types import StressScenarioParams
from meridian.simulation.scenarios import ScenarioNotFoundError


class TestStressTestEngine:
    def test_covid_crash_on_levered_equity(self, make_position) -> None:
        positions = [make_position("AAPL", value=100_000.0, beta=1.2)]

        result = StressTestEngine().run_scenario("covid_crash_2020", positions)

        assert result.portfolio_impact == pytest.approx(-0.408)
        assert result.portfolio_value_after == pytest.approx(59_200.0)
        assert result.worst_positions[0].symbol == "AAPL"
        assert result.worst_positions[0].value_after == pytest.approx(59_200.0)
        assert result.recovery_days == 180
        assert "Consider defensive hedging strategies" in result.recommendations
        assert "Increase cash allocation" in result.recommendations

    def test_run_all_is_sorted_and_deterministic(self, make_position) -> None:
        positions = [
            make_position("AAPL", value=50_000.0, beta=1.1),
            make_position("TLT", AssetClass.FIXED_INCOME, value=30_000.0, sector=None),
            make_position("BTC", AssetClass.CRYPTO, value=10_000.0, sector=None),
            make_position("GLD", AssetClass.COMMODITY, value=10_000.0, sector=None),
        ]
        engine = StressTestEngine()

        first = engine.run_stress_tests(positions)
        second = engine.run_stress_tests(positions)

        impacts = [r.portfolio_impact for r in first]
        assert len(first) == len(HISTORICAL_SCENARIOS)
        assert impacts == sorted(impacts)
        assert [(r.scenario_id, r.portfolio_impact) for r in first] == [
            (r.scenario_id, r.portfolio_impact) for r in second
        ]

    def test_asset_class_columns(self) -> None:
        params = HISTORICAL_SCENARIOS["inflation_spike"]

        assert asset_class_impact(params, AssetClass.EQUITY) == -0.20
        assert asset_class_impact(params, AssetClass.FIXED_INCOME) == -0.15
        assert asset_class_impact(params, AssetClass.CRYPTO) == -0.10
        assert asset_class_impact(params, AssetClass.COMMODITY) == 0.30
        assert asset_class_impact(params, AssetClass.CURRENCY) == -0.10
        assert asset_class_impact(params, AssetClass.REAL_ESTATE) == pytest.approx(-0.10)

    def test_worst_positions_are_capped_and_ordered(self, make_position) -> None:
        positions = [make_position(f"S{i}", value=1_000.0, beta=0.5 + i * 0.1) for i in range(12)]

        result = StressTestEngine().run_scenario("financial_crisis_2008", positions)

        assert len(result.worst_positions) == 10
        impacts = [p.impact for p in result.worst_positions]
        assert impacts == sorted(impacts)
        assert result.worst_positions[0].symbol == "S11"

    def test_hedge_effectiveness(self, make_position) -> None:
        positions = [
            make_position("SPY", value=90_000.0),
            make_position("SH", value=10_000.0, name="ProShares Short S&P500"),
        ]

        assert hedge_effectiveness(positions) == pytest.approx(0.10)
        result = StressTestEngine().run_scenario("flash_crash_2010", positions)
        assert result.hedge_effectiveness == pytest.approx(0.10)

    def test_empty_portfolio_is_neutral(self) -> None:
        for result in StressTestEngine().run_stress_tests([]):
            assert result.portfolio_impact == 0.0
            assert result.portfolio_value_after == 0.0
            assert result.worst_positions == ()
            assert result.hedge_effectiveness == 0.0

    def test_unknown_scenario_raises(self, make_position) -> None:
        with pytest.raises(ScenarioNotFoundError):
            StressTestEngine().run_scenario("alien_invasion", [make_position()])

    def test_custom_scenario(self, make_position) -> None:
        engine = StressTestEngine(scenarios=[])
        engine.add_scenario(
            StressScenarioParams(
                scenario_id="equity_halving",
                description="Equities halve",
                equity_impact=-0.5,
                bond_impact=0.0,
                crypto_impact=0.0,
                gold_impact=0.0,
                cash_impact=0.0,
                recovery_days=500,
            )
        )

        results = engine.run_stress_tests([make_position(value=1_000.0)])

        assert [r.scenario_id for r in results] == ["equity_halving"]
        assert results[0].portfolio_value_after == pytest.approx(500.0)
