"""
Meridian: Tests for cross-sectional tail risk analysis.
"""

from __future__ import annotations

import pytest

from meridian.core.types import RiskLevel
from meridian.positions.types import AssetClass
from meridian.risk.tail import TailRiskAnalyzer, excess_kurtosis, left_tail_level


def _with_returns(make_position, returns):
    return [make_position(f"S{i}", value=1_000.0 * (1.0 + r), cost=1_000.0) for i, r in enumerate(returns)]


class TestLeftTailLevel:
    @pytest.mark.parametrize(
        "var95, expected",
        [
            (-0.25, RiskLevel.EXTREME),
            (-0.18, RiskLevel.HIGH),
            (-0.12, RiskLevel.ELEVATED),
            (-0.07, RiskLevel.MODERATE),
            (-0.01, RiskLevel.LOW),
            (0.05, RiskLevel.LOW),
        ],
    )
    def test_thresholds(self, var95: float, expected: RiskLevel) -> None:
        assert left_tail_level(var95) is expected


class TestTailRiskAnalyzer:
    def test_fat_left_tail(self, make_position) -> None:
        positions = _with_returns(make_position, [-0.40, -0.25] + [0.05] * 18)

        tail = TailRiskAnalyzer().analyze(positions)

        assert tail.var95 == pytest.approx(-0.25)
        assert tail.var99 == pytest.approx(-0.40)
        assert tail.cvar95 == pytest.approx(-0.40)
        assert tail.cvar99 == pytest.approx(-0.40)
        assert tail.max_drawdown_expected == pytest.approx(-0.40)
        assert tail.max_drawdown_99 == pytest.approx(-0.60)
        assert tail.left_tail_risk is RiskLevel.EXTREME
        assert tail.tail_index > 3.0
        assert "Consider purchasing protective puts" in tail.recommendations
        assert "Portfolio has fat tails - consider tail hedging" in tail.recommendations

    def test_calm_portfolio(self, make_position) -> None:
        tail = TailRiskAnalyzer().analyze(_with_returns(make_position, [0.02] * 5))

        assert tail.left_tail_risk is RiskLevel.LOW
        assert tail.tail_index == 0.0
        assert tail.max_drawdown_expected == pytest.approx(-0.15)
        assert tail.max_drawdown_99 == pytest.approx(-0.30)
        assert tail.recommendations == ()

    def test_single_position(self, make_position) -> None:
        tail = TailRiskAnalyzer().analyze(_with_returns(make_position, [-0.12]))

        assert tail.var95 == pytest.approx(-0.12)
        assert tail.cvar95 == pytest.approx(-0.12)
        assert tail.left_tail_risk is RiskLevel.ELEVATED

    def test_empty_portfolio(self) -> None:
        tail = TailRiskAnalyzer().analyze([])

        assert tail.var95 == 0.0
        assert tail.cvar99 == 0.0
        assert tail.max_drawdown_expected == 0.0
        assert tail.left_tail_risk is RiskLevel.LOW

    def test_zero_valued_book_is_neutral(self, make_position) -> None:
        positions = [
            make_position("BTC", AssetClass.CRYPTO, value=0.0, cost=1_000.0, sector=None),
            make_position("ETH", AssetClass.CRYPTO, value=0.0, cost=1_000.0, sector=None),
        ]

        for tail in (TailRiskAnalyzer().analyze(positions, total_value=0.0), TailRiskAnalyzer().analyze(positions)):
            assert tail.var95 == 0.0
            assert tail.left_tail_risk is RiskLevel.LOW
            assert tail.recommendations == ()

    def test_excess_kurtosis_of_constant_is_zero(self) -> None:
        import numpy as np

        assert excess_kurtosis(np.array([1.0, 1.0, 1.0])) == 0.0
        assert excess_kurtosis(np.array([1.0])) == 0.0
