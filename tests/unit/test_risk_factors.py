"""
Meridian: Tests for the factor exposure model.
"""

from __future__ import annotations

import numpy as np
import pytest

from meridian.positions.types import AssetClass
from meridian.risk.factors import BENCHMARKS, FactorModel, factor_loading, percentile_rank, zscore
from meridian.risk.types import Factor


class TestHelpers:
    def test_zscore_degenerate_history(self) -> None:
        assert zscore(1.0, np.array([])) == 0.0
        assert zscore(1.0, np.array([1.0])) == 0.0
        assert zscore(5.0, np.array([2.0, 2.0, 2.0])) == 0.0

    def test_zscore_population(self) -> None:
        history = np.array([1.0, 3.0])
        assert zscore(3.0, history) == pytest.approx(1.0)

    def test_percentile_rank(self) -> None:
        history = np.array([1.0, 2.0, 3.0, 4.0])
        assert percentile_rank(0.5, history) == 0.0
        assert percentile_rank(3.0, history) == pytest.approx(50.0)
        assert percentile_rank(10.0, history) == 100.0
        assert percentile_rank(1.0, np.array([])) == 50.0

    def test_loadings(self, make_position) -> None:
        tech = make_position(value=20_000.0, cost=10_000.0, beta=1.3, sector="Technology", dividend_yield=0.01)
        bond = make_position("TLT", AssetClass.FIXED_INCOME, value=5_000.0, cost=6_000.0, sector=None)

        assert factor_loading(tech, Factor.MARKET) == 1.3
        assert factor_loading(bond, Factor.MARKET) == 1.0
        assert factor_loading(tech, Factor.MOMENTUM) == 0.5
        assert factor_loading(bond, Factor.MOMENTUM) == -0.5
        assert factor_loading(tech, Factor.VALUE) == -0.3
        assert factor_loading(tech, Factor.GROWTH) == 0.5
        assert factor_loading(bond, Factor.VOLATILITY) == -0.5
        assert factor_loading(tech, Factor.LIQUIDITY) == 0.3
        assert factor_loading(bond, Factor.LIQUIDITY) == -0.3
        assert factor_loading(tech, Factor.DIVIDEND) == pytest.approx(0.002)


class TestFactorModel:
    def test_exposures_are_value_weighted(self, make_position) -> None:
        positions = [
            make_position("AAPL", value=7_500.0, beta=1.2),
            make_position("BTC", AssetClass.CRYPTO, value=2_500.0, beta=2.0, sector=None),
        ]

        exposures = FactorModel().calculate_exposures(positions)
        by_factor = {e.factor: e for e in exposures}

        assert [e.factor for e in exposures] == list(Factor)
        assert by_factor[Factor.MARKET].exposure == pytest.approx(0.75 * 1.2 + 0.25 * 2.0)
        assert by_factor[Factor.VOLATILITY].exposure == pytest.approx(0.25 * 0.8)
        assert by_factor[Factor.MARKET].deviation == pytest.approx(1.4 - BENCHMARKS[Factor.MARKET])
        assert by_factor[Factor.MARKET].contribution == pytest.approx(0.14)

    def test_first_sample_has_neutral_context(self, make_position) -> None:
        exposures = FactorModel().calculate_exposures([make_position()])
        for e in exposures:
            assert e.zscore == 0.0
            assert 0.0 <= e.percentile <= 100.0

    def test_history_grows_and_is_bounded(self, make_position) -> None:
        model = FactorModel(history_retention=3)
        for beta in (1.0, 1.5, 2.0, 2.5):
            model.calculate_exposures([make_position(beta=beta)])

        assert model.history(Factor.MARKET).tolist() == pytest.approx([1.5, 2.0, 2.5])

    def test_zero_variance_history_gives_zero_zscore(self, make_position) -> None:
        model = FactorModel()
        pos = make_position(beta=1.1)
        for _ in range(5):
            exposures = model.calculate_exposures([pos])

        market = next(e for e in exposures if e.factor is Factor.MARKET)
        assert market.zscore == 0.0

    def test_empty_portfolio_is_neutral(self) -> None:
        model = FactorModel()
        exposures = model.calculate_exposures([])

        assert len(exposures) == len(Factor)
        assert all(e.exposure == 0.0 for e in exposures)
        assert all(e.percentile == 50.0 for e in exposures)
        assert model.history(Factor.MARKET).size == 0

    def test_exposure_map(self, make_position) -> None:
        model = FactorModel()
        mapping = model.exposure_map(model.calculate_exposures([make_position(beta=0.9)]))
        assert mapping[Factor.MARKET] == pytest.approx(0.9)
