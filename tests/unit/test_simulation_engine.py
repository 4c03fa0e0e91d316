"""
Meridian: Tests for the Monte Carlo simulator.

These tests use small, seeded runs so that they are deterministic and
fast. They check the structural guarantees of a result (ordering of the
distribution, VaR monotonicity, the value floor) rather than specific
random outcomes.
"""

from __future__ import annotations

import asyncio
from threading import Lock
from typing import List

import numpy as np
import pytest

from meridian.core.config import SimulationConfig
from meridian.monitoring.metrics import get_metric
from meridian.simulation import statistics as stats
from meridian.simulation.cancellation import CancellationToken, SimulationCancelledError
from meridian.simulation.engine import MONTE_CARLO_SCENARIO_ID, MonteCarloSimulator
from meridian.simulation.scenarios import ScenarioNotFoundError
from meridian.simulation.types import CompositionItem


SPY_ONLY = [CompositionItem(asset="SPY", weight=1.0)]


class _CancelAfterChecks(CancellationToken):
    """Token that cancels itself once it has been checked ``limit`` times."""

    def __init__(self, limit: int) -> None:
        super().__init__()
        self._limit = limit
        self._checks = 0
        self._lock = Lock()

    def raise_if_cancelled(self) -> None:
        with self._lock:
            self._checks += 1
            if self._checks > self._limit:
                self.cancel()
        super().raise_if_cancelled()


class TestSimulate:
    def test_result_shape(self, simulation_config: SimulationConfig) -> None:
        result = MonteCarloSimulator(simulation_config).simulate(100_000.0, SPY_ONLY)

        assert result.scenario_id == MONTE_CARLO_SCENARIO_ID
        assert result.path_count == simulation_config.path_count
        assert len(result.paths) == simulation_config.path_count
        assert result.final_values.size == simulation_config.path_count
        assert result.horizon_days == simulation_config.horizon_days
        assert result.composition[0].value == pytest.approx(100_000.0)
        assert all(p.values.shape == (simulation_config.horizon_days + 1,) for p in result.paths)
        assert all(p.values[0] == 100_000.0 for p in result.paths)
        assert result.probability_of_loss + result.probability_of_gain <= 1.0
        assert 0.0 <= result.simulation_confidence <= 100.0

    def test_distribution_is_monotone(self, simulation_config: SimulationConfig) -> None:
        result = MonteCarloSimulator(simulation_config).simulate(100_000.0, SPY_ONLY)

        assert [p.percentile for p in result.distribution] == [1, 5, 10, 25, 50, 75, 90, 95, 99]
        values = [p.value for p in result.distribution]
        assert values == sorted(values)
        assert result.tail_risk.worst_case_1pct <= result.tail_risk.worst_case_5pct
        assert result.tail_risk.best_case_95pct <= result.tail_risk.best_case_99pct

    def test_deeper_confidence_never_lowers_var(self, simulation_config: SimulationConfig) -> None:
        result = MonteCarloSimulator(simulation_config).simulate(100_000.0, SPY_ONLY)

        assert result.value_at_risk(0.99) >= result.value_at_risk(0.95)
        assert result.var_at_confidence == pytest.approx(result.value_at_risk(0.95))
        assert result.cvar_at_confidence >= result.var_at_confidence
        with pytest.raises(ValueError):
            result.value_at_risk(1.0)

    def test_values_respect_floor(self, simulation_config: SimulationConfig) -> None:
        result = MonteCarloSimulator(simulation_config).simulate(
            1_000.0, [CompositionItem(asset="ETH", weight=1.0)], horizon_days=120
        )

        floor = 0.1 * 1_000.0
        assert all(float(p.values.min()) >= floor for p in result.paths)

    def test_sample_paths_follow_final_value_order(self, simulation_config: SimulationConfig) -> None:
        sim = MonteCarloSimulator(simulation_config)

        for count in (simulation_config.path_count, 20):
            result = sim.simulate(100_000.0, SPY_ONLY, path_count=count)
            finals = [p.final_value for p in result.sample_paths]
            assert len(result.sample_paths) == 5
            assert finals == sorted(finals)

    def test_seeded_runs_are_reproducible_across_worker_counts(
        self, simulation_config: SimulationConfig
    ) -> None:
        single = MonteCarloSimulator(simulation_config.model_copy(update={"max_workers": 1}))
        several = MonteCarloSimulator(simulation_config.model_copy(update={"max_workers": 4}))

        a = single.simulate(100_000.0, SPY_ONLY, seed=7)
        b = several.simulate(100_000.0, SPY_ONLY, seed=7)

        np.testing.assert_array_equal(a.final_values, b.final_values)
        assert a.expected_return == b.expected_return

    def test_different_seeds_differ(self, simulation_config: SimulationConfig) -> None:
        sim = MonteCarloSimulator(simulation_config)

        a = sim.simulate(100_000.0, SPY_ONLY, seed=1)
        b = sim.simulate(100_000.0, SPY_ONLY, seed=2)

        assert not np.array_equal(a.final_values, b.final_values)

    def test_unknown_assets_use_default_parameters(self, simulation_config: SimulationConfig) -> None:
        result = MonteCarloSimulator(simulation_config).simulate(
            10_000.0, [CompositionItem(asset="ZZZZ", weight=1.0)]
        )

        assert result.path_count == simulation_config.path_count

    def test_non_positive_value_is_degenerate(self, simulation_config: SimulationConfig) -> None:
        result = MonteCarloSimulator(simulation_config).simulate(0.0, SPY_ONLY)

        assert result.path_count == 0
        assert result.paths == ()
        assert result.sample_paths == ()
        assert result.var_at_confidence == 0.0
        assert result.value_at_risk(0.99) == 0.0
        assert all(p.value == 0.0 for p in result.distribution)

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"horizon_days": 0},
            {"path_count": 0},
            {"confidence_level": 1.0},
            {"confidence_level": 0.0},
        ],
    )
    def test_invalid_inputs(self, simulation_config: SimulationConfig, kwargs: dict) -> None:
        with pytest.raises(ValueError):
            MonteCarloSimulator(simulation_config).simulate(100_000.0, SPY_ONLY, **kwargs)

    def test_non_finite_value_is_rejected(self, simulation_config: SimulationConfig) -> None:
        with pytest.raises(ValueError):
            MonteCarloSimulator(simulation_config).simulate(float("nan"), SPY_ONLY)

    def test_cancelled_token_aborts_run(self, simulation_config: SimulationConfig) -> None:
        token = CancellationToken()
        token.cancel()

        with pytest.raises(SimulationCancelledError):
            MonteCarloSimulator(simulation_config).simulate(100_000.0, SPY_ONLY, cancel_token=token)

    def test_cancel_between_batches_stops_remaining_work(
        self, simulation_config: SimulationConfig, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        config = simulation_config.model_copy(update={"max_workers": 1, "batch_size": 10})
        generated: List[int] = []
        original = stats.generate_paths

        def _counting(rng, count, *args):
            generated.append(count)
            return original(rng, count, *args)

        monkeypatch.setattr(stats, "generate_paths", _counting)
        token = _CancelAfterChecks(3)

        with pytest.raises(SimulationCancelledError):
            MonteCarloSimulator(config).simulate(100_000.0, SPY_ONLY, path_count=1_000, cancel_token=token)

        assert token.cancelled
        assert 0 < len(generated) < 100

    def test_metrics_are_recorded(self, simulation_config: SimulationConfig) -> None:
        MonteCarloSimulator(simulation_config).simulate(100_000.0, SPY_ONLY)

        point = get_metric("simulation.paths", {"scenario": MONTE_CARLO_SCENARIO_ID})
        assert point is not None
        assert point.value == float(simulation_config.path_count)
        assert get_metric("simulation.duration_seconds", {"scenario": MONTE_CARLO_SCENARIO_ID}) is not None

    def test_async_variant(self, simulation_config: SimulationConfig) -> None:
        sim = MonteCarloSimulator(simulation_config)

        result = asyncio.run(sim.simulate_async(100_000.0, SPY_ONLY, path_count=50))

        assert result.path_count == 50

    def test_serialized_result_omits_raw_paths(self, simulation_config: SimulationConfig) -> None:
        result = MonteCarloSimulator(simulation_config).simulate(100_000.0, SPY_ONLY, path_count=50)

        payload = result.to_dict()

        assert "paths" not in payload
        assert "final_values" not in payload
        assert len(payload["sample_paths"]) == 5
        assert len(payload["sample_paths"][0]["values"]) == simulation_config.horizon_days + 1


class TestStressVariant:
    def test_covid_scenario_drives_paths_down(self, simulation_config: SimulationConfig) -> None:
        result = MonteCarloSimulator(simulation_config).run_stress_test(100_000.0, SPY_ONLY, "covid_crash")

        assert result.scenario_id == "covid_crash"
        assert result.scenario_probability == 0.03
        assert result.horizon_days == 90
        assert result.path_count == simulation_config.stress_path_count
        assert result.expected_return < -0.2

    def test_unknown_scenario(self, simulation_config: SimulationConfig) -> None:
        with pytest.raises(ScenarioNotFoundError):
            MonteCarloSimulator(simulation_config).run_stress_test(100_000.0, SPY_ONLY, "martian_invasion")

    def test_explain_renders_markdown(self, simulation_config: SimulationConfig) -> None:
        sim = MonteCarloSimulator(simulation_config)
        result = sim.run_stress_test(100_000.0, SPY_ONLY, "covid_crash", path_count=50)

        text = sim.explain(result)

        assert text.startswith("## Prediction Analysis: COVID")
        assert "**Scenario Probability:** 3.0%" in text
        assert "### Risk Metrics" in text
