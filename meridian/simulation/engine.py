"""Meridian – Monte Carlo simulator.

This module implements the stochastic projection of portfolio value.
Paths follow a discretised geometric Brownian motion whose drift and
volatility are the weight-averaged parameters of the portfolio
composition. A scenario-biased variant steers paths towards the value a
named scenario implies.

Key responsibilities:
- Generate independent paths in seeded batches on a thread pool.
- Reduce paths into a :class:`ScenarioResult` (percentiles, VaR/CVaR,
  drawdown, recovery times, sample paths).
- Support cooperative cancellation between batches.

External dependencies:
- numpy: Random number generation and vectorised path statistics.

Thread safety: A simulator instance holds no mutable state between runs
and can be shared across threads.

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

import asyncio
import math
import os
import time
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence

import numpy as np

from meridian.core.config import SimulationConfig, get_config
from meridian.core.ids import generate_run_id
from meridian.core.logging import get_logger
from meridian.core.numeric import finite
from meridian.monitoring.metrics import record_metric

from . import statistics as stats
from .cancellation import CancellationToken, SimulationCancelledError
from .params import ParameterTable
from .scenarios import ScenarioRegistry
from .types import (
    CompositionItem,
    DistributionPoint,
    PathStatistics,
    RecoveryTimes,
    ScenarioResult,
    TailOutcomes,
)

# ============================================================================
# Module Setup
# ============================================================================

logger = get_logger(__name__)

MONTE_CARLO_SCENARIO_ID = "monte_carlo"
MONTE_CARLO_SCENARIO_NAME = "Monte Carlo Simulation"
DEFAULT_VOLATILITY_MULTIPLIER = 2.0

# ============================================================================
# Simulator
# ============================================================================


class MonteCarloSimulator:
    """Stochastic portfolio value simulator.

    Args:
        config: Simulation defaults. Defaults to ``get_config().simulation``.
        parameters: Asset parameter table.
        scenarios: Scenario catalogue used by :meth:`run_stress_test`.
    """

    def __init__(
        self,
        config: Optional[SimulationConfig] = None,
        parameters: Optional[ParameterTable] = None,
        scenarios: Optional[ScenarioRegistry] = None,
    ) -> None:
        self._config = config or get_config().simulation
        self._parameters = parameters or ParameterTable()
        self._scenarios = scenarios or ScenarioRegistry()

    @property
    def scenarios(self) -> ScenarioRegistry:
        return self._scenarios

    @property
    def parameters(self) -> ParameterTable:
        return self._parameters

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def simulate(
        self,
        portfolio_value: float,
        composition: Sequence[CompositionItem],
        horizon_days: Optional[int] = None,
        path_count: Optional[int] = None,
        confidence_level: Optional[float] = None,
        *,
        seed: Optional[int] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> ScenarioResult:
        """Run a plain Monte Carlo simulation.

        Args:
            portfolio_value: Start value of the portfolio.
            composition: Holdings with their weights.
            horizon_days: Horizon in trading days (one step per day).
            path_count: Number of independent paths.
            confidence_level: VaR/CVaR confidence in (0, 1).
            seed: Optional seed; overrides the configured seed.
            cancel_token: Optional token checked between batches.

        Raises:
            ValueError: On non-positive horizon or path count, confidence
                outside (0, 1) or a non-finite portfolio value.
            SimulationCancelledError: If ``cancel_token`` is set before
                the run completes.
        """

        horizon = self._config.horizon_days if horizon_days is None else horizon_days
        paths = self._config.path_count if path_count is None else path_count
        confidence = self._config.confidence_level if confidence_level is None else confidence_level
        _validate(portfolio_value, horizon, paths, confidence)

        items = tuple(_with_values(composition, portfolio_value))
        if portfolio_value <= 0.0:
            logger.info("MonteCarloSimulator.simulate: non-positive portfolio value; degenerate result")
            return _degenerate_result(
                MONTE_CARLO_SCENARIO_ID, MONTE_CARLO_SCENARIO_NAME, portfolio_value, items, horizon, confidence
            )

        mu, sigma = self._parameters.blend(items)
        started = time.perf_counter()
        values = self._run_batches(
            paths,
            portfolio_value,
            horizon,
            step_drift=mu / stats.TRADING_DAYS,
            step_volatility=sigma / math.sqrt(stats.TRADING_DAYS),
            seed=self._config.seed if seed is None else seed,
            cancel_token=cancel_token,
        )
        result = _aggregate(
            values,
            scenario_id=MONTE_CARLO_SCENARIO_ID,
            scenario_name=MONTE_CARLO_SCENARIO_NAME,
            portfolio_value=portfolio_value,
            composition=items,
            horizon_days=horizon,
            confidence=confidence,
        )
        self._record(result, time.perf_counter() - started)
        return result

    def run_stress_test(
        self,
        portfolio_value: float,
        composition: Sequence[CompositionItem],
        scenario_id: str,
        *,
        path_count: Optional[int] = None,
        seed: Optional[int] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> ScenarioResult:
        """Run paths biased towards the value implied by a scenario.

        The target value applies each matching shock to its holding's
        share of the portfolio. Paths drift geometrically towards the
        target over ``scenario.steps`` steps with the composition's
        volatility scaled by the largest matching volatility multiplier.

        Raises:
            ScenarioNotFoundError: If ``scenario_id`` is unknown.
        """

        scenario = self._scenarios.get(scenario_id)
        paths = self._config.stress_path_count if path_count is None else path_count
        confidence = self._config.confidence_level
        _validate(portfolio_value, scenario.steps, paths, confidence)

        items = tuple(_with_values(composition, portfolio_value))
        if portfolio_value <= 0.0:
            return _degenerate_result(
                scenario.id, scenario.name, portfolio_value, items, scenario.horizon_days, confidence,
                scenario_probability=scenario.base_probability,
            )

        target = portfolio_value
        multipliers: List[float] = []
        for item in items:
            shock = next((s for s in scenario.shocks if s.matches(item.asset)), None)
            if shock is None:
                continue
            target += portfolio_value * item.weight * shock.change
            multipliers.append(shock.volatility_multiplier)

        if not multipliers:
            logger.warning(
                "Scenario %s has no shock matching the composition; paths follow the base volatility",
                scenario.id,
            )
        multiplier = max(multipliers) if multipliers else (
            scenario.shocks[0].volatility_multiplier if scenario.shocks else DEFAULT_VOLATILITY_MULTIPLIER
        )

        floor = stats.VALUE_FLOOR_FRACTION * portfolio_value
        target = max(target, floor)
        step_drift = finite((target / portfolio_value) ** (1.0 / scenario.steps) - 1.0, label="stress_drift")
        _, sigma = self._parameters.blend(items)
        step_volatility = sigma * multiplier / math.sqrt(stats.TRADING_DAYS)

        logger.info(
            "MonteCarloSimulator.run_stress_test: scenario=%s target=%.2f start=%.2f paths=%d",
            scenario.id,
            target,
            portfolio_value,
            paths,
        )

        started = time.perf_counter()
        values = self._run_batches(
            paths,
            portfolio_value,
            scenario.steps,
            step_drift=step_drift,
            step_volatility=step_volatility,
            seed=self._config.seed if seed is None else seed,
            cancel_token=cancel_token,
        )
        result = _aggregate(
            values,
            scenario_id=scenario.id,
            scenario_name=scenario.name,
            portfolio_value=portfolio_value,
            composition=items,
            horizon_days=scenario.horizon_days,
            confidence=confidence,
            scenario_probability=scenario.base_probability,
        )
        self._record(result, time.perf_counter() - started)
        return result

    async def simulate_async(self, *args, **kwargs) -> ScenarioResult:
        """Run :meth:`simulate` in a worker thread."""

        return await asyncio.to_thread(self.simulate, *args, **kwargs)

    async def run_stress_test_async(self, *args, **kwargs) -> ScenarioResult:
        """Run :meth:`run_stress_test` in a worker thread."""

        return await asyncio.to_thread(self.run_stress_test, *args, **kwargs)

    def explain(self, result: ScenarioResult) -> str:
        """Return a Markdown summary of ``result``."""

        lines = [
            f"## Prediction Analysis: {result.scenario_name}",
            "",
            f"**Portfolio Value:** ${result.portfolio_value:,.2f}",
            f"**Time Horizon:** {result.horizon_days} days",
            f"**Paths Simulated:** {result.path_count:,}",
            "",
            "### Expected Outcomes",
            f"- Expected Return: {result.expected_return:.2%}",
            f"- Median Return: {result.median_return:.2%}",
            f"- Standard Deviation: {result.standard_deviation:.2%}",
            "",
            "### Risk Metrics",
            f"- Value at Risk ({result.confidence_level:.0%}): {result.var_at_confidence:.2%}",
            f"- Conditional VaR: {result.cvar_at_confidence:.2%}",
            f"- Max Expected Drawdown: {result.max_drawdown_expected:.2%}",
            f"- Probability of Loss: {result.probability_of_loss:.1%}",
            "",
            "### Tail Risk",
            f"- Worst 1% Outcome: {result.tail_risk.worst_case_1pct:.2%}",
            f"- Worst 5% Outcome: {result.tail_risk.worst_case_5pct:.2%}",
            f"- Best 95% Outcome: {result.tail_risk.best_case_95pct:.2%}",
        ]
        if result.scenario_probability is not None:
            lines.append("")
            lines.append(f"**Scenario Probability:** {result.scenario_probability:.1%}")
        return "\n".join(lines) + "\n"

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _run_batches(
        self,
        path_count: int,
        start_value: float,
        steps: int,
        *,
        step_drift: float,
        step_volatility: float,
        seed: Optional[int],
        cancel_token: Optional[CancellationToken],
    ) -> np.ndarray:
        batch_size = max(1, self._config.batch_size)
        sizes = [batch_size] * (path_count // batch_size)
        if path_count % batch_size:
            sizes.append(path_count % batch_size)

        seeds = np.random.SeedSequence(seed).spawn(len(sizes))
        workers = min(self._config.max_workers or os.cpu_count() or 1, len(sizes))

        def _batch(index: int) -> np.ndarray:
            if cancel_token is not None:
                cancel_token.raise_if_cancelled()
            rng = np.random.default_rng(seeds[index])
            return stats.generate_paths(rng, sizes[index], start_value, steps, step_drift, step_volatility)

        results: Dict[int, np.ndarray] = {}
        with ThreadPoolExecutor(max_workers=workers) as pool:
            pending: Dict[Future, int] = {pool.submit(_batch, i): i for i in range(len(sizes))}
            try:
                while pending:
                    done, _ = wait(pending, return_when=FIRST_COMPLETED)
                    for fut in done:
                        index = pending.pop(fut)
                        results[index] = fut.result()
                    if cancel_token is not None:
                        cancel_token.raise_if_cancelled()
            except SimulationCancelledError:
                for fut in pending:
                    fut.cancel()
                logger.info(
                    "Simulation cancelled after %d of %d batches", len(results), len(sizes)
                )
                raise

        return np.vstack([results[i] for i in range(len(sizes))])

    @staticmethod
    def _record(result: ScenarioResult, duration: float) -> None:
        tags = {"scenario": result.scenario_id}
        record_metric("simulation.paths", result.path_count, tags)
        record_metric("simulation.duration_seconds", duration, tags)
        logger.info(
            "Simulation %s complete: scenario=%s paths=%d horizon=%d var=%.4f duration=%.3fs",
            result.id,
            result.scenario_id,
            result.path_count,
            result.horizon_days,
            result.var_at_confidence,
            duration,
        )


# ============================================================================
# Helpers
# ============================================================================


def _validate(portfolio_value: float, horizon: int, path_count: int, confidence: float) -> None:
    if not math.isfinite(portfolio_value):
        raise ValueError("portfolio_value must be finite")
    if horizon <= 0:
        raise ValueError("horizon must be a positive integer")
    if path_count <= 0:
        raise ValueError("path_count must be a positive integer")
    if not 0.0 < confidence < 1.0:
        raise ValueError("confidence_level must be strictly between 0 and 1")


def _with_values(composition: Sequence[CompositionItem], portfolio_value: float) -> List[CompositionItem]:
    return [
        CompositionItem(asset=item.asset, weight=item.weight, value=portfolio_value * item.weight)
        for item in composition
    ]


def _aggregate(
    values: np.ndarray,
    *,
    scenario_id: str,
    scenario_name: str,
    portfolio_value: float,
    composition: tuple,
    horizon_days: int,
    confidence: float,
    scenario_probability: Optional[float] = None,
) -> ScenarioResult:
    metrics = stats.compute_path_metrics(values, portfolio_value)
    all_paths = stats.build_paths(values, metrics)

    sorted_finals = np.sort(metrics.final_values)
    sorted_returns = (sorted_finals - portfolio_value) / portfolio_value
    n = sorted_finals.size

    var, cvar = stats.value_at_risk(sorted_finals, portfolio_value, confidence)
    dd_mean, dd_95 = stats.drawdown_statistics(metrics.max_drawdown)
    std = float(sorted_returns.std())

    return ScenarioResult(
        id=generate_run_id("mc" if scenario_probability is None else "stress"),
        scenario_id=scenario_id,
        scenario_name=scenario_name,
        timestamp=datetime.now(timezone.utc),
        portfolio_value=portfolio_value,
        composition=composition,
        path_count=n,
        horizon_days=horizon_days,
        confidence_level=confidence,
        distribution=stats.distribution(sorted_finals, portfolio_value),
        expected_return=finite(sorted_returns.mean(), label="expected_return"),
        median_return=float(sorted_returns[n // 2]),
        standard_deviation=finite(std, label="standard_deviation"),
        var_at_confidence=finite(var, label="var"),
        cvar_at_confidence=finite(cvar, label="cvar"),
        max_drawdown_expected=finite(dd_mean, label="max_drawdown_expected"),
        max_drawdown_95=finite(dd_95, label="max_drawdown_95"),
        probability_of_loss=float((sorted_returns < 0.0).mean()),
        probability_of_gain=float((sorted_returns > 0.0).mean()),
        tail_risk=stats.tail_outcomes(sorted_returns),
        time_to_recovery=stats.recovery_times(values, portfolio_value),
        path_statistics=stats.path_statistics(metrics, portfolio_value),
        sample_paths=tuple(all_paths[i] for i in stats.sample_path_indices(metrics.final_values)),
        simulation_confidence=stats.simulation_confidence(n, std),
        scenario_probability=scenario_probability,
        paths=tuple(all_paths),
        final_values=sorted_finals,
    )


def _degenerate_result(
    scenario_id: str,
    scenario_name: str,
    portfolio_value: float,
    composition: tuple,
    horizon_days: int,
    confidence: float,
    scenario_probability: Optional[float] = None,
) -> ScenarioResult:
    return ScenarioResult(
        id=generate_run_id("mc"),
        scenario_id=scenario_id,
        scenario_name=scenario_name,
        timestamp=datetime.now(timezone.utc),
        portfolio_value=portfolio_value,
        composition=composition,
        path_count=0,
        horizon_days=horizon_days,
        confidence_level=confidence,
        distribution=tuple(
            DistributionPoint(percentile=p, value=0.0, period_return=0.0)
            for p in stats.DISTRIBUTION_PERCENTILES
        ),
        expected_return=0.0,
        median_return=0.0,
        standard_deviation=0.0,
        var_at_confidence=0.0,
        cvar_at_confidence=0.0,
        max_drawdown_expected=0.0,
        max_drawdown_95=0.0,
        probability_of_loss=0.0,
        probability_of_gain=0.0,
        tail_risk=TailOutcomes(),
        time_to_recovery=RecoveryTimes(),
        path_statistics=PathStatistics(),
        sample_paths=(),
        simulation_confidence=0.0,
        scenario_probability=scenario_probability,
    )
