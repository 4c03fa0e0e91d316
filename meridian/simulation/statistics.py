"""Meridian – Path generation and path statistics.

Vectorised helpers shared by the plain Monte Carlo run and the
scenario-biased stress variant. All functions operate on a value matrix
of shape ``(n_paths, steps + 1)`` whose first column is the start value.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Sequence, Tuple

import numpy as np

from meridian.core.numeric import finite

from .types import (
    DistributionPoint,
    PathStatistics,
    RecoveryTimes,
    SimulationPath,
    TailOutcomes,
)


TRADING_DAYS = 252
DISTRIBUTION_PERCENTILES: Tuple[int, ...] = (1, 5, 10, 25, 50, 75, 90, 95, 99)
SAMPLE_PATH_RANKS: Tuple[float, ...] = (0.05, 0.25, 0.50, 0.75, 0.95)
RECOVERY_THRESHOLDS: Tuple[float, ...] = (0.10, 0.20, 0.30)

# Simulated values never fall below this fraction of the start value.
VALUE_FLOOR_FRACTION = 0.1

# Downside variance used when a path has no negative daily return.
_EMPTY_DOWNSIDE_VARIANCE = 0.0001


# ============================================================================
# Random numbers and path generation
# ============================================================================


def box_muller(rng: np.random.Generator, size: Tuple[int, ...]) -> np.ndarray:
    """Draw standard normals from uniform samples via Box-Muller."""

    # 1 - U(0,1) lies in (0, 1] so the logarithm stays finite.
    u1 = 1.0 - rng.random(size)
    u2 = rng.random(size)
    return np.sqrt(-2.0 * np.log(u1)) * np.cos(2.0 * np.pi * u2)


def generate_paths(
    rng: np.random.Generator,
    count: int,
    start_value: float,
    steps: int,
    step_drift: float,
    step_volatility: float,
) -> np.ndarray:
    """Generate ``count`` discretised GBM paths.

    Each step applies ``value *= 1 + step_drift + step_volatility * Z``
    and then floors the value at ``VALUE_FLOOR_FRACTION * start_value``.
    """

    floor = VALUE_FLOOR_FRACTION * start_value
    shocks = box_muller(rng, (count, steps))
    values = np.empty((count, steps + 1), dtype=float)
    values[:, 0] = start_value
    current = np.full(count, start_value, dtype=float)
    for t in range(steps):
        current = np.maximum(current * (1.0 + step_drift + step_volatility * shocks[:, t]), floor)
        values[:, t + 1] = current
    return values


# ============================================================================
# Per-path metrics
# ============================================================================


@dataclass(frozen=True)
class PathMetrics:
    """Column vectors of per-path metrics, aligned with the value matrix."""

    final_values: np.ndarray
    max_drawdown: np.ndarray
    max_gain: np.ndarray
    sharpe: np.ndarray
    sortino: np.ndarray
    volatility: np.ndarray


def compute_path_metrics(values: np.ndarray, start_value: float) -> PathMetrics:
    running_max = np.maximum.accumulate(values, axis=1)
    drawdowns = (running_max - values) / running_max
    max_drawdown = drawdowns.max(axis=1)
    max_gain = ((values - start_value) / start_value).max(axis=1)

    daily = values[:, 1:] / values[:, :-1] - 1.0
    avg = daily.mean(axis=1)
    variance = np.clip((daily ** 2).mean(axis=1) - avg ** 2, 0.0, None)
    volatility = np.sqrt(variance) * math.sqrt(TRADING_DAYS)

    downside = np.where(daily < 0.0, daily, 0.0)
    downside_count = (daily < 0.0).sum(axis=1)
    downside_variance = np.where(
        downside_count > 0,
        (downside ** 2).sum(axis=1) / np.maximum(downside_count, 1),
        _EMPTY_DOWNSIDE_VARIANCE,
    )
    downside_vol = np.sqrt(downside_variance) * math.sqrt(TRADING_DAYS)

    annual = avg * TRADING_DAYS
    with np.errstate(divide="ignore", invalid="ignore"):
        sharpe = np.where(volatility > 0.0, annual / volatility, 0.0)
        sortino = np.where(downside_vol > 0.0, annual / downside_vol, 0.0)

    return PathMetrics(
        final_values=values[:, -1].copy(),
        max_drawdown=max_drawdown,
        max_gain=max_gain,
        sharpe=np.nan_to_num(sharpe, nan=0.0, posinf=0.0, neginf=0.0),
        sortino=np.nan_to_num(sortino, nan=0.0, posinf=0.0, neginf=0.0),
        volatility=volatility,
    )


def build_paths(values: np.ndarray, metrics: PathMetrics) -> List[SimulationPath]:
    return [
        SimulationPath(
            path_id=i,
            values=values[i],
            final_value=float(metrics.final_values[i]),
            max_drawdown=float(metrics.max_drawdown[i]),
            max_gain=float(metrics.max_gain[i]),
            sharpe=float(metrics.sharpe[i]),
            sortino=float(metrics.sortino[i]),
            volatility=float(metrics.volatility[i]),
        )
        for i in range(values.shape[0])
    ]


# ============================================================================
# Aggregate statistics
# ============================================================================


def _rank_index(fraction: float, n: int) -> int:
    return min(int(math.floor(fraction * n)), n - 1)


def distribution(sorted_finals: np.ndarray, start_value: float) -> Tuple[DistributionPoint, ...]:
    """Percentile table of terminal values; non-decreasing by construction."""

    n = sorted_finals.size
    points = []
    for pct in DISTRIBUTION_PERCENTILES:
        value = float(sorted_finals[_rank_index(pct / 100.0, n)])
        points.append(
            DistributionPoint(
                percentile=pct,
                value=value,
                period_return=finite((value - start_value) / start_value),
            )
        )
    return tuple(points)


def tail_outcomes(sorted_returns: np.ndarray) -> TailOutcomes:
    n = sorted_returns.size
    return TailOutcomes(
        worst_case_1pct=float(sorted_returns[_rank_index(0.01, n)]),
        worst_case_5pct=float(sorted_returns[_rank_index(0.05, n)]),
        best_case_95pct=float(sorted_returns[_rank_index(0.95, n)]),
        best_case_99pct=float(sorted_returns[_rank_index(0.99, n)]),
    )


def value_at_risk(sorted_finals: np.ndarray, start_value: float, confidence: float) -> Tuple[float, float]:
    """Return ``(VaR, CVaR)`` as fractional losses of ``start_value``."""

    n = sorted_finals.size
    idx = _rank_index(1.0 - confidence, n)
    var = float((start_value - sorted_finals[idx]) / start_value)
    tail = sorted_finals[:idx]
    if tail.size == 0:
        return var, var
    return var, float((start_value - tail.mean()) / start_value)


def drawdown_statistics(max_drawdowns: np.ndarray) -> Tuple[float, float]:
    """Return ``(mean max drawdown, 95th percentile max drawdown)``."""

    ordered = np.sort(max_drawdowns)[::-1]
    return float(max_drawdowns.mean()), float(ordered[_rank_index(0.05, ordered.size)])


def recovery_times(
    values: np.ndarray,
    start_value: float,
    thresholds: Sequence[float] = RECOVERY_THRESHOLDS,
) -> RecoveryTimes:
    """Average steps from the first breach of each drawdown threshold
    until the path is back at or above ``start_value``.
    """

    steps = np.arange(values.shape[1])
    averages = []
    for threshold in thresholds:
        below = values < start_value * (1.0 - threshold)
        hit = below.any(axis=1)
        first_hit = np.argmax(below, axis=1)
        recovered_mask = (values >= start_value) & (steps[None, :] >= first_hit[:, None])
        recovered = recovered_mask.any(axis=1)
        recovery_step = np.argmax(recovered_mask, axis=1)
        valid = hit & recovered
        if valid.any():
            averages.append(int(round(float((recovery_step[valid] - first_hit[valid]).mean()))))
        else:
            averages.append(0)
    return RecoveryTimes(if_down_10=averages[0], if_down_20=averages[1], if_down_30=averages[2])


def path_statistics(metrics: PathMetrics, start_value: float) -> PathStatistics:
    finals = metrics.final_values
    positive = finals[finals > start_value]
    negative = finals[finals < start_value]
    avg_pos = float((positive - start_value).mean() / start_value) if positive.size else 0.0
    avg_neg = float((negative - start_value).mean() / start_value) if negative.size else 0.0
    return PathStatistics(
        paths_positive=int(positive.size),
        paths_negative=int(negative.size),
        avg_positive_path=avg_pos,
        avg_negative_path=avg_neg,
        path_volatility=float(metrics.volatility.mean()) if metrics.volatility.size else 0.0,
    )


def sample_path_indices(final_values: np.ndarray) -> List[int]:
    """Indices of the 5th/25th/50th/75th/95th percentile paths by final value."""

    order = np.argsort(final_values, kind="stable")
    n = order.size
    return [int(order[_rank_index(rank, n)]) for rank in SAMPLE_PATH_RANKS]


def simulation_confidence(path_count: int, standard_deviation: float) -> float:
    """0-100 score rising with path count and falling with dispersion."""

    path_factor = min(100.0, (path_count / 10000.0) * 50.0 + 50.0)
    vol_factor = max(0.0, 100.0 - standard_deviation * 100.0)
    return float(round((path_factor + vol_factor) / 2.0))
