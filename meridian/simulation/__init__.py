"""Meridian – Scenario simulation package.

This package implements the Monte Carlo simulator, its scenario
catalogue and the asset parameter table that drives path drift and
volatility.
"""

from __future__ import annotations

from meridian.simulation.types import (
    CompositionItem,
    DistributionPoint,
    HistoricalParallel,
    MacroConditions,
    PathStatistics,
    RecoveryTimes,
    ScenarioDefinition,
    ScenarioResult,
    ScenarioShock,
    ScenarioType,
    SimulationPath,
    TailOutcomes,
)
from meridian.simulation.cancellation import CancellationToken, SimulationCancelledError
from meridian.simulation.params import AssetParameters, ParameterTable
from meridian.simulation.scenarios import (
    ScenarioNotFoundError,
    ScenarioRegistry,
    builtin_scenarios,
)
from meridian.simulation.engine import MonteCarloSimulator

__all__ = [
    "AssetParameters",
    "CancellationToken",
    "CompositionItem",
    "DistributionPoint",
    "HistoricalParallel",
    "MacroConditions",
    "MonteCarloSimulator",
    "ParameterTable",
    "PathStatistics",
    "RecoveryTimes",
    "ScenarioDefinition",
    "ScenarioNotFoundError",
    "ScenarioRegistry",
    "ScenarioResult",
    "ScenarioShock",
    "ScenarioType",
    "SimulationCancelledError",
    "SimulationPath",
    "TailOutcomes",
    "builtin_scenarios",
]
