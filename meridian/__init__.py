"""Meridian – top-level package exports.

This module re-exports commonly used engine components for convenience.
"""

# Positions and portfolio
from meridian.positions.types import AssetClass, Position, PositionRecord
from meridian.positions.store import PositionStore
from meridian.portfolio.types import GroupingDimension, PortfolioSummary
from meridian.portfolio.aggregator import PortfolioAggregator

# Simulation
from meridian.simulation.engine import MonteCarloSimulator
from meridian.simulation.scenarios import ScenarioRegistry
from meridian.simulation.types import CompositionItem, ScenarioResult

# Regime
from meridian.regime.predictor import RegimeTransitionPredictor
from meridian.regime.types import MarketCondition, MarketSignals

# Risk
from meridian.risk.report import RiskReportAggregator
from meridian.risk.types import RiskReport, RotationRegime

__all__ = [
    # Positions and portfolio
    "AssetClass",
    "Position",
    "PositionRecord",
    "PositionStore",
    "GroupingDimension",
    "PortfolioSummary",
    "PortfolioAggregator",
    # Simulation
    "MonteCarloSimulator",
    "ScenarioRegistry",
    "CompositionItem",
    "ScenarioResult",
    # Regime
    "RegimeTransitionPredictor",
    "MarketCondition",
    "MarketSignals",
    # Risk
    "RiskReportAggregator",
    "RiskReport",
    "RotationRegime",
]
