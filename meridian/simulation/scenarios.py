"""Meridian – Scenario catalogue.

Built-in scenario definitions plus a registry that accepts custom
definitions of the same shape. The registry is an explicit object owned
by the caller (typically injected into the simulator); there is no
process-wide catalogue.
"""

from __future__ import annotations

from datetime import datetime, timezone
from threading import Lock
from typing import Dict, Iterable, List, Optional, Sequence

from meridian.core.ids import generate_run_id
from meridian.core.logging import get_logger
from meridian.regime.types import MarketCondition

from .types import (
    HistoricalParallel,
    MacroConditions,
    ScenarioDefinition,
    ScenarioShock,
    ScenarioType,
)


logger = get_logger(__name__)

# Reference index levels the built-in scenarios are expressed against.
REFERENCE_SPX = 5000.0
REFERENCE_BTC = 60000.0


class ScenarioNotFoundError(KeyError):
    """Raised when a scenario id is not present in a catalogue."""


def builtin_scenarios() -> List[ScenarioDefinition]:
    """Return fresh copies of the built-in scenario definitions."""

    return [
        ScenarioDefinition(
            id="2008_crisis",
            name="2008 Financial Crisis",
            description="Severe credit crisis similar to 2008",
            type=ScenarioType.STRESS_TEST,
            initial_conditions=MacroConditions(
                market_condition=MarketCondition.BEAR_VOLATILE,
                vix=80.0,
                spx_level=REFERENCE_SPX * 0.5,
                interest_rate=0.0025,
                inflation=0.001,
                dollar_strength=85.0,
                credit_spreads=6.0,
            ),
            shocks=(
                ScenarioShock("SPY", -0.50, 4.0, "18 months"),
                ScenarioShock("QQQ", -0.55, 4.5, "18 months"),
                ScenarioShock("HYG", -0.30, 3.0, "12 months"),
            ),
            horizon_days=540,
            steps=540,
            base_probability=0.05,
            historical_parallel=HistoricalParallel(
                period="2008-2009",
                similarity=1.0,
                outcome="S&P 500 fell 57% peak to trough, recovered in 4 years",
            ),
            is_builtin=True,
        ),
        ScenarioDefinition(
            id="covid_crash",
            name="COVID-like Crash",
            description="Sharp, fast crash similar to March 2020",
            type=ScenarioType.STRESS_TEST,
            initial_conditions=MacroConditions(
                market_condition=MarketCondition.CRASH,
                vix=82.0,
                spx_level=REFERENCE_SPX * 0.66,
                interest_rate=0.0,
                inflation=0.01,
                dollar_strength=102.0,
                credit_spreads=4.0,
            ),
            shocks=(
                ScenarioShock("SPY", -0.34, 5.0, "1 month"),
                ScenarioShock("BTC", -0.50, 6.0, "1 month"),
            ),
            horizon_days=90,
            steps=90,
            base_probability=0.03,
            historical_parallel=HistoricalParallel(
                period="March 2020",
                similarity=1.0,
                outcome="Fastest 30%+ decline in history, recovered in 5 months",
            ),
            is_builtin=True,
        ),
        ScenarioDefinition(
            id="stagflation",
            name="Stagflation",
            description="High inflation with economic stagnation",
            type=ScenarioType.MACRO_SHOCK,
            initial_conditions=MacroConditions(
                market_condition=MarketCondition.BEAR_QUIET,
                vix=30.0,
                spx_level=REFERENCE_SPX * 0.8,
                interest_rate=0.08,
                inflation=0.10,
                dollar_strength=90.0,
                credit_spreads=3.0,
            ),
            shocks=(
                ScenarioShock("SPY", -0.30, 1.5, "24 months"),
                ScenarioShock("TLT", -0.25, 2.0, "24 months"),
                ScenarioShock("GLD", 0.50, 1.5, "24 months"),
            ),
            horizon_days=720,
            steps=720,
            base_probability=0.08,
            historical_parallel=HistoricalParallel(
                period="1970s",
                similarity=0.7,
                outcome="Lost decade for stocks, gold soared",
            ),
            is_builtin=True,
        ),
        ScenarioDefinition(
            id="bull_continuation",
            name="Bull Market Continuation",
            description="Current bull market extends another 2 years",
            type=ScenarioType.REGIME_TRANSITION,
            initial_conditions=MacroConditions(
                market_condition=MarketCondition.BULL_QUIET,
                vix=14.0,
                spx_level=REFERENCE_SPX * 1.3,
                interest_rate=0.04,
                inflation=0.02,
                dollar_strength=100.0,
                credit_spreads=1.0,
            ),
            shocks=(
                ScenarioShock("SPY", 0.30, 0.8, "24 months"),
                ScenarioShock("QQQ", 0.40, 0.9, "24 months"),
            ),
            horizon_days=730,
            steps=730,
            base_probability=0.25,
            is_builtin=True,
        ),
        ScenarioDefinition(
            id="crypto_winter",
            name="Crypto Winter",
            description="Extended crypto bear market",
            type=ScenarioType.STRESS_TEST,
            initial_conditions=MacroConditions(
                market_condition=MarketCondition.BEAR_VOLATILE,
                vix=25.0,
                spx_level=REFERENCE_SPX,
                btc_level=REFERENCE_BTC * 0.3,
                interest_rate=0.05,
                inflation=0.03,
                dollar_strength=108.0,
                credit_spreads=2.0,
            ),
            shocks=(
                ScenarioShock("BTC", -0.70, 3.0, "18 months"),
                ScenarioShock("ETH", -0.80, 3.5, "18 months"),
            ),
            horizon_days=540,
            steps=540,
            base_probability=0.15,
            historical_parallel=HistoricalParallel(
                period="2018-2019",
                similarity=0.8,
                outcome="BTC fell 84% from peak, recovered in 3 years",
            ),
            is_builtin=True,
        ),
    ]


class ScenarioRegistry:
    """Thread-safe catalogue of scenario definitions.

    Args:
        scenarios: Initial definitions. Defaults to the built-in set.
    """

    def __init__(self, scenarios: Optional[Iterable[ScenarioDefinition]] = None) -> None:
        initial = builtin_scenarios() if scenarios is None else list(scenarios)
        self._scenarios: Dict[str, ScenarioDefinition] = {s.id: s for s in initial}
        self._lock = Lock()

    def get(self, scenario_id: str) -> ScenarioDefinition:
        with self._lock:
            scenario = self._scenarios.get(scenario_id)
        if scenario is None:
            raise ScenarioNotFoundError(scenario_id)
        return scenario

    def all(self) -> List[ScenarioDefinition]:
        with self._lock:
            return list(self._scenarios.values())

    def register(self, scenario: ScenarioDefinition) -> ScenarioDefinition:
        """Add or replace ``scenario`` under its id."""

        with self._lock:
            self._scenarios[scenario.id] = scenario
        logger.info("Registered scenario id=%s name=%s", scenario.id, scenario.name)
        return scenario

    def create_custom_scenario(
        self,
        name: str,
        description: str,
        initial_conditions: MacroConditions,
        shocks: Sequence[ScenarioShock],
        horizon_days: int,
        steps: int,
        base_probability: float,
        type: ScenarioType = ScenarioType.CUSTOM,
        historical_parallel: Optional[HistoricalParallel] = None,
    ) -> ScenarioDefinition:
        """Create, register and return a custom scenario with a fresh id."""

        scenario = ScenarioDefinition(
            id=generate_run_id("custom"),
            name=name,
            description=description,
            type=type,
            initial_conditions=initial_conditions,
            shocks=tuple(shocks),
            horizon_days=horizon_days,
            steps=steps,
            base_probability=base_probability,
            historical_parallel=historical_parallel,
            created_at=datetime.now(timezone.utc),
            is_builtin=False,
        )
        return self.register(scenario)

    def __contains__(self, scenario_id: object) -> bool:
        with self._lock:
            return scenario_id in self._scenarios

    def __len__(self) -> int:
        with self._lock:
            return len(self._scenarios)
