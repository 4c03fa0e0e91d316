"""Meridian – Historical stress tests.

Applies deterministic asset-class shocks from a table of named
historical scenarios to the current snapshot. No randomness is
involved: the same positions and table always produce the same
results in the same order.
"""

from __future__ import annotations

from threading import Lock
from typing import Dict, Iterable, List, Optional, Sequence

from meridian.core.logging import get_logger
from meridian.core.numeric import finite, safe_div
from meridian.positions.types import AssetClass, Position
from meridian.simulation.scenarios import ScenarioNotFoundError

from .types import PositionImpact, StressScenarioParams, StressTestResult


logger = get_logger(__name__)

WORST_POSITION_LIMIT = 10
SEVERE_IMPACT = -0.30
MATERIAL_IMPACT = -0.20
HEDGE_NAME_MARKERS = ("inverse", "short")


def _scenario(scenario_id, description, equity, bond, crypto, gold, cash, recovery_days):
    return StressScenarioParams(
        scenario_id=scenario_id,
        description=description,
        equity_impact=equity,
        bond_impact=bond,
        crypto_impact=crypto,
        gold_impact=gold,
        cash_impact=cash,
        recovery_days=recovery_days,
    )


HISTORICAL_SCENARIOS: Dict[str, StressScenarioParams] = {
    s.scenario_id: s
    for s in (
        _scenario("financial_crisis_2008", "2008 Global Financial Crisis", -0.57, 0.05, 0.0, 0.25, 0.0, 1400),
        _scenario("covid_crash_2020", "COVID-19 Market Crash (Feb-Mar 2020)", -0.34, 0.02, -0.50, -0.03, 0.0, 180),
        _scenario("flash_crash_2010", "2010 Flash Crash", -0.09, 0.01, 0.0, 0.02, 0.0, 1),
        _scenario("dot_com_2000", "Dot-com Bubble Burst (2000-2002)", -0.49, 0.15, 0.0, 0.10, 0.0, 2500),
        _scenario("black_monday_1987", "Black Monday 1987", -0.22, 0.05, 0.0, 0.03, 0.0, 400),
        _scenario("interest_rate_shock", "Sudden Interest Rate Increase (+3%)", -0.15, -0.20, -0.25, -0.10, 0.02, 365),
        _scenario("inflation_spike", "High Inflation Scenario (>10%)", -0.20, -0.15, -0.10, 0.30, -0.10, 730),
        _scenario("recession", "Economic Recession", -0.35, 0.10, -0.40, 0.15, 0.0, 600),
        _scenario("geopolitical_crisis", "Major Geopolitical Event", -0.20, 0.05, -0.15, 0.20, 0.0, 180),
        _scenario("crypto_winter", "Crypto Market Winter", -0.05, 0.0, -0.80, 0.0, 0.0, 1000),
    )
}


def asset_class_impact(params: StressScenarioParams, asset_class: AssetClass) -> float:
    """Scenario shock for an asset class.

    Classes without a dedicated column take half the equity shock.
    """

    if asset_class is AssetClass.EQUITY:
        return params.equity_impact
    if asset_class is AssetClass.FIXED_INCOME:
        return params.bond_impact
    if asset_class is AssetClass.CRYPTO:
        return params.crypto_impact
    if asset_class is AssetClass.COMMODITY:
        return params.gold_impact
    if asset_class is AssetClass.CURRENCY:
        return params.cash_impact
    return params.equity_impact * 0.5


def is_hedge(position: Position) -> bool:
    name = position.name.lower()
    return position.asset_class is AssetClass.DERIVATIVE or any(m in name for m in HEDGE_NAME_MARKERS)


def hedge_effectiveness(positions: Sequence[Position]) -> float:
    """Fraction of portfolio value held in recognised hedge positions."""

    total = sum(p.market_value for p in positions)
    hedged = sum(abs(p.market_value) for p in positions if is_hedge(p))
    return safe_div(hedged, total) if total > 0.0 else 0.0


class StressTestEngine:
    """Run named historical shock scenarios against a snapshot.

    Args:
        scenarios: Scenario table. Defaults to the historical scenarios.
    """

    def __init__(self, scenarios: Optional[Iterable[StressScenarioParams]] = None) -> None:
        initial = HISTORICAL_SCENARIOS.values() if scenarios is None else scenarios
        self._scenarios: Dict[str, StressScenarioParams] = {s.scenario_id: s for s in initial}
        self._lock = Lock()

    def add_scenario(self, params: StressScenarioParams) -> None:
        """Register a custom scenario (replacing any with the same id)."""

        with self._lock:
            self._scenarios[params.scenario_id] = params
        logger.info("Registered stress scenario %s", params.scenario_id)

    def scenarios(self) -> List[StressScenarioParams]:
        with self._lock:
            return list(self._scenarios.values())

    def run_scenario(self, scenario_id: str, positions: Sequence[Position]) -> StressTestResult:
        with self._lock:
            params = self._scenarios.get(scenario_id)
        if params is None:
            raise ScenarioNotFoundError(scenario_id)
        return self._apply(params, positions)

    def run_stress_tests(self, positions: Sequence[Position]) -> List[StressTestResult]:
        """Run every scenario; results are ordered worst impact first."""

        results = [self._apply(params, positions) for params in self.scenarios()]
        results.sort(key=lambda r: r.portfolio_impact)
        logger.debug(
            "StressTestEngine: %d scenarios, worst=%s",
            len(results),
            results[0].scenario_id if results else None,
        )
        return results

    def _apply(self, params: StressScenarioParams, positions: Sequence[Position]) -> StressTestResult:
        total = sum(p.market_value for p in positions)
        total_impact = 0.0
        impacts: List[PositionImpact] = []

        for pos in positions:
            impact = asset_class_impact(params, pos.asset_class)
            impact *= pos.beta if pos.beta is not None else 1.0
            total_impact += pos.market_value * impact
            impacts.append(
                PositionImpact(
                    symbol=pos.symbol,
                    impact=impact,
                    value_after=pos.market_value * (1.0 + impact),
                )
            )

        impacts.sort(key=lambda i: i.impact)
        portfolio_impact = finite(safe_div(total_impact, total), label="portfolio_impact") if total > 0.0 else 0.0

        recommendations: List[str] = []
        if portfolio_impact < SEVERE_IMPACT:
            recommendations.append("Consider defensive hedging strategies")
            recommendations.append("Review stop-loss levels")
        if portfolio_impact < MATERIAL_IMPACT:
            recommendations.append("Increase cash allocation")
            recommendations.append("Add uncorrelated assets")

        return StressTestResult(
            scenario_id=params.scenario_id,
            description=params.description,
            portfolio_impact=portfolio_impact,
            portfolio_value_after=total * (1.0 + portfolio_impact),
            worst_positions=tuple(impacts[:WORST_POSITION_LIMIT]),
            recovery_days=params.recovery_days,
            hedge_effectiveness=hedge_effectiveness(positions),
            recommendations=tuple(recommendations),
        )
