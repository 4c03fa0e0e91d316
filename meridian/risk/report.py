"""Meridian – Risk report aggregation.

This module composes every risk engine into a single
:class:`RiskReport` for the current position snapshot and keeps a
bounded history of generated reports.

Key responsibilities:
- Take exactly one snapshot of the :class:`PositionStore` per cycle and
  run every analysis against it.
- Score the snapshot on a 0-100 scale and raise human readable alerts.
- Notify subscribed observers of each completed report.
- Hold the rotation backdrop set by callers (``set_current_regime``).

External dependencies:
- numpy / scipy: Indirectly through the engines.
- asyncio: ``generate_report_async`` runs the cycle in a worker thread.

Thread safety: Report generation may run concurrently from several
threads. The history and observer list are guarded by a lock; engines
are only read from.

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
from datetime import datetime, timezone
from threading import Lock
from typing import Callable, List, Optional, Sequence, Tuple

from meridian.core.config import MeridianConfig, get_config
from meridian.core.history import RollingHistory
from meridian.core.ids import generate_run_id
from meridian.core.logging import get_logger
from meridian.core.numeric import clamp, finite, safe_div
from meridian.core.types import RiskLevel
from meridian.monitoring.metrics import record_metric
from meridian.portfolio.aggregator import PortfolioAggregator
from meridian.portfolio.types import PortfolioSummary
from meridian.positions.store import PositionStore
from meridian.positions.types import Position
from meridian.regime.predictor import RegimeTransitionPredictor
from meridian.simulation.engine import MonteCarloSimulator
from meridian.simulation.types import CompositionItem, ScenarioResult

from .black_swan import BlackSwanAnalyzer
from .concentration import ConcentrationDetector
from .correlation import CorrelationEngine
from .factors import FactorModel
from .hedging import HedgeAdvisor, RotationAdvisor
from .stress import StressTestEngine
from .tail import TailRiskAnalyzer
from .types import (
    ConcentrationRisk,
    CorrelationMatrix,
    RiskReport,
    RotationRegime,
    StressTestResult,
    TailRiskAnalysis,
)


logger = get_logger(__name__)

ReportListener = Callable[[RiskReport], None]

# ============================================================================
# Scoring
# ============================================================================

BASE_RISK_SCORE = 50.0
CONCENTRATION_PENALTY = 10.0
SEVERE_STRESS_IMPACT = -0.30
STRESS_PENALTY = 5.0
EXTREME_TAIL_PENALTY = 20.0
HIGH_TAIL_PENALTY = 10.0
LOW_DIVERSIFICATION_SCORE = 40.0
LOW_DIVERSIFICATION_PENALTY = 15.0


def overall_risk_level(score: float) -> RiskLevel:
    """Bucket a 0-100 risk score into a :class:`RiskLevel`."""

    if score >= 80:
        return RiskLevel.EXTREME
    if score >= 65:
        return RiskLevel.HIGH
    if score >= 50:
        return RiskLevel.ELEVATED
    if score >= 30:
        return RiskLevel.MODERATE
    return RiskLevel.LOW


def score_risks(
    concentration_risks: Sequence[ConcentrationRisk],
    stress_tests: Sequence[StressTestResult],
    tail_risk: TailRiskAnalysis,
    correlation: CorrelationMatrix,
) -> Tuple[float, List[str]]:
    """Compute the overall risk score and the alerts that raised it.

    The score starts at 50 and is clamped to [0, 100] after penalties
    for critical concentrations, severe stress scenarios, left-tail risk
    and low diversification.
    """

    score = BASE_RISK_SCORE
    alerts: List[str] = []

    critical = [r for r in concentration_risks if r.risk_level in (RiskLevel.EXTREME, RiskLevel.HIGH)]
    if critical:
        score += CONCENTRATION_PENALTY * len(critical)
        alerts.append(f"{len(critical)} critical concentration risks detected")

    severe = [t for t in stress_tests if t.portfolio_impact < SEVERE_STRESS_IMPACT]
    if severe:
        score += STRESS_PENALTY * len(severe)
        alerts.append(f"Portfolio vulnerable to {len(severe)} severe stress scenarios")

    if tail_risk.left_tail_risk is RiskLevel.EXTREME:
        score += EXTREME_TAIL_PENALTY
        alerts.append("Extreme left tail risk detected")
    elif tail_risk.left_tail_risk is RiskLevel.HIGH:
        score += HIGH_TAIL_PENALTY
        alerts.append("High left tail risk detected")

    if correlation.diversification_score < LOW_DIVERSIFICATION_SCORE:
        score += LOW_DIVERSIFICATION_PENALTY
        alerts.append("Low diversification - consider spreading risk")

    return clamp(finite(score, BASE_RISK_SCORE, label="risk_score"), 0.0, 100.0), alerts


# ============================================================================
# Aggregator
# ============================================================================


class RiskReportAggregator:
    """Build composite risk reports from a :class:`PositionStore`.

    Every collaborator may be injected; missing ones are constructed from
    ``config`` (defaults to :func:`get_config`). The regime predictor is
    optional and the report's ``regime`` is ``None`` without one.

    Args:
        store: Source of position snapshots.
        config: Configuration used for default collaborators.
        predictor: Optional regime transition predictor.
    """

    def __init__(
        self,
        store: PositionStore,
        *,
        config: Optional[MeridianConfig] = None,
        aggregator: Optional[PortfolioAggregator] = None,
        factor_model: Optional[FactorModel] = None,
        concentration: Optional[ConcentrationDetector] = None,
        correlation: Optional[CorrelationEngine] = None,
        stress: Optional[StressTestEngine] = None,
        tail: Optional[TailRiskAnalyzer] = None,
        hedges: Optional[HedgeAdvisor] = None,
        rotations: Optional[RotationAdvisor] = None,
        simulator: Optional[MonteCarloSimulator] = None,
        predictor: Optional[RegimeTransitionPredictor] = None,
        black_swan: Optional[BlackSwanAnalyzer] = None,
    ) -> None:
        cfg = config or get_config()
        self._store = store
        self._config = cfg
        self._aggregator = aggregator or PortfolioAggregator()
        self._factor_model = factor_model or FactorModel(cfg.risk_history_retention)
        self._concentration = concentration or ConcentrationDetector(cfg.concentration_limits)
        self._correlation = correlation or CorrelationEngine(cfg.risk_high_correlation_threshold)
        self._stress = stress or StressTestEngine()
        self._tail = tail or TailRiskAnalyzer()
        self._hedges = hedges or HedgeAdvisor()
        self._rotations = rotations or RotationAdvisor()
        self._simulator = simulator or MonteCarloSimulator(cfg.simulation)
        self._predictor = predictor
        self._black_swan = black_swan or BlackSwanAnalyzer()

        self._history: RollingHistory[RiskReport] = RollingHistory(cfg.risk_report_history_size)
        self._listeners: List[ReportListener] = []
        self._current_regime = RotationRegime.NORMAL
        self._lock = Lock()

    # ------------------------------------------------------------------
    # Rotation backdrop
    # ------------------------------------------------------------------

    @property
    def current_regime(self) -> RotationRegime:
        return self._current_regime

    def set_current_regime(self, regime: RotationRegime | str) -> None:
        """Set the macro backdrop used for rotation suggestions."""

        self._current_regime = RotationRegime(regime)
        logger.info("RiskReportAggregator: rotation regime set to %s", self._current_regime.value)

    # ------------------------------------------------------------------
    # Report generation
    # ------------------------------------------------------------------

    def generate_report(self) -> RiskReport:
        """Run every analysis against one snapshot and record the report."""

        positions = self._store.snapshot()
        summary = self._aggregator.summarize(positions)

        exposures = tuple(self._factor_model.calculate_exposures(positions, summary.total_value))
        concentration_risks = tuple(self._concentration.detect(positions, summary))
        correlation = self._correlation.analyze(positions, summary.total_value)
        stress_tests = tuple(self._stress.run_stress_tests(positions))
        tail_risk = self._tail.analyze(positions, summary.total_value)
        hedges = tuple(self._hedges.recommend(summary, self._factor_model.exposure_map(exposures)))
        rotations = tuple(self._rotations.recommend(summary, self._current_regime))
        simulation = self._simulate(positions, summary)
        regime = self._predictor.predict() if self._predictor is not None else None
        black_swan = self._black_swan.analyze(positions, summary)

        risk_score, alerts = score_risks(concentration_risks, stress_tests, tail_risk, correlation)

        report = RiskReport(
            id=generate_run_id("risk_report"),
            timestamp=datetime.now(timezone.utc),
            summary=summary,
            factor_exposures=exposures,
            concentration_risks=concentration_risks,
            correlation=correlation,
            stress_tests=stress_tests,
            tail_risk=tail_risk,
            hedge_recommendations=hedges,
            rotation_recommendations=rotations,
            simulation=simulation,
            regime=regime,
            black_swan=black_swan,
            risk_score=risk_score,
            overall_risk_level=overall_risk_level(risk_score),
            alerts=tuple(alerts),
        )

        with self._lock:
            self._history.append(report)
            listeners = list(self._listeners)

        record_metric("risk.report.score", risk_score)
        record_metric("risk.report.alerts", len(alerts))
        logger.info(
            "Risk report generated: id=%s positions=%d score=%.1f level=%s alerts=%d",
            report.id,
            summary.position_count,
            risk_score,
            report.overall_risk_level.value,
            len(alerts),
        )

        for listener in listeners:
            try:
                listener(report)
            except Exception:
                logger.exception("RiskReportAggregator listener failed for report %s", report.id)

        return report

    async def generate_report_async(self) -> RiskReport:
        return await asyncio.to_thread(self.generate_report)

    def _simulate(self, positions: Sequence[Position], summary: PortfolioSummary) -> ScenarioResult:
        sim_config = self._config.simulation
        return self._simulator.simulate(
            summary.total_value,
            self._composition(positions, summary.total_value),
            horizon_days=sim_config.report_horizon_days,
            path_count=sim_config.report_path_count,
        )

    def _composition(self, positions: Sequence[Position], total_value: float) -> List[CompositionItem]:
        parameters = self._simulator.parameters
        return [
            CompositionItem(
                asset=p.symbol if parameters.knows(p.symbol) else p.asset_class.value,
                weight=safe_div(p.market_value, total_value),
                value=p.market_value,
            )
            for p in positions
        ]

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    def latest(self) -> Optional[RiskReport]:
        with self._lock:
            return self._history.latest()

    def history(self) -> List[RiskReport]:
        """Return retained reports, oldest first."""

        with self._lock:
            return self._history.snapshot()

    def risk_score_trend(self, n: int = 10) -> List[float]:
        """Risk scores of the last ``n`` reports, oldest first."""

        if n <= 0:
            raise ValueError("n must be positive")
        return [r.risk_score for r in self.history()[-n:]]

    # ------------------------------------------------------------------
    # Observers
    # ------------------------------------------------------------------

    def subscribe(self, listener: ReportListener) -> None:
        with self._lock:
            self._listeners.append(listener)

    def unsubscribe(self, listener: ReportListener) -> None:
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)
