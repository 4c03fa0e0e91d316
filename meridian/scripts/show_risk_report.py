"""Meridian – Risk report inspection CLI.

This script loads a JSON positions file into a :class:`PositionStore`,
generates one :class:`RiskReport` and prints summary tables (or the full
report as JSON) for quick inspection.

The positions file holds either a list of position objects or an object
with a ``positions`` list. Field names follow :class:`PositionRecord`
(snake_case or camelCase).

Examples
--------

    # Print summary tables
    python -m meridian.scripts.show_risk_report --positions positions.json

    # Dump the full report as JSON under a risk-off rotation backdrop
    python -m meridian.scripts.show_risk_report \
        --positions positions.json \
        --rotation-regime risk_off \
        --json
"""

from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Any, List, Optional, Sequence

import pandas as pd

from meridian.core.config import load_config
from meridian.core.logging import get_logger, setup_logging
from meridian.positions.store import PositionStore
from meridian.positions.types import Position, PositionRecord
from meridian.risk.report import RiskReportAggregator
from meridian.risk.types import RiskReport, RotationRegime


logger = get_logger(__name__)


def _load_positions(path: Path) -> List[Position]:
    payload: Any = json.loads(path.read_text(encoding="utf-8"))
    if isinstance(payload, dict):
        payload = payload.get("positions", [])
    if not isinstance(payload, list):
        raise ValueError(f"{path}: expected a list of positions")
    return [PositionRecord.from_mapping(item).to_position() for item in payload]


def _parse_args(argv: Optional[Sequence[str]]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Generate and print a risk report for a positions file.",
    )

    parser.add_argument(
        "--positions",
        type=Path,
        required=True,
        help="Path to a JSON file with the positions to analyse",
    )
    parser.add_argument(
        "--env-file",
        type=Path,
        default=None,
        help="Optional .env file with configuration overrides",
    )
    parser.add_argument(
        "--rotation-regime",
        type=str,
        choices=[r.value for r in RotationRegime],
        default=RotationRegime.NORMAL.value,
        help="Macro backdrop for sector rotation suggestions (default: normal)",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the full report as JSON instead of summary tables",
    )

    args = parser.parse_args(argv)

    if not args.positions.exists():
        parser.error(f"--positions file not found: {args.positions}")

    return args


def _print_tables(report: RiskReport) -> None:
    summary = report.summary
    print(f"Report {report.id} at {report.timestamp.isoformat()}")
    print(
        f"Total value {summary.total_value:,.2f}  P&L {summary.total_pnl:,.2f} "
        f"({summary.total_pnl_pct:.2%})  positions={summary.position_count}"
    )
    print(f"Risk score {report.risk_score:.1f} ({report.overall_risk_level.value})")
    for alert in report.alerts:
        print(f"  ! {alert}")

    print("\nBreakdown")
    print(summary.to_frame().to_string(index=False))

    print("\nFactor exposures")
    factors = pd.DataFrame(
        [
            {
                "factor": e.factor.value,
                "exposure": e.exposure,
                "benchmark": e.benchmark,
                "zscore": e.zscore,
                "percentile": e.percentile,
            }
            for e in report.factor_exposures
        ]
    )
    print(factors.to_string(index=False))

    if report.concentration_risks:
        print("\nConcentration risks")
        concentration = pd.DataFrame(
            [
                {
                    "type": r.type.value,
                    "name": r.name,
                    "weight": r.current_weight,
                    "limit": r.max_recommended,
                    "level": r.risk_level.value,
                }
                for r in report.concentration_risks
            ]
        )
        print(concentration.to_string(index=False))

    print("\nStress tests")
    stress = pd.DataFrame(
        [
            {
                "scenario": t.scenario_id,
                "impact": t.portfolio_impact,
                "value_after": t.portfolio_value_after,
                "recovery_days": t.recovery_days,
            }
            for t in report.stress_tests
        ]
    )
    print(stress.to_string(index=False))

    tail = report.tail_risk
    print(
        f"\nTail risk: VaR95 {tail.var95:.2%}  CVaR95 {tail.cvar95:.2%}  "
        f"level={tail.left_tail_risk.value}"
    )
    print(f"Diversification score {report.correlation.diversification_score:.1f}")
    print(f"Black swan vulnerability {report.black_swan.vulnerability_score:.1f}")

    sim = report.simulation
    if sim.path_count:
        print(
            f"Monte Carlo ({sim.path_count} paths, {sim.horizon_days}d): "
            f"expected {sim.expected_return:.2%}  VaR {sim.var_at_confidence:.2%}  "
            f"P(loss) {sim.probability_of_loss:.1%}"
        )


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = _parse_args(argv)

    config = load_config(args.env_file)
    setup_logging(config)

    store = PositionStore(config.risk_history_retention)
    store.upsert_many(_load_positions(args.positions))
    logger.info("Loaded %d positions from %s", len(store), args.positions)

    aggregator = RiskReportAggregator(store, config=config)
    aggregator.set_current_regime(args.rotation_regime)
    report = aggregator.generate_report()

    if args.json:
        print(json.dumps(report.to_dict(), indent=2, sort_keys=True))
    else:
        _print_tables(report)


if __name__ == "__main__":  # pragma: no cover - manual CLI entry
    main()
