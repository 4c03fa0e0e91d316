"""Shared fixtures for the Meridian unit tests."""

from __future__ import annotations

from typing import Callable, Optional

import pytest

from meridian.core.config import ConcentrationLimits, MeridianConfig, SimulationConfig
from meridian.monitoring.metrics import reset_metrics
from meridian.positions.store import PositionStore
from meridian.positions.types import AssetClass, Position


PositionFactory = Callable[..., Position]


@pytest.fixture
def make_position() -> PositionFactory:
    """Build positions with sensible defaults; ``value`` sets quantity 1."""

    counter = {"n": 0}

    def _make(
        symbol: str = "AAPL",
        asset_class: AssetClass | str = AssetClass.EQUITY,
        value: float = 10_000.0,
        cost: Optional[float] = None,
        *,
        broker: str = "ibkr",
        sector: Optional[str] = "Technology",
        country: Optional[str] = "US",
        currency: str = "USD",
        beta: Optional[float] = None,
        dividend_yield: Optional[float] = None,
        name: str = "",
        position_id: Optional[str] = None,
    ) -> Position:
        counter["n"] += 1
        return Position(
            id=position_id or f"{broker}-{symbol}-{counter['n']}",
            symbol=symbol,
            asset_class=asset_class,
            broker=broker,
            quantity=1.0,
            avg_cost=value if cost is None else cost,
            current_price=value,
            currency=currency,
            name=name,
            sector=sector,
            country=country,
            beta=beta,
            dividend_yield=dividend_yield,
        )

    return _make


@pytest.fixture
def simulation_config() -> SimulationConfig:
    return SimulationConfig(
        path_count=400,
        horizon_days=30,
        confidence_level=0.95,
        seed=1234,
        max_workers=2,
        batch_size=100,
        stress_path_count=200,
        report_path_count=100,
        report_horizon_days=10,
    )


@pytest.fixture
def meridian_config(simulation_config: SimulationConfig) -> MeridianConfig:
    """A configuration with small, seeded Monte Carlo settings."""

    return MeridianConfig().model_copy(
        update={
            "mc_path_count": simulation_config.path_count,
            "mc_horizon_days": simulation_config.horizon_days,
            "mc_seed": simulation_config.seed,
            "mc_max_workers": simulation_config.max_workers,
            "mc_batch_size": simulation_config.batch_size,
            "mc_stress_path_count": simulation_config.stress_path_count,
            "report_simulation_paths": simulation_config.report_path_count,
            "report_simulation_horizon_days": simulation_config.report_horizon_days,
        }
    )


@pytest.fixture
def limits() -> ConcentrationLimits:
    return ConcentrationLimits()


@pytest.fixture
def store() -> PositionStore:
    return PositionStore(history_retention=10)


@pytest.fixture(autouse=True)
def _clean_metrics() -> None:
    reset_metrics()
