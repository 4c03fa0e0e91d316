"""Meridian – Asset return/volatility parameters for simulation.

The simulator blends per-asset annual expected return and volatility
into portfolio-level drift and diffusion. Parameters are looked up by
symbol first, then by asset-class label; anything else falls back to
the documented default of 8% return and 20% volatility.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, Mapping, Optional, Tuple

from meridian.core.logging import get_logger
from meridian.core.numeric import finite
from meridian.positions.types import AssetClass

from .types import CompositionItem


logger = get_logger(__name__)


@dataclass(frozen=True)
class AssetParameters:
    """Annualised expected return and volatility, as fractions."""

    expected_return: float
    volatility: float


DEFAULT_PARAMETERS = AssetParameters(expected_return=0.08, volatility=0.20)

SYMBOL_PARAMETERS: Dict[str, AssetParameters] = {
    "SPY": AssetParameters(0.10, 0.18),
    "QQQ": AssetParameters(0.12, 0.22),
    "BTC": AssetParameters(0.30, 0.70),
    "ETH": AssetParameters(0.25, 0.80),
    "TLT": AssetParameters(0.03, 0.15),
    "GLD": AssetParameters(0.05, 0.15),
    "CASH": AssetParameters(0.05, 0.001),
}

ASSET_CLASS_PARAMETERS: Dict[str, AssetParameters] = {
    AssetClass.EQUITY.value: AssetParameters(0.10, 0.18),
    AssetClass.FIXED_INCOME.value: AssetParameters(0.04, 0.07),
    AssetClass.COMMODITY.value: AssetParameters(0.05, 0.15),
    AssetClass.CURRENCY.value: AssetParameters(0.03, 0.08),
    AssetClass.CRYPTO.value: AssetParameters(0.30, 0.70),
    AssetClass.REAL_ESTATE.value: AssetParameters(0.07, 0.16),
}


class ParameterTable:
    """Lookup of :class:`AssetParameters` by symbol or asset class.

    Args:
        symbols: Optional overrides/additions to the symbol table.
        asset_classes: Optional overrides/additions to the asset-class
            table (keys are :class:`AssetClass` values).
        default: Parameters used for unknown assets.
    """

    def __init__(
        self,
        symbols: Optional[Mapping[str, AssetParameters]] = None,
        asset_classes: Optional[Mapping[str, AssetParameters]] = None,
        default: AssetParameters = DEFAULT_PARAMETERS,
    ) -> None:
        self._symbols = dict(SYMBOL_PARAMETERS)
        self._symbols.update({k.upper(): v for k, v in (symbols or {}).items()})
        self._classes = dict(ASSET_CLASS_PARAMETERS)
        self._classes.update({k.lower(): v for k, v in (asset_classes or {}).items()})
        self._default = default

    def knows(self, asset: str) -> bool:
        return asset.upper() in self._symbols or asset.lower() in self._classes

    def lookup(self, asset: str) -> AssetParameters:
        params = self._symbols.get(asset.upper())
        if params is not None:
            return params
        params = self._classes.get(asset.lower())
        if params is not None:
            return params
        logger.warning(
            "No simulation parameters for asset=%s; using default return=%.2f vol=%.2f",
            asset,
            self._default.expected_return,
            self._default.volatility,
        )
        return self._default

    def blend(self, composition: Iterable[CompositionItem]) -> Tuple[float, float]:
        """Return weight-averaged (expected_return, volatility).

        Weights are normalised by their sum. An empty composition or one
        with zero total weight uses the default parameters.
        """

        items = list(composition)
        total_weight = sum(abs(item.weight) for item in items)
        if not items or total_weight == 0.0:
            logger.warning("Empty composition; using default simulation parameters")
            return self._default.expected_return, self._default.volatility

        mu = 0.0
        sigma = 0.0
        for item in items:
            params = self.lookup(item.asset)
            w = abs(item.weight) / total_weight
            mu += w * params.expected_return
            sigma += w * params.volatility

        return (
            finite(mu, self._default.expected_return, label="blended_return"),
            finite(sigma, self._default.volatility, label="blended_volatility"),
        )
