"""Meridian – Position types.

This module defines the canonical in-memory representation of a single
holding and the validated input record used to build one from
caller-supplied data (JSON over a queue, a broker sync, a test fixture).

Positions are immutable value objects. An update is expressed as a new
``Position`` that replaces the old one wholesale in the
:class:`~meridian.positions.store.PositionStore`, so readers never see a
partially updated holding.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Mapping, Optional

from pydantic import BaseModel, Field, field_validator


class AssetClass(str, Enum):
    """Asset classes recognised by the risk engines."""

    EQUITY = "equity"
    FIXED_INCOME = "fixed_income"
    COMMODITY = "commodity"
    CURRENCY = "currency"
    CRYPTO = "crypto"
    REAL_ESTATE = "real_estate"
    ALTERNATIVE = "alternative"
    DERIVATIVE = "derivative"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Position:
    """A single holding at one broker.

    Attributes:
        id: Caller-assigned unique identifier (typically broker + account
            + symbol).
        symbol: Instrument symbol (e.g. "AAPL", "BTC").
        asset_class: Asset class of the instrument.
        broker: Broker or custodian holding the position.
        quantity: Signed quantity; negative values are short positions.
        avg_cost: Average cost per unit in ``currency``.
        current_price: Latest price per unit in ``currency``.
        currency: ISO currency code of the prices.
        name: Descriptive instrument name; used to recognise hedges such
            as inverse or short ETFs. Defaults to ``symbol``.
        sector: Optional sector classification.
        industry: Optional industry classification.
        country: Optional country of risk.
        beta: Optional market beta.
        dividend_yield: Optional dividend yield as a fraction.
        last_updated: Timestamp of the last price/quantity update.
    """

    id: str
    symbol: str
    asset_class: AssetClass
    broker: str
    quantity: float
    avg_cost: float
    current_price: float
    currency: str = "USD"
    name: str = ""
    sector: Optional[str] = None
    industry: Optional[str] = None
    country: Optional[str] = None
    beta: Optional[float] = None
    dividend_yield: Optional[float] = None
    last_updated: datetime = field(default_factory=_utcnow)

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("position id must not be empty")
        for label in ("quantity", "avg_cost", "current_price"):
            value = getattr(self, label)
            if not math.isfinite(value):
                raise ValueError(f"{label} must be finite, got {value!r}")
        for label in ("beta", "dividend_yield"):
            value = getattr(self, label)
            if value is not None and not math.isfinite(value):
                raise ValueError(f"{label} must be finite, got {value!r}")
        if self.current_price < 0.0 or self.avg_cost < 0.0:
            raise ValueError("prices must be non-negative")
        if not self.name:
            object.__setattr__(self, "name", self.symbol)
        if not isinstance(self.asset_class, AssetClass):
            object.__setattr__(self, "asset_class", AssetClass(self.asset_class))

    # ------------------------------------------------------------------
    # Derived quantities
    # ------------------------------------------------------------------

    @property
    def market_value(self) -> float:
        return self.quantity * self.current_price

    @property
    def cost_basis(self) -> float:
        return self.quantity * self.avg_cost

    @property
    def unrealized_pnl(self) -> float:
        return self.market_value - self.cost_basis

    @property
    def unrealized_pnl_pct(self) -> float:
        """Unrealized P&L as a fraction of cost basis (0.0 if no cost)."""

        basis = abs(self.cost_basis)
        if basis == 0.0:
            return 0.0
        return self.unrealized_pnl / basis

    # ------------------------------------------------------------------
    # Copy-on-write updates
    # ------------------------------------------------------------------

    def with_price(self, price: float, as_of: datetime | None = None) -> "Position":
        """Return a copy marked at ``price``."""

        return replace(self, current_price=float(price), last_updated=as_of or _utcnow())

    def with_quantity(
        self,
        quantity: float,
        avg_cost: float | None = None,
        as_of: datetime | None = None,
    ) -> "Position":
        """Return a copy with a new quantity (and optionally average cost)."""

        return replace(
            self,
            quantity=float(quantity),
            avg_cost=self.avg_cost if avg_cost is None else float(avg_cost),
            last_updated=as_of or _utcnow(),
        )


class PositionRecord(BaseModel):
    """Validated input record for a position update.

    Field names follow the snake_case wire format; ``from_mapping``
    additionally accepts the camelCase keys used by some upstream feeds
    (``assetClass``, ``avgCost``, ``currentPrice``, ``dividendYield``,
    ``lastUpdated``).
    """

    id: str
    symbol: str
    asset_class: AssetClass
    broker: str
    quantity: float
    avg_cost: float = Field(ge=0.0)
    current_price: float = Field(ge=0.0)
    currency: str = "USD"
    name: str = ""
    sector: Optional[str] = None
    industry: Optional[str] = None
    country: Optional[str] = None
    beta: Optional[float] = None
    dividend_yield: Optional[float] = None
    last_updated: Optional[datetime] = None

    @field_validator("quantity", "avg_cost", "current_price")
    @classmethod
    def _must_be_finite(cls, value: float) -> float:
        if not math.isfinite(value):
            raise ValueError("must be finite")
        return value

    @field_validator("beta", "dividend_yield")
    @classmethod
    def _optional_must_be_finite(cls, value: Optional[float]) -> Optional[float]:
        if value is not None and not math.isfinite(value):
            raise ValueError("must be finite")
        return value

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "PositionRecord":
        normalised = {_CAMEL_ALIASES.get(k, k): v for k, v in data.items()}
        return cls.model_validate(normalised)

    def to_position(self) -> Position:
        return Position(
            id=self.id,
            symbol=self.symbol,
            asset_class=self.asset_class,
            broker=self.broker,
            quantity=self.quantity,
            avg_cost=self.avg_cost,
            current_price=self.current_price,
            currency=self.currency,
            name=self.name,
            sector=self.sector,
            industry=self.industry,
            country=self.country,
            beta=self.beta,
            dividend_yield=self.dividend_yield,
            last_updated=self.last_updated or _utcnow(),
        )


_CAMEL_ALIASES = {
    "assetClass": "asset_class",
    "avgCost": "avg_cost",
    "currentPrice": "current_price",
    "dividendYield": "dividend_yield",
    "lastUpdated": "last_updated",
}
