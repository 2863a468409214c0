"""Shared data models for funding rate snapshots.

CRITICAL: Funding rates, open interest and every derived score use Decimal.
Never use float. Raw open interest is kept exactly as the contract reports
it: an integer string with 6 implied decimals.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any

#: Fixed-point scale of on-chain open interest values (6 implied decimals).
OI_SCALE = Decimal("1000000")


def oi_to_units(raw: str) -> Decimal:
    """Convert a fixed-point OI string into units (raw / 1e6)."""
    return Decimal(raw) / OI_SCALE


def now_ms() -> int:
    """Current wall-clock time in Unix milliseconds."""
    return int(time.time() * 1000)


class Cadence(str, Enum):
    """Subsampling granularity applied to a historical series for display."""

    RAW = "15m"
    HOURLY = "1h"
    FOUR_HOURLY = "4h"


class Side(str, Enum):
    """Open interest side."""

    LONG = "long"
    SHORT = "short"


@dataclass(frozen=True)
class MarketRate:
    """One market's funding rate and open interest at one instant.

    funding_rate is annualized in percent units: Decimal("12.5") means
    +12.5%/yr, positive meaning longs pay shorts.
    """

    funding_rate: Decimal
    long_oi: str  # fixed point, 6 implied decimals
    short_oi: str  # fixed point, 6 implied decimals
    timestamp: int  # Unix milliseconds
    price: str | None = None

    @property
    def long_oi_units(self) -> Decimal:
        return oi_to_units(self.long_oi)

    @property
    def short_oi_units(self) -> Decimal:
        return oi_to_units(self.short_oi)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the stored document shape (camelCase keys)."""
        data: dict[str, Any] = {
            "fundingRate": str(self.funding_rate),
            "longOI": self.long_oi,
            "shortOI": self.short_oi,
            "timestamp": self.timestamp,
        }
        if self.price is not None:
            data["price"] = self.price
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any], default_timestamp: int = 0) -> MarketRate:
        """Build from a stored document entry.

        fundingRate may be a JSON number or a string; it is routed through
        str() so floats do not leak binary noise into the Decimal.
        """
        price = data.get("price")
        return cls(
            funding_rate=Decimal(str(data.get("fundingRate", 0))),
            long_oi=str(data.get("longOI", "0")),
            short_oi=str(data.get("shortOI", "0")),
            timestamp=int(data.get("timestamp", default_timestamp)),
            price=str(price) if price is not None else None,
        )


@dataclass(frozen=True)
class Snapshot:
    """One poll result: every tracked market at the same poll time."""

    timestamp: int  # Unix milliseconds
    markets: dict[str, MarketRate] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.markets)

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "data": {key: rate.to_dict() for key, rate in self.markets.items()},
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Snapshot:
        timestamp = int(data["timestamp"])
        return cls(
            timestamp=timestamp,
            markets={
                key: MarketRate.from_dict(entry, default_timestamp=timestamp)
                for key, entry in (data.get("data") or {}).items()
            },
        )


@dataclass(frozen=True)
class MarketInfo:
    """A market listed by the markets contract."""

    denom: str
    display: str


#: Chronologically ordered snapshots (ascending timestamp, gaps allowed).
HistoricalSeries = list[Snapshot]
