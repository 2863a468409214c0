"""Shared test fixtures for the funding rate risk dashboard."""

from collections.abc import Callable
from decimal import Decimal

import pytest

from perpdash.config import (
    AnalysisSettings,
    AppSettings,
    ChainSettings,
    PollerSettings,
    StoreSettings,
)
from perpdash.models import OI_SCALE, MarketRate, Snapshot

#: 2024-01-01T00:00:00Z in Unix milliseconds.
BASE_TS = 1_704_067_200_000
HOUR_MS = 60 * 60 * 1000


def _raw_oi(units: Decimal | int | str) -> str:
    return str(int(Decimal(str(units)) * OI_SCALE))


@pytest.fixture
def mock_settings() -> AppSettings:
    """Return AppSettings with test defaults (in-memory store, dummy API key)."""
    return AppSettings(
        log_level="DEBUG",
        chain=ChainSettings(rest_url="https://lcd.test"),
        poller=PollerSettings(enabled=False),
        store=StoreSettings(db_path=":memory:"),
        analysis=AnalysisSettings(
            api_key="test-mistral-key",  # type: ignore[arg-type]
            base_url="https://mistral.test/v1",
        ),
    )


@pytest.fixture
def make_rate() -> Callable[..., MarketRate]:
    """Factory for MarketRate with OI given in units (not fixed point)."""

    def _make(
        funding_rate: Decimal | str | int,
        long_units: Decimal | str | int = 0,
        short_units: Decimal | str | int = 0,
        timestamp: int = BASE_TS,
    ) -> MarketRate:
        return MarketRate(
            funding_rate=Decimal(str(funding_rate)),
            long_oi=_raw_oi(long_units),
            short_oi=_raw_oi(short_units),
            timestamp=timestamp,
        )

    return _make


@pytest.fixture
def make_snapshot(make_rate: Callable[..., MarketRate]) -> Callable[..., Snapshot]:
    """Factory for Snapshot from {market: (rate, long_units, short_units)}."""

    def _make(markets: dict[str, tuple], timestamp: int = BASE_TS) -> Snapshot:
        return Snapshot(
            timestamp=timestamp,
            markets={
                market: make_rate(*values, timestamp=timestamp)
                for market, values in markets.items()
            },
        )

    return _make


@pytest.fixture
def sample_snapshot(make_snapshot: Callable[..., Snapshot]) -> Snapshot:
    """Three-market snapshot covering long, short and balanced positioning."""
    return make_snapshot(
        {
            "perps/ubtc": ("12.5", 800, 200),
            "perps/ueth": ("-30", 100, 400),
            "perps/uatom": ("0", 50, 50),
        }
    )
