"""Top funding rates table: markets ranked by absolute funding rate."""

from decimal import Decimal

from perpdash.analytics.models import TopRateEntry
from perpdash.models import Snapshot

_MILLION = Decimal("1000000")
_THOUSAND = Decimal("1000")


def top_funding_rates(snapshot: Snapshot, limit: int = 10) -> list[TopRateEntry]:
    """Return the ``limit`` markets with the largest |funding_rate|.

    Markets without open interest are left out. Ties are broken by market
    name so the table is stable between polls.
    """
    entries = [
        TopRateEntry(
            market=market,
            funding_rate=rate.funding_rate,
            long_oi=rate.long_oi_units,
            short_oi=rate.short_oi_units,
            total_oi=rate.long_oi_units + rate.short_oi_units,
            long_oi_display=format_usd(rate.long_oi_units),
            short_oi_display=format_usd(rate.short_oi_units),
        )
        for market, rate in snapshot.markets.items()
        if rate.long_oi_units + rate.short_oi_units > 0
    ]
    entries.sort(key=lambda e: (-abs(e.funding_rate), e.market))
    return entries[:limit]


def format_usd(value: Decimal) -> str:
    """Compact dollar formatting: $1.23M, $4.56K, $7.89."""
    if value >= _MILLION:
        return f"${value / _MILLION:.2f}M"
    if value >= _THOUSAND:
        return f"${value / _THOUSAND:.2f}K"
    return f"${value:.2f}"
