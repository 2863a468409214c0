"""Short/long squeeze potential per market.

A short squeeze setup is a short-dominated market that still pays positive
funding to longs. A long squeeze setup is a long-dominated market paying
very expensive funding (above 100% annualized).

CRITICAL: All computations use Decimal. Never use float.
"""

from decimal import Decimal

from perpdash.analytics.models import SqueezeEntry
from perpdash.analytics.oi import RISK_ZERO_FLOOR, dominance_ratio, dominant_side
from perpdash.models import MarketRate, Side, Snapshot

_ZERO = Decimal("0")
_HUNDRED = Decimal("100")

#: Long squeezes only score once funding exceeds this (annualized %).
LONG_SQUEEZE_MIN_RATE = Decimal("100")


def short_squeeze_score(side: Side, imbalance: Decimal, funding_rate: Decimal) -> Decimal:
    """imbalance * 100 + |rate| / 10 for short-dominant markets with rate > 0."""
    if side == Side.SHORT and funding_rate > 0:
        return imbalance * 100 + abs(funding_rate) / 10
    return _ZERO


def long_squeeze_score(side: Side, imbalance: Decimal, funding_rate: Decimal) -> Decimal:
    """imbalance * 50 + rate / 20 for long-dominant markets with rate > 100."""
    if side == Side.LONG and funding_rate > LONG_SQUEEZE_MIN_RATE:
        return imbalance * 50 + funding_rate / 20
    return _ZERO


def squeeze_label(score: Decimal) -> str:
    """Qualitative bucket for a squeeze score."""
    if score > 80:
        return "Extreme"
    if score > 60:
        return "High"
    if score > 40:
        return "Moderate"
    if score > 20:
        return "Low"
    return "Minimal"


def _squeeze_entry(market: str, rate: MarketRate) -> SqueezeEntry | None:
    long_oi = rate.long_oi_units
    short_oi = rate.short_oi_units
    total_oi = long_oi + short_oi
    if total_oi == 0:
        return None

    side = dominant_side(long_oi, short_oi)
    imbalance = abs(long_oi - short_oi) / total_oi
    short_score = short_squeeze_score(side, imbalance, rate.funding_rate)
    long_score = long_squeeze_score(side, imbalance, rate.funding_rate)
    max_score = max(short_score, long_score)

    return SqueezeEntry(
        market=market,
        long_oi=long_oi,
        short_oi=short_oi,
        oi_ratio=dominance_ratio(long_oi, short_oi, RISK_ZERO_FLOOR),
        dominant_side=side,
        imbalance=imbalance * _HUNDRED,
        funding_rate=rate.funding_rate,
        short_squeeze_score=short_score,
        long_squeeze_score=long_score,
        max_score=max_score,
        squeeze_type=Side.SHORT if short_score > long_score else Side.LONG,
        label=squeeze_label(max_score),
    )


def analyze_squeeze_potential(snapshot: Snapshot, limit: int = 10) -> list[SqueezeEntry]:
    """Rank markets by squeeze potential.

    Only markets with open interest and a positive score are returned.
    At most one of the two scores is non-zero for a market, so the
    reported type always matches the score that produced max_score.

    Args:
        snapshot: The snapshot to analyze.
        limit: Maximum number of entries returned.

    Returns:
        Entries sorted by max_score descending, truncated to ``limit``.
    """
    entries: list[SqueezeEntry] = []
    for market, rate in snapshot.markets.items():
        entry = _squeeze_entry(market, rate)
        if entry is not None and entry.max_score > 0:
            entries.append(entry)

    entries.sort(key=lambda e: e.max_score, reverse=True)
    return entries[:limit]
