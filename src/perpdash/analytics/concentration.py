"""OI concentration risk per market.

Scores how one-sided each market's open interest is, raising the score
when funding runs against the crowded side.

CRITICAL: All computations use Decimal. Never use float.
"""

from decimal import Decimal

from perpdash.analytics.models import ConcentrationEntry, ConcentrationSummary
from perpdash.analytics.oi import CONCENTRATION_ZERO_FLOOR, dominance_ratio
from perpdash.analytics.risk_dashboard import risk_label
from perpdash.models import MarketRate, Side, Snapshot

_HUNDRED = Decimal("100")
_MISALIGNED_MULTIPLIER = Decimal("1.5")

#: Display cap for the dominance ratio; anything above renders as infinity.
RATIO_DISPLAY_CAP = Decimal("1000")

#: (concentration lower bound, exclusive) -> base risk score, checked in order.
_RISK_TIERS: tuple[tuple[Decimal, Decimal], ...] = (
    (Decimal("90"), Decimal("100")),
    (Decimal("80"), Decimal("80")),
    (Decimal("70"), Decimal("60")),
    (Decimal("60"), Decimal("40")),
)
_BASE_RISK = Decimal("20")


def base_risk_score(concentration: Decimal) -> Decimal:
    """Tiered risk score for a dominant-side share (in percent)."""
    for bound, score in _RISK_TIERS:
        if concentration > bound:
            return score
    return _BASE_RISK


def is_funding_aligned(side: Side, funding_rate: Decimal) -> bool:
    """True when the dominant side is the one paying funding."""
    if side == Side.LONG:
        return funding_rate > 0
    return funding_rate < 0


def format_ratio(ratio: Decimal) -> str:
    """Render a dominance ratio for display, e.g. "4.00x" or "∞"."""
    if ratio > RATIO_DISPLAY_CAP:
        return "∞"
    return f"{ratio:.2f}x"


def _concentration_entry(market: str, rate: MarketRate) -> ConcentrationEntry | None:
    long_oi = rate.long_oi_units
    short_oi = rate.short_oi_units
    total_oi = long_oi + short_oi
    if total_oi == 0:
        return None

    long_percent = long_oi / total_oi * _HUNDRED
    short_percent = _HUNDRED - long_percent
    side = Side.LONG if long_percent > short_percent else Side.SHORT
    aligned = is_funding_aligned(side, rate.funding_rate)

    risk_score = base_risk_score(max(long_percent, short_percent))
    if not aligned:
        risk_score *= _MISALIGNED_MULTIPLIER
    risk_score = min(_HUNDRED, risk_score)
    ratio = dominance_ratio(long_oi, short_oi, CONCENTRATION_ZERO_FLOOR)

    return ConcentrationEntry(
        market=market,
        long_oi=long_oi,
        short_oi=short_oi,
        total_oi=total_oi,
        long_percent=long_percent,
        short_percent=short_percent,
        concentration=max(long_percent, short_percent),
        dominant_side=side,
        ratio=ratio,
        funding_rate=rate.funding_rate,
        funding_aligned=aligned,
        risk_score=risk_score,
        ratio_display=format_ratio(ratio),
        risk_level=risk_label(risk_score),
    )


def analyze_concentration(snapshot: Snapshot, limit: int = 15) -> list[ConcentrationEntry]:
    """Rank markets by open interest concentration.

    Markets with zero total OI are excluded rather than scored.

    Args:
        snapshot: The snapshot to analyze.
        limit: Maximum number of entries returned.

    Returns:
        Entries sorted by concentration descending, truncated to ``limit``.
    """
    entries: list[ConcentrationEntry] = []
    for market, rate in snapshot.markets.items():
        entry = _concentration_entry(market, rate)
        if entry is not None:
            entries.append(entry)

    entries.sort(key=lambda e: e.concentration, reverse=True)
    return entries[:limit]


def summarize_concentration(entries: list[ConcentrationEntry]) -> ConcentrationSummary:
    """Count critical and high risk entries and extremely concentrated markets."""
    return ConcentrationSummary(
        critical_risk=sum(1 for e in entries if e.risk_score >= 80),
        high_risk=sum(1 for e in entries if 60 <= e.risk_score < 80),
        extreme_concentration=sum(1 for e in entries if e.concentration > 90),
    )
