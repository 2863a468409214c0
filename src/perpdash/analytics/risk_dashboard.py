"""Aggregate market risk index (0-100) and per-market risk ranking.

The overall index adds four factors worth up to 25 points each:

  1. OI imbalance: |total long - total short| / total OI
  2. Extreme funding: share of markets with |rate| > 100
  3. Imbalanced markets: share of markets with dominance ratio > 5
  4. Volatility: mean absolute funding change over recent snapshots, capped at 25

The per-market ranking is a separate score built from the market's own
dominance ratio, funding extremity and funding/OI misalignment.

CRITICAL: All computations use Decimal. Never use float.
"""

from decimal import Decimal

from perpdash.analytics.models import MarketRisk, RiskDashboardResult, RiskLevel
from perpdash.analytics.oi import RISK_ZERO_FLOOR, clamp, dominance_ratio, percent
from perpdash.models import Snapshot

_ZERO = Decimal("0")
_HUNDRED = Decimal("100")
_FACTOR_WEIGHT = Decimal("25")

EXTREME_RATE = Decimal("100")
IMBALANCED_RATIO = Decimal("5")
MARKET_RISK_MIN = Decimal("30")

#: (lower bound, exclusive) -> points, checked in order.
_RATIO_POINTS: tuple[tuple[Decimal, Decimal], ...] = (
    (Decimal("10"), Decimal("40")),
    (Decimal("5"), Decimal("25")),
    (Decimal("3"), Decimal("15")),
)
_FUNDING_POINTS: tuple[tuple[Decimal, Decimal], ...] = (
    (Decimal("200"), Decimal("40")),
    (Decimal("100"), Decimal("25")),
    (Decimal("50"), Decimal("15")),
)
_MISALIGNED_POINTS = Decimal("20")


def classify_risk_level(overall_risk: Decimal) -> RiskLevel:
    """Bucket the overall index: >=75 Critical, >=50 High, >=25 Medium."""
    if overall_risk >= 75:
        return RiskLevel.CRITICAL
    if overall_risk >= 50:
        return RiskLevel.HIGH
    if overall_risk >= 25:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def risk_label(score: Decimal) -> RiskLevel:
    """Bucket a per-market score for display: >=80, >=60, >=40."""
    if score >= 80:
        return RiskLevel.CRITICAL
    if score >= 60:
        return RiskLevel.HIGH
    if score >= 40:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def _tier_points(value: Decimal, tiers: tuple[tuple[Decimal, Decimal], ...]) -> Decimal:
    for bound, points in tiers:
        if value > bound:
            return points
    return _ZERO


def _pair_mean_change(previous: Snapshot, current: Snapshot) -> Decimal:
    """Mean |rate change| over markets present in both snapshots (0 if none)."""
    total = _ZERO
    count = 0
    for market, rate in current.markets.items():
        prev = previous.markets.get(market)
        if prev is None:
            continue
        total += abs(rate.funding_rate - prev.funding_rate)
        count += 1
    return total / count if count else _ZERO


def compute_volatility(history: list[Snapshot], window: int = 10) -> Decimal:
    """Average of per-pair mean absolute funding changes.

    Uses the last ``window`` snapshots of ``history`` (chronological).
    Fewer than two snapshots means there is nothing to compare: 0.
    """
    if len(history) < 2:
        return _ZERO

    recent = history[-window:]
    changes = [
        _pair_mean_change(prev, cur) for prev, cur in zip(recent, recent[1:])
    ]
    if not changes:
        return _ZERO
    return sum(changes, _ZERO) / len(changes)


def score_market_risk(long_oi: Decimal, short_oi: Decimal, funding_rate: Decimal) -> Decimal:
    """Per-market risk score, clamped to 100."""
    ratio = dominance_ratio(long_oi, short_oi, RISK_ZERO_FLOOR)
    risk = _tier_points(ratio, _RATIO_POINTS)
    risk += _tier_points(abs(funding_rate), _FUNDING_POINTS)

    if (long_oi > short_oi and funding_rate < 0) or (
        short_oi > long_oi and funding_rate > 0
    ):
        risk += _MISALIGNED_POINTS

    return min(_HUNDRED, risk)


def rank_market_risks(snapshot: Snapshot, limit: int = 5) -> list[MarketRisk]:
    """Markets with a risk score above 30, highest first."""
    risks: list[MarketRisk] = []
    for market, rate in snapshot.markets.items():
        long_oi = rate.long_oi_units
        short_oi = rate.short_oi_units
        total_oi = long_oi + short_oi
        if total_oi == 0:
            continue

        risk = score_market_risk(long_oi, short_oi, rate.funding_rate)
        if risk > MARKET_RISK_MIN:
            risks.append(
                MarketRisk(
                    market=market, risk=risk, total_oi=total_oi, level=risk_label(risk)
                )
            )

    risks.sort(key=lambda m: m.risk, reverse=True)
    return risks[:limit]


def analyze_risk_dashboard(
    snapshot: Snapshot,
    recent_history: list[Snapshot],
    volatility_window: int = 10,
    market_risk_limit: int = 5,
) -> RiskDashboardResult:
    """Compute the whole-market risk index for a snapshot.

    Args:
        snapshot: Current snapshot.
        recent_history: Chronological snapshots used for the volatility
            factor. Only the last ``volatility_window`` entries are used.
        volatility_window: Number of most recent snapshots for volatility.
        market_risk_limit: Maximum entries in the per-market ranking.

    Returns:
        RiskDashboardResult. Every ratio with a zero denominator is 0, so
        an empty snapshot yields a Low risk of 0.
    """
    total_markets = len(snapshot.markets)
    total_long = _ZERO
    total_short = _ZERO
    extreme_count = 0
    imbalanced_count = 0

    for rate in snapshot.markets.values():
        long_oi = rate.long_oi_units
        short_oi = rate.short_oi_units
        total_long += long_oi
        total_short += short_oi

        if abs(rate.funding_rate) > EXTREME_RATE:
            extreme_count += 1
        if dominance_ratio(long_oi, short_oi, RISK_ZERO_FLOOR) > IMBALANCED_RATIO:
            imbalanced_count += 1

    volatility = compute_volatility(recent_history, window=volatility_window)

    total_oi = total_long + total_short
    oi_imbalance = abs(total_long - total_short) / total_oi if total_oi > 0 else _ZERO
    extreme_fraction = (
        Decimal(extreme_count) / total_markets if total_markets else _ZERO
    )
    imbalanced_fraction = (
        Decimal(imbalanced_count) / total_markets if total_markets else _ZERO
    )

    overall = clamp(
        oi_imbalance * _FACTOR_WEIGHT
        + extreme_fraction * _FACTOR_WEIGHT
        + imbalanced_fraction * _FACTOR_WEIGHT
        + min(volatility, _FACTOR_WEIGHT)
    )

    return RiskDashboardResult(
        overall_risk=overall,
        risk_level=classify_risk_level(overall),
        total_long_oi=total_long,
        total_short_oi=total_short,
        extreme_funding_count=extreme_count,
        imbalanced_markets=imbalanced_count,
        volatility_score=volatility,
        oi_imbalance=oi_imbalance * _HUNDRED,
        long_oi_percent=percent(total_long, total_oi),
        short_oi_percent=percent(total_short, total_oi),
        market_risks=rank_market_risks(snapshot, limit=market_risk_limit),
    )
