"""OI-weighted market sentiment from a single snapshot.

Counts markets by funding direction and weights each market's funding
rate by its total open interest to classify overall positioning.

CRITICAL: All computations use Decimal. Never use float.
"""

from decimal import Decimal

from perpdash.analytics.models import SentimentLabel, SentimentResult
from perpdash.analytics.oi import percent
from perpdash.models import Snapshot

_ZERO = Decimal("0")

#: Funding rate (annualized %) beyond which a market counts as extreme.
EXTREME_RATE = Decimal("100")


def classify_sentiment(weighted_sentiment: Decimal) -> SentimentLabel:
    """Map an OI-weighted funding rate to a sentiment label.

    Thresholds are checked in order and the first match wins:
    >50, >20, >5 (bullish side), then <-50, <-20, <-5 (bearish side).
    """
    if weighted_sentiment > 50:
        return SentimentLabel.EXTREMELY_BULLISH
    if weighted_sentiment > 20:
        return SentimentLabel.BULLISH
    if weighted_sentiment > 5:
        return SentimentLabel.SLIGHTLY_BULLISH
    if weighted_sentiment < -50:
        return SentimentLabel.EXTREMELY_BEARISH
    if weighted_sentiment < -20:
        return SentimentLabel.BEARISH
    if weighted_sentiment < -5:
        return SentimentLabel.SLIGHTLY_BEARISH
    return SentimentLabel.NEUTRAL


def analyze_sentiment(snapshot: Snapshot) -> SentimentResult:
    """Aggregate a snapshot into an OI-weighted sentiment classification.

    Each market's weight is (long_oi + short_oi) / 1e6, so the weighted
    sentiment is sum(rate * oi) / sum(oi), or 0 when there is no open
    interest at all. Percentages are 0 for an empty snapshot.

    Args:
        snapshot: The snapshot to analyze.

    Returns:
        SentimentResult with counts, percentages, label and total OI.
    """
    rates = list(snapshot.markets.values())
    total_markets = len(rates)

    positive = sum(1 for r in rates if r.funding_rate > 0)
    negative = sum(1 for r in rates if r.funding_rate < 0)
    neutral = sum(1 for r in rates if r.funding_rate == 0)

    weighted_total = _ZERO
    total_oi = _ZERO
    for rate in rates:
        market_oi = rate.long_oi_units + rate.short_oi_units
        weighted_total += rate.funding_rate * market_oi
        total_oi += market_oi

    weighted_sentiment = weighted_total / total_oi if total_oi > 0 else _ZERO

    return SentimentResult(
        total_markets=total_markets,
        positive_count=positive,
        negative_count=negative,
        neutral_count=neutral,
        positive_percentage=percent(positive, total_markets),
        negative_percentage=percent(negative, total_markets),
        neutral_percentage=percent(neutral, total_markets),
        weighted_sentiment=weighted_sentiment,
        label=classify_sentiment(weighted_sentiment),
        extreme_positive_count=sum(1 for r in rates if r.funding_rate > EXTREME_RATE),
        extreme_negative_count=sum(1 for r in rates if r.funding_rate < -EXTREME_RATE),
        total_oi=total_oi,
    )
