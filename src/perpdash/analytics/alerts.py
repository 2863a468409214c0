"""Funding rate change alerts between two consecutive snapshots.

Each market present in both snapshots is checked against five independent
conditions; a market can fire several at once. Markets missing from either
snapshot are skipped, never treated as a change from or to zero.

CRITICAL: All computations use Decimal. Never use float.
"""

from decimal import Decimal

from perpdash.analytics.models import (
    AlertEntry,
    AlertReport,
    AlertTrigger,
    AlertType,
    Severity,
)
from perpdash.models import Snapshot

_ZERO = Decimal("0")
_HUNDRED = Decimal("100")

LARGE_CHANGE = Decimal("20")
LARGE_CHANGE_HIGH = Decimal("50")
RAPID_PERCENT = Decimal("50")
RAPID_MIN_CHANGE = Decimal("5")
RAPID_INCREASE_HIGH = Decimal("100")
RAPID_DECREASE_HIGH = Decimal("-75")
EXTREME_LEVEL = Decimal("200")


def change_percent(previous_rate: Decimal, change: Decimal) -> Decimal:
    """change / |previous| * 100, or 0 when the previous rate is 0."""
    if previous_rate == 0:
        return _ZERO
    return change / abs(previous_rate) * _HUNDRED


def evaluate_triggers(previous_rate: Decimal, current_rate: Decimal) -> list[AlertTrigger]:
    """Return every alert condition fired by a rate moving previous -> current.

    Args:
        previous_rate: Annualized funding rate (%) in the earlier snapshot.
        current_rate: Annualized funding rate (%) in the later snapshot.

    Returns:
        Fired triggers in a fixed order: large change, sign flip, rapid
        increase, rapid decrease, extreme level. Empty if none fired.
    """
    change = current_rate - previous_rate
    pct = change_percent(previous_rate, change)
    triggers: list[AlertTrigger] = []

    if abs(change) > LARGE_CHANGE:
        severity = Severity.HIGH if abs(change) > LARGE_CHANGE_HIGH else Severity.MEDIUM
        triggers.append(AlertTrigger(AlertType.LARGE_CHANGE, severity))

    if previous_rate * current_rate < 0 and previous_rate != 0:
        triggers.append(AlertTrigger(AlertType.SIGN_FLIP, Severity.HIGH))

    if pct > RAPID_PERCENT and change > RAPID_MIN_CHANGE:
        severity = Severity.HIGH if pct > RAPID_INCREASE_HIGH else Severity.MEDIUM
        triggers.append(AlertTrigger(AlertType.RAPID_INCREASE, severity))

    if pct < -RAPID_PERCENT and change < -RAPID_MIN_CHANGE:
        severity = Severity.HIGH if pct < RAPID_DECREASE_HIGH else Severity.MEDIUM
        triggers.append(AlertTrigger(AlertType.RAPID_DECREASE, severity))

    if abs(current_rate) > EXTREME_LEVEL and abs(previous_rate) <= EXTREME_LEVEL:
        triggers.append(AlertTrigger(AlertType.EXTREME_LEVEL, Severity.HIGH))

    return triggers


def detect_alerts(previous: Snapshot, current: Snapshot) -> list[AlertEntry]:
    """Flag significant funding rate changes between two snapshots.

    Sorted high severity first, then by absolute change descending.
    """
    alerts: list[AlertEntry] = []

    for market, rate in current.markets.items():
        prev = previous.markets.get(market)
        if prev is None:
            continue

        triggers = evaluate_triggers(prev.funding_rate, rate.funding_rate)
        if not triggers:
            continue

        change = rate.funding_rate - prev.funding_rate
        severity = (
            Severity.HIGH
            if any(t.severity == Severity.HIGH for t in triggers)
            else Severity.MEDIUM
        )
        alerts.append(
            AlertEntry(
                market=market,
                previous_rate=prev.funding_rate,
                current_rate=rate.funding_rate,
                change=change,
                change_percent=change_percent(prev.funding_rate, change),
                triggers=triggers,
                severity=severity,
            )
        )

    # Market name as the final key keeps ties deterministic.
    alerts.sort(
        key=lambda a: (a.severity != Severity.HIGH, -abs(a.change), a.market)
    )
    return alerts


def detect_alerts_from_history(series: list[Snapshot]) -> AlertReport:
    """Compare the last two snapshots of a series.

    Graceful degradation: fewer than two snapshots yields a report with
    sufficient_data=False and no alerts, never an exception.
    """
    if len(series) < 2:
        return AlertReport(sufficient_data=False)

    previous, current = series[-2], series[-1]
    return AlertReport(
        sufficient_data=True,
        alerts=detect_alerts(previous, current),
        previous_timestamp=previous.timestamp,
        current_timestamp=current.timestamp,
    )
