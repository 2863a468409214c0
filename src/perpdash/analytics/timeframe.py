"""Timeframe subsampling of a snapshot series for display.

Picks representative snapshots only; values are never interpolated or
aggregated. Buckets are computed in UTC.
"""

from collections.abc import Callable, Hashable, Iterable
from datetime import datetime, timezone

from perpdash.models import Cadence, Snapshot


def _utc(timestamp_ms: int) -> datetime:
    return datetime.fromtimestamp(timestamp_ms / 1000, tz=timezone.utc)


def hour_bucket(timestamp_ms: int) -> tuple[int, int, int, int]:
    """Return the UTC (year, month, day, hour) bucket of a timestamp."""
    dt = _utc(timestamp_ms)
    return (dt.year, dt.month, dt.day, dt.hour)


def four_hour_bucket(timestamp_ms: int) -> tuple[int, int, int, int]:
    """Return the UTC (year, month, day, hour // 4) bucket of a timestamp."""
    dt = _utc(timestamp_ms)
    return (dt.year, dt.month, dt.day, dt.hour // 4)


def _first_per_bucket(
    series: Iterable[Snapshot], bucket_of: Callable[[int], Hashable]
) -> list[Snapshot]:
    seen: set[Hashable] = set()
    selected: list[Snapshot] = []
    # Stable sort: ties keep their input order.
    for snapshot in sorted(series, key=lambda s: s.timestamp):
        key = bucket_of(snapshot.timestamp)
        if key in seen:
            continue
        seen.add(key)
        selected.append(snapshot)
    return selected


def filter_by_timeframe(series: list[Snapshot], cadence: Cadence) -> list[Snapshot]:
    """Downsample a series to the given cadence.

    RAW returns every snapshot. HOURLY and FOUR_HOURLY keep the earliest
    snapshot of each UTC hour or 4-hour block, so every selected snapshot
    carries the minimum timestamp of its bucket.

    Args:
        series: Snapshots, expected ascending by timestamp. Bucketed
            cadences scan a timestamp-sorted copy.
        cadence: Target cadence.

    Returns:
        A new list; the input is never modified. Empty input gives [].
    """
    if not series:
        return []

    if cadence == Cadence.HOURLY:
        return _first_per_bucket(series, hour_bucket)
    if cadence == Cadence.FOUR_HOURLY:
        return _first_per_bucket(series, four_hour_bucket)
    return list(series)
