"""Open interest arithmetic shared by the analyzers.

CRITICAL: All computations use Decimal. Never use float.
"""

from decimal import Decimal

from perpdash.models import Side

_ZERO = Decimal("0")
_HUNDRED = Decimal("100")

#: Weaker-side substitute when it is exactly zero, per analyzer.
CONCENTRATION_ZERO_FLOOR = Decimal("0.001")
RISK_ZERO_FLOOR = Decimal("1")


def dominant_side(long_oi: Decimal, short_oi: Decimal) -> Side:
    """LONG only when long OI is strictly larger; ties count as SHORT."""
    return Side.LONG if long_oi > short_oi else Side.SHORT


def dominance_ratio(long_oi: Decimal, short_oi: Decimal, zero_floor: Decimal) -> Decimal:
    """Dominant-side OI divided by weaker-side OI.

    A weaker side of exactly zero is replaced by ``zero_floor`` so the
    ratio stays finite (but very large). Non-zero weaker sides are used
    as they are, however small.

    Args:
        long_oi: Long open interest in units.
        short_oi: Short open interest in units.
        zero_floor: Substitute for a zero weaker side.
            Concentration uses 0.001; squeeze and risk use 1.

    Returns:
        The ratio as Decimal, >= 1 whenever either side is non-zero.
    """
    if long_oi > short_oi:
        return long_oi / (short_oi or zero_floor)
    return short_oi / (long_oi or zero_floor)


def percent(part: Decimal | int, whole: Decimal | int) -> Decimal:
    """part / whole * 100, or 0 when whole is 0."""
    if not whole:
        return _ZERO
    return Decimal(part) / Decimal(whole) * _HUNDRED


def clamp(value: Decimal, low: Decimal = _ZERO, high: Decimal = _HUNDRED) -> Decimal:
    return max(low, min(high, value))
