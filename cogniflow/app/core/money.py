"""
Money helpers. All monetary arithmetic runs on Decimal quantized to cents.
"""

from decimal import Decimal, ROUND_HALF_UP

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_money(value) -> Decimal:
    """Coerce a number (Decimal, int, float, str, None) to a cent-quantized Decimal."""
    if value is None:
        return ZERO
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def percent_change(current: Decimal, previous: Decimal) -> float:
    """Relative change in percent, 0 when there is no baseline."""
    if previous == 0:
        return 0.0
    return float(round((current - previous) / abs(previous) * 100, 2))
