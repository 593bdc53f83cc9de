"""Fixed-point money helpers. Amounts are Decimal with two places, never float."""

from decimal import ROUND_HALF_UP, Decimal

CENT = Decimal("0.01")
ZERO = Decimal("0.00")
EPSILON = Decimal("0.005")


def to_decimal(val) -> Decimal:
    if val is None:
        return ZERO
    return val if isinstance(val, Decimal) else Decimal(str(val))


def quantize(val) -> Decimal:
    return to_decimal(val).quantize(CENT, rounding=ROUND_HALF_UP)


def half(val) -> Decimal:
    return quantize(to_decimal(val) / 2)
