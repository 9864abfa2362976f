"""Presentation rounding for currency and percentages.

Only output code calls these; the engine keeps full precision.
"""

from decimal import ROUND_HALF_UP, Decimal

CENT = Decimal("0.01")
TENTH = Decimal("0.1")


def round_money(value: Decimal) -> Decimal:
    """Round a currency amount to cents, half-up."""
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def round_pct(value: Decimal, places: Decimal = TENTH) -> Decimal:
    """Round a percentage for display (one decimal by default), half-up."""
    return Decimal(value).quantize(places, rounding=ROUND_HALF_UP)
