"""Integer arithmetic utilities for amounts.

Prices are int cents (USD), stakes are int sats. No float in stored state.
"""

from decimal import ROUND_HALF_UP, Decimal


def cents_to_display(cents: int) -> str:
    """Convert cents to display string: 6500 -> '$65.00', -1200 -> '-$12.00'."""
    if cents < 0:
        abs_cents = -cents
        return f"-${abs_cents // 100:,}.{abs_cents % 100:02d}"
    return f"${cents // 100:,}.{cents % 100:02d}"


def cents_to_whole_dollars(cents: int) -> str:
    """Dollar amount with thousands separators, cents only when non-zero.

    5000000 -> '50,000', 5000050 -> '50,000.5'
    """
    dollars = Decimal(cents) / 100
    if dollars == dollars.to_integral_value():
        return f"{int(dollars):,}"
    return f"{dollars.normalize():,f}"


def round_half_up_div(numerator: int, denominator: int) -> int:
    """Integer division rounding halves away from zero (non-negative inputs).

    round_half_up_div(1, 2) == 1, round_half_up_div(1, 3) == 0
    """
    if denominator <= 0:
        raise ValueError(f"denominator must be positive, got {denominator}")
    return (2 * numerator + denominator) // (2 * denominator)


def ratio_to_display(numerator: int, denominator: int) -> str:
    """Exact ratio as a 2-decimal string, half-up: 9/8 -> '1.13'."""
    value = Decimal(numerator) / Decimal(denominator)
    return str(value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))
