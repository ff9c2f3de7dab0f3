"""Monetary rounding shared by carts, orders and reports."""

from decimal import ROUND_HALF_UP, Decimal

_CENT = Decimal("0.01")


def round_money(value) -> float:
    """Round an amount to two decimal places, half away from zero."""
    if value is None:
        return 0.0
    return float(Decimal(str(value)).quantize(_CENT, rounding=ROUND_HALF_UP))


def line_total(price, quantity) -> float:
    return round_money(Decimal(str(price)) * int(quantity))
