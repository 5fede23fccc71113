# ebay_research/analysis/rounding.py

"""Half-up rounding shared by the balance, price and trend maths.

Python's built-in :func:`round` rounds halves to even, so ``round(2.5)``
is ``2``.  Balances, prices and percentages here always round halves away
from zero (``2.5 -> 3``, ``0.125 -> 0.13``), including the nearest-rank
percentile index.
"""

from decimal import ROUND_HALF_UP, Decimal


def round_half_up(value: float, digits: int = 0) -> float:
    """Round *value* to *digits* decimals, halves away from zero."""
    quantum = Decimal(1).scaleb(-digits)
    rounded = Decimal(repr(float(value))).quantize(
        quantum, rounding=ROUND_HALF_UP
    )
    return float(rounded)


def round_index(value: float) -> int:
    """Round a non-negative position to the nearest integer index."""
    return int(round_half_up(value, 0))
