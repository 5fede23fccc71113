# ebay_research/analysis/change.py

"""Percent change between two measurements."""

from ebay_research.analysis.rounding import round_half_up


def percent_change(
    old_value: float | None, new_value: float | None,
) -> float | None:
    """(new - old) / old as a percentage, 1 decimal.

    ``None`` when either side is missing or *old_value* is not positive.
    """
    if old_value is None or new_value is None or old_value <= 0:
        return None
    return round_half_up((new_value - old_value) / old_value * 100, 1)
