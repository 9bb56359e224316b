"""Integer-cents arithmetic helpers.

Every balance, tax and threshold in the engine is an ``int`` number of cents.
Rates are percentages (``7`` means 7 %).  Floating point is only used for the
intermediate product of a balance and a rate; the result is rounded half-up
back to whole cents so that identical inputs always produce identical outputs.

Example
-------

>>> apply_rate(50000000, 10)
5000000
>>> grow(55000000, 7)
58850000
"""

from __future__ import annotations

import math


def round_half_up(value: float) -> int:
    """Round ``value`` to the nearest integer, ties away from negative infinity."""
    return int(math.floor(value + 0.5))


def apply_rate(cents: int, rate_percent: float) -> int:
    """Return ``rate_percent`` of ``cents`` rounded to the cent."""
    return round_half_up(cents * rate_percent / 100.0)


def grow(cents: int, rate_percent: float) -> int:
    """Compound ``cents`` by one period at ``rate_percent``."""
    return round_half_up(cents * (1.0 + rate_percent / 100.0))


def inflation_factor(years: int, rate_percent: float) -> float:
    """Cumulative inflation factor for ``years`` periods (1.0 for ``years <= 0``)."""
    if years <= 0:
        return 1.0
    return (1.0 + rate_percent / 100.0) ** years


def index_to_dollar(cents: int, factor: float) -> int:
    """Scale a threshold by ``factor`` and round to whole dollars."""
    if factor == 1.0:
        return cents
    return round_half_up(cents * factor / 100.0) * 100


__all__ = ["round_half_up", "apply_rate", "grow", "inflation_factor", "index_to_dollar"]
