"""Medicare IRMAA tier resolution.

The Income-Related Monthly Adjustment Amount is a *cliff* schedule: one dollar
of MAGI above a tier's lower threshold triggers that tier's full surcharge.
Tiers are an ordered ladder of lower thresholds with an annual surcharge
(Part B plus Part D, twelve months), separate for single and joint filers.
The 2026 table ships in ``data/tax_tables.json``; later years scale the
thresholds by the same inflation factor as the tax brackets.

Example
-------

>>> get_irmaa_surcharge(30000000, is_joint=True, year=2026)
420000
>>> calculate_irmaa_headroom(15000000, is_joint=True, year=2026)
5600000
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import Dict, Optional, Tuple, Union

from ..money import index_to_dollar
from .tables import resolve_tables, section_factor


@dataclass(frozen=True)
class IRMAATier:
    index: int
    lower: int
    annual_surcharge: int


def _build_tiers(tables: Dict, is_joint: bool, year: int) -> Tuple[IRMAATier, ...]:
    key = "joint" if is_joint else "single"
    factor = section_factor(tables, "irmaa", year)
    return tuple(
        IRMAATier(
            index=i,
            lower=index_to_dollar(row[f"{key}_lower"], factor),
            annual_surcharge=row[f"{key}_surcharge"],
        )
        for i, row in enumerate(tables["irmaa"]["tiers"])
    )


@lru_cache(maxsize=None)
def _default_tiers(is_joint: bool, year: int) -> Tuple[IRMAATier, ...]:
    return _build_tiers(resolve_tables(), is_joint, year)


def get_irmaa_tiers(
    is_joint: bool, year: int, tax_tables: Optional[Dict[str, Dict]] = None
) -> Tuple[IRMAATier, ...]:
    if tax_tables is None:
        return _default_tiers(is_joint, year)
    return _build_tiers(tax_tables, is_joint, year)


def get_irmaa_tier(
    magi: int, is_joint: bool, year: int, tax_tables: Optional[Dict[str, Dict]] = None
) -> IRMAATier:
    """Highest tier whose lower threshold is at or below ``magi``."""
    tiers = get_irmaa_tiers(is_joint, year, tax_tables)
    for tier in reversed(tiers):
        if magi >= tier.lower:
            return tier
    return tiers[0]


def get_irmaa_surcharge(
    magi: int, is_joint: bool, year: int, tax_tables: Optional[Dict[str, Dict]] = None
) -> int:
    return get_irmaa_tier(magi, is_joint, year, tax_tables).annual_surcharge


def calculate_irmaa_headroom(
    magi: int, is_joint: bool, year: int, tax_tables: Optional[Dict[str, Dict]] = None
) -> Union[int, float]:
    """Cents of additional MAGI before the next tier, ``inf`` in the top tier."""
    for tier in get_irmaa_tiers(is_joint, year, tax_tables):
        if tier.lower > magi:
            return tier.lower - magi
    return float("inf")


def is_near_irmaa_cliff(
    magi: int,
    is_joint: bool,
    year: int,
    margin: int = 500000,
    tax_tables: Optional[Dict[str, Dict]] = None,
) -> bool:
    """True when MAGI is within ``margin`` cents (default $5 000) of the next tier."""
    return calculate_irmaa_headroom(magi, is_joint, year, tax_tables) <= margin


__all__ = [
    "IRMAATier",
    "get_irmaa_tiers",
    "get_irmaa_tier",
    "get_irmaa_surcharge",
    "calculate_irmaa_headroom",
    "is_near_irmaa_cliff",
]
