"""Advisory checks that sit beside the projection loop.

None of these feed the year-by-year simulation.  They answer the questions an
advisor asks when sizing a conversion: will it trigger the Net Investment
Income Tax, push a pre-Medicare household over the ACA subsidy cliff, or cross
the top of the current bracket or the next IRMAA tier?

Example
-------

>>> calculate_niit(21000000, 5000000, "single")
38000
>>> get_federal_poverty_level(2, "TX")
2106000
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Optional, Union

from ..money import apply_rate
from .irmaa import calculate_irmaa_headroom
from .tables import resolve_tables
from .taxes import MEDICARE_AGE, get_bracket_ceiling

logger = logging.getLogger(__name__)

ACA_LAST_ENHANCED_YEAR = 2025


@dataclass(frozen=True)
class ACACliffCheck:
    affects_aca: bool
    at_subsidy_cliff: bool
    fpl_percent: float
    subsidy_cutoff: int


def calculate_niit(
    magi: int,
    net_investment_income: int,
    filing_status: str = "single",
    tax_tables: Optional[Dict[str, Dict]] = None,
) -> int:
    """3.8 % tax on the lesser of investment income and MAGI above the threshold."""
    niit = resolve_tables(tax_tables)["niit"]
    threshold = niit["thresholds"].get(filing_status, niit["thresholds"]["single"])
    if magi <= threshold or net_investment_income <= 0:
        return 0
    return apply_rate(min(net_investment_income, magi - threshold), niit["rate"])


def get_federal_poverty_level(
    household_size: int, state: Optional[str] = None, tax_tables: Optional[Dict[str, Dict]] = None
) -> int:
    """Poverty guideline in cents (Alaska and Hawaii have their own tables)."""
    fpl = resolve_tables(tax_tables)["fpl"]
    rates = fpl.get((state or "").upper(), fpl["contiguous"])
    return rates["base"] + rates["per_person"] * (max(1, household_size) - 1)


def get_applicable_percentage(
    fpl_percent: float, year: int, tax_tables: Optional[Dict[str, Dict]] = None
) -> Optional[float]:
    """Expected premium contribution (% of income) for an income at ``fpl_percent``.

    Interpolates linearly within a band.  Returns ``None`` where no credit is
    available: above the 400 % cliff from 2026 on, or below the lowest band.
    """
    aca = resolve_tables(tax_tables)["aca"]
    table = aca["2025"] if year <= ACA_LAST_ENHANCED_YEAR else aca["2026"]
    for band in table:
        upper = float("inf") if band["max_fpl"] is None else band["max_fpl"]
        if band["min_fpl"] <= fpl_percent < upper:
            if band["min_pct"] is None:
                return None
            if band["min_pct"] == band["max_pct"]:
                return band["min_pct"]
            position = (fpl_percent - band["min_fpl"]) / (upper - band["min_fpl"])
            return band["min_pct"] + position * (band["max_pct"] - band["min_pct"])
    return None


def check_aca_cliff(
    magi: int,
    household_size: int,
    state: Optional[str],
    age: int,
    tax_tables: Optional[Dict[str, Dict]] = None,
) -> ACACliffCheck:
    """Whether MAGI is over the 400 % FPL subsidy cutoff (pre-Medicare only)."""
    if age >= MEDICARE_AGE:
        return ACACliffCheck(False, False, 0.0, 0)
    fpl = get_federal_poverty_level(household_size, state, tax_tables)
    cutoff_pct = resolve_tables(tax_tables)["fpl"].get("subsidy_cutoff_percent", 400)
    cutoff = fpl * cutoff_pct // 100
    return ACACliffCheck(True, magi > cutoff, magi / fpl * 100.0, cutoff)


def conversion_room(
    taxable_income: int,
    magi: int,
    filing_status: str,
    year: int,
    target_rate: float = 24,
    avoid_irmaa: bool = False,
    tax_tables: Optional[Dict[str, Dict]] = None,
) -> Union[int, float]:
    """Largest conversion that stays within the ``target_rate`` bracket.

    With ``avoid_irmaa`` the room is also capped so MAGI stays below the next
    IRMAA tier (one cent short of the threshold).
    """
    ceiling = get_bracket_ceiling(filing_status, target_rate, year, tax_tables)
    room = max(0, ceiling - taxable_income)
    if avoid_irmaa:
        headroom = calculate_irmaa_headroom(
            magi, filing_status == "married_filing_jointly", year, tax_tables
        )
        room = min(room, max(0, headroom - 1))
    logger.debug("Conversion room at %s%%: %s", target_rate, room)
    return room


__all__ = [
    "ACACliffCheck",
    "calculate_niit",
    "get_federal_poverty_level",
    "get_applicable_percentage",
    "check_aca_cliff",
    "conversion_room",
]
