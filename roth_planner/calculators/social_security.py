"""Social Security income and its federal taxation.

Benefits are entered as the annual amount (in cents) payable at the chosen
start age.  From then on the benefit grows each year by a cost-of-living
adjustment (2 % by default).  A spouse's benefit is only counted for joint
filers, mirroring how the household's tax return would report it.

The taxable portion follows the provisional-income rules of IRC §86:

* provisional income = other income + tax-exempt interest + half of benefits;
* below the base threshold nothing is taxable;
* between the base and upper thresholds up to 50 % of benefits are taxable;
* above the upper threshold up to 85 % of benefits are taxable.

The thresholds ($25k/$34k, $32k/$44k joint, $0 married filing separately)
are statutory and are *not* indexed for inflation.

Example
-------

>>> # $30 000 of benefits plus $40 000 of pension for a single filer
>>> calculate_taxable_ss(3000000, 4000000, 0, "single")
2235000
"""

from __future__ import annotations

from typing import Dict, Optional

from ..money import round_half_up
from .tables import resolve_tables

DEFAULT_COLA_RATE = 2.0


def social_security_income(
    annual_amount: int,
    start_age: int,
    age: Optional[int],
    cola_rate: float = DEFAULT_COLA_RATE,
) -> int:
    """Annual benefit received at ``age``.

    Parameters
    ----------
    annual_amount : int
        Benefit in cents for the first year of collection.
    start_age : int
        Age at which benefits begin.
    age : int or None
        Attained age in the projection year.  ``None`` yields zero.
    cola_rate : float, optional
        Annual cost-of-living adjustment in percent.

    Returns
    -------
    int
        Benefit in cents, zero before ``start_age``.
    """
    if age is None or annual_amount <= 0 or age < start_age:
        return 0
    years_collecting = age - start_age
    return round_half_up(annual_amount * (1.0 + cola_rate / 100.0) ** years_collecting)


def household_social_security(profile, year_offset: int) -> int:
    """Combined household benefit for the year ``year_offset`` years after the start."""
    total = social_security_income(
        profile.ss_annual_amount,
        profile.ss_start_age,
        profile.age_in(year_offset),
        profile.ss_cola_rate,
    )
    if profile.is_joint:
        total += social_security_income(
            profile.spouse_ss_annual_amount,
            profile.spouse_ss_start_age,
            profile.spouse_age_in(year_offset),
            profile.ss_cola_rate,
        )
    return total


def calculate_taxable_ss(
    ss_benefits: int,
    other_income: int,
    tax_exempt_income: int = 0,
    filing_status: str = "single",
    tax_tables: Optional[Dict[str, Dict]] = None,
) -> int:
    """Taxable portion of ``ss_benefits`` under the provisional-income rules."""
    if ss_benefits <= 0:
        return 0
    tables = resolve_tables(tax_tables)
    thresholds = tables["social_security"]["thresholds"]
    rule = thresholds.get(filing_status, thresholds["single"])
    base = rule["base"]
    upper = rule["upper"]

    provisional = other_income + tax_exempt_income + ss_benefits / 2.0
    if provisional <= base:
        return 0

    if provisional <= upper:
        taxable = min(0.5 * ss_benefits, 0.5 * (provisional - base))
    else:
        # 85 % of the excess over the upper threshold plus the lesser of the
        # 50 % tier amount or half of benefits.
        tier_one = min(0.5 * ss_benefits, rule["base_amount"])
        taxable = min(0.85 * ss_benefits, 0.85 * (provisional - upper) + tier_one)
    return round_half_up(taxable)


__all__ = [
    "DEFAULT_COLA_RATE",
    "social_security_income",
    "household_social_security",
    "calculate_taxable_ss",
]
