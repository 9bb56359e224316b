"""Widow's penalty analysis.

When one spouse of a married couple dies the survivor files as single from the
following year: the brackets and standard deduction roughly halve, the IRMAA
thresholds drop to the single ladder, and only the larger Social Security
benefit survives.  Income from the traditional IRA (RMDs) barely changes, so
the survivor often lands in a higher bracket.  This module projects the
household as married until the death year and as a single filer afterwards,
and prices the difference year by year.

Example
-------

>>> impact = widow_tax_impact(10000000, 2026, 70, spouse_age=70)
>>> impact.married_tax, impact.single_tax
(749600, 1318000)
>>> impact.bracket_jump
10
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Dict, Optional, Tuple

from ..models import HouseholdProfile, InvalidInputError, YearRow
from ..money import round_half_up
from .guaranteed_income import birth_year, run_gi_baseline
from .social_security import social_security_income
from .taxes import compute_year_tax, get_federal_brackets, marginal_rate

logger = logging.getLogger(__name__)

SPOUSE_LIFE_EXPECTANCY = 85
MIN_YEARS_TO_DEATH = 5
DEFAULT_YEARS_TO_DEATH = 15
RECOMMEND_ABOVE_BRACKET_JUMP = 5


@dataclass(frozen=True)
class WidowTaxImpact:
    year: int
    age: int
    married_tax: int
    married_rate: float
    single_tax: int
    single_rate: float
    married_irmaa: int = 0
    single_irmaa: int = 0

    @property
    def tax_increase(self) -> int:
        return self.single_tax - self.married_tax

    @property
    def bracket_jump(self) -> float:
        return self.single_rate - self.married_rate

    @property
    def irmaa_increase(self) -> int:
        return self.single_irmaa - self.married_irmaa


@dataclass(frozen=True)
class WidowAnalysis:
    death_year: int
    pre_death: Tuple[YearRow, ...]
    post_death: Tuple[YearRow, ...]
    impacts: Tuple[WidowTaxImpact, ...]
    total_additional_tax: int
    recommended_conversion_increase: int


def widow_tax_impact(
    ordinary_income: int,
    year: int,
    age: int,
    *,
    spouse_age: Optional[int] = None,
    survivor_ss: int = 0,
    spouse_ss: int = 0,
    tax_exempt_income: int = 0,
    tax_tables: Optional[Dict] = None,
) -> WidowTaxImpact:
    """Federal tax and IRMAA on the same income filed jointly and as a survivor.

    The joint return also counts the deceased spouse's benefit ``spouse_ss``;
    the single return keeps only ``survivor_ss``.
    """
    married = compute_year_tax(
        ordinary_income,
        "married_filing_jointly",
        None,
        year,
        ss_benefits=survivor_ss + spouse_ss,
        tax_exempt_income=tax_exempt_income,
        age=age,
        spouse_age=spouse_age,
        tax_tables=tax_tables,
    )
    single = compute_year_tax(
        ordinary_income,
        "single",
        None,
        year,
        ss_benefits=survivor_ss,
        tax_exempt_income=tax_exempt_income,
        age=age,
        tax_tables=tax_tables,
    )
    return WidowTaxImpact(
        year=year,
        age=age,
        married_tax=married.federal_tax,
        married_rate=marginal_rate(
            married.taxable_income,
            get_federal_brackets(year, "married_filing_jointly", tax_tables),
        ),
        single_tax=single.federal_tax,
        single_rate=marginal_rate(
            single.taxable_income, get_federal_brackets(year, "single", tax_tables)
        ),
        married_irmaa=married.irmaa_surcharge,
        single_irmaa=single.irmaa_surcharge,
    )


def default_death_year(profile: HouseholdProfile, start_year: int) -> int:
    """Year the spouse reaches 85 (at least five years out), else 15 years out."""
    if profile.spouse_age is None:
        return start_year + DEFAULT_YEARS_TO_DEATH
    return start_year + max(MIN_YEARS_TO_DEATH, SPOUSE_LIFE_EXPECTANCY - profile.spouse_age)


def survivor_profile(
    profile: HouseholdProfile, start_year: int, death_year: int, last_row: Optional[YearRow]
) -> HouseholdProfile:
    """The survivor as a single filer from ``death_year``, inheriting the balances."""
    changes = dict(
        age=profile.age + (death_year - start_year),
        filing_status="single",
        spouse_age=None,
        spouse_ss_annual_amount=0,
        birth_year=birth_year(profile, start_year),
    )
    if last_row is not None:
        changes.update(
            traditional_balance=last_row.traditional_balance,
            roth_balance=last_row.roth_balance,
            taxable_balance=last_row.taxable_balance,
        )
    return replace(profile, **changes)


def analyze_widow_penalty(
    profile: HouseholdProfile,
    start_year: int,
    death_year: Optional[int] = None,
    end_year: Optional[int] = None,
    tax_tables: Optional[Dict] = None,
) -> WidowAnalysis:
    """Project married years, then survivor years, and price the filing-status change.

    Both legs take RMDs and pay full tax like the guaranteed-income baseline.
    The recommended increase in annual conversions spreads the additional
    survivor tax over the survivor years when the average bracket jump
    exceeds five points, and is zero otherwise.
    """
    if profile.filing_status != "married_filing_jointly":
        raise InvalidInputError("Widow analysis needs a married_filing_jointly profile")
    if end_year is None:
        end_year = start_year + (profile.end_age - profile.age)
    if death_year is None:
        death_year = default_death_year(profile, start_year)
    if death_year < start_year:
        raise InvalidInputError(f"death_year ({death_year}) is before start_year ({start_year})")

    total_years = end_year - start_year + 1
    married_years = min(death_year - start_year, total_years)
    pre_death = run_gi_baseline(profile, start_year, married_years, tax_tables=tax_tables)

    survivor_years = total_years - married_years
    post_death: Tuple[YearRow, ...] = ()
    if survivor_years > 0:
        survivor = survivor_profile(
            profile, start_year, death_year, pre_death[-1] if pre_death else None
        )
        post_death = run_gi_baseline(
            survivor, death_year, survivor_years, tax_tables=tax_tables
        )
    logger.debug(
        "Widow analysis: %s married years, %s survivor years from %s",
        married_years,
        survivor_years,
        death_year,
    )

    impacts = []
    for row in post_death:
        spouse_age = None
        if profile.spouse_age is not None:
            spouse_age = profile.spouse_age + (row.year - start_year)
        spouse_ss = social_security_income(
            profile.spouse_ss_annual_amount,
            profile.spouse_ss_start_age,
            spouse_age,
            profile.ss_cola_rate,
        )
        impacts.append(
            widow_tax_impact(
                row.distribution + row.other_income,
                row.year,
                row.age,
                spouse_age=spouse_age,
                survivor_ss=row.ss_income,
                spouse_ss=spouse_ss,
                tax_exempt_income=row.tax_exempt_income,
                tax_tables=tax_tables,
            )
        )

    total_additional = sum(i.tax_increase for i in impacts)
    recommended = 0
    if impacts:
        average_jump = sum(i.bracket_jump for i in impacts) / len(impacts)
        if average_jump > RECOMMEND_ABOVE_BRACKET_JUMP:
            recommended = round_half_up(total_additional / len(impacts))

    return WidowAnalysis(
        death_year=death_year,
        pre_death=pre_death,
        post_death=post_death,
        impacts=tuple(impacts),
        total_additional_tax=total_additional,
        recommended_conversion_increase=recommended,
    )


__all__ = [
    "WidowTaxImpact",
    "WidowAnalysis",
    "widow_tax_impact",
    "default_death_year",
    "survivor_profile",
    "analyze_widow_penalty",
]
