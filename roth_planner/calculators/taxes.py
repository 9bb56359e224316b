"""Tax calculation utilities.

This module implements the U.S. federal and state income tax calculations used
by the projection engine.  The default tables embed the 2026 federal brackets
and standard deductions for the four filing statuses; later years are projected
by indexing every threshold for inflation (2.7 % a year, rounded to whole
dollars) while the rates stay fixed.  State rules are one of ``none``, ``flat``
or ``progressive``; progressive states without a bracket table in the data file
fall back to their top marginal rate.

The logic applies the standard deduction (including the additional amount for
filers aged 65 and over) before progressive rates and omits less common
provisions such as the Alternative Minimum Tax or specific credits.  All
amounts are integer cents and rates are percentages.

Example
-------

>>> # Federal tax on $60 000 of taxable income for a single filer in 2026
>>> compute_federal_tax(6000000, year=2026)
816400

>>> # The same household's complete picture, including IRMAA
>>> compute_year_tax(7525000, "single", None, 2026, age=60).federal_tax
816400

The underlying brackets can be customised by passing a dictionary matching the
schema in ``data/tax_tables.json``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Dict, Optional, Sequence, Tuple, Union

from ..money import apply_rate, index_to_dollar
from .irmaa import get_irmaa_tier
from .social_security import calculate_taxable_ss
from .tables import resolve_tables, year_table

logger = logging.getLogger(__name__)

MEDICARE_AGE = 65


@dataclass(frozen=True)
class TaxBracket:
    lower: int
    upper: Union[int, float]
    rate: float


@dataclass(frozen=True)
class YearTax:
    agi: int
    taxable_income: int
    taxable_ss: int
    federal_tax: int
    state_tax: int
    magi: int
    irmaa_tier: int
    irmaa_surcharge: int

    @property
    def total_tax(self) -> int:
        return self.federal_tax + self.state_tax + self.irmaa_surcharge


def _brackets_from_rows(rows: Sequence[Dict], factor: float = 1.0) -> Tuple[TaxBracket, ...]:
    out = []
    for row in rows:
        end = row["end"]
        upper = float("inf") if end is None else index_to_dollar(end, factor)
        out.append(TaxBracket(index_to_dollar(row["start"], factor), upper, row["rate"]))
    return tuple(out)


def _federal_status_table(tables: Dict, year: int, filing_status: str) -> Tuple[Dict, float]:
    table, factor = year_table(tables, year)
    federal = table["federal"]
    if filing_status not in federal:
        logger.warning("No federal table for filing status %r; using single", filing_status)
        filing_status = "single"
    return federal[filing_status], factor


def _build_federal_brackets(tables: Dict, year: int, filing_status: str) -> Tuple[TaxBracket, ...]:
    status_table, factor = _federal_status_table(tables, year, filing_status)
    return _brackets_from_rows(status_table["brackets"], factor)


@lru_cache(maxsize=None)
def _default_federal_brackets(year: int, filing_status: str) -> Tuple[TaxBracket, ...]:
    return _build_federal_brackets(resolve_tables(), year, filing_status)


def get_federal_brackets(
    year: int,
    filing_status: str = "single",
    tax_tables: Optional[Dict[str, Dict]] = None,
) -> Tuple[TaxBracket, ...]:
    """Ordered federal brackets covering ``[0, inf)`` for ``year``."""
    if tax_tables is None:
        return _default_federal_brackets(year, filing_status)
    return _build_federal_brackets(tax_tables, year, filing_status)


def get_standard_deduction(
    filing_status: str = "single",
    age: Optional[int] = None,
    spouse_age: Optional[int] = None,
    year: int = 2026,
    tax_tables: Optional[Dict[str, Dict]] = None,
) -> int:
    """Standard deduction including the additional amount for age 65+.

    Single and head-of-household filers add the additional amount once when
    the filer is 65 or older.  Married filers add it once per spouse aged 65+.
    """
    tables = resolve_tables(tax_tables)
    status_table, factor = _federal_status_table(tables, year, filing_status)
    deduction = index_to_dollar(status_table.get("standard_deduction", 0), factor)
    additional = index_to_dollar(status_table.get("additional_65", 0), factor)

    seniors = 0
    if age is not None and age >= MEDICARE_AGE:
        seniors += 1
    if filing_status.startswith("married") and spouse_age is not None and spouse_age >= MEDICARE_AGE:
        seniors += 1
    return deduction + seniors * additional


def compute_progressive_tax(taxable_income: int, brackets: Sequence[TaxBracket]) -> int:
    """Apply ``brackets`` marginally, rounding each bracket's tax to the cent."""
    if taxable_income <= 0:
        return 0
    tax = 0
    for bracket in brackets:
        if taxable_income <= bracket.lower:
            break
        amount = min(taxable_income, bracket.upper) - bracket.lower
        tax += apply_rate(amount, bracket.rate)
    return tax


def marginal_rate(taxable_income: int, brackets: Sequence[TaxBracket]) -> float:
    """Rate applied to the next dollar of ``taxable_income``."""
    for bracket in brackets:
        if taxable_income < bracket.upper:
            return bracket.rate
    return brackets[-1].rate


def get_bracket_ceiling(
    filing_status: str,
    target_rate: float,
    year: int,
    tax_tables: Optional[Dict[str, Dict]] = None,
) -> Union[int, float]:
    """Upper bound of the bracket taxed at ``target_rate``.

    When no bracket has exactly ``target_rate`` the ceiling of the highest
    bracket below it is returned and the gap is logged.
    """
    brackets = get_federal_brackets(year, filing_status, tax_tables)
    for bracket in brackets:
        if bracket.rate == target_rate:
            return bracket.upper
    below = [b for b in brackets if b.rate < target_rate]
    logger.warning(
        "No %s%% federal bracket for %s in %s; using the next lower bracket",
        target_rate,
        filing_status,
        year,
    )
    if not below:
        return 0
    return below[-1].upper


def compute_federal_tax(
    taxable_income: int,
    filing_status: str = "single",
    year: int = 2026,
    tax_tables: Optional[Dict[str, Dict]] = None,
) -> int:
    """Compute federal income tax due on taxable income (after deductions)."""
    return compute_progressive_tax(
        taxable_income, get_federal_brackets(year, filing_status, tax_tables)
    )


def _state_rules(tables: Dict, state: Optional[str]) -> Optional[Dict]:
    if not state:
        return None
    return tables.get("state", {}).get(state.upper())


def _build_state_brackets(tables: Dict, state: Optional[str], filing_status: str) -> Tuple[TaxBracket, ...]:
    rules = _state_rules(tables, state)
    if rules is None or rules.get("type") == "none":
        return (TaxBracket(0, float("inf"), 0.0),)
    if rules["type"] == "flat":
        return (TaxBracket(0, float("inf"), rules["rate"]),)

    key = "married_filing_jointly" if filing_status == "married_filing_jointly" else "single"
    status_rules = rules.get(key)
    if status_rules is None:
        logger.warning(
            "No bracket table for progressive state %s; applying top rate %s%%",
            state,
            rules["rate"],
        )
        return (TaxBracket(0, float("inf"), rules["rate"]),)
    return _brackets_from_rows(status_rules["brackets"])


@lru_cache(maxsize=None)
def _default_state_brackets(state: Optional[str], filing_status: str) -> Tuple[TaxBracket, ...]:
    return _build_state_brackets(resolve_tables(), state, filing_status)


def get_state_brackets(
    state: Optional[str],
    filing_status: str = "single",
    tax_tables: Optional[Dict[str, Dict]] = None,
) -> Tuple[TaxBracket, ...]:
    if tax_tables is None:
        return _default_state_brackets(state, filing_status)
    return _build_state_brackets(tax_tables, state, filing_status)


def get_state_rate(state: Optional[str], tax_tables: Optional[Dict[str, Dict]] = None) -> float:
    """Flat or top marginal state rate (0 for states without income tax)."""
    rules = _state_rules(resolve_tables(tax_tables), state)
    if rules is None:
        return 0.0
    return float(rules.get("rate", 0.0))


def is_known_state(state: Optional[str], tax_tables: Optional[Dict[str, Dict]] = None) -> bool:
    return state is None or _state_rules(resolve_tables(tax_tables), state) is not None


def compute_state_tax(
    taxable_income: int,
    state: Optional[str] = None,
    filing_status: str = "single",
    tax_tables: Optional[Dict[str, Dict]] = None,
    state_tax_rate: Optional[float] = None,
) -> int:
    """Compute state income tax on ``taxable_income``.

    ``taxable_income`` should already include the federal standard deduction.
    ``state_tax_rate`` replaces the state's own rules with a flat rate.
    """
    if taxable_income <= 0:
        return 0
    if state_tax_rate is not None:
        return apply_rate(taxable_income, state_tax_rate)
    return compute_progressive_tax(
        taxable_income, get_state_brackets(state, filing_status, tax_tables)
    )


def compute_year_tax(
    ordinary_income: int,
    filing_status: str,
    state: Optional[str],
    year: int,
    *,
    ss_benefits: int = 0,
    tax_exempt_income: int = 0,
    age: Optional[int] = None,
    spouse_age: Optional[int] = None,
    state_tax_rate: Optional[float] = None,
    irmaa_magi: Optional[int] = None,
    tax_tables: Optional[Dict[str, Dict]] = None,
) -> YearTax:
    """Federal tax, state tax, MAGI and IRMAA for one year of income.

    Parameters
    ----------
    ordinary_income : int
        Conversions, distributions and other taxable income in cents.
    filing_status, state : str
        Household filing status and two-letter state code (``None`` for no
        state income tax).
    year : int
        Calendar year selecting the indexed brackets.
    ss_benefits, tax_exempt_income : int, optional
        Total Social Security received and tax-exempt interest.
    age, spouse_age : int, optional
        Used for the additional standard deduction and Medicare eligibility.
        IRMAA is only charged when ``age`` is ``None`` or at least 65.
    state_tax_rate : float, optional
        Flat state rate overriding the state's own rules.
    irmaa_magi : int, optional
        MAGI to resolve IRMAA against when it should not be this year's MAGI
        (look-back years).

    Returns
    -------
    YearTax
    """
    taxable_ss = calculate_taxable_ss(
        ss_benefits, ordinary_income, tax_exempt_income, filing_status, tax_tables
    )
    agi = ordinary_income + taxable_ss
    deduction = get_standard_deduction(filing_status, age, spouse_age, year, tax_tables)
    taxable_income = max(0, agi - deduction)

    federal = compute_federal_tax(taxable_income, filing_status, year, tax_tables)
    state_tax = compute_state_tax(
        taxable_income, state, filing_status, tax_tables, state_tax_rate
    )
    magi = agi + tax_exempt_income + (ss_benefits - taxable_ss)

    tier_index = 0
    surcharge = 0
    if age is None or age >= MEDICARE_AGE:
        tier = get_irmaa_tier(
            magi if irmaa_magi is None else irmaa_magi,
            filing_status == "married_filing_jointly",
            year,
            tax_tables,
        )
        tier_index = tier.index
        surcharge = tier.annual_surcharge

    return YearTax(
        agi=agi,
        taxable_income=taxable_income,
        taxable_ss=taxable_ss,
        federal_tax=federal,
        state_tax=state_tax,
        magi=magi,
        irmaa_tier=tier_index,
        irmaa_surcharge=surcharge,
    )


__all__ = [
    "MEDICARE_AGE",
    "TaxBracket",
    "YearTax",
    "get_federal_brackets",
    "get_standard_deduction",
    "get_bracket_ceiling",
    "get_state_brackets",
    "get_state_rate",
    "is_known_state",
    "compute_progressive_tax",
    "marginal_rate",
    "compute_federal_tax",
    "compute_state_tax",
    "compute_year_tax",
]
