"""Simulation orchestrator.

:func:`run_simulation` validates the inputs, picks the scenario pair for the
product family, runs the baseline and the strategy, and hands both to the
comparison metrics.  :func:`simulate` is the same thing at a JSON boundary: a
plain mapping in, a plain mapping out.

Example
-------

>>> result = run_simulation(
...     HouseholdProfile(age=62, end_age=85, traditional_balance=50000000,
...                      growth_rate=7, federal_tax_rate=24, state_tax_rate=0),
...     "fia",
...     start_year=2026,
... )
>>> result.strategy[0].conversion_amount
58850000
"""

from __future__ import annotations

import logging
from typing import Dict, Optional, Union

from .calculators.comparison import (
    calculate_break_even_age,
    calculate_heir_benefit,
    calculate_tax_savings,
    compare_lifetime_wealth,
    summarize_guaranteed_income,
)
from .calculators.growth import run_growth_baseline, run_growth_strategy
from .calculators.guaranteed_income import run_gi_baseline, run_gi_strategy
from .calculators.products import get_product, product_from_dict
from .calculators.taxes import is_known_state
from .models import (
    CONVERSION_TYPES,
    FILING_STATUSES,
    PAYOUT_OPTIONS,
    PAYOUT_TYPES,
    PRODUCT_FAMILIES,
    HouseholdProfile,
    InvalidInputError,
    ProductConfig,
    SimulationResult,
)

logger = logging.getLogger(__name__)

ProductLike = Union[str, ProductConfig, Dict]

_MONEY_FIELDS = (
    "traditional_balance",
    "roth_balance",
    "taxable_balance",
    "ss_annual_amount",
    "spouse_ss_annual_amount",
    "other_income",
    "tax_exempt_income",
    "fixed_conversion_amount",
)
_RATE_FIELDS = ("federal_tax_rate", "state_tax_rate", "heir_tax_rate", "conversion_target_rate")
_GROWTH_RATE_FIELDS = ("growth_rate", "baseline_growth_rate", "annuity_credited_rate", "ss_cola_rate")
_COUNT_FIELDS = ("years_to_defer_conversion", "conversion_years", "irmaa_lookback_years")


def _is_cents(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_rate(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def resolve_product(product: ProductLike) -> ProductConfig:
    """Catalog id, custom mapping or ready-made :class:`ProductConfig`."""
    if isinstance(product, ProductConfig):
        return product
    if isinstance(product, dict):
        try:
            return product_from_dict(product)
        except (KeyError, TypeError) as exc:
            raise InvalidInputError(f"Invalid product definition: {exc}") from None
    return get_product(product)


def projection_years(profile: HouseholdProfile, start_year: int, end_year: Optional[int]) -> int:
    if end_year is None:
        end_year = start_year + (profile.end_age - profile.age)
    return end_year - start_year + 1


def validate_inputs(
    profile: HouseholdProfile,
    product: ProductConfig,
    start_year: int,
    end_year: Optional[int] = None,
    tax_tables: Optional[Dict] = None,
) -> None:
    """Raise :class:`InvalidInputError` describing the first unusable input."""
    if profile.age < 0 or profile.age >= profile.end_age:
        raise InvalidInputError(
            f"age ({profile.age}) must be non-negative and below end_age ({profile.end_age})"
        )
    if profile.spouse_age is not None and profile.spouse_age < 0:
        raise InvalidInputError("spouse_age must be non-negative")
    if end_year is not None and start_year > end_year:
        raise InvalidInputError(f"start_year ({start_year}) is after end_year ({end_year})")
    if end_year is not None and profile.age + (end_year - start_year) > profile.end_age:
        raise InvalidInputError(
            f"end_year {end_year} runs past end_age {profile.end_age} (age {profile.age} in {start_year})"
        )
    if profile.filing_status not in FILING_STATUSES:
        raise InvalidInputError(f"Unknown filing status: {profile.filing_status!r}")
    if not is_known_state(profile.state, tax_tables):
        raise InvalidInputError(f"Unknown state: {profile.state!r}")
    if profile.conversion_type not in CONVERSION_TYPES:
        raise InvalidInputError(f"Unknown conversion type: {profile.conversion_type!r}")
    if profile.payout_type not in PAYOUT_TYPES:
        raise InvalidInputError(f"Unknown payout type: {profile.payout_type!r}")
    if profile.payout_option not in PAYOUT_OPTIONS:
        raise InvalidInputError(f"Unknown payout option: {profile.payout_option!r}")

    for name in _MONEY_FIELDS:
        value = getattr(profile, name)
        if not _is_cents(value) or value < 0:
            raise InvalidInputError(f"{name} must be a non-negative integer number of cents")
    for entry in profile.non_ssi_income:
        if not (_is_cents(entry.gross_taxable) and _is_cents(entry.tax_exempt)):
            raise InvalidInputError(f"non-SSI income for {entry.year} must be integer cents")
        if entry.gross_taxable < 0 or entry.tax_exempt < 0:
            raise InvalidInputError(f"non-SSI income for {entry.year} must be non-negative")
    for name in _RATE_FIELDS:
        value = getattr(profile, name)
        if value is not None and (not _is_rate(value) or not 0 <= value <= 100):
            raise InvalidInputError(f"{name} must be between 0 and 100")
    for name in _GROWTH_RATE_FIELDS:
        value = getattr(profile, name)
        if value is not None and (not _is_rate(value) or value < -100):
            raise InvalidInputError(f"{name} must be a number of at least -100")
    for name in _COUNT_FIELDS:
        if getattr(profile, name) < 0:
            raise InvalidInputError(f"{name} must be non-negative")
    if profile.conversion_end_age is not None and profile.conversion_end_age < profile.age:
        raise InvalidInputError("conversion_end_age is before the current age")
    if profile.conversion_type == "bracket_fill" and profile.conversion_target_rate is None:
        raise InvalidInputError("bracket_fill conversions need a conversion_target_rate")

    if product.family not in PRODUCT_FAMILIES:
        raise InvalidInputError(f"Unknown product family: {product.family!r}")
    if product.is_guaranteed_income and (not product.payout_table or product.roll_up is None):
        raise InvalidInputError(
            f"Guaranteed-income product {product.id!r} needs a payout table and roll-up"
        )


def run_simulation(
    profile: HouseholdProfile,
    product: ProductLike,
    start_year: int,
    end_year: Optional[int] = None,
    tax_tables: Optional[Dict] = None,
) -> SimulationResult:
    """Project baseline and strategy and compare them.

    Parameters
    ----------
    profile : HouseholdProfile
        The household.
    product : str, dict or ProductConfig
        Catalog identifier or a custom product definition.
    start_year : int
        Calendar year of the first projected row.
    end_year : int, optional
        Last projected calendar year; defaults to the year the primary reaches
        ``profile.end_age``.
    tax_tables : dict, optional
        Replacement for the packaged tax tables.

    Returns
    -------
    SimulationResult
    """
    product = resolve_product(product)
    validate_inputs(profile, product, start_year, end_year, tax_tables)
    years = projection_years(profile, start_year, end_year)
    logger.debug("Simulating %s for %s years from %s", product.id, years, start_year)

    gi_rows = ()
    gi_summary = None
    if product.is_guaranteed_income:
        strategy, gi_rows, final = run_gi_strategy(profile, product, start_year, years, tax_tables)
        withdrawals = [r.gross_payment for r in gi_rows]
        baseline = run_gi_baseline(profile, start_year, years, withdrawals, tax_tables)
        gi_summary = summarize_guaranteed_income(gi_rows, final)
    else:
        baseline = run_growth_baseline(profile, start_year, years, tax_tables)
        strategy = run_growth_strategy(profile, product, start_year, years, tax_tables)

    heir_rate = profile.heir_tax_rate
    return SimulationResult(
        product_id=product.id,
        family=product.family,
        baseline=baseline,
        strategy=strategy,
        break_even_age=calculate_break_even_age(baseline, strategy),
        total_tax_savings=calculate_tax_savings(baseline, strategy),
        heir_benefit=calculate_heir_benefit(baseline, strategy, heir_rate),
        lifetime_wealth=compare_lifetime_wealth(baseline, strategy, heir_rate),
        gi_years=gi_rows,
        gi_summary=gi_summary,
        meta={"start_year": start_year, "years": years},
    )


def simulate(bundle: Dict) -> Dict:
    """Run a simulation from a JSON-style input bundle.

    ``bundle`` holds ``household_profile`` (mapping), ``product`` (catalog id
    or mapping), ``start_year`` and optionally ``end_year``.
    """
    try:
        profile_data = bundle["household_profile"]
        product = bundle["product"]
        start_year = int(bundle["start_year"])
    except KeyError as exc:
        raise InvalidInputError(f"Missing input field: {exc.args[0]}") from None
    try:
        profile = HouseholdProfile.from_dict(profile_data)
    except TypeError as exc:
        raise InvalidInputError(f"Invalid household profile: {exc}") from None
    end_year = bundle.get("end_year")
    result = run_simulation(
        profile,
        product,
        start_year,
        None if end_year is None else int(end_year),
        bundle.get("tax_tables"),
    )
    return result.to_dict()


__all__ = [
    "resolve_product",
    "projection_years",
    "validate_inputs",
    "run_simulation",
    "simulate",
]
