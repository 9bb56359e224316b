"""Growth-annuity scenarios: the do-nothing baseline and the Roth conversion strategy.

Each scenario is a pure single-year step function over an explicit, immutable
:class:`GrowthState`; a runner folds the step over the projection horizon and
returns the emitted :class:`~roth_planner.models.YearRow` sequence.

Baseline
    The traditional IRA is left alone: every balance compounds at the
    baseline rate, nothing is withdrawn, converted or taxed.
Strategy
    The traditional balance is moved into a growth annuity (issue bonus on the
    opening balance).  Each year the balance grows, anniversary bonuses for
    contract years 1-3 are credited on the grown value, and inside the
    conversion window the balance (or a fixed amount) is converted to Roth.
    Taxes on conversions are reported but never debited from the balances.

The conversion helpers at the bottom of this module are shared with the
guaranteed-income scenarios.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Callable, Dict, Optional, Tuple

from ..models import HouseholdProfile, ProductConfig, YearRow
from ..money import apply_rate, grow
from .advisory import conversion_room
from .products import resolve_bonus, resolve_surrender_charge
from .social_security import calculate_taxable_ss, household_social_security
from .taxes import YearTax, compute_year_tax, get_state_rate

logger = logging.getLogger(__name__)

ANNIVERSARY_BONUS_YEARS = 3


@dataclass(frozen=True)
class StepContext:
    """Read-only inputs shared by every step of one run."""

    profile: HouseholdProfile
    start_year: int
    product: Optional[ProductConfig] = None
    tax_tables: Optional[Dict] = None


@dataclass(frozen=True)
class GrowthState:
    year_index: int
    traditional: int
    roth: int
    taxable: int
    cumulative_net_income: int = 0
    magi_history: Tuple[Tuple[int, int], ...] = ()


@dataclass(frozen=True)
class YearIncome:
    ss_income: int
    other_income: int
    tax_exempt_income: int


@dataclass(frozen=True)
class ConversionTax:
    """Tax on a year's income with and without a conversion."""

    base: YearTax
    combined: YearTax
    federal: int
    state: int
    irmaa: int

    @property
    def total(self) -> int:
        return self.federal + self.state + self.irmaa


def year_income(profile: HouseholdProfile, year_offset: int, year: int) -> YearIncome:
    other, exempt = profile.income_for_year(year)
    return YearIncome(household_social_security(profile, year_offset), other, exempt)


def conversion_amount(
    profile: HouseholdProfile, age: int, balance: int, room: Optional[int] = None
) -> int:
    """Amount converted at ``age`` from a post-growth ``balance``.

    ``full_conversion`` and ``optimized_amount`` both convert the entire
    balance; ``fixed_amount`` converts at most the configured amount and
    ``bracket_fill`` at most ``room`` (see :func:`bracket_room`).
    """
    if balance <= 0 or profile.conversion_type == "no_conversion":
        return 0
    first_age = profile.age + profile.years_to_defer_conversion
    if age < first_age or age > profile.last_conversion_age:
        return 0
    if profile.conversion_type == "fixed_amount":
        return min(profile.fixed_conversion_amount, balance)
    if profile.conversion_type == "bracket_fill":
        return 0 if room is None else min(balance, room)
    return balance


def bracket_room(
    ctx: StepContext, year_offset: int, income: YearIncome, ordinary_income: int
) -> int:
    """Conversion that fills the profile's target bracket on top of ``ordinary_income``.

    With ``conversion_irmaa_cap`` the room also stops one cent short of the
    next IRMAA tier.
    """
    profile = ctx.profile
    year = ctx.start_year + year_offset
    before = compute_year_tax(
        ordinary_income,
        profile.filing_status,
        profile.state,
        year,
        ss_benefits=income.ss_income,
        tax_exempt_income=income.tax_exempt_income,
        age=profile.age_in(year_offset),
        spouse_age=profile.spouse_age_in(year_offset),
        tax_tables=ctx.tax_tables,
    )
    return conversion_room(
        before.taxable_income,
        before.magi,
        profile.filing_status,
        year,
        profile.conversion_target_rate,
        avoid_irmaa=profile.conversion_irmaa_cap,
        tax_tables=ctx.tax_tables,
    )


def lagged_magi(history: Tuple[Tuple[int, int], ...], lookback: int, slot: int) -> Optional[int]:
    """MAGI from ``lookback`` years ago, ``None`` when there is no such year yet."""
    if lookback <= 0 or len(history) < lookback:
        return None
    return history[-lookback][slot]


def assess_conversion(
    ctx: StepContext,
    year_offset: int,
    income: YearIncome,
    ordinary_income: int,
    conversion: int,
    history: Tuple[Tuple[int, int], ...] = (),
) -> ConversionTax:
    """Tax a year's ``ordinary_income`` plus ``conversion``.

    The conversion's federal and state tax is either a flat assumption
    (``federal_tax_rate`` on the profile) or the bracket tax of the
    conversion stacked on top of the year's other income.  The IRMAA impact is
    the difference in surcharge with and without the conversion.
    ``history`` holds ``(magi_with, magi_without)`` pairs of earlier years for
    look-back IRMAA.
    """
    profile = ctx.profile
    year = ctx.start_year + year_offset
    lookback = profile.irmaa_lookback_years

    def _tax(amount: int, slot: int) -> YearTax:
        return compute_year_tax(
            amount,
            profile.filing_status,
            profile.state,
            year,
            ss_benefits=income.ss_income,
            tax_exempt_income=income.tax_exempt_income,
            age=profile.age_in(year_offset),
            spouse_age=profile.spouse_age_in(year_offset),
            state_tax_rate=profile.state_tax_rate,
            irmaa_magi=lagged_magi(history, lookback, slot),
            tax_tables=ctx.tax_tables,
        )

    base = _tax(ordinary_income, 1)
    if conversion or lookback > 0:
        combined = _tax(ordinary_income + conversion, 0)
    else:
        combined = base

    if conversion and profile.federal_tax_rate is not None:
        state_rate = profile.state_tax_rate
        if state_rate is None:
            state_rate = get_state_rate(profile.state, ctx.tax_tables)
        federal = apply_rate(conversion, profile.federal_tax_rate)
        state = apply_rate(conversion, state_rate)
    else:
        federal = combined.federal_tax - base.federal_tax
        state = combined.state_tax - base.state_tax
    irmaa = combined.irmaa_surcharge - base.irmaa_surcharge
    return ConversionTax(base, combined, federal, state, irmaa)


def initial_baseline_state(profile: HouseholdProfile) -> GrowthState:
    return GrowthState(0, profile.traditional_balance, profile.roth_balance, profile.taxable_balance)


def initial_strategy_state(profile: HouseholdProfile, product: ProductConfig) -> GrowthState:
    opening = profile.traditional_balance
    opening += apply_rate(opening, resolve_bonus(product, "issue"))
    return GrowthState(0, opening, profile.roth_balance, profile.taxable_balance)


def baseline_step(state: GrowthState, ctx: StepContext) -> Tuple[GrowthState, YearRow]:
    profile = ctx.profile
    offset = state.year_index
    year = ctx.start_year + offset
    rate = profile.baseline_rate
    income = year_income(profile, offset, year)

    traditional = grow(state.traditional, rate)
    roth = grow(state.roth, rate)
    taxable = grow(state.taxable, rate)

    row = YearRow(
        year=year,
        age=profile.age_in(offset),
        spouse_age=profile.spouse_age_in(offset),
        traditional_balance=traditional,
        roth_balance=roth,
        taxable_balance=taxable,
        ss_income=income.ss_income,
        taxable_ss=calculate_taxable_ss(
            income.ss_income,
            income.other_income,
            income.tax_exempt_income,
            profile.filing_status,
            ctx.tax_tables,
        ),
        other_income=income.other_income,
        tax_exempt_income=income.tax_exempt_income,
        magi=income.other_income + income.tax_exempt_income + income.ss_income,
        net_worth=traditional + roth + taxable,
        cumulative_net_income=state.cumulative_net_income,
    )
    return replace(state, year_index=offset + 1, traditional=traditional, roth=roth, taxable=taxable), row


def strategy_step(state: GrowthState, ctx: StepContext) -> Tuple[GrowthState, YearRow]:
    profile, product = ctx.profile, ctx.product
    offset = state.year_index
    year = ctx.start_year + offset
    age = profile.age_in(offset)
    contract_year = offset + 1

    traditional = grow(state.traditional, profile.growth_rate)
    if contract_year <= ANNIVERSARY_BONUS_YEARS:
        traditional += apply_rate(traditional, resolve_bonus(product, f"anniversary{contract_year}"))

    income = year_income(profile, offset, year)
    room = None
    if profile.conversion_type == "bracket_fill":
        room = bracket_room(ctx, offset, income, income.other_income)
    converted = conversion_amount(profile, age, traditional, room)
    tax = assess_conversion(
        ctx, offset, income, income.other_income, converted, state.magi_history
    )

    traditional -= converted
    roth = grow(state.roth, profile.growth_rate) + converted
    taxable = grow(state.taxable, profile.growth_rate)

    surrender_pct = resolve_surrender_charge(product, contract_year)
    cumulative = state.cumulative_net_income - tax.total

    row = YearRow(
        year=year,
        age=age,
        spouse_age=profile.spouse_age_in(offset),
        traditional_balance=traditional,
        roth_balance=roth,
        taxable_balance=taxable,
        conversion_amount=converted,
        ss_income=income.ss_income,
        taxable_ss=tax.combined.taxable_ss,
        other_income=income.other_income,
        tax_exempt_income=income.tax_exempt_income,
        magi=tax.combined.magi,
        federal_tax=tax.federal,
        state_tax=tax.state,
        irmaa_surcharge=tax.irmaa,
        total_tax=tax.total,
        net_worth=traditional + roth + taxable,
        cumulative_net_income=cumulative,
        surrender_charge_percent=surrender_pct,
        surrender_value=traditional - apply_rate(traditional, surrender_pct),
    )
    new_state = GrowthState(
        year_index=offset + 1,
        traditional=traditional,
        roth=roth,
        taxable=taxable,
        cumulative_net_income=cumulative,
        magi_history=state.magi_history + ((tax.combined.magi, tax.base.magi),),
    )
    return new_state, row


def fold_years(
    step: Callable, state, ctx: StepContext, years: int
) -> Tuple[object, Tuple[YearRow, ...]]:
    """Apply ``step`` ``years`` times, returning the final state and the rows."""
    rows = []
    for _ in range(years):
        state, row = step(state, ctx)
        rows.append(row)
    return state, tuple(rows)


def run_growth_baseline(
    profile: HouseholdProfile,
    start_year: int,
    years: int,
    tax_tables: Optional[Dict] = None,
) -> Tuple[YearRow, ...]:
    ctx = StepContext(profile, start_year, None, tax_tables)
    _, rows = fold_years(baseline_step, initial_baseline_state(profile), ctx, years)
    return rows


def run_growth_strategy(
    profile: HouseholdProfile,
    product: ProductConfig,
    start_year: int,
    years: int,
    tax_tables: Optional[Dict] = None,
) -> Tuple[YearRow, ...]:
    ctx = StepContext(profile, start_year, product, tax_tables)
    logger.debug("Running growth strategy for %s over %s years", product.id, years)
    _, rows = fold_years(strategy_step, initial_strategy_state(profile, product), ctx, years)
    return rows


__all__ = [
    "StepContext",
    "GrowthState",
    "YearIncome",
    "ConversionTax",
    "year_income",
    "conversion_amount",
    "bracket_room",
    "lagged_magi",
    "assess_conversion",
    "initial_baseline_state",
    "initial_strategy_state",
    "baseline_step",
    "strategy_step",
    "fold_years",
    "run_growth_baseline",
    "run_growth_strategy",
]
