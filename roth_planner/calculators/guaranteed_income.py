"""Guaranteed-income (GI) annuity scenarios.

The strategy walks through four phases, each entered once and in order::

    conversion -> purchase -> deferral -> income

*Conversion* years move the traditional balance to Roth with the same
mechanics as the growth strategy.  In the *purchase* year the Roth balance
becomes the annuity premium and the product bonus is credited to the income
base, the account value, both or neither.  During *deferral* the income base
rolls up (simple or compound, tiered by deferral year, up to the product's
maximum period) while the account value earns the credited rate less the rider
fee.  From the income start age the income base is frozen and a guaranteed
payment of ``income base x payout factor`` is made every year; the account
value pays it until it is depleted, after which the carrier keeps paying.

The baseline keeps the traditional IRA and, from the same income start age,
takes systematic withdrawals equal to the guaranteed payment (never less than
the RMD) so both trajectories deliver comparable annual income.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Dict, Optional, Sequence, Tuple

from ..models import GIYearRow, HouseholdProfile, ProductConfig, YearRow
from ..money import apply_rate, grow, round_half_up
from .growth import (
    StepContext,
    assess_conversion,
    bracket_room,
    conversion_amount,
    fold_years,
    year_income,
)
from .products import get_payout_factor, get_roll_up_for_year, resolve_bonus
from .rmd import compute_rmd, is_rmd_year

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GISchedule:
    purchase_age: int
    income_start_age: int


@dataclass(frozen=True)
class GIState:
    year_index: int
    traditional: int
    roth: int
    taxable: int
    account_value: int = 0
    income_base: int = 0
    bonus_base: int = 0
    deferral_year: int = 0
    annual_payment: int = 0
    payout_factor: float = 0.0
    purchase_amount: int = 0
    income_base_at_start: int = 0
    income_base_at_income: int = 0
    first_year_net: Optional[int] = None
    depletion_age: Optional[int] = None
    cumulative_net_income: int = 0
    gi_cumulative_net: int = 0
    total_gross_paid: int = 0
    total_rider_fees: int = 0
    magi_history: Tuple[Tuple[int, int], ...] = ()


def gi_schedule(profile: HouseholdProfile) -> GISchedule:
    purchase_age = profile.age + max(0, profile.conversion_years)
    return GISchedule(purchase_age, max(profile.income_start_age, purchase_age + 1))


def gi_phase(profile: HouseholdProfile, year_offset: int) -> str:
    schedule = gi_schedule(profile)
    age = profile.age_in(year_offset)
    if age < schedule.purchase_age:
        return "conversion"
    if age == schedule.purchase_age:
        return "purchase"
    if age < schedule.income_start_age:
        return "deferral"
    return "income"


def birth_year(profile: HouseholdProfile, start_year: int) -> int:
    if profile.birth_year is not None:
        return profile.birth_year
    return start_year - profile.age


def _required_distribution(ctx: StepContext, balance: int, age: int) -> int:
    if not is_rmd_year(age, birth_year(ctx.profile, ctx.start_year)):
        return 0
    return min(balance, compute_rmd(balance, age))


def _rider_fee(product: ProductConfig, income_base: int, account_value: int) -> int:
    basis = account_value if product.rider_fee_basis == "account_value" else income_base
    return min(account_value, apply_rate(basis, product.rider_fee_rate))


def _credit_account(ctx: StepContext, account_value: int, income_base: int) -> Tuple[int, int]:
    """Credit a contract year's interest and deduct the rider fee."""
    credited = grow(account_value, ctx.profile.credited_rate)
    fee = _rider_fee(ctx.product, income_base, credited)
    return max(0, credited - fee), fee


def _purchase(ctx: StepContext, premium: int) -> Tuple[int, int]:
    """Opening ``(income_base, account_value)`` for ``premium``."""
    product = ctx.product
    bonus = apply_rate(premium, resolve_bonus(product, "issue"))
    routing = product.bonus_applies_to
    income_base = premium + (bonus if routing in ("income_base", "both") else 0)
    account_value = premium + (bonus if routing in ("account_value", "both") else 0)
    return income_base, account_value


def initial_strategy_state(profile: HouseholdProfile) -> GIState:
    return GIState(0, profile.traditional_balance, profile.roth_balance, profile.taxable_balance)


def strategy_step(state: GIState, ctx: StepContext) -> Tuple[GIState, Tuple[YearRow, GIYearRow]]:
    profile, product = ctx.profile, ctx.product
    offset = state.year_index
    year = ctx.start_year + offset
    age = profile.age_in(offset)
    phase = gi_phase(profile, offset)
    rate = profile.growth_rate

    # Traditional money not yet converted keeps growing and is subject to RMDs.
    rmd = _required_distribution(ctx, state.traditional, age)
    traditional = grow(state.traditional - rmd, rate)
    income = year_income(profile, offset, year)
    converted = 0
    if phase == "conversion":
        room = None
        if profile.conversion_type == "bracket_fill":
            room = bracket_room(ctx, offset, income, income.other_income + rmd)
        converted = conversion_amount(profile, age, traditional, room)
        traditional -= converted

    roth = state.roth
    income_base = state.income_base
    bonus_base = state.bonus_base
    account_value = state.account_value
    deferral_year = state.deferral_year
    payment = state.annual_payment
    factor = state.payout_factor
    purchase_amount = state.purchase_amount
    income_base_at_start = state.income_base_at_start
    income_base_at_income = state.income_base_at_income
    depletion_age = state.depletion_age
    roll_up_credited = 0
    fee = 0
    gross = 0

    if phase == "conversion":
        roth = grow(roth, rate) + converted
    elif phase == "purchase":
        purchase_amount = roth
        roth = 0
        income_base, account_value = _purchase(ctx, purchase_amount)
        bonus_base = income_base
        income_base_at_start = income_base
        account_value, fee = _credit_account(ctx, account_value, income_base)
        logger.debug("Purchased %s at age %s for %s cents", product.id, age, purchase_amount)
    elif phase == "deferral":
        deferral_year += 1
        roll_up = get_roll_up_for_year(product, deferral_year, profile.roll_up_option)
        if roll_up is not None:
            base = bonus_base if roll_up.compounding == "simple" else income_base
            roll_up_credited = apply_rate(base, roll_up.rate)
            income_base += roll_up_credited
        account_value, fee = _credit_account(ctx, account_value, income_base)
    else:
        if factor == 0.0:
            income_base_at_income = income_base
            factor = get_payout_factor(product, profile.payout_type, age, profile.payout_option)
            payment = round_half_up(income_base * factor)
        elif profile.payout_option == "increasing" and product.increasing_rate:
            payment = grow(payment, product.increasing_rate)
        gross = payment
        account_value -= gross
        if account_value <= 0 and depletion_age is None:
            depletion_age = age
        account_value = max(0, account_value)
        account_value, fee = _credit_account(ctx, account_value, income_base)

    taxable = grow(state.taxable, rate)

    taxed_payment = 0 if profile.gi_income_tax_free else gross
    ordinary = income.other_income + rmd + taxed_payment
    tax = assess_conversion(ctx, offset, income, ordinary, converted, state.magi_history)
    federal = tax.base.federal_tax + tax.federal
    state_tax = tax.base.state_tax + tax.state
    irmaa = tax.base.irmaa_surcharge + tax.irmaa
    total_tax = federal + state_tax + irmaa

    distribution = rmd + gross
    cumulative = state.cumulative_net_income + distribution - total_tax
    net_payment = gross - federal - state_tax if gross else 0
    first_year_net = state.first_year_net
    if gross and first_year_net is None:
        first_year_net = net_payment

    row = YearRow(
        year=year,
        age=age,
        spouse_age=profile.spouse_age_in(offset),
        traditional_balance=traditional,
        roth_balance=roth + account_value,
        taxable_balance=taxable,
        distribution=distribution,
        conversion_amount=converted,
        ss_income=income.ss_income,
        taxable_ss=tax.combined.taxable_ss,
        other_income=income.other_income,
        tax_exempt_income=income.tax_exempt_income,
        magi=tax.combined.magi,
        federal_tax=federal,
        state_tax=state_tax,
        irmaa_surcharge=irmaa,
        total_tax=total_tax,
        net_worth=traditional + roth + account_value + taxable,
        cumulative_net_income=cumulative,
    )
    gi_row = GIYearRow(
        year=year,
        age=age,
        phase=phase,
        income_base=income_base,
        account_value=account_value,
        gross_payment=gross,
        net_payment=net_payment,
        rider_fee=fee,
        roll_up_credited=roll_up_credited,
        cumulative_net_income=state.gi_cumulative_net + net_payment,
    )
    new_state = replace(
        state,
        year_index=offset + 1,
        traditional=traditional,
        roth=roth,
        taxable=taxable,
        account_value=account_value,
        income_base=income_base,
        bonus_base=bonus_base,
        deferral_year=deferral_year,
        annual_payment=payment,
        payout_factor=factor,
        purchase_amount=purchase_amount,
        income_base_at_start=income_base_at_start,
        income_base_at_income=income_base_at_income,
        first_year_net=first_year_net,
        depletion_age=depletion_age,
        cumulative_net_income=cumulative,
        gi_cumulative_net=state.gi_cumulative_net + net_payment,
        total_gross_paid=state.total_gross_paid + gross,
        total_rider_fees=state.total_rider_fees + fee,
        magi_history=state.magi_history + ((tax.combined.magi, tax.base.magi),),
    )
    return new_state, (row, gi_row)


@dataclass(frozen=True)
class BaselineState:
    year_index: int
    traditional: int
    roth: int
    taxable: int
    cumulative_net_income: int = 0
    magi_history: Tuple[Tuple[int, int], ...] = ()


@dataclass(frozen=True)
class BaselineContext:
    step: StepContext
    withdrawals: Tuple[int, ...]


def baseline_step(state: BaselineState, bctx: BaselineContext) -> Tuple[BaselineState, YearRow]:
    ctx = bctx.step
    profile = ctx.profile
    offset = state.year_index
    year = ctx.start_year + offset
    age = profile.age_in(offset)
    rate = profile.baseline_rate

    target = bctx.withdrawals[offset] if offset < len(bctx.withdrawals) else 0
    rmd = _required_distribution(ctx, state.traditional, age)
    withdrawal = min(state.traditional, max(target, rmd))
    traditional = grow(state.traditional - withdrawal, rate)
    roth = grow(state.roth, rate)
    taxable = grow(state.taxable, rate)

    income = year_income(profile, offset, year)
    tax = assess_conversion(
        ctx, offset, income, income.other_income + withdrawal, 0, state.magi_history
    )
    year_tax = tax.combined
    cumulative = state.cumulative_net_income + withdrawal - year_tax.total_tax

    row = YearRow(
        year=year,
        age=age,
        spouse_age=profile.spouse_age_in(offset),
        traditional_balance=traditional,
        roth_balance=roth,
        taxable_balance=taxable,
        distribution=withdrawal,
        ss_income=income.ss_income,
        taxable_ss=year_tax.taxable_ss,
        other_income=income.other_income,
        tax_exempt_income=income.tax_exempt_income,
        magi=year_tax.magi,
        federal_tax=year_tax.federal_tax,
        state_tax=year_tax.state_tax,
        irmaa_surcharge=year_tax.irmaa_surcharge,
        total_tax=year_tax.total_tax,
        net_worth=traditional + roth + taxable,
        cumulative_net_income=cumulative,
    )
    new_state = BaselineState(
        year_index=offset + 1,
        traditional=traditional,
        roth=roth,
        taxable=taxable,
        cumulative_net_income=cumulative,
        magi_history=state.magi_history + ((year_tax.magi, year_tax.magi),),
    )
    return new_state, row


def run_gi_strategy(
    profile: HouseholdProfile,
    product: ProductConfig,
    start_year: int,
    years: int,
    tax_tables: Optional[Dict] = None,
) -> Tuple[Tuple[YearRow, ...], Tuple[GIYearRow, ...], GIState]:
    """Fold the GI strategy over ``years`` years.

    Returns the strategy rows, the parallel GI rows and the final state
    (which carries the lifetime totals used for the GI summary).
    """
    ctx = StepContext(profile, start_year, product, tax_tables)
    schedule = gi_schedule(profile)
    logger.debug(
        "Running GI strategy for %s: purchase at %s, income from %s",
        product.id,
        schedule.purchase_age,
        schedule.income_start_age,
    )
    final, pairs = fold_years(strategy_step, initial_strategy_state(profile), ctx, years)
    rows = tuple(p[0] for p in pairs)
    gi_rows = tuple(p[1] for p in pairs)
    return rows, gi_rows, final


def run_gi_baseline(
    profile: HouseholdProfile,
    start_year: int,
    years: int,
    withdrawals: Sequence[int] = (),
    tax_tables: Optional[Dict] = None,
) -> Tuple[YearRow, ...]:
    """Baseline for a GI comparison.

    ``withdrawals`` gives the target gross withdrawal for each year, normally
    the strategy's guaranteed payments.
    """
    ctx = StepContext(profile, start_year, None, tax_tables)
    initial = BaselineState(0, profile.traditional_balance, profile.roth_balance, profile.taxable_balance)
    _, rows = fold_years(baseline_step, initial, BaselineContext(ctx, tuple(withdrawals)), years)
    return rows


__all__ = [
    "GISchedule",
    "GIState",
    "gi_schedule",
    "gi_phase",
    "initial_strategy_state",
    "strategy_step",
    "BaselineState",
    "baseline_step",
    "run_gi_strategy",
    "run_gi_baseline",
]
