"""Summary metrics comparing a baseline trajectory with a strategy trajectory.

Both trajectories are sequences of :class:`~roth_planner.models.YearRow` of
equal length.  "Cumulative wealth" for a year is the year's net worth plus the
after-tax income received so far (distributions minus federal tax, state tax
and IRMAA).  The same formulas are applied to both sides so that differences
and percentages stay meaningful.

Example
-------

>>> percent_change(0, 5000000)
0.0
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence

import numpy as np

from ..models import GISummary, GIYearRow, LifetimeWealth, YearRow
from ..money import apply_rate


@dataclass(frozen=True)
class CrossoverPoint:
    age: int
    year: int
    direction: str
    wealth_difference: int


@dataclass(frozen=True)
class BreakEvenAnalysis:
    simple_break_even: Optional[int]
    sustained_break_even: Optional[int]
    net_benefit: int
    crossover_points: List[CrossoverPoint]


def _wealth_series(rows: Sequence[YearRow]) -> np.ndarray:
    return np.array([r.cumulative_wealth for r in rows], dtype=np.int64)


def _check_lengths(baseline: Sequence[YearRow], strategy: Sequence[YearRow]) -> None:
    if len(baseline) != len(strategy):
        raise ValueError(
            f"baseline has {len(baseline)} years but strategy has {len(strategy)}"
        )


def calculate_break_even_age(
    baseline: Sequence[YearRow], strategy: Sequence[YearRow]
) -> Optional[int]:
    """First age at which strategy cumulative wealth exceeds the baseline's."""
    _check_lengths(baseline, strategy)
    if not strategy:
        return None
    ahead = np.flatnonzero(_wealth_series(strategy) > _wealth_series(baseline))
    if ahead.size == 0:
        return None
    return strategy[int(ahead[0])].age


def analyze_break_even(
    baseline: Sequence[YearRow], strategy: Sequence[YearRow]
) -> BreakEvenAnalysis:
    """Every crossover between the trajectories plus simple/sustained break-even.

    A crossover is a year in which the leading trajectory changes; the
    baseline is taken to lead before the first year, so a strategy lead in
    the first year is itself a crossover.  The sustained break-even is the
    first crossover to the strategy that is never reversed.  ``net_benefit``
    is the final-year difference in cumulative wealth (strategy minus
    baseline).
    """
    _check_lengths(baseline, strategy)
    diff = _wealth_series(strategy) - _wealth_series(baseline)
    points = []
    last = "baseline_ahead"
    for i, d in enumerate(diff):
        direction = "strategy_ahead" if d > 0 else "baseline_ahead"
        if direction != last:
            points.append(
                CrossoverPoint(strategy[i].age, strategy[i].year, direction, int(d))
            )
        last = direction

    simple = next((p.age for p in points if p.direction == "strategy_ahead"), None)
    sustained = None
    for p in points:
        if p.direction != "strategy_ahead":
            continue
        if not any(q.age > p.age and q.direction == "baseline_ahead" for q in points):
            sustained = p.age
            break
    net_benefit = int(diff[-1]) if diff.size else 0
    return BreakEvenAnalysis(simple, sustained, net_benefit, points)


def total_tax(rows: Sequence[YearRow]) -> int:
    return int(sum(r.total_tax for r in rows))


def calculate_tax_savings(baseline: Sequence[YearRow], strategy: Sequence[YearRow]) -> int:
    """Baseline total tax minus strategy total tax.

    Conversions front-load tax, so this is often negative.
    """
    return total_tax(baseline) - total_tax(strategy)


def calculate_legacy(row: YearRow, heir_tax_rate: float) -> int:
    """Balances left to heirs after they pay ``heir_tax_rate`` on traditional money."""
    return row.net_worth - apply_rate(row.traditional_balance, heir_tax_rate)


def calculate_heir_benefit(
    baseline: Sequence[YearRow], strategy: Sequence[YearRow], heir_tax_rate: float
) -> int:
    if not baseline or not strategy:
        return 0
    return calculate_legacy(strategy[-1], heir_tax_rate) - calculate_legacy(
        baseline[-1], heir_tax_rate
    )


def calculate_lifetime_wealth(rows: Sequence[YearRow], heir_tax_rate: float) -> int:
    """Net legacy plus after-tax distributions received, less IRMAA paid."""
    if not rows:
        return 0
    distributions = np.array([r.distribution for r in rows], dtype=np.int64)
    income_taxes = np.array([r.federal_tax + r.state_tax for r in rows], dtype=np.int64)
    irmaa = np.array([r.irmaa_surcharge for r in rows], dtype=np.int64)
    after_tax = int(np.sum(distributions - income_taxes)) - int(np.sum(irmaa))
    return calculate_legacy(rows[-1], heir_tax_rate) + after_tax


def percent_change(baseline_value: int, strategy_value: int) -> float:
    """Percent improvement over the baseline, 0.0 when the baseline is not positive."""
    if baseline_value <= 0:
        return 0.0
    return (strategy_value - baseline_value) / baseline_value * 100.0


def compare_lifetime_wealth(
    baseline: Sequence[YearRow], strategy: Sequence[YearRow], heir_tax_rate: float
) -> LifetimeWealth:
    base = calculate_lifetime_wealth(baseline, heir_tax_rate)
    strat = calculate_lifetime_wealth(strategy, heir_tax_rate)
    return LifetimeWealth(base, strat, strat - base, percent_change(base, strat))


def summarize_guaranteed_income(gi_rows: Sequence[GIYearRow], final_state) -> GISummary:
    """Headline figures of a GI run from its GI rows and final state."""
    purchase = next((r for r in gi_rows if r.phase == "purchase"), None)
    income_rows = [r for r in gi_rows if r.phase == "income"]
    first_income = income_rows[0] if income_rows else None
    return GISummary(
        income_base_at_start=final_state.income_base_at_start,
        income_base_at_income_age=final_state.income_base_at_income,
        annual_gross_income=first_income.gross_payment if first_income else 0,
        first_year_net_income=final_state.first_year_net or 0,
        income_start_age=first_income.age if first_income else None,
        purchase_age=purchase.age if purchase else None,
        purchase_amount=final_state.purchase_amount,
        total_gross_paid=final_state.total_gross_paid,
        total_net_paid=int(sum(r.net_payment for r in income_rows)),
        total_rider_fees=final_state.total_rider_fees,
        payout_percent=round(final_state.payout_factor * 100.0, 4),
        depletion_age=final_state.depletion_age,
    )


__all__ = [
    "CrossoverPoint",
    "BreakEvenAnalysis",
    "calculate_break_even_age",
    "analyze_break_even",
    "total_tax",
    "calculate_tax_savings",
    "calculate_legacy",
    "calculate_heir_benefit",
    "calculate_lifetime_wealth",
    "percent_change",
    "compare_lifetime_wealth",
    "summarize_guaranteed_income",
]
