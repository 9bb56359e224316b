"""Tests for the guaranteed-income strategy and its baseline."""

from dataclasses import replace

import pytest

from roth_planner.calculators import guaranteed_income as gi
from roth_planner.calculators.products import get_product
from roth_planner.models import HouseholdProfile


@pytest.fixture
def profile():
    """Age 60, $100k traditional, one conversion year, income from 65."""
    return HouseholdProfile(
        age=60,
        end_age=80,
        filing_status="single",
        traditional_balance=10000000,
        growth_rate=5,
        annuity_credited_rate=0,
        federal_tax_rate=24,
        state_tax_rate=0,
        conversion_years=1,
        income_start_age=65,
    )


def _run(profile, product_id, years=21):
    return gi.run_gi_strategy(profile, get_product(product_id), 2026, years)


def test_phases_in_order(profile):
    _, gi_rows, _ = _run(profile, "north-american-income-pay-pro", 8)
    assert [r.phase for r in gi_rows] == [
        "conversion", "purchase", "deferral", "deferral", "deferral", "income", "income", "income",
    ]


def test_schedule_waits_a_year_after_purchase(profile):
    late = replace(profile, conversion_years=5)
    schedule = gi.gi_schedule(late)
    assert schedule.purchase_age == 65
    assert schedule.income_start_age == 66


def test_conversion_and_purchase(profile):
    rows, gi_rows, final = _run(profile, "north-american-income-pay-pro")
    assert rows[0].conversion_amount == 10500000
    assert rows[0].federal_tax == 2520000
    assert rows[0].roth_balance == 10500000
    assert gi_rows[1].income_base == 10500000
    assert gi_rows[1].account_value == 10379250
    assert gi_rows[1].rider_fee == 120750
    assert rows[1].roth_balance == 10379250
    assert final.purchase_amount == 10500000


def test_compound_roll_up_and_level_income(profile):
    rows, gi_rows, final = _run(profile, "north-american-income-pay-pro")
    assert [r.income_base for r in gi_rows[2:5]] == [11340000, 12247200, 13226976]
    first_income = gi_rows[5]
    assert first_income.age == 65
    assert first_income.gross_payment == 899434
    assert first_income.account_value == 8904343
    # Income base is frozen and the level payment repeats.
    assert gi_rows[6].income_base == 13226976
    assert gi_rows[6].gross_payment == 899434
    assert rows[5].distribution == 899434
    assert first_income.net_payment == 899434
    assert final.depletion_age == 74


def test_payments_continue_after_depletion(profile):
    _, gi_rows, _ = _run(profile, "north-american-income-pay-pro")
    late = [r for r in gi_rows if r.age >= 74]
    assert all(r.account_value == 0 for r in late)
    assert all(r.gross_payment == 899434 for r in late)


def test_increasing_payout(profile):
    increasing = replace(profile, payout_option="increasing")
    _, gi_rows, _ = _run(increasing, "north-american-income-pay-pro", 7)
    assert gi_rows[5].gross_payment == 634895
    assert gi_rows[6].gross_payment == 647593


def test_simple_roll_up_on_bonus_base(profile):
    _, gi_rows, _ = _run(profile, "athene-ascent-pro-10", 4)
    assert [r.income_base for r in gi_rows[1:4]] == [11550000, 12705000, 13860000]
    assert gi_rows[2].roll_up_credited == gi_rows[3].roll_up_credited == 1155000


def test_bonus_to_both(profile):
    _, gi_rows, _ = _run(profile, "american-equity-incomeshield-bonus-10", 2)
    assert gi_rows[1].income_base == 11970000
    assert gi_rows[1].account_value == 11826360


def test_fee_on_account_value(profile):
    _, gi_rows, _ = _run(profile, "equitrust-marketearly-income-index", 2)
    assert gi_rows[1].income_base == 11550000
    assert gi_rows[1].account_value == 10368750


def test_tax_free_income_flag(profile):
    rich = replace(profile, other_income=5000000, gi_income_tax_free=True)
    taxed = replace(profile, other_income=5000000)
    free_rows, _, _ = _run(rich, "north-american-income-pay-pro", 6)
    taxed_rows, _, _ = _run(taxed, "north-american-income-pay-pro", 6)
    assert free_rows[5].federal_tax < taxed_rows[5].federal_tax


def test_baseline_withdraws_target(profile):
    _, gi_rows, _ = _run(profile, "north-american-income-pay-pro")
    withdrawals = [r.gross_payment for r in gi_rows]
    rows = gi.run_gi_baseline(profile, 2026, len(withdrawals), withdrawals)
    assert rows[0].distribution == 0
    assert rows[0].traditional_balance == 10500000
    assert rows[5].distribution == 899434


def test_baseline_rmd_floor():
    older = HouseholdProfile(
        age=75, end_age=80, birth_year=1950, traditional_balance=10000000, growth_rate=5
    )
    rows = gi.run_gi_baseline(older, 2025, 1)
    assert rows[0].distribution == 406504
