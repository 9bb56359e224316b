"""Tests for the growth-annuity baseline and Roth conversion strategy."""

from dataclasses import replace

import pytest

from roth_planner.calculators import growth
from roth_planner.calculators.products import get_product
from roth_planner.models import BonusItem, HouseholdProfile, ProductConfig


def _base_profile(**overrides):
    """Age 62 single filer with $500k traditional, 7% growth, 24%/0% flat rates."""
    params = dict(
        age=62,
        end_age=85,
        filing_status="single",
        traditional_balance=50000000,
        growth_rate=7,
        conversion_type="full_conversion",
        federal_tax_rate=24,
        state_tax_rate=0,
    )
    params.update(overrides)
    return HouseholdProfile(**params)


def test_full_conversion_first_year():
    """Bonus, one year of growth, then the whole balance is converted."""
    rows = growth.run_growth_strategy(_base_profile(), get_product("fia"), 2026, 24)
    first = rows[0]
    assert len(rows) == 24
    assert first.conversion_amount == 58850000
    assert first.federal_tax == 14124000
    assert first.state_tax == 0
    assert first.total_tax == 14124000
    assert first.roth_balance == 58850000
    assert first.traditional_balance == 0
    assert first.surrender_charge_percent == 9
    assert first.surrender_value == 0


def test_roth_keeps_growing_after_conversion():
    rows = growth.run_growth_strategy(_base_profile(), get_product("fia"), 2026, 3)
    assert rows[1].conversion_amount == 0
    assert rows[1].federal_tax == 0
    assert rows[1].roth_balance == 62969500


def test_baseline_compounds_without_tax():
    rows = growth.run_growth_baseline(_base_profile(), 2026, 3)
    assert [r.traditional_balance for r in rows] == [53500000, 57245000, 61252150]
    assert all(r.conversion_amount == 0 and r.total_tax == 0 for r in rows)
    assert rows[0].net_worth == 53500000


def test_baseline_rate_override():
    rows = growth.run_growth_baseline(_base_profile(baseline_growth_rate=5), 2026, 1)
    assert rows[0].traditional_balance == 52500000


def test_deferred_conversion_and_surrender_value():
    rows = growth.run_growth_strategy(
        _base_profile(years_to_defer_conversion=2), get_product("fia"), 2026, 4
    )
    assert [r.conversion_amount > 0 for r in rows] == [False, False, True, False]
    assert rows[0].traditional_balance == 58850000
    assert rows[0].surrender_value == 53553500


def test_fixed_amount_conversion():
    profile = _base_profile(conversion_type="fixed_amount", fixed_conversion_amount=10000000)
    rows = growth.run_growth_strategy(profile, get_product("fia"), 2026, 2)
    assert rows[0].conversion_amount == 10000000
    assert rows[0].traditional_balance == 48850000
    assert rows[0].federal_tax == 2400000


def test_conversion_window_end_age():
    profile = _base_profile(
        conversion_type="fixed_amount", fixed_conversion_amount=1000000, conversion_end_age=63
    )
    rows = growth.run_growth_strategy(profile, get_product("lincoln-optiblend-7"), 2026, 3)
    assert [r.conversion_amount for r in rows] == [1000000, 1000000, 0]


def test_no_conversion_strategy():
    profile = _base_profile(conversion_type="no_conversion")
    rows = growth.run_growth_strategy(profile, get_product("fia"), 2026, 5)
    assert all(r.conversion_amount == 0 for r in rows)
    assert all(r.total_tax == 0 for r in rows)


def test_bracket_tax_when_no_flat_rate():
    """Without flat assumptions the conversion is taxed through the brackets."""
    profile = _base_profile(
        federal_tax_rate=None,
        state_tax_rate=None,
        conversion_type="fixed_amount",
        fixed_conversion_amount=7525000,
    )
    rows = growth.run_growth_strategy(profile, get_product("lincoln-optiblend-7"), 2026, 1)
    assert rows[0].federal_tax == 816400
    assert rows[0].state_tax == 0


def test_state_rate_taken_from_tables():
    profile = _base_profile(state="IL", state_tax_rate=None)
    rows = growth.run_growth_strategy(profile, get_product("fia"), 2026, 1)
    assert rows[0].state_tax == 2913075


def test_conversion_irmaa_is_incremental():
    profile = _base_profile(
        age=66, conversion_type="fixed_amount", fixed_conversion_amount=15000000
    )
    rows = growth.run_growth_strategy(profile, get_product("lincoln-optiblend-7"), 2026, 1)
    assert rows[0].magi == 15000000
    assert rows[0].irmaa_surcharge == 210000
    assert rows[0].total_tax == 3600000 + 210000


def test_irmaa_lookback_lags_the_surcharge():
    profile = _base_profile(
        age=66,
        conversion_type="fixed_amount",
        fixed_conversion_amount=15000000,
        conversion_end_age=66,
        irmaa_lookback_years=2,
    )
    rows = growth.run_growth_strategy(profile, get_product("lincoln-optiblend-7"), 2026, 4)
    # No history yet: the current year's MAGI stands in.
    assert rows[0].irmaa_surcharge == 210000
    assert rows[1].irmaa_surcharge == 0
    assert rows[2].irmaa_surcharge == 210000
    assert rows[3].irmaa_surcharge == 0


def test_anniversary_bonus_on_grown_value():
    product = ProductConfig(
        id="anniversary-test",
        label="Anniversary",
        family="growth",
        bonuses=(BonusItem(5, "anniversary1"),),
    )
    profile = _base_profile(conversion_type="no_conversion")
    rows = growth.run_growth_strategy(profile, product, 2026, 2)
    assert rows[0].traditional_balance == 56175000
    assert rows[1].traditional_balance == 60107250


def test_step_is_pure():
    """Stepping the same state twice yields identical results."""
    ctx = growth.StepContext(_base_profile(), 2026, get_product("fia"))
    state = growth.initial_strategy_state(ctx.profile, ctx.product)
    assert state.traditional == 55000000
    first = growth.strategy_step(state, ctx)
    second = growth.strategy_step(state, ctx)
    assert first == second
    assert state.year_index == 0


def test_balances_never_negative():
    profile = _base_profile(conversion_type="fixed_amount", fixed_conversion_amount=20000000)
    rows = growth.run_growth_strategy(profile, get_product("fia"), 2026, 24)
    assert all(r.traditional_balance >= 0 and r.roth_balance >= 0 for r in rows)
    assert rows[-1].traditional_balance == 0


def test_conversion_amount_rules():
    profile = _base_profile(years_to_defer_conversion=1)
    assert growth.conversion_amount(profile, 62, 1000) == 0
    assert growth.conversion_amount(profile, 63, 1000) == 1000
    assert growth.conversion_amount(profile, 63, 0) == 0
    capped = replace(profile, conversion_type="fixed_amount", fixed_conversion_amount=5000)
    assert growth.conversion_amount(capped, 63, 1000) == 1000
    assert growth.conversion_amount(capped, 63, 9000) == 5000


def test_other_income_reported():
    profile = _base_profile(other_income=2000000, tax_exempt_income=100000)
    rows = growth.run_growth_baseline(profile, 2026, 1)
    assert rows[0].other_income == 2000000
    assert rows[0].magi == 2100000
    assert rows[0].total_tax == 0


def test_lagged_magi():
    history = ((100, 90), (200, 180))
    assert growth.lagged_magi(history, 0, 0) is None
    assert growth.lagged_magi(history, 1, 0) == 200
    assert growth.lagged_magi(history, 2, 1) == 90
    assert growth.lagged_magi(history, 3, 0) is None


def test_fold_years_returns_final_state():
    ctx = growth.StepContext(_base_profile(), 2026)
    final, rows = growth.fold_years(
        growth.baseline_step, growth.initial_baseline_state(ctx.profile), ctx, 2
    )
    assert final.year_index == 2
    assert final.traditional == rows[-1].traditional_balance
    assert rows[-1].year == 2027
    assert rows[-1].age == 63


@pytest.mark.parametrize("product_id", ["fia", "lincoln-optiblend-7", "equitrust-marketedge-bonus"])
def test_issue_bonus_per_product(product_id):
    product = get_product(product_id)
    state = growth.initial_strategy_state(_base_profile(), product)
    expected = {"fia": 55000000, "lincoln-optiblend-7": 50000000, "equitrust-marketedge-bonus": 55500000}
    assert state.traditional == expected[product_id]


def test_bracket_fill_conversion_amount():
    profile = _base_profile(conversion_type="bracket_fill", conversion_target_rate=22)
    assert growth.conversion_amount(profile, 62, 1000, room=400) == 400
    assert growth.conversion_amount(profile, 62, 1000, room=5000) == 1000
    assert growth.conversion_amount(profile, 62, 1000) == 0


def test_bracket_fill_stacks_on_other_income():
    """$50k of other income leaves $68,250 of room in the 22% bracket."""
    profile = _base_profile(
        federal_tax_rate=None,
        state_tax_rate=None,
        other_income=5000000,
        conversion_type="bracket_fill",
        conversion_target_rate=22,
    )
    rows = growth.run_growth_strategy(profile, get_product("lincoln-optiblend-7"), 2026, 1)
    assert rows[0].conversion_amount == 6825000
    assert rows[0].traditional_balance == 53500000 - 6825000


def test_bracket_fill_irmaa_cap():
    profile = _base_profile(
        federal_tax_rate=None,
        state_tax_rate=None,
        conversion_type="bracket_fill",
        conversion_target_rate=24,
        conversion_irmaa_cap=True,
    )
    ctx = growth.StepContext(profile, 2026, get_product("lincoln-optiblend-7"))
    income = growth.year_income(profile, 0, 2026)
    assert growth.bracket_room(ctx, 0, income, 0) == 10299999
    uncapped = growth.StepContext(replace(profile, conversion_irmaa_cap=False), 2026)
    assert growth.bracket_room(uncapped, 0, income, 0) == 19700000
