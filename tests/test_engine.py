"""End-to-end tests for the simulation engine."""

import pytest

from roth_planner import (
    HouseholdProfile,
    InvalidInputError,
    UnknownProductError,
    run_simulation,
    simulate,
)

PROFILE = {
    "age": 62,
    "end_age": 85,
    "filing_status": "single",
    "traditional_balance": 50000000,
    "growth_rate": 7,
    "federal_tax_rate": 24,
    "state_tax_rate": 0,
}


def _gi_profile(**overrides):
    params = dict(
        age=60,
        end_age=80,
        traditional_balance=10000000,
        growth_rate=5,
        annuity_credited_rate=0,
        federal_tax_rate=24,
        state_tax_rate=0,
        conversion_years=1,
        income_start_age=65,
    )
    params.update(overrides)
    return HouseholdProfile(**params)


def test_simulate_bundle():
    out = simulate({"household_profile": PROFILE, "product": "fia", "start_year": 2026})
    assert len(out["baseline_years"]) == 24
    assert len(out["strategy_years"]) == 24
    first = out["strategy_years"][0]
    assert first["conversion_amount"] == 58850000
    assert first["federal_tax"] == 14124000
    assert out["total_tax_savings"] == -14124000
    assert "gi_summary" not in out
    assert set(out["lifetime_wealth"]) == {"baseline", "strategy", "difference", "percent_change"}


def test_end_year_limits_horizon():
    out = simulate(
        {"household_profile": PROFILE, "product": "fia", "start_year": 2026, "end_year": 2030}
    )
    assert len(out["strategy_years"]) == 5
    assert out["strategy_years"][-1]["year"] == 2030


def test_strategy_eventually_pulls_ahead():
    result = run_simulation(HouseholdProfile.from_dict(PROFILE), "fia", 2026)
    assert result.break_even_age is not None
    assert result.heir_benefit > 0


def test_custom_product_mapping():
    product = {
        "id": "custom-growth",
        "family": "growth",
        "bonuses": [{"percent": 5, "timing": "issue"}],
        "surrender_schedule": [5, 4, 3],
    }
    result = run_simulation(HouseholdProfile.from_dict(PROFILE), product, 2026, 2027)
    assert result.product_id == "custom-growth"
    assert result.strategy[0].conversion_amount == 56175000
    assert result.strategy[0].surrender_charge_percent == 5


def test_deterministic():
    bundle = {"household_profile": PROFILE, "product": "fia", "start_year": 2026}
    assert simulate(bundle) == simulate(bundle)


def test_guaranteed_income_summary():
    result = run_simulation(_gi_profile(), "north-american-income-pay-pro", 2026)
    summary = result.gi_summary
    assert len(result.gi_years) == len(result.strategy) == len(result.baseline) == 21
    assert summary.purchase_age == 61
    assert summary.purchase_amount == 10500000
    assert summary.income_base_at_start == 10500000
    assert summary.income_base_at_income_age == 13226976
    assert summary.annual_gross_income == 899434
    assert summary.income_start_age == 65
    assert summary.depletion_age == 74
    assert summary.payout_percent == pytest.approx(6.8)
    assert result.baseline[5].distribution == 899434
    out = result.to_dict()
    assert len(out["gi_yearly_data"]) == 21
    assert out["gi_summary"]["depletion_age"] == 74


def test_to_frame():
    result = run_simulation(HouseholdProfile.from_dict(PROFILE), "fia", 2026)
    frame = result.to_frame()
    assert len(frame) == 48
    assert frame["scenario"].value_counts().to_dict() == {"baseline": 24, "strategy": 24}
    assert "cumulative_net_income" in frame.columns


def test_zero_balances():
    profile = HouseholdProfile(age=62, end_age=70, growth_rate=7)
    result = run_simulation(profile, "fia", 2026)
    assert result.break_even_age is None
    assert result.lifetime_wealth.percent_change == 0.0
    assert all(r.net_worth == 0 for r in result.strategy)


@pytest.mark.parametrize(
    "overrides",
    [
        {"age": 85},
        {"filing_status": "widowed"},
        {"state": "ZZ"},
        {"traditional_balance": -1},
        {"traditional_balance": 100.5},
        {"federal_tax_rate": 150},
        {"conversion_type": "partial"},
        {"payout_option": "decreasing"},
        {"years_to_defer_conversion": -1},
        {"conversion_end_age": 50},
    ],
)
def test_invalid_profiles(overrides):
    profile = HouseholdProfile.from_dict({**PROFILE, **overrides})
    with pytest.raises(InvalidInputError):
        run_simulation(profile, "fia", 2026)


def test_start_after_end():
    with pytest.raises(InvalidInputError):
        run_simulation(HouseholdProfile.from_dict(PROFILE), "fia", 2030, 2026)


def test_unknown_product():
    with pytest.raises(UnknownProductError):
        run_simulation(HouseholdProfile.from_dict(PROFILE), "no-such-product", 2026)


def test_gi_product_needs_payout_table():
    product = {"id": "broken", "family": "guaranteed_income"}
    with pytest.raises(InvalidInputError):
        run_simulation(HouseholdProfile.from_dict(PROFILE), product, 2026)


def test_bundle_errors():
    with pytest.raises(InvalidInputError):
        simulate({"household_profile": PROFILE, "start_year": 2026})
    with pytest.raises(InvalidInputError):
        simulate({"household_profile": {"end_age": 90}, "product": "fia", "start_year": 2026})


@pytest.mark.parametrize(
    "overrides",
    [
        {"growth_rate": -150},
        {"baseline_growth_rate": -101},
        {"annuity_credited_rate": -100.5},
        {"growth_rate": "7"},
        {"federal_tax_rate": "24"},
        {"conversion_type": "bracket_fill"},
    ],
)
def test_invalid_rates(overrides):
    profile = HouseholdProfile.from_dict({**PROFILE, **overrides})
    with pytest.raises(InvalidInputError):
        run_simulation(profile, "fia", 2026)


def test_total_loss_rate_is_allowed():
    profile = HouseholdProfile.from_dict(
        {**PROFILE, "growth_rate": -100, "conversion_type": "no_conversion"}
    )
    result = run_simulation(profile, "fia", 2026, 2028)
    assert all(r.traditional_balance == 0 for r in result.strategy)


def test_end_year_past_end_age():
    profile = HouseholdProfile.from_dict(PROFILE)
    with pytest.raises(InvalidInputError):
        run_simulation(profile, "fia", 2026, 2070)
    # The last year of the horizon itself is fine.
    assert len(run_simulation(profile, "fia", 2026, 2049).strategy) == 24


@pytest.mark.parametrize(
    "product",
    [
        {"family": "growth"},
        {"id": "bad-bonus", "bonuses": [{"pct": 5}]},
        {
            "id": "bad-roll-up",
            "family": "guaranteed_income",
            "roll_up": {"max_period": 10, "step": 1},
        },
    ],
)
def test_malformed_custom_product(product):
    with pytest.raises(InvalidInputError):
        run_simulation(HouseholdProfile.from_dict(PROFILE), product, 2026)
