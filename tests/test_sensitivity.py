"""Tests for the sensitivity analysis."""

import pytest

from roth_planner.calculators.tables import load_default_tables
from roth_planner.models import HouseholdProfile
from roth_planner.sensitivity import (
    SENSITIVITY_SCENARIOS,
    SensitivityScenario,
    run_sensitivity,
    scale_tax_tables,
)


def _profile(**overrides):
    params = dict(
        age=62,
        end_age=85,
        traditional_balance=50000000,
        growth_rate=7,
        federal_tax_rate=24,
        state_tax_rate=0,
    )
    params.update(overrides)
    return HouseholdProfile(**params)


def test_scale_tax_tables_copies():
    tables = load_default_tables()
    scaled = scale_tax_tables(tables, 1.2)
    first = scaled["2026"]["federal"]["single"]["brackets"][0]
    assert first["rate"] == pytest.approx(12)
    assert tables["2026"]["federal"]["single"]["brackets"][0]["rate"] == 10


def test_scenario_names():
    names = [s.name for s in SENSITIVITY_SCENARIOS]
    assert names == [
        "Base Case",
        "Low Growth",
        "High Growth",
        "Higher Taxes",
        "Lower Taxes",
        "Pessimistic",
        "Optimistic",
    ]


def test_run_sensitivity():
    report = run_sensitivity(_profile(), "fia", 2026)
    assert len(report.outcomes) == 7
    assert report.by_name("Low Growth").scenario.growth_rate == 4
    assert report.by_name("High Growth").ending_wealth > report.by_name("Low Growth").ending_wealth
    assert report.wealth_min <= report.wealth_max
    higher = report.by_name("Higher Taxes").result.strategy[0].federal_tax
    base = report.by_name("Base Case").result.strategy[0].federal_tax
    assert higher > base


def test_bracket_taxes_scaled():
    profile = _profile(
        federal_tax_rate=None,
        state_tax_rate=None,
        conversion_type="fixed_amount",
        fixed_conversion_amount=7525000,
    )
    scenarios = (SensitivityScenario("Base", 7), SensitivityScenario("Heavy", 7, 1.2))
    report = run_sensitivity(profile, "lincoln-optiblend-7", 2026, 2027, scenarios)
    assert report.by_name("Base").result.strategy[0].federal_tax == 816400
    assert report.by_name("Heavy").result.strategy[0].federal_tax > 816400
