"""Sensitivity analysis over growth and tax-rate assumptions.

The same household and product are re-run under a set of scenarios, each
overriding the growth rate and scaling every federal bracket rate (and any
flat federal/state conversion rate) by a multiplier.  The result reports each
scenario's break-even and ending wealth plus the spread across scenarios.

Example
-------

>>> [s.name for s in SENSITIVITY_SCENARIOS][:3]
['Base Case', 'Low Growth', 'High Growth']
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Dict, List, Optional, Sequence

from .calculators.comparison import BreakEvenAnalysis, analyze_break_even
from .calculators.tables import resolve_tables, thaw_tables
from .engine import ProductLike, run_simulation
from .models import HouseholdProfile, SimulationResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SensitivityScenario:
    name: str
    growth_rate: float
    tax_rate_multiplier: float = 1.0


@dataclass(frozen=True)
class ScenarioOutcome:
    scenario: SensitivityScenario
    result: SimulationResult
    break_even: BreakEvenAnalysis
    ending_wealth: int


@dataclass(frozen=True)
class SensitivityReport:
    outcomes: List[ScenarioOutcome]
    break_even_min: Optional[int]
    break_even_max: Optional[int]
    wealth_min: int
    wealth_max: int

    def by_name(self, name: str) -> ScenarioOutcome:
        return next(o for o in self.outcomes if o.scenario.name == name)


SENSITIVITY_SCENARIOS = (
    SensitivityScenario("Base Case", 6, 1.0),
    SensitivityScenario("Low Growth", 4, 1.0),
    SensitivityScenario("High Growth", 8, 1.0),
    SensitivityScenario("Higher Taxes", 6, 1.2),
    SensitivityScenario("Lower Taxes", 6, 0.8),
    SensitivityScenario("Pessimistic", 4, 1.2),
    SensitivityScenario("Optimistic", 8, 0.8),
)


def scale_tax_tables(tax_tables: Dict, multiplier: float) -> Dict:
    """Copy of ``tax_tables`` with every federal bracket rate scaled."""
    scaled = thaw_tables(tax_tables)
    if multiplier == 1.0:
        return scaled
    for key, table in scaled.items():
        if not key.isdigit():
            continue
        for status_table in table["federal"].values():
            for bracket in status_table["brackets"]:
                bracket["rate"] = bracket["rate"] * multiplier
    return scaled


def _scenario_profile(profile: HouseholdProfile, scenario: SensitivityScenario) -> HouseholdProfile:
    changes = {"growth_rate": scenario.growth_rate}
    m = scenario.tax_rate_multiplier
    if profile.federal_tax_rate is not None:
        changes["federal_tax_rate"] = min(100.0, profile.federal_tax_rate * m)
    if profile.state_tax_rate is not None:
        changes["state_tax_rate"] = min(100.0, profile.state_tax_rate * m)
    return replace(profile, **changes)


def run_sensitivity(
    profile: HouseholdProfile,
    product: ProductLike,
    start_year: int,
    end_year: Optional[int] = None,
    scenarios: Sequence[SensitivityScenario] = SENSITIVITY_SCENARIOS,
    tax_tables: Optional[Dict] = None,
) -> SensitivityReport:
    """Run every scenario and summarise the spread of outcomes."""
    base_tables = resolve_tables(tax_tables)
    outcomes = []
    for scenario in scenarios:
        logger.debug("Sensitivity scenario %s", scenario.name)
        result = run_simulation(
            _scenario_profile(profile, scenario),
            product,
            start_year,
            end_year,
            scale_tax_tables(base_tables, scenario.tax_rate_multiplier),
        )
        outcomes.append(
            ScenarioOutcome(
                scenario=scenario,
                result=result,
                break_even=analyze_break_even(result.baseline, result.strategy),
                ending_wealth=result.strategy[-1].net_worth,
            )
        )

    break_evens = [o.result.break_even_age for o in outcomes if o.result.break_even_age is not None]
    wealths = [o.ending_wealth for o in outcomes]
    return SensitivityReport(
        outcomes=outcomes,
        break_even_min=min(break_evens) if break_evens else None,
        break_even_max=max(break_evens) if break_evens else None,
        wealth_min=min(wealths) if wealths else 0,
        wealth_max=max(wealths) if wealths else 0,
    )


__all__ = [
    "SensitivityScenario",
    "ScenarioOutcome",
    "SensitivityReport",
    "SENSITIVITY_SCENARIOS",
    "scale_tax_tables",
    "run_sensitivity",
]
