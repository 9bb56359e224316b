"""Side-by-side comparison of named bracket-filling conversion strategies.

Each strategy converts, every year of the conversion window, as much as fits
under a target federal bracket (optionally stopping short of the next IRMAA
tier).  The household and product are run once per strategy and the best
strategy is the one with the highest ending net worth; ties go to the lower
total IRMAA and then to the lower-risk strategy.

Example
-------

>>> [s.id for s in CONVERSION_STRATEGIES]
['conservative', 'moderate', 'aggressive', 'irmaa_safe']
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Dict, List, Optional, Sequence

from .engine import ProductLike, run_simulation
from .models import HouseholdProfile, SimulationResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConversionStrategy:
    id: str
    label: str
    description: str
    target_rate: float
    irmaa_cap: bool = False
    risk_level: str = "medium"


@dataclass(frozen=True)
class StrategyMetrics:
    ending_wealth: int
    tax_savings: int
    break_even_age: Optional[int]
    total_irmaa: int
    heir_benefit: int
    total_conversions: int


@dataclass(frozen=True)
class MultiStrategyResult:
    results: Dict[str, SimulationResult]
    metrics: Dict[str, StrategyMetrics]
    ranking: List[str]

    @property
    def best_strategy(self) -> str:
        return self.ranking[0]


CONVERSION_STRATEGIES = (
    ConversionStrategy("conservative", "Conservative", "Stay within the 22% bracket", 22, False, "low"),
    ConversionStrategy("moderate", "Moderate", "Fill up to the 24% bracket", 24, False, "medium"),
    ConversionStrategy("aggressive", "Aggressive", "Fill up to the 32% bracket", 32, False, "high"),
    ConversionStrategy("irmaa_safe", "IRMAA-Safe", "Fill the 24% bracket below the next IRMAA tier", 24, True, "low"),
)

# Lower index wins a tie.
STRATEGY_PRIORITY = ("irmaa_safe", "conservative", "moderate", "aggressive")


def strategy_profile(profile: HouseholdProfile, strategy: ConversionStrategy) -> HouseholdProfile:
    return replace(
        profile,
        conversion_type="bracket_fill",
        conversion_target_rate=strategy.target_rate,
        conversion_irmaa_cap=strategy.irmaa_cap,
    )


def strategy_metrics(result: SimulationResult) -> StrategyMetrics:
    rows = result.strategy
    return StrategyMetrics(
        ending_wealth=rows[-1].net_worth if rows else 0,
        tax_savings=result.total_tax_savings,
        break_even_age=result.break_even_age,
        total_irmaa=sum(r.irmaa_surcharge for r in rows),
        heir_benefit=result.heir_benefit,
        total_conversions=sum(r.conversion_amount for r in rows),
    )


def rank_strategies(
    metrics: Dict[str, StrategyMetrics], priority: Sequence[str] = STRATEGY_PRIORITY
) -> List[str]:
    """Strategy ids best first: wealth descending, then IRMAA, then risk priority."""

    def risk(strategy_id: str) -> int:
        return priority.index(strategy_id) if strategy_id in priority else len(priority)

    return sorted(
        metrics,
        key=lambda sid: (-metrics[sid].ending_wealth, metrics[sid].total_irmaa, risk(sid)),
    )


def run_multi_strategy(
    profile: HouseholdProfile,
    product: ProductLike,
    start_year: int,
    end_year: Optional[int] = None,
    strategies: Sequence[ConversionStrategy] = CONVERSION_STRATEGIES,
    tax_tables: Optional[Dict] = None,
) -> MultiStrategyResult:
    """Run every strategy against the same baseline and rank the outcomes."""
    results = {}
    for strategy in strategies:
        logger.debug("Conversion strategy %s at %s%%", strategy.id, strategy.target_rate)
        results[strategy.id] = run_simulation(
            strategy_profile(profile, strategy), product, start_year, end_year, tax_tables
        )
    metrics = {sid: strategy_metrics(result) for sid, result in results.items()}
    return MultiStrategyResult(results, metrics, rank_strategies(metrics))


__all__ = [
    "ConversionStrategy",
    "StrategyMetrics",
    "MultiStrategyResult",
    "CONVERSION_STRATEGIES",
    "STRATEGY_PRIORITY",
    "strategy_profile",
    "strategy_metrics",
    "rank_strategies",
    "run_multi_strategy",
]
