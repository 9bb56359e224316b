"""Data model shared by the calculators and the simulation engine.

Inputs (:class:`HouseholdProfile`, :class:`ProductConfig`) and outputs
(:class:`YearRow`, :class:`GIYearRow`, :class:`SimulationResult`) are frozen
dataclasses: a run never mutates its inputs and rows are immutable once
emitted.  All money fields are integer cents and all rates are percentages.

Profiles are usually built from the JSON-style mapping an API layer receives:

>>> profile = HouseholdProfile.from_dict({
...     "age": 62, "end_age": 85, "filing_status": "single",
...     "traditional_balance": 50000000, "growth_rate": 7,
...     "federal_tax_rate": 24, "state_tax_rate": 0,
... })
>>> profile.is_joint
False
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from typing import Dict, Optional, Tuple

import pandas as pd

FILING_STATUSES = (
    "single",
    "married_filing_jointly",
    "married_filing_separately",
    "head_of_household",
)
CONVERSION_TYPES = (
    "no_conversion",
    "full_conversion",
    "optimized_amount",
    "fixed_amount",
    "bracket_fill",
)
PAYOUT_TYPES = ("single", "joint")
PAYOUT_OPTIONS = ("level", "increasing")
PRODUCT_FAMILIES = ("growth", "guaranteed_income")
GI_PHASES = ("conversion", "purchase", "deferral", "income")


class InvalidInputError(ValueError):
    """Raised before a simulation starts when the inputs are unusable."""


class UnknownProductError(InvalidInputError):
    """Raised when a product identifier is not in the catalog."""


@dataclass(frozen=True)
class NonSSIIncome:
    """Taxable and tax-exempt income other than Social Security for one year."""

    year: int
    gross_taxable: int = 0
    tax_exempt: int = 0


@dataclass(frozen=True)
class HouseholdProfile:
    """Immutable description of the household being projected."""

    age: int
    end_age: int = 100
    filing_status: str = "single"
    state: Optional[str] = None
    spouse_age: Optional[int] = None
    birth_year: Optional[int] = None

    traditional_balance: int = 0
    roth_balance: int = 0
    taxable_balance: int = 0

    ss_annual_amount: int = 0
    ss_start_age: int = 67
    spouse_ss_annual_amount: int = 0
    spouse_ss_start_age: int = 67
    ss_cola_rate: float = 2.0

    other_income: int = 0
    tax_exempt_income: int = 0
    non_ssi_income: Tuple[NonSSIIncome, ...] = ()

    growth_rate: float = 7.0
    baseline_growth_rate: Optional[float] = None
    annuity_credited_rate: Optional[float] = None

    federal_tax_rate: Optional[float] = None
    state_tax_rate: Optional[float] = None
    heir_tax_rate: float = 40.0

    conversion_type: str = "full_conversion"
    fixed_conversion_amount: int = 0
    years_to_defer_conversion: int = 0
    conversion_end_age: Optional[int] = None
    conversion_years: int = 1
    conversion_target_rate: Optional[float] = None
    conversion_irmaa_cap: bool = False

    income_start_age: int = 65
    payout_type: str = "single"
    payout_option: str = "level"
    roll_up_option: Optional[str] = None
    gi_income_tax_free: bool = False

    irmaa_lookback_years: int = 0

    @property
    def is_joint(self) -> bool:
        return self.filing_status == "married_filing_jointly"

    @property
    def baseline_rate(self) -> float:
        if self.baseline_growth_rate is None:
            return self.growth_rate
        return self.baseline_growth_rate

    @property
    def credited_rate(self) -> float:
        if self.annuity_credited_rate is None:
            return self.growth_rate
        return self.annuity_credited_rate

    @property
    def last_conversion_age(self) -> int:
        if self.conversion_end_age is None:
            return self.end_age
        return self.conversion_end_age

    def age_in(self, year_offset: int) -> int:
        return self.age + year_offset

    def spouse_age_in(self, year_offset: int) -> Optional[int]:
        if self.spouse_age is None:
            return None
        return self.spouse_age + year_offset

    def income_for_year(self, year: int) -> Tuple[int, int]:
        """Return ``(gross_taxable, tax_exempt)`` non-SSI income for ``year``.

        A year listed in ``non_ssi_income`` overrides the flat annual
        ``other_income`` / ``tax_exempt_income`` amounts.
        """
        for entry in self.non_ssi_income:
            if entry.year == year:
                return entry.gross_taxable, entry.tax_exempt
        return self.other_income, self.tax_exempt_income

    @classmethod
    def from_dict(cls, data: Dict) -> "HouseholdProfile":
        """Build a profile from a mapping, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        kwargs = {k: v for k, v in data.items() if k in known}
        if "non_ssi_income" in kwargs:
            kwargs["non_ssi_income"] = tuple(
                item if isinstance(item, NonSSIIncome) else NonSSIIncome(**item)
                for item in kwargs["non_ssi_income"]
            )
        return cls(**kwargs)


@dataclass(frozen=True)
class BonusItem:
    percent: float
    timing: str = "issue"


@dataclass(frozen=True)
class RollUpTier:
    start_year: int
    end_year: int
    rate: float


@dataclass(frozen=True)
class RollUpOption:
    id: str
    label: str
    compounding: str
    rate: float
    max_period: int


@dataclass(frozen=True)
class RollUpConfig:
    """Income-base roll-up: a flat ``rate``, year ``tiers`` or selectable ``options``."""

    max_period: int
    compounding: str = "compound"
    rate: Optional[float] = None
    tiers: Tuple[RollUpTier, ...] = ()
    options: Tuple[RollUpOption, ...] = ()
    default_option: Optional[str] = None


@dataclass(frozen=True)
class RollUp:
    """Roll-up resolved for one deferral year."""

    rate: float
    compounding: str
    max_period: int


@dataclass(frozen=True)
class ProductConfig:
    id: str
    label: str
    family: str
    bonuses: Tuple[BonusItem, ...] = ()
    surrender_schedule: Tuple[float, ...] = ()
    payout_table: Optional[Dict] = None
    roll_up: Optional[RollUpConfig] = None
    rider_fee_rate: float = 0.0
    rider_fee_basis: str = "income_base"
    bonus_applies_to: Optional[str] = None
    increasing_rate: float = 0.0

    @property
    def is_guaranteed_income(self) -> bool:
        return self.family == "guaranteed_income"


@dataclass(frozen=True)
class YearRow:
    """One simulated year of a baseline or strategy trajectory."""

    year: int
    age: int
    spouse_age: Optional[int]
    traditional_balance: int
    roth_balance: int
    taxable_balance: int
    distribution: int = 0
    conversion_amount: int = 0
    ss_income: int = 0
    taxable_ss: int = 0
    other_income: int = 0
    tax_exempt_income: int = 0
    magi: int = 0
    federal_tax: int = 0
    state_tax: int = 0
    irmaa_surcharge: int = 0
    total_tax: int = 0
    net_worth: int = 0
    cumulative_net_income: int = 0
    surrender_charge_percent: Optional[float] = None
    surrender_value: Optional[int] = None

    @property
    def cumulative_wealth(self) -> int:
        return self.net_worth + self.cumulative_net_income


@dataclass(frozen=True)
class GIYearRow:
    year: int
    age: int
    phase: str
    income_base: int
    account_value: int
    gross_payment: int = 0
    net_payment: int = 0
    rider_fee: int = 0
    roll_up_credited: int = 0
    cumulative_net_income: int = 0


@dataclass(frozen=True)
class LifetimeWealth:
    baseline: int
    strategy: int
    difference: int
    percent_change: float


@dataclass(frozen=True)
class GISummary:
    income_base_at_start: int
    income_base_at_income_age: int
    annual_gross_income: int
    first_year_net_income: int
    income_start_age: Optional[int]
    purchase_age: Optional[int]
    purchase_amount: int
    total_gross_paid: int
    total_net_paid: int
    total_rider_fees: int
    payout_percent: float
    depletion_age: Optional[int]


@dataclass(frozen=True)
class SimulationResult:
    product_id: str
    family: str
    baseline: Tuple[YearRow, ...]
    strategy: Tuple[YearRow, ...]
    break_even_age: Optional[int]
    total_tax_savings: int
    heir_benefit: int
    lifetime_wealth: LifetimeWealth
    gi_years: Tuple[GIYearRow, ...] = ()
    gi_summary: Optional[GISummary] = None
    meta: Dict = field(default_factory=dict)

    def to_dict(self) -> Dict:
        """Return the JSON-serializable output bundle."""
        out = {
            "product_id": self.product_id,
            "family": self.family,
            "baseline_years": [asdict(r) for r in self.baseline],
            "strategy_years": [asdict(r) for r in self.strategy],
            "break_even_age": self.break_even_age,
            "total_tax_savings": self.total_tax_savings,
            "heir_benefit": self.heir_benefit,
            "lifetime_wealth": asdict(self.lifetime_wealth),
        }
        if self.gi_summary is not None:
            out["gi_yearly_data"] = [asdict(r) for r in self.gi_years]
            out["gi_summary"] = asdict(self.gi_summary)
        return out

    def to_frame(self) -> pd.DataFrame:
        """Both trajectories as one long DataFrame with a ``scenario`` column."""
        base = pd.DataFrame([asdict(r) for r in self.baseline])
        base.insert(0, "scenario", "baseline")
        strat = pd.DataFrame([asdict(r) for r in self.strategy])
        strat.insert(0, "scenario", "strategy")
        return pd.concat([base, strat], ignore_index=True)


__all__ = [
    "FILING_STATUSES",
    "CONVERSION_TYPES",
    "PAYOUT_TYPES",
    "PAYOUT_OPTIONS",
    "PRODUCT_FAMILIES",
    "GI_PHASES",
    "InvalidInputError",
    "UnknownProductError",
    "NonSSIIncome",
    "HouseholdProfile",
    "BonusItem",
    "RollUpTier",
    "RollUpOption",
    "RollUpConfig",
    "RollUp",
    "ProductConfig",
    "YearRow",
    "GIYearRow",
    "LifetimeWealth",
    "GISummary",
    "SimulationResult",
]
