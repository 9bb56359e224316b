"""Deterministic Roth conversion and annuity projection engine.

Compare a do-nothing baseline with a Roth conversion strategy (optionally
paired with a growth or guaranteed-income annuity) year by year, in integer
cents, and derive break-even age, tax savings, heir benefit and lifetime
wealth.
"""

from .engine import run_simulation, simulate, validate_inputs  # noqa: F401
from .models import (  # noqa: F401
    HouseholdProfile,
    InvalidInputError,
    NonSSIIncome,
    ProductConfig,
    SimulationResult,
    UnknownProductError,
)

__version__ = "0.1.0"

__all__ = [
    "run_simulation",
    "simulate",
    "validate_inputs",
    "HouseholdProfile",
    "NonSSIIncome",
    "ProductConfig",
    "SimulationResult",
    "InvalidInputError",
    "UnknownProductError",
]
