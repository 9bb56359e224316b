"""Helper package that exposes the core projection calculators.

The `calculators` package contains small, focused modules that each implement
one piece of the Roth conversion / annuity projection:

* ``tables`` – loading and inflation-indexing of the packaged tax tables.
* ``taxes`` – progressive federal and state tax, standard deduction and the per-year tax calculator.
* ``irmaa`` – Medicare IRMAA tiers, surcharges and headroom.
* ``social_security`` – benefit income with COLA and the taxable portion of benefits.
* ``rmd`` – Required Minimum Distribution rules and Uniform Lifetime table.
* ``products`` – the growth and guaranteed-income annuity catalog.
* ``growth`` – baseline and Roth conversion scenarios for growth annuities.
* ``guaranteed_income`` – conversion, purchase, deferral and income phases for GI annuities.
* ``comparison`` – break-even, tax savings, heir benefit and lifetime wealth.
* ``advisory`` – NIIT, ACA subsidy cliff and conversion-room checks.
* ``widow`` – survivor (single filer) versus joint tax after a spouse dies.

Each module exposes a few public functions with clear parameters and returns.  See
individual docstrings for details.
"""

from . import (  # noqa: F401
    tables,
    taxes,
    irmaa,
    social_security,
    rmd,
    products,
    growth,
    guaranteed_income,
    comparison,
    advisory,
    widow,
)

__all__ = [
    "tables",
    "taxes",
    "irmaa",
    "social_security",
    "rmd",
    "products",
    "growth",
    "guaranteed_income",
    "comparison",
    "advisory",
    "widow",
]
