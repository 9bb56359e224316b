"""Required Minimum Distribution (RMD) calculator.

This module implements the rules for determining when RMDs must begin and
calculating the annual RMD using the IRS Uniform Lifetime Table.  The SECURE Act
2.0 increased the RMD start age from 72 to 73 beginning in 2023, and to 75
beginning in 2033:

* Individuals born between 1951 and 1959 must start RMDs at age 73.
* Individuals born in 1960 or later will start at age 75.

In the guaranteed-income scenarios RMDs apply to any traditional balance left
over after the conversion phase and set the floor for the baseline's
systematic withdrawals.

Example
-------

>>> # Person born in 1955 (between 1951-1959) starts RMD at age 73
>>> rmd_start_age(1955)
73

>>> # RMD for a 73-year-old with $100k in a traditional IRA at the end of the prior year
>>> compute_rmd(10000000, 73)
377358
"""

from __future__ import annotations

from typing import Dict

from ..money import round_half_up

MAX_TABLE_AGE = 120


def rmd_start_age(birth_year: int) -> int:
    """Determine the age at which RMDs must begin based on year of birth.

    Parameters
    ----------
    birth_year : int
        Birth year of the account owner.

    Returns
    -------
    int
        The age when RMDs must commence.
    """
    if birth_year <= 1950:
        return 72
    elif 1951 <= birth_year <= 1959:
        return 73
    else:
        return 75


def _uniform_lifetime_table() -> Dict[int, float]:
    """Return the IRS Uniform Lifetime Table (distribution periods).

    The table is the 2022 update effective for distributions after
    January 1 2022, ages 72-120 (IRS Publication 590-B).
    """
    return {
        72: 27.4, 73: 26.5, 74: 25.5, 75: 24.6, 76: 23.7, 77: 22.9, 78: 22.0,
        79: 21.1, 80: 20.2, 81: 19.4, 82: 18.5, 83: 17.7, 84: 16.8, 85: 16.0,
        86: 15.2, 87: 14.4, 88: 13.7, 89: 12.9, 90: 12.2, 91: 11.5, 92: 10.8,
        93: 10.1, 94: 9.5, 95: 8.9, 96: 8.4, 97: 7.8, 98: 7.3, 99: 6.8,
        100: 6.4, 101: 6.0, 102: 5.6, 103: 5.2, 104: 4.9, 105: 4.6, 106: 4.3,
        107: 4.1, 108: 3.9, 109: 3.7, 110: 3.5, 111: 3.4, 112: 3.3, 113: 3.1,
        114: 3.0, 115: 2.9, 116: 2.8, 117: 2.7, 118: 2.5, 119: 2.3, 120: 2.0,
    }


def compute_rmd(balance: int, age: int) -> int:
    """Compute the Required Minimum Distribution for a given age and balance.

    Parameters
    ----------
    balance : int
        Traditional balance in cents on December 31 of the prior year.
    age : int
        Age of the account owner in the distribution year.  Ages past the end
        of the table use the final (age 120) period.

    Returns
    -------
    int
        The RMD in cents.  Zero below the first age in the table or for a
        non-positive balance.
    """
    if balance <= 0:
        return 0
    table = _uniform_lifetime_table()
    age = min(age, MAX_TABLE_AGE)
    if age not in table:
        return 0
    return round_half_up(balance / table[age])


def is_rmd_year(age: int, birth_year: int) -> bool:
    return age >= rmd_start_age(birth_year)


__all__ = ["rmd_start_age", "compute_rmd", "is_rmd_year"]
