"""Annuity product catalog.

Two product families are modelled:

``growth``
    Fixed index annuities used as the vehicle for a Roth conversion.  They
    carry an issue bonus (and optionally anniversary bonuses) plus a
    surrender-charge schedule by contract year.
``guaranteed_income``
    Annuities with a lifetime income rider.  Besides the bonus they define
    where the bonus is credited, how the income base rolls up during
    deferral, the rider fee and its basis, and payout percentages by attained
    age for single and joint lives (optionally split into ``level`` and
    ``increasing`` payout options).

The catalog is static, read-only data; lookups never mutate it.

Example
-------

>>> product = get_product("athene-ascent-pro-10")
>>> get_payout_factor(product, "single", 70)
0.046
>>> get_roll_up_for_year(product, 12).rate
5
"""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Dict, Optional

from ..models import (
    BonusItem,
    ProductConfig,
    RollUp,
    RollUpConfig,
    RollUpOption,
    RollUpTier,
    UnknownProductError,
)

logger = logging.getLogger(__name__)

MAX_PAYOUT_AGE = 80


def _ages(first_age: int, values) -> MappingProxyType:
    return MappingProxyType({first_age + i: v for i, v in enumerate(values)})


def _payouts(first_age: int, single, joint) -> MappingProxyType:
    return MappingProxyType({"single": _ages(first_age, single), "joint": _ages(first_age, joint)})


_SEVEN_YEAR_SURRENDER = (9.0, 8.0, 7.0, 6.0, 5.0, 4.0, 3.0)
_TEN_YEAR_SURRENDER = (10.0, 10.0, 9.0, 8.0, 7.0, 6.0, 5.0, 4.0, 3.0, 2.0)

_GROWTH_PRODUCTS = (
    ProductConfig(
        id="fia",
        label="FIA",
        family="growth",
        bonuses=(BonusItem(10.0, "issue"),),
        surrender_schedule=_SEVEN_YEAR_SURRENDER,
    ),
    ProductConfig(
        id="lincoln-optiblend-7",
        label="Lincoln OptiBlend 7",
        family="growth",
        bonuses=(),
        surrender_schedule=_SEVEN_YEAR_SURRENDER,
    ),
    ProductConfig(
        id="equitrust-marketedge-bonus",
        label="EquiTrust MarketEdge Bonus",
        family="growth",
        bonuses=(BonusItem(11.0, "issue"),),
        surrender_schedule=_TEN_YEAR_SURRENDER,
    ),
)

_GI_PRODUCTS = (
    ProductConfig(
        id="athene-ascent-pro-10",
        label="Athene Ascent Pro 10",
        family="guaranteed_income",
        bonuses=(BonusItem(10.0, "issue"),),
        surrender_schedule=_TEN_YEAR_SURRENDER,
        bonus_applies_to="income_base",
        rider_fee_rate=1.00,
        rider_fee_basis="income_base",
        roll_up=RollUpConfig(
            max_period=20,
            compounding="simple",
            tiers=(RollUpTier(1, 10, 10), RollUpTier(11, 20, 5)),
        ),
        payout_table=MappingProxyType({
            "level": _payouts(
                55,
                (3.60, 3.70, 3.80, 3.90, 4.00, 4.10, 4.20, 4.30, 4.40, 4.50, 4.10, 4.20, 4.30,
                 4.40, 4.50, 4.60, 4.70, 4.80, 4.90, 5.00, 5.10, 5.20, 5.30, 5.40, 5.50, 5.60),
                (3.10, 3.20, 3.30, 3.40, 3.50, 3.60, 3.70, 3.80, 3.90, 4.00, 3.60, 3.70, 3.80,
                 3.90, 4.00, 4.10, 4.20, 4.30, 4.40, 4.50, 4.60, 4.70, 4.80, 4.90, 5.00, 5.10),
            ),
        }),
    ),
    ProductConfig(
        id="american-equity-incomeshield-bonus-10",
        label="American Equity IncomeShield Bonus 10",
        family="guaranteed_income",
        bonuses=(BonusItem(14.0, "issue"),),
        surrender_schedule=_TEN_YEAR_SURRENDER,
        bonus_applies_to="both",
        rider_fee_rate=1.20,
        rider_fee_basis="income_base",
        roll_up=RollUpConfig(max_period=10, compounding="simple", rate=8.25),
        payout_table=MappingProxyType({
            "level": _payouts(
                50,
                (4.54, 4.66, 4.79, 4.93, 5.06, 5.19, 5.33, 5.48, 5.62, 5.76, 5.90, 6.04, 6.18,
                 6.32, 6.46, 6.60, 6.74, 6.86, 7.00, 7.14, 7.25, 7.37, 7.48, 7.61, 7.72, 7.85,
                 7.94, 8.04, 8.16, 8.28, 8.40),
                (3.97, 4.08, 4.22, 4.36, 4.48, 4.62, 4.76, 4.91, 5.05, 5.19, 5.33, 5.47, 5.61,
                 5.75, 5.89, 6.03, 6.17, 6.29, 6.43, 6.57, 6.68, 6.80, 6.91, 7.04, 7.15, 7.28,
                 7.37, 7.47, 7.58, 7.69, 7.80),
            ),
        }),
    ),
    ProductConfig(
        id="equitrust-marketearly-income-index",
        label="EquiTrust MarketEarly Income Index",
        family="guaranteed_income",
        bonuses=(BonusItem(10.0, "issue"),),
        surrender_schedule=_TEN_YEAR_SURRENDER,
        bonus_applies_to="income_base",
        rider_fee_rate=1.25,
        rider_fee_basis="account_value",
        roll_up=RollUpConfig(
            max_period=10,
            compounding="compound",
            tiers=(RollUpTier(1, 5, 7), RollUpTier(6, 10, 4)),
        ),
        payout_table=MappingProxyType({
            "level": _payouts(
                55,
                (5.60, 5.70, 5.80, 5.90, 6.00, 6.10, 6.20, 6.30, 6.40, 6.50, 6.60, 6.70, 6.80,
                 6.90, 7.00, 7.10, 7.20, 7.30, 7.40, 7.50, 7.60, 7.70, 7.80, 7.90, 8.00, 8.10),
                (4.60, 4.70, 4.80, 4.90, 5.00, 5.10, 5.20, 5.30, 5.40, 5.50, 5.60, 5.70, 5.80,
                 5.90, 6.00, 6.10, 6.20, 6.30, 6.40, 6.50, 6.60, 6.70, 6.80, 6.90, 7.00, 7.10),
            ),
        }),
    ),
    ProductConfig(
        id="north-american-income-pay-pro",
        label="North American Income Pay Pro",
        family="guaranteed_income",
        bonuses=(),
        surrender_schedule=_TEN_YEAR_SURRENDER,
        bonus_applies_to=None,
        rider_fee_rate=1.15,
        rider_fee_basis="income_base",
        roll_up=RollUpConfig(max_period=10, compounding="compound", rate=8),
        increasing_rate=2.0,
        payout_table=MappingProxyType({
            "level": _payouts(
                50,
                (5.80, 5.80, 5.80, 5.80, 5.80, 5.80, 5.90, 6.00, 6.10, 6.20, 6.30, 6.40, 6.50,
                 6.60, 6.70, 6.80, 6.90, 7.00, 7.10, 7.20, 7.30, 7.40, 7.50, 7.60, 7.70, 7.80,
                 7.90, 8.00, 8.10, 8.20, 8.30),
                (5.30, 5.30, 5.30, 5.30, 5.30, 5.30, 5.40, 5.50, 5.60, 5.70, 5.80, 5.90, 6.00,
                 6.10, 6.20, 6.30, 6.40, 6.50, 6.60, 6.70, 6.80, 6.90, 7.00, 7.10, 7.20, 7.30,
                 7.40, 7.50, 7.60, 7.70, 7.80),
            ),
            "increasing": _payouts(
                50,
                (3.80, 3.80, 3.80, 3.80, 3.80, 3.80, 3.90, 4.00, 4.10, 4.20, 4.30, 4.40, 4.50,
                 4.60, 4.70, 4.80, 4.90, 5.00, 5.10, 5.20, 5.30, 5.40, 5.50, 5.60, 5.70, 5.80,
                 5.90, 6.00, 6.10, 6.20, 6.30),
                (3.30, 3.30, 3.30, 3.30, 3.30, 3.30, 3.40, 3.50, 3.60, 3.70, 3.80, 3.90, 4.00,
                 4.10, 4.20, 4.30, 4.40, 4.50, 4.60, 4.70, 4.80, 4.90, 5.00, 5.10, 5.20, 5.30,
                 5.40, 5.50, 5.60, 5.70, 5.80),
            ),
        }),
    ),
)

PRODUCT_CATALOG = MappingProxyType({p.id: p for p in _GROWTH_PRODUCTS + _GI_PRODUCTS})


def get_product(product_id: str) -> ProductConfig:
    try:
        return PRODUCT_CATALOG[product_id]
    except KeyError:
        raise UnknownProductError(f"Unknown product identifier: {product_id!r}") from None


def list_products(family: Optional[str] = None):
    """Catalog entries, optionally restricted to one product family."""
    return [p for p in PRODUCT_CATALOG.values() if family is None or p.family == family]


def resolve_bonus(product: ProductConfig, timing: str) -> float:
    """Bonus percent credited at ``timing`` (``issue``, ``anniversary1`` ...)."""
    for bonus in product.bonuses:
        if bonus.timing == timing:
            return bonus.percent
    return 0.0


def resolve_surrender_charge(product: ProductConfig, year_index: int) -> float:
    """Surrender charge percent for 1-based contract year ``year_index``."""
    if year_index < 1 or year_index > len(product.surrender_schedule):
        return 0.0
    return product.surrender_schedule[year_index - 1]


def get_payout_factor(
    product: ProductConfig,
    payout_type: str,
    age: int,
    payout_option: str = "level",
) -> float:
    """Payout percentage at ``age`` as a decimal fraction.

    Ages outside the table's range are clamped to its first age (50 or 55)
    or to 80.  Products without an ``increasing`` table use ``level``.
    """
    if not product.payout_table:
        raise ValueError(f"Product {product.id!r} has no payout table")
    option_table = product.payout_table.get(payout_option)
    if option_table is None:
        option_table = product.payout_table["level"]
    table = option_table["joint" if payout_type == "joint" else "single"]

    min_age = min(table)
    max_age = min(max(table), MAX_PAYOUT_AGE)
    clamped = min(max(age, min_age), max_age)
    if clamped != age:
        logger.warning(
            "Payout age %s outside %s table range %s-%s; clamped to %s",
            age,
            product.id,
            min_age,
            max_age,
            clamped,
        )
    return table[clamped] / 100.0


def get_roll_up_for_year(
    product: ProductConfig,
    deferral_year: int,
    selected_option: Optional[str] = None,
) -> Optional[RollUp]:
    """Roll-up credited in 1-based deferral year ``deferral_year``.

    ``None`` once the year exceeds the maximum roll-up period, and for a year
    that no tier covers.
    """
    config: Optional[RollUpConfig] = product.roll_up
    if config is None:
        return None

    if config.options:
        wanted = selected_option or config.default_option or config.options[0].id
        chosen = next((o for o in config.options if o.id == wanted), config.options[0])
        if deferral_year > chosen.max_period:
            return None
        return RollUp(chosen.rate, chosen.compounding, chosen.max_period)

    if deferral_year > config.max_period:
        return None
    if config.tiers:
        for tier in config.tiers:
            if tier.start_year <= deferral_year <= tier.end_year:
                return RollUp(tier.rate, config.compounding, config.max_period)
        logger.warning("No roll-up tier for %s deferral year %s", product.id, deferral_year)
        return None
    if config.rate is not None:
        return RollUp(config.rate, config.compounding, config.max_period)
    return None


def product_from_dict(data: Dict) -> ProductConfig:
    """Build a custom :class:`ProductConfig` from a JSON-style mapping."""
    roll_up = None
    if data.get("roll_up"):
        ru = dict(data["roll_up"])
        ru["tiers"] = tuple(RollUpTier(**t) for t in ru.get("tiers", ()))
        ru["options"] = tuple(RollUpOption(**o) for o in ru.get("options", ()))
        roll_up = RollUpConfig(**ru)
    payout_table = None
    if data.get("payout_table"):
        payout_table = MappingProxyType({
            option: MappingProxyType({
                kind: MappingProxyType({int(age): pct for age, pct in ages.items()})
                for kind, ages in by_kind.items()
            })
            for option, by_kind in data["payout_table"].items()
        })
    return ProductConfig(
        id=data["id"],
        label=data.get("label", data["id"]),
        family=data.get("family", "growth"),
        bonuses=tuple(BonusItem(**b) for b in data.get("bonuses", ())),
        surrender_schedule=tuple(data.get("surrender_schedule", ())),
        payout_table=payout_table,
        roll_up=roll_up,
        rider_fee_rate=data.get("rider_fee_rate", 0.0),
        rider_fee_basis=data.get("rider_fee_basis", "income_base"),
        bonus_applies_to=data.get("bonus_applies_to"),
        increasing_rate=data.get("increasing_rate", 0.0),
    )


__all__ = [
    "PRODUCT_CATALOG",
    "get_product",
    "list_products",
    "resolve_bonus",
    "resolve_surrender_charge",
    "get_payout_factor",
    "get_roll_up_for_year",
    "product_from_dict",
]
