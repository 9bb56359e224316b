"""Tests for the annuity product catalog."""

import logging

import pytest

from roth_planner.calculators import products
from roth_planner.models import UnknownProductError


def test_unknown_product():
    with pytest.raises(UnknownProductError):
        products.get_product("no-such-product")


def test_catalog_families():
    assert len(products.list_products("growth")) == 3
    assert len(products.list_products("guaranteed_income")) == 4
    assert len(products.list_products()) == 7
    assert all(p.is_guaranteed_income for p in products.list_products("guaranteed_income"))


def test_catalog_is_read_only():
    with pytest.raises(TypeError):
        products.PRODUCT_CATALOG["fia"] = None


def test_bonus_and_surrender():
    fia = products.get_product("fia")
    assert products.resolve_bonus(fia, "issue") == 10
    assert products.resolve_bonus(fia, "anniversary1") == 0
    assert products.resolve_surrender_charge(fia, 1) == 9
    assert products.resolve_surrender_charge(fia, 7) == 3
    assert products.resolve_surrender_charge(fia, 8) == 0


def test_payout_factors():
    athene = products.get_product("athene-ascent-pro-10")
    assert products.get_payout_factor(athene, "single", 70) == pytest.approx(0.046)
    assert products.get_payout_factor(athene, "joint", 65) == pytest.approx(0.036)


def test_payout_age_clamped(caplog):
    athene = products.get_product("athene-ascent-pro-10")
    with caplog.at_level(logging.WARNING):
        assert products.get_payout_factor(athene, "single", 50) == pytest.approx(0.036)
    assert "outside" in caplog.text
    assert products.get_payout_factor(athene, "single", 90) == pytest.approx(0.056)


def test_payout_options():
    north = products.get_product("north-american-income-pay-pro")
    assert products.get_payout_factor(north, "single", 65, "increasing") == pytest.approx(0.048)
    assert products.get_payout_factor(north, "single", 65, "level") == pytest.approx(0.068)
    athene = products.get_product("athene-ascent-pro-10")
    # No increasing table: level applies.
    assert products.get_payout_factor(athene, "single", 60, "increasing") == pytest.approx(0.041)


def test_tiered_simple_roll_up():
    athene = products.get_product("athene-ascent-pro-10")
    first = products.get_roll_up_for_year(athene, 1)
    assert (first.rate, first.compounding) == (10, "simple")
    assert products.get_roll_up_for_year(athene, 11).rate == 5
    assert products.get_roll_up_for_year(athene, 21) is None


def test_tiered_compound_roll_up():
    equitrust = products.get_product("equitrust-marketearly-income-index")
    year_six = products.get_roll_up_for_year(equitrust, 6)
    assert (year_six.rate, year_six.compounding) == (4, "compound")
    assert products.get_roll_up_for_year(equitrust, 11) is None


def test_flat_roll_up():
    amerequity = products.get_product("american-equity-incomeshield-bonus-10")
    assert products.get_roll_up_for_year(amerequity, 10).rate == 8.25
    assert products.get_roll_up_for_year(amerequity, 11) is None


def test_roll_up_tier_gap(caplog):
    product = products.product_from_dict({
        "id": "gap",
        "family": "guaranteed_income",
        "roll_up": {
            "max_period": 10,
            "compounding": "compound",
            "tiers": [{"start_year": 1, "end_year": 3, "rate": 6}],
        },
    })
    assert products.get_roll_up_for_year(product, 2).rate == 6
    with caplog.at_level(logging.WARNING):
        assert products.get_roll_up_for_year(product, 5) is None
    assert "No roll-up tier" in caplog.text


def test_roll_up_options():
    product = products.product_from_dict({
        "id": "options",
        "family": "guaranteed_income",
        "roll_up": {
            "max_period": 10,
            "default_option": "b",
            "options": [
                {"id": "a", "label": "A", "compounding": "simple", "rate": 7, "max_period": 10},
                {"id": "b", "label": "B", "compounding": "compound", "rate": 5, "max_period": 15},
            ],
        },
    })
    assert products.get_roll_up_for_year(product, 1).rate == 5
    assert products.get_roll_up_for_year(product, 1, "a").rate == 7
    assert products.get_roll_up_for_year(product, 11, "a") is None
    assert products.get_roll_up_for_year(product, 12).rate == 5


def test_product_from_dict_payout_table():
    product = products.product_from_dict({
        "id": "custom-gi",
        "label": "Custom",
        "family": "guaranteed_income",
        "bonuses": [{"percent": 5, "timing": "issue"}],
        "bonus_applies_to": "income_base",
        "rider_fee_rate": 1.0,
        "roll_up": {"max_period": 10, "rate": 6},
        "payout_table": {"level": {"single": {"60": 5.0, "61": 5.5}, "joint": {"60": 4.5}}},
    })
    assert products.resolve_bonus(product, "issue") == 5
    assert products.get_payout_factor(product, "single", 61) == pytest.approx(0.055)
    assert products.get_payout_factor(product, "joint", 60) == pytest.approx(0.045)
