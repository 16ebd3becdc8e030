"""
Payment reconciliation and minor-unit conversion tests.
"""
import pytest
import sys
import os
from decimal import Decimal

# Add src to path for internal imports
src_path = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'src')
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from storefront_pricing.engine import InvalidInput, LineItem, PricingEngine
from storefront_pricing.config.settings import Settings
from storefront_pricing.engine.money import format_gbp, from_minor_units, to_decimal, to_minor_units
from storefront_pricing.services.reconciliation import reconcile


@pytest.fixture(scope="module")
def breakdown():
    items = [LineItem(unit_price="24.99", quantity=1), LineItem(unit_price="19.99", quantity=1)]
    return PricingEngine(Settings()).compute_totals(items)


def test_payment_matches(breakdown):
    result = reconcile(breakdown, 5497)
    assert result.matches
    assert result.difference_minor_units == 0


def test_payment_short(breakdown):
    result = reconcile(breakdown, 5400)
    assert not result.matches
    assert result.expected_minor_units == 5497
    assert result.difference_minor_units == -97


def test_currency_mismatch(breakdown):
    result = reconcile(breakdown, 5497, currency="EUR")
    assert not result.matches
    assert result.currency == "eur"

    assert reconcile(breakdown, 5497, currency="GBP").matches


def test_minor_units():
    assert to_minor_units(Decimal("54.97")) == 5497
    assert to_minor_units("0.5") == 50
    assert to_minor_units(Decimal("10.005")) == 1001
    assert from_minor_units(5497) == Decimal("54.97")
    assert from_minor_units(50) == Decimal("0.50")


def test_format_gbp():
    assert format_gbp(Decimal("54.97")) == "£54.97"
    assert format_gbp(Decimal("5")) == "£5.00"


@pytest.mark.parametrize("value", ["abc", "NaN", "Infinity", True, None, [1]])
def test_to_decimal_rejects(value):
    with pytest.raises(InvalidInput):
        to_decimal(value)
