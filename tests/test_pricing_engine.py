"""
Order totals tests.

These pin the order of operations (discount, free delivery on the
pre-discount subtotal, VAT on the discounted subtotal plus delivery,
minimum charge) and the worked carts the checkout relies on.
"""
import pytest
import sys
import os
from decimal import Decimal

# Add src to path for internal imports
src_path = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'src')
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from storefront_pricing.config.settings import Settings
from storefront_pricing.engine import (
    Discount, DiscountKind, InvalidInput, LineItem, PricingEngine,
    ShippingPolicy, TaxBase, TaxPolicy, compute_totals, free_shipping_remaining,
)


@pytest.fixture
def uk_standard():
    return ShippingPolicy(base_rate="4.99", free_threshold="50.00")


@pytest.fixture
def vat():
    return TaxPolicy(rate="0.20")


@pytest.fixture
def two_tees():
    return [
        LineItem(unit_price="24.99", quantity=1, sku="UK-FLAG-TEE"),
        LineItem(unit_price="19.99", quantity=1, sku="REGT-HOODIE"),
    ]


@pytest.fixture(scope="module")
def engine():
    return PricingEngine(Settings())


def test_paid_delivery_below_threshold(two_tees, uk_standard, vat):
    """44.98 cart pays 4.99 delivery and VAT on 49.97."""
    result = compute_totals(two_tees, uk_standard, vat)

    assert result.subtotal == Decimal("44.98")
    assert result.discount_amount == Decimal("0.00")
    assert result.free_shipping_applied is False
    assert result.shipping_cost == Decimal("4.99")
    assert result.taxable_amount == Decimal("49.97")
    assert result.tax == Decimal("9.99")
    assert result.total == Decimal("54.97")
    assert result.amount_due_minor_units == 5497


def test_free_delivery_at_sixty(two_tees, uk_standard, vat):
    """Third item takes the subtotal to 60.00 and unlocks free delivery."""
    items = two_tees + [LineItem(unit_price="15.02", quantity=1)]
    result = compute_totals(items, uk_standard, vat)

    assert result.subtotal == Decimal("60.00")
    assert result.free_shipping_applied is True
    assert result.shipping_cost == Decimal("0")
    assert result.tax == Decimal("12.00")
    assert result.total == Decimal("72.00")


def test_percentage_discount(uk_standard, vat):
    items = [LineItem(unit_price="100.00", quantity=1)]
    discount = Discount(code="MILITARY10", kind=DiscountKind.PERCENTAGE, value=10)
    result = compute_totals(items, uk_standard, vat, discount)

    assert result.discount_amount == Decimal("10.00")
    assert result.discounted_subtotal == Decimal("90.00")
    assert result.free_shipping_applied is True
    assert result.tax == Decimal("18.00")
    assert result.total == Decimal("108.00")
    assert result.discount_code == "MILITARY10"


def test_free_delivery_uses_pre_discount_subtotal(uk_standard, vat):
    """A discount that drops the cart under 50 does not take free delivery away."""
    items = [LineItem(unit_price="60.00", quantity=1)]
    discount = Discount(code="TWENTYOFF", kind="fixed", value="20")
    result = compute_totals(items, uk_standard, vat, discount)

    assert result.discounted_subtotal == Decimal("40.00")
    assert result.free_shipping_applied is True
    assert result.shipping_cost == Decimal("0")
    assert result.tax == Decimal("8.00")
    assert result.total == Decimal("48.00")


def test_fixed_discount_clamped_to_subtotal(uk_standard, vat):
    items = [LineItem(unit_price="10.00", quantity=1)]
    discount = Discount(code="BIG", kind=DiscountKind.FIXED, value="25.00")
    result = compute_totals(items, uk_standard, vat, discount)

    assert result.discount_amount == result.subtotal == Decimal("10.00")
    assert result.discounted_subtotal == Decimal("0.00")
    assert result.shipping_cost == Decimal("4.99")
    assert result.tax == Decimal("1.00")
    assert result.total == Decimal("5.99")


def test_zero_percent_same_as_no_discount(two_tees, uk_standard, vat):
    zero = Discount(code="NOTHING", kind=DiscountKind.PERCENTAGE, value=0)
    with_zero = compute_totals(two_tees, uk_standard, vat, zero)
    without = compute_totals(two_tees, uk_standard, vat)

    assert with_zero.discount_amount == 0
    assert with_zero.total == without.total
    assert with_zero.tax == without.tax


def test_max_discount_caps_percentage(vat):
    items = [LineItem(unit_price="100.00", quantity=4)]
    shipping = ShippingPolicy(base_rate="4.99", free_threshold="50.00")
    discount = Discount(code="FIRSTORDER", kind="percentage", value=15, max_discount=50)
    result = compute_totals(items, shipping, vat, discount)

    assert result.discount_amount == Decimal("50.00")
    assert result.total == Decimal("420.00")


def test_exactly_at_threshold_is_free(uk_standard, vat):
    result = compute_totals([LineItem(unit_price="25.00", quantity=2)], uk_standard, vat)
    assert result.subtotal == Decimal("50.00")
    assert result.free_shipping_applied is True


def test_minimum_charge_floor(vat):
    """Fully discounted order with free delivery is still charged 50p."""
    items = [LineItem(unit_price="12.00", quantity=1)]
    shipping = ShippingPolicy(base_rate="4.99", free_threshold="0")
    discount = Discount(code="FREEBIE", kind=DiscountKind.PERCENTAGE, value=100)
    result = compute_totals(items, shipping, vat, discount)

    assert result.discounted_subtotal == Decimal("0.00")
    assert result.tax == Decimal("0.00")
    assert result.total == Decimal("0.50")
    assert result.minimum_charge_applied is True
    assert any("minimum charge" in w for w in result.warnings)


def test_total_never_below_minimum(vat):
    shipping = ShippingPolicy(base_rate="0", free_threshold="50")
    for price in ("0", "0.01", "0.10", "0.41", "0.42", "3.00"):
        result = compute_totals([LineItem(unit_price=price, quantity=1)], shipping, vat)
        assert result.total >= Decimal("0.50"), f"total {result.total} for price {price}"


def test_rounding_is_half_up():
    """0.005 VAT rounds up to a penny."""
    shipping = ShippingPolicy(base_rate="0", free_threshold="0")
    result = compute_totals([LineItem(unit_price="0.05", quantity=1)], shipping, TaxPolicy(rate="0.1"))
    assert result.tax == Decimal("0.01")

    result = compute_totals([LineItem(unit_price="0.125", quantity=1)], shipping, TaxPolicy(rate="0"))
    assert result.subtotal == Decimal("0.13")


def test_subtotal_only_tax_base(two_tees, uk_standard):
    tax = TaxPolicy(rate="0.20", base=TaxBase.SUBTOTAL_ONLY)
    result = compute_totals(two_tees, uk_standard, tax)

    assert result.taxable_amount == Decimal("44.98")
    assert result.tax == Decimal("9.00")
    assert result.total == Decimal("58.97")


def test_float_prices_keep_their_pence():
    item = LineItem(unit_price=24.99, quantity=3)
    assert item.unit_price == Decimal("24.99")
    assert item.line_total == Decimal("74.97")


def test_deterministic(two_tees, uk_standard, vat):
    discount = Discount(code="SAVE5", kind="fixed", value=5)
    first = compute_totals(two_tees, uk_standard, vat, discount)
    second = compute_totals(two_tees, uk_standard, vat, discount)
    assert first.to_dict() == second.to_dict()


def test_trace_and_dict_output(two_tees, uk_standard, vat):
    result = compute_totals(two_tees, uk_standard, vat)
    steps = [t.step for t in result.trace]

    assert steps[0] == "Subtotal"
    assert steps[-1] == "Total"
    assert "VAT" in steps
    assert "20% of £49.97" in result.get_trace_text()

    data = result.to_dict()
    assert data["total"] == "54.97"
    assert data["tax"] == "9.99"
    assert data["amount_due_minor_units"] == 5497


@pytest.mark.parametrize("items", [
    [],
    None,
    [LineItem(unit_price="-1.00", quantity=1)],
    [LineItem(unit_price="5.00", quantity=0)],
    [LineItem(unit_price="5.00", quantity=-2)],
    [LineItem(unit_price="5.00", quantity=1.5)],
    [LineItem(unit_price="5.00", quantity=True)],
], ids=["empty", "none", "negative-price", "zero-qty", "negative-qty", "fractional-qty", "bool-qty"])
def test_invalid_cart_rejected(items, uk_standard, vat):
    with pytest.raises(InvalidInput):
        compute_totals(items, uk_standard, vat)


@pytest.mark.parametrize("kind,value", [
    ("percentage", "100.01"),
    ("percentage", "-1"),
    ("fixed", "-5"),
])
def test_out_of_range_discount_rejected(kind, value, two_tees, uk_standard, vat):
    discount = Discount(code="BAD", kind=kind, value=value)
    with pytest.raises(InvalidInput):
        compute_totals(two_tees, uk_standard, vat, discount)


def test_malformed_values_rejected():
    with pytest.raises(InvalidInput):
        LineItem(unit_price="abc", quantity=1)
    with pytest.raises(InvalidInput):
        Discount(code="X", kind="bogo", value=1)
    with pytest.raises(InvalidInput):
        TaxPolicy(rate="0.2", base="vat_on_everything")


def test_negative_policies_rejected(two_tees, vat):
    with pytest.raises(InvalidInput):
        compute_totals(two_tees, ShippingPolicy(base_rate="4.99", free_threshold="-1"), vat)
    with pytest.raises(InvalidInput):
        compute_totals(two_tees, ShippingPolicy(base_rate="-4.99"), vat)
    with pytest.raises(InvalidInput):
        compute_totals(two_tees, ShippingPolicy(base_rate="4.99"), TaxPolicy(rate="-0.2"))


def test_engine_defaults_match_uk_standard(engine, two_tees):
    result = engine.compute_totals(two_tees)
    assert result.shipping_cost == Decimal("4.99")
    assert result.total == Decimal("54.97")


def test_engine_settings_override(two_tees):
    engine = PricingEngine(Settings().with_overrides(free_shipping_threshold=Decimal("40.00")))
    result = engine.compute_totals(two_tees)
    assert result.free_shipping_applied is True
    assert result.total == Decimal("53.98")


def test_quote_express_never_free(engine):
    items = [LineItem(unit_price="60.00", quantity=1)]
    result = engine.quote(items, country_code="GB", method="express")

    assert result.free_shipping_applied is False
    assert result.shipping_cost == Decimal("9.99")
    assert result.tax == Decimal("14.00")
    assert result.total == Decimal("83.99")


def test_quote_eu_threshold(engine):
    items = [LineItem(unit_price="60.00", quantity=1)]
    result = engine.quote(items, country_code="de")

    assert result.free_shipping_applied is False
    assert result.shipping_cost == Decimal("12.99")
    assert result.tax == Decimal("14.60")
    assert result.total == Decimal("87.59")


def test_quote_unknown_method(engine):
    with pytest.raises(InvalidInput):
        engine.quote([LineItem(unit_price="10", quantity=1)], method="carrier-pigeon")


def test_free_shipping_remaining(uk_standard):
    assert free_shipping_remaining("44.98", uk_standard) == Decimal("5.02")
    assert free_shipping_remaining("75.00", uk_standard) == Decimal("0.00")
    assert free_shipping_remaining("10", ShippingPolicy(base_rate="9.99", free_threshold=None)) is None
