"""
Pricing Engine - Order totals for checkout, payment and order emails.

Every caller (checkout summary, payment intent creation, confirmation
emails, webhook reconciliation) goes through compute_totals so the
amount shown, charged and emailed is the same.

Order of operations:
1. Subtotal of all lines
2. Discount (percentage or fixed, clamped to the subtotal)
3. Free delivery check on the pre-discount subtotal
4. VAT on (subtotal - discount + shipping)
5. Total, raised to the minimum chargeable amount if needed

Rounding is half-up to the penny, once per output field.
"""
import logging
from decimal import Decimal
from typing import Iterable, Optional

from ..config.settings import Settings, get_settings
from .discounts import check_discount_value, discount_amount_for
from .errors import InvalidInput
from .models import Discount, DiscountKind, LineItem, ShippingPolicy, TaxBase, TaxPolicy, TotalsBreakdown
from .money import ZERO, format_gbp, round_money, to_decimal

logger = logging.getLogger(__name__)

MINIMUM_CHARGEABLE = Decimal("0.50")


def validate_items(items) -> list[LineItem]:
    """Reject an empty cart, negative prices and non-positive or fractional quantities."""
    if items is None:
        raise InvalidInput("Cart has no items", field='items')
    items = list(items)
    if not items:
        raise InvalidInput("Cart has no items", field='items')

    for index, item in enumerate(items):
        if not isinstance(item, LineItem):
            raise InvalidInput(f"Line {index} is not a LineItem", field=f'items[{index}]')
        if item.unit_price < ZERO:
            raise InvalidInput(
                f"Line {index} has a negative unit price ({item.unit_price})",
                field=f'items[{index}].unit_price',
            )
        if isinstance(item.quantity, bool) or not isinstance(item.quantity, int) or item.quantity < 1:
            raise InvalidInput(
                f"Line {index} quantity must be a positive integer, got {item.quantity!r}",
                field=f'items[{index}].quantity',
            )
    return items


def _validate_policies(shipping_policy: ShippingPolicy, tax_policy: TaxPolicy):
    if shipping_policy.free_threshold is not None and shipping_policy.free_threshold < ZERO:
        raise InvalidInput("Free shipping threshold cannot be negative", field='free_threshold')
    if shipping_policy.base_rate < ZERO:
        raise InvalidInput("Shipping rate cannot be negative", field='base_rate')
    if tax_policy.rate < ZERO:
        raise InvalidInput("Tax rate cannot be negative", field='rate')


def compute_totals(
    items: Iterable[LineItem],
    shipping_policy: ShippingPolicy,
    tax_policy: TaxPolicy,
    discount: Optional[Discount] = None,
    minimum_chargeable: Decimal = MINIMUM_CHARGEABLE,
) -> TotalsBreakdown:
    """
    Compute the totals breakdown for a cart.

    Args:
        items: Non-empty cart lines
        shipping_policy: Selected delivery rate and free-delivery threshold
        tax_policy: VAT rate and base
        discount: Optional promo code, already checked by DiscountPolicy
        minimum_chargeable: Floor for the grand total

    Returns:
        TotalsBreakdown with trace

    Raises:
        InvalidInput: empty cart, negative price, quantity < 1, or a
            discount value out of range
    """
    items = validate_items(items)
    _validate_policies(shipping_policy, tax_policy)
    if discount is not None:
        check_discount_value(discount)

    subtotal = round_money(sum((item.line_total for item in items), ZERO))
    discount_amount = round_money(discount_amount_for(discount, subtotal))
    discounted_subtotal = subtotal - discount_amount

    free_shipping_applied = (
        shipping_policy.free_threshold is not None and subtotal >= shipping_policy.free_threshold
    )
    shipping_cost = ZERO if free_shipping_applied else round_money(shipping_policy.base_rate)

    if tax_policy.base == TaxBase.SUBTOTAL_ONLY:
        taxable_amount = discounted_subtotal
    else:
        taxable_amount = discounted_subtotal + shipping_cost
    tax = round_money(taxable_amount * tax_policy.rate)

    total = discounted_subtotal + shipping_cost + tax

    result = TotalsBreakdown(
        subtotal=subtotal,
        discount_amount=discount_amount,
        shipping_cost=shipping_cost,
        tax=tax,
        total=total,
        free_shipping_applied=free_shipping_applied,
        taxable_amount=taxable_amount,
        discount_code=discount.code if discount else None,
    )

    result.add_trace("Subtotal", f"{len(items)} line(s)", format_gbp(subtotal))
    if discount is None:
        result.add_trace("Discount", "No promo code")
    elif discount.kind == DiscountKind.PERCENTAGE:
        result.add_trace("Discount", f"{discount.code}: {discount.value}% off", f"-{format_gbp(discount_amount)}")
    else:
        result.add_trace("Discount", f"{discount.code}: {format_gbp(discount.value)} off", f"-{format_gbp(discount_amount)}")

    if free_shipping_applied:
        result.add_trace(
            "Shipping",
            f"Subtotal at or over {format_gbp(shipping_policy.free_threshold)}, free {shipping_policy.method} delivery",
            format_gbp(ZERO),
        )
    else:
        result.add_trace("Shipping", f"{shipping_policy.zone} {shipping_policy.method} delivery", format_gbp(shipping_cost))

    result.add_trace("VAT", f"{(tax_policy.rate * 100).normalize():f}% of {format_gbp(taxable_amount)}", format_gbp(tax))

    if total < minimum_chargeable:
        logger.warning("Order total %s below minimum charge, raised to %s", total, minimum_chargeable)
        result.total = round_money(minimum_chargeable)
        result.minimum_charge_applied = True
        result.add_warning(f"Total raised to minimum charge of {format_gbp(minimum_chargeable)}")
        result.add_trace("Minimum Charge", f"{format_gbp(total)} is below the minimum", format_gbp(result.total))

    result.add_trace("Total", "Subtotal - discount + shipping + VAT", format_gbp(result.total))

    logger.debug(
        "Totals: subtotal=%s discount=%s shipping=%s tax=%s total=%s",
        subtotal, discount_amount, shipping_cost, tax, result.total,
    )
    return result


def free_shipping_remaining(subtotal, shipping_policy: ShippingPolicy) -> Optional[Decimal]:
    """How much more the customer needs to spend to unlock free delivery (None if never free)."""
    if shipping_policy.free_threshold is None:
        return None
    remaining = shipping_policy.free_threshold - to_decimal(subtotal, 'subtotal')
    return round_money(max(ZERO, remaining))


class PricingEngine:
    """
    Totals engine bound to one Settings instance.

    Construct one per request scope (or share it; it holds no mutable
    state). The shipping zone resolver is optional and only needed for
    quote().
    """

    def __init__(self, settings: Optional[Settings] = None, zone_resolver=None):
        self.settings = settings or get_settings()
        self._zone_resolver = zone_resolver

    @property
    def zone_resolver(self):
        if self._zone_resolver is None:
            from ..policy.shipping_zones import ShippingZoneResolver
            self._zone_resolver = ShippingZoneResolver.from_settings(self.settings)
        return self._zone_resolver

    def default_shipping_policy(self) -> ShippingPolicy:
        """UK standard delivery from settings."""
        return ShippingPolicy(
            base_rate=self.settings.standard_shipping_rate,
            free_threshold=self.settings.free_shipping_threshold,
        )

    def default_tax_policy(self) -> TaxPolicy:
        return TaxPolicy(rate=self.settings.vat_rate)

    def compute_totals(
        self,
        items: Iterable[LineItem],
        shipping_policy: Optional[ShippingPolicy] = None,
        tax_policy: Optional[TaxPolicy] = None,
        discount: Optional[Discount] = None,
    ) -> TotalsBreakdown:
        """compute_totals with this engine's defaults filled in."""
        return compute_totals(
            items,
            shipping_policy or self.default_shipping_policy(),
            tax_policy or self.default_tax_policy(),
            discount,
            minimum_chargeable=self.settings.minimum_chargeable,
        )

    def quote(
        self,
        items: Iterable[LineItem],
        country_code: str = "GB",
        method: str = "standard",
        discount: Optional[Discount] = None,
    ) -> TotalsBreakdown:
        """
        Totals for a delivery destination and method.

        Resolves the shipping zone for the country, then computes totals.
        """
        shipping_policy = self.zone_resolver.policy_for(country_code, method)
        return self.compute_totals(items, shipping_policy, discount=discount)
