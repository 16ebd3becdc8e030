"""
Discount amount rules shared by the pricing engine and the discount policy.
"""
from decimal import Decimal
from typing import Optional

from .errors import InvalidInput
from .models import Discount, DiscountKind
from .money import ZERO

HUNDRED = Decimal("100")


def check_discount_value(discount: Discount):
    """Reject values outside the range for the discount kind."""
    if discount.kind == DiscountKind.PERCENTAGE:
        if discount.value < ZERO or discount.value > HUNDRED:
            raise InvalidInput(
                f"Percentage discount {discount.code} must be between 0 and 100, got {discount.value}",
                field='discount.value',
            )
    elif discount.value < ZERO:
        raise InvalidInput(
            f"Fixed discount {discount.code} cannot be negative, got {discount.value}",
            field='discount.value',
        )
    if discount.max_discount is not None and discount.max_discount < ZERO:
        raise InvalidInput(
            f"max_discount for {discount.code} cannot be negative",
            field='discount.max_discount',
        )


def discount_amount_for(discount: Optional[Discount], subtotal: Decimal) -> Decimal:
    """
    Unrounded discount for a subtotal, clamped to [0, subtotal].

    Percentage codes take value% of the subtotal, limited by max_discount
    when the code has one. Fixed codes never exceed the subtotal.
    """
    if discount is None:
        return ZERO

    if discount.kind == DiscountKind.PERCENTAGE:
        amount = subtotal * discount.value / HUNDRED
        if discount.max_discount is not None:
            amount = min(amount, discount.max_discount)
    else:
        amount = discount.value

    return max(ZERO, min(amount, subtotal))
