"""
Cart request models shared by the totals, quote and payment routes.
"""
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel

from ..engine.models import Discount, LineItem
from ..engine.pricing_engine import validate_items
from ..policy.discount_policy import DiscountPolicy


class CartLine(BaseModel):
    unit_price: Decimal
    quantity: int
    sku: str = ""
    description: str = ""


class DiscountIn(BaseModel):
    code: str
    type: str
    value: Decimal
    max_discount: Optional[Decimal] = None


def line_items(lines: List[CartLine]) -> list[LineItem]:
    """Cart lines, checked before any promo code is looked up."""
    return validate_items([
        LineItem(unit_price=l.unit_price, quantity=l.quantity, sku=l.sku, description=l.description)
        for l in lines
    ])


def resolve_discount(explicit: Optional[DiscountIn], code: Optional[str], items: list[LineItem],
                     policy: DiscountPolicy) -> Optional[Discount]:
    """An explicit discount record wins; a code is looked up and must pass the policy."""
    if explicit is not None:
        return Discount(
            code=explicit.code, kind=explicit.type, value=explicit.value,
            max_discount=explicit.max_discount,
        )
    if code:
        subtotal = sum((item.line_total for item in items), Decimal("0"))
        return policy.validate_code(code, subtotal).unwrap()
    return None
