"""
Discount Policy - Decides whether a promo code can be applied to an order.

The pricing engine applies whatever discount it is handed; this policy
is the gate in front of it (checkout promo field, payment intent
creation).
"""
import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional

from ..engine.discounts import check_discount_value, discount_amount_for
from ..engine.errors import InvalidDiscount, InvalidInput
from ..engine.models import Discount
from ..engine.money import ZERO, format_gbp, round_money, to_decimal

logger = logging.getLogger(__name__)


@dataclass
class DiscountValidation:
    """Outcome of a promo code check: either a usable discount or an error message."""
    valid: bool
    code: str
    discount: Optional[Discount] = None
    discount_amount: Decimal = ZERO
    error: Optional[str] = None

    def unwrap(self) -> Discount:
        """Return the discount, or raise InvalidDiscount with the error message."""
        if not self.valid:
            raise InvalidDiscount(self.error, code=self.code)
        return self.discount

    def to_dict(self) -> dict:
        data = {"valid": self.valid, "code": self.code}
        if self.valid:
            data.update({
                "type": self.discount.kind.value,
                "discount": str(self.discount.value),
                "description": self.discount.description,
                "discount_amount": str(self.discount_amount),
            })
        else:
            data["error"] = self.error
        return data


class DiscountPolicy:
    """
    Applicability checks for promo codes.

    Checks run in a fixed order and the first failure is reported:
    1. Code is active
    2. Validity window has started
    3. Validity window has not ended (valid_until is inclusive)
    4. Minimum spend is met
    5. Usage limit is not reached
    """

    def __init__(self, repository=None, today: Optional[date] = None):
        self.repository = repository
        self.today = today

    def _reject(self, discount: Discount, message: str) -> DiscountValidation:
        logger.info("Promo code %s rejected: %s", discount.code, message)
        return DiscountValidation(valid=False, code=discount.code, error=message)

    def validate(self, discount: Discount, subtotal, today: Optional[date] = None) -> DiscountValidation:
        """
        Check a discount against the order subtotal.

        Raises:
            InvalidInput: negative subtotal or a malformed discount value
        """
        subtotal = to_decimal(subtotal, 'subtotal')
        if subtotal < ZERO:
            raise InvalidInput("Valid subtotal is required", field='subtotal')
        check_discount_value(discount)

        today = today or self.today or date.today()

        if not discount.active:
            return self._reject(discount, "This promo code is no longer active")

        if discount.valid_from is not None and today < discount.valid_from:
            return self._reject(discount, "This promo code is not yet valid")

        if discount.valid_until is not None and today > discount.valid_until:
            return self._reject(discount, "This promo code has expired")

        if discount.min_amount is not None and subtotal < discount.min_amount:
            return self._reject(
                discount,
                f"Minimum order amount of {format_gbp(discount.min_amount)} required for this promo code",
            )

        if discount.usage_limit is not None and discount.usage_count >= discount.usage_limit:
            return self._reject(discount, "This promo code has reached its usage limit")

        return DiscountValidation(
            valid=True,
            code=discount.code,
            discount=discount,
            discount_amount=round_money(discount_amount_for(discount, round_money(subtotal))),
        )

    def validate_code(self, code: str, subtotal, today: Optional[date] = None) -> DiscountValidation:
        """Look the code up in the repository, then validate it."""
        normalized = str(code or '').upper().strip()
        if not normalized:
            raise InvalidInput("Promo code is required", field='code')
        if self.repository is None:
            raise InvalidInput("No discount repository configured", field='code')

        discount = self.repository.get(normalized)
        if discount is None:
            logger.info("Unknown promo code %s", normalized)
            return DiscountValidation(valid=False, code=normalized, error="Invalid promo code")
        return self.validate(discount, subtotal, today)
