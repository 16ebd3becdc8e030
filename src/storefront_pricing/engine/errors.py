"""
Errors raised by the pricing and rule evaluators.
"""


class PricingError(ValueError):
    """Base class for storefront pricing errors."""


class InvalidInput(PricingError):
    """Malformed cart, policy or rule input, rejected before any computation."""

    def __init__(self, message: str, field: str = None):
        super().__init__(message)
        self.field = field


class InvalidDiscount(PricingError):
    """A discount code that exists but cannot be applied to this order."""

    def __init__(self, message: str, code: str = None):
        super().__init__(message)
        self.code = code
