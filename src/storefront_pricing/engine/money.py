"""
Currency helpers. Amounts are Decimal pounds; pence only at the payment boundary.
"""
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from .errors import InvalidInput

ZERO = Decimal("0")
PENNY = Decimal("0.01")


def to_decimal(value, field: str = "amount") -> Decimal:
    """
    Convert an int, str, float or Decimal into a Decimal.

    Floats go through str() so 24.99 stays Decimal('24.99') rather than
    the binary expansion.
    """
    if isinstance(value, bool):
        raise InvalidInput(f"{field} must be a number, got {value!r}", field=field)
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, (int, str)):
        try:
            result = Decimal(str(value).strip())
        except InvalidOperation:
            raise InvalidInput(f"{field} is not a valid amount: {value!r}", field=field)
    elif isinstance(value, float):
        result = Decimal(str(value))
    else:
        raise InvalidInput(f"{field} must be a number, got {type(value).__name__}", field=field)

    if not result.is_finite():
        raise InvalidInput(f"{field} must be finite, got {value!r}", field=field)
    return result


def round_money(amount: Decimal) -> Decimal:
    """Round to whole pence, half up."""
    return amount.quantize(PENNY, rounding=ROUND_HALF_UP)


def to_minor_units(amount) -> int:
    """Pounds → pence, as the payment processor expects."""
    return int((round_money(to_decimal(amount)) * 100).to_integral_value(rounding=ROUND_HALF_UP))


def from_minor_units(pence: int) -> Decimal:
    """Pence → pounds."""
    return (Decimal(int(pence)) / 100).quantize(PENNY)


def format_gbp(amount: Decimal) -> str:
    """Display format used on order summaries, e.g. £54.97."""
    return f"£{round_money(amount):.2f}"
