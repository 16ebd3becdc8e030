"""
Data models for the pricing engine and rule evaluators.

Uses dataclasses for structured, type-safe data representation.
Currency fields are Decimal; anything numeric passed in is coerced.
"""
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from .errors import InvalidInput
from .money import ZERO, to_decimal, to_minor_units


def to_date(value, field_name: str = "date") -> Optional[date]:
    """Accept a date, datetime or ISO string (YYYY-MM-DD or full timestamp)."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip().replace("Z", "+00:00")
        try:
            return datetime.fromisoformat(text).date()
        except ValueError:
            raise InvalidInput(f"{field_name} is not an ISO date: {value!r}", field=field_name)
    raise InvalidInput(f"{field_name} must be a date, got {type(value).__name__}", field=field_name)


@dataclass
class TraceStep:
    """A single step in the totals computation trace."""
    step: str
    description: str
    value: Optional[str] = None


@dataclass(frozen=True)
class LineItem:
    """A cart line as handed over by the checkout."""
    unit_price: Decimal
    quantity: int
    sku: str = ""
    description: str = ""

    def __post_init__(self):
        object.__setattr__(self, 'unit_price', to_decimal(self.unit_price, 'unit_price'))

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity


@dataclass(frozen=True)
class ShippingPolicy:
    """
    Cost of the selected delivery method and the free-delivery threshold.

    A free_threshold of None means the method is never free (express).
    """
    base_rate: Decimal
    free_threshold: Optional[Decimal] = Decimal("50.00")
    method: str = "standard"
    zone: str = "UK"

    def __post_init__(self):
        object.__setattr__(self, 'base_rate', to_decimal(self.base_rate, 'base_rate'))
        if self.free_threshold is not None:
            object.__setattr__(self, 'free_threshold', to_decimal(self.free_threshold, 'free_threshold'))


class TaxBase(str, Enum):
    SUBTOTAL_PLUS_SHIPPING_MINUS_DISCOUNT = "subtotal_plus_shipping_minus_discount"
    SUBTOTAL_ONLY = "subtotal_only"


@dataclass(frozen=True)
class TaxPolicy:
    """UK VAT at 20% on the discounted subtotal plus delivery."""
    rate: Decimal = Decimal("0.20")
    base: TaxBase = TaxBase.SUBTOTAL_PLUS_SHIPPING_MINUS_DISCOUNT

    def __post_init__(self):
        object.__setattr__(self, 'rate', to_decimal(self.rate, 'rate'))
        try:
            object.__setattr__(self, 'base', TaxBase(self.base))
        except ValueError:
            raise InvalidInput(f"Unknown tax base: {self.base!r}", field='base')


class DiscountKind(str, Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


@dataclass(frozen=True)
class Discount:
    """
    A promo code record.

    value is a percentage in [0, 100] for PERCENTAGE codes and a pound
    amount for FIXED codes. The remaining fields only matter to the
    discount policy (applicability), except max_discount which caps a
    percentage discount.
    """
    code: str
    kind: DiscountKind
    value: Decimal
    description: str = ""
    min_amount: Optional[Decimal] = None
    max_discount: Optional[Decimal] = None
    valid_from: Optional[date] = None
    valid_until: Optional[date] = None
    usage_limit: Optional[int] = None
    usage_count: int = 0
    active: bool = True

    def __post_init__(self):
        object.__setattr__(self, 'code', str(self.code).upper().strip())
        try:
            object.__setattr__(self, 'kind', DiscountKind(self.kind))
        except ValueError:
            raise InvalidInput(f"Unknown discount type: {self.kind!r}", field='kind')
        object.__setattr__(self, 'value', to_decimal(self.value, 'value'))
        if self.min_amount is not None:
            object.__setattr__(self, 'min_amount', to_decimal(self.min_amount, 'min_amount'))
        if self.max_discount is not None:
            object.__setattr__(self, 'max_discount', to_decimal(self.max_discount, 'max_discount'))
        object.__setattr__(self, 'valid_from', to_date(self.valid_from, 'valid_from'))
        object.__setattr__(self, 'valid_until', to_date(self.valid_until, 'valid_until'))

    @property
    def remaining_uses(self) -> Optional[int]:
        if self.usage_limit is None:
            return None
        return max(0, self.usage_limit - self.usage_count)


@dataclass
class TotalsBreakdown:
    """Complete result of a totals calculation."""
    subtotal: Decimal
    discount_amount: Decimal
    shipping_cost: Decimal
    tax: Decimal
    total: Decimal
    free_shipping_applied: bool
    taxable_amount: Optional[Decimal] = None
    discount_code: Optional[str] = None
    minimum_charge_applied: bool = False
    trace: list[TraceStep] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def discounted_subtotal(self) -> Decimal:
        return self.subtotal - self.discount_amount

    @property
    def amount_due_minor_units(self) -> int:
        """Total in pence, the amount sent to the payment processor."""
        return to_minor_units(self.total)

    def add_trace(self, step: str, description: str, value: str = None):
        """Add a step to the trace."""
        self.trace.append(TraceStep(step=step, description=description, value=value))

    def add_warning(self, warning: str):
        self.warnings.append(warning)

    def get_trace_text(self) -> str:
        """Get human-readable trace as formatted text."""
        lines = []
        for t in self.trace:
            if t.value:
                lines.append(f"• {t.step}: {t.description} = {t.value}")
            else:
                lines.append(f"• {t.step}: {t.description}")
        return "\n".join(lines)

    def to_dict(self) -> dict:
        """Plain dict with amounts as strings so no precision is lost in JSON."""
        return {
            "subtotal": str(self.subtotal),
            "discount_amount": str(self.discount_amount),
            "discounted_subtotal": str(self.discounted_subtotal),
            "shipping_cost": str(self.shipping_cost),
            "taxable_amount": str(self.taxable_amount) if self.taxable_amount is not None else None,
            "tax": str(self.tax),
            "total": str(self.total),
            "amount_due_minor_units": self.amount_due_minor_units,
            "free_shipping_applied": self.free_shipping_applied,
            "discount_code": self.discount_code,
            "minimum_charge_applied": self.minimum_charge_applied,
            "warnings": list(self.warnings),
            "trace": [
                {"step": t.step, "description": t.description, "value": t.value}
                for t in self.trace
            ],
        }


@dataclass
class CustomerFacts:
    """Order history summary for one customer, as read by the segment matcher."""
    customer_id: str
    email: str = ""
    total_orders: int = 0
    total_spent: Decimal = ZERO
    created_at: Optional[date] = None
    last_order_date: Optional[date] = None
    tags: list[str] = field(default_factory=list)
    country: Optional[str] = None

    def __post_init__(self):
        self.total_spent = to_decimal(self.total_spent, 'total_spent')
        self.created_at = to_date(self.created_at, 'created_at')
        self.last_order_date = to_date(self.last_order_date, 'last_order_date')


@dataclass
class SegmentCriteria:
    """
    Conditions for a dynamic customer segment. None means "not constrained".
    """
    min_total_spent: Optional[Decimal] = None
    max_total_spent: Optional[Decimal] = None
    min_order_count: Optional[int] = None
    max_order_count: Optional[int] = None
    registered_after: Optional[date] = None
    registered_before: Optional[date] = None
    days_since_last_order: Optional[int] = None
    ordered_within_days: Optional[int] = None
    tags: Optional[list[str]] = None
    country: Optional[str] = None

    def __post_init__(self):
        for name in ('min_total_spent', 'max_total_spent'):
            if getattr(self, name) is not None:
                setattr(self, name, to_decimal(getattr(self, name), name))
        for name in ('min_order_count', 'max_order_count', 'days_since_last_order', 'ordered_within_days'):
            value = getattr(self, name)
            if value is None:
                continue
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise InvalidInput(f"{name} must be a non-negative integer, got {value!r}", field=name)
        self.registered_after = to_date(self.registered_after, 'registered_after')
        self.registered_before = to_date(self.registered_before, 'registered_before')
        if self.tags is not None and not isinstance(self.tags, (list, tuple, set)):
            raise InvalidInput("tags must be a list", field='tags')
        if self.country is not None and not isinstance(self.country, str):
            raise InvalidInput(f"country must be a string, got {self.country!r}", field='country')

    @classmethod
    def from_dict(cls, data: dict) -> 'SegmentCriteria':
        """Build from the admin tool's criteria JSON. Unknown keys are rejected."""
        known = set(cls.__dataclass_fields__)
        unknown = sorted(set(data) - known)
        if unknown:
            raise InvalidInput(f"Unknown segment criteria: {', '.join(unknown)}", field=unknown[0])
        return cls(**data)
