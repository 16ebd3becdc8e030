"""Engine subpackage - order totals and segment matching."""
from .models import (
    LineItem, ShippingPolicy, TaxPolicy, TaxBase, Discount, DiscountKind,
    TotalsBreakdown, CustomerFacts, SegmentCriteria,
)
from .errors import PricingError, InvalidInput, InvalidDiscount
from .pricing_engine import PricingEngine, compute_totals, free_shipping_remaining
from .segment_matcher import SegmentMatcher, matches

__all__ = [
    'PricingEngine', 'compute_totals', 'free_shipping_remaining',
    'LineItem', 'ShippingPolicy', 'TaxPolicy', 'TaxBase', 'Discount', 'DiscountKind',
    'TotalsBreakdown', 'CustomerFacts', 'SegmentCriteria',
    'SegmentMatcher', 'matches',
    'PricingError', 'InvalidInput', 'InvalidDiscount',
]
