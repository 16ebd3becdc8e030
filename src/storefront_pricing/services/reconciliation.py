"""
Payment reconciliation - Checks a captured payment against the expected totals.
"""
import logging
from dataclasses import dataclass

from ..engine.models import TotalsBreakdown

logger = logging.getLogger(__name__)


@dataclass
class ReconciliationResult:
    matches: bool
    expected_minor_units: int
    paid_minor_units: int
    currency: str = "gbp"

    @property
    def difference_minor_units(self) -> int:
        """Positive when the customer paid more than expected."""
        return self.paid_minor_units - self.expected_minor_units


def reconcile(breakdown: TotalsBreakdown, paid_minor_units: int, currency: str = "gbp",
              expected_currency: str = "gbp") -> ReconciliationResult:
    """
    Compare the amount the processor reports as paid (in pence) with the
    recomputed order total. A currency mismatch never reconciles.
    """
    expected = breakdown.amount_due_minor_units
    paid = int(paid_minor_units)
    same_currency = str(currency).lower() == str(expected_currency).lower()

    result = ReconciliationResult(
        matches=same_currency and paid == expected,
        expected_minor_units=expected,
        paid_minor_units=paid,
        currency=str(currency).lower(),
    )
    if not result.matches:
        logger.warning(
            "Payment mismatch: expected %d %s, paid %d %s",
            expected, expected_currency, paid, currency,
        )
    return result
