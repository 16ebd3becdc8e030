"""
Segment Matcher - Evaluates customer segment criteria.

Used by the segmentation service and the admin API to decide which
customers belong to a dynamic segment. A customer matches when every
condition present in the criteria holds; absent conditions always hold.
"""
from dataclasses import dataclass
from datetime import date
from typing import Optional

from .models import CustomerFacts, SegmentCriteria


@dataclass
class ConditionResult:
    """Outcome of one criteria condition for one customer."""
    condition: str
    passed: bool
    reason: str


class SegmentMatcher:
    """
    Matches customers against segment criteria.

    All present conditions are evaluated (nothing short-circuits) so
    explain() can show the admin tool every reason a customer was or was
    not included.
    """

    def __init__(self, today: Optional[date] = None):
        self.today = today

    def explain(self, criteria: SegmentCriteria, customer: CustomerFacts) -> list[ConditionResult]:
        """Evaluate each present condition and return the outcomes in a fixed order."""
        today = self.today or date.today()
        results = []

        # Spend range
        if criteria.min_total_spent is not None:
            results.append(ConditionResult(
                "min_total_spent",
                customer.total_spent >= criteria.min_total_spent,
                f"spent {customer.total_spent} vs min {criteria.min_total_spent}",
            ))

        if criteria.max_total_spent is not None:
            results.append(ConditionResult(
                "max_total_spent",
                customer.total_spent <= criteria.max_total_spent,
                f"spent {customer.total_spent} vs max {criteria.max_total_spent}",
            ))

        # Order count range
        if criteria.min_order_count is not None:
            results.append(ConditionResult(
                "min_order_count",
                customer.total_orders >= criteria.min_order_count,
                f"orders {customer.total_orders} vs min {criteria.min_order_count}",
            ))

        if criteria.max_order_count is not None:
            results.append(ConditionResult(
                "max_order_count",
                customer.total_orders <= criteria.max_order_count,
                f"orders {customer.total_orders} vs max {criteria.max_order_count}",
            ))

        # Registration date range (unknown registration date never matches a bound)
        if criteria.registered_after is not None:
            passed = customer.created_at is not None and customer.created_at >= criteria.registered_after
            results.append(ConditionResult(
                "registered_after", passed,
                f"registered {customer.created_at} vs after {criteria.registered_after}",
            ))

        if criteria.registered_before is not None:
            passed = customer.created_at is not None and customer.created_at <= criteria.registered_before
            results.append(ConditionResult(
                "registered_before", passed,
                f"registered {customer.created_at} vs before {criteria.registered_before}",
            ))

        # Recency (customers who never ordered are not excluded by recency)
        days_since = None
        if customer.last_order_date is not None:
            days_since = (today - customer.last_order_date).days

        if criteria.days_since_last_order is not None:
            passed = days_since is None or days_since >= criteria.days_since_last_order
            results.append(ConditionResult(
                "days_since_last_order", passed,
                f"{days_since} days since last order vs at least {criteria.days_since_last_order}",
            ))

        if criteria.ordered_within_days is not None:
            passed = days_since is None or days_since <= criteria.ordered_within_days
            results.append(ConditionResult(
                "ordered_within_days", passed,
                f"{days_since} days since last order vs within {criteria.ordered_within_days}",
            ))

        # Tags: any one of the listed tags
        if criteria.tags:
            wanted = {str(t).strip().lower() for t in criteria.tags}
            have = {str(t).strip().lower() for t in customer.tags}
            shared = sorted(wanted & have)
            results.append(ConditionResult(
                "tags", bool(shared),
                f"shared tags: {', '.join(shared)}" if shared else "no shared tags",
            ))

        if criteria.country and criteria.country.lower() != 'any':
            passed = bool(customer.country) and customer.country.upper() == criteria.country.upper()
            results.append(ConditionResult(
                "country", passed,
                f"country {customer.country} vs {criteria.country}",
            ))

        return results

    def matches(self, criteria: SegmentCriteria, customer: CustomerFacts) -> bool:
        """True when every present condition holds."""
        outcomes = [r.passed for r in self.explain(criteria, customer)]
        return all(outcomes)

    def filter(self, criteria: SegmentCriteria, customers: list[CustomerFacts]) -> list[CustomerFacts]:
        """Customers matching the criteria, in input order."""
        return [c for c in customers if self.matches(criteria, c)]


def matches(criteria: SegmentCriteria, customer: CustomerFacts, today: Optional[date] = None) -> bool:
    """Module-level shortcut for SegmentMatcher(today).matches()."""
    return SegmentMatcher(today=today).matches(criteria, customer)
