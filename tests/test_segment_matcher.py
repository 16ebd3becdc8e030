"""
Customer segment matching and membership refresh tests.
"""
import pytest
import sys
import os
from datetime import date

# Add src to path for internal imports
src_path = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'src')
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from storefront_pricing.engine import CustomerFacts, InvalidInput, SegmentCriteria, SegmentMatcher, matches
from storefront_pricing.services.segmentation_service import SegmentationService

TODAY = date(2025, 6, 1)


@pytest.fixture
def matcher():
    return SegmentMatcher(today=TODAY)


@pytest.fixture
def regular():
    """Returning GB customer, last ordered 12 days ago."""
    return CustomerFacts(
        customer_id="c1",
        email="tom@example.co.uk",
        total_orders=5,
        total_spent="250.00",
        created_at="2024-01-15",
        last_order_date="2025-05-20T10:15:00Z",
        tags=["Military", "newsletter"],
        country="GB",
    )


def test_empty_criteria_match_everyone(matcher, regular):
    assert matcher.matches(SegmentCriteria(), regular)
    assert matcher.explain(SegmentCriteria(), regular) == []


@pytest.mark.parametrize("criteria,expected", [
    ({"min_total_spent": 250}, True),
    ({"min_total_spent": "250.01"}, False),
    ({"max_total_spent": 100}, False),
    ({"min_order_count": 5, "max_order_count": 5}, True),
    ({"min_order_count": 6}, False),
    ({"max_order_count": 0}, False),
    ({"registered_after": "2024-01-15"}, True),
    ({"registered_before": "2023-12-31"}, False),
    ({"ordered_within_days": 12}, True),
    ({"ordered_within_days": 11}, False),
    ({"days_since_last_order": 30}, False),
    ({"days_since_last_order": 12}, True),
    ({"tags": ["military", "vip"]}, True),
    ({"tags": ["vip"]}, False),
    ({"tags": []}, True),
    ({"country": "gb"}, True),
    ({"country": "US"}, False),
    ({"country": "any"}, True),
])
def test_single_conditions(matcher, regular, criteria, expected):
    assert matcher.matches(SegmentCriteria.from_dict(criteria), regular) is expected


def test_zero_bound_is_a_real_condition(matcher):
    """max_order_count=0 selects customers who never ordered."""
    criteria = SegmentCriteria(max_order_count=0)
    assert matcher.matches(criteria, CustomerFacts(customer_id="new"))
    assert not matcher.matches(criteria, CustomerFacts(customer_id="old", total_orders=1))


def test_never_ordered_passes_recency(matcher):
    lapsed = SegmentCriteria(days_since_last_order=90)
    recent = SegmentCriteria(ordered_within_days=30)
    newcomer = CustomerFacts(customer_id="c9", created_at="2025-05-01")

    assert matcher.matches(lapsed, newcomer)
    assert matcher.matches(recent, newcomer)


def test_unknown_dates_and_country_fail_bounds(matcher):
    unknown = CustomerFacts(customer_id="c8")
    assert not matcher.matches(SegmentCriteria(registered_after="2020-01-01"), unknown)
    assert not matcher.matches(SegmentCriteria(country="GB"), unknown)
    assert matcher.matches(SegmentCriteria(country="any"), unknown)


def test_explain_reports_every_condition(matcher, regular):
    criteria = SegmentCriteria(min_total_spent=500, min_order_count=10, country="GB")
    results = matcher.explain(criteria, regular)

    assert [r.condition for r in results] == ["min_total_spent", "min_order_count", "country"]
    assert [r.passed for r in results] == [False, False, True]
    assert not matcher.matches(criteria, regular)


def test_module_level_matches(regular):
    criteria = SegmentCriteria(ordered_within_days=30)
    assert matches(criteria, regular, today=TODAY)
    assert not matches(criteria, regular, today=date(2025, 9, 1))


def test_unknown_criteria_rejected():
    with pytest.raises(InvalidInput):
        SegmentCriteria.from_dict({"min_spend": 100})
    with pytest.raises(InvalidInput):
        SegmentCriteria(tags="military")
    with pytest.raises(InvalidInput):
        SegmentCriteria(registered_after="last tuesday")


@pytest.mark.parametrize("criteria,field", [
    ({"min_order_count": "5"}, "min_order_count"),
    ({"max_order_count": 2.5}, "max_order_count"),
    ({"days_since_last_order": True}, "days_since_last_order"),
    ({"ordered_within_days": -1}, "ordered_within_days"),
    ({"country": 5}, "country"),
])
def test_malformed_criteria_values_rejected(criteria, field):
    with pytest.raises(InvalidInput) as exc:
        SegmentCriteria.from_dict(criteria)
    assert exc.value.field == field


def test_filter_keeps_order(matcher, regular):
    others = [
        CustomerFacts(customer_id="c2", total_spent=10, country="GB"),
        CustomerFacts(customer_id="c3", total_spent=900, country="GB"),
    ]
    high_value = SegmentCriteria(min_total_spent=100)
    assert [c.customer_id for c in matcher.filter(high_value, [regular] + others)] == ["c1", "c3"]


def test_refresh_membership(regular):
    customers = [
        regular,
        CustomerFacts(customer_id="c2", total_spent=10),
        CustomerFacts(customer_id="c3", total_spent=900),
    ]
    service = SegmentationService(SegmentMatcher(today=TODAY))

    change = service.refresh_membership(
        "high-value", SegmentCriteria(min_total_spent=100), customers, {"c4", "c2"},
    )

    assert change.added == ["c1", "c3"]
    assert change.removed == ["c2", "c4"]
    assert change.matching_count == 2
    assert change.changed


def test_refresh_all():
    customers = [
        CustomerFacts(customer_id="c1", total_orders=0),
        CustomerFacts(customer_id="c2", total_orders=3, country="GB"),
    ]
    segments = {
        "never-ordered": SegmentCriteria(max_order_count=0),
        "uk": SegmentCriteria(country="GB"),
    }
    service = SegmentationService(SegmentMatcher(today=TODAY))

    changes = service.refresh_all(segments, customers, {"uk": {"c2"}})

    assert changes["never-ordered"].added == ["c1"]
    assert not changes["uk"].changed
