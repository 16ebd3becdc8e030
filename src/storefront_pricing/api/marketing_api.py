"""
Marketing API - FastAPI router for segment matching, segment refresh and A/B test analysis.
"""
from datetime import date
from decimal import Decimal
from typing import Any, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from ..analytics.ab_testing import VariantStats, analyze, recommend, validate_traffic_split, assign_variant
from ..engine.errors import PricingError
from ..engine.models import CustomerFacts, SegmentCriteria
from ..engine.segment_matcher import SegmentMatcher
from ..services.segmentation_service import SegmentationService
from ..config.settings import Settings
from .dependencies import as_http_error, settings_dependency

router = APIRouter(prefix="/api/marketing", tags=["marketing"])


class CustomerIn(BaseModel):
    customer_id: str
    email: str = ""
    total_orders: int = 0
    total_spent: Decimal = Decimal("0")
    created_at: Optional[date] = None
    last_order_date: Optional[date] = None
    tags: list[str] = []
    country: Optional[str] = None


class SegmentMatchRequest(BaseModel):
    criteria: dict[str, Any]
    customers: list[CustomerIn]
    today: Optional[date] = None


class SegmentRefreshRequest(BaseModel):
    """Dynamic segments by id, all customers and the current members of each segment."""
    segments: dict[str, dict[str, Any]]
    customers: list[CustomerIn]
    memberships: dict[str, list[str]] = {}
    today: Optional[date] = None


class VariantIn(BaseModel):
    sent: int
    opened: int = 0
    clicked: int = 0
    converted: int = 0
    conversion_value: float = 0.0


class ABTestRequest(BaseModel):
    variant_a: VariantIn
    variant_b: VariantIn


class AssignRequest(BaseModel):
    campaign_id: str
    recipient_email: str
    traffic_split: float = 0.5


@router.post("/segments/match")
async def match_segment(request: SegmentMatchRequest):
    """Which of the given customers fall in the segment, with per-condition reasons."""
    try:
        criteria = SegmentCriteria.from_dict(request.criteria)
        matcher = SegmentMatcher(today=request.today)
        results = []
        for customer_in in request.customers:
            customer = CustomerFacts(**customer_in.model_dump())
            outcomes = matcher.explain(criteria, customer)
            results.append({
                "customer_id": customer.customer_id,
                "matches": all(o.passed for o in outcomes),
                "conditions": [
                    {"condition": o.condition, "passed": o.passed, "reason": o.reason}
                    for o in outcomes
                ],
            })
        return {
            "matching_ids": [r["customer_id"] for r in results if r["matches"]],
            "results": results,
        }
    except PricingError as e:
        raise as_http_error(e)


@router.post("/segments/refresh")
async def refresh_segments(request: SegmentRefreshRequest):
    """Who joins and who leaves each dynamic segment (nightly refresh job)."""
    try:
        segments = {
            segment_id: SegmentCriteria.from_dict(criteria)
            for segment_id, criteria in request.segments.items()
        }
        customers = [CustomerFacts(**c.model_dump()) for c in request.customers]
        memberships = {segment_id: set(ids) for segment_id, ids in request.memberships.items()}
        service = SegmentationService(SegmentMatcher(today=request.today))
        changes = service.refresh_all(segments, customers, memberships)
        return {
            segment_id: {
                "added": change.added,
                "removed": change.removed,
                "matching_count": change.matching_count,
            }
            for segment_id, change in changes.items()
        }
    except PricingError as e:
        raise as_http_error(e)


@router.post("/ab-tests/analyze")
async def analyze_ab_test(request: ABTestRequest, settings: Settings = Depends(settings_dependency)):
    """Significance, winner and recommendation for two variants."""
    try:
        variant_a = VariantStats(**request.variant_a.model_dump())
        variant_b = VariantStats(**request.variant_b.model_dump())
        result = analyze(variant_a, variant_b, settings.ab_min_sample_size)
        advice = recommend(variant_a, variant_b, settings.ab_min_sample_size)
        return {
            **result.to_dict(),
            "variant_a": variant_a.to_dict(),
            "variant_b": variant_b.to_dict(),
            "should_continue": advice.should_continue,
            "recommendation": advice.recommendation,
            "sample_size_status": advice.sample_size_status,
        }
    except PricingError as e:
        raise as_http_error(e)


@router.post("/ab-tests/assign")
async def assign(request: AssignRequest):
    """Deterministic variant for a recipient."""
    try:
        validate_traffic_split(request.traffic_split)
        return {"variant": assign_variant(request.campaign_id, request.recipient_email, request.traffic_split)}
    except PricingError as e:
        raise as_http_error(e)
