"""
Payments API - FastAPI router for the payment webhook's amount check.

The webhook handler sends the cart it stored with the payment intent and
the amount the processor captured; the totals are recomputed here and
compared in pence.
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from ..config.settings import Settings
from ..engine.errors import PricingError
from ..engine.pricing_engine import PricingEngine
from ..policy.discount_policy import DiscountPolicy
from ..services.reconciliation import reconcile
from .cart import CartLine, line_items, resolve_discount
from .dependencies import as_http_error, discount_policy_dependency, engine_dependency, settings_dependency

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/payments", tags=["payments"])


class ReconcileRequest(BaseModel):
    items: List[CartLine]
    country_code: str = "GB"
    method: str = "standard"
    discount_code: Optional[str] = None
    paid_minor_units: int
    currency: str = "gbp"


@router.post("/reconcile")
async def reconcile_payment(
    request: ReconcileRequest,
    engine: PricingEngine = Depends(engine_dependency),
    policy: DiscountPolicy = Depends(discount_policy_dependency),
    settings: Settings = Depends(settings_dependency),
):
    """Does the captured amount match the recomputed order total?"""
    try:
        items = line_items(request.items)
        discount = resolve_discount(None, request.discount_code, items, policy)
        breakdown = engine.quote(items, country_code=request.country_code, method=request.method, discount=discount)
        result = reconcile(breakdown, request.paid_minor_units, request.currency, settings.currency)
        return {
            "matches": result.matches,
            "expected_minor_units": result.expected_minor_units,
            "paid_minor_units": result.paid_minor_units,
            "difference_minor_units": result.difference_minor_units,
            "currency": result.currency,
            "total": str(breakdown.total),
        }
    except PricingError as e:
        logger.warning("Reconciliation request rejected: %s", e)
        raise as_http_error(e)
