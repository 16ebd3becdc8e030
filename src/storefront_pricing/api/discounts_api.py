"""
Discounts API - FastAPI router for promo code checks.
"""
from datetime import date
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from ..engine.errors import PricingError
from ..policy.discount_policy import DiscountPolicy
from ..services.discount_repository import DiscountRepository
from .dependencies import as_http_error, discount_policy_dependency, discount_repository_dependency

router = APIRouter(prefix="/api/discounts", tags=["discounts"])


class ValidatePromoRequest(BaseModel):
    """Request model for checking a promo code."""
    code: str
    subtotal: Decimal
    today: Optional[date] = None


class ActiveDiscountResponse(BaseModel):
    """Response model for an active promo code."""
    code: str
    type: str
    discount: str
    description: str
    min_amount: Optional[str]
    max_discount: Optional[str]
    valid_until: Optional[date]
    remaining_uses: Optional[int]


@router.post("/validate")
async def validate_promo(
    request: ValidatePromoRequest,
    policy: DiscountPolicy = Depends(discount_policy_dependency),
):
    """Check a promo code against the order subtotal."""
    try:
        return policy.validate_code(request.code, request.subtotal, request.today).to_dict()
    except PricingError as e:
        raise as_http_error(e)


@router.get("/active", response_model=list[ActiveDiscountResponse])
async def list_active(
    today: Optional[date] = None,
    repository: DiscountRepository = Depends(discount_repository_dependency),
):
    """Promo codes currently usable (admin dashboard)."""
    return [
        ActiveDiscountResponse(
            code=d.code,
            type=d.kind.value,
            discount=str(d.value),
            description=d.description,
            min_amount=str(d.min_amount) if d.min_amount is not None else None,
            max_discount=str(d.max_discount) if d.max_discount is not None else None,
            valid_until=d.valid_until,
            remaining_uses=d.remaining_uses,
        )
        for d in repository.list_active(today)
    ]
