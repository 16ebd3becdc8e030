from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel
from decimal import Decimal
from typing import List, Optional
import logging

from storefront_pricing import __version__
from storefront_pricing.config.settings import Settings, configure_logging, get_settings
from storefront_pricing.engine import PricingEngine, PricingError, ShippingPolicy, TaxPolicy
from storefront_pricing.engine.pricing_engine import free_shipping_remaining
from storefront_pricing.policy.discount_policy import DiscountPolicy
from storefront_pricing.policy.shipping_zones import ShippingZoneResolver
from storefront_pricing.api.cart import CartLine, DiscountIn, line_items, resolve_discount
from storefront_pricing.api.dependencies import (
    as_http_error, discount_policy_dependency, engine_dependency,
    settings_dependency, zone_resolver_dependency,
)
from storefront_pricing.api.discounts_api import router as discounts_router
from storefront_pricing.api.marketing_api import router as marketing_router
from storefront_pricing.api.payments_api import router as payments_router

configure_logging(get_settings())
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Storefront Pricing API",
    description="Order totals, promo codes and marketing rule evaluation for the storefront",
    version=__version__,
)

# Storefront and admin run on other origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(discounts_router)
app.include_router(marketing_router)
app.include_router(payments_router)


class ShippingIn(BaseModel):
    base_rate: Decimal
    free_threshold: Optional[Decimal] = Decimal("50.00")
    method: str = "standard"
    zone: str = "UK"


class TaxIn(BaseModel):
    rate: Decimal = Decimal("0.20")
    base: str = "subtotal_plus_shipping_minus_discount"


class TotalsRequest(BaseModel):
    items: List[CartLine]
    shipping: Optional[ShippingIn] = None
    tax: Optional[TaxIn] = None
    discount: Optional[DiscountIn] = None
    discount_code: Optional[str] = None


class QuoteRequest(BaseModel):
    items: List[CartLine]
    country_code: str = "GB"
    method: str = "standard"
    discount_code: Optional[str] = None


@app.get("/")
async def root():
    return {"status": "online", "message": "Storefront Pricing API Active"}


@app.post("/totals")
async def calculate_totals(
    req: TotalsRequest,
    engine: PricingEngine = Depends(engine_dependency),
    policy: DiscountPolicy = Depends(discount_policy_dependency),
):
    try:
        items = line_items(req.items)
        discount = resolve_discount(req.discount, req.discount_code, items, policy)
        shipping = ShippingPolicy(**req.shipping.model_dump()) if req.shipping else None
        tax = TaxPolicy(**req.tax.model_dump()) if req.tax else None
        result = engine.compute_totals(items, shipping, tax, discount)
        return result.to_dict()
    except PricingError as e:
        logger.info("Totals request rejected: %s", e)
        raise as_http_error(e)


@app.post("/quote")
async def quote(
    req: QuoteRequest,
    engine: PricingEngine = Depends(engine_dependency),
    policy: DiscountPolicy = Depends(discount_policy_dependency),
):
    """Totals for a destination country and delivery method (checkout summary, payment intent)."""
    try:
        items = line_items(req.items)
        discount = resolve_discount(None, req.discount_code, items, policy)
        result = engine.quote(items, country_code=req.country_code, method=req.method, discount=discount)
        data = result.to_dict()
        remaining = free_shipping_remaining(result.subtotal, engine.zone_resolver.policy_for(req.country_code, "standard"))
        data["free_shipping_remaining"] = str(remaining) if remaining is not None else None
        return data
    except PricingError as e:
        raise as_http_error(e)


@app.get("/shipping/options")
async def shipping_options(
    country_code: str = "GB",
    subtotal: Decimal = Decimal("0"),
    resolver: ShippingZoneResolver = Depends(zone_resolver_dependency),
):
    try:
        zone = resolver.zone_for(country_code)
        return {
            "zone": zone.code,
            "supported": resolver.is_supported(country_code),
            "options": [
                {
                    "id": o.id,
                    "name": o.name,
                    "description": o.description,
                    "amount": str(o.amount),
                    "type": o.type,
                    "estimated_days": {"min": o.estimated_days[0], "max": o.estimated_days[1]},
                }
                for o in resolver.options_for(country_code, subtotal)
            ],
        }
    except PricingError as e:
        raise as_http_error(e)


@app.get("/system/status")
async def get_status(settings: Settings = Depends(settings_dependency)):
    return {
        "engine_active": True,
        "version": __version__,
        "vat_rate": str(settings.vat_rate),
        "free_shipping_threshold": str(settings.free_shipping_threshold),
        "minimum_chargeable": str(settings.minimum_chargeable),
        "promo_codes_loaded": bool(settings.promo_codes_csv and settings.promo_codes_csv.exists()),
        "shipping_zones_loaded": bool(settings.shipping_zones_csv and settings.shipping_zones_csv.exists()),
    }
