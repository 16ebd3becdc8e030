"""
Request-scoped dependencies. Each request builds its own engine and
policy objects from settings; tests swap them via app.dependency_overrides.

The policy tables are read once per CSV path and shared between requests.
"""
from functools import lru_cache
from pathlib import Path

from fastapi import Depends, HTTPException

from ..config.settings import Settings, get_settings
from ..engine.errors import InvalidDiscount, InvalidInput
from ..engine.pricing_engine import PricingEngine
from ..policy.discount_policy import DiscountPolicy
from ..policy.shipping_zones import ShippingZoneResolver
from ..services.discount_repository import DiscountRepository


@lru_cache(maxsize=8)
def cached_zone_resolver(zones_csv: Path) -> ShippingZoneResolver:
    return ShippingZoneResolver(zones_csv)


@lru_cache(maxsize=8)
def cached_discount_repository(promo_codes_csv: Path) -> DiscountRepository:
    return DiscountRepository(promo_codes_csv)


def settings_dependency() -> Settings:
    return get_settings()


def zone_resolver_dependency(settings: Settings = Depends(settings_dependency)) -> ShippingZoneResolver:
    return cached_zone_resolver(Path(settings.shipping_zones_csv))


def engine_dependency(
    settings: Settings = Depends(settings_dependency),
    zone_resolver: ShippingZoneResolver = Depends(zone_resolver_dependency),
) -> PricingEngine:
    return PricingEngine(settings, zone_resolver=zone_resolver)


def discount_repository_dependency(settings: Settings = Depends(settings_dependency)) -> DiscountRepository:
    return cached_discount_repository(Path(settings.promo_codes_csv))


def discount_policy_dependency(
    repository: DiscountRepository = Depends(discount_repository_dependency),
) -> DiscountPolicy:
    return DiscountPolicy(repository)


def as_http_error(error: Exception) -> HTTPException:
    """Map pricing errors to HTTP errors the storefront can show."""
    if isinstance(error, InvalidDiscount):
        return HTTPException(status_code=400, detail={"error": str(error), "code": error.code})
    if isinstance(error, InvalidInput):
        return HTTPException(status_code=422, detail={"error": str(error), "field": error.field})
    return HTTPException(status_code=500, detail=str(error))
