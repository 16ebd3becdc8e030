"""
Print the totals trace for a sample cart.

Usage:
    python scripts/debug_totals.py [PROMO_CODE] [COUNTRY] [METHOD]
"""
import sys
from pathlib import Path

# Add src to path
src_path = Path(__file__).parent.parent / 'src'
sys.path.insert(0, str(src_path))

from storefront_pricing.config.settings import Settings, configure_logging
from storefront_pricing.engine import LineItem, PricingEngine
from storefront_pricing.policy.discount_policy import DiscountPolicy
from storefront_pricing.services.discount_repository import DiscountRepository

def debug():
    settings = Settings.load()
    configure_logging(settings.with_overrides(log_level="DEBUG"))

    code = sys.argv[1] if len(sys.argv) > 1 else None
    country = sys.argv[2] if len(sys.argv) > 2 else "GB"
    method = sys.argv[3] if len(sys.argv) > 3 else "standard"

    engine = PricingEngine(settings)
    items = [
        LineItem(unit_price="24.99", quantity=1, sku="UK-FLAG-TEE"),
        LineItem(unit_price="19.99", quantity=1, sku="REGT-HOODIE"),
    ]

    print("Loaded Zones:")
    for zone in engine.zone_resolver.zones:
        print(f"  {zone.code}: standard {zone.standard_rate}, express {zone.express_rate}, free from {zone.free_threshold}")

    discount = None
    if code:
        policy = DiscountPolicy(DiscountRepository.from_settings(settings))
        subtotal = sum((i.line_total for i in items), 0)
        validation = policy.validate_code(code, subtotal)
        print(f"\nPromo {validation.code}: {'valid' if validation.valid else validation.error}")
        if validation.valid:
            discount = validation.discount

    print(f"\n--- Totals for {country} {method} ---")
    result = engine.quote(items, country_code=country, method=method, discount=discount)
    print(result.get_trace_text())
    print(f"\nAmount due: {result.amount_due_minor_units} pence")

if __name__ == "__main__":
    debug()
