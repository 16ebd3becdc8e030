"""
Centralized settings and path configuration for storefront pricing.
"""
import os
import logging
from decimal import Decimal
from pathlib import Path
from dataclasses import dataclass, field, replace
from typing import Optional


def get_package_root() -> Path:
    """Get the storefront_pricing package directory."""
    return Path(__file__).resolve().parent.parent


def _env_decimal(name: str, default: Decimal) -> Decimal:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    return Decimal(raw.strip())


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    return int(raw.strip())


@dataclass(frozen=True)
class Settings:
    """Storefront pricing settings with the live shop's defaults."""

    # VAT
    vat_rate: Decimal = Decimal("0.20")

    # UK standard delivery
    standard_shipping_rate: Decimal = Decimal("4.99")
    free_shipping_threshold: Decimal = Decimal("50.00")

    # Stripe will not charge below 50p
    minimum_chargeable: Decimal = Decimal("0.50")
    currency: str = "gbp"

    # A/B testing
    ab_min_sample_size: int = 100

    # Policy tables
    promo_codes_csv: Path = field(default_factory=lambda: get_package_root() / 'policy' / 'promo_codes.csv')
    shipping_zones_csv: Path = field(default_factory=lambda: get_package_root() / 'policy' / 'shipping_zones.csv')

    log_level: str = "INFO"

    @classmethod
    def load(cls, data_dir: Optional[Path] = None) -> 'Settings':
        """Load settings, applying STOREFRONT_* environment overrides."""
        policy_dir = data_dir or (get_package_root() / 'policy')
        defaults = cls()

        return cls(
            vat_rate=_env_decimal('STOREFRONT_VAT_RATE', defaults.vat_rate),
            standard_shipping_rate=_env_decimal('STOREFRONT_SHIPPING_RATE', defaults.standard_shipping_rate),
            free_shipping_threshold=_env_decimal('STOREFRONT_FREE_SHIPPING_THRESHOLD', defaults.free_shipping_threshold),
            minimum_chargeable=_env_decimal('STOREFRONT_MINIMUM_CHARGE', defaults.minimum_chargeable),
            currency=os.environ.get('STOREFRONT_CURRENCY', defaults.currency).lower(),
            ab_min_sample_size=_env_int('STOREFRONT_AB_MIN_SAMPLE', defaults.ab_min_sample_size),
            promo_codes_csv=Path(os.environ.get('STOREFRONT_PROMO_CODES_CSV', policy_dir / 'promo_codes.csv')),
            shipping_zones_csv=Path(os.environ.get('STOREFRONT_SHIPPING_ZONES_CSV', policy_dir / 'shipping_zones.csv')),
            log_level=os.environ.get('STOREFRONT_LOG_LEVEL', defaults.log_level).upper(),
        )

    def with_overrides(self, **changes) -> 'Settings':
        """Return a copy with the given fields replaced."""
        return replace(self, **changes)


# Default settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the cached settings instance for entry points."""
    global _settings
    if _settings is None:
        _settings = Settings.load()
    return _settings


def configure_logging(settings: Optional[Settings] = None) -> None:
    """Configure root logging for the API, UI and scripts if nothing else has."""
    root = logging.getLogger()
    if root.handlers:
        return
    level = getattr(logging, (settings or get_settings()).log_level, logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
