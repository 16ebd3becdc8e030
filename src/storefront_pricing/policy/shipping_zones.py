"""
Shipping Zones - Resolves delivery rates and free-delivery thresholds by destination.
"""
import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Optional

import pandas as pd

from ..config.settings import Settings
from ..engine.errors import InvalidInput
from ..engine.models import ShippingPolicy
from ..engine.money import ZERO, to_decimal

logger = logging.getLogger(__name__)

CATCH_ALL = '*'
METHODS = ('standard', 'express')


@dataclass(frozen=True)
class ShippingZone:
    code: str
    name: str
    countries: tuple
    standard_rate: Decimal
    express_rate: Decimal
    free_threshold: Decimal
    standard_days: tuple[int, int]
    express_days: tuple[int, int]


@dataclass(frozen=True)
class ShippingOption:
    """A delivery option offered at checkout."""
    id: str
    name: str
    amount: Decimal
    estimated_days: tuple[int, int]
    type: str  # "free", "standard" or "express"

    @property
    def description(self) -> str:
        low, high = self.estimated_days
        label = "Free" if self.type == "free" else self.type.capitalize()
        return f"{label} delivery ({low}–{high} business days)"


class ShippingZoneResolver:
    """
    Resolves the shipping zone for a destination country.

    Precedence:
    1. Zone listing the country explicitly
    2. Catch-all zone ("*")
    """

    def __init__(self, zones_csv: Path):
        zones_csv = Path(zones_csv)
        self.zones_csv = zones_csv
        if not zones_csv.exists():
            raise FileNotFoundError(f"shipping_zones.csv not found at {zones_csv}.")
        self.zones = [self._row_to_zone(row) for _, row in self._load_csv(zones_csv).iterrows()]

        catch_all = [z for z in self.zones if CATCH_ALL in z.countries]
        if not catch_all:
            raise InvalidInput(f"No catch-all shipping zone in {zones_csv}", field='countries')
        self.default_zone = catch_all[0]

    @classmethod
    def from_settings(cls, settings: Settings) -> 'ShippingZoneResolver':
        return cls(settings.shipping_zones_csv)

    @staticmethod
    def _load_csv(path: Path) -> pd.DataFrame:
        df = pd.read_csv(path, dtype=str).fillna('')
        df.columns = [c.strip() for c in df.columns]
        for col in df.columns:
            df[col] = df[col].astype(str).str.strip()
        return df

    @staticmethod
    def _row_to_zone(row) -> ShippingZone:
        countries = tuple(c.strip().upper() for c in row['countries'].split('|') if c.strip())
        return ShippingZone(
            code=row['zone_code'],
            name=row['name'],
            countries=countries,
            standard_rate=Decimal(row['standard_rate']),
            express_rate=Decimal(row['express_rate']),
            free_threshold=Decimal(row['free_threshold']),
            standard_days=(int(row['standard_days_min']), int(row['standard_days_max'])),
            express_days=(int(row['express_days_min']), int(row['express_days_max'])),
        )

    def zone_for(self, country_code: str) -> ShippingZone:
        """Specific zone for the country, else the catch-all."""
        country = str(country_code or '').strip().upper()
        for zone in self.zones:
            if country in zone.countries and country != CATCH_ALL:
                return zone
        logger.debug("No specific zone for %r, using %s", country_code, self.default_zone.code)
        return self.default_zone

    def is_supported(self, country_code: str) -> bool:
        """True if the country has its own zone rather than the catch-all."""
        return self.zone_for(country_code) is not self.default_zone

    def policy_for(self, country_code: str, method: str = "standard") -> ShippingPolicy:
        """ShippingPolicy for a destination and delivery method. Express is never free."""
        method = str(method or '').strip().lower()
        zone = self.zone_for(country_code)

        if method == 'standard':
            return ShippingPolicy(
                base_rate=zone.standard_rate,
                free_threshold=zone.free_threshold,
                method=method,
                zone=zone.code,
            )
        if method == 'express':
            return ShippingPolicy(
                base_rate=zone.express_rate,
                free_threshold=None,
                method=method,
                zone=zone.code,
            )
        raise InvalidInput(f"Unknown shipping method {method!r}, expected one of {', '.join(METHODS)}", field='method')

    def options_for(self, country_code: str, subtotal: Decimal) -> list[ShippingOption]:
        """Delivery options for the checkout: free or paid standard, plus express."""
        zone = self.zone_for(country_code)
        subtotal = to_decimal(subtotal, 'subtotal')
        options = []

        if subtotal >= zone.free_threshold:
            options.append(ShippingOption(
                id='free-standard', name='Free Standard Shipping', amount=ZERO,
                estimated_days=zone.standard_days, type='free',
            ))
        else:
            options.append(ShippingOption(
                id='standard', name='Standard Shipping', amount=zone.standard_rate,
                estimated_days=zone.standard_days, type='standard',
            ))

        # Express is always offered
        options.append(ShippingOption(
            id='express', name='Express Shipping', amount=zone.express_rate,
            estimated_days=zone.express_days, type='express',
        ))
        return options

    def estimated_delivery(self, country_code: str, method: str = "standard",
                           ordered_on: Optional[date] = None) -> tuple[date, date]:
        """Earliest and latest delivery dates, counting business days."""
        zone = self.zone_for(country_code)
        low, high = zone.express_days if str(method).lower() == 'express' else zone.standard_days
        start = pd.Timestamp(ordered_on or date.today())
        return (
            (start + pd.offsets.BDay(low)).date(),
            (start + pd.offsets.BDay(high)).date(),
        )
