"""
Discount Repository - Read-only promo code lookup.

Reads the promo code table (promo_codes.csv) into Discount records.
Usage counts are maintained by the order system; this side only reads them.
"""
import logging
from datetime import date
from pathlib import Path
from typing import Optional

import pandas as pd

from ..config.settings import Settings
from ..engine.models import Discount

logger = logging.getLogger(__name__)

CSV_COLUMNS = [
    'code', 'type', 'discount', 'description', 'min_amount', 'max_discount',
    'valid_from', 'valid_until', 'usage_limit', 'usage_count', 'active',
]


def parse_bool(value: str) -> bool:
    """Parse a boolean from CSV string."""
    return str(value).strip().lower() in ('true', '1', 'yes', 'on')


def _optional(value: str) -> Optional[str]:
    value = str(value).strip()
    return value or None


class DiscountRepository:
    """Promo codes keyed by normalized (upper-case, stripped) code."""

    def __init__(self, promo_codes_csv: Optional[Path] = None, discounts: Optional[list[Discount]] = None):
        """Load the CSV table when given, then add any in-memory records."""
        self.promo_codes_csv = Path(promo_codes_csv) if promo_codes_csv is not None else None
        self._discounts: dict[str, Discount] = {}
        if self.promo_codes_csv is not None:
            self._load()
        for discount in discounts or []:
            self._add(discount, source='records')

    @classmethod
    def from_settings(cls, settings: Settings) -> 'DiscountRepository':
        return cls(settings.promo_codes_csv)

    @classmethod
    def from_records(cls, discounts: list[Discount]) -> 'DiscountRepository':
        """In-memory repository, e.g. for tests or a database-backed loader."""
        return cls(discounts=discounts)

    def _add(self, discount: Discount, source):
        if discount.code in self._discounts:
            logger.warning("Duplicate promo code %s in %s, keeping first", discount.code, source)
            return
        self._discounts[discount.code] = discount

    def _load(self):
        if not self.promo_codes_csv.exists():
            raise FileNotFoundError(f"promo_codes.csv not found at {self.promo_codes_csv}.")

        df = pd.read_csv(self.promo_codes_csv, dtype=str).fillna('')
        df.columns = [c.strip() for c in df.columns]
        missing = [c for c in CSV_COLUMNS if c not in df.columns]
        if missing:
            raise ValueError(f"promo_codes.csv is missing columns: {', '.join(missing)}")

        for _, row in df.iterrows():
            if not str(row['code']).strip():
                continue
            self._add(self._row_to_discount(row), source=self.promo_codes_csv)

        logger.info("Loaded %d promo codes from %s", len(self._discounts), self.promo_codes_csv)

    @staticmethod
    def _row_to_discount(row) -> Discount:
        usage_limit = _optional(row['usage_limit'])
        return Discount(
            code=row['code'],
            kind=str(row['type']).strip().lower(),
            value=str(row['discount']).strip(),
            description=str(row['description']).strip(),
            min_amount=_optional(row['min_amount']),
            max_discount=_optional(row['max_discount']),
            valid_from=_optional(row['valid_from']),
            valid_until=_optional(row['valid_until']),
            usage_limit=int(usage_limit) if usage_limit else None,
            usage_count=int(_optional(row['usage_count']) or 0),
            active=parse_bool(row['active']),
        )

    def get(self, code: str) -> Optional[Discount]:
        """Look up a promo code, ignoring case and surrounding whitespace."""
        return self._discounts.get(str(code or '').upper().strip())

    def list_all(self) -> list[Discount]:
        return list(self._discounts.values())

    def list_active(self, today: Optional[date] = None) -> list[Discount]:
        """Codes that are active, inside their validity window and not used up."""
        today = today or date.today()
        active = []
        for discount in self._discounts.values():
            if not discount.active:
                continue
            if discount.valid_from is not None and today < discount.valid_from:
                continue
            if discount.valid_until is not None and today > discount.valid_until:
                continue
            if discount.remaining_uses == 0:
                continue
            active.append(discount)
        return active
