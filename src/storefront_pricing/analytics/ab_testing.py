"""
A/B Testing - Significance analysis for email campaign variants.

Conversion rates are compared with a two-proportion z-test and the
z-score is bucketed into a confidence level:

    z >= 1.96  -> 95%
    z >= 1.645 -> 90%
    z >= 1.28  -> 80%
    otherwise  -> 0%

A winner is only declared at 95%, and nothing is declared until both
variants have reached the minimum sample size.
"""
import logging
import math
from dataclasses import dataclass
from typing import Optional

import pandas as pd

from ..engine.errors import InvalidInput

logger = logging.getLogger(__name__)

MIN_SAMPLE_SIZE = 100

CONFIDENCE_THRESHOLDS = (
    (1.96, 95),
    (1.645, 90),
    (1.28, 80),
)

MIN_TRAFFIC_SPLIT = 0.1
MAX_TRAFFIC_SPLIT = 0.9


@dataclass(frozen=True)
class VariantStats:
    """Delivery and engagement counts for one variant."""
    sent: int
    opened: int = 0
    clicked: int = 0
    converted: int = 0
    conversion_value: float = 0.0

    def __post_init__(self):
        for name in ('sent', 'opened', 'clicked', 'converted'):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise InvalidInput(f"{name} must be a non-negative integer, got {value!r}", field=name)
        for name in ('opened', 'clicked', 'converted'):
            if getattr(self, name) > self.sent:
                raise InvalidInput(f"{name} ({getattr(self, name)}) cannot exceed sent ({self.sent})", field=name)

    def _rate(self, count: int) -> float:
        return count / self.sent if self.sent else 0.0

    @property
    def open_rate(self) -> float:
        return self._rate(self.opened)

    @property
    def click_rate(self) -> float:
        return self._rate(self.clicked)

    @property
    def conversion_rate(self) -> float:
        return self._rate(self.converted)

    def to_dict(self) -> dict:
        return {
            "sent": self.sent,
            "opened": self.opened,
            "clicked": self.clicked,
            "converted": self.converted,
            "conversion_value": self.conversion_value,
            "open_rate": round(self.open_rate * 100, 2),
            "click_rate": round(self.click_rate * 100, 2),
            "conversion_rate": round(self.conversion_rate * 100, 2),
        }


@dataclass
class SignificanceResult:
    confidence_level: int
    winner: Optional[str] = None
    z_score: Optional[float] = None
    sample_size_needed: Optional[int] = None

    def to_dict(self) -> dict:
        z = self.z_score
        return {
            "winner": self.winner,
            "confidence_level": self.confidence_level,
            "z_score": None if z is None or math.isinf(z) else round(z, 4),
            "sample_size_needed": self.sample_size_needed,
        }


@dataclass
class Recommendation:
    should_continue: bool
    recommendation: str
    confidence_level: int
    sample_size_status: str  # insufficient / adequate / excellent
    winner: Optional[str] = None


def confidence_for(z_score: float) -> int:
    """Bucket a z-score into the reported confidence level."""
    for threshold, level in CONFIDENCE_THRESHOLDS:
        if z_score >= threshold:
            return level
    return 0


def z_score(variant_a: VariantStats, variant_b: VariantStats) -> float:
    """
    |pA - pB| / sqrt(seA² + seB²) with se = sqrt(p(1-p)/n).

    With zero variance on both sides the rates are either equal (z = 0)
    or certainly different (z = inf).
    """
    rate_a = variant_a.conversion_rate
    rate_b = variant_b.conversion_rate
    se_a = math.sqrt(rate_a * (1 - rate_a) / variant_a.sent)
    se_b = math.sqrt(rate_b * (1 - rate_b) / variant_b.sent)
    se_diff = math.sqrt(se_a * se_a + se_b * se_b)

    diff = abs(rate_a - rate_b)
    if se_diff == 0:
        return 0.0 if diff == 0 else math.inf
    return diff / se_diff


def sample_size_needed(variant_a: VariantStats, variant_b: VariantStats,
                       minimum_detectable_effect: float = 0.1) -> int:
    """
    Per-variant sample size to detect a relative lift of
    minimum_detectable_effect at 95% confidence and 80% power.
    """
    z_alpha = 1.96
    z_beta = 0.84

    baseline = max(variant_a.conversion_rate, variant_b.conversion_rate)
    if baseline == 0:
        return 1000

    p1 = baseline
    p2 = min(1.0, baseline * (1 + minimum_detectable_effect))
    if p2 <= p1:
        return 1000
    p_bar = (p1 + p2) / 2
    numerator = (z_alpha + z_beta) ** 2 * 2 * p_bar * (1 - p_bar)
    denominator = (p2 - p1) ** 2
    return math.ceil(numerator / denominator)


def analyze(variant_a: VariantStats, variant_b: VariantStats,
            min_sample_size: int = MIN_SAMPLE_SIZE) -> SignificanceResult:
    """Compare conversion rates of two variants."""
    needed = sample_size_needed(variant_a, variant_b)
    min_sample_size = max(1, min_sample_size)

    if variant_a.sent < min_sample_size or variant_b.sent < min_sample_size:
        logger.debug("Sample too small (A=%d, B=%d)", variant_a.sent, variant_b.sent)
        return SignificanceResult(confidence_level=0, sample_size_needed=needed)

    z = z_score(variant_a, variant_b)
    confidence = confidence_for(z)

    winner = None
    if confidence >= 95:
        winner = 'A' if variant_a.conversion_rate > variant_b.conversion_rate else 'B'

    return SignificanceResult(
        confidence_level=confidence,
        winner=winner,
        z_score=z,
        sample_size_needed=needed,
    )


def recommend(variant_a: VariantStats, variant_b: VariantStats,
              min_sample_size: int = MIN_SAMPLE_SIZE) -> Recommendation:
    """Should the test keep running, and what to tell the marketer."""
    result = analyze(variant_a, variant_b, min_sample_size)
    total_sent = variant_a.sent + variant_b.sent

    status = 'insufficient'
    if total_sent >= 1000:
        status = 'excellent'
    elif total_sent >= 400:
        status = 'adequate'

    confidence = result.confidence_level
    should_continue = confidence < 95 and total_sent < 5000
    leading = 'A' if variant_a.conversion_rate >= variant_b.conversion_rate else 'B'

    if confidence >= 95:
        text = (f"Clear winner detected: Variant {result.winner} with {confidence}% confidence. "
                "Recommended to end test and implement winning variant.")
    elif variant_a.sent < min_sample_size or variant_b.sent < min_sample_size:
        text = "Insufficient sample size. Continue test to gather more data."
    elif confidence >= 80:
        text = f"Promising results for Variant {leading}, but need more data for statistical significance."
    else:
        text = "No clear winner yet. Continue test or consider revising test variants."

    return Recommendation(
        should_continue=should_continue,
        recommendation=text,
        confidence_level=confidence,
        sample_size_status=status,
        winner=result.winner,
    )


def validate_traffic_split(traffic_split: float) -> float:
    """Share of recipients sent variant A; must be between 10% and 90%."""
    split = float(traffic_split)
    if not MIN_TRAFFIC_SPLIT <= split <= MAX_TRAFFIC_SPLIT:
        raise InvalidInput("Traffic split must be between 0.1 (10%) and 0.9 (90%)", field='traffic_split')
    return split


def string_hash(text: str) -> int:
    """
    Non-negative 32-bit string hash (h = h*31 + unit over UTF-16 code units).

    Stable across processes so a recipient always lands in the same variant.
    """
    data = text.encode('utf-16-le')
    h = 0
    for i in range(0, len(data), 2):
        unit = int.from_bytes(data[i:i + 2], 'little')
        h = (h * 31 + unit) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return abs(h)


def assign_variant(campaign_id: str, recipient_email: str, traffic_split: float) -> str:
    """Deterministically assign a recipient to 'A' or 'B'."""
    split = validate_traffic_split(traffic_split)
    value = (string_hash(f"{campaign_id}-{recipient_email}") % 1000) / 1000
    return 'A' if value < split else 'B'


def summarize_results(results: pd.DataFrame) -> dict[str, VariantStats]:
    """
    Roll per-recipient result rows up into VariantStats per variant.

    Expects columns: variant, opened_at, clicked_at, converted_at and
    optionally conversion_value. A non-empty timestamp counts as the event.
    """
    if 'variant' not in results.columns:
        raise InvalidInput("results need a 'variant' column", field='variant')

    stats = {}
    for variant in ('A', 'B'):
        rows = results[results['variant'] == variant]

        def count(column: str) -> int:
            if column not in rows.columns:
                return 0
            values = rows[column]
            return int((values.notna() & (values.astype(str).str.strip() != '')).sum())

        value = 0.0
        if 'conversion_value' in rows.columns:
            value = float(pd.to_numeric(rows['conversion_value'], errors='coerce').fillna(0).sum())

        stats[variant] = VariantStats(
            sent=int(len(rows)),
            opened=count('opened_at'),
            clicked=count('clicked_at'),
            converted=count('converted_at'),
            conversion_value=value,
        )
    return stats
