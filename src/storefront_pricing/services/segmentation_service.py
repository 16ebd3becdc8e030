"""
Segmentation Service - Works out membership changes for dynamic segments.

The caller loads customers and current memberships and persists the
resulting change; this service only decides who joins and who leaves.
"""
import logging
from dataclasses import dataclass, field
from typing import Iterable, Optional

from ..engine.models import CustomerFacts, SegmentCriteria
from ..engine.segment_matcher import SegmentMatcher

logger = logging.getLogger(__name__)


@dataclass
class MembershipChange:
    """Customers to add to and remove from a segment."""
    segment_id: str
    added: list[str] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)
    matching_count: int = 0

    @property
    def changed(self) -> bool:
        return bool(self.added or self.removed)


class SegmentationService:
    """Membership refresh for dynamic customer segments."""

    def __init__(self, matcher: Optional[SegmentMatcher] = None):
        self.matcher = matcher or SegmentMatcher()

    def refresh_membership(
        self,
        segment_id: str,
        criteria: SegmentCriteria,
        customers: Iterable[CustomerFacts],
        current_member_ids: Iterable[str],
    ) -> MembershipChange:
        """
        Compare who matches the criteria now with who is currently a member.

        Returns added ids in customer order and removed ids sorted.
        """
        current = set(current_member_ids)
        matching = self.matcher.filter(criteria, list(customers))
        matching_ids = {c.customer_id for c in matching}

        change = MembershipChange(
            segment_id=segment_id,
            added=[c.customer_id for c in matching if c.customer_id not in current],
            removed=sorted(current - matching_ids),
            matching_count=len(matching),
        )
        logger.info(
            "Segment %s: +%d, -%d customers (%d matching)",
            segment_id, len(change.added), len(change.removed), change.matching_count,
        )
        return change

    def refresh_all(self, segments: dict, customers: list[CustomerFacts],
                    memberships: dict[str, set]) -> dict[str, MembershipChange]:
        """
        Refresh every dynamic segment.

        Args:
            segments: segment_id -> SegmentCriteria
            customers: All customers with order facts
            memberships: segment_id -> current member ids
        """
        changes = {}
        for segment_id, criteria in segments.items():
            changes[segment_id] = self.refresh_membership(
                segment_id, criteria, customers, memberships.get(segment_id, set())
            )
        total_added = sum(len(c.added) for c in changes.values())
        total_removed = sum(len(c.removed) for c in changes.values())
        logger.info(
            "Updated %d dynamic segments: +%d, -%d customers",
            len(changes), total_added, total_removed,
        )
        return changes
