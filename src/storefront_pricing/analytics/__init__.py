"""Analytics subpackage - marketing experiment statistics."""
from .ab_testing import VariantStats, SignificanceResult, analyze, recommend, assign_variant

__all__ = ['VariantStats', 'SignificanceResult', 'analyze', 'recommend', 'assign_variant']
