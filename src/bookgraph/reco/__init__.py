"""Recommendation aggregation over the lookup port."""

from .aggregator import AggregatorConfig, RecommendationAggregator
from .ranking import rank_recommendations
from .subjects import filter_subjects, shared_subjects

__all__ = [
    "AggregatorConfig",
    "RecommendationAggregator",
    "filter_subjects",
    "rank_recommendations",
    "shared_subjects",
]
