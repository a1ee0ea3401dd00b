"""
Rating core for the sparkling water catalog.

Framework-free: the Django apps feed it rows through a RatingSource and
render what it returns.
"""

from .aggregation import aggregate, aggregate_by_product, compute_global_mean
from .display import format_rating, star_fill_percentages
from .moderation import counts_toward_aggregate, filter_counting, has_review_text
from .normalization import normalize_rating, normalize_ratings
from .pipeline import aggregate_product, build_listing, global_mean_from
from .ranking import name_sort_key, rank
from .sources import InMemoryRatingSource, RatingSource
from .types import (
    DEFAULT_CONFIDENCE_FACTOR,
    FALLBACK_GLOBAL_MEAN,
    AggregateRating,
    InvalidSortMode,
    ListingItem,
    ModerationStatus,
    RawRating,
    SortMode,
    SortSpec,
)

__all__ = [
    "aggregate",
    "aggregate_by_product",
    "compute_global_mean",
    "format_rating",
    "star_fill_percentages",
    "counts_toward_aggregate",
    "filter_counting",
    "has_review_text",
    "normalize_rating",
    "normalize_ratings",
    "aggregate_product",
    "build_listing",
    "global_mean_from",
    "name_sort_key",
    "rank",
    "InMemoryRatingSource",
    "RatingSource",
    "DEFAULT_CONFIDENCE_FACTOR",
    "FALLBACK_GLOBAL_MEAN",
    "AggregateRating",
    "InvalidSortMode",
    "ListingItem",
    "ModerationStatus",
    "RawRating",
    "SortMode",
    "SortSpec",
]
