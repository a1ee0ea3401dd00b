"""
Value types shared by the rating core.

These are plain dataclasses with no framework dependency so the same
aggregation and ranking code can be used by every listing surface
(brand pages, carbonation browser, flavor browser, search results).
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Hashable, Optional


DEFAULT_CONFIDENCE_FACTOR = 10
FALLBACK_GLOBAL_MEAN = 3.5


class ModerationStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class SortMode(str, Enum):
    RATING = "rating"
    NAME = "name"


class InvalidSortMode(ValueError):
    """Raised when a listing is requested with an unknown sort mode."""


@dataclass
class RawRating:
    """
    One user's rating of one product.

    At most one exists per (product_id, user_id); re-submission updates it
    in place.
    """
    product_id: Hashable
    user_id: Hashable
    overall_rating: float  # 1-5, not validated here
    review_text: Optional[str] = None
    moderation_status: ModerationStatus = ModerationStatus.PENDING
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class AggregateRating:
    """
    Derived display/sort values for a product. Recomputed on every read.

    true_average and bayesian_average are None iff rating_count == 0.
    """
    product_id: Optional[Hashable]
    true_average: Optional[float]
    bayesian_average: Optional[float]
    rating_count: int = 0

    @property
    def is_rated(self) -> bool:
        return self.rating_count > 0

    def to_dict(self) -> dict:
        return {
            "true_average": self.true_average,
            "bayesian_average": self.bayesian_average,
            "rating_count": self.rating_count,
        }


@dataclass(frozen=True)
class SortSpec:
    mode: SortMode = SortMode.RATING
    confidence_factor: float = DEFAULT_CONFIDENCE_FACTOR

    @classmethod
    def from_value(cls, value: Optional[str], confidence_factor: float = DEFAULT_CONFIDENCE_FACTOR,
                   default: SortMode = SortMode.RATING) -> "SortSpec":
        """
        Build a SortSpec from a query-string value such as ``?sort=name``.

        Empty values fall back to ``default``; anything else that is not a
        known mode raises InvalidSortMode.
        """
        if value is None or not str(value).strip():
            return cls(mode=SortMode(default), confidence_factor=confidence_factor)
        try:
            mode = SortMode(str(value).strip().lower())
        except ValueError:
            choices = ", ".join(m.value for m in SortMode)
            raise InvalidSortMode(f"Unknown sort mode '{value}'. Expected one of: {choices}")
        return cls(mode=mode, confidence_factor=confidence_factor)


@dataclass(frozen=True)
class ListingItem:
    """
    A product as seen by the ranker.

    ``payload`` carries the caller's own object (model instance, dict)
    through ranking untouched.
    """
    product_id: Hashable
    name: str
    aggregate: AggregateRating
    payload: Any = field(default=None, compare=False)
