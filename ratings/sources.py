"""
Data-fetch interface consumed by the rating pipeline.

The rating core never talks to the database. Whichever layer builds a
listing passes in a RatingSource; the Django implementation lives in
``reviews.sources``.
"""

from typing import Dict, Hashable, Iterable, List, Protocol

from .normalization import normalize_ratings
from .types import RawRating


class RatingSource(Protocol):
    def fetch_ratings_for_product(self, product_id: Hashable) -> List[RawRating]:
        ...

    def fetch_ratings_for_products(self, product_ids: Iterable[Hashable]) -> List[RawRating]:
        ...

    def fetch_all_ratings_for_global_mean(self) -> List[RawRating]:
        ...


class InMemoryRatingSource:
    """List-backed RatingSource, used by tests and offline scripts."""

    def __init__(self, rows: Iterable = ()):
        self._ratings: Dict[tuple, RawRating] = {}
        for rating in normalize_ratings(rows):
            self.upsert(rating)

    def upsert(self, rating: RawRating) -> RawRating:
        # One row per (product, user); later submissions replace earlier ones.
        self._ratings[(rating.product_id, rating.user_id)] = rating
        return rating

    def fetch_ratings_for_product(self, product_id: Hashable) -> List[RawRating]:
        return [r for r in self._ratings.values() if r.product_id == product_id]

    def fetch_ratings_for_products(self, product_ids: Iterable[Hashable]) -> List[RawRating]:
        wanted = set(product_ids)
        return [r for r in self._ratings.values() if r.product_id in wanted]

    def fetch_all_ratings_for_global_mean(self) -> List[RawRating]:
        return list(self._ratings.values())
