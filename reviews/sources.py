"""
ORM-backed RatingSource for the ratings package.

Rows are fetched with ``.values()`` and normalised at this boundary; the
moderation gate itself is applied by the rating core, not in SQL, so
there is exactly one implementation of the rule that decides what counts.
"""

import logging

from ratings import normalize_ratings

from .models import Review

logger = logging.getLogger(__name__)

RATING_COLUMNS = ('product_id', 'user_id', 'overall_rating', 'review_text', 'moderation_status', 'created_at')


class DjangoRatingSource:
    def __init__(self, queryset=None):
        self.queryset = queryset if queryset is not None else Review.objects.all()

    def _fetch(self, queryset):
        return normalize_ratings(queryset.values(*RATING_COLUMNS))

    def fetch_ratings_for_product(self, product_id):
        return self._fetch(self.queryset.filter(product_id=product_id))

    def fetch_ratings_for_products(self, product_ids):
        return self._fetch(self.queryset.filter(product_id__in=list(product_ids)))

    def fetch_all_ratings_for_global_mean(self):
        rows = self._fetch(self.queryset)
        logger.debug("Fetched %d ratings for the global mean", len(rows))
        return rows
