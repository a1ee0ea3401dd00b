"""
Listing pipeline: fetch -> moderation gate -> aggregate -> rank.

Every call recomputes from whatever the source returns at that moment.
There is no cache and no shared state, so concurrent requests need no
coordination.
"""

import logging
from operator import attrgetter
from typing import Any, Callable, Hashable, Iterable, List, Optional

from .aggregation import aggregate, aggregate_by_product, compute_global_mean
from .moderation import filter_counting
from .ranking import rank
from .sources import RatingSource
from .types import (
    DEFAULT_CONFIDENCE_FACTOR,
    FALLBACK_GLOBAL_MEAN,
    AggregateRating,
    ListingItem,
    SortSpec,
)

logger = logging.getLogger(__name__)


def global_mean_from(source: RatingSource, fallback: float = FALLBACK_GLOBAL_MEAN) -> float:
    return compute_global_mean(source.fetch_all_ratings_for_global_mean(), fallback=fallback)


def aggregate_product(
    product_id: Hashable,
    source: RatingSource,
    confidence_factor: float = DEFAULT_CONFIDENCE_FACTOR,
    global_mean: Optional[float] = None,
) -> AggregateRating:
    """Aggregate a single product, e.g. for a detail page."""
    if global_mean is None:
        global_mean = global_mean_from(source)
    counting = filter_counting(source.fetch_ratings_for_product(product_id))
    return aggregate(counting, global_mean, confidence_factor, product_id=product_id)


def build_listing(
    products: Iterable[Any],
    source: RatingSource,
    sort_spec: SortSpec = SortSpec(),
    id_of: Callable[[Any], Hashable] = attrgetter("pk"),
    name_of: Callable[[Any], str] = attrgetter("name"),
    global_mean: Optional[float] = None,
) -> List[ListingItem]:
    """
    Aggregate and rank a collection of products.

    Args:
        products: Caller objects; each ends up as the payload of a ListingItem.
        source: Where ratings come from.
        sort_spec: Sort mode and confidence factor.
        id_of: Extracts the product id from a caller object.
        name_of: Extracts the display name from a caller object.
        global_mean: Precomputed platform mean. Pass it when building several
            listings for one page so the full scan happens once.

    Returns:
        Ranked ListingItems.
    """
    products = list(products)
    if not products:
        return []

    if global_mean is None:
        global_mean = global_mean_from(source)

    product_ids = [id_of(product) for product in products]
    aggregates = aggregate_by_product(
        source.fetch_ratings_for_products(product_ids),
        global_mean,
        sort_spec.confidence_factor,
        product_ids=product_ids,
    )

    items = [
        ListingItem(
            product_id=product_id,
            name=name_of(product),
            aggregate=aggregates[product_id],
            payload=product,
        )
        for product_id, product in zip(product_ids, products)
    ]
    logger.debug("Ranking %d products by %s (global mean %.3f)", len(items), sort_spec.mode, global_mean)
    return rank(items, sort_spec)
