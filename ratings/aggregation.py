"""
Rating aggregation.

Reduces a product's qualifying ratings to the values used by listing pages:

- true average: the plain mean, shown to users
- Bayesian average: the mean blended with the platform-wide mean, used for
  sorting so a product with two 5-star ratings does not outrank one with
  two hundred 4.8s
- count

The confidence factor C is the number of "virtual" ratings at the global
mean mixed into every product:

    bayesian = (C * global_mean + sum(ratings)) / (C + count)

Arithmetic is plain float with no intermediate rounding. Inputs are not
range-checked; validation belongs to the submission pathway.
"""

import logging
from collections import OrderedDict
from collections.abc import Mapping
from typing import Dict, Hashable, Iterable, Optional, Sequence, Union

from .moderation import counts_toward_aggregate
from .types import (
    DEFAULT_CONFIDENCE_FACTOR,
    FALLBACK_GLOBAL_MEAN,
    AggregateRating,
    RawRating,
)

logger = logging.getLogger(__name__)

RatingValue = Union[int, float, RawRating]


def _value_of(rating: RatingValue) -> float:
    if isinstance(rating, RawRating):
        return rating.overall_rating
    return rating


def aggregate(
    ratings: Sequence[RatingValue],
    global_mean: float,
    confidence_factor: float = DEFAULT_CONFIDENCE_FACTOR,
    product_id: Optional[Hashable] = None,
) -> AggregateRating:
    """
    Aggregate one product's ratings.

    Args:
        ratings: Ratings already filtered through the moderation gate, either
            as numbers or RawRating rows.
        global_mean: Platform-wide mean, see compute_global_mean().
        confidence_factor: Weight (C) of the global mean in the blend.
        product_id: Echoed back on the result.

    Returns:
        AggregateRating; both averages are None when there are no ratings.
    """
    values = [_value_of(rating) for rating in ratings]
    rating_count = len(values)

    if rating_count == 0:
        return AggregateRating(
            product_id=product_id,
            true_average=None,
            bayesian_average=None,
            rating_count=0,
        )

    total = float(sum(values))
    true_average = total / rating_count
    bayesian_average = (confidence_factor * global_mean + total) / (confidence_factor + rating_count)

    return AggregateRating(
        product_id=product_id,
        true_average=true_average,
        bayesian_average=bayesian_average,
        rating_count=rating_count,
    )


def compute_global_mean(
    ratings: Iterable[Union[RatingValue, Mapping]],
    fallback: float = FALLBACK_GLOBAL_MEAN,
) -> float:
    """
    Mean of every qualifying rating across the whole catalog.

    RawRating rows are passed through the moderation gate here. Plain numbers
    and ``{"overall_rating": n}`` mappings are taken as already qualifying.
    Falls back to ``fallback`` (3.5) when nothing qualifies.
    """
    total = 0.0
    count = 0
    for rating in ratings:
        if isinstance(rating, RawRating):
            if not counts_toward_aggregate(rating):
                continue
            value = rating.overall_rating
        elif isinstance(rating, Mapping):
            value = rating["overall_rating"]
        else:
            value = rating
        total += value
        count += 1

    if count == 0:
        logger.debug("No qualifying ratings platform-wide, using fallback mean %s", fallback)
        return fallback
    return total / count


def aggregate_by_product(
    ratings: Iterable[RawRating],
    global_mean: float,
    confidence_factor: float = DEFAULT_CONFIDENCE_FACTOR,
    product_ids: Optional[Iterable[Hashable]] = None,
) -> Dict[Hashable, AggregateRating]:
    """
    Gate and aggregate a mixed batch of RawRating rows in one pass.

    Every id in ``product_ids`` gets an entry, so products without any
    qualifying rating come back with rating_count == 0.
    """
    grouped: "OrderedDict[Hashable, list]" = OrderedDict()
    for product_id in product_ids or ():
        grouped.setdefault(product_id, [])

    for rating in ratings:
        bucket = grouped.setdefault(rating.product_id, [])
        if counts_toward_aggregate(rating):
            bucket.append(rating.overall_rating)

    return {
        product_id: aggregate(values, global_mean, confidence_factor, product_id=product_id)
        for product_id, values in grouped.items()
    }
