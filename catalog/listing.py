"""
Glue between Django views and the ratings package.

Reads the RATINGS settings, builds a DjangoRatingSource and turns ranked
ListingItems into response rows. Every listing surface (brand page,
product list, carbonation and flavor browsers, search) goes through here so
they all rank the same way.
"""

from django.conf import settings
from rest_framework.exceptions import ValidationError

from ratings import (
    DEFAULT_CONFIDENCE_FACTOR,
    FALLBACK_GLOBAL_MEAN,
    InvalidSortMode,
    SortSpec,
    aggregate_product,
    build_listing,
    format_rating,
    global_mean_from,
    star_fill_percentages,
)
from reviews.sources import DjangoRatingSource


def ratings_setting(name, default):
    return getattr(settings, 'RATINGS', {}).get(name, default)


def get_confidence_factor() -> float:
    return float(ratings_setting('CONFIDENCE_FACTOR', DEFAULT_CONFIDENCE_FACTOR))


def get_fallback_mean() -> float:
    return float(ratings_setting('FALLBACK_GLOBAL_MEAN', FALLBACK_GLOBAL_MEAN))


def sort_spec_from_request(request) -> SortSpec:
    """
    Parse ``?sort=`` into a SortSpec.

    Raises:
        ValidationError: for an unknown sort mode (HTTP 400).
    """
    try:
        return SortSpec.from_value(
            request.query_params.get('sort'),
            confidence_factor=get_confidence_factor(),
            default=ratings_setting('DEFAULT_SORT', 'rating'),
        )
    except InvalidSortMode as e:
        raise ValidationError({'sort': [str(e)]})


def current_global_mean(source=None) -> float:
    return global_mean_from(source or DjangoRatingSource(), fallback=get_fallback_mean())


def rank_products(products, sort_spec: SortSpec, source=None, global_mean=None):
    source = source or DjangoRatingSource()
    if global_mean is None:
        global_mean = current_global_mean(source)
    return build_listing(products, source, sort_spec, global_mean=global_mean)


def product_aggregate(product, source=None):
    source = source or DjangoRatingSource()
    return aggregate_product(
        product.pk,
        source,
        confidence_factor=get_confidence_factor(),
        global_mean=current_global_mean(source),
    )


def rating_fields(aggregate) -> dict:
    return {
        'true_average': aggregate.true_average,
        'bayesian_average': aggregate.bayesian_average,
        'rating_count': aggregate.rating_count,
        'display_rating': format_rating(aggregate.true_average),
        'star_fill': star_fill_percentages(aggregate.true_average),
    }


def serialize_listing(items, serializer_class, context=None) -> list:
    """Serialize each item's payload and merge its rating fields in."""
    rows = []
    for item in items:
        row = dict(serializer_class(item.payload, context=context or {}).data)
        row.update(rating_fields(item.aggregate))
        rows.append(row)
    return rows
