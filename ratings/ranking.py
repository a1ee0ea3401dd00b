"""
Listing order for products.

Two modes:

- ``rating``: Bayesian average descending (unrated products count as 0),
  then rating count descending, then name.
- ``name``: name only.

Name comparison is case-insensitive and accent-insensitive. Every key ends
with the raw name and the product id so equal-looking names still get a
fixed order and the result never depends on input order.
"""

import unicodedata
from typing import Iterable, List, Tuple

from .types import ListingItem, SortMode, SortSpec


def _strip_accents(value: str) -> str:
    decomposed = unicodedata.normalize("NFKD", value)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def name_sort_key(name: str) -> Tuple[str, str, str]:
    """Collation key for display names: accent-folded, case-folded, then raw."""
    name = name or ""
    folded = name.casefold()
    return (_strip_accents(folded), folded, name)


def _name_key(item: ListingItem) -> tuple:
    return name_sort_key(item.name) + (str(item.product_id),)


def _rating_key(item: ListingItem) -> tuple:
    aggregate = item.aggregate
    bayesian = aggregate.bayesian_average if aggregate.bayesian_average is not None else 0.0
    return (-bayesian, -aggregate.rating_count) + _name_key(item)


def rank(items: Iterable[ListingItem], sort_spec: SortSpec = SortSpec()) -> List[ListingItem]:
    """Return a new, fully ordered list; ``items`` is left untouched."""
    if SortMode(sort_spec.mode) is SortMode.NAME:
        return sorted(items, key=_name_key)
    return sorted(items, key=_rating_key)
