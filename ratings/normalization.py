"""
Boundary normalisation for rating rows.

Rows reach the rating core in several shapes: dicts from ``.values()``,
model instances, and nested relations that are either a single object or a
one-element list. Everything is converted to RawRating here, once, before
it reaches the aggregator.
"""

from collections.abc import Mapping
from typing import Any, Iterable, List

from .types import ModerationStatus, RawRating


def first_or_self(value: Any) -> Any:
    """Unwrap a relation that may come back as ``[obj]`` or ``obj``."""
    if isinstance(value, (list, tuple)):
        return value[0] if value else None
    return value


def _get(row: Any, *names: str, default: Any = None) -> Any:
    for name in names:
        if isinstance(row, Mapping):
            if name in row:
                return row[name]
        elif hasattr(row, name):
            return getattr(row, name)
    return default


def normalize_status(row: Any) -> ModerationStatus:
    status = _get(row, "moderation_status")
    if status is None:
        # Rows written before moderation_status existed only carry is_approved.
        is_approved = _get(row, "is_approved")
        return ModerationStatus.APPROVED if is_approved else ModerationStatus.PENDING
    if isinstance(status, ModerationStatus):
        return status
    try:
        return ModerationStatus(str(status).strip().lower())
    except ValueError:
        return ModerationStatus.PENDING


def normalize_rating(row: Any) -> RawRating:
    if isinstance(row, RawRating):
        return row

    product_id = _get(row, "product_id")
    if product_id is None:
        product = first_or_self(_get(row, "product"))
        if isinstance(product, Mapping) or hasattr(product, "pk"):
            product_id = _get(product, "id", "pk")
        else:
            product_id = product

    return RawRating(
        product_id=product_id,
        user_id=_get(row, "user_id"),
        overall_rating=_get(row, "overall_rating", "rating"),
        review_text=_get(row, "review_text"),
        moderation_status=normalize_status(row),
        created_at=_get(row, "created_at"),
    )


def normalize_ratings(rows: Iterable[Any]) -> List[RawRating]:
    return [normalize_rating(row) for row in rows or ()]
