"""
Moderation gate: which ratings count toward aggregates.

A rating-only submission (no review text) is trusted and always counts.
A submission with text only counts once an editor has approved it.
"""

from typing import Iterable, List, Optional, Union

from .types import ModerationStatus, RawRating


def has_review_text(text: Optional[str]) -> bool:
    """None, empty and whitespace-only text are all treated as empty."""
    return bool(text and text.strip())


def is_approved(status: Union[ModerationStatus, str, None]) -> bool:
    if status is None:
        return False
    if isinstance(status, ModerationStatus):
        return status is ModerationStatus.APPROVED
    return str(status).strip().lower() == ModerationStatus.APPROVED.value


def counts_toward_aggregate(rating: RawRating) -> bool:
    return not has_review_text(rating.review_text) or is_approved(rating.moderation_status)


def filter_counting(ratings: Iterable[RawRating]) -> List[RawRating]:
    return [rating for rating in ratings if counts_toward_aggregate(rating)]
