"""Presentation helpers for rating values."""

from typing import List, Optional

NOT_AVAILABLE = "N/A"


def format_rating(value: Optional[float], places: int = 1) -> str:
    if value is None:
        return NOT_AVAILABLE
    return f"{value:.{places}f}"


def star_fill_percentages(rating: Optional[float]) -> List[float]:
    """
    Fill percentage (0-100) for each of five stars.

    A 4.7 rating gives ``[100, 100, 100, 100, 70]`` (give or take float noise
    on the partial star). Ratings are clamped to [0, 5].
    """
    clamped = max(0.0, min(5.0, float(rating or 0)))
    percentages = []
    for star in range(1, 6):
        if clamped >= star:
            percentages.append(100.0)
        elif clamped > star - 1:
            percentages.append((clamped - (star - 1)) * 100)
        else:
            percentages.append(0.0)
    return percentages
