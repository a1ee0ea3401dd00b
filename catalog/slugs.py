"""
URL slug helpers for brands, products and articles.
"""

import logging
import re

logger = logging.getLogger(__name__)

MAX_SLUG_ATTEMPTS = 100

_NON_SLUG_CHARS = re.compile(r"[^\w\s-]", re.ASCII)
_WHITESPACE = re.compile(r"\s+")
_HYPHENS = re.compile(r"-+")


class SlugGenerationError(Exception):
    """Raised when no free slug is found within MAX_SLUG_ATTEMPTS."""


def generate_slug(text: str) -> str:
    """
    Lowercase, drop punctuation, turn whitespace into hyphens.

    >>> generate_slug("  La Croix: Pamplemousse!! ")
    'la-croix-pamplemousse'
    """
    slug = (text or "").lower().strip()
    slug = _NON_SLUG_CHARS.sub("", slug)
    slug = _WHITESPACE.sub("-", slug)
    slug = _HYPHENS.sub("-", slug)
    return slug.strip("-")


def ensure_unique_slug(initial_slug: str, queryset, exclude_pk=None, field: str = "slug") -> str:
    """
    Return ``initial_slug`` or the first free ``initial_slug-N``.

    Args:
        initial_slug: Candidate produced by generate_slug().
        queryset: Rows whose slugs must not collide (e.g. ``Brand.objects.all()``).
        exclude_pk: Primary key of the row being renamed, so it does not
            collide with itself.
        field: Name of the slug column.

    Raises:
        SlugGenerationError: after MAX_SLUG_ATTEMPTS collisions.
    """
    if exclude_pk is not None:
        queryset = queryset.exclude(pk=exclude_pk)

    candidate = initial_slug
    for counter in range(1, MAX_SLUG_ATTEMPTS + 1):
        if not queryset.filter(**{field: candidate}).exists():
            if counter > 1:
                logger.info("Slug '%s' taken, using '%s'", initial_slug, candidate)
            return candidate
        candidate = f"{initial_slug}-{counter}"

    raise SlugGenerationError(
        f"Unable to generate a unique slug for '{initial_slug}' after {MAX_SLUG_ATTEMPTS} attempts"
    )
