"""
Review models for the sparkling water catalog.

A Review is one user's rating of one product, optionally with text:
- Rating is validated to be between 1 and 5
- One review per user per product; re-submitting updates it in place
- Text goes through moderation (pending -> approved/rejected)
- Rating-only submissions need no moderation and always count
"""

from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.db.models import Q
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from ratings import ModerationStatus as CoreModerationStatus
from ratings import RawRating


class ReviewQuerySet(models.QuerySet):
    BLANK_TEXT = r'^\s*$'

    def without_text(self):
        return self.filter(review_text__regex=self.BLANK_TEXT)

    def counting(self):
        """
        Rows that count toward aggregates: no text, or approved text.

        Same rule as ratings.counts_toward_aggregate, expressed as a query.
        """
        return self.filter(
            Q(review_text__regex=self.BLANK_TEXT)
            | Q(moderation_status=Review.ModerationStatus.APPROVED)
        )

    def awaiting_moderation(self):
        return self.filter(moderation_status=Review.ModerationStatus.PENDING).exclude(
            review_text__regex=self.BLANK_TEXT
        )


class Review(models.Model):
    """
    One user's rating (and optional review text) of a product.

    Considerations:
    - unique_together enforces one review per user per product
    - Reviews are not deleted in normal flows; moderation hides text instead
    """

    class ModerationStatus(models.TextChoices):
        PENDING = CoreModerationStatus.PENDING.value, _('Pending')
        APPROVED = CoreModerationStatus.APPROVED.value, _('Approved')
        REJECTED = CoreModerationStatus.REJECTED.value, _('Rejected')

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,  # Keep reviews when accounts are deactivated
        related_name='reviews',
        help_text=_("User who submitted this rating"),
    )
    product = models.ForeignKey(
        'catalog.Product',
        on_delete=models.CASCADE,
        related_name='reviews',
        help_text=_("Product being rated"),
    )
    overall_rating = models.PositiveSmallIntegerField(
        validators=[
            MinValueValidator(1, message=_("Rating must be at least 1")),
            MaxValueValidator(5, message=_("Rating cannot exceed 5")),
        ],
        help_text=_("Overall rating from 1 (worst) to 5 (best)"),
    )
    review_text = models.TextField(
        blank=True,
        default='',
        help_text=_("Optional review text. Requires moderation before it is shown."),
    )
    moderation_status = models.CharField(
        max_length=10,
        choices=ModerationStatus.choices,
        default=ModerationStatus.PENDING,
        db_index=True,
    )
    moderated_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='moderated_reviews',
    )
    moderated_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = ReviewQuerySet.as_manager()

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['product', 'moderation_status']),
            models.Index(fields=['moderation_status', 'created_at']),
            models.Index(fields=['user', 'created_at']),
        ]
        unique_together = ['user', 'product']
        verbose_name = _("Review")
        verbose_name_plural = _("Reviews")

    def __str__(self):
        return f"{self.user.email} - {self.product.name} - {self.overall_rating}/5"

    @property
    def has_text(self) -> bool:
        return bool(self.review_text and self.review_text.strip())

    def to_raw_rating(self) -> RawRating:
        return RawRating(
            product_id=self.product_id,
            user_id=self.user_id,
            overall_rating=self.overall_rating,
            review_text=self.review_text,
            moderation_status=CoreModerationStatus(self.moderation_status),
            created_at=self.created_at,
        )

    def moderate(self, status: str, moderator) -> str:
        """
        Record a moderation decision.

        Returns:
            str: the previous status
        """
        previous = self.moderation_status
        self.moderation_status = status
        self.moderated_by = moderator
        self.moderated_at = timezone.now()
        self.save(update_fields=['moderation_status', 'moderated_by', 'moderated_at', 'updated_at'])
        return previous
