"""
Django admin configuration for reviews.
"""

from django.contrib import admin
from django.utils import timezone

from .models import Review


@admin.register(Review)
class ReviewAdmin(admin.ModelAdmin):
    """Admin interface for Review, doubling as a moderation queue."""
    list_display = ['product', 'user', 'overall_rating', 'moderation_status', 'moderated_by', 'created_at']
    list_filter = ['moderation_status', 'overall_rating', 'created_at']
    search_fields = ['product__name', 'product__brand__name', 'user__email', 'review_text']
    readonly_fields = ['created_at', 'updated_at', 'moderated_by', 'moderated_at']
    list_select_related = ['product', 'product__brand', 'user', 'moderated_by']
    date_hierarchy = 'created_at'

    actions = ['approve_reviews', 'reject_reviews']

    def _moderate(self, request, queryset, status):
        return queryset.update(
            moderation_status=status,
            moderated_by=request.user,
            moderated_at=timezone.now(),
        )

    def approve_reviews(self, request, queryset):
        """Approve selected reviews."""
        count = self._moderate(request, queryset, Review.ModerationStatus.APPROVED)
        self.message_user(request, f"{count} review(s) approved.")
    approve_reviews.short_description = "Approve selected reviews"

    def reject_reviews(self, request, queryset):
        """Reject selected reviews."""
        count = self._moderate(request, queryset, Review.ModerationStatus.REJECTED)
        self.message_user(request, f"{count} review(s) rejected.")
    reject_reviews.short_description = "Reject selected reviews"
