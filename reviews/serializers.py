"""
Review serializers for the sparkling water API.

ReviewSubmitSerializer implements the upsert: one review per user per
product, re-submission updates the existing row. Text submissions enter
moderation; rating-only submissions are stored approved.
"""

import logging

from django.db import IntegrityError, transaction
from rest_framework import serializers

from catalog.models import Product
from ratings import has_review_text

from .models import Review

logger = logging.getLogger(__name__)


class ReviewSerializer(serializers.ModelSerializer):
    """
    Read serializer for Review model.

    Unapproved text is blanked for everyone except its author and
    moderators; the rating itself is always visible.
    """

    author = serializers.CharField(source='user.public_name', read_only=True)
    product_name = serializers.CharField(source='product.name', read_only=True)
    product_slug = serializers.CharField(source='product.slug', read_only=True)
    brand_name = serializers.CharField(source='product.brand.name', read_only=True)

    class Meta:
        model = Review
        fields = [
            'id',
            'user',
            'author',
            'product',
            'product_name',
            'product_slug',
            'brand_name',
            'overall_rating',
            'review_text',
            'moderation_status',
            'moderated_at',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields

    def to_representation(self, instance):
        data = super().to_representation(instance)
        if instance.moderation_status != Review.ModerationStatus.APPROVED and not self._can_see_unmoderated(instance):
            data['review_text'] = ''
        return data

    def _can_see_unmoderated(self, instance) -> bool:
        request = self.context.get('request')
        user = getattr(request, 'user', None)
        if user is None or not user.is_authenticated:
            return False
        return instance.user_id == user.pk or user.has_role('ADMIN')


class ReviewSubmitSerializer(serializers.Serializer):
    """
    Create-or-update a user's review of a product.

    Security:
    - User is always request.user
    - Rating validated to 1-5 here; the rating core does not validate
    - Changing the text sends it back to moderation
    """

    product = serializers.SlugRelatedField(
        slug_field='slug',
        queryset=Product.objects.select_related('brand'),
    )
    overall_rating = serializers.IntegerField(min_value=1, max_value=5)
    review_text = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=5000)

    def validate_product(self, value):
        if not value.brand.is_active:
            raise serializers.ValidationError("Cannot review products of an inactive brand.")
        return value

    def validate_review_text(self, value):
        return (value or '').strip()

    @staticmethod
    def _locked_review(user, product):
        return Review.objects.select_for_update().filter(user=user, product=product).first()

    @staticmethod
    def _status_for(review, text):
        if not has_review_text(text):
            return Review.ModerationStatus.APPROVED
        if review is not None and review.review_text.strip() == text:
            # Same text as before: keep the earlier moderation decision.
            return review.moderation_status
        return Review.ModerationStatus.PENDING

    @transaction.atomic
    def save(self, **kwargs):
        user = self.context['request'].user
        product = self.validated_data['product']
        rating = self.validated_data['overall_rating']
        text = self.validated_data.get('review_text', '')

        review = self._locked_review(user, product)
        self.created = False
        if review is None:
            try:
                with transaction.atomic():
                    review = Review.objects.create(
                        user=user,
                        product=product,
                        overall_rating=rating,
                        review_text=text,
                        moderation_status=self._status_for(None, text),
                    )
                self.created = True
            except IntegrityError:
                # A concurrent submission inserted the row first; update it instead.
                logger.info("Review for user %s product %s created concurrently", user.pk, product.pk)
                review = self._locked_review(user, product)

        if not self.created:
            status = self._status_for(review, text)
            if status != review.moderation_status:
                review.moderated_by = None
                review.moderated_at = None
            review.overall_rating = rating
            review.review_text = text
            review.moderation_status = status
            review.save()

        self.instance = review
        return review


class ModerationDecisionSerializer(serializers.Serializer):
    note = serializers.CharField(required=False, allow_blank=True, max_length=500)
