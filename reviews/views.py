"""
Review ViewSets for the sparkling water API.

This module provides the public review endpoints and the moderation console:
- Submission with upsert semantics (one review per user per product)
- Moderation queue, approve and reject (ADMIN only)
- Per-product rating summary computed by the ratings package
- Rate limiting and audit logging on every write
"""

import logging

from django.db.models import Q
from django.shortcuts import get_object_or_404
from django.utils.decorators import method_decorator
from django_filters.rest_framework import DjangoFilterBackend
from django_ratelimit.decorators import ratelimit
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import PermissionDenied, ValidationError
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response

from authentication.audit import log_action
from authentication.views import IsModerator
from catalog.listing import product_aggregate, rating_fields
from catalog.models import Product

from .models import Review
from .serializers import ModerationDecisionSerializer, ReviewSerializer, ReviewSubmitSerializer

logger = logging.getLogger(__name__)


class ReviewViewSet(mixins.ListModelMixin,
                    mixins.RetrieveModelMixin,
                    mixins.DestroyModelMixin,
                    viewsets.GenericViewSet):
    """
    ViewSet for Review model.

    Visibility:
    - Anonymous users see reviews that count toward ratings (rating-only or approved)
    - Authenticated users also see their own reviews in any state
    - Admins see everything
    """

    serializer_class = ReviewSerializer
    filter_backends = [DjangoFilterBackend]
    filterset_fields = ['product', 'product__slug', 'user', 'overall_rating', 'moderation_status']

    def get_queryset(self):
        user = self.request.user
        queryset = Review.objects.select_related('user', 'product', 'product__brand')

        if user.is_authenticated and user.has_role('ADMIN'):
            return queryset

        public = queryset.counting().filter(product__brand__is_active=True)
        if user.is_authenticated:
            return queryset.filter(Q(pk__in=public.values('pk')) | Q(user=user))
        return public

    def get_permissions(self):
        if self.action in ('approve', 'reject', 'pending'):
            return [IsModerator()]
        if self.action in ('create', 'destroy', 'mine'):
            return [IsAuthenticated()]
        return [AllowAny()]

    @method_decorator(ratelimit(key='user', rate='10/m', method='POST'))
    @method_decorator(ratelimit(key='ip', rate='20/m', method='POST'))
    def create(self, request, *args, **kwargs):
        """
        Submit or update the current user's review of a product.

        Returns 201 for a new review and 200 when an existing one was updated.
        """
        serializer = ReviewSubmitSerializer(data=request.data, context={'request': request})
        serializer.is_valid(raise_exception=True)
        review = serializer.save()

        action_name = 'CREATE' if serializer.created else 'UPDATE'
        log_action(
            request, action_name, 'REVIEW', review.id, 'SUCCESS', {
                'product_id': str(review.product_id),
                'overall_rating': review.overall_rating,
                'moderation_status': review.moderation_status,
            }
        )
        logger.info(
            "Review %s %s for product %s (status %s)",
            review.id, action_name.lower(), review.product_id, review.moderation_status,
        )

        response_status = status.HTTP_201_CREATED if serializer.created else status.HTTP_200_OK
        return Response(ReviewSerializer(review, context={'request': request}).data, status=response_status)

    @method_decorator(ratelimit(key='user', rate='10/m', method='DELETE'))
    def destroy(self, request, *args, **kwargs):
        review = self.get_object()
        user = request.user

        if review.user_id != user.pk and not user.has_role('ADMIN'):
            log_action(
                request, 'DELETE', 'REVIEW', review.id,
                'FAILURE', {'reason': 'Permission denied: not owner'}
            )
            raise PermissionDenied('You can only delete your own reviews.')

        log_action(request, 'DELETE', 'REVIEW', review.id, 'SUCCESS', {'product_id': str(review.product_id)})
        return super().destroy(request, *args, **kwargs)

    @action(detail=False, methods=['get'])
    def mine(self, request):
        reviews = Review.objects.filter(user=request.user).select_related('product', 'product__brand', 'user')
        return Response(ReviewSerializer(reviews, many=True, context={'request': request}).data)

    @action(detail=False, methods=['get'])
    def pending(self, request):
        """Moderation queue: pending reviews with text, newest first."""
        reviews = (
            Review.objects.awaiting_moderation()
            .select_related('user', 'product', 'product__brand')
            .order_by('-created_at', '-id')
        )
        data = ReviewSerializer(reviews, many=True, context={'request': request}).data
        return Response({'count': len(data), 'results': data})

    @action(detail=True, methods=['post'])
    @method_decorator(ratelimit(key='user', rate='60/m', method='POST'))
    def approve(self, request, pk=None):
        return self._moderate(request, Review.ModerationStatus.APPROVED, 'APPROVE')

    @action(detail=True, methods=['post'])
    @method_decorator(ratelimit(key='user', rate='60/m', method='POST'))
    def reject(self, request, pk=None):
        return self._moderate(request, Review.ModerationStatus.REJECTED, 'REJECT')

    @action(detail=False, methods=['get'])
    def summary(self, request):
        """Rating summary for one product: ``?product=<slug>``."""
        slug = request.query_params.get('product')
        if not slug:
            raise ValidationError({'product': ['This query parameter is required.']})
        products = Product.objects.select_related('brand')
        user = request.user
        if not (user.is_authenticated and user.is_moderator):
            products = products.filter(brand__is_active=True)
        product = get_object_or_404(products, slug=slug)
        data = {'product': product.slug, 'product_name': product.name}
        data.update(rating_fields(product_aggregate(product)))
        return Response(data)

    def _moderate(self, request, new_status, action_name):
        review = self.get_object()
        decision = ModerationDecisionSerializer(data=request.data)
        decision.is_valid(raise_exception=True)

        if not review.has_text:
            return Response(
                {'detail': 'Rating-only submissions do not need moderation.'},
                status=status.HTTP_400_BAD_REQUEST,
            )

        previous = review.moderate(new_status, request.user)
        log_action(
            request, action_name, 'REVIEW', review.id, 'SUCCESS', {
                'product_id': str(review.product_id),
                'previous_status': previous,
                'new_status': new_status,
                'note': decision.validated_data.get('note', ''),
            }
        )
        logger.info("Review %s %s -> %s by %s", review.id, previous, new_status, request.user.email)

        return Response({
            'detail': f'Review {new_status}.',
            'review': ReviewSerializer(review, context={'request': request}).data,
        })
