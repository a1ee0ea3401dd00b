"""
Article ViewSet.

Security:
- Anyone can read published articles
- ADMIN and EDITOR roles can draft, edit, publish and archive
- Writes are rate limited and audit logged
"""

import logging

from django.utils.decorators import method_decorator
from django_filters.rest_framework import DjangoFilterBackend
from django_ratelimit.decorators import ratelimit
from rest_framework import filters, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from authentication.audit import log_action
from authentication.models import Role
from authentication.views import IsEditor

from .models import Article
from .serializers import ArticleSerializer

logger = logging.getLogger(__name__)


class ArticleViewSet(viewsets.ModelViewSet):
    serializer_class = ArticleSerializer
    lookup_field = 'slug'
    filter_backends = [DjangoFilterBackend, filters.SearchFilter]
    filterset_fields = ['status']
    search_fields = ['title', 'excerpt', 'content']

    def get_queryset(self):
        user = self.request.user
        queryset = Article.objects.select_related('author')
        if user.is_authenticated and user.has_role(Role.ADMIN, Role.EDITOR):
            return queryset
        return queryset.published()

    def get_permissions(self):
        if self.action in ('list', 'retrieve'):
            return [AllowAny()]
        return [IsEditor()]

    @method_decorator(ratelimit(key='user', rate='20/m', method='POST'))
    def create(self, request, *args, **kwargs):
        return super().create(request, *args, **kwargs)

    def perform_create(self, serializer):
        article = serializer.save(author=self.request.user)
        log_action(self.request, 'CREATE', 'ARTICLE', article.id, 'SUCCESS', {'slug': article.slug})

    def perform_update(self, serializer):
        article = serializer.save()
        log_action(self.request, 'UPDATE', 'ARTICLE', article.id, 'SUCCESS', {'slug': article.slug})

    def perform_destroy(self, instance):
        log_action(self.request, 'DELETE', 'ARTICLE', instance.id, 'SUCCESS', {'slug': instance.slug})
        instance.delete()

    @action(detail=True, methods=['post'])
    def publish(self, request, slug=None):
        article = self.get_object()
        if article.status == Article.Status.PUBLISHED:
            return Response({'detail': 'Article is already published.'}, status=status.HTTP_400_BAD_REQUEST)

        previous = article.status
        article.publish()
        log_action(request, 'PUBLISH', 'ARTICLE', article.id, 'SUCCESS', {'previous_status': previous})
        logger.info("Article %s published by %s", article.slug, request.user.email)
        return Response(self.get_serializer(article).data)

    @action(detail=True, methods=['post'])
    def archive(self, request, slug=None):
        article = self.get_object()
        if article.status == Article.Status.ARCHIVED:
            return Response({'detail': 'Article is already archived.'}, status=status.HTTP_400_BAD_REQUEST)

        previous = article.status
        article.archive()
        log_action(request, 'ARCHIVE', 'ARTICLE', article.id, 'SUCCESS', {'previous_status': previous})
        logger.info("Article %s archived by %s", article.slug, request.user.email)
        return Response(self.get_serializer(article).data)
