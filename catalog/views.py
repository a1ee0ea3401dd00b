"""
Catalog ViewSets for the sparkling water API.

Every product listing here (brand page, product list and search, carbonation,
flavor and regional browsers) is ordered by the shared rating ranker through
catalog.listing, honouring ``?sort=rating|name``.

Security:
- Anyone can read active brands and their products
- Only ADMIN role can create, edit or retire catalog entries
- Writes are rate limited and audit logged
"""

import logging
from collections import OrderedDict

from django.db.models import Count
from django.utils.decorators import method_decorator
from django_filters.rest_framework import DjangoFilterBackend
from django_ratelimit.decorators import ratelimit
from rest_framework import filters, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from authentication.audit import log_action
from authentication.views import IsModerator
from ratings import name_sort_key
from reviews.sources import DjangoRatingSource

from .filters import ProductFilter
from .listing import (
    current_global_mean,
    product_aggregate,
    rank_products,
    rating_fields,
    serialize_listing,
    sort_spec_from_request,
)
from .models import Brand, Product, ProductLine
from .serializers import (
    BrandSerializer,
    ProductLineSerializer,
    ProductListSerializer,
    ProductSerializer,
)

logger = logging.getLogger(__name__)

WRITE_ACTIONS = ['create', 'update', 'partial_update', 'destroy']
UNKNOWN_COUNTRY = 'Unknown'


class BrandViewSet(viewsets.ModelViewSet):
    """
    ViewSet for Brand model, addressed by slug.

    Deleting a brand deactivates it; its rows stay for history.
    """

    serializer_class = BrandSerializer
    lookup_field = 'slug'
    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    filterset_fields = ['country_of_origin', 'is_active']
    search_fields = ['name', 'description']
    ordering_fields = ['name', 'founded_year', 'created_at']
    ordering = ['name']

    def get_queryset(self):
        queryset = Brand.objects.annotate(product_count=Count('products')).prefetch_related('product_lines')
        user = self.request.user
        if user.is_authenticated and user.is_moderator:
            return queryset
        return queryset.filter(is_active=True)

    def get_permissions(self):
        if self.action in WRITE_ACTIONS:
            return [IsModerator()]
        return [AllowAny()]

    @method_decorator(ratelimit(key='user', rate='20/m', method='POST'))
    def create(self, request, *args, **kwargs):
        response = super().create(request, *args, **kwargs)
        log_action(request, 'CREATE', 'BRAND', response.data.get('id'), 'SUCCESS',
                   {'slug': response.data.get('slug')})
        return response

    @method_decorator(ratelimit(key='user', rate='20/m', method=['PUT', 'PATCH']))
    def update(self, request, *args, **kwargs):
        response = super().update(request, *args, **kwargs)
        log_action(request, 'UPDATE', 'BRAND', response.data.get('id'), 'SUCCESS')
        return response

    @method_decorator(ratelimit(key='user', rate='10/m', method='DELETE'))
    def destroy(self, request, *args, **kwargs):
        """Soft delete: hide the brand and its products from visitors."""
        brand = self.get_object()
        brand.is_active = False
        brand.save(update_fields=['is_active', 'updated_at'])
        log_action(request, 'DELETE', 'BRAND', brand.id, 'SUCCESS', {'slug': brand.slug})
        return Response({'detail': 'Brand deactivated successfully.'}, status=status.HTTP_200_OK)

    @action(detail=True, methods=['get'])
    def products(self, request, slug=None):
        """
        Brand page: the brand's product lines and its ranked products.

        The default product line comes first, the rest alphabetically.
        """
        brand = self.get_object()
        sort_spec = sort_spec_from_request(request)
        items = rank_products(
            brand.products.select_related('brand', 'product_line'),
            sort_spec,
        )
        product_lines = sorted(
            brand.product_lines.all(),
            key=lambda line: (not line.is_default,) + name_sort_key(line.name),
        )
        return Response({
            'brand': BrandSerializer(brand, context=self.get_serializer_context()).data,
            'product_lines': ProductLineSerializer(product_lines, many=True).data,
            'sort': sort_spec.mode.value,
            'products': serialize_listing(items, ProductListSerializer),
        })


class ProductLineViewSet(viewsets.ModelViewSet):
    queryset = ProductLine.objects.select_related('brand')
    serializer_class = ProductLineSerializer
    filter_backends = [DjangoFilterBackend]
    filterset_fields = ['brand']

    def get_permissions(self):
        if self.action in WRITE_ACTIONS:
            return [IsModerator()]
        return [AllowAny()]


class ProductViewSet(viewsets.ModelViewSet):
    """
    ViewSet for Product model, addressed by slug.

    List filters: ``brand`` (slug), ``carbonation_level``, ``flavor``,
    ``country``, ``search``. Ordering always comes from the rating ranker.
    """

    lookup_field = 'slug'
    filter_backends = [DjangoFilterBackend, filters.SearchFilter]
    filterset_class = ProductFilter
    search_fields = ['name', 'brand__name', 'description']

    def get_queryset(self):
        queryset = Product.objects.select_related('brand', 'product_line')
        user = self.request.user
        if user.is_authenticated and user.is_moderator:
            return queryset
        return queryset.filter(brand__is_active=True)

    def get_serializer_class(self):
        if self.action in ('list', 'carbonation', 'flavors', 'regional'):
            return ProductListSerializer
        return ProductSerializer

    def get_permissions(self):
        if self.action in WRITE_ACTIONS:
            return [IsModerator()]
        return [AllowAny()]

    def list(self, request, *args, **kwargs):
        sort_spec = sort_spec_from_request(request)
        queryset = self.filter_queryset(self.get_queryset())
        items = rank_products(queryset, sort_spec)

        page = self.paginate_queryset(items)
        if page is not None:
            return self.get_paginated_response(serialize_listing(page, ProductListSerializer))
        return Response(serialize_listing(items, ProductListSerializer))

    def retrieve(self, request, *args, **kwargs):
        product = self.get_object()
        data = dict(self.get_serializer(product).data)
        data.update(rating_fields(product_aggregate(product)))
        return Response(data)

    @method_decorator(ratelimit(key='user', rate='20/m', method='POST'))
    def create(self, request, *args, **kwargs):
        response = super().create(request, *args, **kwargs)
        log_action(request, 'CREATE', 'PRODUCT', response.data.get('id'), 'SUCCESS',
                   {'slug': response.data.get('slug'), 'brand': response.data.get('brand')})
        return response

    @method_decorator(ratelimit(key='user', rate='20/m', method=['PUT', 'PATCH']))
    def update(self, request, *args, **kwargs):
        response = super().update(request, *args, **kwargs)
        log_action(request, 'UPDATE', 'PRODUCT', response.data.get('id'), 'SUCCESS')
        return response

    @method_decorator(ratelimit(key='user', rate='10/m', method='DELETE'))
    def destroy(self, request, *args, **kwargs):
        """Products are never deleted; they are marked discontinued."""
        product = self.get_object()
        product.is_discontinued = True
        product.save(update_fields=['is_discontinued', 'updated_at'])
        log_action(request, 'DELETE', 'PRODUCT', product.id, 'SUCCESS', {'slug': product.slug})
        return Response({'detail': 'Product marked as discontinued.'}, status=status.HTTP_200_OK)

    @action(detail=False, methods=['get'])
    def carbonation(self, request):
        """
        Carbonation browser: products grouped light -> medium -> strong,
        each group ranked. Empty levels are included so the UI can show them.
        """
        sort_spec = sort_spec_from_request(request)
        queryset = self.filter_queryset(self.get_queryset())
        source = DjangoRatingSource()
        global_mean = current_global_mean(source)

        levels = []
        for value, label in Product.CarbonationLevel.choices:
            items = rank_products(
                queryset.filter(carbonation_level=value),
                sort_spec,
                source=source,
                global_mean=global_mean,
            )
            levels.append({
                'level': value,
                'label': str(label),
                'product_count': len(items),
                'products': serialize_listing(items, ProductListSerializer),
            })
        return Response({'sort': sort_spec.mode.value, 'levels': levels})

    @action(detail=False, methods=['get'])
    def flavors(self, request):
        """
        Flavor browser: one entry per flavor category, alphabetical, each with
        its ranked products. A product appears under every category it has.
        """
        sort_spec = sort_spec_from_request(request)
        queryset = self.filter_queryset(self.get_queryset())
        source = DjangoRatingSource()
        global_mean = current_global_mean(source)

        by_category = OrderedDict()
        for product in queryset:
            for category in product.flavor_categories or []:
                category = str(category).strip().lower()
                if category:
                    by_category.setdefault(category, []).append(product)

        categories = []
        for category in sorted(by_category, key=name_sort_key):
            items = rank_products(by_category[category], sort_spec, source=source, global_mean=global_mean)
            tags = sorted({tag for item in items for tag in item.payload.flavor_tags or []}, key=name_sort_key)
            categories.append({
                'category': category,
                'tags': tags,
                'product_count': len(items),
                'products': serialize_listing(items, ProductListSerializer),
            })
        return Response({'sort': sort_spec.mode.value, 'categories': categories})

    @action(detail=False, methods=['get'])
    def regional(self, request):
        """
        Regional browser: products grouped by their brand's country of origin.

        Countries are alphabetical; products whose brand has no country are
        grouped under "Unknown", listed last.
        """
        sort_spec = sort_spec_from_request(request)
        queryset = self.filter_queryset(self.get_queryset())
        source = DjangoRatingSource()
        global_mean = current_global_mean(source)

        by_country = OrderedDict()
        for product in queryset:
            country = (product.brand.country_of_origin or '').strip() or UNKNOWN_COUNTRY
            by_country.setdefault(country, []).append(product)

        countries = []
        for country in sorted(by_country, key=lambda c: (c == UNKNOWN_COUNTRY,) + name_sort_key(c)):
            items = rank_products(by_country[country], sort_spec, source=source, global_mean=global_mean)
            countries.append({
                'country': country,
                'product_count': len(items),
                'products': serialize_listing(items, ProductListSerializer),
            })
        return Response({'sort': sort_spec.mode.value, 'countries': countries})
