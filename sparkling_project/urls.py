"""
URL configuration for sparkling_project.

This module defines URL patterns for the sparkling water API including:
- Catalog ViewSet routes (brands, product lines, products)
- Review ViewSet routes, including the moderation console
- Article ViewSet routes
- Authentication and JWT token endpoints
- Admin interface
"""

from django.contrib import admin
from django.urls import include, path
from rest_framework.routers import DefaultRouter

from articles.views import ArticleViewSet
from catalog.views import BrandViewSet, ProductLineViewSet, ProductViewSet
from reviews.views import ReviewViewSet

router = DefaultRouter()
router.register(r'brands', BrandViewSet, basename='brand')
router.register(r'product-lines', ProductLineViewSet, basename='product-line')
router.register(r'products', ProductViewSet, basename='product')
router.register(r'reviews', ReviewViewSet, basename='review')
router.register(r'articles', ArticleViewSet, basename='article')

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/', include(router.urls)),
    path('api/', include('authentication.urls')),
]
