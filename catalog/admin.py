"""
Django admin configuration for catalog models.
"""

from django.contrib import admin

from .models import Brand, Product, ProductLine


class ProductLineInline(admin.TabularInline):
    model = ProductLine
    extra = 0


@admin.register(Brand)
class BrandAdmin(admin.ModelAdmin):
    """Admin interface for Brand."""
    list_display = ['name', 'slug', 'country_of_origin', 'founded_year', 'is_active', 'created_at']
    list_filter = ['is_active', 'country_of_origin']
    search_fields = ['name', 'description']
    readonly_fields = ['created_at', 'updated_at']
    inlines = [ProductLineInline]

    actions = ['deactivate_brands']

    def deactivate_brands(self, request, queryset):
        """Hide selected brands from visitors."""
        queryset.update(is_active=False)
    deactivate_brands.short_description = "Deactivate selected brands"


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    """Admin interface for Product."""
    list_display = ['name', 'brand', 'product_line', 'carbonation_level', 'container_type', 'is_discontinued']
    list_filter = ['carbonation_level', 'container_type', 'is_discontinued', 'brand']
    search_fields = ['name', 'brand__name', 'description']
    readonly_fields = ['created_at', 'updated_at']
    list_select_related = ['brand', 'product_line']
