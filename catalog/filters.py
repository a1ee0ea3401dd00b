import django_filters

from .models import Product


class ProductFilter(django_filters.FilterSet):
    """
    Query-string filters for product listings.

    ``flavor`` matches a whole tag or category, case-insensitively.
    """

    brand = django_filters.CharFilter(field_name='brand__slug')
    carbonation_level = django_filters.ChoiceFilter(choices=Product.CarbonationLevel.choices)
    flavor = django_filters.CharFilter(method='filter_flavor')
    country = django_filters.CharFilter(field_name='brand__country_of_origin', lookup_expr='iexact')
    is_discontinued = django_filters.BooleanFilter()

    class Meta:
        model = Product
        fields = ['brand', 'carbonation_level', 'flavor', 'country', 'is_discontinued']

    def filter_flavor(self, queryset, name, value):
        flavor = value.strip().lower()
        if not flavor:
            return queryset
        # Matched in Python: stored JSON text may hold escaped non-ASCII tags.
        matching_ids = [product.pk for product in queryset if flavor in product.all_flavors]
        return queryset.filter(pk__in=matching_ids)
