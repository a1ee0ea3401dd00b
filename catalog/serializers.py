"""
Catalog serializers for the sparkling water API.

Write serializers reject duplicate names (case-insensitive, per brand for
products) before the database constraint does, so clients get a 400 with a
readable message instead of a 500.
"""

from rest_framework import serializers

from .models import Brand, Product, ProductLine


class ProductLineSerializer(serializers.ModelSerializer):
    class Meta:
        model = ProductLine
        fields = ['id', 'brand', 'name', 'description', 'is_default']
        read_only_fields = ['id']

    def validate(self, attrs):
        brand = attrs.get('brand') or getattr(self.instance, 'brand', None)
        name = attrs.get('name') or getattr(self.instance, 'name', '')
        existing = ProductLine.objects.filter(brand=brand, name__iexact=name.strip())
        if self.instance is not None:
            existing = existing.exclude(pk=self.instance.pk)
        if existing.exists():
            raise serializers.ValidationError({'name': "This brand already has a product line with that name."})
        return attrs


class BrandSerializer(serializers.ModelSerializer):
    """
    Serializer for Brand model.

    The slug is generated from the name when omitted.
    """

    product_lines = ProductLineSerializer(many=True, read_only=True)
    product_count = serializers.IntegerField(read_only=True, required=False)

    class Meta:
        model = Brand
        fields = [
            'id',
            'name',
            'slug',
            'description',
            'website',
            'country_of_origin',
            'founded_year',
            'is_active',
            'product_lines',
            'product_count',
            'created_at',
            'updated_at',
        ]
        read_only_fields = ['id', 'product_lines', 'product_count', 'created_at', 'updated_at']
        extra_kwargs = {'slug': {'required': False}}

    def validate_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Brand name cannot be blank.")
        existing = Brand.objects.filter(name__iexact=value)
        if self.instance is not None:
            existing = existing.exclude(pk=self.instance.pk)
        if existing.exists():
            raise serializers.ValidationError("A brand with this name already exists.")
        return value


class ProductSerializer(serializers.ModelSerializer):
    """
    Serializer for Product model (detail and writes).

    Flavor tags are normalised to trimmed lowercase strings; a product line
    must belong to the product's brand.
    """

    brand_name = serializers.CharField(source='brand.name', read_only=True)
    brand_slug = serializers.CharField(source='brand.slug', read_only=True)
    product_line_name = serializers.CharField(source='product_line.name', read_only=True, default=None)
    flavor_tags = serializers.ListField(child=serializers.CharField(max_length=50), required=False)
    flavor_categories = serializers.ListField(child=serializers.CharField(max_length=50), required=False)

    class Meta:
        model = Product
        fields = [
            'id',
            'brand',
            'brand_name',
            'brand_slug',
            'product_line',
            'product_line_name',
            'name',
            'slug',
            'description',
            'flavor_tags',
            'flavor_categories',
            'carbonation_level',
            'container_type',
            'container_size',
            'is_discontinued',
            'created_at',
            'updated_at',
        ]
        read_only_fields = ['id', 'created_at', 'updated_at']
        extra_kwargs = {'slug': {'required': False}}

    def _clean_flavors(self, values):
        cleaned = []
        for value in values:
            value = value.strip().lower()
            if value and value not in cleaned:
                cleaned.append(value)
        return cleaned

    def validate_flavor_tags(self, value):
        return self._clean_flavors(value)

    def validate_flavor_categories(self, value):
        return self._clean_flavors(value)

    def validate(self, attrs):
        brand = attrs.get('brand') or getattr(self.instance, 'brand', None)
        name = (attrs.get('name') or getattr(self.instance, 'name', '')).strip()
        if 'name' in attrs:
            if not name:
                raise serializers.ValidationError({'name': "Product name cannot be blank."})
            attrs['name'] = name

        duplicates = Product.objects.filter(brand=brand, name__iexact=name)
        if self.instance is not None:
            duplicates = duplicates.exclude(pk=self.instance.pk)
        if duplicates.exists():
            raise serializers.ValidationError({'name': "This brand already has a product with that name."})

        product_line = attrs.get('product_line', getattr(self.instance, 'product_line', None))
        if product_line is not None and product_line.brand_id != brand.pk:
            raise serializers.ValidationError({'product_line': "Product line belongs to a different brand."})
        return attrs


class ProductListSerializer(serializers.ModelSerializer):
    """
    Lightweight serializer for product listings.

    Rating fields are merged in by catalog.listing after ranking.
    """

    brand_name = serializers.CharField(source='brand.name', read_only=True)
    brand_slug = serializers.CharField(source='brand.slug', read_only=True)

    class Meta:
        model = Product
        fields = [
            'id',
            'name',
            'slug',
            'brand_name',
            'brand_slug',
            'product_line',
            'flavor_tags',
            'carbonation_level',
            'is_discontinued',
        ]
        read_only_fields = fields
