"""
Catalog models for the sparkling water review site.

This module defines the browsable catalog:
- Brand: a sparkling water maker, addressed by slug
- ProductLine: a named range within a brand (one line may be the default)
- Product: a single flavor/variant, tagged with flavors and a carbonation level

Slugs are generated from names on first save and kept unique with a
numeric suffix. Products are never deleted, only marked discontinued.
"""

from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.db.models.functions import Lower
from django.utils.translation import gettext_lazy as _

from .slugs import ensure_unique_slug, generate_slug


class SluggedModel(models.Model):
    """Abstract base that fills ``slug`` from ``name`` on first save."""

    slug_source_field = 'name'

    class Meta:
        abstract = True

    def build_slug(self) -> str:
        base = generate_slug(getattr(self, self.slug_source_field))
        return base or self._meta.model_name

    def save(self, *args, **kwargs):
        if not self.slug:
            self.slug = ensure_unique_slug(
                self.build_slug(),
                type(self).objects.all(),
                exclude_pk=self.pk,
            )
        super().save(*args, **kwargs)


class Brand(SluggedModel):
    """
    A sparkling water brand.

    Inactive brands stay in the database for history but are hidden from
    public listings and cannot receive new reviews.
    """

    name = models.CharField(
        max_length=120,
        help_text=_("Brand name, unique regardless of case"),
    )
    slug = models.SlugField(
        max_length=140,
        unique=True,
        blank=True,
        help_text=_("URL identifier, generated from the name when left blank"),
    )
    description = models.TextField(blank=True)
    website = models.URLField(blank=True)
    country_of_origin = models.CharField(max_length=80, blank=True, db_index=True)
    founded_year = models.PositiveIntegerField(
        null=True,
        blank=True,
        validators=[MinValueValidator(1700), MaxValueValidator(2100)],
    )
    is_active = models.BooleanField(
        default=True,
        help_text=_("If False, brand and its products are hidden from visitors"),
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['name']
        constraints = [
            models.UniqueConstraint(Lower('name'), name='unique_brand_name_ci'),
        ]
        verbose_name = _("Brand")
        verbose_name_plural = _("Brands")

    def __str__(self):
        return self.name


class ProductLine(models.Model):
    """A named range of products within a brand, e.g. "Curates"."""

    brand = models.ForeignKey(
        Brand,
        on_delete=models.CASCADE,
        related_name='product_lines',
    )
    name = models.CharField(max_length=120)
    description = models.TextField(blank=True)
    is_default = models.BooleanField(
        default=False,
        help_text=_("The default line is listed first on the brand page"),
    )

    class Meta:
        ordering = ['-is_default', 'name']
        unique_together = ['brand', 'name']
        verbose_name = _("Product line")
        verbose_name_plural = _("Product lines")

    def __str__(self):
        return f"{self.brand.name} {self.name}"


class Product(SluggedModel):
    """
    A single sparkling water product.

    Ratings and reviews live in the reviews app; aggregates are computed on
    every read by the ratings package and never stored here.
    """

    class CarbonationLevel(models.TextChoices):
        LIGHT = 'light', _('Light')
        MEDIUM = 'medium', _('Medium')
        STRONG = 'strong', _('Strong')

    class ContainerType(models.TextChoices):
        CAN = 'can', _('Can')
        BOTTLE = 'bottle', _('Bottle')
        OTHER = 'other', _('Other')

    brand = models.ForeignKey(
        Brand,
        on_delete=models.PROTECT,
        related_name='products',
    )
    product_line = models.ForeignKey(
        ProductLine,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='products',
    )
    name = models.CharField(
        max_length=200,
        db_index=True,
        help_text=_("Product name, unique within its brand regardless of case"),
    )
    slug = models.SlugField(max_length=220, unique=True, blank=True)
    description = models.TextField(blank=True)

    # Free-form flavor tags ("lime", "grapefruit") and the broader
    # categories used by the flavor browser ("citrus").
    flavor_tags = models.JSONField(default=list, blank=True)
    flavor_categories = models.JSONField(default=list, blank=True)

    carbonation_level = models.CharField(
        max_length=10,
        choices=CarbonationLevel.choices,
        default=CarbonationLevel.MEDIUM,
        db_index=True,
    )
    container_type = models.CharField(
        max_length=10,
        choices=ContainerType.choices,
        default=ContainerType.CAN,
    )
    container_size = models.CharField(max_length=40, blank=True)
    is_discontinued = models.BooleanField(default=False)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['name']
        indexes = [
            models.Index(fields=['brand', 'name']),
            models.Index(fields=['carbonation_level', 'name']),
        ]
        constraints = [
            models.UniqueConstraint('brand', Lower('name'), name='unique_product_name_per_brand_ci'),
        ]
        verbose_name = _("Product")
        verbose_name_plural = _("Products")

    def __str__(self):
        return f"{self.brand.name} {self.name}"

    @property
    def all_flavors(self) -> list:
        """Tags and categories, lowercased, de-duplicated, in first-seen order."""
        seen = []
        for flavor in list(self.flavor_tags or []) + list(self.flavor_categories or []):
            flavor = str(flavor).strip().lower()
            if flavor and flavor not in seen:
                seen.append(flavor)
        return seen
