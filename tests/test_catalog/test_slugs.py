import pytest

from catalog.models import Brand, Product
from catalog.slugs import MAX_SLUG_ATTEMPTS, SlugGenerationError, ensure_unique_slug, generate_slug


@pytest.mark.parametrize("text,expected", [
    ("La Croix", "la-croix"),
    ("  Pamplemousse!!  ", "pamplemousse"),
    ("Lime -- Mint", "lime-mint"),
    ("Café Fizz", "caf-fizz"),
    ("snake_case name", "snake_case-name"),
    ("", ""),
])
def test_generate_slug(text, expected):
    assert generate_slug(text) == expected


@pytest.mark.django_db
def test_ensure_unique_slug_appends_counter(brand):
    Brand.objects.create(name='Other', slug='fizz-co-1')

    assert ensure_unique_slug('fizz-co', Brand.objects.all()) == 'fizz-co-2'


@pytest.mark.django_db
def test_ensure_unique_slug_ignores_own_row(brand):
    assert ensure_unique_slug('fizz-co', Brand.objects.all(), exclude_pk=brand.pk) == 'fizz-co'


@pytest.mark.django_db
def test_ensure_unique_slug_gives_up(brand):
    Brand.objects.bulk_create(
        Brand(name=f'Taken {n}', slug=f'fizz-co-{n}') for n in range(1, MAX_SLUG_ATTEMPTS)
    )

    with pytest.raises(SlugGenerationError):
        ensure_unique_slug('fizz-co', Brand.objects.all())


@pytest.mark.django_db
def test_slug_generated_on_save(brand):
    first = Product.objects.create(brand=brand, name='Lime')
    other_brand = Brand.objects.create(name='Bubbly')
    second = Product.objects.create(brand=other_brand, name='Lime')

    assert brand.slug == 'fizz-co'
    assert first.slug == 'lime'
    assert second.slug == 'lime-1'


@pytest.mark.django_db
def test_slug_falls_back_to_model_name(brand):
    product = Product.objects.create(brand=brand, name='!!!')

    assert product.slug == 'product'
