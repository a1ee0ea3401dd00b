"""
API tests for brands and products.

Every listing is ranked by the rating core: with the ``rated_products``
fixture the global mean is 4.0, so Lime (4.154) ranks above Cherry (3.818)
and unrated Berry comes last.
"""

import pytest
from django.urls import reverse

from authentication.models import AuditLog
from catalog.models import Brand, Product

pytestmark = pytest.mark.django_db


def _names(rows):
    return [row['name'] for row in rows]


def test_product_list_ranked_by_rating(api_client, rated_products):
    response = api_client.get(reverse('product-list'))

    assert response.status_code == 200
    assert _names(response.data) == ['Lime', 'Cherry', 'Berry']

    lime = response.data[0]
    assert lime['rating_count'] == 3
    assert lime['true_average'] == pytest.approx(14 / 3)
    assert lime['bayesian_average'] == pytest.approx((10 * 4.0 + 14) / 13)
    assert lime['display_rating'] == '4.7'

    berry = response.data[2]
    assert berry['rating_count'] == 0
    assert berry['true_average'] is None
    assert berry['display_rating'] == 'N/A'


def test_product_list_sorted_by_name(api_client, rated_products):
    response = api_client.get(reverse('product-list'), {'sort': 'name'})

    assert _names(response.data) == ['Berry', 'Cherry', 'Lime']


def test_invalid_sort_is_rejected(api_client, rated_products):
    response = api_client.get(reverse('product-list'), {'sort': 'price'})

    assert response.status_code == 400
    assert 'sort' in response.data


def test_filter_by_flavor_matches_tags_and_categories(api_client, rated_products):
    by_category = api_client.get(reverse('product-list'), {'flavor': 'Berry'})
    by_tag = api_client.get(reverse('product-list'), {'flavor': 'raspberry'})

    assert _names(by_category.data) == ['Cherry', 'Berry']
    assert _names(by_tag.data) == ['Berry']


def test_filter_by_carbonation_and_brand(api_client, rated_products, brand):
    Product.objects.create(brand=Brand.objects.create(name='Bubbly'), name='Lemon', carbonation_level='strong')

    response = api_client.get(reverse('product-list'), {'carbonation_level': 'strong', 'brand': brand.slug})

    assert _names(response.data) == ['Lime']


def test_search(api_client, rated_products):
    response = api_client.get(reverse('product-list'), {'search': 'cher'})

    assert _names(response.data) == ['Cherry']


def test_product_detail_includes_aggregate(api_client, rated_products):
    response = api_client.get(reverse('product-detail', kwargs={'slug': 'lime'}))

    assert response.status_code == 200
    assert response.data['brand_name'] == 'Fizz Co'
    assert response.data['rating_count'] == 3
    assert response.data['star_fill'][:4] == [100.0] * 4


def test_pending_review_does_not_count_in_detail(api_client, rated_products):
    response = api_client.get(reverse('product-detail', kwargs={'slug': 'berry'}))

    assert response.data['rating_count'] == 0
    assert response.data['bayesian_average'] is None


def test_inactive_brand_products_are_hidden(api_client, rated_products, brand):
    brand.is_active = False
    brand.save()

    assert api_client.get(reverse('product-list')).data == []
    assert api_client.get(reverse('brand-detail', kwargs={'slug': brand.slug})).status_code == 404


def test_brand_page(api_client, rated_products, brand, product_line):
    brand.product_lines.create(name='Aurora')

    response = api_client.get(reverse('brand-products', kwargs={'slug': brand.slug}))

    assert response.status_code == 200
    assert response.data['brand']['name'] == 'Fizz Co'
    assert response.data['sort'] == 'rating'
    assert [line['name'] for line in response.data['product_lines']] == ['Classics', 'Aurora']
    assert _names(response.data['products']) == ['Lime', 'Cherry', 'Berry']


def test_carbonation_browser(api_client, rated_products):
    response = api_client.get(reverse('product-carbonation'))

    assert response.status_code == 200
    levels = response.data['levels']
    assert [level['level'] for level in levels] == ['light', 'medium', 'strong']
    assert [_names(level['products']) for level in levels] == [['Berry'], ['Cherry'], ['Lime']]


def test_flavor_browser(api_client, rated_products):
    response = api_client.get(reverse('product-flavors'), {'sort': 'name'})

    categories = response.data['categories']
    assert [c['category'] for c in categories] == ['berry', 'citrus']
    assert _names(categories[0]['products']) == ['Berry', 'Cherry']
    assert categories[0]['tags'] == ['blackberry', 'cherry', 'raspberry']


def test_anonymous_cannot_create_brand(api_client):
    response = api_client.post(reverse('brand-list'), {'name': 'Nope'})

    assert response.status_code in (401, 403)
    assert not Brand.objects.filter(name='Nope').exists()


def test_reviewer_cannot_create_brand(client_for, reviewer):
    response = client_for(reviewer).post(reverse('brand-list'), {'name': 'Nope'})

    assert response.status_code == 403


def test_admin_creates_brand_with_slug(client_for, admin_user):
    response = client_for(admin_user).post(reverse('brand-list'), {'name': 'Spindrift Springs'}, format='json')

    assert response.status_code == 201
    assert response.data['slug'] == 'spindrift-springs'
    assert AuditLog.objects.filter(action='CREATE', resource_type='BRAND', status='SUCCESS').exists()


def test_duplicate_brand_name_is_case_insensitive(client_for, admin_user, brand):
    response = client_for(admin_user).post(reverse('brand-list'), {'name': 'FIZZ CO'}, format='json')

    assert response.status_code == 400
    assert 'name' in response.data


def test_duplicate_product_name_within_brand(client_for, admin_user, products, brand):
    response = client_for(admin_user).post(
        reverse('product-list'), {'brand': brand.pk, 'name': ' lime '}, format='json'
    )

    assert response.status_code == 400
    assert 'name' in response.data


def test_same_product_name_in_another_brand_is_allowed(client_for, admin_user, products):
    other = Brand.objects.create(name='Bubbly')

    response = client_for(admin_user).post(
        reverse('product-list'),
        {'brand': other.pk, 'name': 'Lime', 'flavor_tags': [' Lime ', 'lime', 'Mint']},
        format='json',
    )

    assert response.status_code == 201
    assert response.data['slug'] == 'lime-1'
    assert response.data['flavor_tags'] == ['lime', 'mint']


def test_product_line_must_match_brand(client_for, admin_user, product_line):
    other = Brand.objects.create(name='Bubbly')

    response = client_for(admin_user).post(
        reverse('product-list'),
        {'brand': other.pk, 'name': 'Peach', 'product_line': product_line.pk},
        format='json',
    )

    assert response.status_code == 400
    assert 'product_line' in response.data


def test_delete_product_marks_discontinued(client_for, admin_user, products):
    response = client_for(admin_user).delete(reverse('product-detail', kwargs={'slug': 'lime'}))

    assert response.status_code == 200
    products['lime'].refresh_from_db()
    assert products['lime'].is_discontinued


def test_delete_brand_deactivates(client_for, admin_user, brand):
    response = client_for(admin_user).delete(reverse('brand-detail', kwargs={'slug': brand.slug}))

    assert response.status_code == 200
    brand.refresh_from_db()
    assert not brand.is_active


def test_filter_by_accented_flavor(api_client, brand):
    Product.objects.create(brand=brand, name='Spicy', flavor_tags=['épicé'])
    Product.objects.create(brand=brand, name='Plain', flavor_tags=['epice'])

    lower = api_client.get(reverse('product-list'), {'flavor': 'épicé'})
    upper = api_client.get(reverse('product-list'), {'flavor': 'ÉPICÉ'})

    assert _names(lower.data) == ['Spicy']
    assert _names(upper.data) == ['Spicy']


def test_filter_by_country(api_client, rated_products):
    Product.objects.create(brand=Brand.objects.create(name='Ferrarelle', country_of_origin='Italy'), name='Naturale')

    response = api_client.get(reverse('product-list'), {'country': 'italy'})

    assert _names(response.data) == ['Naturale']


def test_changing_brand_rejects_old_product_line(client_for, admin_user, products):
    other = Brand.objects.create(name='Bubbly')

    response = client_for(admin_user).patch(
        reverse('product-detail', kwargs={'slug': 'lime'}), {'brand': other.pk}, format='json'
    )

    assert response.status_code == 400
    assert 'product_line' in response.data
    products['lime'].refresh_from_db()
    assert products['lime'].brand_id != other.pk


def test_changing_brand_with_matching_line(client_for, admin_user, products):
    other = Brand.objects.create(name='Bubbly')
    line = other.product_lines.create(name='Originals')

    response = client_for(admin_user).patch(
        reverse('product-detail', kwargs={'slug': 'lime'}),
        {'brand': other.pk, 'product_line': line.pk},
        format='json',
    )

    assert response.status_code == 200
    assert response.data['product_line'] == line.pk


def test_regional_browser(api_client, rated_products):
    Product.objects.create(brand=Brand.objects.create(name='Ferrarelle', country_of_origin='Italy'), name='Naturale')
    Product.objects.create(brand=Brand.objects.create(name='Nameless'), name='Mystery')
    Product.objects.create(brand=Brand.objects.create(name='Gerolsteiner', country_of_origin='Germany'), name='Medium')

    response = api_client.get(reverse('product-regional'))

    assert response.status_code == 200
    countries = response.data['countries']
    assert [c['country'] for c in countries] == ['Germany', 'Italy', 'USA', 'Unknown']
    assert _names(countries[2]['products']) == ['Lime', 'Cherry', 'Berry']
    assert countries[2]['product_count'] == 3
    assert _names(countries[3]['products']) == ['Mystery']


def test_regional_browser_rejects_invalid_sort(api_client, rated_products):
    assert api_client.get(reverse('product-regional'), {'sort': 'price'}).status_code == 400


def test_reviewer_cannot_create_product_line(client_for, reviewer, brand):
    response = client_for(reviewer).post(
        reverse('product-line-list'), {'brand': brand.pk, 'name': 'Limited'}, format='json'
    )

    assert response.status_code == 403
    assert not brand.product_lines.filter(name='Limited').exists()


def test_admin_creates_product_line(client_for, admin_user, brand):
    response = client_for(admin_user).post(
        reverse('product-line-list'), {'brand': brand.pk, 'name': 'Limited'}, format='json'
    )

    assert response.status_code == 201
    assert brand.product_lines.filter(name='Limited').exists()
    assert AuditLog.objects.filter(resource_type='PRODUCT', request_path__contains='product-lines').exists()


def test_product_line_names_are_unique_per_brand(client_for, admin_user, product_line, brand):
    response = client_for(admin_user).post(
        reverse('product-line-list'), {'brand': brand.pk, 'name': 'classics'}, format='json'
    )

    assert response.status_code == 400
