"""
Shared fixtures for the Django test suite.

Roles are seeded per test; users get roles through UserRole the same way
the assign-roles endpoint does it.
"""

import itertools

import pytest
from rest_framework.test import APIClient

from authentication.models import Role, User, UserRole
from catalog.models import Brand, Product, ProductLine
from reviews.models import Review

_counter = itertools.count(1)


@pytest.fixture
def roles(db):
    return {
        name: Role.objects.create(name=name, display_name=name.title())
        for name in (Role.ADMIN, Role.EDITOR, Role.REVIEWER)
    }


@pytest.fixture
def make_user(roles):
    def _make_user(*role_names, **kwargs):
        n = next(_counter)
        kwargs.setdefault('email', f'user{n}@example.com')
        kwargs.setdefault('username', f'user{n}')
        user = User.objects.create_user(password='Sparkling-Passw0rd!', **kwargs)
        for name in role_names or (Role.REVIEWER,):
            UserRole.objects.create(user=user, role=roles[name])
        return user
    return _make_user


@pytest.fixture
def admin_user(make_user):
    return make_user(Role.ADMIN, email='admin@example.com', username='admin')


@pytest.fixture
def editor_user(make_user):
    return make_user(Role.EDITOR, email='editor@example.com', username='editor')


@pytest.fixture
def reviewer(make_user):
    return make_user(email='reviewer@example.com', username='reviewer', display_name='Bubbles')


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def client_for():
    def _client_for(user):
        client = APIClient()
        client.force_authenticate(user=user)
        return client
    return _client_for


@pytest.fixture
def brand(db):
    return Brand.objects.create(name='Fizz Co', country_of_origin='USA')


@pytest.fixture
def product_line(brand):
    return ProductLine.objects.create(brand=brand, name='Classics', is_default=True)


@pytest.fixture
def products(brand, product_line):
    """Lime (strong, citrus), Cherry (medium, berry) and Berry (light, berry)."""
    return {
        'lime': Product.objects.create(
            brand=brand, product_line=product_line, name='Lime',
            flavor_tags=['lime'], flavor_categories=['citrus'],
            carbonation_level=Product.CarbonationLevel.STRONG,
        ),
        'cherry': Product.objects.create(
            brand=brand, name='Cherry',
            flavor_tags=['cherry'], flavor_categories=['berry'],
            carbonation_level=Product.CarbonationLevel.MEDIUM,
        ),
        'berry': Product.objects.create(
            brand=brand, name='Berry',
            flavor_tags=['raspberry', 'blackberry'], flavor_categories=['berry'],
            carbonation_level=Product.CarbonationLevel.LIGHT,
        ),
    }


@pytest.fixture
def rate(make_user):
    """Store a review directly, bypassing the API."""
    def _rate(product, value, text='', status=Review.ModerationStatus.APPROVED, user=None):
        return Review.objects.create(
            user=user or make_user(),
            product=product,
            overall_rating=value,
            review_text=text,
            moderation_status=status,
        )
    return _rate


@pytest.fixture
def rated_products(products, rate):
    """
    Lime [5, 5, 4], Cherry [2], Berry unrated, plus one pending review that
    must not count. Global mean of counting ratings is 4.0.
    """
    for value in (5, 5, 4):
        rate(products['lime'], value)
    rate(products['cherry'], 2)
    rate(products['berry'], 1, text='Tastes like a pond', status=Review.ModerationStatus.PENDING)
    return products
