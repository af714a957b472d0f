"""
Shared fixtures for the cart test suite.

The catalog built here is the one most tests work against:

- "Margherita" (100.00) with a required "Size" group (min 1, max 1)
  offering Small (+0.00) and Large (+5.00), and an optional "Extras"
  group (min 0, max 1) offering Cheese (+25.50).
- "Garlic bread" (40.00) without modifier groups.
"""
from decimal import Decimal

import pytest
from django.apps import apps
from rest_framework.test import APIClient

from catalog.models import ModifierGroup, ModifierOption, Product, Restaurant


@pytest.fixture(autouse=True)
def clear_catalog_cache():
    apps.get_app_config('catalog').cache.clear()
    yield
    apps.get_app_config('catalog').cache.clear()


@pytest.fixture
def user(django_user_model):
    return django_user_model.objects.create_user(email='customer@example.com', password='secret-pass-1')


@pytest.fixture
def other_user(django_user_model):
    return django_user_model.objects.create_user(email='someone@example.com', password='secret-pass-2')


@pytest.fixture
def driver(django_user_model):
    return django_user_model.objects.create_user(
        email='driver@example.com', password='secret-pass-3', role='driver'
    )


@pytest.fixture
def restaurant(db):
    return Restaurant.objects.create(name='Pizza Place')


@pytest.fixture
def other_restaurant(db):
    return Restaurant.objects.create(name='Burger Barn')


@pytest.fixture
def size_group(restaurant):
    return ModifierGroup.objects.create(restaurant=restaurant, name='Size', min_selection=1, max_selection=1)


@pytest.fixture
def small(size_group):
    return ModifierOption.objects.create(group=size_group, name='Small', price=Decimal('0.00'))


@pytest.fixture
def large(size_group):
    return ModifierOption.objects.create(group=size_group, name='Large', price=Decimal('5.00'))


@pytest.fixture
def extras_group(restaurant):
    return ModifierGroup.objects.create(restaurant=restaurant, name='Extras', min_selection=0, max_selection=1)


@pytest.fixture
def cheese(extras_group):
    return ModifierOption.objects.create(group=extras_group, name='Cheese', price=Decimal('25.50'))


@pytest.fixture
def pizza(restaurant, size_group, extras_group, small, large, cheese):
    product = Product.objects.create(restaurant=restaurant, name='Margherita', price=Decimal('100.00'))
    product.modifier_groups.add(size_group, extras_group)
    return product


@pytest.fixture
def bread(restaurant):
    return Product.objects.create(restaurant=restaurant, name='Garlic bread', price=Decimal('40.00'))


@pytest.fixture
def burger(other_restaurant):
    return Product.objects.create(restaurant=other_restaurant, name='Cheeseburger', price=Decimal('60.00'))


@pytest.fixture
def api_client(user):
    client = APIClient()
    client.force_authenticate(user=user)
    return client
