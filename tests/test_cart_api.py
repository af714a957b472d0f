"""
API tests for the cart endpoints.

Requests go through DRF's test client with a force-authenticated customer,
so routing, permissions, serializers and the error envelope are covered
together with the cart engine.
"""
from decimal import Decimal

import pytest
from rest_framework.test import APIClient

from cart.models import Cart, CartItem
from catalog.models import Product

pytestmark = pytest.mark.django_db


def add(client, product, quantity=1, modifiers=()):
    return client.post('/api/cart/add/', {
        'product_id': product.id,
        'quantity': quantity,
        'modifiers': [
            {'modifier_group_id': group.id, 'selected_option_id': option.id}
            for group, option in modifiers
        ],
    }, format='json')


class TestAccess:

    def test_anonymous_is_rejected(self):
        response = APIClient().get('/api/cart/')

        assert response.status_code == 401
        assert response.json()['error'] is True
        assert response.json()['code'] == 'NOT_AUTHENTICATED'

    def test_non_customer_is_forbidden(self, driver, bread):
        client = APIClient()
        client.force_authenticate(user=driver)

        response = add(client, bread)

        assert response.status_code == 403
        assert response.json()['code'] == 'PERMISSION_DENIED'
        assert Cart.objects.count() == 0

    def test_only_customer_role_counts_as_customer(self, user, driver):
        assert user.is_customer
        assert not driver.is_customer

    def test_jwt_login_grants_cart_access(self, user):
        client = APIClient()
        login = client.post('/api/auth/login/', {'email': 'customer@example.com', 'password': 'secret-pass-1'}, format='json')
        assert login.status_code == 200

        client.credentials(HTTP_AUTHORIZATION=f"Bearer {login.json()['access']}")
        response = client.get('/api/cart/')

        assert response.status_code == 200
        assert response.json()['carts'] == []


class TestAddToCart:

    def test_add_configured_item(self, api_client, pizza, size_group, large, extras_group, cheese):
        # Act
        response = add(api_client, pizza, 3, [(size_group, large), (extras_group, cheese)])

        # Assert
        assert response.status_code == 201
        data = response.json()
        assert data['action'] == 'item_added'
        item = data['cart_item']
        assert item['quantity'] == 3
        assert item['price_at_add'] == 130.5
        assert item['subtotal'] == 391.5
        assert item['product']['name'] == 'Margherita'
        assert {modifier['name'] for modifier in item['modifiers']} == {'Large', 'Cheese'}
        assert {modifier['group']['name'] for modifier in item['modifiers']} == {'Size', 'Extras'}

    def test_identical_add_merges(self, api_client, pizza, size_group, small):
        add(api_client, pizza, 1, [(size_group, small)])

        response = add(api_client, pizza, 1, [(size_group, small)])

        assert response.status_code == 200
        assert response.json()['action'] == 'quantity_updated'
        assert response.json()['cart_item']['quantity'] == 2

    def test_quantity_defaults_to_one(self, api_client, bread):
        response = api_client.post('/api/cart/add/', {'product_id': bread.id}, format='json')

        assert response.status_code == 201
        assert response.json()['cart_item']['quantity'] == 1

    def test_merge_past_line_limit(self, api_client, bread):
        item_id = add(api_client, bread, 99).json()['cart_item']['id']

        response = add(api_client, bread, 1)

        assert response.status_code == 400
        data = response.json()
        assert data['code'] == 'INVALID_QUANTITY'
        assert data['details']['current_quantity'] == 99
        assert data['details']['max_quantity'] == 99
        assert CartItem.objects.get(id=item_id).quantity == 99

    def test_required_modifiers_missing(self, api_client, pizza, size_group):
        response = add(api_client, pizza)

        assert response.status_code == 400
        data = response.json()
        assert data['error'] is True
        assert data['code'] == 'MODIFIERS_REQUIRED'
        assert data['status_code'] == 400
        assert [group['group_id'] for group in data['details']['missing_groups']] == [size_group.id]

    def test_unknown_product(self, api_client):
        response = api_client.post('/api/cart/add/', {'product_id': 424242}, format='json')

        assert response.status_code == 404
        assert response.json()['code'] == 'PRODUCT_NOT_FOUND'

    def test_unavailable_product(self, api_client, bread):
        Product.objects.filter(id=bread.id).update(is_available=False)

        response = add(api_client, bread)

        assert response.status_code == 400
        assert response.json()['code'] == 'PRODUCT_UNAVAILABLE'

    @pytest.mark.parametrize('body', [
        {},
        {'product_id': 'pizza'},
        {'product_id': 1, 'quantity': 0},
        {'product_id': 1, 'quantity': 100},
        {'product_id': 1, 'modifiers': [{'modifier_group_id': 1}]},
    ])
    def test_malformed_body(self, api_client, body):
        response = api_client.post('/api/cart/add/', body, format='json')

        assert response.status_code == 400
        assert response.json()['code'] == 'INVALID_REQUEST'


class TestListAndSummary:

    def test_list_carts_with_totals(self, api_client, bread, burger):
        add(api_client, bread, 2)
        add(api_client, burger, 1)

        response = api_client.get('/api/cart/')

        assert response.status_code == 200
        data = response.json()
        assert len(data['carts']) == 2
        totals = {cart['restaurant']['name']: cart['totals'] for cart in data['carts']}
        assert totals['Pizza Place'] == {'subtotal': 80.0, 'delivery_fee': 25.0, 'total': 105.0}
        assert data['summary'] == {'total_carts': 2, 'total_items': 3, 'grand_total': 190.0}

    def test_filter_by_restaurant(self, api_client, bread, burger, other_restaurant):
        add(api_client, bread)
        add(api_client, burger)

        response = api_client.get('/api/cart/', {'restaurant': other_restaurant.id})

        carts = response.json()['carts']
        assert [cart['restaurant']['id'] for cart in carts] == [other_restaurant.id]

    def test_only_own_carts_are_listed(self, api_client, other_user, bread):
        other = APIClient()
        other.force_authenticate(user=other_user)
        add(other, bread)

        response = api_client.get('/api/cart/')

        assert response.json()['carts'] == []

    def test_summary(self, api_client, bread):
        add(api_client, bread, 3)

        response = api_client.get('/api/cart/summary/')

        assert response.status_code == 200
        summary = response.json()['summary']
        assert summary['total_quantity'] == 3
        assert summary['subtotal'] == 120.0
        assert summary['estimated_total'] == 145.0


class TestUpdateAndRemove:

    def test_update_quantity(self, api_client, bread):
        item_id = add(api_client, bread).json()['cart_item']['id']

        response = api_client.put(f'/api/cart/update/{item_id}/', {'quantity': 5}, format='json')

        assert response.status_code == 200
        assert response.json()['cart_item']['quantity'] == 5
        assert response.json()['cart_item']['subtotal'] == 200.0

    def test_update_to_zero_removes(self, api_client, bread):
        item_id = add(api_client, bread).json()['cart_item']['id']

        response = api_client.put(f'/api/cart/update/{item_id}/', {'quantity': 0}, format='json')

        assert response.status_code == 200
        assert response.json()['action'] == 'item_removed'
        assert response.json()['cart_removed'] is True
        assert CartItem.objects.count() == 0

    def test_update_negative_quantity(self, api_client, bread):
        item_id = add(api_client, bread).json()['cart_item']['id']

        response = api_client.put(f'/api/cart/update/{item_id}/', {'quantity': -1}, format='json')

        assert response.status_code == 400
        assert response.json()['code'] == 'INVALID_REQUEST'

    def test_update_missing_item(self, api_client):
        response = api_client.put('/api/cart/update/999/', {'quantity': 2}, format='json')

        assert response.status_code == 404
        assert response.json()['code'] == 'CART_ITEM_NOT_FOUND'

    def test_remove(self, api_client, bread):
        item_id = add(api_client, bread).json()['cart_item']['id']

        response = api_client.delete(f'/api/cart/remove/{item_id}/')

        assert response.status_code == 200
        assert response.json()['removed_item'] == {'id': item_id, 'product_name': 'Garlic bread'}

    def test_remove_missing_item(self, api_client):
        response = api_client.delete('/api/cart/remove/999/')

        assert response.status_code == 404
        assert response.json()['code'] == 'CART_ITEM_NOT_FOUND'


class TestClearAndValidate:

    def test_clear_restaurant(self, api_client, bread, burger, restaurant):
        add(api_client, bread)
        add(api_client, burger)

        response = api_client.delete(f'/api/cart/clear/?restaurant_id={restaurant.id}')

        assert response.status_code == 200
        assert response.json()['deleted_carts'] == 1
        assert Cart.objects.count() == 1

    def test_clear_all(self, api_client, bread, burger):
        add(api_client, bread)
        add(api_client, burger)

        response = api_client.delete('/api/cart/clear/')

        assert response.status_code == 200
        assert response.json()['message'] == 'All carts cleared successfully'
        assert Cart.objects.count() == 0

    def test_clear_nothing(self, api_client):
        response = api_client.delete('/api/cart/clear/')

        assert response.status_code == 404
        assert response.json()['code'] == 'NO_CARTS_FOUND'

    def test_clear_empty_restaurant_id_clears_nothing(self, api_client, bread, burger):
        add(api_client, bread)
        add(api_client, burger)

        response = api_client.delete('/api/cart/clear/?restaurant_id=')

        assert response.status_code == 400
        assert response.json()['code'] == 'INVALID_REQUEST'
        assert Cart.objects.count() == 2

    def test_clear_bad_restaurant_id(self, api_client):
        response = api_client.delete('/api/cart/clear/?restaurant_id=abc')

        assert response.status_code == 400
        assert response.json()['code'] == 'INVALID_REQUEST'

    def test_validate(self, api_client, bread):
        add(api_client, bread, 2)
        Product.objects.filter(id=bread.id).update(price=Decimal('45.00'))

        response = api_client.post('/api/cart/validate/', {}, format='json')

        assert response.status_code == 200
        data = response.json()
        assert data['is_valid'] is True
        item = data['validation_results'][0]['items'][0]
        assert item['issues'][0]['type'] == 'price_changed'
        assert item['issues'][0]['new_price'] == 45.0
        assert data['summary']['total_value'] == 80.0
