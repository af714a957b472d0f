"""
Cart orchestration.

``CartMutator`` runs every cart operation for one user: it reads the catalog,
validates modifier selections, resolves cart line identity, prices the line
and persists the outcome. Expected failures come back as ``CartResult``
errors; all of them are detected before anything is written.
"""
import logging
from decimal import Decimal

from django.conf import settings
from django.db import IntegrityError, transaction

from catalog.services import ModifierCatalog

from . import errors
from .errors import CartError, CartResult
from .identity import find_matching_item, normalize_option_ids
from .pricing import ZERO, cart_totals, line_subtotal, round2, sum_rounded, unit_price
from .repository import CartRepository
from .validators import dedupe_selections, validate_selections

logger = logging.getLogger(__name__)

ACTION_ITEM_ADDED = 'item_added'
ACTION_QUANTITY_UPDATED = 'quantity_updated'
ACTION_ITEM_REMOVED = 'item_removed'
ACTION_CART_CLEARED = 'cart_cleared'


class ConcurrentCartChange(Exception):
    """Raised inside a transaction to roll it back when a concurrent write cannot be reconciled"""


class QuantityLimitExceeded(Exception):
    """A merge would take a line past the per-line quantity limit"""

    def __init__(self, item_id, current):
        super().__init__(item_id, current)
        self.item_id = item_id
        self.current = current


def restaurant_info(restaurant):
    return {'id': restaurant.id, 'name': restaurant.name, 'status': restaurant.status}


class CartMutator:

    def __init__(self, user, catalog=None, repository=None, delivery_fee=None, max_quantity=None):
        self.user = user
        self.catalog = catalog or ModifierCatalog()
        self.repository = repository or CartRepository()
        if delivery_fee is None:
            delivery_fee = getattr(settings, 'CART_ESTIMATED_DELIVERY_FEE', Decimal('25.00'))
        self.delivery_fee = round2(delivery_fee)
        if max_quantity is None:
            max_quantity = getattr(settings, 'CART_MAX_ITEM_QUANTITY', 99)
        self.max_quantity = max_quantity

    # =============== ADD ===============

    def add_item(self, product_id, quantity=1, selections=()):
        """
        Add a configured product to the user's cart for its restaurant.

        ``selections`` is an iterable of ``(group_id, option_id)`` pairs. An
        identical configuration already in the cart has its quantity
        increased, anything else becomes a new line.
        """
        if quantity < 1 or quantity > self.max_quantity:
            return CartResult.failure(
                CartError.invalid(
                    errors.INVALID_QUANTITY, f"Quantity must be between 1 and {self.max_quantity}",
                    quantity=quantity, max_quantity=self.max_quantity,
                )
            )

        product = self.catalog.get_product(product_id)
        if product is None:
            return CartResult.failure(
                CartError.not_found(errors.PRODUCT_NOT_FOUND, 'Product not found', product_id=product_id)
            )
        if not product.is_available:
            return CartResult.failure(
                CartError.precondition(errors.PRODUCT_UNAVAILABLE, 'Product is not available', product_id=product_id)
            )
        if not product.restaurant_active:
            return CartResult.failure(
                CartError.precondition(
                    errors.RESTAURANT_INACTIVE, 'Restaurant is not active',
                    restaurant_id=product.restaurant_id, restaurant_name=product.restaurant_name,
                )
            )

        selections = dedupe_selections(selections)
        groups = self.catalog.get_modifier_groups(product_id)
        options = self.catalog.get_options([option_id for _, option_id in selections], product.restaurant_id)

        validation = validate_selections(groups, options, selections, product.product_id, product.name)
        if not validation.ok:
            return validation

        resolved = validation.value
        option_ids = normalize_option_ids(option.option_id for option in resolved)
        price = unit_price(product.base_price, [option.price_delta for option in resolved])

        try:
            with transaction.atomic():
                item, action = self._merge_or_create(product, quantity, option_ids, price)
        except ConcurrentCartChange:
            logger.warning(
                f"Unresolved concurrent add: user={self.user.pk} product={product_id} options={option_ids}"
            )
            return CartResult.failure(
                CartError.conflict(
                    errors.CART_CONFLICT, 'The cart changed while adding the item, please retry',
                    product_id=product_id,
                )
            )
        except QuantityLimitExceeded as exc:
            logger.info(f"Cart line {exc.item_id} at {exc.current} cannot take {quantity} more: user={self.user.pk}")
            return CartResult.failure(
                CartError.invalid(
                    errors.INVALID_QUANTITY,
                    f"A cart line cannot hold more than {self.max_quantity} of the same item",
                    item_id=exc.item_id,
                    current_quantity=exc.current,
                    requested_quantity=quantity,
                    max_quantity=self.max_quantity,
                )
            )

        logger.info(
            f"Cart {action}: user={self.user.pk} product={product_id} item={item.id} quantity={item.quantity}"
        )
        return CartResult.success({
            'action': action,
            'item': item,
            'subtotal': item.get_subtotal(),
        })

    def _merge_or_create(self, product, quantity, option_ids, price):
        cart = self.repository.upsert_cart(self.user, product.restaurant_id)
        existing = find_matching_item(self.repository.items_for_product(cart, product.product_id), option_ids)

        if existing is not None:
            return self._increment(existing.id, quantity), ACTION_QUANTITY_UPDATED

        try:
            item = self.repository.create_item(cart, product.product_id, quantity, price, option_ids)
            return item, ACTION_ITEM_ADDED
        except IntegrityError:
            # Another request created the same configuration first: merge into it
            logger.info(f"Duplicate cart item insert for product {product.product_id}, merging quantities")
            winner = self.repository.find_item_by_key(cart, product.product_id, option_ids)
            if winner is None:
                raise ConcurrentCartChange()
            return self._increment(winner.id, quantity), ACTION_QUANTITY_UPDATED

    def _increment(self, item_id, quantity):
        item = self.repository.increment_quantity(item_id, quantity, self.max_quantity)
        if item is not None:
            return item

        current = self.repository.item_quantity(item_id)
        if current is None:
            raise ConcurrentCartChange()
        raise QuantityLimitExceeded(item_id, current)

    # =============== UPDATE / REMOVE ===============

    def _item_not_found(self, item_id):
        return CartResult.failure(
            CartError.not_found(errors.CART_ITEM_NOT_FOUND, 'Cart item not found', item_id=item_id)
        )

    def update_quantity(self, item_id, quantity):
        """
        Set an item's quantity; 0 removes it.

        Stored selections are kept as they are even if the catalog changed
        since the item was added. Only the product's availability is checked.
        """
        if quantity < 0 or quantity > self.max_quantity:
            return CartResult.failure(
                CartError.invalid(
                    errors.INVALID_QUANTITY, f"Quantity must be between 0 and {self.max_quantity}",
                    quantity=quantity, max_quantity=self.max_quantity,
                )
            )

        item = self.repository.get_user_item(self.user, item_id)
        if item is None:
            return self._item_not_found(item_id)

        if quantity == 0:
            return self._remove(item)

        if not item.product.is_available:
            return CartResult.failure(
                CartError.precondition(
                    errors.PRODUCT_UNAVAILABLE, 'Product is no longer available', product_id=item.product_id
                )
            )

        item = self.repository.update_item_quantity(item.id, quantity)
        if item is None:
            return self._item_not_found(item_id)

        logger.info(f"Cart quantity_updated: user={self.user.pk} item={item.id} quantity={quantity}")
        return CartResult.success({
            'action': ACTION_QUANTITY_UPDATED,
            'item': item,
            'subtotal': item.get_subtotal(),
        })

    def remove_item(self, item_id):
        item = self.repository.get_user_item(self.user, item_id)
        if item is None:
            return self._item_not_found(item_id)
        return self._remove(item)

    def _remove(self, item):
        cart_removed = self.repository.delete_item(item)
        logger.info(f"Cart item_removed: user={self.user.pk} item={item.id} cart_removed={cart_removed}")
        return CartResult.success({
            'action': ACTION_ITEM_REMOVED,
            'removed_item': {'id': item.id, 'product_name': item.product.name},
            'cart_removed': cart_removed,
        })

    def clear_cart(self, restaurant_id=None):
        carts = self.repository.delete_carts(self.user, restaurant_id)
        if not carts:
            return CartResult.failure(
                CartError.not_found(errors.NO_CARTS_FOUND, 'No carts found to clear', restaurant_id=restaurant_id)
            )

        logger.info(f"Cart cart_cleared: user={self.user.pk} carts={[cart.id for cart in carts]}")
        return CartResult.success({
            'action': ACTION_CART_CLEARED,
            'deleted_carts': len(carts),
            'deleted_items': sum(cart.item_count for cart in carts),
            'restaurants': [{'id': cart.restaurant_id, 'name': cart.restaurant.name} for cart in carts],
        })

    # =============== READ ===============

    def list_carts(self, restaurant_id=None):
        return self.repository.carts_for_user(self.user, restaurant_id)

    def cart_totals(self, cart):
        return cart_totals(((item.price_at_add, item.quantity) for item in cart.items.all()), self.delivery_fee)

    def summarize(self):
        """Counts and estimated totals over the carts of active restaurants"""
        carts = list(self.repository.carts_for_user(self.user))
        breakdown = []
        active_restaurants = 0
        total_items = 0
        total_quantity = 0

        for cart in carts:
            items = list(cart.items.all())
            totals = self.cart_totals(cart)
            active = cart.restaurant.is_active
            entry = {
                'cart_id': cart.id,
                'restaurant': restaurant_info(cart.restaurant),
                'is_active': active,
                'item_count': len(items),
                'total_quantity': sum(item.quantity for item in items),
                'subtotal': totals['subtotal'],
                'estimated_delivery_fee': totals['delivery_fee'],
                'estimated_total': totals['total'],
            }
            breakdown.append(entry)

            if active:
                active_restaurants += 1
                total_items += entry['item_count']
                total_quantity += entry['total_quantity']

        contributing = [entry for entry in breakdown if entry['is_active']]
        subtotal = sum_rounded(entry['subtotal'] for entry in contributing)
        delivery_fee = sum_rounded(entry['estimated_delivery_fee'] for entry in contributing)

        return CartResult.success({
            'summary': {
                'total_carts': len(carts),
                'active_restaurants': active_restaurants,
                'total_items': total_items,
                'total_quantity': total_quantity,
                'subtotal': subtotal,
                'estimated_delivery_fee': delivery_fee,
                'estimated_total': round2(subtotal + delivery_fee),
            },
            'carts': breakdown,
        })

    # =============== CHECKOUT VALIDATION ===============

    def validate_for_checkout(self, restaurant_id=None):
        """
        Re-check the carts against the current catalog.

        Unavailable products and inactive restaurants make the cart invalid.
        A price that moved since the item was added is reported but does not
        block checkout.
        """
        carts = list(self.repository.carts_for_user(self.user, restaurant_id))
        results = []
        is_valid = True
        valid_items = 0
        valid_subtotals = []
        issues_found = 0

        for cart in carts:
            cart_validation = {
                'cart_id': cart.id,
                'restaurant': restaurant_info(cart.restaurant),
                'items': [],
                'is_valid': True,
                'issues': [],
            }

            if not cart.restaurant.is_active:
                cart_validation['is_valid'] = False
                cart_validation['issues'].append({
                    'type': 'restaurant_inactive',
                    'message': 'The restaurant is not active',
                })

            for item in cart.items.all():
                item_validation = self._validate_item(item)
                if not item_validation['is_valid']:
                    cart_validation['is_valid'] = False
                else:
                    valid_items += 1
                    valid_subtotals.append(line_subtotal(item.price_at_add, item.quantity))
                issues_found += len(item_validation['issues'])
                cart_validation['items'].append(item_validation)

            issues_found += len(cart_validation['issues'])
            if not cart_validation['is_valid']:
                is_valid = False
            results.append(cart_validation)

        return CartResult.success({
            'is_valid': is_valid,
            'validation_results': results,
            'summary': {
                'total_carts': len(carts),
                'valid_items': valid_items,
                'total_value': sum_rounded(valid_subtotals) if valid_subtotals else ZERO,
                'issues_found': issues_found,
            },
        })

    def _validate_item(self, item):
        product = item.product
        current = self.catalog.current_unit_price(product.id, item.option_ids())
        current_price = round2(current) if current is not None else None

        validation = {
            'item_id': item.id,
            'product': {'id': product.id, 'name': product.name, 'is_available': product.is_available},
            'quantity': item.quantity,
            'price_at_add': item.price_at_add,
            'current_price': current_price,
            'is_valid': True,
            'issues': [],
        }

        if not product.is_available:
            validation['is_valid'] = False
            validation['issues'].append({
                'type': 'product_unavailable',
                'message': 'The product is no longer available',
            })

        if not product.restaurant.is_active:
            validation['is_valid'] = False
            validation['issues'].append({
                'type': 'product_restaurant_inactive',
                'message': "The product's restaurant is not active",
            })

        if current_price is not None and current_price != item.price_at_add:
            validation['issues'].append({
                'type': 'price_changed',
                'message': f"Price changed from {item.price_at_add} to {current_price}",
                'old_price': item.price_at_add,
                'new_price': current_price,
            })

        return validation
