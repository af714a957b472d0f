"""
Persistence for carts, backed by the Django ORM.

Uniqueness of (user, restaurant) carts and of (cart, product, selection key)
items is enforced by database constraints; the methods here never do a
read-then-insert without the constraint behind them.
"""
from django.db import transaction
from django.db.models import Count, F, Prefetch
from django.utils import timezone

from .identity import selection_key
from .models import Cart, CartItem, CartItemModifier


def _item_queryset():
    return CartItem.objects.select_related('product', 'product__restaurant').prefetch_related(
        Prefetch(
            'selections',
            queryset=CartItemModifier.objects.select_related('modifier_option', 'modifier_option__group'),
        )
    )


class CartRepository:

    def get_cart(self, user, restaurant_id):
        return Cart.objects.filter(user=user, restaurant_id=restaurant_id).first()

    def upsert_cart(self, user, restaurant_id):
        # get_or_create falls back to a read when a concurrent insert wins the unique constraint
        cart, created = Cart.objects.get_or_create(user=user, restaurant_id=restaurant_id)
        return cart

    def touch_cart(self, cart_id):
        Cart.objects.filter(id=cart_id).update(updated_at=timezone.now())

    def items_for_product(self, cart, product_id):
        return list(
            CartItem.objects.filter(cart=cart, product_id=product_id).prefetch_related('selections')
        )

    def get_item(self, item_id):
        return _item_queryset().filter(id=item_id).first()

    def find_item_by_key(self, cart, product_id, option_ids):
        return CartItem.objects.filter(
            cart=cart, product_id=product_id, selection_key=selection_key(option_ids)
        ).first()

    def create_item(self, cart, product_id, quantity, price_at_add, option_ids):
        """Create an item and its selections; raises IntegrityError if the configuration already exists."""
        with transaction.atomic():
            item = CartItem.objects.create(
                cart=cart,
                product_id=product_id,
                quantity=quantity,
                price_at_add=price_at_add,
                selection_key=selection_key(option_ids),
            )
            CartItemModifier.objects.bulk_create([
                CartItemModifier(cart_item=item, modifier_option_id=option_id)
                for option_id in option_ids
            ])
        self.touch_cart(cart.id)
        return self.get_item(item.id)

    def increment_quantity(self, item_id, by, limit=None):
        """Add ``by`` in place; None if the item is gone or the result would pass ``limit``"""
        queryset = CartItem.objects.filter(id=item_id)
        if limit is not None:
            queryset = queryset.filter(quantity__lte=limit - by)
        updated = queryset.update(
            quantity=F('quantity') + by, updated_at=timezone.now()
        )
        if not updated:
            return None
        item = self.get_item(item_id)
        self.touch_cart(item.cart_id)
        return item

    def item_quantity(self, item_id):
        return CartItem.objects.filter(id=item_id).values_list('quantity', flat=True).first()

    def update_item_quantity(self, item_id, quantity):
        updated = CartItem.objects.filter(id=item_id).update(quantity=quantity, updated_at=timezone.now())
        if not updated:
            return None
        item = self.get_item(item_id)
        self.touch_cart(item.cart_id)
        return item

    def get_user_item(self, user, item_id):
        """Item by id, only if it sits in one of the user's carts"""
        return _item_queryset().select_related('cart', 'cart__restaurant').filter(
            id=item_id, cart__user=user
        ).first()

    def delete_item(self, item):
        """Delete an item; the cart goes too when it is left empty. Returns True if the cart was removed."""
        cart_id = item.cart_id
        with transaction.atomic():
            CartItem.objects.filter(id=item.id).delete()
            if CartItem.objects.filter(cart_id=cart_id).exists():
                self.touch_cart(cart_id)
                return False
            Cart.objects.filter(id=cart_id).delete()
        return True

    def carts_for_user(self, user, restaurant_id=None):
        queryset = Cart.objects.filter(user=user)
        if restaurant_id is not None:
            queryset = queryset.filter(restaurant_id=restaurant_id)
        return queryset.select_related('restaurant').prefetch_related(
            Prefetch('items', queryset=_item_queryset())
        )

    def delete_carts(self, user, restaurant_id=None):
        """Delete carts (items and selections cascade); returns what was deleted."""
        queryset = Cart.objects.filter(user=user)
        if restaurant_id is not None:
            queryset = queryset.filter(restaurant_id=restaurant_id)

        with transaction.atomic():
            carts = list(queryset.select_related('restaurant').annotate(item_count=Count('items')))
            if carts:
                Cart.objects.filter(id__in=[cart.id for cart in carts]).delete()
        return carts
