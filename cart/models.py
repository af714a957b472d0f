from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models

from catalog.models import ModifierOption, Product, Restaurant

from .pricing import line_subtotal


class Cart(models.Model):
    """One live cart per (user, restaurant)"""
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='carts')
    restaurant = models.ForeignKey(Restaurant, on_delete=models.CASCADE, related_name='carts')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'carts'
        ordering = ['-updated_at']
        constraints = [
            models.UniqueConstraint(fields=['user', 'restaurant'], name='cart_unique_user_restaurant'),
        ]

    def __str__(self):
        return f"Cart #{self.id} - {self.restaurant}"


class CartItem(models.Model):
    cart = models.ForeignKey(Cart, on_delete=models.CASCADE, related_name='items')
    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name='cart_items')
    quantity = models.PositiveIntegerField(default=1, validators=[MinValueValidator(1)])
    # Unit price including modifiers, frozen when the line was created
    price_at_add = models.DecimalField(max_digits=10, decimal_places=2)
    # Hash of the sorted modifier option ids, see cart.identity.selection_key
    selection_key = models.CharField(max_length=64)
    modifiers = models.ManyToManyField(ModifierOption, through='CartItemModifier', related_name='cart_items')

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'cart_items'
        ordering = ['created_at', 'id']
        constraints = [
            models.UniqueConstraint(
                fields=['cart', 'product', 'selection_key'], name='cart_item_unique_configuration'
            ),
        ]

    def option_ids(self):
        """Ids of the selected modifier options, ascending"""
        return sorted(selection.modifier_option_id for selection in self.selections.all())

    def get_subtotal(self):
        return line_subtotal(self.price_at_add, self.quantity)

    def __str__(self):
        return f"{self.quantity} x {self.product.name}"


class CartItemModifier(models.Model):
    """A modifier option chosen for a cart item. Never edited after creation."""
    cart_item = models.ForeignKey(CartItem, on_delete=models.CASCADE, related_name='selections')
    modifier_option = models.ForeignKey(ModifierOption, on_delete=models.PROTECT, related_name='selections')

    class Meta:
        db_table = 'cart_item_modifiers'
        ordering = ['id']
        constraints = [
            models.UniqueConstraint(
                fields=['cart_item', 'modifier_option'], name='cart_item_modifier_unique_option'
            ),
        ]

    def __str__(self):
        return f"{self.cart_item_id} - {self.modifier_option}"
