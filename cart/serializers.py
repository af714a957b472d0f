from django.conf import settings
from rest_framework import serializers

from catalog.serializers import RestaurantSerializer
from catalog.models import Product
from .models import Cart, CartItem
from .pricing import cart_totals

MAX_ITEM_QUANTITY = getattr(settings, 'CART_MAX_ITEM_QUANTITY', 99)


# =============== REQUEST BODIES ===============

class ModifierSelectionSerializer(serializers.Serializer):
    modifier_group_id = serializers.IntegerField(min_value=1)
    selected_option_id = serializers.IntegerField(min_value=1)


class AddToCartSerializer(serializers.Serializer):
    product_id = serializers.IntegerField(min_value=1)
    quantity = serializers.IntegerField(min_value=1, max_value=MAX_ITEM_QUANTITY, default=1)
    modifiers = ModifierSelectionSerializer(many=True, required=False, default=list)

    def selection_pairs(self):
        return [
            (modifier['modifier_group_id'], modifier['selected_option_id'])
            for modifier in self.validated_data.get('modifiers', [])
        ]


class UpdateCartItemSerializer(serializers.Serializer):
    quantity = serializers.IntegerField(min_value=0, max_value=MAX_ITEM_QUANTITY)


class RestaurantScopeSerializer(serializers.Serializer):
    """Optional restaurant filter for clear and validate"""
    restaurant_id = serializers.IntegerField(min_value=1, default=None)


# =============== RESPONSES ===============

class CartProductSerializer(serializers.ModelSerializer):
    class Meta:
        model = Product
        fields = ['id', 'name', 'description', 'image_url', 'price', 'is_available']


class CartItemSerializer(serializers.ModelSerializer):
    product = CartProductSerializer(read_only=True)
    subtotal = serializers.SerializerMethodField()
    modifiers = serializers.SerializerMethodField()

    class Meta:
        model = CartItem
        fields = ['id', 'product', 'quantity', 'price_at_add', 'subtotal', 'modifiers', 'created_at', 'updated_at']

    def get_subtotal(self, obj):
        return obj.get_subtotal()

    def get_modifiers(self, obj):
        return [
            {
                'id': selection.modifier_option.id,
                'name': selection.modifier_option.name,
                'price': selection.modifier_option.price,
                'group': {
                    'id': selection.modifier_option.group.id,
                    'name': selection.modifier_option.group.name,
                },
            }
            for selection in obj.selections.all()
        ]


class CartSerializer(serializers.ModelSerializer):
    restaurant = RestaurantSerializer(read_only=True)
    items = CartItemSerializer(many=True, read_only=True)
    totals = serializers.SerializerMethodField()
    item_count = serializers.SerializerMethodField()
    total_quantity = serializers.SerializerMethodField()

    class Meta:
        model = Cart
        fields = ['id', 'restaurant', 'items', 'totals', 'item_count', 'total_quantity', 'created_at', 'updated_at']

    def get_totals(self, obj):
        delivery_fee = self.context.get('delivery_fee', getattr(settings, 'CART_ESTIMATED_DELIVERY_FEE', 0))
        return cart_totals(((item.price_at_add, item.quantity) for item in obj.items.all()), delivery_fee)

    def get_item_count(self, obj):
        return len(obj.items.all())

    def get_total_quantity(self, obj):
        return sum(item.quantity for item in obj.items.all())
