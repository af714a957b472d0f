from rest_framework import serializers
from .models import ModifierGroup, ModifierOption, Product, Restaurant


class RestaurantSerializer(serializers.ModelSerializer):
    class Meta:
        model = Restaurant
        fields = ['id', 'name', 'logo_url', 'status']


class ModifierOptionSerializer(serializers.ModelSerializer):
    class Meta:
        model = ModifierOption
        fields = ['id', 'name', 'price']


class ModifierGroupSerializer(serializers.ModelSerializer):
    options = ModifierOptionSerializer(many=True, read_only=True)
    is_required = serializers.BooleanField(read_only=True)

    class Meta:
        model = ModifierGroup
        fields = ['id', 'name', 'min_selection', 'max_selection', 'is_required', 'options']


class ProductModifiersSerializer(serializers.ModelSerializer):
    restaurant = RestaurantSerializer(read_only=True)
    modifier_groups = ModifierGroupSerializer(many=True, read_only=True)

    class Meta:
        model = Product
        fields = ['id', 'name', 'description', 'image_url', 'price', 'is_available', 'restaurant', 'modifier_groups']
