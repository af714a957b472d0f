from django.apps import apps
from django.shortcuts import get_object_or_404
from rest_framework import generics
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from drf_yasg.utils import swagger_auto_schema

from .models import Product
from .serializers import ProductModifiersSerializer


class ProductModifiersView(generics.RetrieveAPIView):
    """Product with its modifier groups and options, for building the add-to-cart form"""
    serializer_class = ProductModifiersSerializer
    permission_classes = [IsAuthenticated]
    catalog_cache = None

    def get_queryset(self):
        return Product.objects.select_related('restaurant').prefetch_related('modifier_groups__options')

    def get_catalog_cache(self):
        return self.catalog_cache or apps.get_app_config('catalog').cache

    @swagger_auto_schema(
        operation_description="Get a product with its modifier groups and options",
        responses={200: ProductModifiersSerializer, 404: 'Product not found'}
    )
    def get(self, request, *args, **kwargs):
        product_id = kwargs['pk']
        cache = self.get_catalog_cache()

        def load():
            product = get_object_or_404(self.get_queryset(), pk=product_id)
            return self.get_serializer(product).data

        return Response(cache.get_or_load(cache.product_key(product_id), load))
