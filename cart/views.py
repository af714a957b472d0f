from rest_framework import status, generics
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django_filters.rest_framework import DjangoFilterBackend
from drf_yasg.utils import swagger_auto_schema
from drf_yasg import openapi

from authentication.exceptions import error_payload
from authentication.permissions import IsCustomer
from .errors import ErrorKind
from .pricing import sum_rounded
from .serializers import (
    AddToCartSerializer, CartItemSerializer, CartSerializer,
    RestaurantScopeSerializer, UpdateCartItemSerializer
)
from .services import ACTION_ITEM_ADDED, CartMutator

ERROR_STATUS = {
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.PRECONDITION_FAILED: status.HTTP_400_BAD_REQUEST,
    ErrorKind.VALIDATION_FAILED: status.HTTP_400_BAD_REQUEST,
    ErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
}

ERROR_RESPONSES = {
    400: 'Invalid request, product unavailable or modifier validation failed',
    404: 'Product, cart item or cart not found',
    409: 'Concurrent change, retry the request',
}


def error_response(error):
    status_code = ERROR_STATUS[error.kind]
    return Response(error_payload(error.code, error.message, error.details, status_code), status=status_code)


modifier_selection_schema = openapi.Schema(
    type=openapi.TYPE_OBJECT,
    required=['modifier_group_id', 'selected_option_id'],
    properties={
        'modifier_group_id': openapi.Schema(type=openapi.TYPE_INTEGER),
        'selected_option_id': openapi.Schema(type=openapi.TYPE_INTEGER),
    }
)


class CartListView(generics.ListAPIView):
    """List the user's carts with items, modifiers and totals"""
    serializer_class = CartSerializer
    permission_classes = [IsAuthenticated, IsCustomer]
    filter_backends = [DjangoFilterBackend]
    filterset_fields = ['restaurant']
    pagination_class = None

    def get_mutator(self):
        return CartMutator(self.request.user)

    def get_queryset(self):
        return self.get_mutator().list_carts()

    def get_serializer_context(self):
        context = super().get_serializer_context()
        context['delivery_fee'] = self.get_mutator().delivery_fee
        return context

    @swagger_auto_schema(
        operation_description="Get the user's carts, one per restaurant",
        manual_parameters=[
            openapi.Parameter('restaurant', openapi.IN_QUERY, description="Only the cart of this restaurant", type=openapi.TYPE_INTEGER),
        ]
    )
    def get(self, request, *args, **kwargs):
        queryset = self.filter_queryset(self.get_queryset())
        carts = self.get_serializer(queryset, many=True).data

        return Response({
            'message': 'Cart retrieved successfully',
            'carts': carts,
            'summary': {
                'total_carts': len(carts),
                'total_items': sum(cart['total_quantity'] for cart in carts),
                'grand_total': sum_rounded(cart['totals']['total'] for cart in carts),
            },
        })


@swagger_auto_schema(
    method='get',
    operation_description="Get item counts and estimated totals for the carts of active restaurants",
)
@api_view(['GET'])
@permission_classes([IsAuthenticated, IsCustomer])
def cart_summary(request):
    result = CartMutator(request.user).summarize()
    return Response({'message': 'Cart summary retrieved successfully', **result.value})


@swagger_auto_schema(
    method='post',
    operation_description="Add a product, with optional modifier selections, to the cart of its restaurant",
    request_body=openapi.Schema(
        type=openapi.TYPE_OBJECT,
        required=['product_id'],
        properties={
            'product_id': openapi.Schema(type=openapi.TYPE_INTEGER),
            'quantity': openapi.Schema(type=openapi.TYPE_INTEGER, minimum=1, maximum=99, default=1),
            'modifiers': openapi.Schema(type=openapi.TYPE_ARRAY, items=modifier_selection_schema),
        }
    ),
    responses={
        201: openapi.Response(description="Item added"),
        200: openapi.Response(description="Quantity of an identical item updated"),
        **ERROR_RESPONSES
    }
)
@api_view(['POST'])
@permission_classes([IsAuthenticated, IsCustomer])
def add_to_cart(request):
    serializer = AddToCartSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    result = CartMutator(request.user).add_item(
        serializer.validated_data['product_id'],
        serializer.validated_data['quantity'],
        serializer.selection_pairs(),
    )
    if not result.ok:
        return error_response(result.error)

    added = result.value['action'] == ACTION_ITEM_ADDED
    return Response({
        'message': 'Product added to cart' if added else 'Cart quantity updated',
        'action': result.value['action'],
        'cart_item': CartItemSerializer(result.value['item']).data,
    }, status=status.HTTP_201_CREATED if added else status.HTTP_200_OK)


@swagger_auto_schema(
    method='put',
    operation_description="Set the quantity of a cart item (0 removes it)",
    request_body=UpdateCartItemSerializer,
    responses={200: openapi.Response(description="Quantity updated or item removed"), **ERROR_RESPONSES}
)
@api_view(['PUT'])
@permission_classes([IsAuthenticated, IsCustomer])
def update_cart_item(request, item_id):
    serializer = UpdateCartItemSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    result = CartMutator(request.user).update_quantity(item_id, serializer.validated_data['quantity'])
    if not result.ok:
        return error_response(result.error)

    if 'item' not in result.value:
        return Response({
            'message': 'Product removed from cart',
            'action': result.value['action'],
            'item_id': item_id,
            'cart_removed': result.value['cart_removed'],
        })

    return Response({
        'message': 'Quantity updated successfully',
        'action': result.value['action'],
        'cart_item': CartItemSerializer(result.value['item']).data,
    })


@swagger_auto_schema(
    method='delete',
    operation_description="Remove an item from the cart",
    responses={200: openapi.Response(description="Item removed"), 404: 'Cart item not found'}
)
@api_view(['DELETE'])
@permission_classes([IsAuthenticated, IsCustomer])
def remove_from_cart(request, item_id):
    result = CartMutator(request.user).remove_item(item_id)
    if not result.ok:
        return error_response(result.error)

    return Response({'message': 'Product removed from cart', **result.value})


@swagger_auto_schema(
    method='delete',
    operation_description="Clear the cart of one restaurant, or every cart when restaurant_id is omitted",
    manual_parameters=[
        openapi.Parameter('restaurant_id', openapi.IN_QUERY, description="Restaurant whose cart to clear", type=openapi.TYPE_INTEGER),
    ],
    responses={200: openapi.Response(description="Carts cleared"), 404: 'No carts found'}
)
@api_view(['DELETE'])
@permission_classes([IsAuthenticated, IsCustomer])
def clear_cart(request):
    # A plain dict, so an empty ?restaurant_id= is rejected instead of read as omitted
    serializer = RestaurantScopeSerializer(data=request.query_params.dict())
    serializer.is_valid(raise_exception=True)
    restaurant_id = serializer.validated_data['restaurant_id']

    result = CartMutator(request.user).clear_cart(restaurant_id)
    if not result.ok:
        return error_response(result.error)

    message = 'Restaurant cart cleared successfully' if restaurant_id else 'All carts cleared successfully'
    return Response({'message': message, **result.value})


@swagger_auto_schema(
    method='post',
    operation_description="Validate carts before checkout: availability, restaurant status and price changes",
    request_body=RestaurantScopeSerializer,
)
@api_view(['POST'])
@permission_classes([IsAuthenticated, IsCustomer])
def validate_cart(request):
    serializer = RestaurantScopeSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    result = CartMutator(request.user).validate_for_checkout(serializer.validated_data['restaurant_id'])
    return Response({'message': 'Cart validation completed', **result.value})
