from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from infrastructure.container import container  # For DI
from marketplace.api.serializers import ErrorResponseSerializer
from marketplace.cart.api.serializers.cart_serializers import (
    AddToCartRequestSerializer,
    CartSerializer,
    RemoveFromCartRequestSerializer,
)
from marketplace.cart.infra.session_store import CartSessionStore
from marketplace.services import CartService, ErrorCodes


class CartViewSet(viewsets.ViewSet):
    """Session cart of the current visitor. No login required."""

    permission_classes = [AllowAny]

    def get_service(self) -> CartService:
        # Inject CartService via DI container
        return container.cart_service()

    def get_store(self, request) -> CartSessionStore:
        return CartSessionStore(request.session)

    def get_output_serializer(self, *args, **kwargs):
        return CartSerializer(*args, **kwargs)

    @extend_schema(
        operation_id="cart_get",
        summary="Get the session cart",
        description="""
        **What it returns:**
        - Cart lines with the unit price captured when each product was added
        - Line count and total
        """,
        responses={200: OpenApiResponse(response=CartSerializer, description="Cart retrieved successfully")},
        tags=["Marketplace - Cart"],
    )
    def list(self, request):
        result = self.get_service().get_cart(self.get_store(request))
        return Response(self.get_output_serializer(result.value).data, status=status.HTTP_200_OK)

    @extend_schema(
        operation_id="cart_add_item",
        summary="Add item to cart",
        description="""
        **What it receives:**
        - `product_id` (string): Product to add
        - `quantity` (integer, optional): Quantity to add. Missing, malformed or
          non-positive values count as 1.

        **What it returns:**
        - Updated cart
        """,
        request=AddToCartRequestSerializer,
        responses={
            200: OpenApiResponse(response=CartSerializer, description="Item added successfully"),
            400: OpenApiResponse(response=ErrorResponseSerializer, description="Missing product_id"),
            404: OpenApiResponse(response=ErrorResponseSerializer, description="Product not found"),
        },
        tags=["Marketplace - Cart"],
    )
    @action(detail=False, methods=["post"])
    def add_item(self, request):
        input_serializer = AddToCartRequestSerializer(data=request.data)
        if not input_serializer.is_valid():
            return Response(input_serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        product_id = input_serializer.validated_data["product_id"]
        quantity = input_serializer.validated_data.get("quantity", 1)

        result = self.get_service().add_to_cart(self.get_store(request), product_id, quantity)

        if not result.ok:
            if result.error == ErrorCodes.PRODUCT_NOT_FOUND:
                return Response(
                    {"error": result.error, "detail": result.error_detail}, status=status.HTTP_404_NOT_FOUND
                )
            return Response(
                {"error": result.error, "detail": result.error_detail}, status=status.HTTP_503_SERVICE_UNAVAILABLE
            )

        return Response(self.get_output_serializer(result.value).data, status=status.HTTP_200_OK)

    @extend_schema(
        operation_id="cart_remove_item",
        summary="Remove item from cart",
        description="""
        **What it receives:**
        - `product_id` (string): Product to remove. Unknown ids are ignored.

        **What it returns:**
        - Updated cart without the removed item
        """,
        request=RemoveFromCartRequestSerializer,
        responses={
            200: OpenApiResponse(response=CartSerializer, description="Item removed"),
            400: OpenApiResponse(response=ErrorResponseSerializer, description="Missing product_id"),
        },
        tags=["Marketplace - Cart"],
    )
    @action(detail=False, methods=["post"])
    def remove_item(self, request):
        input_serializer = RemoveFromCartRequestSerializer(data=request.data)
        if not input_serializer.is_valid():
            return Response(input_serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        result = self.get_service().remove_from_cart(
            self.get_store(request), input_serializer.validated_data["product_id"]
        )
        return Response(self.get_output_serializer(result.value).data, status=status.HTTP_200_OK)

    @extend_schema(
        operation_id="cart_clear",
        summary="Empty the cart",
        request=None,
        responses={200: OpenApiResponse(response=CartSerializer, description="Cart cleared")},
        tags=["Marketplace - Cart"],
    )
    @action(detail=False, methods=["delete"])
    def clear(self, request):
        result = self.get_service().clear_cart(self.get_store(request))
        return Response(self.get_output_serializer(result.value).data, status=status.HTTP_200_OK)
