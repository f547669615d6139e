import logging

from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from infrastructure.container import container
from marketplace.api.serializers import ErrorResponseSerializer
from marketplace.ordering.api.serializers.order_serializers import OrderSerializer
from marketplace.services import ErrorCodes, OrderService


logger = logging.getLogger(__name__)

ERROR_STATUS = {
    ErrorCodes.ORDER_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCodes.STATE_CONFLICT: status.HTTP_409_CONFLICT,
    ErrorCodes.DATABASE_ERROR: status.HTTP_503_SERVICE_UNAVAILABLE,
}


class OrderViewSet(viewsets.ViewSet):
    """
    Order lookup and user-initiated cancellation.

    Orders are addressed by their random UUID, which is only handed to the
    customer who placed the order.
    """

    permission_classes = [AllowAny]
    lookup_value_regex = r"[0-9a-fA-F-]{32,36}"

    def get_service(self) -> OrderService:
        return container.order_service()

    def error_response(self, result) -> Response:
        return Response(
            {"error": result.error, "detail": result.error_detail},
            status=ERROR_STATUS.get(result.error, status.HTTP_500_INTERNAL_SERVER_ERROR),
        )

    @extend_schema(
        operation_id="orders_retrieve",
        summary="Get order details",
        description="""
        **What it receives:**
        - `order_id` (UUID in URL): Order to retrieve

        **What it returns:**
        - Order status, total, payment session id and line items
        """,
        responses={
            200: OpenApiResponse(response=OrderSerializer, description="Order retrieved successfully"),
            404: OpenApiResponse(response=ErrorResponseSerializer, description="Order not found"),
        },
        tags=["Marketplace - Orders"],
    )
    def retrieve(self, request, pk=None):
        result = self.get_service().get_order(pk)

        if not result.ok:
            return self.error_response(result)

        return Response(OrderSerializer(result.value).data, status=status.HTTP_200_OK)

    @extend_schema(
        operation_id="orders_cancel",
        summary="Cancel a pending order",
        description="""
        **What it receives:**
        - `order_id` (UUID in URL): Order to cancel

        **What it returns:**
        - Updated order with status `failed`. Cancelling an order that is already
          failed succeeds without changes.
        """,
        request=None,
        responses={
            200: OpenApiResponse(response=OrderSerializer, description="Order cancelled"),
            404: OpenApiResponse(response=ErrorResponseSerializer, description="Order not found"),
            409: OpenApiResponse(response=ErrorResponseSerializer, description="Order already completed"),
        },
        tags=["Marketplace - Orders"],
    )
    @action(detail=True, methods=["post"])
    def cancel(self, request, pk=None):
        result = self.get_service().cancel_order(pk)

        if not result.ok:
            return self.error_response(result)

        logger.info(f"Order {pk} cancelled by customer")
        return Response(OrderSerializer(result.value).data, status=status.HTTP_200_OK)
