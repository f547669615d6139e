import logging

from django.http import HttpResponse
from django.urls import reverse
from django.utils.decorators import method_decorator
from django.views import View
from django.views.decorators.csrf import csrf_exempt
from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, OpenApiTypes, extend_schema
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from infrastructure.container import container
from marketplace.cart.infra.session_store import CartSessionStore
from marketplace.ordering.api.serializers.order_serializers import OrderSerializer
from marketplace.services import ErrorCodes
from payment_system.api.serializers.request_serializers import (
    CheckoutCancelQuerySerializer,
    CheckoutRequestSerializer,
    CheckoutSuccessQuerySerializer,
)
from payment_system.api.serializers.response_serializers import (
    CheckoutLandingResponseSerializer,
    CheckoutSessionResponseSerializer,
    ErrorResponseSerializer,
)
from payment_system.security import get_client_ip


logger = logging.getLogger(__name__)

CHECKOUT_ERROR_STATUS = {
    ErrorCodes.CART_EMPTY: status.HTTP_400_BAD_REQUEST,
    ErrorCodes.VALIDATION_ERROR: status.HTTP_400_BAD_REQUEST,
    ErrorCodes.PRODUCT_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCodes.PAYMENT_PROVIDER_ERROR: status.HTTP_502_BAD_GATEWAY,
    ErrorCodes.DATABASE_ERROR: status.HTTP_503_SERVICE_UNAVAILABLE,
    ErrorCodes.PAYMENT_CONFIGURATION_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
}

WEBHOOK_ERROR_STATUS = {
    ErrorCodes.SIGNATURE_INVALID: 400,
    ErrorCodes.MALFORMED_PAYLOAD: 400,
    ErrorCodes.ORDER_NOT_FOUND: 404,
    ErrorCodes.DATABASE_ERROR: 500,
    ErrorCodes.PAYMENT_CONFIGURATION_ERROR: 500,
}


@extend_schema(
    operation_id="payment_create_checkout",
    summary="Start checkout",
    description="""
    **What it receives:**
    - `email` (string): Customer email

    **What it returns:**
    - `303 See Other` with `Location` set to the hosted Stripe checkout page
    - The pending order and session id in the body

    The cart is cleared once the payment session exists. On a payment provider
    failure the order stays pending and the cart is kept.
    """,
    request=CheckoutRequestSerializer,
    responses={
        303: OpenApiResponse(response=CheckoutSessionResponseSerializer, description="Redirect to Stripe"),
        400: OpenApiResponse(response=ErrorResponseSerializer, description="Empty cart or invalid email"),
        404: OpenApiResponse(response=ErrorResponseSerializer, description="Cart references a removed product"),
        502: OpenApiResponse(response=ErrorResponseSerializer, description="Payment provider error"),
        503: OpenApiResponse(response=ErrorResponseSerializer, description="Order could not be saved"),
    },
    tags=["Payments"],
)
@api_view(["POST"])
@permission_classes([AllowAny])
def create_checkout_session(request):
    """Convert the session cart into a pending order and redirect to Stripe Checkout."""
    serializer = CheckoutRequestSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    result = container.checkout_service().start_checkout(
        CartSessionStore(request.session),
        email=serializer.validated_data["email"],
        success_url=request.build_absolute_uri(reverse("payment_system:checkout_success")),
        cancel_url=request.build_absolute_uri(reverse("payment_system:checkout_cancel")),
        client_ip=get_client_ip(request),
    )

    if not result.ok:
        return Response(
            {"error": result.error, "detail": result.error_detail},
            status=CHECKOUT_ERROR_STATUS.get(result.error, status.HTTP_500_INTERNAL_SERVER_ERROR),
        )

    checkout = result.value
    return Response(
        {
            "checkout_url": checkout.checkout_url,
            "session_id": checkout.session_id,
            "order": OrderSerializer(checkout.order).data,
        },
        status=status.HTTP_303_SEE_OTHER,
        headers={"Location": checkout.checkout_url},
    )


@extend_schema(
    operation_id="payment_checkout_success",
    summary="Checkout success landing",
    description="Order details for the page Stripe redirects to after payment. "
    "The order may still be pending until the webhook arrives.",
    parameters=[OpenApiParameter(name="session_id", type=str, description="Stripe checkout session id")],
    responses={200: CheckoutLandingResponseSerializer},
    tags=["Payments"],
)
@api_view(["GET"])
@permission_classes([AllowAny])
def checkout_success(request):
    query = CheckoutSuccessQuerySerializer(data=request.query_params)
    query.is_valid(raise_exception=True)
    session_id = query.validated_data.get("session_id")

    if not session_id:
        logger.info("Checkout success called without session_id")
        return Response({"title": "Order Complete", "message": "Your order is complete!", "order": None})

    result = container.checkout_service().get_completed_order(session_id)
    if not result.ok:
        logger.warning(f"Could not load order for success page (session {session_id}): {result.error_detail}")
        return Response(
            {
                "title": "Order Complete",
                "message": "Your order is complete! We could not retrieve order details at this moment.",
                "order": None,
            }
        )

    order = result.value
    return Response(
        {
            "title": "Order Complete",
            "message": f"Thank you for your order, {order.customer_email}! Your order ID is {order.id}.",
            "order": OrderSerializer(order).data,
        }
    )


@extend_schema(
    operation_id="payment_checkout_cancel",
    summary="Checkout cancel landing",
    description="Marks the pending order of an abandoned checkout as failed. "
    "Completed orders are never changed.",
    parameters=[
        OpenApiParameter(name="order_id", type=str, description="Order of the abandoned checkout"),
        OpenApiParameter(name="session_id", type=str, description="Stripe checkout session id"),
    ],
    responses={200: CheckoutLandingResponseSerializer},
    tags=["Payments"],
)
@api_view(["GET"])
@permission_classes([AllowAny])
def checkout_cancel(request):
    query = CheckoutCancelQuerySerializer(data=request.query_params)
    query.is_valid(raise_exception=True)
    order_id = query.validated_data.get("order_id")
    session_id = query.validated_data.get("session_id")

    order_data = None
    if order_id or session_id:
        result = container.checkout_service().cancel_checkout(order_id=order_id, session_id=session_id)
        if result.ok:
            order_data = OrderSerializer(result.value).data
        else:
            logger.warning(f"Could not cancel checkout (order {order_id}, session {session_id}): {result.error_detail}")

    return Response(
        {
            "title": "Checkout Cancelled",
            "message": "Your checkout was cancelled. You can continue shopping.",
            "order": order_data,
        }
    )


@method_decorator(csrf_exempt, name="dispatch")
class StripeWebhookView(View):
    """Receive Stripe webhooks - thin router that delegates to WebhookService."""

    @extend_schema(
        operation_id="payment_stripe_webhook",
        summary="Stripe Webhook Endpoint",
        description="Endpoint for receiving Stripe webhook events. Verifies signature and processes events.",
        request=OpenApiTypes.OBJECT,
        responses={
            200: OpenApiResponse(description="Webhook processed or ignored"),
            400: OpenApiResponse(description="Invalid payload or signature"),
            404: OpenApiResponse(description="Completed session matches no order"),
            500: OpenApiResponse(description="Processing error or webhook secret not configured"),
        },
        tags=["Webhooks"],
        auth=[],
    )
    def post(self, request):
        payload = request.body
        sig_header = request.headers.get("Stripe-Signature", "")
        client_ip = get_client_ip(request) or "unknown"

        result = container.webhook_service().process_webhook(payload, sig_header, client_ip=client_ip)

        if not result.ok:
            status_code = WEBHOOK_ERROR_STATUS.get(result.error, 500)
            logger.warning(f"Webhook from {client_ip} rejected with {status_code}: {result.error}")
            return HttpResponse(status=status_code, content=f"{result.error}: {result.error_detail}".encode("utf-8"))

        outcome = result.value
        logger.info(f"Webhook {outcome.event_type} handled: {outcome.action}")
        return HttpResponse(status=200, content=f"{outcome.event_type} {outcome.action}".encode("utf-8"))
