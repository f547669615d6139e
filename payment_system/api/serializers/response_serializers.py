from rest_framework import serializers

from marketplace.ordering.api.serializers.order_serializers import OrderSerializer


# ==============================================================================
# Checkout Flow Responses
# ==============================================================================


class CheckoutSessionResponseSerializer(serializers.Serializer):
    """Response for starting a checkout (also sent as the Location header)"""

    checkout_url = serializers.URLField(help_text="Hosted Stripe checkout page")
    session_id = serializers.CharField(help_text="Stripe checkout session ID")
    order = OrderSerializer(help_text="Pending order created from the cart")


class CheckoutLandingResponseSerializer(serializers.Serializer):
    """Response for the success and cancel landing pages"""

    title = serializers.CharField()
    message = serializers.CharField()
    order = OrderSerializer(allow_null=True, required=False)


class ErrorResponseSerializer(serializers.Serializer):
    """Standard error response"""

    error = serializers.CharField(help_text="Error code identifier")
    detail = serializers.CharField(help_text="Human-readable error message")
