from rest_framework import serializers


class CheckoutRequestSerializer(serializers.Serializer):
    # Validated by CheckoutService so an invalid address maps to validation_error
    email = serializers.CharField(required=False, allow_blank=True, default="", help_text="Customer email address")


class CheckoutSuccessQuerySerializer(serializers.Serializer):
    session_id = serializers.CharField(required=False, allow_blank=True, help_text="Stripe checkout session id")


class CheckoutCancelQuerySerializer(serializers.Serializer):
    order_id = serializers.CharField(required=False, allow_blank=True, help_text="Order of the abandoned checkout")
    session_id = serializers.CharField(required=False, allow_blank=True, help_text="Stripe checkout session id")
