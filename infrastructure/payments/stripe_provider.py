"""
Stripe Payment Provider
========================

Concrete implementation of PaymentProviderInterface using Stripe Checkout.
"""

import json
import logging
from decimal import ROUND_HALF_UP, Decimal

import stripe
from django.conf import settings
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from infrastructure.observability.tracing import tracer

from .interface import (
    CheckoutSession,
    GatewayError,
    MalformedPayload,
    PaymentConfigurationError,
    PaymentProviderInterface,
    PaymentStatus,
    SignatureInvalid,
    WebhookEvent,
    WebhookEventKind,
)

logger = logging.getLogger(__name__)

# Stripe event type -> what the storefront does with it
EVENT_KINDS = {
    "checkout.session.completed": WebhookEventKind.SESSION_COMPLETED,
    "checkout.session.expired": WebhookEventKind.SESSION_EXPIRED,
}

TRANSIENT_STRIPE_ERRORS = (
    stripe.RateLimitError,
    stripe.APIConnectionError,
    stripe.APIError,
)


def to_minor_units(amount) -> int:
    """Convert a major-unit amount (``Decimal("29.99")``) to integer cents, rounding half-up."""
    return int((Decimal(amount) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class StripeProvider(PaymentProviderInterface):
    """
    Stripe payment provider implementation.

    Configuration (in settings.py):
        STRIPE_SECRET_KEY: Stripe secret API key
        STRIPE_WEBHOOK_SECRET: Webhook endpoint secret for signature verification
        STRIPE_API_TIMEOUT: Per-request timeout in seconds
        STRIPE_WEBHOOK_TOLERANCE: Maximum accepted age of a webhook signature in seconds
        STOREFRONT_CURRENCY: ISO currency of all prices
    """

    def __init__(self):
        """Initialize Stripe provider with API credentials."""
        stripe.api_key = getattr(settings, "STRIPE_SECRET_KEY", "")
        stripe.default_http_client = stripe.RequestsClient(timeout=getattr(settings, "STRIPE_API_TIMEOUT", 10))

        self.webhook_secret = getattr(settings, "STRIPE_WEBHOOK_SECRET", "")
        self.webhook_tolerance = getattr(settings, "STRIPE_WEBHOOK_TOLERANCE", stripe.Webhook.DEFAULT_TOLERANCE)
        self.currency = getattr(settings, "STOREFRONT_CURRENCY", "usd").lower()

        if not stripe.api_key:
            logger.warning("STRIPE_SECRET_KEY not configured")
        if not self.webhook_secret:
            logger.warning("STRIPE_WEBHOOK_SECRET not configured, webhooks will be rejected")

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_exception_type(TRANSIENT_STRIPE_ERRORS),
        reraise=True,
    )
    def _create_checkout_session_api(self, **kwargs):
        """Internal method to create session with retries."""
        return stripe.checkout.Session.create(**kwargs)

    def build_line_items(self, order) -> list:
        return [
            {
                "price_data": {
                    "currency": self.currency,
                    "unit_amount": to_minor_units(item.unit_price),
                    "product_data": {
                        "name": item.product_name,
                    },
                },
                "quantity": item.quantity,
            }
            for item in order.lines
        ]

    def create_checkout_session(self, order, success_url: str, cancel_url: str) -> CheckoutSession:
        """
        Create a Stripe checkout session for ``order``.

        One Stripe line item is sent per order item. The order id travels as
        ``client_reference_id`` and ``metadata.order_id`` so webhooks can be matched
        to the order even before the session id is stored.

        Returns:
            CheckoutSession object

        Raises:
            GatewayError: If session creation fails
            PaymentConfigurationError: If no secret key is configured
        """
        if not stripe.api_key:
            raise PaymentConfigurationError("STRIPE_SECRET_KEY is not configured")

        order_id = str(order.id)
        metadata = {"order_id": order_id}

        session_params = {
            "payment_method_types": ["card"],
            "line_items": self.build_line_items(order),
            "mode": "payment",
            "success_url": success_url,
            "cancel_url": cancel_url,
            "client_reference_id": order_id,
            "metadata": metadata,
        }

        if order.customer_email:
            session_params["customer_email"] = order.customer_email

        with tracer.start_as_current_span("stripe.checkout_session.create") as span:
            span.set_attribute("order.id", order_id)
            span.set_attribute("order.items", len(session_params["line_items"]))

            try:
                session = self._create_checkout_session_api(**session_params)
            except stripe.StripeError as e:
                span.record_exception(e)
                logger.error(f"Stripe session creation failed for order {order_id}: {str(e)}")
                raise GatewayError(f"Failed to create checkout session: {str(e)}") from e

            span.set_attribute("stripe.session_id", session.id)

        logger.info(f"Created Stripe checkout session {session.id} for order {order_id}")

        return CheckoutSession(
            session_id=session.id,
            url=session.url,
            amount=to_minor_units(order.total_amount),
            currency=self.currency,
            status=self._map_stripe_status(getattr(session, "payment_status", None)),
            metadata=metadata,
        )

    def verify_webhook(self, payload: bytes, signature: str) -> WebhookEvent:
        """
        Verify the Stripe-Signature header, then parse the event.

        Args:
            payload: Raw webhook payload bytes
            signature: Stripe-Signature header value

        Returns:
            Verified WebhookEvent

        Raises:
            PaymentConfigurationError: If no webhook secret is configured
            SignatureInvalid: If the header is missing or verification fails
            MalformedPayload: If the verified body is not a usable event
        """
        if not self.webhook_secret:
            raise PaymentConfigurationError("STRIPE_WEBHOOK_SECRET is not configured")

        if not signature:
            logger.error("Webhook received without Stripe-Signature header")
            raise SignatureInvalid("Missing Stripe-Signature header")

        try:
            body = payload.decode("utf-8") if isinstance(payload, bytes) else payload
        except UnicodeDecodeError as e:
            raise SignatureInvalid("Webhook payload is not UTF-8 and cannot be verified") from e

        try:
            stripe.WebhookSignature.verify_header(body, signature, self.webhook_secret, self.webhook_tolerance)
        except stripe.SignatureVerificationError as e:
            logger.error(f"Webhook signature verification failed: {str(e)}")
            raise SignatureInvalid("Webhook signature verification failed") from e

        return self._parse_event(body)

    def _parse_event(self, body: str) -> WebhookEvent:
        try:
            event = json.loads(body)
        except ValueError as e:
            logger.error(f"Invalid webhook payload: {str(e)}")
            raise MalformedPayload("Invalid webhook payload") from e

        if not isinstance(event, dict) or "type" not in event:
            raise MalformedPayload("Webhook payload is not an event object")

        event_type = event["type"]
        kind = EVENT_KINDS.get(event_type, WebhookEventKind.UNHANDLED)

        data_object = (event.get("data") or {}).get("object")
        if not isinstance(data_object, dict):
            raise MalformedPayload(f"Event {event.get('id')} has no data object")

        session_id = data_object.get("id") or ""
        if kind != WebhookEventKind.UNHANDLED and not session_id:
            raise MalformedPayload(f"Event {event.get('id')} of type {event_type} lacks a session id")

        metadata = data_object.get("metadata") or {}
        order_id = metadata.get("order_id") or data_object.get("client_reference_id")

        logger.info(f"Verified Stripe webhook event: {event_type}")

        return WebhookEvent(
            event_id=event.get("id", ""),
            event_type=event_type,
            kind=kind,
            session_id=session_id,
            order_id=order_id,
            data=data_object,
        )

    def _map_stripe_status(self, stripe_status) -> PaymentStatus:
        """
        Map Stripe session payment status to internal PaymentStatus.
        """
        status_mapping = {
            "unpaid": PaymentStatus.PENDING,
            "paid": PaymentStatus.SUCCEEDED,
            "no_payment_required": PaymentStatus.SUCCEEDED,
        }

        return status_mapping.get(stripe_status, PaymentStatus.PENDING)
