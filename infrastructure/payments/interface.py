"""
Payment Provider Interface
===========================

Abstract base class defining the contract the checkout flow needs from a payment
provider: create a hosted checkout session for an order, and verify/parse the
provider's signed webhook callbacks.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class PaymentStatus(str, Enum):
    """Payment status of a checkout session."""

    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class WebhookEventKind(str, Enum):
    """Webhook events the storefront reacts to."""

    SESSION_COMPLETED = "session_completed"
    SESSION_EXPIRED = "session_expired"
    UNHANDLED = "unhandled"


@dataclass
class CheckoutSession:
    """
    Represents a payment checkout session.

    Attributes:
        session_id: Unique session identifier
        url: Redirect URL for customer to complete payment
        amount: Payment amount in smallest currency unit (cents)
        currency: ISO currency code (e.g., 'usd')
        status: Current status of the session
        metadata: Additional custom data
    """

    session_id: str
    url: str
    amount: int
    currency: str
    status: PaymentStatus
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class WebhookEvent:
    """
    A verified webhook event from the payment provider.

    Attributes:
        event_id: Unique event identifier
        event_type: Provider event type (e.g., 'checkout.session.completed')
        kind: What the storefront should do with the event
        session_id: Checkout session the event refers to
        order_id: Order id carried in the session metadata, when present
        data: Raw event object
    """

    event_id: str
    event_type: str
    kind: WebhookEventKind
    session_id: str
    order_id: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)


class PaymentProviderInterface(ABC):
    """
    Abstract interface for payment provider operations.

    Concrete implementations:
        - StripeProvider: Stripe Checkout
    """

    @abstractmethod
    def create_checkout_session(self, order, success_url: str, cancel_url: str) -> CheckoutSession:
        """
        Create a hosted checkout session for an order.

        Args:
            order: Order with its line items
            success_url: Redirect URL on successful payment
            cancel_url: Redirect URL on canceled payment

        Returns:
            CheckoutSession object with session details

        Raises:
            GatewayError: If the provider rejects the request or cannot be reached
            PaymentConfigurationError: If the provider credentials are missing
        """
        pass

    @abstractmethod
    def verify_webhook(self, payload: bytes, signature: str) -> WebhookEvent:
        """
        Verify and parse webhook event from payment provider.

        The signature is checked before the payload is decoded.

        Args:
            payload: Raw webhook payload bytes
            signature: Webhook signature header for verification

        Returns:
            Parsed and verified WebhookEvent

        Raises:
            SignatureInvalid: If the signature is missing or does not match
            MalformedPayload: If the verified payload cannot be decoded
            PaymentConfigurationError: If no webhook secret is configured
        """
        pass


class PaymentException(Exception):
    """Base exception for payment operations."""

    pass


class GatewayError(PaymentException):
    """The provider call failed (transport, validation or provider-side error)."""

    pass


class SignatureInvalid(PaymentException):
    """Webhook signature missing or not matching the configured secret."""

    pass


class MalformedPayload(PaymentException):
    """Webhook payload could not be decoded into an event."""

    pass


class PaymentConfigurationError(PaymentException):
    """Provider credentials or secrets are not configured."""

    pass
