"""
Payment Service Abstraction Layer
==================================

Provides a unified interface for creating hosted checkout sessions and verifying
webhooks across payment providers.
"""

from .factory import PaymentFactory
from .interface import (
    CheckoutSession,
    GatewayError,
    MalformedPayload,
    PaymentConfigurationError,
    PaymentException,
    PaymentProviderInterface,
    PaymentStatus,
    SignatureInvalid,
    WebhookEvent,
    WebhookEventKind,
)
from .stripe_provider import StripeProvider

__all__ = [
    "PaymentProviderInterface",
    "CheckoutSession",
    "WebhookEvent",
    "WebhookEventKind",
    "PaymentStatus",
    "PaymentException",
    "GatewayError",
    "SignatureInvalid",
    "MalformedPayload",
    "PaymentConfigurationError",
    "StripeProvider",
    "PaymentFactory",
]
