"""
Payment Provider Factory
=========================

Builds the payment provider named by ``settings.PAYMENT_PROVIDER``.
"""

import logging
from typing import Literal

from django.conf import settings

from .interface import PaymentConfigurationError, PaymentProviderInterface
from .stripe_provider import StripeProvider

logger = logging.getLogger(__name__)

PaymentBackend = Literal["stripe"]

PROVIDERS = {
    "stripe": StripeProvider,
}


class PaymentFactory:
    """
    Factory for creating payment provider instances.

    Usage:
        # In settings.py
        PAYMENT_PROVIDER = "stripe"

        # In your code
        payment_provider = PaymentFactory.create()
    """

    @staticmethod
    def create(backend: PaymentBackend | None = None) -> PaymentProviderInterface:
        """
        Create a payment provider instance.

        Args:
            backend: Payment backend type. If None, reads settings.PAYMENT_PROVIDER

        Raises:
            PaymentConfigurationError: If the backend is not supported
        """
        backend_type = backend or getattr(settings, "PAYMENT_PROVIDER", "stripe")

        provider_class = PROVIDERS.get(backend_type)
        if provider_class is None:
            raise PaymentConfigurationError(
                f"Invalid payment provider: {backend_type}. Supported: {', '.join(sorted(PROVIDERS))}"
            )

        logger.info(f"Creating payment provider: {backend_type}")
        return provider_class()
