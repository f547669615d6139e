"""
Dependency Injection Container
================================

Simple service locator for the payment provider and the domain services built
on top of it.

Usage:
    from infrastructure.container import container

    payment = container.payment()
    checkout = container.checkout_service()
"""

import logging
from typing import Optional

from .payments import PaymentFactory, PaymentProviderInterface

logger = logging.getLogger(__name__)


class ServiceContainer:
    """
    Service container for infrastructure dependencies and domain services.

    Implements lazy initialization and caching of service instances.
    Singleton: every ``ServiceContainer()`` returns the same object.
    """

    _instance: Optional["ServiceContainer"] = None
    _initialized: bool = False

    def __new__(cls):
        """Ensure only one instance exists (singleton pattern)."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        """Initialize container (only once)."""
        if not self._initialized:
            self._payment: Optional[PaymentProviderInterface] = None

            # Domain Services
            self._catalog_service = None
            self._cart_service = None
            self._order_service = None
            self._checkout_service = None
            self._webhook_service = None

            self._initialized = True
            logger.info("Service container initialized")

    def payment(self, backend: Optional[str] = None) -> PaymentProviderInterface:
        """
        Get payment provider instance.

        Args:
            backend: Payment backend type ('stripe').
                    If None, uses configuration from settings

        Returns:
            PaymentProviderInterface implementation (cached)
        """
        if self._payment is None or backend is not None:
            self._payment = PaymentFactory.create(backend)
            logger.debug(f"Created payment service: {type(self._payment).__name__}")

        return self._payment

    def catalog_service(self):
        """Get CatalogService instance."""
        if self._catalog_service is None:
            from marketplace.services import CatalogService

            self._catalog_service = CatalogService()
            logger.debug("Created CatalogService")
        return self._catalog_service

    def cart_service(self):
        """Get CartService instance."""
        if self._cart_service is None:
            from marketplace.services import CartService

            self._cart_service = CartService(catalog_service=self.catalog_service())
            logger.debug("Created CartService")
        return self._cart_service

    def order_service(self):
        """Get OrderService instance."""
        if self._order_service is None:
            from marketplace.services import OrderService

            self._order_service = OrderService()
            logger.debug("Created OrderService")
        return self._order_service

    def checkout_service(self):
        """Get CheckoutService instance."""
        if self._checkout_service is None:
            from payment_system.domain.services.checkout_service import CheckoutService

            self._checkout_service = CheckoutService(
                catalog_service=self.catalog_service(),
                cart_service=self.cart_service(),
                order_service=self.order_service(),
                payment_provider=self.payment(),
            )
            logger.debug("Created CheckoutService")
        return self._checkout_service

    def webhook_service(self):
        """Get WebhookService instance."""
        if self._webhook_service is None:
            from payment_system.domain.services.webhook_service import WebhookService

            self._webhook_service = WebhookService(
                order_service=self.order_service(),
                payment_provider=self.payment(),
            )
            logger.debug("Created WebhookService")
        return self._webhook_service

    def reset(self):
        """
        Reset all cached service instances.

        Useful for testing or when switching between environments.
        """
        self._payment = None
        self._catalog_service = None
        self._cart_service = None
        self._order_service = None
        self._checkout_service = None
        self._webhook_service = None
        logger.info("Service container reset")


# Global singleton instance
container = ServiceContainer()


def get_payment_provider() -> PaymentProviderInterface:
    """Get payment provider from global container."""
    return container.payment()
