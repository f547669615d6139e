"""
CheckoutService - Checkout Orchestration

Turns the session cart into a durable order, opens a hosted payment session for it
and hands back the redirect URL. The order is persisted before the payment provider
is called, so a webhook can never arrive for an order that does not exist.

Order states: pending -> completed | failed (terminal).
"""

import logging
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlencode

from django.core.exceptions import ValidationError as DjangoValidationError
from django.core.validators import validate_email

from infrastructure.observability.tracing import tracer
from infrastructure.payments.interface import GatewayError, PaymentConfigurationError, PaymentProviderInterface
from marketplace.cart.infra.session_store import CartSessionStore
from marketplace.infra.observability.metrics import order_value, orders_placed_total
from marketplace.ordering.domain.models.order import Order, OrderStatus
from marketplace.services import CartService, CatalogService, OrderService
from marketplace.services.base import BaseService, ErrorCodes, ServiceResult, service_err, service_ok
from payment_system.infra.observability.metrics import checkout_sessions_total
from payment_system.security import PaymentAuditLogger


logger = logging.getLogger(__name__)

# Stripe substitutes the real session id into this placeholder on redirect
SESSION_ID_PLACEHOLDER = "{CHECKOUT_SESSION_ID}"


def with_query(url: str, **params) -> str:
    """Append query parameters to ``url``, keeping any it already has."""
    separator = "&" if "?" in url else "?"
    return f"{url}{separator}{urlencode(params, safe='{}')}"


@dataclass
class CheckoutResult:
    order: Order
    checkout_url: str
    session_id: str


class CheckoutService(BaseService):
    """
    Service for the checkout flow.

    Responsibilities:
    - Convert the cart into a pending order
    - Open a payment session for the order
    - Resolve orders for the success and cancel landing pages
    - Handle user-initiated cancellation

    Dependencies:
    - CatalogService: current product names and prices
    - CartService: clears the cart once the session exists
    - OrderService: order persistence and status changes
    - PaymentProviderInterface: hosted checkout sessions
    """

    def __init__(
        self,
        catalog_service: CatalogService = None,
        cart_service: CartService = None,
        order_service: OrderService = None,
        payment_provider: PaymentProviderInterface = None,
    ):
        super().__init__()
        self.catalog_service = catalog_service or CatalogService()
        self.cart_service = cart_service or CartService(catalog_service=self.catalog_service)
        self.order_service = order_service or OrderService()

        if payment_provider is None:
            from infrastructure.container import container

            payment_provider = container.payment()
        self.payment_provider = payment_provider

    @BaseService.log_performance
    def start_checkout(
        self,
        cart_store: CartSessionStore,
        email: str,
        success_url: str,
        cancel_url: str,
        client_ip: Optional[str] = None,
    ) -> ServiceResult[CheckoutResult]:
        """
        Create an order from the cart and open a payment session for it.

        Steps:
            1. Reject an empty cart (``cart_empty``)
            2. Validate the email (``validation_error``)
            3. Build the order from current catalogue prices (``product_not_found``)
            4. Persist the order (``database_error``)
            5. Create the payment session (``payment_provider_error``; order stays
               pending without a session id and the cart is kept)
            6. Store the session id on the order and clear the cart

        Args:
            cart_store: Session cart of the visitor
            email: Customer email
            success_url: Absolute URL of the success landing page
            cancel_url: Absolute URL of the cancel landing page
            client_ip: Caller IP for the audit log

        Returns:
            ServiceResult with CheckoutResult(order, checkout_url, session_id)
        """
        with tracer.start_as_current_span("checkout.start") as span:
            cart = cart_store.load()
            if cart.is_empty:
                return service_err(ErrorCodes.CART_EMPTY, "Cannot check out an empty cart")

            email = (email or "").strip()
            try:
                validate_email(email)
            except DjangoValidationError:
                return service_err(ErrorCodes.VALIDATION_ERROR, "A valid email address is required to check out")

            order = self.order_service.create_order(email)
            for line in cart.items:
                product_result = self.catalog_service.get_product(line.product_id)
                if not product_result.ok:
                    return service_err(
                        product_result.error,
                        f"Product {line.product_id} in the cart is no longer available",
                    )
                order.add_item(product_result.value, line.quantity)

            span.set_attribute("order.id", str(order.id))
            span.set_attribute("order.total", str(order.total_amount))

            save_result = self.order_service.save_order(order)
            if not save_result.ok:
                orders_placed_total.labels(status="failure").inc()
                return save_result

            orders_placed_total.labels(status="success").inc()
            order_value.observe(float(order.total_amount))
            PaymentAuditLogger.log_checkout_attempt(str(order.id), order.total_amount, email, client_ip)

            try:
                session = self.payment_provider.create_checkout_session(
                    order,
                    success_url=with_query(success_url, session_id=SESSION_ID_PLACEHOLDER),
                    cancel_url=with_query(cancel_url, order_id=str(order.id)),
                )
            except PaymentConfigurationError as e:
                checkout_sessions_total.labels(status="failure").inc()
                span.record_exception(e)
                PaymentAuditLogger.log_checkout_failure(str(order.id), order.total_amount, str(e))
                return service_err(ErrorCodes.PAYMENT_CONFIGURATION_ERROR, str(e))
            except GatewayError as e:
                checkout_sessions_total.labels(status="failure").inc()
                span.record_exception(e)
                PaymentAuditLogger.log_checkout_failure(str(order.id), order.total_amount, str(e))
                return service_err(ErrorCodes.PAYMENT_PROVIDER_ERROR, str(e))

            checkout_sessions_total.labels(status="success").inc()
            span.set_attribute("payment.session_id", session.session_id)

            attach_result = self.order_service.attach_payment_session(order, session.session_id)
            if not attach_result.ok:
                # Webhooks still resolve the order through the order id in the session metadata
                self.logger.error(
                    f"Could not store session {session.session_id} on order {order.id}: {attach_result.error_detail}"
                )

            self.cart_service.clear_cart(cart_store)

        self.logger.info(f"Checkout started for order {order.id}: session {session.session_id}")
        return service_ok(CheckoutResult(order=order, checkout_url=session.url, session_id=session.session_id))

    @BaseService.log_performance
    def get_completed_order(self, session_id: str) -> ServiceResult[Order]:
        """
        Look up the order behind a finished payment session (success landing page).

        The order may still be pending if the webhook has not arrived yet.
        """
        return self.order_service.find_by_payment_session_id(session_id)

    @BaseService.log_performance
    def cancel_checkout(self, order_id: Optional[str] = None, session_id: Optional[str] = None) -> ServiceResult[Order]:
        """
        Mark the order of an abandoned checkout as failed.

        Cancelling an order that is already completed or failed is a benign
        success: the conflict is logged and the order returned unchanged.
        """
        if order_id:
            order_result = self.order_service.get_order(order_id)
        else:
            order_result = self.order_service.find_by_payment_session_id(session_id)

        if not order_result.ok:
            return order_result

        order = order_result.value
        update_result = self.order_service.update_status(order, OrderStatus.FAILED)
        if update_result.ok:
            PaymentAuditLogger.log_order_status_change(str(order.id), order.status, "checkout_cancel")
            return update_result

        if update_result.error == ErrorCodes.STATE_CONFLICT:
            self.logger.info(f"Ignoring cancel for order {order.id}: {update_result.error_detail}")
            return service_ok(order)

        return update_result
