from decimal import Decimal
from unittest.mock import MagicMock, patch

from django.test import TestCase

from infrastructure.payments import (
    CheckoutSession,
    GatewayError,
    PaymentConfigurationError,
    PaymentProviderInterface,
    PaymentStatus,
)
from marketplace.cart.domain.models.cart import MAX_LINE_QUANTITY
from marketplace.cart.infra.session_store import CartSessionStore
from marketplace.models import Order, Product
from marketplace.ordering.domain.models.order import OrderStatus
from marketplace.services import CartService, CatalogService, OrderService
from marketplace.services.base import ErrorCodes, service_err
from marketplace.tests.factories import OrderFactory, ProductFactory
from payment_system.domain.services.checkout_service import CheckoutService, with_query
from payment_system.tests.helpers import FakeSession

SUCCESS_URL = "https://shop.example.com/api/payments/checkout/success/"
CANCEL_URL = "https://shop.example.com/api/payments/checkout/cancel/"


class WithQueryTest(TestCase):
    def test_keeps_session_placeholder_braces(self):
        self.assertEqual(
            with_query(SUCCESS_URL, session_id="{CHECKOUT_SESSION_ID}"),
            SUCCESS_URL + "?session_id={CHECKOUT_SESSION_ID}",
        )

    def test_appends_to_existing_query(self):
        self.assertEqual(with_query("https://x.test/c?a=1", order_id="o1"), "https://x.test/c?a=1&order_id=o1")


class CheckoutServiceTest(TestCase):
    def setUp(self):
        self.provider = MagicMock(spec=PaymentProviderInterface)
        self.provider.create_checkout_session.return_value = CheckoutSession(
            session_id="cs_test_S",
            url="https://checkout.stripe.com/c/pay/cs_test_S",
            amount=2500,
            currency="usd",
            status=PaymentStatus.PENDING,
        )

        self.catalog_service = CatalogService()
        self.cart_service = CartService(catalog_service=self.catalog_service)
        self.order_service = OrderService()
        self.service = CheckoutService(
            catalog_service=self.catalog_service,
            cart_service=self.cart_service,
            order_service=self.order_service,
            payment_provider=self.provider,
        )

        self.product_a = ProductFactory(price=Decimal("10.00"), name="Alpha")
        self.product_b = ProductFactory(price=Decimal("5.00"), name="Beta")
        self.store = CartSessionStore(FakeSession())

    def fill_cart(self):
        self.cart_service.add_to_cart(self.store, self.product_a.id, 2)
        self.cart_service.add_to_cart(self.store, self.product_b.id, 1)

    def start(self, email="a@b.com"):
        return self.service.start_checkout(self.store, email, SUCCESS_URL, CANCEL_URL, client_ip="127.0.0.1")

    def test_checkout_creates_pending_order_and_clears_cart(self):
        self.fill_cart()

        result = self.start()

        self.assertTrue(result.ok)
        self.assertEqual(result.value.checkout_url, "https://checkout.stripe.com/c/pay/cs_test_S")
        self.assertEqual(result.value.session_id, "cs_test_S")

        order = Order.objects.get(id=result.value.order.id)
        self.assertEqual(order.total_amount, Decimal("25.00"))
        self.assertEqual(order.status, OrderStatus.PENDING)
        self.assertEqual(order.customer_email, "a@b.com")
        self.assertEqual(order.payment_session_id, "cs_test_S")
        self.assertEqual(order.items.count(), 2)
        self.assertTrue(self.store.load().is_empty)

    def test_checkout_passes_landing_urls(self):
        self.fill_cart()

        result = self.start()

        _, kwargs = self.provider.create_checkout_session.call_args
        self.assertEqual(kwargs["success_url"], SUCCESS_URL + "?session_id={CHECKOUT_SESSION_ID}")
        self.assertEqual(kwargs["cancel_url"], f"{CANCEL_URL}?order_id={result.value.order.id}")

    def test_order_is_saved_before_gateway_call(self):
        self.fill_cart()

        def assert_persisted(order, success_url, cancel_url):
            self.assertTrue(Order.objects.filter(id=order.id, status=OrderStatus.PENDING).exists())
            return CheckoutSession("cs_test_S", "https://checkout.stripe.com/x", 2500, "usd", PaymentStatus.PENDING)

        self.provider.create_checkout_session.side_effect = assert_persisted

        self.assertTrue(self.start().ok)

    def test_oversized_quantity_checks_out_capped(self):
        self.cart_service.add_to_cart(self.store, self.product_a.id, 10_000_000)

        result = self.start()

        self.assertTrue(result.ok)
        order = Order.objects.get(id=result.value.order.id)
        self.assertEqual(order.items.get().quantity, MAX_LINE_QUANTITY)
        self.assertEqual(order.total_amount, Decimal("10.00") * MAX_LINE_QUANTITY)

    def test_empty_cart(self):
        result = self.start()

        self.assertFalse(result.ok)
        self.assertEqual(result.error, ErrorCodes.CART_EMPTY)
        self.provider.create_checkout_session.assert_not_called()
        self.assertEqual(Order.objects.count(), 0)

    def test_invalid_email(self):
        self.fill_cart()

        for email in ["", "   ", "not-an-email"]:
            result = self.start(email)
            self.assertEqual(result.error, ErrorCodes.VALIDATION_ERROR)

        self.assertEqual(Order.objects.count(), 0)
        self.assertFalse(self.store.load().is_empty)

    def test_product_removed_from_catalogue(self):
        self.fill_cart()
        Product.objects.filter(id=self.product_b.id).delete()

        result = self.start()

        self.assertEqual(result.error, ErrorCodes.PRODUCT_NOT_FOUND)
        self.assertEqual(Order.objects.count(), 0)

    def test_order_uses_current_catalogue_price(self):
        self.fill_cart()
        Product.objects.filter(id=self.product_a.id).update(price=Decimal("12.00"))

        result = self.start()

        self.assertEqual(Order.objects.get(id=result.value.order.id).total_amount, Decimal("29.00"))

    def test_gateway_failure_keeps_cart_and_pending_order(self):
        self.fill_cart()
        self.provider.create_checkout_session.side_effect = GatewayError("card_declined")

        result = self.start()

        self.assertFalse(result.ok)
        self.assertEqual(result.error, ErrorCodes.PAYMENT_PROVIDER_ERROR)
        order = Order.objects.get()
        self.assertEqual(order.status, OrderStatus.PENDING)
        self.assertIsNone(order.payment_session_id)
        self.assertEqual(self.store.load().total(), Decimal("25.00"))

    def test_missing_provider_configuration(self):
        self.fill_cart()
        self.provider.create_checkout_session.side_effect = PaymentConfigurationError("no key")

        result = self.start()

        self.assertEqual(result.error, ErrorCodes.PAYMENT_CONFIGURATION_ERROR)
        self.assertFalse(self.store.load().is_empty)

    def test_save_failure_aborts_checkout(self):
        self.fill_cart()

        with patch.object(
            self.order_service, "save_order", return_value=service_err(ErrorCodes.DATABASE_ERROR, "db down")
        ):
            result = self.start()

        self.assertEqual(result.error, ErrorCodes.DATABASE_ERROR)
        self.provider.create_checkout_session.assert_not_called()
        self.assertFalse(self.store.load().is_empty)

    def test_get_completed_order(self):
        order = OrderFactory(payment_session_id="cs_landing")

        self.assertEqual(self.service.get_completed_order("cs_landing").value.id, order.id)
        self.assertEqual(self.service.get_completed_order("cs_other").error, ErrorCodes.ORDER_NOT_FOUND)

    def test_cancel_checkout_by_order_id(self):
        order = OrderFactory()

        result = self.service.cancel_checkout(order_id=str(order.id))

        self.assertTrue(result.ok)
        self.assertEqual(Order.objects.get(id=order.id).status, OrderStatus.FAILED)

    def test_cancel_checkout_by_session_id(self):
        order = OrderFactory(payment_session_id="cs_cancel")

        self.service.cancel_checkout(session_id="cs_cancel")

        self.assertEqual(Order.objects.get(id=order.id).status, OrderStatus.FAILED)

    def test_cancel_never_touches_completed_order(self):
        order = OrderFactory(status=OrderStatus.COMPLETED)

        result = self.service.cancel_checkout(order_id=str(order.id))

        self.assertTrue(result.ok)
        self.assertEqual(Order.objects.get(id=order.id).status, OrderStatus.COMPLETED)
