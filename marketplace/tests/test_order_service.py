import uuid
from decimal import Decimal, InvalidOperation
from unittest.mock import patch

from django.db import DatabaseError
from django.test import TestCase

from marketplace.models import Order, OrderItem
from marketplace.ordering.domain.models.order import OrderStatus
from marketplace.services import OrderService
from marketplace.services.base import ErrorCodes
from marketplace.tests.factories import OrderFactory, ProductFactory, create_order_with_items


class OrderServiceSaveTest(TestCase):
    def setUp(self):
        self.service = OrderService()
        self.product_a = ProductFactory(price=Decimal("10.00"))
        self.product_b = ProductFactory(price=Decimal("5.00"))

    def test_create_order_is_unsaved_and_pending(self):
        order = self.service.create_order("a@b.com")

        self.assertIsNotNone(order.id)
        self.assertEqual(order.status, OrderStatus.PENDING)
        self.assertEqual(order.total_amount, Decimal("0.00"))
        self.assertFalse(Order.objects.filter(id=order.id).exists())

    def test_save_order_persists_order_and_items(self):
        order = self.service.create_order("a@b.com")
        order.add_item(self.product_a, 2)
        order.add_item(self.product_b, 1)

        result = self.service.save_order(order)

        self.assertTrue(result.ok)
        saved = Order.objects.get(id=order.id)
        self.assertEqual(saved.total_amount, Decimal("25.00"))
        self.assertEqual(saved.status, OrderStatus.PENDING)
        self.assertEqual(saved.items.count(), 2)
        self.assertEqual(
            sorted(saved.items.values_list("product_id", "quantity")),
            sorted([(self.product_a.id, 2), (self.product_b.id, 1)]),
        )

    def test_save_order_replaces_items(self):
        order = self.service.create_order("a@b.com")
        order.add_item(self.product_a, 1)
        self.service.save_order(order)

        order.add_item(self.product_a, 2)
        order.add_item(self.product_b, 4)
        self.service.save_order(order)

        items = OrderItem.objects.filter(order_id=order.id)
        self.assertEqual(items.count(), 2)
        self.assertEqual(items.get(product_id=self.product_a.id).quantity, 3)
        self.assertEqual(Order.objects.get(id=order.id).total_amount, Decimal("50.00"))

    def test_save_order_is_all_or_nothing(self):
        order = create_order_with_items([(self.product_a, 1)], customer_email="a@b.com")

        reloaded = self.service.get_order(order.id).value
        reloaded.add_item(self.product_b, 3)

        with patch.object(OrderItem.objects, "bulk_create", side_effect=DatabaseError("disk full")):
            result = self.service.save_order(reloaded)

        self.assertFalse(result.ok)
        self.assertEqual(result.error, ErrorCodes.DATABASE_ERROR)

        persisted = Order.objects.get(id=order.id)
        self.assertEqual(persisted.total_amount, Decimal("10.00"))
        self.assertEqual(list(persisted.items.values_list("product_id", "quantity")), [(self.product_a.id, 1)])

    def test_failed_first_save_leaves_nothing(self):
        order = self.service.create_order("a@b.com")
        order.add_item(self.product_a, 1)

        with patch.object(OrderItem.objects, "bulk_create", side_effect=DatabaseError("disk full")):
            result = self.service.save_order(order)

        self.assertFalse(result.ok)
        self.assertFalse(Order.objects.filter(id=order.id).exists())

    def test_out_of_range_amount_is_a_database_error(self):
        order = self.service.create_order("a@b.com")
        order.add_item(self.product_a, 1)

        with patch.object(OrderItem.objects, "bulk_create", side_effect=InvalidOperation("too many digits")):
            result = self.service.save_order(order)

        self.assertFalse(result.ok)
        self.assertEqual(result.error, ErrorCodes.DATABASE_ERROR)
        self.assertFalse(Order.objects.filter(id=order.id).exists())


class OrderServiceLookupTest(TestCase):
    def setUp(self):
        self.service = OrderService()

    def test_get_order(self):
        order = OrderFactory()

        result = self.service.get_order(str(order.id))

        self.assertTrue(result.ok)
        self.assertEqual(result.value.id, order.id)

    def test_get_order_unknown_id(self):
        result = self.service.get_order(uuid.uuid4())

        self.assertFalse(result.ok)
        self.assertEqual(result.error, ErrorCodes.ORDER_NOT_FOUND)

    def test_get_order_malformed_id(self):
        result = self.service.get_order("not-a-uuid")

        self.assertFalse(result.ok)
        self.assertEqual(result.error, ErrorCodes.ORDER_NOT_FOUND)

    def test_find_by_payment_session_id(self):
        order = OrderFactory(payment_session_id="cs_test_lookup")

        result = self.service.find_by_payment_session_id("cs_test_lookup")

        self.assertTrue(result.ok)
        self.assertEqual(result.value.id, order.id)

    def test_find_by_unknown_session(self):
        self.assertEqual(self.service.find_by_payment_session_id("cs_nope").error, ErrorCodes.ORDER_NOT_FOUND)
        self.assertEqual(self.service.find_by_payment_session_id("").error, ErrorCodes.ORDER_NOT_FOUND)

    def test_attach_payment_session_once(self):
        order = OrderFactory()

        first = self.service.attach_payment_session(order, "cs_first")
        again = self.service.attach_payment_session(order, "cs_first")
        other = self.service.attach_payment_session(order, "cs_second")

        self.assertTrue(first.ok)
        self.assertTrue(again.ok)
        self.assertFalse(other.ok)
        self.assertEqual(other.error, ErrorCodes.STATE_CONFLICT)
        self.assertEqual(Order.objects.get(id=order.id).payment_session_id, "cs_first")


class OrderServiceStatusTest(TestCase):
    def setUp(self):
        self.service = OrderService()
        self.order = OrderFactory(status=OrderStatus.PENDING)

    def test_pending_to_completed(self):
        result = self.service.update_status(self.order, OrderStatus.COMPLETED)

        self.assertTrue(result.ok)
        self.assertEqual(self.order.status, OrderStatus.COMPLETED)
        self.assertEqual(Order.objects.get(id=self.order.id).status, OrderStatus.COMPLETED)

    def test_repeat_transition_changes_nothing(self):
        self.service.update_status(self.order, OrderStatus.COMPLETED)
        updated_at = Order.objects.get(id=self.order.id).updated_at

        result = self.service.update_status(self.order, OrderStatus.COMPLETED)

        self.assertTrue(result.ok)
        persisted = Order.objects.get(id=self.order.id)
        self.assertEqual(persisted.status, OrderStatus.COMPLETED)
        self.assertEqual(persisted.updated_at, updated_at)

    def test_completed_order_is_never_downgraded(self):
        self.service.update_status(self.order, OrderStatus.COMPLETED)

        result = self.service.update_status(self.order, OrderStatus.FAILED)

        self.assertFalse(result.ok)
        self.assertEqual(result.error, ErrorCodes.STATE_CONFLICT)
        self.assertEqual(Order.objects.get(id=self.order.id).status, OrderStatus.COMPLETED)

    def test_failed_order_cannot_complete(self):
        self.service.update_status(self.order, OrderStatus.FAILED)

        result = self.service.update_status(self.order, OrderStatus.COMPLETED)

        self.assertEqual(result.error, ErrorCodes.STATE_CONFLICT)
        self.assertEqual(Order.objects.get(id=self.order.id).status, OrderStatus.FAILED)

    def test_stale_instance_uses_locked_row(self):
        stale = Order.objects.get(id=self.order.id)
        self.service.update_status(self.order, OrderStatus.COMPLETED)

        result = self.service.update_status(stale, OrderStatus.FAILED)

        self.assertEqual(result.error, ErrorCodes.STATE_CONFLICT)
        self.assertEqual(Order.objects.get(id=self.order.id).status, OrderStatus.COMPLETED)

    def test_cancel_order(self):
        result = self.service.cancel_order(self.order.id)

        self.assertTrue(result.ok)
        self.assertEqual(result.value.status, OrderStatus.FAILED)

    def test_cancel_unknown_order(self):
        result = self.service.cancel_order(uuid.uuid4())

        self.assertEqual(result.error, ErrorCodes.ORDER_NOT_FOUND)
